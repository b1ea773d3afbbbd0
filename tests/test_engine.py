"""
Tests for the LayerTreeEngine facade: leaf coordination, cascading delete,
renderer notifications, blocked actions and listener delivery.
"""
import pytest
from unittest.mock import MagicMock

from services.layer_tree_engine import LayerTreeEngine
from services.renderer_bridge import InMemoryRenderer
from utils.config import EngineConfig
from utils import logger
from constants import BASE_NODE_ID, ROOT_NODE_ID


def _add_leaf(engine, group_id=None, name=''):
    return engine.renderer.add_leaf(name=name, layer_id=group_id).id


# ══════════════════════════════════════════════════════════════════════════
# Construction
# ══════════════════════════════════════════════════════════════════════════

class TestConstruction:

    def test_adopts_existing_leaves(self):
        renderer = InMemoryRenderer()
        a = renderer.add_leaf()
        b = renderer.add_leaf(layer_id='stale-group')
        engine = LayerTreeEngine(renderer)
        assert engine.leaf_index.container_of(a.id) == BASE_NODE_ID
        assert b.layer_id == BASE_NODE_ID

    def test_config_names(self, renderer):
        engine = LayerTreeEngine(renderer, config=EngineConfig(root_name="Poster", base_name="Paper"))
        assert engine.tree.get(ROOT_NODE_ID).name == "Poster"
        assert engine.tree.get(BASE_NODE_ID).name == "Paper"

    def test_flatten_includes_leaves(self, engine):
        leaf_id = _add_leaf(engine, BASE_NODE_ID)
        assert [row.id for row in engine.flatten()] == [BASE_NODE_ID, leaf_id]


# ══════════════════════════════════════════════════════════════════════════
# Delete Cascade
# ══════════════════════════════════════════════════════════════════════════

class TestDeleteCascade:

    def test_removes_group_leaves_only(self, engine):
        l1 = _add_leaf(engine, BASE_NODE_ID)
        g1 = engine.create_node(BASE_NODE_ID)
        l2 = _add_leaf(engine, g1)

        removed = engine.delete_node(g1)

        assert removed == [g1]
        assert engine.renderer.find_leaf(l2) is None
        assert engine.renderer.find_leaf(l1) is not None
        assert engine.leaf_index.container_of(l1) == BASE_NODE_ID

    def test_removes_nested_leaves(self, engine):
        g1 = engine.create_node(BASE_NODE_ID)
        g2 = engine.create_node(g1)
        _add_leaf(engine, g1)
        _add_leaf(engine, g2)
        engine.delete_node(g1)
        assert len(engine.renderer) == 0
        assert engine.tree.validate() == []

    def test_remove_leaf_called_per_leaf(self, engine):
        g1 = engine.create_node(BASE_NODE_ID)
        _add_leaf(engine, g1)
        _add_leaf(engine, g1)
        engine.renderer.remove_leaf = MagicMock(wraps=engine.renderer.remove_leaf)
        engine.delete_node(g1)
        assert engine.renderer.remove_leaf.call_count == 2

    def test_selection_pruned(self, engine):
        g1 = engine.create_node(BASE_NODE_ID)
        leaf_id = _add_leaf(engine, g1)
        engine.select(g1)
        assert leaf_id in engine.selected_ids()
        engine.delete_node(g1)
        assert engine.selected_ids() == []

    def test_active_group_falls_back_to_base(self, engine):
        g1 = engine.create_node(BASE_NODE_ID)
        engine.set_active_group(g1)
        engine.delete_node(g1)
        assert engine.active_group_id == BASE_NODE_ID

    def test_unknown_is_noop(self, engine):
        assert engine.delete_node("missing") is None


# ══════════════════════════════════════════════════════════════════════════
# Blocked Actions
# ══════════════════════════════════════════════════════════════════════════

class TestBlockedActions:

    @pytest.mark.parametrize("node_id", [ROOT_NODE_ID, BASE_NODE_ID])
    def test_protected_delete_is_blocked(self, engine, node_id):
        leaf_id = _add_leaf(engine, BASE_NODE_ID)
        before = engine.tree.get_snapshot()
        assert engine.delete_node(node_id) is None
        assert engine.tree.get_snapshot() == before
        assert engine.renderer.find_leaf(leaf_id) is not None

    def test_blocked_action_shows_warning(self, engine, monkeypatch):
        message_box = MagicMock()
        monkeypatch.setattr(logger, 'QMessageBox', message_box)
        window = MagicMock()
        logger.set_main_window(window)

        engine.delete_node(BASE_NODE_ID)

        message_box.warning.assert_called_once()
        assert message_box.warning.call_args[0][0] is window

    def test_blocked_action_logged_without_window(self, engine, caplog):
        with caplog.at_level('WARNING'):
            engine.delete_node(ROOT_NODE_ID)
        assert any("cannot be deleted" in record.message for record in caplog.records)


# ══════════════════════════════════════════════════════════════════════════
# Renderer Notifications
# ══════════════════════════════════════════════════════════════════════════

class TestRendererNotifications:

    def test_new_leaf_goes_to_active_group(self, engine):
        g1 = engine.create_node(BASE_NODE_ID)
        engine.set_active_group(g1)
        leaf_id = _add_leaf(engine)
        assert engine.leaf_index.container_of(leaf_id) == g1

    def test_active_group_must_be_group(self, engine):
        assert not engine.set_active_group(ROOT_NODE_ID)
        assert not engine.set_active_group("missing")
        assert engine.active_group_id == BASE_NODE_ID

    def test_external_remove_resyncs(self, engine):
        leaf = engine.renderer.add_leaf(layer_id=BASE_NODE_ID)
        engine.renderer.remove_leaf(leaf)
        assert leaf.id not in engine.leaf_index

    def test_modify_updates_entry(self, engine):
        leaf = engine.renderer.add_leaf(name="Old", layer_id=BASE_NODE_ID)
        engine.renderer.modify_leaf(leaf, name="New")
        assert engine.leaf_entry(leaf.id).name == "New"

    def test_renderer_cannot_modify_engine_fields(self, engine):
        leaf = engine.renderer.add_leaf(layer_id=BASE_NODE_ID)
        with pytest.raises(AttributeError):
            engine.renderer.modify_leaf(leaf, layer_id='elsewhere')


# ══════════════════════════════════════════════════════════════════════════
# Leaf Commands
# ══════════════════════════════════════════════════════════════════════════

class TestLeafCommands:

    def test_duplicate_leaf_in_front(self, engine):
        g1 = engine.create_node(BASE_NODE_ID)
        original = _add_leaf(engine, g1)
        copy_id = engine.duplicate_leaf(original)
        assert engine.leaf_index.leaf_ids(g1) == [copy_id, original]
        copy = engine.renderer.find_leaf(copy_id)
        assert (copy.x, copy.y) == (20.0, 20.0)

    def test_duplicate_uses_configured_offset(self, renderer):
        engine = LayerTreeEngine(renderer, config=EngineConfig(clone_offset_x=5, clone_offset_y=-3))
        original = _add_leaf(engine, BASE_NODE_ID)
        copy = engine.renderer.find_leaf(engine.duplicate_leaf(original))
        assert (copy.x, copy.y) == (5, -3)

    def test_delete_leaf(self, engine):
        leaf_id = _add_leaf(engine, BASE_NODE_ID)
        assert engine.delete_leaf(leaf_id)
        assert len(engine.renderer) == 0
        assert not engine.delete_leaf(leaf_id)

    def test_leaf_visibility(self, engine):
        leaf_id = _add_leaf(engine, BASE_NODE_ID)
        assert engine.toggle_leaf_visibility(leaf_id) is False
        assert not engine.is_leaf_visible(leaf_id)
        assert engine.toggle_leaf_visibility(leaf_id) is True

    def test_unknown_leaf_commands(self, engine):
        assert engine.duplicate_leaf("ghost") is None
        assert engine.toggle_leaf_lock("ghost") is None
        assert engine.toggle_leaf_visibility("ghost") is None


# ══════════════════════════════════════════════════════════════════════════
# Listeners
# ══════════════════════════════════════════════════════════════════════════

class TestListeners:

    def test_listener_called_after_commands(self, engine):
        listener = MagicMock()
        engine.add_listener(listener)
        g1 = engine.create_node(BASE_NODE_ID)
        engine.rename_node(g1, "Shapes")
        engine.toggle_expand(g1)
        assert listener.call_count == 3

    def test_no_notification_for_noop(self, engine):
        listener = MagicMock()
        engine.add_listener(listener)
        engine.rename_node(BASE_NODE_ID, "   ")
        engine.move_sibling(BASE_NODE_ID, 'up')
        listener.assert_not_called()

    def test_remove_listener(self, engine):
        listener = MagicMock()
        engine.add_listener(listener)
        engine.remove_listener(listener)
        engine.create_node(BASE_NODE_ID)
        listener.assert_not_called()

    def test_renderer_change_notifies(self, engine):
        listener = MagicMock()
        engine.add_listener(listener)
        _add_leaf(engine, BASE_NODE_ID)
        listener.assert_called_once()
