"""
Tests for node CRUD, sibling moves and reparenting on the LayerTree model.
"""
import pytest

from models.layer_tree import StructuralViolation
from constants import ROOT_NODE_ID, BASE_NODE_ID


def _create_n(tree, parent_id, n):
    """Create n groups in parent_id; returns ids top to bottom"""
    ids = [tree.create_node(parent_id) for _ in range(n)]
    return list(reversed(ids))


# ══════════════════════════════════════════════════════════════════════════
# Create
# ══════════════════════════════════════════════════════════════════════════

class TestCreateNode:

    def test_create_and_nest(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(g1)
        assert tree.parent_of(g2) == g1
        assert tree.children(g1) == [g2]

    def test_inserted_at_front(self, tree):
        first = tree.create_node(tree.base_id)
        second = tree.create_node(tree.base_id)
        assert tree.children(tree.base_id) == [second, first]

    def test_auto_names_count_up(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(tree.base_id)
        assert tree.get(g1).name == "Group-1"
        assert tree.get(g2).name == "Group-2"

    def test_project_label_names(self, tree):
        p1 = tree.create_node(ROOT_NODE_ID, label='project')
        assert tree.get(p1).name == "Project-1"
        assert tree.get(p1).label == 'project'

    def test_auto_name_uses_highest_suffix(self, tree):
        g1 = tree.create_node(tree.base_id)
        tree.rename_node(g1, "Group-7")
        g2 = tree.create_node(tree.base_id)
        assert tree.get(g2).name == "Group-8"

    def test_auto_name_after_delete(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(tree.base_id)
        tree.delete_node(g2)
        g3 = tree.create_node(tree.base_id)
        assert tree.get(g3).name == "Group-2"
        assert tree.get(g1).name == "Group-1"

    def test_parent_is_expanded(self, tree):
        g1 = tree.create_node(tree.base_id)
        tree.toggle_expand(g1)
        assert not tree.get(g1).expanded
        tree.create_node(g1)
        assert tree.get(g1).expanded

    def test_explicit_name(self, tree):
        g1 = tree.create_node(tree.base_id, name="Outlines")
        assert tree.get(g1).name == "Outlines"

    def test_unknown_parent_returns_none(self, tree):
        assert tree.create_node("missing") is None
        assert len(tree) == 2

    def test_unknown_label_rejected(self, tree):
        with pytest.raises(ValueError):
            tree.create_node(tree.base_id, label='folder')


# ══════════════════════════════════════════════════════════════════════════
# Delete
# ══════════════════════════════════════════════════════════════════════════

class TestDeleteNode:

    def test_cascades_to_descendants(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(g1)
        g3 = tree.create_node(g2)
        removed = tree.delete_node(g1)
        assert set(removed) == {g1, g2, g3}
        assert tree.children(tree.base_id) == []
        assert len(tree) == 2
        assert tree.validate() == []

    def test_siblings_untouched(self, tree):
        a, b, c = _create_n(tree, tree.base_id, 3)
        tree.delete_node(b)
        assert tree.children(tree.base_id) == [a, c]

    @pytest.mark.parametrize("node_id", [ROOT_NODE_ID, BASE_NODE_ID])
    def test_protected_nodes_raise(self, tree, node_id):
        g1 = tree.create_node(tree.base_id)
        with pytest.raises(StructuralViolation):
            tree.delete_node(node_id)
        assert g1 in tree
        assert tree.validate() == []

    def test_unknown_is_noop(self, tree):
        assert tree.delete_node("missing") == []


# ══════════════════════════════════════════════════════════════════════════
# Rename / Expand
# ══════════════════════════════════════════════════════════════════════════

class TestRenameAndExpand:

    def test_rename_strips(self, tree):
        g1 = tree.create_node(tree.base_id)
        assert tree.rename_node(g1, "  Shadows  ")
        assert tree.get(g1).name == "Shadows"

    def test_blank_name_ignored(self, tree):
        g1 = tree.create_node(tree.base_id)
        assert not tree.rename_node(g1, "   ")
        assert tree.get(g1).name == "Group-1"

    def test_rename_root_only_changes_name(self, tree):
        tree.rename_node(ROOT_NODE_ID, "Poster")
        assert tree.get(ROOT_NODE_ID).name == "Poster"
        assert tree.children(ROOT_NODE_ID) == [BASE_NODE_ID]

    def test_toggle_expand(self, tree):
        g1 = tree.create_node(tree.base_id)
        assert tree.toggle_expand(g1) is False
        assert tree.toggle_expand(g1) is True
        assert tree.toggle_expand("missing") is None


# ══════════════════════════════════════════════════════════════════════════
# Ordering
# ══════════════════════════════════════════════════════════════════════════

class TestMoveSibling:

    def test_move_up_and_down(self, tree):
        a, b, c = _create_n(tree, tree.base_id, 3)
        assert tree.move_sibling(c, 'up')
        assert tree.children(tree.base_id) == [a, c, b]
        assert tree.move_sibling(a, 'down')
        assert tree.children(tree.base_id) == [c, a, b]

    def test_noop_at_ends(self, tree):
        a, b = _create_n(tree, tree.base_id, 2)
        assert not tree.move_sibling(a, 'up')
        assert not tree.move_sibling(b, 'down')
        assert tree.children(tree.base_id) == [a, b]

    def test_invalid_direction(self, tree):
        a = tree.create_node(tree.base_id)
        with pytest.raises(ValueError):
            tree.move_sibling(a, 'sideways')


class TestMoveNode:

    def test_reparent(self, tree):
        a, b = _create_n(tree, tree.base_id, 2)
        assert tree.move_node(b, a, 0)
        assert tree.parent_of(b) == a
        assert tree.children(tree.base_id) == [a]
        assert tree.validate() == []

    def test_reorder_within_parent(self, tree):
        a, b, c = _create_n(tree, tree.base_id, 3)
        assert tree.move_node(a, tree.base_id, 2)
        assert tree.children(tree.base_id) == [b, c, a]

    def test_same_position_is_unchanged(self, tree):
        a, b = _create_n(tree, tree.base_id, 2)
        assert not tree.move_node(b, tree.base_id, 1)

    def test_cycle_rejected(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(g1)
        assert not tree.move_node(g1, g2, 0)
        assert not tree.move_node(g1, g1, 0)
        assert tree.parent_of(g1) == BASE_NODE_ID

    def test_root_cannot_move(self, tree):
        with pytest.raises(StructuralViolation):
            tree.move_node(ROOT_NODE_ID, BASE_NODE_ID, 0)

    def test_base_stays_in_root(self, tree):
        g1 = tree.create_node(ROOT_NODE_ID)
        with pytest.raises(StructuralViolation):
            tree.move_node(BASE_NODE_ID, g1, 0)
        assert tree.parent_of(BASE_NODE_ID) == ROOT_NODE_ID

    def test_base_can_reorder_in_root(self, tree):
        g1 = tree.create_node(ROOT_NODE_ID)
        assert tree.move_node(BASE_NODE_ID, ROOT_NODE_ID, 0)
        assert tree.children(ROOT_NODE_ID) == [BASE_NODE_ID, g1]

    def test_destination_expanded(self, tree):
        a, b = _create_n(tree, tree.base_id, 2)
        tree.toggle_expand(a)
        tree.move_node(b, a, 0)
        assert tree.get(a).expanded


# ══════════════════════════════════════════════════════════════════════════
# Lock Flags
# ══════════════════════════════════════════════════════════════════════════

class TestLockFlags:

    def test_effective_lock_inherits(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(g1)
        tree.toggle_node_lock(g1)
        assert tree.is_effectively_locked(g2)
        assert not tree.get(g2).locked
        assert tree.locked_node_ids() == {g1, g2}

    def test_toggle_unknown(self, tree):
        assert tree.toggle_node_lock("missing") is None
