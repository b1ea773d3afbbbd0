"""
Tests for the QGraphicsScene-backed renderer driven by the engine.
"""
import pytest

from PyQt5.QtCore import QLineF, QRectF
from PyQt5.QtWidgets import (
    QGraphicsEllipseItem, QGraphicsItem, QGraphicsLineItem,
    QGraphicsRectItem, QGraphicsScene, QGraphicsSimpleTextItem,
)

from services.layer_tree_engine import LayerTreeEngine
from services.scene_renderer import SceneRenderer, item_kind
from constants import BASE_NODE_ID


@pytest.fixture
def scene_renderer(qapp):
    return SceneRenderer(QGraphicsScene())


@pytest.fixture
def scene_engine(scene_renderer):
    return LayerTreeEngine(scene_renderer)


def _movable(item):
    return bool(int(item.flags() & QGraphicsItem.ItemIsMovable))


def _rect(renderer, name='', layer_id=None):
    item = QGraphicsRectItem(QRectF(0, 0, 10, 10))
    return item, renderer.add_item(item, name=name, layer_id=layer_id)


class TestSceneRenderer:

    @pytest.mark.parametrize("item_type,kind", [
        (QGraphicsRectItem, 'rect'),
        (QGraphicsEllipseItem, 'ellipse'),
        (QGraphicsLineItem, 'line'),
        (QGraphicsSimpleTextItem, 'text'),
    ])
    def test_item_kind(self, qapp, item_type, kind):
        assert item_kind(item_type()) == kind

    def test_add_item_stacks_on_top(self, scene_renderer):
        first, first_id = _rect(scene_renderer)
        second, second_id = _rect(scene_renderer)
        assert first_id == "item_1"
        assert second.zValue() > first.zValue()
        assert scene_renderer.enumerate_leaves() == [first, second]
        assert scene_renderer.get_leaf_name(first) == "rect 1"

    def test_unregistered_items_ignored(self, scene_renderer):
        scene_renderer.scene.addItem(QGraphicsRectItem())
        _rect(scene_renderer)
        assert len(scene_renderer.enumerate_leaves()) == 1

    def test_lock_controls_interaction(self, scene_renderer):
        item, _ = _rect(scene_renderer)
        item.setSelected(True)
        scene_renderer.set_leaf_locked(item, True)
        assert scene_renderer.is_leaf_locked(item)
        assert not _movable(item)
        assert not item.isSelected()
        scene_renderer.set_leaf_locked(item, False)
        assert int(item.flags() & QGraphicsItem.ItemIsSelectable)

    def test_reorder(self, scene_renderer):
        a, _ = _rect(scene_renderer)
        b, _ = _rect(scene_renderer)
        c, _ = _rect(scene_renderer)
        scene_renderer.reorder_leaf(c, 0)
        assert scene_renderer.enumerate_leaves() == [c, a, b]
        assert [item.zValue() for item in (c, a, b)] == [0, 1, 2]

    def test_duplicate_copies_geometry(self, scene_renderer):
        item, _ = _rect(scene_renderer, name="Roof")
        item.setPos(5, 5)
        copy = scene_renderer.duplicate_leaf(item, 20, 10)
        assert copy.rect() == item.rect()
        assert (copy.pos().x(), copy.pos().y()) == (25, 15)
        assert scene_renderer.get_leaf_name(copy) == "Roof"
        assert scene_renderer.get_leaf_id(copy) != scene_renderer.get_leaf_id(item)
        assert scene_renderer.enumerate_leaves() == [item, copy]

    def test_duplicate_line(self, scene_renderer):
        line = QGraphicsLineItem(QLineF(0, 0, 10, 10))
        scene_renderer.add_item(line)
        copy = scene_renderer.duplicate_leaf(line)
        assert copy.line() == line.line()

    def test_remove(self, scene_renderer):
        item, _ = _rect(scene_renderer)
        scene_renderer.remove_leaf(item)
        assert scene_renderer.enumerate_leaves() == []
        scene_renderer.remove_leaf(item)


class TestSceneEngine:

    def test_drawn_items_join_active_group(self, scene_engine, scene_renderer):
        group_id = scene_engine.create_node(BASE_NODE_ID)
        scene_engine.set_active_group(group_id)
        item, item_id = _rect(scene_renderer)
        assert scene_renderer.get_leaf_container(item) == group_id
        assert scene_engine.leaf_index.leaf_ids(group_id) == [item_id]

    def test_z_values_follow_panel(self, scene_engine, scene_renderer):
        a = scene_engine.create_node(BASE_NODE_ID)
        b = scene_engine.create_node(BASE_NODE_ID)
        in_a, _ = _rect(scene_renderer, layer_id=a)
        in_b, _ = _rect(scene_renderer, layer_id=b)
        assert in_a.zValue() < in_b.zValue()

        scene_engine.move_sibling(b, 'down')

        assert in_b.zValue() < in_a.zValue()
        assert scene_engine.zorder.is_consistent(scene_engine.tree, scene_engine.leaf_index)

    def test_group_lock_freezes_items(self, scene_engine, scene_renderer):
        group_id = scene_engine.create_node(BASE_NODE_ID)
        item, _ = _rect(scene_renderer, layer_id=group_id)
        scene_engine.toggle_lock_recursive(group_id)
        assert not _movable(item)
        scene_engine.toggle_lock_recursive(group_id)
        assert _movable(item)

    def test_delete_group_removes_items(self, scene_engine, scene_renderer):
        group_id = scene_engine.create_node(BASE_NODE_ID)
        item, _ = _rect(scene_renderer, layer_id=group_id)
        scene_engine.delete_node(group_id)
        assert item.scene() is None
        assert scene_renderer.enumerate_leaves() == []

    def test_clone_group_duplicates_items(self, scene_engine, scene_renderer):
        group_id = scene_engine.create_node(BASE_NODE_ID)
        _rect(scene_renderer, layer_id=group_id)
        copy_id = scene_engine.clone_subtree(group_id)
        (copy_item_id,) = scene_engine.leaf_index.leaf_ids(copy_id)
        copy = scene_renderer.find_leaf(copy_item_id)
        assert (copy.pos().x(), copy.pos().y()) == (20, 20)

    def test_rename_updates_panel_entry(self, scene_engine, scene_renderer):
        item, item_id = _rect(scene_renderer)
        scene_renderer.rename_item(item, "Chimney")
        assert scene_engine.leaf_entry(item_id).name == "Chimney"
