"""
QGraphicsScene adapter for the layer tree engine

Every QGraphicsItem added through add_item() becomes a leaf. Engine-owned
fields live in the item's data slots; the paint index is the item's
zValue. Geometry, pens and brushes stay with the item and are only read
here to build duplicates.
"""

import logging
from typing import List, Optional

from PyQt5.QtWidgets import (
    QGraphicsScene, QGraphicsItem,
    QGraphicsRectItem, QGraphicsEllipseItem, QGraphicsPathItem,
    QGraphicsLineItem, QGraphicsSimpleTextItem, QGraphicsTextItem,
)

from services.renderer_bridge import LeafRenderer, LEAF_ADDED, LEAF_REMOVED, LEAF_MODIFIED

# QGraphicsItem.data() keys
DATA_LEAF_ID = 0
DATA_NAME = 1
DATA_KIND = 2
DATA_CONTAINER = 3
DATA_LOCKED = 4
DATA_SEQUENCE = 5

_KIND_BY_TYPE = (
    (QGraphicsRectItem, 'rect'),
    (QGraphicsEllipseItem, 'ellipse'),
    (QGraphicsPathItem, 'path'),
    (QGraphicsLineItem, 'line'),
    (QGraphicsSimpleTextItem, 'text'),
    (QGraphicsTextItem, 'text'),
)


def item_kind(item: QGraphicsItem) -> str:
    for item_type, kind in _KIND_BY_TYPE:
        if isinstance(item, item_type):
            return kind
    return 'item'


class SceneRenderer(LeafRenderer):
    """LeafRenderer backed by a QGraphicsScene"""

    def __init__(self, scene: Optional[QGraphicsScene] = None):
        super().__init__()
        self._logger = logging.getLogger('SceneRenderer')
        self.scene = scene if scene is not None else QGraphicsScene()
        self._next_id = 1
        self._sequence = 0

    # ========================================
    # Canvas-side Operations
    # ========================================

    def add_item(self, item: QGraphicsItem, name: str = '', kind: Optional[str] = None,
                 layer_id: Optional[str] = None) -> str:
        """Put a drawn item on top of the scene and announce it

        Returns:
            Leaf id assigned to the item
        """
        leaf_id = f"item_{self._next_id}"
        self._next_id += 1
        kind = kind or item_kind(item)
        item.setData(DATA_LEAF_ID, leaf_id)
        item.setData(DATA_NAME, name or f"{kind} {leaf_id.split('_')[-1]}")
        item.setData(DATA_KIND, kind)
        item.setData(DATA_CONTAINER, layer_id)
        item.setData(DATA_LOCKED, False)
        self._stamp(item)
        item.setFlag(QGraphicsItem.ItemIsMovable, True)
        item.setFlag(QGraphicsItem.ItemIsSelectable, True)
        item.setZValue(len(self.enumerate_leaves()))
        self.scene.addItem(item)
        self._logger.debug(f"Added {kind} item {leaf_id}")
        self._notify(LEAF_ADDED, item)
        return leaf_id

    def rename_item(self, item: QGraphicsItem, name: str):
        item.setData(DATA_NAME, name)
        self._notify(LEAF_MODIFIED, item)

    def notify_modified(self, item: QGraphicsItem):
        """Call after changing an item's geometry or style"""
        self._notify(LEAF_MODIFIED, item)

    # ========================================
    # LeafRenderer
    # ========================================

    def enumerate_leaves(self) -> List[QGraphicsItem]:
        leaves = [item for item in self.scene.items() if item.data(DATA_LEAF_ID) is not None]
        leaves.sort(key=lambda item: (item.zValue(), item.data(DATA_SEQUENCE)))
        return leaves

    def get_leaf_id(self, leaf: QGraphicsItem) -> str:
        return leaf.data(DATA_LEAF_ID)

    def get_leaf_name(self, leaf: QGraphicsItem) -> str:
        return leaf.data(DATA_NAME) or ''

    def get_leaf_kind(self, leaf: QGraphicsItem) -> str:
        return leaf.data(DATA_KIND) or ''

    def get_leaf_container(self, leaf: QGraphicsItem) -> Optional[str]:
        return leaf.data(DATA_CONTAINER)

    def set_leaf_container(self, leaf: QGraphicsItem, group_id: str):
        leaf.setData(DATA_CONTAINER, group_id)

    def is_leaf_locked(self, leaf: QGraphicsItem) -> bool:
        return bool(leaf.data(DATA_LOCKED))

    def set_leaf_locked(self, leaf: QGraphicsItem, locked: bool):
        leaf.setData(DATA_LOCKED, bool(locked))
        leaf.setFlag(QGraphicsItem.ItemIsMovable, not locked)
        leaf.setFlag(QGraphicsItem.ItemIsSelectable, not locked)
        if locked:
            leaf.setSelected(False)

    def is_leaf_visible(self, leaf: QGraphicsItem) -> bool:
        return leaf.isVisible()

    def set_leaf_visible(self, leaf: QGraphicsItem, visible: bool):
        leaf.setVisible(bool(visible))

    def reorder_leaf(self, leaf: QGraphicsItem, paint_index: int):
        leaves = [item for item in self.enumerate_leaves() if item is not leaf]
        paint_index = max(0, min(paint_index, len(leaves)))
        leaves.insert(paint_index, leaf)
        self._restack(leaves)

    def duplicate_leaf(self, leaf: QGraphicsItem, offset_x: float = 0.0, offset_y: float = 0.0) -> QGraphicsItem:
        copy = self._copy_item(leaf)
        copy.setPos(leaf.pos())
        copy.setTransform(leaf.transform())
        copy.setRotation(leaf.rotation())
        copy.setScale(leaf.scale())
        copy.setOpacity(leaf.opacity())
        copy.setVisible(leaf.isVisible())
        copy.moveBy(offset_x, offset_y)

        leaf_id = f"item_{self._next_id}"
        self._next_id += 1
        copy.setData(DATA_LEAF_ID, leaf_id)
        copy.setData(DATA_NAME, leaf.data(DATA_NAME))
        copy.setData(DATA_KIND, leaf.data(DATA_KIND))
        copy.setData(DATA_CONTAINER, leaf.data(DATA_CONTAINER))
        self._stamp(copy)
        self.set_leaf_locked(copy, self.is_leaf_locked(leaf))

        leaves = self.enumerate_leaves()
        self.scene.addItem(copy)
        # Directly in front of the original
        leaves.insert(leaves.index(leaf) + 1, copy)
        self._restack(leaves)

        self._logger.debug(f"Duplicated {self.get_leaf_id(leaf)} -> {leaf_id}")
        self._notify(LEAF_ADDED, copy)
        return copy

    def remove_leaf(self, leaf: QGraphicsItem):
        if leaf.scene() is not self.scene:
            return
        self.scene.removeItem(leaf)
        self._restack(self.enumerate_leaves())
        self._logger.debug(f"Removed {self.get_leaf_id(leaf)}")
        self._notify(LEAF_REMOVED, leaf)

    # ========================================
    # Helpers
    # ========================================

    def _stamp(self, item: QGraphicsItem):
        """Insertion order, the tie-breaker for equal zValues"""
        item.setData(DATA_SEQUENCE, self._sequence)
        self._sequence += 1

    @staticmethod
    def _restack(leaves: List[QGraphicsItem]):
        for index, item in enumerate(leaves):
            item.setZValue(index)

    @staticmethod
    def _copy_item(item: QGraphicsItem) -> QGraphicsItem:
        if isinstance(item, (QGraphicsRectItem, QGraphicsEllipseItem)):
            copy = type(item)(item.rect())
        elif isinstance(item, QGraphicsPathItem):
            copy = QGraphicsPathItem(item.path())
        elif isinstance(item, QGraphicsLineItem):
            copy = QGraphicsLineItem(item.line())
            copy.setPen(item.pen())
            return copy
        elif isinstance(item, QGraphicsSimpleTextItem):
            copy = QGraphicsSimpleTextItem(item.text())
            copy.setFont(item.font())
        elif isinstance(item, QGraphicsTextItem):
            copy = QGraphicsTextItem(item.toPlainText())
            copy.setFont(item.font())
            copy.setDefaultTextColor(item.defaultTextColor())
            return copy
        else:
            raise TypeError(f"Cannot duplicate {type(item).__name__}")
        copy.setPen(item.pen())
        copy.setBrush(item.brush())
        return copy
