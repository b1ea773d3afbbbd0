"""
Renderer bridge - the drawable-object collaborator of the layer tree engine

The engine never owns drawable objects. It talks to the rendering surface
through LeafRenderer, which exposes only what the tree needs:
- enumeration in paint order (backmost first)
- identity and filter fields (id, name, kind)
- container tag, lock and visibility flags
- paint-order reordering, duplication and removal
- change notifications (leaf-added / leaf-removed / leaf-modified)

Ownership contract: the engine writes container tags, lock/visibility flags
and paint indices; the renderer owns everything else and never writes the
container tag or the paint index itself.

InMemoryRenderer is a complete headless implementation used by tests and by
tools that manipulate layer trees without a canvas.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

LEAF_ADDED = 'leaf-added'
LEAF_REMOVED = 'leaf-removed'
LEAF_MODIFIED = 'leaf-modified'
LEAF_EVENTS = (LEAF_ADDED, LEAF_REMOVED, LEAF_MODIFIED)


class LeafRenderer(ABC):
    """Minimal interface the engine consumes from the rendering surface"""

    def __init__(self):
        self._listeners: List[Callable[[str, Any], None]] = []

    # ========================================
    # Change Notifications
    # ========================================

    def add_change_listener(self, callback: Callable[[str, Any], None]):
        """Register callback(event, leaf) for leaf-added/removed/modified"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_change_listener(self, callback: Callable[[str, Any], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, event: str, leaf: Any):
        for callback in list(self._listeners):
            callback(event, leaf)

    # ========================================
    # Enumeration and Identity
    # ========================================

    @abstractmethod
    def enumerate_leaves(self) -> List[Any]:
        """All leaves in ascending paint order (index 0 = backmost)"""

    @abstractmethod
    def get_leaf_id(self, leaf) -> str:
        """Stable id of a leaf"""

    def get_leaf_name(self, leaf) -> str:
        return ''

    def get_leaf_kind(self, leaf) -> str:
        return ''

    def find_leaf(self, leaf_id: str):
        """Leaf with this id, or None"""
        for leaf in self.enumerate_leaves():
            if self.get_leaf_id(leaf) == leaf_id:
                return leaf
        return None

    # ========================================
    # Fields Written by the Engine
    # ========================================

    @abstractmethod
    def get_leaf_container(self, leaf) -> Optional[str]:
        """Group id the leaf belongs to (None if unassigned)"""

    @abstractmethod
    def set_leaf_container(self, leaf, group_id: str):
        """Tag the leaf with its group id"""

    @abstractmethod
    def is_leaf_locked(self, leaf) -> bool:
        pass

    @abstractmethod
    def set_leaf_locked(self, leaf, locked: bool):
        """Lock movement and selection of the leaf"""

    @abstractmethod
    def is_leaf_visible(self, leaf) -> bool:
        pass

    @abstractmethod
    def set_leaf_visible(self, leaf, visible: bool):
        pass

    @abstractmethod
    def reorder_leaf(self, leaf, paint_index: int):
        """Move the leaf to paint_index (0 = backmost)"""

    # ========================================
    # Lifecycle
    # ========================================

    @abstractmethod
    def duplicate_leaf(self, leaf, offset_x: float = 0.0, offset_y: float = 0.0):
        """Create an independent copy of the leaf, shifted by the offset

        Returns:
            The new leaf
        """

    @abstractmethod
    def remove_leaf(self, leaf):
        """Delete the leaf from the surface"""


class MemoryLeaf:
    """Plain drawable record used by InMemoryRenderer"""

    def __init__(self, leaf_id: str, name: str = '', kind: str = 'rect',
                 x: float = 0.0, y: float = 0.0, layer_id: Optional[str] = None):
        self.id = leaf_id
        self.name = name
        self.kind = kind
        self.x = x
        self.y = y
        self.layer_id = layer_id
        self.locked = False
        self.visible = True
        self.paint_index = -1

    def __repr__(self) -> str:
        return f"MemoryLeaf(id='{self.id}', name='{self.name}', layer_id='{self.layer_id}')"


class InMemoryRenderer(LeafRenderer):
    """List-backed renderer; list position is the paint index"""

    def __init__(self):
        super().__init__()
        self._logger = logging.getLogger('InMemoryRenderer')
        self._leaves: List[MemoryLeaf] = []
        self._next_id = 1

    # ========================================
    # Surface-side Operations (drawing tools)
    # ========================================

    def add_leaf(self, name: str = '', kind: str = 'rect', x: float = 0.0, y: float = 0.0,
                 layer_id: Optional[str] = None) -> MemoryLeaf:
        """Draw a new object on top of everything and announce it"""
        leaf = MemoryLeaf(self._new_id(), name or f"{kind} {self._next_id - 1}", kind, x, y, layer_id)
        self._leaves.append(leaf)
        self._refresh_indices()
        self._logger.debug(f"Added leaf {leaf.id}")
        self._notify(LEAF_ADDED, leaf)
        return leaf

    def modify_leaf(self, leaf: MemoryLeaf, **fields):
        """Change renderer-owned fields (name, kind, x, y) and announce it"""
        for key, value in fields.items():
            if key not in ('name', 'kind', 'x', 'y'):
                raise AttributeError(f"'{key}' is not a renderer-owned leaf field")
            setattr(leaf, key, value)
        self._notify(LEAF_MODIFIED, leaf)

    def get_paint_index(self, leaf: MemoryLeaf) -> int:
        return self._leaves.index(leaf)

    # ========================================
    # LeafRenderer
    # ========================================

    def enumerate_leaves(self) -> List[MemoryLeaf]:
        return list(self._leaves)

    def get_leaf_id(self, leaf: MemoryLeaf) -> str:
        return leaf.id

    def get_leaf_name(self, leaf: MemoryLeaf) -> str:
        return leaf.name

    def get_leaf_kind(self, leaf: MemoryLeaf) -> str:
        return leaf.kind

    def get_leaf_container(self, leaf: MemoryLeaf) -> Optional[str]:
        return leaf.layer_id

    def set_leaf_container(self, leaf: MemoryLeaf, group_id: str):
        leaf.layer_id = group_id

    def is_leaf_locked(self, leaf: MemoryLeaf) -> bool:
        return leaf.locked

    def set_leaf_locked(self, leaf: MemoryLeaf, locked: bool):
        leaf.locked = bool(locked)

    def is_leaf_visible(self, leaf: MemoryLeaf) -> bool:
        return leaf.visible

    def set_leaf_visible(self, leaf: MemoryLeaf, visible: bool):
        leaf.visible = bool(visible)

    def reorder_leaf(self, leaf: MemoryLeaf, paint_index: int):
        self._leaves.remove(leaf)
        paint_index = max(0, min(paint_index, len(self._leaves)))
        self._leaves.insert(paint_index, leaf)
        self._refresh_indices()

    def duplicate_leaf(self, leaf: MemoryLeaf, offset_x: float = 0.0, offset_y: float = 0.0) -> MemoryLeaf:
        copy = MemoryLeaf(self._new_id(), leaf.name, leaf.kind,
                          leaf.x + offset_x, leaf.y + offset_y, leaf.layer_id)
        copy.locked = leaf.locked
        copy.visible = leaf.visible
        # Directly in front of the original
        self._leaves.insert(self._leaves.index(leaf) + 1, copy)
        self._refresh_indices()
        self._logger.debug(f"Duplicated leaf {leaf.id} -> {copy.id}")
        self._notify(LEAF_ADDED, copy)
        return copy

    def remove_leaf(self, leaf: MemoryLeaf):
        if leaf not in self._leaves:
            return
        self._leaves.remove(leaf)
        self._refresh_indices()
        self._logger.debug(f"Removed leaf {leaf.id}")
        self._notify(LEAF_REMOVED, leaf)

    # ========================================
    # Helpers
    # ========================================

    def _new_id(self) -> str:
        leaf_id = f"leaf_{self._next_id}"
        self._next_id += 1
        return leaf_id

    def _refresh_indices(self):
        for index, leaf in enumerate(self._leaves):
            leaf.paint_index = index

    def __len__(self) -> int:
        return len(self._leaves)
