"""
Layer selection state for the layers panel

Holds node and leaf ids in selection order. Selecting a group pulls in its
non-locked descendant groups and their non-locked leaves; effectively locked
items are never added.
"""

import logging
from typing import Dict, Iterable, Iterator, List

from models.layer_tree import LayerTree


class LayerSelection:
    """Transient multi-selection of node and leaf ids"""

    def __init__(self, tree: LayerTree, leaf_index):
        self._logger = logging.getLogger('LayerSelection')
        self.tree = tree
        self.leaf_index = leaf_index
        # dict keeps insertion order
        self._selected: Dict[str, None] = {}

    # ========================================
    # Queries
    # ========================================

    @property
    def ids(self) -> List[str]:
        return list(self._selected)

    def is_selected(self, item_id: str) -> bool:
        return item_id in self._selected

    def __contains__(self, item_id) -> bool:
        return item_id in self._selected

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._selected))

    def __len__(self) -> int:
        return len(self._selected)

    def is_locked(self, item_id: str) -> bool:
        """Effective lock of a node or leaf"""
        if self.tree.has_node(item_id):
            return self.tree.is_effectively_locked(item_id)
        leaf = self.leaf_index.get_leaf(item_id)
        if leaf is None:
            return False
        if self.leaf_index.renderer.is_leaf_locked(leaf):
            return True
        return self.tree.is_effectively_locked(self.leaf_index.container_of(item_id))

    def expand(self, node_id: str) -> List[str]:
        """node_id plus every non-locked descendant group and leaf"""
        result = []
        for descendant_id in self.tree.subtree_ids(node_id):
            if descendant_id != node_id and self.tree.is_effectively_locked(descendant_id):
                continue
            result.append(descendant_id)
            for leaf_id in self.leaf_index.leaf_ids(descendant_id):
                if not self.is_locked(leaf_id):
                    result.append(leaf_id)
        return result

    # ========================================
    # Mutations
    # ========================================

    def select(self, item_id: str, additive: bool = False) -> bool:
        """Select a node (recursively) or a leaf

        Args:
            item_id: Node or leaf id
            additive: Toggle against the current selection instead of
                replacing it

        Returns:
            True if the selection changed
        """
        if self.tree.has_node(item_id):
            items = self.expand(item_id)
        elif self.leaf_index.has_leaf(item_id):
            items = [item_id]
        else:
            self._logger.debug(f"select: unknown id {item_id}")
            return False

        if self.is_locked(item_id):
            self._logger.debug(f"select: {item_id} is locked")
            return False

        before = list(self._selected)
        if not additive:
            self._selected = dict.fromkeys(items)
        elif item_id in self._selected:
            for selected_id in items:
                self._selected.pop(selected_id, None)
        else:
            for selected_id in items:
                self._selected[selected_id] = None
        return list(self._selected) != before

    def set(self, item_ids: Iterable[str]):
        """Replace the selection verbatim (no recursive expansion)"""
        self._selected = dict.fromkeys(item_ids)

    def clear(self) -> bool:
        if not self._selected:
            return False
        self._selected = {}
        return True

    def prune(self) -> List[str]:
        """Drop ids that no longer exist; returns the dropped ids"""
        stale = [
            item_id for item_id in self._selected
            if not self.tree.has_node(item_id) and not self.leaf_index.has_leaf(item_id)
        ]
        for item_id in stale:
            del self._selected[item_id]
        return stale
