"""
Leaf index - which drawable objects belong to which group

Rebuilt from the renderer on every change notification. Leaves are kept per
container in front-most-first order (the reverse of the renderer's paint
order), which is the order flattening shows them in.

Leaves whose container tag is missing, dangling or the root are repaired by
retagging them with a fallback group (the active group, else base).
"""

import logging
from typing import Dict, Iterable, List, Optional

from models.layer_tree import LayerTree, LeafEntry


class LeafIndex:
    """Leaf membership map for one renderer"""

    def __init__(self, renderer):
        self._logger = logging.getLogger('LeafIndex')
        self.renderer = renderer
        self._by_container: Dict[str, List[str]] = {}
        self._container_of: Dict[str, str] = {}
        self._leaves: Dict[str, object] = {}
        self._entries: Dict[str, LeafEntry] = {}

    # ========================================
    # Rebuild
    # ========================================

    def resync(self, tree: LayerTree, fallback_group_id: Optional[str] = None) -> List[str]:
        """Rebuild the map from the renderer

        Args:
            tree: Tree the container tags are checked against
            fallback_group_id: Group for unassigned leaves (defaults to base)

        Returns:
            Ids of leaves whose container tag was repaired
        """
        fallback = fallback_group_id if tree.is_group(fallback_group_id) else tree.base_id
        repaired = []

        by_container: Dict[str, List[str]] = {}
        container_of: Dict[str, str] = {}
        leaves: Dict[str, object] = {}
        entries: Dict[str, LeafEntry] = {}

        # Renderer order is backmost first; the index stores front-most first
        for leaf in reversed(self.renderer.enumerate_leaves()):
            leaf_id = self.renderer.get_leaf_id(leaf)
            container_id = self.renderer.get_leaf_container(leaf)
            if not tree.is_group(container_id):
                self.renderer.set_leaf_container(leaf, fallback)
                repaired.append(leaf_id)
                container_id = fallback
            leaves[leaf_id] = leaf
            container_of[leaf_id] = container_id
            entries[leaf_id] = LeafEntry(
                id=leaf_id,
                name=self.renderer.get_leaf_name(leaf) or '',
                kind=self.renderer.get_leaf_kind(leaf) or '',
            )
            by_container.setdefault(container_id, []).append(leaf_id)

        self._by_container = by_container
        self._container_of = container_of
        self._leaves = leaves
        self._entries = entries

        if repaired:
            self._logger.debug(f"Assigned {len(repaired)} leaves to {fallback}")
        return repaired

    # ========================================
    # Queries
    # ========================================

    def leaves_by_container(self) -> Dict[str, List[LeafEntry]]:
        """container id -> LeafEntry list, front-most first (flatten input)"""
        return {
            container_id: [self._entries[leaf_id] for leaf_id in leaf_ids]
            for container_id, leaf_ids in self._by_container.items()
        }

    def leaf_ids(self, container_id: Optional[str] = None) -> List[str]:
        """All leaf ids, or those of one container, front-most first"""
        if container_id is None:
            return list(self._container_of.keys())
        return list(self._by_container.get(container_id, ()))

    def leaf_ids_in(self, container_ids: Iterable[str]) -> List[str]:
        wanted = set(container_ids)
        return [leaf_id for leaf_id, c in self._container_of.items() if c in wanted]

    def has_leaf(self, leaf_id: str) -> bool:
        return leaf_id in self._leaves

    def get_leaf(self, leaf_id: str):
        """Renderer object for a leaf id, or None"""
        return self._leaves.get(leaf_id)

    def container_of(self, leaf_id: str) -> Optional[str]:
        return self._container_of.get(leaf_id)

    def entry(self, leaf_id: str) -> Optional[LeafEntry]:
        return self._entries.get(leaf_id)

    def __len__(self) -> int:
        return len(self._leaves)

    def __contains__(self, leaf_id) -> bool:
        return leaf_id in self._leaves

    # ========================================
    # Local Edits (pushed to the renderer by the engine)
    # ========================================

    def assign(self, leaf_id: str, container_id: str, index: int = 0):
        """Move a leaf to container_id at position index (0 = front-most)"""
        leaf = self._leaves.get(leaf_id)
        if leaf is None:
            return
        old = self._container_of.get(leaf_id)
        if old is not None:
            self._by_container[old] = [l for l in self._by_container.get(old, []) if l != leaf_id]
            if not self._by_container[old]:
                del self._by_container[old]
        target = self._by_container.setdefault(container_id, [])
        index = max(0, min(index, len(target)))
        target.insert(index, leaf_id)
        self._container_of[leaf_id] = container_id
        self.renderer.set_leaf_container(leaf, container_id)

    def position_in_container(self, leaf_id: str) -> int:
        container_id = self._container_of.get(leaf_id)
        if container_id is None:
            return -1
        return self._by_container[container_id].index(leaf_id)

    def apply_order(self, leaf_ids_front_first: List[str]):
        """Re-sort every container to follow a global front-most-first order"""
        rank = {leaf_id: i for i, leaf_id in enumerate(leaf_ids_front_first)}
        for container_id, leaf_ids in self._by_container.items():
            leaf_ids.sort(key=lambda l: rank.get(l, len(rank)))

    # ========================================
    # Snapshot API (for drag cancel / restore)
    # ========================================

    def get_snapshot(self) -> Dict[str, List[str]]:
        """Copy of container memberships, front-most first"""
        return {container_id: list(leaf_ids) for container_id, leaf_ids in self._by_container.items()}

    def set_snapshot(self, snapshot: Dict[str, List[str]]):
        """Restore memberships, writing container tags back to the renderer

        Leaves removed since the snapshot was taken are skipped.
        """
        by_container: Dict[str, List[str]] = {}
        container_of: Dict[str, str] = {}
        for container_id, leaf_ids in snapshot.items():
            for leaf_id in leaf_ids:
                leaf = self._leaves.get(leaf_id)
                if leaf is None:
                    continue
                if self.renderer.get_leaf_container(leaf) != container_id:
                    self.renderer.set_leaf_container(leaf, container_id)
                by_container.setdefault(container_id, []).append(leaf_id)
                container_of[leaf_id] = container_id
        self._by_container = by_container
        self._container_of = container_of
