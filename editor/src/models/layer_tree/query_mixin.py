"""
Query Mixin for LayerTree Model

Provides read-only queries for the layers panel and the drag algorithm:
- Flattening into depth-indented rows (expand-aware, filterable)
- Effective lock computation
- Auto-name scanning

Flattened order is fixed: a group row, then its leaves (front-most first),
then its child groups in children order, each recursively. The root row is
never emitted; its children sit at depth 0.
"""

import re
from typing import Dict, Iterable, List, Optional, Set

from ._internal.flat_item import FlatItem
from ._internal.leaf_entry import LeafEntry, as_leaf_entry
from constants import FLAT_ITEM_NODE, FLAT_ITEM_LEAF, NODE_NAME_PREFIXES, NODE_LABEL_LAYER


class LayerTreeQueryMixin:
    """Mixin providing query API for LayerTree

    This mixin assumes the class has:
    - self._nodes: Dict[str, Node]
    - self._root_id: str
    """

    # ========================================
    # Flattening
    # ========================================

    def flatten(self, leaves_by_container: Optional[Dict[str, Iterable]] = None,
                root_ids: Optional[List[str]] = None,
                query: Optional[str] = None,
                leaf_kinds: Optional[Iterable[str]] = None,
                expand_all: bool = False) -> List[FlatItem]:
        """Project the tree into layers-panel rows

        Args:
            leaves_by_container: container id -> leaves (LeafEntry or id),
                front-most first
            root_ids: Start nodes (depth 0); defaults to the root's children
            query: Case-insensitive name filter; forces matches' ancestors open
            leaf_kinds: Only keep leaves of these kinds; collapse still applies
            expand_all: Ignore collapse state

        Returns:
            List of FlatItem rows
        """
        leaves = self._normalize_leaves(leaves_by_container)
        starts = list(root_ids) if root_ids is not None else self.children(self._root_id)
        query = (query or '').strip().lower()
        kinds = set(leaf_kinds) if leaf_kinds else None

        if not query and kinds is None:
            rows = []
            for node_id in starts:
                self._flatten_node(node_id, 0, leaves, expand_all, rows)
            return rows

        retained_leaves: Dict[str, List[LeafEntry]] = {}
        retained_nodes: Set[str] = set()
        for node_id in starts:
            self._collect_matches(node_id, leaves, query, kinds, retained_nodes, retained_leaves)

        # Only a name query forces branches open
        honour_collapse = not query and not expand_all
        rows = []
        for node_id in starts:
            self._flatten_filtered(node_id, 0, retained_nodes, retained_leaves, honour_collapse, rows)
        return rows

    def _flatten_node(self, node_id, depth, leaves, expand_all, rows):
        node = self._nodes.get(node_id)
        if node is None:
            return
        rows.append(FlatItem(FLAT_ITEM_NODE, node_id, depth, node.parent_id))
        if not (node.expanded or expand_all):
            return
        for entry in leaves.get(node_id, ()):
            rows.append(FlatItem(FLAT_ITEM_LEAF, entry.id, depth + 1, node_id))
        for child_id in node.children:
            self._flatten_node(child_id, depth + 1, leaves, expand_all, rows)

    def _collect_matches(self, node_id, leaves, query, kinds, retained_nodes, retained_leaves) -> bool:
        """Mark retained nodes/leaves below node_id; True if anything matched"""
        node = self._nodes.get(node_id)
        if node is None:
            return False

        name_hit = bool(query) and query in node.name.lower()
        kept = []
        for entry in leaves.get(node_id, ()):
            if kinds is not None and entry.kind not in kinds:
                continue
            if not query or query in entry.name.lower() or name_hit:
                kept.append(entry)
        if kept:
            retained_leaves[node_id] = kept

        child_hit = False
        for child_id in node.children:
            if self._collect_matches(child_id, leaves, query, kinds, retained_nodes, retained_leaves):
                child_hit = True

        if name_hit or kept or child_hit:
            retained_nodes.add(node_id)
            return True
        return False

    def _flatten_filtered(self, node_id, depth, retained_nodes, retained_leaves, honour_collapse, rows):
        if node_id not in retained_nodes:
            return
        node = self._nodes[node_id]
        rows.append(FlatItem(FLAT_ITEM_NODE, node_id, depth, node.parent_id))
        if honour_collapse and not node.expanded:
            return
        for entry in retained_leaves.get(node_id, ()):
            rows.append(FlatItem(FLAT_ITEM_LEAF, entry.id, depth + 1, node_id))
        for child_id in node.children:
            self._flatten_filtered(child_id, depth + 1, retained_nodes, retained_leaves, honour_collapse, rows)

    @staticmethod
    def _normalize_leaves(leaves_by_container) -> Dict[str, List[LeafEntry]]:
        if not leaves_by_container:
            return {}
        return {
            container_id: [as_leaf_entry(entry) for entry in entries]
            for container_id, entries in leaves_by_container.items()
        }

    def leaf_order(self, leaves_by_container: Optional[Dict[str, Iterable]] = None) -> List[str]:
        """Leaf ids in fully-expanded flattened order (front-most first)"""
        return [item.id for item in self.flatten(leaves_by_container, expand_all=True) if item.is_leaf]

    # ========================================
    # Lock Queries
    # ========================================

    def is_effectively_locked(self, node_id: str) -> bool:
        """Own lock OR any ancestor lock"""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        if node.locked:
            return True
        return any(self._nodes[a].locked for a in self.ancestors(node_id) if a in self._nodes)

    def locked_node_ids(self) -> Set[str]:
        """All node ids whose effective lock is True"""
        return {node_id for node_id in self._nodes if self.is_effectively_locked(node_id)}

    # ========================================
    # Naming
    # ========================================

    def next_auto_name(self, label: str = NODE_LABEL_LAYER) -> str:
        """Next '{Prefix}-N' name, one above the highest existing suffix

        Recomputed from current names every call, so names stay unique even
        after deletes and renames.
        """
        prefix = NODE_NAME_PREFIXES[label]
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        highest = 0
        for node in self._nodes.values():
            match = pattern.match(node.name)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}-{highest + 1}"

    def find_nodes_by_name(self, name: str) -> List[str]:
        """Ids of nodes with exactly this name"""
        return [node.id for node in self._nodes.values() if node.name == name]
