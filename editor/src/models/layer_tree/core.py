"""
Layer Tree Editor - Layer Tree Data Model

THE MODEL in the MVC architecture. Owns the container hierarchy.

This class handles:
- Node storage (id -> Node) with a single root and a protected base group
- Structural queries (children, ancestors, descendants, depth)
- Flattening for the layers panel (query mixin)
- Node CRUD, sibling moves and reparenting (node mixin)
- Group / ungroup / clone of subtrees (container mixin)
- Snapshot and JSON serialization (serialization mixin)

The LayerTree model is INDEPENDENT of UI and rendering:
- No Qt imports
- No drawable objects (leaves arrive as LeafEntry lists per container)
- No selection state (that's LayerSelection)
- No undo stack

Every mutation computes the new children lists first and swaps them in with
_apply_changes(), so a rejected or failed mutation never leaves a partially
edited tree behind.

Usage:
    tree = LayerTree()
    group_id = tree.create_node(tree.base_id)
    rows = tree.flatten({group_id: ['leaf-1']})
    snapshot = tree.get_snapshot()
    tree.set_snapshot(snapshot)
"""

import logging
from copy import deepcopy
from typing import Dict, Iterable, List, Optional

from ._internal.node import Node
from .errors import DanglingReference
from .query_mixin import LayerTreeQueryMixin
from .node_mixin import LayerTreeNodeMixin
from .container_mixin import LayerTreeContainerMixin
from .serialization_mixin import LayerTreeSerializationMixin
from constants import (
    ROOT_NODE_ID, BASE_NODE_ID,
    DEFAULT_ROOT_NAME, DEFAULT_BASE_NAME,
    NODE_KIND_ROOT, NODE_KIND_GROUP,
    NODE_LABEL_PROJECT, NODE_LABEL_LAYER,
)


class LayerTree(LayerTreeQueryMixin, LayerTreeNodeMixin, LayerTreeContainerMixin,
                LayerTreeSerializationMixin):
    """Layer tree data model with full operation API

    Properties:
        root_id: id of the root project node
        base_id: id of the protected base group
    """

    def __init__(self, root_name: str = DEFAULT_ROOT_NAME, base_name: str = DEFAULT_BASE_NAME):
        """Create a tree holding only the root project and the base group"""
        self._logger = logging.getLogger('LayerTree')
        self._root_id = ROOT_NODE_ID
        self._base_id = BASE_NODE_ID

        root = Node({
            'id': ROOT_NODE_ID,
            'kind': NODE_KIND_ROOT,
            'label': NODE_LABEL_PROJECT,
            'name': root_name,
            'parent_id': None,
            'children': [BASE_NODE_ID],
            'expanded': True,
        })
        base = Node({
            'id': BASE_NODE_ID,
            'kind': NODE_KIND_GROUP,
            'label': NODE_LABEL_LAYER,
            'name': base_name,
            'parent_id': ROOT_NODE_ID,
            'children': [],
            'expanded': True,
        })
        self._nodes: Dict[str, Node] = {root.id: root, base.id: base}

        self._logger.debug("Created new LayerTree")

    # ========================================
    # Properties
    # ========================================

    @property
    def root_id(self) -> str:
        return self._root_id

    @property
    def base_id(self) -> str:
        return self._base_id

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    # ========================================
    # Store Queries
    # ========================================

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> Optional[Node]:
        """Get node by id, None if not present"""
        return self._nodes.get(node_id)

    def require(self, node_id: str) -> Node:
        """Get node by id

        Raises:
            DanglingReference: If the id is not in the tree
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise DanglingReference(node_id)
        return node

    def node_ids(self) -> List[str]:
        return list(self._nodes.keys())

    def children(self, node_id: str) -> List[str]:
        """Child ids of a node (empty for unknown ids)"""
        node = self._nodes.get(node_id)
        return node.children if node else []

    def parent_of(self, node_id: str) -> Optional[str]:
        node = self._nodes.get(node_id)
        return node.parent_id if node else None

    def ancestors(self, node_id: str) -> List[str]:
        """Ancestor ids, nearest first, ending with the root"""
        result = []
        node = self._nodes.get(node_id)
        seen = {node_id}
        while node is not None and node.parent_id is not None:
            if node.parent_id in seen:
                # Corrupt input; validate() reports it
                break
            seen.add(node.parent_id)
            result.append(node.parent_id)
            node = self._nodes.get(node.parent_id)
        return result

    def is_descendant(self, node_id: str, ancestor_id: str) -> bool:
        """True if node_id lies strictly below ancestor_id"""
        return ancestor_id in self.ancestors(node_id)

    def depth_of(self, node_id: str) -> int:
        """Flattened depth: root children are 0, the root itself is -1"""
        if node_id not in self._nodes:
            return -1
        return len(self.ancestors(node_id)) - 1

    def subtree_ids(self, node_id: str) -> List[str]:
        """node_id and all its descendants, depth-first in children order

        Missing child ids and repeat visits (cycles in corrupt input) are
        skipped; validate() reports both.
        """
        if node_id not in self._nodes:
            return []
        result = []
        seen = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            node = self._nodes.get(current)
            if node is None or current in seen:
                continue
            seen.add(current)
            result.append(current)
            stack.extend(reversed(node.children))
        return result

    def is_container(self, node_id: str) -> bool:
        """Root or group (anything that can hold child groups)"""
        return node_id in self._nodes

    def is_group(self, node_id: str) -> bool:
        """Only groups can hold leaves"""
        node = self._nodes.get(node_id)
        return node is not None and node.is_group

    def is_protected(self, node_id: str) -> bool:
        """Root and base cannot be deleted"""
        return node_id in (self._root_id, self._base_id)

    # ========================================
    # Invariant Checking
    # ========================================

    def validate(self) -> List[str]:
        """Check structural invariants

        Returns:
            List of human-readable violations (empty when consistent)
        """
        problems = []
        roots = [n.id for n in self._nodes.values() if n.is_root]
        if roots != [self._root_id]:
            problems.append(f"Expected single root '{self._root_id}', found {roots}")
        root = self._nodes.get(self._root_id)
        if root is not None and root.parent_id is not None:
            problems.append("Root has a parent")

        base = self._nodes.get(self._base_id)
        if base is None or not base.is_group:
            problems.append("Base group missing")

        for node in self._nodes.values():
            if node.is_root:
                continue
            parent = self._nodes.get(node.parent_id)
            if parent is None:
                problems.append(f"Node '{node.id}' has dangling parent '{node.parent_id}'")
            elif parent.index_of(node.id) < 0:
                problems.append(f"Node '{node.id}' missing from parent '{parent.id}' children")

        for node in self._nodes.values():
            child_ids = node.children
            if len(set(child_ids)) != len(child_ids):
                problems.append(f"Node '{node.id}' lists a child twice")
            for child_id in child_ids:
                child = self._nodes.get(child_id)
                if child is None:
                    problems.append(f"Node '{node.id}' lists missing child '{child_id}'")
                elif child.parent_id != node.id:
                    problems.append(f"Child '{child_id}' does not point back to '{node.id}'")

        # Every node must be reachable from the root (no cycles, no orphans)
        reachable = set(self.subtree_ids(self._root_id)) if root is not None else set()
        for node_id in self._nodes:
            if node_id not in reachable:
                problems.append(f"Node '{node_id}' unreachable from root")

        return problems

    # ========================================
    # Snapshot API (for drag cancel / restore)
    # ========================================

    def get_snapshot(self) -> Dict:
        """Get complete structural snapshot

        Returns:
            Deep-copied dictionary of all node data
        """
        return {
            'root_id': self._root_id,
            'base_id': self._base_id,
            'nodes': [node.to_dict() for node in self._nodes.values()],
        }

    def set_snapshot(self, snapshot: Dict):
        """Restore state from snapshot

        Args:
            snapshot: Dictionary from get_snapshot()
        """
        self._root_id = snapshot['root_id']
        self._base_id = snapshot['base_id']
        self._nodes = {data['id']: Node.parse(data) for data in snapshot['nodes']}
        self._logger.debug("Restored from snapshot")

    def copy(self) -> 'LayerTree':
        """Independent copy of this tree"""
        clone = LayerTree.__new__(LayerTree)
        clone._logger = self._logger
        clone.set_snapshot(deepcopy(self.get_snapshot()))
        return clone

    # ========================================
    # Helper Methods (Internal)
    # ========================================

    def _apply_changes(self, children: Optional[Dict[str, List[str]]] = None,
                       parents: Optional[Dict[str, str]] = None,
                       added: Iterable[Node] = (),
                       removed: Iterable[str] = ()):
        """Swap in a fully computed set of structural edits

        All inputs are computed by the caller against the current state;
        nothing here can fail halfway through.
        """
        for node in added:
            self._nodes[node.id] = node
        for node_id, parent_id in (parents or {}).items():
            self._nodes[node_id].parent_id = parent_id
        for node_id, child_ids in (children or {}).items():
            if node_id in self._nodes:
                self._nodes[node_id]._replace_children(child_ids)
        for node_id in removed:
            self._nodes.pop(node_id, None)

    def __repr__(self) -> str:
        return f"LayerTree(nodes={len(self._nodes)})"
