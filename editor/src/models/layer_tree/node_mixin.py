"""
LayerTree Node Management Mixin

Node CRUD and structural moves for the LayerTree model.

Methods:
    Node CRUD:
        - create_node
        - delete_node
        - rename_node
        - toggle_expand / set_expanded

    Ordering:
        - move_sibling
        - move_node

    Lock flags:
        - set_node_locked
        - toggle_node_lock

Unknown ids are no-ops (logged at debug level). Root/base structural edits
raise StructuralViolation before anything changes.
"""

from typing import List, Optional

from ._internal.node import Node
from .errors import StructuralViolation
from constants import NODE_KIND_GROUP, NODE_LABEL_LAYER, NODE_LABELS, MOVE_UP, MOVE_DOWN


class LayerTreeNodeMixin:
    """Mixin providing node operations for LayerTree

    This mixin assumes the parent class has:
        - self._nodes: Dict[str, Node]
        - self._root_id, self._base_id
        - self._logger: logging.Logger instance
        - self._apply_changes()
    """

    # ========================================
    # Node CRUD Operations
    # ========================================

    def create_node(self, parent_id: str, label: str = NODE_LABEL_LAYER,
                    name: Optional[str] = None) -> Optional[str]:
        """Create an empty group at the front of the parent's children

        Args:
            parent_id: Container to create in
            label: 'layer' (named Group-N) or 'project' (named Project-N)
            name: Explicit name, overriding auto-naming

        Returns:
            Id of the new node, or None if parent_id is unknown
        """
        parent = self._nodes.get(parent_id)
        if parent is None:
            self._logger.debug(f"create_node: unknown parent {parent_id}")
            return None
        if label not in NODE_LABELS:
            raise ValueError(f"label must be one of {NODE_LABELS}, got '{label}'")

        node = Node({
            'kind': NODE_KIND_GROUP,
            'label': label,
            'name': name if name else self.next_auto_name(label),
            'parent_id': parent_id,
            'expanded': True,
        })
        self._apply_changes(
            added=[node],
            children={parent_id: [node.id] + parent.children},
        )
        parent.expanded = True

        self._logger.debug(f"Created node {node.id} '{node.name}' in {parent_id}")
        return node.id

    def delete_node(self, node_id: str) -> List[str]:
        """Delete a group and all descendant groups

        Args:
            node_id: Group to delete

        Returns:
            Ids of every removed node (empty if node_id is unknown). The
            caller removes the leaves that belonged to them.

        Raises:
            StructuralViolation: If node_id is the root or the base group
        """
        if self.is_protected(node_id):
            raise StructuralViolation(f"'{self._nodes[node_id].name}' cannot be deleted", node_id)
        node = self._nodes.get(node_id)
        if node is None:
            self._logger.debug(f"delete_node: unknown node {node_id}")
            return []

        removed = self.subtree_ids(node_id)
        parent = self._nodes[node.parent_id]
        self._apply_changes(
            children={parent.id: [c for c in parent.children if c != node_id]},
            removed=removed,
        )

        self._logger.info(f"Deleted node {node_id} ({len(removed)} nodes)")
        return removed

    def rename_node(self, node_id: str, name: str) -> bool:
        """Set display name; blank names are ignored

        Returns:
            True if the name changed
        """
        node = self._nodes.get(node_id)
        if node is None:
            return False
        name = (name or '').strip()
        if not name or name == node.name:
            return False
        node.name = name
        self._logger.debug(f"Renamed {node_id} to '{name}'")
        return True

    def toggle_expand(self, node_id: str) -> Optional[bool]:
        """Flip expanded flag

        Returns:
            New expanded state, or None for unknown ids
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None
        node.expanded = not node.expanded
        return node.expanded

    def set_expanded(self, node_id: str, expanded: bool):
        node = self._nodes.get(node_id)
        if node is not None:
            node.expanded = expanded

    # ========================================
    # Ordering
    # ========================================

    def move_sibling(self, node_id: str, direction: str) -> bool:
        """Swap with the neighbour above ('up') or below ('down')

        Returns:
            True if the order changed (False at either end)
        """
        if direction not in (MOVE_UP, MOVE_DOWN):
            raise ValueError(f"direction must be '{MOVE_UP}' or '{MOVE_DOWN}', got '{direction}'")
        node = self._nodes.get(node_id)
        if node is None or node.parent_id is None:
            return False

        siblings = self._nodes[node.parent_id].children
        index = siblings.index(node_id)
        target = index - 1 if direction == MOVE_UP else index + 1
        if target < 0 or target >= len(siblings):
            return False

        siblings[index], siblings[target] = siblings[target], siblings[index]
        self._apply_changes(children={node.parent_id: siblings})
        self._logger.debug(f"Moved {node_id} {direction} in {node.parent_id}")
        return True

    def move_node(self, node_id: str, new_parent_id: str, index: int,
                  expand_parent: bool = True) -> bool:
        """Reparent node_id under new_parent_id at index

        Args:
            node_id: Node to move (with its subtree)
            new_parent_id: Destination container
            index: Position in the destination children, counted without
                node_id itself; clamped to the valid range
            expand_parent: Force the destination open so the node is visible

        Returns:
            True if the tree changed; False for unknown ids or when the move
            would create a cycle

        Raises:
            StructuralViolation: Moving the root, or the base out of the root
        """
        if node_id == self._root_id:
            raise StructuralViolation("The root project cannot be moved", node_id)
        node = self._nodes.get(node_id)
        new_parent = self._nodes.get(new_parent_id)
        if node is None or new_parent is None:
            self._logger.debug(f"move_node: unknown id {node_id} -> {new_parent_id}")
            return False
        if node_id == self._base_id and new_parent_id != self._root_id:
            raise StructuralViolation("The base layer must stay at the top level", node_id)
        if new_parent_id == node_id or self.is_descendant(new_parent_id, node_id):
            self._logger.debug(f"move_node: {node_id} into own subtree rejected")
            return False

        old_parent_id = node.parent_id
        old_siblings = self._nodes[old_parent_id].children
        if old_parent_id == new_parent_id:
            target = [c for c in old_siblings if c != node_id]
            index = max(0, min(index, len(target)))
            target.insert(index, node_id)
            if target == old_siblings:
                return False
            changes = {new_parent_id: target}
        else:
            target = new_parent.children
            index = max(0, min(index, len(target)))
            target.insert(index, node_id)
            changes = {
                old_parent_id: [c for c in old_siblings if c != node_id],
                new_parent_id: target,
            }

        self._apply_changes(children=changes, parents={node_id: new_parent_id})
        if expand_parent:
            new_parent.expanded = True

        self._logger.debug(f"Moved {node_id} from {old_parent_id} to {new_parent_id}[{index}]")
        return True

    # ========================================
    # Lock Flags
    # ========================================

    def set_node_locked(self, node_id: str, locked: bool) -> bool:
        """Set a node's own lock flag (descendant flags untouched)"""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.locked = locked
        self._logger.debug(f"Set node {node_id} locked: {locked}")
        return True

    def toggle_node_lock(self, node_id: str) -> Optional[bool]:
        """Flip a node's own lock flag

        Returns:
            New flag value, or None for unknown ids
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None
        self.set_node_locked(node_id, not node.locked)
        return node.locked
