"""
Container Management Mixin for LayerTree Model

Provides grouping, ungrouping and subtree cloning. These methods only edit
node structure; the engine moves, removes and duplicates the leaves using
the ids these methods return.
"""

from typing import Dict, List, Optional

from ._internal.node import Node, generate_node_id
from .errors import StructuralViolation
from constants import NODE_KIND_GROUP, NODE_LABEL_LAYER, CLONE_NAME_SUFFIX


class LayerTreeContainerMixin:
    """Mixin providing container management functionality for LayerTree"""

    def group_nodes(self, node_ids: List[str], parent_id: str, index: int,
                    label: str = NODE_LABEL_LAYER, name: Optional[str] = None) -> Optional[str]:
        """Create a group at parent_id[index] and move node_ids into it

        Args:
            node_ids: Groups to reparent into the new group, in order
            parent_id: Container receiving the new group
            index: Position in parent_id's current children list (before
                any of node_ids are taken out of it)
            label: Display label of the new group
            name: Explicit name, overriding auto-naming

        Returns:
            Id of the new group, or None if parent_id is unknown

        Raises:
            StructuralViolation: If node_ids contains the root or base, or
                the parent lies inside one of the moved groups
        """
        parent = self._nodes.get(parent_id)
        if parent is None:
            self._logger.debug(f"group_nodes: unknown parent {parent_id}")
            return None

        moved = [n for n in node_ids if n in self._nodes]
        for node_id in moved:
            if self.is_protected(node_id):
                raise StructuralViolation(f"'{self._nodes[node_id].name}' cannot be grouped", node_id)
            if node_id == parent_id or self.is_descendant(parent_id, node_id):
                raise StructuralViolation("A group cannot be moved inside itself", node_id)

        moved_set = set(moved)
        new_node = Node({
            'kind': NODE_KIND_GROUP,
            'label': label,
            'name': name if name else self.next_auto_name(label),
            'parent_id': parent_id,
            'children': moved,
            'expanded': True,
        })

        # Every touched container gets its new list computed up front
        changes: Dict[str, List[str]] = {}
        for node_id in moved:
            old_parent_id = self._nodes[node_id].parent_id
            if old_parent_id != parent_id and old_parent_id not in changes:
                changes[old_parent_id] = [c for c in self._nodes[old_parent_id].children if c not in moved_set]

        siblings = parent.children
        index = max(0, min(index, len(siblings)))
        before = [c for c in siblings[:index] if c not in moved_set]
        after = [c for c in siblings[index:] if c not in moved_set]
        changes[parent_id] = before + [new_node.id] + after

        self._apply_changes(
            added=[new_node],
            children=changes,
            parents={node_id: new_node.id for node_id in moved},
        )
        parent.expanded = True

        self._logger.info(f"Grouped {len(moved)} nodes into {new_node.id} '{new_node.name}'")
        return new_node.id

    def ungroup_node(self, node_id: str) -> Optional[str]:
        """Dissolve a group, splicing its child groups into its parent

        The child groups take the group's former slot in order.

        Returns:
            Id of the parent that received the children, or None if node_id
            is unknown, the root, or the base group
        """
        node = self._nodes.get(node_id)
        if node is None or self.is_protected(node_id):
            self._logger.debug(f"ungroup_node: skipped {node_id}")
            return None

        parent_id = node.parent_id
        siblings = self._nodes[parent_id].children
        index = siblings.index(node_id)
        promoted = node.children
        new_siblings = siblings[:index] + promoted + siblings[index + 1:]

        self._apply_changes(
            children={parent_id: new_siblings},
            parents={child_id: parent_id for child_id in promoted},
            removed=[node_id],
        )

        self._logger.info(f"Ungrouped {node_id} into {parent_id} ({len(promoted)} groups promoted)")
        return parent_id

    def clone_structure(self, node_id: str) -> Dict[str, str]:
        """Deep-copy a group subtree with fresh ids

        The clone is inserted directly above the original in the same parent
        and the top clone's name gets a ' Copy' suffix.

        Returns:
            Mapping original id -> cloned id for every node in the subtree
            (empty if node_id is unknown)

        Raises:
            StructuralViolation: If node_id is the root
        """
        if node_id == self._root_id:
            raise StructuralViolation("The root project cannot be cloned", node_id)
        node = self._nodes.get(node_id)
        if node is None:
            return {}

        originals = self.subtree_ids(node_id)
        mapping = {old_id: generate_node_id() for old_id in originals}

        clones = []
        for old_id in originals:
            original = self._nodes[old_id]
            clone = original.duplicate(new_id=mapping[old_id])
            clone._replace_children([mapping[c] for c in original.children])
            if old_id == node_id:
                clone.name = f"{original.name}{CLONE_NAME_SUFFIX}"
            else:
                clone.parent_id = mapping[original.parent_id]
            clones.append(clone)

        parent_id = node.parent_id
        siblings = self._nodes[parent_id].children
        siblings.insert(siblings.index(node_id), mapping[node_id])

        self._apply_changes(added=clones, children={parent_id: siblings})

        self._logger.info(f"Cloned {node_id} -> {mapping[node_id]} ({len(mapping)} nodes)")
        return mapping
