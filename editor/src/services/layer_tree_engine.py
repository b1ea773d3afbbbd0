"""
Layer Tree Engine - command facade for the layers panel

Owns the LayerTree and coordinates it with the renderer's leaves:
- LeafIndex: which leaves belong to which group
- LayerSelection: what the panel has selected
- ZOrderSynchronizer: paint order follows the panel after every change
- DragSession: drag reorder / reparent gestures

Every command runs to completion (tree edit, leaf edits, z-order push,
lock reconciliation, listener notification) before returning. Structural
violations are reported to the user as blocked actions and leave every
piece of state as it was; stale ids are quiet no-ops.

Renderer notifications received while a command is running are ignored;
the command resyncs once at the end.
"""

import functools
import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from models.layer_tree import (
    LayerTree, FlatItem, LeafEntry,
    StructuralViolation, DanglingReference, InvalidDrop,
)
from services.leaf_index import LeafIndex
from services.selection import LayerSelection
from services.zorder_sync import ZOrderSynchronizer
from services.drag_reorder import DragSession, DropPlan
from utils.config import EngineConfig
from utils.logger import show_blocked_action
from constants import NODE_LABEL_LAYER


def engine_command(method):
    """Run a command with renderer notifications muted

    StructuralViolation is surfaced as a blocked action and
    DanglingReference is swallowed as a no-op; both return None.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._applying += 1
        try:
            return method(self, *args, **kwargs)
        except StructuralViolation as e:
            self._block(e)
            return None
        except DanglingReference as e:
            self._logger.debug(f"{method.__name__}: {e}")
            return None
        finally:
            self._applying -= 1
    return wrapper


class LayerTreeEngine:
    """Layer tree + renderer coordination

    Usage:
        engine = LayerTreeEngine(renderer)
        group_id = engine.create_node(engine.tree.base_id)
        engine.select(group_id)
        engine.group(engine.selected_ids())
        rows = engine.flatten()
    """

    def __init__(self, renderer, tree: Optional[LayerTree] = None,
                 config: Optional[EngineConfig] = None):
        self._logger = logging.getLogger('LayerTreeEngine')
        self.config = config or EngineConfig()
        self.tree = tree or LayerTree(self.config.root_name, self.config.base_name)
        self.renderer = renderer

        self.leaf_index = LeafIndex(renderer)
        self.selection = LayerSelection(self.tree, self.leaf_index)
        self.zorder = ZOrderSynchronizer(renderer)
        self.drag = DragSession(self.tree, self.leaf_index, self.config.indent_step)

        self._active_group_id = self.tree.base_id
        # Leaves this engine locked because of a locked ancestor
        self._forced_locks: Set[str] = set()
        # group id -> {leaf id: (container, index)} for leaves pulled in by group()
        self._leaf_origins: Dict[str, Dict[str, Tuple[str, int]]] = {}
        self._listeners: List[Callable[[], None]] = []
        self._applying = 0

        renderer.add_change_listener(self._on_renderer_change)
        self._applying += 1
        try:
            self._refresh(resync=True)
        finally:
            self._applying -= 1

        self._logger.debug(f"Engine ready with {len(self.leaf_index)} leaves")

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, callback: Callable[[], None]):
        """Register callback() run after each committed change"""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        for callback in list(self._listeners):
            callback()

    def _on_renderer_change(self, event: str, leaf):
        if self._applying:
            return
        self._logger.debug(f"Renderer {event}: {self.renderer.get_leaf_id(leaf)}")
        self._applying += 1
        try:
            self._refresh(resync=True)
        finally:
            self._applying -= 1

    # ========================================
    # Queries
    # ========================================

    def flatten(self, query: Optional[str] = None, leaf_kinds=None,
                expand_all: bool = False, root_ids: Optional[List[str]] = None) -> List[FlatItem]:
        """Layers-panel rows for the current state"""
        return self.tree.flatten(
            self.leaf_index.leaves_by_container(),
            root_ids=root_ids, query=query, leaf_kinds=leaf_kinds, expand_all=expand_all,
        )

    def selected_ids(self) -> List[str]:
        return self.selection.ids

    @property
    def active_group_id(self) -> str:
        return self._active_group_id

    def leaf_entry(self, leaf_id: str) -> Optional[LeafEntry]:
        return self.leaf_index.entry(leaf_id)

    def is_leaf_locked(self, leaf_id: str) -> bool:
        leaf = self.leaf_index.get_leaf(leaf_id)
        return leaf is not None and self.renderer.is_leaf_locked(leaf)

    def is_leaf_visible(self, leaf_id: str) -> bool:
        leaf = self.leaf_index.get_leaf(leaf_id)
        return leaf is not None and self.renderer.is_leaf_visible(leaf)

    def is_node_visible(self, node_id: str) -> bool:
        """True if any leaf below node_id is visible (empty groups count as visible)"""
        leaf_ids = self._leaves_below(node_id)
        if not leaf_ids:
            return True
        return any(self.is_leaf_visible(leaf_id) for leaf_id in leaf_ids)

    def is_locked(self, item_id: str) -> bool:
        """Effective lock of a node or leaf"""
        return self.selection.is_locked(item_id)

    # ========================================
    # Node Commands
    # ========================================

    @engine_command
    def create_node(self, parent_id: str, label: str = NODE_LABEL_LAYER,
                    name: Optional[str] = None) -> Optional[str]:
        """Create an empty group at the front of parent_id's children"""
        node_id = self.tree.create_node(parent_id, label, name)
        if node_id is not None:
            self._refresh()
        return node_id

    @engine_command
    def delete_node(self, node_id: str) -> Optional[List[str]]:
        """Delete a group, its descendant groups and all their leaves

        Returns:
            Removed node ids; None if blocked (root/base) or unknown
        """
        removed = self.tree.delete_node(node_id)
        if not removed:
            return None
        doomed = self.leaf_index.leaf_ids_in(removed)
        for leaf_id in doomed:
            self.renderer.remove_leaf(self.leaf_index.get_leaf(leaf_id))
        self._forced_locks.difference_update(doomed)

        if self._active_group_id in removed:
            self._active_group_id = self.tree.base_id

        self._logger.info(f"Deleted {len(removed)} groups and {len(doomed)} leaves")
        self._refresh(resync=True)
        return removed

    @engine_command
    def rename_node(self, node_id: str, name: str) -> bool:
        changed = self.tree.rename_node(node_id, name)
        if changed:
            self._notify()
        return changed

    @engine_command
    def toggle_expand(self, node_id: str) -> Optional[bool]:
        expanded = self.tree.toggle_expand(node_id)
        if expanded is not None:
            self._notify()
        return expanded

    @engine_command
    def move_sibling(self, node_id: str, direction: str) -> bool:
        moved = self.tree.move_sibling(node_id, direction)
        if moved:
            self._refresh()
        return moved

    @engine_command
    def group(self, selected_ids: Optional[List[str]] = None) -> Optional[str]:
        """Wrap the selected groups and leaves in a new group

        The new group takes the first selected item's place (first in
        fully-expanded panel order); a leaf-first selection puts it at the
        top of that leaf's group. Items inside another selected group move
        with it rather than on their own.

        Returns:
            Id of the new group, or None if nothing could be grouped
        """
        item_ids = self._known_ids(self.selection.ids if selected_ids is None else selected_ids)
        if not item_ids:
            return None
        for item_id in item_ids:
            if self.tree.is_protected(item_id):
                raise StructuralViolation(f"'{self.tree.get(item_id).name}' cannot be grouped", item_id)

        position = self._panel_positions()
        item_ids.sort(key=lambda i: position.get(i, len(position)))
        selected_nodes = {i for i in item_ids if self.tree.has_node(i)}

        def inside_selected(node_id):
            return any(a in selected_nodes for a in self.tree.ancestors(node_id))

        nodes = [i for i in item_ids if i in selected_nodes and not inside_selected(i)]
        leaves = [
            i for i in item_ids
            if i not in selected_nodes
            and self.leaf_index.container_of(i) not in selected_nodes
            and not inside_selected(self.leaf_index.container_of(i))
        ]
        if not nodes and not leaves:
            return None

        first = item_ids[0]
        if first in selected_nodes:
            parent_id = self.tree.parent_of(first)
            index = self.tree.children(parent_id).index(first)
        else:
            parent_id = self.leaf_index.container_of(first)
            index = 0

        origins = {
            leaf_id: (self.leaf_index.container_of(leaf_id), self.leaf_index.position_in_container(leaf_id))
            for leaf_id in leaves
        }
        group_id = self.tree.group_nodes(nodes, parent_id, index)
        if origins:
            self._leaf_origins[group_id] = origins
        for position_in_group, leaf_id in enumerate(leaves):
            self.leaf_index.assign(leaf_id, group_id, position_in_group)

        self.selection.set([group_id])
        self._logger.info(f"Grouped {len(nodes)} groups and {len(leaves)} leaves into {group_id}")
        self._refresh()
        return group_id

    @engine_command
    def ungroup(self, selected_ids: Optional[List[str]] = None) -> List[str]:
        """Dissolve the selected groups in place

        Child groups take the dissolved group's slot in order; its leaves go
        to its parent (to base when the parent is the root). Leaves that
        group() pulled out of that container return to their old slots; the
        rest are appended behind. Root, base and leaves in the selection are
        skipped.

        Returns:
            Ids of the dissolved groups
        """
        item_ids = self._known_ids(self.selection.ids if selected_ids is None else selected_ids)
        position = self._panel_positions()
        targets = sorted(
            (i for i in item_ids if self.tree.has_node(i) and not self.tree.is_protected(i)),
            key=lambda i: position.get(i, len(position)),
        )

        dissolved = []
        for node_id in targets:
            leaf_ids = self.leaf_index.leaf_ids(node_id)
            parent_id = self.tree.ungroup_node(node_id)
            if parent_id is None:
                continue
            container_id = parent_id if self.tree.is_group(parent_id) else self.tree.base_id
            self._return_leaves(node_id, leaf_ids, container_id)
            if self._active_group_id == node_id:
                self._active_group_id = container_id
            dissolved.append(node_id)

        if dissolved:
            self._logger.info(f"Ungrouped {len(dissolved)} groups")
            self._refresh()
        return dissolved

    @engine_command
    def clone_subtree(self, node_id: str) -> Optional[str]:
        """Copy a group with its descendant groups and leaves

        The copy sits directly above the original. Leaves are duplicated by
        the renderer with the configured clone offset.

        Returns:
            Id of the top cloned group, or None for unknown ids / the root
        """
        mapping = self.tree.clone_structure(node_id)
        if not mapping:
            self._logger.debug(f"clone_subtree: unknown node {node_id}")
            return None

        offset_x, offset_y = self.config.clone_offset
        copied = 0
        for original_id, clone_id in mapping.items():
            # Back to front so copies keep the originals' stacking
            for leaf_id in reversed(self.leaf_index.leaf_ids(original_id)):
                leaf = self.leaf_index.get_leaf(leaf_id)
                copy = self.renderer.duplicate_leaf(leaf, offset_x, offset_y)
                self.renderer.set_leaf_container(copy, clone_id)
                if leaf_id in self._forced_locks:
                    self._forced_locks.add(self.renderer.get_leaf_id(copy))
                copied += 1

        self._logger.info(f"Cloned {node_id} -> {mapping[node_id]} with {copied} leaves")
        self._refresh(resync=True)
        return mapping[node_id]

    # ========================================
    # Lock / Visibility
    # ========================================

    @engine_command
    def toggle_lock_recursive(self, node_id: str) -> Optional[bool]:
        """Flip a node's lock; descendant leaves follow its effective lock

        Returns:
            The node's new lock flag, or None for unknown ids
        """
        locked = self.tree.toggle_node_lock(node_id)
        if locked is None:
            return None
        self._logger.debug(f"Lock {node_id}: {locked}")
        self._reconcile_locks()
        self._notify()
        return locked

    @engine_command
    def toggle_visibility_recursive(self, node_id: str) -> Optional[bool]:
        """Hide every leaf below node_id if any is visible, else show them all

        Returns:
            New visibility, or None for unknown ids
        """
        if not self.tree.has_node(node_id):
            return None
        leaf_ids = self._leaves_below(node_id)
        visible = not any(self.is_leaf_visible(leaf_id) for leaf_id in leaf_ids)
        for leaf_id in leaf_ids:
            self.renderer.set_leaf_visible(self.leaf_index.get_leaf(leaf_id), visible)
        self._notify()
        return visible

    @engine_command
    def toggle_leaf_lock(self, leaf_id: str) -> Optional[bool]:
        """Flip a leaf's own lock (no-op under a locked group)"""
        leaf = self.leaf_index.get_leaf(leaf_id)
        if leaf is None or self.tree.is_effectively_locked(self.leaf_index.container_of(leaf_id)):
            return None
        locked = not self.renderer.is_leaf_locked(leaf)
        self.renderer.set_leaf_locked(leaf, locked)
        self._forced_locks.discard(leaf_id)
        self._notify()
        return locked

    @engine_command
    def toggle_leaf_visibility(self, leaf_id: str) -> Optional[bool]:
        leaf = self.leaf_index.get_leaf(leaf_id)
        if leaf is None:
            return None
        visible = not self.renderer.is_leaf_visible(leaf)
        self.renderer.set_leaf_visible(leaf, visible)
        self._notify()
        return visible

    # ========================================
    # Leaf Commands
    # ========================================

    @engine_command
    def delete_leaf(self, leaf_id: str) -> bool:
        leaf = self.leaf_index.get_leaf(leaf_id)
        if leaf is None:
            return False
        self.renderer.remove_leaf(leaf)
        self._forced_locks.discard(leaf_id)
        self._refresh(resync=True)
        return True

    @engine_command
    def duplicate_leaf(self, leaf_id: str) -> Optional[str]:
        """Copy a leaf into the same group, in front of the original"""
        leaf = self.leaf_index.get_leaf(leaf_id)
        if leaf is None:
            return None
        offset_x, offset_y = self.config.clone_offset
        copy = self.renderer.duplicate_leaf(leaf, offset_x, offset_y)
        self.renderer.set_leaf_container(copy, self.leaf_index.container_of(leaf_id))
        copy_id = self.renderer.get_leaf_id(copy)
        if leaf_id in self._forced_locks:
            self._forced_locks.add(copy_id)
        self._refresh(resync=True)
        return copy_id

    # ========================================
    # Selection
    # ========================================

    @engine_command
    def select(self, item_id: str, additive: bool = False) -> bool:
        changed = self.selection.select(item_id, additive)
        if changed:
            self._notify()
        return changed

    @engine_command
    def clear_selection(self) -> bool:
        changed = self.selection.clear()
        if changed:
            self._notify()
        return changed

    def set_active_group(self, node_id: str) -> bool:
        """Group that receives newly drawn leaves"""
        if not self.tree.is_group(node_id):
            self._logger.debug(f"set_active_group: {node_id} is not a group")
            return False
        self._active_group_id = node_id
        return True

    # ========================================
    # Drag Session
    # ========================================

    def begin_drag(self, active_id: str) -> bool:
        return self.drag.begin(active_id)

    def update_drag(self, horizontal_offset: float, over_id: Optional[str]) -> Optional[DropPlan]:
        return self.drag.update(horizontal_offset, over_id)

    @engine_command
    def end_drag(self) -> bool:
        """Commit the drag

        Returns:
            True if the tree or leaf membership changed
        """
        try:
            plan = self.drag.end()
        except InvalidDrop as e:
            self._logger.debug(f"Drop rejected: {e}")
            self._refresh(resync=True)
            return False
        if plan is None:
            return False
        self._logger.debug(f"Dropped {plan.active_id} into {plan.parent_id}[{plan.index}]")
        self._refresh()
        return True

    @engine_command
    def cancel_drag(self):
        if self.drag.is_active:
            self.drag.cancel()
            self._refresh(resync=True)

    # ========================================
    # Documents
    # ========================================

    def to_document(self) -> Dict:
        return self.tree.to_dict()

    @engine_command
    def load_document(self, data: Dict):
        """Replace the tree with a serialized one

        Raises:
            ValueError: If the document is invalid (tree left unchanged)
        """
        loaded = LayerTree.from_dict(data)
        self.tree.set_snapshot(loaded.get_snapshot())
        self._leaf_origins.clear()
        self.selection.clear()
        self._active_group_id = self.tree.base_id
        self._refresh(resync=True)

    # ========================================
    # Helpers
    # ========================================

    def _refresh(self, resync: bool = False):
        """Bring renderer, locks, selection and views in line with the tree"""
        if resync:
            self.leaf_index.resync(self.tree, self._active_group_id)
        for group_id in [g for g in self._leaf_origins if g not in self.tree]:
            del self._leaf_origins[group_id]
        self.zorder.sync(self.tree, self.leaf_index)
        self._reconcile_locks()
        self.selection.prune()
        self._notify()

    def _reconcile_locks(self):
        """Force leaves under locked groups locked; release those no longer covered"""
        present = set(self.leaf_index.leaf_ids())
        self._forced_locks &= present
        for leaf_id in present:
            leaf = self.leaf_index.get_leaf(leaf_id)
            forced = self.tree.is_effectively_locked(self.leaf_index.container_of(leaf_id))
            if forced:
                if not self.renderer.is_leaf_locked(leaf):
                    self.renderer.set_leaf_locked(leaf, True)
                    self._forced_locks.add(leaf_id)
            elif leaf_id in self._forced_locks:
                self.renderer.set_leaf_locked(leaf, False)
                self._forced_locks.discard(leaf_id)

    def _return_leaves(self, group_id: str, leaf_ids: List[str], container_id: str):
        """Move a dissolved group's leaves into container_id"""
        origins = self._leaf_origins.pop(group_id, {})
        restored = sorted(
            (leaf_id for leaf_id in leaf_ids if origins.get(leaf_id, (None, 0))[0] == container_id),
            key=lambda leaf_id: origins[leaf_id][1],
        )
        # Ascending inserts land each leaf back on its recorded index
        for leaf_id in restored:
            self.leaf_index.assign(leaf_id, container_id, origins[leaf_id][1])
        for leaf_id in leaf_ids:
            if leaf_id not in restored:
                self.leaf_index.assign(leaf_id, container_id, len(self.leaf_index.leaf_ids(container_id)))

    def _leaves_below(self, node_id: str) -> List[str]:
        return self.leaf_index.leaf_ids_in(self.tree.subtree_ids(node_id))

    def _known_ids(self, item_ids) -> List[str]:
        return [
            i for i in dict.fromkeys(item_ids)
            if self.tree.has_node(i) or self.leaf_index.has_leaf(i)
        ]

    def _panel_positions(self) -> Dict[str, int]:
        """Fully-expanded panel row of every node and leaf"""
        return {row.id: i for i, row in enumerate(self.flatten(expand_all=True))}

    def _block(self, error: StructuralViolation):
        self._logger.warning(f"Blocked: {error}")
        show_blocked_action("Action Not Allowed", str(error))
