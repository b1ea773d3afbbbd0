"""
Drag reorder / reparent algorithm for the layers panel

Turns a drag gesture (active row, row under the pointer, accumulated
horizontal offset) into a DropPlan:
- Groups get a new parent and sibling index. Vertical position picks the
  slot in the flattened list, horizontal offset picks the depth.
- Leaves get a new container and a position in its paint order.

project_drop() is pure; DragSession wraps it with begin/update/end/cancel,
snapshots state at drag start and restores it if the commit fails.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from models.layer_tree import LayerTree, FlatItem, InvalidDrop, LayerTreeError
from constants import DEFAULT_INDENT_STEP, FLAT_ITEM_NODE, FLAT_ITEM_LEAF
from utils.logger import loggerRaise


@dataclass
class DropPlan:
    """Where a dragged row would land

    For groups parent_id/index address the new parent's children list and
    depth is the projected flattened depth. For leaves parent_id is the
    target container and index the position among its leaves (0 = front-most).
    """
    kind: str
    active_id: str
    over_id: str
    parent_id: str
    index: int
    depth: int

    @property
    def is_leaf(self) -> bool:
        return self.kind == FLAT_ITEM_LEAF


def depth_delta(horizontal_offset: float, indent_step: float) -> int:
    """Whole indentation levels covered by the offset (halves round up)"""
    if indent_step <= 0:
        raise ValueError(f"indent_step must be positive, got {indent_step}")
    return int(math.floor(horizontal_offset / indent_step + 0.5))


def _find_row(rows: List[FlatItem], item_id: str) -> int:
    """Row index of item_id, preferring node rows; -1 if not shown"""
    for i, row in enumerate(rows):
        if row.id == item_id and row.is_node:
            return i
    for i, row in enumerate(rows):
        if row.id == item_id:
            return i
    return -1


def project_drop(tree: LayerTree, leaves_by_container: Optional[Dict[str, list]],
                 active_id: str, over_id: str, horizontal_offset: float = 0.0,
                 indent_step: float = DEFAULT_INDENT_STEP,
                 locked_leaf_ids=()) -> DropPlan:
    """Compute the drop target for a drag gesture without mutating anything

    Args:
        tree: Current tree
        leaves_by_container: Leaf memberships, front-most first
        active_id: Dragged node or leaf id
        over_id: Row under the pointer
        horizontal_offset: Signed horizontal drag distance since drag start
        indent_step: Row indentation per depth level
        locked_leaf_ids: Leaves locked in the renderer (cannot be dragged)

    Returns:
        DropPlan for the gesture

    Raises:
        InvalidDrop: If the gesture has no valid target
    """
    if active_id is None or active_id == tree.root_id:
        raise InvalidDrop("The root project cannot be dragged")
    if over_id is None:
        raise InvalidDrop("Drag ended outside the layers panel")

    leaves_by_container = leaves_by_container or {}
    rows = tree.flatten(leaves_by_container)
    active_pos = _find_row(rows, active_id)
    over_pos = _find_row(rows, over_id)
    if active_pos < 0:
        raise InvalidDrop(f"'{active_id}' is not a visible row")
    if over_pos < 0:
        raise InvalidDrop(f"Drop target '{over_id}' is not a visible row")

    if rows[active_pos].is_leaf:
        return _project_leaf(tree, leaves_by_container, rows, active_pos, over_pos, set(locked_leaf_ids))
    return _project_node(tree, rows, active_pos, over_pos, horizontal_offset, indent_step)


def _project_leaf(tree, leaves_by_container, rows, active_pos, over_pos, locked_leaf_ids) -> DropPlan:
    active = rows[active_pos]
    over = rows[over_pos]
    if active.id == over.id:
        raise InvalidDrop("A leaf cannot be dropped onto itself")
    if active.id in locked_leaf_ids or tree.is_effectively_locked(active.parent_id):
        raise InvalidDrop(f"Leaf '{active.id}' is locked")

    if over.is_node:
        if not tree.is_group(over.id):
            raise InvalidDrop(f"'{over.id}' cannot hold leaves")
        return DropPlan(FLAT_ITEM_LEAF, active.id, over.id, over.id, 0, over.depth + 1)

    container_id = over.parent_id
    siblings = [
        getattr(entry, 'id', entry)
        for entry in leaves_by_container.get(container_id, ())
        if getattr(entry, 'id', entry) != active.id
    ]
    index = siblings.index(over.id)
    if over_pos > active_pos:
        index += 1
    return DropPlan(FLAT_ITEM_LEAF, active.id, over.id, container_id, index, over.depth)


def _project_node(tree, rows, active_pos, over_pos, horizontal_offset, indent_step) -> DropPlan:
    active = rows[active_pos]
    over = rows[over_pos]
    moving = set(tree.subtree_ids(active.id))

    def in_moving(row):
        return row.id in moving if row.is_node else row.parent_id in moving

    reduced = []
    slot = None
    for i, row in enumerate(rows):
        if i == active_pos and slot is None and (over.id == active.id or in_moving(over)):
            # In-place drag: the active row's own position anchors the slot
            slot = len(reduced)
        if in_moving(row):
            continue
        if i == over_pos and slot is None:
            slot = len(reduced) + 1 if over_pos > active_pos else len(reduced)
        reduced.append(row)

    item_before = reduced[slot - 1] if slot > 0 else None

    # a. depth from the horizontal offset, clamped by the row above
    target = active.depth + depth_delta(horizontal_offset, indent_step)
    if item_before is None:
        max_depth = 0
    else:
        max_depth = item_before.depth + (1 if item_before.is_node else 0)
    target = max(0, min(target, max_depth))

    # b-e. parent from the row above
    if item_before is None:
        parent_id = tree.root_id
    elif target > item_before.depth and item_before.is_node:
        parent_id = item_before.id
    elif target == item_before.depth:
        parent_id = item_before.parent_id
    else:
        parent_id = _ancestor_parent_at_depth(tree, item_before, target)

    # f. safety clamp
    if parent_id is None or not tree.is_container(parent_id):
        parent_id = tree.root_id

    # Other child groups of the new parent shown above the slot
    index = sum(
        1 for row in reduced[:slot]
        if row.is_node and row.id != active.id and tree.parent_of(row.id) == parent_id
    )
    return DropPlan(FLAT_ITEM_NODE, active.id, over.id, parent_id, index, target)


def _ancestor_parent_at_depth(tree: LayerTree, item: FlatItem, depth: int) -> Optional[str]:
    """Parent of the ancestor of item that sits at depth"""
    chain = [item.parent_id] + tree.ancestors(item.parent_id) if item.is_leaf else tree.ancestors(item.id)
    for ancestor_id in chain:
        if tree.depth_of(ancestor_id) == depth:
            return tree.parent_of(ancestor_id)
    return None


class DragSession:
    """One drag gesture: begin -> update* -> end | cancel

    update() only projects. end() commits the last projection; a failed
    commit restores the tree and leaf memberships captured by begin().
    """

    def __init__(self, tree: LayerTree, leaf_index, indent_step: float = DEFAULT_INDENT_STEP):
        self._logger = logging.getLogger('DragSession')
        self.tree = tree
        self.leaf_index = leaf_index
        self.indent_step = indent_step
        self._reset()

    def _reset(self):
        self.active_id = None
        self.plan: Optional[DropPlan] = None
        self._tree_snapshot = None
        self._leaf_snapshot = None

    @property
    def is_active(self) -> bool:
        return self.active_id is not None

    def begin(self, active_id: str) -> bool:
        """Start dragging active_id

        Returns:
            False if the id cannot be dragged (root or unknown)
        """
        if active_id == self.tree.root_id:
            self._logger.debug("begin: root cannot be dragged")
            return False
        if not self.tree.has_node(active_id) and not self.leaf_index.has_leaf(active_id):
            self._logger.debug(f"begin: unknown id {active_id}")
            return False
        self._reset()
        self.active_id = active_id
        self._tree_snapshot = self.tree.get_snapshot()
        self._leaf_snapshot = self.leaf_index.get_snapshot()
        self._logger.debug(f"Drag started: {active_id}")
        return True

    def update(self, horizontal_offset: float, over_id: Optional[str]) -> Optional[DropPlan]:
        """Project the drop for the current pointer state (no mutation)

        Returns:
            DropPlan, or None when the pointer is over no valid target
        """
        if not self.is_active:
            return None
        try:
            self.plan = project_drop(
                self.tree, self.leaf_index.leaves_by_container(),
                self.active_id, over_id, horizontal_offset, self.indent_step,
                locked_leaf_ids=self._locked_leaf_ids(),
            )
        except InvalidDrop as e:
            self._logger.debug(f"No drop target: {e}")
            self.plan = None
        return self.plan

    def end(self) -> Optional[DropPlan]:
        """Commit the last projection

        Returns:
            The committed plan, or None if the drop left everything unchanged

        Raises:
            InvalidDrop: No valid target, or the move would create a cycle
            StructuralViolation: The base layer was dropped inside a group
        """
        if not self.is_active:
            return None
        plan = self.plan
        try:
            if plan is None:
                raise InvalidDrop("Drag ended without a valid drop target")
            changed = self._commit(plan)
        except LayerTreeError:
            self.restore()
            raise
        except Exception as e:
            self.restore()
            loggerRaise(e, "Moving the layer failed. The layers panel was restored.", "Drag Error")
        self._reset()
        return plan if changed else None

    def cancel(self):
        """Abandon the drag and put back the pre-drag state"""
        if self.is_active:
            self._logger.debug(f"Drag cancelled: {self.active_id}")
            self.restore()

    def restore(self):
        if self._tree_snapshot is not None:
            self.tree.set_snapshot(self._tree_snapshot)
        if self._leaf_snapshot is not None:
            self.leaf_index.set_snapshot(self._leaf_snapshot)
        self._reset()

    def _commit(self, plan: DropPlan) -> bool:
        if plan.is_leaf:
            leaf_id = plan.active_id
            old = (self.leaf_index.container_of(leaf_id), self.leaf_index.position_in_container(leaf_id))
            self.leaf_index.assign(leaf_id, plan.parent_id, plan.index)
            new = (self.leaf_index.container_of(leaf_id), self.leaf_index.position_in_container(leaf_id))
            if new != old:
                self._logger.debug(f"Leaf {leaf_id} dropped into {plan.parent_id}[{plan.index}]")
            return new != old

        # Cycle guard
        if plan.parent_id == plan.active_id or self.tree.is_descendant(plan.parent_id, plan.active_id):
            raise InvalidDrop(f"'{plan.active_id}' cannot be dropped inside itself")
        return self.tree.move_node(plan.active_id, plan.parent_id, plan.index)

    def _locked_leaf_ids(self):
        renderer = self.leaf_index.renderer
        return {
            leaf_id for leaf_id in self.leaf_index.leaf_ids()
            if renderer.is_leaf_locked(self.leaf_index.get_leaf(leaf_id))
        }
