"""Flattened list row for the layers panel."""
from dataclasses import dataclass
from typing import Optional

from constants import FLAT_ITEM_NODE, FLAT_ITEM_LEAF


@dataclass(frozen=True)
class FlatItem:
    """One row of the depth-first, expand-aware projection of the tree.

    kind is 'node' for containers and 'leaf' for drawable objects. For
    leaves parent_id is the owning group; for nodes it is the parent node
    (None at the top level when flattening from the root).
    """
    kind: str
    id: str
    depth: int
    parent_id: Optional[str] = None

    @property
    def is_node(self) -> bool:
        return self.kind == FLAT_ITEM_NODE

    @property
    def is_leaf(self) -> bool:
        return self.kind == FLAT_ITEM_LEAF
