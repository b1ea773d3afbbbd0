"""Read-only view of a renderer leaf used by flattening and filtering."""
from dataclasses import dataclass


@dataclass(frozen=True)
class LeafEntry:
    """Identity and filter fields of a drawable object.

    The tree model never holds renderer objects; the leaf index hands it
    these entries grouped by container, front-most first.
    """
    id: str
    name: str = ''
    kind: str = ''


def as_leaf_entry(value) -> LeafEntry:
    """Accept a LeafEntry or a bare leaf id"""
    if isinstance(value, LeafEntry):
        return value
    return LeafEntry(id=str(value))
