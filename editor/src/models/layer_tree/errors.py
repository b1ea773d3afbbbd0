"""Exceptions raised by the layer tree model and engine"""


class LayerTreeError(Exception):
    """Base class for layer tree failures"""


class StructuralViolation(LayerTreeError):
    """Attempted operation would break the root/base structure

    Raised for root/base deletion, root reparenting, base reparenting out of
    the root, grouping root/base, and cloning the root. Callers leave state
    unchanged and surface the message as a blocked action.
    """

    def __init__(self, message: str, node_id: str = None):
        super().__init__(message)
        self.node_id = node_id


class DanglingReference(LayerTreeError):
    """An id no longer present in the tree (stale UI event)"""

    def __init__(self, node_id: str):
        super().__init__(f"Node '{node_id}' not found")
        self.node_id = node_id


class InvalidDrop(LayerTreeError):
    """Drag ended without a valid target; the drag is cancelled"""
