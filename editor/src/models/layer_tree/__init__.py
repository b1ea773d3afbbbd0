"""LayerTree model mixins package"""

from .query_mixin import LayerTreeQueryMixin
from .node_mixin import LayerTreeNodeMixin
from .container_mixin import LayerTreeContainerMixin
from .serialization_mixin import LayerTreeSerializationMixin
from .core import LayerTree
from .errors import LayerTreeError, StructuralViolation, DanglingReference, InvalidDrop
from ._internal.node import Node
from ._internal.flat_item import FlatItem
from ._internal.leaf_entry import LeafEntry

__all__ = [
    'LayerTree',
    'Node',
    'FlatItem',
    'LeafEntry',
    'LayerTreeError',
    'StructuralViolation',
    'DanglingReference',
    'InvalidDrop',
    'LayerTreeQueryMixin',
    'LayerTreeNodeMixin',
    'LayerTreeContainerMixin',
    'LayerTreeSerializationMixin',
]
