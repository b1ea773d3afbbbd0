"""Internal implementation details for the layer tree model

Do not import from outside models.layer_tree - use the LayerTree API instead.
"""

from .node import Node, generate_node_id
from .flat_item import FlatItem
from .leaf_entry import LeafEntry, as_leaf_entry

__all__ = ['Node', 'FlatItem', 'LeafEntry', 'as_leaf_entry', 'generate_node_id']
