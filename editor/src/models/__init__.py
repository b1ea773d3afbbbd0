"""
Layer Tree Editor - Data Models

This module contains the data model classes for the layer hierarchy.
This is the MODEL in MVC architecture.

Public API: Import LayerTree, Node, FlatItem, LeafEntry from models.layer_tree
The models/layer_tree/_internal/ subdirectory contains internal implementation only.
"""

from .layer_tree import LayerTree, Node, FlatItem, LeafEntry

__all__ = ['LayerTree', 'Node', 'FlatItem', 'LeafEntry']
