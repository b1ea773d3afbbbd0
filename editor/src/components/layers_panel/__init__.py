"""
Layer Tree Editor - Layers Panel Components

Widgets that display the layer tree and forward user gestures to the engine.
"""

from .layer_tree_widget import LayerTreeWidget

__all__ = ['LayerTreeWidget']
