"""UI components for the Layer Tree Editor

This package contains the PyQt5 UI components organized into subpackages:
- layers_panel: the layers panel (tree rows, selection, drag reorder)
"""

from .layers_panel import LayerTreeWidget

__all__ = [
    'LayerTreeWidget',
]
