import sys
import os
import logging

# Configure logging
logging.basicConfig(
    level=logging.WARNING,  # Only show warnings and errors
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)  # Output to console
    ]
)

# Add editor/src to path so imports work when running directly
if __name__ == "__main__":
    current_dir = os.path.dirname(os.path.abspath(__file__))
    if current_dir not in sys.path:
        sys.path.insert(0, current_dir)

# PyQt5 import/s
from PyQt5 import QtWidgets
from PyQt5.QtWidgets import (QMainWindow, QSplitter, QGraphicsView, QToolBar,
                             QGraphicsRectItem, QGraphicsEllipseItem, QStatusBar)
from PyQt5.QtCore import Qt, QRectF
from PyQt5.QtGui import QPalette, QColor, QBrush, QPen

# Component imports
from components.layers_panel import LayerTreeWidget

# Service imports
from services.layer_tree_engine import LayerTreeEngine
from services.scene_renderer import SceneRenderer

# Utility imports
from utils.config import load_config
from utils.logger import set_main_window
from version import get_version

_SHAPE_COLORS = ['#c0504d', '#4f81bd', '#9bbb59', '#f79646', '#8064a2']


class LayerTreeEditor(QMainWindow):
    """Canvas plus layers panel wired to one engine"""

    def __init__(self):
        super().__init__()
        self.setWindowTitle(f"Layer Tree Editor {get_version()}")
        self.resize(1100, 700)

        # Initialize global logger with main window reference
        set_main_window(self)

        self.config = load_config()
        self.renderer = SceneRenderer()
        self.engine = LayerTreeEngine(self.renderer, config=self.config)
        self._shape_count = 0

        self.setup_ui()
        self.engine.add_listener(self._update_status)

    def setup_ui(self):
        splitter = QSplitter(Qt.Horizontal)

        self.view = QGraphicsView(self.renderer.scene)
        self.view.setSceneRect(QRectF(0, 0, 800, 600))
        splitter.addWidget(self.view)

        self.layers_panel = LayerTreeWidget(self.engine)
        self.layers_panel.setMinimumWidth(280)
        splitter.addWidget(self.layers_panel)
        splitter.setStretchFactor(0, 1)
        self.setCentralWidget(splitter)

        toolbar = QToolBar("Shapes")
        toolbar.addAction("Rectangle", lambda: self.add_shape('rect'))
        toolbar.addAction("Ellipse", lambda: self.add_shape('ellipse'))
        self.addToolBar(toolbar)

        self.setStatusBar(QStatusBar())
        self._update_status()

    def add_shape(self, kind):
        """Drop a new shape on the canvas; the engine files it under the active group"""
        color = QColor(_SHAPE_COLORS[self._shape_count % len(_SHAPE_COLORS)])
        offset = 30 * (self._shape_count % 10)
        rect = QRectF(60 + offset, 60 + offset, 120, 80)
        item = QGraphicsRectItem(rect) if kind == 'rect' else QGraphicsEllipseItem(rect)
        item.setBrush(QBrush(color))
        item.setPen(QPen(color.darker(150), 2))
        self._shape_count += 1
        self.renderer.add_item(item, kind=kind)

    def _update_status(self):
        group = self.engine.tree.get(self.engine.active_group_id)
        self.statusBar().showMessage(
            f"{len(self.engine.leaf_index)} shapes - drawing into '{group.name if group else ''}'")


def main():
    """Main entry point for the Layer Tree Editor"""
    app = QtWidgets.QApplication([])

    # Use Fusion style with dark palette
    app.setStyle("Fusion")

    dark_palette = QPalette()
    dark_palette.setColor(QPalette.Window, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.WindowText, Qt.white)
    dark_palette.setColor(QPalette.Base, QColor(25, 25, 25))
    dark_palette.setColor(QPalette.AlternateBase, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ToolTipBase, Qt.white)
    dark_palette.setColor(QPalette.ToolTipText, Qt.white)
    dark_palette.setColor(QPalette.Text, Qt.white)
    dark_palette.setColor(QPalette.Button, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ButtonText, Qt.white)
    dark_palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
    dark_palette.setColor(QPalette.HighlightedText, Qt.black)

    app.setPalette(dark_palette)

    window = LayerTreeEditor()
    window.show()
    app.exec_()


if __name__ == "__main__":
    main()
