"""
Shared fixtures for Layer Tree Editor tests.

Provides fresh trees, in-memory renderers and engines. Test modules keep
their own small builders for nested groups and leaves.
"""
import sys
import os
import pytest

# Ensure editor/src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'editor', 'src'))

# Widgets and scenes are created without a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')


@pytest.fixture
def tree():
    """Fresh tree holding only the root and the base group"""
    from models.layer_tree import LayerTree
    return LayerTree()


@pytest.fixture
def renderer():
    """Empty in-memory renderer"""
    from services.renderer_bridge import InMemoryRenderer
    return InMemoryRenderer()


@pytest.fixture
def engine(renderer):
    """Engine over an empty in-memory renderer"""
    from services.layer_tree_engine import LayerTreeEngine
    return LayerTreeEngine(renderer)


@pytest.fixture(autouse=True)
def _no_blocking_popups():
    """Blocked-action popups only log while no main window is registered"""
    from utils import logger
    logger.set_main_window(None)
    yield
    logger.set_main_window(None)
