"""
Layer Tree Editor - Constants and Configuration

This module contains all constant values used throughout the engine:
- Fixed node ids for the root project and the base layer
- Node kinds and display labels
- Auto-naming prefixes
- Drag/indentation and clone defaults
- Config file locations
"""

import os

# ======================================================================
# FIXED NODES
# ======================================================================
# The root and the base group exist in every tree and are never deleted.

ROOT_NODE_ID = 'root_project'
BASE_NODE_ID = 'layer_base'

DEFAULT_ROOT_NAME = 'Base Project'
DEFAULT_BASE_NAME = 'Base Layer'

# ======================================================================
# NODE KINDS AND LABELS
# ======================================================================

NODE_KIND_ROOT = 'root'
NODE_KIND_GROUP = 'group'
NODE_KINDS = (NODE_KIND_ROOT, NODE_KIND_GROUP)

# Display labels carried by groups; structurally identical
NODE_LABEL_PROJECT = 'project'
NODE_LABEL_LAYER = 'layer'
NODE_LABELS = (NODE_LABEL_PROJECT, NODE_LABEL_LAYER)

# Auto-generated names: "{prefix}-{N}"
NODE_NAME_PREFIXES = {
    NODE_LABEL_PROJECT: 'Project',
    NODE_LABEL_LAYER: 'Group',
}

NODE_ID_PREFIX = 'node_'
NODE_ID_LENGTH = 9

CLONE_NAME_SUFFIX = ' Copy'

# ======================================================================
# FLATTENED LIST ITEMS
# ======================================================================

FLAT_ITEM_NODE = 'node'
FLAT_ITEM_LEAF = 'leaf'

# ======================================================================
# DRAG AND CLONE DEFAULTS
# ======================================================================

# Horizontal indentation of one tree level in the layers panel (pixels)
DEFAULT_INDENT_STEP = 12

# Positional offset applied to leaves duplicated by clone/duplicate
DEFAULT_CLONE_OFFSET_X = 20.0
DEFAULT_CLONE_OFFSET_Y = 20.0

MOVE_UP = 'up'
MOVE_DOWN = 'down'

# ======================================================================
# CONFIGURATION FILES
# ======================================================================

CONFIG_DIR = os.path.join(os.path.expanduser('~'), '.layer_tree_editor')
CONFIG_FILENAME = 'engine_config.json'
