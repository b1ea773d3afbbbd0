"""
Layer Tree Editor - Node Data Model

Provides object-oriented interface to container node data with:
- Dict-backed storage suitable for JSON snapshots
- Property access with validation
- Stable string ids (preserved across save/load)

This is part of the MODEL layer - pure data, no UI logic.

Usage:
    node = Node({'name': 'Group-1', 'parent_id': 'root_project'})
    node.name = 'Outlines'
    data = node.to_dict()
"""

import random
import string
from copy import deepcopy
from typing import Dict, List, Optional, Any

from constants import (
    NODE_KIND_ROOT, NODE_KIND_GROUP, NODE_KINDS,
    NODE_LABEL_LAYER, NODE_LABELS,
    NODE_ID_PREFIX, NODE_ID_LENGTH,
)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_node_id() -> str:
    """Generate a new node id like 'node_k3j9x0a1b'"""
    suffix = ''.join(random.choice(_ID_ALPHABET) for _ in range(NODE_ID_LENGTH))
    return f"{NODE_ID_PREFIX}{suffix}"


class Node:
    """Container node in the layer tree (the root project or a group)

    Children are ordered nearest-to-top first. The children list is only
    replaced wholesale through _replace_children() so a half-built list is
    never visible to readers.

    Properties:
        id, kind, label, name, parent_id, children, expanded, locked
    """

    def __init__(self, data: Optional[Dict] = None):
        """Initialize node from dictionary or create new

        Args:
            data: Existing node dictionary, or None to create a default group
        """
        self._data = data if data is not None else self._create_default()

        if not self._data.get('id'):
            self._data['id'] = generate_node_id()
        self._data.setdefault('kind', NODE_KIND_GROUP)
        self._data.setdefault('label', NODE_LABEL_LAYER)
        self._data.setdefault('name', '')
        self._data.setdefault('parent_id', None)
        self._data.setdefault('expanded', True)
        self._data.setdefault('locked', False)
        # Tuples keep the stored list immutable between replacements
        self._data['children'] = tuple(self._data.get('children') or ())

        if self._data['kind'] not in NODE_KINDS:
            raise ValueError(f"Unknown node kind '{self._data['kind']}'")
        if self._data['label'] not in NODE_LABELS:
            raise ValueError(f"Unknown node label '{self._data['label']}'")

    @property
    def id(self) -> str:
        """Stable identifier"""
        return self._data['id']

    @property
    def kind(self) -> str:
        """'root' or 'group'"""
        return self._data['kind']

    @property
    def is_root(self) -> bool:
        return self._data['kind'] == NODE_KIND_ROOT

    @property
    def is_group(self) -> bool:
        return self._data['kind'] == NODE_KIND_GROUP

    @property
    def label(self) -> str:
        """Display label: 'project' or 'layer'"""
        return self._data['label']

    @property
    def name(self) -> str:
        return self._data['name']

    @name.setter
    def name(self, value: str):
        self._data['name'] = str(value)

    @property
    def parent_id(self) -> Optional[str]:
        return self._data['parent_id']

    @parent_id.setter
    def parent_id(self, value: Optional[str]):
        self._data['parent_id'] = value

    @property
    def children(self) -> List[str]:
        """Child node ids (copy)"""
        return list(self._data['children'])

    @property
    def child_count(self) -> int:
        return len(self._data['children'])

    def _replace_children(self, child_ids: List[str]):
        """Swap in a fully-built children list"""
        self._data['children'] = tuple(child_ids)

    def index_of(self, child_id: str) -> int:
        """Index of child id, -1 if not a child"""
        try:
            return self._data['children'].index(child_id)
        except ValueError:
            return -1

    @property
    def expanded(self) -> bool:
        return self._data['expanded']

    @expanded.setter
    def expanded(self, value: bool):
        self._data['expanded'] = bool(value)

    @property
    def locked(self) -> bool:
        """Own lock flag (effective lock also depends on ancestors)"""
        return self._data['locked']

    @locked.setter
    def locked(self, value: bool):
        self._data['locked'] = bool(value)

    def _create_default(self) -> Dict:
        return {
            'id': generate_node_id(),
            'kind': NODE_KIND_GROUP,
            'label': NODE_LABEL_LAYER,
            'name': '',
            'parent_id': None,
            'children': (),
            'expanded': True,
            'locked': False,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Export node to a JSON-friendly dictionary"""
        data = deepcopy(self._data)
        data['children'] = list(data['children'])
        return data

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> 'Node':
        """Create node from a dictionary produced by to_dict()"""
        return cls(deepcopy(data))

    def duplicate(self, new_id: str = None) -> 'Node':
        """Copy of this node with a new id and no children"""
        data = deepcopy(self._data)
        data['id'] = new_id or generate_node_id()
        data['children'] = ()
        return Node(data)

    def __repr__(self) -> str:
        return f"Node(id='{self.id}', kind='{self.kind}', name='{self.name}', children={self.child_count})"
