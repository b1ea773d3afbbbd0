"""
LayerTree Serialization Mixin

Provides dictionary/JSON round-tripping of the tree value so a persistence
collaborator can store it on its own schedule. Leaves are not part of the
document; they carry their own container id in the renderer.
"""

import json
import logging
from typing import Any, Dict

from ._internal.node import Node
from constants import ROOT_NODE_ID, BASE_NODE_ID

FORMAT_VERSION = 1


class LayerTreeSerializationMixin:
    """Mixin providing serialization methods for LayerTree"""

    def to_dict(self) -> Dict[str, Any]:
        """Export tree as a JSON-friendly dictionary

        Nodes are listed depth-first from the root so the document reads in
        panel order.
        """
        return {
            'version': FORMAT_VERSION,
            'root_id': self._root_id,
            'base_id': self._base_id,
            'nodes': [self._nodes[node_id].to_dict() for node_id in self.subtree_ids(self._root_id)],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LayerTree':
        """Build a tree from to_dict() output

        Raises:
            ValueError: If the document is malformed or breaks an invariant
        """
        if not isinstance(data, dict):
            raise ValueError(f"Layer tree document must be an object, got {type(data).__name__}")
        version = data.get('version', FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported layer tree format version {version}")

        try:
            nodes = [Node.parse(entry) for entry in data['nodes']]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed layer tree document: {e}") from e

        tree = cls()
        tree.set_snapshot({
            'root_id': data.get('root_id', ROOT_NODE_ID),
            'base_id': data.get('base_id', BASE_NODE_ID),
            'nodes': [node.to_dict() for node in nodes],
        })

        problems = tree.validate()
        if problems:
            raise ValueError("Invalid layer tree document: " + "; ".join(problems))

        logging.getLogger('LayerTree').debug(f"Parsed layer tree with {len(nodes)} nodes")
        return tree

    @classmethod
    def from_json(cls, text: str) -> 'LayerTree':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Layer tree JSON could not be parsed: {e}") from e
        return cls.from_dict(data)
