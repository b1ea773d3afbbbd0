"""
Tests for the LayerTree store: initial state, structural queries,
invariant checking and the snapshot API.
"""
import pytest

from models.layer_tree import LayerTree, Node, DanglingReference
from constants import ROOT_NODE_ID, BASE_NODE_ID, DEFAULT_ROOT_NAME, DEFAULT_BASE_NAME


# ══════════════════════════════════════════════════════════════════════════
# Initial State
# ══════════════════════════════════════════════════════════════════════════

class TestInitialState:

    def test_root_and_base_exist(self, tree):
        assert tree.root_id == ROOT_NODE_ID
        assert tree.base_id == BASE_NODE_ID
        assert len(tree) == 2

    def test_root_holds_only_base(self, tree):
        assert tree.children(ROOT_NODE_ID) == [BASE_NODE_ID]
        assert tree.parent_of(BASE_NODE_ID) == ROOT_NODE_ID
        assert tree.parent_of(ROOT_NODE_ID) is None

    def test_default_names(self, tree):
        assert tree.get(ROOT_NODE_ID).name == DEFAULT_ROOT_NAME
        assert tree.get(BASE_NODE_ID).name == DEFAULT_BASE_NAME

    def test_custom_names(self):
        tree = LayerTree(root_name="Poster", base_name="Background")
        assert tree.get(tree.root_id).name == "Poster"
        assert tree.get(tree.base_id).name == "Background"

    def test_kinds(self, tree):
        assert tree.get(ROOT_NODE_ID).is_root
        assert tree.get(BASE_NODE_ID).is_group
        assert tree.is_group(BASE_NODE_ID)
        assert not tree.is_group(ROOT_NODE_ID)

    def test_fresh_tree_is_valid(self, tree):
        assert tree.validate() == []


# ══════════════════════════════════════════════════════════════════════════
# Structural Queries
# ══════════════════════════════════════════════════════════════════════════

class TestQueries:

    @pytest.fixture
    def nested(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(g1)
        g3 = tree.create_node(g2)
        return tree, g1, g2, g3

    def test_ancestors_nearest_first(self, nested):
        tree, g1, g2, g3 = nested
        assert tree.ancestors(g3) == [g2, g1, BASE_NODE_ID, ROOT_NODE_ID]
        assert tree.ancestors(ROOT_NODE_ID) == []

    def test_is_descendant(self, nested):
        tree, g1, g2, g3 = nested
        assert tree.is_descendant(g3, g1)
        assert tree.is_descendant(g1, ROOT_NODE_ID)
        assert not tree.is_descendant(g1, g3)
        assert not tree.is_descendant(g1, g1)

    def test_depth_of(self, nested):
        tree, g1, g2, g3 = nested
        assert tree.depth_of(ROOT_NODE_ID) == -1
        assert tree.depth_of(BASE_NODE_ID) == 0
        assert tree.depth_of(g1) == 1
        assert tree.depth_of(g3) == 3
        assert tree.depth_of("missing") == -1

    def test_subtree_ids_preorder(self, nested):
        tree, g1, g2, g3 = nested
        sibling = tree.create_node(g1)
        # create_node puts sibling in front of g2
        assert tree.subtree_ids(g1) == [g1, sibling, g2, g3]
        assert tree.subtree_ids("missing") == []

    def test_unknown_ids(self, tree):
        assert tree.get("missing") is None
        assert tree.children("missing") == []
        assert tree.parent_of("missing") is None
        assert "missing" not in tree

    def test_require_raises_dangling_reference(self, tree):
        with pytest.raises(DanglingReference) as exc_info:
            tree.require("missing")
        assert exc_info.value.node_id == "missing"

    def test_protected(self, tree):
        assert tree.is_protected(ROOT_NODE_ID)
        assert tree.is_protected(BASE_NODE_ID)
        g1 = tree.create_node(tree.base_id)
        assert not tree.is_protected(g1)


# ══════════════════════════════════════════════════════════════════════════
# Invariant Checking
# ══════════════════════════════════════════════════════════════════════════

class TestValidate:

    def test_detects_dangling_parent(self, tree):
        snapshot = tree.get_snapshot()
        for data in snapshot['nodes']:
            if data['id'] == BASE_NODE_ID:
                data['parent_id'] = 'ghost'
        tree.set_snapshot(snapshot)
        problems = tree.validate()
        assert any("dangling parent" in p for p in problems)

    def test_detects_missing_child(self, tree):
        snapshot = tree.get_snapshot()
        for data in snapshot['nodes']:
            if data['id'] == ROOT_NODE_ID:
                data['children'].append('ghost')
        tree.set_snapshot(snapshot)
        assert any("missing child" in p for p in tree.validate())

    def test_detects_cycle(self, tree):
        g1 = tree.create_node(tree.base_id)
        g2 = tree.create_node(g1)
        snapshot = tree.get_snapshot()
        for data in snapshot['nodes']:
            if data['id'] == BASE_NODE_ID:
                data['children'] = []
            if data['id'] == g1:
                data['parent_id'] = g2
            if data['id'] == g2:
                data['children'] = [g1]
        tree.set_snapshot(snapshot)
        problems = tree.validate()
        assert any("unreachable" in p for p in problems)
        # ancestors() must terminate on the corrupt structure
        assert len(tree.ancestors(g1)) <= 2

    def test_detects_self_child(self, tree):
        g1 = tree.create_node(tree.base_id)
        snapshot = tree.get_snapshot()
        for data in snapshot['nodes']:
            if data['id'] == g1:
                data['children'] = [g1]
        tree.set_snapshot(snapshot)
        assert any("does not point back" in p for p in tree.validate())
        assert tree.subtree_ids(g1) == [g1]

    def test_subtree_skips_missing_children(self, tree):
        snapshot = tree.get_snapshot()
        for data in snapshot['nodes']:
            if data['id'] == BASE_NODE_ID:
                data['children'] = ['ghost']
        tree.set_snapshot(snapshot)
        assert tree.subtree_ids(ROOT_NODE_ID) == [ROOT_NODE_ID, BASE_NODE_ID]


# ══════════════════════════════════════════════════════════════════════════
# Snapshots
# ══════════════════════════════════════════════════════════════════════════

class TestSnapshot:

    def test_snapshot_restore(self, tree):
        snapshot = tree.get_snapshot()
        g1 = tree.create_node(tree.base_id)
        tree.rename_node(tree.base_id, "Renamed")
        tree.set_snapshot(snapshot)
        assert g1 not in tree
        assert tree.get(tree.base_id).name != "Renamed"
        assert tree.validate() == []

    def test_snapshot_is_deep(self, tree):
        snapshot = tree.get_snapshot()
        tree.create_node(tree.base_id)
        base_data = next(d for d in snapshot['nodes'] if d['id'] == BASE_NODE_ID)
        assert base_data['children'] == []

    def test_copy_is_independent(self, tree):
        g1 = tree.create_node(tree.base_id)
        clone = tree.copy()
        clone.delete_node(g1)
        assert g1 in tree
        assert g1 not in clone


# ══════════════════════════════════════════════════════════════════════════
# Node Record
# ══════════════════════════════════════════════════════════════════════════

class TestNode:

    def test_generated_id_format(self):
        node = Node()
        assert node.id.startswith("node_")
        assert len(node.id) == len("node_") + 9

    def test_children_is_a_copy(self):
        node = Node({'children': ['a', 'b']})
        children = node.children
        children.append('c')
        assert node.children == ['a', 'b']

    def test_rejects_unknown_kind(self):
        with pytest.raises(ValueError):
            Node({'kind': 'folder'})

    def test_duplicate_drops_children(self):
        node = Node({'name': 'Group-1', 'children': ['x']})
        copy = node.duplicate()
        assert copy.id != node.id
        assert copy.name == 'Group-1'
        assert copy.children == []

    def test_dict_roundtrip(self):
        node = Node({'name': 'Outlines', 'children': ['x'], 'locked': True})
        parsed = Node.parse(node.to_dict())
        assert parsed.to_dict() == node.to_dict()
