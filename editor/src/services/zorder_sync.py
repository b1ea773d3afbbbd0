"""
Z-Order Synchronizer

One-way projection from the layers-panel order to renderer paint order.
Front-most rows sit at the top of the panel, so the fully-expanded leaf order
is reversed and each leaf gets its position in that reversed list as its
paint index (0 = backmost). Always a full recompute.
"""

import logging
from typing import List

from models.layer_tree import LayerTree


class ZOrderSynchronizer:
    """Pushes flattened leaf order into the renderer"""

    def __init__(self, renderer):
        self._logger = logging.getLogger('ZOrderSync')
        self.renderer = renderer

    def paint_order(self, tree: LayerTree, leaf_index) -> List[str]:
        """Leaf ids backmost first, as they should be painted"""
        front_first = tree.leaf_order(leaf_index.leaves_by_container())
        return list(reversed(front_first))

    def sync(self, tree: LayerTree, leaf_index) -> List[str]:
        """Assign paint indices 0..N-1 from the tree

        Args:
            tree: Structure to project
            leaf_index: LeafIndex with current memberships

        Returns:
            Leaf ids in the paint order that was pushed (backmost first)
        """
        order = self.paint_order(tree, leaf_index)
        # Ascending pushes: after step i, positions 0..i already hold their final leaves
        for paint_index, leaf_id in enumerate(order):
            leaf = leaf_index.get_leaf(leaf_id)
            if leaf is not None:
                self.renderer.reorder_leaf(leaf, paint_index)

        leaf_index.apply_order(list(reversed(order)))
        self._logger.debug(f"Pushed paint order for {len(order)} leaves")
        return order

    def is_consistent(self, tree: LayerTree, leaf_index) -> bool:
        """True if the renderer already paints in flattened order"""
        expected = self.paint_order(tree, leaf_index)
        actual = [self.renderer.get_leaf_id(leaf) for leaf in self.renderer.enumerate_leaves()]
        return actual == expected
