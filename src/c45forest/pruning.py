"""
c45forest.pruning
=================

Post‑training simplification of a tree by collapsing low‑gain internal nodes.

Only nodes whose children are all leaves are eligible.  Each iteration picks
the eligible node with the smallest recorded information gain and, when that
gain is below ``threshold``, turns it into a leaf.  Candidates are recomputed
from scratch on every iteration.
"""

from __future__ import annotations
import logging
import math

from .structure import DecisionTreeStructure

logger = logging.getLogger(__name__)


def candidates(tree: DecisionTreeStructure) -> list[int]:
    """Parents of leaves whose every child is a leaf, in leaf order."""
    can: list[int] = []
    for n in tree.leaves:
        p = tree.nodes[n].parent
        if p is not None and p not in can and tree.leaf_children(p):
            can.append(p)
    return can


def best_candidate(tree: DecisionTreeStructure, can: list[int]) -> tuple[int | None, float]:
    """The candidate with the least gain (first on ties) and that gain."""
    best, least = None, math.inf
    for n in can:
        if tree.nodes[n].gain < least:
            best, least = n, tree.nodes[n].gain
    return best, least


def prune(tree: DecisionTreeStructure, n_prune: int = 1, threshold: float = 0.98) -> int:
    """
    Prune up to ``n_prune`` nodes from ``tree``, the ones providing the least gain.

    Parameters
    ----------
    tree : DecisionTreeStructure
        Tree to simplify in place.
    n_prune : int, default=1
        Number of pruning iterations; each makes at most one node a leaf.
    threshold : float, default=0.98
        A candidate is pruned only if its gain is below this value.

    Returns
    -------
    int
        Number of internal nodes turned into leaves.
    """
    pruned = 0
    for _ in range(int(n_prune)):
        best, gn = best_candidate(tree, candidates(tree))
        if best is None:
            logger.debug("prune: no candidates left")
            break
        logger.debug("prune: node %d with gain %.4f identified as best candidate", best, gn)
        if gn < threshold and tree.make_leaf(best):
            logger.debug("prune: made node %d with gain %.4f into a leaf", best, gn)
            pruned += 1
    return pruned
