"""
c45forest.structure
===================

Arena representation of a multi‑way decision tree.

Nodes live in a flat list owned by :class:`DecisionTreeStructure` and refer to
each other by integer id: a node stores the id of its parent and a mapping
from branch value to child id.  Categorical nodes branch on the raw integer
value of their feature; continuous nodes branch on ``0`` (value <= threshold)
and ``1`` (value > threshold).

The structure also keeps the *leaf set*, the ordered list of leaf ids
reachable from the root, which the pruner and the entropy aggregation work
from.  Pruning only ever turns an internal node into a leaf; the detached
descendants stay in the arena but are no longer reachable.
"""

from __future__ import annotations
from typing import Iterator
import logging
import numpy as np

from .criterion import entropy

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Node
# -----------------------------------------------------------------------------
class Node:
    """A single vertex of the tree.

    Parameters
    ----------
    feature : int
        Column used to split at this node, ``-1`` for a leaf created without
        a split.
    gain : float
        Information gain recorded when the node was created.
    freq : ndarray of shape (k,)
        Class counts of the training rows that reached the node.
    parent : int or None
        Id of the parent node (``None`` for the root).
    is_leaf : bool
        Whether the node is terminal.
    threshold : float or None
        Split threshold for continuous internal nodes.

    Attributes
    ----------
    branches : dict
        Mapping ``{branch value: child id}`` kept in ascending branch order.
    branch_value : int or None
        Value on the edge from the parent to this node.
    """

    __slots__ = ("feature", "gain", "freq", "parent", "is_leaf", "threshold",
                 "branches", "branch_value")

    def __init__(self, *, feature: int, gain: float, freq: np.ndarray,
                 parent: int | None = None, is_leaf: bool = False,
                 threshold: float | None = None):
        self.feature = int(feature)
        self.gain = float(gain)
        self.freq = np.asarray(freq, dtype=np.int64)
        self.parent = parent
        self.is_leaf = bool(is_leaf)
        self.threshold = None if threshold is None else float(threshold)
        self.branches: dict[int, int] = {}
        self.branch_value: int | None = None

    @property
    def majority_class(self) -> int:
        return int(np.argmax(self.freq))

    @property
    def n_samples(self) -> int:
        return int(self.freq.sum())

    def branch_for(self, value) -> int | None:
        """Branch value an input ``value`` follows, or ``None`` if it cannot be mapped."""
        try:
            value = float(value)
        except (TypeError, ValueError):
            return None
        if not np.isfinite(value):
            return None
        if self.threshold is not None:
            return 0 if value <= self.threshold else 1
        if value != int(value):
            return None
        return int(value)

    def __repr__(self):
        thr = f", threshold={self.threshold}" if self.threshold is not None else ""
        return (f"Node(feature={self.feature}, gain={self.gain:.4f}, freq={self.freq.tolist()}, "
                f"leaf={self.is_leaf}{thr})")


# -----------------------------------------------------------------------------
# Tree structure
# -----------------------------------------------------------------------------
class DecisionTreeStructure:
    """Root, node arena and leaf set of a trained tree."""

    def __init__(self, n_classes: int):
        self.n_classes = int(n_classes)
        self.nodes: list[Node] = []
        self.root: int | None = None
        self.leaves: list[int] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def new_node(self, **kwargs) -> int:
        self.nodes.append(Node(**kwargs))
        return len(self.nodes) - 1

    def add_root(self, n: int) -> None:
        self.root = n
        if self.nodes[n].is_leaf and n not in self.leaves:
            self.leaves.append(n)

    def add(self, n: int, v: int, c: int) -> None:
        """Attach child ``c`` under branch ``v`` of node ``n``."""
        child = self.nodes[c]
        child.branch_value = int(v)
        child.parent = n
        branches = self.nodes[n].branches
        branches[int(v)] = c
        self.nodes[n].branches = dict(sorted(branches.items()))
        if child.is_leaf:
            self.leaves.append(c)

    def make_leaf(self, n: int) -> bool:
        """Turn internal node ``n`` into a leaf, dropping everything below it."""
        node = self.nodes[n]
        if node.is_leaf:
            logger.debug("make_leaf: node %d already is a leaf", n)
            return False
        below = set(self.iter_nodes(n)) - {n}
        self.leaves = [l for l in self.leaves if l not in below]
        node.branches = {}
        node.is_leaf = True
        self.leaves.append(n)
        return True

    def leaf_children(self, n: int) -> bool:
        return all(self.nodes[c].is_leaf for c in self.nodes[n].branches.values())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def iter_nodes(self, start: int | None = None) -> Iterator[int]:
        """Depth‑first (pre‑order) ids of the nodes reachable from ``start``."""
        start = self.root if start is None else start
        if start is None:
            return
        stack = [start]
        while stack:
            n = stack.pop()
            yield n
            stack.extend(reversed(list(self.nodes[n].branches.values())))

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    @property
    def height(self) -> int:
        def _height(n):
            kids = self.nodes[n].branches.values()
            return 0 if not kids else 1 + max(_height(c) for c in kids)
        return 0 if self.root is None else _height(self.root)

    def depth(self, n: int) -> int:
        d = 0
        while self.nodes[n].parent is not None:
            n = self.nodes[n].parent
            d += 1
        return d

    def calc_entropy(self, nodes=None) -> float:
        """
        Size‑weighted mean entropy of ``nodes`` (defaults to the leaves).

        Computed as ``sum(n_i * H(freq_i)) / sum(n_i)`` with ``n_i`` the
        number of training rows that reached node *i*.
        """
        nodes = self.leaves if nodes is None else nodes
        total, ent = 0.0, 0.0
        for n in nodes:
            node = self.nodes[n]
            total += node.n_samples
            ent += node.n_samples * entropy(node.freq)
        logger.debug("calc_entropy: number of nodes = %d, sum = %s, ent = %s",
                     len(nodes), total, ent)
        return ent / total if total > 0 else 0.0

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def descend(self, z, n: int | None = None) -> int:
        """Id of the node where the decision path for ``z`` stops.

        That is a leaf, or the internal node whose branch for ``z`` is
        missing (unseen categorical value, NaN, ...).
        """
        n = self.root if n is None else n
        node = self.nodes[n]
        if node.is_leaf:
            return n
        child = node.branches.get(node.branch_for(z[node.feature]))
        if child is None:
            return n
        return self.descend(z, child)

    def predict(self, z) -> int:
        """Majority class of the node where ``z``'s decision path stops."""
        return self.nodes[self.descend(z)].majority_class

    # ------------------------------------------------------------------
    # Printing / rules / Graphviz
    # ------------------------------------------------------------------
    @staticmethod
    def _name(j: int, fn) -> str:
        return fn[j] if (fn is not None and 0 <= j < len(fn)) else f"X[{j}]"

    @staticmethod
    def _class(c: int, cn) -> str:
        return cn[c] if cn is not None else str(c)

    def _condition(self, node: Node, v: int, fn) -> str:
        name = self._name(node.feature, fn)
        if node.threshold is not None:
            op = "<=" if v == 0 else ">"
            return f"{name} {op} {node.threshold:.4f}"
        return f"{name} == {v}"

    def text_lines(self, fn=None, cn=None, n: int | None = None, indent: str = "") -> list[str]:
        n = self.root if n is None else n
        node = self.nodes[n]
        if node.is_leaf:
            return [f"{indent}Predict {self._class(node.majority_class, cn)} | freq={node.freq.tolist()}"]
        lines = []
        for i, (v, c) in enumerate(node.branches.items()):
            kw = "if" if i == 0 else "elif"
            lines.append(f"{indent}{kw} {self._condition(node, v, fn)}:")
            lines.extend(self.text_lines(fn, cn, c, indent + "  "))
        # branches absent from the map fall back to this node's majority
        lines.append(f"{indent}else:")
        lines.append(f"{indent}  Predict {self._class(node.majority_class, cn)} | freq={node.freq.tolist()}")
        return lines

    def collect_rules(self, fn=None, cn=None) -> list[str]:
        rules: list[str] = []

        def _collect(n, parts):
            node = self.nodes[n]
            if node.is_leaf:
                body = " AND ".join(parts) if parts else "<root>"
                rules.append(f"{body} => {self._class(node.majority_class, cn)}")
                return
            for v, c in node.branches.items():
                _collect(c, parts + [self._condition(node, v, fn)])

        if self.root is not None:
            _collect(self.root, [])
        return rules

    def trace_rule(self, z, fn=None) -> str:
        parts = []
        n = self.root
        while True:
            node = self.nodes[n]
            if node.is_leaf:
                break
            v = node.branch_for(z[node.feature])
            child = node.branches.get(v)
            if child is None:
                break
            parts.append(self._condition(node, v, fn))
            n = child
        return " AND ".join(parts) if parts else "<root>"

    def add_graph_nodes(self, dot, fn=None, cn=None) -> None:
        for n in self.iter_nodes():
            node = self.nodes[n]
            name = f"n{n}"
            if node.is_leaf:
                dot.node(name, f"class={self._class(node.majority_class, cn)}\nfreq={node.freq.tolist()}",
                         shape="box", style="filled", color="lightgrey")
                continue
            fname = self._name(node.feature, fn)
            label = f"{fname} <= {node.threshold:.4f}" if node.threshold is not None else fname
            dot.node(name, f"{label}\ngain={node.gain:.4f}", shape="ellipse", style="filled",
                     color="lightblue")
            for v, c in node.branches.items():
                if node.threshold is not None:
                    edge = "True" if v == 0 else "False"
                else:
                    edge = f"= {v}"
                dot.edge(name, f"n{c}", label=edge)
