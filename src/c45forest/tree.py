# -*- coding: utf-8 -*-
"""
c45forest.tree
==============

ID3 and C4.5 decision tree classifiers with a scikit‑learn–like API.

Both estimators induce a multi‑way tree top‑down: at every node the feature
with the highest information gain is chosen, the node branches once per
distinct value of that feature (or twice, below/above a threshold, for
continuous features under C4.5) and the feature is not reused further down
that path.  Growth stops at pure enough nodes (``cutoff``), at the height
limit (``height``), when the features run out, or when no feature carries
information; in the latter case the branch is simply left out and
prediction falls back to the majority class of the deepest node reached.

Trained trees can be simplified afterwards with :meth:`prune`, inspected with
:meth:`print_tree`, :meth:`export_rules` and :meth:`export_graphviz`, and
scored on their leaves with :meth:`calc_entropy`.

Labels are class indices ``0 .. k-1``.  Categorical features must hold
integer codes; C4.5 accepts any real values for the columns listed in
``continuous_features``.
"""

from __future__ import annotations
import logging
import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from .config import TreeConfig, check_class_names
from .criterion import entropy, find_best, frequency
from .pruning import prune as _prune_tree
from .structure import DecisionTreeStructure

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def check_X_y(X, y, n_classes=None) -> tuple[np.ndarray, np.ndarray, int]:
    """Convert ``X``/``y`` to float/int arrays and work out the number of classes."""
    X = np.asarray(X, dtype=float)
    y = np.asarray(y)
    if X.ndim != 2:
        raise ValueError(f"X must be a 2-D matrix, got shape {X.shape}")
    if y.ndim != 1 or len(y) != len(X):
        raise ValueError("y must be a vector with one label per row of X")
    if len(y) == 0:
        raise ValueError("cannot train on an empty dataset")
    if np.isnan(X).any():
        raise ValueError("X contains missing values, which are not supported")
    if np.isinf(X).any():
        raise ValueError("X contains infinite values, which are not supported")
    yi = y.astype(np.int64)
    if not np.array_equal(yi, y):
        raise ValueError("class labels must be integers 0 .. k-1")
    k = int(n_classes) if n_classes is not None else int(yi.max()) + 1
    if yi.min() < 0 or yi.max() >= k:
        raise ValueError(f"class labels must lie in [0, {k})")
    return X, yi, k


def check_feature_names(feature_names, n_features) -> list[str]:
    if feature_names is None:
        return [f"f{i}" for i in range(n_features)]
    if len(feature_names) != n_features:
        raise ValueError("feature_names length must match X.shape[1]")
    return [str(f) for f in feature_names]


def resolve_features(features, feature_names, n_features) -> frozenset:
    """Map feature indices or names to a set of column indices."""
    if features is None:
        return frozenset()
    features = list(features)
    if len(features) and isinstance(features[0], str):
        name_to_idx = {n: i for i, n in enumerate(feature_names)}
        unknown = [f for f in features if f not in name_to_idx]
        if unknown:
            raise ValueError(f"unknown feature names {unknown}; "
                             "feature_names must be provided when selecting features by name")
        idx = [name_to_idx[f] for f in features]
    else:
        idx = [int(f) for f in features]
    bad = [j for j in idx if not 0 <= j < n_features]
    if bad:
        raise ValueError(f"feature indices {bad} out of range for {n_features} features")
    return frozenset(idx)


def check_categorical(X, continuous, feature_names) -> None:
    """Categorical columns branch on their values, so they must hold integer codes."""
    for j in range(X.shape[1]):
        if j in continuous:
            continue
        col = X[:, j]
        if not np.array_equal(col, np.round(col)):
            raise ValueError(f"categorical feature {feature_names[j]!r} holds "
                             "non-integer values; declare it continuous")


# -----------------------------------------------------------------------------
# Base classifier
# -----------------------------------------------------------------------------
class _BaseDecisionTree(ClassifierMixin, BaseEstimator):
    """Shared induction, prediction and export logic for ID3 and C4.5."""

    def _tree_config(self) -> TreeConfig:
        return TreeConfig(height=self.height, cutoff=self.cutoff)

    def _resolve_continuous(self, n_features) -> frozenset:
        return frozenset()

    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _check_input(self, X) -> np.ndarray:
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.ndim != 2 or X.shape[1] != self.n_features_:
            raise ValueError(f"X must have {self.n_features_} columns, got shape {X.shape}")
        return X

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def fit(self, X, y, feature_names=None):
        """
        Build the decision tree from the training matrix ``X`` and labels ``y``.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training data.  Categorical columns hold integer codes.
        y : array-like of shape (n_samples,)
            Class indices in ``[0, k)``.
        feature_names : list[str], optional
            Overrides the names given at construction time.

        Returns
        -------
        self
        """
        config = self._tree_config()
        X, y, k = check_X_y(X, y, self.n_classes)
        m, n = X.shape

        names = feature_names if feature_names is not None else self.feature_names
        self.feature_names_ = check_feature_names(names, n)
        self.n_classes_ = k
        self.classes_ = np.arange(k)
        self.class_names_ = check_class_names(self.class_names, k)
        self.n_features_ = n
        self.n_features_in_ = n
        self.continuous_features_ = self._resolve_continuous(n)
        check_categorical(X, self.continuous_features_, self.feature_names_)
        self.feature_values_ = [np.unique(X[:, j]) for j in range(n)]
        self.feature_order_ = []

        self.tree_ = DecisionTreeStructure(k)
        rindex = np.arange(m)
        cindex = np.arange(n)
        self._build_tree(X, y, rindex, cindex, config)
        logger.debug("fit: entropy of root = %.4f, entropy of the %d leaves = %.4f",
                     entropy(self.tree_.nodes[self.tree_.root].freq),
                     len(self.tree_.leaves), self.tree_.calc_entropy())
        return self

    def _build_tree(self, X, y, rindex, cindex, config: TreeConfig,
                    parent: int | None = None, depth: int = 0) -> int | None:
        """
        Recursively build the subtree for rows ``rindex`` over columns ``cindex``.

        Returns the id of the subtree's root, or ``None`` when the rows are
        empty or no column yields a positive gain below the root; the caller
        then leaves that branch out.
        """
        if rindex.size == 0:
            return None
        tree = self.tree_
        k = self.n_classes_
        nu = frequency(y, rindex, k)

        if cindex.size == 0 or entropy(nu) <= config.cutoff or depth >= config.height:
            node = tree.new_node(feature=-1, gain=0.0, freq=nu, parent=parent, is_leaf=True)
            if parent is None:
                tree.add_root(node)
            return node

        best = find_best(X, y, rindex, cindex, k, self.continuous_features_)
        logger.debug("_build_tree: best feature (j, gn, nu) = (%d, %.4f, %s), depth = %d",
                     best.feature, best.gain, best.freq.tolist(), depth)
        if best.feature < 0:
            if parent is not None:
                return None
            node = tree.new_node(feature=-1, gain=0.0, freq=nu, is_leaf=True)
            tree.add_root(node)
            return node

        j = best.feature
        self.feature_order_.append(j)
        node = tree.new_node(feature=j, gain=best.gain, freq=best.freq, parent=parent,
                             threshold=best.threshold)
        xj = X[:, j]
        cindex2 = cindex[cindex != j]
        for v in self._branch_values(j, best.threshold):
            rindex2 = self._trim_rows(xj, rindex, v, best.threshold)
            child = self._build_tree(X, y, rindex2, cindex2, config, node, depth + 1)
            if child is not None:
                tree.add(node, v, child)

        if not tree.nodes[node].branches:
            # no child was kept, so nothing below recorded a split after ours
            self.feature_order_.pop()
            tree.nodes[node].is_leaf = True
            tree.nodes[node].threshold = None
            logger.debug("_build_tree: node %d on feature %d kept no branch, made a leaf", node, j)
        if parent is None:
            tree.add_root(node)
        return node

    def _branch_values(self, j: int, threshold: float | None):
        if threshold is not None:
            return (0, 1)
        return [int(v) for v in self.feature_values_[j]]

    @staticmethod
    def _trim_rows(xj: np.ndarray, rindex: np.ndarray, v: int, threshold: float | None) -> np.ndarray:
        """Rows of ``rindex`` following branch ``v`` (value match, or side of the threshold)."""
        vals = xj[rindex]
        if threshold is not None:
            mask = vals <= threshold if v == 0 else vals > threshold
        else:
            mask = vals == v
        return rindex[mask]

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def predict_one(self, z) -> int:
        """Classify a single feature vector, returning its class index."""
        self._check_fitted()
        return self.tree_.predict(self._check_input(z)[0])

    def predict(self, X):
        """
        Predict class indices for the rows of ``X``.

        A row whose value at some node has no matching branch gets the
        majority class of that node.

        Returns
        -------
        ndarray of shape (n_samples,)
        """
        self._check_fitted()
        X = self._check_input(X)
        return np.array([self.tree_.predict(x) for x in X], dtype=np.int64)

    def predict_proba(self, X):
        """Class frequencies of the node each row ends in, normalised to sum to one."""
        self._check_fitted()
        X = self._check_input(X)
        proba = np.array([self.tree_.nodes[self.tree_.descend(x)].freq for x in X], dtype=float)
        row_sum = proba.sum(axis=1, keepdims=True)
        row_sum[row_sum == 0] = 1.0
        return proba / row_sum

    def apply(self, X):
        """Id of the node where each row's decision path stops."""
        self._check_fitted()
        X = self._check_input(X)
        return np.array([self.tree_.descend(x) for x in X], dtype=np.int64)

    def classify(self, z) -> tuple[int, str, float]:
        """Return ``(class index, class name, probability)`` for a single vector."""
        self._check_fitted()
        node = self.tree_.nodes[self.tree_.descend(self._check_input(z)[0])]
        c = node.majority_class
        name = self.class_names_[c] if self.class_names_ is not None else str(c)
        return c, name, float(node.freq[c] / max(node.n_samples, 1))

    # ------------------------------------------------------------------
    # Entropy / pruning
    # ------------------------------------------------------------------
    def calc_entropy(self, nodes=None) -> float:
        """Size‑weighted entropy over ``nodes`` (node ids; defaults to the leaves)."""
        self._check_fitted()
        return self.tree_.calc_entropy(nodes)

    def prune(self, n_prune: int = 1, threshold: float = 0.98) -> int:
        """
        Prune up to ``n_prune`` nodes, those providing the least gain.

        A node is only pruned if all its children are leaves and its gain is
        below ``threshold``.  Returns the number of nodes turned into leaves.
        """
        self._check_fitted()
        return _prune_tree(self.tree_, n_prune, threshold)

    # ------------------------------------------------------------------
    # Printing / rules / Graphviz
    # ------------------------------------------------------------------
    def _names(self, feature_names, class_names):
        fn = feature_names if feature_names is not None else self.feature_names_
        cn = class_names if class_names is not None else self.class_names_
        return fn, cn

    def export_text(self, feature_names=None, class_names=None) -> str:
        """Return the tree as indented ``if/elif/else`` text."""
        self._check_fitted()
        fn, cn = self._names(feature_names, class_names)
        return "\n".join(self.tree_.text_lines(fn, cn))

    def print_tree(self, feature_names=None, class_names=None):
        """
        Pretty‑print the decision tree to ``stdout``.

        Each internal node lists one ``if``/``elif`` line per branch and a
        closing ``else`` with the node's own majority class, which is what an
        unseen value gets.
        """
        print("Decision Tree:")
        print(self.export_text(feature_names, class_names))

    def export_rules(self, *, feature_names=None, class_names=None) -> list[str]:
        """
        Export every root‑to‑leaf path as ``<antecedent> => <class>``.

        Returns
        -------
        list[str]
            One rule per leaf, in depth‑first order.
        """
        self._check_fitted()
        fn, cn = self._names(feature_names, class_names)
        return self.tree_.collect_rules(fn, cn)

    def predict_rule(self, X, feature_names=None) -> list[str]:
        """Return the conjunction of conditions each row follows from the root."""
        self._check_fitted()
        X = self._check_input(X)
        fn, _ = self._names(feature_names, None)
        return [self.tree_.trace_rule(x, fn) for x in X]

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        class_names=None, format: str = "png") -> str:
        """
        Export the tree structure in Graphviz format.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file.  If None, the DOT source is returned
            and nothing is written.
        feature_names, class_names : list[str], optional
            Names used in the node labels.
        format : str, default="png"
            Output format.  ``'dot'`` writes the DOT source directly without
            calling the external ``dot`` binary; for other formats a missing
            binary falls back to writing a ``.dot`` file.

        Returns
        -------
        str
            Path to the written file, or the DOT source if filename is None.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        fn, cn = self._names(feature_names, class_names)
        dot = graphviz.Digraph(format=format)
        self.tree_.add_graph_nodes(dot, fn, cn)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            logger.warning("export_graphviz: dot executable not found, writing DOT source instead")
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path


# -----------------------------------------------------------------------------
# Classifiers
# -----------------------------------------------------------------------------
class ID3Classifier(_BaseDecisionTree):
    """
    Decision tree classifier using Quinlan's ID3 algorithm.

    Every feature is categorical: a split creates one branch per distinct
    value seen in training.

    Parameters
    ----------
    height : int, default=4
        Maximum number of edges on any root‑to‑leaf path.
    cutoff : float, default=0.01
        Nodes whose class entropy is at or below this value become leaves.
    n_classes : int or None, default=None
        Number of classes *k*.  Inferred as ``max(y) + 1`` when None.
    feature_names : list[str] or None, default=None
        Names used by the printing and export helpers.
    class_names : list[str] or None, default=None
        One name per class, used by :meth:`classify` and the exports.

    Attributes
    ----------
    tree_ : DecisionTreeStructure
        The trained tree.
    feature_order_ : list[int]
        Features in the order they were chosen for splits.
    feature_values_ : list[ndarray]
        Distinct training values (branch values) of each column.
    """

    def __init__(self, *, height: int = 4, cutoff: float = 0.01, n_classes: int | None = None,
                 feature_names: list[str] | None = None, class_names: list[str] | None = None):
        self.height = height
        self.cutoff = cutoff
        self.n_classes = n_classes
        self.feature_names = feature_names
        self.class_names = class_names
        self._tree_config()
        check_class_names(class_names, n_classes)


class C45Classifier(_BaseDecisionTree):
    """
    Decision tree classifier using the C4.5 algorithm.

    Extends ID3 with continuous features: for the columns listed in
    ``continuous_features`` the best binary threshold is searched at every
    node and the split produces branch 0 (``<= threshold``) and branch 1
    (``> threshold``).

    Parameters
    ----------
    height : int, default=4
        Maximum number of edges on any root‑to‑leaf path.
    cutoff : float, default=0.01
        Nodes whose class entropy is at or below this value become leaves.
    continuous_features : list[int|str] or None, default=None
        Indices or names of continuous features.  Names require
        ``feature_names``.  All other features are categorical.
    n_classes : int or None, default=None
        Number of classes *k*.  Inferred as ``max(y) + 1`` when None.
    feature_names : list[str] or None, default=None
        Names used by the printing and export helpers.
    class_names : list[str] or None, default=None
        One name per class.
    """

    def __init__(self, *, height: int = 4, cutoff: float = 0.01,
                 continuous_features: list[int | str] | None = None,
                 n_classes: int | None = None, feature_names: list[str] | None = None,
                 class_names: list[str] | None = None):
        self.height = height
        self.cutoff = cutoff
        self.continuous_features = continuous_features
        self.n_classes = n_classes
        self.feature_names = feature_names
        self.class_names = class_names
        self._tree_config()
        check_class_names(class_names, n_classes)

    def _resolve_continuous(self, n_features) -> frozenset:
        return resolve_features(self.continuous_features, self.feature_names_, n_features)
