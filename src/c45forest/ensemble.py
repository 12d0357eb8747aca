"""
c45forest.ensemble
==================

Bootstrap ensembles of C4.5 trees.

:class:`BaggingTreesClassifier` trains ``n_trees`` trees, each on
``b_ratio * m`` rows drawn with replacement, and classifies by majority vote.
:class:`RandomForestClassifier` additionally restricts every tree to
``fb_ratio * n`` columns drawn without replacement and remembers them, so a
query row is projected onto each tree's own columns before that tree votes.

Tree *l* draws its rows (and columns) from a random stream seeded with
``random_state + l``; with the default ``random_state=0`` the seed is just
the tree index.  Trees are independent, so they can be built on a thread
pool (``n_jobs``) and the result is identical to a sequential build.
"""

from __future__ import annotations
import logging
import numpy as np
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils import check_random_state

from .config import EnsembleConfig, TreeConfig, check_class_names
from .tree import (C45Classifier, check_X_y, check_categorical, check_feature_names,
                   resolve_features)

logger = logging.getLogger(__name__)


def _parallel_build_trees(ensemble, X, y, k, sample_size, l):
    """Private function used to fit a single tree in parallel."""
    try:
        return ensemble._fit_member(X, y, k, sample_size, l)
    except Exception:
        logger.exception("%s: tree %d failed to build and is left out of the vote",
                         type(ensemble).__name__, l)
        return None, None


class BaggingTreesClassifier(ClassifierMixin, BaseEstimator):
    """
    Bagging of C4.5 decision trees (row subsampling only).

    Parameters
    ----------
    n_trees : int, default=11
        Number of trees; an odd number avoids most tied votes.
    b_ratio : float, default=0.7
        Fraction of the rows drawn, with replacement, for each tree.  Must lie
        strictly inside (0, 1).
    height : int, default=4
        Height limit of each tree.
    cutoff : float, default=0.01
        Entropy cutoff of each tree.
    continuous_features : list[int|str] or None, default=None
        Indices or names of continuous features.
    n_classes : int or None, default=None
        Number of classes *k*; inferred from ``y`` when None.
    feature_names, class_names : list[str] or None
        Passed on to every tree.
    random_state : int, default=0
        Base seed; tree *l* uses ``random_state + l``.
    n_jobs : int or None, default=None
        Number of threads building trees (``None`` builds sequentially,
        ``-1`` uses all processors).
    verbose : int, default=0
        Verbosity of the joblib build loop.

    Attributes
    ----------
    estimators_ : list[C45Classifier or None]
        One slot per tree index; ``None`` if that tree failed to build.
    features_ : list[ndarray or None]
        Columns each tree was trained on.
    """

    def __init__(self, *, n_trees: int = 11, b_ratio: float = 0.7, height: int = 4,
                 cutoff: float = 0.01, continuous_features=None, n_classes: int | None = None,
                 feature_names=None, class_names=None, random_state: int = 0,
                 n_jobs: int | None = None, verbose: int = 0):
        self.n_trees = n_trees
        self.b_ratio = b_ratio
        self.height = height
        self.cutoff = cutoff
        self.continuous_features = continuous_features
        self.n_classes = n_classes
        self.feature_names = feature_names
        self.class_names = class_names
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.verbose = verbose
        self._ensemble_config()
        TreeConfig(height=height, cutoff=cutoff)
        check_class_names(class_names, n_classes)

    def _ensemble_config(self) -> EnsembleConfig:
        return EnsembleConfig(n_trees=self.n_trees, b_ratio=self.b_ratio)

    def _seed(self, l: int) -> int:
        return (0 if self.random_state is None else int(self.random_state)) + l

    def _n_feats(self, n_features: int) -> int:
        return n_features

    def _select_columns(self, rng, n_features: int) -> np.ndarray:
        return np.arange(n_features)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------
    def fit(self, X, y):
        """
        Build the trees, each on its own bootstrap sample.

        Raises
        ------
        ValueError
            If the data is malformed or the ratios leave a tree with no rows
            or no columns.
        RuntimeError
            If every tree failed to build.
        """
        config = self._ensemble_config()
        X, y, k = check_X_y(X, y, self.n_classes)
        m, n = X.shape
        self.n_classes_ = k
        self.classes_ = np.arange(k)
        self.class_names_ = check_class_names(self.class_names, k)
        self.n_features_ = n
        self.n_features_in_ = n
        self.feature_names_ = check_feature_names(self.feature_names, n)
        self.continuous_features_ = resolve_features(self.continuous_features,
                                                     self.feature_names_, n)
        check_categorical(X, self.continuous_features_, self.feature_names_)

        sample_size = int(config.b_ratio * m)
        if sample_size < 1:
            raise ValueError(f"b_ratio={config.b_ratio} leaves no rows to sample from {m} rows")
        self._n_feats(n)

        results = Parallel(n_jobs=self.n_jobs, verbose=self.verbose, prefer="threads")(
            delayed(_parallel_build_trees)(self, X, y, k, sample_size, l)
            for l in range(config.n_trees)
        )
        self.estimators_ = [tree for tree, _ in results]
        self.features_ = [cols for _, cols in results]

        built = sum(tree is not None for tree in self.estimators_)
        if built == 0:
            raise RuntimeError(f"{type(self).__name__}: none of the {config.n_trees} trees could be built")
        if built < config.n_trees:
            logger.warning("%s: only %d of %d trees were built", type(self).__name__, built,
                           config.n_trees)
        logger.info("%s: built %d trees on %d rows each", type(self).__name__, built, sample_size)
        return self

    def _fit_member(self, X, y, k, sample_size, l):
        """Fit tree ``l`` on its row sample (and column subset), returning it with its columns."""
        rng = check_random_state(self._seed(l))
        irows = rng.randint(0, X.shape[0], sample_size)
        columns = self._select_columns(rng, X.shape[1])

        position = {int(c): i for i, c in enumerate(columns)}
        conts = sorted(position[c] for c in self.continuous_features_ if c in position)
        tree = C45Classifier(
            height=self.height,
            cutoff=self.cutoff,
            continuous_features=conts,
            n_classes=k,
            feature_names=[self.feature_names_[c] for c in columns],
            class_names=self.class_names_,
        )
        tree.fit(X[irows][:, columns], y[irows])
        logger.debug("_fit_member: tree %d on columns %s has %d leaves", l, columns.tolist(),
                     len(tree.tree_.leaves))
        return tree, columns

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def _check_fitted(self):
        if not getattr(self, "estimators_", None):
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _votes(self, X) -> np.ndarray:
        self._check_fitted()
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.ndim != 2 or X.shape[1] != self.n_features_:
            raise ValueError(f"X must have {self.n_features_} columns, got shape {X.shape}")
        votes = np.zeros((len(X), self.n_classes_), dtype=np.int64)
        rows = np.arange(len(X))
        for tree, columns in zip(self.estimators_, self.features_):
            if tree is None:
                continue
            votes[rows, tree.predict(X[:, columns])] += 1
        return votes

    def predict(self, X):
        """Majority vote of the trees for each row (lowest class index wins ties)."""
        return np.argmax(self._votes(X), axis=1)

    def predict_one(self, z) -> int:
        """Classify a single feature vector by majority vote."""
        return int(self.predict(np.asarray(z, dtype=float).reshape(1, -1))[0])

    def predict_proba(self, X):
        """Fraction of the trees voting for each class."""
        votes = self._votes(X).astype(float)
        return votes / votes.sum(axis=1, keepdims=True)

    def classify(self, z) -> tuple[int, str, float]:
        """Return ``(class index, class name, vote fraction)`` for a single vector."""
        proba = self.predict_proba(np.asarray(z, dtype=float).reshape(1, -1))[0]
        c = int(np.argmax(proba))
        name = self.class_names_[c] if self.class_names_ is not None else str(c)
        return c, name, float(proba[c])


class RandomForestClassifier(BaggingTreesClassifier):
    """
    Random forest of C4.5 trees: bagging plus per‑tree feature subspaces.

    Each tree sees ``int(fb_ratio * n_features)`` columns chosen without
    replacement; ``features_[l]`` records them (ascending) and prediction
    projects every query onto them before consulting tree *l*.

    Parameters
    ----------
    fb_ratio : float, default=0.7
        Fraction of the columns given to each tree, strictly inside (0, 1).

    See :class:`BaggingTreesClassifier` for the remaining parameters.
    """

    def __init__(self, *, n_trees: int = 11, b_ratio: float = 0.7, fb_ratio: float = 0.7,
                 height: int = 4, cutoff: float = 0.01, continuous_features=None,
                 n_classes: int | None = None, feature_names=None, class_names=None,
                 random_state: int = 0, n_jobs: int | None = None, verbose: int = 0):
        self.fb_ratio = fb_ratio
        super().__init__(n_trees=n_trees, b_ratio=b_ratio, height=height, cutoff=cutoff,
                         continuous_features=continuous_features, n_classes=n_classes,
                         feature_names=feature_names, class_names=class_names,
                         random_state=random_state, n_jobs=n_jobs, verbose=verbose)

    def _ensemble_config(self) -> EnsembleConfig:
        return super()._ensemble_config().update(fb_ratio=self.fb_ratio)

    def _n_feats(self, n_features: int) -> int:
        n_feats = int(self.fb_ratio * n_features)
        if n_feats < 1:
            raise ValueError(f"fb_ratio={self.fb_ratio} selects no features out of {n_features}")
        return n_feats

    def _select_columns(self, rng, n_features: int) -> np.ndarray:
        columns = rng.choice(n_features, size=self._n_feats(n_features), replace=False)
        return np.sort(columns)
