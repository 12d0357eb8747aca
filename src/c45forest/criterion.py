"""
c45forest.criterion
===================

Information‑theoretic split criterion shared by the ID3 and C4.5 inducers.

All functions work on a *row index*: an integer array selecting the training
rows that reached the node being split.  Labels are integer class indices in
``[0, k)`` and every frequency vector has length ``k``.

Categorical features split into one branch per distinct value.  Continuous
features split in two (``<= threshold`` / ``> threshold``); the threshold is
the midpoint between consecutive distinct values that minimises the weighted
entropy of the two halves.  Both the threshold search and the gain of the
chosen threshold are evaluated on the local row index only.
"""

from __future__ import annotations
from typing import NamedTuple
import logging
import numpy as np

logger = logging.getLogger(__name__)

# Gains at or below this value are rounding noise, not information.
MIN_GAIN = 1e-12


class Split(NamedTuple):
    """Result of a best‑feature search (``feature == -1`` means no usable split)."""
    feature: int
    gain: float
    freq: np.ndarray
    threshold: float | None = None


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def entropy(dist_vec: np.ndarray) -> float:
    """Base‑2 Shannon entropy of a frequency vector (empty classes add 0)."""
    dist_vec = np.asarray(dist_vec, dtype=float)
    tot = dist_vec.sum()
    if tot <= 0:
        return 0.0
    p = dist_vec / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def frequency(y: np.ndarray, rindex: np.ndarray, k: int) -> np.ndarray:
    """Class counts of ``y`` restricted to the rows in ``rindex``."""
    return np.bincount(y[rindex], minlength=k).astype(np.int64)


def _weighted_entropy(groups: list[np.ndarray], n: int) -> float:
    return sum(g.sum() / n * entropy(g) for g in groups if g.sum() > 0)


# -----------------------------------------------------------------------------
# Gain
# -----------------------------------------------------------------------------
def categorical_gain(xj: np.ndarray, y: np.ndarray, rindex: np.ndarray,
                     k: int) -> tuple[float, np.ndarray]:
    """
    Information gain of a multi‑way split on a categorical column.

    Parameters
    ----------
    xj : ndarray of shape (m,)
        Full training column for the feature.
    y : ndarray of shape (m,)
        Full label vector.
    rindex : ndarray of int
        Rows reaching the node.
    k : int
        Number of classes.

    Returns
    -------
    (float, ndarray)
        The gain ``entropy(node) - sum_v frac_v * entropy(node_v)`` and the
        class frequency vector aggregated over all branches.
    """
    n = rindex.size
    if n == 0:
        return 0.0, np.zeros(k, dtype=np.int64)
    xr, yr = xj[rindex], y[rindex]
    vals, inverse = np.unique(xr, return_inverse=True)
    table = np.zeros((vals.size, k), dtype=np.int64)
    np.add.at(table, (inverse.ravel(), yr), 1)
    nu = table.sum(axis=0)
    igain = entropy(nu) - _weighted_entropy(list(table), n)
    return float(igain), nu


def continuous_gain(xj: np.ndarray, y: np.ndarray, rindex: np.ndarray, k: int,
                    threshold: float) -> tuple[float, np.ndarray]:
    """Information gain of the binary split ``xj <= threshold`` over ``rindex``."""
    n = rindex.size
    if n == 0:
        return 0.0, np.zeros(k, dtype=np.int64)
    below = xj[rindex] <= threshold
    yr = y[rindex]
    nu_0 = np.bincount(yr[below], minlength=k).astype(np.int64)
    nu_1 = np.bincount(yr[~below], minlength=k).astype(np.int64)
    nu = nu_0 + nu_1
    igain = entropy(nu) - _weighted_entropy([nu_0, nu_1], n)
    return float(igain), nu


def find_split(xj: np.ndarray, y: np.ndarray, rindex: np.ndarray, k: int) -> float | None:
    """
    Find the threshold splitting a continuous column with minimal weighted entropy.

    Candidate thresholds are the midpoints between consecutive distinct
    values of ``xj[rindex]``.  The first candidate wins ties.  Returns
    ``None`` when the rows hold fewer than two distinct values.
    """
    n = rindex.size
    if n < 2:
        return None
    vv = xj[rindex].astype(float, copy=False)
    order = np.argsort(vv, kind="mergesort")
    v = vv[order]
    yk = y[rindex][order]

    bd = np.nonzero(v[:-1] != v[1:])[0]
    if bd.size == 0:
        return None

    M = np.zeros((n, k), dtype=np.int64)
    M[np.arange(n), yk] = 1
    SW = M.cumsum(axis=0)
    total = SW[-1]

    thres, min_ent = None, np.inf
    for i in bd:
        left = SW[i]
        right = total - left
        ent = _weighted_entropy([left, right], n)
        if ent < min_ent:
            mid = 0.5 * (v[i] + v[i + 1])
            # adjacent floats can round the midpoint up onto the upper value
            thres, min_ent = (mid if mid < v[i + 1] else v[i]), ent
    return float(thres)


def find_best(X: np.ndarray, y: np.ndarray, rindex: np.ndarray, cindex: np.ndarray,
              k: int, continuous=frozenset()) -> Split:
    """
    Pick the column in ``cindex`` with maximal information gain.

    Continuous columns get a fresh threshold from :func:`find_split` on every
    call.  Ties keep the column seen first.  When no column yields a gain
    above :data:`MIN_GAIN` the returned split has ``feature == -1``.
    """
    best = Split(-1, 0.0, frequency(y, rindex, k), None)
    for j in cindex:
        j = int(j)
        xj = X[:, j]
        thr = None
        if j in continuous:
            thr = find_split(xj, y, rindex, k)
            if thr is None:
                continue
            gn, nu = continuous_gain(xj, y, rindex, k, thr)
        else:
            gn, nu = categorical_gain(xj, y, rindex, k)
        if gn > MIN_GAIN and gn > best.gain:
            best = Split(j, gn, nu, thr)
    if best.feature < 0:
        logger.debug("find_best: no positive gain over %d rows and columns %s",
                     rindex.size, list(map(int, cindex)))
    return best
