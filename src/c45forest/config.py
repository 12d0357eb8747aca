"""
c45forest.config
================

Immutable hyper‑parameter bundles for the tree inducers and ensembles.

Estimators keep their constructor arguments as plain attributes (the
scikit‑learn convention) and turn them into one of these frozen dataclasses
right before training, so an induction never reads a shared mutable setting.
Defaults mirror the usual tuning table for ID3/C4.5 trees and forests:

======== ======= ==================================================
name     default meaning
======== ======= ==================================================
height   4       maximum number of edges on a root‑to‑leaf path
cutoff   0.01    stop splitting once node entropy drops to this value
n_trees  11      number of trees in an ensemble (odd avoids ties)
b_ratio  0.7     fraction of rows drawn (with replacement) per tree
fb_ratio 0.7     fraction of columns drawn (without) per forest tree
======== ======= ==================================================
"""

from __future__ import annotations
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class TreeConfig:
    """Stopping rules for a single decision tree."""

    height: int = 4
    cutoff: float = 0.01

    def __post_init__(self):
        if int(self.height) != self.height or self.height < 0:
            raise ValueError(f"height must be a non-negative integer, got {self.height!r}")
        if not 0.0 <= float(self.cutoff) <= 1.0:
            raise ValueError(f"cutoff must lie in [0, 1], got {self.cutoff!r}")


@dataclass(frozen=True)
class EnsembleConfig:
    """Resampling settings shared by bagging and random forests.

    ``fb_ratio`` is only consulted by random forests, but it is validated
    for every ensemble so a bad value never slips through a ``set_params``.
    """

    n_trees: int = 11
    b_ratio: float = 0.7
    fb_ratio: float = 0.7

    def __post_init__(self):
        if int(self.n_trees) != self.n_trees or self.n_trees < 1:
            raise ValueError(f"number of trees must be at least one, got {self.n_trees!r}")
        if not 0.0 < float(self.b_ratio) < 1.0:
            raise ValueError(f"bagging ratio b_ratio restricted to (0, 1), got {self.b_ratio!r}")
        if not 0.0 < float(self.fb_ratio) < 1.0:
            raise ValueError(f"feature bagging ratio fb_ratio restricted to (0, 1), got {self.fb_ratio!r}")

    def update(self, **changes) -> "EnsembleConfig":
        """Validated copy with ``changes`` applied."""
        return replace(self, **changes)


def check_class_names(class_names, n_classes) -> list[str] | None:
    """Return ``class_names`` as a list, checking it names exactly ``n_classes`` classes."""
    if class_names is None:
        return None
    names = [str(c) for c in class_names]
    if n_classes is not None and len(names) != int(n_classes):
        raise ValueError(
            f"class_names has {len(names)} entries but there are {int(n_classes)} classes")
    return names
