"""
c45forest.datasets
==================

The classic 14‑day "Play Tennis" dataset, in a fully categorical version and
in a version with continuous Temperature and Humidity.

Encodings::

    Outlook:     Rain (0), Overcast (1), Sunny (2)
    Temperature: Cold (0), Mild (1), Hot (2)        (categorical version)
    Humidity:    Normal (0), High (1)               (categorical version)
    Wind:        Weak (0), Strong (1)
    PlayTennis:  No (0), Yes (1)
"""

from __future__ import annotations
from typing import NamedTuple
import numpy as np


class Dataset(NamedTuple):
    X: np.ndarray
    y: np.ndarray
    feature_names: list[str]
    class_names: list[str]
    continuous: list[int]


FEATURE_NAMES = ["Outlook", "Temp", "Humidity", "Wind"]
CLASS_NAMES = ["No", "Yes"]

#                 Outlook Temp Humidity Wind  PlayTennis
_PLAY_TENNIS = [[2, 2, 1, 0, 0],    # day  1
                [2, 2, 1, 1, 0],    # day  2
                [1, 2, 1, 0, 1],    # day  3
                [0, 1, 1, 0, 1],    # day  4
                [0, 0, 0, 0, 1],    # day  5
                [0, 0, 0, 1, 0],    # day  6
                [1, 0, 0, 1, 1],    # day  7
                [2, 1, 1, 0, 0],    # day  8
                [2, 0, 0, 0, 1],    # day  9
                [0, 1, 0, 0, 1],    # day 10
                [2, 1, 0, 1, 1],    # day 11
                [1, 1, 1, 1, 1],    # day 12
                [1, 2, 0, 0, 1],    # day 13
                [0, 1, 1, 1, 0]]    # day 14

_PLAY_TENNIS_CONT = [[2, 85, 85, 0, 0],
                     [2, 80, 90, 1, 0],
                     [1, 83, 78, 0, 1],
                     [0, 70, 96, 0, 1],
                     [0, 68, 80, 0, 1],
                     [0, 65, 70, 1, 0],
                     [1, 64, 65, 1, 1],
                     [2, 72, 95, 0, 0],
                     [2, 69, 70, 0, 1],
                     [0, 75, 80, 0, 1],
                     [2, 75, 70, 1, 1],
                     [1, 72, 90, 1, 1],
                     [1, 81, 75, 0, 1],
                     [0, 71, 80, 1, 0]]


def _split(rows, continuous) -> Dataset:
    xy = np.array(rows, dtype=float)
    return Dataset(xy[:, :-1], xy[:, -1].astype(np.int64), list(FEATURE_NAMES),
                   list(CLASS_NAMES), list(continuous))


def load_play_tennis() -> Dataset:
    """Play Tennis with every feature categorical."""
    return _split(_PLAY_TENNIS, [])


def load_play_tennis_continuous() -> Dataset:
    """Play Tennis with continuous Temperature (column 1) and Humidity (column 2)."""
    return _split(_PLAY_TENNIS_CONT, [1, 2])
