# c45forest/__init__.py
"""
c45forest: ID3 / C4.5 decision trees, bagging and random forests in Python
(scikit-learn style).

Exports:
    - ID3Classifier
    - C45Classifier
    - BaggingTreesClassifier
    - RandomForestClassifier
    - TreeConfig, EnsembleConfig
"""
from .config import EnsembleConfig, TreeConfig
from .ensemble import BaggingTreesClassifier, RandomForestClassifier
from .tree import C45Classifier, ID3Classifier

__all__ = [
    "ID3Classifier",
    "C45Classifier",
    "BaggingTreesClassifier",
    "RandomForestClassifier",
    "TreeConfig",
    "EnsembleConfig",
]
__version__ = "0.1.0"
