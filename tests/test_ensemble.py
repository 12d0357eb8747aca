import logging
import numpy as np
import pytest
from sklearn.utils import check_random_state
from c45forest import BaggingTreesClassifier, C45Classifier, RandomForestClassifier
from c45forest.datasets import load_play_tennis, load_play_tennis_continuous


def _two_clusters(m=40):
    """Two separated clusters on column 0, noise codes on column 1."""
    rng = np.random.RandomState(7)
    half = m // 2
    x0 = np.r_[rng.uniform(0, 1, half), rng.uniform(10, 11, half)]
    x1 = rng.randint(0, 3, m).astype(float)
    y = np.r_[np.zeros(half, dtype=int), np.ones(half, dtype=int)]
    return np.c_[x0, x1], y


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------
@pytest.mark.parametrize("kwargs", [
    {"n_trees": 0},
    {"b_ratio": 0.0},
    {"b_ratio": 1.0},
    {"height": -2},
    {"cutoff": 2.0},
])
def test_bagging_rejects_bad_config(kwargs):
    with pytest.raises(ValueError):
        BaggingTreesClassifier(**kwargs)


@pytest.mark.parametrize("fb_ratio", [0.0, 1.0, 1.5])
def test_forest_rejects_bad_feature_ratio(fb_ratio):
    with pytest.raises(ValueError):
        RandomForestClassifier(fb_ratio=fb_ratio)


def test_too_few_rows_or_columns():
    data = load_play_tennis()
    with pytest.raises(ValueError, match="b_ratio"):
        BaggingTreesClassifier(b_ratio=0.05).fit(data.X, data.y)
    with pytest.raises(ValueError, match="fb_ratio"):
        RandomForestClassifier(fb_ratio=0.2).fit(data.X, data.y)


def test_not_fitted_raises():
    with pytest.raises(ValueError):
        BaggingTreesClassifier().predict([[0, 0, 0, 0]])
    with pytest.raises(ValueError):
        RandomForestClassifier().predict_proba([[0, 0, 0, 0]])


# -----------------------------------------------------------------------------
# Bagging
# -----------------------------------------------------------------------------
def test_single_tree_bagging_equals_its_tree():
    data = load_play_tennis()
    bag = BaggingTreesClassifier(n_trees=1, b_ratio=0.7).fit(data.X, data.y)
    assert len(bag.estimators_) == 1
    assert bag.features_[0].tolist() == [0, 1, 2, 3]
    assert bag.predict(data.X).tolist() == bag.estimators_[0].predict(data.X).tolist()

    # the tree is a plain C4.5 tree on the rows drawn from seed 0
    rows = check_random_state(0).randint(0, len(data.y), int(0.7 * len(data.y)))
    ref = C45Classifier(n_classes=2).fit(data.X[rows], data.y[rows])
    assert bag.estimators_[0].export_rules() == ref.export_rules()


def test_votes_sum_to_number_of_trees():
    data = load_play_tennis()
    bag = BaggingTreesClassifier(n_trees=5).fit(data.X, data.y)
    proba = bag.predict_proba(data.X)
    assert np.allclose(proba.sum(axis=1), 1.0)
    assert np.allclose(proba * 5, np.round(proba * 5))
    # the winning class has at least n_trees / k votes
    assert (proba.max(axis=1) * 5 >= 5 / 2).all()
    assert bag.predict(data.X).tolist() == np.argmax(proba, axis=1).tolist()


def test_bagging_separates_clusters():
    X, y = _two_clusters()
    bag = BaggingTreesClassifier(n_trees=7, continuous_features=[0]).fit(X, y)
    assert bag.predict([[0.5, 1], [10.5, 1]]).tolist() == [0, 1]
    assert bag.predict_one([10.2, 0]) == 1


def test_bagging_is_deterministic():
    data = load_play_tennis_continuous()
    a = BaggingTreesClassifier(continuous_features=data.continuous).fit(data.X, data.y)
    b = BaggingTreesClassifier(continuous_features=data.continuous).fit(data.X, data.y)
    assert [t.export_rules() for t in a.estimators_] == [t.export_rules() for t in b.estimators_]
    c = BaggingTreesClassifier(continuous_features=data.continuous, random_state=5)
    c.fit(data.X, data.y)
    # tree l of a run seeded with 5 is tree l + 5 of a run seeded with 0
    assert c.estimators_[0].export_rules() == a.estimators_[5].export_rules()


def test_parallel_build_matches_sequential():
    data = load_play_tennis_continuous()
    seq = RandomForestClassifier(continuous_features=data.continuous).fit(data.X, data.y)
    par = RandomForestClassifier(continuous_features=data.continuous, n_jobs=2).fit(data.X, data.y)
    assert [f.tolist() for f in seq.features_] == [f.tolist() for f in par.features_]
    assert [t.export_rules() for t in seq.estimators_] == [t.export_rules() for t in par.estimators_]
    assert seq.predict(data.X).tolist() == par.predict(data.X).tolist()


def test_classify_reports_vote_fraction():
    data = load_play_tennis()
    bag = BaggingTreesClassifier(n_trees=3, class_names=data.class_names).fit(data.X, data.y)
    c, name, p = bag.classify(data.X[0])
    assert name == data.class_names[c]
    assert p == pytest.approx(bag.predict_proba(data.X[:1])[0, c])
    assert p >= 2 / 3 - 1e-9


# -----------------------------------------------------------------------------
# Random forest
# -----------------------------------------------------------------------------
def test_forest_projects_rows_onto_tree_columns():
    data = load_play_tennis()
    rf = RandomForestClassifier(n_trees=5, fb_ratio=0.5).fit(data.X, data.y)
    votes = np.zeros((len(data.y), 2), dtype=int)
    for tree, cols in zip(rf.estimators_, rf.features_):
        assert len(cols) == 2
        assert cols.tolist() == sorted(set(cols.tolist()))
        assert tree.n_features_ == 2
        votes[np.arange(len(data.y)), tree.predict(data.X[:, cols])] += 1
    assert rf.predict(data.X).tolist() == np.argmax(votes, axis=1).tolist()
    assert np.allclose(rf.predict_proba(data.X), votes / 5)


def test_forest_remaps_continuous_columns():
    data = load_play_tennis_continuous()
    rf = RandomForestClassifier(n_trees=6, fb_ratio=0.5, continuous_features=["Temp", "Humidity"],
                                feature_names=data.feature_names).fit(data.X, data.y)
    for tree, cols in zip(rf.estimators_, rf.features_):
        cols = cols.tolist()
        expected = {i for i, c in enumerate(cols) if c in (1, 2)}
        assert tree.continuous_features_ == frozenset(expected)
        assert tree.feature_names_ == [data.feature_names[c] for c in cols]


# -----------------------------------------------------------------------------
# Failures while building
# -----------------------------------------------------------------------------
def test_failed_tree_is_left_out(monkeypatch, caplog):
    data = load_play_tennis()
    real_fit = BaggingTreesClassifier._fit_member

    def flaky(self, X, y, k, sample_size, l):
        if l == 1:
            raise RuntimeError("boom")
        return real_fit(self, X, y, k, sample_size, l)

    monkeypatch.setattr(BaggingTreesClassifier, "_fit_member", flaky)
    with caplog.at_level(logging.WARNING, logger="c45forest.ensemble"):
        bag = BaggingTreesClassifier(n_trees=3).fit(data.X, data.y)
    assert bag.estimators_[1] is None
    assert bag.features_[1] is None
    assert bag.estimators_[0] is not None and bag.estimators_[2] is not None
    assert "tree 1 failed" in caplog.text
    # only the two surviving trees vote
    assert np.allclose(bag.predict_proba(data.X).sum(axis=1), 1.0)
    assert np.allclose(bag.predict_proba(data.X) * 2, np.round(bag.predict_proba(data.X) * 2))


def test_all_trees_failing_raises(monkeypatch):
    data = load_play_tennis()

    def broken(self, X, y, k, sample_size, l):
        raise RuntimeError("boom")

    monkeypatch.setattr(BaggingTreesClassifier, "_fit_member", broken)
    with pytest.raises(RuntimeError, match="none of the"):
        BaggingTreesClassifier(n_trees=2).fit(data.X, data.y)
