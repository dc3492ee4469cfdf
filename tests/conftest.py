"""Shared fixtures for the sequential fusion tests."""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from sequential_fusion import ChannelModelEstimator, ChannelModelSet, simulate_trial_set


@pytest.fixture
def separated_models() -> ChannelModelSet:
    """One channel: left ~ N(0, 1), right ~ N(5, 1), even prior."""
    return ChannelModelSet.from_params(
        {"ch1": {"left": (0.0, 1.0), "right": (5.0, 1.0)}},
        distinguished_class="right",
        prior=0.5,
    )


@pytest.fixture
def unit_shift_models() -> ChannelModelSet:
    """Two identical channels: left ~ N(0, 1), right ~ N(1, 1).

    The likelihood ratio right:left at reading x is exp(x - 0.5).
    """
    params = {"a": (0.0, 1.0), "b": (1.0, 1.0)}
    return ChannelModelSet.from_params(
        {
            "ch1": {"left": params["a"], "right": params["b"]},
            "ch2": {"left": params["a"], "right": params["b"]},
        },
        distinguished_class="right",
        prior=0.5,
    )


@pytest.fixture
def informative_trials():
    """Six equally informative channels (class means one std apart)."""
    return simulate_trial_set(
        n_per_class=300, means=[(0.0, 1.0)] * 6, seed=7
    )


@pytest.fixture
def mixed_trials():
    """Two near-useless channels followed by two strong ones."""
    return simulate_trial_set(
        n_per_class=300,
        means=[(0.0, 0.05), (0.0, 0.1), (0.0, 3.0), (0.0, 3.5)],
        channel_names=["weak_a", "weak_b", "strong_a", "strong_b"],
        seed=11,
    )


@pytest.fixture
def split(informative_trials):
    """Stratified half/half train-test split of the informative trials."""
    return informative_trials.train_test_split(test_size=0.5, random_state=0)


@pytest.fixture
def fitted(split):
    """Models fitted on the training half, plus the test half."""
    train_set, test_set = split
    return ChannelModelEstimator().estimate(train_set), test_set


@pytest.fixture
def rng():
    """Seeded numpy generator."""
    return np.random.default_rng(1234)
