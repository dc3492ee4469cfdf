"""Test fusion.py module."""
import numpy as np
import pandas as pd
import pytest

from sequential_fusion import (
    ChannelModelSet,
    InvalidChannelReferenceError,
    SequentialFusionEngine,
)
from sequential_fusion.models.posterior import channel_posterior


@pytest.fixture
def engine():
    return SequentialFusionEngine()


class TestSequentialFusionEngine:
    """Test the sequential Bayes fold."""

    def test_trajectory_length(self, fitted, engine):
        """One belief per channel consumed."""
        models, test_set = fitted
        trajectory = engine.fuse(models, models.channel_ids, test_set.X[0])
        assert trajectory.shape == (models.n_channels,)
        assert np.all((trajectory >= 0.0) & (trajectory <= 1.0))

    def test_matches_stepwise_posterior(self, unit_shift_models, engine):
        """Each step equals the single-channel posterior fed the previous belief."""
        x = np.array([0.7, -0.2])
        trajectory = engine.fuse(unit_shift_models, ["ch1", "ch2"], x, 0.3)

        first, _ = channel_posterior(unit_shift_models, "ch1", 0.3, 0.7)
        second, _ = channel_posterior(unit_shift_models, "ch2", first, -0.2)
        assert trajectory[0] == pytest.approx(first)
        assert trajectory[1] == pytest.approx(second)

    def test_final_belief_is_order_invariant(self, fitted, engine):
        """Reversing or shuffling the ordering leaves the final belief unchanged."""
        models, test_set = fitted
        ordering = list(models.channel_ids)
        rng = np.random.default_rng(3)

        for row in test_set.X[:20]:
            reference = engine.fuse_final(models, ordering, row)
            assert engine.fuse_final(models, ordering[::-1], row) == pytest.approx(
                reference, abs=1e-9
            )
            shuffled = list(rng.permutation(ordering))
            assert engine.fuse_final(models, shuffled, row) == pytest.approx(
                reference, abs=1e-9
            )

    def test_intermediate_beliefs_depend_on_order(self, unit_shift_models, engine):
        """Only the final belief is order invariant."""
        x = np.array([2.0, -1.0])
        forward = engine.fuse(unit_shift_models, ["ch1", "ch2"], x)
        backward = engine.fuse(unit_shift_models, ["ch2", "ch1"], x)

        assert forward[0] > 0.5 > backward[0]
        assert forward[-1] == pytest.approx(backward[-1])

    def test_mapping_and_array_observations_agree(self, fitted, engine):
        """A Series keyed by channel gives the same trajectory as a row array."""
        models, test_set = fitted
        row = test_set.X[5]
        series = pd.Series(row, index=test_set.channel_names)
        ordering = list(models.channel_ids)[::-1]

        np.testing.assert_allclose(
            engine.fuse(models, ordering, series),
            engine.fuse(models, ordering, row)
        )
        np.testing.assert_allclose(
            engine.fuse(models, ordering, dict(series)),
            engine.fuse(models, ordering, row)
        )

    def test_subset_ordering(self, fitted, engine):
        """A partial ordering consumes only the named channels."""
        models, test_set = fitted
        trajectory = engine.fuse(
            models, ["channel_4", "channel_1"], test_set.X[0]
        )
        assert len(trajectory) == 2

    def test_default_prior_is_base_rate(self, engine):
        """Without an initial prior the model prior is used."""
        models = ChannelModelSet.from_params(
            {"ch1": {"left": (0.0, 1.0), "right": (1.0, 1.0)}}, prior=0.2
        )
        # At x = 0.5 both densities are equal, so the belief stays at the prior
        trajectory = engine.fuse(models, ["ch1"], np.array([0.5]))
        assert trajectory[0] == pytest.approx(0.2)

    def test_empty_ordering(self, fitted, engine):
        """No channels means no steps; the final belief is the prior."""
        models, test_set = fitted
        assert len(engine.fuse(models, [], test_set.X[0])) == 0
        assert engine.fuse_final(models, [], test_set.X[0], 0.4) == 0.4
        assert engine.fuse_final(models, [], test_set.X[0]) == models.prior

    def test_certainty_is_absorbing(self, engine):
        """After a zero-variance match no reading can move the belief."""
        models = ChannelModelSet.from_params(
            {
                "const": {"left": (0.0, 1.0), "right": (3.0, 0.0)},
                "noisy": {"left": (0.0, 1.0), "right": (1.0, 1.0)},
            },
            distinguished_class="right",
        )
        trajectory = engine.fuse(
            models, ["const", "noisy"], {"const": 3.0, "noisy": -4.0}
        )
        np.testing.assert_array_equal(trajectory, [1.0, 1.0])

    def test_unknown_channel_fails_before_fusing(self, fitted, engine):
        """Unknown channels in the ordering are rejected."""
        models, test_set = fitted
        with pytest.raises(InvalidChannelReferenceError) as exc_info:
            engine.fuse(models, ["channel_0", "nope"], test_set.X[0])
        assert exc_info.value.channels == ["nope"]

    def test_observation_length_mismatch(self, fitted, engine):
        """Array observations must cover every model channel."""
        models, _ = fitted
        with pytest.raises(ValueError):
            engine.fuse(models, ["channel_0"], np.zeros(3))

    def test_missing_reading_in_mapping(self, fitted, engine):
        """Mappings must contain every channel in the ordering."""
        models, _ = fitted
        with pytest.raises(ValueError):
            engine.fuse(models, ["channel_0", "channel_1"], {"channel_0": 1.0})

    def test_invalid_prior(self, fitted, engine):
        """Initial prior must be a probability."""
        models, test_set = fitted
        with pytest.raises(ValueError):
            engine.fuse(models, ["channel_0"], test_set.X[0], 1.2)

    def test_fold_directly(self):
        """The fold runs over precomputed densities."""
        trajectory = SequentialFusionEngine.fold(
            np.array([2.0, 0.0, 1.0]), np.array([1.0, 0.0, 1.0]), 0.5
        )
        # Second step underflows on both classes and leaves the belief alone
        np.testing.assert_allclose(trajectory, [2.0 / 3.0, 2.0 / 3.0, 2.0 / 3.0])
