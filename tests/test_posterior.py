"""Test posterior.py module."""
import math

import numpy as np
import pytest
from scipy.stats import norm

from sequential_fusion import ChannelModelSet, InvalidChannelReferenceError
from sequential_fusion.models.posterior import (
    SingleChannelPosterior,
    bayes_update,
    channel_likelihoods,
    channel_posterior,
    gaussian_density,
)


class TestGaussianDensity:
    """Test the density with zero-variance support."""

    def test_matches_scipy(self):
        """Positive std gives the standard normal density."""
        assert gaussian_density(1.3, 0.5, 2.0) == pytest.approx(
            norm.pdf(1.3, loc=0.5, scale=2.0)
        )

    def test_zero_std_at_mean_is_infinite(self):
        """A constant channel read at its value has infinite density."""
        assert math.isinf(gaussian_density(5.0, 5.0, 0.0))

    def test_zero_std_off_mean_is_zero(self):
        """A constant channel read elsewhere has zero density."""
        assert gaussian_density(5.1, 5.0, 0.0) == 0.0

    def test_broadcasts(self):
        """Arrays broadcast like numpy."""
        density = gaussian_density(
            np.zeros((3, 2)), np.array([0.0, 1.0]), np.array([1.0, 0.0])
        )
        assert density.shape == (3, 2)
        assert np.all(density[:, 1] == 0.0)

    def test_negative_std_rejected(self):
        """Negative std is invalid."""
        with pytest.raises(ValueError):
            gaussian_density(0.0, 0.0, -1.0)


class TestBayesUpdate:
    """Test the single Bayes step."""

    def test_normalizes_without_marginal(self):
        """Posterior is L_d * p / (L_d * p + L_o * (1 - p))."""
        assert bayes_update(0.3, 0.1, 0.4) == pytest.approx(0.12 / (0.12 + 0.06))

    def test_both_underflow_returns_prior(self):
        """Zero evidence under both classes leaves the prior untouched."""
        assert bayes_update(0.0, 0.0, 0.37) == 0.37

    def test_both_infinite_returns_prior(self):
        """Two matching constant models carry no information."""
        assert bayes_update(math.inf, math.inf, 0.2) == 0.2

    def test_certainty_with_zero_prior_is_not_nan(self):
        """Certainty for a class with prior 0 does not produce NaN."""
        assert bayes_update(math.inf, 1.0, 0.0) == 0.0
        assert bayes_update(1.0, math.inf, 1.0) == 1.0

    def test_huge_finite_densities_do_not_overflow(self):
        """Densities near the float maximum still give a finite posterior."""
        assert bayes_update(1e308, 1e308, 0.5) == pytest.approx(0.5)
        assert bayes_update(1.5e308, 0.5e308, 0.5) == pytest.approx(0.75)

        near_max = np.finfo(float).max
        posterior = bayes_update(near_max, near_max / 2, 0.9)
        assert math.isfinite(posterior)
        assert posterior == pytest.approx(0.9 / (0.9 + 0.05))


class TestSingleChannelPosterior:
    """Test the two-class posterior."""

    def test_well_separated_scenario(self, separated_models):
        """Reading 5.0 with left ~ N(0,1) and right ~ N(5,1) is almost surely right."""
        p_right, p_left = SingleChannelPosterior().posterior(
            separated_models, "ch1", 0.5, 5.0
        )
        assert p_right > 0.99
        assert p_left < 0.01
        assert p_right + p_left == pytest.approx(1.0, abs=1e-12)

    def test_zero_variance_exact_match(self):
        """A zero-variance class read exactly at its mean takes posterior 1."""
        models = ChannelModelSet.from_params(
            {"ch1": {"left": (5.0, 0.0), "right": (0.0, 1.0)}},
            distinguished_class="right",
        )
        posterior = SingleChannelPosterior()
        for prior_left in [0.01, 0.5, 0.99]:
            assert posterior.probability_of(
                "left", models, "ch1", prior_left, 5.0
            ) == 1.0

        p_right, p_left = posterior.posterior(models, "ch1", 0.9, 5.0)
        assert (p_right, p_left) == (0.0, 1.0)

    def test_zero_variance_mismatch_favours_other_class(self):
        """Off its constant value the zero-variance class is ruled out."""
        models = ChannelModelSet.from_params(
            {"ch1": {"left": (5.0, 0.0), "right": (0.0, 1.0)}},
            distinguished_class="right",
        )
        p_right, p_left = channel_posterior(models, "ch1", 0.5, 0.3)
        assert p_right == 1.0
        assert p_left == 0.0

    def test_uninformative_tail_is_noop(self, separated_models):
        """Both densities underflow far in the tails: the prior comes back."""
        p_right, p_left = channel_posterior(separated_models, "ch1", 0.37, 1e6)
        assert p_right == 0.37
        assert p_left == pytest.approx(0.63)

    def test_probability_bounds(self, rng):
        """Posteriors stay in [0, 1] and sum to 1."""
        models = ChannelModelSet.from_params(
            {"ch1": {"left": (-1.0, 0.3), "right": (2.0, 4.0)}}
        )
        for _ in range(500):
            prior = rng.uniform()
            value = rng.normal(0.0, 20.0)
            p_d, p_o = channel_posterior(models, "ch1", prior, value)
            assert 0.0 <= p_d <= 1.0
            assert 0.0 <= p_o <= 1.0
            assert p_d + p_o == pytest.approx(1.0)

    def test_agreeing_evidence_reinforces(self, unit_shift_models):
        """Belief 0.8 is pushed up by 2:1 evidence for right, down by 2:1 for left."""
        posterior = SingleChannelPosterior()

        # Likelihood ratio 4:1 for right takes 0.5 to 0.8
        belief, _ = posterior.posterior(
            unit_shift_models, "ch1", 0.5, 0.5 + math.log(4.0)
        )
        assert belief == pytest.approx(0.8)

        agree, _ = posterior.posterior(
            unit_shift_models, "ch2", belief, 0.5 + math.log(2.0)
        )
        disagree, _ = posterior.posterior(
            unit_shift_models, "ch2", belief, 0.5 - math.log(2.0)
        )
        assert agree > 0.8
        assert agree == pytest.approx(8.0 / 9.0)
        assert disagree < 0.8
        assert disagree == pytest.approx(2.0 / 3.0)

    def test_probability_of_other_class(self, separated_models):
        """Asking for the other class by label mirrors the distinguished result."""
        posterior = SingleChannelPosterior()
        p_left = posterior.probability_of("left", separated_models, "ch1", 0.3, 2.0)
        p_right, _ = posterior.posterior(separated_models, "ch1", 0.7, 2.0)
        assert p_left == pytest.approx(1.0 - p_right)

    def test_unknown_class_rejected(self, separated_models):
        """Only model classes can be requested."""
        with pytest.raises(ValueError):
            SingleChannelPosterior().probability_of(
                "up", separated_models, "ch1", 0.5, 0.0
            )

    def test_unknown_channel(self, separated_models):
        """An unknown channel fails fast."""
        with pytest.raises(InvalidChannelReferenceError):
            channel_posterior(separated_models, "ch9", 0.5, 0.0)

    @pytest.mark.parametrize("prior", [-0.1, 1.5, float("nan")])
    def test_invalid_prior(self, separated_models, prior):
        """Priors outside [0, 1] are rejected."""
        with pytest.raises(ValueError):
            channel_posterior(separated_models, "ch1", prior, 0.0)

    def test_non_finite_observation(self, separated_models):
        """NaN readings are rejected instead of propagating."""
        with pytest.raises(ValueError):
            channel_posterior(separated_models, "ch1", 0.5, float("nan"))


def test_channel_likelihoods_shape(unit_shift_models):
    """Densities come back per channel for each class."""
    l_d, l_o = channel_likelihoods(unit_shift_models, ["ch2", "ch1"], [1.0, 0.0])
    assert l_d.shape == l_o.shape == (2,)
    assert l_d[0] == pytest.approx(norm.pdf(1.0, loc=1.0))
    assert l_o[1] == pytest.approx(norm.pdf(0.0))
