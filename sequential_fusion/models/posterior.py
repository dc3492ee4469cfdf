"""
Single-channel two-class posterior.

The posterior of the distinguished class d given one channel reading x is

    p_d = L_d * prior / (L_d * prior + L_o * (1 - prior))

using the fact that the two class posteriors sum to one, so no separate
marginal density is needed. Two degenerate cases are defined outcomes:

- a zero-variance class model whose mean equals x has infinite density,
  and that class takes posterior 1
- if both unnormalised terms are 0 (tail underflow) the channel is
  uninformative and the prior is returned unchanged
"""

import math
from typing import Sequence, Tuple, Union

import numpy as np
from scipy.stats import norm

from .channel_model import ChannelModelSet


def gaussian_density(
    x: Union[float, np.ndarray],
    mean: Union[float, np.ndarray],
    std: Union[float, np.ndarray]
) -> Union[float, np.ndarray]:
    """
    Gaussian probability density, defined for std == 0.

    With std == 0 the density is +inf at the mean and 0 elsewhere.

    Args:
        x: Observed value(s)
        mean: Class mean(s)
        std: Class standard deviation(s), >= 0

    Returns:
        Density with the broadcast shape of the inputs
    """
    x, mean, std = np.broadcast_arrays(
        np.asarray(x, dtype=float),
        np.asarray(mean, dtype=float),
        np.asarray(std, dtype=float)
    )
    if np.any(std < 0):
        raise ValueError("std must be >= 0")

    density = np.zeros(x.shape)
    spread = std > 0
    density[spread] = norm.pdf(x[spread], loc=mean[spread], scale=std[spread])
    density[~spread & (x == mean)] = np.inf

    if density.ndim == 0:
        return float(density)
    return density


def bayes_update(likelihood_d: float, likelihood_o: float, prior: float) -> float:
    """
    One Bayes step for the distinguished class.

    Args:
        likelihood_d: Density of the reading under the distinguished class
        likelihood_o: Density of the reading under the other class
        prior: P(distinguished) before this reading

    Returns:
        P(distinguished) after this reading, in [0, 1]
    """
    certain_d = math.isinf(likelihood_d)
    certain_o = math.isinf(likelihood_o)

    if certain_d or certain_o:
        if certain_d and certain_o:
            return prior
        if certain_d:
            return 1.0 if prior > 0.0 else prior
        return 0.0 if prior < 1.0 else prior

    u_d = likelihood_d * prior
    u_o = likelihood_o * (1.0 - prior)

    scale = max(u_d, u_o)
    if scale == 0.0:
        return prior

    # Scaled terms are in [0, 1], so their sum cannot overflow
    u_d /= scale
    u_o /= scale
    return u_d / (u_d + u_o)


def class_parameters(models: ChannelModelSet, channels: Sequence) -> Tuple[np.ndarray, ...]:
    """(mean_d, std_d, mean_o, std_o) arrays for the given channels."""
    models.validate_channels(channels)
    pairs = [models.pair(c) for c in channels]
    return (
        np.array([d.mean for d, _ in pairs], dtype=float),
        np.array([d.std for d, _ in pairs], dtype=float),
        np.array([o.mean for _, o in pairs], dtype=float),
        np.array([o.std for _, o in pairs], dtype=float)
    )


def channel_likelihoods(
    models: ChannelModelSet,
    channels: Sequence,
    values: Union[Sequence[float], np.ndarray]
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Class-conditional densities of readings on several channels at once.

    Args:
        models: Fitted channel models
        channels: Channel identifiers
        values: Reading for each channel (same order)

    Returns:
        Tuple of (distinguished densities, other densities)
    """
    models.validate_channels(channels)
    values = np.asarray(values, dtype=float)

    if values.shape != (len(channels),):
        raise ValueError(
            f"Expected {len(channels)} readings, got shape {values.shape}"
        )
    if not np.all(np.isfinite(values)):
        raise ValueError("Observed values must be finite")

    mean_d, std_d, mean_o, std_o = class_parameters(models, channels)

    return (
        np.atleast_1d(gaussian_density(values, mean_d, std_d)),
        np.atleast_1d(gaussian_density(values, mean_o, std_o))
    )


def channel_posterior(
    models: ChannelModelSet,
    channel,
    prior: float,
    observed_value: float
) -> Tuple[float, float]:
    """
    Posterior of both classes given one channel reading.

    Args:
        models: Fitted channel models
        channel: Channel identifier
        prior: P(distinguished class), in [0, 1]
        observed_value: The channel reading

    Returns:
        Tuple of (P(distinguished), P(other)), summing to 1
    """
    _check_prior(prior)
    if not np.isfinite(observed_value):
        raise ValueError(f"Observed value must be finite, got {observed_value}")

    model_d, model_o = models.pair(channel)
    p_d = bayes_update(
        gaussian_density(observed_value, model_d.mean, model_d.std),
        gaussian_density(observed_value, model_o.mean, model_o.std),
        float(prior)
    )
    return p_d, 1.0 - p_d


class SingleChannelPosterior:
    """
    Two-class posterior from one channel's Gaussian models.

    The class whose probability is returned first is the model set's
    distinguished class; either class can be requested by label.

    Example:
        >>> posterior = SingleChannelPosterior()
        >>> p_right, p_left = posterior.posterior(models, "ch1", 0.5, 4.2)
    """

    def posterior(
        self,
        models: ChannelModelSet,
        channel,
        prior: float,
        observed_value: float
    ) -> Tuple[float, float]:
        """
        Compute (P(distinguished), P(other)) for one reading.

        Args:
            models: Fitted channel models
            channel: Channel identifier
            prior: P(distinguished class)
            observed_value: The channel reading

        Returns:
            Tuple of class posteriors
        """
        return channel_posterior(models, channel, prior, observed_value)

    def probability_of(
        self,
        label,
        models: ChannelModelSet,
        channel,
        prior: float,
        observed_value: float
    ) -> float:
        """
        Posterior of a named class.

        Args:
            label: Class label of interest
            models: Fitted channel models
            channel: Channel identifier
            prior: Prior of the class given by ``label``
            observed_value: The channel reading
        """
        if label not in models.class_labels:
            raise ValueError(f"Unknown class {label!r}")

        if label == models.distinguished_class:
            return self.posterior(models, channel, prior, observed_value)[0]
        return self.posterior(models, channel, 1.0 - prior, observed_value)[1]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def _check_prior(prior: float):
    if not (0.0 <= prior <= 1.0):
        raise ValueError(f"prior must be in [0, 1], got {prior}")
