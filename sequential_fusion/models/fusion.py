"""
Sequential Bayesian fusion across an ordered list of channels.

Each channel's posterior becomes the prior for the next channel. With
independent channels the final belief does not depend on the ordering,
but the intermediate beliefs do.
"""

from typing import Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .channel_model import ChannelModelSet
from .posterior import bayes_update, channel_likelihoods, _check_prior


class SequentialFusionEngine:
    """
    Fold channel readings into a running belief, one channel at a time.

    Example:
        >>> engine = SequentialFusionEngine()
        >>> trajectory = engine.fuse(models, ["ch3", "ch1", "ch2"], x, 0.5)
        >>> final_belief = trajectory[-1]
    """

    def fuse(
        self,
        models: ChannelModelSet,
        ordering: Sequence,
        observation: Union[np.ndarray, Mapping, pd.Series],
        initial_prior: Optional[float] = None
    ) -> np.ndarray:
        """
        Compute the posterior trajectory for one trial.

        Args:
            models: Fitted channel models
            ordering: Channel identifiers, in the order they are consumed
            observation: One trial's readings, either an array aligned
                with ``models.channel_ids`` or a channel -> value mapping
            initial_prior: P(distinguished) before any channel
                (default: the training base rate ``models.prior``)

        Returns:
            P(distinguished) after each channel (len(ordering),)

        Raises:
            InvalidChannelReferenceError: Ordering names an unknown channel
        """
        ordering = list(ordering)
        models.validate_channels(ordering)

        prior = models.prior if initial_prior is None else float(initial_prior)
        _check_prior(prior)

        values = self.readings(models, ordering, observation)
        likelihood_d, likelihood_o = channel_likelihoods(models, ordering, values)
        return self.fold(likelihood_d, likelihood_o, prior)

    def fuse_final(
        self,
        models: ChannelModelSet,
        ordering: Sequence,
        observation: Union[np.ndarray, Mapping, pd.Series],
        initial_prior: Optional[float] = None
    ) -> float:
        """Final belief only (the initial prior for an empty ordering)."""
        trajectory = self.fuse(models, ordering, observation, initial_prior)
        if len(trajectory) == 0:
            return models.prior if initial_prior is None else float(initial_prior)
        return float(trajectory[-1])

    @staticmethod
    def fold(
        likelihood_d: np.ndarray,
        likelihood_o: np.ndarray,
        initial_prior: float
    ) -> np.ndarray:
        """
        Run the Bayes recursion over precomputed likelihoods.

        Args:
            likelihood_d: Distinguished-class densities, in consumption order
            likelihood_o: Other-class densities, same order
            initial_prior: Starting belief

        Returns:
            Belief after each step
        """
        trajectory = np.empty(len(likelihood_d))
        belief = initial_prior

        for k, (l_d, l_o) in enumerate(zip(likelihood_d.tolist(), likelihood_o.tolist())):
            belief = bayes_update(l_d, l_o, belief)
            trajectory[k] = belief

        return trajectory

    @staticmethod
    def readings(
        models: ChannelModelSet,
        ordering: Sequence,
        observation: Union[np.ndarray, Mapping, pd.Series]
    ) -> np.ndarray:
        """Pick the readings of ``ordering`` out of one observation."""
        if isinstance(observation, (Mapping, pd.Series)):
            missing = [c for c in ordering if c not in observation]
            if missing:
                raise ValueError(f"Observation has no reading for {missing}")
            return np.array([observation[c] for c in ordering], dtype=float)

        observation = np.asarray(observation, dtype=float)
        if observation.shape != (models.n_channels,):
            raise ValueError(
                f"Observation must have {models.n_channels} readings "
                f"(one per model channel), got shape {observation.shape}"
            )
        positions = [models.position(c) for c in ordering]
        return observation[positions]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
