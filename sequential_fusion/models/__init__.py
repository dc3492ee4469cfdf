"""Channel likelihood models, posterior and sequential fusion."""

from .channel_model import ChannelModelEstimator, ChannelModelSet, GaussianModel
from .posterior import (
    SingleChannelPosterior,
    bayes_update,
    channel_likelihoods,
    channel_posterior,
    gaussian_density
)
from .fusion import SequentialFusionEngine
from .decoder import SequentialBayesDecoder

__all__ = [
    "ChannelModelEstimator",
    "ChannelModelSet",
    "GaussianModel",
    "SingleChannelPosterior",
    "bayes_update",
    "channel_likelihoods",
    "channel_posterior",
    "gaussian_density",
    "SequentialFusionEngine",
    "SequentialBayesDecoder"
]
