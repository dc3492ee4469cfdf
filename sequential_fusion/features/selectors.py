"""
Channel subset policies for evaluation.

A policy resolves to the list of channels that random orderings are drawn
from: every channel, a caller-given subset, or the weakest channels by
independent single-channel accuracy.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import numpy as np

from ..core.dataset import TrialSet
from ..models.channel_model import ChannelModelSet


class ChannelSubsetPolicy(ABC):
    """Abstract base class for channel subset policies."""

    name: str = "subset"

    @abstractmethod
    def resolve(self, models: ChannelModelSet, trials: TrialSet) -> List[Any]:
        """Channels to evaluate, in model order."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class AllChannels(ChannelSubsetPolicy):
    """Every fitted channel."""

    name = "all"

    def resolve(self, models: ChannelModelSet, trials: TrialSet) -> List[Any]:
        return list(models.channel_ids)


class ChannelSubset(ChannelSubsetPolicy):
    """
    A caller-specified reduced channel set.

    Example:
        >>> policy = ChannelSubset(["ch2", "ch7", "ch9"])
        >>> curve = evaluator.evaluate(models, test_set, channels=policy)
    """

    def __init__(self, channels: Sequence, name: str = "subset"):
        self.channels = list(channels)
        self.name = name

    def resolve(self, models: ChannelModelSet, trials: TrialSet) -> List[Any]:
        models.validate_channels(self.channels)
        return list(self.channels)

    def __repr__(self) -> str:
        return f"ChannelSubset({self.channels})"


class WeakestChannels(ChannelSubsetPolicy):
    """
    Channels whose independent decoding accuracy falls below a threshold.

    Accuracy is measured on the evaluated trials with the base-rate prior.
    """

    name = "weakest"

    def __init__(self, threshold: float = 0.60, n: Optional[int] = None):
        """
        Initialize policy.

        Args:
            threshold: Accuracy below which a channel counts as weak
            n: Keep at most the n worst of those channels
        """
        self.selector = WeakChannelSelector(threshold=threshold, n=n)

    @classmethod
    def from_config(cls, config) -> "WeakestChannels":
        """Build from a FusionConfig."""
        return cls(
            threshold=config.selection.weak_channel_threshold,
            n=config.selection.n_weakest
        )

    def resolve(self, models: ChannelModelSet, trials: TrialSet) -> List[Any]:
        return self.selector.fit(models, trials).get_channels()

    def __repr__(self) -> str:
        return (
            f"WeakestChannels(threshold={self.selector.threshold}, "
            f"n={self.selector.n})"
        )


class WeakChannelSelector:
    """
    Select weakly informative channels by single-channel accuracy.

    Example:
        >>> selector = WeakChannelSelector(threshold=0.6)
        >>> selector.fit(models, test_set)
        >>> weak = selector.get_channels()
    """

    def __init__(self, threshold: float = 0.60, n: Optional[int] = None):
        """
        Initialize selector.

        Args:
            threshold: Accuracy threshold, in (0, 1)
            n: Keep at most the n worst channels below the threshold
        """
        if not 0.0 < threshold < 1.0:
            raise ValueError(f"threshold must be in (0, 1), got {threshold}")
        if n is not None and n < 1:
            raise ValueError(f"n must be >= 1, got {n}")

        self.threshold = threshold
        self.n = n

        self.channels_ = None
        self.scores_ = None
        self.support_ = None

    def fit(self, models: ChannelModelSet, trials: TrialSet) -> "WeakChannelSelector":
        """Score every channel and select the weak ones."""
        from ..validation.evaluator import per_channel_accuracy

        table = per_channel_accuracy(models, trials)

        self.channels_ = list(models.channel_ids)
        self.scores_ = np.array([table[c] for c in self.channels_])

        weak = table.below(self.threshold)
        if self.n is not None:
            weak = weak[:self.n]

        chosen = set(weak)
        self.support_ = np.array([c in chosen for c in self.channels_], dtype=bool)
        return self

    def get_channels(self) -> List[Any]:
        """Selected channels, in model order."""
        if self.support_ is None:
            raise ValueError("Must call fit() first")
        return [c for c, keep in zip(self.channels_, self.support_) if keep]

    def get_support(self) -> np.ndarray:
        """Get boolean mask of selected channels."""
        return self.support_

    def get_scores(self) -> np.ndarray:
        """Get single-channel accuracy for all channels."""
        return self.scores_

    def __repr__(self) -> str:
        return f"WeakChannelSelector(threshold={self.threshold}, n={self.n})"
