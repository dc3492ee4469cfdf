"""
Per-channel, per-class Gaussian likelihood models.

A ChannelModelSet is fitted once from a training TrialSet and is read-only
afterwards, so it can be shared between evaluation workers.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
import warnings

import numpy as np
import pandas as pd

from ..core.dataset import TrialSet
from ..errors import InsufficientDataError, InvalidChannelReferenceError


@dataclass(frozen=True)
class GaussianModel:
    """Class-conditional Gaussian for one channel."""

    mean: float
    std: float
    n_samples: int = 0

    def __post_init__(self):
        if not np.isfinite(self.mean):
            raise ValueError(f"mean must be finite, got {self.mean}")
        if not np.isfinite(self.std) or self.std < 0:
            raise ValueError(f"std must be finite and >= 0, got {self.std}")

    @property
    def is_degenerate(self) -> bool:
        """Zero variance (constant channel)."""
        return self.std == 0


class ChannelModelSet:
    """
    Fitted Gaussian models keyed by (channel, class label).

    Holds exactly one GaussianModel per channel per class together with the
    empirical prior of the distinguished class.

    Example:
        >>> models = ChannelModelSet.from_params(
        ...     {"ch1": {"left": (0.0, 1.0), "right": (5.0, 1.0)}},
        ...     distinguished_class="right"
        ... )
        >>> models["ch1", "right"].mean
        5.0
    """

    def __init__(
        self,
        models: Mapping[Tuple[Any, Any], GaussianModel],
        channel_ids: Sequence,
        class_labels: Sequence,
        distinguished_class: Any,
        prior: float = 0.5
    ):
        """
        Initialize model set.

        Args:
            models: Mapping (channel, label) -> GaussianModel
            channel_ids: Channel identifiers, in observation-vector order
            class_labels: The two class labels
            distinguished_class: Label whose probability the belief tracks
            prior: P(distinguished class) before any channel is seen
        """
        class_labels = tuple(class_labels)
        if len(class_labels) != 2 or class_labels[0] == class_labels[1]:
            raise ValueError(
                f"Exactly two distinct class labels required, got {class_labels}"
            )
        if distinguished_class not in class_labels:
            raise ValueError(
                f"distinguished_class {distinguished_class!r} "
                f"not in {class_labels}"
            )
        if not 0.0 <= prior <= 1.0:
            raise ValueError(f"prior must be in [0, 1], got {prior}")

        channel_ids = tuple(channel_ids)
        if len(set(channel_ids)) != len(channel_ids):
            raise ValueError("Channel identifiers must be unique")

        for channel in channel_ids:
            for label in class_labels:
                if (channel, label) not in models:
                    raise ValueError(
                        f"Missing model for channel {channel!r}, class {label!r}"
                    )

        self._models = MappingProxyType(
            {(c, l): models[c, l] for c in channel_ids for l in class_labels}
        )
        self._channel_ids = channel_ids
        self._index = {c: i for i, c in enumerate(channel_ids)}
        self._class_labels = class_labels
        self._distinguished = distinguished_class
        self._prior = float(prior)

    @classmethod
    def from_params(
        cls,
        params: Mapping[Any, Mapping[Any, Tuple[float, float]]],
        distinguished_class: Any = None,
        prior: float = 0.5
    ) -> "ChannelModelSet":
        """
        Build a model set from explicit (mean, std) pairs.

        Args:
            params: {channel: {label: (mean, std)}}
            distinguished_class: Defaults to the second sorted label
            prior: P(distinguished class)
        """
        models = {}
        labels = None
        for channel, per_class in params.items():
            if labels is None:
                labels = tuple(sorted(per_class))
            for label, (mean, std) in per_class.items():
                models[channel, label] = GaussianModel(float(mean), float(std))

        if labels is None:
            raise ValueError("params must contain at least one channel")
        if distinguished_class is None:
            distinguished_class = labels[-1]

        return cls(models, list(params), labels, distinguished_class, prior)

    @property
    def channel_ids(self) -> Tuple:
        return self._channel_ids

    @property
    def n_channels(self) -> int:
        return len(self._channel_ids)

    @property
    def class_labels(self) -> Tuple:
        return self._class_labels

    @property
    def distinguished_class(self) -> Any:
        return self._distinguished

    @property
    def other_class(self) -> Any:
        return next(l for l in self._class_labels if l != self._distinguished)

    @property
    def prior(self) -> float:
        """Empirical P(distinguished class) from the training labels."""
        return self._prior

    def position(self, channel) -> int:
        """Index of a channel in the observation vector."""
        try:
            return self._index[channel]
        except (KeyError, TypeError):
            raise InvalidChannelReferenceError([channel]) from None

    def validate_channels(self, channels: Sequence):
        """Raise InvalidChannelReferenceError if any channel is unknown."""
        missing = [c for c in channels if c not in self._index]
        if missing:
            raise InvalidChannelReferenceError(missing)

    def pair(self, channel) -> Tuple[GaussianModel, GaussianModel]:
        """(distinguished, other) class models for a channel."""
        if channel not in self._index:
            raise InvalidChannelReferenceError([channel])
        return (
            self._models[channel, self._distinguished],
            self._models[channel, self.other_class]
        )

    def subset(self, channels: Sequence) -> "ChannelModelSet":
        """Model set restricted to the given channels (in that order)."""
        self.validate_channels(channels)
        return ChannelModelSet(
            self._models, channels, self._class_labels,
            self._distinguished, self._prior
        )

    def with_prior(self, prior: float) -> "ChannelModelSet":
        """Copy of this model set with a different prior."""
        return ChannelModelSet(
            self._models, self._channel_ids, self._class_labels,
            self._distinguished, prior
        )

    def degenerate_channels(self) -> list:
        """Channels with a zero-variance model for any class."""
        return [
            c for c in self._channel_ids
            if any(self._models[c, l].is_degenerate for l in self._class_labels)
        ]

    def to_frame(self) -> pd.DataFrame:
        """Long-format table: channel, label, mean, std, n_samples."""
        rows = [
            {
                "channel": c,
                "label": l,
                "mean": self._models[c, l].mean,
                "std": self._models[c, l].std,
                "n_samples": self._models[c, l].n_samples
            }
            for c in self._channel_ids for l in self._class_labels
        ]
        return pd.DataFrame(rows, columns=["channel", "label", "mean", "std", "n_samples"])

    def __getitem__(self, key: Tuple[Any, Any]) -> GaussianModel:
        channel, label = key
        if channel not in self._index:
            raise InvalidChannelReferenceError([channel])
        return self._models[channel, label]

    def __contains__(self, channel) -> bool:
        return channel in self._index

    def __iter__(self):
        return iter(self._channel_ids)

    def __len__(self) -> int:
        return len(self._channel_ids)

    def __repr__(self) -> str:
        return (
            f"ChannelModelSet(n_channels={self.n_channels}, "
            f"classes={self._class_labels}, "
            f"distinguished={self._distinguished!r}, prior={self._prior:.3f})"
        )


class ChannelModelEstimator:
    """
    Fit a Gaussian per channel per class from labelled training trials.

    Example:
        >>> estimator = ChannelModelEstimator()
        >>> models = estimator.estimate(train_set)
        >>> models.to_frame().head()
    """

    def __init__(self, ddof: int = 1, verbose: bool = False):
        """
        Initialize estimator.

        Args:
            ddof: Delta degrees of freedom for the standard deviation
                (1 = sample standard deviation). Classes with no more
                than ddof trials get std = 0.
            verbose: Print a short fitting report
        """
        if ddof < 0:
            raise ValueError(f"ddof must be >= 0, got {ddof}")
        self.ddof = ddof
        self.verbose = verbose

    @classmethod
    def from_config(cls, config) -> "ChannelModelEstimator":
        """Build from a FusionConfig."""
        return cls(ddof=config.estimation.ddof, verbose=config.verbose)

    def estimate(
        self,
        training_set: TrialSet,
        channel_ids: Optional[Sequence] = None,
        class_labels: Optional[Sequence] = None
    ) -> ChannelModelSet:
        """
        Estimate channel models.

        Args:
            training_set: Labelled training trials
            channel_ids: Channels to fit (default: all)
            class_labels: The two class labels (default: the set's classes)

        Returns:
            Immutable ChannelModelSet

        Raises:
            InsufficientDataError: A channel/class pair has no trials
            InvalidChannelReferenceError: Unknown channel id
        """
        if channel_ids is None:
            channel_ids = list(training_set.channel_names)
        columns = training_set.channel_index(channel_ids)

        if class_labels is None:
            class_labels = training_set.class_names
        class_labels = list(class_labels)
        if len(class_labels) < 2:
            # Only one class was ever seen, so the other has no trials
            channel = channel_ids[0] if len(channel_ids) else None
            raise InsufficientDataError(channel, None)
        if len(class_labels) > 2:
            raise ValueError(
                f"Exactly two class labels required, got {class_labels}"
            )

        distinguished = training_set.distinguished_class
        if distinguished not in class_labels:
            distinguished = class_labels[-1]

        models: Dict[Tuple[Any, Any], GaussianModel] = {}
        n_per_class = {}

        for label in class_labels:
            mask = training_set.y == label
            n = int(np.sum(mask))
            n_per_class[label] = n

            if n == 0:
                channel = channel_ids[0] if len(channel_ids) else None
                raise InsufficientDataError(channel, label)

            values = training_set.X[mask][:, columns]
            means = values.mean(axis=0)
            if n > self.ddof:
                stds = values.std(axis=0, ddof=self.ddof)
            else:
                stds = np.zeros(len(channel_ids))

            for channel, mean, std in zip(channel_ids, means, stds):
                models[channel, label] = GaussianModel(float(mean), float(std), n)

        total = sum(n_per_class.values())
        counts = list(n_per_class.values())
        if (max(counts) - min(counts)) / max(counts) >= 0.1:
            warnings.warn(f"Training classes are imbalanced: {n_per_class}")

        prior = n_per_class[distinguished] / total

        model_set = ChannelModelSet(
            models, channel_ids, class_labels, distinguished, prior
        )

        degenerate = model_set.degenerate_channels()
        if degenerate:
            warnings.warn(
                f"{len(degenerate)} channel(s) have zero variance for at least "
                f"one class: {degenerate[:10]}"
            )

        if self.verbose:
            print(f"Fitted {len(channel_ids)} channels x {len(class_labels)} classes "
                  f"from {total} trials")
            print(f"Prior P({distinguished}) = {prior:.3f}")

        return model_set
