"""
Result containers for sequential fusion evaluation.

AccuracyCurve maps the number of channels incorporated to mean decoding
accuracy; ChannelAccuracy holds independent single-channel accuracy;
FusionDecoding holds final-belief decisions for a set of trials.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import json
from pathlib import Path

import numpy as np
import pandas as pd

from .dataset import _to_builtin


@dataclass
class AccuracyCurve:
    """
    Mean decoding accuracy as a function of channels incorporated.

    Attributes:
        accuracy: Mean accuracy after k channels, k = 1..N
        accuracy_std: Standard deviation of correctness across runs
        n_trials: Trials evaluated
        n_repetitions: Random orderings per trial
        channels: Channels the orderings were drawn from
        policy: Name of the channel subset policy
        metadata: Additional information

    Example:
        >>> curve = evaluator.evaluate(models, test_set)
        >>> print(f"All channels: {curve.final_accuracy:.1%}")
        >>> curve.plot()
    """

    accuracy: np.ndarray
    accuracy_std: Optional[np.ndarray] = None
    n_trials: int = 0
    n_repetitions: int = 0
    channels: List[Any] = field(default_factory=list)
    policy: str = "all"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.accuracy = np.asarray(self.accuracy, dtype=float)
        if self.accuracy_std is not None:
            self.accuracy_std = np.asarray(self.accuracy_std, dtype=float)

    @property
    def n_channels(self) -> np.ndarray:
        """Channel counts 1..N."""
        return np.arange(1, len(self.accuracy) + 1)

    @property
    def final_accuracy(self) -> float:
        """Accuracy with every channel incorporated."""
        return float(self.accuracy[-1])

    @property
    def peak(self) -> Tuple[int, float]:
        """(channel count, accuracy) of the best point on the curve."""
        k = int(np.argmax(self.accuracy))
        return k + 1, float(self.accuracy[k])

    def accuracy_at(self, k: int) -> float:
        """
        Mean accuracy after k channels.

        Args:
            k: Number of channels, 1..N
        """
        if not 1 <= k <= len(self.accuracy):
            raise ValueError(
                f"k must be in 1..{len(self.accuracy)}, got {k}"
            )
        return float(self.accuracy[k - 1])

    def to_series(self) -> pd.Series:
        """Accuracy indexed by channel count."""
        return pd.Series(
            self.accuracy,
            index=pd.Index(self.n_channels, name="n_channels"),
            name=self.policy
        )

    def to_frame(self) -> pd.DataFrame:
        """Table with channel count, accuracy and std."""
        df = pd.DataFrame({
            "n_channels": self.n_channels,
            "accuracy": self.accuracy
        })
        if self.accuracy_std is not None:
            df["accuracy_std"] = self.accuracy_std
        return df

    def summary(self) -> str:
        """Generate text summary of the curve."""
        k_best, acc_best = self.peak
        lines = [
            f"Accuracy Curve ({self.policy})",
            "=" * 40,
            f"Channels: {len(self.accuracy)}",
            f"Trials: {self.n_trials}",
            f"Orderings per trial: {self.n_repetitions}",
            f"1 channel: {self.accuracy[0]:.1%}",
            f"All channels: {self.final_accuracy:.1%}",
            f"Peak: {acc_best:.1%} at {k_best} channels",
        ]
        if "majority_baseline" in self.metadata:
            lines.append(
                f"Majority baseline: {self.metadata['majority_baseline']:.1%}"
            )
        return "\n".join(lines)

    def plot(self, **kwargs):
        """Plot the curve (see visualization.plot_accuracy_curves)."""
        from ..visualization.curves import plot_accuracy_curves
        return plot_accuracy_curves({self.policy: self}, **kwargs)

    def save(self, path: str):
        """Save curve to JSON file."""
        data = {
            "policy": self.policy,
            "n_channels": self.n_channels.tolist(),
            "accuracy": self.accuracy.tolist(),
            "accuracy_std": (
                self.accuracy_std.tolist() if self.accuracy_std is not None else None
            ),
            "n_trials": self.n_trials,
            "n_repetitions": self.n_repetitions,
            "channels": [_to_builtin(c) for c in self.channels],
            "metadata": self.metadata
        }
        with open(Path(path), "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls, path: str) -> "AccuracyCurve":
        """Load curve from JSON file."""
        with open(Path(path)) as f:
            data = json.load(f)
        return cls(
            accuracy=data["accuracy"],
            accuracy_std=data.get("accuracy_std"),
            n_trials=data.get("n_trials", 0),
            n_repetitions=data.get("n_repetitions", 0),
            channels=data.get("channels", []),
            policy=data.get("policy", "all"),
            metadata=data.get("metadata", {})
        )

    def __len__(self) -> int:
        return len(self.accuracy)

    def __repr__(self) -> str:
        return (
            f"AccuracyCurve(policy='{self.policy}', n_channels={len(self.accuracy)}, "
            f"final={self.final_accuracy:.1%})"
        )


@dataclass
class ChannelAccuracy:
    """
    Independent (non-fused) decoding accuracy of each channel.

    Attributes:
        accuracy: Channel identifier -> accuracy in [0, 1]
        n_trials: Trials evaluated
        prior: Prior used for every single-channel posterior
    """

    accuracy: Dict[Any, float]
    n_trials: int = 0
    prior: Optional[float] = None

    def below(self, threshold: float = 0.60) -> List[Any]:
        """Channels whose accuracy is below the threshold, worst first."""
        return [c for c, acc in self._sorted() if acc < threshold]

    def weakest(self, n: int) -> List[Any]:
        """The n channels with the lowest accuracy, worst first."""
        return [c for c, _ in self._sorted()[:n]]

    def _sorted(self) -> List[Tuple[Any, float]]:
        # Stable sort keeps channel order among ties
        return sorted(self.accuracy.items(), key=lambda item: item[1])

    def to_series(self) -> pd.Series:
        """Accuracy indexed by channel."""
        return pd.Series(self.accuracy, name="accuracy", dtype=float)

    def summary(self, threshold: float = 0.60) -> str:
        """Generate text summary of per-channel accuracy."""
        values = np.array(list(self.accuracy.values()))
        weak = self.below(threshold)
        lines = [
            "Per-Channel Accuracy",
            "=" * 40,
            f"Channels: {len(values)}",
            f"Trials: {self.n_trials}",
            f"Mean: {values.mean():.1%}",
            f"Range: {values.min():.1%} - {values.max():.1%}",
            f"Below {threshold:.0%}: {len(weak)}",
        ]
        return "\n".join(lines)

    def save(self, path: str):
        """Save table to CSV file."""
        self.to_series().rename_axis("channel").to_csv(path)

    def __getitem__(self, channel) -> float:
        return self.accuracy[channel]

    def __len__(self) -> int:
        return len(self.accuracy)

    def __repr__(self) -> str:
        return f"ChannelAccuracy(n_channels={len(self.accuracy)}, n_trials={self.n_trials})"


@dataclass
class FusionDecoding:
    """
    Final-belief decisions for a set of trials.

    Attributes:
        probabilities: P(distinguished) after all channels, per trial
        predictions: Decoded labels
        true_labels: Ground-truth labels
        distinguished_class: Label the probabilities refer to
        ordering: Channel ordering used (None = model order)
    """

    probabilities: np.ndarray
    predictions: np.ndarray
    true_labels: np.ndarray
    distinguished_class: Any = None
    ordering: Optional[List[Any]] = None

    @property
    def accuracy(self) -> float:
        """Fraction of trials decoded correctly."""
        return float(np.mean(self.predictions == self.true_labels))

    def metrics(self) -> Dict[str, float]:
        """Classification metrics for the final decisions."""
        from ..validation.metrics import compute_metrics
        return compute_metrics(
            self.true_labels, self.predictions, pos_label=self.distinguished_class
        )

    def __repr__(self) -> str:
        return f"FusionDecoding(n_trials={len(self.true_labels)}, accuracy={self.accuracy:.1%})"
