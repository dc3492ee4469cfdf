"""
TrialSet - Container for labelled multi-channel trials.

One row per trial, one real-valued column per channel and a two-valued
ground-truth label. Channels are addressed by name.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Sequence, Union
import numpy as np
import pandas as pd
import json
from pathlib import Path

from ..errors import InvalidChannelReferenceError


@dataclass
class TrialSet:
    """
    Container for binary-class channel observations.

    Attributes:
        X: Channel values (n_trials, n_channels)
        y: Ground-truth labels (n_trials,), exactly two distinct values
        channel_names: Stable identifier for each channel (column of X)
        class_names: The two class labels, sorted
        distinguished_class: Label whose probability the belief tracks
            (defaults to the second of the sorted labels)
        metadata: Additional information (subject, session, etc.)

    Example:
        >>> trials = TrialSet(
        ...     X=np.random.randn(100, 8),
        ...     y=np.array(["left", "right"] * 50),
        ...     distinguished_class="right"
        ... )
        >>> print(trials.summary())
    """

    X: np.ndarray
    y: np.ndarray
    channel_names: Optional[List[str]] = None
    class_names: Optional[List[Any]] = None
    distinguished_class: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate and set defaults after initialization."""
        self.X = np.asarray(self.X, dtype=float)
        self.y = np.asarray(self.y)
        if self.y.dtype == object:
            # pandas hands labels over as objects; npz needs a concrete dtype
            self.y = np.asarray(self.y.tolist())

        if self.X.ndim != 2:
            raise ValueError(
                f"X must be 2D (n_trials, n_channels). Got shape {self.X.shape}"
            )

        if self.X.shape[0] != len(self.y):
            raise ValueError(
                f"X and y must have same number of trials. "
                f"Got X: {self.X.shape[0]}, y: {len(self.y)}"
            )

        if not np.all(np.isfinite(self.X)):
            raise ValueError("Channel values must be finite (no NaN or Inf)")

        if self.channel_names is None:
            self.channel_names = [f"channel_{i}" for i in range(self.n_channels)]
        else:
            self.channel_names = list(self.channel_names)

        if len(self.channel_names) != self.n_channels:
            raise ValueError(
                f"Got {len(self.channel_names)} channel names for "
                f"{self.n_channels} channels"
            )
        if len(set(self.channel_names)) != len(self.channel_names):
            raise ValueError("Channel names must be unique")

        if self.class_names is None:
            self.class_names = list(np.unique(self.y))
        else:
            self.class_names = sorted(self.class_names)

        if len(self.class_names) > 2:
            raise ValueError(
                f"Binary decoding needs at most two classes, got {self.class_names}"
            )

        unknown = set(np.unique(self.y)) - set(self.class_names)
        if unknown:
            raise ValueError(f"Labels {sorted(unknown)} not in class_names")

        if self.distinguished_class is None and self.class_names:
            self.distinguished_class = self.class_names[-1]
        elif (self.distinguished_class is not None
              and self.distinguished_class not in self.class_names):
            raise ValueError(
                f"distinguished_class {self.distinguished_class!r} "
                f"not in {self.class_names}"
            )

    @property
    def n_trials(self) -> int:
        """Number of trials."""
        return self.X.shape[0]

    @property
    def n_channels(self) -> int:
        """Number of channels."""
        return self.X.shape[1]

    @property
    def n_classes(self) -> int:
        """Number of unique classes present."""
        return len(np.unique(self.y))

    @property
    def other_class(self) -> Any:
        """The non-distinguished class label."""
        others = [c for c in self.class_names if c != self.distinguished_class]
        return others[0] if others else None

    @property
    def targets(self) -> np.ndarray:
        """Ground truth as 1 (distinguished class) / 0 (other class)."""
        return (self.y == self.distinguished_class).astype(int)

    @property
    def base_rate(self) -> float:
        """Empirical frequency of the distinguished class."""
        if self.n_trials == 0:
            raise ValueError("Base rate is undefined for an empty trial set")
        return float(np.mean(self.targets))

    @property
    def class_counts(self) -> Dict[Any, int]:
        """Count of trials per class."""
        return {c: int(np.sum(self.y == c)) for c in self.class_names}

    @property
    def is_balanced(self) -> bool:
        """Check if classes are balanced (within 10%)."""
        counts = list(self.class_counts.values())
        if not counts or max(counts) == 0:
            return True
        return (max(counts) - min(counts)) / max(counts) < 0.1

    def channel_index(self, channels: Sequence) -> np.ndarray:
        """
        Column indices of the given channel names.

        Raises:
            InvalidChannelReferenceError: If any channel is unknown
        """
        lookup = {name: i for i, name in enumerate(self.channel_names)}
        missing = [c for c in channels if c not in lookup]
        if missing:
            raise InvalidChannelReferenceError(missing)
        return np.array([lookup[c] for c in channels], dtype=int)

    def get_subset(
        self,
        indices: Optional[np.ndarray] = None,
        channels: Optional[Sequence] = None
    ) -> "TrialSet":
        """
        Get subset of trials and/or channels.

        Args:
            indices: Trial indices to include (order is kept)
            channels: Channel names to include

        Returns:
            New TrialSet with subset
        """
        X, y = self.X, self.y

        if indices is not None:
            indices = np.asarray(indices, dtype=int)
            X, y = X[indices], y[indices]

        channel_names = self.channel_names
        if channels is not None:
            columns = self.channel_index(channels)
            X = X[:, columns]
            channel_names = list(channels)

        return TrialSet(
            X=X,
            y=y,
            channel_names=channel_names,
            class_names=self.class_names,
            distinguished_class=self.distinguished_class,
            metadata=self.metadata.copy()
        )

    def train_test_split(
        self,
        test_size: Union[float, int] = 0.25,
        random_state: Optional[int] = 42,
        stratify: bool = True
    ) -> tuple:
        """
        Split trials into training and test sets.

        Args:
            test_size: Fraction (or count) of trials held out
            random_state: Random seed
            stratify: Keep class proportions in both halves

        Returns:
            Tuple of (train_set, test_set)
        """
        from sklearn.model_selection import train_test_split

        train_idx, test_idx = train_test_split(
            np.arange(self.n_trials),
            test_size=test_size,
            random_state=random_state,
            stratify=self.y if stratify else None
        )
        return self.get_subset(indices=train_idx), self.get_subset(indices=test_idx)

    def to_frame(self, label_column: str = "label") -> pd.DataFrame:
        """Get trials as a DataFrame (one column per channel plus labels)."""
        df = pd.DataFrame(self.X, columns=self.channel_names)
        df[label_column] = self.y
        return df

    def summary(self) -> str:
        """Generate text summary of trial set."""
        lines = [
            "TrialSet Summary",
            "=" * 40,
            f"Trials: {self.n_trials}",
            f"Channels: {self.n_channels}",
            f"Classes: {self.n_classes}",
            f"Distinguished class: {self.distinguished_class}",
            f"Balanced: {'Yes' if self.is_balanced else 'No'}",
            "",
            "Class distribution:",
        ]

        for name, count in self.class_counts.items():
            pct = count / self.n_trials * 100 if self.n_trials else 0.0
            lines.append(f"  {name}: {count} ({pct:.1f}%)")

        if self.metadata:
            lines.append("")
            lines.append("Metadata:")
            for key, value in self.metadata.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)

    def save(self, path: str):
        """
        Save trial set to npz file with a JSON sidecar.

        Args:
            path: Output path (.npz)
        """
        path = Path(path)
        np.savez(path, X=self.X, y=self.y)

        meta = {
            "channel_names": self.channel_names,
            "class_names": [_to_builtin(c) for c in self.class_names],
            "distinguished_class": _to_builtin(self.distinguished_class),
            "metadata": self.metadata
        }
        with open(path.with_suffix(".json"), "w") as f:
            json.dump(meta, f, indent=2)

    @classmethod
    def load(cls, path: str) -> "TrialSet":
        """
        Load trial set from npz file.

        Args:
            path: Path to .npz file

        Returns:
            TrialSet instance
        """
        path = Path(path)
        data = np.load(path, allow_pickle=False)

        meta_path = path.with_suffix(".json")
        if meta_path.exists():
            with open(meta_path) as f:
                meta = json.load(f)
        else:
            meta = {}

        return cls(
            X=data["X"],
            y=data["y"],
            channel_names=meta.get("channel_names"),
            class_names=meta.get("class_names"),
            distinguished_class=meta.get("distinguished_class"),
            metadata=meta.get("metadata", {})
        )

    def __repr__(self) -> str:
        return (
            f"TrialSet(n_trials={self.n_trials}, "
            f"n_channels={self.n_channels}, "
            f"distinguished_class={self.distinguished_class!r})"
        )

    def __len__(self) -> int:
        return self.n_trials


def _to_builtin(value):
    """Convert numpy scalars for JSON."""
    return value.item() if isinstance(value, np.generic) else value
