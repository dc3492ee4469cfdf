"""
FusionConfig - Configuration settings for sequential fusion analyses.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional
import os
import json
from pathlib import Path


@dataclass
class EstimationConfig:
    """Configuration for channel model estimation."""

    # Delta degrees of freedom for the per-class standard deviation
    ddof: int = 1

    def __post_init__(self):
        if self.ddof < 0:
            raise ValueError(f"ddof must be >= 0, got {self.ddof}")


@dataclass
class EvaluationConfig:
    """Configuration for accuracy-vs-channel-count evaluation."""

    n_repetitions: int = 100
    n_trials: Optional[int] = None  # None = every trial
    n_jobs: int = 1

    def __post_init__(self):
        if self.n_repetitions < 1:
            raise ValueError(
                f"n_repetitions must be >= 1, got {self.n_repetitions}"
            )
        if self.n_trials is not None and self.n_trials < 0:
            raise ValueError(f"n_trials must be >= 0, got {self.n_trials}")


@dataclass
class ChannelSelectionConfig:
    """Configuration for building the weak-channel subset."""

    weak_channel_threshold: float = 0.60
    n_weakest: Optional[int] = None  # None = every channel below threshold

    def __post_init__(self):
        if not 0.0 < self.weak_channel_threshold < 1.0:
            raise ValueError(
                "weak_channel_threshold must be in (0, 1), "
                f"got {self.weak_channel_threshold}"
            )
        if self.n_weakest is not None and self.n_weakest < 1:
            raise ValueError(f"n_weakest must be >= 1, got {self.n_weakest}")


@dataclass
class FusionConfig:
    """
    Global configuration for sequential fusion analyses.

    Example:
        >>> config = FusionConfig.from_env()
        >>> config.evaluation.n_repetitions = 500
        >>> config.save("my_config.json")
    """

    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    selection: ChannelSelectionConfig = field(default_factory=ChannelSelectionConfig)

    # Paths
    results_dir: str = "results"
    figures_dir: str = "figures"

    # General
    random_state: Optional[int] = 42
    verbose: bool = False

    @property
    def n_repetitions(self) -> int:
        return self.evaluation.n_repetitions

    @property
    def weak_channel_threshold(self) -> float:
        return self.selection.weak_channel_threshold

    @classmethod
    def from_env(cls) -> "FusionConfig":
        """Load configuration from environment variables."""
        seed = os.getenv("FUSION_RANDOM_STATE", "42")
        return cls(
            evaluation=EvaluationConfig(
                n_repetitions=int(os.getenv("FUSION_N_REPETITIONS", "100")),
                n_jobs=int(os.getenv("FUSION_N_JOBS", "1"))
            ),
            selection=ChannelSelectionConfig(
                weak_channel_threshold=float(
                    os.getenv("FUSION_WEAK_THRESHOLD", "0.60")
                )
            ),
            results_dir=os.getenv("FUSION_RESULTS_DIR", "results"),
            figures_dir=os.getenv("FUSION_FIGURES_DIR", "figures"),
            random_state=None if seed.lower() in ("", "none") else int(seed)
        )

    @classmethod
    def from_file(cls, path: str) -> "FusionConfig":
        """Load configuration from JSON file."""
        with open(path) as f:
            data = json.load(f)

        config = cls()

        if "estimation" in data:
            config.estimation = EstimationConfig(**data["estimation"])
        if "evaluation" in data:
            config.evaluation = EvaluationConfig(**data["evaluation"])
        if "selection" in data:
            config.selection = ChannelSelectionConfig(**data["selection"])

        for key in ["results_dir", "figures_dir", "random_state", "verbose"]:
            if key in data:
                setattr(config, key, data[key])

        return config

    def save(self, path: str):
        """Save configuration to JSON file."""
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)

    def ensure_dirs(self):
        """Create output directories."""
        for d in [self.results_dir, self.figures_dir]:
            Path(d).mkdir(parents=True, exist_ok=True)


# Global config instance
_config: Optional[FusionConfig] = None


def get_config() -> FusionConfig:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = FusionConfig.from_env()
    return _config


def set_config(config: FusionConfig):
    """Set global configuration instance."""
    global _config
    _config = config
