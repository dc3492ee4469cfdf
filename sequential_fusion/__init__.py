"""
Sequential Bayesian Channel Fusion

Decode a binary class (e.g. movement direction) from independent
per-channel readings by folding channels into a belief one at a time,
and measure how accuracy grows as channels are incorporated.

Example:
    >>> from sequential_fusion import (
    ...     ChannelModelEstimator, DecodingEvaluator, simulate_trial_set
    ... )
    >>>
    >>> trials = simulate_trial_set(n_per_class=200)
    >>> train_set, test_set = trials.train_test_split(test_size=0.5)
    >>> models = ChannelModelEstimator().estimate(train_set)
    >>>
    >>> evaluator = DecodingEvaluator(n_repetitions=50, random_state=42)
    >>> curve = evaluator.evaluate(models, test_set)
    >>> print(f"Accuracy: {curve.final_accuracy:.1%}")
"""

__version__ = "0.1.0"
__author__ = "Neuro-Hub"

# Core data structures
from .core import (
    TrialSet,
    AccuracyCurve,
    ChannelAccuracy,
    FusionDecoding,
    FusionConfig
)

# Errors
from .errors import (
    FusionError,
    InsufficientDataError,
    InvalidChannelReferenceError,
    EmptyTrialSetError
)

# Data loading
from .io import TrialTableLoader, simulate_trial_set

# Models
from .models import (
    ChannelModelEstimator,
    ChannelModelSet,
    GaussianModel,
    SingleChannelPosterior,
    SequentialFusionEngine,
    SequentialBayesDecoder
)

# Channel selection
from .features import (
    AllChannels,
    ChannelSubset,
    WeakestChannels,
    WeakChannelSelector
)

# Evaluation
from .validation import DecodingEvaluator, OrderingGenerator

__all__ = [
    # Core
    "TrialSet",
    "AccuracyCurve",
    "ChannelAccuracy",
    "FusionDecoding",
    "FusionConfig",
    # Errors
    "FusionError",
    "InsufficientDataError",
    "InvalidChannelReferenceError",
    "EmptyTrialSetError",
    # IO
    "TrialTableLoader",
    "simulate_trial_set",
    # Models
    "ChannelModelEstimator",
    "ChannelModelSet",
    "GaussianModel",
    "SingleChannelPosterior",
    "SequentialFusionEngine",
    "SequentialBayesDecoder",
    # Channel selection
    "AllChannels",
    "ChannelSubset",
    "WeakestChannels",
    "WeakChannelSelector",
    # Evaluation
    "DecodingEvaluator",
    "OrderingGenerator",
]
