"""Evaluation harness, orderings and metrics for sequential fusion."""

from .evaluator import DecodingEvaluator, per_channel_accuracy
from .orderings import OrderingGenerator
from .metrics import (
    chance_level,
    compute_metrics,
    correctness,
    decode,
    majority_baseline
)

__all__ = [
    "DecodingEvaluator",
    "per_channel_accuracy",
    "OrderingGenerator",
    "chance_level",
    "compute_metrics",
    "correctness",
    "decode",
    "majority_baseline"
]
