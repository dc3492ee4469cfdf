"""Core data models for sequential fusion."""

from .dataset import TrialSet
from .results import AccuracyCurve, ChannelAccuracy, FusionDecoding
from .config import FusionConfig, get_config, set_config

__all__ = [
    "TrialSet",
    "AccuracyCurve",
    "ChannelAccuracy",
    "FusionDecoding",
    "FusionConfig",
    "get_config",
    "set_config"
]
