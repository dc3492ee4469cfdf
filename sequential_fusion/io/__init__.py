"""Trial table loading and simulation."""

from .loaders import TrialTableLoader
from .simulate import simulate_trial_set

__all__ = ["TrialTableLoader", "simulate_trial_set"]
