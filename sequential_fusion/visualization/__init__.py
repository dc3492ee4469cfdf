"""Visualization tools for sequential fusion results."""

from .curves import (
    plot_accuracy_curves,
    plot_channel_accuracy,
    plot_channel_densities,
    plot_trajectory
)

__all__ = [
    "plot_accuracy_curves",
    "plot_channel_accuracy",
    "plot_channel_densities",
    "plot_trajectory"
]
