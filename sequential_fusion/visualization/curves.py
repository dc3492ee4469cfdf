"""
Plots for sequential fusion results.

Accuracy-vs-channel-count curves, per-channel accuracy, class-conditional
channel densities and single-trial belief trajectories.
"""

from typing import Dict, Optional, Sequence, Tuple
import numpy as np
import matplotlib.pyplot as plt

from ..core.results import AccuracyCurve, ChannelAccuracy
from ..models.channel_model import ChannelModelSet
from ..models.posterior import gaussian_density
from ..validation.metrics import chance_level as chance


def plot_accuracy_curves(
    curves: Dict[str, AccuracyCurve],
    chance_level: Optional[float] = None,
    show_std: bool = False,
    title: str = "Decoding Accuracy vs. Channels Incorporated",
    figsize: Tuple[float, float] = (10, 5),
    output_path: Optional[str] = None
):
    """
    Plot mean accuracy against the number of channels fused.

    Args:
        curves: Label -> AccuracyCurve (e.g. {"all": ..., "weakest": ...})
        chance_level: Horizontal line for chance (default: two-class chance)
        show_std: Shade +/- one standard deviation
        title: Plot title
        figsize: Figure size
        output_path: Path to save figure

    Returns:
        matplotlib Figure
    """
    if chance_level is None:
        chance_level = chance()

    fig, ax = plt.subplots(figsize=figsize)

    for label, curve in curves.items():
        ax.plot(curve.n_channels, curve.accuracy, linewidth=2,
                marker='o', markersize=3, label=f"{label} ({len(curve)} ch)")

        if show_std and curve.accuracy_std is not None:
            ax.fill_between(
                curve.n_channels,
                curve.accuracy - curve.accuracy_std,
                curve.accuracy + curve.accuracy_std,
                alpha=0.2
            )

    ax.axhline(y=chance_level, color='gray', linestyle='--',
               label=f'Chance ({chance_level:.0%})')

    ax.set_xlabel("Channels incorporated")
    ax.set_ylabel("Accuracy")
    ax.set_title(title)
    ax.set_ylim(0, 1.05)

    ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda x, p: f'{x:.0%}'))
    ax.legend(loc='lower right')

    plt.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=300, bbox_inches='tight')

    return fig


def plot_channel_accuracy(
    table: ChannelAccuracy,
    threshold: Optional[float] = 0.60,
    sort: bool = True,
    title: str = "Single-Channel Decoding Accuracy",
    figsize: Tuple[float, float] = (12, 4),
    output_path: Optional[str] = None
):
    """
    Bar plot of independent per-channel accuracy.

    Args:
        table: Per-channel accuracy
        threshold: Weak-channel threshold to mark (None to hide)
        sort: Order bars from weakest to strongest
        title: Plot title
        figsize: Figure size
        output_path: Path to save figure

    Returns:
        matplotlib Figure
    """
    series = table.to_series()
    if sort:
        series = series.sort_values(kind="stable")

    fig, ax = plt.subplots(figsize=figsize)

    colors = ['indianred' if threshold is not None and v < threshold else 'steelblue'
              for v in series.values]
    ax.bar(np.arange(len(series)), series.values, color=colors, edgecolor='black')

    if threshold is not None:
        ax.axhline(y=threshold, color='orange', linestyle='--',
                   label=f'Threshold ({threshold:.0%})')
        ax.legend()

    ax.set_xticks(np.arange(len(series)))
    ax.set_xticklabels([str(c) for c in series.index], rotation=90, fontsize=7)
    ax.set_xlabel("Channel")
    ax.set_ylabel("Accuracy")
    ax.set_title(title)
    ax.set_ylim(0, 1)

    plt.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=300, bbox_inches='tight')

    return fig


def plot_channel_densities(
    models: ChannelModelSet,
    channels: Optional[Sequence] = None,
    n_points: int = 200,
    n_cols: int = 4,
    figsize_per_panel: Tuple[float, float] = (3.5, 2.5),
    output_path: Optional[str] = None
):
    """
    Class-conditional Gaussian densities for selected channels.

    Args:
        models: Fitted channel models
        channels: Channels to draw (default: first 8)
        n_points: Points per density curve
        n_cols: Panels per row
        figsize_per_panel: Size of each panel
        output_path: Path to save figure

    Returns:
        matplotlib Figure
    """
    if channels is None:
        channels = list(models.channel_ids)[:8]
    channels = list(channels)
    models.validate_channels(channels)

    n_rows = int(np.ceil(len(channels) / n_cols))
    fig, axes = plt.subplots(
        n_rows, n_cols,
        figsize=(figsize_per_panel[0] * n_cols, figsize_per_panel[1] * n_rows),
        squeeze=False
    )

    for ax, channel in zip(axes.flat, channels):
        params = [models[channel, label] for label in models.class_labels]
        lo = min(p.mean - 4 * max(p.std, 1e-3) for p in params)
        hi = max(p.mean + 4 * max(p.std, 1e-3) for p in params)
        grid = np.linspace(lo, hi, n_points)

        for label, p in zip(models.class_labels, params):
            if p.is_degenerate:
                ax.axvline(p.mean, linewidth=2, label=f"{label} (const)")
            else:
                ax.plot(grid, gaussian_density(grid, p.mean, p.std),
                        linewidth=2, label=str(label))

        ax.set_title(str(channel), fontsize=9)
        ax.legend(fontsize=7)

    for ax in list(axes.flat)[len(channels):]:
        ax.axis('off')

    plt.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=300, bbox_inches='tight')

    return fig


def plot_trajectory(
    trajectory: np.ndarray,
    ordering: Optional[Sequence] = None,
    initial_prior: Optional[float] = None,
    distinguished_class: str = "distinguished",
    title: str = "Belief Trajectory",
    figsize: Tuple[float, float] = (10, 4),
    output_path: Optional[str] = None
):
    """
    Belief in the distinguished class after each fused channel.

    Args:
        trajectory: Posterior after each channel
        ordering: Channel order (used as tick labels)
        initial_prior: Belief before the first channel (drawn at x = 0)
        distinguished_class: Label for the y-axis
        title: Plot title
        figsize: Figure size
        output_path: Path to save figure

    Returns:
        matplotlib Figure
    """
    trajectory = np.asarray(trajectory)
    steps = np.arange(1, len(trajectory) + 1)

    fig, ax = plt.subplots(figsize=figsize)

    if initial_prior is not None:
        ax.plot(np.r_[0, steps], np.r_[initial_prior, trajectory],
                color='steelblue', linewidth=2, marker='o', markersize=4)
    else:
        ax.plot(steps, trajectory, color='steelblue', linewidth=2,
                marker='o', markersize=4)

    ax.axhline(y=0.5, color='gray', linestyle='--')

    if ordering is not None:
        ax.set_xticks(steps)
        ax.set_xticklabels([str(c) for c in ordering], rotation=90, fontsize=7)

    ax.set_xlabel("Channel")
    ax.set_ylabel(f"P({distinguished_class})")
    ax.set_title(title)
    ax.set_ylim(-0.02, 1.02)

    plt.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=300, bbox_inches='tight')

    return fig
