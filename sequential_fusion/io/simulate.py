"""
Synthetic trial tables with known channel separability.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from ..core.dataset import TrialSet


def simulate_trial_set(
    n_per_class: int = 100,
    means: Optional[Sequence[Tuple[float, float]]] = None,
    stds: Optional[Sequence[Tuple[float, float]]] = None,
    class_names: Tuple = ("left", "right"),
    channel_names: Optional[Sequence[str]] = None,
    shuffle: bool = True,
    seed: int = 42
) -> TrialSet:
    """Simulate independent Gaussian channels for two classes.

    Channel j draws class-0 trials from N(means[j][0], stds[j][0]) and
    class-1 trials from N(means[j][1], stds[j][1]).

    Parameters
    ----------
    n_per_class : int
        Trials per class.
    means : sequence of (float, float)
        Per-channel class means. Default: three channels with increasing
        separation.
    stds : sequence of (float, float)
        Per-channel class standard deviations. Default: all 1.
    class_names : tuple
        (class 0 label, class 1 label); class 1 is distinguished.
    channel_names : sequence of str
        Channel identifiers. Default: channel_0, channel_1, ...
    shuffle : bool
        Interleave the classes in random order.
    seed : int
        Random seed.

    Returns
    -------
    TrialSet
    """
    if n_per_class < 1:
        raise ValueError(f"n_per_class must be >= 1, got {n_per_class}")

    if means is None:
        means = [(0.0, 0.5), (0.0, 1.0), (0.0, 2.0)]
    means = np.asarray(means, dtype=float)
    if means.ndim != 2 or means.shape[1] != 2:
        raise ValueError("means must be a sequence of (class 0, class 1) pairs")

    if stds is None:
        stds = np.ones_like(means)
    stds = np.asarray(stds, dtype=float)
    if stds.shape != means.shape:
        raise ValueError(f"stds shape {stds.shape} != means shape {means.shape}")

    rng = np.random.default_rng(seed)
    n_channels = means.shape[0]

    X = np.vstack([
        rng.normal(means[:, k], stds[:, k], size=(n_per_class, n_channels))
        for k in range(2)
    ])
    y = np.repeat(np.asarray(class_names), n_per_class)

    if shuffle:
        order = rng.permutation(len(y))
        X, y = X[order], y[order]

    return TrialSet(
        X=X,
        y=y,
        channel_names=channel_names,
        class_names=list(class_names),
        distinguished_class=class_names[1],
        metadata={"simulated": True, "seed": seed, "n_per_class": n_per_class}
    )
