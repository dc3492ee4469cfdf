"""
Performance metrics for sequential fusion decoding.
"""

from typing import Any, Dict, Optional
import numpy as np


def decode(posterior, threshold: float = 0.5) -> np.ndarray:
    """
    Decode beliefs to the distinguished class (1) or the other class (0).

    Rounds half up: a belief of exactly 0.5 decodes to the distinguished
    class.

    Args:
        posterior: P(distinguished), scalar or array
        threshold: Decision boundary

    Returns:
        0/1 decisions with the shape of ``posterior``
    """
    return (np.asarray(posterior) >= threshold).astype(int)


def correctness(trajectory: np.ndarray, target: int) -> np.ndarray:
    """
    Whether each point of a trajectory decodes to the ground truth.

    Args:
        trajectory: Beliefs after each channel
        target: 1 if the trial belongs to the distinguished class, else 0

    Returns:
        Correctness indicator per position (float, for averaging)
    """
    return (decode(trajectory) == target).astype(float)


def chance_level(n_classes: int = 2) -> float:
    """
    Get chance level accuracy for given number of classes.

    Args:
        n_classes: Number of classes

    Returns:
        Chance level (1 / n_classes)
    """
    return 1.0 / n_classes


def majority_baseline(targets: np.ndarray) -> float:
    """
    Accuracy of always guessing the more frequent class.

    This is what decoding from the base-rate prior alone achieves.
    """
    targets = np.asarray(targets)
    if len(targets) == 0:
        raise ValueError("Baseline is undefined for zero trials")
    rate = np.mean(targets)
    return float(max(rate, 1 - rate))


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    pos_label: Optional[Any] = None
) -> Dict[str, float]:
    """
    Compute binary classification metrics.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        pos_label: Label treated as positive (default: second sorted label)

    Returns:
        Dictionary of metrics
    """
    from sklearn.metrics import (
        accuracy_score,
        balanced_accuracy_score,
        precision_score,
        recall_score,
        f1_score,
        cohen_kappa_score
    )

    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)

    if pos_label is None:
        pos_label = np.unique(np.concatenate([y_true, y_pred]))[-1]

    metrics = {
        "accuracy": accuracy_score(y_true, y_pred),
        "balanced_accuracy": balanced_accuracy_score(y_true, y_pred),
        "precision": precision_score(y_true, y_pred, pos_label=pos_label, zero_division=0),
        "recall": recall_score(y_true, y_pred, pos_label=pos_label, zero_division=0),
        "f1": f1_score(y_true, y_pred, pos_label=pos_label, zero_division=0),
        "cohens_kappa": cohen_kappa_score(y_true, y_pred),
        "n_samples": len(y_true)
    }

    return metrics
