"""
Scikit-learn style decoder built on sequential channel fusion.
"""

from typing import Any, List, Optional, Sequence

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from ..core.dataset import TrialSet
from .channel_model import ChannelModelEstimator, ChannelModelSet
from .fusion import SequentialFusionEngine


class SequentialBayesDecoder(ClassifierMixin, BaseEstimator):
    """
    Naive-Bayes style binary decoder that fuses channels one at a time.

    Fits one Gaussian per channel per class and decodes a trial by folding
    all channels into the belief, starting from the training base rate.

    Example:
        >>> decoder = SequentialBayesDecoder()
        >>> decoder.fit(X_train, y_train)
        >>> accuracy = decoder.score(X_test, y_test)
    """

    def __init__(self, ddof: int = 1, distinguished_class: Any = None):
        """
        Initialize decoder.

        Args:
            ddof: Delta degrees of freedom for the class standard deviations
            distinguished_class: Class whose belief is tracked
                (default: second sorted label)
        """
        self.ddof = ddof
        self.distinguished_class = distinguished_class

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        channel_names: Optional[List[str]] = None
    ) -> "SequentialBayesDecoder":
        """Fit channel models on training data."""
        trials = TrialSet(
            X=X,
            y=y,
            channel_names=channel_names,
            distinguished_class=self.distinguished_class
        )
        return self.fit_dataset(trials)

    def fit_dataset(self, trials: TrialSet) -> "SequentialBayesDecoder":
        """Fit channel models on a TrialSet."""
        if trials.n_classes != 2:
            raise ValueError(
                f"Training data must contain both classes, got {trials.class_counts}"
            )

        self.models_: ChannelModelSet = ChannelModelEstimator(
            ddof=self.ddof
        ).estimate(trials)
        self.classes_ = np.array(self.models_.class_labels)
        self.n_features_in_ = trials.n_channels
        self.engine_ = SequentialFusionEngine()
        return self

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """
        Class probabilities after fusing every channel.

        Returns:
            Probabilities (n_trials, 2), columns ordered as ``classes_``
        """
        X = self._check_X(X)
        ordering = self.models_.channel_ids

        p_d = np.array([
            self.engine_.fuse_final(self.models_, ordering, row)
            for row in X
        ])

        proba = np.empty((len(X), 2))
        d_col = int(np.flatnonzero(self.classes_ == self.models_.distinguished_class)[0])
        proba[:, d_col] = p_d
        proba[:, 1 - d_col] = 1.0 - p_d
        return proba

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Predict class labels (0.5 decodes to the distinguished class)."""
        proba = self.predict_proba(X)
        d_col = int(np.flatnonzero(self.classes_ == self.models_.distinguished_class)[0])
        return np.where(
            proba[:, d_col] >= 0.5,
            self.models_.distinguished_class,
            self.models_.other_class
        )

    def trajectory(
        self,
        x: np.ndarray,
        ordering: Optional[Sequence] = None
    ) -> np.ndarray:
        """Belief after each channel for one trial."""
        self._check_fitted()
        if ordering is None:
            ordering = self.models_.channel_ids
        return self.engine_.fuse(self.models_, ordering, np.asarray(x, dtype=float))

    def _check_fitted(self):
        if not hasattr(self, "models_"):
            raise ValueError("Must call fit() first")

    def _check_X(self, X: np.ndarray) -> np.ndarray:
        self._check_fitted()
        X = np.atleast_2d(np.asarray(X, dtype=float))
        if X.shape[1] != self.n_features_in_:
            raise ValueError(
                f"X has {X.shape[1]} channels, decoder was fitted with "
                f"{self.n_features_in_}"
            )
        return X

    def __repr__(self) -> str:
        fitted_str = "fitted" if hasattr(self, "models_") else "not fitted"
        return f"SequentialBayesDecoder(ddof={self.ddof}, {fitted_str})"
