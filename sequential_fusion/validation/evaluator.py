"""
Accuracy of sequential fusion as channels are incorporated.

For every trial and every random ordering of the evaluated channels the
fusion trajectory is decoded position by position. Each (trial, ordering)
run yields a fixed-size 0/1 correctness vector; the vectors are summed
across runs and divided by the run count, giving mean accuracy after
k = 1..N channels.
"""

from typing import Any, Dict, Optional, Sequence, Union
import warnings

import numpy as np
from joblib import Parallel, delayed

from ..core.dataset import TrialSet, _to_builtin
from ..core.results import AccuracyCurve, ChannelAccuracy, FusionDecoding
from ..errors import EmptyTrialSetError
from ..features.selectors import (
    AllChannels,
    ChannelSubset,
    ChannelSubsetPolicy
)
from ..models.channel_model import ChannelModelSet
from ..models.fusion import SequentialFusionEngine
from ..models.posterior import (
    bayes_update,
    class_parameters,
    gaussian_density,
    _check_prior
)
from .metrics import correctness, decode, majority_baseline
from .orderings import OrderingGenerator


def per_channel_accuracy(
    models: ChannelModelSet,
    trials: TrialSet,
    prior: Optional[float] = None
) -> ChannelAccuracy:
    """
    Independent decoding accuracy of each channel (no fusion).

    Every trial's reading on a channel is turned into a single-channel
    posterior from the fixed base-rate prior and rounded.

    Args:
        models: Fitted channel models
        trials: Labelled trials to score
        prior: P(distinguished) for every posterior (default: models.prior)

    Returns:
        ChannelAccuracy table

    Raises:
        EmptyTrialSetError: trials is empty
    """
    if trials.n_trials == 0:
        raise EmptyTrialSetError("Per-channel accuracy is undefined for zero trials")

    prior = _resolve_prior(models, prior)
    channels = list(models.channel_ids)
    targets = _targets(models, trials)

    likelihood_d, likelihood_o = _likelihood_matrix(
        models, channels, trials.X[:, trials.channel_index(channels)]
    )

    accuracy = {}
    for j, channel in enumerate(channels):
        posterior = np.array([
            bayes_update(l_d, l_o, prior)
            for l_d, l_o in zip(likelihood_d[:, j].tolist(), likelihood_o[:, j].tolist())
        ])
        accuracy[channel] = float(np.mean(decode(posterior) == targets))

    return ChannelAccuracy(accuracy=accuracy, n_trials=trials.n_trials, prior=prior)


class DecodingEvaluator:
    """
    Accuracy-vs-channel-count evaluation under random channel orderings.

    Trials are independent jobs run with joblib. Each job gets its own seed
    drawn up front from the evaluator's seeded generator, so results do not
    depend on n_jobs.

    Example:
        >>> evaluator = DecodingEvaluator(n_repetitions=100, random_state=42)
        >>> curve = evaluator.evaluate(models, test_set)
        >>> table = evaluator.per_channel_accuracy(models, test_set)
        >>> weak_curve = evaluator.evaluate(
        ...     models, test_set, channels=WeakestChannels(threshold=0.6)
        ... )
    """

    def __init__(
        self,
        n_repetitions: int = 100,
        random_state: Optional[int] = 42,
        n_jobs: int = 1,
        n_trials: Optional[int] = None,
        verbose: bool = False
    ):
        """
        Initialize evaluator.

        Args:
            n_repetitions: Random orderings per trial
            random_state: Seed for the ordering generator (None = unseeded)
            n_jobs: Parallel jobs (-1 = all CPUs)
            n_trials: Default number of leading trials to evaluate
                (None = every trial)
            verbose: Print progress
        """
        if n_repetitions < 1:
            raise ValueError(f"n_repetitions must be >= 1, got {n_repetitions}")

        self.n_repetitions = n_repetitions
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.n_trials = n_trials
        self.verbose = verbose
        self.engine = SequentialFusionEngine()

    @classmethod
    def from_config(cls, config) -> "DecodingEvaluator":
        """Build from a FusionConfig."""
        return cls(
            n_repetitions=config.evaluation.n_repetitions,
            random_state=config.random_state,
            n_jobs=config.evaluation.n_jobs,
            n_trials=config.evaluation.n_trials,
            verbose=config.verbose
        )

    def evaluate(
        self,
        models: ChannelModelSet,
        trials: TrialSet,
        n_trials: Optional[int] = None,
        n_repetitions: Optional[int] = None,
        channels: Union[ChannelSubsetPolicy, Sequence, None] = None,
        prior: Optional[float] = None
    ) -> AccuracyCurve:
        """
        Mean accuracy after k channels, k = 1..N.

        Args:
            models: Channel models fitted on training data
            trials: Labelled trials to decode
            n_trials: Use the first n_trials trials
                (default: the evaluator's n_trials, else all)
            n_repetitions: Random orderings per trial
                (default: the evaluator's n_repetitions)
            channels: Channel subset policy, or a list of channels
                (default: AllChannels())
            prior: Starting belief (default: the training base rate)

        Returns:
            AccuracyCurve

        Raises:
            EmptyTrialSetError: No trials to evaluate
            InvalidChannelReferenceError: The subset names unknown channels
        """
        n_reps = self.n_repetitions if n_repetitions is None else n_repetitions
        if n_reps < 1:
            raise ValueError(f"n_repetitions must be >= 1, got {n_reps}")

        if trials.n_trials == 0:
            raise EmptyTrialSetError("Accuracy is undefined for zero trials")
        if n_trials is None:
            n_trials = self.n_trials
        if n_trials is None:
            n_trials = trials.n_trials
        if n_trials == 0:
            raise EmptyTrialSetError("Accuracy is undefined for zero trials")
        if not 0 < n_trials <= trials.n_trials:
            raise ValueError(
                f"n_trials must be in 1..{trials.n_trials}, got {n_trials}"
            )

        if n_trials < trials.n_trials:
            trials = trials.get_subset(indices=np.arange(n_trials))

        policy = self._policy(channels)
        subset = policy.resolve(models, trials)
        if len(subset) == 0:
            raise ValueError(f"{policy!r} selected no channels")

        prior = _resolve_prior(models, prior)
        targets = _targets(models, trials)
        readings = trials.X[:, trials.channel_index(subset)]
        likelihood_d, likelihood_o = _likelihood_matrix(models, subset, readings)

        seeds = OrderingGenerator(self.random_state).spawn_seeds(n_trials)

        if self.verbose:
            print(f"Evaluating {n_trials} trials x {n_reps} orderings "
                  f"over {len(subset)} channels ({policy.name})...")

        totals = Parallel(n_jobs=self.n_jobs, verbose=int(self.verbose))(
            delayed(_score_trial)(
                likelihood_d[i], likelihood_o[i], targets[i], prior, n_reps, seeds[i]
            )
            for i in range(n_trials)
        )

        accuracy = np.sum(totals, axis=0) / (n_trials * n_reps)
        accuracy_std = np.sqrt(accuracy * (1.0 - accuracy))

        if self.verbose:
            print(f"Accuracy: {accuracy[0]:.1%} with 1 channel, "
                  f"{accuracy[-1]:.1%} with {len(subset)}")

        return AccuracyCurve(
            accuracy=accuracy,
            accuracy_std=accuracy_std,
            n_trials=n_trials,
            n_repetitions=n_reps,
            channels=list(subset),
            policy=policy.name,
            metadata={
                "prior": prior,
                "majority_baseline": majority_baseline(targets),
                "random_state": self.random_state,
                "distinguished_class": _to_builtin(models.distinguished_class)
            }
        )

    def per_channel_accuracy(
        self,
        models: ChannelModelSet,
        trials: TrialSet,
        prior: Optional[float] = None
    ) -> ChannelAccuracy:
        """Independent decoding accuracy of each channel."""
        table = per_channel_accuracy(models, trials, prior=prior)
        if self.verbose:
            print(table.summary())
        return table

    def decode(
        self,
        models: ChannelModelSet,
        trials: TrialSet,
        ordering: Optional[Sequence] = None,
        prior: Optional[float] = None
    ) -> FusionDecoding:
        """
        Final-belief decisions for every trial.

        Args:
            models: Fitted channel models
            trials: Trials to decode
            ordering: Channels to fuse, in order (default: every channel)
            prior: Starting belief (default: the training base rate)

        Returns:
            FusionDecoding with probabilities and predicted labels
        """
        if trials.n_trials == 0:
            raise EmptyTrialSetError("Nothing to decode: zero trials")

        ordering = list(models.channel_ids if ordering is None else ordering)
        models.validate_channels(ordering)
        prior = _resolve_prior(models, prior)

        readings = trials.X[:, trials.channel_index(ordering)]
        likelihood_d, likelihood_o = _likelihood_matrix(models, ordering, readings)

        probabilities = np.array([
            self.engine.fold(likelihood_d[i], likelihood_o[i], prior)[-1]
            if ordering else prior
            for i in range(trials.n_trials)
        ])
        predictions = np.where(
            decode(probabilities) == 1,
            models.distinguished_class,
            models.other_class
        )

        return FusionDecoding(
            probabilities=probabilities,
            predictions=predictions,
            true_labels=trials.y,
            distinguished_class=models.distinguished_class,
            ordering=ordering
        )

    def compare(
        self,
        models: ChannelModelSet,
        trials: TrialSet,
        threshold: float = 0.60,
        n_weakest: Optional[int] = None,
        n_trials: Optional[int] = None,
        n_repetitions: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        All-channel and weakest-channel curves plus the per-channel table.

        Args:
            models: Fitted channel models
            trials: Labelled trials
            threshold: Weak-channel accuracy threshold
            n_weakest: Cap on the number of weak channels
            n_trials: Leading trials used for the table and the curves
            n_repetitions: Orderings per trial

        Returns:
            Dictionary with "per_channel", "all" and "weakest" (None when
            no channel is below the threshold)
        """
        curve_all = self.evaluate(
            models, trials, n_trials=n_trials, n_repetitions=n_repetitions
        )
        # Weak channels are picked on the same trials the curves use
        n_used = curve_all.n_trials
        if n_used < trials.n_trials:
            trials = trials.get_subset(indices=np.arange(n_used))
        table = self.per_channel_accuracy(models, trials)

        weak = table.below(threshold)
        if n_weakest is not None:
            weak = weak[:n_weakest]

        curve_weak = None
        if weak:
            weak_in_order = [c for c in models.channel_ids if c in set(weak)]
            curve_weak = self.evaluate(
                models, trials, n_trials=n_used, n_repetitions=n_repetitions,
                channels=ChannelSubset(weak_in_order, name="weakest")
            )
        else:
            warnings.warn(f"No channel has accuracy below {threshold:.0%}")

        return {"per_channel": table, "all": curve_all, "weakest": curve_weak}

    @staticmethod
    def _policy(channels) -> ChannelSubsetPolicy:
        if channels is None:
            return AllChannels()
        if isinstance(channels, ChannelSubsetPolicy):
            return channels
        return ChannelSubset(channels)

    def __repr__(self) -> str:
        return (
            f"DecodingEvaluator(n_repetitions={self.n_repetitions}, "
            f"random_state={self.random_state}, n_jobs={self.n_jobs})"
        )


def _score_trial(
    likelihood_d: np.ndarray,
    likelihood_o: np.ndarray,
    target: int,
    prior: float,
    n_repetitions: int,
    seed: int
) -> np.ndarray:
    """Summed correctness vector of one trial over its random orderings."""
    orderings = OrderingGenerator.from_seed(seed)
    total = np.zeros(len(likelihood_d))

    for _ in range(n_repetitions):
        order = orderings.permutation_indices(len(likelihood_d))
        trajectory = SequentialFusionEngine.fold(
            likelihood_d[order], likelihood_o[order], prior
        )
        total += correctness(trajectory, target)

    return total


def _likelihood_matrix(
    models: ChannelModelSet,
    channels: Sequence,
    readings: np.ndarray
) -> tuple:
    """Densities (n_trials, n_channels) under each class."""
    mean_d, std_d, mean_o, std_o = class_parameters(models, channels)

    likelihood_d = np.asarray(gaussian_density(readings, mean_d, std_d)).reshape(readings.shape)
    likelihood_o = np.asarray(gaussian_density(readings, mean_o, std_o)).reshape(readings.shape)
    return likelihood_d, likelihood_o


def _targets(models: ChannelModelSet, trials: TrialSet) -> np.ndarray:
    """Ground truth as 1 (distinguished) / 0 (other)."""
    unknown = set(np.unique(trials.y)) - set(models.class_labels)
    if unknown:
        raise ValueError(
            f"Trial labels {sorted(unknown)} are not model classes "
            f"{models.class_labels}"
        )
    return (trials.y == models.distinguished_class).astype(int)


def _resolve_prior(models: ChannelModelSet, prior: Optional[float]) -> float:
    prior = models.prior if prior is None else float(prior)
    _check_prior(prior)
    return prior