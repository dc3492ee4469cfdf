"""Test result containers, metrics, orderings and channel selection."""
import numpy as np
import pandas as pd
import pytest

from sequential_fusion import (
    AccuracyCurve,
    AllChannels,
    ChannelAccuracy,
    ChannelModelEstimator,
    ChannelSubset,
    FusionConfig,
    FusionDecoding,
    InvalidChannelReferenceError,
    OrderingGenerator,
    WeakChannelSelector,
    WeakestChannels,
)
from sequential_fusion.validation import (
    chance_level,
    compute_metrics,
    correctness,
    decode,
    majority_baseline,
)


@pytest.fixture
def curve():
    return AccuracyCurve(
        accuracy=[0.6, 0.75, 0.9, 0.85],
        accuracy_std=[0.49, 0.43, 0.3, 0.36],
        n_trials=40,
        n_repetitions=10,
        channels=["a", "b", "c", "d"],
        metadata={"prior": 0.5},
    )


@pytest.fixture
def table():
    return ChannelAccuracy(
        accuracy={"a": 0.55, "b": 0.8, "c": 0.52, "d": 0.55}, n_trials=100, prior=0.5
    )


class TestAccuracyCurve:
    """Test the accuracy-vs-channel-count container."""

    def test_accessors(self, curve):
        assert len(curve) == 4
        np.testing.assert_array_equal(curve.n_channels, [1, 2, 3, 4])
        assert curve.final_accuracy == 0.85
        assert curve.peak == (3, 0.9)
        assert curve.accuracy_at(1) == 0.6

    @pytest.mark.parametrize("k", [0, 5])
    def test_accuracy_at_out_of_range(self, curve, k):
        with pytest.raises(ValueError):
            curve.accuracy_at(k)

    def test_to_series(self, curve):
        series = curve.to_series()
        assert series.name == "all"
        assert series.index.name == "n_channels"
        assert series.loc[2] == 0.75

    def test_to_frame(self, curve):
        df = curve.to_frame()
        assert list(df.columns) == ["n_channels", "accuracy", "accuracy_std"]

    def test_save_and_load(self, tmp_path, curve):
        path = tmp_path / "curve.json"
        curve.save(str(path))
        loaded = AccuracyCurve.load(str(path))

        np.testing.assert_allclose(loaded.accuracy, curve.accuracy)
        np.testing.assert_allclose(loaded.accuracy_std, curve.accuracy_std)
        assert loaded.channels == curve.channels
        assert loaded.n_repetitions == 10
        assert loaded.metadata == {"prior": 0.5}

    def test_summary(self, curve):
        summary = curve.summary()
        assert "All channels: 85.0%" in summary
        assert "Peak: 90.0% at 3 channels" in summary

    def test_summary_reports_majority_baseline(self, curve):
        """Curves from the evaluator carry the prior-only baseline."""
        assert "Majority baseline" not in curve.summary()
        curve.metadata["majority_baseline"] = 0.55
        assert "Majority baseline: 55.0%" in curve.summary()


class TestChannelAccuracy:
    """Test the per-channel accuracy table."""

    def test_below_is_worst_first(self, table):
        assert table.below(0.60) == ["c", "a", "d"]

    def test_weakest_keeps_channel_order_on_ties(self, table):
        assert table.weakest(2) == ["c", "a"]
        assert table.weakest(3) == ["c", "a", "d"]

    def test_to_series(self, table):
        series = table.to_series()
        assert series.name == "accuracy"
        assert series["b"] == 0.8

    def test_save(self, tmp_path, table):
        path = tmp_path / "per_channel.csv"
        table.save(str(path))
        df = pd.read_csv(path)
        assert list(df.columns) == ["channel", "accuracy"]
        assert len(df) == 4

    def test_summary(self, table):
        assert "Below 60%: 3" in table.summary()


class TestFusionDecoding:
    """Test final-belief decisions."""

    def test_accuracy_and_metrics(self):
        decoding = FusionDecoding(
            probabilities=np.array([0.9, 0.2, 0.6, 0.4]),
            predictions=np.array(["right", "left", "right", "left"]),
            true_labels=np.array(["right", "left", "left", "left"]),
            distinguished_class="right",
        )
        assert decoding.accuracy == 0.75

        metrics = decoding.metrics()
        assert metrics["precision"] == 0.5
        assert metrics["recall"] == 1.0


class TestMetrics:
    """Test decision and score helpers."""

    def test_decode_rounds_half_up(self):
        np.testing.assert_array_equal(decode([0.2, 0.5, 0.51, 0.49999]), [0, 1, 1, 0])

    def test_correctness(self):
        np.testing.assert_array_equal(
            correctness(np.array([0.7, 0.4, 0.5]), target=1), [1.0, 0.0, 1.0]
        )
        np.testing.assert_array_equal(
            correctness(np.array([0.7, 0.4, 0.5]), target=0), [0.0, 1.0, 0.0]
        )

    def test_baselines(self):
        assert chance_level() == 0.5
        assert majority_baseline(np.array([1, 1, 1, 0])) == 0.75
        with pytest.raises(ValueError):
            majority_baseline(np.array([]))

    def test_compute_metrics_pos_label(self):
        y_true = np.array(["a", "a", "b", "b"])
        y_pred = np.array(["a", "b", "b", "b"])

        metrics = compute_metrics(y_true, y_pred, pos_label="a")
        assert metrics["precision"] == 1.0
        assert metrics["recall"] == 0.5
        assert metrics["n_samples"] == 4


class TestOrderingGenerator:
    """Test seeded channel permutations."""

    def test_permutation_is_a_permutation(self):
        channels = ["a", "b", "c", "d", "e"]
        ordering = OrderingGenerator(0).permutation(channels)
        assert sorted(ordering) == channels

    def test_seeded_sequences_repeat(self):
        first = OrderingGenerator(11)
        second = OrderingGenerator(11)
        for _ in range(5):
            np.testing.assert_array_equal(
                first.permutation_indices(8), second.permutation_indices(8)
            )
        np.testing.assert_array_equal(first.spawn_seeds(4), second.spawn_seeds(4))

    def test_orderings_vary(self):
        """Successive orderings are not all identical."""
        orderings = OrderingGenerator(2)
        seen = {tuple(orderings.permutation_indices(6)) for _ in range(20)}
        assert len(seen) > 1

    def test_accepts_generator(self, rng):
        orderings = OrderingGenerator(rng)
        assert orderings.rng_ is rng

    def test_spawn_seeds_range(self):
        seeds = OrderingGenerator(0).spawn_seeds(100)
        assert seeds.shape == (100,)
        assert np.all((seeds >= 0) & (seeds < 2**31))


class TestChannelPolicies:
    """Test channel subset policies and the weak-channel selector."""

    @pytest.fixture
    def mixed_models(self, mixed_trials):
        return ChannelModelEstimator().estimate(mixed_trials)

    def test_all_channels(self, mixed_models, mixed_trials):
        assert AllChannels().resolve(mixed_models, mixed_trials) == list(
            mixed_models.channel_ids
        )

    def test_subset_validates(self, mixed_models, mixed_trials):
        assert ChannelSubset(["strong_b", "weak_a"]).resolve(
            mixed_models, mixed_trials
        ) == ["strong_b", "weak_a"]
        with pytest.raises(InvalidChannelReferenceError):
            ChannelSubset(["weak_c"]).resolve(mixed_models, mixed_trials)

    def test_selector(self, mixed_models, mixed_trials):
        selector = WeakChannelSelector(threshold=0.60).fit(mixed_models, mixed_trials)

        assert selector.get_channels() == ["weak_a", "weak_b"]
        np.testing.assert_array_equal(selector.get_support(), [True, True, False, False])
        assert selector.get_scores().shape == (4,)

    def test_selector_keeps_n_worst(self, mixed_models, mixed_trials):
        selector = WeakChannelSelector(threshold=0.99, n=1).fit(mixed_models, mixed_trials)
        assert len(selector.get_channels()) == 1
        assert selector.get_channels()[0] in {"weak_a", "weak_b"}

    def test_selector_not_fitted(self):
        with pytest.raises(ValueError):
            WeakChannelSelector().get_channels()

    @pytest.mark.parametrize("threshold,n", [(0.0, None), (1.0, None), (0.6, 0)])
    def test_selector_invalid(self, threshold, n):
        with pytest.raises(ValueError):
            WeakChannelSelector(threshold=threshold, n=n)

    def test_weakest_from_config(self):
        config = FusionConfig()
        config.selection.weak_channel_threshold = 0.7
        config.selection.n_weakest = 2

        policy = WeakestChannels.from_config(config)
        assert policy.selector.threshold == 0.7
        assert policy.selector.n == 2
