"""
Example 1: Sequential Bayesian fusion of channels.

Demonstrates the full pipeline:
1. Simulate trials with a few strong and many weak channels
2. Fit per-channel Gaussian models on a training half
3. Score every channel on its own
4. Measure accuracy as channels are incorporated in random order
5. Repeat for the weakest channels only and plot both curves

Usage:
    pip install -e .
    python examples/01_sequential_fusion.py
"""

import os

import numpy as np
import matplotlib.pyplot as plt

from sequential_fusion import (
    ChannelModelEstimator,
    DecodingEvaluator,
    FusionConfig,
    simulate_trial_set,
)
from sequential_fusion.visualization import (
    plot_accuracy_curves,
    plot_channel_accuracy,
    plot_trajectory,
)

# ── Configuration ──────────────────────────────────────────────
N_PER_CLASS = 200
N_STRONG = 4
N_WEAK = 16
STRONG_SHIFT = 1.5     # class mean difference in std units
WEAK_SHIFT = 0.2
SEED = 42
OUTPUT_DIR = os.path.join(os.path.dirname(__file__), "..", "results", "examples")

config = FusionConfig.from_env()
config.results_dir = OUTPUT_DIR
config.figures_dir = OUTPUT_DIR
config.evaluation.n_repetitions = 50
config.verbose = True
config.ensure_dirs()

# ── Step 1: Simulate trials ────────────────────────────────────
print("Step 1: Simulating trials...")
means = [(0.0, STRONG_SHIFT)] * N_STRONG + [(0.0, WEAK_SHIFT)] * N_WEAK
names = [f"strong_{i}" for i in range(N_STRONG)] + [f"weak_{i}" for i in range(N_WEAK)]
trials = simulate_trial_set(
    n_per_class=N_PER_CLASS, means=means, channel_names=names, seed=SEED
)
print(trials.summary())

# ── Step 2: Fit channel models ────────────────────────────────
print("\nStep 2: Fitting channel models on the training half...")
train_set, test_set = trials.train_test_split(test_size=0.5, random_state=SEED)
models = ChannelModelEstimator.from_config(config).estimate(train_set)

# ── Step 3: Per-channel accuracy ──────────────────────────────
print("\nStep 3: Scoring channels independently...")
evaluator = DecodingEvaluator.from_config(config)
results = evaluator.compare(
    models, test_set, threshold=config.weak_channel_threshold
)
table = results["per_channel"]
table.save(os.path.join(OUTPUT_DIR, "per_channel_accuracy.csv"))
print(f"  Weak channels: {table.below(config.weak_channel_threshold)}")

# ── Step 4: Accuracy vs. channels incorporated ────────────────
print("\nStep 4: Accuracy as channels are incorporated...")
curves = {"all": results["all"]}
if results["weakest"] is not None:
    curves["weakest"] = results["weakest"]

for label, curve in curves.items():
    print(curve.summary())
    curve.save(os.path.join(OUTPUT_DIR, f"accuracy_curve_{label}.json"))

# ── Step 5: Plots ─────────────────────────────────────────────
print("\nStep 5: Plotting...")
plot_accuracy_curves(
    curves, show_std=False,
    output_path=os.path.join(OUTPUT_DIR, "accuracy_curves.png")
)
plot_channel_accuracy(
    table, threshold=config.weak_channel_threshold,
    output_path=os.path.join(OUTPUT_DIR, "per_channel_accuracy.png")
)

# Single-trial belief in a random order
rng = np.random.default_rng(SEED)
ordering = list(rng.permutation(models.channel_ids))
trajectory = evaluator.engine.fuse(models, ordering, test_set.X[0])
plot_trajectory(
    trajectory, ordering=ordering, initial_prior=models.prior,
    distinguished_class=str(models.distinguished_class),
    title=f"Belief Trajectory (true class: {test_set.y[0]})",
    output_path=os.path.join(OUTPUT_DIR, "trajectory.png")
)
plt.close("all")

print(f"\nDone! Results saved to {os.path.abspath(OUTPUT_DIR)}")
