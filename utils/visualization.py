"""
Visualization utilities for chase/flee training runs.

Plots are built from the DataFrames collected by utils.telemetry.TelemetryHistory.
"""

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from typing import Optional
import pandas as pd
from pathlib import Path


sns.set_style("whitegrid")
sns.set_context("paper", font_scale=1.3)
plt.rcParams["figure.figsize"] = (10, 6)
plt.rcParams["savefig.bbox"] = "tight"

BEHAVIOR_PALETTE = {"chase": "#dc3232", "flee": "#3c5ae6"}


def _finish(save_path: Optional[str], show: bool, label: str):
    if save_path:
        plt.savefig(save_path)
        print(f"Saved {label} to {save_path}")

    if show:
        plt.show()
    else:
        plt.close()


def plot_exploration_rate(
    history: pd.DataFrame,
    save_path: Optional[str] = None,
    show: bool = True,
):
    """
    Plot the exploration rate over ticks.

    Args:
        history: Per-transition DataFrame from TelemetryHistory
        save_path: Path to save figure
        show: Whether to display figure
    """
    fig, ax = plt.subplots(figsize=(10, 4))

    per_tick = history.groupby("tick")["exploration_rate"].first()
    ax.plot(per_tick.index, per_tick.values, linewidth=2, color="steelblue")

    ax.set_title("Exploration Rate", fontsize=16, fontweight="bold")
    ax.set_xlabel("Tick", fontsize=14)
    ax.set_ylabel("Epsilon", fontsize=14)
    ax.set_ylim(0, 1.05)
    ax.grid(True, alpha=0.3)

    _finish(save_path, show, "exploration rate")


def plot_reward_curves(
    history: pd.DataFrame,
    window: int = 500,
    save_path: Optional[str] = None,
    show: bool = True,
):
    """
    Plot the rolling mean step reward per behavior.

    Args:
        history: Per-transition DataFrame from TelemetryHistory
        window: Rolling window in ticks
        save_path: Path to save figure
        show: Whether to display figure
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    for behavior, group in history.groupby("behavior"):
        per_tick = group.groupby("tick")["reward"].mean()
        smoothed = per_tick.rolling(window, min_periods=1).mean()
        ax.plot(
            smoothed.index,
            smoothed.values,
            linewidth=2,
            label=behavior,
            color=BEHAVIOR_PALETTE.get(behavior),
        )

    ax.set_title(f"Step Reward (rolling mean, {window} ticks)", fontsize=16, fontweight="bold")
    ax.set_xlabel("Tick", fontsize=14)
    ax.set_ylabel("Reward", fontsize=14)
    ax.legend()
    ax.grid(True, alpha=0.3)

    _finish(save_path, show, "reward curves")


def plot_distance_over_time(
    history: pd.DataFrame,
    window: int = 100,
    save_path: Optional[str] = None,
    show: bool = True,
):
    """
    Plot distance to target over time for each agent.

    A learning chaser should trend down, a learning fleer up.
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    for (agent_id, behavior), group in history.groupby(["agent_id", "behavior"]):
        smoothed = group.set_index("tick")["distance"].rolling(window, min_periods=1).mean()
        ax.plot(
            smoothed.index,
            smoothed.values,
            linewidth=1.5,
            label=f"{agent_id} ({behavior})",
            color=BEHAVIOR_PALETTE.get(behavior),
        )

    ax.set_title("Distance to Target", fontsize=16, fontweight="bold")
    ax.set_xlabel("Tick", fontsize=14)
    ax.set_ylabel("Distance", fontsize=14)
    ax.legend()
    ax.grid(True, alpha=0.3)

    _finish(save_path, show, "distance over time")


def plot_collision_counts(
    collisions: pd.DataFrame,
    save_path: Optional[str] = None,
    show: bool = True,
):
    """
    Bar chart of collision events by behavior and tag.
    """
    fig, ax = plt.subplots(figsize=(8, 6))

    if collisions.empty:
        ax.text(0.5, 0.5, "No collisions recorded", ha="center", va="center", fontsize=14)
        ax.set_axis_off()
    else:
        counts = collisions.groupby(["behavior", "tag"]).size().reset_index(name="count")
        sns.barplot(x="tag", y="count", hue="behavior", data=counts, ax=ax, palette=BEHAVIOR_PALETTE)

        for container in ax.containers:
            ax.bar_label(container, fontsize=11)

        ax.set_title("Collision Events", fontsize=16, fontweight="bold")
        ax.set_xlabel("Collided With", fontsize=14)
        ax.set_ylabel("Count", fontsize=14)
        ax.grid(True, alpha=0.3, axis="y")

    _finish(save_path, show, "collision counts")


def generate_all_plots(
    history: pd.DataFrame,
    collisions: pd.DataFrame,
    output_dir: str = "results/figures",
    show: bool = False,
):
    """
    Generate all training plots.

    Args:
        history: Per-transition DataFrame from TelemetryHistory
        collisions: Collision DataFrame from TelemetryHistory
        output_dir: Directory to save figures
        show: Whether to display figures
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    print("\nGenerating training figures...")

    if history.empty:
        print("  No transitions recorded, skipping curves")
    else:
        window = max(1, int(np.ceil(history["tick"].max() / 50)))
        plot_exploration_rate(history, save_path=f"{output_dir}/exploration_rate.png", show=show)
        plot_reward_curves(history, window=window, save_path=f"{output_dir}/reward_curves.png", show=show)
        plot_distance_over_time(history, window=window, save_path=f"{output_dir}/distance.png", show=show)

    plot_collision_counts(collisions, save_path=f"{output_dir}/collisions.png", show=show)

    print(f"\nAll figures saved to {output_dir}/")
