"""
Reporting Module
================

Figures for the regression and persona results.

Functions:
    - plot_actual_vs_predicted: Scatter of actual vs predicted scores
    - plot_feature_importance: Bar chart of feature importance
    - plot_cluster_profiles: Skill profile of each persona
    - plot_correlation_heatmap: Correlation matrix of skills and outcome
    - generate_report: Write all figures to a directory
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from .data_loader import Record, COGNITIVE_FEATURES, REQUIRED_COLUMNS, records_to_frame
from .personas import ClusterSummary

logger = logging.getLogger(__name__)


def _save(fig: plt.Figure, save_path: Optional[str], label: str) -> None:
    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"{label} plot saved to {save_path}")


def plot_actual_vs_predicted(
    actual,
    predicted,
    figsize: Tuple[int, int] = (7, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Scatter plot of actual against predicted assessment scores.

    Args:
        actual: Ground truth scores
        predicted: Predicted scores
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)

    fig, ax = plt.subplots(figsize=figsize)
    ax.scatter(actual, predicted, alpha=0.5, s=20)
    ax.plot([0, 100], [0, 100], 'r--', linewidth=2, label='Perfect')
    ax.set_xlim(0, 100)
    ax.set_ylim(0, 100)
    ax.set_xlabel('Actual Score')
    ax.set_ylabel('Predicted Score')
    ax.set_title('Actual vs Predicted Assessment Score', fontweight='bold')
    ax.legend(loc='upper left')
    plt.tight_layout()

    _save(fig, save_path, "Actual vs Predicted")
    return fig


def plot_feature_importance(
    importance: Dict[str, float],
    figsize: Tuple[int, int] = (8, 5),
    save_path: Optional[str] = None
) -> plt.Figure:
    """Horizontal bar chart of feature importance percentages."""
    ordered = sorted(importance.items(), key=lambda kv: kv[1])
    names = [name for name, _ in ordered]
    values = [value for _, value in ordered]

    fig, ax = plt.subplots(figsize=figsize)
    ax.barh(names, values, color='steelblue', alpha=0.8)
    for i, value in enumerate(values):
        ax.text(value, i, f" {value:.1f}%", va='center', fontsize=9)
    ax.set_xlabel('Importance (%)')
    ax.set_title('Feature Importance', fontweight='bold')
    plt.tight_layout()

    _save(fig, save_path, "Feature importance")
    return fig


def plot_cluster_profiles(
    summaries: Sequence[ClusterSummary],
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """Grouped bar chart of each persona's centroid in original units."""
    x = np.arange(len(COGNITIVE_FEATURES))
    width = 0.8 / max(len(summaries), 1)

    fig, ax = plt.subplots(figsize=figsize)
    palette = sns.color_palette('viridis', len(summaries))
    for i, summary in enumerate(summaries):
        values = [summary.characteristics[name] for name in COGNITIVE_FEATURES]
        ax.bar(
            x + i * width, values, width,
            label=f"{summary.persona} (n={summary.count})",
            color=palette[i], alpha=0.85
        )

    ax.set_xticks(x + width * (len(summaries) - 1) / 2)
    ax.set_xticklabels([name.title() for name in COGNITIVE_FEATURES])
    ax.set_ylabel('Centroid value')
    ax.set_title('Learning Persona Profiles', fontweight='bold')
    ax.legend(fontsize=8)
    plt.tight_layout()

    _save(fig, save_path, "Cluster profile")
    return fig


def plot_correlation_heatmap(
    records: Sequence[Record],
    figsize: Tuple[int, int] = (8, 7),
    save_path: Optional[str] = None
) -> plt.Figure:
    """Heatmap of Pearson correlations between skills, engagement and outcome."""
    corr = records_to_frame(records)[REQUIRED_COLUMNS].corr()

    fig, ax = plt.subplots(figsize=figsize)
    sns.heatmap(corr, annot=True, fmt='.2f', cmap='RdBu_r', center=0,
                vmin=-1, vmax=1, square=True, ax=ax)
    ax.set_title('Skill Correlation Matrix', fontweight='bold')
    plt.tight_layout()

    _save(fig, save_path, "Correlation heatmap")
    return fig


def generate_report(
    output_dir: str,
    records: Sequence[Record],
    actual=None,
    predicted=None,
    importance: Optional[Dict[str, float]] = None,
    summaries: Optional[Sequence[ClusterSummary]] = None
) -> List[str]:
    """
    Write every available figure into ``output_dir``.

    Returns:
        File names of the saved figures
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    figures = []

    if len(records) > 1:
        plot_correlation_heatmap(records, save_path=str(output_dir / "correlation_heatmap.png"))
        figures.append("correlation_heatmap.png")

    if actual is not None and predicted is not None:
        plot_actual_vs_predicted(actual, predicted, save_path=str(output_dir / "actual_vs_predicted.png"))
        figures.append("actual_vs_predicted.png")

    if importance:
        plot_feature_importance(importance, save_path=str(output_dir / "feature_importance.png"))
        figures.append("feature_importance.png")

    if summaries:
        plot_cluster_profiles(summaries, save_path=str(output_dir / "persona_profiles.png"))
        figures.append("persona_profiles.png")

    plt.close('all')
    logger.info(f"{len(figures)} figures saved to {output_dir}")
    return figures
