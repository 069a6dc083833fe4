"""
Figures for the face-matching report.

- Grouped bar chart of the raw identification rates per Condition
- d-prime distributions per Condition for Member and Morph stimuli
"""

from pathlib import Path

import matplotlib.pyplot as plt
import seaborn as sns

from .summary_stats import CONDITIONS, ID_COLUMNS, RATE_COLUMNS

# Shared palette so both figures colour the Conditions the same way
CONDITION_PALETTE = dict(zip(CONDITIONS, sns.color_palette('colorblind', len(CONDITIONS))))


def _finish(fig, output_dir, file_name, show):
    """Save the figure if an output directory was given, then optionally show it."""
    plt.tight_layout()
    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_dir / file_name, dpi=300, bbox_inches='tight')
    if show:
        plt.show()
    return fig


def plot_condition_rates(data, output_dir=None, show=False):
    """Plot mean identification rate (+/- SD) per stimulus type and Condition.

    Args:
        data: Trial table with Condition and the four rate columns
        output_dir: Directory to save condition_rates.png into (optional)
        show: Whether to display the figure

    Returns:
        matplotlib Figure
    """
    long_rates = data.melt(
        id_vars=ID_COLUMNS,
        value_vars=RATE_COLUMNS,
        var_name='StimulusType',
        value_name='Rate',
    )

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.barplot(
        data=long_rates, x='StimulusType', y='Rate', hue='Condition',
        hue_order=CONDITIONS, order=RATE_COLUMNS, palette=CONDITION_PALETTE,
        errorbar='sd', capsize=0.1, ax=ax,
    )
    ax.set_ylim(0, 1.05)
    ax.set_xlabel('')
    ax.set_ylabel('Proportion of trials')
    ax.set_title('Identification rates by presentation condition')

    return _finish(fig, output_dir, 'condition_rates.png', show)


def plot_d_prime(d_prime_table, output_dir=None, show=False):
    """Plot per-participant d-prime for each d-prime type and Condition.

    Args:
        d_prime_table: Long-form output of compute_d_prime_table
        output_dir: Directory to save d_prime.png into (optional)
        show: Whether to display the figure

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.boxplot(
        data=d_prime_table, x='StimulusType', y='d_prime', hue='Condition',
        hue_order=CONDITIONS, palette=CONDITION_PALETTE, showfliers=False, ax=ax,
    )
    sns.stripplot(
        data=d_prime_table, x='StimulusType', y='d_prime', hue='Condition',
        hue_order=CONDITIONS, palette=CONDITION_PALETTE, dodge=True,
        alpha=0.6, legend=False, ax=ax,
    )
    ax.axhline(0, color='gray', linestyle='--', alpha=0.5)
    ax.set_xlabel('')
    ax.set_ylabel("d'")
    ax.set_title('Sensitivity by presentation condition')

    return _finish(fig, output_dir, 'd_prime.png', show)
