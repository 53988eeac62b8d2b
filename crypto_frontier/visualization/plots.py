"""
Plotting Module for Weekly Portfolio Optimization
=================================================

Figures produced for a run:
- Best fitness per generation of the genetic search
- Bar chart of a portfolio's weights
- Risk-return plane with every asset and the optimized portfolios,
  plus a weight comparison and metrics table

All functions return the matplotlib Figure and save it when a path is
given.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from crypto_frontier.core.objectives import portfolio_stats
from crypto_frontier.core.statistics import MarketStatistics


def plot_fitness_history(
    history: Sequence[float],
    title: str = "Best Fitness per Generation",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> Figure:
    """
    Line chart of the best fitness recorded in each generation.

    Args:
        history: Best fitness of generation 0, 1, ...
        title: Plot title
        figsize: Figure size
        save_path: Optional path to save figure

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    generations = np.arange(len(history))
    ax.plot(generations, history, 'b-o', linewidth=2, markersize=4, label='Best Fitness')

    if len(history):
        best = int(np.argmax(history))
        ax.scatter([best], [history[best]], c='gold', s=150, marker='*',
                   edgecolors='black', zorder=5,
                   label=f"Peak {history[best]:.2f} (gen {best})")

    ax.set_xlabel('Generation', fontsize=12)
    ax.set_ylabel('Fitness (return / variance)', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(loc='lower right', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_portfolio_weights(
    weights: np.ndarray,
    asset_names: List[str],
    title: str = "Portfolio Weights",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> Figure:
    """
    Create a bar chart of portfolio weights.

    Args:
        weights: Array of portfolio weights
        asset_names: List of asset names
        title: Plot title
        figsize: Figure size
        save_path: Optional path to save figure

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    weights = np.asarray(weights)
    bars = ax.bar(asset_names, weights * 100, color='steelblue', edgecolor='black')

    for bar, w in zip(bars, weights):
        ax.annotate(f'{w*100:.1f}%',
                    xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    xytext=(0, 3),
                    textcoords='offset points',
                    ha='center', va='bottom',
                    fontsize=10, fontweight='bold')

    ax.set_xlabel('Assets', fontsize=12)
    ax.set_ylabel('Weight %', fontsize=12)
    ax.set_ylim(0, max(100 * float(weights.max()) * 1.15, 1.0))
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, axis='y', alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_risk_return(
    stats: MarketStatistics,
    portfolios: Dict[str, np.ndarray],
    figsize: Tuple[int, int] = (14, 10),
    save_path: Optional[str] = None
) -> Figure:
    """
    Compare optimized portfolios against the individual assets.

    Shows:
    1. Assets and portfolios on the weekly risk-return plane
    2. Weight comparison bar chart
    3. Return / variance / fitness table

    Args:
        stats: Statistics the portfolios were optimized on
        portfolios: Dictionary of portfolio name -> weights
        figsize: Figure size
        save_path: Optional save path

    Returns:
        matplotlib Figure object
    """
    fig = plt.figure(figsize=figsize)
    gs = fig.add_gridspec(2, 2, hspace=0.3, wspace=0.3)

    # 1. Risk-return plane
    ax1 = fig.add_subplot(gs[0, :])

    asset_stds = np.sqrt(np.diag(stats.cov_matrix))
    asset_returns = stats.expected_returns
    ax1.scatter(asset_stds * 100, asset_returns * 100,
                c='red', s=100, marker='o', edgecolors='black',
                label='Individual Assets', zorder=4)
    for name, std, ret in zip(stats.asset_names, asset_stds, asset_returns):
        ax1.annotate(name, (std * 100, ret * 100),
                     xytext=(5, 5), textcoords='offset points',
                     fontsize=9, fontweight='bold')

    markers = ['*', 'D', 's', '^', 'v', 'p', 'h']
    colors = plt.cm.tab10(np.linspace(0, 1, max(len(portfolios), 1)))
    portfolio_metrics = {
        name: portfolio_stats(weights, stats.expected_returns, stats.cov_matrix)
        for name, weights in portfolios.items()
    }

    for i, (name, metrics) in enumerate(portfolio_metrics.items()):
        ax1.scatter([metrics['std'] * 100], [metrics['mean'] * 100],
                    c=[colors[i]], s=200, marker=markers[i % len(markers)],
                    edgecolors='black', label=name, zorder=5)

    ax1.set_xlabel('Weekly Risk (Std Dev) %', fontsize=11)
    ax1.set_ylabel('Weekly Expected Return %', fontsize=11)
    ax1.set_title('Portfolios on the Risk-Return Plane', fontsize=13, fontweight='bold')
    ax1.legend(loc='upper left', fontsize=9)
    ax1.grid(True, alpha=0.3)

    # 2. Weight comparison
    ax2 = fig.add_subplot(gs[1, 0])

    n_portfolios = max(len(portfolios), 1)
    x = np.arange(stats.n_assets)
    width = 0.8 / n_portfolios

    for i, (name, weights) in enumerate(portfolios.items()):
        ax2.bar(x + i * width - 0.4 + width/2, np.asarray(weights) * 100,
                width, label=name, alpha=0.8)

    ax2.set_xlabel('Assets', fontsize=11)
    ax2.set_ylabel('Weight %', fontsize=11)
    ax2.set_title('Portfolio Weight Comparison', fontsize=13, fontweight='bold')
    ax2.set_xticks(x)
    ax2.set_xticklabels(stats.asset_names, rotation=45)
    ax2.legend(fontsize=9)
    ax2.grid(True, axis='y', alpha=0.3)

    # 3. Metrics table
    ax3 = fig.add_subplot(gs[1, 1])
    ax3.axis('off')

    table_data = [['Portfolio', 'Return %', 'Variance', 'Fitness']]
    for name, metrics in portfolio_metrics.items():
        fitness = metrics['fitness']
        table_data.append([
            name,
            f"{metrics['mean']*100:.3f}",
            f"{metrics['variance']:.5f}",
            f"{fitness:.2f}" if fitness is not None else "n/a"
        ])

    table = ax3.table(
        cellText=table_data,
        loc='center',
        cellLoc='center',
        colWidths=[0.35, 0.2, 0.2, 0.2]
    )
    table.auto_set_font_size(False)
    table.set_fontsize(11)
    table.scale(1, 1.8)

    for i in range(4):
        table[(0, i)].set_facecolor('#4472C4')
        table[(0, i)].set_text_props(color='white', fontweight='bold')

    ax3.set_title('Portfolio Metrics', fontsize=13, fontweight='bold', pad=20)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
