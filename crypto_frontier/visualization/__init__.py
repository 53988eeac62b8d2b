"""Visualization modules for portfolio analysis."""

from crypto_frontier.visualization.plots import (
    plot_fitness_history,
    plot_portfolio_weights,
    plot_risk_return
)

__all__ = [
    "plot_fitness_history",
    "plot_portfolio_weights",
    "plot_risk_return",
]
