"""Core computational modules: statistics, objectives and both optimizers."""

from crypto_frontier.core.config import OptimizerConfig
from crypto_frontier.core.genetic import GeneticOptimizer
from crypto_frontier.core.gradient import GradientDescentOptimizer
from crypto_frontier.core.loader import PriceLoader, generate_sample_prices
from crypto_frontier.core.statistics import compute_statistics

__all__ = [
    "OptimizerConfig",
    "GeneticOptimizer",
    "GradientDescentOptimizer",
    "PriceLoader",
    "generate_sample_prices",
    "compute_statistics",
]
