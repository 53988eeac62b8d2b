"""
Crypto Frontier - Weekly Mean-Variance Portfolio Search
=======================================================

Mean-variance statistics for a fixed universe of coins and two
independent ways of weighting them:

- GeneticOptimizer: evolutionary search maximizing return / variance
- GradientDescentOptimizer: projected gradient descent on the variance,
  stopping once a target return is reached

Usage:
    from crypto_frontier import PriceLoader, compute_statistics, GeneticOptimizer
    from crypto_frontier.visualization import plot_fitness_history

Classes:
    OptimizerConfig - Startup constants of a run
    PriceLoader - Weekly CoinMarketCap exports -> price table
    MarketStatistics - Returns, expected returns and covariance
    GeneticOptimizer - Genetic search
    GradientDescentOptimizer - Projected gradient search

Functions:
    compute_statistics - Price table -> MarketStatistics
    generate_sample_prices - Create a synthetic price table
"""

from crypto_frontier.core.config import DEFAULT_COINS, OptimizerConfig
from crypto_frontier.core.errors import (
    CryptoFrontierError,
    DataError,
    DegenerateVarianceError,
    DegenerateWeightsError,
)
from crypto_frontier.core.genetic import GeneticOptimizer, GeneticResult
from crypto_frontier.core.gradient import GradientDescentOptimizer, GradientResult, project_to_simplex
from crypto_frontier.core.loader import PriceLoader, generate_sample_prices, load_direct
from crypto_frontier.core.statistics import MarketStatistics, compute_statistics

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_COINS",
    "OptimizerConfig",
    "CryptoFrontierError",
    "DataError",
    "DegenerateVarianceError",
    "DegenerateWeightsError",
    "GeneticOptimizer",
    "GeneticResult",
    "GradientDescentOptimizer",
    "GradientResult",
    "project_to_simplex",
    "PriceLoader",
    "generate_sample_prices",
    "load_direct",
    "MarketStatistics",
    "compute_statistics",
]
