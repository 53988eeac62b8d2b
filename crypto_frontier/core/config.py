"""
Run configuration for the optimizers.

All tunables of a run live in a single OptimizerConfig. The defaults are
the constants the weekly crypto study was run with: 8 coins, 60 weeks,
a population of 1000 evolved for 30 generations, and gradient descent
capped at 1000 iterations.
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np


DEFAULT_COINS = (
    "Aptos", "Bitcoin", "BNB", "Cardano", "Ethereum", "Solana", "Sui", "XRP"
)

DEFAULT_DATA_DIR = "Historical_Last_13Month"


class OptimizerConfig:
    """
    Stores every startup constant of an optimization run.

    Attributes:
        asset_count: Number of assets N in the universe
        period_count: Number of weekly closing prices W per asset
        population_size: Genetic population size P (even)
        generations: Number of generations G the genetic search runs
        mutation_rate: Per-gene mutation probability
        learning_rate: Gradient descent step size
        max_iterations: Gradient descent iteration cap
        tolerance: Target-return convergence tolerance
        seed: Seed for the genetic search (None = seeded from OS entropy)
        asset_names: Names of the assets, in price-table column order
    """

    def __init__(
        self,
        asset_count: int = len(DEFAULT_COINS),
        period_count: int = 60,
        population_size: int = 1000,
        generations: int = 30,
        mutation_rate: float = 0.01,
        learning_rate: float = 0.01,
        max_iterations: int = 1000,
        tolerance: float = 1e-6,
        seed: Optional[int] = None,
        asset_names: Optional[Sequence[str]] = None
    ):
        self.asset_count = asset_count
        self.period_count = period_count
        self.population_size = population_size
        self.generations = generations
        self.mutation_rate = mutation_rate
        self.learning_rate = learning_rate
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.seed = seed

        if asset_names is None:
            if asset_count == len(DEFAULT_COINS):
                asset_names = DEFAULT_COINS
            else:
                asset_names = [f"Asset_{i+1}" for i in range(asset_count)]
        self.asset_names: List[str] = list(asset_names)

    def validate(self) -> "OptimizerConfig":
        """
        Check every field and return self.

        Raises:
            ValueError: If a field is out of range
        """
        if self.asset_count < 1:
            raise ValueError(f"asset_count must be >= 1, got {self.asset_count}")
        if self.period_count < 2:
            raise ValueError(f"period_count must be >= 2, got {self.period_count}")
        if self.population_size < 2 or self.population_size % 2:
            raise ValueError(
                f"population_size must be an even number >= 2, got {self.population_size}"
            )
        if self.generations < 1:
            raise ValueError(f"generations must be >= 1, got {self.generations}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be > 0, got {self.tolerance}")
        if len(self.asset_names) != self.asset_count:
            raise ValueError(
                f"{len(self.asset_names)} asset names given for "
                f"asset_count={self.asset_count}"
            )
        return self

    def make_rng(self) -> np.random.Generator:
        """Build the random generator for the genetic search."""
        return np.random.default_rng(self.seed)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'asset_count': self.asset_count,
            'period_count': self.period_count,
            'population_size': self.population_size,
            'generations': self.generations,
            'mutation_rate': self.mutation_rate,
            'learning_rate': self.learning_rate,
            'max_iterations': self.max_iterations,
            'tolerance': self.tolerance,
            'seed': self.seed,
            'asset_names': list(self.asset_names),
        }

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.as_dict().items())
        return f"OptimizerConfig({fields})"
