"""
Genetic Portfolio Search
========================

A classic generational genetic algorithm over long-only weight vectors.
Each generation runs:

1. Evaluate: fitness = (w^T * mu) / (w^T * Sigma * w) for every individual
2. Track the best fitness of the generation
3. Select: P binary tournaments drawn with replacement from the current
   population build a brand new population
4. Crossover: consecutive pairs (0-1, 2-3, ...) swap every gene from a
   random cut point c in [0, N-1] onward
5. Mutate: each gene is redrawn from U[0, 1] with probability
   mutation_rate, then every individual is renormalized to sum 1

Crossover can leave an individual off the simplex; the renormalization
that ends mutation puts every row back on it before the next evaluation.
"""

import logging
import warnings
from typing import Callable, List, Optional

import numpy as np

from crypto_frontier.core.objectives import (
    normalize_weights,
    population_fitness,
    portfolio_return,
    portfolio_variance,
)


GenerationCallback = Callable[[int, float], None]


class Individual:
    """A weight vector and the fitness it was last evaluated at."""

    def __init__(self, weights: np.ndarray, fitness: Optional[float] = None):
        self.weights = np.array(weights, dtype=float)
        self.fitness = fitness

    def __repr__(self) -> str:
        return f"Individual(weights={np.round(self.weights, 4).tolist()}, fitness={self.fitness})"


class Population:
    """
    Fixed-size population stored as a P x N weight matrix.

    Attributes:
        weights (np.ndarray): One individual per row
        fitness (Optional[np.ndarray]): Fitness per row, None until evaluated
    """

    def __init__(self, weights: np.ndarray, fitness: Optional[np.ndarray] = None):
        self.weights = np.array(weights, dtype=float)
        self.fitness = None if fitness is None else np.array(fitness, dtype=float)

    @property
    def size(self) -> int:
        return self.weights.shape[0]

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, index: int) -> Individual:
        fitness = None if self.fitness is None else float(self.fitness[index])
        return Individual(self.weights[index], fitness)

    def best(self) -> Individual:
        """
        Return the fittest individual.

        Raises:
            ValueError: If the population has not been evaluated
        """
        if self.fitness is None:
            raise ValueError("Population has not been evaluated")
        # argmax keeps the first of equal maxima
        return self[int(np.argmax(self.fitness))]


class GeneticResult:
    """Outcome of a genetic search run."""

    def __init__(
        self,
        weights: np.ndarray,
        fitness: float,
        expected_return: float,
        variance: float,
        best_fitness_history: List[float],
        generations: int
    ):
        self.weights = weights
        self.fitness = fitness
        self.expected_return = expected_return
        self.variance = variance
        self.best_fitness_history = best_fitness_history
        self.generations = generations

    def __repr__(self) -> str:
        return (f"GeneticResult(fitness={self.fitness:.4f}, "
                f"expected_return={self.expected_return:.6f}, "
                f"variance={self.variance:.6f})")


class GeneticOptimizer:
    """
    Maximizes the return/variance ratio with a genetic algorithm.

    Attributes:
        expected_returns (np.ndarray): Expected weekly return per asset
        cov_matrix (np.ndarray): Covariance matrix of weekly returns
        population_size (int): Number of individuals P (even)
        generations (int): Number of generations G
        mutation_rate (float): Per-gene mutation probability
        rng (np.random.Generator): Source of all randomness in the search

    Example:
        >>> rng = np.random.default_rng(7)
        >>> ga = GeneticOptimizer(means, cov, population_size=100,
        ...                       generations=20, mutation_rate=0.01, rng=rng)
        >>> result = ga.run()
    """

    def __init__(
        self,
        expected_returns: np.ndarray,
        cov_matrix: np.ndarray,
        population_size: int = 1000,
        generations: int = 30,
        mutation_rate: float = 0.01,
        rng: Optional[np.random.Generator] = None,
        asset_names: Optional[List[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.expected_returns = np.array(expected_returns, dtype=float).flatten()
        self.cov_matrix = np.array(cov_matrix, dtype=float)
        self.n_assets = len(self.expected_returns)
        self.population_size = population_size
        self.generations = generations
        self.mutation_rate = mutation_rate
        self.rng = rng if rng is not None else np.random.default_rng()
        self.logger = logger or logging.getLogger(__name__)

        self._validate_inputs()

        if asset_names is None:
            self.asset_names = [f"Asset_{i+1}" for i in range(self.n_assets)]
        else:
            self.asset_names = list(asset_names)

    @classmethod
    def from_config(cls, stats, config, rng=None, logger=None) -> "GeneticOptimizer":
        """Build an optimizer from MarketStatistics and an OptimizerConfig."""
        return cls(
            stats.expected_returns,
            stats.cov_matrix,
            population_size=config.population_size,
            generations=config.generations,
            mutation_rate=config.mutation_rate,
            rng=rng if rng is not None else config.make_rng(),
            asset_names=stats.asset_names,
            logger=logger
        )

    def _validate_inputs(self):
        """Validate that inputs are properly formatted."""
        if self.cov_matrix.shape != (self.n_assets, self.n_assets):
            raise ValueError(
                f"Covariance matrix shape {self.cov_matrix.shape} doesn't match "
                f"number of assets {self.n_assets}"
            )

        if not np.allclose(self.cov_matrix, self.cov_matrix.T):
            warnings.warn("Covariance matrix is not symmetric. Symmetrizing...")
            self.cov_matrix = (self.cov_matrix + self.cov_matrix.T) / 2

        if self.population_size < 2 or self.population_size % 2:
            raise ValueError(
                f"population_size must be an even number >= 2, got {self.population_size}"
            )
        if self.generations < 1:
            raise ValueError(f"generations must be >= 1, got {self.generations}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")

    def initialize_population(self) -> Population:
        """Draw every gene from U[0, 1) and normalize each individual."""
        raw = self.rng.random((self.population_size, self.n_assets))
        return Population(normalize_weights(raw))

    def evaluate(self, population: Population) -> Population:
        """
        Compute the fitness of every individual in place.

        Raises:
            DegenerateVarianceError: If an individual has non-positive variance
        """
        population.fitness = population_fitness(
            population.weights, self.expected_returns, self.cov_matrix
        )
        return population

    def select(self, population: Population) -> Population:
        """
        Binary tournament selection.

        Both contestants are drawn with replacement from the current
        population; on a tie the second one wins. The returned population
        is new and shares no arrays with the input.
        """
        if population.fitness is None:
            raise ValueError("Population must be evaluated before selection")

        size = population.size
        first = self.rng.integers(0, size, size=size)
        second = self.rng.integers(0, size, size=size)
        winners = np.where(
            population.fitness[first] > population.fitness[second], first, second
        )
        return Population(population.weights[winners], population.fitness[winners])

    def crossover(self, population: Population) -> Population:
        """Single-point crossover of consecutive pairs, in place."""
        weights = population.weights
        for i in range(0, population.size - 1, 2):
            cut = int(self.rng.integers(0, self.n_assets))
            tail = weights[i, cut:].copy()
            weights[i, cut:] = weights[i + 1, cut:]
            weights[i + 1, cut:] = tail
        # Offspring are no longer the individuals the fitness was measured on
        population.fitness = None
        return population

    def mutate(self, population: Population) -> Population:
        """
        Redraw genes with probability mutation_rate, then renormalize.

        Raises:
            DegenerateWeightsError: If an individual ends up all zeros
        """
        shape = population.weights.shape
        mask = self.rng.random(shape) < self.mutation_rate
        fresh = self.rng.random(shape)
        mutated = np.where(mask, fresh, population.weights)
        population.weights = normalize_weights(mutated)
        population.fitness = None
        return population

    def run(self, callback: Optional[GenerationCallback] = None) -> GeneticResult:
        """
        Run the genetic search for the configured number of generations.

        Args:
            callback: Called as callback(generation, best_fitness) after each
                generation is evaluated

        Returns:
            GeneticResult with the fittest individual of the final population

        Raises:
            DegenerateVarianceError: If a fitness evaluation hits zero variance
        """
        population = self.initialize_population()
        history = []

        for generation in range(self.generations):
            self.evaluate(population)

            best_fitness = float(np.max(population.fitness))
            history.append(best_fitness)
            self.logger.info(f"Generation {generation}: Best Fitness = {best_fitness:.4f}")
            if callback is not None:
                callback(generation, best_fitness)

            population = self.select(population)
            self.crossover(population)
            self.mutate(population)

        # The last mutation left the fitness stale
        self.evaluate(population)
        best = population.best()

        return GeneticResult(
            weights=best.weights,
            fitness=best.fitness,
            expected_return=portfolio_return(best.weights, self.expected_returns),
            variance=portfolio_variance(best.weights, self.cov_matrix),
            best_fitness_history=history,
            generations=self.generations
        )
