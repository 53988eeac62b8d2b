"""
Projected Gradient Descent
==========================

Minimizes portfolio variance w^T * Sigma * w over long-only weights:

    w <- w - learning_rate * 2 * Sigma * w
    w <- clamp(w, 0) / sum(clamp(w, 0))

starting from equal weights. The target return is a stopping rule, not a
constraint: the loop ends as soon as |w^T * mu - target| < tolerance, or
after max_iterations steps. Either way the last weights are the answer.

The clamp-then-renormalize step is not the Euclidean projection onto the
simplex. Over many steps it drifts toward the single lowest-variance
asset; see core/reference.py for the constrained optimum.
"""

import logging
import warnings
from typing import List, Optional

import numpy as np

from crypto_frontier.core.objectives import (
    normalize_weights,
    portfolio_return,
    portfolio_variance,
    variance_gradient,
)


def project_to_simplex(weights: np.ndarray) -> np.ndarray:
    """
    Clamp negative weights to zero and rescale the rest to sum 1.

    Raises:
        DegenerateWeightsError: If every weight was clamped to zero
    """
    return normalize_weights(np.clip(weights, 0.0, None))


class GradientResult:
    """Outcome of a projected gradient run."""

    def __init__(
        self,
        weights: np.ndarray,
        iterations: int,
        converged: bool,
        target_return: float,
        expected_return: float,
        variance: float
    ):
        self.weights = weights
        self.iterations = iterations
        self.converged = converged
        self.target_return = target_return
        self.expected_return = expected_return
        self.variance = variance

    def __repr__(self) -> str:
        return (f"GradientResult(iterations={self.iterations}, converged={self.converged}, "
                f"expected_return={self.expected_return:.6f}, variance={self.variance:.6f})")


class GradientDescentOptimizer:
    """
    Variance minimizer with a soft target-return stopping rule.

    Attributes:
        expected_returns (np.ndarray): Expected weekly return per asset
        cov_matrix (np.ndarray): Covariance matrix of weekly returns
        learning_rate (float): Step size
        max_iterations (int): Iteration cap
        tolerance (float): Convergence tolerance on the portfolio return
    """

    def __init__(
        self,
        expected_returns: np.ndarray,
        cov_matrix: np.ndarray,
        learning_rate: float = 0.01,
        max_iterations: int = 1000,
        tolerance: float = 1e-6,
        asset_names: Optional[List[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.expected_returns = np.array(expected_returns, dtype=float).flatten()
        self.cov_matrix = np.array(cov_matrix, dtype=float)
        self.n_assets = len(self.expected_returns)
        self.learning_rate = learning_rate
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.logger = logger or logging.getLogger(__name__)

        self._validate_inputs()

        if asset_names is None:
            self.asset_names = [f"Asset_{i+1}" for i in range(self.n_assets)]
        else:
            self.asset_names = list(asset_names)

    @classmethod
    def from_config(cls, stats, config, logger=None) -> "GradientDescentOptimizer":
        """Build an optimizer from MarketStatistics and an OptimizerConfig."""
        return cls(
            stats.expected_returns,
            stats.cov_matrix,
            learning_rate=config.learning_rate,
            max_iterations=config.max_iterations,
            tolerance=config.tolerance,
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

        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be > 0, got {self.learning_rate}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be > 0, got {self.tolerance}")

    def default_target_return(self) -> float:
        """Average of the assets' expected returns."""
        return float(np.mean(self.expected_returns))

    def optimize(self, target_return: Optional[float] = None) -> GradientResult:
        """
        Descend the variance gradient until the target return is reached.

        Args:
            target_return: Return level to stop at (default: mean of the
                expected returns)

        Returns:
            GradientResult; iterations counts the steps taken, so a run
            that converges on its first step reports 1

        Raises:
            DegenerateWeightsError: If a step drives every weight negative
        """
        if target_return is None:
            target_return = self.default_target_return()

        weights = np.full(self.n_assets, 1.0 / self.n_assets)
        converged = False
        iterations = 0

        for iteration in range(self.max_iterations):
            gradient = variance_gradient(weights, self.cov_matrix)
            weights = project_to_simplex(weights - self.learning_rate * gradient)
            iterations = iteration + 1

            current_return = portfolio_return(weights, self.expected_returns)
            if abs(current_return - target_return) < self.tolerance:
                converged = True
                break

        if converged:
            self.logger.info(f"Gradient descent converged after {iterations} iterations")
        else:
            self.logger.info(
                f"Gradient descent stopped at the {self.max_iterations} iteration cap "
                f"(return {portfolio_return(weights, self.expected_returns):.6f}, "
                f"target {target_return:.6f})"
            )

        return GradientResult(
            weights=weights,
            iterations=iterations,
            converged=converged,
            target_return=target_return,
            expected_return=portfolio_return(weights, self.expected_returns),
            variance=portfolio_variance(weights, self.cov_matrix)
        )
