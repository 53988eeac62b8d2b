"""
Portfolio objective functions.

Formulas:
    mu_p      = w^T * mu
    sigma_p^2 = w^T * Sigma * w
    fitness   = mu_p / sigma_p^2

The fitness ratio is what the genetic search maximizes; the variance and
its gradient 2 * Sigma * w drive the projected gradient search.
"""

from typing import Dict, Optional

import numpy as np

from crypto_frontier.core.errors import DegenerateVarianceError, DegenerateWeightsError


def portfolio_return(weights: np.ndarray, expected_returns: np.ndarray) -> float:
    """
    Calculate expected portfolio return.

    Args:
        weights: Portfolio weights (must sum to 1)
        expected_returns: Expected return of each asset

    Returns:
        Expected portfolio return
    """
    return float(np.dot(weights, expected_returns))


def portfolio_variance(weights: np.ndarray, cov_matrix: np.ndarray) -> float:
    """
    Calculate portfolio variance using the quadratic form w^T * Sigma * w.

    Args:
        weights: Portfolio weights
        cov_matrix: Asset covariance matrix

    Returns:
        Portfolio variance
    """
    return float(np.dot(weights, np.dot(cov_matrix, weights)))


def fitness_ratio(
    weights: np.ndarray,
    expected_returns: np.ndarray,
    cov_matrix: np.ndarray
) -> float:
    """
    Calculate the return/variance fitness of a portfolio.

    Args:
        weights: Portfolio weights
        expected_returns: Expected return of each asset
        cov_matrix: Asset covariance matrix

    Returns:
        Expected return divided by variance

    Raises:
        DegenerateVarianceError: If the variance is zero or negative
    """
    variance = portfolio_variance(weights, cov_matrix)
    if not variance > 0:
        raise DegenerateVarianceError(
            f"Portfolio variance {variance!r} is not positive; fitness is undefined"
        )
    return portfolio_return(weights, expected_returns) / variance


def population_fitness(
    weights: np.ndarray,
    expected_returns: np.ndarray,
    cov_matrix: np.ndarray
) -> np.ndarray:
    """
    Fitness ratio of every row of a P x N weight matrix.

    Raises:
        DegenerateVarianceError: If any row has non-positive variance
    """
    returns = weights @ expected_returns
    variances = np.einsum('ij,jk,ik->i', weights, cov_matrix, weights)
    bad = ~(variances > 0)
    if np.any(bad):
        row = int(np.argmax(bad))
        raise DegenerateVarianceError(
            f"Individual {row} has variance {variances[row]!r}; fitness is undefined"
        )
    return returns / variances


def variance_gradient(weights: np.ndarray, cov_matrix: np.ndarray) -> np.ndarray:
    """Gradient of w^T * Sigma * w with respect to w: 2 * Sigma * w."""
    return 2 * np.dot(cov_matrix, weights)


def normalize_weights(weights: np.ndarray) -> np.ndarray:
    """
    Rescale non-negative weights so they sum to 1.

    A 2-D array is normalized row by row.

    Raises:
        DegenerateWeightsError: If a vector sums to zero
    """
    weights = np.asarray(weights, dtype=float)
    totals = weights.sum(axis=-1, keepdims=True)
    if np.any(totals == 0):
        raise DegenerateWeightsError("Cannot normalize weights that sum to zero")
    return weights / totals


def portfolio_stats(
    weights: np.ndarray,
    expected_returns: np.ndarray,
    cov_matrix: np.ndarray
) -> Dict[str, Optional[float]]:
    """
    Calculate all portfolio statistics.

    Returns:
        Dictionary containing mean, variance, std and fitness. Fitness is
        None when the variance is not positive.
    """
    ret = portfolio_return(weights, expected_returns)
    var = portfolio_variance(weights, cov_matrix)

    return {
        'mean': ret,
        'variance': var,
        'std': float(np.sqrt(var)) if var > 0 else 0.0,
        'fitness': ret / var if var > 0 else None
    }
