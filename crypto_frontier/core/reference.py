"""
Constrained reference solution for the gradient search.

The projected gradient search treats the target return as a stopping
rule only. This module solves the same problem with the target as a hard
equality constraint so the two can be compared:

    minimize:   w^T * Sigma * w
    subject to: sum(w) = 1
                w^T * mu = target
                0 <= w <= 1
"""

from typing import Dict, Optional, Tuple

import numpy as np
from scipy.optimize import minimize

from crypto_frontier.core.objectives import portfolio_return, portfolio_stats, portfolio_variance


def minimum_variance_for_target(
    expected_returns: np.ndarray,
    cov_matrix: np.ndarray,
    target_return: float
) -> Tuple[Optional[np.ndarray], Optional[Dict[str, Optional[float]]]]:
    """
    Find the long-only minimum variance portfolio for a target return.

    Args:
        expected_returns: Expected return of each asset
        cov_matrix: Asset covariance matrix
        target_return: Required portfolio return

    Returns:
        Tuple of (weights, stats_dict), or (None, None) if SLSQP fails
        (for instance when the target is outside the assets' return range)
    """
    expected_returns = np.array(expected_returns, dtype=float).flatten()
    cov_matrix = np.array(cov_matrix, dtype=float)
    n_assets = len(expected_returns)

    w0 = np.ones(n_assets) / n_assets

    constraints = [
        {'type': 'eq', 'fun': lambda w: np.sum(w) - 1},
        {'type': 'eq', 'fun': lambda w: portfolio_return(w, expected_returns) - target_return}
    ]
    bounds = [(0, 1) for _ in range(n_assets)]

    result = minimize(
        lambda w: portfolio_variance(w, cov_matrix),
        w0,
        method='SLSQP',
        bounds=bounds,
        constraints=constraints,
        options={'ftol': 1e-12}
    )

    if not result.success:
        return None, None

    weights = result.x
    return weights, portfolio_stats(weights, expected_returns, cov_matrix)
