"""
Statistics Engine
=================

Turns a weekly closing-price table into the inputs both optimizers share:

- Weekly returns: r[j, i] = (P[j+1, i] - P[j, i]) / P[j, i]
- Expected returns: arithmetic mean of each asset's weekly returns
- Covariance matrix: mean of the demeaned return cross products, i.e.
  divided by the number of return rows (W - 1), not by W - 2

The price table is validated before any division happens. A zero,
negative or missing price raises DataError instead of leaking inf/NaN
into the optimizers.
"""

from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from crypto_frontier.core.errors import DataError


PriceInput = Union[pd.DataFrame, np.ndarray, Sequence[Sequence[float]]]


class MarketStatistics:
    """
    Read-only statistics derived once from a price table.

    Attributes:
        returns (np.ndarray): (W-1) x N matrix of weekly returns
        expected_returns (np.ndarray): Mean weekly return per asset
        cov_matrix (np.ndarray): N x N covariance of weekly returns
        asset_names (List[str]): Asset names in column order
    """

    def __init__(
        self,
        returns: np.ndarray,
        expected_returns: np.ndarray,
        cov_matrix: np.ndarray,
        asset_names: List[str]
    ):
        self.returns = _frozen(returns)
        self.expected_returns = _frozen(expected_returns)
        self.cov_matrix = _frozen(cov_matrix)
        self.asset_names = list(asset_names)

    @property
    def n_assets(self) -> int:
        return len(self.expected_returns)

    @property
    def n_periods(self) -> int:
        """Number of return periods (W - 1)."""
        return self.returns.shape[0]

    def asset_table(self) -> pd.DataFrame:
        """Per-asset mean, standard deviation and variance of weekly returns."""
        variances = np.diag(self.cov_matrix)
        return pd.DataFrame(
            {
                'mean': self.expected_returns,
                'std': np.sqrt(variances),
                'variance': variances,
            },
            index=self.asset_names
        )

    def cov_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.cov_matrix, index=self.asset_names, columns=self.asset_names
        )

    def __repr__(self) -> str:
        return (f"MarketStatistics(n_assets={self.n_assets}, "
                f"n_periods={self.n_periods})")


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float)
    array.setflags(write=False)
    return array


def _price_array(prices: PriceInput) -> Tuple[np.ndarray, Optional[List[str]]]:
    """Convert a price table to a float array, keeping column names if any."""
    names = None
    if isinstance(prices, pd.DataFrame):
        names = [str(col) for col in prices.columns]
        try:
            values = prices.to_numpy(dtype=float)
        except (ValueError, TypeError) as e:
            raise DataError(f"Price table contains non-numeric values: {e}") from e
    else:
        try:
            values = np.array(prices, dtype=float)
        except (ValueError, TypeError) as e:
            raise DataError(f"Price table contains non-numeric values: {e}") from e
    return values, names


def validate_prices(
    prices: np.ndarray,
    expected_assets: Optional[int] = None,
    expected_periods: Optional[int] = None
) -> None:
    """
    Check that a price array can be turned into returns.

    Args:
        prices: W x N array of closing prices
        expected_assets: Required N, if the universe is fixed
        expected_periods: Required W, if the window is fixed

    Raises:
        DataError: On a bad shape, too few periods, or a non-finite or
            non-positive price
    """
    if prices.ndim != 2:
        raise DataError(f"Price table must be 2-D (weeks x assets), got shape {prices.shape}")

    n_periods, n_assets = prices.shape

    if n_assets < 1:
        raise DataError("Price table has no asset columns")
    if n_periods < 2:
        raise DataError(f"At least 2 weekly prices are needed, got {n_periods}")
    if expected_assets is not None and n_assets != expected_assets:
        raise DataError(f"Expected {expected_assets} assets, got {n_assets}")
    if expected_periods is not None and n_periods != expected_periods:
        raise DataError(f"Expected {expected_periods} weekly prices, got {n_periods}")

    if not np.all(np.isfinite(prices)):
        week, asset = np.argwhere(~np.isfinite(prices))[0]
        raise DataError(f"Missing or non-finite price at week {week}, asset {asset}")

    if np.any(prices <= 0):
        week, asset = np.argwhere(prices <= 0)[0]
        raise DataError(
            f"Non-positive price {prices[week, asset]} at week {week}, asset {asset}; "
            f"weekly return is undefined"
        )


def compute_weekly_returns(prices: PriceInput) -> np.ndarray:
    """
    Compute fractional week-over-week returns.

    Args:
        prices: W x N closing prices, oldest week first

    Returns:
        (W-1) x N array of returns

    Raises:
        DataError: If the prices fail validation
    """
    values, _ = _price_array(prices)
    validate_prices(values)
    return (values[1:] - values[:-1]) / values[:-1]


def compute_stats_from_returns(returns: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute expected returns and covariance matrix from weekly returns.

    The covariance divides by the number of return rows, matching the
    mean-of-cross-products definition used throughout the package.

    Args:
        returns: 2D array of returns (rows = weeks, cols = assets)

    Returns:
        Tuple of (expected_returns, cov_matrix)
    """
    returns = np.array(returns, dtype=float)

    if returns.ndim == 1:
        returns = returns.reshape(-1, 1)

    expected_returns = np.mean(returns, axis=0)

    demeaned = returns - expected_returns
    cov_matrix = np.dot(demeaned.T, demeaned) / returns.shape[0]

    # Exact symmetry, independent of summation order
    cov_matrix = (cov_matrix + cov_matrix.T) / 2

    return expected_returns, cov_matrix


def compute_statistics(
    prices: PriceInput,
    asset_names: Optional[Sequence[str]] = None,
    expected_assets: Optional[int] = None,
    expected_periods: Optional[int] = None
) -> MarketStatistics:
    """
    Derive weekly returns, expected returns and covariance from prices.

    Args:
        prices: W x N price table (DataFrame columns are used as names)
        asset_names: Optional names overriding the table's columns
        expected_assets: Required asset count N, if fixed
        expected_periods: Required period count W, if fixed

    Returns:
        MarketStatistics for the table

    Raises:
        DataError: If the table is malformed or holds a non-positive price

    Example:
        >>> prices = [[100, 50], [110, 55], [99, 60]]
        >>> stats = compute_statistics(prices, ['A', 'B'])
        >>> stats.returns.shape
        (2, 2)
    """
    values, column_names = _price_array(prices)
    validate_prices(values, expected_assets, expected_periods)

    returns = (values[1:] - values[:-1]) / values[:-1]
    expected_returns, cov_matrix = compute_stats_from_returns(returns)

    if asset_names is None:
        asset_names = column_names
    if asset_names is None:
        asset_names = [f"Asset_{i+1}" for i in range(values.shape[1])]
    if len(asset_names) != values.shape[1]:
        raise DataError(
            f"{len(asset_names)} asset names given for {values.shape[1]} price columns"
        )

    return MarketStatistics(returns, expected_returns, cov_matrix, list(asset_names))
