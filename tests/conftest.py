import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from crypto_frontier.core.loader import generate_sample_prices
from crypto_frontier.core.statistics import compute_statistics


FOUR_ASSETS = ["AAA", "BBB", "CCC", "DDD"]


class ScriptedRng:
    """Stands in for numpy's Generator, replaying queued integer draws."""

    def __init__(self, integers=(), random=None):
        self._integers = list(integers)
        self._random = random or np.random.default_rng(0)

    def integers(self, low, high=None, size=None):
        value = self._integers.pop(0)
        return np.asarray(value) if size is not None else value

    def random(self, size=None):
        return self._random.random(size)


@pytest.fixture
def sample_prices() -> pd.DataFrame:
    return generate_sample_prices(FOUR_ASSETS, n_weeks=30, seed=11)


@pytest.fixture
def sample_stats(sample_prices):
    return compute_statistics(sample_prices)


@pytest.fixture
def identical_asset_prices() -> pd.DataFrame:
    """Four statistically identical assets over five weeks."""
    path = [100.0, 110.0, 99.0, 120.0, 126.0]
    return pd.DataFrame({name: path for name in FOUR_ASSETS})
