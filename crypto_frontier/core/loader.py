"""
Weekly Price Loader
===================

Reads the weekly CoinMarketCap exports the study is built on, one file
per coin:

    <data_dir>/<Coin>_weekly_historical_data_coinmarketcap.csv

Each export is ';'-delimited with a header row:

    timeOpen;timeClose;timeHigh;timeLow;name;open;high;low;close;volume;marketCap;timestamp

Only the closing price is used. Exports are usually newest first, so rows
are put in chronological order whenever a date column is present and the
most recent `period_count` weeks are kept. Without a date column the file
order is taken as chronological and the first `period_count` rows are kept.

The loader hands the statistics engine a W x N DataFrame (one column per
coin) or raises DataError naming the file that could not be used.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from crypto_frontier.core.config import DEFAULT_COINS, DEFAULT_DATA_DIR
from crypto_frontier.core.errors import DataError


FILE_TEMPLATE = "{coin}_weekly_historical_data_coinmarketcap.csv"

# Position of the close price in a CoinMarketCap export without a usable header
CLOSE_COLUMN_INDEX = 8

DATE_COLUMNS = ('timeOpen', 'timeClose', 'timestamp', 'date', 'Date')


def coin_file_path(data_dir: Union[str, Path], coin: str) -> Path:
    """Path of the weekly export for one coin."""
    return Path(data_dir) / FILE_TEMPLATE.format(coin=coin)


def detect_date_column(df: pd.DataFrame) -> Optional[str]:
    """Find the first column that parses entirely as dates."""
    for col in DATE_COLUMNS:
        if col in df.columns:
            dates = pd.to_datetime(df[col], errors='coerce', utc=True)
            if dates.notna().all():
                return col
    return None


class PriceLoader:
    """
    Loads a W x N table of weekly closing prices.

    Attributes:
        data_dir (Path): Directory holding one export per asset
        asset_names (List[str]): Assets to load, in column order
        period_count (int): Number of weekly prices W required per asset

    Example:
        >>> loader = PriceLoader("Historical_Last_13Month")
        >>> prices = loader.load()
        >>> prices.shape
        (60, 8)
    """

    def __init__(
        self,
        data_dir: Union[str, Path] = DEFAULT_DATA_DIR,
        asset_names: Optional[Sequence[str]] = None,
        period_count: int = 60,
        delimiter: str = ";",
        close_column: str = "close",
        logger: Optional[logging.Logger] = None
    ):
        self.data_dir = Path(data_dir)
        self.asset_names: List[str] = list(asset_names or DEFAULT_COINS)
        self.period_count = period_count
        self.delimiter = delimiter
        self.close_column = close_column
        self.logger = logger or logging.getLogger(__name__)

    def load_asset(self, name: str) -> pd.Series:
        """
        Load the weekly closes of one asset, oldest first.

        Args:
            name: Asset name, used to build the file name

        Returns:
            Series of period_count closing prices

        Raises:
            DataError: If the file is missing, unreadable, malformed or short
        """
        path = coin_file_path(self.data_dir, name)

        if not path.exists():
            raise DataError(f"Price file not found for {name}: {path}")

        try:
            df = pd.read_csv(path, sep=self.delimiter)
        except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError,
                UnicodeDecodeError) as e:
            raise DataError(f"Could not read {path}: {e}") from e

        if self.close_column in df.columns:
            raw_close = df[self.close_column]
        elif df.shape[1] > CLOSE_COLUMN_INDEX:
            raw_close = df.iloc[:, CLOSE_COLUMN_INDEX]
        else:
            raise DataError(
                f"{path} has {df.shape[1]} columns and no '{self.close_column}' column"
            )

        frame = pd.DataFrame({'close': pd.to_numeric(raw_close, errors='coerce')})

        date_col = detect_date_column(df)
        if date_col is not None:
            frame['date'] = pd.to_datetime(df[date_col], utc=True)
            frame = frame.sort_values('date', kind='stable').tail(self.period_count)
        else:
            frame = frame.head(self.period_count)

        if len(frame) < self.period_count:
            raise DataError(
                f"{path} has {len(frame)} weekly rows, {self.period_count} required"
            )

        closes = frame['close']
        if closes.isna().any():
            row = int(np.argmax(closes.isna().to_numpy()))
            raise DataError(f"Malformed close price in {path} (week {row})")

        self.logger.debug(f"Loaded {len(closes)} weekly closes for {name} from {path}")
        return closes.reset_index(drop=True).rename(name)

    def load(self) -> pd.DataFrame:
        """
        Load every asset into a single price table.

        Returns:
            DataFrame with period_count rows and one column per asset

        Raises:
            DataError: If any asset cannot be loaded
        """
        self.logger.info(
            f"Loading {len(self.asset_names)} weekly price files from {self.data_dir}"
        )
        columns = [self.load_asset(name) for name in self.asset_names]
        return pd.concat(columns, axis=1)


def load_direct(
    prices: Union[np.ndarray, Sequence[Sequence[float]]],
    asset_names: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """
    Wrap a W x N array of closing prices as a price table.

    Args:
        prices: Rows are weeks (oldest first), columns are assets
        asset_names: Optional asset names (default: Asset_1, Asset_2, ...)

    Returns:
        Price table DataFrame
    """
    values = np.array(prices, dtype=float)
    if values.ndim != 2:
        raise DataError(f"Price table must be 2-D (weeks x assets), got shape {values.shape}")

    if asset_names is None:
        asset_names = [f"Asset_{i+1}" for i in range(values.shape[1])]

    return pd.DataFrame(values, columns=list(asset_names))


def generate_sample_prices(
    asset_names: Optional[Sequence[str]] = None,
    n_weeks: int = 60,
    seed: int = 42
) -> pd.DataFrame:
    """
    Generate a synthetic weekly price table for testing.

    Prices follow a geometric random walk with a per-asset drift and
    volatility, loosely scaled to weekly crypto moves.

    Args:
        asset_names: Asset names (default: the eight study coins)
        n_weeks: Number of weekly prices per asset
        seed: Random seed for reproducibility

    Returns:
        Price table DataFrame, oldest week first
    """
    names = list(asset_names or DEFAULT_COINS)
    rng = np.random.default_rng(seed)
    n_assets = len(names)

    drifts = np.linspace(0.002, 0.02, n_assets)
    vols = np.linspace(0.05, 0.15, n_assets)
    shocks = rng.normal(drifts, vols, size=(n_weeks - 1, n_assets))

    start = rng.uniform(1.0, 1000.0, size=n_assets)
    log_paths = np.vstack([np.zeros(n_assets), np.cumsum(shocks, axis=0)])

    return pd.DataFrame(start * np.exp(log_paths), columns=names)
