"""
Price loader for the VaR pipeline: Yahoo Finance downloads and CSV files.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd
import yfinance as yf

from data_manager.data_validator import DataValidator
from exceptions import InvalidInputError

logger = logging.getLogger(__name__)


class DataLoader:
    def __init__(self, validator: Optional[DataValidator] = None):
        """Initialize data loader with a price validator."""
        self.validator = validator or DataValidator()

    def fetch_prices(self, ticker: str = '^GSPC',
                     start: str = '2000-01-01',
                     end: str = '2024-01-01') -> pd.Series:
        """
        Download daily close prices from Yahoo Finance.

        Args:
            ticker: Yahoo symbol (default S&P 500 index)
            start: First date, inclusive
            end: Last date, exclusive

        Returns:
            Series of close prices indexed by date
        """
        logger.info(f"Downloading {ticker} closes from {start} to {end}")
        history = yf.Ticker(ticker).history(start=start, end=end, interval='1d', auto_adjust=True)

        if history.empty:
            raise InvalidInputError(f"No historical data available for symbol: {ticker!r}")

        prices = history['Close'].rename(ticker)
        # yfinance returns exchange-local timestamps; keep calendar dates only
        index = pd.DatetimeIndex(prices.index)
        if index.tz is not None:
            index = index.tz_localize(None)
        prices.index = index.normalize()
        prices.index.name = 'date'

        return self._clean(prices, source=ticker)

    def load_csv(self, file_path: Union[str, Path],
                 date_column: str = 'date',
                 price_column: str = 'close') -> pd.Series:
        """Load a daily close series from a CSV file."""
        logger.info(f"Reading prices from: {file_path}")
        df = pd.read_csv(file_path)

        missing = [col for col in (date_column, price_column) if col not in df.columns]
        if missing:
            raise InvalidInputError(f"Missing required columns in {file_path}: {missing}")

        prices = pd.Series(
            df[price_column].to_numpy(dtype=float),
            index=pd.to_datetime(df[date_column]),
            name=price_column
        )
        prices.index.name = 'date'

        return self._clean(prices, source=str(file_path))

    def save_csv(self, prices: pd.Series, file_path: Union[str, Path]) -> Path:
        """Cache a price series so later runs can work offline."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        prices.rename('close').rename_axis('date').to_frame().to_csv(file_path)
        logger.info(f"Saved {len(prices)} prices to {file_path}")
        return file_path

    def _clean(self, prices: pd.Series, source: str) -> pd.Series:
        """Sort, drop empty rows and validate."""
        prices = prices.sort_index()
        dropped = int(prices.isna().sum())
        if dropped:
            logger.warning(f"Dropping {dropped} empty closes from {source}")
            prices = prices.dropna()

        is_valid, issues = self.validator.validate_prices(prices)
        if not is_valid:
            raise InvalidInputError(f"Invalid price data from {source}: " + "; ".join(issues))

        stale = self.validator.find_stale_prices(prices)
        if stale.any():
            logger.warning(f"Found {int(stale.sum())} stale closes in {source}")

        summary = self.validator.summarize(prices)
        logger.info(
            f"Loaded {summary['observations']:,} closes from {source}: "
            f"{summary['start']:%Y-%m-%d} to {summary['end']:%Y-%m-%d}"
        )
        return prices
