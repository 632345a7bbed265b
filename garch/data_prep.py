"""
Prepare daily log-returns for ARMA-GARCH estimation.
"""

import logging
from typing import Sequence, Union

import numpy as np
import pandas as pd

from exceptions import InvalidInputError
from models import ReturnSeries

logger = logging.getLogger(__name__)


class GarchDataPrep:
    """Prepares price data for GARCH estimation."""

    def __init__(self, scale: float = 100.0):
        """
        Args:
            scale: Multiplier applied to log-returns (100 gives percent units,
                which keeps the arch optimizer well conditioned)
        """
        self.scale = scale

    def prepare_returns(self, prices: Union[pd.Series, Sequence[float]]) -> ReturnSeries:
        """
        Convert a price series into percentage log-returns.

        Args:
            prices: Close prices ordered by date (Series with DatetimeIndex,
                or a plain sequence)

        Returns:
            ReturnSeries with len(prices) - 1 observations
        """
        if not isinstance(prices, pd.Series):
            prices = pd.Series(np.asarray(prices, dtype=float))

        if len(prices) < 2:
            raise InvalidInputError(
                f"Need at least 2 prices to compute returns, got {len(prices)}"
            )

        values = prices.to_numpy(dtype=float)
        if np.any(~np.isfinite(values)):
            raise InvalidInputError("Price series contains missing or non-finite values")
        if np.any(values <= 0):
            bad = prices[prices <= 0]
            raise InvalidInputError(
                f"Price series contains {len(bad)} non-positive values "
                f"(first at {bad.index[0]})"
            )
        if prices.index.has_duplicates or not prices.index.is_monotonic_increasing:
            raise InvalidInputError("Price dates must be strictly increasing")

        log_prices = np.log(values)
        returns = pd.Series(
            self.scale * np.diff(log_prices),
            index=prices.index[1:],
            name=prices.name if prices.name is not None else 'returns'
        )

        zero_returns = int((returns == 0).sum())
        if zero_returns:
            logger.warning(f"Found {zero_returns} zero returns (unchanged closes)")

        logger.info(
            f"Prepared {len(returns)} log returns: "
            f"mean={returns.mean():.4f}%, std={returns.std():.4f}%"
        )

        return ReturnSeries(
            values=returns,
            initial_price=float(values[0]),
            name=str(returns.name),
            scale=self.scale
        )
