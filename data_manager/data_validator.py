"""
Data validation for daily close price series.
"""

import pandas as pd
import numpy as np
from typing import List, Tuple


class DataValidator:
    """Validates price series before returns are built."""

    def __init__(self, min_observations: int = 2, max_price: float = 1e7):
        self.min_observations = min_observations
        self.validation_bounds = {
            'price': {'min': 0, 'max': max_price}
        }

    def validate_prices(self, prices: pd.Series) -> Tuple[bool, List[str]]:
        """
        Validates a daily price series.

        Args:
            prices: Series of close prices indexed by date

        Returns:
            Tuple of (is_valid, list_of_issues)
        """
        issues = []

        if len(prices) < self.min_observations:
            issues.append(
                f"Insufficient observations: {len(prices)} < {self.min_observations}"
            )

        missing_count = int(prices.isna().sum())
        if missing_count > 0:
            issues.append(f"Price series has {missing_count} missing values")

        issues.extend(self._validate_bounds(
            prices.dropna(),
            self.validation_bounds['price']['min'],
            self.validation_bounds['price']['max'],
            'price'
        ))

        if isinstance(prices.index, pd.DatetimeIndex):
            if prices.index.has_duplicates:
                issues.append("Price series has duplicate dates")
            if not prices.index.is_monotonic_increasing:
                issues.append("Price dates are not in increasing order")

        return len(issues) == 0, issues

    def _validate_bounds(self, series: pd.Series, min_val: float, max_val: float, name: str) -> List[str]:
        """Validates that values fall strictly above min_val and at most max_val."""
        issues = []

        below_min = series[series <= min_val]
        if not below_min.empty:
            issues.append(
                f"{name}: {len(below_min)} values not above minimum of {min_val} "
                f"(first occurrence at index {below_min.index[0]})"
            )

        above_max = series[series > max_val]
        if not above_max.empty:
            issues.append(
                f"{name}: {len(above_max)} values above maximum of {max_val} "
                f"(first occurrence at index {above_max.index[0]})"
            )

        return issues

    def find_stale_prices(self, prices: pd.Series, max_run: int = 5) -> pd.Series:
        """Flags runs of more than max_run identical consecutive closes."""
        unchanged = prices.diff().eq(0)
        run_id = (~unchanged).cumsum()
        run_length = unchanged.astype(int).groupby(run_id).cumsum()
        return run_length > max_run

    def summarize(self, prices: pd.Series) -> dict:
        """Basic coverage statistics for logging."""
        log_changes = np.log(prices / prices.shift(1)).dropna()
        return {
            'observations': len(prices),
            'start': prices.index.min() if len(prices) else None,
            'end': prices.index.max() if len(prices) else None,
            'min_price': float(prices.min()) if len(prices) else np.nan,
            'max_price': float(prices.max()) if len(prices) else np.nan,
            'largest_abs_log_change': float(log_changes.abs().max()) if len(log_changes) else np.nan,
        }
