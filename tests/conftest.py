import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

from garch.data_prep import GarchDataPrep


def simulate_garch_returns(n: int, mu: float = 0.05, omega: float = 0.02,
                           alpha: float = 0.1, beta: float = 0.85, seed: int = 42) -> np.ndarray:
    """Percent returns from a GARCH(1,1) with normal innovations"""
    rs = np.random.RandomState(seed)
    eps = np.empty(n)
    sigma2 = np.empty(n)
    sigma2[0] = omega / (1 - alpha - beta)
    for t in range(n):
        if t > 0:
            sigma2[t] = omega + alpha * eps[t - 1] ** 2 + beta * sigma2[t - 1]
        eps[t] = np.sqrt(sigma2[t]) * rs.standard_normal()
    return mu + eps


def prices_from_returns(returns_pct: np.ndarray, start: str = '2015-01-01',
                        initial: float = 2000.0) -> pd.Series:
    dates = pd.bdate_range(start, periods=len(returns_pct) + 1)
    path = initial * np.exp(np.concatenate([[0.0], np.cumsum(returns_pct / 100.0)]))
    return pd.Series(path, index=dates, name='^GSPC')


@pytest.fixture
def garch_prices():
    """1,201 closes whose log-returns follow a known GARCH(1,1)"""
    return prices_from_returns(simulate_garch_returns(1200))


@pytest.fixture
def garch_returns(garch_prices):
    return GarchDataPrep().prepare_returns(garch_prices)
