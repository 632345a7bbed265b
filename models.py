"""Common data models used across the project."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union
import numpy as np
import pandas as pd


@dataclass(frozen=True)
class ReturnSeries:
    """Daily log-returns in percent, 100 * (ln p_t - ln p_{t-1})"""
    values: pd.Series
    initial_price: float
    name: str = 'returns'
    scale: float = 100.0

    def __len__(self) -> int:
        return len(self.values)

    @property
    def dates(self) -> pd.Index:
        return self.values.index

    def to_prices(self) -> np.ndarray:
        """Rebuild the price path (including the initial price) by cumulative exponentiation"""
        growth = np.exp(np.cumsum(self.values.to_numpy() / self.scale))
        return np.concatenate([[self.initial_price], self.initial_price * growth])


@dataclass(frozen=True, order=True)
class CandidateSpec:
    """One grid point: ARMA mean order plus GARCH(p, q) variance order"""
    mean_order: Tuple[int, int]
    p: int
    q: int

    @property
    def n_variance_params(self) -> int:
        return self.p + self.q

    @property
    def label(self) -> str:
        ar, ma = self.mean_order
        return f"ARMA({ar},{ma})-GARCH({self.p},{self.q})"


@dataclass
class FitResult:
    """Container for a converged mean-variance fit"""
    spec: CandidateSpec
    params: Dict[str, float]
    std_errors: Dict[str, float]
    loglikelihood: float
    aic: float
    bic: float
    n_params: int
    nobs: int
    conditional_variance: pd.Series  # percent^2
    residuals: pd.Series
    distribution: str = 'normal'
    # fitted library objects, needed for forecasting
    variance_result: Any = field(default=None, repr=False)
    mean_result: Any = field(default=None, repr=False)

    converged = True

    def criterion(self, name: str) -> float:
        return float(getattr(self, name.lower()))


@dataclass(frozen=True)
class ConvergenceFailure:
    """Marker for a grid point whose estimation failed"""
    spec: CandidateSpec
    reason: str

    converged = False


GridResult = Union[FitResult, ConvergenceFailure]


@dataclass(frozen=True)
class Forecast:
    """h-step conditional mean and std-dev forecasts, percent units"""
    spec: CandidateSpec
    horizon: int
    frame: pd.DataFrame  # columns: mean, std; index: future dates

    @property
    def mean(self) -> pd.Series:
        return self.frame['mean']

    @property
    def std(self) -> pd.Series:
        return self.frame['std']


@dataclass(frozen=True)
class RiskMetrics:
    """Per-step VaR and ES in return fractions and currency"""
    alpha: float
    position: float
    z: float
    k: float
    frame: pd.DataFrame  # columns: mean, std, var_return, es_return, var_currency, es_currency
    spec: Optional[CandidateSpec] = None

    @property
    def confidence(self) -> float:
        return 1.0 - self.alpha
