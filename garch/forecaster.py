from typing import Optional
import numpy as np
import pandas as pd
from pandas.tseries.frequencies import to_offset
import logging

from exceptions import ConvergenceFailureError, InvalidParameterError
from models import FitResult, Forecast

logger = logging.getLogger(__name__)


class GARCHForecaster:
    """Analytic multi-step mean and volatility forecasts from a fitted candidate"""

    def __init__(self, freq: str = 'B'):
        """
        Args:
            freq: pandas frequency used to date forecast steps (business days)
        """
        self.freq = freq
        self.logger = logging.getLogger('garch.forecaster')

    def forecast(self, fit: FitResult, horizon: int = 8) -> Forecast:
        """
        Forecast h steps ahead from the last in-sample observation.

        Variances follow the GARCH recursion started from the fit's own last
        residuals and conditional variances. Means come from the arch model
        for AR means, or from the statsmodels ARMA fit when the mean has MA
        terms.

        Returns:
            Forecast with h rows of (mean, std) in percent
        """
        if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)) or horizon < 1:
            raise InvalidParameterError(f"Forecast horizon must be a positive integer, got {horizon!r}")
        horizon = int(horizon)

        variance = self.variance_forecast(fit, horizon)

        if fit.mean_result is None:
            mean_forecast = fit.variance_result.forecast(
                horizon=horizon,
                method='analytic',
                reindex=False
            )
            mean = np.asarray(mean_forecast.mean.values[-1], dtype=float)
        else:
            mean = np.asarray(fit.mean_result.forecast(steps=horizon), dtype=float)

        if not self._validate_forecasts(mean, variance, fit):
            raise ConvergenceFailureError(
                f"Forecast from {fit.spec.label} is not usable", spec=fit.spec
            )

        frame = pd.DataFrame(
            {'mean': mean, 'std': np.sqrt(variance)},
            index=self._future_index(fit.conditional_variance.index, horizon)
        )
        frame.index.name = 'date'

        self.logger.info(
            f"{horizon}-step forecast from {fit.spec.label}: "
            f"std {frame['std'].iloc[0]:.4f}% -> {frame['std'].iloc[-1]:.4f}%"
        )
        return Forecast(spec=fit.spec, horizon=horizon, frame=frame)

    @staticmethod
    def variance_forecast(fit: FitResult, horizon: int) -> np.ndarray:
        """
        Analytic GARCH(p, q) variance forecasts for steps 1..h.

        sigma2[T+1] = omega + sum alpha_i * eps[T+1-i]^2 + sum beta_j * sigma2[T+1-j],
        with E[eps^2] = sigma2 beyond the sample. The in-sample state is
        fit.residuals and fit.conditional_variance, so the forecast continues
        exactly the path the fit reports.
        """
        p, q = fit.spec.p, fit.spec.q
        omega = fit.params['omega']
        alpha = [fit.params[f'alpha[{i}]'] for i in range(1, p + 1)]
        beta = [fit.params[f'beta[{j}]'] for j in range(1, q + 1)]

        residuals = fit.residuals.to_numpy(dtype=float)
        variances = fit.conditional_variance.to_numpy(dtype=float)
        if len(residuals) < p or len(variances) < q:
            raise InvalidParameterError(
                f"{fit.spec.label} needs {max(p, q)} in-sample observations to forecast"
            )

        # newest last
        eps2 = list(residuals[-p:] ** 2)
        sigma2 = list(variances[-q:]) if q else []

        forecasts = []
        for _ in range(horizon):
            value = omega
            value += sum(a * e for a, e in zip(alpha, reversed(eps2)))
            value += sum(b * s for b, s in zip(beta, reversed(sigma2)))
            forecasts.append(value)
            eps2.append(value)
            sigma2.append(value)

        return np.asarray(forecasts, dtype=float)

    def _future_index(self, sample_index: pd.Index, horizon: int) -> pd.Index:
        """Dates following the last sample date, or step numbers for undated samples"""
        if isinstance(sample_index, pd.DatetimeIndex) and len(sample_index):
            offset = to_offset(self.freq)
            return pd.date_range(start=sample_index[-1] + offset, periods=horizon, freq=self.freq)
        last: Optional[int] = int(sample_index[-1]) if len(sample_index) else -1
        return pd.RangeIndex(last + 1, last + 1 + horizon)

    def _validate_forecasts(self, mean: np.ndarray, variance: np.ndarray, fit: FitResult) -> bool:
        """Forecasts must be finite with positive variance"""
        if np.any(~np.isfinite(mean)) or np.any(~np.isfinite(variance)):
            self.logger.warning(f"Found NaN/inf in forecasts from {fit.spec.label}")
            return False

        if np.any(variance <= 0):
            self.logger.warning(
                f"Non-positive variance forecast from {fit.spec.label}: min={np.min(variance):.6f}"
            )
            return False

        return True
