"""
Parametric (normal) Value-at-Risk and Expected Shortfall from GARCH forecasts.

For a step with mean mu and volatility sigma in return fractions:

    z   = Phi^-1(1 - alpha)
    k   = phi(z) / alpha
    VaR = |mu - z * sigma|
    ES  = |mu - k * sigma|

Currency values scale both by the position size.
"""

import logging
from typing import Tuple

import numpy as np
import pandas as pd
from scipy import stats

from exceptions import InvalidParameterError
from models import Forecast, RiskMetrics

logger = logging.getLogger(__name__)


def validate_alpha(alpha: float) -> float:
    alpha = float(alpha)
    if not 0.0 < alpha < 1.0:
        raise InvalidParameterError(f"Confidence level alpha must lie in (0, 1), got {alpha}")
    return alpha


def normal_quantiles(alpha: float) -> Tuple[float, float]:
    """
    Normal VaR quantile and ES multiplier.

    Returns:
        (z, k) with z the (1 - alpha) standard normal quantile and
        k = pdf(z) / alpha. k > z whenever alpha < 0.5.
    """
    alpha = validate_alpha(alpha)
    z = float(stats.norm.ppf(1.0 - alpha))
    k = float(stats.norm.pdf(z) / alpha)
    return z, k


def parametric_var_es(mu, sigma, alpha: float):
    """VaR and ES (same units as mu and sigma) for scalars or arrays"""
    z, k = normal_quantiles(alpha)
    mu = np.asarray(mu, dtype=float)
    sigma = np.asarray(sigma, dtype=float)
    return np.abs(mu - z * sigma), np.abs(mu - k * sigma)


class RiskCalculator:
    """Converts percent-unit forecasts into VaR and ES per forecast step"""

    def __init__(self, alpha: float = 0.01, position: float = 10_000.0, scale: float = 100.0):
        """
        Args:
            alpha: Tail probability (0.01 is 99% confidence)
            position: Position size in currency units
            scale: Divisor from forecast units to return fractions (100 for percent)
        """
        self.alpha = validate_alpha(alpha)
        if not position > 0:
            raise InvalidParameterError(f"Position size must be positive, got {position}")
        self.position = float(position)
        self.scale = scale

    def calculate(self, forecast: Forecast) -> RiskMetrics:
        """VaR and ES for every step of the forecast"""
        z, k = normal_quantiles(self.alpha)

        mu = forecast.mean.to_numpy(dtype=float) / self.scale
        sigma = forecast.std.to_numpy(dtype=float) / self.scale
        var_return, es_return = parametric_var_es(mu, sigma, self.alpha)

        frame = pd.DataFrame({
            'mean': mu,
            'std': sigma,
            'var_return': var_return,
            'es_return': es_return,
            'var_currency': var_return * self.position,
            'es_currency': es_return * self.position,
        }, index=forecast.frame.index)

        violations = frame['es_return'] < frame['var_return']
        if violations.any():
            # only reachable with alpha >= 0.5 or a large positive mean
            logger.warning(f"ES below VaR on {int(violations.sum())} forecast steps")

        logger.info(
            f"{(1 - self.alpha):.1%} risk on {self.position:,.2f}: "
            f"VaR {frame['var_currency'].iloc[0]:,.2f} -> {frame['var_currency'].iloc[-1]:,.2f}, "
            f"ES {frame['es_currency'].iloc[0]:,.2f} -> {frame['es_currency'].iloc[-1]:,.2f}"
        )

        return RiskMetrics(
            alpha=self.alpha,
            position=self.position,
            z=z,
            k=k,
            frame=frame,
            spec=forecast.spec
        )
