"""
Risk metrics derived from volatility forecasts.
"""

from .metrics import RiskCalculator, normal_quantiles, parametric_var_es

__all__ = ['RiskCalculator', 'normal_quantiles', 'parametric_var_es']
