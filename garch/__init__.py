"""
ARMA-GARCH modeling package for Value-at-Risk forecasting.
Implements return preparation, order search, selection and forecasting.
"""

from .data_prep import GarchDataPrep
from .estimator import GARCHEstimator
from .selector import ModelSelector, criteria_table
from .forecaster import GARCHForecaster
from models import CandidateSpec, ConvergenceFailure, FitResult, Forecast, ReturnSeries

__all__ = [
    'GarchDataPrep', 'GARCHEstimator', 'ModelSelector', 'criteria_table',
    'GARCHForecaster', 'CandidateSpec', 'ConvergenceFailure', 'FitResult',
    'Forecast', 'ReturnSeries'
]
