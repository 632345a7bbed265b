"""
Choose the final ARMA-GARCH candidate from an order search.
"""

import logging
from typing import Dict, List, Mapping

import numpy as np
import pandas as pd

from exceptions import InvalidParameterError, NoConvergedModelError
from models import CandidateSpec, FitResult, GridResult

logger = logging.getLogger(__name__)

CRITERIA = ('aic', 'bic')


class ModelSelector:
    """Minimum information criterion with a parsimony tie-break"""

    def __init__(self, criterion: str = 'aic', tolerance: float = 0.001):
        """
        Args:
            criterion: 'aic' (default) or 'bic'
            tolerance: Candidates whose criterion is within this distance of
                the minimum count as tied; the one with the fewest GARCH
                terms (p + q) wins
        """
        criterion = criterion.lower()
        if criterion not in CRITERIA:
            raise InvalidParameterError(f"Unknown criterion {criterion!r}, expected one of {CRITERIA}")
        if tolerance < 0:
            raise InvalidParameterError(f"Tolerance must be non-negative, got {tolerance}")
        self.criterion = criterion
        self.tolerance = tolerance

    def select(self, results: Mapping[CandidateSpec, GridResult]) -> FitResult:
        """Return the selected fit; raises NoConvergedModelError if nothing converged"""
        converged = self.converged(results)
        if not converged:
            raise NoConvergedModelError(
                f"None of the {len(results)} candidate models converged"
            )

        best_score = min(fit.criterion(self.criterion) for fit in converged)
        tied = [
            fit for fit in converged
            if fit.criterion(self.criterion) - best_score < self.tolerance
        ]
        selected = min(tied, key=self._parsimony_key)

        if len(tied) > 1:
            logger.info(
                f"{len(tied)} candidates within {self.tolerance} {self.criterion.upper()} "
                f"of the minimum; keeping the most parsimonious: {selected.spec.label}"
            )
        logger.info(
            f"Selected {selected.spec.label} with AIC={selected.aic:.4f}, BIC={selected.bic:.4f}"
        )
        return selected

    @staticmethod
    def converged(results: Mapping[CandidateSpec, GridResult]) -> List[FitResult]:
        return [result for result in results.values() if result.converged]

    @staticmethod
    def _parsimony_key(fit: FitResult):
        return (fit.spec.n_variance_params, fit.n_params, fit.spec.p, fit.spec.q)


def criteria_table(results: Mapping[CandidateSpec, GridResult]) -> pd.DataFrame:
    """One row per grid point with information criteria, for the report"""
    records: List[Dict] = []
    for spec, result in results.items():
        record = {
            'model': spec.label,
            'p': spec.p,
            'q': spec.q,
            'status': 'converged' if result.converged else 'failed',
            'loglikelihood': np.nan,
            'aic': np.nan,
            'bic': np.nan,
            'n_params': np.nan,
        }
        if result.converged:
            record.update(
                loglikelihood=result.loglikelihood,
                aic=result.aic,
                bic=result.bic,
                n_params=result.n_params
            )
        else:
            record['reason'] = result.reason
        records.append(record)

    if not records:
        raise NoConvergedModelError("No candidate models to tabulate")
    return pd.DataFrame(records).set_index(['p', 'q']).sort_index()
