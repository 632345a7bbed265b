"""
Exploratory checks on the return series and ARMA mean-order identification.
"""

import logging
import warnings
from typing import Dict, Tuple

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox, het_arch
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.stattools import adfuller

from exceptions import InvalidParameterError, NoConvergedModelError
from models import ReturnSeries

logger = logging.getLogger(__name__)


def describe_returns(returns: ReturnSeries) -> Dict[str, float]:
    """Moments and a Jarque-Bera normality test"""
    values = returns.values.to_numpy(dtype=float)
    jb = stats.jarque_bera(values)
    summary = {
        'count': int(len(values)),
        'mean': float(np.mean(values)),
        'std': float(np.std(values, ddof=1)),
        'min': float(np.min(values)),
        'max': float(np.max(values)),
        'skewness': float(stats.skew(values)),
        'excess_kurtosis': float(stats.kurtosis(values)),
        'jarque_bera': float(jb[0]),
        'jarque_bera_pvalue': float(jb[1]),
    }
    logger.info(
        f"Returns: n={summary['count']}, mean={summary['mean']:.4f}%, std={summary['std']:.4f}%, "
        f"skew={summary['skewness']:.2f}, excess kurtosis={summary['excess_kurtosis']:.2f}"
    )
    return summary


def stationarity_test(returns: ReturnSeries, significance: float = 0.05) -> Dict[str, float]:
    """Augmented Dickey-Fuller test; H0 is a unit root"""
    adf_stat, p_value, used_lag, nobs, critical_values, _ = adfuller(
        returns.values.to_numpy(dtype=float), autolag='AIC', result_object=False
    )
    result = {
        'adf_statistic': float(adf_stat),
        'p_value': float(p_value),
        'used_lag': int(used_lag),
        'nobs': int(nobs),
        'stationary': bool(p_value < significance),
        **{f'critical_{key}': float(value) for key, value in critical_values.items()},
    }
    if not result['stationary']:
        logger.warning(f"ADF test cannot reject a unit root (p={p_value:.4f})")
    else:
        logger.info(f"ADF statistic {adf_stat:.2f} (p={p_value:.4f}): returns are stationary")
    return result


def arch_effects_test(returns: ReturnSeries, lags: int = 10) -> Dict[str, float]:
    """Ljung-Box on returns and squared returns, plus Engle's ARCH-LM test"""
    if lags < 1:
        raise InvalidParameterError(f"lags must be positive, got {lags}")

    values = returns.values.to_numpy(dtype=float)
    demeaned = values - values.mean()

    lb_levels = acorr_ljungbox(values, lags=[lags], return_df=True)
    lb_squared = acorr_ljungbox(demeaned ** 2, lags=[lags], return_df=True)
    lm_stat, lm_pvalue, _, _ = het_arch(demeaned, nlags=lags, result_object=False)

    result = {
        'lags': lags,
        'ljung_box': float(lb_levels['lb_stat'].iloc[0]),
        'ljung_box_pvalue': float(lb_levels['lb_pvalue'].iloc[0]),
        'ljung_box_squared': float(lb_squared['lb_stat'].iloc[0]),
        'ljung_box_squared_pvalue': float(lb_squared['lb_pvalue'].iloc[0]),
        'arch_lm': float(lm_stat),
        'arch_lm_pvalue': float(lm_pvalue),
    }
    logger.info(
        f"Ljung-Box({lags}) returns p={result['ljung_box_pvalue']:.4f}, "
        f"squared p={result['ljung_box_squared_pvalue']:.4f}; "
        f"ARCH-LM p={result['arch_lm_pvalue']:.4f}"
    )
    return result


def select_mean_order(returns: ReturnSeries, max_ar: int = 3, max_ma: int = 3,
                      criterion: str = 'aic') -> Tuple[Tuple[int, int], pd.DataFrame]:
    """
    Identify the ARMA(ar, ma) mean order by information criterion.

    Every (ar, ma) with 0 <= ar <= max_ar and 0 <= ma <= max_ma is fitted
    with a constant by statsmodels. Fits that fail are logged and left out.

    Returns:
        ((ar, ma), table of aic/bic per order)
    """
    criterion = criterion.lower()
    if criterion not in ('aic', 'bic'):
        raise InvalidParameterError(f"Unknown criterion {criterion!r}")
    if max_ar < 0 or max_ma < 0:
        raise InvalidParameterError(f"Maximum orders must be non-negative, got ({max_ar}, {max_ma})")

    values = returns.values.to_numpy(dtype=float)
    records = []
    for ar in range(max_ar + 1):
        for ma in range(max_ma + 1):
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter('ignore')
                    fit = ARIMA(values, order=(ar, 0, ma), trend='c').fit()
            except (ValueError, np.linalg.LinAlgError) as e:
                logger.warning(f"ARMA({ar},{ma}) failed: {str(e)}")
                continue

            if not (fit.mle_retvals or {}).get('converged', True):
                logger.warning(f"ARMA({ar},{ma}) did not converge")
                continue

            records.append({'ar': ar, 'ma': ma, 'aic': float(fit.aic), 'bic': float(fit.bic)})

    if not records:
        raise NoConvergedModelError("No ARMA mean model converged")

    table = pd.DataFrame(records).set_index(['ar', 'ma']).sort_index()
    # ties go to the smaller model
    ranked = table.assign(n_terms=[ar + ma for ar, ma in table.index]).sort_values(
        [criterion, 'n_terms'], kind='mergesort'
    )
    best = ranked.index[0]
    order = (int(best[0]), int(best[1]))

    logger.info(
        f"Mean order by {criterion.upper()}: ARMA{order} "
        f"({criterion.upper()}={table.loc[best, criterion]:.4f})"
    )
    return order, table
