import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import warnings
import numpy as np
import pandas as pd
from garch.data_prep import GarchDataPrep
from garch.diagnostics import arch_effects_test, describe_returns, select_mean_order, stationarity_test
from exceptions import InvalidParameterError
from conftest import prices_from_returns, simulate_garch_returns


@pytest.fixture
def clustered_returns():
    """Strong volatility clustering"""
    raw = simulate_garch_returns(2000, omega=0.05, alpha=0.15, beta=0.8, seed=3)
    return GarchDataPrep().prepare_returns(prices_from_returns(raw))


def test_describe_returns(garch_returns):
    summary = describe_returns(garch_returns)

    assert summary['count'] == len(garch_returns)
    assert summary['mean'] == pytest.approx(garch_returns.values.mean())
    assert summary['min'] <= summary['mean'] <= summary['max']
    assert summary['std'] > 0
    assert 0 <= summary['jarque_bera_pvalue'] <= 1


def test_returns_are_stationary(garch_returns):
    result = stationarity_test(garch_returns)
    assert result['stationary']
    assert result['p_value'] < 0.05
    assert 'critical_5%' in result


def test_arch_effects_detected(clustered_returns):
    """Squared returns of a GARCH process are autocorrelated"""
    result = arch_effects_test(clustered_returns, lags=10)
    assert result['ljung_box_squared_pvalue'] < 0.05
    assert result['arch_lm_pvalue'] < 0.05


def test_no_arch_effects_in_white_noise():
    rs = np.random.RandomState(11)
    returns = GarchDataPrep().prepare_returns(prices_from_returns(rs.normal(0, 1, 2000)))
    result = arch_effects_test(returns, lags=5)
    assert result['arch_lm_pvalue'] > 0.001


def test_invalid_lags(garch_returns):
    with pytest.raises(InvalidParameterError):
        arch_effects_test(garch_returns, lags=0)


def test_select_mean_order(garch_returns):
    order, table = select_mean_order(garch_returns, max_ar=1, max_ma=1)

    assert len(table) == 4
    assert order in table.index
    assert table.loc[order, 'aic'] == pytest.approx(table['aic'].min())
    assert set(table.columns) == {'aic', 'bic'}


def test_select_mean_order_bic(garch_returns):
    order, table = select_mean_order(garch_returns, max_ar=1, max_ma=0, criterion='bic')
    assert table.loc[order, 'bic'] == pytest.approx(table['bic'].min())


def test_select_mean_order_invalid(garch_returns):
    with pytest.raises(InvalidParameterError):
        select_mean_order(garch_returns, criterion='hqic')
    with pytest.raises(InvalidParameterError):
        select_mean_order(garch_returns, max_ar=-1)


def test_tests_run_without_future_warnings(garch_returns):
    """Tuple results are requested explicitly from statsmodels"""
    with warnings.catch_warnings():
        warnings.filterwarnings('error', message='.*result_object', category=FutureWarning)
        stationarity_test(garch_returns)
        arch_effects_test(garch_returns, lags=5)


if __name__ == '__main__':
    pytest.main([__file__])
