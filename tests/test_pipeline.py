import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import logging
import numpy as np
import pandas as pd
from calculate_var import initialize_components, load_prices, run_analysis, format_report
from config import load_config
from data_manager import DataLoader
from exceptions import InvalidInputError
from models import FitResult


@pytest.fixture
def config(tmp_path):
    return load_config(
        environ={},
        mean_order=(0, 0),
        p_values=(1, 2),
        q_values=(1, 2),
        horizon=8,
        alpha=0.01,
        position=10_000.0,
        output_dir=tmp_path
    )


def test_pipeline(garch_prices, config, tmp_path):
    """Full run from prices to saved risk metrics"""
    logger = logging.getLogger('test')
    components = initialize_components(config, logger)

    results = run_analysis(components, garch_prices, config, logger, output_dir=tmp_path)

    assert len(results['returns']) == len(garch_prices) - 1
    assert len(results['grid']) == 4
    assert isinstance(results['selected'], FitResult)
    assert results['selected'].spec in results['grid']
    assert results['mean_order'] == (0, 0)

    risk = results['risk'].frame
    assert len(risk) == 8
    assert np.all(risk['es_currency'] >= risk['var_currency'])
    assert np.all(risk['var_currency'] > 0)

    for name in ('order_criteria.csv', 'forecast.csv', 'risk_metrics.csv'):
        assert (tmp_path / name).exists()
    assert (tmp_path / 'plots' / 'forecast.png').exists()
    assert (tmp_path / 'plots' / 'risk_metrics.png').exists()

    report = format_report(results)
    assert results['selected'].spec.label in report
    assert 'VaR' in report


def test_pipeline_identifies_mean_order(garch_prices, config):
    config = load_config(environ={}, mean_order=None, max_ar=1, max_ma=0,
                         p_values=(1,), q_values=(1,), output_dir=config.output_dir)
    components = initialize_components(config)

    results = run_analysis(components, garch_prices, config, logging.getLogger('test'))

    assert results['mean_order'] in [(0, 0), (1, 0)]
    assert len(results['mean_table']) == 2
    assert results['selected'].spec.mean_order == results['mean_order']


def test_pipeline_rejects_bad_prices(config):
    prices = pd.Series([100.0], index=pd.bdate_range('2020-01-01', periods=1))
    with pytest.raises(InvalidInputError):
        run_analysis(initialize_components(config), prices, config, logging.getLogger('test'))


def test_load_prices_prefers_csv(garch_prices, config, tmp_path, monkeypatch):
    path = DataLoader().save_csv(garch_prices, tmp_path / 'spx.csv')
    config = load_config(environ={}, price_csv=path)

    def no_network(*args, **kwargs):
        raise AssertionError("download attempted")

    monkeypatch.setattr(DataLoader, 'fetch_prices', no_network)
    prices = load_prices(config, logging.getLogger('test'))
    assert len(prices) == len(garch_prices)


if __name__ == '__main__':
    pytest.main([__file__])
