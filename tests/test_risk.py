import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
import numpy as np
import pandas as pd
from scipy import stats
from risk.metrics import RiskCalculator, normal_quantiles, parametric_var_es
from models import CandidateSpec, Forecast
from exceptions import InvalidParameterError


def make_forecast(means, stds) -> Forecast:
    """Forecast in percent units"""
    index = pd.bdate_range('2024-01-02', periods=len(means))
    frame = pd.DataFrame({'mean': means, 'std': stds}, index=index)
    return Forecast(spec=CandidateSpec((0, 0), 1, 1), horizon=len(means), frame=frame)


def test_known_scenario():
    """mu=0, sigma=1 (fractions), alpha=0.01, position 10,000"""
    risk = RiskCalculator(alpha=0.01, position=10_000).calculate(make_forecast([0.0], [100.0]))
    row = risk.frame.iloc[0]

    assert risk.z == pytest.approx(2.3263, abs=1e-4)
    assert risk.k == pytest.approx(2.6652, abs=1e-4)
    assert row['var_return'] == pytest.approx(2.3263, abs=1e-4)
    assert row['var_currency'] == pytest.approx(23263.48, abs=0.01)

    expected_es = stats.norm.pdf(stats.norm.ppf(0.99)) / 0.01 * 10_000
    assert row['es_currency'] == pytest.approx(expected_es, abs=0.01)
    assert row['es_currency'] == pytest.approx(26_652, abs=1.0)


def test_mean_shifts_var():
    """Positive expected return offsets part of the loss quantile"""
    mu, sigma, alpha = 0.0005, 0.01, 0.05
    var, es = parametric_var_es(mu, sigma, alpha)
    z = stats.norm.ppf(0.95)
    assert float(var) == pytest.approx(abs(mu - z * sigma))
    assert float(es) == pytest.approx(abs(mu - stats.norm.pdf(z) / alpha * sigma))


def test_percent_forecast_converted_to_fractions():
    forecast = make_forecast([0.05, 0.04], [1.2, 1.1])
    risk = RiskCalculator(alpha=0.01, position=1_000_000).calculate(forecast)

    np.testing.assert_allclose(risk.frame['mean'], [0.0005, 0.0004])
    np.testing.assert_allclose(risk.frame['std'], [0.012, 0.011])
    np.testing.assert_allclose(risk.frame['var_currency'], risk.frame['var_return'] * 1_000_000)
    np.testing.assert_allclose(risk.frame['es_currency'], risk.frame['es_return'] * 1_000_000)
    assert risk.frame.index.equals(forecast.frame.index)
    assert risk.confidence == pytest.approx(0.99)


@pytest.mark.parametrize("alpha", [1e-6, 0.001, 0.01, 0.025, 0.05, 0.1, 0.25, 0.4, 0.499])
def test_es_multiplier_exceeds_quantile(alpha):
    """k(alpha) > z(alpha) for alpha in (0, 0.5), so ES >= VaR"""
    z, k = normal_quantiles(alpha)
    assert k > z

    forecast = make_forecast([0.0, 0.02, -0.03], [0.8, 1.5, 3.0])
    frame = RiskCalculator(alpha=alpha, position=100.0).calculate(forecast).frame
    assert np.all(frame['es_return'] >= frame['var_return'])


@pytest.mark.parametrize("alpha", [0.0, 1.0, -0.01, 1.5, float('nan')])
def test_invalid_alpha(alpha):
    with pytest.raises(InvalidParameterError):
        RiskCalculator(alpha=alpha, position=10_000)
    with pytest.raises(InvalidParameterError):
        normal_quantiles(alpha)


@pytest.mark.parametrize("position", [0, -10_000, float('nan')])
def test_invalid_position(position):
    with pytest.raises(InvalidParameterError):
        RiskCalculator(alpha=0.01, position=position)


if __name__ == '__main__':
    pytest.main([__file__])
