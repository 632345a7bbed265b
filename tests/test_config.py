import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.append(project_root)

import pytest
from pathlib import Path
from config import ModelConfig, load_config
from exceptions import InvalidParameterError


def test_defaults():
    config = load_config(environ={})

    assert config.ticker == '^GSPC'
    assert (config.start, config.end) == ('2000-01-01', '2024-01-01')
    assert config.p_values == (1, 2, 3, 4)
    assert config.q_values == (1, 2, 3, 4)
    assert config.criterion == 'aic'
    assert config.tolerance == 0.001
    assert config.horizon == 8
    assert config.alpha == 0.01
    assert config.mean_order is None


def test_environment_overrides():
    config = load_config(environ={
        'GARCH_VAR_TICKER': 'SPY',
        'GARCH_VAR_MEAN_ORDER': '1, 1',
        'GARCH_VAR_P_VALUES': '1,2',
        'GARCH_VAR_ALPHA': '0.05',
        'GARCH_VAR_POSITION': '250000',
        'GARCH_VAR_CRITERION': 'BIC',
        'GARCH_VAR_PRICE_CSV': 'data/spx.csv',
        'GARCH_VAR_HORIZON': '',
    })

    assert config.ticker == 'SPY'
    assert config.mean_order == (1, 1)
    assert config.p_values == (1, 2)
    assert config.alpha == 0.05
    assert config.position == 250_000.0
    assert config.criterion == 'bic'
    assert config.price_csv == Path('data/spx.csv')
    assert config.horizon == 8


def test_keyword_overrides_win():
    config = load_config(environ={'GARCH_VAR_HORIZON': '4'}, horizon=10)
    assert config.horizon == 10


def test_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / '.env'
    env_file.write_text('GARCH_VAR_HORIZON=3\n')
    monkeypatch.delenv('GARCH_VAR_HORIZON', raising=False)

    try:
        config = load_config(env_file=env_file)
    finally:
        # load_dotenv writes straight into os.environ
        os.environ.pop('GARCH_VAR_HORIZON', None)
    assert config.horizon == 3


@pytest.mark.parametrize("overrides", [
    {'alpha': 0.0},
    {'alpha': 1.0},
    {'position': -1.0},
    {'horizon': 0},
    {'criterion': 'hqic'},
    {'p_values': ()},
    {'mean_order': (1, 0, 1)},
])
def test_invalid_config(overrides):
    with pytest.raises(InvalidParameterError):
        ModelConfig(**overrides)


def test_unparseable_environment():
    with pytest.raises(InvalidParameterError, match='GARCH_VAR_HORIZON'):
        load_config(environ={'GARCH_VAR_HORIZON': 'eight'})


if __name__ == '__main__':
    pytest.main([__file__])
