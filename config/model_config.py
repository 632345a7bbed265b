"""Run configuration for the VaR report, with environment overrides."""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from exceptions import InvalidParameterError

ENV_PREFIX = 'GARCH_VAR_'


@dataclass(frozen=True)
class ModelConfig:
    # data
    ticker: str = '^GSPC'
    start: str = '2000-01-01'
    end: str = '2024-01-01'
    price_csv: Optional[Path] = None

    # mean model; None identifies the order by information criterion
    mean_order: Optional[Tuple[int, int]] = None
    max_ar: int = 3
    max_ma: int = 3

    # variance order search
    p_values: Tuple[int, ...] = (1, 2, 3, 4)
    q_values: Tuple[int, ...] = (1, 2, 3, 4)
    distribution: str = 'normal'
    criterion: str = 'aic'
    tolerance: float = 0.001
    max_workers: Optional[int] = None

    # forecast and risk
    horizon: int = 8
    alpha: float = 0.01
    position: float = 10_000.0

    output_dir: Path = field(default_factory=lambda: Path('results'))

    def __post_init__(self):
        if not 0.0 < self.alpha < 1.0:
            raise InvalidParameterError(f"alpha must lie in (0, 1), got {self.alpha}")
        if not self.position > 0:
            raise InvalidParameterError(f"position must be positive, got {self.position}")
        if self.horizon < 1:
            raise InvalidParameterError(f"horizon must be positive, got {self.horizon}")
        if self.criterion not in ('aic', 'bic'):
            raise InvalidParameterError(f"criterion must be 'aic' or 'bic', got {self.criterion!r}")
        if not self.p_values or not self.q_values:
            raise InvalidParameterError("p_values and q_values must not be empty")
        if self.mean_order is not None and len(self.mean_order) != 2:
            raise InvalidParameterError(f"mean_order must be (ar, ma), got {self.mean_order}")


def _int_tuple(value: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in value.replace(' ', '').split(',') if part)


_PARSERS = {
    'price_csv': Path,
    'output_dir': Path,
    'mean_order': _int_tuple,
    'p_values': _int_tuple,
    'q_values': _int_tuple,
    'max_ar': int,
    'max_ma': int,
    'max_workers': int,
    'horizon': int,
    'tolerance': float,
    'alpha': float,
    'position': float,
    'criterion': str.lower,
}


def load_config(env_file: Optional[Path] = None, environ: Optional[Dict[str, str]] = None,
                **overrides) -> ModelConfig:
    """
    Build a ModelConfig from defaults, GARCH_VAR_* environment variables and
    keyword overrides, in increasing precedence. A .env file is read first
    when present.
    """
    if environ is None:
        load_dotenv(env_file)
        environ = dict(os.environ)

    values = {}
    for f in fields(ModelConfig):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw is None or raw == '':
            continue
        parser = _PARSERS.get(f.name, str)
        try:
            values[f.name] = parser(raw)
        except ValueError as e:
            raise InvalidParameterError(f"Invalid {ENV_PREFIX + f.name.upper()}={raw!r}: {e}") from e

    values.update(overrides)
    return replace(ModelConfig(), **values)
