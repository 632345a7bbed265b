from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union
import numpy as np
import pandas as pd
from arch import arch_model
from statsmodels.tsa.arima.model import ARIMA
from concurrent.futures import ProcessPoolExecutor, as_completed
import warnings
import logging

from exceptions import ConvergenceFailureError, InvalidParameterError
from models import CandidateSpec, ConvergenceFailure, FitResult, GridResult, ReturnSeries
from utils.progress import ProgressMonitor

logger = logging.getLogger(__name__)

DEFAULT_ORDERS = (1, 2, 3, 4)


class GARCHEstimator:
    """Fits ARMA-GARCH candidates and grid-searches variance orders"""

    def __init__(self, distribution: str = 'normal',
                 max_iter: int = 1000,
                 max_workers: Optional[int] = None):
        """
        Initialize estimator

        Args:
            distribution: Innovation distribution passed to arch ('normal', 't', 'skewt', 'ged')
            max_iter: Optimizer iteration cap
            max_workers: Worker processes for the order search; None or 1 runs serially
        """
        self.distribution = distribution
        self.max_iter = max_iter
        self.max_workers = max_workers
        self.logger = logging.getLogger('garch.estimator')

    def _build_variance_model(self, y: Union[pd.Series, np.ndarray], spec: CandidateSpec,
                              joint_mean: bool):
        """arch model for the candidate; the mean is AR(ar) + constant when joint, zero otherwise"""
        if joint_mean:
            ar = spec.mean_order[0]
            mean = 'AR' if ar > 0 else 'Constant'
            lags = ar if ar > 0 else None
        else:
            mean, lags = 'Zero', None

        # arch names AR lags after the series: y[1], y[2], ...
        if isinstance(y, pd.Series):
            y = y.rename('y')

        return arch_model(
            y,
            mean=mean,
            lags=lags,
            vol='GARCH',
            p=spec.p,
            q=spec.q,
            dist=self.distribution,
            rescale=False  # returns already in percent
        )

    def _fit_variance(self, model, spec: CandidateSpec):
        """Run the arch optimizer and check its convergence flag"""
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            result = model.fit(
                disp='off',
                show_warning=False,
                options={'maxiter': self.max_iter}
            )

        if result.convergence_flag != 0:
            message = getattr(result.optimization_result, 'message', 'optimizer did not converge')
            raise ConvergenceFailureError(f"{spec.label}: {message}", spec=spec)

        return result

    def _fit_mean(self, y: np.ndarray, spec: CandidateSpec):
        """statsmodels ARMA(ar, ma) with constant, used when the mean has MA terms"""
        ar, ma = spec.mean_order
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            result = ARIMA(y, order=(ar, 0, ma), trend='c').fit()

        if not (result.mle_retvals or {}).get('converged', True):
            raise ConvergenceFailureError(f"{spec.label}: ARMA mean did not converge", spec=spec)

        return result

    def fit(self, returns: ReturnSeries, spec: CandidateSpec) -> FitResult:
        """
        Estimate one candidate.

        ARMA(ar, 0) means are estimated jointly with the GARCH(p, q) variance
        by arch. arch has no MA mean, so ARMA(ar, ma>0) means are estimated by
        statsmodels first and the GARCH(p, q) is fitted to its residuals.

        Raises:
            ConvergenceFailureError: optimizer failed, or produced non-finite output
        """
        self._validate_spec(spec)
        y = returns.values

        try:
            if spec.mean_order[1] == 0:
                model = self._build_variance_model(y, spec, joint_mean=True)
                variance_result = self._fit_variance(model, spec)
                mean_result = None
            else:
                mean_result = self._fit_mean(y.to_numpy(), spec)
                resid = pd.Series(mean_result.resid, index=y.index)
                model = self._build_variance_model(resid, spec, joint_mean=False)
                variance_result = self._fit_variance(model, spec)
        except ConvergenceFailureError:
            raise
        except (ValueError, RuntimeError, ArithmeticError, np.linalg.LinAlgError) as e:
            raise ConvergenceFailureError(f"{spec.label}: {str(e)}", spec=spec) from e

        result = self._assemble(spec, variance_result, mean_result, y.index)
        self.logger.debug(
            f"{spec.label}: loglik={result.loglikelihood:.3f}, "
            f"AIC={result.aic:.4f}, BIC={result.bic:.4f}"
        )
        return result

    def from_params(self, returns: ReturnSeries, spec: CandidateSpec,
                    params: Union[Mapping[str, float], Sequence[float]]) -> FitResult:
        """
        Build a FitResult from known parameters, without optimization.

        Args:
            returns: Sample used to run the mean and variance recursions
            spec: Candidate whose parameters are given
            params: Dict keyed by parameter name, or values in model order.
                Names follow arch ('mu' or 'Const', 'y[1]', 'omega', 'alpha[1]',
                'beta[1]') and statsmodels ('const', 'ar.L1', 'ma.L1', 'sigma2')
                for ARMA means with MA terms.
        """
        self._validate_spec(spec)
        y = returns.values

        if spec.mean_order[1] == 0:
            model = self._build_variance_model(y, spec, joint_mean=True)
            names = self._mean_param_names(spec) + self._variance_param_names(model)
            variance_result = model.fix(self._ordered(params, names))
            mean_result = None
        else:
            if not isinstance(params, Mapping):
                raise InvalidParameterError("ARMA means with MA terms need parameters keyed by name")
            mean_model = ARIMA(y.to_numpy(), order=self._arma(spec), trend='c')
            mean_values = {'sigma2': float(np.var(y)), **params}
            mean_result = mean_model.filter(self._ordered(mean_values, list(mean_model.param_names)))

            resid = pd.Series(mean_result.resid, index=y.index)
            model = self._build_variance_model(resid, spec, joint_mean=False)
            variance_result = model.fix(self._ordered(params, self._variance_param_names(model)))

        return self._assemble(spec, variance_result, mean_result, y.index)

    def search_orders(self, returns: ReturnSeries,
                      mean_order=(0, 0),
                      p_values: Iterable[int] = DEFAULT_ORDERS,
                      q_values: Iterable[int] = DEFAULT_ORDERS) -> Dict[CandidateSpec, GridResult]:
        """
        Fit every (p, q) combination against a fixed mean order.

        Failed fits are recorded as ConvergenceFailure and the search
        continues. The returned mapping has one entry per grid point.
        """
        specs = self.build_grid(mean_order, p_values, q_values)

        self.logger.info(
            f"Searching {len(specs)} GARCH orders with ARMA{tuple(mean_order)} mean "
            f"on {len(returns)} returns ({self.distribution} innovations)"
        )

        monitor = ProgressMonitor(total=len(specs), desc="GARCH order search", logger=self.logger)
        results: Dict[CandidateSpec, GridResult] = {}

        if self.max_workers and self.max_workers > 1:
            with ProcessPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {pool.submit(_fit_candidate, self, returns, spec): spec for spec in specs}
                for future in as_completed(futures):
                    spec = futures[future]
                    results[spec] = future.result()
                    monitor.update(status=self._describe(results[spec]))
        else:
            for spec in specs:
                results[spec] = _fit_candidate(self, returns, spec)
                monitor.update(status=self._describe(results[spec]))

        monitor.close()

        n_failed = sum(1 for r in results.values() if not r.converged)
        self.logger.info(
            f"Order search finished: {len(results) - n_failed} converged, {n_failed} failed"
        )
        # grid order regardless of completion order
        return {spec: results[spec] for spec in specs}

    @staticmethod
    def build_grid(mean_order, p_values: Iterable[int], q_values: Iterable[int]) -> List[CandidateSpec]:
        """Cartesian product of variance orders, sorted by (p, q)"""
        p_values = sorted(set(int(p) for p in p_values))
        q_values = sorted(set(int(q) for q in q_values))
        if not p_values or not q_values:
            raise InvalidParameterError("Order grid must contain at least one p and one q")
        if min(p_values) < 1 or min(q_values) < 0:
            raise InvalidParameterError(
                f"GARCH orders must satisfy p >= 1 and q >= 0, got p={p_values}, q={q_values}"
            )

        ar, ma = (int(x) for x in mean_order)
        if ar < 0 or ma < 0:
            raise InvalidParameterError(f"Mean order must be non-negative, got {mean_order}")

        return [CandidateSpec((ar, ma), p, q) for p in p_values for q in q_values]

    def _assemble(self, spec: CandidateSpec, variance_result, mean_result,
                  index: pd.Index) -> FitResult:
        """Merge library results into a FitResult, rejecting non-finite fits"""
        params = {str(k): float(v) for k, v in variance_result.params.items()}
        std_err_source = getattr(variance_result, 'std_err', None)
        std_errors = {
            name: float(std_err_source[name]) if std_err_source is not None else np.nan
            for name in params
        }

        loglikelihood = float(variance_result.loglikelihood)
        n_params = int(variance_result.num_params)
        nobs = int(variance_result.nobs)
        aic = float(variance_result.aic)
        bic = float(variance_result.bic)

        if mean_result is not None:
            mean_names = list(mean_result.model.param_names)
            mean_params = dict(zip(mean_names, np.asarray(mean_result.params, dtype=float)))
            mean_bse = dict(zip(mean_names, np.asarray(mean_result.bse, dtype=float)))
            # sigma2 is superseded by the GARCH variance
            mean_params.pop('sigma2', None)
            mean_bse.pop('sigma2', None)
            params = {**mean_params, **params}
            std_errors = {**mean_bse, **std_errors}

            n_params += len(mean_params)
            aic = 2 * n_params - 2 * loglikelihood
            bic = n_params * np.log(nobs) - 2 * loglikelihood

        if not np.isfinite(loglikelihood) or not all(np.isfinite(v) for v in params.values()):
            raise ConvergenceFailureError(f"{spec.label}: non-finite likelihood or parameters", spec=spec)

        conditional_variance = pd.Series(
            np.asarray(variance_result.conditional_volatility, dtype=float) ** 2,
            index=index,
            name='conditional_variance'
        ).dropna()
        residuals = pd.Series(
            np.asarray(variance_result.resid, dtype=float),
            index=index,
            name='residuals'
        ).dropna()

        return FitResult(
            spec=spec,
            params=params,
            std_errors=std_errors,
            loglikelihood=loglikelihood,
            aic=aic,
            bic=bic,
            n_params=n_params,
            nobs=nobs,
            conditional_variance=conditional_variance,
            residuals=residuals,
            distribution=self.distribution,
            variance_result=variance_result,
            mean_result=mean_result
        )

    def _validate_spec(self, spec: CandidateSpec):
        if spec.p < 1 or spec.q < 0 or min(spec.mean_order) < 0:
            raise InvalidParameterError(f"Invalid candidate orders: {spec}")

    @staticmethod
    def _arma(spec: CandidateSpec):
        ar, ma = spec.mean_order
        return ar, 0, ma

    @staticmethod
    def _mean_param_names(spec: CandidateSpec) -> List[str]:
        ar = spec.mean_order[0]
        if ar == 0:
            return ['mu']
        return ['Const'] + [f'y[{i}]' for i in range(1, ar + 1)]

    @staticmethod
    def _variance_param_names(model) -> List[str]:
        return list(model.volatility.parameter_names()) + list(model.distribution.parameter_names())

    @staticmethod
    def _ordered(params: Union[Mapping[str, float], Sequence[float]], names: List[str]) -> np.ndarray:
        if not isinstance(params, Mapping):
            return np.asarray(params, dtype=float)
        missing = [name for name in names if name not in params]
        if missing:
            raise InvalidParameterError(f"Missing parameters: {missing}")
        return np.array([params[name] for name in names], dtype=float)

    @staticmethod
    def _describe(result: GridResult) -> str:
        if result.converged:
            return f"{result.spec.label} AIC={result.aic:.4f} BIC={result.bic:.4f}"
        return f"{result.spec.label} failed"


def _fit_candidate(estimator: GARCHEstimator, returns: ReturnSeries,
                   spec: CandidateSpec) -> GridResult:
    """Fit one grid point, converting a convergence failure into a record"""
    try:
        return estimator.fit(returns, spec)
    except ConvergenceFailureError as e:
        logger.warning(f"Convergence failure for {spec.label}: {str(e)}")
        return ConvergenceFailure(spec=spec, reason=str(e))
