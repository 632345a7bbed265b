from typing import Optional
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats
from pathlib import Path
import logging

from models import FitResult, Forecast, ReturnSeries, RiskMetrics

logger = logging.getLogger(__name__)


class GARCHVisualizer:
    """Visualization utilities for the ARMA-GARCH VaR report"""

    def __init__(self, style: str = 'seaborn-v0_8'):
        """
        Initialize visualizer

        Parameters:
        -----------
        style : str
            Matplotlib style to use. Available styles can be listed with
            `plt.style.available`
        """
        try:
            plt.style.use(style)
        except OSError:
            plt.style.use('default')
            logger.warning(f"Style '{style}' not found, using default style")

        self.colors = plt.rcParams['axes.prop_cycle'].by_key()['color']

    def plot_prices_and_returns(self,
                                prices: pd.Series,
                                returns: ReturnSeries,
                                title: Optional[str] = None,
                                save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot close prices above daily log-returns

        Parameters:
        -----------
        prices : Series
            Close prices indexed by date
        returns : ReturnSeries
            Percentage log-returns
        """
        if len(prices) == 0 or len(returns) == 0:
            raise ValueError("Empty input data")

        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

        ax1.plot(prices.index, prices.values, color=self.colors[0])
        ax1.set_ylabel('Close')
        ax1.grid(True)

        ax2.plot(returns.dates, returns.values.values, color=self.colors[1], linewidth=0.6)
        ax2.axhline(y=0, color='k', linestyle='--', alpha=0.5)
        ax2.set_xlabel('Date')
        ax2.set_ylabel('Log Return (%)')
        ax2.grid(True)

        if title:
            fig.suptitle(title)

        plt.tight_layout()

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_return_distribution(self,
                                 returns: ReturnSeries,
                                 title: Optional[str] = None,
                                 save_path: Optional[Path] = None) -> plt.Figure:
        """Histogram of returns against a fitted normal density"""
        values = returns.values.to_numpy(dtype=float)
        fig, ax = plt.subplots(figsize=(10, 6))

        sns.histplot(values, ax=ax, bins=100, stat='density', color=self.colors[0])
        grid = np.linspace(values.min(), values.max(), 400)
        mu, sigma = values.mean(), values.std(ddof=1)
        density = stats.norm.pdf(grid, mu, sigma)
        ax.plot(grid, density, color=self.colors[1], label='Normal')
        ax.set_xlabel('Log Return (%)')
        ax.legend()
        if title:
            ax.set_title(title)

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_conditional_volatility(self,
                                    returns: ReturnSeries,
                                    fit: FitResult,
                                    title: Optional[str] = None,
                                    save_path: Optional[Path] = None) -> plt.Figure:
        """Absolute returns with the fitted conditional standard deviation"""
        fig, ax = plt.subplots(figsize=(12, 6))

        ax.plot(returns.dates, returns.values.abs(), color=self.colors[0],
                alpha=0.4, linewidth=0.6, label='|Return|')
        ax.plot(fit.conditional_variance.index, np.sqrt(fit.conditional_variance),
                color=self.colors[1], label=f'{fit.spec.label} volatility')
        ax.set_xlabel('Date')
        ax.set_ylabel('Daily Volatility (%)')
        ax.set_title(title or 'Conditional Volatility')
        ax.legend()
        ax.grid(True)

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_order_criteria(self,
                            table: pd.DataFrame,
                            criterion: str = 'aic',
                            save_path: Optional[Path] = None) -> plt.Figure:
        """Heatmap of an information criterion over the (p, q) grid"""
        grid = table[criterion].unstack('q')
        fig, ax = plt.subplots(figsize=(7, 5))
        sns.heatmap(grid, annot=True, fmt='.1f', cmap='viridis_r', ax=ax)
        ax.set_title(f'{criterion.upper()} by GARCH order')

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_forecast(self,
                      returns: ReturnSeries,
                      forecast: Forecast,
                      risk: Optional[RiskMetrics] = None,
                      history: int = 60,
                      save_path: Optional[Path] = None) -> plt.Figure:
        """
        Plot recent returns, the forecast mean and the VaR threshold

        Parameters:
        -----------
        history : int
            Number of in-sample returns to show before the forecast
        """
        fig, ax = plt.subplots(figsize=(12, 6))

        recent = returns.values.iloc[-history:]
        ax.plot(recent.index, recent.values, color=self.colors[0], label='Returns')
        ax.plot(forecast.frame.index, forecast.mean, color=self.colors[1],
                marker='o', label='Forecast mean')
        ax.fill_between(forecast.frame.index,
                        forecast.mean - 2 * forecast.std,
                        forecast.mean + 2 * forecast.std,
                        color=self.colors[1], alpha=0.2, label='Mean +/- 2 std')

        if risk is not None:
            ax.plot(risk.frame.index, -100 * risk.frame['var_return'], color=self.colors[2],
                    linestyle='--', label=f'{risk.confidence:.0%} VaR')
            ax.plot(risk.frame.index, -100 * risk.frame['es_return'], color=self.colors[3],
                    linestyle=':', label=f'{risk.confidence:.0%} ES')

        ax.axhline(y=0, color='k', linestyle='--', alpha=0.5)
        ax.set_xlabel('Date')
        ax.set_ylabel('Return (%)')
        ax.set_title(f'{forecast.horizon}-step forecast, {forecast.spec.label}')
        ax.legend()
        ax.grid(True)

        if save_path:
            fig.savefig(save_path)

        return fig

    def plot_risk_metrics(self,
                          risk: RiskMetrics,
                          save_path: Optional[Path] = None) -> plt.Figure:
        """VaR and ES in currency per forecast step"""
        frame = risk.frame[['var_currency', 'es_currency']].rename(
            columns={'var_currency': 'VaR', 'es_currency': 'ES'}
        )
        frame.index = [d.strftime('%Y-%m-%d') if hasattr(d, 'strftime') else str(d)
                       for d in frame.index]

        fig, ax = plt.subplots(figsize=(12, 6))
        frame.plot.bar(ax=ax, color=self.colors[:2])
        ax.set_xlabel('Forecast date')
        ax.set_ylabel('Loss')
        ax.set_title(f'{risk.confidence:.0%} VaR and ES on a position of {risk.position:,.0f}')
        ax.grid(True, axis='y')
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path)

        return fig

    def close_all(self):
        """Close all open figures"""
        plt.close('all')

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_all()

    def plot_results(self, results: dict, output_path: Path, show_plots: bool = False):
        """Write every report figure for a pipeline run into output_path"""
        try:
            output_path.mkdir(parents=True, exist_ok=True)

            returns = results['returns']
            fit = results['selected']

            self.plot_prices_and_returns(
                results['prices'], returns, title=results.get('ticker'),
                save_path=output_path / 'prices_returns.png'
            )
            self.plot_return_distribution(returns, save_path=output_path / 'return_distribution.png')
            self.plot_conditional_volatility(returns, fit, save_path=output_path / 'conditional_volatility.png')
            if results.get('criteria') is not None:
                converged = results['criteria'].dropna(subset=['aic'])
                if not converged.empty:
                    self.plot_order_criteria(converged, save_path=output_path / 'order_criteria.png')
            self.plot_forecast(returns, results['forecast'], results['risk'],
                               save_path=output_path / 'forecast.png')
            self.plot_risk_metrics(results['risk'], save_path=output_path / 'risk_metrics.png')

            if show_plots:
                plt.show()

            self.close_all()

        except Exception as e:
            logging.getLogger('utils.visualization').error(f"Error plotting results: {str(e)}")
            raise
