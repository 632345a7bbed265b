#!/usr/bin/env python
"""
ARMA-GARCH Value-at-Risk report for S&P 500 daily log-returns.
Fetches prices, searches GARCH orders, forecasts volatility and computes VaR / ES.
"""
import sys
from pathlib import Path
import logging
from datetime import datetime
import pandas as pd
from typing import Dict, Optional
import time
import psutil
import traceback

from config import ModelConfig, load_config
from data_manager import DataLoader
from garch import GarchDataPrep, GARCHEstimator, GARCHForecaster, ModelSelector, criteria_table
from garch.diagnostics import arch_effects_test, describe_returns, select_mean_order, stationarity_test
from risk import RiskCalculator
from utils.visualization import GARCHVisualizer


class StageMonitor:
    """Tracks duration and memory of each pipeline stage"""
    def __init__(self):
        self.start_time = time.time()
        self.last_checkpoint = self.start_time
        self.checkpoints = {}

    def checkpoint(self, name: str):
        """Record timing for a stage that just finished"""
        now = time.time()
        self.checkpoints[name] = {
            'duration': now - self.last_checkpoint,
            'memory': psutil.Process().memory_info().rss / 1024 / 1024  # MB
        }
        self.last_checkpoint = now

    def report(self) -> str:
        total_time = time.time() - self.start_time
        report = ["Performance Report:", "-----------------"]

        for name, stats in self.checkpoints.items():
            report.append(f"{name}:")
            report.append(f"  Duration: {stats['duration']:.2f} seconds")
            report.append(f"  Memory: {stats['memory']:.2f} MB")

        report.append("-----------------")
        report.append(f"Total Time: {total_time:.2f} seconds")
        return "\n".join(report)


def setup_logging(output_dir: Path) -> logging.Logger:
    """
    Configure logging with both file and console handlers

    Parameters:
    -----------
    output_dir : Path
        Directory for log file

    Returns:
    --------
    logging.Logger
        Configured root logger
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"var_calculation_{timestamp}.log"

    # configure the root logger so library module loggers reach both handlers
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root.addHandler(file_handler)
    root.addHandler(console_handler)

    return logging.getLogger("var_calculator")


def load_prices(config: ModelConfig, logger: logging.Logger,
                loader: Optional[DataLoader] = None) -> pd.Series:
    """Read the configured CSV, or download from Yahoo Finance"""
    loader = loader or DataLoader()

    if config.price_csv is not None and Path(config.price_csv).exists():
        return loader.load_csv(config.price_csv)

    prices = loader.fetch_prices(config.ticker, config.start, config.end)
    if config.price_csv is not None:
        loader.save_csv(prices, config.price_csv)
    logger.info(f"Fetched {len(prices)} closes for {config.ticker}")
    return prices


def initialize_components(config: ModelConfig, logger: logging.Logger = None) -> Dict:
    """Initialize all analysis components"""
    if logger is None:
        logger = logging.getLogger('var_calculator')

    logger.info("Creating GARCH estimator...")
    return {
        'data_prep': GarchDataPrep(),
        'estimator': GARCHEstimator(
            distribution=config.distribution,
            max_workers=config.max_workers
        ),
        'selector': ModelSelector(criterion=config.criterion, tolerance=config.tolerance),
        'forecaster': GARCHForecaster(),
        'risk': RiskCalculator(alpha=config.alpha, position=config.position),
        'visualizer': GARCHVisualizer()
    }


def run_analysis(components: Dict, prices: pd.Series, config: ModelConfig,
                 logger: logging.Logger, monitor: Optional[StageMonitor] = None,
                 output_dir: Optional[Path] = None) -> Dict:
    """
    Run the pipeline from prices to risk metrics.

    Returns a dict with prices, returns, diagnostics, mean order, the grid
    results, criteria table, selected fit, forecast and risk metrics.
    Plots and CSV tables are written when output_dir is given.
    """
    logger.info("Starting analysis pipeline...")
    monitor = monitor or StageMonitor()

    try:
        returns = components['data_prep'].prepare_returns(prices)
        monitor.checkpoint('returns')

        diagnostics = {
            'summary': describe_returns(returns),
            'stationarity': stationarity_test(returns),
            'arch_effects': arch_effects_test(returns),
        }
        monitor.checkpoint('diagnostics')

        if config.mean_order is None:
            mean_order, mean_table = select_mean_order(
                returns, config.max_ar, config.max_ma, criterion=config.criterion
            )
        else:
            mean_order, mean_table = tuple(config.mean_order), None
            logger.info(f"Using configured mean order ARMA{mean_order}")
        monitor.checkpoint('mean_order')

        grid = components['estimator'].search_orders(
            returns,
            mean_order=mean_order,
            p_values=config.p_values,
            q_values=config.q_values
        )
        table = criteria_table(grid)
        monitor.checkpoint('order_search')

        selected = components['selector'].select(grid)
        forecast = components['forecaster'].forecast(selected, horizon=config.horizon)
        risk = components['risk'].calculate(forecast)
        monitor.checkpoint('forecast_and_risk')

        results = {
            'ticker': config.ticker,
            'prices': prices,
            'returns': returns,
            'diagnostics': diagnostics,
            'mean_order': mean_order,
            'mean_table': mean_table,
            'grid': grid,
            'criteria': table,
            'selected': selected,
            'forecast': forecast,
            'risk': risk,
        }

        logger.info(format_report(results))

        if output_dir is not None:
            save_results(results, output_dir, components['visualizer'])
            monitor.checkpoint('outputs')

        logger.info("Pipeline completed successfully")
        return results

    except Exception as e:
        logger.error(f"Error in analysis pipeline: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


def format_report(results: Dict) -> str:
    """Plain-text summary of the selected model and its risk forecasts"""
    selected = results['selected']
    risk = results['risk']
    criteria = results['criteria'][['aic', 'bic', 'status']]

    lines = [
        "",
        f"Information criteria (ARMA{results['mean_order']} mean):",
        criteria.to_string(float_format=lambda x: f"{x:.4f}"),
        "",
        f"Selected model: {selected.spec.label}",
        f"  Log-likelihood: {selected.loglikelihood:.4f}",
        f"  AIC: {selected.aic:.4f}  BIC: {selected.bic:.4f}",
        "  Parameters:",
    ]
    for name, value in selected.params.items():
        lines.append(f"    {name:>10}: {value: .6f} (se {selected.std_errors.get(name, float('nan')):.6f})")

    lines.append("")
    lines.append(
        f"{risk.confidence:.0%} VaR / ES on a position of {risk.position:,.2f} "
        f"(z={risk.z:.4f}, k={risk.k:.4f}):"
    )
    for date, row in risk.frame.iterrows():
        label = date.strftime('%Y-%m-%d') if hasattr(date, 'strftime') else str(date)
        lines.append(
            f"  {label}: mean {row['mean']:+.5f}, std {row['std']:.5f}, "
            f"VaR {row['var_return']:.5f} ({row['var_currency']:,.2f}), "
            f"ES {row['es_return']:.5f} ({row['es_currency']:,.2f})"
        )
    return "\n".join(lines)


def save_results(results: Dict, output_dir: Path, visualizer: GARCHVisualizer):
    """Write tables as CSV and figures as PNG"""
    output_dir.mkdir(parents=True, exist_ok=True)
    results['criteria'].to_csv(output_dir / "order_criteria.csv")
    results['forecast'].frame.to_csv(output_dir / "forecast.csv")
    results['risk'].frame.to_csv(output_dir / "risk_metrics.csv")
    if results['mean_table'] is not None:
        results['mean_table'].to_csv(output_dir / "mean_order_criteria.csv")

    visualizer.plot_results(results, output_path=output_dir / "plots")


def main():
    """Main entry point with configuration and setup"""
    config = load_config()
    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(output_dir)
    logger.info("Starting VaR calculation pipeline...")

    try:
        monitor = StageMonitor()
        prices = load_prices(config, logger)
        monitor.checkpoint('load_prices')

        components = initialize_components(config, logger)
        run_analysis(components, prices, config, logger, monitor, output_dir=output_dir)

        logger.info(monitor.report())

    except Exception as e:
        logger.error(f"Pipeline failed: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise


if __name__ == '__main__':
    main()
