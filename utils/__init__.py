"""Utility functions and classes for the GARCH VaR report"""

from .progress import ProgressMonitor
from .visualization import GARCHVisualizer

__all__ = ['GARCHVisualizer', 'ProgressMonitor']
