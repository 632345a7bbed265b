"""
Data management package for the VaR pipeline.
Handles price loading and validation.
"""

from .data_loader import DataLoader
from .data_validator import DataValidator

__all__ = ['DataLoader', 'DataValidator']
