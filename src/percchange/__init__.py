"""
Percent change in abundance from MLE and Bayesian MCMC trend fits.

Contains:
- compare_perc_change: Run all three estimators on one series and summarise
- CompareOptions / MCMCOptions: Run options
- SummaryMatrix / ComparisonResult: Results
"""

from .config import CompareOptions, Engine, MCMCOptions
from .data_models import ComparisonResult, MCMCResult, MLEResult, SummaryMatrix, SummaryRow
from .errors import (
    ConfigError,
    DataError,
    EstimationError,
    InsufficientDataError,
    PercChangeError,
)
from .pipeline import compare_perc_change

__version__ = "0.1.0"

__all__ = [
    'CompareOptions',
    'ComparisonResult',
    'ConfigError',
    'DataError',
    'Engine',
    'EstimationError',
    'InsufficientDataError',
    'MCMCOptions',
    'MCMCResult',
    'MLEResult',
    'PercChangeError',
    'SummaryMatrix',
    'SummaryRow',
    'compare_perc_change',
]
