"""
Utility functions for preparing series and running analyses.

Contains:
- series: Window selection, zero replacement and the sufficiency check
- common: Logging setup and the slope to percent change conversion
"""

from .common import percent_change, setup_logging
from .series import (
    ZeroReplacementWarning,
    has_sufficient_data,
    log_values,
    replace_zeros,
    select_window,
)

__all__ = [
    'ZeroReplacementWarning',
    'has_sufficient_data',
    'log_values',
    'percent_change',
    'replace_zeros',
    'select_window',
    'setup_logging',
]
