"""
Common utilities shared across the analysis modules.

Provides logging setup for scripts and the command line entry point, and the
slope to percent change conversion used by every estimator.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(level=logging.INFO, log_file: Optional[Path] = None):
    """
    Set up logging to stdout and, optionally, to a file.

    Parameters:
    -----------
    level : int
        Logging level for the root logger (default: logging.INFO)
    log_file : Path, optional
        File to append log records to

    Returns:
    --------
    logging.Logger : Logger for the percchange package
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return logging.getLogger("percchange")


def percent_change(slope, n_years):
    """
    Percent change implied by a log-linear slope across n_years time steps.

    The fitted abundance ratio between the last and first year of the window
    is exp(slope * (n_years - 1)). Works on scalars and arrays of draws.
    """
    return (np.exp(np.asarray(slope, dtype=float) * (n_years - 1)) - 1.0) * 100.0
