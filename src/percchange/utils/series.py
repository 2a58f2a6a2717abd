"""
Window selection and cleaning of abundance time series.

Contains the three steps that run before any estimator:
- select_window: cut the series to the analysis window
- replace_zeros: replace zero counts so the log transform stays finite
- has_sufficient_data: decide whether enough points remain to fit
"""

import numbers
import warnings
from typing import Optional

import numpy as np
import pandas as pd

from ..config import ZERO_REPLACEMENT_FLOOR
from ..errors import ConfigError, DataError

YEAR_COLUMN = "Year"


class ZeroReplacementWarning(UserWarning):
    """Issued when zero observations are replaced before the log transform."""


def _is_integer(value):
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def as_series_frame(series) -> pd.DataFrame:
    """
    Coerce input into a frame with a 'Year' column followed by the values.

    Parameters:
    -----------
    series : pd.DataFrame or pd.Series
        DataFrame with a 'Year' column and the abundance in the first other
        column, or a Series of abundances indexed by year

    Returns:
    --------
    pd.DataFrame : Two columns, 'Year' then the abundance column
    """
    if isinstance(series, pd.Series):
        name = series.name if series.name is not None else "Value"
        frame = pd.DataFrame({YEAR_COLUMN: series.index.to_numpy(), name: series.to_numpy()})
    elif isinstance(series, pd.DataFrame):
        frame = series
    else:
        raise DataError(f"Expected a DataFrame or Series, got {type(series).__name__}")

    if YEAR_COLUMN not in frame.columns:
        raise DataError(f"Time series has no '{YEAR_COLUMN}' column")
    value_columns = [col for col in frame.columns if col != YEAR_COLUMN]
    if not value_columns:
        raise DataError("Time series has no value column")

    frame = frame[[YEAR_COLUMN, value_columns[0]]]
    years = frame[YEAR_COLUMN]
    if years.isna().any():
        raise DataError("Time series has missing years")
    if years.duplicated().any():
        raise DataError("Time series has duplicate years")
    if not years.is_monotonic_increasing:
        raise DataError("Time series years must be ascending")
    return frame


def value_column(frame: pd.DataFrame) -> str:
    return [col for col in frame.columns if col != YEAR_COLUMN][0]


def select_window(series, window_years: int, calc_year: int) -> pd.DataFrame:
    """
    Select the years in (calc_year - window_years, calc_year].

    An empty or short window is returned as is; the sufficiency check
    downstream decides what to do with it.
    """
    if not _is_integer(window_years) or window_years <= 0:
        raise ConfigError(f"window_years must be a positive integer, got {window_years!r}")
    if not _is_integer(calc_year):
        raise ConfigError(f"calc_year must be an integer, got {calc_year!r}")

    frame = as_series_frame(series)
    if len(frame) == 0 or calc_year < frame[YEAR_COLUMN].iloc[0]:
        raise ConfigError(f"calc_year {calc_year} is before the start of the series")

    years = frame[YEAR_COLUMN]
    mask = (years > calc_year - window_years) & (years <= calc_year)
    window = frame.loc[mask].copy()
    window[value_column(window)] = window[value_column(window)].astype(float)
    return window


def replace_zeros(window: pd.DataFrame, rng: Optional[np.random.Generator] = None) -> pd.DataFrame:
    """
    Replace zero observations with small positive random values.

    Zeros break the log transform (log(0) = -inf). Each zero is replaced
    by an independent uniform draw greater than zero and less than half of
    the lowest non-zero value in the window (Perry et al. 2021). Missing
    values are left alone.

    Parameters:
    -----------
    window : pd.DataFrame
        Analysis window from select_window
    rng : np.random.Generator, optional
        Random source for the replacement draws (default: fresh generator)

    Returns:
    --------
    pd.DataFrame : Copy of the window with zeros replaced

    Raises:
    -------
    DataError : If the window has negative values or no positive value
        to bound the replacement draws
    """
    col = value_column(window)
    values = window[col].to_numpy(dtype=float)
    observed = ~np.isnan(values)

    if np.any(values[observed] < 0):
        raise DataError("Time series has negative values")

    positive = values[observed & (values > 0)]
    if positive.size == 0:
        raise DataError(
            "No non-zero observations in the window, cannot bound zero replacement"
        )

    zero_idx = observed & (values == 0)
    n_zeros = int(zero_idx.sum())
    out = window.copy()
    if n_zeros == 0:
        return out

    warnings.warn(
        f"{n_zeros} records of 0 were replaced with a random value greater than 0 "
        "and less than one-half of the lowest non-zero value in the data, "
        "to avoid log(0) = -inf",
        ZeroReplacementWarning,
        stacklevel=2,
    )

    if rng is None:
        rng = np.random.default_rng()
    upper = positive.min() / 2
    lower = min(ZERO_REPLACEMENT_FLOOR, upper / 2)
    values = values.copy()
    values[zero_idx] = rng.uniform(lower, upper, size=n_zeros)
    out[col] = values
    return out


def has_sufficient_data(window: pd.DataFrame) -> bool:
    """
    Check whether at least half of the window has observations.

    MCMC fits become unstable or crash on sparse inputs, so a window where
    fewer than half the years are observed is not estimated.
    """
    n_window = len(window)
    n_observed = int(window[value_column(window)].notna().sum())
    return 2 * n_observed >= n_window


def log_values(window: pd.DataFrame) -> np.ndarray:
    """Natural log of the window values, NaN where missing."""
    return np.log(window[value_column(window)].to_numpy(dtype=float))
