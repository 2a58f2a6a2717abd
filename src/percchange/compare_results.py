"""
Compare Results: merges the MLE and MCMC estimates into one summary.

- build_summary_matrix: the fixed 13 x 4 table of point estimates, quantiles,
  R-hat and probability of decline
- build_percchange_frame: percent change quantiles per method, for plotting
- collect_samples: raw posterior samples per MCMC method

Percent change quantiles for the MCMC methods are always computed directly
from the stored posterior samples, so the reported interval can be
reproduced from the samples returned to the caller.
"""

import math
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from .config import (
    MCMC_METHODS,
    METHOD_GIBBS,
    METHOD_HAMILTONIAN,
    METHOD_MLE,
    PERCENTILE_LABELS,
    PERCENTILE_VALUES,
    RHAT_LABEL,
    ROUND_DIGITS,
    SUMMARY_STAT_LABELS,
)
from .data_models import EstimatorResult, MCMCResult, MLEResult, SummaryMatrix

# Column names of the comparison frame
PERCCHANGE_COLUMNS = {METHOD_MLE: "MLE", METHOD_GIBBS: "Jags", METHOD_HAMILTONIAN: "Stan"}

# Keys of the samples mapping returned to callers
SAMPLE_KEYS = {METHOD_HAMILTONIAN: "rstanarm", METHOD_GIBBS: "jags"}


def _round(value):
    value = float(value)
    if math.isnan(value):
        return value
    return round(value, ROUND_DIGITS)


def percent_change_quantiles(result: MCMCResult) -> np.ndarray:
    """Empirical quantiles of the percent change samples at PERCENTILE_VALUES."""
    return np.quantile(result.percent_change_samples, PERCENTILE_VALUES)


def _fill_mle(matrix: SummaryMatrix, result: MLEResult):
    row = matrix[METHOD_MLE]
    row.pchange = _round(result.percent_change)
    row.slope = _round(result.slope)
    row.intercept = _round(result.intercept)


def _fill_mcmc(matrix: SummaryMatrix, method: str, result: MCMCResult):
    summary = result.summary
    pchange = percent_change_quantiles(result)

    for i, (plabel, stat) in enumerate(zip(PERCENTILE_LABELS, SUMMARY_STAT_LABELS)):
        row = matrix[f"{method}_{plabel}"]
        row.pchange = _round(pchange[i])
        row.slope = _round(summary.loc["slope", stat])
        row.intercept = _round(summary.loc["intercept", stat])

    rhat_row = matrix[f"{method}_{RHAT_LABEL}"]
    rhat_row.slope = _round(summary.loc["slope", RHAT_LABEL])
    rhat_row.intercept = _round(summary.loc["intercept", RHAT_LABEL])

    matrix[f"{method}_Med"].probdecl = _round(result.probdecl)


def build_summary_matrix(results: Mapping[str, Optional[EstimatorResult]]) -> SummaryMatrix:
    """
    Build the summary matrix from per-method results.

    Parameters:
    -----------
    results : mapping of str to MLEResult, MCMCResult or None
        Keyed by method label ('MLE', 'Jags', 'RStanArm'). Methods that are
        absent or None keep their rows missing.

    Returns:
    --------
    SummaryMatrix : All 13 rows, rounded to ROUND_DIGITS decimals
    """
    matrix = SummaryMatrix()

    for method, result in results.items():
        if result is None:
            continue
        if result.kind == "mle":
            if method != METHOD_MLE:
                raise ValueError(f"MLE result given for method '{method}'")
            _fill_mle(matrix, result)
        elif result.kind == "mcmc":
            if method not in MCMC_METHODS:
                raise ValueError(f"MCMC result given for unknown method '{method}'")
            _fill_mcmc(matrix, method, result)
        else:
            raise ValueError(f"Unknown result kind '{result.kind}'")

    return matrix


def build_percchange_frame(results: Mapping[str, Optional[EstimatorResult]]) -> pd.DataFrame:
    """
    Percent change values per method for distribution and box plots.

    The MLE column only carries its point estimate on the median row; each
    MCMC column carries the five sample quantiles. Missing methods are NaN.
    """
    frame = pd.DataFrame(
        np.nan,
        index=pd.Index(PERCENTILE_LABELS, name="percentile"),
        columns=list(PERCCHANGE_COLUMNS.values()),
    )

    mle = results.get(METHOD_MLE)
    if mle is not None:
        frame.loc["Med", PERCCHANGE_COLUMNS[METHOD_MLE]] = mle.percent_change

    for method in MCMC_METHODS:
        result = results.get(method)
        if result is not None:
            frame[PERCCHANGE_COLUMNS[method]] = percent_change_quantiles(result)

    return frame


def collect_samples(results: Mapping[str, Optional[EstimatorResult]]):
    """Unrounded posterior samples per MCMC method, None where unavailable."""
    samples = {}
    for method, key in SAMPLE_KEYS.items():
        result = results.get(method)
        samples[key] = result.samples if result is not None else None
    return samples
