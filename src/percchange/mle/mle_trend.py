"""
Maximum likelihood fit of a log-linear trend.

With normal errors on the log scale the MLE of slope and intercept is the
ordinary least squares line, so the fit is a straight regression of log
abundance on the time index 1..n. Missing years keep their position in the
time index but are left out of the fit.
"""

import numpy as np
from scipy import stats

from ..errors import InsufficientDataError
from ..utils.common import percent_change


class LogLinearMLE:
    def __init__(self, values):
        # Log-transformed abundances, NaN where missing
        self.values = np.asarray(values, dtype=float)
        self.n_years = len(self.values)
        self.time_index = np.arange(1, self.n_years + 1, dtype=float)

        self.finite = np.isfinite(self.values)
        self.n_finite = int(self.finite.sum())

        if self.n_finite < 2:
            raise InsufficientDataError(
                f"Need at least 2 finite points for a slope fit, got {self.n_finite}"
            )

    def estimate_trend(self):
        """
        Estimate slope and intercept of log abundance over time.

        Returns:
        --------
        dict : slope, intercept, percent_change and the fit diagnostics
        """
        fit = stats.linregress(self.time_index[self.finite], self.values[self.finite])

        slope = float(fit.slope)
        intercept = float(fit.intercept)

        return {
            "slope": slope,
            "intercept": intercept,
            "percent_change": float(percent_change(slope, self.n_years)),
            "r_squared": float(fit.rvalue ** 2),
            "n_points": self.n_finite,
        }
