"""
MLE Analysis: runs the log-linear maximum likelihood fit for one series.

Adapts LogLinearMLE to the estimator request/result contract.
"""

import logging

from ..data_models import EstimationRequest, MLEResult
from .mle_trend import LogLinearMLE

logger = logging.getLogger(__name__)


def mle_estimator(request: EstimationRequest) -> MLEResult:
    """Estimate the trend using MLE."""
    estimator = LogLinearMLE(request.as_array())
    result = estimator.estimate_trend()

    if request.verbose:
        logger.info(
            "MLE fit on %d points: slope=%.5f, intercept=%.5f, R^2=%.3f, percent change=%.2f",
            result['n_points'], result['slope'], result['intercept'], result['r_squared'],
            result['percent_change'],
        )

    return MLEResult(
        slope=result['slope'],
        intercept=result['intercept'],
        percent_change=result['percent_change'],
    )
