"""
MLE (Maximum Likelihood Estimation) module.

Contains:
- LogLinearMLE: Core log-linear trend fit
- mle_estimator: Adapter returning an MLEResult
"""

from .mle_analysis import mle_estimator
from .mle_trend import LogLinearMLE

__all__ = ['LogLinearMLE', 'mle_estimator']
