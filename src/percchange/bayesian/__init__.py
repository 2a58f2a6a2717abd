"""
Bayesian MCMC estimation module.

Contains:
- BayesianTrend: Core Bayesian trend model
- bayesian_estimator: Adapter returning an MCMCResult
- HAS_PYMC: Boolean indicating if PyMC is available
"""

from .bayesian_analysis import bayesian_estimator
from .bayesian_trend import HAS_PYMC, BayesianTrend

__all__ = ['BayesianTrend', 'HAS_PYMC', 'bayesian_estimator']
