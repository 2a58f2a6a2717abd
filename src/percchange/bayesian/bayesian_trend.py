"""
Bayesian MCMC estimation of a log-linear population trend.

Fits log abundance against the time index 1..n with PyMC and returns the
posterior quantiles of slope and intercept, R-hat per parameter and the
posterior distribution of the percent change over the window.

Two sampling engines share the same model:
- gibbs: component-wise slice sampling, one parameter at a time
- hamiltonian: NUTS
Missing years keep their place in the time index and are left out of the
likelihood.
"""

import logging

import numpy as np
import pandas as pd

from ..config import (
    DEFAULT_BENCHMARK,
    DEFAULT_CHAINS,
    DEFAULT_DRAWS,
    DEFAULT_TUNE,
    RHAT_LABEL,
    RHAT_THRESHOLD,
    SUMMARY_STAT_LABELS,
    Engine,
)
from ..errors import InsufficientDataError
from ..utils.common import percent_change

# Try to import PyMC - make it optional
try:
    import pymc as pm
    import arviz as az
    HAS_PYMC = True
except ImportError:
    HAS_PYMC = False
    pm = None
    az = None

__all__ = ['BayesianTrend', 'HAS_PYMC']

logger = logging.getLogger(__name__)

TREND_PARAMETERS = ('slope', 'intercept')
_PERCENTILES = [2.5, 25.0, 50.0, 75.0, 97.5]


class BayesianTrend:
    """
    Bayesian linear trend on log abundance.

    log N_t ~ Normal(intercept + slope * t, sigma) with vague priors on the
    regression coefficients and a half-Cauchy prior on sigma.
    """

    def __init__(self, values, benchmark=DEFAULT_BENCHMARK, engine=Engine.HAMILTONIAN):
        """
        Initialize the Bayesian trend estimator.

        Parameters:
        -----------
        values : sequence of float
            Log-transformed abundances, NaN where missing
        benchmark : float
            Percent change threshold for the probability of decline (default: -25)
        engine : Engine
            Sampling engine (default: Engine.HAMILTONIAN)
        """
        if not HAS_PYMC:
            raise ImportError(
                "PyMC is required for Bayesian estimation. "
                "Install with: pip install pymc arviz"
            )

        self.values = np.asarray(values, dtype=float)
        self.benchmark = float(benchmark)
        self.engine = Engine(engine)

        self.n_years = len(self.values)
        self.time_index = np.arange(1, self.n_years + 1, dtype=float)
        self.finite = np.isfinite(self.values)
        self.n_finite = int(self.finite.sum())

        if self.n_finite < 2:
            raise InsufficientDataError(
                f"Need at least 2 finite points for a trend fit, got {self.n_finite}"
            )

    def _build_model(self):
        t = self.time_index[self.finite]
        y = self.values[self.finite]

        with pm.Model() as model:
            intercept = pm.Normal('intercept', mu=0.0, sigma=100.0)
            slope = pm.Normal('slope', mu=0.0, sigma=10.0)
            sigma = pm.HalfCauchy('sigma', beta=5.0)
            pm.Normal('log_abundance', mu=intercept + slope * t, sigma=sigma, observed=y)

        return model

    def _step_method(self, model):
        if self.engine is Engine.GIBBS:
            return pm.Slice([model['intercept'], model['slope'], model['sigma']])
        # NUTS is assigned by pm.sample
        return None

    def estimate_trend(self, draws=DEFAULT_DRAWS, tune=DEFAULT_TUNE, chains=DEFAULT_CHAINS,
                       random_seed=None, progressbar=False, diagnostics_enabled=False,
                       rhat_threshold=RHAT_THRESHOLD):
        """
        Estimate the trend using MCMC sampling.

        Parameters:
        -----------
        draws : int
            Number of MCMC samples per chain (default: 1000)
        tune : int
            Burn-in samples per chain (default: 1000)
        chains : int
            Number of chains, needed for R-hat (default: 4)
        random_seed : int, optional
            Seed for the sampler
        progressbar : bool
            Show the PyMC progress bar (default: False)
        diagnostics_enabled : bool
            If True, a run with R-hat above rhat_threshold counts as failed
        rhat_threshold : float
            Largest acceptable R-hat (default: 1.1)

        Returns:
        --------
        dict : Results with the summary table, posterior samples and probdecl
        """
        try:
            model = self._build_model()
            with model:
                trace = pm.sample(
                    draws=draws,
                    tune=tune,
                    chains=chains,
                    cores=1,
                    step=self._step_method(model),
                    random_seed=random_seed,
                    return_inferencedata=True,
                    progressbar=progressbar,
                    compute_convergence_checks=False,
                )
        except Exception as e:
            return {
                "success": False,
                "message": f"Error during MCMC sampling ({self.engine.value}): {str(e)}",
            }

        posterior = trace.posterior
        samples = {
            name: posterior[name].values.flatten()
            for name in ('intercept', 'slope', 'sigma')
        }

        # Derived quantities from each posterior draw
        pchange_samples = percent_change(samples['slope'], self.n_years)
        below_benchmark = pchange_samples < self.benchmark
        probdecl = float(np.mean(below_benchmark))

        # R-hat is undefined with a single chain
        if chains > 1:
            rhat_data = az.rhat(trace, var_names=list(TREND_PARAMETERS))
            rhat = {name: float(rhat_data[name].values) for name in TREND_PARAMETERS}
        else:
            rhat = {name: np.nan for name in TREND_PARAMETERS}

        summary = pd.DataFrame(
            [
                list(np.percentile(samples[name], _PERCENTILES)) + [rhat[name]]
                for name in TREND_PARAMETERS
            ],
            index=pd.Index(TREND_PARAMETERS, name='parameter'),
            columns=list(SUMMARY_STAT_LABELS) + [RHAT_LABEL],
        )

        # Count divergences from sample_stats (NUTS only)
        n_divergences = 0
        if 'diverging' in trace.sample_stats:
            n_divergences = int(np.sum(trace.sample_stats['diverging'].values))

        if diagnostics_enabled:
            unconverged = {
                name: value for name, value in rhat.items()
                if np.isfinite(value) and value > rhat_threshold
            }
            if unconverged:
                return {
                    "success": False,
                    "message": (
                        f"MCMC did not converge ({self.engine.value}): "
                        + ", ".join(f"Rhat[{k}]={v:.3f}" for k, v in unconverged.items())
                        + f" above {rhat_threshold}"
                    ),
                }
            if not all(np.isfinite(v) for v in rhat.values()):
                logger.warning("R-hat unavailable for %s run with %d chain(s)",
                               self.engine.value, chains)

        return {
            "success": True,
            "summary": summary,
            "samples": pd.DataFrame({
                'intercept': samples['intercept'],
                'slope': samples['slope'],
                'sigma': samples['sigma'],
                'percent_change': pchange_samples,
                'below_benchmark': below_benchmark,
            }),
            "probdecl": probdecl,
            "n_divergences": n_divergences,
        }
