"""
Bayesian Analysis: runs the MCMC trend fit for one series.

Adapts BayesianTrend to the estimator request/result contract. Any sampler
failure, non-convergence or timeout surfaces as EstimationError.
"""

import logging
import multiprocessing
import queue
from typing import Optional

from ..config import Engine, MCMCOptions
from ..data_models import EstimationRequest, MCMCResult
from ..errors import EstimationError
from .bayesian_trend import BayesianTrend

logger = logging.getLogger(__name__)


def _call_into_queue(result_queue, target, args):
    """Child process entry point: run target and hand back its result."""
    try:
        result_queue.put(("ok", target(*args)))
    except Exception as e:
        result_queue.put(("error", f"{type(e).__name__}: {e}"))


def _run_with_budget(target, args, timeout, label):
    """
    Run target(*args), giving up after timeout seconds when a budget is set.

    With a budget the call runs in a separate process, which is terminated
    once the budget is used up. target and args must be picklable.
    """
    if timeout is None:
        return target(*args)

    ctx = multiprocessing.get_context()
    result_queue = ctx.Queue(maxsize=1)
    process = ctx.Process(
        target=_call_into_queue,
        args=(result_queue, target, args),
        name=f"mcmc-{label}",
        daemon=True,
    )
    process.start()
    try:
        status, payload = result_queue.get(timeout=timeout)
    except queue.Empty:
        raise EstimationError(
            f"{label} sampler exceeded its time budget of {timeout:g}s"
        ) from None
    finally:
        if process.is_alive():
            process.terminate()
        process.join()
        result_queue.close()

    if status == "error":
        raise EstimationError(f"{label} sampler failed: {payload}")
    return payload


def _estimate(estimator, kwargs):
    return estimator.estimate_trend(**kwargs)


def bayesian_estimator(request: EstimationRequest, engine=Engine.HAMILTONIAN,
                       options: Optional[MCMCOptions] = None) -> MCMCResult:
    """Estimate the trend using Bayesian MCMC."""
    engine = Engine(engine)
    options = options or MCMCOptions()

    try:
        estimator = BayesianTrend(request.as_array(), benchmark=request.benchmark, engine=engine)
    except ImportError as e:
        raise EstimationError(str(e)) from e

    if request.verbose:
        logger.info(
            "Sampling %s engine: %d chains x %d draws (%d tune) on %d points",
            engine.value, options.chains, options.draws, options.tune, estimator.n_finite,
        )

    sample_kwargs = {
        'draws': options.draws,
        'tune': options.tune,
        'chains': options.chains,
        'random_seed': request.random_seed,
        'progressbar': request.verbose,
        'diagnostics_enabled': options.diagnostics_enabled,
        'rhat_threshold': options.rhat_threshold,
    }
    result = _run_with_budget(_estimate, (estimator, sample_kwargs), options.timeout, engine.value)

    if not result.get('success', False):
        error_msg = result.get('message', 'Bayesian estimation failed')
        raise EstimationError(error_msg)

    if result['n_divergences']:
        logger.warning("%s run had %d divergent transitions", engine.value, result['n_divergences'])

    return MCMCResult(
        engine=engine,
        summary=result['summary'],
        samples=result['samples'],
        probdecl=result['probdecl'],
    )
