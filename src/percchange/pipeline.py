"""
Percent change comparison for one population time series.

compare_perc_change runs the whole analysis for one series:
1. select the analysis window
2. replace zero counts
3. skip estimation when fewer than half the years are observed
4. fit MLE, Gibbs MCMC and Hamiltonian MCMC trends on log abundance
5. merge the three fits into the summary matrix
6. optionally draw the pattern, distribution and box plots
"""

import logging
import re
from functools import partial
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

import numpy as np

from .bayesian import bayesian_estimator
from .compare_results import build_percchange_frame, build_summary_matrix, collect_samples
from .config import (
    MCMC_METHODS,
    METHOD_GIBBS,
    METHOD_HAMILTONIAN,
    METHOD_MLE,
    CompareOptions,
    Engine,
)
from .data_models import ComparisonResult, EstimationRequest, EstimatorResult, SummaryMatrix
from .errors import ConfigError, DataError, EstimationError, InsufficientDataError
from .mle import mle_estimator
from .plotting import plot_boxes, plot_distribution, plot_pattern, save_figure
from .utils.series import (
    YEAR_COLUMN,
    as_series_frame,
    has_sufficient_data,
    log_values,
    replace_zeros,
    select_window,
    value_column,
)

logger = logging.getLogger(__name__)

METHOD_ORDER = (METHOD_MLE,) + MCMC_METHODS

Backend = Callable[[EstimationRequest], EstimatorResult]


def default_backends(options: CompareOptions) -> Dict[str, Backend]:
    """The MLE fit and the two MCMC engines, configured from options."""
    return {
        METHOD_MLE: mle_estimator,
        METHOD_GIBBS: partial(bayesian_estimator, engine=Engine.GIBBS, options=options.mcmc),
        METHOD_HAMILTONIAN: partial(bayesian_estimator, engine=Engine.HAMILTONIAN,
                                    options=options.mcmc),
    }


def _method_seeds(random_seed):
    """One seed for zero replacement, then one per method in METHOD_ORDER."""
    children = np.random.SeedSequence(random_seed).spawn(1 + len(METHOD_ORDER))
    zero_rng = np.random.default_rng(children[0])
    method_seeds = {
        method: int(child.generate_state(1)[0])
        for method, child in zip(METHOD_ORDER, children[1:])
    }
    return zero_rng, method_seeds


def run_estimators(label: str, values, options: CompareOptions,
                   backends: Mapping[str, Backend], seeds: Mapping[str, int]):
    """
    Run every backend on the same log-transformed values.

    A backend raising InsufficientDataError or EstimationError is logged and
    recorded as None so its rows stay missing; the other methods still run.
    """
    results = {}
    for method in METHOD_ORDER:
        backend = backends.get(method)
        if backend is None:
            results[method] = None
            continue

        request = EstimationRequest(
            values=values,
            benchmark=options.benchmark,
            verbose=options.verbose,
            random_seed=seeds.get(method),
        )
        try:
            results[method] = backend(request)
        except (InsufficientDataError, EstimationError) as e:
            logger.warning("%s: %s estimation failed: %s", label, method, e)
            results[method] = None
        else:
            logger.debug("%s: %s estimation done", label, method)

    return results


def _skipped_result(label: str, options: CompareOptions) -> ComparisonResult:
    samples = {"rstanarm": None, "jags": None} if options.return_samples else None
    return ComparisonResult(label=label, summary=SummaryMatrix(), percchange=None, samples=samples)


def _slug(label):
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", str(label)).strip("_") or "series"


def dispatch_plots(label: str, series, window, results: Mapping[str, Optional[EstimatorResult]],
                   percchange, options: CompareOptions):
    """
    Draw the plots requested in options from already computed results.

    Figures are saved to options.output_dir and closed when it is set,
    otherwise they are returned open. A failing plot is logged and skipped.

    Returns:
    --------
    dict : plot name -> saved Path or open Figure
    """
    mle = results.get(METHOD_MLE)
    mcmc = {m: results[m] for m in MCMC_METHODS if results.get(m) is not None}
    outputs = {}

    def _emit(name, draw):
        try:
            fig = draw()
        except Exception as e:
            logger.warning("%s: could not create %s plot: %s", label, name, e)
            return
        if options.output_dir is not None:
            path = Path(options.output_dir) / f"{_slug(label)}_{name}.png"
            outputs[name] = save_figure(fig, path)
            logger.info("Saved %s plot to: %s", name, path)
        else:
            outputs[name] = fig

    if options.make_pattern_plot:
        def _pattern():
            frame = as_series_frame(series)
            with np.errstate(divide='ignore', invalid='ignore'):
                full_log = np.log(frame[value_column(frame)].to_numpy(dtype=float))
            fits = {}
            for method, result in mcmc.items():
                fits[method] = (result.summary.loc['intercept', '50%'],
                                result.summary.loc['slope', '50%'])
            if mle is not None:
                fits[METHOD_MLE] = (mle.intercept, mle.slope)
            return plot_pattern(
                frame[YEAR_COLUMN].to_numpy(), full_log, window[YEAR_COLUMN].to_numpy(),
                fits, title=f"{label}: trend estimates",
            )
        _emit("pattern", _pattern)

    ref_lines = {"BM": options.benchmark}
    if mle is not None:
        ref_lines = {"MLE": mle.percent_change, "BM": options.benchmark}

    if options.make_distribution_plot:
        _emit("distribution", lambda: plot_distribution(
            {m: r.percent_change_samples for m, r in mcmc.items()},
            ref_lines,
            plot_range=options.plot_range,
            title=f"{label}: posterior percent change",
        ))

    if options.make_box_plot:
        _emit("boxes", lambda: plot_boxes(
            percchange, {"BM": options.benchmark},
            title=f"{label}: percent change by method",
        ))

    return outputs


def compare_perc_change(label: str, series, window_years: int, calc_year: int,
                        options: Optional[CompareOptions] = None,
                        backends: Optional[Mapping[str, Backend]] = None) -> ComparisonResult:
    """
    Compare MLE and MCMC estimates of percent change over a window.

    Parameters:
    -----------
    label : str
        Short label for the population (used in logs and plot names)
    series : pd.DataFrame or pd.Series
        'Year' column plus abundance column, or abundance indexed by year
    window_years : int
        Number of years in the window, e.g. three generations + 1
    calc_year : int
        Last year of the window
    options : CompareOptions, optional
        Output, plotting, benchmark and sampler options
    backends : mapping, optional
        Replacement estimator callables keyed by 'MLE', 'Jags', 'RStanArm'

    Returns:
    --------
    ComparisonResult : summary matrix, percent change frame and samples

    Raises:
    -------
    ConfigError : For an invalid window or calc_year
    DataError : For a malformed series (missing columns, unsorted years)
    """
    options = options or CompareOptions()
    if backends is None:
        backends = default_backends(options)
    else:
        unknown = set(backends) - set(METHOD_ORDER)
        if unknown:
            raise ConfigError(f"Unknown estimator methods: {sorted(unknown)}")

    window = select_window(series, window_years, calc_year)
    zero_rng, seeds = _method_seeds(options.random_seed)

    try:
        window = replace_zeros(window, rng=zero_rng)
    except DataError as e:
        logger.warning("%s: %s; skipping estimation", label, e)
        return _skipped_result(label, options)

    if not has_sufficient_data(window):
        n_observed = int(window[value_column(window)].notna().sum())
        logger.warning(
            "%s: only %d of %d years observed in window, skipping estimation",
            label, n_observed, len(window),
        )
        return _skipped_result(label, options)

    values = log_values(window)
    results = run_estimators(label, values, options, backends, seeds)

    summary = build_summary_matrix(results)
    percchange = build_percchange_frame(results)
    samples = collect_samples(results) if options.return_samples else None

    if options.any_plots:
        dispatch_plots(label, series, window, results, percchange, options)

    return ComparisonResult(label=label, summary=summary, percchange=percchange, samples=samples)
