"""Command line interface for comparing percent change estimates."""

import argparse
import logging
from pathlib import Path

import pandas as pd

from .config import (
    DEFAULT_BENCHMARK,
    DEFAULT_CHAINS,
    DEFAULT_DRAWS,
    DEFAULT_TUNE,
    OUTPUT_DIR_NAME,
    CompareOptions,
    MCMCOptions,
    default_output_dir,
)
from .errors import PercChangeError
from .pipeline import compare_perc_change
from .utils.common import setup_logging
from .utils.series import YEAR_COLUMN


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare MLE and MCMC estimates of percent change in abundance"
    )
    parser.add_argument("series", type=Path, help="CSV with a Year column and an abundance column")
    parser.add_argument("--label", default=None, help="Label for the population (default: file name)")
    parser.add_argument("--window", type=int, required=True, help="Number of years in the window")
    parser.add_argument("--calc-year", type=int, default=None, help="Last year of the window (default: last year in file)")
    parser.add_argument("--benchmark", type=float, default=DEFAULT_BENCHMARK, help="Percent change threshold for probability of decline")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for zero replacement and sampling")
    parser.add_argument("--draws", type=int, default=DEFAULT_DRAWS, help="MCMC draws per chain")
    parser.add_argument("--tune", type=int, default=DEFAULT_TUNE, help="MCMC tuning steps per chain")
    parser.add_argument("--chains", type=int, default=DEFAULT_CHAINS, help="Number of MCMC chains")
    parser.add_argument("--timeout", type=float, default=None, help="Time budget per sampler in seconds")
    parser.add_argument("--check-convergence", action="store_true", help="Treat R-hat above threshold as a failed fit")
    parser.add_argument("--plots", action="store_true", help=f"Save pattern, distribution and box plots (default dir: ./{OUTPUT_DIR_NAME})")
    parser.add_argument("--plots-dir", type=Path, default=None, help="Directory for plot files")
    parser.add_argument("--verbose", action="store_true", help="Log estimator progress")
    parser.add_argument("--log-file", type=Path, default=None, help="Also append log output to this file")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    series = pd.read_csv(args.series)
    calc_year = args.calc_year
    if calc_year is None and YEAR_COLUMN in series.columns:
        calc_year = int(series[YEAR_COLUMN].max())

    try:
        options = CompareOptions(
            make_pattern_plot=args.plots,
            make_distribution_plot=args.plots,
            make_box_plot=args.plots,
            benchmark=args.benchmark,
            random_seed=args.seed,
            verbose=args.verbose,
            mcmc=MCMCOptions(
                draws=args.draws,
                tune=args.tune,
                chains=args.chains,
                diagnostics_enabled=args.check_convergence,
                timeout=args.timeout,
            ),
            output_dir=(args.plots_dir or default_output_dir()) if args.plots else None,
            return_samples=False,
        )
        result = compare_perc_change(
            args.label or args.series.stem, series, args.window, calc_year, options=options,
        )
    except PercChangeError as e:
        logger.error("%s", e)
        return 2

    print("=" * 80)
    print(f"Percent change comparison: {result.label}")
    print("=" * 80)
    print(result.summary.to_frame().to_string())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
