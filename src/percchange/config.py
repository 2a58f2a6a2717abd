"""
Project configuration.

Defines the defaults shared by the window selection, the estimators and the
comparison summary. All modules should import from here so the benchmark,
percentiles and sampler settings stay consistent.
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .errors import ConfigError

# Directory name for plots written by the command line entry point
OUTPUT_DIR_NAME = "output"

# Percent change below which a trend counts as a decline
DEFAULT_BENCHMARK = -25.0

# Posterior percentiles reported for every MCMC method
PERCENTILE_VALUES = (0.025, 0.25, 0.5, 0.75, 0.975)
PERCENTILE_LABELS = ("p2.5", "p25", "Med", "p75", "p97.5")
SUMMARY_STAT_LABELS = ("2.5%", "25%", "50%", "75%", "97.5%")
RHAT_LABEL = "Rhat"

# Summary matrix layout
METHOD_MLE = "MLE"
METHOD_GIBBS = "Jags"
METHOD_HAMILTONIAN = "RStanArm"
MCMC_METHODS = (METHOD_GIBBS, METHOD_HAMILTONIAN)
SUMMARY_COLUMNS = ("pchange", "probdecl", "slope", "intercept")
ROUND_DIGITS = 5

# Zero replacement draws from (ZERO_REPLACEMENT_FLOOR, min_positive / 2)
ZERO_REPLACEMENT_FLOOR = 1e-8

# Default MCMC settings
DEFAULT_DRAWS = 1000
DEFAULT_TUNE = 1000
DEFAULT_CHAINS = 4
RHAT_THRESHOLD = 1.1

# x range for the posterior distribution plot
DEFAULT_PLOT_RANGE = (-90.0, 90.0)


class Engine(str, enum.Enum):
    """Sampling engine used by an MCMC backend."""

    GIBBS = "gibbs"
    HAMILTONIAN = "hamiltonian"


def summary_row_labels():
    """
    Get the fixed row labels of the summary matrix.

    Returns:
    --------
    tuple of str : 'MLE' followed by six rows per MCMC method
    """
    labels = [METHOD_MLE]
    for method in MCMC_METHODS:
        labels.extend(f"{method}_{p}" for p in PERCENTILE_LABELS + (RHAT_LABEL,))
    return tuple(labels)


SUMMARY_ROW_LABELS = summary_row_labels()


def default_output_dir():
    """Plot directory under the current working directory, resolved at call time."""
    return Path.cwd() / OUTPUT_DIR_NAME


@dataclass(frozen=True)
class MCMCOptions:
    """Sampler settings shared by both MCMC engines."""

    draws: int = DEFAULT_DRAWS
    tune: int = DEFAULT_TUNE
    chains: int = DEFAULT_CHAINS
    diagnostics_enabled: bool = False
    rhat_threshold: float = RHAT_THRESHOLD
    # Wall-clock budget per sampler run in seconds, None for no limit
    timeout: Optional[float] = None

    def __post_init__(self):
        for name in ("draws", "tune", "chains"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")
        if self.draws == 0 or self.chains == 0:
            raise ConfigError("draws and chains must be positive")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout!r}")


@dataclass(frozen=True)
class CompareOptions:
    """Options for a single percent change comparison."""

    return_samples: bool = True
    make_pattern_plot: bool = False
    make_distribution_plot: bool = False
    make_box_plot: bool = False
    benchmark: float = DEFAULT_BENCHMARK
    random_seed: Optional[int] = None
    verbose: bool = False
    mcmc: MCMCOptions = field(default_factory=MCMCOptions)
    # Directory for plot files; figures are left open when None
    output_dir: Optional[Path] = None
    plot_range: Optional[Tuple[float, float]] = DEFAULT_PLOT_RANGE

    def __post_init__(self):
        if self.plot_range is not None and len(self.plot_range) != 2:
            raise ConfigError(f"plot_range must be a (low, high) pair, got {self.plot_range!r}")

    @property
    def any_plots(self):
        return self.make_pattern_plot or self.make_distribution_plot or self.make_box_plot
