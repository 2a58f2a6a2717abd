"""
Plots comparing the percent change estimates of the three methods.

Each function takes already computed values, draws one figure and returns
it. Nothing here feeds back into the analysis.
"""

from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

METHOD_COLORS = {
    "MLE": "black",
    "Jags": "tab:orange",
    "RStanArm": "tab:blue",
    "Stan": "tab:blue",
}
REF_LINE_STYLES = {"MLE": "-", "BM": "--"}


def _new_axes(ax, figsize=(8, 5)):
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def plot_pattern(years: Sequence[int], log_values: Sequence[float],
                 window_years: Sequence[int], fits: Mapping[str, Tuple[float, float]],
                 title: str = "", ax=None):
    """
    Plot the log-transformed series with the fitted trend lines.

    Parameters:
    -----------
    years : sequence of int
        Years of the full series
    log_values : sequence of float
        Log abundance for each year, NaN or -inf where not plottable
    window_years : sequence of int
        Years of the analysis window the fits were made on
    fits : mapping of str to (intercept, slope)
        Fitted coefficients per method on the time index 1..n of the window
    title : str
        Plot title
    ax : matplotlib Axes, optional
        Axes to draw on (default: new figure)

    Returns:
    --------
    matplotlib.figure.Figure
    """
    fig, ax = _new_axes(ax)

    values = np.asarray(log_values, dtype=float)
    values[~np.isfinite(values)] = np.nan
    ax.plot(years, values, 'o-', color="darkblue", markersize=5, linewidth=1, label="log(abundance)")

    window_years = np.asarray(window_years)
    time_index = np.arange(1, len(window_years) + 1)
    for method, (intercept, slope) in fits.items():
        ax.plot(
            window_years, intercept + slope * time_index,
            color=METHOD_COLORS.get(method, "gray"), linewidth=2, label=f"{method} fit",
        )

    ax.set_xlabel('Year')
    ax.set_ylabel('log(abundance)')
    ax.set_title(title or 'Trend estimates')
    ax.grid(True, axis='y', alpha=0.3)
    ax.legend()
    return fig


def plot_distribution(samples: Mapping[str, Sequence[float]], ref_lines: Mapping[str, float],
                      x_label: str = "Perc Change", plot_range: Optional[Tuple[float, float]] = None,
                      title: str = "", ax=None):
    """Kernel density of the posterior samples with vertical reference lines."""
    fig, ax = _new_axes(ax)

    for method, values in samples.items():
        values = np.asarray(values, dtype=float)
        values = values[np.isfinite(values)]
        if len(values) < 2 or np.ptp(values) == 0:
            continue
        sns.kdeplot(x=values, ax=ax, fill=True, alpha=0.3,
                    color=METHOD_COLORS.get(method), label=method)

    for name, value in ref_lines.items():
        if value is None or not np.isfinite(value):
            continue
        ax.axvline(x=value, color='r' if name == "BM" else 'k',
                   linestyle=REF_LINE_STYLES.get(name, ':'), label=name)

    if plot_range is not None:
        ax.set_xlim(*plot_range)
    ax.set_xlabel(x_label)
    ax.set_ylabel('Density')
    ax.set_title(title or 'Posterior distributions')
    ax.grid(True, alpha=0.3)
    ax.legend()
    return fig


def plot_boxes(box_df: pd.DataFrame, ref_lines: Mapping[str, float],
               y_label: str = "Perc Change", plot_range: Optional[Tuple[float, float]] = None,
               title: str = "", ax=None):
    """Box plot of the per-method percent change values."""
    fig, ax = _new_axes(ax)

    # Methods that failed have no values to draw
    box_df = box_df.dropna(axis=1, how="all")
    long_df = box_df.melt(var_name="method", value_name="value").dropna()
    sns.boxplot(data=long_df, x="method", y="value", order=list(box_df.columns),
                hue="method", palette=METHOD_COLORS, legend=False, ax=ax)

    for name, value in ref_lines.items():
        if value is None or not np.isfinite(value):
            continue
        ax.axhline(y=value, color='r', linestyle=REF_LINE_STYLES.get(name, ':'), label=name)

    if plot_range is not None:
        ax.set_ylim(*plot_range)
    ax.set_xlabel('')
    ax.set_ylabel(y_label)
    ax.set_title(title or 'Percent change by method')
    ax.grid(True, axis='y', alpha=0.3)
    if ref_lines:
        ax.legend()
    return fig


def save_figure(fig, path: Path):
    """Save a figure as PNG and close it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(str(path), dpi=300, bbox_inches='tight')
    plt.close(fig)
    return path
