import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from percchange.plotting import plot_boxes, plot_distribution


def _density_outlines(ax):
    """Vertices of the filled density areas drawn on ax."""
    return [path.vertices for coll in ax.collections for path in coll.get_paths()]


def test_distribution_keeps_samples_outside_plot_range():
    rng = np.random.default_rng(0)
    samples = {"Jags": rng.normal(-150.0, 10.0, size=500)}

    fig = plot_distribution(samples, {"BM": -25.0}, plot_range=(-90.0, 90.0))
    ax = fig.axes[0]

    outlines = _density_outlines(ax)
    assert outlines
    # Density is estimated from every draw, so its mode stays near -150
    vertices = outlines[0]
    assert vertices[np.argmax(vertices[:, 1]), 0] == pytest.approx(-150.0, abs=10.0)
    assert ax.get_xlim() == (-90.0, 90.0)
    plt.close(fig)


def test_distribution_density_unchanged_by_plot_range():
    rng = np.random.default_rng(1)
    samples = {"RStanArm": rng.normal(-60.0, 30.0, size=400)}

    wide = plot_distribution(samples, {}, plot_range=None)
    narrow = plot_distribution(samples, {}, plot_range=(-50.0, 0.0))

    wide_outline = _density_outlines(wide.axes[0])[0]
    narrow_outline = _density_outlines(narrow.axes[0])[0]
    np.testing.assert_allclose(wide_outline, narrow_outline)
    plt.close(wide)
    plt.close(narrow)


def test_distribution_skips_degenerate_samples():
    samples = {"Jags": np.full(50, -10.0), "RStanArm": [np.nan, 3.0]}
    fig = plot_distribution(samples, {"MLE": -12.0})
    assert _density_outlines(fig.axes[0]) == []
    plt.close(fig)


def test_boxes_drop_failed_methods():
    box_df = pd.DataFrame({
        "MLE": [np.nan, np.nan, -30.0, np.nan, np.nan],
        "Jags": [-50.0, -40.0, -31.0, -20.0, -10.0],
        "Stan": [np.nan] * 5,
    })
    fig = plot_boxes(box_df, {"BM": -25.0}, plot_range=(-90.0, 90.0))
    ax = fig.axes[0]
    fig.canvas.draw()
    assert [tick.get_text() for tick in ax.get_xticklabels()] == ["MLE", "Jags"]
    assert ax.get_ylim() == (-90.0, 90.0)
    plt.close(fig)
