import numpy as np
import pandas as pd
import pytest

from percchange import CompareOptions, compare_perc_change
from percchange.errors import ConfigError, EstimationError, InsufficientDataError
from percchange.utils.series import ZeroReplacementWarning

from conftest import RecordingBackend, make_series


def _calls(backends):
    return {name: len(backend.calls) for name, backend in backends.items()}


def test_window_of_four_runs_all_backends(fake_backends):
    series = make_series(np.linspace(100, 60, 10))
    result = compare_perc_change("DU1", series, 4, 2009, backends=fake_backends)

    assert _calls(fake_backends) == {"MLE": 1, "Jags": 1, "RStanArm": 1}
    request = fake_backends["MLE"].calls[0]
    np.testing.assert_allclose(request.as_array(), np.log(series["Abd"].to_numpy()[-4:]))
    assert request.benchmark == -25.0

    frame = result.summary.to_frame()
    assert frame.shape == (13, 4)
    assert frame.loc["MLE", "pchange"] < 0
    assert frame.loc[["Jags_Med", "RStanArm_Med"], "probdecl"].notna().all()
    assert set(result.samples) == {"rstanarm", "jags"}
    assert list(result.percchange.columns) == ["MLE", "Jags", "Stan"]


def test_sparse_window_skips_estimation(fake_backends):
    series = make_series([10, 11, 12, 13, 14, 15, np.nan, np.nan, np.nan, 9])
    result = compare_perc_change("sparse", series, 4, 2009, backends=fake_backends)

    assert _calls(fake_backends) == {"MLE": 0, "Jags": 0, "RStanArm": 0}
    assert result.summary.is_missing()
    assert result.summary.to_frame().shape == (13, 4)
    assert result.samples == {"rstanarm": None, "jags": None}
    assert result.percchange is None


def test_all_missing_window_degrades(fake_backends):
    series = make_series([10, 11, 12, 13, 14, 15, np.nan, np.nan, np.nan, np.nan])
    result = compare_perc_change("gone", series, 4, 2009, backends=fake_backends)

    assert _calls(fake_backends) == {"MLE": 0, "Jags": 0, "RStanArm": 0}
    assert result.summary.is_missing()


def test_all_zero_window_degrades(fake_backends):
    series = make_series([10, 11, 12, 0, 0, 0])
    result = compare_perc_change("zeros", series, 3, 2005, backends=fake_backends)
    assert _calls(fake_backends) == {"MLE": 0, "Jags": 0, "RStanArm": 0}
    assert result.summary.is_missing()


def test_zeros_are_replaced_before_log(fake_backends):
    series = make_series([10, 8, 0, 6, 5])
    with pytest.warns(ZeroReplacementWarning, match="1 records of 0"):
        compare_perc_change("z", series, 5, 2004, backends=fake_backends,
                            options=CompareOptions(random_seed=1))
    values = fake_backends["MLE"].calls[0].as_array()
    assert np.all(np.isfinite(values))
    assert values[2] < np.log(5 / 2)


def test_failed_backend_only_loses_its_rows(fake_backends):
    def _fail(request):
        raise EstimationError("did not converge")

    def _too_few(request):
        raise InsufficientDataError("too few points")

    fake_backends["Jags"] = RecordingBackend(_fail)
    fake_backends["MLE"] = RecordingBackend(_too_few)
    series = make_series(np.linspace(100, 60, 10))
    result = compare_perc_change("DU1", series, 6, 2009, backends=fake_backends)

    frame = result.summary.to_frame()
    assert frame.loc["MLE"].isna().all()
    assert frame.filter(like="Jags", axis=0).isna().all().all()
    assert frame.loc["RStanArm_Med"].notna().all()
    assert result.samples["jags"] is None
    assert result.samples["rstanarm"] is not None


def test_unexpected_backend_errors_propagate(fake_backends):
    def _bug(request):
        raise RuntimeError("bug")

    fake_backends["RStanArm"] = RecordingBackend(_bug)
    with pytest.raises(RuntimeError):
        compare_perc_change("DU1", make_series(np.linspace(100, 60, 10)), 4, 2009,
                            backends=fake_backends)


def test_same_seed_gives_same_summary(fake_backends):
    series = make_series([50, 0, 40, 38, 0, 30, 28, 25])
    options = CompareOptions(random_seed=123)
    with pytest.warns(ZeroReplacementWarning):
        first = compare_perc_change("s", series, 8, 2007, options=options, backends=fake_backends)
    with pytest.warns(ZeroReplacementWarning):
        second = compare_perc_change("s", series, 8, 2007, options=options, backends=fake_backends)
    pd.testing.assert_frame_equal(first.summary.to_frame(), second.summary.to_frame())

    jags_seeds = {call.random_seed for call in fake_backends["Jags"].calls}
    stan_seeds = {call.random_seed for call in fake_backends["RStanArm"].calls}
    assert len(jags_seeds) == 1 and len(stan_seeds) == 1
    assert jags_seeds != stan_seeds


def test_benchmark_and_samples_options(fake_backends):
    options = CompareOptions(benchmark=-10.0, return_samples=False)
    result = compare_perc_change("DU1", make_series(np.linspace(100, 60, 10)), 5, 2009,
                                 options=options, backends=fake_backends)
    assert all(call.benchmark == -10.0 for call in fake_backends["Jags"].calls)
    assert result.samples is None


def test_config_errors_are_raised(fake_backends):
    series = make_series([1, 2, 3])
    with pytest.raises(ConfigError):
        compare_perc_change("x", series, 0, 2002, backends=fake_backends)
    with pytest.raises(ConfigError):
        compare_perc_change("x", series, 2, 1990, backends=fake_backends)
    with pytest.raises(ConfigError):
        compare_perc_change("x", series, 2, 2002, backends={"OLS": fake_backends["MLE"]})


def test_plots_are_saved(fake_backends, declining_series, tmp_path):
    options = CompareOptions(
        make_pattern_plot=True,
        make_distribution_plot=True,
        make_box_plot=True,
        output_dir=tmp_path,
    )
    compare_perc_change("DU 1/north", declining_series, 6, 2009, options=options,
                        backends=fake_backends)
    saved = sorted(p.name for p in tmp_path.iterdir())
    assert saved == ["DU_1_north_boxes.png", "DU_1_north_distribution.png", "DU_1_north_pattern.png"]


def test_plots_skip_failed_methods(fake_backends, declining_series, tmp_path):
    def _fail(request):
        raise EstimationError("boom")

    fake_backends["RStanArm"] = RecordingBackend(_fail)
    options = CompareOptions(make_distribution_plot=True, make_box_plot=True, output_dir=tmp_path)
    result = compare_perc_change("DU2", declining_series, 6, 2009, options=options,
                                 backends=fake_backends)
    assert (tmp_path / "DU2_distribution.png").exists()
    assert (tmp_path / "DU2_boxes.png").exists()
    assert result.summary["RStanArm_Med"].is_missing()
