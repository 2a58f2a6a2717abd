import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from percchange.config import RHAT_LABEL, SUMMARY_STAT_LABELS, Engine
from percchange.data_models import MCMCResult, MLEResult
from percchange.mle import LogLinearMLE
from percchange.utils.common import percent_change


def make_series(values, start_year=2000, column="Abd"):
    return pd.DataFrame({
        "Year": np.arange(start_year, start_year + len(values)),
        column: np.asarray(values, dtype=float),
    })


def make_mcmc_result(pchange_samples, engine=Engine.HAMILTONIAN, benchmark=-25.0,
                     slope=-0.05, intercept=7.0, rhat=1.001):
    pchange_samples = np.asarray(pchange_samples, dtype=float)
    summary = pd.DataFrame(
        [
            [slope - 0.02, slope - 0.01, slope, slope + 0.01, slope + 0.02, rhat],
            [intercept - 0.2, intercept - 0.1, intercept, intercept + 0.1, intercept + 0.2, rhat],
        ],
        index=pd.Index(["slope", "intercept"], name="parameter"),
        columns=list(SUMMARY_STAT_LABELS) + [RHAT_LABEL],
    )
    samples = pd.DataFrame({
        "percent_change": pchange_samples,
        "below_benchmark": pchange_samples < benchmark,
    })
    return MCMCResult(
        engine=engine,
        summary=summary,
        samples=samples,
        probdecl=float(np.mean(pchange_samples < benchmark)),
    )


class RecordingBackend:
    """Estimator stand-in that records every request it receives."""

    def __init__(self, func):
        self.func = func
        self.calls = []

    def __call__(self, request):
        self.calls.append(request)
        return self.func(request)


def fake_mle(request):
    result = LogLinearMLE(request.as_array()).estimate_trend()
    return MLEResult(slope=result["slope"], intercept=result["intercept"],
                     percent_change=result["percent_change"])


def fake_mcmc(engine):
    def _fit(request):
        values = request.as_array()
        fit = LogLinearMLE(values).estimate_trend()
        rng = np.random.default_rng(request.random_seed)
        slopes = rng.normal(fit["slope"], 0.02, size=400)
        pchange = percent_change(slopes, len(values))
        return make_mcmc_result(pchange, engine=engine, benchmark=request.benchmark,
                                slope=fit["slope"], intercept=fit["intercept"])
    return _fit


@pytest.fixture
def fake_backends():
    return {
        "MLE": RecordingBackend(fake_mle),
        "Jags": RecordingBackend(fake_mcmc(Engine.GIBBS)),
        "RStanArm": RecordingBackend(fake_mcmc(Engine.HAMILTONIAN)),
    }


@pytest.fixture
def declining_series():
    # 10 years of roughly 8% annual decline
    rng = np.random.default_rng(42)
    values = 1000 * np.exp(-0.08 * np.arange(10) + rng.normal(0, 0.05, size=10))
    return make_series(values)
