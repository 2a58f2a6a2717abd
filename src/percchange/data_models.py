"""Core data structures for the percent change comparison."""

import math
from dataclasses import dataclass, field, fields
from typing import Dict, Literal, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .config import DEFAULT_BENCHMARK, SUMMARY_COLUMNS, SUMMARY_ROW_LABELS, Engine


@dataclass(frozen=True)
class EstimationRequest:
    """Request handed to every estimator backend."""

    values: Sequence[float]
    benchmark: float = DEFAULT_BENCHMARK
    verbose: bool = False
    random_seed: Optional[int] = None

    def as_array(self):
        return np.asarray(self.values, dtype=float)


@dataclass(frozen=True)
class MLEResult:
    slope: float
    intercept: float
    percent_change: float
    kind: Literal["mle"] = "mle"


@dataclass(frozen=True)
class MCMCResult:
    """
    Posterior summary of one MCMC run.

    summary is indexed by parameter ('slope', 'intercept') with the columns
    '2.5%', '25%', '50%', '75%', '97.5%' and 'Rhat'. samples holds one row
    per posterior draw and always carries a 'percent_change' column.
    """

    engine: Engine
    summary: pd.DataFrame
    samples: pd.DataFrame
    probdecl: float
    kind: Literal["mcmc"] = "mcmc"

    @property
    def percent_change_samples(self):
        return self.samples["percent_change"].to_numpy()


EstimatorResult = Union[MLEResult, MCMCResult]


@dataclass
class SummaryRow:
    pchange: float = math.nan
    probdecl: float = math.nan
    slope: float = math.nan
    intercept: float = math.nan

    def is_missing(self):
        return all(math.isnan(getattr(self, f.name)) for f in fields(self))


def _empty_rows():
    return {label: SummaryRow() for label in SUMMARY_ROW_LABELS}


@dataclass
class SummaryMatrix:
    """
    Fixed-shape summary of all three methods.

    Rows are always the 13 labels from SUMMARY_ROW_LABELS in that order and
    columns are SUMMARY_COLUMNS. Cells never filled stay NaN.
    """

    rows: Dict[str, SummaryRow] = field(default_factory=_empty_rows)

    def __post_init__(self):
        if tuple(self.rows) != SUMMARY_ROW_LABELS:
            raise ValueError(f"Summary rows must be exactly {SUMMARY_ROW_LABELS}")

    def __getitem__(self, label) -> SummaryRow:
        return self.rows[label]

    def __iter__(self):
        return iter(self.rows.items())

    @property
    def shape(self):
        return len(self.rows), len(SUMMARY_COLUMNS)

    def is_missing(self):
        return all(row.is_missing() for row in self.rows.values())

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [[getattr(row, col) for col in SUMMARY_COLUMNS] for row in self.rows.values()],
            index=pd.Index(SUMMARY_ROW_LABELS),
            columns=list(SUMMARY_COLUMNS),
            dtype=float,
        )


@dataclass
class ComparisonResult:
    label: str
    summary: SummaryMatrix
    percchange: Optional[pd.DataFrame] = None
    # None when samples were not requested; per method None when skipped or failed
    samples: Optional[Mapping[str, Optional[pd.DataFrame]]] = None
