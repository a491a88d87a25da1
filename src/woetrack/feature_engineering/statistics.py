# feature_engineering/statistics.py
import logging
import warnings
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from woetrack.exceptions import BinAssignmentError, DegenerateBinWarning
from .base import PredictorKind
from .rules import IntervalRule

logger = logging.getLogger(__name__)

WOE_COLUMNS = ["variable", "bin", "outcome_0", "outcome_1", "pct_0", "pct_1", "odds", "woe", "miv"]


class WOETable:
    """
    Weight of Evidence statistics of one variable, one row per bin.

    Attributes
    ----------
    variable : str
        Predictor name.
    kind : PredictorKind
        Categorical or continuous.
    rules : list of IntervalRule
        Interval rules of a continuous variable (empty for categorical ones).
    degenerate_bins : list
        Bins with zero observations of one outcome class.
    """

    def __init__(
        self,
        variable: str,
        kind: PredictorKind,
        table: pd.DataFrame,
        rules: Optional[Sequence[IntervalRule]] = None,
        degenerate_bins: Iterable[Any] = (),
    ):
        self.variable = variable
        self.kind = kind
        self._table = table
        self.rules = list(rules or [])
        self.degenerate_bins = list(degenerate_bins)

    @property
    def table(self) -> pd.DataFrame:
        return self._table.copy()

    @property
    def bins(self) -> List[Any]:
        return self._table["bin"].tolist()

    @property
    def information_value(self) -> float:
        return float(self._table["miv"].sum())

    @property
    def zero_bins(self) -> int:
        return int(((self._table["outcome_0"] == 0) | (self._table["outcome_1"] == 0)).sum())

    @property
    def is_degenerate(self) -> bool:
        return bool(self.degenerate_bins)

    @property
    def woe_map(self) -> Dict[Any, float]:
        return dict(zip(self._table["bin"], self._table["woe"].astype(float)))

    def __len__(self):
        return len(self._table)

    def __repr__(self):
        return (
            f"WOETable(variable={self.variable!r}, kind={self.kind.value}, "
            f"bins={len(self)}, information_value={self.information_value:.6f})"
        )


def _order_bins(observed: List[Any], order: Optional[Sequence[Any]]) -> List[Any]:
    if order is None:
        return observed
    present = set(observed)
    ordered = [b for b in dict.fromkeys(order) if b in present]
    seen = set(ordered)
    return ordered + [b for b in observed if b not in seen]


def compute_woe_table(
    bins: pd.Series,
    outcome: pd.Series,
    variable: str,
    kind: PredictorKind = PredictorKind.CATEGORICAL,
    order: Optional[Sequence[Any]] = None,
    rules: Optional[Sequence[IntervalRule]] = None,
) -> WOETable:
    """
    Compute WOE and marginal information value per bin.

    For each bin::

        pct_0 = outcome_0 / total_0
        pct_1 = outcome_1 / total_1
        odds  = pct_0 / pct_1
        woe   = ln(odds)
        miv   = (pct_0 - pct_1) * woe

    Bins where one outcome class is absent make ``odds`` or ``woe`` infinite;
    those bins get ``odds=1``, ``woe=0`` and ``miv=0`` and a
    :class:`DegenerateBinWarning` is emitted. The information value of the
    variable (sum of ``miv``) is not clipped otherwise.

    Parameters
    ----------
    bins : pd.Series
        Bin identifier per observation (category or interval label).
    outcome : pd.Series
        Normalized outcome (0 = good, 1 = bad) aligned with ``bins``.
    variable : str
        Name reported in the table.
    kind : PredictorKind
        Kind of the predictor.
    order : sequence, optional
        Preferred bin order. Bins not listed follow in first-seen order.
    rules : sequence of IntervalRule, optional
        Interval rules of a continuous variable; their predicates are
        attached to the matching rows.

    Returns
    -------
    WOETable
    """
    if len(bins) != len(outcome):
        raise BinAssignmentError(
            f"Got {len(bins)} bin assignments for {len(outcome)} outcomes", variable
        )
    if bins.isna().any():
        raise BinAssignmentError(
            f"{int(bins.isna().sum())} observations have no bin", variable
        )

    frame = pd.DataFrame({"bin": bins.to_numpy(), "y": outcome.to_numpy()})
    grouped = frame.groupby("bin", sort=False)["y"].agg(["sum", "count"])
    grouped = grouped.reindex(_order_bins(grouped.index.tolist(), order))

    outcome_1 = grouped["sum"].to_numpy(dtype="int64")
    outcome_0 = grouped["count"].to_numpy(dtype="int64") - outcome_1
    total_0, total_1 = outcome_0.sum(), outcome_1.sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        pct_0 = outcome_0 / total_0
        pct_1 = outcome_1 / total_1
        odds = pct_0 / pct_1
        woe = np.log(odds)
        miv = (pct_0 - pct_1) * woe

    table = pd.DataFrame({
        "variable": variable,
        "bin": grouped.index.tolist(),
        "outcome_0": outcome_0,
        "outcome_1": outcome_1,
        "pct_0": pct_0,
        "pct_1": pct_1,
        "odds": odds,
        "woe": woe,
        "miv": miv,
    }, columns=WOE_COLUMNS)

    degenerate = table.loc[(table["outcome_0"] == 0) | (table["outcome_1"] == 0), "bin"].tolist()
    if degenerate:
        undefined = ~np.isfinite(table["odds"]) | ~np.isfinite(table["woe"])
        table.loc[undefined, ["odds", "woe", "miv"]] = [1.0, 0.0, 0.0]
        message = (
            f"Variable '{variable}' has {len(degenerate)} bin(s) with zero counts "
            f"for one outcome class: {degenerate}. WOE set to 0 for those bins."
        )
        logger.warning(message)
        warnings.warn(message, DegenerateBinWarning, stacklevel=2)

    if kind is PredictorKind.CONTINUOUS:
        predicates = {rule.label: rule.predicate for rule in rules or []}
        table["predicate"] = table["bin"].map(predicates)

    return WOETable(variable, kind, table, rules=rules, degenerate_bins=degenerate)
