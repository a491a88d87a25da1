# feature_engineering/rules.py
import math
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from woetrack.exceptions import MalformedRuleError
from .tree import COMPARATORS, LeafPath


def _format_bound(value: float) -> str:
    return f"{value:.10g}"


class IntervalRule:
    """
    One bin of a continuous variable: a numeric interval taken from a tree leaf.

    Either side may be unbounded (``None``). Inclusivity is stored per side.

    Parameters
    ----------
    node_id : int
        Leaf of the fitted tree the rule comes from.
    lower, upper : float or None
        Interval bounds; ``None`` means unbounded on that side.
    lower_inclusive, upper_inclusive : bool
        Whether the bound itself belongs to the interval.
    variable : str
        Predictor the rule applies to.
    """

    def __init__(
        self,
        node_id: int,
        lower: Optional[float],
        lower_inclusive: bool,
        upper: Optional[float],
        upper_inclusive: bool,
        variable: str,
    ):
        self.node_id = node_id
        self.lower = lower
        self.lower_inclusive = lower_inclusive if lower is not None else False
        self.upper = upper
        self.upper_inclusive = upper_inclusive if upper is not None else False
        self.variable = variable

    @property
    def label(self) -> str:
        """Human readable form, e.g. ``"<12;40)"``, ``"<;12)"`` or ``"(40;>"``."""
        lower = "" if self.lower is None else _format_bound(self.lower)
        upper = "" if self.upper is None else _format_bound(self.upper)
        left = "(" if self.lower is not None and not self.lower_inclusive else "<"
        right = ")" if self.upper is not None and not self.upper_inclusive else ">"
        return f"{left}{lower};{upper}{right}"

    @property
    def predicate(self) -> str:
        """
        Boolean expression selecting the rows inside the interval.

        The string is valid both for ``pandas.DataFrame.eval`` and for Spark
        SQL (``pyspark.sql.functions.expr``).
        """
        column = f"`{self.variable}`"
        parts = []
        if self.lower is not None:
            op = ">=" if self.lower_inclusive else ">"
            parts.append(f"{column} {op} {float(self.lower)!r}")
        if self.upper is not None:
            op = "<=" if self.upper_inclusive else "<"
            parts.append(f"{column} {op} {float(self.upper)!r}")
        return " and ".join(parts)

    @property
    def sort_key(self):
        lower = -math.inf if self.lower is None else self.lower
        return (lower, not self.lower_inclusive)

    def contains(self, value) -> bool:
        if value is None or pd.isna(value):
            return False
        if self.lower is not None:
            if value < self.lower or (value == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if value > self.upper or (value == self.upper and not self.upper_inclusive):
                return False
        return True

    def __eq__(self, other):
        if not isinstance(other, IntervalRule):
            return NotImplemented
        return (
            self.node_id == other.node_id
            and self.variable == other.variable
            and self.lower == other.lower
            and self.upper == other.upper
            and self.lower_inclusive == other.lower_inclusive
            and self.upper_inclusive == other.upper_inclusive
        )

    def __hash__(self):
        return hash((self.node_id, self.variable, self.lower, self.upper))

    def __repr__(self):
        return f"IntervalRule(node_id={self.node_id}, variable={self.variable!r}, label={self.label!r})"


def parse_leaf_path(path: LeafPath, variable: Optional[str] = None) -> IntervalRule:
    """
    Reduce one leaf path to an interval.

    Among the lower conditions (``>`` / ``>=``) the largest threshold wins,
    among the upper ones (``<`` / ``<=``) the smallest. On equal thresholds
    the strict comparison is the tighter one.
    """
    if not path.conditions:
        raise MalformedRuleError(f"Leaf {path.node_id} has no numeric conditions", variable)

    lower, lower_inclusive = None, False
    upper, upper_inclusive = None, False
    for condition in path.conditions:
        if variable is None:
            variable = condition.variable
        elif condition.variable != variable:
            raise MalformedRuleError(
                f"Leaf {path.node_id} mixes conditions on '{variable}' and '{condition.variable}'",
                variable,
            )
        if condition.comparator not in COMPARATORS:
            raise MalformedRuleError(
                f"Leaf {path.node_id} uses unsupported comparator '{condition.comparator}'",
                variable,
            )
        threshold = float(condition.threshold)
        if math.isnan(threshold):
            raise MalformedRuleError(f"Leaf {path.node_id} has a NaN threshold", variable)

        inclusive = condition.comparator in ("<=", ">=")
        if condition.comparator in (">", ">="):
            if lower is None or threshold > lower or (threshold == lower and not inclusive):
                lower, lower_inclusive = threshold, inclusive
        else:
            if upper is None or threshold < upper or (threshold == upper and not inclusive):
                upper, upper_inclusive = threshold, inclusive

    if lower is not None and upper is not None:
        if lower > upper or (lower == upper and not (lower_inclusive and upper_inclusive)):
            raise MalformedRuleError(f"Leaf {path.node_id} describes an empty interval", variable)

    return IntervalRule(path.node_id, lower, lower_inclusive, upper, upper_inclusive, variable)


def parse_leaf_paths(paths: Iterable[LeafPath], variable: Optional[str] = None) -> Dict[int, IntervalRule]:
    """
    Turn the leaf paths of a fitted tree into interval rules keyed by leaf.

    Rules are keyed by node identity and not ordered numerically; use
    :func:`sort_rules` when ordered bins are needed.
    """
    return {path.node_id: parse_leaf_path(path, variable) for path in paths}


def sort_rules(rules: Iterable[IntervalRule]) -> List[IntervalRule]:
    return sorted(rules, key=lambda r: r.sort_key)


def check_partition(rules: Iterable[IntervalRule], variable: Optional[str] = None) -> None:
    """
    Check that the rules are disjoint and together cover the whole real line.

    Raises
    ------
    MalformedRuleError
        On a gap, an overlap or a missing unbounded end.
    """
    ordered = sort_rules(rules)
    if not ordered:
        raise MalformedRuleError("No interval rules to check", variable)
    if ordered[0].lower is not None:
        raise MalformedRuleError(f"Nothing covers values below {ordered[0].label}", variable)
    if ordered[-1].upper is not None:
        raise MalformedRuleError(f"Nothing covers values above {ordered[-1].label}", variable)

    for prev, cur in zip(ordered, ordered[1:]):
        if prev.upper is None or cur.lower is None:
            raise MalformedRuleError(f"Rules {prev.label} and {cur.label} overlap", variable)
        if prev.upper < cur.lower or (
            prev.upper == cur.lower and not (prev.upper_inclusive or cur.lower_inclusive)
        ):
            raise MalformedRuleError(f"Gap between rules {prev.label} and {cur.label}", variable)
        if prev.upper > cur.lower or (prev.upper_inclusive and cur.lower_inclusive):
            raise MalformedRuleError(f"Rules {prev.label} and {cur.label} overlap", variable)


def locate(x: pd.Series, rules: Iterable[IntervalRule]) -> pd.Series:
    """
    Index of the containing rule for each value, using a sorted-range lookup.

    ``rules`` must form a partition (see :func:`check_partition`). Missing
    values get -1.
    """
    ordered = sort_rules(rules)
    values = pd.to_numeric(x, errors="coerce").to_numpy(dtype=float)
    result = np.full(len(values), -1, dtype=int)
    if not ordered:
        return pd.Series(result, index=x.index)

    # edges[i] is the lower bound of ordered[i + 1]
    edges = np.array([r.lower for r in ordered[1:]], dtype=float)
    position = np.searchsorted(edges, values, side="right")
    # a value sitting exactly on an edge belongs below it when the upper rule excludes it
    on_edge = np.zeros(len(values), dtype=bool)
    idx = position - 1
    valid = idx >= 0
    exclusive_lower = np.array([not r.lower_inclusive for r in ordered[1:]], dtype=bool)
    on_edge[valid] = (values[valid] == edges[idx[valid]]) & exclusive_lower[idx[valid]]
    position = np.where(on_edge, position - 1, position)

    present = ~np.isnan(values)
    result[present] = position[present]
    return pd.Series(result, index=x.index)
