# feature_engineering/summary.py
from typing import Iterable

import pandas as pd
from tabulate import tabulate

from .statistics import WOETable

# (lower bound, label), checked top-down; lower bounds are inclusive
STRENGTH_THRESHOLDS = [
    (1.0, "Suspicious"),
    (0.5, "Very strong"),
    (0.2, "Strong"),
    (0.1, "Average"),
    (0.02, "Weak"),
]
WEAKEST_LABEL = "Very weak"

SUMMARY_COLUMNS = ["Variable", "InformationValue", "Bins", "ZeroBins", "Strength"]


def classify_strength(information_value: float) -> str:
    """Qualitative strength of a variable given its information value."""
    for lower, label in STRENGTH_THRESHOLDS:
        if information_value >= lower:
            return label
    return WEAKEST_LABEL


def iv_summary(woe_tables: Iterable[WOETable]) -> pd.DataFrame:
    """
    One row per variable with its information value, bin counts and strength,
    sorted by information value, highest first. Ties keep the input order.
    """
    rows = []
    for table in woe_tables:
        iv = table.information_value
        rows.append({
            "Variable": table.variable,
            "InformationValue": iv,
            "Bins": len(table),
            "ZeroBins": table.zero_bins,
            "Strength": classify_strength(iv),
        })
    summary = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    summary = summary.sort_values("InformationValue", ascending=False, kind="mergesort")
    return summary.reset_index(drop=True)


def format_summary(summary: pd.DataFrame, floatfmt: str = ".4f") -> str:
    return tabulate(summary, headers="keys", tablefmt="github", showindex=False, floatfmt=floatfmt)
