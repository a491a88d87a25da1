"""
Feature Engineering
===================

Weight of Evidence (WOE) and Information Value (IV) for binary outcomes.

Continuous predictors are discretized with a supervised decision tree whose
leaves become numeric interval rules; categorical predictors use their raw
values as bins. Both paths end in the same WOE table shape, which feeds the
IV summary and the WOE encoder.

Supports both Pandas and PySpark DataFrames.

Submodules
----------
- outcome: canonical {0 = good, 1 = bad} view of the outcome column
- tree: split-tree learner contract and the scikit-learn learner
- rules: interval rules parsed from tree leaf paths
- binning: bin assignment (e.g., TreeBinner, CategoricalBinner)
- statistics: per-bin WOE / IV computation (WOETable)
- summary: ranked information value summary
- encoder: WOE encoder (WOEEncoder)
- feature_pipeline: orchestration over several variables

Example
-------
>>> import pandas as pd
>>> from woetrack.feature_engineering import InformationValueAnalyzer
>>>
>>> df = pd.DataFrame({
...     "age": [22, 25, 45, 33, 40, 50, 60, 35, 28, 31],
...     "city": ["A", "A", "B", "B", "B", "C", "C", "C", "C", "C"],
...     "target": [1, 0, 1, 0, 0, 0, 0, 0, 0, 1],
... })
>>>
>>> analyzer = InformationValueAnalyzer().fit(df, "target", ["city", "age"])
>>> summary = analyzer.summary()
>>> df_woe = analyzer.transform(df)
"""

from .base import PredictorKind
from .binning import CategoricalBinner, TreeBinner
from .encoder import WOEEncoder
from .feature_pipeline import InformationValueAnalyzer, information_values, woe_table
from .outcome import normalize_outcome
from .rules import IntervalRule, parse_leaf_paths
from .statistics import WOETable, compute_woe_table
from .summary import classify_strength, format_summary, iv_summary
from .tree import DecisionTreeLearner

__all__ = [
    "PredictorKind",
    "CategoricalBinner",
    "TreeBinner",
    "WOEEncoder",
    "InformationValueAnalyzer",
    "information_values",
    "woe_table",
    "normalize_outcome",
    "IntervalRule",
    "parse_leaf_paths",
    "WOETable",
    "compute_woe_table",
    "classify_strength",
    "format_summary",
    "iv_summary",
    "DecisionTreeLearner",
]
