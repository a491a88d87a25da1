import logging

from woetrack.exceptions import (
    WOEError,
    InvalidInputError,
    InvalidOutcomeError,
    MalformedRuleError,
    BinAssignmentError,
    DegenerateBinWarning,
)
from woetrack.feature_engineering import (
    CategoricalBinner,
    DecisionTreeLearner,
    InformationValueAnalyzer,
    IntervalRule,
    PredictorKind,
    TreeBinner,
    WOEEncoder,
    WOETable,
    classify_strength,
    information_values,
    iv_summary,
    normalize_outcome,
    parse_leaf_paths,
    woe_table,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "WOEError",
    "InvalidInputError",
    "InvalidOutcomeError",
    "MalformedRuleError",
    "BinAssignmentError",
    "DegenerateBinWarning",
    "CategoricalBinner",
    "DecisionTreeLearner",
    "InformationValueAnalyzer",
    "IntervalRule",
    "PredictorKind",
    "TreeBinner",
    "WOEEncoder",
    "WOETable",
    "classify_strength",
    "information_values",
    "iv_summary",
    "normalize_outcome",
    "parse_leaf_paths",
    "woe_table",
]
