# feature_engineering/outcome.py
import logging
from typing import Any, Dict

import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from woetrack.exceptions import InvalidOutcomeError

logger = logging.getLogger(__name__)

GOOD_BAD_LABELS = {"good": 0, "bad": 1}


def outcome_mapping(y: pd.Series) -> Dict[Any, int]:
    """
    Work out how the two observed outcome values map onto {0 = good, 1 = bad}.

    Rules, first match wins:

    1. categorical with labels exactly {"good", "bad"}: bad -> 1
    2. numeric with distinct values exactly {0, 1}: identity
    3. any other two-level categorical: the second level -> 1, where levels
       follow the declared category order for ``category`` dtypes and the
       sort order otherwise

    Parameters
    ----------
    y : pd.Series
        Outcome column.

    Returns
    -------
    dict
        Mapping from each observed value to 0 or 1.

    Raises
    ------
    InvalidOutcomeError
        If the column has missing values, other than two distinct values,
        or is numeric with values other than {0, 1}.
    """
    if not isinstance(y, pd.Series):
        raise InvalidOutcomeError(f"Outcome must be a pandas Series, got {type(y).__name__}")
    if y.isna().any():
        raise InvalidOutcomeError(f"Outcome '{y.name}' contains missing values")

    values = list(pd.unique(y))
    if len(values) != 2:
        raise InvalidOutcomeError(
            f"Outcome '{y.name}' must have exactly two distinct values, found {len(values)}"
        )

    numeric = is_numeric_dtype(y) and not is_bool_dtype(y)
    if not numeric and set(values) == set(GOOD_BAD_LABELS):
        return dict(GOOD_BAD_LABELS)

    if numeric:
        if set(values) != {0, 1}:
            raise InvalidOutcomeError(
                f"Numeric outcome '{y.name}' must take values {{0, 1}}, found {sorted(values)}"
            )
        return {v: int(v) for v in values}

    if isinstance(y.dtype, pd.CategoricalDtype):
        levels = [c for c in y.cat.categories if c in values]
    else:
        levels = sorted(values, key=str)
    return {levels[0]: 0, levels[1]: 1}


def normalize_outcome(y: pd.Series) -> pd.Series:
    """Return ``y`` as an int series where 1 marks the "bad" event."""
    mapping = outcome_mapping(y)
    logger.debug("Outcome '%s' normalized with mapping %s", y.name, mapping)
    return y.map(mapping).astype("int64")
