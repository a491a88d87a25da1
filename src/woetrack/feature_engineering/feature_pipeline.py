import logging
import numbers
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd
from joblib import Parallel, delayed
from pandas.api.types import is_bool_dtype, is_numeric_dtype
from pyspark.sql import DataFrame as SparkDataFrame

from woetrack.exceptions import InvalidInputError, WOEError
from woetrack.utils.dataframe_adapter import DataFrameAdapter
from .base import PredictorKind
from .binning import CategoricalBinner, TreeBinner, MISSING_LABEL
from .encoder import WOEEncoder
from .outcome import normalize_outcome
from .statistics import WOETable, compute_woe_table
from .summary import format_summary, iv_summary
from .tree import DEFAULT_COMPLEXITY_THRESHOLD

logger = logging.getLogger(__name__)

ON_ERROR_MODES = ("raise", "skip")


def predictor_kind(x: pd.Series) -> PredictorKind:
    """
    Decide once per variable whether it is binned as categorical or continuous.

    Booleans and ``category`` dtypes are categorical, other numeric dtypes
    continuous. Object columns must hold only numbers or only non-numbers.
    """
    variable = str(x.name)
    if is_bool_dtype(x) or isinstance(x.dtype, pd.CategoricalDtype):
        return PredictorKind.CATEGORICAL
    if is_numeric_dtype(x):
        return PredictorKind.CONTINUOUS

    values = x.dropna()
    numeric = values.map(lambda v: isinstance(v, numbers.Number) and not isinstance(v, bool))
    if numeric.all() and not values.empty:
        return PredictorKind.CONTINUOUS
    if numeric.any():
        raise InvalidInputError("Column mixes numeric and non-numeric values", variable)
    return PredictorKind.CATEGORICAL


def _build_woe_table(x: pd.Series, y: pd.Series, tree_params: dict) -> WOETable:
    variable = x.name
    try:
        kind = predictor_kind(x)
        if kind is PredictorKind.CONTINUOUS:
            x = pd.to_numeric(x)
            binner = TreeBinner(**tree_params)
            rules = binner.fit(x, y)
            bins = binner.assign(x)
            order = [r.label for r in rules] + [MISSING_LABEL]
            table = compute_woe_table(bins, y, variable, kind, order=order, rules=rules)
        else:
            binner = CategoricalBinner()
            order = binner.fit(x)
            table = compute_woe_table(binner.transform(x), y, variable, kind, order=order)
    except WOEError as err:
        if err.variable is None:
            err.variable = variable
        raise
    logger.info(
        "Variable '%s' (%s): %d bins, IV=%.6f",
        variable, kind.value, len(table), table.information_value,
    )
    return table


def _process_variable(x: pd.Series, y: pd.Series, tree_params: dict, on_error: str) -> Tuple[Optional[WOETable], Optional[WOEError]]:
    try:
        return _build_woe_table(x, y, tree_params), None
    except WOEError as err:
        if on_error == "raise":
            raise
        return None, err


class InformationValueAnalyzer:
    """
    Weight of Evidence / Information Value analysis over several variables.

    Numeric predictors are discretized with a decision tree of the outcome
    on the predictor; every other predictor uses its raw values as bins.
    Fitted tables feed the summary and the WOE encoder.

    Parameters
    ----------
    min_leaf_size : int or float, optional
        Minimum observations per tree leaf; defaults to 10% of the rows.
    complexity_threshold : float, default=0.001
        Tree cost-complexity pruning threshold.
    max_depth : int, optional
        Maximum tree depth.
    random_state : int, default=1234
        Random seed of the tree learner.
    on_error : {"raise", "skip"}, default="raise"
        ``"raise"`` stops the whole run at the first failing variable.
        ``"skip"`` records the failure in ``errors`` and goes on.
    n_jobs : int, default=1
        Number of variables processed in parallel (joblib).

    Notes
    -----
    Without an explicit ``features`` list only the non-numeric columns are
    analysed; numeric columns have to be named to be included.
    """

    def __init__(
        self,
        min_leaf_size: Optional[float] = None,
        complexity_threshold: float = DEFAULT_COMPLEXITY_THRESHOLD,
        max_depth: Optional[int] = None,
        random_state: int = 1234,
        on_error: str = "raise",
        n_jobs: int = 1,
    ):
        if on_error not in ON_ERROR_MODES:
            raise ValueError(f"on_error must be one of {ON_ERROR_MODES}, got '{on_error}'")
        self.tree_params = {
            "min_leaf_size": min_leaf_size,
            "complexity_threshold": complexity_threshold,
            "max_depth": max_depth,
            "random_state": random_state,
        }
        self.on_error = on_error
        self.n_jobs = n_jobs
        self.woe_tables: Dict[str, WOETable] = {}
        self.errors: Dict[str, WOEError] = {}
        self.degenerate: Dict[str, list] = {}

    @staticmethod
    def default_features(df: pd.DataFrame, target: str) -> List[str]:
        """Every non-numeric column except the target."""
        features = [
            c for c in df.columns
            if c != target and (is_bool_dtype(df[c]) or not is_numeric_dtype(df[c]))
        ]
        skipped = [c for c in df.columns if c != target and c not in features]
        if skipped:
            logger.info("Numeric columns not analysed unless named explicitly: %s", skipped)
        return features

    def fit(
        self,
        df: Union[pd.DataFrame, SparkDataFrame],
        target: str,
        features: Optional[List[str]] = None,
    ) -> "InformationValueAnalyzer":
        """
        Compute one WOE table per feature.

        Parameters
        ----------
        df : pd.DataFrame or Spark DataFrame
            Observations. Spark data is collected to Pandas.
        target : str
            Binary outcome column.
        features : list of str, optional
            Predictors to analyse. Defaults to the non-numeric columns.
        """
        adapter = DataFrameAdapter(df)
        adapter.require_columns([target])
        if features is not None:
            features = list(features)
            if target in features:
                raise InvalidInputError(f"Target '{target}' cannot also be a feature")
            selected = [target] + features
        else:
            selected = None

        data = adapter.to_pandas(selected).reset_index(drop=True)
        if features is None:
            features = self.default_features(data, target)
        y = normalize_outcome(data[target])

        logger.info("Computing WOE/IV for %d variable(s) against '%s'", len(features), target)
        if self.n_jobs == 1:
            results = [_process_variable(data[f], y, self.tree_params, self.on_error) for f in features]
        else:
            results = Parallel(n_jobs=self.n_jobs)(
                delayed(_process_variable)(data[f], y, self.tree_params, self.on_error) for f in features
            )

        self.woe_tables, self.errors, self.degenerate = {}, {}, {}
        for feature, (table, error) in zip(features, results):
            if error is not None:
                logger.warning("Skipping variable '%s': %s", feature, error)
                self.errors[feature] = error
                continue
            self.woe_tables[feature] = table
            if table.is_degenerate:
                self.degenerate[feature] = table.degenerate_bins
        return self

    def _check_fitted(self):
        if not self.woe_tables and not self.errors:
            raise RuntimeError("Analyzer not fitted yet")

    def summary(self) -> pd.DataFrame:
        """Information value summary, strongest variable first."""
        self._check_fitted()
        return iv_summary(self.woe_tables.values())

    def report(self) -> str:
        return format_summary(self.summary())

    def transform(self, df: Union[pd.DataFrame, SparkDataFrame], suffix: str = "_woe"):
        """Add a ``<variable>_woe`` column for every fitted variable."""
        self._check_fitted()
        return WOEEncoder(self.woe_tables.values()).transform(df, suffix=suffix)

    def fit_transform(self, df, target: str, features: Optional[List[str]] = None, suffix: str = "_woe"):
        return self.fit(df, target, features).transform(df, suffix=suffix)


def woe_table(
    df: pd.DataFrame,
    target: str,
    feature: str,
    min_leaf_size: Optional[float] = None,
    complexity_threshold: float = DEFAULT_COMPLEXITY_THRESHOLD,
    max_depth: Optional[int] = None,
    random_state: int = 1234,
) -> WOETable:
    """WOE table of a single variable. Errors always propagate."""
    analyzer = InformationValueAnalyzer(
        min_leaf_size=min_leaf_size,
        complexity_threshold=complexity_threshold,
        max_depth=max_depth,
        random_state=random_state,
    )
    return analyzer.fit(df, target, [feature]).woe_tables[feature]


def information_values(df: pd.DataFrame, target: str, features: Optional[List[str]] = None, **params) -> List[WOETable]:
    """WOE tables of several variables, in the order they were requested."""
    analyzer = InformationValueAnalyzer(**params).fit(df, target, features)
    return list(analyzer.woe_tables.values())
