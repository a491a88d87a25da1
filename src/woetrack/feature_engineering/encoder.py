# feature_engineering/encoder.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd
from pyspark.sql import Column
from pyspark.sql import DataFrame as SparkDataFrame
from pyspark.sql import functions as F

from woetrack.utils.dataframe_adapter import DataFrameAdapter
from .base import PredictorKind, Transformer
from .binning import MISSING_LABEL, CategoricalBinner
from .outcome import normalize_outcome
from .rules import locate, sort_rules
from .statistics import WOETable, compute_woe_table

logger = logging.getLogger(__name__)


def _to_python(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value


class WOEEncoder(Transformer):
    """
    Weight of Evidence (WOE) encoder for binary classification.

    Replaces every value by the WOE of the bin it falls into, using fitted
    :class:`WOETable` objects: exact match for categorical variables,
    interval containment for continuous ones. No refitting happens at
    transform time.

    Can encode both Pandas and Spark DataFrames.

    Attributes
    ----------
    unseen_value : float
        Value assigned to values that match no bin.
    woe_tables : dict
        Fitted tables by variable name: {col_name: WOETable}.
    """

    def __init__(self, woe_tables: Optional[Iterable[WOETable]] = None, unseen_value: float = 0.0):
        """
        Initialize WOEEncoder.

        Parameters
        ----------
        woe_tables : iterable of WOETable, optional
            Tables to encode with; more can be added with ``import_tables``
            or ``fit``.
        unseen_value : float, default=0.0
            Value assigned to values that match no bin.
        """
        self.unseen_value = unseen_value
        self.woe_tables: Dict[str, WOETable] = {}
        if woe_tables is not None:
            self.import_tables(woe_tables)

    def import_tables(self, woe_tables: Iterable[WOETable]) -> "WOEEncoder":
        """
        Import fitted WOE tables.

        Parameters
        ----------
        woe_tables : iterable of WOETable
            Tables produced by the statistics engine or the analyzer.
        """
        for table in woe_tables:
            self.woe_tables[table.variable] = table
        return self

    def fit(self, X: pd.Series, y: pd.Series, col_name: Optional[str] = None) -> Dict[Any, float]:
        """
        Fit the WOE mapping of a single categorical column.

        Parameters
        ----------
        X : pd.Series
            Feature column to encode; each distinct value is a bin.
        y : pd.Series
            Binary outcome column.
        col_name : str, optional
            Name to store the mapping under. Defaults to ``X.name``.

        Returns
        -------
        dict
            Mapping from category to WOE value.
        """
        col_name = X.name if col_name is None else col_name
        binner = CategoricalBinner()
        binner.fit(X)
        table = compute_woe_table(
            binner.transform(X).reset_index(drop=True),
            normalize_outcome(y).reset_index(drop=True),
            col_name,
            PredictorKind.CATEGORICAL,
            order=binner.bins,
        )
        self.woe_tables[col_name] = table
        return table.woe_map

    def _table_for(self, col_name: str) -> WOETable:
        if col_name not in self.woe_tables:
            raise RuntimeError(f"WOEEncoder has not been fit for column '{col_name}' yet")
        return self.woe_tables[col_name]

    def _transform_pandas(self, X: pd.Series, col_name: str) -> pd.Series:
        """Apply the WOE table of ``col_name`` to a Pandas Series."""
        table = self._table_for(col_name)
        woe_map = table.woe_map
        missing_woe = woe_map.get(MISSING_LABEL, self.unseen_value)

        if table.kind is PredictorKind.CATEGORICAL:
            values = X.astype(object).map(lambda v: woe_map.get(v, self.unseen_value))
            return values.where(X.notna(), missing_woe).astype(float)

        rules = sort_rules(table.rules)
        rule_woe = [woe_map.get(r.label, self.unseen_value) for r in rules]
        # -1 marks missing values
        lookup = np.array(rule_woe + [missing_woe], dtype=float)
        return pd.Series(lookup[locate(X, rules).to_numpy()], index=X.index)

    def _transform_spark(self, col: Column, col_name: str) -> Column:
        """Apply the WOE table of ``col_name`` to a Spark Column."""
        table = self._table_for(col_name)
        woe_map = table.woe_map
        missing_woe = woe_map.get(MISSING_LABEL, self.unseen_value)

        if table.kind is PredictorKind.CATEGORICAL:
            expr = F.when(col.isNull(), F.lit(float(missing_woe)))
            for cat, woe in woe_map.items():
                if cat is MISSING_LABEL:
                    continue
                expr = expr.when(col == F.lit(_to_python(cat)), F.lit(float(woe)))
        else:
            expr = F.when(col.isNull() | F.isnan(col), F.lit(float(missing_woe)))
            for rule in sort_rules(table.rules):
                woe = woe_map.get(rule.label, self.unseen_value)
                expr = expr.when(F.expr(rule.predicate), F.lit(float(woe)))
        return expr.otherwise(F.lit(float(self.unseen_value)))

    def transform(
        self,
        X: Union[pd.DataFrame, SparkDataFrame],
        columns: Optional[Union[str, List[str]]] = None,
        suffix: str = "_woe",
    ) -> Union[pd.DataFrame, SparkDataFrame]:
        """
        Add one ``<column><suffix>`` WOE column per fitted variable.

        Parameters
        ----------
        X : pd.DataFrame or Spark DataFrame
            Data to transform. It is not modified.
        columns : str or list of str, optional
            Columns to transform. Defaults to every fitted variable.
        suffix : str, optional
            Suffix to add to transformed columns (default is "_woe").

        Returns
        -------
        pd.DataFrame or Spark DataFrame
            Input with additional WOE columns.
        """
        if columns is None:
            columns = list(self.woe_tables)
        elif not isinstance(columns, (list, tuple)):
            columns = [columns]
        if not self.woe_tables:
            raise RuntimeError("Transformer not fitted yet")

        adapter = DataFrameAdapter(X.copy() if isinstance(X, pd.DataFrame) else X)
        adapter.require_columns(columns)
        for col in columns:
            if adapter.backend == "pandas":
                adapter.add_column(f"{col}{suffix}", self._transform_pandas(adapter.df[col], col))
            else:
                adapter.add_column(f"{col}{suffix}", self._transform_spark(F.col(f"`{col}`"), col))
        logger.info("WOE-encoded %d column(s)", len(columns))
        return adapter.df
