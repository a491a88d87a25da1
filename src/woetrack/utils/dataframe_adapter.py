import logging
from typing import Hashable, List, Optional, Sequence

import pandas as pd
from pyspark.sql import Column
from pyspark.sql import DataFrame as SparkDataFrame

from woetrack.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


class DataFrameAdapter:
    """
    Common surface over the two supported backends.

    The analyzer collects its inputs through :meth:`to_pandas` and the encoder
    writes its outputs through :meth:`add_column`; nothing else in the package
    needs to know which backend it was handed.
    """

    def __init__(self, df):
        if isinstance(df, pd.DataFrame):
            self.backend = "pandas"
        elif isinstance(df, SparkDataFrame):
            self.backend = "spark"
        else:
            raise InvalidInputError(
                f"Unsupported dataframe type: {type(df).__name__}"
            )
        self.df = df

    @property
    def columns(self) -> List[Hashable]:
        return list(self.df.columns)

    def require_columns(self, columns: Sequence[Hashable]) -> "DataFrameAdapter":
        present = set(self.df.columns)
        missing = [c for c in columns if c not in present]
        if missing:
            raise InvalidInputError(f"Columns not found in data: {missing}")
        return self

    def to_pandas(self, columns: Optional[Sequence[Hashable]] = None) -> pd.DataFrame:
        """
        Local pandas copy of ``columns`` (every column by default).

        Spark data is projected before it is collected, so only the requested
        columns leave the cluster.
        """
        columns = self.columns if columns is None else list(columns)
        self.require_columns(columns)
        if self.backend == "pandas":
            return self.df.loc[:, columns].copy()
        logger.debug("Collecting %d Spark column(s) to pandas", len(columns))
        return self.df.select(*[f"`{c}`" for c in columns]).toPandas()

    def add_column(self, column_name: Hashable, values) -> "DataFrameAdapter":
        """Add a pandas Series (pandas backend) or a Spark Column (Spark backend)."""
        if self.backend == "pandas":
            if isinstance(values, Column):
                raise InvalidInputError("Cannot add a Spark column to a pandas DataFrame")
            self.df[column_name] = values
        else:
            if not isinstance(values, Column):
                raise InvalidInputError("Spark DataFrames take Spark column expressions only")
            self.df = self.df.withColumn(column_name, values)
        return self
