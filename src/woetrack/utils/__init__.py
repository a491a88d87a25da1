from .dataframe_adapter import DataFrameAdapter

__all__ = ["DataFrameAdapter"]
