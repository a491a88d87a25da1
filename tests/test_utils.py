import shutil
import unittest
import pandas as pd

from woetrack.exceptions import InvalidInputError
from woetrack.utils.dataframe_adapter import DataFrameAdapter

HAS_JAVA = shutil.which("java") is not None


class TestDataFrameAdapterPandas(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.df = pd.DataFrame({
            "a": [1, 2, 3, 4],
            "b": [10, 20, 30, 40]
        })

    def setUp(self):
        self.adapter = DataFrameAdapter(self.df.copy())

    def test_backend_detection(self):
        self.assertEqual(self.adapter.backend, "pandas")

    def test_columns(self):
        self.assertEqual(self.adapter.columns, ["a", "b"])

    def test_require_columns(self):
        self.assertIs(self.adapter.require_columns(["a"]), self.adapter)
        with self.assertRaises(InvalidInputError):
            self.adapter.require_columns(["a", "z"])

    def test_to_pandas_columns_is_a_copy(self):
        selected = self.adapter.to_pandas(["b"])
        pd.testing.assert_frame_equal(selected, self.df[["b"]])
        selected.loc[0, "b"] = -1
        self.assertEqual(self.adapter.df.loc[0, "b"], 10)

    def test_to_pandas_unknown_column(self):
        with self.assertRaises(InvalidInputError):
            self.adapter.to_pandas(["a", "z"])

    def test_add_column(self):
        self.adapter.add_column("c", self.df["a"] + 1)
        self.assertIn("c", self.adapter.df.columns)
        expected_series = self.df["a"] + 1
        expected_series.name = "c"
        pd.testing.assert_series_equal(self.adapter.df["c"], expected_series)

    def test_to_pandas(self):
        df_out = self.adapter.to_pandas()
        pd.testing.assert_frame_equal(df_out, self.df)

    def test_invalid_dataframe_type(self):
        with self.assertRaises(InvalidInputError):
            DataFrameAdapter("not a df")


@unittest.skipUnless(HAS_JAVA, "PySpark needs a Java runtime")
class TestDataFrameAdapterSpark(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        from pyspark.sql import SparkSession
        cls.spark = SparkSession.builder \
            .master("local[1]") \
            .appName("DataFrameAdapterTests") \
            .getOrCreate()
        cls.df = cls.spark.createDataFrame(
            [(1, 10), (2, 20), (3, 30), (4, 40)],
            ["a", "b"]
        )

    @classmethod
    def tearDownClass(cls):
        cls.spark.stop()

    def setUp(self):
        self.adapter = DataFrameAdapter(self.df)

    def test_backend_detection(self):
        self.assertEqual(self.adapter.backend, "spark")

    def test_to_pandas_columns(self):
        pd_df = self.adapter.to_pandas(["a"])
        expected = pd.DataFrame({"a": [1, 2, 3, 4]})
        pd.testing.assert_frame_equal(pd_df, expected)

    def test_add_column_rejects_pandas_series(self):
        with self.assertRaises(InvalidInputError):
            self.adapter.add_column("c", pd.Series([1, 2, 3, 4]))

    def test_add_column(self):
        from pyspark.sql import functions as F
        self.adapter.add_column("c", F.col("a") + 1)
        df_out = self.adapter.df.toPandas()
        expected = pd.DataFrame({"a": [1, 2, 3, 4], "b": [10, 20, 30, 40], "c": [2, 3, 4, 5]})
        pd.testing.assert_frame_equal(df_out, expected)

    def test_to_pandas(self):
        df_out = self.adapter.to_pandas()
        expected = pd.DataFrame({"a": [1, 2, 3, 4], "b": [10, 20, 30, 40]})
        pd.testing.assert_frame_equal(df_out, expected)
