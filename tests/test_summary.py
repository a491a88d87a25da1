import unittest
import pandas as pd

from woetrack.feature_engineering.statistics import compute_woe_table
from woetrack.feature_engineering.summary import (
    SUMMARY_COLUMNS,
    classify_strength,
    format_summary,
    iv_summary,
)


class TestClassifyStrength(unittest.TestCase):

    def test_documented_examples(self):
        self.assertEqual(classify_strength(0.15), "Average")
        self.assertEqual(classify_strength(0.6), "Very strong")
        self.assertEqual(classify_strength(0.01), "Very weak")

    def test_lower_bounds_are_inclusive(self):
        self.assertEqual(classify_strength(1.0), "Suspicious")
        self.assertEqual(classify_strength(0.5), "Very strong")
        self.assertEqual(classify_strength(0.2), "Strong")
        self.assertEqual(classify_strength(0.1), "Average")
        self.assertEqual(classify_strength(0.02), "Weak")
        self.assertEqual(classify_strength(0.0199), "Very weak")
        self.assertEqual(classify_strength(3.7), "Suspicious")
        self.assertEqual(classify_strength(0.0), "Very weak")


class TestIVSummary(unittest.TestCase):

    def setUp(self):
        outcome = pd.Series([1, 0, 1, 0, 0, 0, 0, 0, 0, 1])
        self.city = compute_woe_table(
            pd.Series(["A", "A", "B", "B", "B", "C", "C", "C", "C", "C"]), outcome, "city"
        )
        # perfectly separating variable: every bin is degenerate
        self.flag = compute_woe_table(
            pd.Series(["y", "n", "y", "n", "n", "n", "n", "n", "n", "y"]), outcome, "flag"
        )
        self.noise = compute_woe_table(
            pd.Series(["p", "q", "p", "q", "p", "q", "p", "q", "p", "q"]), outcome, "noise"
        )

    def test_columns_and_sort_order(self):
        summary = iv_summary([self.noise, self.flag, self.city])
        self.assertEqual(list(summary.columns), SUMMARY_COLUMNS)
        values = summary["InformationValue"].tolist()
        self.assertEqual(values, sorted(values, reverse=True))
        self.assertEqual(summary["Variable"].tolist(), ["city", "noise", "flag"])

    def test_row_contents(self):
        summary = iv_summary([self.city, self.flag]).set_index("Variable")
        self.assertEqual(summary.loc["city", "Bins"], 3)
        self.assertEqual(summary.loc["city", "ZeroBins"], 0)
        self.assertAlmostEqual(summary.loc["city", "InformationValue"], self.city.information_value)
        self.assertEqual(
            summary.loc["city", "Strength"], classify_strength(self.city.information_value)
        )
        self.assertEqual(summary.loc["flag", "ZeroBins"], 2)
        self.assertEqual(summary.loc["flag", "InformationValue"], 0.0)

    def test_ties_keep_input_order(self):
        summary = iv_summary([self.city, self.city])
        self.assertEqual(summary["Variable"].tolist(), ["city", "city"])

    def test_empty_summary(self):
        summary = iv_summary([])
        self.assertTrue(summary.empty)
        self.assertEqual(list(summary.columns), SUMMARY_COLUMNS)

    def test_format_summary(self):
        text = format_summary(iv_summary([self.city]))
        self.assertIn("Variable", text)
        self.assertIn("city", text)
        self.assertIn(f"{self.city.information_value:.4f}", text)
