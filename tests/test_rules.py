import math
import unittest
import numpy as np
import pandas as pd

from woetrack.exceptions import MalformedRuleError
from woetrack.feature_engineering.rules import (
    IntervalRule,
    check_partition,
    locate,
    parse_leaf_path,
    parse_leaf_paths,
    sort_rules,
)
from woetrack.feature_engineering.tree import Condition, LeafPath


def three_leaf_paths(variable="x"):
    return [
        LeafPath(1, (Condition(variable, "<=", 2.5),)),
        LeafPath(3, (Condition(variable, ">", 2.5), Condition(variable, "<=", 4.5))),
        LeafPath(4, (Condition(variable, ">", 2.5), Condition(variable, ">", 4.5))),
    ]


class TestIntervalRuleParser(unittest.TestCase):

    def test_parse_bounds_and_labels(self):
        rules = parse_leaf_paths(three_leaf_paths())
        self.assertEqual(set(rules), {1, 3, 4})
        self.assertEqual(rules[1].label, "<;2.5>")
        self.assertEqual(rules[3].label, "(2.5;4.5>")
        self.assertEqual(rules[4].label, "(4.5;>")
        self.assertIsNone(rules[1].lower)
        self.assertIsNone(rules[4].upper)

    def test_inclusive_lower_and_exclusive_upper_label(self):
        path = LeafPath(7, (Condition("x", ">=", 12), Condition("x", "<", 40)))
        rule = parse_leaf_path(path)
        self.assertEqual(rule.label, "<12;40)")
        self.assertTrue(rule.lower_inclusive)
        self.assertFalse(rule.upper_inclusive)

    def test_tightest_bound_wins(self):
        path = LeafPath(5, (
            Condition("x", ">=", 1),
            Condition("x", ">", 3),
            Condition("x", "<", 10),
            Condition("x", "<=", 8),
        ))
        rule = parse_leaf_path(path)
        self.assertEqual((rule.lower, rule.lower_inclusive), (3.0, False))
        self.assertEqual((rule.upper, rule.upper_inclusive), (8.0, True))
        self.assertEqual(rule.label, "(3;8>")

    def test_strict_comparison_wins_on_equal_thresholds(self):
        path = LeafPath(2, (Condition("x", ">=", 5), Condition("x", ">", 5)))
        rule = parse_leaf_path(path)
        self.assertFalse(rule.lower_inclusive)
        path = LeafPath(2, (Condition("x", "<", 5), Condition("x", "<=", 5)))
        rule = parse_leaf_path(path)
        self.assertFalse(rule.upper_inclusive)

    def test_predicate(self):
        path = LeafPath(7, (Condition("age", ">=", 12), Condition("age", "<", 40.5)))
        rule = parse_leaf_path(path)
        self.assertEqual(rule.predicate, "`age` >= 12.0 and `age` < 40.5")
        df = pd.DataFrame({"age": [11, 12, 40, 40.5, 41]})
        self.assertEqual(df.eval(rule.predicate).tolist(), [False, True, True, False, False])

    def test_predicate_unbounded_side(self):
        rule = parse_leaf_paths(three_leaf_paths())[1]
        self.assertEqual(rule.predicate, "`x` <= 2.5")

    def test_contains(self):
        rule = parse_leaf_paths(three_leaf_paths())[3]
        self.assertFalse(rule.contains(2.5))
        self.assertTrue(rule.contains(2.6))
        self.assertTrue(rule.contains(4.5))
        self.assertFalse(rule.contains(4.6))
        self.assertFalse(rule.contains(np.nan))

    def test_empty_path_is_malformed(self):
        with self.assertRaises(MalformedRuleError):
            parse_leaf_paths([LeafPath(0, ())], variable="x")

    def test_malformed_error_carries_variable(self):
        with self.assertRaises(MalformedRuleError) as ctx:
            parse_leaf_paths([LeafPath(0, ())], variable="income")
        self.assertEqual(ctx.exception.variable, "income")
        self.assertIn("income", str(ctx.exception))

    def test_unknown_comparator_is_malformed(self):
        with self.assertRaises(MalformedRuleError):
            parse_leaf_path(LeafPath(1, (Condition("x", "==", 3),)))

    def test_mixed_variables_are_malformed(self):
        path = LeafPath(1, (Condition("x", ">", 3), Condition("y", "<", 5)))
        with self.assertRaises(MalformedRuleError):
            parse_leaf_path(path)

    def test_empty_interval_is_malformed(self):
        path = LeafPath(1, (Condition("x", ">", 5), Condition("x", "<", 3)))
        with self.assertRaises(MalformedRuleError):
            parse_leaf_path(path)

    def test_sort_rules_by_lower_bound(self):
        rules = parse_leaf_paths(three_leaf_paths())
        ordered = sort_rules([rules[4], rules[1], rules[3]])
        self.assertEqual([r.node_id for r in ordered], [1, 3, 4])


class TestPartition(unittest.TestCase):

    def test_tree_rules_partition_the_line(self):
        rules = parse_leaf_paths(three_leaf_paths())
        check_partition(rules.values())
        for value in [-1e12, -1, 0, 2.5, 2.50001, 3, 4.5, 4.6, 1e12]:
            matches = [r for r in rules.values() if r.contains(value)]
            self.assertEqual(len(matches), 1, value)

    def test_gap_detected(self):
        rules = [
            IntervalRule(1, None, False, 2, True, "x"),
            IntervalRule(2, 3, False, None, False, "x"),
        ]
        with self.assertRaises(MalformedRuleError):
            check_partition(rules)

    def test_overlap_detected(self):
        rules = [
            IntervalRule(1, None, False, 3, True, "x"),
            IntervalRule(2, 3, True, None, False, "x"),
        ]
        with self.assertRaises(MalformedRuleError):
            check_partition(rules)

    def test_open_end_detected(self):
        rules = [IntervalRule(1, 0, True, None, False, "x")]
        with self.assertRaises(MalformedRuleError):
            check_partition(rules)


class TestLocate(unittest.TestCase):

    def test_locate_uses_boundary_inclusivity(self):
        rules = parse_leaf_paths(three_leaf_paths()).values()
        x = pd.Series([2.5, 2.6, 4.5, 100, np.nan, -5])
        self.assertEqual(locate(x, rules).tolist(), [0, 1, 1, 2, -1, 0])

    def test_locate_inclusive_lower(self):
        rules = [
            IntervalRule(1, None, False, 10, False, "x"),
            IntervalRule(2, 10, True, None, False, "x"),
        ]
        self.assertEqual(locate(pd.Series([9.99, 10, 10.01]), rules).tolist(), [0, 1, 1])

    def test_locate_agrees_with_contains(self):
        rules = sort_rules(parse_leaf_paths(three_leaf_paths()).values())
        values = pd.Series(np.linspace(-2, 8, 41))
        positions = locate(values, rules)
        for value, pos in zip(values, positions):
            self.assertTrue(rules[pos].contains(value))

    def test_single_rule_holds_everything(self):
        rule = IntervalRule(0, None, False, None, False, "x")
        self.assertEqual(rule.label, "<;>")
        self.assertEqual(locate(pd.Series([-math.inf, 0.0, 5.0]), [rule]).tolist(), [0, 0, 0])
