# feature_engineering/tree.py
"""
Supervised binary split-tree learners.

The rule parser only depends on :class:`LeafPath` and :class:`Condition`,
so any learner that can report, per leaf, the conjunction of threshold
comparisons leading to it can replace :class:`DecisionTreeLearner`.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.tree import DecisionTreeClassifier

logger = logging.getLogger(__name__)

COMPARATORS = ("<", "<=", ">", ">=")
DEFAULT_MIN_LEAF_FRACTION = 0.1
DEFAULT_COMPLEXITY_THRESHOLD = 0.001


class Condition(NamedTuple):
    """One ``variable comparator threshold`` test on a decision path."""
    variable: str
    comparator: str
    threshold: float


class LeafPath(NamedTuple):
    node_id: int
    conditions: Tuple[Condition, ...]


class FittedSplitTree:
    """
    Result of fitting a split tree on one predictor.

    Attributes
    ----------
    variable : str
        Predictor the tree was fitted on.
    leaf_ids : np.ndarray
        Leaf identifier of every observation used in the fit, in input order.
    leaf_paths : list of LeafPath
        Decision path of every leaf.
    """

    def __init__(self, variable: str, leaf_ids: np.ndarray, leaf_paths: List[LeafPath], model=None):
        self.variable = variable
        self.leaf_ids = leaf_ids
        self.leaf_paths = leaf_paths
        self.model = model

    @property
    def n_leaves(self) -> int:
        return len(self.leaf_paths)


class SplitTreeLearner(ABC):
    @abstractmethod
    def fit(self, x: pd.Series, y: pd.Series) -> FittedSplitTree:
        """Fit ``y ~ x`` and return the leaves with their decision paths."""
        raise NotImplementedError


class DecisionTreeLearner(SplitTreeLearner):
    """
    Binary split-tree learner backed by scikit-learn's ``DecisionTreeClassifier``.

    Parameters
    ----------
    min_leaf_size : int or float, optional
        Minimum number of observations per leaf. A float in (0, 1) is read
        as a fraction of the rows. Defaults to 10% of the rows (at least 1).
    complexity_threshold : float, default=0.001
        Cost-complexity pruning parameter (``ccp_alpha``). Splits that do not
        improve the tree by at least this much are pruned.
    max_depth : int, optional
        Maximum depth of the tree.
    random_state : int, default=1234
        Random seed for reproducibility.
    """

    def __init__(
        self,
        min_leaf_size: Optional[float] = None,
        complexity_threshold: float = DEFAULT_COMPLEXITY_THRESHOLD,
        max_depth: Optional[int] = None,
        random_state: int = 1234,
    ):
        self.min_leaf_size = min_leaf_size
        self.complexity_threshold = complexity_threshold
        self.max_depth = max_depth
        self.random_state = random_state

    def _resolve_min_leaf_size(self, n_rows: int) -> int:
        size = self.min_leaf_size
        if size is None:
            size = DEFAULT_MIN_LEAF_FRACTION
        if isinstance(size, float) and 0 < size < 1:
            size = int(np.floor(size * n_rows))
        return max(int(size), 1)

    def fit(self, x: pd.Series, y: pd.Series) -> FittedSplitTree:
        X_train = np.asarray(x, dtype=float).reshape(-1, 1)
        y_train = np.asarray(y)
        min_leaf = self._resolve_min_leaf_size(len(X_train))

        model = DecisionTreeClassifier(
            min_samples_leaf=min_leaf,
            ccp_alpha=self.complexity_threshold,
            max_depth=self.max_depth,
            random_state=self.random_state,
        )
        model.fit(X_train, y_train)

        variable = str(x.name)
        paths = extract_leaf_paths(model, variable, training_thresholds(model, X_train))
        logger.debug(
            "Fitted tree on '%s': %d rows, min leaf %d, %d leaves",
            variable, len(X_train), min_leaf, len(paths),
        )
        return FittedSplitTree(variable, model.apply(X_train), paths, model=model)


def training_thresholds(model: DecisionTreeClassifier, X: np.ndarray) -> Dict[int, float]:
    """
    Split thresholds restated on the float64 scale of the training values.

    sklearn compares ``float32(x)`` with its thresholds, so comparing the
    float64 value with the same threshold can send it the other way. Each
    threshold is moved between the largest training value that went left
    and the smallest one that went right, so plain float64 comparisons
    reproduce the fitted partition.
    """
    tree = model.tree_
    values = np.asarray(X, dtype=np.float64).ravel()
    as_fitted = values.astype(np.float32).astype(np.float64)
    thresholds = {}
    for node in np.flatnonzero(tree.children_left != tree.children_right):
        went_left = as_fitted <= tree.threshold[node]
        lo, hi = values[went_left].max(), values[~went_left].min()
        mid = lo + (hi - lo) / 2
        thresholds[int(node)] = float(mid if lo <= mid < hi else lo)
    return thresholds


def extract_leaf_paths(
    model: DecisionTreeClassifier,
    variable: str,
    thresholds: Optional[Dict[int, float]] = None,
) -> List[LeafPath]:
    """
    Walk a fitted sklearn tree and collect the decision path of every leaf.

    Left children take ``x <= threshold`` and right children ``x > threshold``.
    ``thresholds`` overrides the tree's own threshold per split node.
    A tree without any split has a single leaf with an empty path.
    """
    tree = model.tree_
    paths = []
    stack = [(0, ())]
    while stack:
        node, conditions = stack.pop()
        left, right = tree.children_left[node], tree.children_right[node]
        if left == right:
            paths.append(LeafPath(int(node), conditions))
            continue
        if thresholds is not None and int(node) in thresholds:
            threshold = thresholds[int(node)]
        else:
            threshold = float(tree.threshold[node])
        stack.append((right, conditions + (Condition(variable, ">", threshold),)))
        stack.append((left, conditions + (Condition(variable, "<=", threshold),)))
    return sorted(paths, key=lambda p: p.node_id)
