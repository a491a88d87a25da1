import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from woetrack.exceptions import BinAssignmentError, InvalidInputError
from .base import BaseBinner, PredictorKind
from .rules import IntervalRule, check_partition, locate, parse_leaf_paths, sort_rules
from .tree import DEFAULT_COMPLEXITY_THRESHOLD, DecisionTreeLearner, FittedSplitTree, SplitTreeLearner

logger = logging.getLogger(__name__)


class MissingBin:
    """Bin of missing values. Shown as "N/A" but never equal to a real category."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __reduce__(self):
        return (MissingBin, ())

    def __repr__(self):
        return "N/A"

    __str__ = __repr__


MISSING_LABEL = MissingBin()


class CategoricalBinner(BaseBinner):
    """
    Categorical binner: every distinct value is its own bin.

    ``fit`` records the bin order: the declared category order for
    ``category`` dtypes, first-seen order otherwise. Missing values are
    collected in a trailing :data:`MISSING_LABEL` bin, shown as ``N/A``.
    """
    kind = PredictorKind.CATEGORICAL

    def __init__(self):
        self.bins: List[Any] = []

    def fit(self, X: pd.Series, y: pd.Series = None) -> List[Any]:
        observed = pd.unique(X.dropna())
        if isinstance(X.dtype, pd.CategoricalDtype):
            present = set(observed)
            self.bins = [c for c in X.cat.categories if c in present]
        else:
            self.bins = list(observed)
        if X.isna().any():
            self.bins.append(MISSING_LABEL)
        return self.bins

    def transform(self, X: pd.Series) -> pd.Series:
        return X.astype(object).where(X.notna(), MISSING_LABEL)


def assign_leaf_bins(leaf_ids, rules: Dict[int, IntervalRule], index: pd.Index, variable: Optional[str] = None) -> pd.Series:
    """
    Label each observation with the interval rule of the leaf it fell into.

    Raises
    ------
    BinAssignmentError
        If the number of leaf ids does not match the observations or a leaf
        has no rule.
    """
    leaf_ids = np.asarray(leaf_ids)
    if len(leaf_ids) != len(index):
        raise BinAssignmentError(
            f"Got {len(leaf_ids)} leaf ids for {len(index)} observations", variable
        )
    labels = {node_id: rule.label for node_id, rule in rules.items()}
    assigned = pd.Series(leaf_ids, index=index).map(labels)
    unmatched = assigned.isna()
    if unmatched.any():
        leaves = sorted(set(leaf_ids[unmatched.to_numpy()].tolist()))
        raise BinAssignmentError(
            f"{int(unmatched.sum())} observations fell into leaves without a rule: {leaves}",
            variable,
        )
    return assigned.astype(object)


class TreeBinner(BaseBinner):
    """
    Decision tree-based binner.

    Fits a binary split tree of the target on the feature, turns every leaf
    path into an :class:`IntervalRule` and uses the rules as bins.

    Parameters
    ----------
    learner : SplitTreeLearner, optional
        Tree learner to use. Defaults to a :class:`DecisionTreeLearner` built
        from the remaining parameters.
    min_leaf_size : int or float, optional
        Minimum observations per leaf (a float in (0, 1) is a fraction of
        the rows). Defaults to 10% of the rows.
    complexity_threshold : float, default=0.001
        Cost-complexity pruning threshold.
    max_depth : int, optional
        Maximum depth of the tree.
    random_state : int, default=1234
        Random seed for reproducibility.
    """
    kind = PredictorKind.CONTINUOUS

    def __init__(
        self,
        learner: Optional[SplitTreeLearner] = None,
        min_leaf_size: Optional[float] = None,
        complexity_threshold: float = DEFAULT_COMPLEXITY_THRESHOLD,
        max_depth: Optional[int] = None,
        random_state: int = 1234,
    ):
        self.learner = learner or DecisionTreeLearner(
            min_leaf_size=min_leaf_size,
            complexity_threshold=complexity_threshold,
            max_depth=max_depth,
            random_state=random_state,
        )
        self.tree: Optional[FittedSplitTree] = None
        self.rules: Dict[int, IntervalRule] = {}
        self.bins: List[IntervalRule] = []

    def fit(self, X: pd.Series, y: pd.Series) -> List[IntervalRule]:
        """
        Fit the tree on the non-missing values of ``X``.

        Returns
        -------
        bins : list of IntervalRule
            Rules ordered by lower bound.
        """
        variable = str(X.name)
        mask = X.notna()
        if not mask.any():
            raise InvalidInputError("Feature has no non-missing values", variable)
        observed = X.loc[mask].to_numpy(dtype=float)
        if not np.isfinite(observed).all():
            raise InvalidInputError("Feature holds infinite values", variable)

        try:
            tree = self.learner.fit(X.loc[mask], y.loc[mask])
        except ValueError as err:
            raise InvalidInputError(f"Tree learner rejected the feature: {err}", variable) from err
        rules = parse_leaf_paths(tree.leaf_paths, variable)
        check_partition(rules.values(), variable)

        self.tree = tree
        self.rules = rules
        self.bins = sort_rules(rules.values())
        logger.debug("'%s' binned into %s", variable, [r.label for r in self.bins])
        return self.bins

    def _check_fitted(self):
        if self.tree is None:
            raise RuntimeError("Transformer not fitted yet")

    def assign(self, X: pd.Series) -> pd.Series:
        """
        Bin labels for the observations the tree was fitted on, using the
        tree's own leaf assignment. Missing values get :data:`MISSING_LABEL`.
        """
        self._check_fitted()
        mask = X.notna()
        labels = pd.Series(MISSING_LABEL, index=X.index, dtype=object)
        labels.loc[mask] = assign_leaf_bins(self.tree.leaf_ids, self.rules, X.index[mask], str(X.name))
        return labels

    def transform(self, X: pd.Series) -> pd.Series:
        """Bin labels for arbitrary values by interval containment."""
        self._check_fitted()
        position = locate(X, self.bins).to_numpy()
        # missing values locate to -1, which picks the trailing missing-value label
        labels = np.array([r.label for r in self.bins] + [MISSING_LABEL], dtype=object)
        return pd.Series(labels[position], index=X.index)
