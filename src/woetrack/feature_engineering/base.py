# feature_engineering/base.py
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class PredictorKind(Enum):
    CATEGORICAL = "categorical"
    CONTINUOUS = "continuous"


class Transformer(ABC):
    @abstractmethod
    def fit(self, X, y=None) -> Any:
        """Fit the transformer. May return useful information (e.g. the bins)."""
        raise NotImplementedError

    @abstractmethod
    def transform(self, X):
        raise NotImplementedError

    def fit_transform(self, X, y=None):
        self.fit(X, y)
        return self.transform(X)


class BaseBinner(Transformer):
    """Specialised binner; convention: fit returns the bins and stores them in self.bins."""
    kind: PredictorKind

    @abstractmethod
    def fit(self, X, y=None) -> Any:
        """Must return the bins (categories or interval rules) and store them in self.bins"""
        raise NotImplementedError
