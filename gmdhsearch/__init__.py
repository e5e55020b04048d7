"""
GMDH search: combinatorial model selection on a validation set.
"""

from gmdhsearch.dataset import Dataset, InputShapeError, load_csv, split_dataset
from gmdhsearch.layered import Layer, LayeredEvolution
from gmdhsearch.models import LinearModel, PolynomialModel
from gmdhsearch.search import PairwiseSearch, Ranking, SubsetSearch

__all__ = [
    "Dataset",
    "InputShapeError",
    "Layer",
    "LayeredEvolution",
    "LinearModel",
    "PairwiseSearch",
    "PolynomialModel",
    "Ranking",
    "SubsetSearch",
    "load_csv",
    "split_dataset",
]
