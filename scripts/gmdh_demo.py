"""Run the three searches on a csv file, or on synthetic data.

usage: python scripts/gmdh_demo.py [path.csv target_column]
"""

import sys

import numpy as np

from gmdhsearch.dataset import Dataset, load_csv, split_dataset
from gmdhsearch.layered import LayeredEvolution
from gmdhsearch.report import format_layers, format_model, format_ranking
from gmdhsearch.search import PairwiseSearch, SubsetSearch


def synthetic_dataset(n_samples=300, n_features=8, seed=0) -> Dataset:
    rng = np.random.default_rng(seed)
    X = rng.uniform(-2, 2, size=(n_samples, n_features))
    y = 1.0 + X[:, 0] * X[:, 1] - 0.5 * X[:, 2] ** 2 + 0.3 * X[:, 4]
    y += 0.1 * rng.normal(size=n_samples)
    return Dataset(X, y)


def main():
    if len(sys.argv) == 3:
        target = sys.argv[2]
        dataset = load_csv(sys.argv[1], int(target) if target.isdigit() else target)
    else:
        dataset = synthetic_dataset()
    print(dataset)

    # full feature set is slow for the subset search
    if dataset.n_features > 10:
        dataset = dataset.head_features(10)
        print(f"using first {dataset.n_features} features")

    train, valid = split_dataset(dataset, 0.7)
    print(f"train: {train.n_samples} samples, validation: {valid.n_samples} samples")

    print("\n=== pairwise search ===")
    ranking = PairwiseSearch(verbose=1).fit(train, valid)
    print("\ntop 3 models:\n")
    print(format_ranking(ranking, train.feature_names, k=3))

    print("\n=== layered search ===")
    evo = LayeredEvolution(n_layers=3, models_per_layer=5, verbose=1)
    layers = evo.fit(train, valid)
    print(format_layers(layers))
    if evo.best_model is not None:
        print(f"\nbest model (layer {evo.best_layer.index}):")
        print(format_model(evo.best_model))

    print("\n=== subset search ===")
    max_size = min(6, train.n_features)
    ranking = SubsetSearch(min(2, max_size), max_size, n_jobs=-1, verbose=2).fit(
        train, valid
    )
    print("\ntop 10 models:\n")
    print(format_ranking(ranking, train.feature_names, k=10))


if __name__ == "__main__":
    main()
