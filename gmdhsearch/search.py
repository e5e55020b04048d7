from collections.abc import Sequence
from timeit import default_timer
from typing import Callable, Literal
import math
import os

import joblib
import polars as pl
from tqdm import tqdm

from gmdhsearch.combinations import count_subsets, pairs, subsets
from gmdhsearch.dataset import Dataset, check_pair
from gmdhsearch.models import (
    LinearModel,
    PolynomialModel,
    fit_linear,
    fit_polynomial,
    linear_features,
    quadratic_features,
)
from gmdhsearch.report import format_model
from gmdhsearch.stats import score

Model = PolynomialModel | LinearModel


class Ranking(Sequence):
    """Fitted models, sorted by validation error.

    Ties keep the order in which the candidates were enumerated.
    """

    def __init__(self, models, runtime: float = 0.0) -> None:
        self._models = tuple(rank_models(models))
        self.runtime = runtime

    def __getitem__(self, i):
        return self._models[i]

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"Ranking({len(self)} models, best={self.best!r})"

    @property
    def best(self) -> Model | None:
        return self._models[0] if self._models else None

    def top(self, k: int) -> list:
        """The first `min(k, len(self))` models."""
        return list(self._models[:k])

    def to_frame(self, feature_names: Sequence[str] | None = None) -> pl.DataFrame:
        """Ranking as a table.

        ## parameters
        - feature_names (list[str] | None): replace feature indices by names.

        ## returns
        - frame (DataFrame): columns rank, features, error, r2, degenerate, coeffs.
        """
        if feature_names is None:
            features = [list(m.features) for m in self._models]
            features_dtype = pl.List(pl.Int64)
        else:
            features = [[feature_names[f] for f in m.features] for m in self._models]
            features_dtype = pl.List(pl.String)

        return pl.DataFrame(
            {
                "rank": list(range(1, len(self) + 1)),
                "features": features,
                "error": [m.error for m in self._models],
                "r2": [m.r2 for m in self._models],
                "degenerate": [m.is_degenerate for m in self._models],
                "coeffs": [m.coeffs.tolist() for m in self._models],
            },
            schema={
                "rank": pl.Int32,
                "features": features_dtype,
                "error": pl.Float64,
                "r2": pl.Float64,
                "degenerate": pl.Boolean,
                "coeffs": pl.List(pl.Float64),
            },
        )


def rank_models(models) -> list:
    """Stable sort by ascending error, NaN errors last."""
    return sorted(models, key=lambda m: (math.isnan(m.error), m.error))


def fit_pair(train: Dataset, valid: Dataset, i: int, j: int) -> PolynomialModel:
    """Fit the quadratic model of features `i`, `j` and score it on `valid`."""
    solution = fit_polynomial(train.column(i), train.column(j), train.target)
    pred = quadratic_features(valid.column(i), valid.column(j)) @ solution.x

    error, r2 = score(pred, valid.target)
    return PolynomialModel(solution.x, i, j, error, r2, solution.is_degenerate)


def fit_subset(train: Dataset, valid: Dataset, features) -> LinearModel:
    """Fit the affine model of a feature subset and score it on `valid`."""
    solution = fit_linear(train.select(features), train.target)
    pred = linear_features(valid.select(features)) @ solution.x

    error, r2 = score(pred, valid.target)
    return LinearModel(solution.x, features, error, r2, solution.is_degenerate)


class CombinatorialSearch:
    """Fit and score one model per candidate feature combination.

    Candidates are independent, so they can be evaluated in parallel. Results
    are collected in enumeration order before ranking, so the ranking does not
    depend on `n_jobs`.
    """

    def __init__(
        self,
        n_jobs: int = 1,
        verbose: Literal[0, 1, 2] = 0,
    ) -> None:
        """
        ## parameters
        - n_jobs (int): number of parallel jobs. -1 uses cpu_count.
        - verbose (int): amount of status information printed
        """
        self.verbose = verbose

        ## handle number of parallel jobs
        cpu_count = joblib.cpu_count()
        if n_jobs == -1:
            self.n_jobs = cpu_count
        elif n_jobs > cpu_count:
            self.n_jobs = cpu_count
            if verbose >= 1:
                print(f"Note: setting n_jobs to cpu_count = {cpu_count}")
        elif 0 < n_jobs:
            self.n_jobs = n_jobs
        else:
            raise ValueError(f"Invalid number of jobs: {n_jobs} ({type(n_jobs)})")

        self.ranking_: Ranking | None = None

    def fit(self, train: Dataset, valid: Dataset) -> Ranking:
        raise NotImplementedError

    def _eval_candidates(
        self,
        fit_candidate: Callable,
        train: Dataset,
        valid: Dataset,
        candidates,
        n_candidates: int,
    ) -> Ranking:
        """Evaluate all candidates and rank the fitted models."""
        t_start = default_timer()

        if self.verbose >= 1:
            print(f"Fitting {n_candidates} candidate models")

        if self.verbose >= 2:
            candidates = tqdm(candidates, total=n_candidates)

        if self.n_jobs > 1:
            # multi-process mode
            para = joblib.Parallel(n_jobs=self.n_jobs)
            models = para(joblib.delayed(fit_candidate)(train, valid, c) for c in candidates)
        else:
            # single-threaded mode
            models = [fit_candidate(train, valid, c) for c in candidates]

        ranking = Ranking(models, runtime=default_timer() - t_start)
        self.ranking_ = ranking

        if self.verbose >= 1:
            print(f"Elapsed time {ranking.runtime:.2f} s.")
            if ranking.best is not None:
                print("best model: " + format_model(ranking.best, train.feature_names))

        return ranking


class PairwiseSearch(CombinatorialSearch):
    """Quadratic models over every unordered pair of features."""

    def fit(self, train: Dataset, valid: Dataset) -> Ranking:
        """Fit one model per pair `(i, j)`, `i < j`, in lexicographic order.

        ## returns
        - ranking (Ranking): `C(F, 2)` models, empty for fewer than 2 features.
        """
        check_pair(train, valid)
        n = train.n_features
        return self._eval_candidates(
            _fit_pair_candidate, train, valid, pairs(n), math.comb(n, 2)
        )


class SubsetSearch(CombinatorialSearch):
    """Affine models over every feature subset with a size in a range."""

    def __init__(
        self,
        min_size: int = 1,
        max_size: int | None = None,
        n_jobs: int = 1,
        verbose: Literal[0, 1, 2] = 0,
    ) -> None:
        """
        ## parameters
        - min_size, max_size (int): inclusive subset size range. `max_size=None`
          allows subsets of all features.
        - n_jobs (int): number of parallel jobs. -1 uses cpu_count.
        - verbose (int): amount of status information printed
        """
        if min_size < 1:
            raise ValueError(f"min_size must be at least 1, not {min_size}")
        if max_size is not None and max_size < min_size:
            raise ValueError(f"Invalid size range: [{min_size}, {max_size}]")

        super().__init__(n_jobs=n_jobs, verbose=verbose)
        self.min_size = min_size
        self.max_size = max_size

    def size_range(self, n_features: int) -> tuple[int, int]:
        max_size = n_features if self.max_size is None else self.max_size
        if max_size > n_features:
            raise ValueError(
                f"max_size {max_size} exceeds the number of features ({n_features})"
            )
        if self.min_size > max_size:
            raise ValueError(
                f"min_size {self.min_size} exceeds the number of features ({n_features})"
            )
        return self.min_size, max_size

    def fit(self, train: Dataset, valid: Dataset) -> Ranking:
        """Fit one model per subset, sizes ascending, each size in
        lexicographic order.

        ## returns
        - ranking (Ranking): `sum(C(F, s))` models for `s` in the size range.
        """
        check_pair(train, valid)
        n = train.n_features
        lo, hi = self.size_range(n)
        return self._eval_candidates(
            fit_subset, train, valid, subsets(n, lo, hi), count_subsets(n, lo, hi)
        )


def _fit_pair_candidate(train: Dataset, valid: Dataset, pair: tuple[int, int]):
    return fit_pair(train, valid, *pair)


def save_frame(frame: pl.DataFrame, path: str):
    """Save a result table. Supported formats: `.parquet`, `.csv`, `.json`.

    Note: csv has no list type, list columns are joined with `;`.
    """
    _, ext = os.path.splitext(path)

    # save file based on extension
    if ext == ".parquet":
        frame.write_parquet(path)
    elif ext == ".csv":
        frame.with_columns(
            pl.col(name).cast(pl.List(pl.String)).list.join(";")
            for name, dtype in frame.schema.items()
            if dtype.base_type() == pl.List
        ).write_csv(path)
    elif ext == ".json":
        frame.write_json(path)
    else:
        raise ValueError(f"Unsupported file format: {ext}")


def load_frame(path: str) -> pl.DataFrame:
    """Load a result table written by `save_frame`."""
    _, ext = os.path.splitext(path)

    # load file based on extension
    if ext == ".parquet":
        return pl.read_parquet(path)
    elif ext == ".csv":
        frame = pl.read_csv(
            path, schema_overrides={"features": pl.String, "coeffs": pl.String}
        )
        return frame.with_columns(
            pl.col("features").str.split(";"),
            pl.col("coeffs").str.split(";").cast(pl.List(pl.Float64)),
        )
    elif ext == ".json":
        return pl.read_json(path)
    else:
        raise ValueError(f"Unsupported file format: {ext}")
