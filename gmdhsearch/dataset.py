"""
Datasets

- the `Dataset` container used by every search
- csv loading and train/validation splitting
"""

import os

import numpy as np
import polars as pl


class InputShapeError(ValueError):
    """Inconsistent shapes or invalid feature references."""


class Dataset:
    """Samples, target and feature names for a search.

    Samples are stored as one contiguous row-major float64 array, missing
    values are NaN. Arrays are copied on construction and made read-only.
    Empty `samples` give a dataset with no samples and no features.
    """

    __slots__ = ["samples", "target", "feature_names"]

    def __init__(
        self,
        samples,
        target,
        feature_names: list[str] | tuple[str, ...] | None = None,
    ) -> None:
        try:
            samples = np.array(samples, dtype=np.float64, order="C")
        except ValueError as err:
            raise InputShapeError(f"invalid samples: {err}") from err
        if samples.ndim < 2:
            # a flat sequence is one sample, an empty one is no samples
            samples = samples.reshape(1, -1) if samples.size else np.empty((0, 0))
        target = np.array(target, dtype=np.float64).ravel()

        if samples.ndim != 2:
            raise InputShapeError(f"samples must be 2-D, got shape {samples.shape}")
        if samples.shape[0] != target.shape[0]:
            raise InputShapeError(
                f"inconsistent sample count: {samples.shape[0]} rows, "
                f"{target.shape[0]} targets"
            )

        if feature_names is None:
            feature_names = [f"x{j}" for j in range(samples.shape[1])]
        feature_names = tuple(str(name) for name in feature_names)
        if len(feature_names) != samples.shape[1]:
            raise InputShapeError(
                f"{len(feature_names)} feature names for {samples.shape[1]} features"
            )

        samples.flags.writeable = False
        target.flags.writeable = False

        self.samples = samples
        self.target = target
        self.feature_names = feature_names

    def __str__(self) -> str:
        return dataset_info(self)

    def __len__(self) -> int:
        return self.n_samples

    @property
    def n_samples(self) -> int:
        return self.samples.shape[0]

    @property
    def n_features(self) -> int:
        return self.samples.shape[1]

    @classmethod
    def from_frame(cls, frame: pl.DataFrame, target: str | int):
        """Build a dataset from a polars DataFrame.

        ## parameters
        - frame (DataFrame): numeric columns, nulls are treated as missing.
        - target (str | int): name or index of the target column.
        """
        target_name = _resolve_column(frame.columns, target)
        features = frame.drop(target_name)

        non_numeric = [
            name for name, dtype in features.schema.items() if not dtype.is_numeric()
        ]
        if non_numeric:
            raise ValueError(f"Non-numeric feature columns: {non_numeric}")

        samples = features.cast(pl.Float64).fill_null(np.nan).to_numpy()
        y = frame[target_name].cast(pl.Float64).fill_null(np.nan).to_numpy()
        return cls(samples, y, features.columns)

    def column(self, j: int) -> np.ndarray:
        check_feature_indices([j], self.n_features)
        return self.samples[:, j]

    def select(self, indices) -> np.ndarray:
        """Sample matrix restricted to the given feature columns, shape (n, k)."""
        indices = list(indices)
        check_feature_indices(indices, self.n_features)
        return self.samples[:, indices]

    def head_features(self, k: int) -> "Dataset":
        """Dataset with only the first `k` feature columns."""
        if not 1 <= k <= self.n_features:
            raise ValueError(f"Cannot keep {k} of {self.n_features} features")
        return Dataset(self.samples[:, :k], self.target, self.feature_names[:k])


def check_feature_indices(indices, n_features: int, increasing: bool = False):
    """Validate feature references against a column space of `n_features`.

    Raises `InputShapeError` for indices out of range, or (with `increasing`)
    indices that are not strictly increasing.
    """
    for i in indices:
        if not 0 <= i < n_features:
            raise InputShapeError(
                f"feature index {i} out of range for {n_features} features"
            )
    if increasing:
        for a, b in zip(indices, indices[1:]):
            if a >= b:
                raise InputShapeError(
                    f"feature indices must be strictly increasing: {list(indices)}"
                )


def check_pair(train: Dataset, valid: Dataset):
    """Training and validation sets must share the feature space."""
    if train.n_features != valid.n_features:
        raise InputShapeError(
            f"inconsistent feature count: train {train.n_features}, "
            f"valid {valid.n_features}"
        )


def load_csv(path: str, target: str | int) -> Dataset:
    """Load a headered csv file.

    ## parameters
    - path (str): file to read.
    - target (str | int): name or 0-based index of the target column.

    ## returns
    - dataset (Dataset): all other columns as features.

    Note: `?` and empty fields are missing values. Rows with a missing target
    are dropped.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(path)
    _, ext = os.path.splitext(path)
    if ext != ".csv":
        raise ValueError(f"Unsupported file format: {ext}")

    frame = pl.read_csv(path, null_values=["?", ""], infer_schema_length=None)
    target_name = _resolve_column(frame.columns, target)
    frame = frame.filter(pl.col(target_name).is_not_null())
    return Dataset.from_frame(frame, target_name)


def split_dataset(dataset: Dataset, train_ratio: float = 0.7):
    """Split into a training and a validation set, without shuffling.

    ## returns
    - train, valid (Dataset): first `floor(n * train_ratio)` rows, and the rest.
    """
    if not 0 < train_ratio < 1:
        raise ValueError(f"train_ratio must be in (0, 1), not {train_ratio}")

    n_train = int(dataset.n_samples * train_ratio)
    train = Dataset(
        dataset.samples[:n_train], dataset.target[:n_train], dataset.feature_names
    )
    valid = Dataset(
        dataset.samples[n_train:], dataset.target[n_train:], dataset.feature_names
    )
    return train, valid


def dataset_info(dataset: Dataset) -> str:
    names = ", ".join(dataset.feature_names[:5])
    if dataset.n_features > 5:
        names += ", ..."
    return "\n".join(
        [
            f"dataset: {dataset.n_samples} samples, {dataset.n_features} features",
            f"features: {names}",
        ]
    )


def _resolve_column(columns: list[str], target: str | int) -> str:
    if isinstance(target, int):
        if not 0 <= target < len(columns):
            raise ValueError(f"Target column {target} out of range ({len(columns)})")
        return columns[target]
    if target not in columns:
        raise ValueError(f"Unknown target column: {target}")
    return target
