from timeit import default_timer
from typing import Literal

import numpy as np

from gmdhsearch.dataset import Dataset, InputShapeError, check_pair
from gmdhsearch.models import PolynomialModel
from gmdhsearch.search import CombinatorialSearch, PairwiseSearch


class Layer:
    """Surviving models of one round of a layered search.

    Models of layer 0 reference dataset columns. Models of later layers
    reference positions in the previous layer's `models`.
    """

    __slots__ = ["models", "index"]

    def __init__(self, models, index: int) -> None:
        self.models: tuple[PolynomialModel, ...] = tuple(models)
        self.index = index

    def __len__(self) -> int:
        return len(self.models)

    def __repr__(self) -> str:
        return f"Layer({self.index}, {len(self)} models)"

    @property
    def is_empty(self) -> bool:
        return not self.models

    @property
    def best(self) -> PolynomialModel | None:
        return self.models[0] if self.models else None


class LayeredEvolution(CombinatorialSearch):
    """Multi-layer search.

    Each layer runs a pairwise search and keeps the best `models_per_layer`
    models. The predictions of those models are the features of the next
    layer. Evolution stops after a layer with fewer than two survivors,
    since no feature pair is left; the next layer is then recorded empty.

    `ranking_` holds the full ranking of the last layer that was searched.
    """

    def __init__(
        self,
        n_layers: int = 3,
        models_per_layer: int = 5,
        n_jobs: int = 1,
        verbose: Literal[0, 1, 2] = 0,
    ) -> None:
        """
        ## parameters
        - n_layers (int): maximum number of layers.
        - models_per_layer (int): survivors kept per layer.
        - n_jobs (int): number of parallel jobs. -1 uses cpu_count.
        - verbose (int): amount of status information printed
        """
        if n_layers < 1:
            raise ValueError(f"n_layers must be at least 1, not {n_layers}")
        if models_per_layer < 1:
            raise ValueError(
                f"models_per_layer must be at least 1, not {models_per_layer}"
            )

        super().__init__(n_jobs=n_jobs, verbose=verbose)
        self.n_layers = n_layers
        self.models_per_layer = models_per_layer

        self.layers_: list[Layer] = []
        self.n_features_in_: int | None = None

    def __str__(self) -> str:
        return "\n".join(
            [
                f"{self.n_layers} layer search, {self.models_per_layer} models per layer",
                f"  - has {len(self.layers_)} fitted layers",
            ]
        )

    def fit(self, train: Dataset, valid: Dataset) -> list[Layer]:
        """Run the layers on a training and a validation set.

        ## returns
        - layers (list[Layer]): one entry per computed layer, the last one
          empty if evolution stopped early.
        """
        check_pair(train, valid)
        t_start = default_timer()

        if self.verbose >= 1:
            print(
                f"layered search: {self.n_layers} layers, "
                f"{self.models_per_layer} models per layer"
            )

        # inner searches only report progress bars
        search = PairwiseSearch(
            n_jobs=self.n_jobs,
            verbose=2 if self.verbose >= 2 else 0,
        )

        self.ranking_ = None
        layers: list[Layer] = []
        layer_train, layer_valid = train, valid
        for index in range(self.n_layers):
            if index > 0:
                previous = layers[-1]
                if len(previous) < 2:
                    layers.append(Layer([], index))
                    if self.verbose >= 1:
                        print(f"layer {index}: not enough models to continue")
                    break

                layer_train = layer_dataset(previous, layer_train)
                layer_valid = layer_dataset(previous, layer_valid)

            ranking = search.fit(layer_train, layer_valid)
            self.ranking_ = ranking
            layer = Layer(ranking.top(self.models_per_layer), index)
            layers.append(layer)

            if self.verbose >= 1:
                if layer.is_empty:
                    print(f"layer {index}: no models")
                else:
                    print(
                        f"layer {index}: selected {len(layer)} models, "
                        f"best rmse: {layer.best.error:.4f}"
                    )

        self.layers_ = layers
        self.n_features_in_ = train.n_features

        if self.verbose >= 1:
            print(f"Elapsed time {default_timer() - t_start:.2f} s.")

        return layers

    @property
    def best_layer(self) -> Layer | None:
        """The last non-empty layer."""
        for layer in reversed(self.layers_):
            if not layer.is_empty:
                return layer
        return None

    @property
    def best_model(self) -> PolynomialModel | None:
        layer = self.best_layer
        return None if layer is None else layer.best

    def predict(
        self,
        dataset: Dataset,
        layer: int | None = None,
        model: int = 0,
    ) -> np.ndarray:
        """Predict with a survivor, evaluating its ancestors down to layer 0.

        ## parameters
        - dataset (Dataset): samples with the original feature columns.
        - layer (int | None): layer index, default is the last non-empty layer.
        - model (int): position of the model in its layer.
        """
        if self.n_features_in_ is None:
            raise ValueError("Not fitted yet")
        if dataset.n_features != self.n_features_in_:
            raise InputShapeError(
                f"Expected {self.n_features_in_} features, got {dataset.n_features}"
            )

        if layer is None:
            best = self.best_layer
            if best is None:
                raise ValueError("No fitted models")
            layer = best.index
        if not 0 <= layer < len(self.layers_):
            raise ValueError(f"No layer {layer}")
        if not 0 <= model < len(self.layers_[layer]):
            raise ValueError(f"Layer {layer} has no model {model}")

        outputs = {}

        def evaluate(i: int, m: int) -> np.ndarray:
            if (i, m) not in outputs:
                node = self.layers_[i].models[m]
                if i == 0:
                    outputs[i, m] = node.predict_dataset(dataset)
                else:
                    outputs[i, m] = node.predict(
                        evaluate(i - 1, node.feature1),
                        evaluate(i - 1, node.feature2),
                    )
            return outputs[i, m]

        return evaluate(layer, model)


def layer_dataset(layer: Layer, dataset: Dataset) -> Dataset:
    """Dataset whose features are the predictions of a layer's models.

    Same samples and target as `dataset`, one feature per model.
    """
    columns = [m.predict_dataset(dataset) for m in layer.models]
    samples = np.column_stack(columns) if columns else np.empty((dataset.n_samples, 0))
    names = [f"L{layer.index}[{j}]" for j in range(len(layer))]
    return Dataset(samples, dataset.target, names)
