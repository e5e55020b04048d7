"""
Text summaries of fitted models and layers
"""

from collections.abc import Sequence

from gmdhsearch.models import LinearModel, PolynomialModel


def _name(feature_names: Sequence[str] | None, j: int) -> str:
    if feature_names is None:
        return f"x{j}"
    return feature_names[j]


def _scores(model) -> str:
    line = f"  rmse: {model.error:.4f}, r²: {model.r2:.4f}"
    if model.is_degenerate:
        line += " (degenerate)"
    return line


def format_polynomial_model(
    model: PolynomialModel,
    feature_names: Sequence[str] | None = None,
) -> str:
    a = model.coeffs
    return "\n".join(
        [
            f"model: f({_name(feature_names, model.feature1)}, "
            f"{_name(feature_names, model.feature2)})",
            f"  y = {a[0]:.4f} + {a[1]:.4f}*x1 + {a[2]:.4f}*x2 + {a[3]:.4f}*x1² "
            f"+ {a[4]:.4f}*x2² + {a[5]:.4f}*x1*x2",
            _scores(model),
        ]
    )


def format_linear_model(
    model: LinearModel,
    feature_names: Sequence[str] | None = None,
) -> str:
    terms = [f"y = {model.intercept:.3f}"]
    for j, w in zip(model.features, model.weights):
        sign = "+" if w >= 0 else "-"
        terms.append(f"{sign} {abs(w):.3f}*{_name(feature_names, j)}")

    return "\n".join(
        [
            " ".join(terms),
            _scores(model) + f", features: {model.size}",
        ]
    )


def format_model(model, feature_names: Sequence[str] | None = None) -> str:
    if isinstance(model, PolynomialModel):
        return format_polynomial_model(model, feature_names)
    if isinstance(model, LinearModel):
        return format_linear_model(model, feature_names)
    raise TypeError(f"Unsupported model type: {type(model).__name__}")


def format_ranking(models, feature_names=None, k: int = 3) -> str:
    """The first `k` models, numbered."""
    blocks = [
        f"{rank}. {format_model(model, feature_names)}"
        for rank, model in enumerate(list(models)[:k], start=1)
    ]
    return "\n\n".join(blocks)


def format_layers(layers) -> str:
    lines = []
    for layer in layers:
        if layer.is_empty:
            lines.append(f"layer {layer.index}: empty")
        else:
            lines.append(
                f"layer {layer.index}: {len(layer)} models, "
                f"best rmse: {layer.best.error:.4f}"
            )
    return "\n".join(lines)
