"""
Metrics.

Every member of :class:`Metrics` maps ``(y_true, y_pred)`` to a scalar
averaged over the batch. Evaluation results key metric values by
:func:`metric_name`.
"""

import keras
from enum import Enum
from keras import ops
from typing import Callable, Dict, Union

# ---------------------------------------------------------------------


class Metrics(str, Enum):
    """Closed set of supported metrics."""
    ACCURACY = "accuracy"
    BINARY_ACCURACY = "binary_accuracy"
    MAE = "mean_absolute_error"
    MSE = "mean_squared_error"
    MSLE = "mean_squared_logarithmic_error"

    def __call__(self, y_true, y_pred):
        return ops.mean(_METRIC_FUNCTIONS[self](y_true, y_pred))


_METRIC_FUNCTIONS: Dict[Metrics, Callable] = {
    Metrics.ACCURACY: keras.metrics.categorical_accuracy,
    Metrics.BINARY_ACCURACY: keras.metrics.binary_accuracy,
    Metrics.MAE: keras.losses.mean_absolute_error,
    Metrics.MSE: keras.losses.mean_squared_error,
    Metrics.MSLE: keras.losses.mean_squared_logarithmic_error,
}

# ---------------------------------------------------------------------


def get_metric(identifier: Union[str, Metrics, Callable]) -> Callable:
    """Resolve a :class:`Metrics` member, its value, or a custom ``(y_true, y_pred) -> scalar``."""
    if isinstance(identifier, Metrics):
        return identifier
    if isinstance(identifier, str):
        try:
            return Metrics(identifier.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown metric [{identifier}]. Supported: {[m.value for m in Metrics]}") from None
    if callable(identifier):
        return identifier
    raise TypeError(f"Cannot interpret {identifier!r} as a metric")


def metric_name(metric: Callable) -> str:
    if isinstance(metric, Metrics):
        return metric.value
    return getattr(metric, "__name__", metric.__class__.__name__)

# ---------------------------------------------------------------------
