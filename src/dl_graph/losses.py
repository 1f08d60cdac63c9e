"""
Loss functions.

Every member of :class:`Losses` maps ``(y_true, y_pred)`` to a scalar: the
per-example loss computed by the Keras loss function, averaged over the
batch.
"""

import keras
from enum import Enum
from keras import ops
from typing import Callable, Dict, Union

# ---------------------------------------------------------------------


class Losses(str, Enum):
    """Closed set of supported loss functions."""
    SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS = "softmax_cross_entropy_with_logits"
    CATEGORICAL_CROSSENTROPY = "categorical_crossentropy"
    BINARY_CROSSENTROPY = "binary_crossentropy"
    MSE = "mean_squared_error"
    MAE = "mean_absolute_error"
    MAPE = "mean_absolute_percentage_error"
    MSLE = "mean_squared_logarithmic_error"
    HINGE = "hinge"
    SQUARED_HINGE = "squared_hinge"
    HUBER = "huber"
    LOG_COSH = "log_cosh"
    POISSON = "poisson"
    KLD = "kl_divergence"

    def __call__(self, y_true, y_pred):
        return ops.mean(_LOSS_FUNCTIONS[self](y_true, y_pred))

    @property
    def applies_softmax_to_predictions(self) -> bool:
        """Whether the model output is logits that predictions pass through softmax."""
        return self == Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS


_LOSS_FUNCTIONS: Dict[Losses, Callable] = {
    Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS:
        lambda y_true, y_pred: keras.losses.categorical_crossentropy(y_true, y_pred, from_logits=True),
    Losses.CATEGORICAL_CROSSENTROPY: keras.losses.categorical_crossentropy,
    Losses.BINARY_CROSSENTROPY: keras.losses.binary_crossentropy,
    Losses.MSE: keras.losses.mean_squared_error,
    Losses.MAE: keras.losses.mean_absolute_error,
    Losses.MAPE: keras.losses.mean_absolute_percentage_error,
    Losses.MSLE: keras.losses.mean_squared_logarithmic_error,
    Losses.HINGE: keras.losses.hinge,
    Losses.SQUARED_HINGE: keras.losses.squared_hinge,
    Losses.HUBER: keras.losses.huber,
    Losses.LOG_COSH: keras.losses.log_cosh,
    Losses.POISSON: keras.losses.poisson,
    Losses.KLD: keras.losses.kl_divergence,
}

# ---------------------------------------------------------------------


def get_loss(identifier: Union[str, Losses, Callable]) -> Callable:
    """Resolve a :class:`Losses` member, its value, or a custom ``(y_true, y_pred) -> scalar``."""
    if isinstance(identifier, Losses):
        return identifier
    if isinstance(identifier, str):
        try:
            return Losses(identifier.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown loss [{identifier}]. Supported: {[l.value for l in Losses]}") from None
    if callable(identifier):
        return identifier
    raise TypeError(f"Cannot interpret {identifier!r} as a loss function")


def loss_name(loss: Callable) -> str:
    if isinstance(loss, Losses):
        return loss.value
    return getattr(loss, "__name__", loss.__class__.__name__)

# ---------------------------------------------------------------------
