"""
Activation functions.

Stateless, elementwise (or axis-reducing for ``softmax``/``log_softmax``)
transforms applied by weighted layers and by :class:`ActivationLayer`.
Each member of :class:`Activations` carries its Keras identifier as value so
that layer configs can be written back in the Keras format.
"""

import keras
from enum import Enum
from keras import ops
from typing import Callable, Dict, Optional

# ---------------------------------------------------------------------


def _linear(x):
    return x


def _mish(x):
    return x * ops.tanh(ops.softplus(x))


def relu_family(
        x,
        alpha: float = 0.0,
        max_value: Optional[float] = None,
        threshold: float = 0.0):
    """Generalized rectified linear unit.

    With default arguments this is ``max(x, 0)``. Otherwise::

        f(x) = max_value                for x >= max_value
        f(x) = x                        for threshold <= x < max_value
        f(x) = alpha * (x - threshold)  otherwise

    The output is clipped to ``max_value`` after thresholding. A non-zero
    ``alpha`` without ``threshold`` and ``max_value`` is a leaky ReLU.

    Args:
        x: Input tensor.
        alpha: Slope of the negative section.
        max_value: Saturation value, ``None`` for no saturation.
        threshold: Values below it are damped.

    Returns:
        Tensor of the same shape as ``x``.
    """
    negative_part = None
    if alpha != 0.0:
        if threshold != 0.0:
            negative_part = ops.relu(threshold - x)
        else:
            negative_part = ops.relu(-x)

    clip_max = max_value is not None
    if threshold != 0.0:
        y = x * ops.cast(ops.greater(x, threshold), x.dtype)
    elif max_value == 6.0:
        y = ops.relu6(x)
        clip_max = False
    else:
        y = ops.relu(x)

    if clip_max:
        y = ops.clip(y, 0.0, max_value)

    if negative_part is not None:
        y = y - alpha * negative_part
    return y

# ---------------------------------------------------------------------


class Activations(str, Enum):
    """Closed set of supported activation functions."""
    LINEAR = "linear"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"
    RELU6 = "relu6"
    ELU = "elu"
    SELU = "selu"
    SOFTMAX = "softmax"
    LOG_SOFTMAX = "log_softmax"
    EXPONENTIAL = "exponential"
    SOFTPLUS = "softplus"
    SOFTSIGN = "softsign"
    HARD_SIGMOID = "hard_sigmoid"
    SWISH = "swish"
    MISH = "mish"
    GELU = "gelu"

    def apply(self, x):
        """Apply the activation to tensor ``x``."""
        return _ACTIVATION_FUNCTIONS[self](x)

    def __call__(self, x):
        return self.apply(x)

    @classmethod
    def get(cls, identifier) -> "Activations":
        """Resolve ``None``, a string or an enum member to an :class:`Activations`."""
        if identifier is None:
            return cls.LINEAR
        if isinstance(identifier, Activations):
            return identifier
        if isinstance(identifier, str):
            return cls(identifier.strip().lower())
        raise TypeError(f"Cannot interpret {identifier!r} as an activation")

# ---------------------------------------------------------------------


_ACTIVATION_FUNCTIONS: Dict[Activations, Callable] = {
    Activations.LINEAR: _linear,
    Activations.SIGMOID: ops.sigmoid,
    Activations.TANH: ops.tanh,
    Activations.RELU: ops.relu,
    Activations.RELU6: ops.relu6,
    Activations.ELU: ops.elu,
    Activations.SELU: ops.selu,
    Activations.SOFTMAX: lambda x: ops.softmax(x, axis=-1),
    Activations.LOG_SOFTMAX: lambda x: ops.log_softmax(x, axis=-1),
    Activations.EXPONENTIAL: ops.exp,
    Activations.SOFTPLUS: ops.softplus,
    Activations.SOFTSIGN: ops.softsign,
    Activations.HARD_SIGMOID: ops.hard_sigmoid,
    Activations.SWISH: ops.silu,
    Activations.MISH: _mish,
    Activations.GELU: keras.activations.gelu,
}

# ---------------------------------------------------------------------
