"""
Parametrized activation layers.

``ReLU`` implements the generalized rectifier of
:func:`dl_graph.activations.relu_family`; with a non-zero ``negative_slope``
and neither ``threshold`` nor ``max_value`` it behaves as a leaky ReLU.
"""

from keras import ops
from typing import Any, Dict, List, Optional, Sequence, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Shape
from dl_graph.errors import ShapeError
from dl_graph.activations import relu_family
from dl_graph.regularizers import Regularizer
from dl_graph.initializers import Initializer, Zeros
from dl_graph.layers.base import Layer, WeightSpec

# ---------------------------------------------------------------------


class _Elementwise(Layer):
    """Shape-preserving activation layer."""

    has_activation = True

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        return tuple(input_shape)

# ---------------------------------------------------------------------


class ReLU(_Elementwise):
    """Rectified linear unit with optional saturation, slope and threshold.

    Args:
        max_value: Saturation value, ``None`` for none.
        negative_slope: Slope below ``threshold``.
        threshold: Values below it are damped.
    """

    def __init__(
            self,
            max_value: Optional[float] = None,
            negative_slope: float = 0.0,
            threshold: float = 0.0,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        if max_value is not None and max_value < 0.0:
            raise ValueError(f"max_value must be non-negative, got {max_value}")
        if negative_slope < 0.0:
            raise ValueError(f"negative_slope must be non-negative, got {negative_slope}")
        self.max_value = None if max_value is None else float(max_value)
        self.negative_slope = float(negative_slope)
        self.threshold = float(threshold)

    def forward(self, inputs, record, training=False):
        return relu_family(
            inputs,
            alpha=self.negative_slope,
            max_value=self.max_value,
            threshold=self.threshold)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({
            "max_value": self.max_value,
            "negative_slope": self.negative_slope,
            "threshold": self.threshold,
        })
        return config


class LeakyReLU(_Elementwise):
    """``x`` for ``x >= 0``, ``alpha * x`` otherwise."""

    def __init__(self, alpha: float = 0.3, **kwargs) -> None:
        super().__init__(**kwargs)
        if alpha < 0.0:
            raise ValueError(f"alpha must be non-negative, got {alpha}")
        self.alpha = float(alpha)

    def forward(self, inputs, record, training=False):
        return ops.leaky_relu(inputs, negative_slope=self.alpha)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["alpha"] = self.alpha
        return config


class ELU(_Elementwise):
    """``x`` for ``x > 0``, ``alpha * (exp(x) - 1)`` otherwise."""

    def __init__(self, alpha: float = 1.0, **kwargs) -> None:
        super().__init__(**kwargs)
        self.alpha = float(alpha)

    def forward(self, inputs, record, training=False):
        return ops.elu(inputs, alpha=self.alpha)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["alpha"] = self.alpha
        return config


class ThresholdedReLU(_Elementwise):
    """``x`` for ``x > theta``, ``0`` otherwise."""

    def __init__(self, theta: float = 1.0, **kwargs) -> None:
        super().__init__(**kwargs)
        if theta < 0.0:
            raise ValueError(f"theta must be non-negative, got {theta}")
        self.theta = float(theta)

    def forward(self, inputs, record, training=False):
        return inputs * ops.cast(ops.greater(inputs, self.theta), inputs.dtype)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["theta"] = self.theta
        return config


class Softmax(_Elementwise):
    """Softmax normalized over ``axis`` (an axis or a list of axes)."""

    def __init__(self, axis: Union[int, Sequence[int]] = -1, **kwargs) -> None:
        super().__init__(**kwargs)
        self.axis = (axis,) if isinstance(axis, int) else tuple(axis)

    def forward(self, inputs, record, training=False):
        shifted = inputs - ops.max(inputs, axis=self.axis, keepdims=True)
        exponent = ops.exp(shifted)
        return exponent / ops.sum(exponent, axis=self.axis, keepdims=True)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["axis"] = self.axis[0] if len(self.axis) == 1 else list(self.axis)
        return config

# ---------------------------------------------------------------------


class PReLU(_Elementwise):
    """Leaky ReLU with a learned slope ``alpha`` per element.

    Args:
        alpha_initializer: Initializer of the slope.
        alpha_regularizer: Optional penalty on the slope.
        shared_axes: Axes (1-based, the batch axis is 0) along which the slope
            is shared, e.g. ``[1, 2]`` for one slope per channel of an image.
    """

    def __init__(
            self,
            alpha_initializer: Optional[Initializer] = None,
            alpha_regularizer: Optional[Regularizer] = None,
            shared_axes: Optional[Sequence[int]] = None,
            **kwargs) -> None:
        super().__init__(**kwargs)
        self.alpha_initializer = alpha_initializer or Zeros()
        self.alpha_regularizer = alpha_regularizer
        self.shared_axes = None if shared_axes is None else tuple(int(a) for a in shared_axes)

    def _alpha_shape(self, input_shape: Shape):
        shape = list(input_shape[1:])
        for axis in self.shared_axes or ():
            if axis < 1 or axis >= len(input_shape):
                raise ShapeError(
                    f"Layer [{self.name}]: shared axis {axis} is out of range for input "
                    f"shape {tuple(input_shape)}")
            shape[axis - 1] = 1
        if any(d is None for d in shape):
            raise ShapeError(
                f"Layer [{self.name}] needs defined non-shared axes, got {tuple(input_shape)}")
        return tuple(int(d) for d in shape)

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        self._alpha_shape(input_shape)
        return tuple(input_shape)

    def weight_specs(self, input_shape: Shape) -> List[WeightSpec]:
        shape = self._alpha_shape(input_shape)
        return [WeightSpec(
            "alpha", shape, self.alpha_initializer, shape[-1], shape[-1],
            self.alpha_regularizer)]

    def forward(self, inputs, record, training=False):
        alpha = record.weights["alpha"]
        return ops.relu(inputs) - alpha * ops.relu(-inputs)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({
            "alpha_initializer": self.alpha_initializer,
            "alpha_regularizer": self.alpha_regularizer,
            "shared_axes": None if self.shared_axes is None else list(self.shared_axes),
        })
        return config

# ---------------------------------------------------------------------
