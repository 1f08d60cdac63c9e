"""
Batch normalization.

During training the layer normalizes with the statistics of the current batch
and moves the running statistics towards them::

    moving = moving * momentum + batch_statistic * (1 - momentum)

At inference the running statistics are used instead. The new running
statistics are handed to the model through :meth:`BatchNorm.state_updates`
and only assigned when the training step is committed.
"""

from keras import ops
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Shape
from dl_graph.errors import ShapeError
from dl_graph.regularizers import Regularizer
from dl_graph.initializers import Initializer, Ones, Zeros
from dl_graph.layers.base import Layer, WeightSpec

# ---------------------------------------------------------------------


class BatchNorm(Layer):
    """Normalizes over every axis except the batch axis and ``axis``.

    Args:
        axis: Feature axis or axes, negative values count from the end.
        momentum: Momentum of the running statistics.
        epsilon: Variance floor added before the square root.
        center: Whether to learn an offset ``beta``.
        scale: Whether to learn a multiplier ``gamma``.
        beta_initializer: Initializer of ``beta``.
        gamma_initializer: Initializer of ``gamma``.
        moving_mean_initializer: Initializer of the running mean.
        moving_variance_initializer: Initializer of the running variance.
        beta_regularizer: Optional penalty on ``beta``.
        gamma_regularizer: Optional penalty on ``gamma``.
    """

    def __init__(
            self,
            axis: Union[int, Sequence[int]] = -1,
            momentum: float = 0.99,
            epsilon: float = 0.001,
            center: bool = True,
            scale: bool = True,
            beta_initializer: Optional[Initializer] = None,
            gamma_initializer: Optional[Initializer] = None,
            moving_mean_initializer: Optional[Initializer] = None,
            moving_variance_initializer: Optional[Initializer] = None,
            beta_regularizer: Optional[Regularizer] = None,
            gamma_regularizer: Optional[Regularizer] = None,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        if not 0.0 <= momentum <= 1.0:
            raise ValueError(f"momentum must be in [0, 1], got {momentum}")
        if epsilon <= 0.0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        self.axis = (axis,) if isinstance(axis, int) else tuple(axis)
        if not self.axis:
            raise ValueError("axis must name at least one axis")
        self.momentum = float(momentum)
        self.epsilon = float(epsilon)
        self.center = center
        self.scale = scale
        self.beta_initializer = beta_initializer or Zeros()
        self.gamma_initializer = gamma_initializer or Ones()
        self.moving_mean_initializer = moving_mean_initializer or Zeros()
        self.moving_variance_initializer = moving_variance_initializer or Ones()
        self.beta_regularizer = beta_regularizer
        self.gamma_regularizer = gamma_regularizer

    def _axes(self, input_shape: Shape) -> Tuple[int, ...]:
        rank = len(input_shape)
        axes = []
        for axis in self.axis:
            positive = axis + rank if axis < 0 else axis
            if positive <= 0 or positive >= rank:
                raise ShapeError(
                    f"Layer [{self.name}]: axis {axis} is out of range for input "
                    f"shape {tuple(input_shape)}")
            if input_shape[positive] is None:
                raise ShapeError(
                    f"Layer [{self.name}]: axis {axis} of input shape "
                    f"{tuple(input_shape)} is not defined")
            axes.append(positive)
        return tuple(sorted(set(axes)))

    def _param_shape(self, input_shape: Shape) -> Tuple[int, ...]:
        return tuple(int(input_shape[a]) for a in self._axes(input_shape))

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        self._axes(input_shape)
        return tuple(input_shape)

    def weight_specs(self, input_shape: Shape) -> List[WeightSpec]:
        shape = self._param_shape(input_shape)
        fan = shape[-1]
        specs = []
        if self.scale:
            specs.append(WeightSpec(
                "gamma", shape, self.gamma_initializer, fan, fan, self.gamma_regularizer))
        if self.center:
            specs.append(WeightSpec(
                "beta", shape, self.beta_initializer, fan, fan, self.beta_regularizer))
        specs.append(WeightSpec(
            "moving_mean", shape, self.moving_mean_initializer, fan, fan, trainable=False))
        specs.append(WeightSpec(
            "moving_variance", shape, self.moving_variance_initializer, fan, fan,
            trainable=False))
        return specs

    def _reduction_axes(self, input_shape: Shape) -> Tuple[Tuple[int, ...], List[int]]:
        rank = len(input_shape)
        axes = self._axes(input_shape)
        broadcast_shape = [1] * rank
        for a in axes:
            broadcast_shape[a] = int(input_shape[a])
        return tuple(a for a in range(rank) if a not in axes), broadcast_shape

    def forward(self, inputs, record, training=False):
        reduction_axes, broadcast_shape = self._reduction_axes(tuple(inputs.shape))
        weights = record.weights

        if training:
            mean, variance = ops.moments(inputs, axes=reduction_axes, keepdims=True)
        else:
            mean = ops.reshape(weights["moving_mean"], broadcast_shape)
            variance = ops.reshape(weights["moving_variance"], broadcast_shape)

        y = (inputs - mean) * ops.rsqrt(variance + self.epsilon)
        if self.scale:
            y = y * ops.reshape(weights["gamma"], broadcast_shape)
        if self.center:
            y = y + ops.reshape(weights["beta"], broadcast_shape)
        return y

    def state_updates(self, inputs, record):
        input_shape = tuple(inputs.shape)
        reduction_axes, _ = self._reduction_axes(input_shape)
        param_shape = self._param_shape(input_shape)
        mean, variance = ops.moments(inputs, axes=reduction_axes)
        moving_mean = record.weights["moving_mean"]
        moving_variance = record.weights["moving_variance"]
        return {
            "moving_mean": moving_mean * self.momentum
            + ops.reshape(mean, param_shape) * (1.0 - self.momentum),
            "moving_variance": moving_variance * self.momentum
            + ops.reshape(variance, param_shape) * (1.0 - self.momentum),
        }

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({
            "axis": list(self.axis),
            "momentum": self.momentum,
            "epsilon": self.epsilon,
            "center": self.center,
            "scale": self.scale,
            "beta_initializer": self.beta_initializer,
            "gamma_initializer": self.gamma_initializer,
            "moving_mean_initializer": self.moving_mean_initializer,
            "moving_variance_initializer": self.moving_variance_initializer,
            "beta_regularizer": self.beta_regularizer,
            "gamma_regularizer": self.gamma_regularizer,
        })
        return config

# ---------------------------------------------------------------------
