"""
Core layers: the graph root, densely-connected layers and stand-alone activations.
"""

from keras import ops
from typing import Any, Dict, List, Optional, Sequence

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Shape
from dl_graph.errors import ShapeError
from dl_graph.activations import Activations
from dl_graph.regularizers import Regularizer
from dl_graph.initializers import GlorotUniform, Initializer, Zeros
from dl_graph.layers.base import Layer, WeightSpec

# ---------------------------------------------------------------------


class Input(Layer):
    """Root of every model graph; feeds the batch into the first layers.

    Args:
        *dims: Per-example dimensions, e.g. ``Input(28, 28, 1)``.
        name: Layer name.

    Raises:
        ValueError: If no dimension is given or one is not positive.
    """

    def __init__(self, *dims: int, name: str = "") -> None:
        super().__init__(name=name, trainable=True)
        if len(dims) == 1 and isinstance(dims[0], (list, tuple)):
            dims = tuple(dims[0])
        if not dims:
            raise ValueError("Input needs at least one dimension")
        if any((not isinstance(d, int)) or d <= 0 for d in dims):
            raise ValueError(f"Input dimensions must be positive integers, got {dims}")
        self.dims = tuple(int(d) for d in dims)

    @property
    def input_shape(self) -> Shape:
        return (None, *self.dims)

    def compute_output_shape(self, input_shape=None) -> Shape:
        return self.input_shape

    def forward(self, inputs, record, training=False):
        return inputs

    def get_config(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "batch_input_shape": [None, *self.dims],
            "dtype": "float32",
            "sparse": False,
        }

# ---------------------------------------------------------------------


class Dense(Layer):
    """Densely-connected layer ``activation(x @ kernel + bias)`` on the last axis.

    Args:
        units: Output dimensionality.
        activation: Member or identifier of :class:`Activations`.
        kernel_initializer: Initializer of the ``(in, units)`` kernel.
        bias_initializer: Initializer of the ``(units,)`` bias.
        kernel_regularizer: Optional penalty on the kernel.
        bias_regularizer: Optional penalty on the bias.
        activity_regularizer: Optional penalty on the layer output.
        use_bias: Whether to add a bias.
        name: Layer name.
        trainable: Whether the layer's variables are updated by training.
    """

    has_activation = True

    def __init__(
            self,
            units: int = 128,
            activation=Activations.RELU,
            kernel_initializer: Optional[Initializer] = None,
            bias_initializer: Optional[Initializer] = None,
            kernel_regularizer: Optional[Regularizer] = None,
            bias_regularizer: Optional[Regularizer] = None,
            activity_regularizer: Optional[Regularizer] = None,
            use_bias: bool = True,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        if not isinstance(units, int) or units <= 0:
            raise ValueError(f"units must be a positive integer, got {units}")
        self.units = units
        self.activation = Activations.get(activation)
        self.kernel_initializer = kernel_initializer or GlorotUniform()
        self.bias_initializer = bias_initializer or Zeros()
        self.kernel_regularizer = kernel_regularizer
        self.bias_regularizer = bias_regularizer
        self.activity_regularizer = activity_regularizer
        self.use_bias = use_bias

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        if len(input_shape) < 2 or input_shape[-1] is None:
            raise ShapeError(
                f"Layer [{self.name}] needs a defined last axis, got {tuple(input_shape)}")
        return (*input_shape[:-1], self.units)

    def weight_specs(self, input_shape: Shape) -> List[WeightSpec]:
        in_features = int(input_shape[-1])
        specs = [WeightSpec(
            "kernel", (in_features, self.units), self.kernel_initializer,
            in_features, self.units, self.kernel_regularizer)]
        if self.use_bias:
            specs.append(WeightSpec(
                "bias", (self.units,), self.bias_initializer,
                in_features, self.units, self.bias_regularizer))
        return specs

    def forward(self, inputs, record, training=False):
        y = ops.matmul(inputs, record.weights["kernel"])
        if self.use_bias:
            y = y + record.weights["bias"]
        return self.activation.apply(y)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({
            "units": self.units,
            "activation": self.activation,
            "use_bias": self.use_bias,
            "kernel_initializer": self.kernel_initializer,
            "bias_initializer": self.bias_initializer,
            "kernel_regularizer": self.kernel_regularizer,
            "bias_regularizer": self.bias_regularizer,
            "activity_regularizer": self.activity_regularizer,
        })
        return config

# ---------------------------------------------------------------------


class ActivationLayer(Layer):
    """Applies an activation function to its input."""

    has_activation = True

    def __init__(
            self,
            activation=Activations.RELU,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        self.activation = Activations.get(activation)

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        return tuple(input_shape)

    def forward(self, inputs, record, training=False):
        return self.activation.apply(inputs)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["activation"] = self.activation
        return config

# ---------------------------------------------------------------------
