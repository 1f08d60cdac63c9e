"""
Convolution layers.

All layers are channels-last. Window bookkeeping (strides, dilations,
``VALID``/``SAME``/``FULL`` padding, output shapes) is delegated to a
:class:`~dl_graph.layers.conv_geometry.ConvGeometry` component.

Kernel layouts::

    ConvND:            (*kernel_size, in_channels, filters)
    ConvNDTranspose:   (*kernel_size, filters, in_channels)
    DepthwiseConv2D:   (kh, kw, in_channels, depth_multiplier)
    SeparableConv2D:   depthwise (kh, kw, in_channels, depth_multiplier)
                       pointwise (1, 1, in_channels * depth_multiplier, filters)
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
from dl_graph.initializers import GlorotUniform, Initializer, Zeros, compute_fans
from dl_graph.layers.base import Layer, WeightSpec, check_rank
from dl_graph.layers.conv_geometry import ConvGeometry

# ---------------------------------------------------------------------


def _check_channels(layer: Layer, input_shape: Shape, rank: int) -> int:
    check_rank(layer, input_shape, rank + 2)
    if input_shape[-1] is None:
        raise ShapeError(
            f"Layer [{layer.name}] needs a defined channel axis, got {tuple(input_shape)}")
    return int(input_shape[-1])


def _check_filters(filters: int) -> int:
    if not isinstance(filters, int) or filters <= 0:
        raise ValueError(f"filters must be a positive integer, got {filters}")
    return filters

# ---------------------------------------------------------------------


class _Conv(Layer):
    """N-D convolution ``activation(conv(x, kernel) + bias)``.

    Args:
        rank: Number of spatial axes.
        filters: Number of output channels.
        kernel_size: Window size, int or one int per spatial axis.
        strides: Stride, int or one int per spatial axis.
        dilation_rate: Dilation, int or one int per spatial axis.
        padding: ``"valid"``, ``"same"`` or ``"full"``.
        activation: Member or identifier of :class:`Activations`.
        kernel_initializer: Kernel initializer, ``GlorotUniform`` by default.
        bias_initializer: Bias initializer, ``Zeros`` by default.
        kernel_regularizer: Optional penalty on the kernel.
        bias_regularizer: Optional penalty on the bias.
        activity_regularizer: Optional penalty on the output.
        use_bias: Whether to add a bias.
    """

    has_activation = True
    transpose = False

    def __init__(
            self,
            rank: int,
            filters: int = 32,
            kernel_size=3,
            strides=1,
            dilation_rate=1,
            padding="same",
            activation=Activations.RELU,
            kernel_initializer: Optional[Initializer] = None,
            bias_initializer: Optional[Initializer] = None,
            kernel_regularizer: Optional[Regularizer] = None,
            bias_regularizer: Optional[Regularizer] = None,
            activity_regularizer: Optional[Regularizer] = None,
            use_bias: bool = True,
            output_padding=None,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        self.rank = rank
        self.filters = _check_filters(filters)
        self.geometry = ConvGeometry.create(
            rank, kernel_size, strides, dilation_rate, padding, output_padding)
        self.activation = Activations.get(activation)
        self.kernel_initializer = kernel_initializer or GlorotUniform()
        self.bias_initializer = bias_initializer or Zeros()
        self.kernel_regularizer = kernel_regularizer
        self.bias_regularizer = bias_regularizer
        self.activity_regularizer = activity_regularizer
        self.use_bias = use_bias

    def kernel_shape(self, in_channels: int):
        if self.transpose:
            return (*self.geometry.kernel_size, self.filters, in_channels)
        return (*self.geometry.kernel_size, in_channels, self.filters)

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        _check_channels(self, input_shape, self.rank)
        return self.geometry.output_shape(input_shape, self.filters, transpose=self.transpose)

    def weight_specs(self, input_shape: Shape) -> List[WeightSpec]:
        in_channels = _check_channels(self, input_shape, self.rank)
        kernel_shape = self.kernel_shape(in_channels)
        fan_in, fan_out = compute_fans(kernel_shape)
        specs = [WeightSpec(
            "kernel", kernel_shape, self.kernel_initializer,
            fan_in, fan_out, self.kernel_regularizer)]
        if self.use_bias:
            specs.append(WeightSpec(
                "bias", (self.filters,), self.bias_initializer,
                fan_in, fan_out, self.bias_regularizer))
        return specs

    def forward(self, inputs, record, training=False):
        if self.transpose:
            y = self.geometry.conv_transpose(inputs, record.weights["kernel"], self.filters)
        else:
            y = self.geometry.conv(inputs, record.weights["kernel"])
        if self.use_bias:
            y = y + record.weights["bias"]
        return self.activation.apply(y)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["filters"] = self.filters
        config.update(self.geometry.keras_config())
        config.update({
            "data_format": "channels_last",
            "activation": self.activation,
            "use_bias": self.use_bias,
            "kernel_initializer": self.kernel_initializer,
            "bias_initializer": self.bias_initializer,
            "kernel_regularizer": self.kernel_regularizer,
            "bias_regularizer": self.bias_regularizer,
            "activity_regularizer": self.activity_regularizer,
        })
        return config


class Conv1D(_Conv):
    """1D convolution over ``(batch, steps, channels)``."""

    def __init__(self, filters: int = 32, kernel_size=3, **kwargs) -> None:
        super().__init__(1, filters=filters, kernel_size=kernel_size, **kwargs)


class Conv2D(_Conv):
    """2D convolution over ``(batch, height, width, channels)``."""

    def __init__(self, filters: int = 32, kernel_size=3, **kwargs) -> None:
        super().__init__(2, filters=filters, kernel_size=kernel_size, **kwargs)


class Conv3D(_Conv):
    """3D convolution over ``(batch, depth, height, width, channels)``."""

    def __init__(self, filters: int = 32, kernel_size=3, **kwargs) -> None:
        super().__init__(3, filters=filters, kernel_size=kernel_size, **kwargs)

# ---------------------------------------------------------------------


class Conv1DTranspose(_Conv):
    """Transposed 1D convolution; ``output_padding`` picks among ambiguous extents."""

    transpose = True

    def __init__(self, filters: int = 32, kernel_size=3, **kwargs) -> None:
        super().__init__(1, filters=filters, kernel_size=kernel_size, **kwargs)


class Conv2DTranspose(_Conv):
    """Transposed 2D convolution; ``output_padding`` picks among ambiguous extents."""

    transpose = True

    def __init__(self, filters: int = 32, kernel_size=3, **kwargs) -> None:
        super().__init__(2, filters=filters, kernel_size=kernel_size, **kwargs)


class Conv3DTranspose(_Conv):
    """Transposed 3D convolution; ``output_padding`` picks among ambiguous extents."""

    transpose = True

    def __init__(self, filters: int = 32, kernel_size=3, **kwargs) -> None:
        super().__init__(3, filters=filters, kernel_size=kernel_size, **kwargs)

# ---------------------------------------------------------------------


class DepthwiseConv2D(Layer):
    """Per-channel 2D convolution producing ``in_channels * depth_multiplier`` channels.

    Args:
        kernel_size: Window size.
        strides: Stride.
        dilation_rate: Dilation.
        padding: ``"valid"``, ``"same"`` or ``"full"``.
        depth_multiplier: Output channels per input channel.
        activation: Member or identifier of :class:`Activations`.
        depthwise_initializer: Kernel initializer.
        bias_initializer: Bias initializer.
        depthwise_regularizer: Optional penalty on the kernel.
        bias_regularizer: Optional penalty on the bias.
        activity_regularizer: Optional penalty on the output.
        use_bias: Whether to add a bias.
    """

    has_activation = True

    def __init__(
            self,
            kernel_size=3,
            strides=1,
            dilation_rate=1,
            padding="same",
            depth_multiplier: int = 1,
            activation=Activations.RELU,
            depthwise_initializer: Optional[Initializer] = None,
            bias_initializer: Optional[Initializer] = None,
            depthwise_regularizer: Optional[Regularizer] = None,
            bias_regularizer: Optional[Regularizer] = None,
            activity_regularizer: Optional[Regularizer] = None,
            use_bias: bool = True,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        if not isinstance(depth_multiplier, int) or depth_multiplier <= 0:
            raise ValueError(f"depth_multiplier must be a positive integer, got {depth_multiplier}")
        self.geometry = ConvGeometry.create(2, kernel_size, strides, dilation_rate, padding)
        self.depth_multiplier = depth_multiplier
        self.activation = Activations.get(activation)
        self.depthwise_initializer = depthwise_initializer or GlorotUniform()
        self.bias_initializer = bias_initializer or Zeros()
        self.depthwise_regularizer = depthwise_regularizer
        self.bias_regularizer = bias_regularizer
        self.activity_regularizer = activity_regularizer
        self.use_bias = use_bias

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        in_channels = _check_channels(self, input_shape, 2)
        return self.geometry.output_shape(input_shape, in_channels * self.depth_multiplier)

    def weight_specs(self, input_shape: Shape) -> List[WeightSpec]:
        in_channels = _check_channels(self, input_shape, 2)
        kernel_shape = (*self.geometry.kernel_size, in_channels, self.depth_multiplier)
        fan_in, fan_out = compute_fans(kernel_shape)
        specs = [WeightSpec(
            "depthwise_kernel", kernel_shape, self.depthwise_initializer,
            fan_in, fan_out, self.depthwise_regularizer)]
        if self.use_bias:
            specs.append(WeightSpec(
                "bias", (in_channels * self.depth_multiplier,), self.bias_initializer,
                fan_in, fan_out, self.bias_regularizer))
        return specs

    def forward(self, inputs, record, training=False):
        y = ops.depthwise_conv(
            self.geometry.pad_input(inputs),
            record.weights["depthwise_kernel"],
            strides=self.geometry.strides,
            padding=self.geometry.backend_padding,
            dilation_rate=self.geometry.dilations)
        if self.use_bias:
            y = y + record.weights["bias"]
        return self.activation.apply(y)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update(self.geometry.keras_config())
        config.update({
            "depth_multiplier": self.depth_multiplier,
            "data_format": "channels_last",
            "activation": self.activation,
            "use_bias": self.use_bias,
            "depthwise_initializer": self.depthwise_initializer,
            "bias_initializer": self.bias_initializer,
            "depthwise_regularizer": self.depthwise_regularizer,
            "bias_regularizer": self.bias_regularizer,
            "activity_regularizer": self.activity_regularizer,
        })
        return config

# ---------------------------------------------------------------------


class SeparableConv2D(Layer):
    """Depthwise 2D convolution followed by a ``1x1`` pointwise convolution."""

    has_activation = True

    def __init__(
            self,
            filters: int = 32,
            kernel_size=3,
            strides=1,
            dilation_rate=1,
            padding="same",
            depth_multiplier: int = 1,
            activation=Activations.RELU,
            depthwise_initializer: Optional[Initializer] = None,
            pointwise_initializer: Optional[Initializer] = None,
            bias_initializer: Optional[Initializer] = None,
            depthwise_regularizer: Optional[Regularizer] = None,
            pointwise_regularizer: Optional[Regularizer] = None,
            bias_regularizer: Optional[Regularizer] = None,
            activity_regularizer: Optional[Regularizer] = None,
            use_bias: bool = True,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        if not isinstance(depth_multiplier, int) or depth_multiplier <= 0:
            raise ValueError(f"depth_multiplier must be a positive integer, got {depth_multiplier}")
        self.filters = _check_filters(filters)
        self.geometry = ConvGeometry.create(2, kernel_size, strides, dilation_rate, padding)
        self.depth_multiplier = depth_multiplier
        self.activation = Activations.get(activation)
        self.depthwise_initializer = depthwise_initializer or GlorotUniform()
        self.pointwise_initializer = pointwise_initializer or GlorotUniform()
        self.bias_initializer = bias_initializer or Zeros()
        self.depthwise_regularizer = depthwise_regularizer
        self.pointwise_regularizer = pointwise_regularizer
        self.bias_regularizer = bias_regularizer
        self.activity_regularizer = activity_regularizer
        self.use_bias = use_bias

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        _check_channels(self, input_shape, 2)
        return self.geometry.output_shape(input_shape, self.filters)

    def weight_specs(self, input_shape: Shape) -> List[WeightSpec]:
        in_channels = _check_channels(self, input_shape, 2)
        depthwise_shape = (*self.geometry.kernel_size, in_channels, self.depth_multiplier)
        pointwise_shape = (1, 1, in_channels * self.depth_multiplier, self.filters)
        depthwise_fans = compute_fans(depthwise_shape)
        pointwise_fans = compute_fans(pointwise_shape)
        specs = [
            WeightSpec(
                "depthwise_kernel", depthwise_shape, self.depthwise_initializer,
                *depthwise_fans, self.depthwise_regularizer),
            WeightSpec(
                "pointwise_kernel", pointwise_shape, self.pointwise_initializer,
                *pointwise_fans, self.pointwise_regularizer),
        ]
        if self.use_bias:
            specs.append(WeightSpec(
                "bias", (self.filters,), self.bias_initializer,
                *pointwise_fans, self.bias_regularizer))
        return specs

    def forward(self, inputs, record, training=False):
        y = ops.separable_conv(
            self.geometry.pad_input(inputs),
            record.weights["depthwise_kernel"],
            record.weights["pointwise_kernel"],
            strides=self.geometry.strides,
            padding=self.geometry.backend_padding,
            dilation_rate=self.geometry.dilations)
        if self.use_bias:
            y = y + record.weights["bias"]
        return self.activation.apply(y)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["filters"] = self.filters
        config.update(self.geometry.keras_config())
        config.update({
            "depth_multiplier": self.depth_multiplier,
            "data_format": "channels_last",
            "activation": self.activation,
            "use_bias": self.use_bias,
            "depthwise_initializer": self.depthwise_initializer,
            "pointwise_initializer": self.pointwise_initializer,
            "bias_initializer": self.bias_initializer,
            "depthwise_regularizer": self.depthwise_regularizer,
            "pointwise_regularizer": self.pointwise_regularizer,
            "bias_regularizer": self.bias_regularizer,
            "activity_regularizer": self.activity_regularizer,
        })
        return config

# ---------------------------------------------------------------------
