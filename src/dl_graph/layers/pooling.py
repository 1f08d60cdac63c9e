"""
Pooling layers: windowed max/average pooling and global pooling over 1D, 2D and 3D inputs.

Windowed pooling supports ``VALID`` and ``SAME`` padding. When ``strides`` is
omitted it defaults to the pool size.
"""

from keras import ops
from typing import Any, Dict, Sequence

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Padding, Shape
from dl_graph.layers.base import Layer, check_rank
from dl_graph.layers.conv_geometry import ConvGeometry

# ---------------------------------------------------------------------


class _Pool(Layer):
    """Windowed pooling over ``rank`` spatial axes."""

    def __init__(
            self,
            rank: int,
            pool_size=2,
            strides=None,
            padding="valid",
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        padding = Padding.from_value(padding)
        if padding == Padding.FULL:
            raise ValueError(f"{self.__class__.__name__} supports VALID and SAME padding only")
        self.rank = rank
        self.geometry = ConvGeometry.create(
            rank, pool_size, pool_size if strides is None else strides, 1, padding)

    @property
    def pool_size(self):
        return self.geometry.kernel_size

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        check_rank(self, input_shape, self.rank + 2)
        return self.geometry.output_shape(input_shape)

    def pool(self, x):
        raise NotImplementedError

    def forward(self, inputs, record, training=False):
        return self.pool(inputs)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({
            "pool_size": list(self.geometry.kernel_size),
            "strides": list(self.geometry.strides),
            "padding": self.geometry.padding,
            "data_format": "channels_last",
        })
        return config


class _MaxPool(_Pool):

    def pool(self, x):
        return ops.max_pool(
            x, self.geometry.kernel_size, self.geometry.strides, self.geometry.backend_padding)


class _AvgPool(_Pool):

    def pool(self, x):
        return ops.average_pool(
            x, self.geometry.kernel_size, self.geometry.strides, self.geometry.backend_padding)


class MaxPool1D(_MaxPool):
    """Max pooling over ``(batch, steps, channels)``."""

    def __init__(self, pool_size=2, strides=None, padding="valid", **kwargs) -> None:
        super().__init__(1, pool_size, strides, padding, **kwargs)


class MaxPool2D(_MaxPool):
    """Max pooling over ``(batch, height, width, channels)``."""

    def __init__(self, pool_size=2, strides=None, padding="valid", **kwargs) -> None:
        super().__init__(2, pool_size, strides, padding, **kwargs)


class MaxPool3D(_MaxPool):
    """Max pooling over ``(batch, depth, height, width, channels)``."""

    def __init__(self, pool_size=2, strides=None, padding="valid", **kwargs) -> None:
        super().__init__(3, pool_size, strides, padding, **kwargs)


class AvgPool1D(_AvgPool):
    """Average pooling over ``(batch, steps, channels)``."""

    def __init__(self, pool_size=2, strides=None, padding="valid", **kwargs) -> None:
        super().__init__(1, pool_size, strides, padding, **kwargs)


class AvgPool2D(_AvgPool):
    """Average pooling over ``(batch, height, width, channels)``."""

    def __init__(self, pool_size=2, strides=None, padding="valid", **kwargs) -> None:
        super().__init__(2, pool_size, strides, padding, **kwargs)


class AvgPool3D(_AvgPool):
    """Average pooling over ``(batch, depth, height, width, channels)``."""

    def __init__(self, pool_size=2, strides=None, padding="valid", **kwargs) -> None:
        super().__init__(3, pool_size, strides, padding, **kwargs)

# ---------------------------------------------------------------------


class _GlobalPool(Layer):
    """Reduces all spatial axes, ``(batch, *spatial, channels) -> (batch, channels)``."""

    rank = 2

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        check_rank(self, input_shape, self.rank + 2)
        return (input_shape[0], input_shape[-1])

    @property
    def spatial_axes(self):
        return tuple(range(1, self.rank + 1))

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["data_format"] = "channels_last"
        return config


class _GlobalAvgPool(_GlobalPool):

    def forward(self, inputs, record, training=False):
        return ops.mean(inputs, axis=self.spatial_axes)


class _GlobalMaxPool(_GlobalPool):

    def forward(self, inputs, record, training=False):
        return ops.max(inputs, axis=self.spatial_axes)


class GlobalAvgPool1D(_GlobalAvgPool):
    rank = 1


class GlobalAvgPool2D(_GlobalAvgPool):
    rank = 2


class GlobalAvgPool3D(_GlobalAvgPool):
    rank = 3


class GlobalMaxPool1D(_GlobalMaxPool):
    rank = 1


class GlobalMaxPool2D(_GlobalMaxPool):
    rank = 2


class GlobalMaxPool3D(_GlobalMaxPool):
    rank = 3

# ---------------------------------------------------------------------
