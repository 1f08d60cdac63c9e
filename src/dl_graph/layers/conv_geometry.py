"""
Stride, dilation and padding bookkeeping shared by convolution and pooling layers.

:class:`ConvGeometry` is held by spatial layers as a component. It validates
the window arguments once, computes output shapes through
:mod:`dl_graph.shape`, and prepares inputs for the backend ops: ``FULL``
padding has no backend counterpart, so forward ops get an explicit zero pad
of ``effective_window - 1`` on each side followed by a ``VALID`` op, and
transposed ops run ``VALID`` and crop the same amount from each side.
"""

import tensorflow as tf
from keras import ops
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Padding, Shape, as_tuple, effective_window, spatial_output_shape

# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ConvGeometry:
    """Window geometry of an N-D channels-last spatial op.

    Attributes:
        rank: Number of spatial axes.
        kernel_size: Window size per spatial axis.
        strides: Stride per spatial axis.
        dilations: Dilation per spatial axis.
        padding: Padding mode.
        output_padding: Per-axis output padding of transposed ops.
    """
    rank: int
    kernel_size: Tuple[int, ...]
    strides: Tuple[int, ...]
    dilations: Tuple[int, ...]
    padding: Padding
    output_padding: Optional[Tuple[int, ...]] = None

    @classmethod
    def create(
            cls,
            rank: int,
            kernel_size,
            strides=1,
            dilations=1,
            padding="valid",
            output_padding=None) -> "ConvGeometry":
        """Validate window arguments and expand ints to ``rank``-tuples.

        Raises:
            ValueError: On non-positive window sizes, strides or dilations,
                or on strides combined with dilations.
        """
        kernel_size = as_tuple(kernel_size, rank, "kernel_size")
        strides = as_tuple(strides, rank, "strides")
        dilations = as_tuple(dilations, rank, "dilations")
        for name, values in (("kernel_size", kernel_size), ("strides", strides),
                             ("dilations", dilations)):
            if any(v <= 0 for v in values):
                raise ValueError(f"{name} must contain positive integers, got {values}")
        if any(s > 1 for s in strides) and any(d > 1 for d in dilations):
            raise ValueError(
                f"strides > 1 are not supported together with dilations > 1, "
                f"got strides={strides}, dilations={dilations}")
        if output_padding is not None:
            output_padding = as_tuple(output_padding, rank, "output_padding")
            for pad, stride in zip(output_padding, strides):
                if pad < 0 or pad >= stride:
                    raise ValueError(
                        f"output_padding must be in [0, stride), got "
                        f"output_padding={output_padding}, strides={strides}")
        return cls(
            rank=rank,
            kernel_size=kernel_size,
            strides=strides,
            dilations=dilations,
            padding=Padding.from_value(padding),
            output_padding=output_padding)

    # -----------------------------------------------------------------

    def output_shape(
            self,
            input_shape: Sequence[Optional[int]],
            channels: Optional[int] = None,
            transpose: bool = False) -> Shape:
        return spatial_output_shape(
            input_shape,
            self.kernel_size,
            self.strides,
            self.dilations,
            self.padding,
            channels=channels,
            transpose=transpose,
            output_padding=self.output_padding if transpose else None)

    @property
    def full_pad(self) -> Tuple[int, ...]:
        """Per-axis amount padded (or cropped) on each side under ``FULL``."""
        return tuple(
            effective_window(k, d) - 1 for k, d in zip(self.kernel_size, self.dilations))

    @property
    def backend_padding(self) -> str:
        """Padding argument handed to the backend op."""
        if self.padding == Padding.SAME:
            return "same"
        return "valid"

    def pad_input(self, x):
        """Zero-pad spatial axes for ``FULL`` padding; other modes pass through."""
        if self.padding != Padding.FULL:
            return x
        pad_width = [[0, 0]] + [[p, p] for p in self.full_pad] + [[0, 0]]
        return ops.pad(x, pad_width)

    # -----------------------------------------------------------------

    def conv(self, x, kernel):
        """N-D convolution of ``x`` with ``kernel`` of shape ``(*window, in, out)``."""
        return ops.conv(
            self.pad_input(x),
            kernel,
            strides=self.strides,
            padding=self.backend_padding,
            dilation_rate=self.dilations)

    def conv_transpose(self, x, kernel, filters: int):
        """N-D transposed convolution, ``kernel`` of shape ``(*window, out, in)``.

        The output extent is the one computed by
        :func:`dl_graph.shape.conv_transpose_output_length`.
        """
        static_shape = tuple(x.shape)
        if self.padding == Padding.FULL:
            # run VALID onto the enlarged extent, then crop
            target = [
                extent + 2 * pad
                for extent, pad in zip(
                    self.output_shape(static_shape, filters, transpose=True)[1:-1],
                    self.full_pad)]
            tf_padding = "VALID"
        else:
            target = list(self.output_shape(static_shape, filters, transpose=True)[1:-1])
            tf_padding = self.padding.tf_name

        output_shape = tf.stack([tf.shape(x)[0], *target, filters])
        y = tf.nn.conv_transpose(
            x,
            ops.convert_to_tensor(kernel),
            output_shape=output_shape,
            strides=[1, *self.strides, 1],
            padding=tf_padding,
            dilations=[1, *self.dilations, 1])

        if self.padding == Padding.FULL:
            slices = [slice(None)]
            slices += [slice(pad, extent - pad) for pad, extent in zip(self.full_pad, target)]
            slices.append(slice(None))
            y = y[tuple(slices)]
        return y

    # -----------------------------------------------------------------

    def keras_config(self, include_dilations: bool = True) -> dict:
        config = {
            "kernel_size": list(self.kernel_size),
            "strides": list(self.strides),
            "padding": self.padding,
        }
        if include_dilations:
            config["dilation_rate"] = list(self.dilations)
        if self.output_padding is not None:
            config["output_padding"] = list(self.output_padding)
        return config

# ---------------------------------------------------------------------
