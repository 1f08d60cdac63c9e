"""
Shape algebra for spatial layers.

Pure functions that compute output extents of convolution and pooling
operations from the input extent, the window size, the padding mode, the
stride and the dilation. Shapes are channels-last tuples whose first entry is
the batch dimension (``None`` when unknown); batch and channel axes pass
through untouched and every spatial axis is computed independently.

Forward extents follow::

    effective_window = (window - 1) * dilation + 1
    VALID: floor((input - effective_window) / stride) + 1
    SAME:  ceil(input / stride)
    FULL:  floor((input + effective_window - 2) / stride) + 1

Transposed extents invert the forward formula. The inverse is not unique for
``stride > 1``; without an explicit ``output_padding`` the smallest extent that
maps back onto the input is chosen, and ``output_padding`` selects one of the
``stride`` candidates above it.
"""

import math
from enum import Enum
from typing import Optional, Sequence, Tuple

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.errors import ShapeError

# ---------------------------------------------------------------------

Shape = Tuple[Optional[int], ...]

# ---------------------------------------------------------------------


class Padding(str, Enum):
    """Padding modes understood by spatial layers."""
    VALID = "valid"
    SAME = "same"
    FULL = "full"

    @property
    def tf_name(self) -> str:
        """Name of the padding scheme as the backend ops expect it."""
        return self.value.upper()

    @classmethod
    def from_value(cls, value) -> "Padding":
        if isinstance(value, Padding):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown padding [{value}]. Supported: {[p.value for p in cls]}") from None

# ---------------------------------------------------------------------


def effective_window(window_size: int, dilation: int = 1) -> int:
    """Size of a window once holes introduced by ``dilation`` are counted."""
    return (window_size - 1) * dilation + 1


def _check_positive(value: int, name: str) -> None:
    if value is None or value <= 0:
        raise ShapeError(f"{name} must be a positive integer, got {value}")


def conv_output_length(
        input_length: Optional[int],
        filter_size: int,
        padding: Padding,
        stride: int,
        dilation: int = 1) -> Optional[int]:
    """Compute the output extent of a convolution or pooling along one axis.

    Args:
        input_length: Input extent, ``None`` for an unknown extent.
        filter_size: Size of the window.
        padding: One of :class:`Padding`.
        stride: Step of the window.
        dilation: Dilation rate of the window.

    Returns:
        The output extent, or ``None`` when ``input_length`` is ``None``.

    Raises:
        ShapeError: If any extent is non-positive or the window does not fit
            into the input under ``VALID`` padding.
    """
    if input_length is None:
        return None
    _check_positive(input_length, "input extent")
    _check_positive(filter_size, "window size")
    _check_positive(stride, "stride")
    _check_positive(dilation, "dilation")

    padding = Padding.from_value(padding)
    window = effective_window(filter_size, dilation)

    if padding == Padding.VALID:
        if window > input_length:
            raise ShapeError(
                f"Window of effective size {window} exceeds input extent {input_length} "
                f"under VALID padding")
        return (input_length - window) // stride + 1
    if padding == Padding.SAME:
        return int(math.ceil(input_length / stride))
    return (input_length + window - 2) // stride + 1


def conv_transpose_output_length(
        input_length: Optional[int],
        filter_size: int,
        padding: Padding,
        stride: int,
        dilation: int = 1,
        output_padding: Optional[int] = None) -> Optional[int]:
    """Solve the forward formula for the extent that produced ``input_length``.

    Args:
        input_length: Extent seen by the transposed layer (forward output).
        filter_size: Size of the window.
        padding: One of :class:`Padding`.
        stride: Step of the window.
        dilation: Dilation rate of the window.
        output_padding: Offset in ``[0, stride)`` added to the smallest
            pre-image. ``None`` is the same as ``0``.

    Returns:
        The pre-image extent, or ``None`` when ``input_length`` is ``None``.

    Raises:
        ShapeError: If extents are non-positive, ``output_padding`` is out of
            range, or no positive pre-image exists.
    """
    if input_length is None:
        return None
    _check_positive(input_length, "input extent")
    _check_positive(filter_size, "window size")
    _check_positive(stride, "stride")
    _check_positive(dilation, "dilation")

    padding = Padding.from_value(padding)
    window = effective_window(filter_size, dilation)

    if output_padding is None:
        output_padding = 0
    if output_padding < 0 or output_padding >= stride:
        raise ShapeError(
            f"output_padding must be in [0, {stride}) for stride {stride}, got {output_padding}")

    if padding == Padding.VALID:
        length = (input_length - 1) * stride + window
    elif padding == Padding.SAME:
        length = (input_length - 1) * stride + 1
    else:
        length = (input_length - 1) * stride - window + 2

    length += output_padding
    if length <= 0:
        raise ShapeError(
            f"Transposed extent for input {input_length}, window {window}, stride {stride} "
            f"and padding {padding.value} is not positive: {length}")
    return length

# ---------------------------------------------------------------------


def spatial_output_shape(
        input_shape: Sequence[Optional[int]],
        kernel_size: Sequence[int],
        strides: Sequence[int],
        dilations: Sequence[int],
        padding: Padding,
        channels: Optional[int] = None,
        transpose: bool = False,
        output_padding: Optional[Sequence[int]] = None) -> Shape:
    """Output shape of an N-D channels-last spatial operation.

    Args:
        input_shape: ``(batch, *spatial, channels)``.
        kernel_size: One window size per spatial axis.
        strides: One stride per spatial axis.
        dilations: One dilation per spatial axis.
        padding: One of :class:`Padding`.
        channels: Output channel count; ``None`` keeps the input channels.
        transpose: Invert the forward formula (transposed convolution).
        output_padding: Per-axis ``output_padding`` for ``transpose``.

    Returns:
        ``(batch, *spatial_out, channels_out)``.
    """
    rank = len(kernel_size)
    if len(input_shape) != rank + 2:
        raise ShapeError(
            f"Expected a {rank + 2}D input shape (batch, {rank} spatial axes, channels), "
            f"got {tuple(input_shape)}")

    spatial = []
    for axis in range(rank):
        extent = input_shape[axis + 1]
        if transpose:
            spatial.append(conv_transpose_output_length(
                extent,
                kernel_size[axis],
                padding,
                strides[axis],
                dilations[axis],
                None if output_padding is None else output_padding[axis]))
        else:
            spatial.append(conv_output_length(
                extent, kernel_size[axis], padding, strides[axis], dilations[axis]))

    out_channels = input_shape[-1] if channels is None else channels
    return (input_shape[0], *spatial, out_channels)

# ---------------------------------------------------------------------


def num_elements(shape: Sequence[Optional[int]]) -> int:
    """Number of elements of a fully-defined shape."""
    total = 1
    for dim in shape:
        if dim is None:
            raise ShapeError(f"Cannot count elements of partially-defined shape {tuple(shape)}")
        total *= int(dim)
    return total


def shape_to_str(shape: Sequence[Optional[int]]) -> str:
    """Render a shape the way the model summary prints it, e.g. ``[None, 28, 28, 1]``."""
    return "[" + ", ".join("None" if d is None else str(d) for d in shape) + "]"


def as_tuple(value, rank: int, name: str) -> Tuple[int, ...]:
    """Expand an int to a ``rank``-tuple and validate a sequence's length."""
    if isinstance(value, int):
        return (value,) * rank
    value = tuple(int(v) for v in value)
    if len(value) != rank:
        raise ValueError(f"{name} must contain {rank} integers, got {value}")
    return value

# ---------------------------------------------------------------------
