"""
Reshaping layers: flatten, reshape, and 2D zero padding / cropping.
"""

from keras import ops
from typing import Any, Dict, Sequence, Tuple

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Shape, num_elements
from dl_graph.errors import ShapeError
from dl_graph.layers.base import Layer, check_rank

# ---------------------------------------------------------------------


def _pairs(value, name: str) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Normalize ``int``, ``(h, w)`` or ``((top, bottom), (left, right))``."""
    if isinstance(value, int):
        result = ((value, value), (value, value))
    elif len(value) == 2 and all(isinstance(v, int) for v in value):
        result = ((value[0], value[0]), (value[1], value[1]))
    elif len(value) == 2:
        result = tuple(tuple(int(x) for x in v) for v in value)
    elif len(value) == 4:
        result = ((int(value[0]), int(value[1])), (int(value[2]), int(value[3])))
    else:
        raise ValueError(f"Cannot interpret {name}={value}")
    if any(len(pair) != 2 for pair in result) or any(x < 0 for pair in result for x in pair):
        raise ValueError(f"{name} must contain non-negative amounts, got {value}")
    return result

# ---------------------------------------------------------------------


class Flatten(Layer):
    """Collapses all non-batch axes into one."""

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        return (input_shape[0], num_elements(input_shape[1:]))

    def forward(self, inputs, record, training=False):
        return ops.reshape(inputs, (-1, num_elements(tuple(inputs.shape)[1:])))

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["data_format"] = "channels_last"
        return config


class Reshape(Layer):
    """Reshapes the per-example part of the input to ``target_shape``.

    Args:
        target_shape: New per-example shape, one entry may be ``-1``.
    """

    def __init__(
            self,
            target_shape: Sequence[int],
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        self.target_shape = tuple(int(d) for d in target_shape)
        if sum(1 for d in self.target_shape if d == -1) > 1:
            raise ValueError(f"Only one -1 is allowed in target_shape, got {self.target_shape}")
        if any(d == 0 or d < -1 for d in self.target_shape):
            raise ValueError(f"Invalid target_shape {self.target_shape}")

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        total = num_elements(input_shape[1:])
        known = 1
        for d in self.target_shape:
            if d != -1:
                known *= d
        if -1 in self.target_shape:
            if total % known != 0:
                raise ShapeError(
                    f"Layer [{self.name}] cannot reshape {tuple(input_shape)} to "
                    f"{self.target_shape}")
            target = tuple(total // known if d == -1 else d for d in self.target_shape)
        else:
            if known != total:
                raise ShapeError(
                    f"Layer [{self.name}] cannot reshape {tuple(input_shape)} "
                    f"({total} elements) to {self.target_shape} ({known} elements)")
            target = self.target_shape
        return (input_shape[0], *target)

    def forward(self, inputs, record, training=False):
        return ops.reshape(inputs, (-1, *record.output_shape[1:]))

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["target_shape"] = list(self.target_shape)
        return config

# ---------------------------------------------------------------------


class ZeroPadding2D(Layer):
    """Pads height and width of ``(batch, height, width, channels)`` with zeros.

    Args:
        padding: ``int``, ``(h, w)``, ``((top, bottom), (left, right))`` or
            ``(top, bottom, left, right)``.
    """

    def __init__(
            self,
            padding=1,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        self.padding = _pairs(padding, "padding")

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        check_rank(self, input_shape, 4)
        (top, bottom), (left, right) = self.padding
        height, width = input_shape[1], input_shape[2]
        return (
            input_shape[0],
            None if height is None else height + top + bottom,
            None if width is None else width + left + right,
            input_shape[3])

    def forward(self, inputs, record, training=False):
        return ops.pad(inputs, [[0, 0], list(self.padding[0]), list(self.padding[1]), [0, 0]])

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["padding"] = [list(p) for p in self.padding]
        config["data_format"] = "channels_last"
        return config


class Cropping2D(Layer):
    """Crops height and width of ``(batch, height, width, channels)``.

    Args:
        cropping: Same forms as ``ZeroPadding2D.padding``.
    """

    def __init__(
            self,
            cropping=((0, 0), (0, 0)),
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        self.cropping = _pairs(cropping, "cropping")

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        check_rank(self, input_shape, 4)
        output = [input_shape[0]]
        for extent, (before, after) in zip(input_shape[1:3], self.cropping):
            if extent is None:
                output.append(None)
                continue
            if before + after >= extent:
                raise ShapeError(
                    f"Layer [{self.name}] cannot crop {before + after} from extent {extent} "
                    f"of input shape {tuple(input_shape)}")
            output.append(extent - before - after)
        output.append(input_shape[3])
        return tuple(output)

    def forward(self, inputs, record, training=False):
        (top, bottom), (left, right) = self.cropping
        height, width = tuple(inputs.shape)[1:3]
        return inputs[:, top:height - bottom, left:width - right, :]

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["cropping"] = [list(c) for c in self.cropping]
        config["data_format"] = "channels_last"
        return config

# ---------------------------------------------------------------------
