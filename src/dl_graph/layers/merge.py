"""
Merge layers combining the outputs of two or more inbound layers.

Elementwise merges require identical inbound shapes; ``Concatenate``
requires identical shapes except along its axis. Incompatible shapes raise
:class:`~dl_graph.errors.ShapeMismatchError` naming the inbound layers.
"""

from keras import ops
from functools import reduce
from typing import Any, Dict, List, Sequence

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Shape
from dl_graph.errors import ShapeError, ShapeMismatchError
from dl_graph.layers.base import Layer

# ---------------------------------------------------------------------


class _Merge(Layer):
    """Elementwise merge of inputs with identical shapes."""

    is_merge = True
    min_inputs = 2
    max_inputs = None

    def _check_count(self, input_shapes: List[Shape]) -> None:
        count = len(input_shapes)
        if count < self.min_inputs or (self.max_inputs is not None and count > self.max_inputs):
            expected = (
                f"exactly {self.min_inputs}" if self.max_inputs == self.min_inputs
                else f"at least {self.min_inputs}")
            raise ShapeError(
                f"Layer [{self.name}] of type {self.__class__.__name__} expects "
                f"{expected} inputs, got {count}")

    def compute_output_shape(self, input_shapes: List[Shape]) -> Shape:
        if not isinstance(input_shapes, list):
            raise ShapeError(
                f"Layer [{self.name}] of type {self.__class__.__name__} expects a list "
                f"of input shapes, got {input_shapes}")
        self._check_count(input_shapes)
        first = tuple(input_shapes[0])
        for shape in input_shapes[1:]:
            if tuple(shape)[1:] != first[1:]:
                raise ShapeMismatchError(
                    self.name, self.inbound, input_shapes,
                    detail="all inputs must have the same shape")
        return first

    def merge(self, inputs):
        raise NotImplementedError

    def forward(self, inputs, record, training=False):
        return self.merge(list(inputs))


class Add(_Merge):
    """Elementwise sum."""

    def merge(self, inputs):
        return reduce(ops.add, inputs)


class Subtract(_Merge):
    """``inputs[0] - inputs[1]``."""

    max_inputs = 2

    def merge(self, inputs):
        return ops.subtract(inputs[0], inputs[1])


class Multiply(_Merge):
    """Elementwise product."""

    def merge(self, inputs):
        return reduce(ops.multiply, inputs)


class Minimum(_Merge):
    """Elementwise minimum."""

    def merge(self, inputs):
        return reduce(ops.minimum, inputs)


class Maximum(_Merge):
    """Elementwise maximum."""

    def merge(self, inputs):
        return reduce(ops.maximum, inputs)


class Average(_Merge):
    """Elementwise mean."""

    def merge(self, inputs):
        return reduce(ops.add, inputs) / float(len(inputs))

# ---------------------------------------------------------------------


class Concatenate(_Merge):
    """Concatenation along ``axis``.

    Args:
        axis: Concatenation axis, negative values count from the end. The
            batch axis cannot be concatenated.
    """

    def __init__(
            self,
            axis: int = -1,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        self.axis = int(axis)

    def compute_output_shape(self, input_shapes: List[Shape]) -> Shape:
        if not isinstance(input_shapes, list):
            raise ShapeError(
                f"Layer [{self.name}] of type Concatenate expects a list of input "
                f"shapes, got {input_shapes}")
        self._check_count(input_shapes)
        rank = len(input_shapes[0])
        axis = self.axis + rank if self.axis < 0 else self.axis
        if axis <= 0 or axis >= rank:
            raise ShapeError(
                f"Layer [{self.name}]: concatenation axis {self.axis} is out of range "
                f"for input rank {rank}")

        output = list(input_shapes[0])
        for shape in input_shapes[1:]:
            if len(shape) != rank:
                raise ShapeMismatchError(
                    self.name, self.inbound, input_shapes, detail="all inputs must have the same rank")
            for i in range(1, rank):
                if i != axis and shape[i] != output[i]:
                    raise ShapeMismatchError(
                        self.name, self.inbound, input_shapes,
                        detail=f"shapes must match except along axis {self.axis}")
            if output[axis] is None or shape[axis] is None:
                output[axis] = None
            else:
                output[axis] += shape[axis]
        return tuple(output)

    def merge(self, inputs):
        return ops.concatenate(inputs, axis=self.axis)

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config["axis"] = self.axis
        return config

# ---------------------------------------------------------------------
