"""
Weight regularizers.

A regularizer maps a weight tensor to a scalar penalty that is added to the
training loss::

    L1:    l1 * sum(|x|)
    L2:    l2 * sum(x ** 2)
    L2L1:  l1 * sum(|x|) + l2 * sum(x ** 2)

Zero coefficients never produce a regularizer: :func:`create_regularizer`
returns ``None`` instead of a no-op penalty so no graph node is spent on it.
"""

import math
import keras
from keras import ops
from typing import Any, Dict, Optional

# ---------------------------------------------------------------------


def validate_float_arg(value, name):
    """check penalty number availability, raise ValueError if failed."""
    if (
        not isinstance(value, (float, int))
        or (math.isinf(value) or math.isnan(value))
    ):
        raise ValueError(
            f"Invalid value for argument {name}: expected a float."
            f"Received: {name}={value}"
        )
    return float(value)

# ---------------------------------------------------------------------


class Regularizer(keras.regularizers.Regularizer):
    """Base class of ``dl_graph`` regularizers; ``penalty`` is an alias of ``__call__``."""

    def penalty(self, x):
        return self(x)

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.get_config() == other.get_config()

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(self.get_config().items()))))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.get_config().items())
        return f"{self.__class__.__name__}({params})"


class L1(Regularizer):
    """L1 penalty ``l1 * sum(|x|)``."""

    def __init__(self, l1: float = 0.01) -> None:
        self.l1 = validate_float_arg(l1, name="l1")

    def __call__(self, x):
        return self.l1 * ops.sum(ops.absolute(x))

    def get_config(self) -> Dict[str, Any]:
        return {"l1": float(self.l1)}


class L2(Regularizer):
    """L2 penalty ``l2 * sum(x ** 2)``."""

    def __init__(self, l2: float = 0.01) -> None:
        self.l2 = validate_float_arg(l2, name="l2")

    def __call__(self, x):
        return self.l2 * ops.sum(ops.square(x))

    def get_config(self) -> Dict[str, Any]:
        return {"l2": float(self.l2)}


class L2L1(Regularizer):
    """Combined penalty ``l1 * sum(|x|) + l2 * sum(x ** 2)``."""

    def __init__(self, l1: float = 0.01, l2: float = 0.01) -> None:
        self.l1 = validate_float_arg(l1, name="l1")
        self.l2 = validate_float_arg(l2, name="l2")

    def __call__(self, x):
        return self.l1 * ops.sum(ops.absolute(x)) + self.l2 * ops.sum(ops.square(x))

    def get_config(self) -> Dict[str, Any]:
        return {"l1": float(self.l1), "l2": float(self.l2)}

# ---------------------------------------------------------------------


def create_regularizer(
        l1: Optional[float] = 0.0,
        l2: Optional[float] = 0.0) -> Optional[Regularizer]:
    """Build the cheapest regularizer matching the coefficients.

    Args:
        l1: L1 coefficient, ``None`` is treated as zero.
        l2: L2 coefficient, ``None`` is treated as zero.

    Returns:
        :class:`L2L1` when both are non-zero, :class:`L1` or :class:`L2` when
        exactly one is, ``None`` when both are zero.
    """
    l1 = validate_float_arg(0.0 if l1 is None else l1, name="l1")
    l2 = validate_float_arg(0.0 if l2 is None else l2, name="l2")

    if l1 != 0.0 and l2 != 0.0:
        return L2L1(l1=l1, l2=l2)
    if l1 != 0.0:
        return L1(l1=l1)
    if l2 != 0.0:
        return L2(l2=l2)
    return None

# ---------------------------------------------------------------------
