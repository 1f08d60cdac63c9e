"""
Weight initializers.

Every initializer is a stateless strategy with the contract
``generate(fan_in, fan_out, shape, dtype) -> tensor``. Sampling is seeded
with a plain integer, which makes it stateless on the backend: the same
initializer called twice with the same arguments produces the same values.

The variance-scaling family scales the variance of the sampled values by::

    GlorotNormal / GlorotUniform:  2 / (fan_in + fan_out)   (mode=fan_avg, scale=1)
    HeNormal / HeUniform:          2 / fan_in               (mode=fan_in,  scale=2)
    LeCunNormal / LeCunUniform:    1 / fan_in               (mode=fan_in,  scale=1)

combined with uniform, truncated normal or untruncated normal sampling.

Initializers also behave as regular Keras initializers: calling one with a
shape derives ``fan_in``/``fan_out`` from the shape the way Keras does.
"""

import math
import keras
from enum import Enum
from keras import ops
from typing import Any, Dict, Optional, Sequence, Tuple

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger

# ---------------------------------------------------------------------

DEFAULT_SEED = 12

# stddev correction of a normal distribution truncated at two standard deviations
TRUNCATED_NORMAL_STDDEV_CORRECTION = 0.87962566103423978

# ---------------------------------------------------------------------


class Mode(str, Enum):
    """Which fan the variance is scaled by."""
    FAN_IN = "fan_in"
    FAN_OUT = "fan_out"
    FAN_AVG = "fan_avg"


class Distribution(str, Enum):
    """Sampling distribution of variance-scaling initializers."""
    TRUNCATED_NORMAL = "truncated_normal"
    UNTRUNCATED_NORMAL = "untruncated_normal"
    UNIFORM = "uniform"

# ---------------------------------------------------------------------


def compute_fans(shape: Sequence[int]) -> Tuple[int, int]:
    """Compute ``(fan_in, fan_out)`` for a dense or convolution kernel shape."""
    shape = tuple(int(d) for d in shape)
    if len(shape) == 0:
        return 1, 1
    if len(shape) == 1:
        return shape[0], shape[0]
    if len(shape) == 2:
        return shape[0], shape[1]
    receptive_field = 1
    for dim in shape[:-2]:
        receptive_field *= dim
    return shape[-2] * receptive_field, shape[-1] * receptive_field

# ---------------------------------------------------------------------


class Initializer(keras.initializers.Initializer):
    """Base class of all ``dl_graph`` initializers.

    Subclasses implement :meth:`generate`.
    """

    def __init__(self, seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__()
        if seed is not None and not isinstance(seed, int):
            raise ValueError(f"Seed must be an integer, got {type(seed).__name__}")
        self.seed = seed

    def generate(
            self,
            fan_in: int,
            fan_out: int,
            shape: Sequence[int],
            dtype: Optional[str] = None) -> Any:
        """Produce initial values for a variable of ``shape``.

        Args:
            fan_in: Number of input units feeding one output unit.
            fan_out: Number of output units fed by one input unit.
            shape: Shape of the variable.
            dtype: Dtype of the values, defaults to ``keras.config.floatx()``.

        Returns:
            A tensor of ``shape``.
        """
        raise NotImplementedError

    def __call__(self, shape, dtype=None):
        fan_in, fan_out = compute_fans(shape)
        return self.generate(fan_in, fan_out, shape, dtype)

    def get_config(self) -> Dict[str, Any]:
        return {"seed": self.seed}

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.get_config().items())
        return f"{self.__class__.__name__}({params})"

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.get_config() == other.get_config()

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(self.get_config().items()))))

# ---------------------------------------------------------------------


class Zeros(Initializer):
    """Fills the variable with zeros."""

    def __init__(self) -> None:
        super().__init__(seed=None)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        return ops.zeros(tuple(shape), dtype=dtype or keras.config.floatx())

    def get_config(self) -> Dict[str, Any]:
        return {}


class Ones(Initializer):
    """Fills the variable with ones."""

    def __init__(self) -> None:
        super().__init__(seed=None)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        return ops.ones(tuple(shape), dtype=dtype or keras.config.floatx())

    def get_config(self) -> Dict[str, Any]:
        return {}


class Constant(Initializer):
    """Fills the variable with ``value``."""

    def __init__(self, value: float = 0.0) -> None:
        super().__init__(seed=None)
        self.value = float(value)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        return ops.full(tuple(shape), self.value, dtype=dtype or keras.config.floatx())

    def get_config(self) -> Dict[str, Any]:
        return {"value": self.value}

# ---------------------------------------------------------------------


class RandomNormal(Initializer):
    """Samples from ``N(mean, stddev)``."""

    def __init__(self, mean: float = 0.0, stddev: float = 0.05, seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__(seed=seed)
        self.mean = float(mean)
        self.stddev = float(stddev)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        return keras.random.normal(
            tuple(shape), mean=self.mean, stddev=self.stddev,
            dtype=dtype or keras.config.floatx(), seed=self.seed)

    def get_config(self) -> Dict[str, Any]:
        return {"mean": self.mean, "stddev": self.stddev, "seed": self.seed}


class RandomUniform(Initializer):
    """Samples from ``U(minval, maxval)``."""

    def __init__(self, minval: float = -0.05, maxval: float = 0.05, seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__(seed=seed)
        if minval > maxval:
            raise ValueError(f"minval must be <= maxval, got minval={minval}, maxval={maxval}")
        self.minval = float(minval)
        self.maxval = float(maxval)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        dtype = dtype or keras.config.floatx()
        if self.minval == self.maxval:
            return ops.full(tuple(shape), self.minval, dtype=dtype)
        return keras.random.uniform(
            tuple(shape), minval=self.minval, maxval=self.maxval, dtype=dtype, seed=self.seed)

    def get_config(self) -> Dict[str, Any]:
        return {"minval": self.minval, "maxval": self.maxval, "seed": self.seed}


class TruncatedNormal(Initializer):
    """Samples from ``N(mean, stddev)`` discarding values beyond two standard deviations."""

    def __init__(self, mean: float = 0.0, stddev: float = 0.05, seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__(seed=seed)
        self.mean = float(mean)
        self.stddev = float(stddev)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        return keras.random.truncated_normal(
            tuple(shape), mean=self.mean, stddev=self.stddev,
            dtype=dtype or keras.config.floatx(), seed=self.seed)

    def get_config(self) -> Dict[str, Any]:
        return {"mean": self.mean, "stddev": self.stddev, "seed": self.seed}

# ---------------------------------------------------------------------


class VarianceScaling(Initializer):
    """Generic variance-scaling initializer.

    The sampled values have variance ``scale / n`` where ``n`` is ``fan_in``,
    ``fan_out`` or their average depending on ``mode``.

    Args:
        scale: Positive scaling factor.
        mode: One of :class:`Mode`.
        distribution: One of :class:`Distribution`.
        seed: Integer seed.
    """

    def __init__(
            self,
            scale: float = 1.0,
            mode: Mode = Mode.FAN_IN,
            distribution: Distribution = Distribution.TRUNCATED_NORMAL,
            seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__(seed=seed)
        if scale <= 0.0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.scale = float(scale)
        self.mode = Mode(mode)
        self.distribution = Distribution(distribution)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        dtype = dtype or keras.config.floatx()
        if self.mode == Mode.FAN_IN:
            n = fan_in
        elif self.mode == Mode.FAN_OUT:
            n = fan_out
        else:
            n = (fan_in + fan_out) / 2.0
        scale = self.scale / max(1.0, n)

        logger.debug(
            f"{self.__class__.__name__}: sampling {tuple(shape)} with "
            f"fan_in={fan_in}, fan_out={fan_out}, variance={scale:.6f}")

        if self.distribution == Distribution.TRUNCATED_NORMAL:
            stddev = math.sqrt(scale) / TRUNCATED_NORMAL_STDDEV_CORRECTION
            return keras.random.truncated_normal(
                tuple(shape), mean=0.0, stddev=stddev, dtype=dtype, seed=self.seed)
        if self.distribution == Distribution.UNTRUNCATED_NORMAL:
            stddev = math.sqrt(scale)
            return keras.random.normal(
                tuple(shape), mean=0.0, stddev=stddev, dtype=dtype, seed=self.seed)
        limit = math.sqrt(3.0 * scale)
        return keras.random.uniform(
            tuple(shape), minval=-limit, maxval=limit, dtype=dtype, seed=self.seed)

    def get_config(self) -> Dict[str, Any]:
        return {
            "scale": self.scale,
            "mode": self.mode.value,
            "distribution": self.distribution.value,
            "seed": self.seed,
        }


class _NamedVarianceScaling(VarianceScaling):
    """Variance scaling with a fixed ``(scale, mode, distribution)`` triple."""

    SCALE = 1.0
    MODE = Mode.FAN_IN
    DISTRIBUTION = Distribution.TRUNCATED_NORMAL

    def __init__(self, seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__(
            scale=self.SCALE, mode=self.MODE, distribution=self.DISTRIBUTION, seed=seed)

    def get_config(self) -> Dict[str, Any]:
        return {"seed": self.seed}


class GlorotNormal(_NamedVarianceScaling):
    """Glorot (Xavier) normal: variance ``2 / (fan_in + fan_out)``."""
    MODE = Mode.FAN_AVG


class GlorotUniform(_NamedVarianceScaling):
    """Glorot (Xavier) uniform: variance ``2 / (fan_in + fan_out)``."""
    MODE = Mode.FAN_AVG
    DISTRIBUTION = Distribution.UNIFORM


class HeNormal(_NamedVarianceScaling):
    """He normal: variance ``2 / fan_in``."""
    SCALE = 2.0


class HeUniform(_NamedVarianceScaling):
    """He uniform: variance ``2 / fan_in``."""
    SCALE = 2.0
    DISTRIBUTION = Distribution.UNIFORM


class LeCunNormal(_NamedVarianceScaling):
    """LeCun normal: variance ``1 / fan_in``."""


class LeCunUniform(_NamedVarianceScaling):
    """LeCun uniform: variance ``1 / fan_in``."""
    DISTRIBUTION = Distribution.UNIFORM

# ---------------------------------------------------------------------


class Orthogonal(Initializer):
    """Orthogonal matrix initializer.

    The variable is viewed as a matrix of shape ``(prod(shape[:-1]), shape[-1])``;
    a normal matrix is decomposed with QR, the signs of ``Q`` are fixed by the
    diagonal of ``R`` and the result is multiplied by ``gain``.
    """

    def __init__(self, gain: float = 1.0, seed: Optional[int] = DEFAULT_SEED) -> None:
        super().__init__(seed=seed)
        self.gain = float(gain)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        dtype = dtype or keras.config.floatx()
        shape = tuple(int(d) for d in shape)
        if len(shape) < 2:
            raise ValueError(f"Orthogonal initializer requires at least a 2D shape, got {shape}")

        rows = 1
        for dim in shape[:-1]:
            rows *= dim
        cols = shape[-1]
        flat_shape = (max(rows, cols), min(rows, cols))

        a = keras.random.normal(flat_shape, dtype=dtype, seed=self.seed)
        q, r = ops.linalg.qr(a)
        q = q * ops.expand_dims(ops.sign(ops.diagonal(r)), axis=0)
        if rows < cols:
            q = ops.transpose(q)
        return self.gain * ops.reshape(q, shape)

    def get_config(self) -> Dict[str, Any]:
        return {"gain": self.gain, "seed": self.seed}


class Identity(Initializer):
    """Identity matrix multiplied by ``gain``; only valid for 2D variables."""

    def __init__(self, gain: float = 1.0) -> None:
        super().__init__(seed=None)
        self.gain = float(gain)

    def generate(self, fan_in, fan_out, shape, dtype=None):
        if len(shape) != 2:
            raise ValueError(f"Identity initializer requires a 2D shape, got {tuple(shape)}")
        return self.gain * ops.eye(int(shape[0]), int(shape[1]), dtype=dtype or keras.config.floatx())

    def get_config(self) -> Dict[str, Any]:
        return {"gain": self.gain}

# ---------------------------------------------------------------------
