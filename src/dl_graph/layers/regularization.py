"""
Dropout.
"""

import keras
from typing import Any, Dict, Optional, Sequence

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.shape import Shape
from dl_graph.initializers import DEFAULT_SEED
from dl_graph.layers.base import Layer

# ---------------------------------------------------------------------


class Dropout(Layer):
    """Randomly zeroes a fraction ``rate`` of the inputs during training.

    Kept values are scaled by ``1 / (1 - rate)``; at inference the layer is
    the identity.

    Args:
        rate: Fraction of inputs to drop, in ``[0, 1)``.
        seed: Seed of the layer's random generator.
    """

    def __init__(
            self,
            rate: float = 0.1,
            seed: Optional[int] = DEFAULT_SEED,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence = ()) -> None:
        super().__init__(name=name, trainable=trainable, inbound=inbound)
        if not 0.0 <= rate < 1.0:
            raise ValueError(f"rate must be in [0, 1), got {rate}")
        self.rate = float(rate)
        self.seed = seed

    def compute_output_shape(self, input_shape: Shape) -> Shape:
        return tuple(input_shape)

    def create_state(self) -> Dict[str, Any]:
        return {"seed_generator": keras.random.SeedGenerator(self.seed)}

    def forward(self, inputs, record, training=False):
        if not training or self.rate == 0.0:
            return inputs
        return keras.random.dropout(
            inputs, self.rate, seed=record.state["seed_generator"])

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({"rate": self.rate, "seed": self.seed})
        return config

# ---------------------------------------------------------------------
