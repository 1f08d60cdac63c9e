"""
Model over an arbitrary layer DAG.
"""

from pathlib import Path
from typing import Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.layers import Layer
from dl_graph.models.graph_model import GraphTrainableModel

# ---------------------------------------------------------------------


class Functional(GraphTrainableModel):
    """Model whose layers name their inbound layers explicitly.

    Layers may branch and merge; every inbound layer must be declared before
    the layer that uses it.

    Example:
        ```python
        inputs = Input(28, 28, 1)
        conv_1 = Conv2D(filters=8, kernel_size=3)(inputs)
        conv_2 = Conv2D(filters=8, kernel_size=3)(inputs)
        added = Add()(conv_1, conv_2)
        flat = Flatten()(added)
        outputs = Dense(units=10)(flat)
        model = Functional.of(inputs, conv_1, conv_2, added, flat, outputs)
        ```
    """

    @classmethod
    def of(cls, *layers: Layer, name: str = "") -> "Functional":
        if len(layers) == 1 and isinstance(layers[0], (list, tuple)):
            layers = tuple(layers[0])
        return cls(list(layers), name=name)

    @classmethod
    def load_model_configuration(cls, path: Union[str, Path]) -> "Functional":
        """Build an uncompiled model from a Keras functional ``Model`` JSON configuration."""
        from dl_graph.inference.keras.loader import deserialize_functional_model, load_serialized_model
        return deserialize_functional_model(load_serialized_model(path))

# ---------------------------------------------------------------------
