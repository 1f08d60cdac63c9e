"""
Linear stack of layers.
"""

from pathlib import Path
from typing import Sequence, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.layers import Input, Layer
from dl_graph.models.graph_model import GraphTrainableModel

# ---------------------------------------------------------------------


class Sequential(GraphTrainableModel):
    """Model whose layers each consume the output of the previous one.

    Layers declared without inbound layers are chained to their
    predecessor; the first layer must be the :class:`Input`.

    Example:
        ```python
        model = Sequential.of(
            Input(4),
            Dense(units=3, activation=Activations.LINEAR),
            Dense(units=2, activation=Activations.SOFTMAX))
        model.compile(optimizer="adam", loss=Losses.CATEGORICAL_CROSSENTROPY)
        ```
    """

    def __init__(self, layers: Sequence[Layer], name: str = "") -> None:
        layers = list(layers)
        for previous, layer in zip(layers, layers[1:]):
            if not layer.inbound:
                layer(previous)
        super().__init__(layers, name=name)

    @classmethod
    def of(cls, input_layer: Input, *layers: Layer, name: str = "") -> "Sequential":
        if len(layers) == 1 and isinstance(layers[0], (list, tuple)):
            layers = tuple(layers[0])
        return cls([input_layer, *layers], name=name)

    @classmethod
    def load_model_configuration(cls, path: Union[str, Path]) -> "Sequential":
        """Build an uncompiled model from a Keras ``Sequential`` JSON configuration."""
        from dl_graph.inference.keras.loader import deserialize_sequential_model, load_serialized_model
        return deserialize_sequential_model(load_serialized_model(path))

# ---------------------------------------------------------------------
