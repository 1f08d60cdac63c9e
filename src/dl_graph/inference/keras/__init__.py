"""
Keras model configuration support.

- :mod:`~dl_graph.inference.keras.loader`: Keras JSON configuration to layers
  and models
- :mod:`~dl_graph.inference.keras.serializer`: models to Keras JSON
  configuration
- :mod:`~dl_graph.inference.keras.weights`: Keras HDF5 weights into compiled
  models
"""

from dl_graph.inference.keras.loader import (
    convert_padding,
    convert_to_activation,
    convert_to_initializer,
    convert_to_layer,
    convert_to_regularizer,
    deserialize_functional_model,
    deserialize_sequential_model,
    load_functional_model_layers,
    load_sequential_model_layers,
    load_serialized_model,
)
from dl_graph.inference.keras.serializer import (
    save_model_configuration,
    serialize_layer,
    serialize_model,
)
from dl_graph.inference.keras.weights import (
    load_weights_from_keras_h5,
    read_keras_h5_weights,
)
