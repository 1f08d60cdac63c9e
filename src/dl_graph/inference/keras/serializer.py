"""
Keras Model Configuration Serializer.

Writes a model's architecture as a Keras-format JSON document that
:mod:`dl_graph.inference.keras.loader` reads back. Every layer entry carries
its inbound nodes (Keras 2 form), so any model can be reloaded with the
functional loader; models whose layers form a single chain are tagged
``Sequential`` and can also be reloaded with the sequential loader.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.errors import ConfigError
from dl_graph.initializers import (
    Constant, GlorotNormal, GlorotUniform, HeNormal, HeUniform, Identity,
    Initializer, LeCunNormal, LeCunUniform, Ones, Orthogonal, RandomNormal,
    RandomUniform, TruncatedNormal, VarianceScaling, Zeros)
from dl_graph.regularizers import L1, L2, L2L1, Regularizer
from dl_graph.layers import (
    ActivationLayer, Add, Average, AvgPool1D, AvgPool2D, AvgPool3D, BatchNorm,
    Concatenate, Conv1D, Conv1DTranspose, Conv2D, Conv2DTranspose, Conv3D,
    Conv3DTranspose, Cropping2D, Dense, DepthwiseConv2D, Dropout, ELU, Flatten,
    GlobalAvgPool1D, GlobalAvgPool2D, GlobalAvgPool3D, GlobalMaxPool1D,
    GlobalMaxPool2D, GlobalMaxPool3D, Input, Layer, LeakyReLU, MaxPool1D,
    MaxPool2D, MaxPool3D, Maximum, Minimum, Multiply, PReLU, ReLU, Reshape,
    SeparableConv2D, Softmax, Subtract, ThresholdedReLU, ZeroPadding2D)
from dl_graph.inference.keras.constants import *

# ---------------------------------------------------------------------

_LAYER_TAGS = {
    Input: LAYER_INPUT,
    Dense: LAYER_DENSE,
    ActivationLayer: LAYER_ACTIVATION,
    Conv1D: LAYER_CONV1D,
    Conv2D: LAYER_CONV2D,
    Conv3D: LAYER_CONV3D,
    Conv1DTranspose: LAYER_CONV1D_TRANSPOSE,
    Conv2DTranspose: LAYER_CONV2D_TRANSPOSE,
    Conv3DTranspose: LAYER_CONV3D_TRANSPOSE,
    DepthwiseConv2D: LAYER_DEPTHWISE_CONV2D,
    SeparableConv2D: LAYER_SEPARABLE_CONV2D,
    MaxPool1D: LAYER_MAX_POOLING_1D,
    MaxPool2D: LAYER_MAX_POOLING_2D,
    MaxPool3D: LAYER_MAX_POOLING_3D,
    AvgPool1D: LAYER_AVG_POOLING_1D,
    AvgPool2D: LAYER_AVG_POOLING_2D,
    AvgPool3D: LAYER_AVG_POOLING_3D,
    GlobalAvgPool1D: LAYER_GLOBAL_AVG_POOLING_1D,
    GlobalAvgPool2D: LAYER_GLOBAL_AVG_POOLING_2D,
    GlobalAvgPool3D: LAYER_GLOBAL_AVG_POOLING_3D,
    GlobalMaxPool1D: LAYER_GLOBAL_MAX_POOLING_1D,
    GlobalMaxPool2D: LAYER_GLOBAL_MAX_POOLING_2D,
    GlobalMaxPool3D: LAYER_GLOBAL_MAX_POOLING_3D,
    BatchNorm: LAYER_BATCH_NORM,
    ReLU: LAYER_RELU,
    LeakyReLU: LAYER_LEAKY_RELU,
    ELU: LAYER_ELU,
    PReLU: LAYER_PRELU,
    ThresholdedReLU: LAYER_THRESHOLDED_RELU,
    Softmax: LAYER_SOFTMAX,
    Add: LAYER_ADD,
    Subtract: LAYER_SUBTRACT,
    Multiply: LAYER_MULTIPLY,
    Minimum: LAYER_MINIMUM,
    Maximum: LAYER_MAXIMUM,
    Average: LAYER_AVERAGE,
    Concatenate: LAYER_CONCATENATE,
    Flatten: LAYER_FLATTEN,
    Reshape: LAYER_RESHAPE,
    ZeroPadding2D: LAYER_ZERO_PADDING_2D,
    Cropping2D: LAYER_CROPPING_2D,
    Dropout: LAYER_DROPOUT,
}

_INITIALIZER_NAMES = {
    GlorotUniform: INITIALIZER_GLOROT_UNIFORM,
    GlorotNormal: INITIALIZER_GLOROT_NORMAL,
    HeNormal: INITIALIZER_HE_NORMAL,
    HeUniform: INITIALIZER_HE_UNIFORM,
    LeCunNormal: INITIALIZER_LECUN_NORMAL,
    LeCunUniform: INITIALIZER_LECUN_UNIFORM,
    Zeros: INITIALIZER_ZEROS,
    Ones: INITIALIZER_ONES,
    Constant: INITIALIZER_CONSTANT,
    RandomNormal: INITIALIZER_RANDOM_NORMAL,
    RandomUniform: INITIALIZER_RANDOM_UNIFORM,
    TruncatedNormal: INITIALIZER_TRUNCATED_NORMAL,
    VarianceScaling: INITIALIZER_VARIANCE_SCALING,
    Orthogonal: INITIALIZER_ORTHOGONAL,
    Identity: INITIALIZER_IDENTITY,
}

_REGULARIZER_NAMES = {
    L1: REGULARIZER_L1,
    L2: REGULARIZER_L2,
    L2L1: REGULARIZER_L1L2,
}

# ---------------------------------------------------------------------


def _convert_value(value: Any) -> Any:
    """Turn a ``get_config`` value into plain JSON data."""
    if isinstance(value, Initializer):
        return {"class_name": _INITIALIZER_NAMES[type(value)], "config": value.get_config()}
    if isinstance(value, Regularizer):
        return {"class_name": _REGULARIZER_NAMES[type(value)], "config": value.get_config()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _convert_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_convert_value(v) for v in value]
    return value


def serialize_layer(layer: Layer, inbound: List[str]) -> Dict[str, Any]:
    """Keras layer entry of ``layer``."""
    tag = _LAYER_TAGS.get(type(layer))
    if tag is None:
        raise ConfigError(
            f"Layer type {layer.__class__.__name__} has no Keras counterpart",
            layer_name=layer.name, field="class_name")
    return {
        "class_name": tag,
        "config": _convert_value(layer.get_config()),
        "name": layer.name,
        "inbound_nodes": [[[name, 0, 0, {}] for name in inbound]] if inbound else [],
    }


def serialize_model(model) -> Dict[str, Any]:
    """Keras-format configuration of ``model``."""
    layers = model.layers
    edges = model.container.edges

    is_chain = all(
        edges[layer.name] == (previous.name,)
        for previous, layer in zip(layers, layers[1:]))

    config = {
        "name": model.name,
        "layers": [serialize_layer(layer, list(edges[layer.name])) for layer in layers],
    }
    if not is_chain:
        config["input_layers"] = [[layers[0].name, 0, 0]]
        config["output_layers"] = [[layers[-1].name, 0, 0]]

    return {
        "class_name": MODEL_SEQUENTIAL if is_chain else MODEL_FUNCTIONAL,
        "config": config,
        "keras_version": KERAS_VERSION,
        "backend": BACKEND,
    }


def save_model_configuration(model, path: Union[str, Path]) -> None:
    """Write :func:`serialize_model` output to ``path`` as JSON."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as config_file:
        json.dump(serialize_model(model), config_file, indent=2)
    logger.info(f"Saved model configuration to [{path}]")

# ---------------------------------------------------------------------
