"""
Keras Model Configuration Loader.

Turns a Keras ``model.to_json()`` document into ``dl_graph`` layers.

Two construction modes are supported:

- **Sequential**: layers are instantiated in file order and chained; the
  input layer is synthesized from the first entry's ``batch_input_shape``
  (Keras 2) or ``batch_shape`` (Keras 3).
- **Functional**: every entry additionally names its inbound layers, which
  are resolved against the layers declared before it.

Layer ``class_name`` tags, initializer and regularizer descriptors, and
activation / padding identifiers are mapped through closed tables: anything
unknown raises a :class:`~dl_graph.errors.ConfigError` subclass naming the
offending layer instead of being skipped.

Example:
    >>> config = load_serialized_model("modelConfig.json")
    >>> model = deserialize_sequential_model(config)
    >>> model.compile(optimizer="adam", loss="categorical_crossentropy")
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.shape import Padding
from dl_graph.activations import Activations
from dl_graph.errors import (
    ConfigError, PersistenceError, UnsupportedIdentifierError, UnsupportedLayerError)
from dl_graph.graph import GraphContext
from dl_graph.initializers import (
    DEFAULT_SEED, Constant, Distribution, GlorotNormal, GlorotUniform, HeNormal,
    HeUniform, Identity, Initializer, LeCunNormal, LeCunUniform, Mode, Ones,
    Orthogonal, RandomNormal, RandomUniform, TruncatedNormal, VarianceScaling,
    Zeros)
from dl_graph.regularizers import Regularizer, create_regularizer
from dl_graph.layers import (
    ActivationLayer, Add, Average, AvgPool1D, AvgPool2D, AvgPool3D, BatchNorm,
    Concatenate, Conv1D, Conv1DTranspose, Conv2D, Conv2DTranspose, Conv3D,
    Conv3DTranspose, Cropping2D, Dense, DepthwiseConv2D, Dropout, ELU, Flatten,
    GlobalAvgPool1D, GlobalAvgPool2D, GlobalAvgPool3D, GlobalMaxPool1D,
    GlobalMaxPool2D, GlobalMaxPool3D, Input, Layer, LeakyReLU, MaxPool1D,
    MaxPool2D, MaxPool3D, Maximum, Minimum, Multiply, PReLU, ReLU, Reshape,
    SeparableConv2D, Softmax, Subtract, ThresholdedReLU, ZeroPadding2D)
from dl_graph.models import Functional, Sequential
from dl_graph.inference.keras.constants import *

# ---------------------------------------------------------------------

DEFAULT_INPUT_NAME = "input"

ExplicitPadding = Tuple[Tuple[int, int], Tuple[int, int]]

# ---------------------------------------------------------------------
# documents
# ---------------------------------------------------------------------


def load_serialized_model(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a Keras JSON model configuration.

    Raises:
        PersistenceError: If the file does not exist.
        ConfigError: If the file is not valid JSON or has no layer list.
    """
    path = Path(path)
    if not path.is_file():
        raise PersistenceError("Model configuration file is not found", path=path)

    with open(path, encoding="utf-8") as config_file:
        try:
            config = json.load(config_file)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in [{path}]: {e}")
            raise ConfigError(
                f"JSON file [{path.name}] contains invalid JSON, "
                f"the model configuration could not be loaded from it") from e

    _layer_entries(config)
    logger.info(f"Loaded model configuration from [{path}]")
    return config


def _layer_entries(config: Dict[str, Any]) -> List[Dict[str, Any]]:
    if not isinstance(config, dict):
        raise ConfigError("A model configuration must be a JSON object")
    body = config.get("config")
    layers = body if isinstance(body, list) else (body or {}).get("layers")
    if not isinstance(layers, list) or not layers:
        raise ConfigError("The model configuration has no layers", field="config.layers")
    for entry in layers:
        if not isinstance(entry, dict) or "class_name" not in entry:
            raise ConfigError(f"Malformed layer entry {entry!r}", field="class_name")
    return layers


def _entry_name(entry: Dict[str, Any]) -> Optional[str]:
    return (entry.get("config") or {}).get("name") or entry.get("name")


def _model_name(config: Dict[str, Any]) -> str:
    body = config.get("config")
    return body.get("name", "") if isinstance(body, dict) else ""

# ---------------------------------------------------------------------
# models
# ---------------------------------------------------------------------


def load_sequential_model_layers(config: Dict[str, Any]) -> Tuple[Input, List[Layer]]:
    """Layers of a Keras ``Sequential`` configuration, without chaining them.

    Returns:
        The synthesized input layer and the remaining layers in file order.
    """
    entries = _layer_entries(config)
    context = GraphContext()
    input_layer = context.register(_create_input(entries[0]))

    layers = []
    for entry in entries:
        if entry["class_name"] == LAYER_INPUT:
            continue
        layers.append(convert_to_layer(entry, context))
    return input_layer, layers


def deserialize_sequential_model(config: Dict[str, Any]) -> Sequential:
    input_layer, layers = load_sequential_model_layers(config)
    return Sequential.of(input_layer, *layers, name=_model_name(config))


def load_functional_model_layers(config: Dict[str, Any]) -> List[Layer]:
    """Layers of a Keras functional ``Model`` configuration with inbound layers resolved.

    Raises:
        ConfigError: If an entry lists no inbound layer or one not declared
            before it, or if the configuration has more than one input.
    """
    entries = _layer_entries(config)
    context = GraphContext()
    input_layer = context.register(_create_input(entries[0]))
    layers: List[Layer] = [input_layer]

    for index, entry in enumerate(entries):
        if entry["class_name"] == LAYER_INPUT:
            if index != 0:
                raise ConfigError(
                    "Only models with a single input are supported",
                    layer_name=_entry_name(entry), field="class_name")
            continue
        layer = convert_to_layer(entry, context)
        inbound = _read_inbound_nodes(entry, layer.name)
        for inbound_name in inbound:
            context.resolve(inbound_name, requested_by=layer.name)
        layer.inbound = inbound
        layers.append(layer)
    return layers


def deserialize_functional_model(config: Dict[str, Any]) -> Functional:
    return Functional.of(load_functional_model_layers(config), name=_model_name(config))

# ---------------------------------------------------------------------
# inputs and inbound nodes
# ---------------------------------------------------------------------


def _create_input(first_entry: Dict[str, Any]) -> Input:
    layer_config = first_entry.get("config") or {}
    name = layer_config.get("name") if first_entry["class_name"] == LAYER_INPUT else None
    shape = layer_config.get("batch_input_shape") or layer_config.get("batch_shape")
    if not shape or len(shape) < 2:
        raise ConfigError(
            "The first layer must declare the model input shape",
            layer_name=_entry_name(first_entry), field="batch_input_shape")
    if any(d is None for d in shape[1:]):
        raise ConfigError(
            f"Input dimensions must be defined, got {shape}",
            layer_name=_entry_name(first_entry), field="batch_input_shape")
    return Input(*[int(d) for d in shape[1:]], name=name or DEFAULT_INPUT_NAME)


def _read_inbound_nodes(entry: Dict[str, Any], layer_name: str) -> List[str]:
    """Inbound layer names of a Keras 2 or Keras 3 entry, at entry level or inside ``config``."""
    nodes = entry.get("inbound_nodes")
    if nodes is None:
        nodes = (entry.get("config") or {}).get("inbound_nodes")
    if not nodes:
        raise ConfigError(
            "The list of inbound nodes must not be empty",
            layer_name=layer_name, field="inbound_nodes")

    node = nodes[0]
    if isinstance(node, dict):
        names = _keras_history_names(node.get("args", []))
    elif isinstance(node, list):
        names = []
        for inbound in node:
            if not inbound or not isinstance(inbound, (list, tuple)):
                raise ConfigError(
                    f"Malformed inbound node {inbound!r}",
                    layer_name=layer_name, field="inbound_nodes")
            names.append(str(inbound[0]))
    else:
        raise ConfigError(
            f"Malformed inbound nodes {nodes!r}",
            layer_name=layer_name, field="inbound_nodes")

    if not names:
        raise ConfigError(
            "The list of inbound nodes must not be empty",
            layer_name=layer_name, field="inbound_nodes")
    return names


def _keras_history_names(value: Any) -> List[str]:
    """Collect ``keras_history`` layer names from Keras 3 call arguments, in order."""
    if isinstance(value, dict):
        if value.get("class_name") == KERAS_TENSOR:
            return [str(value["config"][KERAS_HISTORY][0])]
        return [name for v in value.values() for name in _keras_history_names(v)]
    if isinstance(value, (list, tuple)):
        return [name for v in value for name in _keras_history_names(v)]
    return []

# ---------------------------------------------------------------------
# layers
# ---------------------------------------------------------------------


def convert_to_layer(entry: Dict[str, Any], context: Optional[GraphContext] = None) -> Layer:
    """Instantiate the layer described by one Keras layer entry.

    Args:
        entry: ``{"class_name": ..., "config": {...}}``.
        context: Graph-construction context the layer is registered in; it
            names layers whose entry has no name.

    Raises:
        UnsupportedLayerError: If ``class_name`` has no counterpart.
        ConfigError: If a required field is missing or malformed.
    """
    tag = entry.get("class_name")
    tag = LAYER_ALIASES.get(tag, tag)
    config = dict(entry.get("config") or {})
    name = _entry_name(entry) or ""

    factory = _LAYER_FACTORIES.get(tag)
    if factory is None:
        raise UnsupportedLayerError(tag, layer_name=name or None)

    try:
        layer = factory(_Fields(config, name or tag))
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {tag} configuration: {e}", layer_name=name or None) from e

    layer.name = name
    layer.trainable = bool(config.get("trainable", True))
    if context is not None:
        context.register(layer)
    logger.debug(f"Converted [{tag}] entry to {layer!r}")
    return layer


class _Fields:
    """Typed access to one entry's config bag, failing with the layer name attached."""

    def __init__(self, config: Dict[str, Any], layer_name: str) -> None:
        self.config = config
        self.layer_name = layer_name

    def required(self, field: str) -> Any:
        value = self.config.get(field)
        if value is None:
            raise ConfigError(
                "Missing required field", layer_name=self.layer_name, field=field)
        return value

    def get(self, field: str, default: Any = None) -> Any:
        value = self.config.get(field)
        return default if value is None else value

    def activation(self, field: str = "activation") -> Activations:
        return convert_to_activation(self.get(field, "linear"), self.layer_name)

    def initializer(self, field: str) -> Optional[Initializer]:
        descriptor = self.config.get(field)
        return None if descriptor is None else convert_to_initializer(descriptor, self.layer_name)

    def regularizer(self, field: str) -> Optional[Regularizer]:
        return convert_to_regularizer(self.config.get(field), self.layer_name)

    def padding(self, default: str = "valid") -> Padding:
        padding = convert_padding(self.get("padding", default), self.layer_name)
        if not isinstance(padding, Padding):
            raise UnsupportedIdentifierError("padding", self.config.get("padding"), self.layer_name)
        return padding

    def explicit_padding(self, field: str = "padding") -> ExplicitPadding:
        amounts = convert_padding(self.get(field, 1), self.layer_name)
        if isinstance(amounts, Padding):
            raise UnsupportedIdentifierError(field, self.config.get(field), self.layer_name)
        return amounts


def _dense(f: _Fields) -> Layer:
    return Dense(
        units=int(f.required("units")),
        activation=f.activation(),
        kernel_initializer=f.initializer("kernel_initializer"),
        bias_initializer=f.initializer("bias_initializer"),
        kernel_regularizer=f.regularizer("kernel_regularizer"),
        bias_regularizer=f.regularizer("bias_regularizer"),
        activity_regularizer=f.regularizer("activity_regularizer"),
        use_bias=bool(f.get("use_bias", True)))


def _conv(layer_class) -> Callable[[_Fields], Layer]:
    def create(f: _Fields) -> Layer:
        kwargs = {}
        if layer_class in (Conv1DTranspose, Conv2DTranspose, Conv3DTranspose):
            kwargs["output_padding"] = f.get("output_padding")
        return layer_class(
            int(f.required("filters")),
            f.required("kernel_size"),
            strides=f.get("strides", 1),
            dilation_rate=f.get("dilation_rate", 1),
            padding=f.padding(),
            activation=f.activation(),
            kernel_initializer=f.initializer("kernel_initializer"),
            bias_initializer=f.initializer("bias_initializer"),
            kernel_regularizer=f.regularizer("kernel_regularizer"),
            bias_regularizer=f.regularizer("bias_regularizer"),
            activity_regularizer=f.regularizer("activity_regularizer"),
            use_bias=bool(f.get("use_bias", True)),
            **kwargs)
    return create


def _depthwise_conv(f: _Fields) -> Layer:
    return DepthwiseConv2D(
        kernel_size=f.required("kernel_size"),
        strides=f.get("strides", 1),
        dilation_rate=f.get("dilation_rate", 1),
        padding=f.padding(),
        depth_multiplier=int(f.get("depth_multiplier", 1)),
        activation=f.activation(),
        depthwise_initializer=f.initializer("depthwise_initializer"),
        bias_initializer=f.initializer("bias_initializer"),
        depthwise_regularizer=f.regularizer("depthwise_regularizer"),
        bias_regularizer=f.regularizer("bias_regularizer"),
        activity_regularizer=f.regularizer("activity_regularizer"),
        use_bias=bool(f.get("use_bias", True)))


def _separable_conv(f: _Fields) -> Layer:
    return SeparableConv2D(
        filters=int(f.required("filters")),
        kernel_size=f.required("kernel_size"),
        strides=f.get("strides", 1),
        dilation_rate=f.get("dilation_rate", 1),
        padding=f.padding(),
        depth_multiplier=int(f.get("depth_multiplier", 1)),
        activation=f.activation(),
        depthwise_initializer=f.initializer("depthwise_initializer"),
        pointwise_initializer=f.initializer("pointwise_initializer"),
        bias_initializer=f.initializer("bias_initializer"),
        depthwise_regularizer=f.regularizer("depthwise_regularizer"),
        pointwise_regularizer=f.regularizer("pointwise_regularizer"),
        bias_regularizer=f.regularizer("bias_regularizer"),
        activity_regularizer=f.regularizer("activity_regularizer"),
        use_bias=bool(f.get("use_bias", True)))


def _pool(layer_class) -> Callable[[_Fields], Layer]:
    def create(f: _Fields) -> Layer:
        return layer_class(
            pool_size=f.get("pool_size", 2),
            strides=f.get("strides"),
            padding=f.padding())
    return create


def _batch_norm(f: _Fields) -> Layer:
    return BatchNorm(
        axis=f.get("axis", -1),
        momentum=float(f.get("momentum", 0.99)),
        epsilon=float(f.get("epsilon", 0.001)),
        center=bool(f.get("center", True)),
        scale=bool(f.get("scale", True)),
        beta_initializer=f.initializer("beta_initializer"),
        gamma_initializer=f.initializer("gamma_initializer"),
        moving_mean_initializer=f.initializer("moving_mean_initializer"),
        moving_variance_initializer=f.initializer("moving_variance_initializer"),
        beta_regularizer=f.regularizer("beta_regularizer"),
        gamma_regularizer=f.regularizer("gamma_regularizer"))


def _relu(f: _Fields) -> Layer:
    max_value = f.get("max_value")
    negative_slope = float(f.get("negative_slope", 0.0))
    threshold = float(f.get("threshold", 0.0))
    if negative_slope != 0.0 and threshold == 0.0 and max_value is None:
        return LeakyReLU(alpha=negative_slope)
    return ReLU(
        max_value=None if max_value is None else float(max_value),
        negative_slope=negative_slope,
        threshold=threshold)


def _leaky_relu(f: _Fields) -> Layer:
    # Keras 3 calls the slope negative_slope, Keras 2 alpha
    return LeakyReLU(alpha=float(f.get("negative_slope", f.get("alpha", 0.3))))


def _prelu(f: _Fields) -> Layer:
    return PReLU(
        alpha_initializer=f.initializer("alpha_initializer"),
        alpha_regularizer=f.regularizer("alpha_regularizer"),
        shared_axes=f.get("shared_axes"))


def _concatenate(f: _Fields) -> Layer:
    return Concatenate(axis=int(f.get("axis", -1)))


def _dropout(f: _Fields) -> Layer:
    seed = f.get("seed")
    return Dropout(rate=float(f.required("rate")), seed=DEFAULT_SEED if seed is None else int(seed))


_LAYER_FACTORIES: Dict[str, Callable[[_Fields], Layer]] = {
    LAYER_DENSE: _dense,
    LAYER_ACTIVATION: lambda f: ActivationLayer(activation=f.activation()),
    LAYER_CONV1D: _conv(Conv1D),
    LAYER_CONV2D: _conv(Conv2D),
    LAYER_CONV3D: _conv(Conv3D),
    LAYER_CONV1D_TRANSPOSE: _conv(Conv1DTranspose),
    LAYER_CONV2D_TRANSPOSE: _conv(Conv2DTranspose),
    LAYER_CONV3D_TRANSPOSE: _conv(Conv3DTranspose),
    LAYER_DEPTHWISE_CONV2D: _depthwise_conv,
    LAYER_SEPARABLE_CONV2D: _separable_conv,
    LAYER_MAX_POOLING_1D: _pool(MaxPool1D),
    LAYER_MAX_POOLING_2D: _pool(MaxPool2D),
    LAYER_MAX_POOLING_3D: _pool(MaxPool3D),
    LAYER_AVG_POOLING_1D: _pool(AvgPool1D),
    LAYER_AVG_POOLING_2D: _pool(AvgPool2D),
    LAYER_AVG_POOLING_3D: _pool(AvgPool3D),
    LAYER_GLOBAL_AVG_POOLING_1D: lambda f: GlobalAvgPool1D(),
    LAYER_GLOBAL_AVG_POOLING_2D: lambda f: GlobalAvgPool2D(),
    LAYER_GLOBAL_AVG_POOLING_3D: lambda f: GlobalAvgPool3D(),
    LAYER_GLOBAL_MAX_POOLING_1D: lambda f: GlobalMaxPool1D(),
    LAYER_GLOBAL_MAX_POOLING_2D: lambda f: GlobalMaxPool2D(),
    LAYER_GLOBAL_MAX_POOLING_3D: lambda f: GlobalMaxPool3D(),
    LAYER_BATCH_NORM: _batch_norm,
    LAYER_RELU: _relu,
    LAYER_LEAKY_RELU: _leaky_relu,
    LAYER_ELU: lambda f: ELU(alpha=float(f.get("alpha", 1.0))),
    LAYER_PRELU: _prelu,
    LAYER_THRESHOLDED_RELU: lambda f: ThresholdedReLU(theta=float(f.get("theta", 1.0))),
    LAYER_SOFTMAX: lambda f: Softmax(axis=f.get("axis", -1)),
    LAYER_ADD: lambda f: Add(),
    LAYER_SUBTRACT: lambda f: Subtract(),
    LAYER_MULTIPLY: lambda f: Multiply(),
    LAYER_MINIMUM: lambda f: Minimum(),
    LAYER_MAXIMUM: lambda f: Maximum(),
    LAYER_AVERAGE: lambda f: Average(),
    LAYER_CONCATENATE: _concatenate,
    LAYER_FLATTEN: lambda f: Flatten(),
    LAYER_RESHAPE: lambda f: Reshape(target_shape=f.required("target_shape")),
    LAYER_ZERO_PADDING_2D: lambda f: ZeroPadding2D(padding=f.explicit_padding()),
    LAYER_CROPPING_2D: lambda f: Cropping2D(cropping=f.explicit_padding("cropping")),
    LAYER_DROPOUT: _dropout,
}

# ---------------------------------------------------------------------
# initializers, regularizers, activations, padding
# ---------------------------------------------------------------------


_NAMED_VARIANCE_SCALING = {
    (2.0, Mode.FAN_IN, Distribution.TRUNCATED_NORMAL): HeNormal,
    (2.0, Mode.FAN_IN, Distribution.UNIFORM): HeUniform,
    (1.0, Mode.FAN_IN, Distribution.TRUNCATED_NORMAL): LeCunNormal,
    (1.0, Mode.FAN_IN, Distribution.UNIFORM): LeCunUniform,
    (1.0, Mode.FAN_AVG, Distribution.TRUNCATED_NORMAL): GlorotNormal,
    (1.0, Mode.FAN_AVG, Distribution.UNIFORM): GlorotUniform,
}


def convert_to_initializer(descriptor: Dict[str, Any], layer_name: Optional[str] = None) -> Initializer:
    """Map a Keras initializer descriptor ``{"class_name", "config"}`` to an :class:`Initializer`.

    A missing ``seed`` defaults to ``DEFAULT_SEED``.

    Raises:
        UnsupportedIdentifierError: For unknown class names, modes or distributions.
    """
    if isinstance(descriptor, str):
        descriptor = {"class_name": descriptor, "config": {}}
    class_name = descriptor.get("class_name")
    config = descriptor.get("config") or {}
    seed = config.get("seed")
    seed = DEFAULT_SEED if seed is None else int(seed)

    if class_name == INITIALIZER_GLOROT_UNIFORM:
        return GlorotUniform(seed=seed)
    if class_name == INITIALIZER_GLOROT_NORMAL:
        return GlorotNormal(seed=seed)
    if class_name == INITIALIZER_HE_NORMAL:
        return HeNormal(seed=seed)
    if class_name == INITIALIZER_HE_UNIFORM:
        return HeUniform(seed=seed)
    if class_name == INITIALIZER_LECUN_NORMAL:
        return LeCunNormal(seed=seed)
    if class_name == INITIALIZER_LECUN_UNIFORM:
        return LeCunUniform(seed=seed)
    if class_name == INITIALIZER_ZEROS:
        return Zeros()
    if class_name == INITIALIZER_ONES:
        return Ones()
    if class_name == INITIALIZER_CONSTANT:
        return Constant(value=float(config.get("value", 0.0)))
    if class_name == INITIALIZER_RANDOM_NORMAL:
        return RandomNormal(
            mean=float(config.get("mean", 0.0)), stddev=float(config.get("stddev", 0.05)), seed=seed)
    if class_name == INITIALIZER_RANDOM_UNIFORM:
        return RandomUniform(
            minval=float(config.get("minval", -0.05)), maxval=float(config.get("maxval", 0.05)), seed=seed)
    if class_name == INITIALIZER_TRUNCATED_NORMAL:
        return TruncatedNormal(
            mean=float(config.get("mean", 0.0)), stddev=float(config.get("stddev", 0.05)), seed=seed)
    if class_name == INITIALIZER_VARIANCE_SCALING:
        return _convert_variance_scaling(config, seed, layer_name)
    if class_name == INITIALIZER_ORTHOGONAL:
        return Orthogonal(gain=float(config.get("gain", 1.0)), seed=seed)
    if class_name == INITIALIZER_IDENTITY:
        return Identity(gain=float(config.get("gain", 1.0)))
    raise UnsupportedIdentifierError("initializer", class_name, layer_name)


def _convert_variance_scaling(config: Dict[str, Any], seed: int, layer_name: Optional[str]) -> Initializer:
    scale = float(config.get("scale", 1.0))
    mode_value = config.get("mode", Mode.FAN_IN.value)
    distribution_value = config.get("distribution", Distribution.TRUNCATED_NORMAL.value)
    # Keras 2.0 wrote "normal" for the truncated normal distribution
    if distribution_value == "normal":
        distribution_value = Distribution.TRUNCATED_NORMAL.value
    try:
        mode = Mode(mode_value)
    except ValueError:
        raise UnsupportedIdentifierError("mode", mode_value, layer_name) from None
    try:
        distribution = Distribution(distribution_value)
    except ValueError:
        raise UnsupportedIdentifierError("distribution", distribution_value, layer_name) from None

    named = _NAMED_VARIANCE_SCALING.get((scale, mode, distribution))
    if named is not None:
        return named(seed=seed)
    return VarianceScaling(scale=scale, mode=mode, distribution=distribution, seed=seed)


def convert_to_regularizer(
        descriptor: Optional[Dict[str, Any]],
        layer_name: Optional[str] = None) -> Optional[Regularizer]:
    """Map a Keras regularizer descriptor to L1, L2, L2L1 or ``None``.

    Both coefficients non-zero give :class:`~dl_graph.regularizers.L2L1`,
    exactly one gives the single penalty, none gives ``None``.
    """
    if descriptor is None:
        return None
    class_name = descriptor.get("class_name")
    if class_name not in (REGULARIZER_L1, REGULARIZER_L2, REGULARIZER_L1L2):
        raise UnsupportedIdentifierError("regularizer", class_name, layer_name)
    config = descriptor.get("config") or {}
    return create_regularizer(l1=config.get("l1", 0.0), l2=config.get("l2", 0.0))


def convert_to_activation(identifier: Any, layer_name: Optional[str] = None) -> Activations:
    if isinstance(identifier, dict):
        identifier = (identifier.get("config") or {}).get("name") or identifier.get("class_name")
    try:
        return Activations.get(identifier)
    except (TypeError, ValueError):
        raise UnsupportedIdentifierError("activation", identifier, layer_name) from None


def convert_padding(value: Any, layer_name: Optional[str] = None) -> Union[Padding, ExplicitPadding]:
    """Map a Keras padding value to a :class:`Padding` mode or explicit 2D amounts.

    Strings give a mode; an int, ``[h, w]`` or ``[[top, bottom], [left, right]]``
    give ``((top, bottom), (left, right))``.
    """
    if isinstance(value, str):
        try:
            return Padding(value.strip().lower())
        except ValueError:
            raise UnsupportedIdentifierError("padding", value, layer_name) from None
    if isinstance(value, int):
        return (value, value), (value, value)
    if isinstance(value, (list, tuple)) and len(value) == 2:
        if all(isinstance(v, int) for v in value):
            return (value[0], value[0]), (value[1], value[1])
        if all(isinstance(v, (list, tuple)) and len(v) == 2 for v in value):
            return (int(value[0][0]), int(value[0][1])), (int(value[1][0]), int(value[1][1]))
    raise UnsupportedIdentifierError("padding", value, layer_name)

# ---------------------------------------------------------------------
