"""
Layer base class.

A :class:`Layer` is a declared node of the model graph: a name, a trainable
flag, the names of its inbound layers and its kind-specific configuration.
It holds no variables and no shapes. Building a layer against an input shape
and a :class:`~dl_graph.graph.GraphContainer` produces a
:class:`~dl_graph.graph.LayerRecord` owned by the container; running the
layer forward takes that record back as an argument.

Concrete layers implement

- :meth:`Layer.compute_output_shape`, a pure function of the input shape,
- :meth:`Layer.weight_specs`, the variables the layer needs for an input shape,
- :meth:`Layer.forward`, the transformation itself.

Example:
    ```python
    container = GraphContainer()
    dense = Dense(units=3, name="dense_1")
    record = dense.build((None, 4), container)
    container.initialize_variables()
    y = dense.forward(x, record, training=False)
    ```
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.shape import Shape, num_elements
from dl_graph.errors import ShapeError
from dl_graph.initializers import Initializer
from dl_graph.regularizers import Regularizer
from dl_graph.graph.container import GraphContainer, LayerRecord

# ---------------------------------------------------------------------


@dataclass(frozen=True)
class WeightSpec:
    """Declaration of one variable a layer needs.

    Attributes:
        name: Short name, the variable is registered as ``{layer}_{name}``.
        shape: Variable shape.
        initializer: Strategy producing default values.
        fan_in: Fan-in handed to the initializer.
        fan_out: Fan-out handed to the initializer.
        regularizer: Optional penalty added to the training loss.
        trainable: ``False`` for state updated outside of gradient descent.
    """
    name: str
    shape: Tuple[int, ...]
    initializer: Initializer
    fan_in: int
    fan_out: int
    regularizer: Optional[Regularizer] = None
    trainable: bool = True

# ---------------------------------------------------------------------


class Layer:
    """Base class of every layer kind.

    Args:
        name: Model-unique name. An empty name is filled in by the
            graph-construction context when the layer joins a model.
        trainable: Whether gradients update the layer's variables. Variables
            of non-trainable layers are frozen.
        inbound: Inbound layers, given as names or as layer objects. Layer
            objects are resolved to names when the model is assembled.
    """

    # capability flags of the layer kind
    has_activation: bool = False
    is_merge: bool = False

    def __init__(
            self,
            name: str = "",
            trainable: bool = True,
            inbound: Sequence[Union[str, "Layer"]] = ()) -> None:
        if not isinstance(name, str):
            raise TypeError(f"Layer name must be a string, got {type(name).__name__}")
        self._name = name
        self.trainable = trainable
        self._inbound: Tuple[Union[str, "Layer"], ...] = tuple(inbound)
        self.activity_regularizer: Optional[Regularizer] = None

    # -----------------------------------------------------------------
    # identity and wiring
    # -----------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if self._name and self._name != value:
            raise ValueError(f"Layer [{self._name}] cannot be renamed to [{value}]")
        self._name = value

    @property
    def inbound(self) -> Tuple[str, ...]:
        """Names of the inbound layers."""
        return tuple(i if isinstance(i, str) else i.name for i in self._inbound)

    @inbound.setter
    def inbound(self, value: Sequence[Union[str, "Layer"]]) -> None:
        self._inbound = tuple(value)

    def inbound_layers(self) -> Tuple["Layer", ...]:
        """Inbound entries given as layer objects and not yet resolved to names."""
        return tuple(i for i in self._inbound if isinstance(i, Layer))

    def __call__(self, *layers: "Layer") -> "Layer":
        """Declare ``layers`` as the inbound layers and return ``self``.

        Allows the functional style ``x = Dense(units=8)(inputs)``.
        """
        if len(layers) == 1 and isinstance(layers[0], (list, tuple)):
            layers = tuple(layers[0])
        self._inbound = tuple(layers)
        return self

    # -----------------------------------------------------------------
    # contract
    # -----------------------------------------------------------------

    def compute_output_shape(self, input_shape: Union[Shape, List[Shape]]) -> Shape:
        raise NotImplementedError

    def weight_specs(self, input_shape: Union[Shape, List[Shape]]) -> List[WeightSpec]:
        """Variables required for ``input_shape``; none by default."""
        return []

    def forward(self, inputs, record: LayerRecord, training: bool = False):
        raise NotImplementedError

    def state_updates(self, inputs, record: LayerRecord) -> Dict[str, Any]:
        """New values of non-gradient variables after a training step on ``inputs``.

        Keyed by short weight name. The model assigns them together with the
        gradient update, so a skipped batch leaves them untouched.
        """
        return {}

    def variable_name(self, weight_name: str) -> str:
        return f"{self.name}_{weight_name}"

    def build(
            self,
            input_shape: Union[Shape, List[Shape]],
            container: GraphContainer) -> LayerRecord:
        """Infer the output shape and register the layer's variables.

        Args:
            input_shape: Input shape, or list of shapes for merge layers.
            container: Container receiving the variables and the record.

        Returns:
            The record describing the built layer.

        Raises:
            LifecycleError: If the layer was already built in ``container``.
            ShapeError: If ``input_shape`` is not acceptable.
        """
        container.begin_layer(self.name)

        output_shape = self.compute_output_shape(input_shape)
        record = LayerRecord(
            name=self.name,
            input_shape=input_shape,
            output_shape=tuple(output_shape))

        for spec in self.weight_specs(input_shape):
            record.weights[spec.name] = container.add_variable(
                self.variable_name(spec.name),
                spec.shape,
                spec.initializer,
                spec.fan_in,
                spec.fan_out,
                trainable=self.trainable and spec.trainable,
                frozen=not self.trainable)
            if spec.regularizer is not None:
                record.regularizers[spec.name] = spec.regularizer

        record.state.update(self.create_state())
        container.add_record(record)

        logger.debug(
            f"Built {self.__class__.__name__} [{self.name}]: "
            f"{input_shape} -> {record.output_shape}, {record.param_count} params")
        return record

    def create_state(self) -> Dict[str, Any]:
        """Runtime state that is neither a variable nor persisted."""
        return {}

    def count_params(self, input_shape: Union[Shape, List[Shape]]) -> int:
        return sum(num_elements(spec.shape) for spec in self.weight_specs(input_shape))

    def get_config(self) -> Dict[str, Any]:
        """Keras-format layer config; values are converted by the serializer."""
        return {"name": self.name, "trainable": self.trainable}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

# ---------------------------------------------------------------------


def check_rank(layer: Layer, input_shape: Shape, rank: int) -> None:
    """Raise a ShapeError unless ``input_shape`` has exactly ``rank`` axes."""
    if len(input_shape) != rank:
        raise ShapeError(
            f"Layer [{layer.name}] of type {layer.__class__.__name__} expects a "
            f"{rank}D input, got shape {tuple(input_shape)}")

# ---------------------------------------------------------------------
