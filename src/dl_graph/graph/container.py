"""
Graph container: the single owner of a model's variables.

The container keeps
- every layer variable, indexed by a model-unique name, together with the
  initializer that produces its default values,
- the trainable / frozen classification of each layer variable,
- the optimizer's state variables, kept apart from layer variables so that
  persistence can select either or both,
- one :class:`LayerRecord` per built layer (output shape + variable handles),
- the adjacency list of the layer graph, keyed by layer name.

Layers never hold variables themselves; they receive their record when they
run forward.
"""

import keras
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.shape import Shape, num_elements
from dl_graph.initializers import Initializer
from dl_graph.regularizers import Regularizer
from dl_graph.errors import LifecycleError, NameConflictError, PersistenceError

# ---------------------------------------------------------------------


@dataclass
class LayerRecord:
    """Result of building one layer against a concrete input shape.

    Attributes:
        name: Layer name.
        input_shape: Input shape, or list of input shapes for merge layers.
        output_shape: Output shape computed by shape inference.
        weights: Short weight name (``"kernel"``) to variable.
        regularizers: Short weight name to the regularizer applied to it.
        state: Non-persistent runtime state (e.g. random seed generators).
    """
    name: str
    input_shape: Union[Shape, List[Shape]]
    output_shape: Shape
    weights: Dict[str, keras.Variable] = field(default_factory=dict)
    regularizers: Dict[str, Regularizer] = field(default_factory=dict)
    state: Dict[str, Any] = field(default_factory=dict)

    @property
    def param_count(self) -> int:
        return sum(num_elements(w.shape) for w in self.weights.values())

# ---------------------------------------------------------------------


@dataclass(frozen=True)
class _InitializerBinding:
    initializer: Initializer
    fan_in: int
    fan_out: int

# ---------------------------------------------------------------------


class GraphContainer:
    """Owns layer variables, optimizer variables, layer records and graph edges.

    Args:
        dtype: Dtype of every layer variable.
    """

    def __init__(self, dtype: str = "float32") -> None:
        self.dtype = dtype
        self._variables: Dict[str, keras.Variable] = {}
        self._bindings: Dict[str, _InitializerBinding] = {}
        self._trainable: List[str] = []
        self._frozen: List[str] = []
        self._optimizer_variables: Dict[str, keras.Variable] = {}
        self._optimizer_initial_values: Dict[str, np.ndarray] = {}
        self.records: Dict[str, LayerRecord] = {}
        self.edges: Dict[str, Tuple[str, ...]] = {}

    # -----------------------------------------------------------------
    # graph structure
    # -----------------------------------------------------------------

    def add_edges(self, layer_name: str, inbound: Sequence[str]) -> None:
        """Record the inbound layer names of ``layer_name``."""
        if layer_name in self.edges:
            raise NameConflictError("Layer", layer_name)
        self.edges[layer_name] = tuple(inbound)

    def begin_layer(self, layer_name: str) -> None:
        """Fail if ``layer_name`` was already built against this container."""
        if layer_name in self.records:
            raise LifecycleError(f"Layer [{layer_name}] is built already")

    def add_record(self, record: LayerRecord) -> None:
        self.begin_layer(record.name)
        self.records[record.name] = record

    # -----------------------------------------------------------------
    # layer variables
    # -----------------------------------------------------------------

    def add_variable(
            self,
            name: str,
            shape: Sequence[int],
            initializer: Initializer,
            fan_in: int,
            fan_out: int,
            trainable: bool = True,
            frozen: bool = False) -> keras.Variable:
        """Create and register a layer variable.

        The variable is created zero-filled; :meth:`initialize_variables`
        assigns the initializer's values.

        Args:
            name: Model-unique variable name.
            shape: Variable shape.
            initializer: Strategy producing default values.
            fan_in: Fan-in passed to the initializer.
            fan_out: Fan-out passed to the initializer.
            trainable: Whether gradients update the variable.
            frozen: Whether the owning layer is non-trainable.

        Returns:
            The created variable.

        Raises:
            NameConflictError: If ``name`` is already registered.
        """
        if name in self._variables or name in self._optimizer_variables:
            raise NameConflictError("Variable", name)

        variable = keras.Variable(
            initializer="zeros",
            shape=tuple(int(d) for d in shape),
            dtype=self.dtype,
            trainable=trainable,
            name=name)

        self._variables[name] = variable
        self._bindings[name] = _InitializerBinding(initializer, fan_in, fan_out)
        if trainable:
            self._trainable.append(name)
        if frozen:
            self._frozen.append(name)

        logger.debug(
            f"Added variable [{name}] with shape {tuple(shape)}, "
            f"trainable={trainable}, frozen={frozen}, initializer={initializer!r}")
        return variable

    def layer_variables(self) -> List[keras.Variable]:
        return list(self._variables.values())

    def layer_variable_names(self) -> List[str]:
        return list(self._variables.keys())

    def trainable_variables(self) -> List[keras.Variable]:
        return [self._variables[name] for name in self._trainable]

    def frozen_variables(self) -> List[keras.Variable]:
        return [self._variables[name] for name in self._frozen]

    def frozen_variable_names(self) -> List[str]:
        return list(self._frozen)

    def is_frozen(self, name: str) -> bool:
        return name in self._frozen

    def initialize_variables(self) -> None:
        """Assign initializer-sampled values to every layer variable."""
        logger.debug(f"Initializing {len(self._variables)} layer variables")
        for name, variable in self._variables.items():
            binding = self._bindings[name]
            values = binding.initializer.generate(
                binding.fan_in, binding.fan_out, variable.shape, self.dtype)
            variable.assign(values)

    # -----------------------------------------------------------------
    # optimizer variables
    # -----------------------------------------------------------------

    def add_optimizer_variable(self, name: str, variable: keras.Variable) -> None:
        """Register a variable created by the optimizer under ``name``."""
        if name in self._variables or name in self._optimizer_variables:
            raise NameConflictError("Variable", name)
        self._optimizer_variables[name] = variable
        self._optimizer_initial_values[name] = keras.ops.convert_to_numpy(variable)

    def optimizer_variables(self) -> List[keras.Variable]:
        return list(self._optimizer_variables.values())

    def optimizer_variable_names(self) -> List[str]:
        return list(self._optimizer_variables.keys())

    def initialize_optimizer_variables(self) -> None:
        """Reset every optimizer variable to the value it was registered with."""
        logger.debug(f"Initializing {len(self._optimizer_variables)} optimizer variables")
        for name, variable in self._optimizer_variables.items():
            variable.assign(self._optimizer_initial_values[name])

    # -----------------------------------------------------------------
    # value access
    # -----------------------------------------------------------------

    def has_variable(self, name: str) -> bool:
        return name in self._variables or name in self._optimizer_variables

    def variable(self, name: str) -> keras.Variable:
        if name in self._variables:
            return self._variables[name]
        if name in self._optimizer_variables:
            return self._optimizer_variables[name]
        raise KeyError(f"No variable named [{name}]")

    def values(self, name: str) -> np.ndarray:
        return keras.ops.convert_to_numpy(self.variable(name))

    def assign(self, name: str, values: Any, source: Optional[str] = None) -> None:
        """Assign ``values`` (any shape with the right element count) to variable ``name``.

        Raises:
            PersistenceError: If the element count does not match.
        """
        variable = self.variable(name)
        values = np.asarray(values, dtype=variable.dtype)
        expected = num_elements(variable.shape)
        if values.size != expected:
            raise PersistenceError(
                f"Variable [{name}] expects {expected} values with shape "
                f"{tuple(variable.shape)}, got {values.size}",
                path=source)
        variable.assign(values.reshape(tuple(variable.shape)))

    def count_params(self, trainable_only: bool = False) -> int:
        names = self._trainable if trainable_only else list(self._variables.keys())
        return sum(num_elements(self._variables[n].shape) for n in names)

# ---------------------------------------------------------------------
