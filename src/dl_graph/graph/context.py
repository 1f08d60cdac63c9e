"""
Graph-construction context.

A :class:`GraphContext` is created by whoever assembles a layer graph (a model
constructor or the config deserializer) and lives for that one assembly. It
owns the running auto-name counters and the name -> layer table, so naming
never depends on process-wide state: two models assembled with two contexts
get the same automatic names.
"""

import re
from typing import Dict, List, Optional

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.errors import ConfigError, NameConflictError

# ---------------------------------------------------------------------


def _snake_case(name: str) -> str:
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z])([A-Z])", r"\1_\2", name)
    return name.lower()

# ---------------------------------------------------------------------


class GraphContext:
    """Auto-naming and name resolution for one graph assembly."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._layers: Dict[str, "Layer"] = {}

    def next_name(self, layer: "Layer") -> str:
        """Next free automatic name for the kind of ``layer``, e.g. ``conv2d_3``."""
        prefix = _snake_case(layer.__class__.__name__)
        while True:
            self._counters[prefix] = self._counters.get(prefix, 0) + 1
            candidate = f"{prefix}_{self._counters[prefix]}"
            if candidate not in self._layers:
                return candidate

    def register(self, layer: "Layer") -> "Layer":
        """Name ``layer`` if unnamed and add it to the table.

        Raises:
            NameConflictError: If another layer already uses the name.
        """
        if not layer.name:
            layer.name = self.next_name(layer)
        existing = self._layers.get(layer.name)
        if existing is not None:
            if existing is layer:
                return layer
            raise NameConflictError("Layer", layer.name)
        self._layers[layer.name] = layer
        return layer

    def resolve(self, name: str, requested_by: Optional[str] = None) -> "Layer":
        """Look up a registered layer.

        Raises:
            ConfigError: If ``name`` was not registered before.
        """
        layer = self._layers.get(name)
        if layer is None:
            raise ConfigError(
                f"Inbound layer [{name}] is not declared before its use",
                layer_name=requested_by,
                field="inbound_nodes")
        return layer

    def __contains__(self, name: str) -> bool:
        return name in self._layers

    @property
    def layers(self) -> List["Layer"]:
        """Registered layers in declaration order."""
        return list(self._layers.values())

# ---------------------------------------------------------------------
