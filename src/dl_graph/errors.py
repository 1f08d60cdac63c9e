"""
Error taxonomy of the layer-graph engine.

Fatal failures are raised as one of the exception types below and always
carry enough context (layer name, shape pair, file path, model state) to be
diagnosed without re-running. Numeric anomalies during training are not
errors: they are recorded as :class:`dl_graph.history.NumericAnomaly` and
training proceeds.

Hierarchy::

    DLGraphError
    ├── ConfigError (ValueError)
    │   ├── UnsupportedLayerError
    │   └── UnsupportedIdentifierError
    ├── ShapeError (ValueError)
    │   └── ShapeMismatchError
    ├── LifecycleError (RuntimeError)
    ├── PersistenceError (IOError)
    └── NameConflictError (ValueError)
"""

from typing import Any, Optional, Sequence, Tuple

# ---------------------------------------------------------------------


class DLGraphError(Exception):
    """Root of all errors raised by ``dl_graph``."""

# ---------------------------------------------------------------------


class ConfigError(DLGraphError, ValueError):
    """Malformed or incomplete declarative model configuration.

    Args:
        message: Human readable description.
        layer_name: Name of the offending layer entry, if known.
        field: Name of the offending config field, if known.
    """

    def __init__(
            self,
            message: str,
            layer_name: Optional[str] = None,
            field: Optional[str] = None) -> None:
        self.layer_name = layer_name
        self.field = field
        context = []
        if layer_name is not None:
            context.append(f"layer: [{layer_name}]")
        if field is not None:
            context.append(f"field: [{field}]")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class UnsupportedLayerError(ConfigError):
    """A layer ``class_name`` tag that has no counterpart in ``dl_graph.layers``."""

    def __init__(self, tag: str, layer_name: Optional[str] = None) -> None:
        self.tag = tag
        super().__init__(
            f"Layer class [{tag}] is not supported",
            layer_name=layer_name,
            field="class_name")


class UnsupportedIdentifierError(ConfigError):
    """An initializer, regularizer, activation or padding identifier that cannot be mapped."""

    def __init__(
            self,
            kind: str,
            identifier: Any,
            layer_name: Optional[str] = None) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(
            f"{kind} [{identifier}] is not supported",
            layer_name=layer_name,
            field=kind)

# ---------------------------------------------------------------------


class ShapeError(DLGraphError, ValueError):
    """Invalid extents: non-positive sizes, windows larger than the input, wrong rank."""


class ShapeMismatchError(ShapeError):
    """Inbound shapes of a merge layer are not compatible.

    Args:
        layer_name: Name of the merge layer.
        inbound_names: Names of the inbound layers, aligned with ``shapes``.
        shapes: Inbound shapes.
        detail: What exactly does not match.
    """

    def __init__(
            self,
            layer_name: str,
            inbound_names: Sequence[str],
            shapes: Sequence[Tuple[Optional[int], ...]],
            detail: str = "") -> None:
        self.layer_name = layer_name
        self.inbound_names = tuple(inbound_names)
        self.shapes = tuple(tuple(s) for s in shapes)
        pairs = ", ".join(
            f"{name}: {shape}" for name, shape in zip(self.inbound_names, self.shapes))
        message = f"Layer [{layer_name}] received incompatible input shapes [{pairs}]"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

# ---------------------------------------------------------------------


class LifecycleError(DLGraphError, RuntimeError):
    """An operation was invoked in the wrong model state.

    Args:
        message: Human readable description.
        expected: The state the operation requires.
        actual: The state the model is in.
    """

    def __init__(self, message: str, expected: Any = None, actual: Any = None) -> None:
        self.expected = expected
        self.actual = actual
        if expected is not None or actual is not None:
            message = f"{message} (expected state: [{expected}], actual state: [{actual}])"
        super().__init__(message)

# ---------------------------------------------------------------------


class PersistenceError(DLGraphError, IOError):
    """Saving or loading failed: missing files, manifest mismatch, directory collision.

    Args:
        message: Human readable description.
        path: The file or directory involved.
    """

    def __init__(self, message: str, path: Any = None) -> None:
        self.path = None if path is None else str(path)
        if path is not None:
            message = f"{message} (path: [{path}])"
        super().__init__(message)

# ---------------------------------------------------------------------


class NameConflictError(DLGraphError, ValueError):
    """Two layers or two variables share a name inside one model."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} name [{name}] is already registered")

# ---------------------------------------------------------------------
