"""
dl_graph: layer-graph models trained on TensorFlow.

Layers are declared as plain configuration objects, wired into a directed
acyclic graph by :class:`~dl_graph.models.Sequential` or
:class:`~dl_graph.models.Functional`, and compiled into TensorFlow functions
whose variables live in a :class:`~dl_graph.graph.GraphContainer`.
Architectures can be read from and written to Keras JSON configurations
through :mod:`dl_graph.inference.keras`.
"""

__version__ = "0.1.0"
