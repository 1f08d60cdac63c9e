"""
Optimization Module.

Builds Keras optimizers from configuration dictionaries, with gradient
clipping support and defaults from ``constants``.

Example Usage:
    >>> opt_config = {
    ...     "type": "adam",
    ...     "beta_1": 0.9,
    ...     "gradient_clipping_by_norm": 1.0
    ... }
    >>> optimizer = optimizer_builder(opt_config, learning_rate=0.001)
"""

from dl_graph.optimization.optimizer import OptimizerType, get_optimizer, optimizer_builder

__all__ = [
    "OptimizerType",
    "get_optimizer",
    "optimizer_builder",
]
