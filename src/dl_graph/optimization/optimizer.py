"""
Optimizer Builder Module.

Builds Keras optimizers from configuration dictionaries, so that a model can
be compiled from plain data (e.g. a JSON training config) as well as from an
optimizer instance.

Supported optimizers:
- SGD: Gradient descent with optional (Nesterov) momentum
- Adam: Adaptive moment estimation optimizer
- AdamW: Adam with decoupled weight decay
- Adamax: Adam variant based on the infinity norm
- RMSprop: Adaptive learning rate with momentum
- Adadelta: Adaptive learning rate method
- Adagrad: Per-parameter learning rates from accumulated squared gradients
- Ftrl: Follow-the-regularized-leader

Each optimizer supports gradient clipping options:
- By value (clipvalue): Clip each gradient to a specific range
- By local norm (clipnorm): Clip each gradient independently by its norm
- By global norm (global_clipnorm): Clip all gradients by their combined norm
"""

import keras
from enum import Enum
from typing import Any, Dict, Optional, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.optimization.constants import *

# ---------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------


class OptimizerType(str, Enum):
    """Enumeration of available optimizer types."""
    SGD = "sgd"
    ADAM = "adam"
    ADAMW = "adamw"
    ADAMAX = "adamax"
    RMSPROP = "rmsprop"
    ADADELTA = "adadelta"
    ADAGRAD = "adagrad"
    FTRL = "ftrl"

# ---------------------------------------------------------------------
# Main Functions
# ---------------------------------------------------------------------


def optimizer_builder(
        config: Dict[str, Any],
        learning_rate: Optional[float] = None) -> keras.optimizers.Optimizer:
    """Build and configure a Keras optimizer from a configuration dictionary.

    Args:
        config: Configuration dictionary containing optimizer settings.
            Optional keys:
                - type: Optimizer type, one of :class:`OptimizerType`
                  (default: ``DEFAULT_OPTIMIZER_TYPE``)
                - learning_rate: Used when ``learning_rate`` is not given
                - Optimizer-specific hyperparameters (beta_1, rho, momentum, ...)
                - gradient_clipping_by_value: Clip gradients by absolute value
                - gradient_clipping_by_norm_local: Clip gradients by local norm
                - gradient_clipping_by_norm: Clip gradients by global norm
        learning_rate: Learning rate, overrides ``config["learning_rate"]``.

    Returns:
        Configured Keras optimizer instance.

    Raises:
        ValueError: If config is not a dictionary or optimizer type is unknown.

    Example:
        >>> config = {
        ...     "type": "adam",
        ...     "beta_1": 0.9,
        ...     "gradient_clipping_by_norm": 1.0
        ... }
        >>> optimizer = optimizer_builder(config, 0.001)
    """
    if not isinstance(config, dict):
        raise ValueError("config must be a dictionary")

    optimizer_type = config.get("type", DEFAULT_OPTIMIZER_TYPE)
    if not optimizer_type:
        raise ValueError("optimizer type must not be empty")
    optimizer_type = str(optimizer_type).strip().lower()

    if learning_rate is None:
        learning_rate = config.get("learning_rate", DEFAULT_LEARNING_RATE)
    if learning_rate <= 0.0:
        raise ValueError(f"learning_rate must be positive, got {learning_rate}")

    logger.info(f"Building optimizer: [{optimizer_type}] with learning_rate: [{learning_rate}]")

    # parameters common to all optimizers
    base_params = {
        "learning_rate": learning_rate,
        "clipvalue": config.get("gradient_clipping_by_value"),
        "clipnorm": config.get("gradient_clipping_by_norm_local"),
        "global_clipnorm": config.get("gradient_clipping_by_norm"),
    }

    builders = {
        OptimizerType.SGD: _build_sgd_optimizer,
        OptimizerType.ADAM: _build_adam_optimizer,
        OptimizerType.ADAMW: _build_adamw_optimizer,
        OptimizerType.ADAMAX: _build_adamax_optimizer,
        OptimizerType.RMSPROP: _build_rmsprop_optimizer,
        OptimizerType.ADADELTA: _build_adadelta_optimizer,
        OptimizerType.ADAGRAD: _build_adagrad_optimizer,
        OptimizerType.FTRL: _build_ftrl_optimizer,
    }

    try:
        builder = builders[OptimizerType(optimizer_type)]
    except ValueError:
        raise ValueError(
            f"Unknown optimizer_type: [{optimizer_type}]. "
            f"Supported types: {[t.value for t in OptimizerType]}") from None

    optimizer = builder(config, base_params)
    logger.info(f"Successfully built {optimizer.__class__.__name__} optimizer")
    return optimizer


def get_optimizer(
        identifier: Union[str, Dict[str, Any], keras.optimizers.Optimizer]) -> keras.optimizers.Optimizer:
    """Resolve an optimizer instance, an optimizer type name or a config dictionary."""
    if isinstance(identifier, keras.optimizers.Optimizer):
        return identifier
    if isinstance(identifier, str):
        return optimizer_builder({"type": identifier})
    if isinstance(identifier, dict):
        return optimizer_builder(identifier)
    raise TypeError(f"Cannot interpret {identifier!r} as an optimizer")

# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------


def _build_sgd_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.SGD:
    """Build SGD optimizer; ``momentum`` > 0 gives the momentum variant."""
    return keras.optimizers.SGD(
        momentum=config.get("momentum", DEFAULT_SGD_MOMENTUM),
        nesterov=config.get("nesterov", DEFAULT_SGD_NESTEROV),
        **base_params)


def _build_adam_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.Adam:
    """Build Adam optimizer with configuration parameters.

    Args:
        config: Configuration dictionary with Adam-specific parameters.
        base_params: Base parameters common to all optimizers.

    Returns:
        Configured Adam optimizer instance.
    """
    return keras.optimizers.Adam(
        beta_1=config.get("beta_1", DEFAULT_ADAM_BETA_1),
        beta_2=config.get("beta_2", DEFAULT_ADAM_BETA_2),
        epsilon=config.get("epsilon", DEFAULT_ADAM_EPSILON),
        amsgrad=config.get("amsgrad", DEFAULT_ADAM_AMSGRAD),
        **base_params)


def _build_adamw_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.AdamW:
    """Build AdamW optimizer with configuration parameters.

    Args:
        config: Configuration dictionary with AdamW-specific parameters.
        base_params: Base parameters common to all optimizers.

    Returns:
        Configured AdamW optimizer instance.
    """
    return keras.optimizers.AdamW(
        weight_decay=config.get("weight_decay", DEFAULT_ADAMW_WEIGHT_DECAY),
        beta_1=config.get("beta_1", DEFAULT_ADAMW_BETA_1),
        beta_2=config.get("beta_2", DEFAULT_ADAMW_BETA_2),
        epsilon=config.get("epsilon", DEFAULT_ADAMW_EPSILON),
        amsgrad=config.get("amsgrad", DEFAULT_ADAMW_AMSGRAD),
        **base_params)


def _build_adamax_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.Adamax:
    return keras.optimizers.Adamax(
        beta_1=config.get("beta_1", DEFAULT_ADAMAX_BETA_1),
        beta_2=config.get("beta_2", DEFAULT_ADAMAX_BETA_2),
        epsilon=config.get("epsilon", DEFAULT_ADAMAX_EPSILON),
        **base_params)


def _build_rmsprop_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.RMSprop:
    """Build RMSprop optimizer with configuration parameters.

    Args:
        config: Configuration dictionary with RMSprop-specific parameters.
        base_params: Base parameters common to all optimizers.

    Returns:
        Configured RMSprop optimizer instance.
    """
    return keras.optimizers.RMSprop(
        rho=config.get("rho", DEFAULT_RMSPROP_RHO),
        momentum=config.get("momentum", DEFAULT_RMSPROP_MOMENTUM),
        epsilon=config.get("epsilon", DEFAULT_RMSPROP_EPSILON),
        centered=config.get("centered", DEFAULT_RMSPROP_CENTERED),
        **base_params)


def _build_adadelta_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.Adadelta:
    """Build Adadelta optimizer with configuration parameters.

    Args:
        config: Configuration dictionary with Adadelta-specific parameters.
        base_params: Base parameters common to all optimizers.

    Returns:
        Configured Adadelta optimizer instance.
    """
    return keras.optimizers.Adadelta(
        rho=config.get("rho", DEFAULT_ADADELTA_RHO),
        epsilon=config.get("epsilon", DEFAULT_ADADELTA_EPSILON),
        **base_params)


def _build_adagrad_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.Adagrad:
    return keras.optimizers.Adagrad(
        initial_accumulator_value=config.get(
            "initial_accumulator_value", DEFAULT_ADAGRAD_INITIAL_ACCUMULATOR_VALUE),
        epsilon=config.get("epsilon", DEFAULT_ADAGRAD_EPSILON),
        **base_params)


def _build_ftrl_optimizer(
        config: Dict[str, Any],
        base_params: Dict[str, Any]) -> keras.optimizers.Ftrl:
    return keras.optimizers.Ftrl(
        learning_rate_power=config.get(
            "learning_rate_power", DEFAULT_FTRL_LEARNING_RATE_POWER),
        initial_accumulator_value=config.get(
            "initial_accumulator_value", DEFAULT_FTRL_INITIAL_ACCUMULATOR_VALUE),
        l1_regularization_strength=config.get(
            "l1_regularization_strength", DEFAULT_FTRL_L1_REGULARIZATION_STRENGTH),
        l2_regularization_strength=config.get(
            "l2_regularization_strength", DEFAULT_FTRL_L2_REGULARIZATION_STRENGTH),
        l2_shrinkage_regularization_strength=config.get(
            "l2_shrinkage_regularization_strength",
            DEFAULT_FTRL_L2_SHRINKAGE_REGULARIZATION_STRENGTH),
        **base_params)

# ---------------------------------------------------------------------
