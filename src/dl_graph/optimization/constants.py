"""
Default Configuration Constants for the Optimization Module.

Default hyperparameters of every optimizer ``optimizer_builder`` can build,
organized by optimizer type.
"""

# ---------------------------------------------------------------------
# General Optimization Defaults
# ---------------------------------------------------------------------

DEFAULT_OPTIMIZER_TYPE = "adam"  # Default optimizer when type not specified
DEFAULT_LEARNING_RATE = 0.001  # Learning rate when neither argument nor config provide one

# ---------------------------------------------------------------------
# SGD Optimizer Defaults
# ---------------------------------------------------------------------
# Plain gradient descent, optionally with (Nesterov) momentum

DEFAULT_SGD_MOMENTUM = 0.0  # Momentum factor (0.0 = plain gradient descent)
DEFAULT_SGD_NESTEROV = False  # Whether to apply Nesterov momentum

# ---------------------------------------------------------------------
# RMSprop Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_RMSPROP_RHO = 0.9  # Decay factor for moving average of squared gradients
DEFAULT_RMSPROP_MOMENTUM = 0.0  # Momentum factor (0.0 = no momentum)
DEFAULT_RMSPROP_EPSILON = 1e-07  # Small constant to prevent division by zero
DEFAULT_RMSPROP_CENTERED = False  # Whether to center the moving averages

# ---------------------------------------------------------------------
# Adam Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_ADAM_BETA_1 = 0.9  # Exponential decay rate for first moment estimates
DEFAULT_ADAM_BETA_2 = 0.999  # Exponential decay rate for second moment estimates
DEFAULT_ADAM_EPSILON = 1e-07  # Small constant for numerical stability
DEFAULT_ADAM_AMSGRAD = False  # Whether to use the AMSGrad variant

# ---------------------------------------------------------------------
# AdamW Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_ADAMW_WEIGHT_DECAY = 0.004  # Decoupled weight decay
DEFAULT_ADAMW_BETA_1 = 0.9
DEFAULT_ADAMW_BETA_2 = 0.999
DEFAULT_ADAMW_EPSILON = 1e-07
DEFAULT_ADAMW_AMSGRAD = False

# ---------------------------------------------------------------------
# Adamax Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_ADAMAX_BETA_1 = 0.9
DEFAULT_ADAMAX_BETA_2 = 0.999
DEFAULT_ADAMAX_EPSILON = 1e-07

# ---------------------------------------------------------------------
# Adadelta Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_ADADELTA_RHO = 0.95  # Decay constant for accumulating squared gradients
DEFAULT_ADADELTA_EPSILON = 1e-07  # Small constant added for numerical stability

# ---------------------------------------------------------------------
# Adagrad Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_ADAGRAD_INITIAL_ACCUMULATOR_VALUE = 0.1  # Starting value of the accumulators
DEFAULT_ADAGRAD_EPSILON = 1e-07

# ---------------------------------------------------------------------
# Ftrl Optimizer Defaults
# ---------------------------------------------------------------------

DEFAULT_FTRL_LEARNING_RATE_POWER = -0.5  # Must be less or equal to zero
DEFAULT_FTRL_INITIAL_ACCUMULATOR_VALUE = 0.1
DEFAULT_FTRL_L1_REGULARIZATION_STRENGTH = 0.0
DEFAULT_FTRL_L2_REGULARIZATION_STRENGTH = 0.0
DEFAULT_FTRL_L2_SHRINKAGE_REGULARIZATION_STRENGTH = 0.0
