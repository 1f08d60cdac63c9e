"""
Keras configuration vocabulary: ``class_name`` tags of layers, initializers
and regularizers, and the top-level format fields.
"""

# ---------------------------------------------------------------------
# model
# ---------------------------------------------------------------------

MODEL_SEQUENTIAL = "Sequential"
MODEL_FUNCTIONAL = "Functional"
KERAS_VERSION = "3.0.0"
BACKEND = "tensorflow"

# ---------------------------------------------------------------------
# layers
# ---------------------------------------------------------------------

LAYER_INPUT = "InputLayer"
LAYER_DENSE = "Dense"
LAYER_ACTIVATION = "Activation"

LAYER_CONV1D = "Conv1D"
LAYER_CONV2D = "Conv2D"
LAYER_CONV3D = "Conv3D"
LAYER_CONV1D_TRANSPOSE = "Conv1DTranspose"
LAYER_CONV2D_TRANSPOSE = "Conv2DTranspose"
LAYER_CONV3D_TRANSPOSE = "Conv3DTranspose"
LAYER_DEPTHWISE_CONV2D = "DepthwiseConv2D"
LAYER_SEPARABLE_CONV2D = "SeparableConv2D"

LAYER_MAX_POOLING_1D = "MaxPooling1D"
LAYER_MAX_POOLING_2D = "MaxPooling2D"
LAYER_MAX_POOLING_3D = "MaxPooling3D"
LAYER_AVG_POOLING_1D = "AveragePooling1D"
LAYER_AVG_POOLING_2D = "AveragePooling2D"
LAYER_AVG_POOLING_3D = "AveragePooling3D"
LAYER_GLOBAL_AVG_POOLING_1D = "GlobalAveragePooling1D"
LAYER_GLOBAL_AVG_POOLING_2D = "GlobalAveragePooling2D"
LAYER_GLOBAL_AVG_POOLING_3D = "GlobalAveragePooling3D"
LAYER_GLOBAL_MAX_POOLING_1D = "GlobalMaxPooling1D"
LAYER_GLOBAL_MAX_POOLING_2D = "GlobalMaxPooling2D"
LAYER_GLOBAL_MAX_POOLING_3D = "GlobalMaxPooling3D"

LAYER_BATCH_NORM = "BatchNormalization"

LAYER_RELU = "ReLU"
LAYER_LEAKY_RELU = "LeakyReLU"
LAYER_ELU = "ELU"
LAYER_PRELU = "PReLU"
LAYER_THRESHOLDED_RELU = "ThresholdedReLU"
LAYER_SOFTMAX = "Softmax"

LAYER_ADD = "Add"
LAYER_SUBTRACT = "Subtract"
LAYER_MULTIPLY = "Multiply"
LAYER_MINIMUM = "Minimum"
LAYER_MAXIMUM = "Maximum"
LAYER_AVERAGE = "Average"
LAYER_CONCATENATE = "Concatenate"

LAYER_FLATTEN = "Flatten"
LAYER_RESHAPE = "Reshape"
LAYER_ZERO_PADDING_2D = "ZeroPadding2D"
LAYER_CROPPING_2D = "Cropping2D"
LAYER_DROPOUT = "Dropout"

# Keras aliases of the canonical pooling names
LAYER_ALIASES = {
    "MaxPool1D": LAYER_MAX_POOLING_1D,
    "MaxPool2D": LAYER_MAX_POOLING_2D,
    "MaxPool3D": LAYER_MAX_POOLING_3D,
    "AvgPool1D": LAYER_AVG_POOLING_1D,
    "AvgPool2D": LAYER_AVG_POOLING_2D,
    "AvgPool3D": LAYER_AVG_POOLING_3D,
    "GlobalAvgPool1D": LAYER_GLOBAL_AVG_POOLING_1D,
    "GlobalAvgPool2D": LAYER_GLOBAL_AVG_POOLING_2D,
    "GlobalAvgPool3D": LAYER_GLOBAL_AVG_POOLING_3D,
    "GlobalMaxPool1D": LAYER_GLOBAL_MAX_POOLING_1D,
    "GlobalMaxPool2D": LAYER_GLOBAL_MAX_POOLING_2D,
    "GlobalMaxPool3D": LAYER_GLOBAL_MAX_POOLING_3D,
}

# ---------------------------------------------------------------------
# initializers
# ---------------------------------------------------------------------

INITIALIZER_GLOROT_UNIFORM = "GlorotUniform"
INITIALIZER_GLOROT_NORMAL = "GlorotNormal"
INITIALIZER_HE_NORMAL = "HeNormal"
INITIALIZER_HE_UNIFORM = "HeUniform"
INITIALIZER_LECUN_NORMAL = "LecunNormal"
INITIALIZER_LECUN_UNIFORM = "LecunUniform"
INITIALIZER_ZEROS = "Zeros"
INITIALIZER_ONES = "Ones"
INITIALIZER_CONSTANT = "Constant"
INITIALIZER_RANDOM_NORMAL = "RandomNormal"
INITIALIZER_RANDOM_UNIFORM = "RandomUniform"
INITIALIZER_TRUNCATED_NORMAL = "TruncatedNormal"
INITIALIZER_VARIANCE_SCALING = "VarianceScaling"
INITIALIZER_ORTHOGONAL = "Orthogonal"
INITIALIZER_IDENTITY = "Identity"

# ---------------------------------------------------------------------
# regularizers
# ---------------------------------------------------------------------

REGULARIZER_L1 = "L1"
REGULARIZER_L2 = "L2"
REGULARIZER_L1L2 = "L1L2"

# ---------------------------------------------------------------------
# tensors inside Keras 3 inbound nodes
# ---------------------------------------------------------------------

KERAS_TENSOR = "__keras_tensor__"
KERAS_HISTORY = "keras_history"

# ---------------------------------------------------------------------
