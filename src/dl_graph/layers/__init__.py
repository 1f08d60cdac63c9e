from dl_graph.layers.base import Layer, WeightSpec
from dl_graph.layers.conv_geometry import ConvGeometry
from dl_graph.layers.core import Input, Dense, ActivationLayer
from dl_graph.layers.convolutional import (
    Conv1D, Conv2D, Conv3D,
    Conv1DTranspose, Conv2DTranspose, Conv3DTranspose,
    DepthwiseConv2D, SeparableConv2D,
)
from dl_graph.layers.pooling import (
    MaxPool1D, MaxPool2D, MaxPool3D,
    AvgPool1D, AvgPool2D, AvgPool3D,
    GlobalAvgPool1D, GlobalAvgPool2D, GlobalAvgPool3D,
    GlobalMaxPool1D, GlobalMaxPool2D, GlobalMaxPool3D,
)
from dl_graph.layers.normalization import BatchNorm
from dl_graph.layers.activation_layers import (
    ReLU, LeakyReLU, ELU, PReLU, ThresholdedReLU, Softmax,
)
from dl_graph.layers.merge import (
    Add, Subtract, Multiply, Minimum, Maximum, Average, Concatenate,
)
from dl_graph.layers.reshaping import Flatten, Reshape, ZeroPadding2D, Cropping2D
from dl_graph.layers.regularization import Dropout
