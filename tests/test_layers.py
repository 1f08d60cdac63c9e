"""
Tests for layer kinds: shape inference, variable declaration and forward passes.

Every layer is built against a fresh :class:`GraphContainer`, its variables
are initialized, and ``forward`` is run on numpy inputs.
"""

import numpy as np
import pytest
import keras

from dl_graph.errors import LifecycleError, ShapeError, ShapeMismatchError
from dl_graph.graph import GraphContainer
from dl_graph.initializers import Constant, Ones
from dl_graph.regularizers import L2
from dl_graph.layers import (
    ActivationLayer, Add, Average, AvgPool2D, BatchNorm, Concatenate, Conv1D,
    Conv2D, Conv2DTranspose, Cropping2D, Dense, DepthwiseConv2D, Dropout, ELU,
    Flatten, GlobalAvgPool2D, GlobalMaxPool1D, Input, LeakyReLU, MaxPool2D,
    Maximum, Minimum, Multiply, PReLU, ReLU, Reshape, SeparableConv2D, Softmax,
    Subtract, ThresholdedReLU, ZeroPadding2D,
)


# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------

def run_layer(layer, x, training=False):
    """Build ``layer`` for the shape of ``x`` and run it forward.

    Returns:
        Tuple of (container, record, numpy output).
    """
    if not layer.name:
        layer.name = "layer"
    container = GraphContainer()
    record = layer.build((None, *x.shape[1:]), container)
    container.initialize_variables()
    output = layer.forward(keras.ops.convert_to_tensor(x), record, training=training)
    return container, record, keras.ops.convert_to_numpy(output)


def run_merge(layer, inputs):
    if not layer.name:
        layer.name = "merge"
    container = GraphContainer()
    record = layer.build([(None, *x.shape[1:]) for x in inputs], container)
    output = layer.forward([keras.ops.convert_to_tensor(x) for x in inputs], record)
    return record, keras.ops.convert_to_numpy(output)


@pytest.fixture
def image_batch():
    rng = np.random.default_rng(0)
    return rng.normal(size=(2, 8, 8, 3)).astype(np.float32)


# ---------------------------------------------------------------------
# Base layer and Input
# ---------------------------------------------------------------------

class TestLayerBase:
    """Naming, wiring and build bookkeeping."""

    def test_name_cannot_change_once_set(self):
        layer = Dense(units=2, name="dense")
        layer.name = "dense"
        with pytest.raises(ValueError):
            layer.name = "other"

    def test_name_must_be_string(self):
        with pytest.raises(TypeError):
            Dense(units=2, name=3)

    def test_call_sets_inbound(self):
        inputs = Input(4, name="input")
        dense = Dense(units=2, name="dense")(inputs)
        assert dense.inbound == ("input",)
        assert dense.inbound_layers() == (inputs,)

    def test_build_twice_in_same_container_raises(self):
        layer = Dense(units=2, name="dense")
        container = GraphContainer()
        layer.build((None, 3), container)
        with pytest.raises(LifecycleError):
            layer.build((None, 3), container)

    def test_count_params(self):
        assert Dense(units=3).count_params((None, 4)) == 15


class TestInput:
    """Graph root."""

    def test_shape(self):
        assert Input(28, 28, 1).compute_output_shape() == (None, 28, 28, 1)
        assert Input([4]).dims == (4,)

    @pytest.mark.parametrize("dims", [(), (0,), (4, -1)])
    def test_invalid_dims_raise(self, dims):
        with pytest.raises(ValueError):
            Input(*dims)

    def test_forward_is_identity(self):
        x = np.ones((2, 4), dtype=np.float32)
        _, _, y = run_layer(Input(4), x)
        np.testing.assert_array_equal(y, x)


# ---------------------------------------------------------------------
# Dense and activations
# ---------------------------------------------------------------------

class TestDense:
    """Densely-connected layer."""

    def test_variables(self):
        container = GraphContainer()
        record = Dense(units=3, name="dense").build((None, 4), container)
        assert record.output_shape == (None, 3)
        assert record.param_count == 15
        assert container.layer_variable_names() == ["dense_kernel", "dense_bias"]
        assert tuple(record.weights["kernel"].shape) == (4, 3)

    def test_forward(self):
        layer = Dense(
            units=3, activation="linear",
            kernel_initializer=Ones(), bias_initializer=Constant(0.5))
        _, _, y = run_layer(layer, np.ones((2, 4), dtype=np.float32))
        np.testing.assert_allclose(y, np.full((2, 3), 4.5))

    def test_without_bias(self):
        container = GraphContainer()
        record = Dense(units=3, use_bias=False, name="dense").build((None, 4), container)
        assert list(record.weights) == ["kernel"]

    def test_regularizer_is_recorded(self):
        container = GraphContainer()
        record = Dense(units=3, kernel_regularizer=L2(0.1), name="dense").build(
            (None, 4), container)
        assert record.regularizers == {"kernel": L2(0.1)}

    def test_frozen_layer(self):
        container = GraphContainer()
        Dense(units=3, trainable=False, name="dense").build((None, 4), container)
        assert container.trainable_variables() == []
        assert container.frozen_variable_names() == ["dense_kernel", "dense_bias"]

    def test_invalid_units_raise(self):
        with pytest.raises(ValueError):
            Dense(units=0)

    def test_undefined_last_axis_raises(self):
        with pytest.raises(ShapeError):
            Dense(units=3).compute_output_shape((None,))


class TestActivationLayers:
    """Stand-alone and parametrized activation layers."""

    @pytest.fixture
    def values(self):
        return np.array([[-2.0, -0.5, 0.5, 2.0, 8.0]], dtype=np.float32)

    def test_activation_layer(self, values):
        _, _, y = run_layer(ActivationLayer("relu"), values)
        np.testing.assert_allclose(y, [[0.0, 0.0, 0.5, 2.0, 8.0]])

    def test_relu_max_value(self, values):
        _, _, y = run_layer(ReLU(max_value=6.0), values)
        np.testing.assert_allclose(y, [[0.0, 0.0, 0.5, 2.0, 6.0]])

    def test_relu_negative_slope(self, values):
        _, _, y = run_layer(ReLU(negative_slope=0.1), values)
        np.testing.assert_allclose(y, [[-0.2, -0.05, 0.5, 2.0, 8.0]], rtol=1e-5)

    def test_relu_invalid_arguments(self):
        with pytest.raises(ValueError):
            ReLU(max_value=-1.0)
        with pytest.raises(ValueError):
            ReLU(negative_slope=-0.1)

    def test_leaky_relu(self, values):
        _, _, y = run_layer(LeakyReLU(alpha=0.1), values)
        np.testing.assert_allclose(y, [[-0.2, -0.05, 0.5, 2.0, 8.0]], rtol=1e-5)

    def test_elu(self, values):
        _, _, y = run_layer(ELU(alpha=1.0), values)
        np.testing.assert_allclose(y[0, 3:], [2.0, 8.0])
        assert y[0, 0] == pytest.approx(np.exp(-2.0) - 1.0, rel=1e-5)

    def test_thresholded_relu(self, values):
        _, _, y = run_layer(ThresholdedReLU(theta=1.0), values)
        np.testing.assert_allclose(y, [[0.0, 0.0, 0.0, 2.0, 8.0]])

    def test_softmax(self, values):
        _, _, y = run_layer(Softmax(), values)
        assert np.sum(y) == pytest.approx(1.0, rel=1e-5)
        assert np.argmax(y) == 4

    def test_prelu_shared_axes(self, image_batch):
        container, record, y = run_layer(PReLU(shared_axes=[1, 2]), image_batch)
        assert tuple(record.weights["alpha"].shape) == (1, 1, 3)
        np.testing.assert_allclose(y, np.maximum(image_batch, 0.0), atol=1e-6)

    def test_prelu_invalid_shared_axis(self):
        with pytest.raises(ShapeError):
            PReLU(shared_axes=[4]).compute_output_shape((None, 8, 8, 3))


# ---------------------------------------------------------------------
# Convolutions
# ---------------------------------------------------------------------

class TestConvolutions:
    """Convolution shapes, variables and forward passes."""

    def test_conv2d_valid(self):
        container = GraphContainer()
        record = Conv2D(filters=8, kernel_size=3, padding="valid", name="conv").build(
            (None, 28, 28, 1), container)
        assert record.output_shape == (None, 26, 26, 8)
        assert record.param_count == 80
        assert tuple(record.weights["kernel"].shape) == (3, 3, 1, 8)

    @pytest.mark.parametrize("padding,expected", [
        ("valid", (2, 6, 6, 4)),
        ("same", (2, 8, 8, 4)),
        ("full", (2, 10, 10, 4)),
    ])
    def test_conv2d_forward_matches_inferred_shape(self, image_batch, padding, expected):
        layer = Conv2D(filters=4, kernel_size=3, padding=padding)
        _, record, y = run_layer(layer, image_batch)
        assert y.shape == expected
        assert record.output_shape == (None, *expected[1:])

    def test_conv1d(self):
        x = np.ones((2, 10, 2), dtype=np.float32)
        _, record, y = run_layer(Conv1D(filters=4, kernel_size=3, padding="valid"), x)
        assert record.output_shape == (None, 8, 4)
        assert y.shape == (2, 8, 4)

    def test_conv2d_transpose_with_output_padding(self):
        x = np.ones((1, 14, 14, 3), dtype=np.float32)
        layer = Conv2DTranspose(
            filters=4, kernel_size=3, strides=2, padding="same", output_padding=1)
        _, record, y = run_layer(layer, x)
        assert record.output_shape == (None, 28, 28, 4)
        assert tuple(record.weights["kernel"].shape) == (3, 3, 4, 3)
        assert y.shape == (1, 28, 28, 4)

    @pytest.mark.parametrize("padding,extent", [("valid", 7), ("full", 3)])
    def test_conv2d_transpose_paddings(self, padding, extent):
        x = np.ones((1, 5, 5, 1), dtype=np.float32)
        layer = Conv2DTranspose(filters=2, kernel_size=3, padding=padding)
        _, record, y = run_layer(layer, x)
        assert record.output_shape == (None, extent, extent, 2)
        assert y.shape == (1, extent, extent, 2)

    def test_depthwise_conv2d(self, image_batch):
        _, record, y = run_layer(DepthwiseConv2D(kernel_size=3, depth_multiplier=2), image_batch)
        assert record.output_shape == (None, 8, 8, 6)
        assert y.shape == (2, 8, 8, 6)

    def test_separable_conv2d(self, image_batch):
        layer = SeparableConv2D(filters=5, kernel_size=3, padding="valid")
        _, record, y = run_layer(layer, image_batch)
        assert record.output_shape == (None, 6, 6, 5)
        assert record.param_count == 27 + 15 + 5
        assert y.shape == (2, 6, 6, 5)

    def test_strides_with_dilations_raise(self):
        with pytest.raises(ValueError):
            Conv2D(filters=4, strides=2, dilation_rate=2)

    def test_wrong_rank_raises(self):
        with pytest.raises(ShapeError):
            Conv2D(filters=4).compute_output_shape((None, 8, 3))

    def test_invalid_filters_raise(self):
        with pytest.raises(ValueError):
            Conv2D(filters=0)


# ---------------------------------------------------------------------
# Pooling
# ---------------------------------------------------------------------

class TestPooling:
    """Windowed and global pooling."""

    @pytest.fixture
    def grid(self):
        return np.arange(16, dtype=np.float32).reshape((1, 4, 4, 1))

    def test_max_pool(self, grid):
        _, record, y = run_layer(MaxPool2D(pool_size=2), grid)
        assert record.output_shape == (None, 2, 2, 1)
        np.testing.assert_allclose(y[0, :, :, 0], [[5.0, 7.0], [13.0, 15.0]])

    def test_avg_pool(self, grid):
        _, _, y = run_layer(AvgPool2D(pool_size=2), grid)
        np.testing.assert_allclose(y[0, :, :, 0], [[2.5, 4.5], [10.5, 12.5]])

    def test_strides_default_to_pool_size(self):
        assert MaxPool2D(pool_size=3).geometry.strides == (3, 3)

    def test_full_padding_rejected(self):
        with pytest.raises(ValueError):
            MaxPool2D(padding="full")

    def test_global_avg_pool(self, image_batch):
        _, record, y = run_layer(GlobalAvgPool2D(), image_batch)
        assert record.output_shape == (None, 3)
        np.testing.assert_allclose(y, image_batch.mean(axis=(1, 2)), rtol=1e-5, atol=1e-6)

    def test_global_max_pool_1d(self):
        x = np.array([[[1.0], [5.0], [3.0]]], dtype=np.float32)
        _, record, y = run_layer(GlobalMaxPool1D(), x)
        assert record.output_shape == (None, 1)
        np.testing.assert_allclose(y, [[5.0]])


# ---------------------------------------------------------------------
# Batch normalization
# ---------------------------------------------------------------------

class TestBatchNorm:
    """Batch statistics in training, running statistics at inference."""

    @pytest.fixture
    def batch(self):
        return np.array([[0.0, 1.0], [2.0, 3.0]], dtype=np.float32)

    def test_variables(self):
        container = GraphContainer()
        record = BatchNorm(name="bn").build((None, 3), container)
        assert set(record.weights) == {"gamma", "beta", "moving_mean", "moving_variance"}
        assert record.param_count == 12
        assert len(container.trainable_variables()) == 2

    def test_training_normalizes_with_batch_statistics(self, batch):
        _, record, y = run_layer(BatchNorm(momentum=0.5), batch, training=True)
        np.testing.assert_allclose(y.mean(axis=0), [0.0, 0.0], atol=1e-5)
        # forward never assigns the running statistics
        np.testing.assert_allclose(
            keras.ops.convert_to_numpy(record.weights["moving_mean"]), [0.0, 0.0])

    def test_state_updates_move_running_statistics(self, batch):
        layer = BatchNorm(momentum=0.5, name="bn")
        record = layer.build((None, 2), GraphContainer())
        updates = layer.state_updates(keras.ops.convert_to_tensor(batch), record)
        assert set(updates) == {"moving_mean", "moving_variance"}
        np.testing.assert_allclose(keras.ops.convert_to_numpy(updates["moving_mean"]), [0.5, 1.0])
        # created zero-filled, not initialized
        np.testing.assert_allclose(
            keras.ops.convert_to_numpy(updates["moving_variance"]), [0.5, 0.5])

    def test_stateless_layer_has_no_updates(self, batch):
        layer = Dense(units=2, name="dense")
        record = layer.build((None, 2), GraphContainer())
        assert layer.state_updates(keras.ops.convert_to_tensor(batch), record) == {}

    def test_inference_uses_moving_statistics(self, batch):
        _, _, y = run_layer(BatchNorm(epsilon=1e-3), batch, training=False)
        np.testing.assert_allclose(y, batch / np.sqrt(1.0 + 1e-3), rtol=1e-5)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            BatchNorm(momentum=1.5)
        with pytest.raises(ValueError):
            BatchNorm(epsilon=0.0)

    def test_axis_out_of_range(self):
        with pytest.raises(ShapeError):
            BatchNorm(axis=3).compute_output_shape((None, 4))


# ---------------------------------------------------------------------
# Merge layers
# ---------------------------------------------------------------------

class TestMerge:
    """Elementwise merges and concatenation."""

    @pytest.fixture
    def pair(self):
        return [
            np.array([[1.0, 5.0]], dtype=np.float32),
            np.array([[3.0, 2.0]], dtype=np.float32),
        ]

    @pytest.mark.parametrize("layer,expected", [
        (Add(), [[4.0, 7.0]]),
        (Subtract(), [[-2.0, 3.0]]),
        (Multiply(), [[3.0, 10.0]]),
        (Minimum(), [[1.0, 2.0]]),
        (Maximum(), [[3.0, 5.0]]),
        (Average(), [[2.0, 3.5]]),
    ])
    def test_elementwise(self, pair, layer, expected):
        record, y = run_merge(layer, pair)
        assert record.output_shape == (None, 2)
        np.testing.assert_allclose(y, expected)

    def test_mismatched_shapes_name_inbound_layers(self):
        layer = Add(name="add", inbound=["left", "right"])
        with pytest.raises(ShapeMismatchError) as exc_info:
            layer.compute_output_shape([(None, 3), (None, 4)])
        message = str(exc_info.value)
        assert "add" in message
        assert "left: (None, 3)" in message
        assert "right: (None, 4)" in message

    def test_single_input_rejected(self):
        with pytest.raises(ShapeError):
            Add(name="add").compute_output_shape([(None, 3)])

    def test_subtract_takes_two_inputs(self):
        with pytest.raises(ShapeError):
            Subtract(name="sub").compute_output_shape([(None, 3)] * 3)

    def test_concatenate(self):
        inputs = [np.ones((1, 4, 2), dtype=np.float32), np.zeros((1, 4, 3), dtype=np.float32)]
        record, y = run_merge(Concatenate(axis=-1), inputs)
        assert record.output_shape == (None, 4, 5)
        assert y.shape == (1, 4, 5)

    def test_concatenate_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            Concatenate(axis=-1, name="concat").compute_output_shape(
                [(None, 4, 2), (None, 5, 3)])

    def test_concatenate_batch_axis_rejected(self):
        with pytest.raises(ShapeError):
            Concatenate(axis=0, name="concat").compute_output_shape(
                [(None, 4), (None, 4)])


# ---------------------------------------------------------------------
# Reshaping and regularization
# ---------------------------------------------------------------------

class TestReshaping:
    """Flatten, reshape, padding and cropping."""

    def test_flatten(self, image_batch):
        _, record, y = run_layer(Flatten(), image_batch)
        assert record.output_shape == (None, 192)
        assert y.shape == (2, 192)

    def test_reshape_infers_axis(self):
        x = np.arange(24, dtype=np.float32).reshape((2, 12))
        _, record, y = run_layer(Reshape(target_shape=(3, -1)), x)
        assert record.output_shape == (None, 3, 4)
        assert y.shape == (2, 3, 4)

    def test_reshape_incompatible(self):
        with pytest.raises(ShapeError):
            Reshape(target_shape=(5,)).compute_output_shape((None, 12))

    def test_reshape_invalid_target(self):
        with pytest.raises(ValueError):
            Reshape(target_shape=(-1, -1))

    def test_zero_padding(self):
        x = np.ones((1, 4, 4, 1), dtype=np.float32)
        _, record, y = run_layer(ZeroPadding2D(padding=1), x)
        assert record.output_shape == (None, 6, 6, 1)
        assert y.sum() == pytest.approx(16.0)

    def test_cropping(self):
        x = np.ones((1, 5, 5, 1), dtype=np.float32)
        _, record, y = run_layer(Cropping2D(cropping=((1, 1), (0, 2))), x)
        assert record.output_shape == (None, 3, 3, 1)
        assert y.shape == (1, 3, 3, 1)

    def test_over_cropping_raises(self):
        with pytest.raises(ShapeError):
            Cropping2D(cropping=3).compute_output_shape((None, 5, 5, 1))

    def test_negative_padding_rejected(self):
        with pytest.raises(ValueError):
            ZeroPadding2D(padding=((-1, 0), (0, 0)))


class TestDropout:
    """Dropout is the identity at inference."""

    def test_inference_identity(self):
        x = np.ones((4, 10), dtype=np.float32)
        _, _, y = run_layer(Dropout(rate=0.5), x, training=False)
        np.testing.assert_array_equal(y, x)

    def test_training_scales_kept_values(self):
        x = np.ones((4, 100), dtype=np.float32)
        _, _, y = run_layer(Dropout(rate=0.5), x, training=True)
        assert set(np.unique(y)).issubset({0.0, 2.0})
        assert 0 < np.count_nonzero(y) < y.size

    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            Dropout(rate=1.0)
