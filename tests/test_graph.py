"""
Tests for the graph container and the graph-construction context.
"""

import numpy as np
import pytest
import keras

from dl_graph.errors import ConfigError, NameConflictError, PersistenceError
from dl_graph.graph import GraphContainer, GraphContext
from dl_graph.initializers import Constant, Ones
from dl_graph.layers import BatchNorm, Conv2D, Dense, GlobalAvgPool2D, Input, MaxPool2D


class TestGraphContext:
    """Automatic naming and name resolution."""

    def test_automatic_names_count_per_kind(self):
        context = GraphContext()
        assert context.register(Dense(units=2)).name == "dense_1"
        assert context.register(Dense(units=2)).name == "dense_2"
        assert context.register(Conv2D(filters=2)).name == "conv2d_1"
        assert context.register(MaxPool2D()).name == "max_pool2d_1"
        assert context.register(GlobalAvgPool2D()).name == "global_avg_pool2d_1"
        assert context.register(BatchNorm()).name == "batch_norm_1"

    def test_contexts_are_independent(self):
        first = GraphContext().register(Dense(units=2)).name
        second = GraphContext().register(Dense(units=2)).name
        assert first == second == "dense_1"

    def test_automatic_name_skips_taken_names(self):
        context = GraphContext()
        context.register(Dense(units=2, name="dense_1"))
        assert context.register(Dense(units=2)).name == "dense_2"

    def test_explicit_names_are_kept(self):
        context = GraphContext()
        layer = context.register(Input(4, name="features"))
        assert layer.name == "features"
        assert "features" in context
        assert context.layers == [layer]

    def test_duplicate_name_raises(self):
        context = GraphContext()
        context.register(Dense(units=2, name="dense"))
        with pytest.raises(NameConflictError):
            context.register(Dense(units=2, name="dense"))

    def test_registering_same_layer_twice_is_noop(self):
        context = GraphContext()
        layer = Dense(units=2, name="dense")
        context.register(layer)
        context.register(layer)
        assert context.layers == [layer]

    def test_resolve(self):
        context = GraphContext()
        layer = context.register(Dense(units=2, name="dense"))
        assert context.resolve("dense") is layer

    def test_resolve_unknown_raises(self):
        with pytest.raises(ConfigError) as exc_info:
            GraphContext().resolve("missing", requested_by="dense")
        assert "missing" in str(exc_info.value)
        assert exc_info.value.layer_name == "dense"


class TestGraphContainer:
    """Variable ownership and value access."""

    @pytest.fixture
    def container(self):
        container = GraphContainer()
        container.add_variable("dense_kernel", (2, 3), Ones(), 2, 3)
        container.add_variable("dense_bias", (3,), Constant(0.5), 2, 3)
        container.add_variable("bn_moving_mean", (3,), Ones(), 3, 3, trainable=False)
        container.add_variable("frozen_kernel", (2, 2), Ones(), 2, 2, trainable=False, frozen=True)
        return container

    def test_variables_start_zero_filled(self, container):
        np.testing.assert_array_equal(container.values("dense_kernel"), np.zeros((2, 3)))

    def test_initialize_variables(self, container):
        container.initialize_variables()
        np.testing.assert_array_equal(container.values("dense_kernel"), np.ones((2, 3)))
        np.testing.assert_allclose(container.values("dense_bias"), np.full(3, 0.5))

    def test_classification(self, container):
        assert container.layer_variable_names() == [
            "dense_kernel", "dense_bias", "bn_moving_mean", "frozen_kernel"]
        assert [v.name for v in container.trainable_variables()] == ["dense_kernel", "dense_bias"]
        assert container.frozen_variable_names() == ["frozen_kernel"]
        assert container.is_frozen("frozen_kernel")
        assert not container.is_frozen("dense_kernel")

    def test_count_params(self, container):
        assert container.count_params() == 6 + 3 + 3 + 4
        assert container.count_params(trainable_only=True) == 9

    def test_duplicate_variable_raises(self, container):
        with pytest.raises(NameConflictError):
            container.add_variable("dense_kernel", (1,), Ones(), 1, 1)

    def test_assign_reshapes_flat_values(self, container):
        container.assign("dense_kernel", [1, 2, 3, 4, 5, 6])
        np.testing.assert_array_equal(
            container.values("dense_kernel"), [[1, 2, 3], [4, 5, 6]])

    def test_assign_wrong_count_raises(self, container):
        with pytest.raises(PersistenceError) as exc_info:
            container.assign("dense_kernel", [1, 2, 3], source="/tmp/dense_kernel.txt")
        assert exc_info.value.path == "/tmp/dense_kernel.txt"

    def test_unknown_variable_raises(self, container):
        assert not container.has_variable("missing")
        with pytest.raises(KeyError):
            container.variable("missing")

    def test_optimizer_variables_are_separate(self, container):
        momentum = keras.Variable(np.full((2, 3), 0.25, dtype=np.float32), name="momentum")
        container.add_optimizer_variable("optimizer_momentum", momentum)

        assert container.optimizer_variable_names() == ["optimizer_momentum"]
        assert "optimizer_momentum" not in container.layer_variable_names()
        assert container.has_variable("optimizer_momentum")

        momentum.assign(np.ones((2, 3), dtype=np.float32))
        container.initialize_optimizer_variables()
        np.testing.assert_allclose(container.values("optimizer_momentum"), np.full((2, 3), 0.25))

    def test_optimizer_variable_name_conflict(self, container):
        with pytest.raises(NameConflictError):
            container.add_optimizer_variable("dense_kernel", keras.Variable(np.zeros(1)))

    def test_edges(self):
        container = GraphContainer()
        container.add_edges("dense", ["input"])
        assert container.edges == {"dense": ("input",)}
        with pytest.raises(NameConflictError):
            container.add_edges("dense", ["input"])
