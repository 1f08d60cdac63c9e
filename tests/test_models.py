"""
Tests for GraphTrainableModel, Sequential and Functional.

Covers graph assembly, the compile / init / fit lifecycle, training with
skipped NaN batches, evaluation, inference, and save / load round trips.
"""

import math
import numpy as np
import pytest

from dl_graph.callbacks import Callback
from dl_graph.datasets import OnHeapDataset
from dl_graph.errors import (
    ConfigError, LifecycleError, NameConflictError, PersistenceError, ShapeError)
from dl_graph.initializers import Ones
from dl_graph.layers import Add, BatchNorm, Dense, Input
from dl_graph.losses import Losses
from dl_graph.metrics import Metrics
from dl_graph.models import (
    GRAPH_FILE, MODEL_CONFIG_FILE, VARIABLE_NAMES_FILE, Functional,
    GraphTrainableModel, ModelState, SavingFormat, Sequential, WritingMode)


# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------

SGD_CONFIG = {"type": "sgd", "learning_rate": 0.1}


def build_sequential(trainable: bool = True) -> Sequential:
    return Sequential.of(
        Input(4, name="input"),
        Dense(units=8, activation="relu", name="dense_1", trainable=trainable),
        Dense(units=2, activation="linear", name="dense_2"),
        name="classifier")


def build_functional() -> Functional:
    inputs = Input(4, name="input")
    left = Dense(units=6, activation="relu", name="left")(inputs)
    right = Dense(units=6, activation="tanh", name="right")(inputs)
    merged = Add(name="add")(left, right)
    outputs = Dense(units=2, activation="linear", name="output")(merged)
    return Functional.of(inputs, left, right, merged, outputs, name="branches")


def make_dataset(size: int = 64, seed: int = 42) -> OnHeapDataset:
    rng = np.random.default_rng(seed)
    x = rng.normal(size=(size, 4)).astype(np.float32)
    labels = (x[:, 0] > 0).astype(np.int64)
    return OnHeapDataset.create(x, labels, num_classes=2)


class RecordingCallback(Callback):
    """Records the training hooks in call order."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def on_train_begin(self):
        self.calls.append("train_begin")

    def on_epoch_begin(self, epoch, logs):
        self.calls.append(("epoch_begin", epoch))

    def on_train_batch_begin(self, batch, batch_size, logs):
        self.calls.append(("batch_begin", batch))

    def on_train_batch_end(self, batch, batch_size, event, logs):
        self.calls.append(("batch_end", batch))

    def on_epoch_end(self, epoch, event, logs):
        self.calls.append(("epoch_end", epoch))

    def on_train_end(self, logs):
        self.calls.append("train_end")


@pytest.fixture
def dataset():
    return make_dataset()


@pytest.fixture
def compiled_model():
    model = build_sequential()
    model.compile(optimizer=SGD_CONFIG)
    return model


@pytest.fixture
def trained_model(compiled_model, dataset):
    compiled_model.fit(dataset, epochs=2, batch_size=16)
    return compiled_model


# ---------------------------------------------------------------------
# Graph assembly
# ---------------------------------------------------------------------

class TestGraphAssembly:
    """Validation of the declared layer graph."""

    def test_sequential_chains_layers(self):
        model = build_sequential()
        assert model.container.edges == {
            "input": (),
            "dense_1": ("input",),
            "dense_2": ("dense_1",),
        }
        assert model.input_layer.name == "input"
        assert model.output_layer.name == "dense_2"

    def test_automatic_names(self):
        model = Sequential.of(Input(4), Dense(units=3), Dense(units=2))
        assert [layer.name for layer in model.layers] == ["input_1", "dense_1", "dense_2"]

    def test_functional_edges(self):
        model = build_functional()
        assert model.container.edges["add"] == ("left", "right")
        assert model.container.edges["output"] == ("add",)

    def test_empty_model_raises(self):
        with pytest.raises(ConfigError):
            GraphTrainableModel([])

    def test_first_layer_must_be_input(self):
        with pytest.raises(ConfigError):
            Sequential([Dense(units=2), Dense(units=2)])

    def test_second_input_raises(self):
        with pytest.raises(ConfigError):
            Sequential([Input(4), Input(4)])

    def test_layer_without_inbound_raises(self):
        with pytest.raises(ConfigError) as exc_info:
            Functional.of(Input(4, name="input"), Dense(units=2, name="dense"))
        assert exc_info.value.layer_name == "dense"

    def test_inbound_declared_later_raises(self):
        inputs = Input(4)
        first = Dense(units=2, name="first")(inputs)
        second = Dense(units=2, name="second")(first)
        with pytest.raises(ConfigError):
            Functional.of(inputs, second, first)

    def test_inbound_outside_model_raises(self):
        inputs = Input(4)
        stray = Dense(units=2)(inputs)
        dense = Dense(units=2)(stray)
        with pytest.raises(ConfigError):
            Functional.of(inputs, dense)

    def test_non_merge_layer_with_two_inbound_raises(self):
        inputs = Input(4, name="input")
        a = Dense(units=2, name="a")(inputs)
        b = Dense(units=2, name="b")(a, inputs)
        with pytest.raises(ConfigError):
            Functional.of(inputs, a, b)

    def test_automatic_name_skips_later_explicit_name(self):
        model = Sequential.of(Input(4), Dense(units=4), Dense(units=2, name="dense_1"))
        assert [layer.name for layer in model.layers] == ["input_1", "dense_2", "dense_1"]
        assert model.container.edges["dense_1"] == ("dense_2",)

    def test_duplicate_names_raise(self):
        with pytest.raises(NameConflictError):
            Sequential.of(Input(4), Dense(units=2, name="dense"), Dense(units=2, name="dense"))

    def test_get_layer(self):
        model = build_sequential()
        assert model.get_layer("dense_1").units == 8
        with pytest.raises(ValueError):
            model.get_layer("missing")


# ---------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------

class TestLifecycle:
    """States advance monotonically; out-of-order calls raise."""

    def test_initial_state(self):
        model = build_sequential()
        assert model.state == ModelState.UNCOMPILED
        with pytest.raises(LifecycleError):
            model.output_shape

    def test_compile(self, compiled_model):
        assert compiled_model.state == ModelState.COMPILED
        assert compiled_model.output_shape == (None, 2)
        assert compiled_model.num_classes == 2
        assert compiled_model.output_shape_of("dense_1") == (None, 8)
        assert compiled_model.container.count_params() == 58

    def test_compile_twice_raises(self, compiled_model):
        with pytest.raises(LifecycleError):
            compiled_model.compile()

    def test_operations_before_compile_raise(self, dataset):
        model = build_sequential()
        with pytest.raises(LifecycleError):
            model.init()
        with pytest.raises(LifecycleError):
            model.fit(dataset)
        with pytest.raises(LifecycleError):
            model.summary()

    def test_operations_before_init_raise(self, compiled_model, dataset, tmp_path):
        with pytest.raises(LifecycleError):
            compiled_model.evaluate(dataset)
        with pytest.raises(LifecycleError):
            compiled_model.predict(np.zeros(4))
        with pytest.raises(LifecycleError):
            compiled_model.save(tmp_path / "model")

    def test_init_twice_raises(self, compiled_model):
        compiled_model.init()
        assert compiled_model.state == ModelState.INITIALIZED
        with pytest.raises(LifecycleError):
            compiled_model.init()

    def test_fit_initializes_everything(self, trained_model):
        assert trained_model.state == ModelState.OPTIMIZER_INITIALIZED

    def test_load_weights_into_initialized_model_raises(self, trained_model, tmp_path):
        trained_model.save(tmp_path / "model")
        with pytest.raises(LifecycleError):
            trained_model.load_weights(tmp_path / "model")

    def test_optimizer_state_requires_training(self, compiled_model, tmp_path):
        compiled_model.init()
        with pytest.raises(LifecycleError):
            compiled_model.save(tmp_path / "model", save_optimizer_state=True)


# ---------------------------------------------------------------------
# Training and evaluation
# ---------------------------------------------------------------------

class TestFit:
    """Training loop behavior."""

    def test_loss_decreases(self, compiled_model, dataset):
        history = compiled_model.fit(dataset, epochs=20, batch_size=8)
        losses = history.epoch_losses()
        assert len(losses) == 20
        assert losses[-1] < losses[0]
        assert all(math.isfinite(loss) for loss in losses)

    def test_partial_batch_is_dropped(self, dataset):
        callback = RecordingCallback()
        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG, callback=callback)
        small = make_dataset(size=10)

        history = model.fit(small, epochs=2, batch_size=3)

        batch_begins = [c for c in callback.calls if isinstance(c, tuple) and c[0] == "batch_begin"]
        assert len(batch_begins) == 2 * (10 // 3)
        assert len(history.batch_history) == 6
        assert [e.batch_index for e in history.batch_history[:3]] == [0, 1, 2]

    def test_hook_order(self, dataset):
        callback = RecordingCallback()
        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG, callback=callback)

        model.fit(make_dataset(size=4), epochs=1, batch_size=2)

        assert callback.calls == [
            "train_begin",
            ("epoch_begin", 1),
            ("batch_begin", 0), ("batch_end", 0),
            ("batch_begin", 1), ("batch_end", 1),
            ("epoch_end", 1),
            "train_end",
        ]
        assert callback.model is model

    def test_validation(self, compiled_model, dataset):
        train, validation = dataset.split(0.75)
        history = compiled_model.fit(
            train, epochs=2, batch_size=8, validation_dataset=validation, validation_batch_size=4)
        event = history.last_epoch_event()
        assert event.epoch_index == 2
        assert math.isfinite(event.val_loss_value)
        assert 0.0 <= event.val_metric_value <= 1.0

    def test_no_validation_gives_nan(self, trained_model, dataset):
        history = trained_model.fit(dataset, epochs=1, batch_size=16)
        assert math.isnan(history.epoch_history[0].val_loss_value)

    def test_nan_batch_is_skipped(self, compiled_model):
        data = make_dataset(size=8)
        x = np.stack([data.get_x(i) for i in range(8)])
        y = np.stack([data.get_y(i) for i in range(8)])
        x[0, 0] = np.nan

        history = compiled_model.fit(OnHeapDataset(x, y), epochs=2, batch_size=4)

        assert [(a.epoch_index, a.batch_index) for a in history.anomalies] == [(1, 0), (2, 0)]
        assert all(math.isfinite(e.loss_value) for e in history.epoch_history)
        for name in compiled_model.container.layer_variable_names():
            assert np.all(np.isfinite(compiled_model.container.values(name)))

    def test_all_nan_batches_leave_weights_untouched(self, compiled_model):
        x = np.full((4, 4), np.nan, dtype=np.float32)
        y = OnHeapDataset.to_one_hot([0, 1, 0, 1], 2)
        compiled_model.init()
        before = compiled_model.container.values("dense_1_kernel").copy()

        history = compiled_model.fit(OnHeapDataset(x, y), epochs=1, batch_size=2)

        np.testing.assert_array_equal(compiled_model.container.values("dense_1_kernel"), before)
        assert len(history.anomalies) == 2
        assert math.isnan(history.epoch_history[0].loss_value)

    def test_nan_batch_leaves_moving_statistics_untouched(self):
        model = Sequential.of(
            Input(4, name="input"),
            Dense(units=4, activation="linear", name="dense"),
            BatchNorm(name="bn"),
            Dense(units=2, activation="linear", name="output"))
        model.compile(optimizer=SGD_CONFIG)
        x = np.full((4, 4), np.nan, dtype=np.float32)
        y = OnHeapDataset.to_one_hot([0, 1, 0, 1], 2)

        history = model.fit(OnHeapDataset(x, y), epochs=1, batch_size=4)

        assert len(history.anomalies) == 1
        np.testing.assert_array_equal(model.container.values("bn_moving_mean"), np.zeros(4))
        np.testing.assert_array_equal(model.container.values("bn_moving_variance"), np.ones(4))
        assert np.all(np.isfinite(model.predict_softly(np.ones(4))))

    def test_finite_batch_moves_moving_statistics(self, dataset):
        model = Sequential.of(
            Input(4, name="input"),
            BatchNorm(momentum=0.5, name="bn"),
            Dense(units=2, activation="linear", name="output"))
        model.compile(optimizer=SGD_CONFIG)

        model.fit(dataset, epochs=1, batch_size=64)

        x = np.stack([dataset.get_x(i) for i in range(64)])
        np.testing.assert_allclose(
            model.container.values("bn_moving_mean"), x.mean(axis=0) * 0.5, rtol=1e-4, atol=1e-5)

    def test_frozen_layer_is_not_updated(self, dataset):
        model = build_sequential(trainable=False)
        model.compile(optimizer=SGD_CONFIG)
        model.init()
        frozen_before = model.container.values("dense_1_kernel").copy()
        trained_before = model.container.values("dense_2_kernel").copy()

        model.fit(dataset, epochs=2, batch_size=16)

        np.testing.assert_array_equal(model.container.values("dense_1_kernel"), frozen_before)
        assert not np.allclose(model.container.values("dense_2_kernel"), trained_before)

    def test_stop_training_is_honored_at_next_epoch(self, dataset):
        class StopAfterFirstEpoch(Callback):
            def on_epoch_end(self, epoch, event, logs):
                self.model.stop_training = True

        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG, callback=StopAfterFirstEpoch())
        history = model.fit(dataset, epochs=5, batch_size=16)
        assert len(history.epoch_history) == 1

    def test_wrong_label_shape_raises(self, compiled_model):
        x = np.zeros((4, 4), dtype=np.float32)
        y = np.zeros((4, 3), dtype=np.float32)
        with pytest.raises(ShapeError):
            compiled_model.fit(OnHeapDataset(x, y), epochs=1, batch_size=2)

    def test_invalid_arguments(self, compiled_model, dataset):
        with pytest.raises(ValueError):
            compiled_model.fit(dataset, epochs=0)
        with pytest.raises(ValueError):
            compiled_model.fit(dataset, batch_size=0)


class TestEvaluate:
    """Evaluation over full batches."""

    def test_result_keyed_by_metric_name(self, trained_model, dataset):
        result = trained_model.evaluate(dataset, batch_size=16)
        assert set(result.metrics) == {"accuracy"}
        assert math.isfinite(result.loss_value)
        assert 0.0 <= result.metrics["accuracy"] <= 1.0

    def test_no_full_batch_gives_nan(self, trained_model):
        result = trained_model.evaluate(make_dataset(size=4), batch_size=8)
        assert math.isnan(result.loss_value)
        assert math.isnan(result.metrics["accuracy"])

    def test_regression_metric(self, dataset):
        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG, loss=Losses.MSE, metric=Metrics.MAE)
        model.init()
        result = model.evaluate(dataset, batch_size=16)
        assert set(result.metrics) == {"mean_absolute_error"}


# ---------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------

class TestPredict:
    """Single-example and batched inference."""

    def test_predict_softly_gives_probabilities(self, trained_model, dataset):
        scores = trained_model.predict_softly(dataset.get_x(0))
        assert scores.shape == (2,)
        assert np.sum(scores) == pytest.approx(1.0, rel=1e-5)
        assert trained_model.predict(dataset.get_x(0)) == int(np.argmax(scores))

    def test_wrong_feature_count_raises(self, trained_model):
        with pytest.raises(ShapeError):
            trained_model.predict(np.zeros(5))

    def test_activations(self, trained_model, dataset):
        prediction, activations = trained_model.predict_softly_and_get_activations(dataset.get_x(0))
        assert prediction.shape == (2,)
        assert len(activations) == 1
        assert activations[0].shape == (1, 8)

        label, activations = trained_model.predict_and_get_activations(dataset.get_x(0))
        assert label in (0, 1)

    def test_prediction_layer_name(self, trained_model, dataset):
        prediction, _ = trained_model.predict_softly_and_get_activations(
            dataset.get_x(0), prediction_layer_name="dense_1")
        assert prediction.shape == (8,)

    def test_predict_with_prediction_layer_name(self, trained_model, dataset):
        hidden = trained_model.predict_softly(dataset.get_x(0), prediction_layer_name="dense_1")
        assert hidden.shape == (8,)
        assert trained_model.predict(dataset.get_x(0), prediction_layer_name="dense_1") == \
            int(np.argmax(hidden))
        with pytest.raises(ValueError):
            trained_model.predict_softly(dataset.get_x(0), prediction_layer_name="missing")

    def test_predict_on_dataset(self, trained_model, dataset):
        scores = trained_model.predict_softly_on_dataset(dataset, batch_size=16)
        assert scores.shape == (64, 2)
        np.testing.assert_allclose(scores.sum(axis=-1), np.ones(64), rtol=1e-5)

        labels = trained_model.predict_on_dataset(dataset, batch_size=16)
        np.testing.assert_array_equal(labels, np.argmax(scores, axis=-1))
        assert labels[3] == trained_model.predict(dataset.get_x(3))

    def test_predict_on_dataset_requires_divisible_size(self, trained_model, dataset):
        with pytest.raises(ValueError):
            trained_model.predict_softly_on_dataset(dataset, batch_size=10)

    def test_summary(self, compiled_model):
        text = compiled_model.summary()
        assert "dense_1 (Dense)" in text
        assert "[None, 8]" in text
        assert "Total params: 58" in text
        assert "Non-trainable params: 0" in text


# ---------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------

@pytest.mark.integration
class TestPersistence:
    """save / load_weights round trips and failure modes."""

    def test_saved_files(self, trained_model, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)

        names = (directory / VARIABLE_NAMES_FILE).read_text().split()
        assert names == ["dense_1_kernel", "dense_1_bias", "dense_2_kernel", "dense_2_bias"]
        assert (directory / MODEL_CONFIG_FILE).is_file()
        assert not (directory / GRAPH_FILE).exists()

        values = (directory / "dense_2_bias.txt").read_text().split()
        assert len(values) == 2

    def test_sequential_round_trip(self, trained_model, dataset, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)

        restored = Sequential.load_model_configuration(directory / MODEL_CONFIG_FILE)
        restored.compile(optimizer=SGD_CONFIG)
        restored.load_weights(directory)

        assert restored.state == ModelState.INITIALIZED
        assert restored.name == "classifier"
        np.testing.assert_allclose(
            restored.predict_softly_on_dataset(dataset, 16),
            trained_model.predict_softly_on_dataset(dataset, 16),
            rtol=1e-6, atol=1e-6)

    def test_functional_round_trip(self, dataset, tmp_path):
        model = build_functional()
        model.compile(optimizer=SGD_CONFIG)
        model.fit(dataset, epochs=1, batch_size=16)
        directory = tmp_path / "model"
        model.save(directory)

        restored = Functional.load_model_configuration(directory / MODEL_CONFIG_FILE)
        restored.compile(optimizer=SGD_CONFIG)
        restored.load_weights(directory)

        assert restored.container.edges == model.container.edges
        np.testing.assert_allclose(
            restored.predict_softly_on_dataset(dataset, 16),
            model.predict_softly_on_dataset(dataset, 16),
            rtol=1e-6, atol=1e-6)

    def test_optimizer_state_round_trip(self, dataset, tmp_path):
        model = build_sequential()
        model.compile(optimizer="adam")
        model.fit(dataset, epochs=1, batch_size=16)
        directory = tmp_path / "model"
        model.save(directory, save_optimizer_state=True)

        restored = build_sequential()
        restored.compile(optimizer="adam")
        restored.load_weights(directory, load_optimizer_state=True)

        assert restored.state == ModelState.OPTIMIZER_INITIALIZED
        names = model.container.optimizer_variable_names()
        assert names == restored.container.optimizer_variable_names()
        for name in names:
            np.testing.assert_allclose(
                restored.container.values(name), model.container.values(name))
        restored.fit(dataset, epochs=1, batch_size=16)

    def test_frozen_layer_skips_only_its_own_optimizer_variables(self, dataset, tmp_path):
        def build():
            return Sequential.of(
                Input(4, name="input"),
                Dense(units=8, activation="relu", name="pre_dense_1"),
                Dense(units=8, activation="relu", name="dense_1", trainable=False),
                Dense(units=2, activation="linear", name="output"))

        model = build()
        model.compile(optimizer="adam")
        model.fit(dataset, epochs=1, batch_size=16)
        model.save(tmp_path / "model", save_optimizer_state=True)

        restored = build()
        restored.compile(optimizer="adam")
        restored.load_weights(tmp_path / "model", load_optimizer_state=True)

        names = [
            name for name in restored.container.optimizer_variable_names()
            if "pre_dense_1_kernel" in name
        ]
        assert names
        for name in names:
            np.testing.assert_allclose(
                restored.container.values(name), model.container.values(name))

    def test_optimizer_variables_skipped_by_default(self, dataset, tmp_path):
        model = build_sequential()
        model.compile(optimizer="adam")
        model.fit(dataset, epochs=1, batch_size=16)
        model.save(tmp_path / "model", save_optimizer_state=True)

        restored = build_sequential()
        restored.compile(optimizer="adam")
        restored.load_weights(tmp_path / "model")
        assert restored.state == ModelState.INITIALIZED

    def test_missing_manifest_names_path(self, compiled_model, tmp_path):
        with pytest.raises(PersistenceError) as exc_info:
            compiled_model.load_weights(tmp_path)
        expected = str(tmp_path / VARIABLE_NAMES_FILE)
        assert exc_info.value.path == expected
        assert expected in str(exc_info.value)
        assert compiled_model.state == ModelState.COMPILED

    def test_failed_load_assigns_nothing(self, trained_model, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)
        (directory / "dense_2_bias.txt").write_text("1.0 2.0 3.0")

        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG)
        with pytest.raises(PersistenceError):
            model.load_weights(directory)

        assert model.state == ModelState.COMPILED
        np.testing.assert_array_equal(
            model.container.values("dense_1_kernel"), np.zeros((4, 8)))

    def test_missing_variable_file(self, trained_model, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)
        (directory / "dense_1_bias.txt").unlink()

        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG)
        with pytest.raises(PersistenceError):
            model.load_weights(directory)

    def test_non_numeric_values(self, trained_model, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)
        (directory / "dense_2_bias.txt").write_text("1.0 abc")

        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG)
        with pytest.raises(PersistenceError):
            model.load_weights(directory)

    def test_manifest_mismatch(self, trained_model, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)

        wider = Sequential.of(
            Input(4, name="input"),
            Dense(units=8, name="dense_1"),
            Dense(units=2, name="dense_2"),
            Dense(units=2, name="dense_3"))
        wider.compile(optimizer=SGD_CONFIG)
        with pytest.raises(PersistenceError):
            wider.load_weights(directory)

        narrower = Sequential.of(Input(4, name="input"), Dense(units=8, name="dense_1"))
        narrower.compile(optimizer=SGD_CONFIG)
        with pytest.raises(PersistenceError):
            narrower.load_weights(directory)

    def test_writing_modes(self, trained_model, tmp_path):
        directory = tmp_path / "model"
        trained_model.save(directory)

        with pytest.raises(PersistenceError):
            trained_model.save(directory)

        (directory / "notes.txt").write_text("keep me")
        trained_model.save(directory, writing_mode=WritingMode.APPEND)
        assert (directory / "notes.txt").is_file()

        trained_model.save(directory, writing_mode=WritingMode.OVERRIDE)
        assert not (directory / "notes.txt").exists()
        assert (directory / VARIABLE_NAMES_FILE).is_file()

    def test_tf_graph_formats(self, trained_model, tmp_path):
        graph_only = tmp_path / "graph_only"
        trained_model.save(graph_only, saving_format=SavingFormat.TF_GRAPH)
        assert (graph_only / GRAPH_FILE).stat().st_size > 0
        assert not (graph_only / VARIABLE_NAMES_FILE).exists()

        with_variables = tmp_path / "with_variables"
        trained_model.save(with_variables, saving_format=SavingFormat.TF_GRAPH_CUSTOM_VARIABLES)
        assert (with_variables / GRAPH_FILE).is_file()
        assert (with_variables / VARIABLE_NAMES_FILE).is_file()
        assert not (with_variables / MODEL_CONFIG_FILE).exists()

        model = build_sequential()
        model.compile(optimizer=SGD_CONFIG)
        with pytest.raises(PersistenceError):
            model.load_weights(graph_only)

    def test_loaded_weights_are_exact(self, tmp_path):
        model = Sequential.of(
            Input(2, name="input"),
            Dense(units=2, activation="linear", kernel_initializer=Ones(), name="dense"))
        model.compile(optimizer=SGD_CONFIG)
        model.init()
        model.container.assign("dense_kernel", [0.1, 0.2, 0.3, 1.0 / 3.0])
        model.save(tmp_path / "model")

        restored = Sequential.of(
            Input(2, name="input"),
            Dense(units=2, activation="linear", name="dense"))
        restored.compile(optimizer=SGD_CONFIG)
        restored.load_weights(tmp_path / "model")
        np.testing.assert_array_equal(
            restored.container.values("dense_kernel"), model.container.values("dense_kernel"))
