"""
Trainable layer-graph model.

:class:`GraphTrainableModel` wires an ordered list of layers into a DAG rooted
at a single :class:`~dl_graph.layers.Input`, compiles it against an
optimizer, a loss and a metric, and drives training, evaluation, inference
and persistence over the variables held by its
:class:`~dl_graph.graph.GraphContainer`.

Lifecycle::

    UNCOMPILED --compile()--> COMPILED --init() / load_weights()--> INITIALIZED
        --fit() / load_weights(load_optimizer_state=True)--> OPTIMIZER_INITIALIZED

States are only ever advanced; an operation that needs a later state than
the current one, or that would re-enter a state already reached, raises
:class:`~dl_graph.errors.LifecycleError`.

Persistence layout of a model directory:

- ``variableNames.txt``: one variable name per line, in save order
- ``<variable name>.txt``: flattened values, whitespace separated
- ``graph.pb``: serialized ``GraphDef`` of the traced inference function
- ``modelConfig.json``: Keras-format model configuration
"""

import math
import shutil
import numpy as np
import tensorflow as tf
from enum import Enum, IntEnum
from keras import ops
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.shape import Shape, num_elements, shape_to_str
from dl_graph.errors import (
    ConfigError, LifecycleError, PersistenceError, ShapeError)
from dl_graph.graph import GraphContainer, GraphContext
from dl_graph.layers import Input, Layer
from dl_graph.losses import Losses, get_loss, loss_name
from dl_graph.metrics import Metrics, get_metric, metric_name
from dl_graph.optimization import get_optimizer
from dl_graph.callbacks import Callback
from dl_graph.datasets import DataBatch, Dataset
from dl_graph.history import (
    BatchEvent, BatchTrainingEvent, EpochTrainingEvent, EvaluationResult,
    History, NumericAnomaly, TrainingHistory)

# ---------------------------------------------------------------------
# constants
# ---------------------------------------------------------------------

VARIABLE_NAMES_FILE = "variableNames.txt"
GRAPH_FILE = "graph.pb"
MODEL_CONFIG_FILE = "modelConfig.json"
OPTIMIZER_PREFIX = "optimizer"

# ---------------------------------------------------------------------
# enums
# ---------------------------------------------------------------------


class ModelState(IntEnum):
    """Lifecycle states, ordered."""
    UNCOMPILED = 0
    COMPILED = 1
    INITIALIZED = 2
    OPTIMIZER_INITIALIZED = 3


class SavingFormat(str, Enum):
    """What :meth:`GraphTrainableModel.save` writes."""
    TF_GRAPH_CUSTOM_VARIABLES = "tf_graph_custom_variables"
    TF_GRAPH = "tf_graph"
    JSON_CONFIG_CUSTOM_VARIABLES = "json_config_custom_variables"


class WritingMode(str, Enum):
    """How :meth:`GraphTrainableModel.save` treats an existing directory."""
    FAIL_IF_EXISTS = "fail_if_exists"
    OVERRIDE = "override"
    APPEND = "append"

# ---------------------------------------------------------------------


def optimizer_variable_name(variable) -> str:
    """Model-unique name of an optimizer variable, e.g. ``optimizer_dense_1_kernel_momentum``.

    The optimizer's own name scope is left out so that a fresh optimizer of
    the same type maps onto the same names.
    """
    name = variable.name.split("/")[-1]
    return f"{OPTIMIZER_PREFIX}_{name.replace(':', '_')}"

# ---------------------------------------------------------------------


class GraphTrainableModel:
    """A layer graph that can be compiled, trained, evaluated, run and persisted.

    Args:
        layers: Layers in declaration order. The first one must be the
            model's only :class:`Input`, every other layer must name its
            inbound layers, all of which must be declared earlier. The last
            layer is the model output.
        name: Model name.

    Raises:
        ConfigError: If the layer list does not form a valid graph.
        NameConflictError: If two layers share a name.
    """

    def __init__(self, layers: Sequence[Layer], name: str = "") -> None:
        layers = list(layers)
        if not layers:
            raise ConfigError("A model needs at least an Input layer")
        if not isinstance(layers[0], Input):
            raise ConfigError(
                f"The first layer must be an Input layer, got {layers[0].__class__.__name__}",
                layer_name=layers[0].name or None)
        for layer in layers[1:]:
            if isinstance(layer, Input):
                raise ConfigError(
                    "A model must have exactly one Input layer",
                    layer_name=layer.name or None)

        self.name = name or self.__class__.__name__.lower()
        self.container = GraphContainer()
        self.stop_training = False

        self._layers: List[Layer] = layers
        self._layers_by_name: Dict[str, Layer] = {}
        self._state = ModelState.UNCOMPILED

        self.optimizer = None
        self.loss: Optional[Callable] = None
        self.metric: Optional[Callable] = None
        self.callback: Callback = Callback()

        self._train_function = None
        self._apply_function = None
        self._test_function = None
        self._predict_function = None

        self._wire(GraphContext())

    # -----------------------------------------------------------------
    # graph assembly
    # -----------------------------------------------------------------

    def _wire(self, context: GraphContext) -> None:
        # explicit names are reserved before any automatic name is handed out
        for layer in self._layers:
            if layer.name:
                context.register(layer)
        for layer in self._layers:
            context.register(layer)

        declared = set()
        for layer in self._layers:
            inbound = () if isinstance(layer, Input) else self._resolve_inbound(layer, context, declared)
            self.container.add_edges(layer.name, inbound)
            self._layers_by_name[layer.name] = layer
            declared.add(layer.name)

    @staticmethod
    def _resolve_inbound(layer: Layer, context: GraphContext, declared: set) -> Tuple[str, ...]:
        for inbound_layer in layer.inbound_layers():
            if not inbound_layer.name or inbound_layer.name not in context \
                    or context.resolve(inbound_layer.name) is not inbound_layer:
                raise ConfigError(
                    f"Inbound layer {inbound_layer!r} is not part of the model",
                    layer_name=layer.name,
                    field="inbound_nodes")

        inbound = layer.inbound
        if not inbound:
            raise ConfigError(
                "Layer has no inbound layers",
                layer_name=layer.name,
                field="inbound_nodes")
        for name in inbound:
            context.resolve(name, requested_by=layer.name)
            if name not in declared:
                raise ConfigError(
                    f"Inbound layer [{name}] is declared after the layer using it",
                    layer_name=layer.name,
                    field="inbound_nodes")
        if not layer.is_merge and len(inbound) != 1:
            raise ConfigError(
                f"{layer.__class__.__name__} takes exactly one inbound layer, got {list(inbound)}",
                layer_name=layer.name,
                field="inbound_nodes")
        return inbound

    # -----------------------------------------------------------------
    # properties
    # -----------------------------------------------------------------

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def layers(self) -> List[Layer]:
        return list(self._layers)

    @property
    def input_layer(self) -> Input:
        return self._layers[0]

    @property
    def output_layer(self) -> Layer:
        return self._layers[-1]

    @property
    def output_shape(self) -> Shape:
        return self.output_shape_of(self.output_layer.name)

    @property
    def num_classes(self) -> int:
        """Number of values the model outputs per example."""
        return num_elements(self.output_shape[1:])

    def get_layer(self, name: str) -> Layer:
        """Return the layer called ``name``.

        Raises:
            ValueError: If the model has no such layer.
        """
        layer = self._layers_by_name.get(name)
        if layer is None:
            raise ValueError(f"No such layer [{name}] in the model")
        return layer

    def output_shape_of(self, name: str) -> Shape:
        """Output shape of layer ``name``, available once the model is compiled."""
        self.get_layer(name)
        self._require_at_least(ModelState.COMPILED, "read layer output shapes")
        return self.container.records[name].output_shape

    # -----------------------------------------------------------------
    # lifecycle
    # -----------------------------------------------------------------

    def _require_at_least(self, state: ModelState, action: str) -> None:
        if self._state < state:
            raise LifecycleError(
                f"Cannot {action}: the model is not {state.name.lower()} yet",
                expected=state.name, actual=self._state.name)

    def compile(
            self,
            optimizer: Any = "adam",
            loss: Union[str, Losses, Callable] = Losses.SOFT_MAX_CROSS_ENTROPY_WITH_LOGITS,
            metric: Union[str, Metrics, Callable] = Metrics.ACCURACY,
            callback: Optional[Callback] = None) -> None:
        """Build every layer, the optimizer state and the train/test/predict functions.

        Args:
            optimizer: ``keras.optimizers.Optimizer`` instance, optimizer type
                name or ``optimizer_builder`` config dictionary.
            loss: Loss identifier or ``(y_true, y_pred) -> scalar`` callable.
            metric: Metric identifier or ``(y_true, y_pred) -> scalar`` callable.
            callback: Callback notified during fit, evaluate and predict.

        Raises:
            LifecycleError: If the model is compiled already.
            ShapeError: If a layer rejects its input shape.
        """
        if self._state >= ModelState.COMPILED:
            raise LifecycleError(
                "The model is compiled already",
                expected=ModelState.UNCOMPILED.name, actual=self._state.name)

        self.optimizer = get_optimizer(optimizer)
        self.loss = get_loss(loss)
        self.metric = get_metric(metric)
        self.callback = callback if callback is not None else Callback()
        self.callback.set_model(self)

        self._build_layers()

        trainable_variables = self.container.trainable_variables()
        self.optimizer.build(trainable_variables)
        for variable in self.optimizer.variables:
            self.container.add_optimizer_variable(optimizer_variable_name(variable), variable)

        self._create_functions()
        self._state = ModelState.COMPILED

        logger.info(
            f"Compiled model [{self.name}]: {len(self._layers)} layers, "
            f"{self.container.count_params()} params "
            f"({self.container.count_params(trainable_only=True)} trainable), "
            f"optimizer: [{self.optimizer.__class__.__name__}], "
            f"loss: [{loss_name(self.loss)}], metric: [{metric_name(self.metric)}]")

    def _build_layers(self) -> None:
        shapes: Dict[str, Shape] = {}
        for layer in self._layers:
            inbound = self.container.edges[layer.name]
            if isinstance(layer, Input):
                input_shape = layer.input_shape
            elif layer.is_merge:
                input_shape = [shapes[name] for name in inbound]
            else:
                input_shape = shapes[inbound[0]]
            record = layer.build(input_shape, self.container)
            shapes[layer.name] = record.output_shape

    def _create_functions(self) -> None:
        x_spec = tf.TensorSpec((None, *self.input_layer.dims), tf.float32)
        output_shape = self.container.records[self.output_layer.name].output_shape
        y_spec = tf.TensorSpec((None, *output_shape[1:]), tf.float32)

        self._train_function = tf.function(self._compute_gradients, input_signature=[x_spec, y_spec])
        self._apply_function = tf.function(self._apply_gradients)
        self._test_function = tf.function(self._test_step, input_signature=[x_spec, y_spec])
        self._predict_function = tf.function(self._predict_step, input_signature=[x_spec])

    def init(self) -> None:
        """Assign initializer-sampled values to every layer variable.

        Raises:
            LifecycleError: If the model is not compiled, or is initialized
                already (by ``init``, ``fit`` or ``load_weights``).
        """
        self._require_at_least(ModelState.COMPILED, "initialize variables")
        if self._state >= ModelState.INITIALIZED:
            raise LifecycleError(
                "The model is initialized already",
                expected=ModelState.COMPILED.name, actual=self._state.name)
        self.container.initialize_variables()
        self._state = ModelState.INITIALIZED
        logger.debug(f"Initialized {len(self.container.layer_variables())} variables")

    def _init_optimizer(self) -> None:
        self.container.initialize_optimizer_variables()
        self._state = ModelState.OPTIMIZER_INITIALIZED

    # -----------------------------------------------------------------
    # forward pass
    # -----------------------------------------------------------------

    def _forward(self, x, training: bool, updates: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run every layer in declaration order, returning all outputs by layer name.

        When ``updates`` is given, the new values of non-gradient state
        (e.g. moving statistics) are collected into it by variable name
        instead of being assigned.
        """
        outputs: Dict[str, Any] = {}
        for layer in self._layers:
            record = self.container.records[layer.name]
            inbound = self.container.edges[layer.name]
            if isinstance(layer, Input):
                inputs = x
            elif layer.is_merge:
                inputs = [outputs[name] for name in inbound]
            else:
                inputs = outputs[inbound[0]]
            outputs[layer.name] = layer.forward(inputs, record, training=training)
            if updates is not None:
                for weight_name, value in layer.state_updates(inputs, record).items():
                    updates[layer.variable_name(weight_name)] = value
        return outputs

    def _regularization_loss(self, outputs: Dict[str, Any]):
        penalty = 0.0
        for layer in self._layers:
            record = self.container.records[layer.name]
            for weight_name, regularizer in record.regularizers.items():
                penalty = penalty + regularizer(record.weights[weight_name])
            if layer.activity_regularizer is not None:
                penalty = penalty + layer.activity_regularizer(outputs[layer.name])
        return penalty

    def _to_predictions(self, output):
        if isinstance(self.loss, Losses) and self.loss.applies_softmax_to_predictions:
            return ops.softmax(output, axis=-1)
        return output

    def _losses(self, x, y, training: bool, updates: Optional[Dict[str, Any]] = None):
        outputs = self._forward(x, training=training, updates=updates)
        output = outputs[self.output_layer.name]
        loss = self.loss(y, output) + self._regularization_loss(outputs)
        metric = self.metric(y, self._to_predictions(output))
        return loss, metric

    def _compute_gradients(self, x, y):
        variables = self.container.trainable_variables()
        updates: Dict[str, Any] = {}
        with tf.GradientTape() as tape:
            loss, metric = self._losses(x, y, training=True, updates=updates)
        gradients = tape.gradient(loss, variables)
        gradients = [
            ops.zeros_like(v) if g is None else g
            for g, v in zip(gradients, variables)
        ]
        finite = tf.math.is_finite(loss)
        for value in [*gradients, *updates.values()]:
            finite = tf.logical_and(finite, tf.reduce_all(tf.math.is_finite(value)))
        return loss, metric, gradients, updates, finite

    def _apply_gradients(self, gradients, updates):
        if gradients:
            self.optimizer.apply(gradients, self.container.trainable_variables())
        for name, value in updates.items():
            self.container.variable(name).assign(value)

    def _test_step(self, x, y):
        return self._losses(x, y, training=False)

    def _predict_step(self, x):
        outputs = self._forward(x, training=False)
        return self._to_predictions(outputs[self.output_layer.name])

    # -----------------------------------------------------------------
    # batches
    # -----------------------------------------------------------------

    def _feed_x(self, x: np.ndarray, size: int) -> np.ndarray:
        x = np.asarray(x, dtype=np.float32)
        shape = (size, *self.input_layer.dims)
        if x.size != num_elements(shape):
            raise ShapeError(
                f"Features hold {x.size} values, expected {num_elements(shape)} "
                f"for shape {shape_to_str(shape)}")
        return x.reshape(shape)

    def _feed_batch(self, batch: DataBatch) -> Tuple[np.ndarray, np.ndarray]:
        x = self._feed_x(batch.x, batch.size)
        y = np.asarray(batch.y, dtype=np.float32)
        y_shape = (batch.size, *self.output_shape[1:])
        if y.size != num_elements(y_shape):
            raise ShapeError(
                f"Labels hold {y.size} values, expected {num_elements(y_shape)} "
                f"for shape {shape_to_str(y_shape)}")
        return x, y.reshape(y_shape)

    @staticmethod
    def _full_batches(dataset: Dataset, batch_size: int):
        for batch in dataset.batch_iterator(batch_size):
            # trailing partial batch is dropped
            if batch.size < batch_size:
                break
            yield batch

    # -----------------------------------------------------------------
    # training and evaluation
    # -----------------------------------------------------------------

    def fit(
            self,
            dataset: Dataset,
            epochs: int = 5,
            batch_size: int = 32,
            validation_dataset: Optional[Dataset] = None,
            validation_batch_size: Optional[int] = None) -> TrainingHistory:
        """Train for ``epochs`` passes over ``dataset``.

        Each epoch runs ``floor(dataset.size() / batch_size)`` batches. A
        batch whose loss or gradients hold a NaN or infinite value updates
        neither the variables nor the moving statistics of its layers; it
        is recorded in :attr:`TrainingHistory.anomalies` and training
        continues. Uninitialized layer and optimizer variables are
        initialized first. Setting :attr:`stop_training` stops training at
        the start of the next epoch.

        Args:
            dataset: Training data.
            epochs: Number of epochs.
            batch_size: Examples per batch.
            validation_dataset: Evaluated at the end of every epoch when given.
            validation_batch_size: Batch size of the validation pass,
                ``batch_size`` by default.

        Returns:
            The training history.

        Raises:
            LifecycleError: If the model is not compiled.
            ShapeError: If a batch does not match the model's input or output shape.
        """
        self._require_at_least(ModelState.COMPILED, "fit")
        if epochs <= 0:
            raise ValueError(f"epochs must be positive, got {epochs}")
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        if self._state < ModelState.INITIALIZED:
            logger.info("Initializing model variables before training")
            self.init()
        if self._state < ModelState.OPTIMIZER_INITIALIZED:
            self._init_optimizer()

        history = TrainingHistory()
        self.stop_training = False

        self.callback.on_train_begin()
        for epoch in range(1, epochs + 1):
            if self.stop_training:
                logger.info(f"Training stopped before epoch {epoch}")
                break
            self.callback.on_epoch_begin(epoch, history)

            loss_sum = 0.0
            metric_sum = 0.0
            completed = 0
            for batch_index, batch in enumerate(self._full_batches(dataset, batch_size)):
                self.callback.on_train_batch_begin(batch_index, batch_size, history)
                x, y = self._feed_batch(batch)
                loss, metric, gradients, updates, finite = self._train_function(x, y)
                loss_value = float(loss)
                metric_value = float(metric)

                if bool(finite):
                    self._apply_function(gradients, updates)
                    loss_sum += loss_value
                    metric_sum += metric_value
                    completed += 1
                else:
                    logger.warning(
                        f"Epoch {epoch}, batch {batch_index}: non-finite loss or gradients "
                        f"(loss: {loss_value}), skipping the update")
                    history.append_anomaly(NumericAnomaly(epoch, batch_index, loss_value))

                event = BatchTrainingEvent(epoch, batch_index, loss_value, metric_value)
                history.append_batch(event)
                logger.debug(
                    f"Epoch {epoch}, batch {batch_index}: "
                    f"loss: {loss_value} metric: {metric_value}")
                self.callback.on_train_batch_end(batch_index, batch_size, event, history)

            if completed:
                mean_loss = loss_sum / completed
                mean_metric = metric_sum / completed
            else:
                logger.warning(f"Epoch {epoch} completed no batch")
                mean_loss = math.nan
                mean_metric = math.nan

            if validation_dataset is not None:
                result = self.evaluate(validation_dataset, validation_batch_size or batch_size)
                event = EpochTrainingEvent(
                    epoch, mean_loss, mean_metric,
                    result.loss_value, result.metrics[metric_name(self.metric)])
                logger.info(
                    f"epochs: {epoch} loss: {mean_loss} metric: {mean_metric} "
                    f"val loss: {event.val_loss_value} val metric: {event.val_metric_value}")
            else:
                event = EpochTrainingEvent(epoch, mean_loss, mean_metric)
                logger.info(f"epochs: {epoch} loss: {mean_loss} metric: {mean_metric}")

            history.append_epoch(event)
            self.callback.on_epoch_end(epoch, event, history)

        self.callback.on_train_end(history)
        return history

    def evaluate(self, dataset: Dataset, batch_size: int = 256) -> EvaluationResult:
        """Mean loss and metric over every full batch of ``dataset``.

        Raises:
            LifecycleError: If the model is not initialized.
        """
        self._require_at_least(ModelState.INITIALIZED, "evaluate")
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        history = History()
        loss_sum = 0.0
        metric_sum = 0.0
        completed = 0

        self.callback.on_test_begin()
        for batch_index, batch in enumerate(self._full_batches(dataset, batch_size)):
            self.callback.on_test_batch_begin(batch_index, batch_size, history)
            x, y = self._feed_batch(batch)
            loss, metric = self._test_function(x, y)
            event = BatchEvent(batch_index, float(loss), float(metric))
            history.append_batch(event)
            loss_sum += event.loss_value
            metric_sum += event.metric_value
            completed += 1
            self.callback.on_test_batch_end(batch_index, batch_size, event, history)
        self.callback.on_test_end(history)

        if not completed:
            logger.warning(
                f"Dataset of size {dataset.size()} holds no full batch of {batch_size}")
            return EvaluationResult(math.nan, {metric_name(self.metric): math.nan})
        return EvaluationResult(
            loss_sum / completed, {metric_name(self.metric): metric_sum / completed})

    # -----------------------------------------------------------------
    # inference
    # -----------------------------------------------------------------

    def predict_softly(self, x, prediction_layer_name: str = "") -> np.ndarray:
        """Per-class scores of one example (probabilities for softmax-with-logits losses).

        Args:
            x: One example.
            prediction_layer_name: Layer whose raw output is returned instead
                of the model output.
        """
        self._require_at_least(ModelState.INITIALIZED, "predict")
        if prediction_layer_name:
            return self.predict_softly_and_get_activations(x, prediction_layer_name)[0]
        prediction = self._predict_function(self._feed_x(x, 1))
        return ops.convert_to_numpy(prediction)[0]

    def predict(self, x, prediction_layer_name: str = "") -> int:
        """Index of the highest score for one example."""
        return int(np.argmax(self.predict_softly(x, prediction_layer_name)))

    def predict_softly_and_get_activations(
            self,
            x,
            prediction_layer_name: str = "") -> Tuple[np.ndarray, List[np.ndarray]]:
        """Scores of one example plus the outputs of every activation-bearing layer but the last.

        Args:
            x: One example.
            prediction_layer_name: Layer whose output is returned as the
                prediction instead of the model output.

        Returns:
            Tuple of the prediction and the list of activations, each with a
            leading batch axis of 1.
        """
        self._require_at_least(ModelState.INITIALIZED, "predict")
        outputs = self._forward(self._feed_x(x, 1), training=False)
        if prediction_layer_name:
            prediction = outputs[self.get_layer(prediction_layer_name).name]
        else:
            prediction = self._to_predictions(outputs[self.output_layer.name])

        activations = [
            ops.convert_to_numpy(outputs[layer.name])
            for layer in self._layers[:-1]
            if layer.has_activation
        ]
        return ops.convert_to_numpy(prediction)[0], activations

    def predict_and_get_activations(
            self,
            x,
            prediction_layer_name: str = "") -> Tuple[int, List[np.ndarray]]:
        """Like :meth:`predict_softly_and_get_activations`, with the arg-max class index."""
        prediction, activations = self.predict_softly_and_get_activations(x, prediction_layer_name)
        return int(np.argmax(prediction)), activations

    def predict_softly_on_dataset(self, dataset: Dataset, batch_size: int) -> np.ndarray:
        """Scores of every example of ``dataset``, ``(size, num_classes)``.

        Raises:
            ValueError: If the dataset size is not a multiple of ``batch_size``.
        """
        self._require_at_least(ModelState.INITIALIZED, "predict")
        if batch_size <= 0 or dataset.size() % batch_size != 0:
            raise ValueError(
                f"The amount of examples ({dataset.size()}) must be a multiple of "
                f"batch size ({batch_size})")

        predictions = []
        self.callback.on_predict_begin()
        for batch_index, batch in enumerate(dataset.batch_iterator(batch_size)):
            self.callback.on_predict_batch_begin(batch_index, batch_size)
            scores = self._predict_function(self._feed_x(batch.x, batch.size))
            predictions.append(ops.convert_to_numpy(scores).reshape(batch.size, -1))
            self.callback.on_predict_batch_end(batch_index, batch_size)
        self.callback.on_predict_end()
        return np.concatenate(predictions, axis=0)

    def predict_on_dataset(self, dataset: Dataset, batch_size: int) -> np.ndarray:
        """Arg-max class index of every example of ``dataset``."""
        return np.argmax(self.predict_softly_on_dataset(dataset, batch_size), axis=-1)

    # -----------------------------------------------------------------
    # persistence
    # -----------------------------------------------------------------

    def save(
            self,
            directory: Union[str, Path],
            saving_format: SavingFormat = SavingFormat.JSON_CONFIG_CUSTOM_VARIABLES,
            save_optimizer_state: bool = False,
            writing_mode: WritingMode = WritingMode.FAIL_IF_EXISTS) -> None:
        """Write the model to ``directory``.

        Args:
            directory: Target directory.
            saving_format: Which artifacts to write.
            save_optimizer_state: Also write the optimizer variables.
            writing_mode: Existing directories fail, are replaced, or are
                written into.

        Raises:
            LifecycleError: If the model is not initialized, or optimizer state
                is requested before the optimizer is initialized.
            PersistenceError: If the directory exists under ``FAIL_IF_EXISTS``.
        """
        self._require_at_least(ModelState.INITIALIZED, "save")
        if save_optimizer_state:
            self._require_at_least(ModelState.OPTIMIZER_INITIALIZED, "save optimizer state")

        saving_format = SavingFormat(saving_format)
        directory = Path(directory)
        self._prepare_directory(directory, WritingMode(writing_mode))

        if saving_format in (SavingFormat.TF_GRAPH_CUSTOM_VARIABLES, SavingFormat.TF_GRAPH):
            self._save_graph_def(directory)
        if saving_format == SavingFormat.JSON_CONFIG_CUSTOM_VARIABLES:
            from dl_graph.inference.keras.serializer import save_model_configuration
            save_model_configuration(self, directory / MODEL_CONFIG_FILE)
        if saving_format != SavingFormat.TF_GRAPH:
            self._save_variables(directory, save_optimizer_state)

        logger.info(f"Saved model [{self.name}] as [{saving_format.value}] to [{directory}]")

    @staticmethod
    def _prepare_directory(directory: Path, writing_mode: WritingMode) -> None:
        if writing_mode == WritingMode.FAIL_IF_EXISTS:
            if directory.exists():
                raise PersistenceError(
                    "The directory exists already and could contain a valuable model, "
                    "use WritingMode.OVERRIDE to replace it",
                    path=directory)
            directory.mkdir(parents=True)
        elif writing_mode == WritingMode.OVERRIDE:
            if directory.exists():
                shutil.rmtree(directory)
            directory.mkdir(parents=True)
        else:
            directory.mkdir(parents=True, exist_ok=True)

    def _save_graph_def(self, directory: Path) -> None:
        graph_def = self._predict_function.get_concrete_function().graph.as_graph_def()
        (directory / GRAPH_FILE).write_bytes(graph_def.SerializeToString())

    def _save_variables(self, directory: Path, save_optimizer_state: bool) -> None:
        names = self.container.layer_variable_names()
        if save_optimizer_state:
            names += self.container.optimizer_variable_names()

        with open(directory / VARIABLE_NAMES_FILE, "w") as manifest:
            for name in names:
                values = self.container.values(name).reshape(-1)
                with open(directory / f"{name}.txt", "w") as variable_file:
                    variable_file.write(" ".join(repr(float(v)) for v in values))
                manifest.write(f"{name}\n")
                logger.debug(f"Saved variable [{name}] with {values.size} values")

    def load_weights(
            self,
            directory: Union[str, Path],
            load_optimizer_state: bool = False) -> None:
        """Load variables saved by :meth:`save` into this compiled, uninitialized model.

        Every file is read and checked before any variable is assigned.
        Optimizer variables are skipped unless ``load_optimizer_state`` is
        set; those of frozen layers are always skipped.

        Raises:
            LifecycleError: If the model is not compiled or is initialized already.
            PersistenceError: If the manifest or a variable file is missing,
                the manifest and the model disagree on the variable names, or a
                variable file holds the wrong number of values.
        """
        self._require_loadable()

        directory = Path(directory)
        manifest = directory / VARIABLE_NAMES_FILE
        if not manifest.is_file():
            raise PersistenceError(
                f"File '{VARIABLE_NAMES_FILE}' is not found, it is written by save() "
                f"with SavingFormat.TF_GRAPH_CUSTOM_VARIABLES or "
                f"SavingFormat.JSON_CONFIG_CUSTOM_VARIABLES",
                path=manifest)
        with open(manifest) as manifest_file:
            saved_names = [line.strip() for line in manifest_file if line.strip()]

        selected = self._select_variables(saved_names, load_optimizer_state, manifest)
        values = {name: self._read_variable(directory / f"{name}.txt", name) for name in selected}
        self._assign_loaded(
            {name: (v, directory / f"{name}.txt") for name, v in values.items()},
            load_optimizer_state)
        logger.info(f"Loaded {len(values)} variables into model [{self.name}] from [{directory}]")

    def load_weights_from_keras_h5(self, path: Union[str, Path]) -> None:
        """Load weights saved by Keras (``model.save_weights`` / ``model.save``) to HDF5.

        See :func:`dl_graph.inference.keras.weights.load_weights_from_keras_h5`.
        """
        from dl_graph.inference.keras.weights import load_weights_from_keras_h5
        load_weights_from_keras_h5(self, path)

    def _require_loadable(self) -> None:
        self._require_at_least(ModelState.COMPILED, "load weights")
        if self._state >= ModelState.INITIALIZED:
            raise LifecycleError(
                "The model is initialized already, weights must be loaded into a fresh model",
                expected=ModelState.COMPILED.name, actual=self._state.name)

    def _assign_loaded(
            self,
            values: Dict[str, Tuple[np.ndarray, Union[str, Path]]],
            load_optimizer_state: bool = False) -> None:
        """Assign values read and checked beforehand, then advance the state."""
        for name, (variable_values, source) in values.items():
            self.container.assign(name, variable_values, source=str(source))
            logger.debug(f"Loaded variable [{name}]")

        self._state = ModelState.INITIALIZED
        if load_optimizer_state:
            self._state = ModelState.OPTIMIZER_INITIALIZED

    def _select_variables(
            self,
            saved_names: List[str],
            load_optimizer_state: bool,
            manifest: Path) -> List[str]:
        selected = []
        for name in saved_names:
            if name.startswith(OPTIMIZER_PREFIX):
                if not load_optimizer_state:
                    continue
                if self._is_related_to_frozen_layer(name):
                    logger.warning(f"Skipping optimizer variable [{name}] of a frozen layer")
                    continue
            if not self.container.has_variable(name):
                raise PersistenceError(
                    f"Variable [{name}] listed in the manifest is not part of the model",
                    path=manifest)
            selected.append(name)

        expected = self.container.layer_variable_names()
        if load_optimizer_state:
            expected += [
                name for name in self.container.optimizer_variable_names()
                if not self._is_related_to_frozen_layer(name)
            ]
        missing = [name for name in expected if name not in selected]
        if missing:
            raise PersistenceError(
                f"Model variables {missing} are missing from the manifest",
                path=manifest)
        return selected

    def _is_related_to_frozen_layer(self, name: str) -> bool:
        prefix = f"{OPTIMIZER_PREFIX}_"
        if not name.startswith(prefix):
            return False
        slot = name[len(prefix):]
        return any(
            slot == frozen or slot.startswith(f"{frozen}_")
            for frozen in self.container.frozen_variable_names())

    def _read_variable(self, path: Path, name: str) -> np.ndarray:
        if not path.is_file():
            raise PersistenceError(f"File of variable [{name}] is not found", path=path)
        with open(path) as variable_file:
            text = variable_file.read()
        try:
            values = np.array(text.split(), dtype=np.float64)
        except ValueError as e:
            raise PersistenceError(f"Variable [{name}] holds non-numeric values", path=path) from e

        expected = num_elements(self.container.variable(name).shape)
        if values.size != expected:
            raise PersistenceError(
                f"Variable [{name}] expects {expected} values, the file holds {values.size}",
                path=path)
        return values

    # -----------------------------------------------------------------
    # reporting
    # -----------------------------------------------------------------

    def summary(self) -> str:
        """Per-layer table of name, kind, output shape and parameter count, logged and returned."""
        self._require_at_least(ModelState.COMPILED, "summarize")
        rows = [("Layer (type)", "Output shape", "Param #")]
        for layer in self._layers:
            record = self.container.records[layer.name]
            rows.append((
                f"{layer.name} ({layer.__class__.__name__})",
                shape_to_str(record.output_shape),
                str(record.param_count)))

        widths = [max(len(row[i]) for row in rows) + 2 for i in range(3)]
        separator = "=" * sum(widths)
        lines = [f"Model: [{self.name}]", separator]
        for index, row in enumerate(rows):
            lines.append("".join(cell.ljust(width) for cell, width in zip(row, widths)))
            if index == 0:
                lines.append(separator)
        total = self.container.count_params()
        trainable = self.container.count_params(trainable_only=True)
        lines.extend([
            separator,
            f"Total params: {total}",
            f"Trainable params: {trainable}",
            f"Non-trainable params: {total - trainable}",
        ])
        text = "\n".join(lines)
        logger.info(f"\n{text}")
        return text

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, layers={len(self._layers)}, state={self._state.name})"

# ---------------------------------------------------------------------
