"""
Keras HDF5 Weight Loader.

Copies weights trained by Keras into a compiled ``dl_graph`` model, typically
one rebuilt with :func:`~dl_graph.inference.keras.loader.deserialize_sequential_model`
or :func:`~dl_graph.inference.keras.loader.deserialize_functional_model` from
the same Keras model's JSON configuration.

Two HDF5 layouts are read:

- **Keras 2 / legacy**: written by ``model.save_weights("w.h5")`` or
  ``model.save("m.h5")`` (weights under ``model_weights``). Every layer group
  lists its datasets in the ``weight_names`` attribute, e.g.
  ``dense_1/kernel:0``; the last path component without the ``:0`` suffix
  is the weight name, so ``dense_1/kernel:0`` lands in ``dense_1_kernel``.
- **Keras 3**: written by ``model.save_weights("w.weights.h5")``. Every layer
  group holds ``vars/0``, ``vars/1``, ... in the order the layer created its
  variables, which is also the order of the ``dl_graph`` layer's weights.

Every dataset is read and checked against the model before the first
variable is assigned.

Example:
    >>> model = Sequential.load_model_configuration("vgg19.json")
    >>> model.compile(optimizer="adam")
    >>> load_weights_from_keras_h5(model, "vgg19_weights.h5")
"""

import h5py
import numpy as np
from pathlib import Path
from typing import Dict, List, Tuple, Union

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.errors import PersistenceError

# ---------------------------------------------------------------------

MODEL_WEIGHTS_GROUP = "model_weights"
LAYER_NAMES_ATTRIBUTE = "layer_names"
WEIGHT_NAMES_ATTRIBUTE = "weight_names"
KERAS3_LAYERS_GROUP = "layers"
KERAS3_VARS_GROUP = "vars"

# ---------------------------------------------------------------------


def _decode(value) -> str:
    return value.decode("utf8") if isinstance(value, bytes) else str(value)


def keras_weight_name(dataset_name: str) -> str:
    """Short weight name of a Keras dataset name, ``dense_1/kernel:0`` -> ``kernel``."""
    return dataset_name.split("/")[-1].split(":")[0]

# ---------------------------------------------------------------------


def _read_legacy_layers(root: h5py.Group) -> Dict[str, Dict[str, np.ndarray]]:
    layers = {}
    for layer_name in (_decode(n) for n in root.attrs[LAYER_NAMES_ATTRIBUTE]):
        group = root[layer_name]
        weights = {}
        for dataset_name in (_decode(n) for n in group.attrs.get(WEIGHT_NAMES_ATTRIBUTE, [])):
            weights[keras_weight_name(dataset_name)] = np.asarray(group[dataset_name])
        layers[layer_name] = weights
    return layers


def _read_keras3_layers(root: h5py.Group) -> Dict[str, List[np.ndarray]]:
    layers = {}
    for layer_name, group in root[KERAS3_LAYERS_GROUP].items():
        if KERAS3_VARS_GROUP not in group:
            continue
        variables = group[KERAS3_VARS_GROUP]
        layers[layer_name] = [
            np.asarray(variables[str(index)]) for index in range(len(variables))
        ]
    return layers

# ---------------------------------------------------------------------


def read_keras_h5_weights(path: Union[str, Path]) -> Dict[str, Dict[str, np.ndarray]]:
    """Read every layer's weights from a Keras HDF5 file.

    Returns:
        Layer name to a dictionary of weights. Keras 2 files key weights by
        name (``"kernel"``); Keras 3 files key them by position (``"0"``).

    Raises:
        PersistenceError: If the file is missing or is not a Keras weight file.
    """
    path = Path(path)
    if not path.is_file():
        raise PersistenceError("Keras weight file is not found", path=path)

    with h5py.File(path, "r") as h5_file:
        root = h5_file[MODEL_WEIGHTS_GROUP] if MODEL_WEIGHTS_GROUP in h5_file else h5_file
        if LAYER_NAMES_ATTRIBUTE in root.attrs:
            layers = _read_legacy_layers(root)
        elif KERAS3_LAYERS_GROUP in root:
            layers = {
                name: {str(i): values for i, values in enumerate(weights)}
                for name, weights in _read_keras3_layers(root).items()
            }
        else:
            raise PersistenceError(
                f"Neither a [{LAYER_NAMES_ATTRIBUTE}] attribute nor a "
                f"[{KERAS3_LAYERS_GROUP}] group found, not a Keras weight file",
                path=path)

    logger.debug(f"Read weights of {len(layers)} layers from [{path}]")
    return layers

# ---------------------------------------------------------------------


def _match_layer(
        model,
        layer_name: str,
        weights: Dict[str, np.ndarray],
        path: Path) -> List[Tuple[str, np.ndarray]]:
    record = model.container.records[layer_name]
    layer = model.get_layer(layer_name)
    short_names = list(record.weights)

    if weights and all(key.isdigit() for key in weights):
        if len(weights) != len(short_names):
            raise PersistenceError(
                f"Layer [{layer_name}] has {len(short_names)} weights, "
                f"the file holds {len(weights)}",
                path=path)
        weights = {short_names[int(key)]: values for key, values in weights.items()}

    missing = [name for name in short_names if name not in weights]
    unknown = [name for name in weights if name not in record.weights]
    if missing or unknown:
        raise PersistenceError(
            f"Weights of layer [{layer_name}] do not match: "
            f"missing from the file {missing}, unknown to the model {unknown}",
            path=path)

    matched = []
    for short_name in short_names:
        values = weights[short_name]
        expected = tuple(record.weights[short_name].shape)
        if tuple(values.shape) != expected:
            raise PersistenceError(
                f"Weight [{short_name}] of layer [{layer_name}] expects shape "
                f"{expected}, the file holds {tuple(values.shape)}",
                path=path)
        matched.append((layer.variable_name(short_name), values))
    return matched


def load_weights_from_keras_h5(model, path: Union[str, Path]) -> None:
    """Assign the weights of a Keras HDF5 file to a compiled, uninitialized model.

    Layers are matched by name. Layers of the file the model does not have
    are skipped with a warning; a model layer holding variables that the
    file does not cover is an error.

    Args:
        model: A compiled :class:`~dl_graph.models.GraphTrainableModel`.
        path: Keras ``.h5`` weight or model file.

    Raises:
        LifecycleError: If the model is not compiled or is initialized already.
        PersistenceError: If the file is missing or unreadable, or a weight is
            missing or has the wrong shape.
    """
    model._require_loadable()
    path = Path(path)
    layers = read_keras_h5_weights(path)

    values = {}
    for layer in model.layers:
        record = model.container.records[layer.name]
        if not record.weights:
            continue
        if layer.name not in layers:
            raise PersistenceError(
                f"Weights of layer [{layer.name}] are not found in the file", path=path)
        for name, variable_values in _match_layer(model, layer.name, layers[layer.name], path):
            values[name] = (variable_values, path)

    for layer_name, weights in layers.items():
        if weights and layer_name not in model.container.records:
            logger.warning(f"Skipping weights of layer [{layer_name}] unknown to the model")

    model._assign_loaded(values)
    logger.info(f"Loaded {len(values)} Keras variables into model [{model.name}] from [{path}]")

# ---------------------------------------------------------------------
