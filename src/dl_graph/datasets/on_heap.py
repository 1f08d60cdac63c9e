"""
In-memory dataset backed by numpy arrays.
"""

import math
import numpy as np
from typing import Optional, Sequence, Tuple

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.datasets.dataset import DataBatch, Dataset

# ---------------------------------------------------------------------


class OnHeapDataset(Dataset):
    """Features and labels held as two arrays with the same number of rows.

    Args:
        x: Features, ``(N, ...)``.
        y: Labels, ``(N, num_classes)`` one-hot or ``(N, outputs)``.

    Raises:
        ValueError: If row counts differ or the dataset is empty.
    """

    def __init__(self, x: np.ndarray, y: np.ndarray) -> None:
        x = np.asarray(x, dtype=np.float32)
        y = np.asarray(y, dtype=np.float32)
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        if len(x) != len(y):
            raise ValueError(
                f"The amount of labels ({len(y)}) is not equal to the amount of examples ({len(x)})")
        self._x = x
        self._y = y

    @classmethod
    def create(
            cls,
            x: np.ndarray,
            labels: np.ndarray,
            num_classes: Optional[int] = None,
            normalize: bool = False) -> "OnHeapDataset":
        """Build a dataset from raw arrays.

        Args:
            x: Features, ``(N, ...)``.
            labels: Class indices ``(N,)`` when ``num_classes`` is given,
                ready-made label rows otherwise.
            num_classes: Number of classes to one-hot encode ``labels`` into.
            normalize: Scale byte-valued features into ``[0, 1]``.
        """
        if normalize:
            x = cls.normalize_bytes(x)
        if num_classes is not None:
            labels = cls.to_one_hot(labels, num_classes)
        dataset = cls(x, labels)
        logger.debug(f"Created dataset with {dataset.size()} examples, x: {dataset.x_shape}")
        return dataset

    @staticmethod
    def to_one_hot(labels: Sequence[int], num_classes: int) -> np.ndarray:
        """One-hot encode class indices into ``(N, num_classes)``."""
        labels = np.asarray(labels).astype(np.int64).reshape(-1)
        if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
            raise ValueError(
                f"Labels must be in [0, {num_classes}), got range "
                f"[{labels.min()}, {labels.max()}]")
        one_hot = np.zeros((labels.size, num_classes), dtype=np.float32)
        one_hot[np.arange(labels.size), labels] = 1.0
        return one_hot

    @staticmethod
    def normalize_bytes(data: np.ndarray) -> np.ndarray:
        """Map unsigned byte values to ``[0, 1]``."""
        return np.asarray(data, dtype=np.float32) / 255.0

    @property
    def x_shape(self) -> Tuple[int, ...]:
        return tuple(self._x.shape)

    def size(self) -> int:
        return len(self._x)

    def get_x(self, index: int) -> np.ndarray:
        return self._x[index]

    def get_y(self, index: int) -> np.ndarray:
        return self._y[index]

    def create_data_batch(self, start: int, length: int) -> DataBatch:
        end = start + length
        return DataBatch(self._x[start:end].copy(), self._y[start:end].copy(), length)

    def split(self, ratio: float) -> Tuple["OnHeapDataset", "OnHeapDataset"]:
        if not 0.0 <= ratio <= 1.0:
            raise ValueError(f"Split ratio must be in range [0.0, 1.0], got {ratio}")
        boundary = int(math.floor(self.size() * ratio))
        return (
            OnHeapDataset(self._x[:boundary], self._y[:boundary]),
            OnHeapDataset(self._x[boundary:], self._y[boundary:]))

    def shuffle(self, seed=None) -> "OnHeapDataset":
        permutation = np.random.default_rng(seed).permutation(self.size())
        return OnHeapDataset(self._x[permutation], self._y[permutation])

# ---------------------------------------------------------------------
