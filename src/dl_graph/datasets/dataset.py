"""
Dataset interface consumed by model training, evaluation and batched prediction.
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Tuple

# ---------------------------------------------------------------------


@dataclass(frozen=True)
class DataBatch:
    """A slice of a dataset.

    Attributes:
        x: Features, ``size`` rows.
        y: One-hot (or regression) labels, ``size`` rows.
        size: Number of examples in the batch.
    """
    x: np.ndarray
    y: np.ndarray
    size: int

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError(f"Batch size must be positive, got {self.size}")
        if len(self.x) != self.size or len(self.y) != self.size:
            raise ValueError(
                f"Batch declares {self.size} examples but holds {len(self.x)} feature rows "
                f"and {len(self.y)} label rows")

# ---------------------------------------------------------------------


class Dataset(ABC):
    """Indexed collection of ``(x, y)`` examples that can be iterated in batches."""

    @abstractmethod
    def size(self) -> int:
        """Number of examples."""

    @abstractmethod
    def get_x(self, index: int) -> np.ndarray:
        """Features of example ``index``."""

    @abstractmethod
    def get_y(self, index: int) -> np.ndarray:
        """Label of example ``index``."""

    @abstractmethod
    def create_data_batch(self, start: int, length: int) -> DataBatch:
        """Batch of examples ``[start, start + length)``."""

    @abstractmethod
    def split(self, ratio: float) -> Tuple["Dataset", "Dataset"]:
        """Split into the first ``floor(size * ratio)`` examples and the rest."""

    @abstractmethod
    def shuffle(self, seed=None) -> "Dataset":
        """A new dataset holding the examples in random order."""

    def batch_iterator(self, batch_size: int) -> Iterator[DataBatch]:
        """Batches of ``batch_size`` examples in order; the last one may be smaller.

        Every call starts a new pass over the data.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        total = self.size()
        for start in range(0, total, batch_size):
            yield self.create_data_batch(start, min(batch_size, total - start))

    def __len__(self) -> int:
        return self.size()

# ---------------------------------------------------------------------
