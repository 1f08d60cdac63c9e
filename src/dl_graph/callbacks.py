"""
Training callbacks.

A :class:`Callback` is attached to a model at compile time and is notified
around training, evaluation and batched prediction. A callback may request
that training stops by setting ``self.model.stop_training = True``; the flag
is honored at the start of the next epoch.
"""

import math
from typing import Optional

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from dl_graph.utils.logger import logger
from dl_graph.history import (
    BatchEvent, BatchTrainingEvent, EpochTrainingEvent, History, TrainingHistory)

# ---------------------------------------------------------------------


class Callback:
    """Base class with no-op hooks."""

    def __init__(self) -> None:
        self.model = None

    def set_model(self, model) -> None:
        self.model = model

    def on_epoch_begin(self, epoch: int, logs: TrainingHistory) -> None:
        pass

    def on_epoch_end(self, epoch: int, event: EpochTrainingEvent, logs: TrainingHistory) -> None:
        pass

    def on_train_batch_begin(self, batch: int, batch_size: int, logs: TrainingHistory) -> None:
        pass

    def on_train_batch_end(
            self,
            batch: int,
            batch_size: int,
            event: BatchTrainingEvent,
            logs: TrainingHistory) -> None:
        pass

    def on_train_begin(self) -> None:
        pass

    def on_train_end(self, logs: TrainingHistory) -> None:
        pass

    def on_test_batch_begin(self, batch: int, batch_size: int, logs: History) -> None:
        pass

    def on_test_batch_end(
            self, batch: int, batch_size: int, event: BatchEvent, logs: History) -> None:
        pass

    def on_test_begin(self) -> None:
        pass

    def on_test_end(self, logs: History) -> None:
        pass

    def on_predict_batch_begin(self, batch: int, batch_size: int) -> None:
        pass

    def on_predict_batch_end(self, batch: int, batch_size: int) -> None:
        pass

    def on_predict_begin(self) -> None:
        pass

    def on_predict_end(self) -> None:
        pass

# ---------------------------------------------------------------------


class EarlyStopping(Callback):
    """Stops training when the epoch loss has not improved for ``patience`` epochs.

    Args:
        monitor: ``"loss"`` or ``"val_loss"``.
        min_delta: Minimum decrease counted as an improvement.
        patience: Epochs without improvement before stopping.
    """

    def __init__(self, monitor: str = "loss", min_delta: float = 0.0, patience: int = 0) -> None:
        super().__init__()
        if monitor not in ("loss", "val_loss"):
            raise ValueError(f"monitor must be 'loss' or 'val_loss', got {monitor}")
        self.monitor = monitor
        self.min_delta = abs(min_delta)
        self.patience = patience
        self.best: float = math.inf
        self.wait = 0
        self.stopped_epoch: Optional[int] = None

    def on_train_begin(self) -> None:
        self.best = math.inf
        self.wait = 0
        self.stopped_epoch = None

    def on_epoch_end(self, epoch: int, event: EpochTrainingEvent, logs: TrainingHistory) -> None:
        current = event.loss_value if self.monitor == "loss" else event.val_loss_value
        if math.isnan(current):
            return
        if current < self.best - self.min_delta:
            self.best = current
            self.wait = 0
            return
        self.wait += 1
        if self.wait > self.patience:
            self.stopped_epoch = epoch
            self.model.stop_training = True
            logger.info(f"Early stopping after epoch {epoch}, best {self.monitor}: {self.best}")


class TerminateOnNaN(Callback):
    """Stops training after the epoch in which a NaN or infinite batch loss occurred."""

    def on_train_batch_end(
            self,
            batch: int,
            batch_size: int,
            event: BatchTrainingEvent,
            logs: TrainingHistory) -> None:
        if math.isnan(event.loss_value) or math.isinf(event.loss_value):
            logger.warning(f"Batch {batch}: invalid loss {event.loss_value}, terminating training")
            self.model.stop_training = True

# ---------------------------------------------------------------------
