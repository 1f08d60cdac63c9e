"""
Training and evaluation logs.

Events are frozen records; the logs only ever append to them and expose
read-only views.
"""

import math
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

# ---------------------------------------------------------------------


@dataclass(frozen=True)
class BatchTrainingEvent:
    """Loss and metric of one training batch."""
    epoch_index: int
    batch_index: int
    loss_value: float
    metric_value: float


@dataclass(frozen=True)
class EpochTrainingEvent:
    """Mean loss and metric of one epoch, plus validation values when enabled."""
    epoch_index: int
    loss_value: float
    metric_value: float
    val_loss_value: float = math.nan
    val_metric_value: float = math.nan


@dataclass(frozen=True)
class BatchEvent:
    """Loss and metric of one evaluation batch."""
    batch_index: int
    loss_value: float
    metric_value: float


@dataclass(frozen=True)
class NumericAnomaly:
    """A training batch whose loss or gradients were NaN or infinite; its update was skipped."""
    epoch_index: int
    batch_index: int
    loss_value: float

# ---------------------------------------------------------------------


class TrainingHistory:
    """Append-only log of a ``fit`` call."""

    def __init__(self) -> None:
        self._batch_history: List[BatchTrainingEvent] = []
        self._epoch_history: List[EpochTrainingEvent] = []
        self._anomalies: List[NumericAnomaly] = []

    def append_batch(self, event: BatchTrainingEvent) -> None:
        self._batch_history.append(event)

    def append_epoch(self, event: EpochTrainingEvent) -> None:
        self._epoch_history.append(event)

    def append_anomaly(self, anomaly: NumericAnomaly) -> None:
        self._anomalies.append(anomaly)

    @property
    def batch_history(self) -> Tuple[BatchTrainingEvent, ...]:
        return tuple(self._batch_history)

    @property
    def epoch_history(self) -> Tuple[EpochTrainingEvent, ...]:
        return tuple(self._epoch_history)

    @property
    def anomalies(self) -> Tuple[NumericAnomaly, ...]:
        return tuple(self._anomalies)

    def last_batch_event(self) -> Optional[BatchTrainingEvent]:
        return self._batch_history[-1] if self._batch_history else None

    def last_epoch_event(self) -> Optional[EpochTrainingEvent]:
        return self._epoch_history[-1] if self._epoch_history else None

    def epoch_losses(self) -> List[float]:
        return [e.loss_value for e in self._epoch_history]


class History:
    """Append-only log of an ``evaluate`` call."""

    def __init__(self) -> None:
        self._batch_history: List[BatchEvent] = []

    def append_batch(self, event: BatchEvent) -> None:
        self._batch_history.append(event)

    @property
    def batch_history(self) -> Tuple[BatchEvent, ...]:
        return tuple(self._batch_history)

    def last_batch_event(self) -> Optional[BatchEvent]:
        return self._batch_history[-1] if self._batch_history else None

# ---------------------------------------------------------------------


@dataclass(frozen=True)
class EvaluationResult:
    """Mean loss and mean metric values keyed by metric name."""
    loss_value: float
    metrics: Mapping[str, float] = field(default_factory=dict)

# ---------------------------------------------------------------------
