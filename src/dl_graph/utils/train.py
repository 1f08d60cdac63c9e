import os
import numpy as np
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

# ---------------------------------------------------------------------
# local imports
# ---------------------------------------------------------------------

from .logger import logger
from dl_graph.datasets import Dataset
from dl_graph.history import TrainingHistory
from dl_graph.models import GraphTrainableModel, SavingFormat, WritingMode


# ---------------------------------------------------------------------
@dataclass
class TrainingConfig:
    """Configuration class for model training parameters.

    Args:
        epochs: Number of training epochs.
        batch_size: Size of training batches.
        validation_batch_size: Size of validation batches, ``batch_size`` if None.
        output_dir: Directory for saving the trained model, nothing is saved if None.
        model_name: Name of the model directory inside ``output_dir``.
        saving_format: Artifacts written for the trained model.
        save_optimizer_state: Whether optimizer variables are saved too.
        writing_mode: How an existing model directory is treated.
    """
    epochs: int = 10
    batch_size: int = 128
    validation_batch_size: Optional[int] = None
    output_dir: Optional[Path] = None
    model_name: str = "model"
    saving_format: SavingFormat = SavingFormat.JSON_CONFIG_CUSTOM_VARIABLES
    save_optimizer_state: bool = False
    writing_mode: WritingMode = WritingMode.OVERRIDE


# ---------------------------------------------------------------------

def train_model(
        model: GraphTrainableModel,
        train_dataset: Dataset,
        validation_dataset: Optional[Dataset],
        config: TrainingConfig
) -> TrainingHistory:
    """Train a compiled model and optionally save it.

    Args:
        model: Compiled model to train.
        train_dataset: Training data.
        validation_dataset: Data evaluated after every epoch, may be None.
        config: TrainingConfig instance containing training parameters.

    Returns:
        The training history.

    Raises:
        ValueError: If the data shape does not match the model input shape.
    """
    # Validate input shapes
    example_shape = tuple(train_dataset.get_x(0).shape)
    input_dims = model.input_layer.dims
    if example_shape != input_dims and int(np.prod(example_shape)) != int(np.prod(input_dims)):
        raise ValueError(
            f"Training data shape {example_shape} does not match "
            f"model input shape {input_dims}"
        )

    try:
        history = model.fit(
            dataset=train_dataset,
            epochs=config.epochs,
            batch_size=config.batch_size,
            validation_dataset=validation_dataset,
            validation_batch_size=config.validation_batch_size,
        )

        if config.output_dir is not None:
            os.makedirs(str(config.output_dir), exist_ok=True)
            model_dir = Path(config.output_dir) / config.model_name
            model.save(
                model_dir,
                saving_format=config.saving_format,
                save_optimizer_state=config.save_optimizer_state,
                writing_mode=config.writing_mode)

            # Save training configuration
            with open(Path(config.output_dir) / f'{config.model_name}_config.txt', 'w') as f:
                f.write(str(config))

        return history

    except Exception as e:
        logger.error(f"Training failed with error: {str(e)}")
        raise

# ---------------------------------------------------------------------
