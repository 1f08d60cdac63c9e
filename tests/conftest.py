import os
import sys
from pathlib import Path

os.environ['TF_CPP_MIN_LOG_LEVEL'] = '3'

# Add src to Python path
src_path = str(Path(__file__).parent.parent / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

import keras
import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (trains, saves or reloads a model)"
    )


@pytest.fixture(autouse=True)
def random_seed():
    """Reset global random state so that sampled data and dropout masks repeat."""
    keras.utils.set_random_seed(42)
    yield
