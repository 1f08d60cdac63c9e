"""
Tests for OnHeapDataset and DataBatch.
"""

import numpy as np
import pytest

from dl_graph.datasets import DataBatch, OnHeapDataset


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------

@pytest.fixture
def dataset():
    x = np.arange(20, dtype=np.float32).reshape(10, 2)
    labels = np.array([0, 1, 2, 0, 1, 2, 0, 1, 2, 0])
    return OnHeapDataset.create(x, labels, num_classes=3)


# ---------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------

class TestOnHeapDataset:
    """Construction, access and transformation."""

    def test_create(self, dataset):
        assert dataset.size() == 10
        assert len(dataset) == 10
        assert dataset.x_shape == (10, 2)
        np.testing.assert_array_equal(dataset.get_x(3), [6.0, 7.0])
        np.testing.assert_array_equal(dataset.get_y(1), [0.0, 1.0, 0.0])

    def test_one_hot(self):
        one_hot = OnHeapDataset.to_one_hot([2, 0], 3)
        np.testing.assert_array_equal(one_hot, [[0, 0, 1], [1, 0, 0]])
        assert one_hot.dtype == np.float32

    def test_one_hot_out_of_range(self):
        with pytest.raises(ValueError):
            OnHeapDataset.to_one_hot([0, 3], 3)
        with pytest.raises(ValueError):
            OnHeapDataset.to_one_hot([-1], 3)

    def test_normalize(self):
        x = np.array([[0, 255], [51, 102]], dtype=np.uint8)
        dataset = OnHeapDataset.create(x, [0, 1], num_classes=2, normalize=True)
        np.testing.assert_allclose(dataset.get_x(0), [0.0, 1.0])
        np.testing.assert_allclose(dataset.get_x(1), [0.2, 0.4])

    def test_regression_labels_are_columns(self):
        dataset = OnHeapDataset(np.zeros((3, 2)), np.array([1.0, 2.0, 3.0]))
        assert dataset.get_y(2).shape == (1,)

    def test_mismatched_rows(self):
        with pytest.raises(ValueError):
            OnHeapDataset(np.zeros((3, 2)), np.zeros((2, 1)))

    def test_split(self, dataset):
        train, test = dataset.split(0.75)
        assert train.size() == 7
        assert test.size() == 3
        np.testing.assert_array_equal(test.get_x(0), dataset.get_x(7))

    @pytest.mark.parametrize("ratio", [-0.1, 1.5])
    def test_split_ratio_range(self, dataset, ratio):
        with pytest.raises(ValueError):
            dataset.split(ratio)

    def test_shuffle_keeps_pairs(self, dataset):
        shuffled = dataset.shuffle(seed=3)
        assert shuffled.size() == dataset.size()
        pairs = {tuple(dataset.get_x(i)): tuple(dataset.get_y(i)) for i in range(10)}
        for i in range(10):
            assert pairs[tuple(shuffled.get_x(i))] == tuple(shuffled.get_y(i))

    def test_shuffle_is_seeded(self, dataset):
        first = dataset.shuffle(seed=5)
        second = dataset.shuffle(seed=5)
        for i in range(10):
            np.testing.assert_array_equal(first.get_x(i), second.get_x(i))


class TestBatches:
    """Batch slicing."""

    def test_batch_iterator(self, dataset):
        batches = list(dataset.batch_iterator(4))
        assert [b.size for b in batches] == [4, 4, 2]
        np.testing.assert_array_equal(batches[1].x[0], dataset.get_x(4))

    def test_iterator_restarts(self, dataset):
        assert len(list(dataset.batch_iterator(5))) == 2
        assert len(list(dataset.batch_iterator(5))) == 2

    def test_invalid_batch_size(self, dataset):
        with pytest.raises(ValueError):
            list(dataset.batch_iterator(0))

    def test_create_data_batch(self, dataset):
        batch = dataset.create_data_batch(2, 3)
        assert batch.size == 3
        assert batch.x.shape == (3, 2)
        assert batch.y.shape == (3, 3)

    def test_data_batch_validation(self):
        with pytest.raises(ValueError):
            DataBatch(np.zeros((2, 2)), np.zeros((2, 1)), 0)
        with pytest.raises(ValueError):
            DataBatch(np.zeros((2, 2)), np.zeros((3, 1)), 2)
