from dl_graph.datasets.dataset import DataBatch, Dataset
from dl_graph.datasets.on_heap import OnHeapDataset
