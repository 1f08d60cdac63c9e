"""
Models.

- :class:`GraphTrainableModel`: compile / init / fit / evaluate / predict /
  save / load_weights over a layer DAG
- :class:`Sequential`: layers chained in declaration order
- :class:`Functional`: layers wired through explicit inbound layers
"""

from dl_graph.models.graph_model import (
    GRAPH_FILE,
    MODEL_CONFIG_FILE,
    VARIABLE_NAMES_FILE,
    GraphTrainableModel,
    ModelState,
    SavingFormat,
    WritingMode,
)
from dl_graph.models.sequential import Sequential
from dl_graph.models.functional import Functional
