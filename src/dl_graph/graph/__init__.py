from dl_graph.graph.container import GraphContainer, LayerRecord
from dl_graph.graph.context import GraphContext
