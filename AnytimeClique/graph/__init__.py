from AnytimeClique.graph.bit_graph import BitGraph
from AnytimeClique.graph.undirected import Edge, InvalidGraphError, Node, UndirectedGraph

__all__ = ["BitGraph", "Edge", "InvalidGraphError", "Node", "UndirectedGraph"]
