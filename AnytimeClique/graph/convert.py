import networkx as nx

from AnytimeClique.graph.undirected import UndirectedGraph


def to_networkx(graph: UndirectedGraph) -> nx.Graph:
    g = nx.Graph()
    g.add_nodes_from(graph.nodes)
    g.add_edges_from((edge.v1, edge.v2) for edge in graph.edges)
    return g


def from_networkx(g: nx.Graph) -> UndirectedGraph:
    """Self loops are dropped; node labels must be integers."""
    return UndirectedGraph(g.nodes, ((u, v) for u, v in g.edges if u != v))
