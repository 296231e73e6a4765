from pydantic import BaseModel

from AnytimeClique.graph.undirected import Edge, InvalidGraphError, UndirectedGraph


class AdjacencyListGraph(BaseModel):
    """JSON form of a graph: node ``i`` (0-based) is adjacent to ``adjacency_list[i]``."""

    label: str = ""
    number_of_nodes: int
    adjacency_list: list[list[int]]

    def to_graph(self) -> UndirectedGraph:
        if len(self.adjacency_list) != self.number_of_nodes:
            raise InvalidGraphError(
                f"adjacency_list has {len(self.adjacency_list)} rows, "
                f"expected {self.number_of_nodes}"
            )
        edges = set()
        for u, neighbors in enumerate(self.adjacency_list):
            for v in neighbors:
                if u == v:
                    continue  # Self loops do not affect cliques.
                edges.add(Edge(u, v))
        return UndirectedGraph(range(self.number_of_nodes), edges)

    @classmethod
    def from_graph(cls, graph: UndirectedGraph, label: str = "") -> "AdjacencyListGraph":
        """Relabels nodes to ``0..n-1`` in ascending order."""
        labels = sorted(graph.nodes)
        index = {node: i for i, node in enumerate(labels)}
        return cls(
            label=label,
            number_of_nodes=len(labels),
            adjacency_list=[
                sorted(index[v] for v in graph.adjacent(node)) for node in labels
            ],
        )
