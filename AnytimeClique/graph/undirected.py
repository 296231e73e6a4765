import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple, Union

from AnytimeClique.graph.bit_graph import BitGraph

Node = int


class InvalidGraphError(ValueError):
    """Raised when an edge or a graph violates the undirected graph invariants."""


@dataclass(frozen=True, order=True)
class Edge:
    """
    Unordered pair of two distinct nodes.

    Endpoints are stored smaller first, so ``Edge(2, 1) == Edge(1, 2)`` and both
    hash the same.
    """

    v1: Node
    v2: Node

    def __post_init__(self):
        if self.v1 == self.v2:
            raise InvalidGraphError(f"Edge ({self.v1},{self.v2}) is a self loop")
        if self.v1 > self.v2:
            low, high = self.v2, self.v1
            object.__setattr__(self, "v1", low)
            object.__setattr__(self, "v2", high)

    def __iter__(self) -> Iterator[Node]:
        yield self.v1
        yield self.v2

    @classmethod
    def of(cls, edge: "EdgeLike") -> "Edge":
        if isinstance(edge, Edge):
            return edge
        u, v = edge
        return cls(u, v)


EdgeLike = Union[Edge, Tuple[Node, Node]]


class UndirectedGraph:
    """
    Immutable undirected graph.

    ``add_node`` and ``add_edge`` return new graphs. The adjacency map and the
    dense ``BitGraph`` snapshot are built on first use and cached for the
    lifetime of the instance; concurrent first accesses compute them once.
    """

    __slots__ = ("_nodes", "_edges", "_adjacency", "_bit_graph", "_lock")

    def __init__(self, nodes: Iterable[Node] = (), edges: Iterable[EdgeLike] = ()):
        self._nodes: FrozenSet[Node] = frozenset(nodes)
        self._edges: FrozenSet[Edge] = frozenset(Edge.of(e) for e in edges)
        missing = {v for edge in self._edges for v in edge} - self._nodes
        if missing:
            raise InvalidGraphError(
                f"Edges reference nodes outside the graph: {sorted(missing)}"
            )
        self._adjacency: Optional[Dict[Node, FrozenSet[Node]]] = None
        self._bit_graph: Optional[BitGraph] = None
        self._lock = threading.Lock()

    @classmethod
    def empty(cls) -> "UndirectedGraph":
        return cls()

    @classmethod
    def from_edges(cls, edges: Iterable[EdgeLike]) -> "UndirectedGraph":
        """Builds a graph whose vertex set is the union of the edge endpoints."""
        edge_set = frozenset(Edge.of(e) for e in edges)
        return cls({v for edge in edge_set for v in edge}, edge_set)

    @property
    def nodes(self) -> FrozenSet[Node]:
        return self._nodes

    @property
    def edges(self) -> FrozenSet[Edge]:
        return self._edges

    @property
    def number_of_edges(self) -> int:
        return len(self._edges)

    def add_node(self, node: Node) -> "UndirectedGraph":
        if node in self._nodes:
            return self
        return UndirectedGraph(self._nodes | {node}, self._edges)

    def add_edge(self, edge: EdgeLike) -> "UndirectedGraph":
        edge = Edge.of(edge)
        if edge in self._edges:
            return self
        return UndirectedGraph(self._nodes, self._edges | {edge})

    def adjacent(self, node: Node) -> FrozenSet[Node]:
        """Neighbors of ``node``; empty for isolated or unknown nodes."""
        return self._adjacency_map().get(node, frozenset())

    def degree(self, node: Node) -> int:
        return len(self.adjacent(node))

    def bit_graph(self) -> BitGraph:
        if self._bit_graph is None:
            with self._lock:
                if self._bit_graph is None:
                    self._bit_graph = BitGraph.from_edges(
                        sorted(self._nodes), ((e.v1, e.v2) for e in self._edges)
                    )
        return self._bit_graph

    def _adjacency_map(self) -> Dict[Node, FrozenSet[Node]]:
        if self._adjacency is None:
            with self._lock:
                if self._adjacency is None:
                    self._adjacency = self._build_adjacency()
        return self._adjacency

    def _build_adjacency(self) -> Dict[Node, FrozenSet[Node]]:
        neighbors: Dict[Node, set] = {node: set() for node in self._nodes}
        for edge in self._edges:
            neighbors[edge.v1].add(edge.v2)
            neighbors[edge.v2].add(edge.v1)
        return {node: frozenset(adj) for node, adj in neighbors.items()}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UndirectedGraph):
            return NotImplemented
        return self._nodes == other._nodes and self._edges == other._edges

    def __hash__(self) -> int:
        return hash((self._nodes, self._edges))

    def __repr__(self) -> str:
        return f"UndirectedGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"
