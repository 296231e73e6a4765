import re
from typing import Iterable

from pydantic import BaseModel

from AnytimeClique.graph.undirected import Edge, InvalidGraphError, UndirectedGraph

_EDGE_LINE = re.compile(r"^e\s+(\d+)\s+(\d+)\s*$")
_FILE_NAME = re.compile(r"^c\s+FILE:\s*(\S*)")
_NODES_AND_EDGES = re.compile(r"^p\s+(?:col|edge)\s+(\d+)\s+(\d+)\s*$")


class DimacsGraph(BaseModel):
    name: str = ""
    nodes: int = -1
    total_edges: int = -1
    edges: set[tuple[int, int]] = set()

    def to_graph(self) -> UndirectedGraph:
        """
        Builds the graph with 1-based node ids.

        When the ``p`` header is present every node ``1..nodes`` is included,
        isolated ones too; otherwise the vertex set is the union of the edge
        endpoints.
        """
        edges = {Edge(u, v) for u, v in self.edges if u != v}
        if self.nodes < 0:
            return UndirectedGraph.from_edges(edges)
        out_of_range = sorted(
            {v for edge in edges for v in edge if not 1 <= v <= self.nodes}
        )
        if out_of_range:
            raise InvalidGraphError(
                f"Edges reference nodes outside 1..{self.nodes}: {out_of_range}"
            )
        return UndirectedGraph(range(1, self.nodes + 1), edges)


def read_dimacs(lines: Iterable[str]) -> DimacsGraph:
    """Parses DIMACS graph lines; unknown lines are skipped."""
    name = ""
    nodes = total_edges = -1
    edges = set()
    for line in lines:
        line = line.strip()
        match = _EDGE_LINE.match(line)
        if match:
            edges.add((int(match.group(1)), int(match.group(2))))
            continue
        match = _FILE_NAME.match(line)
        if match:
            name = match.group(1)
            continue
        match = _NODES_AND_EDGES.match(line)
        if match:
            nodes, total_edges = int(match.group(1)), int(match.group(2))
    return DimacsGraph(name=name, nodes=nodes, total_edges=total_edges, edges=edges)


def load_dimacs(path: str) -> DimacsGraph:
    with open(path, "r") as f:
        return read_dimacs(f)
