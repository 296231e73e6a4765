"""Standard graph families with known clique numbers, used as fixtures and benchmark inputs."""

from itertools import combinations

from AnytimeClique.graph.undirected import Edge, UndirectedGraph


def empty_graph(n: int, start: int = 1) -> UndirectedGraph:
    """``n`` isolated nodes."""
    return UndirectedGraph(range(start, start + n))


def complete_graph(n: int, start: int = 1) -> UndirectedGraph:
    nodes = range(start, start + n)
    return UndirectedGraph(nodes, (Edge(u, v) for u, v in combinations(nodes, 2)))


def cycle_graph(n: int, start: int = 1) -> UndirectedGraph:
    """Nodes ``start..start+n-1`` joined in a ring. Needs ``n >= 3``."""
    if n < 3:
        raise ValueError(f"A cycle needs at least 3 nodes, got {n}")
    nodes = list(range(start, start + n))
    edges = [Edge(nodes[i], nodes[(i + 1) % n]) for i in range(n)]
    return UndirectedGraph(nodes, edges)


def wheel_graph(n: int, start: int = 1) -> UndirectedGraph:
    """
    A cycle of ``n - 1`` nodes plus a hub joined to all of them.

    The hub is ``start + n - 1``. For ``n == 4`` this is the complete graph on
    four nodes.
    """
    if n < 4:
        raise ValueError(f"A wheel needs at least 4 nodes, got {n}")
    rim = cycle_graph(n - 1, start)
    hub = start + n - 1
    return UndirectedGraph(rim.nodes | {hub}, rim.edges | {Edge(v, hub) for v in rim.nodes})


def disjoint_union(*graphs: UndirectedGraph) -> UndirectedGraph:
    """Union of graphs that share no nodes."""
    nodes = set()
    edges = set()
    for graph in graphs:
        if nodes & graph.nodes:
            raise ValueError("Graphs passed to disjoint_union share nodes")
        nodes |= graph.nodes
        edges |= graph.edges
    return UndirectedGraph(nodes, edges)


def binary_tree(depth: int) -> UndirectedGraph:
    """Complete binary tree in heap numbering (root 1, children 2i and 2i+1)."""
    last = 2 ** (depth + 1) - 1
    return UndirectedGraph(
        range(1, last + 1), (Edge(i // 2, i) for i in range(2, last + 1))
    )
