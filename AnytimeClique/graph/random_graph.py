from typing import Optional

import bittensor as bt
import numpy as np

from AnytimeClique.graph.undirected import Edge, UndirectedGraph


def max_edges(n: int) -> int:
    return n * (n - 1) // 2


def random_graph(
    node_count: int, edge_probability: float, seed: Optional[int] = None
) -> UndirectedGraph:
    """
    Generate a connected random undirected graph on nodes ``1..node_count``.

    A random spanning tree is laid down first so that the graph is connected.
    The remaining pairs are then visited in random order and each is kept with
    probability ``edge_probability``, stopping once the graph holds the
    expected number of edges ``round(p * n(n-1)/2)``.

    Args:
        node_count (int): Number of nodes.
        edge_probability (float): Probability of an edge between two nodes, in [0, 1].
        seed (int, optional): Seed for the numpy random generator.

    Returns:
        UndirectedGraph: A connected graph with exactly ``node_count`` nodes.
    """
    if node_count < 0:
        raise ValueError(f"node_count must be non-negative, got {node_count}")
    if not 0.0 <= edge_probability <= 1.0:
        raise ValueError(f"edge_probability must be in [0, 1], got {edge_probability}")

    rng = np.random.default_rng(seed)
    nodes = list(range(1, node_count + 1))
    if node_count < 2:
        return UndirectedGraph(nodes)

    # Spanning tree: each node joins a random node placed before it.
    order = rng.permutation(nodes).tolist()
    edges = set()
    for i in range(1, node_count):
        parent = order[int(rng.integers(0, i))]
        edges.add(Edge(order[i], parent))

    expected = max(len(edges), round(edge_probability * max_edges(node_count)))
    if len(edges) < expected:
        remaining = [
            (u, v)
            for u in nodes
            for v in range(u + 1, node_count + 1)
            if Edge(u, v) not in edges
        ]
        keep = rng.random(len(remaining)) < edge_probability
        for i in rng.permutation(len(remaining)):
            if len(edges) >= expected:
                break
            if keep[i]:
                edges.add(Edge(*remaining[i]))

    bt.logging.trace(
        f"Generated random graph: {node_count} nodes, {len(edges)} edges (expected {expected})"
    )
    return UndirectedGraph(nodes, edges)
