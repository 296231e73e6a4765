from typing import Iterable, List

import numpy as np

from AnytimeClique.graph.undirected import UndirectedGraph


class CliqueValidator:
    def __init__(self, graph: UndirectedGraph):
        """
        Checks node sets against a graph.

        Args:
        - graph (UndirectedGraph): The graph to validate against.
        """
        self.graph = graph
        self.labels: List[int] = sorted(graph.nodes)
        self.index = {node: i for i, node in enumerate(self.labels)}
        self.matrix = np.zeros((len(self.labels), len(self.labels)), dtype=bool)
        for edge in graph.edges:
            i, j = self.index[edge.v1], self.index[edge.v2]
            self.matrix[i, j] = self.matrix[j, i] = True

    def is_clique(self, nodes: Iterable[int]) -> bool:
        """
        Returns True if every pair of the given nodes is joined by an edge.
        The empty set is a clique.
        """
        nodes = list(nodes)
        node_set = set(nodes)
        # 1. Check for duplicates or unknown nodes
        if len(node_set) != len(nodes):
            return False
        if not node_set.issubset(self.index):
            return False

        # 2. Check if all pairs of nodes are connected
        idx = np.array([self.index[v] for v in nodes], dtype=np.int64)
        sub = self.matrix[np.ix_(idx, idx)]
        return bool(np.all(sub | np.eye(len(idx), dtype=bool)))

    def is_maximal_clique(self, nodes: Iterable[int]) -> bool:
        """
        Returns True if the nodes form a clique no other node can extend.
        """
        nodes = list(nodes)
        if not self.is_clique(nodes):
            return False
        if not self.labels:
            return True
        idx = np.array([self.index[v] for v in nodes], dtype=np.int64)
        # A node extends the clique when it is adjacent to all of its members.
        extends = np.all(self.matrix[:, idx], axis=1)
        extends[idx] = False
        return not bool(np.any(extends))
