import threading
import time
from typing import FrozenSet, Iterator, List, Optional

import bittensor as bt

from AnytimeClique.graph.bit_graph import BitGraph, iter_bits
from AnytimeClique.graph.undirected import UndirectedGraph
from AnytimeClique.solver.progress import ProgressFn, noop_progress, report_progress


class PivotingCliqueEnumerator:
    """
    Bron-Kerbosch enumeration of maximal cliques with Tomita pivoting.

    Each maximal clique is produced exactly once. Unlike the branch-and-bound
    solver there is no size-based pruning, so the biggest clique reported is
    always a maximum clique once enumeration is complete.
    """

    def __init__(self, G: BitGraph):
        self.G = G
        self.adj = G.adj
        self.best_size = 0
        self.best_bits = 0
        self.start_time = 0.0
        self.runtime_sec = 0.0
        self.nodes_expanded = 0
        self.cliques_found = 0
        self.complete = False

    def _pivot(self, P: int, X: int) -> int:
        """Vertex of P | X with the most neighbors in P."""
        best_v, best_score = -1, -1
        for u in iter_bits(P | X):
            score = (P & self.adj[u]).bit_count()
            if score > best_score:
                best_v, best_score = u, score
        return best_v

    def _expand(self, cancel: Optional[threading.Event]) -> Iterator[int]:
        """Yields the bitmask of every maximal clique; sets ``complete`` when exhausted."""
        adj = self.adj
        self.complete = False
        # Each frame is [R, P, X, branch]; branch is None until the frame picks its pivot.
        stack: List[list] = [[0, self.G.all_bits, 0, None]]
        while stack:
            frame = stack[-1]
            R, P, X, branch = frame
            if branch is None:
                if not P and not X:
                    stack.pop()
                    yield R
                    continue
                branch = P & ~adj[self._pivot(P, X)] if P else 0
            if not branch:
                stack.pop()
                continue
            if cancel is not None and cancel.is_set():
                return
            v_bit = branch & -branch
            v = v_bit.bit_length() - 1
            self.nodes_expanded += 1
            frame[1] = P & ~v_bit
            frame[2] = X | v_bit
            frame[3] = branch & ~v_bit
            stack.append([R | v_bit, P & adj[v], X & adj[v], None])
        self.complete = True

    def maximal_cliques(
        self, cancel: Optional[threading.Event] = None
    ) -> Iterator[FrozenSet[int]]:
        for bits in self._expand(cancel):
            yield self.G.bits_to_nodes(bits)

    def biggest_clique(
        self,
        progress: ProgressFn = noop_progress,
        cancel: Optional[threading.Event] = None,
    ) -> FrozenSet[int]:
        self.best_size = 0
        self.best_bits = 0
        self.nodes_expanded = 0
        self.cliques_found = 0
        self.start_time = time.perf_counter()
        for bits in self._expand(cancel):
            self.cliques_found += 1
            size = bits.bit_count()
            if size > self.best_size:
                self.best_size = size
                self.best_bits = bits
                report_progress(progress, self.G.bits_to_nodes(bits))
        self.runtime_sec = time.perf_counter() - self.start_time
        bt.logging.trace(
            f"Pivoting enumeration: size={self.best_size} complete={self.complete} "
            f"cliques={self.cliques_found} expanded={self.nodes_expanded} "
            f"runtime={self.runtime_sec:.3f}s"
        )
        return self.G.bits_to_nodes(self.best_bits)


def maximal_cliques(
    graph: UndirectedGraph, cancel: Optional[threading.Event] = None
) -> Iterator[FrozenSet[int]]:
    """Every maximal clique of ``graph``, each exactly once."""
    return PivotingCliqueEnumerator(graph.bit_graph()).maximal_cliques(cancel)


def biggest_maximal_clique(
    graph: UndirectedGraph,
    progress: ProgressFn = noop_progress,
    cancel: Optional[threading.Event] = None,
) -> FrozenSet[int]:
    """
    Enumerates all maximal cliques and returns the first biggest one.

    ``progress`` is only called when a clique strictly bigger than every
    previous one shows up, so the reported sizes increase monotonically.
    """
    return PivotingCliqueEnumerator(graph.bit_graph()).biggest_clique(progress, cancel)
