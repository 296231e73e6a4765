import threading
import time
from typing import FrozenSet, List, Optional

import bittensor as bt

from AnytimeClique.graph.bit_graph import BitGraph
from AnytimeClique.graph.undirected import UndirectedGraph
from AnytimeClique.solver.progress import ProgressFn, noop_progress, report_progress


class MaxCliqueSolver:
    """
    Branch-and-bound search for a single maximum clique.

    A branch over candidate set R is abandoned as soon as |Q| + |R| <= |Qmax|,
    Q being the clique under construction and Qmax the best one so far. Every
    time a dead end beats Qmax the progress callback receives a copy of it.
    """

    def __init__(self, G: BitGraph):
        self.G = G
        self.n = G.n
        self.adj = G.adj
        self.best_size = 0
        self.best_bits = 0
        self.start_time = 0.0
        self.runtime_sec = 0.0
        self.nodes_expanded = 0
        self.complete = False

    def max_clique(
        self,
        progress: ProgressFn = noop_progress,
        cancel: Optional[threading.Event] = None,
    ) -> FrozenSet[int]:
        self.best_size = 0
        self.best_bits = 0
        self.nodes_expanded = 0
        self.start_time = time.perf_counter()
        self.complete = self._expand(progress, cancel)
        self.runtime_sec = time.perf_counter() - self.start_time
        bt.logging.trace(
            f"Branch and bound: size={self.best_size} complete={self.complete} "
            f"expanded={self.nodes_expanded} runtime={self.runtime_sec:.3f}s"
        )
        return self.G.bits_to_nodes(self.best_bits)

    def _expand(self, progress: ProgressFn, cancel: Optional[threading.Event]) -> bool:
        """Runs the search to the end; returns False if it was cancelled."""
        adj = self.adj
        # frames[i] is the candidate set R of depth i, chosen[i] the vertex branched on there.
        frames: List[int] = [self.G.all_bits]
        chosen: List[int] = []
        q_bits = 0
        while frames:
            if len(chosen) == len(frames):
                # Back from the branch through chosen[-1]: drop it from Q and R.
                p_bit = 1 << chosen.pop()
                q_bits &= ~p_bit
                frames[-1] &= ~p_bit
            R = frames[-1]
            if not R or len(chosen) + R.bit_count() <= self.best_size:
                frames.pop()
                continue
            if cancel is not None and cancel.is_set():
                return False
            p = self.G.lowest(R)
            self.nodes_expanded += 1
            chosen.append(p)
            q_bits |= 1 << p
            R_p = R & adj[p]
            if R_p:
                frames.append(R_p)
            elif len(chosen) > self.best_size:
                self.best_size = len(chosen)
                self.best_bits = q_bits
                report_progress(progress, self.G.bits_to_nodes(q_bits))
        return True


def maximum_clique(
    graph: UndirectedGraph,
    progress: ProgressFn = noop_progress,
    cancel: Optional[threading.Event] = None,
) -> FrozenSet[int]:
    """
    Finds a maximum clique of ``graph`` by branch and bound.

    Args:
        graph (UndirectedGraph): The graph to search.
        progress (ProgressFn): Called with each strictly bigger clique found.
        cancel (threading.Event, optional): Polled once per candidate; when set
            the search stops and the best clique so far is returned.

    Returns:
        FrozenSet[int]: The clique; empty only for the empty graph.
    """
    return MaxCliqueSolver(graph.bit_graph()).max_clique(progress, cancel)
