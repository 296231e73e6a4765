from typing import FrozenSet, Iterable, Iterator, List, Tuple


def _lsb_index(x: int) -> int:
    return (x & -x).bit_length() - 1


def iter_bits(x: int) -> Iterator[int]:
    """Yield indices of set bits (LSB-first)."""
    while x:
        lsb = x & -x
        yield lsb.bit_length() - 1
        x ^= lsb


class BitGraph:
    """
    Dense, integer-indexed snapshot of an undirected graph.

    Vertex ``i`` stands for ``labels[i]`` and its neighbors are the set bits of
    ``adj[i]``. Labels are kept in ascending order so that index order, and
    therefore solver visiting order, is deterministic.
    """

    __slots__ = ("n", "adj", "labels")

    def __init__(self, labels: List[int], adj: List[int]):
        self.n = len(labels)
        self.labels = labels
        self.adj = adj

    @staticmethod
    def from_edges(labels: List[int], edges: Iterable[Tuple[int, int]]) -> "BitGraph":
        """Edges join distinct members of ``labels``; ``UndirectedGraph`` checks this."""
        index = {label: i for i, label in enumerate(labels)}
        adj = [0] * len(labels)
        for u, v in edges:
            iu, iv = index[u], index[v]
            adj[iu] |= 1 << iv
            adj[iv] |= 1 << iu
        return BitGraph(labels, adj)

    @property
    def all_bits(self) -> int:
        return (1 << self.n) - 1

    def lowest(self, bits: int) -> int:
        return _lsb_index(bits)

    def bits_to_nodes(self, bits: int) -> FrozenSet[int]:
        return frozenset(self.labels[i] for i in iter_bits(bits))
