"""Shared pytest fixtures and test helpers for AnytimeClique tests."""

from __future__ import annotations

from itertools import combinations
from typing import Iterable

import pytest

from AnytimeClique.graph.undirected import UndirectedGraph
from AnytimeClique.solver import SOLVERS, Algorithm


def assert_clique(graph: UndirectedGraph, nodes: Iterable[int]) -> None:
    """Every pair of ``nodes`` is an edge of ``graph``."""
    nodes = list(nodes)
    assert set(nodes) <= graph.nodes
    for u, v in combinations(nodes, 2):
        assert v in graph.adjacent(u), f"{u} and {v} are not adjacent"


@pytest.fixture(params=list(Algorithm), ids=lambda a: a.value)
def algorithm(request) -> Algorithm:
    """Each exact algorithm in turn."""
    return request.param


@pytest.fixture
def solve(algorithm):
    """The blocking solver function for the current algorithm."""
    return SOLVERS[algorithm]
