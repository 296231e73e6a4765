"""Tests for the anytime progress stream: background execution, timeout race, relay."""

from __future__ import annotations

import itertools
import threading
import time

import pytest
from conftest import assert_clique

from AnytimeClique.graph.families import complete_graph, cycle_graph
from AnytimeClique.graph.random_graph import random_graph
from AnytimeClique.graph.undirected import UndirectedGraph
from AnytimeClique.solver import SOLVERS, Algorithm
from AnytimeClique.stream import CliqueFound, CliqueSearchStream, find_biggest_clique
from AnytimeClique.stream import anytime
from AnytimeClique.stream.memory import process_memory_kb

# ---------------------------------------------------------------------------
# Controllable fake solvers
# ---------------------------------------------------------------------------


class GatedSolver:
    """Reports {1}, waits for ``release``, then reports and returns {1, 2}."""

    def __init__(self) -> None:
        self.release = threading.Event()

    def __call__(self, graph, progress, cancel):
        progress(frozenset({1}))
        self.release.wait(5)
        progress(frozenset({1, 2}))
        return frozenset({1, 2})


class SpinningSolver:
    """Reports {1} then spins until cancelled."""

    def __init__(self) -> None:
        self.stopped = threading.Event()

    def __call__(self, graph, progress, cancel):
        progress(frozenset({1}))
        while not cancel.is_set():
            time.sleep(0.005)
        self.stopped.set()
        return frozenset({1})


class SilentSolver:
    """Never reports progress; returns once cancelled."""

    def __call__(self, graph, progress, cancel):
        cancel.wait(5)
        return frozenset(graph.nodes)


def failing_solver(graph, progress, cancel):
    raise MemoryError("graph too dense")


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


# ---------------------------------------------------------------------------
# Natural completion
# ---------------------------------------------------------------------------


def test_events_grow_and_final_matches_blocking_result(algorithm, solve):
    g = random_graph(40, 0.5, seed=9)
    stream = find_biggest_clique(g, algorithm)
    final = stream.result(timeout=30)

    sizes = [e.size for e in stream.events]
    assert sizes == sorted(sizes)
    assert final is stream.events[-1]
    assert final.size == len(solve(g))
    assert_clique(g, final.nodes)
    assert stream.timed_out is False


def test_final_event_repeats_last_improvement():
    stream = find_biggest_clique(complete_graph(5))
    stream.result(timeout=10)
    assert [e.size for e in stream.events] == [5, 5]


def test_empty_graph_emits_one_empty_event():
    final = find_biggest_clique(UndirectedGraph.empty()).result(timeout=10)
    assert final is not None
    assert final.nodes == frozenset()


def test_event_fields():
    final = find_biggest_clique(cycle_graph(5), Algorithm.PIVOTING).result(timeout=10)
    assert isinstance(final, CliqueFound)
    assert final.elapsed_ms >= 0
    assert isinstance(final.memory_delta_kb, int)
    with pytest.raises(Exception):
        final.elapsed_ms = 3  # frozen


def test_memory_delta_tracks_process_growth_since_solver_start(monkeypatch):
    readings = itertools.chain([1000, 1000], itertools.repeat(1250))
    monkeypatch.setattr(anytime, "process_memory_kb", lambda: next(readings))
    monkeypatch.setitem(
        SOLVERS, Algorithm.BRANCH_AND_BOUND, lambda graph, progress, cancel: frozenset({1})
    )

    final = find_biggest_clique(complete_graph(2)).result(timeout=5)
    assert final.memory_delta_kb == 250


def test_process_memory_is_positive():
    assert process_memory_kb() > 0


def test_algorithm_may_be_given_by_name():
    stream = find_biggest_clique(complete_graph(4), "pivoting")
    assert stream.algorithm is Algorithm.PIVOTING
    assert stream.result(timeout=10).size == 4


def test_negative_timeout_is_rejected():
    with pytest.raises(ValueError):
        find_biggest_clique(complete_graph(3), timeout=-1)


def test_iteration_yields_every_event_then_stops():
    stream = find_biggest_clique(random_graph(30, 0.5, seed=1), Algorithm.PIVOTING)
    seen = list(stream)
    assert seen == stream.events
    assert stream.done


# ---------------------------------------------------------------------------
# Non-blocking start and subscription
# ---------------------------------------------------------------------------


def test_start_returns_before_solver_finishes(monkeypatch):
    solver = GatedSolver()
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, solver)

    stream = find_biggest_clique(complete_graph(3))
    assert not stream.done
    solver.release.set()
    assert stream.result(timeout=5).nodes == {1, 2}


def test_subscriber_gets_events_and_completion(monkeypatch):
    solver = GatedSolver()
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, solver)
    received = []
    completed = threading.Event()

    stream = find_biggest_clique(complete_graph(3))
    stream.subscribe(received.append, on_completed=completed.set)
    solver.release.set()

    assert completed.wait(5)
    assert [e.nodes for e in received] == [{1}, {1, 2}, {1, 2}]


def test_late_subscriber_gets_replay():
    stream = find_biggest_clique(complete_graph(6))
    stream.wait(10)
    received = []
    completed = []
    stream.subscribe(received.append, on_completed=lambda: completed.append(True))
    assert received == stream.events
    assert completed == [True]


def test_unsubscribe_stops_delivery_but_not_search(monkeypatch):
    solver = GatedSolver()
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, solver)
    received = []

    stream = find_biggest_clique(complete_graph(3))
    subscription = stream.subscribe(received.append)
    wait_for(lambda: len(received) == 1)
    subscription.unsubscribe()
    assert subscription.active is False
    solver.release.set()

    assert stream.result(timeout=5).nodes == {1, 2}
    assert len(received) == 1


def test_failing_subscriber_is_ignored():
    def boom(event):
        raise RuntimeError("bad subscriber")

    stream = find_biggest_clique(complete_graph(7))
    stream.subscribe(boom, on_completed=lambda: 1 / 0)
    assert stream.result(timeout=10).size == 7


# ---------------------------------------------------------------------------
# Timeout race
# ---------------------------------------------------------------------------


def test_timeout_completes_stream_and_cancels_solver(monkeypatch):
    solver = SpinningSolver()
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, solver)

    stream = find_biggest_clique(complete_graph(3), timeout=0.05)
    final = stream.result(timeout=5)

    assert stream.timed_out is True
    assert final.nodes == {1}
    assert solver.stopped.wait(5)
    stream.solver_thread.join(5)
    # The solver's return value arrives after completion and is dropped.
    assert len(stream.events) == 1


def test_near_zero_timeout_on_large_graph_never_hangs(algorithm):
    g = complete_graph(300)
    started = time.perf_counter()
    stream = find_biggest_clique(g, algorithm, timeout=0.001)
    final = stream.result(timeout=10)

    assert time.perf_counter() - started < 5
    assert stream.done
    assert final is not None and final.size >= 1
    assert_clique(g, final.nodes)
    sizes = [e.size for e in stream.events]
    assert sizes == sorted(sizes)


def test_timeout_before_any_improvement_reports_a_single_node(monkeypatch):
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, SilentSolver())
    g = complete_graph(4, start=7)

    stream = find_biggest_clique(g, timeout=0.02)
    final = stream.result(timeout=5)

    assert stream.timed_out is True
    assert final.nodes == {7}
    assert [e.nodes for e in stream.events] == [{7}]


def test_timeout_on_empty_graph_reports_empty_clique(monkeypatch):
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, SilentSolver())
    final = find_biggest_clique(UndirectedGraph.empty(), timeout=0.01).result(timeout=5)
    assert final is not None
    assert final.nodes == frozenset()


def test_slow_subscriber_does_not_delay_timeout(monkeypatch):
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, SpinningSolver())
    completed = threading.Event()
    received = []

    def slow(event):
        received.append(event)
        time.sleep(1.5)

    stream = CliqueSearchStream(complete_graph(3), timeout=0.05)
    stream.subscribe(slow, on_completed=completed.set)
    started = time.perf_counter()
    stream.start()

    assert stream.wait(5)
    assert time.perf_counter() - started < 1.0
    assert stream.result(timeout=0).nodes == {1}
    # Completion still reaches the subscriber once its callback returns.
    assert completed.wait(5)
    assert [e.nodes for e in received] == [{1}]


def test_subscriber_may_wait_for_result_inside_callback(monkeypatch):
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, SpinningSolver())
    results = []
    completed = threading.Event()

    stream = CliqueSearchStream(complete_graph(3), timeout=0.05)
    stream.subscribe(
        lambda event: results.append(stream.result(timeout=5)),
        on_completed=completed.set,
    )
    stream.start()

    assert completed.wait(5)
    assert stream.timed_out is True
    assert [r.nodes for r in results] == [{1}]


def test_generous_timeout_lets_solver_finish(algorithm):
    g = cycle_graph(8)
    stream = find_biggest_clique(g, algorithm, timeout=30)
    assert stream.result(timeout=30).size == 2
    assert stream.timed_out is False


def test_result_wait_timeout(monkeypatch):
    solver = GatedSolver()
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, solver)
    stream = find_biggest_clique(complete_graph(3))
    with pytest.raises(TimeoutError):
        stream.result(timeout=0.01)
    solver.release.set()
    stream.result(timeout=5)


# ---------------------------------------------------------------------------
# Failures and lifecycle
# ---------------------------------------------------------------------------


def test_solver_failure_is_terminal(monkeypatch):
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, failing_solver)
    errors = []

    stream = find_biggest_clique(complete_graph(3))
    stream.subscribe(lambda e: None, on_error=errors.append)

    with pytest.raises(MemoryError):
        stream.result(timeout=5)
    with pytest.raises(MemoryError):
        list(stream)
    wait_for(lambda: len(errors) == 1)
    assert isinstance(errors[0], MemoryError)


def test_context_manager_closes_stream(monkeypatch):
    solver = SpinningSolver()
    monkeypatch.setitem(SOLVERS, Algorithm.BRANCH_AND_BOUND, solver)

    with CliqueSearchStream(complete_graph(3)) as stream:
        wait_for(lambda: len(stream.events) == 1)

    assert stream.done
    assert solver.stopped.is_set()
