import threading
import time
from typing import Callable, FrozenSet, Iterator, List, Optional, Union

import bittensor as bt

from AnytimeClique.graph.undirected import UndirectedGraph
from AnytimeClique.solver import SOLVERS, Algorithm
from AnytimeClique.stream.memory import process_memory_kb
from AnytimeClique.stream.model import CliqueFound


class _Subscriber:
    def __init__(
        self,
        on_next: Callable[[CliqueFound], None],
        on_error: Optional[Callable[[BaseException], None]],
        on_completed: Optional[Callable[[], None]],
    ):
        self.on_next = on_next
        self.on_error = on_error
        self.on_completed = on_completed
        self.active = True
        # Number of stream events handed to this subscriber so far.
        self.delivered = 0

    def next(self, event: CliqueFound):
        if self.active:
            self._call(self.on_next, event)

    def finish(self, error: Optional[BaseException]):
        if not self.active:
            return
        self.active = False
        if error is not None:
            if self.on_error is not None:
                self._call(self.on_error, error)
        elif self.on_completed is not None:
            self._call(self.on_completed)

    @staticmethod
    def _call(fn, *args):
        try:
            fn(*args)
        except Exception as e:
            bt.logging.debug(f"Stream subscriber failed, ignoring: {e}")


class Subscription:
    """Handle returned by ``CliqueSearchStream.subscribe``."""

    def __init__(self, stream: "CliqueSearchStream", subscriber: _Subscriber):
        self._stream = stream
        self._subscriber = subscriber

    @property
    def active(self) -> bool:
        return self._subscriber.active

    def unsubscribe(self):
        """
        Stops delivery to this subscriber. The search itself keeps running;
        other subscribers are not affected.
        """
        self._stream._remove(self._subscriber)


class CliqueSearchStream:
    """
    A clique search running on a background thread, observed as a stream of
    ``CliqueFound`` events.

    The solver thread turns every improvement into an event. A timer thread
    races the solver against ``timeout``: if the timeout wins, the stream
    completes right away with whatever was found so far and the solver is
    asked to stop at its next check. If nothing was found yet, a single node
    is reported as the trivial clique. Otherwise the solver's result is
    emitted as a final event and the stream completes.

    Events already emitted are replayed to late subscribers and iterators, so
    nothing is lost by subscribing after ``start``. Event sizes never
    decrease; the last event is the best clique found.

    Stream state is guarded by ``lock``, which is never held while subscriber
    callbacks run. Callbacks are serialized by a separate delivery lock, so a
    slow subscriber delays other subscribers but never completion itself.
    """

    def __init__(
        self,
        graph: UndirectedGraph,
        algorithm: Algorithm = Algorithm.BRANCH_AND_BOUND,
        timeout: Optional[float] = None,
    ):
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {timeout}")
        self.graph = graph
        self.algorithm = Algorithm(algorithm)
        self.timeout = timeout

        self.lock = threading.RLock()
        self._changed = threading.Condition(self.lock)
        # Acquired before ``lock`` when both are needed.
        self._delivery = threading.RLock()
        self._events: List[CliqueFound] = []
        self._subscribers: List[_Subscriber] = []
        self._error: Optional[BaseException] = None
        self._done = threading.Event()
        self._solver_finished = threading.Event()
        self._cancel = threading.Event()
        self.timed_out = False
        self._started = time.perf_counter()
        self._memory_at_start = 0

        self.solver_thread: Union[threading.Thread, None] = None
        self.timer_thread: Union[threading.Thread, None] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "CliqueSearchStream":
        """Starts the solver and the timeout race in background threads."""
        if self.solver_thread is not None:
            return self
        bt.logging.info(
            f"Starting {self.algorithm} search on {self.graph} "
            f"with timeout {self.timeout if self.timeout is not None else 'none'}"
        )
        self._mark_start()
        self.solver_thread = threading.Thread(
            target=self._run_solver, name=f"clique-{self.algorithm}", daemon=True
        )
        self.solver_thread.start()
        if self.timeout is not None:
            self.timer_thread = threading.Thread(
                target=self._run_timer, name="clique-timeout", daemon=True
            )
            self.timer_thread.start()
        return self

    def close(self):
        """
        Completes the stream if it is still open and asks the solver to stop.
        """
        self._complete()
        self._cancel.set()
        if self.solver_thread is not None and self.solver_thread.is_alive():
            bt.logging.debug("Waiting for solver thread to stop.")
            self.solver_thread.join(5)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _mark_start(self):
        self._started = time.perf_counter()
        self._memory_at_start = process_memory_kb()

    def _run_solver(self):
        # Measured again here: the thread may start well after ``start`` returned.
        self._mark_start()

        def on_progress(clique: FrozenSet[int]):
            event = self._event(clique)
            bt.logging.debug(
                f"Clique of size {event.size} after {event.elapsed_ms} ms"
            )
            self._emit(event)

        solver = SOLVERS[self.algorithm]
        try:
            clique = solver(self.graph, progress=on_progress, cancel=self._cancel)
        except Exception as e:
            bt.logging.error(f"{self.algorithm} search failed: {e}")
            self._fail(e)
        else:
            self._emit(self._event(clique))
            if self._complete():
                bt.logging.info(
                    f"{self.algorithm} search finished: clique of size {len(clique)} "
                    f"in {time.perf_counter() - self._started:.3f}s"
                )
        finally:
            self._solver_finished.set()

    def _run_timer(self):
        if self._solver_finished.wait(self.timeout):
            return
        if self._finish(None, timed_out=True):
            bt.logging.warning(
                f"{self.algorithm} search timed out after {self.timeout}s, "
                f"best clique size so far {self._events[-1].size}"
            )

    def _event(self, clique: FrozenSet[int]) -> CliqueFound:
        return CliqueFound(
            nodes=clique,
            elapsed_ms=int((time.perf_counter() - self._started) * 1000),
            memory_delta_kb=process_memory_kb() - self._memory_at_start,
        )

    def _trivial_clique(self) -> FrozenSet[int]:
        """Any single node is a clique; the empty graph only has the empty one."""
        if not self.graph.nodes:
            return frozenset()
        return frozenset({min(self.graph.nodes)})

    # ------------------------------------------------------------------
    # Event relay
    # ------------------------------------------------------------------

    def _emit(self, event: CliqueFound):
        with self.lock:
            if self._done.is_set():
                return
            self._events.append(event)
            self._changed.notify_all()
        self._deliver()

    def _complete(self) -> bool:
        """Marks the stream complete; returns False if it already was."""
        return self._finish(None)

    def _fail(self, error: BaseException) -> bool:
        return self._finish(error)

    def _finish(self, error: Optional[BaseException], timed_out: bool = False) -> bool:
        with self.lock:
            if self._done.is_set():
                return False
            if timed_out:
                self.timed_out = True
                if not self._events:
                    self._events.append(self._event(self._trivial_clique()))
            self._error = error
            self._done.set()
            self._changed.notify_all()
        if timed_out:
            self._cancel.set()
        self._deliver()
        return True

    def _deliver(self):
        """
        Hands every subscriber the events it has not seen yet, in order, then
        the terminal signal once the stream is done.
        """
        with self._delivery:
            with self.lock:
                events = list(self._events)
                done = self._done.is_set()
                error = self._error
                subscribers = list(self._subscribers)
                if done:
                    self._subscribers = []
            for subscriber in subscribers:
                while subscriber.active and subscriber.delivered < len(events):
                    event = events[subscriber.delivered]
                    # Counted before the call so re-entrant deliveries skip it.
                    subscriber.delivered += 1
                    subscriber.next(event)
                if done:
                    subscriber.finish(error)

    def _remove(self, subscriber: _Subscriber):
        with self.lock:
            subscriber.active = False
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def subscribe(
        self,
        on_next: Callable[[CliqueFound], None],
        on_error: Optional[Callable[[BaseException], None]] = None,
        on_completed: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        """
        Registers callbacks for events, failure and completion.

        Past events are replayed on the calling thread; later ones arrive on
        the solver or timer thread. Callback exceptions are swallowed.
        """
        subscriber = _Subscriber(on_next, on_error, on_completed)
        with self._delivery:
            with self.lock:
                self._subscribers.append(subscriber)
            self._deliver()
        return Subscription(self, subscriber)

    def __iter__(self) -> Iterator[CliqueFound]:
        """Yields events as they arrive; re-raises a solver failure at the end."""
        index = 0
        while True:
            with self._changed:
                while index >= len(self._events) and not self._done.is_set():
                    self._changed.wait()
                if index < len(self._events):
                    event = self._events[index]
                elif self._error is not None:
                    raise self._error
                else:
                    return
            index += 1
            yield event

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the stream completes; returns False if ``timeout`` elapsed first."""
        return self._done.wait(timeout)

    def result(self, timeout: Optional[float] = None) -> Optional[CliqueFound]:
        """
        Blocks until the stream completes and returns its last event.

        A stream that timed out always holds at least a trivial clique, so
        None is only possible after ``close`` stopped the search early.

        Raises:
            TimeoutError: If the stream is still open after ``timeout`` seconds.
            Exception: The solver's own exception if the search failed.
        """
        if not self._done.wait(timeout):
            raise TimeoutError("Clique search stream did not complete in time")
        if self._error is not None:
            raise self._error
        return self._events[-1] if self._events else None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def events(self) -> List[CliqueFound]:
        with self.lock:
            return list(self._events)


def find_biggest_clique(
    graph: UndirectedGraph,
    algorithm: Algorithm = Algorithm.BRANCH_AND_BOUND,
    timeout: Optional[float] = None,
) -> CliqueSearchStream:
    """
    Starts searching ``graph`` for its biggest clique and returns immediately.

    Args:
        graph (UndirectedGraph): The graph to search.
        algorithm (Algorithm): Branch and bound or pivoting enumeration.
        timeout (float, optional): Seconds before the stream completes with the
            best clique so far. None waits for the solver to finish.

    Returns:
        CliqueSearchStream: The running search.
    """
    return CliqueSearchStream(graph, algorithm, timeout).start()
