from typing import Callable, FrozenSet

import bittensor as bt

ProgressFn = Callable[[FrozenSet[int]], None]


def noop_progress(clique: FrozenSet[int]) -> None:
    pass


def report_progress(progress: ProgressFn, clique: FrozenSet[int]) -> None:
    """Calls ``progress``; a failing callback never aborts the search."""
    try:
        progress(clique)
    except Exception as e:
        bt.logging.debug(f"Progress callback failed, ignoring: {e}")
