import argparse
from typing import List, Optional

import bittensor as bt
from pydantic import BaseModel, Field

from AnytimeClique.solver import Algorithm


def add_args(parser: argparse.ArgumentParser):
    """
    Adds the search and input arguments to the parser.
    """
    parser.add_argument(
        "--search.algorithm",
        type=str,
        choices=[algorithm.value for algorithm in Algorithm],
        help="Which exact algorithm to run.",
        default=Algorithm.BRANCH_AND_BOUND.value,
    )
    parser.add_argument(
        "--search.timeout",
        type=float,
        help="Seconds before the search reports its best clique so far. Unbounded if omitted.",
        default=None,
    )
    parser.add_argument(
        "--input.path",
        type=str,
        help="Graph file to read, '-' for stdin.",
        default="-",
    )
    parser.add_argument(
        "--input.format",
        type=str,
        choices=["dimacs", "json"],
        help="dimacs: 'e u v' edge lines with 1-based nodes. json: number_of_nodes and adjacency_list.",
        default="dimacs",
    )


def config(args: Optional[List[str]] = None) -> "bt.Config":
    """
    Returns the configuration object built from ``args`` (``sys.argv`` when None).
    """
    parser = argparse.ArgumentParser(
        description="Maximum clique search with live progress reporting."
    )
    add_args(parser)
    bt.logging.add_args(parser)
    return bt.Config(parser, args=args)


def check_config(config: "bt.Config"):
    """Checks/validates the config namespace."""
    if config.search.timeout is not None and config.search.timeout < 0:
        raise ValueError(f"search.timeout must be non-negative, got {config.search.timeout}")
    Algorithm(config.search.algorithm)
    if config.input.format not in ("dimacs", "json"):
        raise ValueError(f"Unknown input.format {config.input.format}")


class SearchSettings(BaseModel):
    algorithm: Algorithm = Algorithm.BRANCH_AND_BOUND
    timeout: Optional[float] = Field(default=None, ge=0)

    @classmethod
    def from_config(cls, config: "bt.Config") -> "SearchSettings":
        return cls(algorithm=config.search.algorithm, timeout=config.search.timeout)
