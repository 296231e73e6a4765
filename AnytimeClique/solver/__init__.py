from enum import StrEnum

from AnytimeClique.solver.branch_and_bound import MaxCliqueSolver, maximum_clique
from AnytimeClique.solver.pivoting import (
    PivotingCliqueEnumerator,
    biggest_maximal_clique,
    maximal_cliques,
)
from AnytimeClique.solver.progress import ProgressFn, noop_progress


class Algorithm(StrEnum):
    BRANCH_AND_BOUND = "branch_and_bound"
    PIVOTING = "pivoting"


SOLVERS = {
    Algorithm.BRANCH_AND_BOUND: maximum_clique,
    Algorithm.PIVOTING: biggest_maximal_clique,
}

__all__ = [
    "Algorithm",
    "MaxCliqueSolver",
    "PivotingCliqueEnumerator",
    "ProgressFn",
    "SOLVERS",
    "biggest_maximal_clique",
    "maximal_cliques",
    "maximum_clique",
    "noop_progress",
]
