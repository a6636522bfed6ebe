from typing import NamedTuple, Optional, Tuple

from .Formula import Clause, Literal
from .ImplicationGraph import GraphSnapshot


class TrailItem(NamedTuple):
    literal: Literal
    level: int
    antecedent: Optional[int]


class Snapshot(NamedTuple):
    """
    Immutable picture of the solver between two driver steps.

    Attributes:
        step: number of transitions executed so far
        state: name of the state the solver will run next
        level: current decision level
        trail: assignments in trail order
        graph: implication graph snapshot
        learned: clause learned by the last conflict analysis, if any
        num_clauses: size of the formula (learned clauses included)
    """
    step: int
    state: str
    level: int
    trail: Tuple[TrailItem, ...]
    graph: GraphSnapshot
    learned: Optional[Clause]
    num_clauses: int

    @property
    def is_conflict(self) -> bool:
        return any(vertex.is_conflict for vertex in self.graph.vertices)
