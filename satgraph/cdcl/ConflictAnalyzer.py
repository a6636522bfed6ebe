import logging
from typing import List, Set, Tuple

from .Formula import Clause
from .ImplicationGraph import CONFLICT, ImplicationGraph, Vertex
from .Trail import Trail
from .errors import InvariantViolation

logger = logging.getLogger(__name__)


def analyze_conflict(graph: ImplicationGraph, trail: Trail, level: int) -> Tuple[int, Clause]:
    '''
    Analyze a conflict to generate a learned clause and determine backtrack level.

    Resolution runs along the trail from the conflict backwards: vertices of the
    current level stay pending until only one is left, which is the first UIP.
    Vertices of lower levels go straight into the learned clause.

    Parameters:
        graph: implication graph holding the conflict vertex
        trail: trail matching the graph, used for the assignment order
        level: current decision level, must be positive

    Returns:
        Tuple (backtrack_level, learned_clause). The first literal of the
        learned clause is the negation of the UIP.
    '''
    if level <= 0:
        raise InvariantViolation("Conflict analysis requires at least one active decision")
    if graph.conflict is None:
        raise InvariantViolation("Conflict analysis called without a conflict vertex")

    seen = set()
    learned = []
    pending = 0

    def visit(keys):
        nonlocal pending
        for key in keys:
            if key in seen:
                continue
            seen.add(key)
            vertex = graph.vertex(key)
            if vertex.level == level:
                pending += 1
            elif vertex.level < level:
                learned.append(vertex.literal.negate())
            else:
                raise InvariantViolation(f"Vertex {vertex} lies above the current level {level}")

    visit(graph.predecessors(CONFLICT))
    if pending == 0:
        raise InvariantViolation(f"Conflict at level {level} involves no assignment of that level")

    position = len(trail) - 1
    while True:
        while trail[position].symbol not in seen:
            position -= 1
        entry = trail[position]
        position -= 1
        if entry.level != level:
            raise InvariantViolation(f"Resolution reached {entry!r} below the conflict level")
        pending -= 1
        if pending == 0:
            uip = entry
            break
        visit(graph.predecessors(entry.symbol))

    literals = [uip.literal.negate()] + learned
    backtrack_level = max((trail.entry_for(lit.symbol).level for lit in learned), default=0)
    if not 0 <= backtrack_level < level:
        raise InvariantViolation(f"Backtrack level {backtrack_level} is outside [0, {level})")

    logger.debug("first UIP %s at level %d, learned %s, backjump to %d",
                 uip.literal, level, Clause(literals), backtrack_level)
    return backtrack_level, Clause(literals, learned=True)


def find_uips(graph: ImplicationGraph, trail: Trail, level: int) -> List[Vertex]:
    '''
    Reference UIP computation: enumerate every path from the decision vertex of
    `level` to the conflict vertex and intersect their vertex sets.

    Exponential on unlucky graphs, so only used to cross-check analyze_conflict.

    Returns:
        the UIP vertices ordered from the closest to the conflict to the decision
    '''
    decision = graph.decision_vertex(level)
    if decision is None:
        raise InvariantViolation(f"No decision vertex at level {level}")
    if graph.conflict is None:
        raise InvariantViolation("UIP search called without a conflict vertex")

    candidates = None
    for path in _paths_to_conflict(graph, decision.key):
        candidates = path if candidates is None else candidates & path
    if not candidates:
        return []

    uips = [graph.vertex(key) for key in candidates]
    uips.sort(key=lambda vertex: trail.entry_for(vertex.key).index, reverse=True)
    return uips


def first_uip(graph: ImplicationGraph, trail: Trail, level: int) -> Vertex:
    uips = find_uips(graph, trail, level)
    if not uips:
        raise InvariantViolation(f"The decision at level {level} does not reach the conflict")
    return uips[0]


def _paths_to_conflict(graph: ImplicationGraph, start) -> List[Set]:
    paths = []
    stack = [(start, [start])]
    while stack:
        key, path = stack.pop()
        for successor in graph.successors(key):
            if successor is CONFLICT:
                paths.append(set(path))
            else:
                stack.append((successor, path + [successor]))
    return paths
