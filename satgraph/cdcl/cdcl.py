import logging
from enum import Enum
from typing import Dict, Hashable, List, Optional

from .ConflictAnalyzer import analyze_conflict
from .Formula import Clause, Formula, Literal
from .Heuristics import STRATEGIES, make_decider
from .ImplicationGraph import GraphSnapshot, ImplicationGraph
from .Snapshot import Snapshot, TrailItem
from .Trail import Trail
from .errors import InvariantViolation, SearchBudgetExhausted

logger = logging.getLogger(__name__)


class SolverState(Enum):
    PROPAGATE = "propagate"
    FIXPOINT = "fixpoint"
    CONFLICT = "conflict"
    BACKTRACK = "backtrack"
    DECIDE = "decide"
    SATISFIED = "satisfied"
    UNSATISFIABLE = "unsatisfiable"

    @property
    def is_terminal(self):
        return self in (SolverState.SATISFIED, SolverState.UNSATISFIABLE)


class Satisfiable:
    """Outcome of a solve that found a model. `assignment` covers every variable of the formula."""
    is_satisfiable = True

    def __init__(self, assignment: Dict[Hashable, bool]):
        self.assignment = dict(assignment)

    def __bool__(self):
        return True

    def __eq__(self, other):
        return isinstance(other, Satisfiable) and self.assignment == other.assignment

    def __repr__(self):
        return f"Satisfiable({self.assignment!r})"


class Unsatisfiable:
    """Outcome of a solve that proved that no model exists."""
    is_satisfiable = False

    def __bool__(self):
        return False

    def __eq__(self, other):
        return isinstance(other, Unsatisfiable)

    def __repr__(self):
        return "Unsatisfiable()"


class CdclSolver:
    """
    CDCL (Conflict-Driven Clause Learning) SAT Solver.

    The search is a small state machine; every call to step() runs exactly one
    transition, so a host can inspect the implication graph between steps:

      - PROPAGATE:     unit propagation up to a fixpoint or a falsified clause
      - FIXPOINT:      every clause is satisfied or still open
      - DECIDE:        pick a literal with the decision heuristic, open a new level
      - CONFLICT:      first-UIP analysis (or UNSAT when no decision is active)
      - BACKTRACK:     backjump to the computed level and add the learned clause
      - SATISFIED / UNSATISFIABLE: terminal

    Public Methods:
        solve(): runs the search and returns Satisfiable or Unsatisfiable
        step(): runs a single transition and returns the new state
        snapshot(): immutable picture of the current solver state
    """

    def __init__(self, cnf, strategy="ORDERED", max_steps=None, check_invariants=True, record_history=False):
        '''
        Constructor for the CdclSolver class

        Parameters:
            cnf: a Formula, or clauses given as iterables of Literals / DIMACS integers
            strategy: Decision heuristic: "ORDERED" or "JEROSLOW"
            max_steps: stop with SearchBudgetExhausted after that many transitions (None = no limit)
            check_invariants: verify trail/graph consistency after every transition
            record_history: keep a Snapshot after every transition in `history`
        '''
        if strategy not in STRATEGIES:
            raise ValueError(f'Strategy must be one of {STRATEGIES}')
        if max_steps is not None and max_steps <= 0:
            raise ValueError('max_steps must be a positive integer or None')

        self._formula = cnf.copy() if isinstance(cnf, Formula) else Formula(cnf)
        self._num_input_clauses = len(self._formula)
        self._trail = Trail(self._formula.variables)
        self._graph = ImplicationGraph()
        self._decider = make_decider(strategy, self._formula)
        self._strategy = strategy
        self._max_steps = max_steps
        self._check = check_invariants
        self._record = record_history

        self._level = 0
        self._state = SolverState.PROPAGATE
        self._analysis = None
        self._last_learned: Optional[Clause] = None
        self._result = None

        self._steps = 0
        self._num_decisions = 0
        self._num_conflicts = 0
        self._num_propagations = 0

        self.history: List[Snapshot] = []
        if self._record:
            self.history.append(self.snapshot())

    def solve(self):
        '''
        Solve the SAT problem.

        Returns:
            Satisfiable(assignment) or Unsatisfiable()
        '''
        while not self._state.is_terminal:
            self.step()
        return self._result

    def step(self) -> SolverState:
        '''Run one transition of the search and return the state reached.'''
        if self._state.is_terminal:
            return self._state
        if self._max_steps is not None and self._steps >= self._max_steps:
            raise SearchBudgetExhausted(self._steps)

        handlers = {
            SolverState.PROPAGATE: self._on_propagate,
            SolverState.FIXPOINT: self._on_fixpoint,
            SolverState.CONFLICT: self._on_conflict,
            SolverState.BACKTRACK: self._on_backtrack,
            SolverState.DECIDE: self._on_decide,
        }
        self._state = handlers[self._state]()
        self._steps += 1

        if self._check:
            self.check_invariants()
        if self._record:
            self.history.append(self.snapshot())
        return self._state

    def _on_propagate(self):
        return SolverState.FIXPOINT if self.propagate() is None else SolverState.CONFLICT

    def _on_fixpoint(self):
        if self._trail.unassigned:
            return SolverState.DECIDE
        assignment = {symbol: self._trail.assignment[symbol] for symbol in self._trail.universe}
        if not self._formula.is_satisfied_by(assignment):
            raise InvariantViolation("Total assignment reached a fixpoint without satisfying the formula")
        self._result = Satisfiable(assignment)
        logger.debug("satisfied after %d decisions and %d conflicts", self._num_decisions, self._num_conflicts)
        return SolverState.SATISFIED

    def _on_conflict(self):
        self._num_conflicts += 1
        if self._level == 0:
            self._result = Unsatisfiable()
            logger.debug("conflict at level 0, formula is unsatisfiable")
            return SolverState.UNSATISFIABLE
        self._analysis = analyze_conflict(self._graph, self._trail, self._level)
        self._last_learned = self._analysis[1]
        return SolverState.BACKTRACK

    def _on_backtrack(self):
        backtrack_level, learned = self._analysis
        self._analysis = None
        self.backtrack(backtrack_level, learned)
        return SolverState.PROPAGATE

    def _on_decide(self):
        self.decide()
        return SolverState.PROPAGATE

    def propagate(self) -> Optional[int]:
        '''
        Main method that makes all implications.

        Clauses are scanned in formula order and the scan restarts from the
        first clause after every forced assignment.

        Returns:
            index of the falsified clause, or None when a fixpoint is reached
        '''
        if self._graph.conflict is not None:
            raise InvariantViolation("Propagation requested while a conflict is pending")

        assignment = self._trail.assignment
        clause_id = 0
        while clause_id < len(self._formula):
            clause = self._formula[clause_id]
            open_literals = clause.unassigned_literals(assignment)

            if open_literals is None or len(open_literals) > 1:
                clause_id += 1
                continue

            if not open_literals:
                self._graph.add_conflict(self._level, clause_id, clause.variables())
                logger.debug("clause %d %s falsified at level %d", clause_id, clause, self._level)
                return clause_id

            self._imply(open_literals[0], clause_id)
            clause_id = 0

        return None

    def _imply(self, literal: Literal, clause_id: int):
        self._trail.assign(literal, self._level, clause_id)
        self._graph.add_vertex(literal, self._level, False, clause_id)
        for lit in self._formula[clause_id]:
            if lit.symbol != literal.symbol:
                self._graph.add_edge(lit.symbol, literal.symbol)
        self._num_propagations += 1
        logger.debug("clause %d implies %s at level %d", clause_id, literal, self._level)

    def decide(self) -> Literal:
        '''
        Choose an unassigned variable and assign a value to it on a new level.

        Returns:
            The decision literal
        '''
        literal = self._decider.pick(self._trail)
        if literal is None:
            raise InvariantViolation("Decision requested while every variable is assigned")

        self._level += 1
        self._trail.assign(literal, self._level, None)
        self._graph.add_vertex(literal, self._level, True)
        self._num_decisions += 1
        logger.debug("decide %s at level %d", literal, self._level)
        return literal

    def backtrack(self, backtrack_level: int, learned: Optional[Clause] = None):
        '''
        Backtrack to a specified level and append the learned clause to the formula.

        Every assignment and vertex above `backtrack_level` is dropped, whatever
        level it was made at, so calling it twice with the same level is harmless.
        '''
        if not 0 <= backtrack_level <= self._level:
            raise InvariantViolation(f"Backtrack level {backtrack_level} is outside [0, {self._level}]")

        removed = self._trail.truncate(backtrack_level)
        self._graph.remove_above(backtrack_level)
        self._level = backtrack_level
        if learned is not None:
            self._formula.add_clause(learned, learned=True)
        logger.debug("backjump to level %d, %d assignments undone, learned %s",
                     backtrack_level, len(removed), learned)

    def check_invariants(self):
        '''Verify that trail, assignment and implication graph describe the same state.'''
        self._trail.check_consistency(self._level)

        if set(self._graph.symbols()) != set(self._trail.assignment):
            raise InvariantViolation("Implication graph vertices and assigned variables differ")
        for entry in self._trail:
            vertex = self._graph.vertex(entry.symbol)
            if vertex.literal != entry.literal or vertex.level != entry.level \
                    or vertex.is_decision != entry.is_decision:
                raise InvariantViolation(f"Vertex {vertex} does not match {entry!r}")
            expected = 0 if entry.is_decision else len(self._formula[entry.antecedent]) - 1
            if len(self._graph.predecessors(entry.symbol)) != expected:
                raise InvariantViolation(f"Vertex {vertex} has the wrong number of incoming edges")

        conflict_expected = self._state in (SolverState.CONFLICT, SolverState.BACKTRACK,
                                            SolverState.UNSATISFIABLE)
        if (self._graph.conflict is not None) != conflict_expected:
            raise InvariantViolation(f"Conflict vertex presence does not match state {self._state.name}")

    def snapshot(self) -> Snapshot:
        trail = tuple(TrailItem(entry.literal, entry.level, entry.antecedent) for entry in self._trail)
        return Snapshot(self._steps, self._state.name, self._level, trail, self._graph.snapshot(),
                        self._last_learned, len(self._formula))

    def graph_snapshot(self) -> GraphSnapshot:
        return self._graph.snapshot()

    @property
    def state(self) -> SolverState:
        return self._state

    @property
    def level(self) -> int:
        return self._level

    @property
    def result(self):
        return self._result

    @property
    def formula(self) -> Formula:
        """The solver's own formula, learned clauses included. Read it, do not modify it."""
        return self._formula

    @property
    def trail(self) -> Trail:
        return self._trail

    @property
    def graph(self) -> ImplicationGraph:
        return self._graph

    @property
    def learned_clauses(self) -> List[Clause]:
        return self._formula.clauses[self._num_input_clauses:]

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def num_decisions(self) -> int:
        return self._num_decisions

    @property
    def num_conflicts(self) -> int:
        return self._num_conflicts

    @property
    def num_propagations(self) -> int:
        return self._num_propagations


def solve(cnf, strategy="ORDERED", **options):
    '''Solve `cnf` with a fresh solver and return Satisfiable or Unsatisfiable.'''
    return CdclSolver(cnf, strategy, **options).solve()
