import pytest

from satgraph.cdcl.Formula import Clause, Formula
from satgraph.cdcl.cdcl import CdclSolver, Satisfiable, SolverState, Unsatisfiable, solve
from satgraph.cdcl.errors import InvariantViolation, SearchBudgetExhausted

from conftest import brute_force_satisfiable, clauses, lit


class TestScenarios:

    def test_single_unit(self):
        solver = CdclSolver(clauses("x"))
        assert solver.solve() == Satisfiable({"x": True})
        assert solver.num_decisions == 0
        assert solver.trail[0].level == 0 and solver.trail[0].antecedent == 0

    def test_contradicting_units(self):
        solver = CdclSolver(clauses("x", "-x"))
        result = solver.solve()
        assert isinstance(result, Unsatisfiable)
        assert not result
        snapshot = solver.graph_snapshot()
        assert snapshot.vertex("x").level == 0
        assert snapshot.vertex(None).is_conflict
        assert snapshot.edges == (("x", None),)

    def test_propagation_chain(self):
        solver = CdclSolver(clauses("x", "-x y", "-y z"))
        assert solver.solve().assignment == {"x": True, "y": True, "z": True}
        assert solver.num_decisions == 0
        assert solver.graph.edges() == [("x", "y"), ("y", "z")]

    def test_decision_then_propagation(self):
        solver = CdclSolver(clauses("x y", "-x z", "-y -z"))
        result = solver.solve()
        assert result.assignment == {"x": True, "y": False, "z": True}
        assert solver.num_decisions == 1
        assert solver.trail.decision_at(1).literal == lit("x")

    def test_conflict_learning_and_backjump(self):
        solver = CdclSolver(clauses("-a b", "-a c", "-b -c d", "-b -c -d"))
        result = solver.solve()
        assert result.assignment == {"a": False, "b": True, "c": False, "d": True}
        assert solver.num_conflicts == 2
        assert solver.learned_clauses == [Clause([lit("-a")]), Clause([lit("-c"), lit("-b")])]
        assert all(clause.learned for clause in solver.learned_clauses)

    def test_learned_clause_is_asserting_after_backjump(self, learning_formula):
        solver = CdclSolver(learning_formula)
        while solver.state is not SolverState.BACKTRACK:
            solver.step()
        solver.step()
        assert solver.level == 1
        assert [str(entry.literal) for entry in solver.trail] == ["p"]
        solver.step()
        assert [str(entry.literal) for entry in solver.trail] == ["p", "¬b", "¬a"]
        assert solver.trail.entry_for("b").antecedent == len(learning_formula)


class TestEdgeCases:

    def test_empty_formula_is_satisfiable(self):
        result = solve([])
        assert isinstance(result, Satisfiable)
        assert result
        assert result.assignment == {}
        assert result != Unsatisfiable()

    def test_empty_clause_is_unsatisfiable(self):
        solver = CdclSolver([[lit("x"), lit("y")], []])
        assert solver.solve() == Unsatisfiable()
        assert solver.num_decisions == 0
        assert solver.graph.predecessors(None) == []

    def test_integer_input(self):
        result = solve([[1, 2], [-1], [-2, 3]])
        assert result.assignment == {1: False, 2: True, 3: True}

    def test_solve_twice_returns_same_result(self):
        solver = CdclSolver(clauses("x y", "-x"))
        first = solver.solve()
        assert solver.solve() is first
        assert solver.step() is SolverState.SATISFIED

    def test_input_formula_is_not_modified(self, learning_formula):
        size = len(learning_formula)
        solver = CdclSolver(learning_formula)
        solver.solve()
        assert len(solver.learned_clauses) > 0
        assert len(learning_formula) == size

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            CdclSolver(clauses("x"), strategy="VSIDS")

    def test_invalid_step_budget(self):
        with pytest.raises(ValueError):
            CdclSolver(clauses("x"), max_steps=0)

    def test_step_budget(self, learning_formula):
        solver = CdclSolver(learning_formula, max_steps=3)
        with pytest.raises(SearchBudgetExhausted) as excinfo:
            solver.solve()
        assert excinfo.value.steps == 3

    def test_backtrack_above_current_level_is_fatal(self):
        solver = CdclSolver(clauses("x y"))
        with pytest.raises(InvariantViolation):
            solver.backtrack(1)
        with pytest.raises(InvariantViolation):
            solver.backtrack(-1)

    def test_backtrack_to_current_level_keeps_trail(self):
        solver = CdclSolver(clauses("x y"))
        decision = solver.decide()
        solver.backtrack(solver.level)
        assert solver.level == 1
        assert [entry.literal for entry in solver.trail] == [decision]
        assert solver.graph.vertex(decision.symbol).is_decision
        solver.check_invariants()

    def test_decide_with_nothing_left_is_fatal(self):
        solver = CdclSolver(clauses("x"))
        solver.solve()
        with pytest.raises(InvariantViolation):
            solver.decide()


class TestStateMachine:

    def test_transitions(self):
        solver = CdclSolver(clauses("x y", "-x z", "-y -z"))
        states = [solver.state]
        while not solver.state.is_terminal:
            states.append(solver.step())
        assert states == [
            SolverState.PROPAGATE, SolverState.FIXPOINT, SolverState.DECIDE,
            SolverState.PROPAGATE, SolverState.FIXPOINT, SolverState.SATISFIED,
        ]

    def test_unsat_path(self):
        solver = CdclSolver(clauses("x", "-x"))
        assert solver.step() is SolverState.CONFLICT
        assert solver.step() is SolverState.UNSATISFIABLE
        assert solver.steps == 2

    def test_history(self, learning_formula):
        solver = CdclSolver(learning_formula, record_history=True)
        solver.solve()
        assert len(solver.history) == solver.steps + 1
        assert solver.history[0].state == "PROPAGATE"
        assert solver.history[-1].state == "SATISFIED"
        conflicts = [snapshot for snapshot in solver.history if snapshot.is_conflict]
        assert conflicts
        assert all(snapshot.level >= 0 for snapshot in conflicts)
        backtracked = [snapshot for snapshot in solver.history if snapshot.state == "BACKTRACK"]
        assert backtracked[0].learned == Clause([lit("-b"), lit("-p")])


class TestProperties:

    @pytest.mark.parametrize("strategy", ["ORDERED", "JEROSLOW"])
    def test_sound_and_complete(self, random_instances, strategy):
        outcomes = set()
        for cnf in random_instances:
            formula = Formula.from_ints(cnf)
            result = CdclSolver(cnf, strategy).solve()
            assert result.is_satisfiable == brute_force_satisfiable(formula)
            if result.is_satisfiable:
                assert formula.is_satisfied_by(result.assignment)
                assert set(result.assignment) == set(formula.variables)
            outcomes.add(result.is_satisfiable)
        assert outcomes == {True, False}

    def test_trail_graph_and_formula_invariants(self, random_instances):
        for cnf in random_instances:
            solver = CdclSolver(cnf, check_invariants=False)
            universe = set(solver.trail.universe)
            original = solver.formula.clauses
            previous_size = len(solver.formula)
            while not solver.state.is_terminal:
                was_backtrack = solver.state is SolverState.BACKTRACK
                solver.step()

                assigned = set(solver.trail.assignment)
                vertices = solver.graph.symbols()
                assert assigned == set(vertices)
                assert len(vertices) == len(set(vertices))
                assert solver.trail.unassigned == universe - assigned

                assert len(solver.formula) >= previous_size
                assert solver.formula.clauses[:len(original)] == original
                previous_size = len(solver.formula)

                if was_backtrack:
                    assert all(entry.level <= solver.level for entry in solver.trail)
                    assert all(vertex.level <= solver.level for vertex in solver.graph.vertices())
                    assert solver.graph.conflict is None
                solver.check_invariants()
