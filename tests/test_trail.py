import pytest

from satgraph.cdcl.Trail import Trail
from satgraph.cdcl.errors import InvariantViolation

from conftest import lit


@pytest.fixture
def trail():
    trail = Trail(["x", "y", "z", "w"])
    trail.assign(lit("x"), 0, 0)
    trail.assign(lit("-y"), 1, None)
    trail.assign(lit("z"), 1, 2)
    trail.assign(lit("w"), 2, None)
    return trail


class TestTrail:

    def test_assign_updates_partition(self, trail):
        assert trail.assignment == {"x": True, "y": False, "z": True, "w": True}
        assert trail.unassigned == set()
        assert [entry.index for entry in trail] == [0, 1, 2, 3]
        trail.check_consistency(2)

    def test_reassignment_is_fatal(self, trail):
        with pytest.raises(InvariantViolation):
            trail.assign(lit("-x"), 2, 1)

    def test_unknown_variable_is_fatal(self, trail):
        with pytest.raises(InvariantViolation):
            trail.assign(lit("q"), 2, 1)

    def test_decreasing_level_is_fatal(self):
        trail = Trail(["x", "y"])
        trail.assign(lit("x"), 1, None)
        with pytest.raises(InvariantViolation):
            trail.assign(lit("y"), 0, 0)

    def test_truncate_removes_everything_above(self, trail):
        removed = trail.truncate(0)
        assert [entry.symbol for entry in removed] == ["w", "z", "y"]
        assert trail.assignment == {"x": True}
        assert trail.unassigned == {"y", "z", "w"}
        trail.check_consistency(0)

    def test_truncate_is_idempotent(self, trail):
        trail.truncate(1)
        assert trail.truncate(1) == []
        assert trail.unassigned == {"w"}
        trail.check_consistency(1)

    def test_literal_values_follow_assignment(self, trail):
        trail.truncate(1)
        assert lit("-y").value_under(trail.assignment) is True
        assert lit("z").value_under(trail.assignment) is True
        assert lit("w").value_under(trail.assignment) is None
        assert not hasattr(trail, "value_of")

    def test_decision_lookup(self, trail):
        assert trail.decision_at(1).literal == lit("-y")
        assert trail.decision_at(0) is None
        assert trail.entry_for("z").antecedent == 2
        assert trail.top_level == 2

    def test_consistency_detects_level_mismatch(self, trail):
        with pytest.raises(InvariantViolation):
            trail.check_consistency(3)

    def test_consistency_detects_skipped_level(self):
        trail = Trail(["x"])
        trail.assign(lit("x"), 2, None)
        with pytest.raises(InvariantViolation):
            trail.check_consistency(2)
