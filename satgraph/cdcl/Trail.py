from typing import Dict, Hashable, Iterable, List, Optional

from .Formula import Literal
from .errors import InvariantViolation


class TrailEntry:
    """
    Class used to store the information about the variables being assigned.

    Attributes:
        literal: literal made true by the assignment
        level: level (decision level in the tree) at which the variable is assigned
        antecedent: index of the clause which implies this assignment, None for a decision
        index: position of the entry on the trail
    """
    __slots__ = ['literal', 'level', 'antecedent', 'index']

    def __init__(self, literal, level, antecedent, index=-1):
        self.literal = literal
        self.level = level
        self.antecedent = antecedent
        self.index = index

    @property
    def symbol(self):
        return self.literal.symbol

    @property
    def is_decision(self):
        return self.antecedent is None

    def __repr__(self):
        reason = "decision" if self.is_decision else f"clause {self.antecedent}"
        return f"TrailEntry({self.literal}@{self.level}, {reason})"


class Trail:
    """
    Authoritative record of the current partial assignment.

    Entries are kept in assignment order. Every variable of the universe is
    either bound in `assignment` or a member of `unassigned`, never both.
    """

    def __init__(self, universe: Iterable[Hashable]):
        self._universe = list(universe)
        self._entries: List[TrailEntry] = []
        self._by_symbol: Dict[Hashable, TrailEntry] = {}
        self.assignment: Dict[Hashable, bool] = {}
        self.unassigned = set(self._universe)

    @property
    def universe(self) -> List[Hashable]:
        return list(self._universe)

    def assign(self, literal: Literal, level: int, antecedent: Optional[int]) -> TrailEntry:
        '''
        Push a new assignment on the trail.

        Parameters:
            literal: literal that becomes true
            level: current decision level
            antecedent: index of the forcing clause, None for a decision

        Return:
            the new trail entry
        '''
        symbol = literal.symbol
        if symbol in self.assignment:
            raise InvariantViolation(f"Variable {symbol} is already assigned by {self._by_symbol[symbol]!r}")
        if symbol not in self.unassigned:
            raise InvariantViolation(f"Variable {symbol} is not part of the formula")
        if self._entries and level < self._entries[-1].level:
            raise InvariantViolation(f"Level {level} is below the trail top level {self._entries[-1].level}")

        entry = TrailEntry(literal, level, antecedent, len(self._entries))
        self._entries.append(entry)
        self._by_symbol[symbol] = entry
        self.assignment[symbol] = literal.sign
        self.unassigned.discard(symbol)
        return entry

    def truncate(self, level: int) -> List[TrailEntry]:
        '''
        Remove every entry whose level is strictly greater than `level`.

        Return:
            the removed entries, most recent first
        '''
        removed = []
        while self._entries and self._entries[-1].level > level:
            entry = self._entries.pop()
            del self._by_symbol[entry.symbol]
            del self.assignment[entry.symbol]
            self.unassigned.add(entry.symbol)
            removed.append(entry)
        return removed

    def entry_for(self, symbol: Hashable) -> Optional[TrailEntry]:
        return self._by_symbol.get(symbol)

    def decision_at(self, level: int) -> Optional[TrailEntry]:
        for entry in self._entries:
            if entry.level == level and entry.is_decision:
                return entry
        return None

    @property
    def entries(self) -> List[TrailEntry]:
        return list(self._entries)

    @property
    def top_level(self) -> int:
        return self._entries[-1].level if self._entries else 0

    def check_consistency(self, level: int):
        '''Verify the ordering and partition invariants of the trail.'''
        previous = 0
        decisions = 0
        for position, entry in enumerate(self._entries):
            if entry.index != position:
                raise InvariantViolation(f"{entry!r} is stored at position {position}")
            if entry.is_decision:
                decisions += 1
                if entry.level != previous + 1:
                    raise InvariantViolation(f"Decision {entry!r} does not open level {previous + 1}")
            elif entry.level != previous:
                raise InvariantViolation(f"Implied {entry!r} is not at level {previous}")
            previous = entry.level
        if decisions != level or previous > level:
            raise InvariantViolation(f"Trail holds {decisions} decisions but the solver is at level {level}")

        bound = set(self.assignment)
        if bound & self.unassigned:
            raise InvariantViolation(f"Variables both assigned and unassigned: {bound & self.unassigned}")
        if bound | self.unassigned != set(self._universe):
            raise InvariantViolation("Assigned and unassigned variables do not cover the universe")
        if bound != set(self._by_symbol):
            raise InvariantViolation("Assignment and trail entries disagree")

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __getitem__(self, index) -> TrailEntry:
        return self._entries[index]
