from typing import Dict, Hashable, Iterable, Iterator, List, NamedTuple, Optional


class Literal(NamedTuple):
    """A variable symbol together with the polarity it occurs with"""
    symbol: Hashable
    sign: bool = True

    @classmethod
    def from_int(cls, lit: int) -> "Literal":
        '''Build a literal from the DIMACS convention (-3 is the negation of variable 3).'''
        if lit == 0:
            raise ValueError("0 is a clause terminator, not a literal")
        return cls(abs(lit), lit > 0)

    def negate(self) -> "Literal":
        return Literal(self.symbol, not self.sign)

    def value_under(self, assignment: Dict[Hashable, bool]) -> Optional[bool]:
        """Truth value of the literal, None while its variable is unassigned"""
        value = assignment.get(self.symbol)
        if value is None:
            return None
        return value == self.sign

    def __str__(self):
        return str(self.symbol) if self.sign else f"¬{self.symbol}"


class Clause:
    """
    Disjunction of literals.

    Attributes:
        literals: tuple of the clause literals, in input order, without repeats
        learned: True if the clause was derived by conflict analysis
    """
    __slots__ = ['literals', 'learned']

    def __init__(self, literals: Iterable[Literal], learned: bool = False):
        self.literals = tuple(dict.fromkeys(literals))
        self.learned = learned

    def unassigned_literals(self, assignment: Dict[Hashable, bool]) -> Optional[List[Literal]]:
        '''
        Evaluate the clause under a partial assignment.

        Returns:
            None if some literal is true (the clause is satisfied), otherwise the
            list of literals whose variable is still unassigned. An empty list
            means the clause is falsified, a single literal means it is unit.
        '''
        open_literals = []
        for lit in self.literals:
            value = lit.value_under(assignment)
            if value is True:
                return None
            if value is None:
                open_literals.append(lit)
        return open_literals

    def is_satisfied_by(self, assignment: Dict[Hashable, bool]) -> bool:
        return any(lit.value_under(assignment) is True for lit in self.literals)

    def variables(self) -> List[Hashable]:
        return [lit.symbol for lit in self.literals]

    def __iter__(self) -> Iterator[Literal]:
        return iter(self.literals)

    def __len__(self):
        return len(self.literals)

    def __contains__(self, lit):
        return lit in self.literals

    def __eq__(self, other):
        if not isinstance(other, Clause):
            return NotImplemented
        return set(self.literals) == set(other.literals)

    def __hash__(self):
        return hash(frozenset(self.literals))

    def __repr__(self):
        return f"Clause({list(self.literals)!r}, learned={self.learned})"

    def __str__(self):
        if not self.literals:
            return "()"
        return "(" + " ∨ ".join(str(lit) for lit in self.literals) + ")"


class Formula:
    """
    CNF formula: an ordered, append-only list of clauses.

    The variable universe is kept in order of first appearance, which gives the
    solver a deterministic total order over the variables.
    """

    def __init__(self, clauses: Iterable = ()):
        self._clauses: List[Clause] = []
        self._variables: Dict[Hashable, None] = {}
        for clause in clauses:
            self.add_clause(clause)

    @classmethod
    def from_ints(cls, cnf: Iterable[Iterable[int]]) -> "Formula":
        '''Build a formula from clauses given as lists of DIMACS integers.'''
        return cls(Clause(Literal.from_int(lit) for lit in clause) for clause in cnf)

    def add_clause(self, clause, learned: bool = False) -> int:
        '''
        Append a clause to the formula.

        Parameters:
            clause: a Clause, or an iterable of Literals / DIMACS integers
            learned: marks the clause as derived by conflict analysis

        Returns:
            the index of the clause in the formula
        '''
        if not isinstance(clause, Clause):
            clause = Clause((lit if isinstance(lit, Literal) else Literal.from_int(lit) for lit in clause),
                            learned)
        elif learned and not clause.learned:
            clause = Clause(clause.literals, True)

        for symbol in clause.variables():
            self._variables.setdefault(symbol, None)
        self._clauses.append(clause)
        return len(self._clauses) - 1

    @property
    def variables(self) -> List[Hashable]:
        return list(self._variables)

    @property
    def clauses(self) -> List[Clause]:
        return list(self._clauses)

    @property
    def learned_clauses(self) -> List[Clause]:
        return [clause for clause in self._clauses if clause.learned]

    def is_satisfied_by(self, assignment: Dict[Hashable, bool]) -> bool:
        return all(clause.is_satisfied_by(assignment) for clause in self._clauses)

    def copy(self) -> "Formula":
        duplicate = Formula()
        duplicate._clauses = list(self._clauses)
        duplicate._variables = dict(self._variables)
        return duplicate

    def __getitem__(self, index) -> Clause:
        return self._clauses[index]

    def __iter__(self) -> Iterator[Clause]:
        return iter(self._clauses)

    def __len__(self):
        return len(self._clauses)

    def __str__(self):
        return " ∧ ".join(str(clause) for clause in self._clauses)
