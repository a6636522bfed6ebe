from typing import Dict, Hashable, Optional

from .Formula import Formula, Literal
from .Trail import Trail

STRATEGIES = ["ORDERED", "JEROSLOW"]


class OrderedDecider:
    """Selects the first unassigned variable in universe order and sets it to True"""

    def __init__(self, formula: Formula):
        self._order = formula.variables

    def pick(self, trail: Trail) -> Optional[Literal]:
        for symbol in self._order:
            if symbol in trail.unassigned:
                return Literal(symbol, True)
        return None


class JeroslowDecider:
    """
    Jeroslow-Wang scoring based on occurrence of literals across the input clauses.

    Each occurrence of a literal in a clause C adds 2^-|C| to the literal score.
    Scores are computed once, so the choice stays deterministic for a given formula.
    """

    def __init__(self, formula: Formula):
        self._order = formula.variables
        self._pos_scores: Dict[Hashable, float] = dict.fromkeys(self._order, 0.0)
        self._neg_scores: Dict[Hashable, float] = dict.fromkeys(self._order, 0.0)
        for clause in formula:
            weight = 2.0 ** (-len(clause))
            for lit in clause:
                if lit.sign:
                    self._pos_scores[lit.symbol] += weight
                else:
                    self._neg_scores[lit.symbol] += weight

    def score(self, symbol) -> float:
        return max(self._pos_scores[symbol], self._neg_scores[symbol])

    def pick(self, trail: Trail) -> Optional[Literal]:
        best = None
        max_score = -1.0
        for symbol in self._order:
            if symbol not in trail.unassigned:
                continue
            jw_score = self.score(symbol)
            if jw_score > max_score:
                max_score = jw_score
                best = symbol
        if best is None:
            return None
        # Choose polarity based on which literal has higher score
        return Literal(best, self._pos_scores[best] >= self._neg_scores[best])


def make_decider(strategy: str, formula: Formula):
    '''
    Build the decision heuristic for a strategy name.

    Parameters:
        strategy: one of STRATEGIES
        formula: input formula, before any learned clause is added
    '''
    if strategy == "ORDERED":
        return OrderedDecider(formula)
    if strategy == "JEROSLOW":
        return JeroslowDecider(formula)
    raise ValueError(f'Strategy must be one of {STRATEGIES}')
