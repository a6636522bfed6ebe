import itertools
import random

import matplotlib
import pytest

matplotlib.use("Agg")

from satgraph.cdcl.Formula import Formula, Literal


def lit(text):
    """'x' -> positive literal on x, '-x' -> negative literal on x"""
    return Literal(text[1:], False) if text.startswith('-') else Literal(text, True)


def clauses(*specs):
    """clauses('x y', '-x z') -> [[x, y], [¬x, z]]"""
    return [[lit(token) for token in spec.split()] for spec in specs]


def brute_force_satisfiable(formula):
    variables = formula.variables
    for values in itertools.product([False, True], repeat=len(variables)):
        if formula.is_satisfied_by(dict(zip(variables, values))):
            return True
    return False


def random_cnf(rng, num_vars, num_clauses, width=3):
    cnf = []
    for _ in range(num_clauses):
        chosen = rng.sample(range(1, num_vars + 1), min(width, num_vars))
        cnf.append([var if rng.random() < 0.5 else -var for var in chosen])
    return cnf


@pytest.fixture
def rng():
    return random.Random(20240611)


@pytest.fixture
def random_instances(rng):
    instances = []
    for num_vars in (3, 4, 5, 6, 7):
        for ratio in (2.0, 3.5, 4.3, 6.0):
            for _ in range(4):
                instances.append(random_cnf(rng, num_vars, int(num_vars * ratio)))
    return instances


@pytest.fixture
def learning_formula():
    """Deciding p then a makes b, c, d follow and falsifies (¬p ∨ ¬c ∨ ¬d); the first UIP is b."""
    return Formula(clauses('p a', '-a b', '-b c', '-b d', '-p -c -d'))
