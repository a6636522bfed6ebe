import os
import argparse
import logging

from utils.parser import read_cnf

from satgraph.cdcl.cdcl import CdclSolver
from satgraph.cdcl.Heuristics import STRATEGIES
from plot import plot_implication_graph


def walkthrough(path, strategy="ORDERED", out_dir=None, max_steps=None):
    '''
    Solve a CNF file step by step and optionally render the implication graph
    of every conflict.

    Returns:
        the solver, finished, with its history of snapshots
    '''
    solver = CdclSolver(read_cnf(path), strategy, max_steps=max_steps, record_history=True)
    result = solver.solve()

    print('Satisfiable' if result.is_satisfiable else 'Unsatisfiable')
    if result.is_satisfiable:
        print(' '.join(str(symbol if value else -symbol) for symbol, value in result.assignment.items()))
    print(f"steps: {solver.steps}  decisions: {solver.num_decisions}  conflicts: {solver.num_conflicts}  "
          f"propagations: {solver.num_propagations}")
    for clause in solver.learned_clauses:
        print(f"learned {clause}")

    if out_dir is not None:
        os.makedirs(out_dir, exist_ok=True)
        for snapshot in solver.history:
            if snapshot.state == "CONFLICT" and snapshot.is_conflict:
                image = os.path.join(out_dir, f"conflict_{snapshot.step:05d}.png")
                plot_implication_graph(snapshot.graph, image,
                                       title=f"step {snapshot.step}, conflict at level {snapshot.level}")
                print(f"wrote {image}")
    return solver


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Step through a CDCL solve and draw its implication graphs')
    parser.add_argument('file', type=str, help='path to a DIMACS CNF file')
    parser.add_argument('--strategy', choices=STRATEGIES, default='ORDERED', help='decision heuristic')
    parser.add_argument('--out', type=str, default=None, help='directory for conflict graph images')
    parser.add_argument('--max-steps', type=int, default=None, help='give up after that many steps')
    parser.add_argument('--verbose', action='store_true', help='log every propagation, decision and backjump')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format='%(message)s')
    walkthrough(args.file, args.strategy, args.out, args.max_steps)
