import os
import csv
import json
import atexit
import concurrent.futures
from pathlib import Path
from statistics import mean

from utils.parser import read_cnf
from utils.timer import Timer
from utils.memory import MemoryTracker

from satgraph.cdcl.cdcl import CdclSolver
from satgraph.cdcl.Formula import Formula

TIMEOUT = 300
CNF_PATHS = sorted(Path("benchmarks").rglob("*.cnf"))

SOLVERS = {
    "cdcl": (CdclSolver, ["ORDERED", "JEROSLOW"]),
}

RESULTS_DIR = "results"
BACKUP_PATH = os.path.join(RESULTS_DIR, "backup.tmp")
CSV_HEADER = [
    "solver", "folder", "avg_time", "min_time", "max_time",
    "avg_mem", "min_mem", "max_mem", "inconclusive", "failed",
    "decisions", "conflicts", "learned", "sat", "unsat",
]
stats = {}


def save_backup():
    if not os.path.isdir(RESULTS_DIR):
        return
    with open(BACKUP_PATH, "w") as f:
        json.dump(stats, f, indent=2)


def load_backup():
    global stats
    if os.path.exists(BACKUP_PATH):
        print(">> Resuming from previous backup...")
        try:
            with open(BACKUP_PATH, "r") as f:
                stats = json.load(f)
        except json.JSONDecodeError:
            print(">> Error loading backup file, starting fresh")
            stats = {}


def _run_instance(SolverClass, cnf, strategy):
    with MemoryTracker() as mem, Timer() as timer:
        # the invariant checks are quadratic in the trail size
        solver = SolverClass(cnf, strategy, check_invariants=False)
        result = solver.solve()

    if result.is_satisfiable and not Formula.from_ints(cnf).is_satisfied_by(result.assignment):
        raise RuntimeError("Solver returned an assignment that falsifies the input")

    counters = {
        "decisions": solver.num_decisions,
        "conflicts": solver.num_conflicts,
        "learned": len(solver.learned_clauses),
    }
    return result.is_satisfiable, counters, timer.elapsed, mem.min_usage, mem.avg_usage, mem.max_usage


def group_by_folder(paths):
    groups = {}
    for p in paths:
        folder = p.parent.name
        groups.setdefault(folder, []).append(p)
    return groups


def get_next_csv_path(base_path):
    if not os.path.exists(base_path):
        return base_path
    index = 1
    while True:
        new_path = base_path.replace(".csv", f" ({index}).csv")
        if not os.path.exists(new_path):
            return new_path
        index += 1


def _new_folder_stats():
    return {
        "times": [],
        "mems": [],
        "mem_min": float('inf'),
        "mem_max": float('-inf'),
        "inconclusive": 0,
        "failed": 0,
        "completed": False,
        "completed_tests": 0,
        "csv_ready_data": [],
        "decisions": 0,
        "conflicts": 0,
        "learned": 0,
        "sat": 0,
        "unsat": 0,
    }


def _csv_row(label, folder, folder_stats, total_tests):
    times = folder_stats["times"]
    runs = total_tests or 1
    return [
        label,
        folder,
        f"{mean(times):.6f}",
        f"{min(times):.6f}",
        f"{max(times):.6f}",
        f"{mean(folder_stats['mems']):.2f}",
        f"{folder_stats['mem_min']:.2f}",
        f"{folder_stats['mem_max']:.2f}",
        folder_stats["inconclusive"],
        folder_stats["failed"],
        f"{folder_stats['decisions'] / runs:.2f}",
        f"{folder_stats['conflicts'] / runs:.2f}",
        f"{folder_stats['learned'] / runs:.2f}",
        folder_stats["sat"],
        folder_stats["unsat"],
    ]


def _run_folder(executor, SolverClass, strat, folder, test_files, folder_stats):
    for idx in range(folder_stats["completed_tests"], len(test_files)):
        path = test_files[idx]
        cnf = read_cnf(str(path))
        future = executor.submit(_run_instance, SolverClass, cnf, strat)

        decs = 0
        t_elapsed = 0.0
        mem_used = 0.0
        try:
            sat, counters, t_elapsed, min_mem, mem_used, max_mem = future.result(timeout=TIMEOUT)
            for key, value in counters.items():
                folder_stats[key] += value
            decs = counters["decisions"]
            folder_stats["sat" if sat else "unsat"] += 1
            folder_stats["times"].append(t_elapsed)
            folder_stats["mems"].append(mem_used)
            folder_stats["mem_min"] = min(folder_stats["mem_min"], min_mem)
            folder_stats["mem_max"] = max(folder_stats["mem_max"], max_mem)
            status = "SAT" if sat else "UNSAT"
        except concurrent.futures.TimeoutError:
            folder_stats["inconclusive"] += 1
            status = "TIMEOUT"
        except Exception as e:
            folder_stats["failed"] += 1
            status = f"ERROR: {str(e)}"

        folder_stats["completed_tests"] = idx + 1
        print(f"{folder:10} {path.name:25} {status:<12} "
              f"Time: {t_elapsed:9.6f}s Mem(avg): {mem_used:9.2f}KB Decisions: {decs:<5}")
        save_backup()


def benchmark_all():
    global stats
    os.makedirs(RESULTS_DIR, exist_ok=True)
    folder_groups = group_by_folder(CNF_PATHS)

    load_backup()

    csv_path = get_next_csv_path(os.path.join(RESULTS_DIR, "benchmark.csv"))
    print(f">> Results will be written to: {csv_path}")

    with open(csv_path, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(CSV_HEADER)

        for strat_data in stats.values():
            for folder_data in strat_data.values():
                for data in folder_data.values():
                    for row in data.get("csv_ready_data", []):
                        writer.writerow(row)
        csvfile.flush()

        with concurrent.futures.ProcessPoolExecutor(max_workers=1) as executor:
            for solver_name, (SolverClass, strategies) in SOLVERS.items():
                for strat in strategies:
                    label = f"{solver_name}-{strat.lower()}"
                    print(f"\n=== {label.upper()} ===")

                    strat_stats = stats.setdefault(solver_name, {}).setdefault(strat, {})
                    for folder, test_files in folder_groups.items():
                        folder_stats = strat_stats.setdefault(folder, _new_folder_stats())
                        if folder_stats["completed"]:
                            print(f">> Skipping completed: {label} - {folder}")
                            continue

                        _run_folder(executor, SolverClass, strat, folder, test_files, folder_stats)

                        folder_stats["completed"] = True
                        if folder_stats["times"]:
                            csv_row = _csv_row(label, folder, folder_stats, len(test_files))
                            writer.writerow(csv_row)
                            csvfile.flush()
                            folder_stats["csv_ready_data"].append(csv_row)
                        save_backup()

    return stats


def print_summary(stats):
    for solver_name, strat_data in stats.items():
        for strat, folder_data in strat_data.items():
            label = f"{solver_name}-{strat.lower()}"
            print(f"\n--- Summary for {label.upper()} ---")
            print(f"{'Folder':15} {'AVG(s)':>10} {'MIN(s)':>10} {'MAX(s)':>10} "
                  f"{'AVG(KB)':>10} {'INC':>4} {'FAIL':>5} {'AVG DEC':>8} {'AVG CONF':>9}")

            for folder, data in folder_data.items():
                if data.get("csv_ready_data"):
                    row = data["csv_ready_data"][0]
                    print(f"{folder:15} {row[2]:>10} {row[3]:>10} {row[4]:>10} "
                          f"{row[5]:>10} {row[8]:>4} {row[9]:>5} {row[10]:>8} {row[11]:>9}")
                else:
                    print(f"{folder:15} {'-':>10} {'-':>10} {'-':>10} {'-':>10} "
                          f"{data.get('inconclusive', 0):4d} {data.get('failed', 0):5d} {'-':>8} {'-':>9}")


atexit.register(save_backup)

if __name__ == "__main__":
    try:
        stats = benchmark_all()
        print_summary(stats)
    finally:
        save_backup()
