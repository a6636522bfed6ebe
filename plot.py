import os
import sys

import pandas as pd
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import FancyArrowPatch
from matplotlib.ticker import LogLocator, ScalarFormatter


def _log_axis(ax, numticks=12):
    ax.set_yscale('log')
    ax.yaxis.set_major_locator(LogLocator(base=10, numticks=numticks))
    ax.yaxis.set_minor_locator(LogLocator(base=10, subs=np.arange(2, 10) * 0.1, numticks=numticks))
    ax.yaxis.set_major_formatter(ScalarFormatter())
    ax.yaxis.grid(True, which='both', linestyle='--', alpha=0.3)


def _range_bars(data, column, low, high, color, ylabel, title, path):
    data = data.sort_values(column)
    fig, ax = plt.subplots(figsize=(12, 7))

    # clip so that a value of 0 still renders on a log axis
    values = data[column].clip(lower=1e-6)
    yerr = [
        (values - data[low].clip(lower=1e-6)).clip(lower=0),
        (data[high].clip(lower=1e-6) - values).clip(lower=0),
    ]

    ax.bar(data.index, values, color=color, label=f"Average {ylabel}")
    ax.errorbar(data.index, values, yerr=yerr, fmt='none', ecolor='black', capsize=5, linewidth=1,
                label="Min/Max Range")

    ax.set_ylabel(ylabel)
    ax.set_title(title)
    _log_axis(ax)

    plt.xticks(rotation=45, ha='right')
    plt.tight_layout()
    ax.legend(loc='upper left')
    fig.savefig(path)
    plt.close(fig)


def plot_results(csv_path, out_dir="results"):
    '''
    Draw the benchmark charts for a CSV written by benchmark.py.

    Returns:
        list of the image paths written
    '''
    df = pd.read_csv(csv_path)

    numeric = ["avg_time", "min_time", "max_time", "avg_mem", "min_mem", "max_mem", "decisions", "conflicts"]
    for column in numeric:
        df[column] = pd.to_numeric(df[column], errors='coerce')

    os.makedirs(out_dir, exist_ok=True)
    written = []

    solver_time_data = df.groupby("solver").agg({"avg_time": "mean", "min_time": "min", "max_time": "max"})
    path = os.path.join(out_dir, "avg_time_log.png")
    _range_bars(solver_time_data, "avg_time", "min_time", "max_time", "skyblue",
                "Time (s)", "Average Execution Time per Solver", path)
    written.append(path)

    solver_mem_data = df.groupby("solver").agg({"avg_mem": "mean", "min_mem": "min", "max_mem": "max"})
    path = os.path.join(out_dir, "avg_memory_log.png")
    _range_bars(solver_mem_data, "avg_mem", "min_mem", "max_mem", "salmon",
                "Memory (KB)", "Average Memory Usage per Solver", path)
    written.append(path)

    for counter, color in (("decisions", "lightgreen"), ("conflicts", "orchid")):
        counter_data = df.groupby("solver")[counter].agg(["mean", "min", "max"])
        path = os.path.join(out_dir, f"avg_{counter}_log.png")
        _range_bars(counter_data, "mean", "min", "max", color,
                    counter.capitalize(), f"Average Number of {counter.capitalize()} per Solver", path)
        written.append(path)

    for folder in df["folder"].unique():
        sub_df = df[df["folder"] == folder].set_index("solver")
        path = os.path.join(out_dir, f"avg_time_{folder}_log.png")
        _range_bars(sub_df, "avg_time", "min_time", "max_time", "mediumseagreen",
                    "Time (s)", f"Avg Time - Folder: {folder}", path)
        written.append(path)

    return written


def _graph_layout(snapshot):
    '''
    Place vertices on a grid: one row per decision level (level 0 on top) and
    one column per position in the snapshot, which follows the trail order.
    The conflict vertex goes one column past the last assignment.
    '''
    positions = {}
    column = 0
    for view in snapshot.vertices:
        if view.is_conflict:
            continue
        positions[view.symbol] = (column, -view.level)
        column += 1
    for view in snapshot.vertices:
        if view.is_conflict:
            positions[None] = (column, -view.level)
    return positions


def plot_implication_graph(snapshot, path, title=None):
    '''
    Render an implication graph snapshot to an image file.

    Decision and conflict vertices are drawn as ellipses, implied vertices as
    boxes. Vertex identity is the variable symbol, the conflict vertex is None.
    '''
    positions = _graph_layout(snapshot)
    width = max(6, 1.4 * (len(positions) + 1))
    levels = {view.level for view in snapshot.vertices} or {0}
    height = max(3, 1.2 * (max(levels) + 2))

    fig, ax = plt.subplots(figsize=(width, height))

    for view in snapshot.vertices:
        x, y = positions[view.symbol]
        if view.is_conflict:
            style, color = "round,pad=0.4", "tomato"
        elif view.is_decision:
            style, color = "round,pad=0.4", "gold"
        else:
            style, color = "square,pad=0.3", "lightsteelblue"
        ax.text(x, y, view.label, ha="center", va="center", fontsize=10, zorder=3,
                bbox=dict(boxstyle=style, facecolor=color, edgecolor="black"))

    for source, target in snapshot.edges:
        arrow = FancyArrowPatch(positions[source], positions[target], arrowstyle="-|>", mutation_scale=12,
                                shrinkA=18, shrinkB=18, color="dimgray", connectionstyle="arc3,rad=0.15",
                                zorder=2)
        ax.add_patch(arrow)

    xs = np.array([x for x, _ in positions.values()] or [0])
    ys = np.array([y for _, y in positions.values()] or [0])
    ax.set_xlim(xs.min() - 1, xs.max() + 1)
    ax.set_ylim(ys.min() - 1, ys.max() + 1)
    ax.set_yticks(np.arange(ys.min(), ys.max() + 1))
    ax.set_yticklabels([f"level {-int(y)}" for y in np.arange(ys.min(), ys.max() + 1)])
    ax.set_xticks([])
    for side in ("top", "right", "bottom"):
        ax.spines[side].set_visible(False)
    if title:
        ax.set_title(title)

    plt.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


if __name__ == "__main__":
    plot_results(sys.argv[1] if len(sys.argv) > 1 else "results/benchmark.csv")
