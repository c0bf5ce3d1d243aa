"""
Project budget with PERT line items

OVERVIEW:
    Eight cost items, each given as (minimum, most likely, maximum), are
    simulated 5000 times. The example prints the statistics of the total, the
    headline figures (95% certainty, chance of meeting the sum of the most
    likely values, contingency) and the items ranked by their share of the
    total variance.

USAGE:
    python example/project_budget.py
"""
import logging

import simrisk
from simrisk.log_cfg import LogConfig
from simrisk.report import collect_run_data

ITEMS = [
    {"a": 10, "m": 15, "b": 20, "id": "earthworks"},
    {"a": 20, "m": 25, "b": 35, "id": "structure"},
    {"a": 8, "m": 12, "b": 18, "id": "roofing"},
    {"a": 5, "m": 8, "b": 12, "id": "electrical"},
    {"a": 6, "m": 10, "b": 15, "id": "plumbing"},
    {"a": 3, "m": 5, "b": 8, "id": "finishes"},
    {"a": 4, "m": 6, "b": 10, "id": "landscaping"},
    {"a": 5, "m": 7, "b": 12, "id": "permits"},
]


def show_progress(percent, completed, total):
    print(f"\rProgress: {percent:5.1f}% ({completed}/{total})", end="")


if __name__ == "__main__":
    LogConfig(enabled=True, console_level=logging.WARNING, file_path=None)

    result = simrisk.run(5000, ITEMS, seed=12345, on_progress=show_progress, contributions=True)
    print()
    snapshot = collect_run_data(result, ITEMS)

    print(f"Elapsed: {result.elapsed:.1f} ms")
    for name, value in snapshot.stats.items():
        print(f"  {name:>16}: {value:10.3f}")

    totals = snapshot.totals
    print(f"Sum min / probable / max / PERT: {totals.sum_min:.2f} / {totals.sum_probable:.2f} / "
          f"{totals.sum_max:.2f} / {totals.sum_pert:.2f}")
    for name, value in snapshot.metrics.items():
        print(f"  {name:>26}: {value:10.3f}")

    print(snapshot.contributions_frame().to_string(index=False))
