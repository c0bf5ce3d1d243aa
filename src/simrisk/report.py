"""Summaries of a finished simulation for reporting layers.

The helpers here turn a :class:`simrisk.mcs.SimulationResult` and its items
into JSON-friendly dictionaries and pandas tables. They do not write files or
render anything; presentation code consumes their output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from simrisk.errors import InvalidConfigurationError
from simrisk.mcs import Item, ItemTotals, SimulationResult, item_totals, make_items
from simrisk.stats import final_metrics
from simrisk.tornado import ranked

_NUMERIC_TYPES = (np.integer, np.floating, np.bool_)


def _to_jsonable(value: Any) -> Any:
    """Recursively coerce values into JSON-serializable objects.

    Parameters
    ----------
    value : Any
        Nested result data.

    Returns
    -------
    Any
        Dictionaries, lists and primitives only. NumPy scalars and arrays become
        built-in Python equivalents; objects with an ``as_dict`` method are
        expanded.
    """

    if isinstance(value, dict):
        return {key: _to_jsonable(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(val) for val in value]
    if isinstance(value, _NUMERIC_TYPES):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if hasattr(value, "as_dict"):
        return _to_jsonable(value.as_dict())
    return value


@dataclass
class RunSnapshot:
    """Result figures of one run, grouped for reporting.

    ``contributions`` is ranked by descending share and labelled with item
    ids; it is empty when the run did not decompose its variance.
    """

    items: list[Item]
    totals: ItemTotals
    stats: dict[str, float]
    metrics: dict[str, float]
    contributions: list[dict[str, Any]]
    iterations: int
    elapsed_ms: float
    seed: Optional[int] = None
    clamp_events: int = 0

    def as_dict(self) -> dict[str, Any]:
        """Convert the snapshot into a JSON-friendly dictionary."""

        return _to_jsonable(
            {
                "iterations": self.iterations,
                "seed": self.seed,
                "elapsed_ms": self.elapsed_ms,
                "clamp_events": self.clamp_events,
                "stats": self.stats,
                "totals": {
                    "sum_min": self.totals.sum_min,
                    "sum_probable": self.totals.sum_probable,
                    "sum_max": self.totals.sum_max,
                    "sum_pert": self.totals.sum_pert,
                },
                "metrics": self.metrics,
                "contributions": self.contributions,
            }
        )

    def items_frame(self) -> pd.DataFrame:
        """Input items with their PERT means, one row per item."""
        return pd.DataFrame(
            [{"id": item.id, "a": item.a, "m": item.m, "b": item.b, "pert": item.pert_mean} for item in self.items],
            columns=["id", "a", "m", "b", "pert"],
        )

    def contributions_frame(self) -> pd.DataFrame:
        """Variance contributions, highest first."""
        return pd.DataFrame(self.contributions, columns=["index", "id", "contribution_pct", "covariance", "variance"])


def _item_count(result: SimulationResult) -> Optional[int]:
    if result.per_item_samples is not None:
        return len(result.per_item_samples)
    if result.contributions:
        return len(result.contributions)
    return None


def collect_run_data(result: SimulationResult, items: Iterable[Any], sum_probable: Optional[float] = None) -> RunSnapshot:
    """Build a :class:`RunSnapshot` from a finished run.

    Parameters
    ----------
    result : SimulationResult
        Output of :func:`simrisk.run` or :func:`simrisk.mcs.monte_carlo`.
    items : iterable
        The items the run was made with, in the same order.
    sum_probable : float, optional
        Target total for the final metrics; defaults to the sum of the
        most-likely values.
    """

    items = make_items(items)
    expected = _item_count(result)
    if expected is not None and expected != len(items):
        raise InvalidConfigurationError(f"The run used {expected} items but {len(items)} were given.")
    totals = item_totals(items)
    if sum_probable is None:
        sum_probable = totals.sum_probable

    contribution_rows: list[dict[str, Any]] = []
    for contrib in ranked(result.contributions or []):
        row = contrib.as_dict()
        row["id"] = items[contrib.index].id
        contribution_rows.append(row)

    return RunSnapshot(
        items=items,
        totals=totals,
        stats=result.stats.as_dict(),
        metrics=final_metrics(result.results, sum_probable).as_dict(),
        contributions=contribution_rows,
        iterations=result.iterations,
        elapsed_ms=result.elapsed,
        seed=result.seed,
        clamp_events=result.clamp_events,
    )
