from __future__ import annotations

from typing import Any, Iterable, Optional

from simrisk.log_cfg import logger
from simrisk.mcs import ProgressCallback, RunConfig, SimulationResult, _simulate, make_items
from simrisk.tornado import contributions as variance_contributions


def run(
    iterations: int,
    items: Iterable[Any],
    *,
    seed: Optional[int] = None,
    per_item_samples: bool = False,
    on_progress: Optional[ProgressCallback] = None,
    contributions: bool = False,
) -> SimulationResult:
    """Run one PERT Monte Carlo simulation and optionally decompose its variance.

    Parameters
    ----------
    iterations:
        Positive number of iterations.

    items:
        Non-empty sequence of :class:`simrisk.mcs.Item` objects or raw
        mappings ``{"a": ..., "m": ..., "b": ..., "id": ...}``.

    seed:
        Integer seed for a reproducible run. ``None`` draws a fresh seed.

    per_item_samples:
        Keep the ``(items, iterations)`` sample matrix on the result.

    on_progress:
        Callback ``(percent, completed, total)`` invoked at checkpoints.

    contributions:
        If True, also compute the variance contributions of each item. This
        captures per-item samples for the run even if ``per_item_samples`` is
        False, and drops the matrix again afterwards in that case.

    Returns
    -------
    SimulationResult
        ``result.contributions`` holds a list of
        :class:`simrisk.tornado.Contribution` when requested. It is left as
        ``None`` when the total has zero variance, since every share would be
        undefined.
    """
    config = RunConfig(iterations, seed=seed, per_item_samples=per_item_samples or contributions, on_progress=on_progress)
    result = _simulate(config, make_items(items))

    if contributions:
        if result.stats.sd == 0:
            logger.warning("Skipping variance contributions: the total is constant.")
        else:
            result.contributions = variance_contributions(result.results, result.per_item_samples)
        if not per_item_samples:
            result.per_item_samples = None

    return result
