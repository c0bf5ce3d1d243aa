"""
Monte Carlo simulation of a total built from independent PERT line items.

Each iteration draws one PERT sample per item, in item order, from a single
:class:`simrisk.rng.XorShift32` stream and sums them into that iteration's
total. For a fixed seed, item order and iteration count the whole output is
bit-for-bit reproducible.
"""
from __future__ import annotations

import math
import numbers
import time
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

import numpy as np

from simrisk.dist import PertParams, beta_sample, pert_mean, pert_params
from simrisk.errors import InvalidConfigurationError, InvalidRangeError, NaNResultError, RangeToleranceWarning
from simrisk.log_cfg import logger
from simrisk.rng import XorShift32
from simrisk.stats import Statistics, statistics

TOLERANCE = 1e-10

ProgressCallback = Callable[[float, int, int], Any]


@dataclass(frozen=True)
class Item:
    """One uncertain line item: minimum ``a``, most likely ``m``, maximum ``b``."""

    a: float
    m: float
    b: float
    id: str

    @property
    def pert_mean(self) -> float:
        return pert_mean(self.a, self.m, self.b)


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers here")
    return float(value)


def make_item(raw: Any, index: int) -> Item:
    """Validate one raw item and build an :class:`Item`.

    ``raw`` may be an :class:`Item`, a mapping with keys ``a``, ``m``, ``b``
    and optionally ``id``, or a ``(a, m, b[, id])`` sequence. Numeric strings
    are accepted. A missing id becomes ``item_<index + 1>``.

    Raises
    ------
    InvalidRangeError
        If a bound is missing, non-numeric or non-finite, or ``a <= m <= b``
        does not hold.
    """
    if isinstance(raw, Item):
        a, m, b, item_id = raw.a, raw.m, raw.b, raw.id
    elif isinstance(raw, Mapping):
        a, m, b, item_id = raw.get("a"), raw.get("m"), raw.get("b"), raw.get("id")
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)) and len(raw) in (3, 4):
        a, m, b = raw[0], raw[1], raw[2]
        item_id = raw[3] if len(raw) == 4 else None
    else:
        raise InvalidRangeError(f"Item {index + 1}: expected a mapping with a, m, b, got {raw!r}", index=index)

    label = item_id if item_id not in (None, "") else "no id"
    try:
        a, m, b = _to_number(a), _to_number(m), _to_number(b)
    except (TypeError, ValueError):
        raise InvalidRangeError(
            f"Item {index + 1} (id: {label}): a, m, b must be valid numbers",
            index=index, item_id=item_id, triple=(a, m, b),
        ) from None
    if not all(math.isfinite(v) for v in (a, m, b)):
        raise InvalidRangeError(
            f"Item {index + 1} (id: {label}): a, m, b must be finite",
            index=index, item_id=item_id, triple=(a, m, b),
        )
    if a > m or m > b:
        raise InvalidRangeError(
            f"Item {index + 1} (id: {label}): a ({a}) <= m ({m}) <= b ({b}) does not hold",
            index=index, item_id=item_id, triple=(a, m, b),
        )
    if item_id in (None, ""):
        item_id = f"item_{index + 1}"
    return Item(a, m, b, str(item_id))


def make_items(raw_items: Iterable[Any]) -> list[Item]:
    """Validate every raw item; fail on the first offending one."""
    if raw_items is None or isinstance(raw_items, (str, bytes, Mapping)):
        raise InvalidConfigurationError("Items must be a non-empty sequence.")
    items = [make_item(raw, index) for index, raw in enumerate(raw_items)]
    if not items:
        raise InvalidConfigurationError("Items must be a non-empty sequence.")
    return items


@dataclass(frozen=True)
class ItemTotals:
    """Column sums of the input table."""

    sum_min: float
    sum_probable: float
    sum_max: float
    sum_pert: float


def item_totals(items: Iterable[Item]) -> ItemTotals:
    """Sum the minimums, most-likely values, maximums and PERT means of ``items``."""
    items = list(items)
    return ItemTotals(
        sum_min=sum(item.a for item in items),
        sum_probable=sum(item.m for item in items),
        sum_max=sum(item.b for item in items),
        sum_pert=sum(item.pert_mean for item in items),
    )


def _validate_iterations(iterations: Any) -> int:
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Real):
        raise InvalidConfigurationError(f"Iterations must be a positive integer, got {iterations!r}")
    if not isinstance(iterations, numbers.Integral):
        if not math.isfinite(iterations) or not float(iterations).is_integer():
            raise InvalidConfigurationError(f"Iterations must be a positive integer, got {iterations!r}")
    iterations = int(iterations)
    if iterations <= 0:
        raise InvalidConfigurationError(f"Iterations must be a positive integer, got {iterations!r}")
    return iterations


@dataclass(frozen=True)
class RunConfig:
    """Caller-supplied settings of one simulation run.

    Attributes
    ----------
    iterations : int
        Number of iterations. Integral floats are accepted; booleans are not.
    seed : int, optional
        Seed of the random stream. ``None`` gives a non-reproducible run.
    per_item_samples : bool
        Keep the ``(items, iterations)`` sample matrix.
    on_progress : callable, optional
        ``on_progress(percent, completed, total)`` called at checkpoints.
    """

    iterations: int
    seed: Optional[int] = None
    per_item_samples: bool = False
    on_progress: Optional[ProgressCallback] = None

    def __post_init__(self):
        object.__setattr__(self, "iterations", _validate_iterations(self.iterations))
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, numbers.Integral)):
            raise InvalidConfigurationError(f"Seed must be an integer, got {self.seed!r}")
        if self.on_progress is not None and not callable(self.on_progress):
            raise InvalidConfigurationError("on_progress must be callable")

    @property
    def progress_interval(self) -> int:
        """Iterations between two progress checkpoints.

        Short runs only report on the final iteration.
        """
        if self.iterations > 2000:
            return max(100, self.iterations // 100)
        return self.iterations


@dataclass
class SimulationResult:
    """Output of :func:`monte_carlo`.

    ``results`` holds one total per iteration; ``per_item_samples`` row ``j``
    column ``i`` holds item ``j``'s sample at iteration ``i``.
    """

    results: np.ndarray
    stats: Statistics
    elapsed: float
    """Wall-clock duration of the run in milliseconds."""
    per_item_samples: Optional[np.ndarray] = None
    sum_min: float = 0.0
    sum_max: float = 0.0
    clamp_events: int = 0
    seed: Optional[int] = None
    contributions: Optional[list] = None

    @property
    def iterations(self) -> int:
        return len(self.results)


def _check_results(results: np.ndarray, sum_min: float, sum_max: float, stacklevel: int = 2) -> None:
    nan_count = int(np.isnan(results).sum())
    if nan_count:
        raise NaNResultError(f"{nan_count} NaN totals were produced; check the item parameters.", count=nan_count)
    low, high = float(results.min()), float(results.max())
    if low < sum_min - TOLERANCE or high > sum_max + TOLERANCE:
        message = (f"Totals outside the expected range. Min: {low} (expected >= {sum_min}), "
                   f"Max: {high} (expected <= {sum_max})")
        logger.warning(message)
        warnings.warn(message, RangeToleranceWarning, stacklevel=stacklevel)


def monte_carlo(iterations, items, seed=None, per_item_samples=False, on_progress=None) -> SimulationResult:
    """Run a PERT Monte Carlo simulation over ``items``.

    Parameters
    ----------
    iterations : int
        Positive number of iterations.
    items : sequence
        Non-empty sequence of :class:`Item` or raw item mappings (see
        :func:`make_item`). All items are validated before the first draw.
    seed : int, optional
        Seed of the single :class:`~simrisk.rng.XorShift32` stream.
    per_item_samples : bool, optional
        Keep the per-item sample matrix, needed for variance decomposition.
    on_progress : callable, optional
        ``on_progress(percent, completed, total)``; it does not affect the
        numeric output.

    Returns
    -------
    SimulationResult

    Raises
    ------
    InvalidConfigurationError
        Bad iteration count or empty item sequence.
    InvalidRangeError
        An item violates ``a <= m <= b`` or has non-numeric bounds.
    NaNResultError
        A total is NaN after the run.
    """
    config = RunConfig(iterations, seed=seed, per_item_samples=per_item_samples, on_progress=on_progress)
    items = make_items(items)
    return _simulate(config, items)


def _simulate(config: RunConfig, items: list[Item]) -> SimulationResult:
    """Run ``config`` over validated ``items``.

    Call it straight from a public entry point: range warnings are reported
    one frame above that entry point.
    """
    started = time.perf_counter()
    iterations = config.iterations
    totals = item_totals(items)
    params: list[PertParams] = [pert_params(item.a, item.m, item.b) for item in items]
    for item, shape in zip(items, params):
        logger.debug("item %s: %s", item.id, shape)

    source = XorShift32(config.seed)
    logger.debug("Monte Carlo: %d iterations, %d items, seed %s", iterations, len(items), config.seed)

    results = np.empty(iterations, dtype=float)
    samples = np.empty((len(items), iterations), dtype=float) if config.per_item_samples else None
    keep_samples = samples is not None

    on_progress = config.on_progress
    interval = config.progress_interval
    last_report = 0
    clamp_events = 0
    lows = [item.a for item in items]
    highs = [item.b for item in items]

    for i in range(iterations):
        total = 0.0
        for j, shape in enumerate(params):
            if shape.is_constant:
                sample = shape.constant_value
            else:
                low, high = lows[j], highs[j]
                sample = low + (high - low) * beta_sample(shape.alpha, shape.beta, source)
                if sample < low - TOLERANCE or sample > high + TOLERANCE:
                    logger.warning("Sample out of range at iteration %d, item %d: %r (range [%r, %r])",
                                   i, j, sample, low, high)
                    sample = max(low, min(high, sample))
                    clamp_events += 1
            total += sample
            if keep_samples:
                samples[j, i] = sample
        results[i] = total

        if on_progress is not None and (i - last_report >= interval or i == iterations - 1):
            on_progress((i + 1) / iterations * 100, i + 1, iterations)
            last_report = i

    # _check_results <- _simulate <- public entry point <- caller
    _check_results(results, totals.sum_min, totals.sum_max, stacklevel=4)
    stats = statistics(results)
    elapsed = (time.perf_counter() - started) * 1000.0
    logger.info("Monte Carlo finished: %d iterations in %.1f ms", iterations, elapsed)

    return SimulationResult(
        results=results,
        stats=stats,
        elapsed=elapsed,
        per_item_samples=samples,
        sum_min=totals.sum_min,
        sum_max=totals.sum_max,
        clamp_events=clamp_events,
        seed=config.seed,
    )
