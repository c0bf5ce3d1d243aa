"""Descriptive statistics over a Monte Carlo results series.

Every quantity is computed from one sorted copy of the series plus one set of
central moments; the input is never modified.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Iterable

import numpy as np

from simrisk.errors import EmptyInputError

Z_90 = 1.645
"""z-value of a two-sided 90% normal interval."""


@dataclass(frozen=True)
class Statistics:
    """Scalar summaries of a results series.

    Standard deviation, skewness and kurtosis use the population form (divisor
    ``n``); ``kurtosis`` is the excess kurtosis. ``ic90_half_width`` is the
    half-width of a 90% confidence interval on the mean.
    """

    min: float
    max: float
    mean: float
    median: float
    mode: float
    sd: float
    skewness: float
    kurtosis: float
    percentile5: float
    percentile50: float
    percentile95: float
    ic90_half_width: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def _as_series(values: Iterable[float]) -> np.ndarray:
    array = np.asarray(values, dtype=float).reshape(-1)
    if array.size == 0:
        raise EmptyInputError("The results series is empty.")
    return array


def percentile(sorted_values, p: float) -> float:
    """Linearly interpolated order statistic of an already sorted series.

    The rank is ``p * (n - 1)``; the value is interpolated between the floor
    and ceiling ranks. ``p <= 0`` returns the first element and ``p >= 1`` the
    last.

    Parameters
    ----------
    sorted_values : array_like
        Values in ascending order.
    p : float
        Fraction between 0 and 1.
    """
    values = _as_series(sorted_values)
    n = values.size
    if p <= 0:
        return float(values[0])
    if p >= 1:
        return float(values[n - 1])
    index = p * (n - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return float(values[lower])
    weight = index - lower
    return float(values[lower] * (1 - weight) + values[upper] * weight)


def approximate_mode(values) -> float:
    """Histogram mode: the most frequent value after rounding to 2 decimals.

    Rounding is half-up. Ties keep the bucket that reached the highest count
    first in a single scan of the bucket table (insertion order).
    """
    array = np.asarray(values, dtype=float).reshape(-1)
    if array.size == 0:
        return float("nan")
    keys = np.floor(array * 100 + 0.5) / 100
    counts: dict[float, int] = {}
    for key in keys.tolist():
        counts[key] = counts.get(key, 0) + 1
    mode = float(array.mean())
    best = 0
    for key, count in counts.items():
        if count > best:
            best = count
            mode = key
    return mode


def statistics(results) -> Statistics:
    """Compute the :class:`Statistics` record of ``results``.

    Raises
    ------
    EmptyInputError
        If ``results`` is empty.
    """
    series = _as_series(results)
    n = series.size
    ordered = np.sort(series)

    mean = float(series.mean())
    if n % 2 == 0:
        median = float((ordered[n // 2 - 1] + ordered[n // 2]) / 2)
    else:
        median = float(ordered[n // 2])

    deviations = series - mean
    # identical values can still leave rounding residue in the mean
    constant = ordered[0] == ordered[-1]
    sd = 0.0 if constant else math.sqrt(float(np.mean(deviations ** 2)))
    if n > 1 and not constant:
        standardized = deviations / sd
        skewness = float(np.mean(standardized ** 3))
        kurtosis = float(np.mean(standardized ** 4)) - 3.0
    else:
        skewness = 0.0
        kurtosis = 0.0

    return Statistics(
        min=float(ordered[0]),
        max=float(ordered[-1]),
        mean=mean,
        median=median,
        mode=approximate_mode(series),
        sd=sd,
        skewness=skewness,
        kurtosis=kurtosis,
        percentile5=percentile(ordered, 0.05),
        percentile50=percentile(ordered, 0.50),
        percentile95=percentile(ordered, 0.95),
        ic90_half_width=Z_90 * sd / math.sqrt(n),
    )


@dataclass(frozen=True)
class FinalMetrics:
    """Headline figures reported next to the histogram."""

    certainty95: float
    compliance_probability_pct: float
    contingency: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def probability_at_or_below(results, x: float) -> float:
    """Percentage of ``results`` that are ``<= x``."""
    series = _as_series(results)
    return float(np.count_nonzero(series <= x) / series.size * 100)


def final_metrics(results, sum_probable: float) -> FinalMetrics:
    """95% certainty value, chance of meeting ``sum_probable`` and contingency.

    ``contingency`` is the 95th percentile minus ``sum_probable``.
    """
    series = _as_series(results)
    certainty95 = percentile(np.sort(series), 0.95)
    return FinalMetrics(
        certainty95=certainty95,
        compliance_probability_pct=probability_at_or_below(series, sum_probable),
        contingency=certainty95 - sum_probable,
    )


def histogram(results, bins: int | None = None):
    """Return ``(centers, counts)`` of an equal-width histogram of ``results``.

    Uses ``ceil(sqrt(n))`` bins over ``[min, max]`` unless ``bins`` is given.
    Values on the upper edge fall in the last bin.
    """
    series = _as_series(results)
    if bins is None:
        bins = math.ceil(math.sqrt(series.size))
    if bins < 1:
        raise ValueError("bins must be at least 1.")
    low, high = float(series.min()), float(series.max())
    width = (high - low) / bins
    if width == 0:
        return np.array([low]), np.array([series.size])
    centers = low + (np.arange(bins) + 0.5) * width
    index = np.clip(np.floor((series - low) / width).astype(int), 0, bins - 1)
    counts = np.bincount(index, minlength=bins)
    return centers, counts
