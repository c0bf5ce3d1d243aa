"""Variance decomposition ("tornado") of a simulated total.

Since a total is the exact sum of its items, ``sum_j cov(total, item_j)``
equals ``var(total)``; each item's share of that sum is its first-order
contribution. Finite samples make the percentages add up to about 100, not
exactly.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

import numpy as np

from simrisk.errors import EmptyInputError
from simrisk.log_cfg import logger


@dataclass(frozen=True)
class Contribution:
    """Contribution of item ``index`` to the variance of the total."""

    index: int
    contribution_pct: float
    covariance: float
    variance: float

    def as_dict(self) -> dict:
        return asdict(self)


def contributions(totals, per_item) -> list[Contribution]:
    """Per-item percentage contribution to the population variance of ``totals``.

    Parameters
    ----------
    totals : array_like
        Length ``n`` series of totals.
    per_item : array_like
        One length ``n`` series per item, index-aligned with ``totals``.

    Returns
    -------
    list[Contribution]
        In item order. When ``totals`` has zero variance every
        ``contribution_pct`` is NaN.

    Raises
    ------
    EmptyInputError
        If ``totals`` or ``per_item`` is empty.
    ValueError
        If a per-item series does not have the length of ``totals``.
    """
    totals = np.asarray(totals, dtype=float).reshape(-1)
    if totals.size == 0:
        raise EmptyInputError("The totals series is empty.")
    matrix = np.asarray(per_item, dtype=float)
    if matrix.size == 0:
        raise EmptyInputError("No per-item samples were given.")
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    if matrix.ndim != 2 or matrix.shape[1] != totals.size:
        raise ValueError(f"Per-item samples of shape {matrix.shape} do not match {totals.size} totals.")

    total_dev = totals - totals.mean()
    item_dev = matrix - matrix.mean(axis=1, keepdims=True)
    # a constant series has zero spread even when its mean is not exact
    if totals.min() == totals.max():
        total_dev = np.zeros_like(total_dev)
    item_dev[matrix.min(axis=1) == matrix.max(axis=1)] = 0.0
    var_total = float(np.mean(total_dev ** 2))
    covariances = item_dev @ total_dev / totals.size
    variances = np.mean(item_dev ** 2, axis=1)

    if var_total == 0:
        logger.warning("Total variance is zero; contributions are undefined.")
        shares = np.full(len(matrix), np.nan)
    else:
        shares = covariances / var_total * 100

    return [
        Contribution(index=j, contribution_pct=float(shares[j]), covariance=float(covariances[j]), variance=float(variances[j]))
        for j in range(len(matrix))
    ]


def ranked(contribs: list[Contribution]) -> list[Contribution]:
    """Contributions sorted by descending ``contribution_pct``."""
    return sorted(contribs, key=lambda c: c.contribution_pct, reverse=True)
