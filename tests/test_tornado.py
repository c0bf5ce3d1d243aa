import math

import numpy as np
import pytest

import simrisk.mcs as mcs
from simrisk.errors import EmptyInputError
from simrisk.tornado import Contribution, contributions, ranked


def test_single_driver_takes_all_variance():
    item = [1.0, 2.0, 3.0, 4.0]
    constant = [0.0, 0.0, 0.0, 0.0]
    result = contributions(item, [item, constant])
    assert result[0] == Contribution(index=0, contribution_pct=pytest.approx(100.0), covariance=pytest.approx(1.25), variance=pytest.approx(1.25))
    assert result[1].contribution_pct == 0
    assert result[1].variance == 0


def test_equal_independent_items_split_evenly():
    first = np.array([1.0, -1.0, 1.0, -1.0])
    second = np.array([1.0, 1.0, -1.0, -1.0])
    result = contributions(first + second, [first, second])
    assert [c.contribution_pct for c in result] == [pytest.approx(50.0), pytest.approx(50.0)]
    assert [c.covariance for c in result] == [pytest.approx(1.0), pytest.approx(1.0)]


def test_zero_total_variance_gives_nan(caplog):
    with caplog.at_level("WARNING", logger="simrisk"):
        result = contributions([2.0, 2.0], [[1.0, 1.0], [1.0, 1.0]])
    assert all(math.isnan(c.contribution_pct) for c in result)
    assert "variance is zero" in caplog.text


def test_input_validation():
    with pytest.raises(EmptyInputError):
        contributions([], [[]])
    with pytest.raises(EmptyInputError):
        contributions([1.0, 2.0], [])
    with pytest.raises(ValueError):
        contributions([1.0, 2.0, 3.0], [[1.0, 2.0]])


def test_simulated_contributions_sum_to_hundred(two_items):
    result = mcs.monte_carlo(5000, two_items, seed=12345, per_item_samples=True)
    contribs = contributions(result.results, result.per_item_samples)
    total = sum(c.contribution_pct for c in contribs)
    assert total == pytest.approx(100.0, abs=2.0)
    # item 2 has the wider range
    assert contribs[1].contribution_pct > contribs[0].contribution_pct
    assert contribs[0].contribution_pct == pytest.approx(100 * 3.5714 / 11.21, abs=5.0)


def test_ranked_orders_descending():
    contribs = [Contribution(0, 10.0, 1.0, 1.0), Contribution(1, 70.0, 7.0, 7.0), Contribution(2, 20.0, 2.0, 2.0)]
    assert [c.index for c in ranked(contribs)] == [1, 2, 0]


def test_constant_total_with_inexact_mean_gives_nan():
    totals = np.full(37, 0.8)
    per_item = [np.full(37, 0.1), np.full(37, 0.7)]
    result = contributions(totals, per_item)
    assert all(math.isnan(c.contribution_pct) for c in result)
    assert [c.variance for c in result] == [0.0, 0.0]
    assert [c.covariance for c in result] == [0.0, 0.0]
