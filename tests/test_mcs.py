import math
import warnings

import numpy as np
import pytest

import simrisk.mcs as mcs
from simrisk.errors import InvalidConfigurationError, InvalidRangeError, NaNResultError, RangeToleranceWarning


def test_reference_scenario_is_reproducible(two_items):
    first = mcs.monte_carlo(5000, two_items, seed=12345)
    second = mcs.monte_carlo(5000, two_items, seed=12345)

    assert len(first.results) == 5000
    assert first.results[0] == second.results[0]
    assert first.stats.mean == second.stats.mean
    assert np.array_equal(first.results, second.results)
    assert first.stats == second.stats
    assert not np.isnan(first.results).any()
    assert first.stats.percentile5 < first.stats.percentile50 < first.stats.percentile95


def test_per_item_samples_are_reproducible(sample_items):
    first = mcs.monte_carlo(500, sample_items, seed=7, per_item_samples=True)
    second = mcs.monte_carlo(500, sample_items, seed=7, per_item_samples=True)
    assert first.per_item_samples.shape == (8, 500)
    assert np.array_equal(first.per_item_samples, second.per_item_samples)


def test_matrix_capture_does_not_change_totals(sample_items):
    plain = mcs.monte_carlo(300, sample_items, seed=3)
    captured = mcs.monte_carlo(300, sample_items, seed=3, per_item_samples=True)
    assert plain.per_item_samples is None
    assert np.array_equal(plain.results, captured.results)


def test_totals_are_sums_of_item_samples(sample_items):
    result = mcs.monte_carlo(200, sample_items, seed=11, per_item_samples=True)
    assert np.allclose(result.per_item_samples.sum(axis=0), result.results)


def test_results_stay_within_item_bounds(sample_items):
    result = mcs.monte_carlo(3000, sample_items, seed=12345, per_item_samples=True)
    assert (result.results >= result.sum_min - 1e-10).all()
    assert (result.results <= result.sum_max + 1e-10).all()
    for row, item in zip(result.per_item_samples, sample_items):
        assert row.min() >= item["a"]
        assert row.max() <= item["b"]
    assert result.clamp_events == 0


def test_mean_and_sd_match_pert_theory(two_items):
    result = mcs.monte_carlo(5000, two_items, seed=12345)
    var_1 = 100 * 9 / (36 * 7)
    alpha, beta = 1 + 4 * 5 / 15, 1 + 4 * 10 / 15
    var_2 = 225 * alpha * beta / ((alpha + beta) ** 2 * (alpha + beta + 1))
    assert result.stats.mean == pytest.approx(15 + 155 / 6, abs=0.2)
    assert result.stats.sd == pytest.approx(math.sqrt(var_1 + var_2), rel=0.05)


def test_fully_degenerate_item():
    result = mcs.monte_carlo(250, [{"a": 5, "m": 5, "b": 5}], seed=1)
    assert (result.results == 5).all()
    assert result.stats.sd == 0
    assert result.stats.mode == 5


def test_degenerate_item_mixed_with_uncertain_ones():
    items = [{"a": 5, "m": 5, "b": 5}, {"a": 1, "m": 2, "b": 4}]
    result = mcs.monte_carlo(100, items, seed=1, per_item_samples=True)
    assert (result.per_item_samples[0] == 5).all()
    assert np.allclose(result.results, 5 + result.per_item_samples[1])


def test_unseeded_runs_still_produce_valid_output(two_items):
    result = mcs.monte_carlo(100, two_items)
    assert result.seed is None
    assert len(result.results) == 100


def test_invalid_item_raises_before_sampling(monkeypatch, two_items):
    def fail(*args):
        raise AssertionError("sampled despite invalid input")

    monkeypatch.setattr(mcs, "beta_sample", fail)
    progress = []
    items = two_items + [{"a": 10, "m": 20, "b": 15, "id": "bad"}]
    with pytest.raises(InvalidRangeError) as excinfo:
        mcs.monte_carlo(100, items, seed=1, on_progress=lambda *args: progress.append(args))
    assert excinfo.value.index == 2
    assert excinfo.value.item_id == "bad"
    assert "bad" in str(excinfo.value)
    assert progress == []


@pytest.mark.parametrize("raw", [{"a": "x", "m": 1, "b": 2}, {"a": 1, "m": None, "b": 2}, {"a": 0, "m": float("nan"), "b": 1}, {"a": 0, "m": 1}])
def test_non_numeric_bounds_are_rejected(raw):
    with pytest.raises(InvalidRangeError):
        mcs.make_item(raw, 0)


def test_make_item_accepts_items_strings_and_tuples():
    assert mcs.make_item({"a": "1.5", "m": "2", "b": 3}, 4) == mcs.Item(1.5, 2.0, 3.0, "item_5")
    assert mcs.make_item((1, 2, 3, "x"), 0).id == "x"
    item = mcs.Item(1.0, 2.0, 3.0, "kept")
    assert mcs.make_item(item, 0) == item


@pytest.mark.parametrize("iterations", [0, -5, 2.5, True, "100", None, float("inf")])
def test_invalid_iteration_counts(iterations, two_items):
    with pytest.raises(InvalidConfigurationError):
        mcs.monte_carlo(iterations, two_items, seed=1)


def test_integral_float_iterations_are_accepted(two_items):
    assert len(mcs.monte_carlo(10.0, two_items, seed=1).results) == 10


@pytest.mark.parametrize("items", [[], None, "abc"])
def test_empty_item_sequence(items):
    with pytest.raises(InvalidConfigurationError):
        mcs.monte_carlo(10, items, seed=1)


def test_non_integer_seed_is_rejected(two_items):
    with pytest.raises(InvalidConfigurationError):
        mcs.monte_carlo(10, two_items, seed=1.5)


def test_progress_checkpoints(two_items):
    calls = []
    result = mcs.monte_carlo(5000, two_items, seed=12345, on_progress=lambda *args: calls.append(args))
    assert len(calls) == 50
    assert calls[0] == (pytest.approx(101 / 50), 101, 5000)
    assert calls[-1] == (100.0, 5000, 5000)
    assert [c[1] for c in calls] == sorted(c[1] for c in calls)

    silent = mcs.monte_carlo(5000, two_items, seed=12345)
    assert np.array_equal(result.results, silent.results)


def test_short_runs_report_progress_once(two_items):
    calls = []
    mcs.monte_carlo(10, two_items, seed=1, on_progress=lambda *args: calls.append(args))
    assert calls == [(100.0, 10, 10)]


def test_out_of_range_samples_are_clamped(monkeypatch, caplog):
    monkeypatch.setattr(mcs, "beta_sample", lambda alpha, beta, source: 1.5)
    with caplog.at_level("WARNING", logger="simrisk"):
        result = mcs.monte_carlo(4, [{"a": 0, "m": 1, "b": 2}], seed=1)
    assert (result.results == 2).all()
    assert result.clamp_events == 4
    assert "out of range" in caplog.text


def test_nan_totals_fail(monkeypatch):
    monkeypatch.setattr(mcs, "beta_sample", lambda alpha, beta, source: float("nan"))
    with pytest.raises(NaNResultError) as excinfo:
        mcs.monte_carlo(3, [{"a": 0, "m": 1, "b": 2}], seed=1)
    assert excinfo.value.count == 3


def test_range_check_warns_without_failing():
    with pytest.warns(RangeToleranceWarning):
        mcs._check_results(np.array([1.0, 12.0]), 0.0, 10.0)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        mcs._check_results(np.array([0.0 - 1e-12, 10.0 + 1e-12]), 0.0, 10.0)


def test_item_totals(sample_items):
    totals = mcs.item_totals(mcs.make_items(sample_items))
    assert totals.sum_min == 61
    assert totals.sum_probable == 88
    assert totals.sum_max == 130
    assert totals.sum_pert == pytest.approx(sum((i["a"] + 4 * i["m"] + i["b"]) / 6 for i in sample_items))


def test_elapsed_is_reported(two_items):
    result = mcs.monte_carlo(50, two_items, seed=1)
    assert result.elapsed >= 0
    assert result.iterations == 50
