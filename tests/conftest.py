import pytest

import simrisk


@pytest.fixture
def two_items():
    return [{"a": 10, "m": 15, "b": 20}, {"a": 20, "m": 25, "b": 35}]


@pytest.fixture
def sample_items():
    return [
        {"a": 10, "m": 15, "b": 20, "id": "1"},
        {"a": 20, "m": 25, "b": 35, "id": "2"},
        {"a": 8, "m": 12, "b": 18, "id": "3"},
        {"a": 5, "m": 8, "b": 12, "id": "4"},
        {"a": 6, "m": 10, "b": 15, "id": "5"},
        {"a": 3, "m": 5, "b": 8, "id": "6"},
        {"a": 4, "m": 6, "b": 10, "id": "7"},
        {"a": 5, "m": 7, "b": 12, "id": "8"},
    ]


@pytest.fixture
def source():
    return simrisk.XorShift32(12345)
