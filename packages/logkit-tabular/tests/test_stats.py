"""Tests for logkit_tabular.stats."""

from __future__ import annotations

import math
from datetime import datetime

import pytest

from logkit_tabular.parser import TabularParser
from logkit_tabular.stats import compute_stats, selection_stats, variable_stats

_START = datetime(2024, 1, 15, 10, 0)


class TestComputeStats:
    def test_basic(self, dataset_factory):
        points = dataset_factory(values={"A": [1, 2, 3, 4, 5]}).series["A"]
        stats = compute_stats(points)
        assert stats.min == 1
        assert stats.max == 5
        assert stats.mean == 3
        assert stats.median == 3
        assert stats.std_dev == pytest.approx(math.sqrt(2))
        assert stats.sum == 15
        assert stats.count == 5
        assert stats.range == 4

    def test_nulls_ignored(self, dataset_factory):
        points = dataset_factory(values={"A": [None, 2, None, 4]}).series["A"]
        stats = compute_stats(points)
        assert stats.count == 2
        assert stats.median == 3
        assert stats.mean == 3

    def test_all_null_returns_none(self, dataset_factory):
        points = dataset_factory(values={"A": [None, None]}).series["A"]
        assert compute_stats(points) is None

    def test_empty_returns_none(self):
        assert compute_stats([]) is None

    def test_inclusive_range(self, dataset_factory):
        points = dataset_factory(values={"A": [1, 2, 3, 4, 5]}).series["A"]
        stats = compute_stats(
            points,
            range_start=datetime(2024, 1, 15, 10, 1),
            range_end=datetime(2024, 1, 15, 10, 3),
        )
        assert stats.count == 3
        assert stats.min == 2
        assert stats.max == 4

    def test_range_outside_data(self, dataset_factory):
        points = dataset_factory(values={"A": [1, 2]}).series["A"]
        assert compute_stats(points, range_start=datetime(2025, 1, 1)) is None

    def test_single_value(self, dataset_factory):
        stats = compute_stats(dataset_factory(values={"A": [7]}).series["A"])
        assert stats.std_dev == 0
        assert stats.range == 0

    def test_overflowing_cell_ignored(self):
        ds = TabularParser().parse(
            "ts,A\n2024-01-01 00:00:00,1e400\n2024-01-01 00:01:00,1\n", "overflow"
        )
        assert [p.value for p in ds.series["A"]] == [None, 1.0]
        stats = compute_stats(ds.series["A"])
        assert stats.count == 1
        assert stats.std_dev == 0


class TestVariableStats:
    def test_labelled(self, registry, dataset_factory):
        registry.register(dataset_factory("run", {"deviceData.temp": [1, 2, 3]}))
        stats = variable_stats(registry, "run::deviceData.temp")
        assert stats.key == "run::deviceData.temp"
        assert stats.label == "temp"
        assert stats.color == registry.variable_configs["run::deviceData.temp"].color
        assert stats.mean == 2

    def test_unknown_key(self, registry):
        assert variable_stats(registry, "ghost::A") is None

    def test_range_recorded(self, registry, dataset_factory):
        registry.register(dataset_factory("run", {"A": [1, 2, 3]}))
        end = datetime(2024, 1, 15, 10, 1)
        stats = variable_stats(registry, "run::A", _START, end)
        assert stats.count == 2
        assert stats.range_start == _START
        assert stats.range_end == end


class TestSelectionStats:
    def test_selection_order_and_omission(self, registry, dataset_factory):
        registry.register(dataset_factory("run", {"A": [1, 2], "B": [None, None], "C": [5, 6]}))
        registry.set_enabled("run::C", True)
        registry.set_enabled("run::B", True)
        registry.set_enabled("run::A", True)
        results = selection_stats(registry)
        assert [s.key for s in results] == ["run::C", "run::A"]

    def test_nothing_selected(self, registry, dataset_factory):
        registry.register(dataset_factory("run", {"A": [1]}))
        assert selection_stats(registry) == []
