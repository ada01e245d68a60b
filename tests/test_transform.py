"""Tests for the result transformer's label and value rules."""

from datetime import date

import numpy as np
import pandas as pd
import pytest

from pos_analytics.query import ChartPoint, transform_rows


class TestLabels:
    def test_location_and_product(self) -> None:
        rows = [{"store_id": "downtown", "canonical_name": "Latte", "value": 12.5}]
        assert transform_rows(rows, ["location", "product"]) == [
            ChartPoint(name="downtown - Latte", value=12.5)
        ]

    def test_label_priority_ignores_group_by_order(self) -> None:
        rows = [
            {
                "created_at": "2024-03-10",
                "provider": "Square",
                "store_id": "downtown",
                "fulfillment_method": "pickup",
                "value": 3,
            }
        ]
        [point] = transform_rows(rows, ["date", "provider", "fulfillment_method", "location"])
        assert point.name == "downtown - pickup - Square - 2024-03-10"

    def test_category_name_sits_in_name_slot(self) -> None:
        rows = [{"canonical_category": "Hot Drinks", "store_id": "mall", "value": 1}]
        [point] = transform_rows(rows, ["category", "location"])
        assert point.name == "mall - Hot Drinks"

    def test_no_populated_dimension_falls_back_to_total(self) -> None:
        rows = [{"store_id": None, "canonical_name": float("nan"), "value": 4}]
        assert transform_rows(rows, ["location", "product"])[0].name == "Total"

    def test_empty_group_by_is_always_total(self) -> None:
        rows = [{"store_id": "downtown", "value": 4}]
        assert transform_rows(rows, [])[0].name == "Total"

    @pytest.mark.parametrize(
        ("created_at", "expected"),
        [
            ("2024-03-10", "2024-03-10"),
            (date(2024, 3, 10), "2024-03-10"),
            ("2024-03-10 18:00:00", "2024-03-10 18:00"),
            (pd.Timestamp("2024-03-10 07:00:00"), "2024-03-10 07:00"),
        ],
    )
    def test_time_labels(self, created_at: object, expected: str) -> None:
        [point] = transform_rows([{"created_at": created_at, "value": 1}], ["date"])
        assert point.name == expected


class TestValues:
    @pytest.mark.parametrize("value", [None, "abc", float("nan"), float("inf"), np.nan])
    def test_non_numeric_values_become_zero(self, value: object) -> None:
        [point] = transform_rows([{"store_id": "downtown", "value": value}], ["location"])
        assert point.value == 0.0

    def test_missing_value_becomes_zero(self) -> None:
        [point] = transform_rows([{"store_id": "downtown"}], ["location"])
        assert point.value == 0.0

    def test_numeric_strings_and_numpy_values(self) -> None:
        rows = [
            {"store_id": "a", "value": "12.5"},
            {"store_id": "b", "value": np.int64(7)},
        ]
        assert [p.value for p in transform_rows(rows, ["location"])] == [12.5, 7.0]

    def test_dataframe_input(self) -> None:
        frame = pd.DataFrame(
            {"store_id": ["downtown", "airport"], "value": [28.0, 15.0]},
        )
        points = transform_rows(frame, ["location"])
        assert [(p.name, p.value) for p in points] == [("downtown", 28.0), ("airport", 15.0)]
