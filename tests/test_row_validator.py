from __future__ import annotations

import unittest

from app.domain.errors import InvalidEnumError, InvalidNumberError, InvalidRangeError, MissingFieldError
from app.validators.row_validator import MetricRowValidator


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "quarter": "Q1",
        "year": "2024",
        "metric_name": "Total ARR",
        "metric_value": "6520000",
        "metric_unit": "USD",
        "category": "Growth & Retention",
    }
    row.update(overrides)
    return row


class TestMetricRowValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = MetricRowValidator()

    def test_valid_row_is_coerced(self) -> None:
        result = self.validator.validate(_row(quarter=" q3 ", target_value="7100000", status="AMBER"), 1)

        self.assertTrue(result.ok)
        record = result.record
        assert record is not None
        self.assertEqual(record.quarter, "Q3")
        self.assertEqual(record.year, 2024)
        self.assertEqual(record.metric_value, 6520000.0)
        self.assertEqual(record.target_value, 7100000.0)
        self.assertEqual(record.status, "amber")
        self.assertEqual(result.warnings, ())

    def test_missing_required_fields_are_listed(self) -> None:
        result = self.validator.validate(_row(metric_name="  ", metric_value=None), 4)

        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, MissingFieldError)
        assert isinstance(result.error, MissingFieldError)
        self.assertEqual(result.error.missing_fields, ("metric_name", "metric_value"))
        self.assertEqual(result.error.row_number, 4)

    def test_invalid_quarter(self) -> None:
        result = self.validator.validate(_row(quarter="Q5"), 2)

        self.assertIsInstance(result.error, InvalidEnumError)
        self.assertEqual(
            str(result.error),
            "Row 2: Invalid quarter format: Q5. Must be Q1, Q2, Q3, or Q4",
        )

    def test_year_out_of_range(self) -> None:
        result = self.validator.validate(_row(year=2019), 1)

        self.assertIsInstance(result.error, InvalidRangeError)
        assert result.error is not None
        self.assertEqual(result.error.message, "Invalid year: 2019. Must be between 2020-2030")

    def test_default_year_bounds_are_inclusive(self) -> None:
        for year, accepted in (("2020", True), ("2030", True), ("2031", False)):
            with self.subTest(year=year):
                result = self.validator.validate(_row(year=year), 1)

                self.assertEqual(result.ok, accepted)
                if not accepted:
                    self.assertIsInstance(result.error, InvalidRangeError)

    def test_year_bounds_are_configurable(self) -> None:
        validator = MetricRowValidator(min_year=2015, max_year=2040)

        self.assertTrue(validator.validate(_row(year=2019), 1).ok)
        self.assertTrue(validator.validate(_row(year="2040.0"), 1).ok)

    def test_fractional_year_is_rejected(self) -> None:
        result = self.validator.validate(_row(year="2024.5"), 1)

        self.assertIsInstance(result.error, InvalidRangeError)

    def test_non_numeric_value(self) -> None:
        result = self.validator.validate(_row(metric_value="lots"), 3)

        self.assertIsInstance(result.error, InvalidNumberError)
        assert result.error is not None
        self.assertEqual(result.error.column, "metric_value")

    def test_non_numeric_target(self) -> None:
        result = self.validator.validate(_row(target_value="soon"), 3)

        self.assertIsInstance(result.error, InvalidNumberError)
        assert result.error is not None
        self.assertEqual(result.error.column, "target_value")

    def test_infinite_value_is_rejected(self) -> None:
        result = self.validator.validate(_row(metric_value="inf"), 1)

        self.assertIsInstance(result.error, InvalidNumberError)

    def test_invalid_status_is_dropped_with_warning(self) -> None:
        result = self.validator.validate(_row(status="blue"), 7)

        self.assertTrue(result.ok)
        assert result.record is not None
        self.assertIsNone(result.record.status)
        self.assertEqual(
            result.warnings,
            ("Row 7: Invalid status value: blue. Must be green, amber, or red",),
        )

    def test_blank_optional_fields_become_none(self) -> None:
        result = self.validator.validate(_row(metric_unit=" ", category=float("nan"), target_value=""), 1)

        assert result.record is not None
        self.assertIsNone(result.record.metric_unit)
        self.assertIsNone(result.record.category)
        self.assertIsNone(result.record.target_value)

    def test_negative_values_are_allowed(self) -> None:
        result = self.validator.validate(_row(metric_name="Churn", metric_value="-95000"), 1)

        assert result.record is not None
        self.assertEqual(result.record.metric_value, -95000.0)


if __name__ == "__main__":
    unittest.main()
