"""
tests/test_metric_store.py

MetricStore against an in-memory SQLite database.

Coverage
--------
- Upload transaction and cascade delete
- Fiscal ordering of quarters and query filters
- Quarter-over-quarter change, including Q1 -> previous Q4 and missing sides
- Trend series window, history and paging
- Cross-quarter comparison defaults and latest-insert-wins
- Configuration overwrite and insight snapshots
"""

from __future__ import annotations

import pytest

from app.domain.metrics import MetricRecordInput
from db.repositories.errors import StorageError
from db.repositories.metric_store import MetricStore


def make_record(
    metric_name: str,
    value: float,
    quarter: str = "Q1",
    year: int = 2024,
    **extra: object,
) -> MetricRecordInput:
    return MetricRecordInput(quarter=quarter, year=year, metric_name=metric_name, metric_value=value, **extra)  # type: ignore[arg-type]


def _seed_nrr(store: MetricStore) -> None:
    store.insert_metrics(
        None,
        [
            make_record("NRR", 108, "Q3", 2023, metric_unit="%", category="Growth"),
            make_record("NRR", 102, "Q4", 2023, metric_unit="%", category="Growth"),
            make_record("NRR", 105, "Q1", 2024, metric_unit="%", category="Growth"),
        ],
    )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestFiles:
    def test_ingest_upload_writes_file_and_rows(self, store: MetricStore) -> None:
        uploaded = store.ingest_upload(
            stored_name="2024/01/abc_metrics.csv",
            original_name="metrics.csv",
            file_type=".CSV",
            size_bytes=120,
            records=[make_record("ARR", 100), make_record("CAC", 2000)],
        )

        assert uploaded.id is not None
        assert uploaded.file_type == "csv"
        assert uploaded.status == "uploaded"
        rows = store.query_metrics()
        assert {row.source_file_id for row in rows} == {uploaded.id}
        assert [file.id for file in store.list_files()] == [uploaded.id]

    def test_failed_upload_leaves_nothing(self, store: MetricStore) -> None:
        bad = make_record("ARR", 100)
        object.__setattr__(bad, "metric_value", None)

        with pytest.raises(StorageError):
            store.ingest_upload(
                stored_name="x.csv",
                original_name="x.csv",
                file_type="csv",
                size_bytes=1,
                records=[make_record("CAC", 1), bad],
            )

        assert store.list_files() == []
        assert store.query_metrics() == []

    def test_delete_file_cascades_to_its_rows_only(self, store: MetricStore) -> None:
        first = store.ingest_upload(
            stored_name="a.csv", original_name="a.csv", file_type="csv", size_bytes=1,
            records=[make_record("ARR", 1), make_record("NRR", 2)],
        )
        store.ingest_upload(
            stored_name="b.csv", original_name="b.csv", file_type="csv", size_bytes=1,
            records=[make_record("ARR", 3)],
        )
        store.insert_metric(None, make_record("Win Rate", 40))

        deleted = store.delete_file(first.id)

        assert deleted is not None
        assert deleted.stored_name == "a.csv"
        assert store.get_file(first.id) is None
        assert sorted(row.metric_value for row in store.query_metrics()) == [3.0, 40.0]

    def test_delete_missing_file(self, store: MetricStore) -> None:
        assert store.delete_file(999) is None


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    def test_available_quarters_fiscal_order(self, store: MetricStore) -> None:
        store.insert_metrics(
            None,
            [
                make_record("ARR", 1, "Q2", 2023),
                make_record("ARR", 1, "Q4", 2023),
                make_record("ARR", 1, "Q1", 2024),
                make_record("CAC", 1, "Q1", 2024),
            ],
        )

        assert [ref.key for ref in store.available_quarters()] == ["2024-Q1", "2023-Q4", "2023-Q2"]

    def test_query_filters(self, store: MetricStore) -> None:
        store.insert_metrics(
            None,
            [
                make_record("ARR", 1, "Q1", 2024, category="Growth"),
                make_record("CAC", 2, "Q1", 2024, category="Financial"),
                make_record("ARR", 3, "Q2", 2024, category="Growth"),
            ],
        )

        assert [row.metric_value for row in store.query_metrics(quarter="q1", year=2024)] == [1.0, 2.0]
        assert [row.metric_value for row in store.query_metrics(category="Growth")] == [3.0, 1.0]
        assert store.query_metrics(year=2030) == []

    def test_query_returns_every_stored_field(self, store: MetricStore) -> None:
        store.insert_metric(
            None,
            make_record(
                "Total ARR",
                6520000,
                "Q1",
                2024,
                metric_unit="USD",
                category="Growth & Retention",
                target_value=7100000,
                status="amber",
            ),
        )

        [row] = store.query_metrics(quarter="Q1", year=2024)

        assert (row.metric_name, row.metric_value, row.metric_unit) == ("Total ARR", 6520000.0, "USD")
        assert (row.category, row.target_value, row.status) == ("Growth & Retention", 7100000.0, "amber")

    def test_metrics_for_quarter_sorted_by_category_then_name(self, store: MetricStore) -> None:
        store.insert_metrics(
            None,
            [
                make_record("NRR", 1, category="Growth"),
                make_record("CAC", 2, category="Financial"),
                make_record("ARR", 3, category="Growth"),
            ],
        )

        assert [row.metric_name for row in store.metrics_for_quarter("Q1", 2024)] == ["CAC", "ARR", "NRR"]

    def test_metrics_for_quarter_rejects_bad_quarter(self, store: MetricStore) -> None:
        with pytest.raises(ValueError):
            store.metrics_for_quarter("Q7", 2024)


# ---------------------------------------------------------------------------
# Quarter over quarter
# ---------------------------------------------------------------------------


class TestQuarterOverQuarter:
    def test_q1_compares_with_previous_q4(self, store: MetricStore) -> None:
        _seed_nrr(store)

        result = store.quarter_over_quarter("nrr", "Q1", 2024)

        assert result.current.metric_value == 105
        assert result.previous.metric_value == 102
        assert result.change == pytest.approx(3.0)
        assert result.change_percent == pytest.approx(2.941, abs=1e-3)

    def test_missing_previous_quarter(self, store: MetricStore) -> None:
        _seed_nrr(store)

        result = store.quarter_over_quarter("NRR", "Q3", 2023)

        assert result.current is not None
        assert result.previous is None
        assert result.change is None
        assert result.change_percent is None

    def test_zero_previous_value_has_no_percentage(self, store: MetricStore) -> None:
        store.insert_metrics(None, [make_record("Churn", 0, "Q4", 2023), make_record("Churn", -5, "Q1", 2024)])

        result = store.quarter_over_quarter("Churn", "Q1", 2024)

        assert result.change == -5
        assert result.change_percent is None

    def test_latest_insert_wins(self, store: MetricStore) -> None:
        _seed_nrr(store)
        store.insert_metric(None, make_record("NRR", 110, "Q1", 2024))

        result = store.quarter_over_quarter("NRR", "Q1", 2024)

        assert result.current.metric_value == 110
        assert result.change == pytest.approx(8.0)

    def test_metric_name_matching_ignores_case_and_punctuation(self, store: MetricStore) -> None:
        store.insert_metrics(
            None,
            [
                make_record("eNPS (Employee Engagement)", 42, "Q4", 2023),
                make_record("eNPS (Employee Engagement)", 50, "Q1", 2024),
            ],
        )

        result = store.quarter_over_quarter("enps employee-engagement", "Q1", 2024)

        assert result.change == 8


# ---------------------------------------------------------------------------
# Trends and history
# ---------------------------------------------------------------------------


class TestTrendsAndHistory:
    def test_trend_series_returns_most_recent_points_oldest_first(self, store: MetricStore) -> None:
        _seed_nrr(store)

        rows = store.trend_series("NRR", 2)

        assert [row.quarter_key for row in rows] == ["2023-Q4", "2024-Q1"]

    def test_trend_series_non_positive_count(self, store: MetricStore) -> None:
        _seed_nrr(store)

        assert store.trend_series("NRR", 0) == []

    def test_metric_history_is_chronological(self, store: MetricStore) -> None:
        store.insert_metrics(
            None,
            [
                make_record("ARR", 3, "Q1", 2024),
                make_record("ARR", 1, "Q2", 2023),
                make_record("ARR", 2, "Q4", 2023),
            ],
        )

        assert [row.metric_value for row in store.metric_history("arr")] == [1.0, 2.0, 3.0]

    def test_historical_paging(self, store: MetricStore) -> None:
        _seed_nrr(store)
        store.insert_metric(None, make_record("ARR", 1, "Q1", 2024))

        rows, total = store.historical(limit=2, offset=1)

        assert total == 4
        assert [(row.metric_name, row.quarter_key) for row in rows] == [("NRR", "2024-Q1"), ("NRR", "2023-Q4")]

    def test_historical_zero_limit_means_unlimited(self, store: MetricStore) -> None:
        _seed_nrr(store)

        rows, total = store.historical(limit=0)

        assert total == 3
        assert len(rows) == 3

    def test_historical_for_one_metric(self, store: MetricStore) -> None:
        _seed_nrr(store)
        store.insert_metric(None, make_record("ARR", 1, "Q1", 2024))

        rows, total = store.historical("NRR")

        assert total == 3
        assert [row.quarter_key for row in rows] == ["2024-Q1", "2023-Q4", "2023-Q3"]


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class TestComparison:
    def test_defaults_to_four_most_recent_quarters(self, store: MetricStore) -> None:
        store.insert_metrics(
            None,
            [
                make_record("ARR", value, quarter, year)
                for value, (quarter, year) in enumerate(
                    [("Q1", 2023), ("Q2", 2023), ("Q3", 2023), ("Q4", 2023), ("Q1", 2024)]
                )
            ],
        )

        comparison = store.compare_across_quarters()

        assert comparison.quarter_keys == ["2023-Q2", "2023-Q3", "2023-Q4", "2024-Q1"]
        assert len(comparison.metrics) == 1
        assert set(comparison.metrics[0].quarters) == set(comparison.quarter_keys)

    def test_explicit_keys_and_latest_insert(self, store: MetricStore) -> None:
        _seed_nrr(store)
        store.insert_metric(None, make_record("NRR", 99, "Q4", 2023))

        comparison = store.compare_across_quarters(["2023-Q4", " 2024-Q1 "])

        nrr = comparison.metrics[0]
        assert comparison.quarter_keys == ["2023-Q4", "2024-Q1"]
        assert nrr.quarters["2023-Q4"].value == 99
        assert nrr.quarters["2024-Q1"].value == 105

    def test_malformed_key(self, store: MetricStore) -> None:
        with pytest.raises(ValueError):
            store.compare_across_quarters(["Q1-2024"])

    def test_empty_store(self, store: MetricStore) -> None:
        comparison = store.compare_across_quarters()

        assert comparison.metrics == []
        assert comparison.quarter_keys == []


# ---------------------------------------------------------------------------
# Configuration and insights
# ---------------------------------------------------------------------------


class TestConfigAndInsights:
    def test_config_overwrite_replaces_document(self, store: MetricStore) -> None:
        first = store.upsert_config("layout", {"columns": 3, "theme": "dark"})
        second = store.upsert_config("layout", {"columns": 2})

        assert second.id == first.id
        assert store.get_config("layout") == {"columns": 2}

    def test_missing_config(self, store: MetricStore) -> None:
        assert store.get_config("nope") is None

    def test_snapshots_are_retained_and_latest_served(self, store: MetricStore) -> None:
        store.save_insight_snapshot("first")
        second = store.save_insight_snapshot(
            "second",
            qoq_data={"NRR": {"change": 3}},
            current_quarter={"quarter": "Q1", "year": 2024},
        )

        latest = store.latest_insight_snapshot()

        assert latest is not None
        assert latest.id == second.id
        assert latest.current_quarter == {"quarter": "Q1", "year": 2024}

    def test_no_snapshot(self, store: MetricStore) -> None:
        assert store.latest_insight_snapshot() is None


def test_closed_store_raises_storage_error(store: MetricStore) -> None:
    store.close()

    with pytest.raises(StorageError):
        store.query_metrics()
