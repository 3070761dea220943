"""
db/repositories/metric_store.py

Metric Store Access: the only component that talks to the database.

One ``MetricStore`` is created per process, opened at application start and
closed at shutdown. Every public method runs in its own short session taken
from the shared session factory and commits before returning; every
``SQLAlchemyError`` surfaces as ``StorageError``.

Quarters are ordered in fiscal order everywhere (Q1 < Q2 < Q3 < Q4 within a
year). When several rows exist for the same metric and quarter, the most
recently inserted row wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.domain.metrics import (
    MetricComparison,
    MetricRecordInput,
    QoQComparison,
    QuarterComparison,
    QuarterRef,
    QuarterValue,
    normalize_metric_key,
)
from db.base import Base, utcnow
from db.models.dashboard_config import DashboardConfig
from db.models.insight import InsightSnapshot
from db.models.quarterly_metric import QuarterlyMetric
from db.models.uploaded_file import FileStatus, UploadedFile
from db.repositories.errors import StorageError
from db.session import build_session_factory, create_db_engine

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_QUARTERS = 4
DEFAULT_TREND_POINTS = 8

_QUARTER_ORDER = case(
    {"Q1": 1, "Q2": 2, "Q3": 3, "Q4": 4},
    value=QuarterlyMetric.quarter,
    else_=0,
)


class MetricStore:
    """
    Repository over the four dashboard tables.

    Construct with an explicit session factory (tests) or through
    :meth:`from_url` (application startup).
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        engine: Engine | None = None,
        database_url: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine = engine
        self._database_url = database_url

    @classmethod
    def from_url(cls, database_url: str | None = None) -> "MetricStore":
        store = cls(database_url=database_url)
        store.open()
        return store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._session_factory is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            if self._session_factory is None:
                raise StorageError("Metric store is not open.")
            bind = self._session_factory.kw.get("bind")
            if bind is None:
                raise StorageError("Metric store session factory has no engine bound.")
            self._engine = bind
        return self._engine

    def open(self) -> None:
        if self._session_factory is not None:
            return
        try:
            if self._engine is None:
                self._engine = create_db_engine(self._database_url)
            self._session_factory = build_session_factory(self._engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to open metric store: {exc}") from exc

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._session_factory = None
        self._engine = None

    def create_schema(self) -> None:
        """Create all tables that do not exist yet."""

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Unable to create schema: {exc}") from exc

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Yield a session that commits on success and rolls back on failure.
        """

        if self._session_factory is None:
            raise StorageError("Metric store is not open.")

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Metric store operation failed: %s", exc)
            raise StorageError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert_file(
        self,
        *,
        stored_name: str,
        original_name: str,
        file_type: str,
        size_bytes: int | None = None,
    ) -> int:
        with self.session() as session:
            uploaded = _new_file(stored_name, original_name, file_type, size_bytes)
            session.add(uploaded)
            session.flush()
            return uploaded.id

    def insert_metric(self, file_id: int | None, record: MetricRecordInput) -> int:
        """Append one validated metric row. Never updates an existing row."""

        with self.session() as session:
            row = _new_metric(file_id, record)
            session.add(row)
            session.flush()
            return row.id

    def insert_metrics(self, file_id: int | None, records: Sequence[MetricRecordInput]) -> list[int]:
        """Append a batch of validated rows in one transaction."""

        with self.session() as session:
            rows = [_new_metric(file_id, record) for record in records]
            session.add_all(rows)
            session.flush()
            return [row.id for row in rows]

    def ingest_upload(
        self,
        *,
        stored_name: str,
        original_name: str,
        file_type: str,
        size_bytes: int | None,
        records: Sequence[MetricRecordInput],
    ) -> UploadedFile:
        """
        Insert the file row and all of its metric rows in one transaction.

        Either everything is written or nothing is.
        """

        with self.session() as session:
            uploaded = _new_file(stored_name, original_name, file_type, size_bytes)
            session.add(uploaded)
            session.flush()
            session.add_all([_new_metric(uploaded.id, record) for record in records])
            session.flush()
            logger.info(
                "Ingested file id=%s name=%s rows=%d",
                uploaded.id,
                original_name,
                len(records),
            )
            return uploaded

    def delete_file(self, file_id: int) -> UploadedFile | None:
        """
        Remove a file and every metric row it owns. Returns the deleted file
        row, or ``None`` when no such file exists.
        """

        with self.session() as session:
            uploaded = session.get(UploadedFile, file_id)
            if uploaded is None:
                return None
            session.execute(
                delete(QuarterlyMetric)
                .where(QuarterlyMetric.source_file_id == file_id)
                .execution_options(synchronize_session=False)
            )
            session.delete(uploaded)
            session.flush()
            logger.info("Deleted file id=%s name=%s", file_id, uploaded.original_name)
            return uploaded

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def list_files(self) -> list[UploadedFile]:
        stmt = select(UploadedFile).order_by(UploadedFile.uploaded_at.desc(), UploadedFile.id.desc())
        with self.session() as session:
            return list(session.scalars(stmt).all())

    def get_file(self, file_id: int) -> UploadedFile | None:
        with self.session() as session:
            return session.get(UploadedFile, file_id)

    # ------------------------------------------------------------------
    # Metric reads
    # ------------------------------------------------------------------

    def query_metrics(
        self,
        *,
        quarter: str | None = None,
        year: int | None = None,
        category: str | None = None,
    ) -> list[QuarterlyMetric]:
        """
        All rows matching the optional filters, newest quarter first, then by
        metric name.
        """

        stmt = select(QuarterlyMetric)
        if quarter:
            stmt = stmt.where(QuarterlyMetric.quarter == quarter.strip().upper())
        if year is not None:
            stmt = stmt.where(QuarterlyMetric.year == year)
        if category:
            stmt = stmt.where(QuarterlyMetric.category == category)
        stmt = stmt.order_by(*_DESCENDING_FISCAL, QuarterlyMetric.metric_name.asc(), QuarterlyMetric.id.asc())

        with self.session() as session:
            return list(session.scalars(stmt).all())

    def available_quarters(self) -> list[QuarterRef]:
        """Distinct quarters present in storage, most recent first."""

        stmt = (
            select(QuarterlyMetric.year, QuarterlyMetric.quarter)
            .distinct()
            .order_by(QuarterlyMetric.year.desc(), _QUARTER_ORDER.desc())
        )
        with self.session() as session:
            rows = session.execute(stmt).all()
        refs: list[QuarterRef] = []
        for year, quarter in rows:
            try:
                refs.append(QuarterRef.of(quarter, year))
            except ValueError:
                logger.warning("Skipping stored row with invalid quarter %r", quarter)
        return refs

    def compare_across_quarters(self, quarter_keys: Sequence[str] = ()) -> QuarterComparison:
        """
        Group rows of the requested ``"{year}-{quarter}"`` keys by metric.

        With no keys, the four most recent quarters in storage are used.
        Malformed keys raise ``ValueError``.
        """

        refs = [QuarterRef.parse_key(key) for key in quarter_keys if key.strip()]
        if not refs:
            refs = self.available_quarters()[:DEFAULT_COMPARISON_QUARTERS]
        if not refs:
            return QuarterComparison(metrics=[], quarter_keys=[])

        conditions = [
            and_(QuarterlyMetric.year == ref.year, QuarterlyMetric.quarter == ref.quarter)
            for ref in set(refs)
        ]
        stmt = (
            select(QuarterlyMetric)
            .where(or_(*conditions))
            .order_by(
                QuarterlyMetric.metric_name.asc(),
                QuarterlyMetric.year.asc(),
                _QUARTER_ORDER.asc(),
                QuarterlyMetric.created_at.asc(),
                QuarterlyMetric.id.asc(),
            )
        )
        with self.session() as session:
            rows = list(session.scalars(stmt).all())

        grouped: dict[str, MetricComparison] = {}
        present: set[QuarterRef] = set()
        for row in rows:
            comparison = grouped.get(row.metric_name)
            if comparison is None:
                comparison = MetricComparison(
                    metric_name=row.metric_name,
                    metric_unit=row.metric_unit,
                    category=row.category,
                )
                grouped[row.metric_name] = comparison
            # Rows arrive oldest insert first, so the latest insert overwrites.
            comparison.quarters[row.quarter_key] = QuarterValue(
                value=row.metric_value,
                quarter=row.quarter,
                year=row.year,
            )
            present.add(QuarterRef.of(row.quarter, row.year))

        return QuarterComparison(
            metrics=list(grouped.values()),
            quarter_keys=[ref.key for ref in sorted(present)],
        )

    def quarter_over_quarter(self, metric_name: str, quarter: str, year: int) -> QoQComparison:
        """
        Compare a metric's value in ``quarter``/``year`` with the preceding
        fiscal quarter.

        ``change`` is ``None`` when either side is missing. ``change_percent``
        is ``None`` when the previous row is missing or its value is exactly 0.
        """

        current_ref = QuarterRef.of(quarter, year)
        previous_ref = current_ref.previous()
        metric_key = normalize_metric_key(metric_name)

        with self.session() as session:
            current = self._latest_for_quarter(session, metric_key, current_ref)
            previous = self._latest_for_quarter(session, metric_key, previous_ref)

        change: float | None = None
        change_percent: float | None = None
        if current is not None and previous is not None:
            change = current.metric_value - previous.metric_value
            if previous.metric_value != 0:
                change_percent = change / previous.metric_value * 100

        return QoQComparison(
            current=current,
            previous=previous,
            change=change,
            change_percent=change_percent,
        )

    def trend_series(self, metric_name: str, count: int = DEFAULT_TREND_POINTS) -> list[QuarterlyMetric]:
        """
        The ``count`` most recent rows for a metric, returned oldest first.
        """

        if count <= 0:
            return []
        stmt = (
            select(QuarterlyMetric)
            .where(QuarterlyMetric.metric_key == normalize_metric_key(metric_name))
            .order_by(*_DESCENDING_FISCAL, *_NEWEST_INSERT_FIRST)
            .limit(count)
        )
        with self.session() as session:
            rows = list(session.scalars(stmt).all())
        rows.reverse()
        return rows

    def metric_history(self, metric_name: str) -> list[QuarterlyMetric]:
        """Every row for a metric in chronological order."""

        stmt = (
            select(QuarterlyMetric)
            .where(QuarterlyMetric.metric_key == normalize_metric_key(metric_name))
            .order_by(
                QuarterlyMetric.year.asc(),
                _QUARTER_ORDER.asc(),
                QuarterlyMetric.created_at.asc(),
                QuarterlyMetric.id.asc(),
            )
        )
        with self.session() as session:
            return list(session.scalars(stmt).all())

    def historical(
        self,
        metric_name: str | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[QuarterlyMetric], int]:
        """
        Rows in descending fiscal order with SQL-side paging.

        Returns ``(rows, total)`` where ``total`` ignores ``limit``/``offset``.
        A ``limit`` of ``None`` or ``0`` means no limit.
        """

        filters = []
        if metric_name:
            filters.append(QuarterlyMetric.metric_key == normalize_metric_key(metric_name))

        stmt = (
            select(QuarterlyMetric)
            .where(*filters)
            .order_by(*_DESCENDING_FISCAL, QuarterlyMetric.metric_name.asc(), *_NEWEST_INSERT_FIRST)
        )
        if offset > 0:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        count_stmt = select(func.count()).select_from(QuarterlyMetric).where(*filters)

        with self.session() as session:
            rows = list(session.scalars(stmt).all())
            total = int(session.scalar(count_stmt) or 0)
        return rows, total

    def metrics_for_quarter(self, quarter: str, year: int) -> list[QuarterlyMetric]:
        ref = QuarterRef.of(quarter, year)
        stmt = (
            select(QuarterlyMetric)
            .where(QuarterlyMetric.quarter == ref.quarter, QuarterlyMetric.year == ref.year)
            .order_by(
                QuarterlyMetric.category.asc(),
                QuarterlyMetric.metric_name.asc(),
                QuarterlyMetric.id.asc(),
            )
        )
        with self.session() as session:
            return list(session.scalars(stmt).all())

    # ------------------------------------------------------------------
    # Dashboard configuration
    # ------------------------------------------------------------------

    def upsert_config(self, config_name: str, config_data: dict[str, Any]) -> DashboardConfig:
        """
        Store a configuration document. An existing document with the same
        name is overwritten entirely, never merged.
        """

        with self.session() as session:
            config = session.scalar(
                select(DashboardConfig).where(DashboardConfig.config_name == config_name)
            )
            if config is None:
                config = DashboardConfig(config_name=config_name, config_data=dict(config_data))
                session.add(config)
            else:
                config.config_data = dict(config_data)
                config.updated_at = utcnow()
            session.flush()
            session.refresh(config)
            return config

    def get_config(self, config_name: str) -> dict[str, Any] | None:
        with self.session() as session:
            config = session.scalar(
                select(DashboardConfig).where(DashboardConfig.config_name == config_name)
            )
            return dict(config.config_data) if config is not None else None

    # ------------------------------------------------------------------
    # Insight cache
    # ------------------------------------------------------------------

    def save_insight_snapshot(
        self,
        insights_text: str,
        qoq_data: dict[str, Any] | list[Any] | None = None,
        current_quarter: dict[str, Any] | None = None,
    ) -> InsightSnapshot:
        """Always inserts a new snapshot row; older rows are kept."""

        with self.session() as session:
            snapshot = InsightSnapshot(
                insights_text=insights_text,
                qoq_data=qoq_data,
                current_quarter=current_quarter,
            )
            session.add(snapshot)
            session.flush()
            return snapshot

    def latest_insight_snapshot(self) -> InsightSnapshot | None:
        stmt = (
            select(InsightSnapshot)
            .order_by(InsightSnapshot.created_at.desc(), InsightSnapshot.id.desc())
            .limit(1)
        )
        with self.session() as session:
            return session.scalar(stmt)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _latest_for_quarter(session: Session, metric_key: str, ref: QuarterRef) -> QuarterlyMetric | None:
        stmt = (
            select(QuarterlyMetric)
            .where(
                QuarterlyMetric.metric_key == metric_key,
                QuarterlyMetric.quarter == ref.quarter,
                QuarterlyMetric.year == ref.year,
            )
            .order_by(*_NEWEST_INSERT_FIRST)
            .limit(1)
        )
        return session.scalar(stmt)


_DESCENDING_FISCAL = (QuarterlyMetric.year.desc(), _QUARTER_ORDER.desc())
_NEWEST_INSERT_FIRST = (QuarterlyMetric.created_at.desc(), QuarterlyMetric.id.desc())


def _new_file(
    stored_name: str,
    original_name: str,
    file_type: str,
    size_bytes: int | None,
) -> UploadedFile:
    return UploadedFile(
        stored_name=stored_name,
        original_name=original_name,
        file_type=file_type.lower().lstrip("."),
        size_bytes=size_bytes,
        status=FileStatus.UPLOADED,
    )


def _new_metric(file_id: int | None, record: MetricRecordInput) -> QuarterlyMetric:
    return QuarterlyMetric(
        source_file_id=file_id,
        quarter=record.quarter,
        year=record.year,
        metric_name=record.metric_name,
        metric_key=normalize_metric_key(record.metric_name),
        metric_value=record.metric_value,
        metric_unit=record.metric_unit,
        category=record.category,
        target_value=record.target_value,
        status=record.status,
        description=record.description,
    )
