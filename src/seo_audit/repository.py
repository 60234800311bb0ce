# src/seo_audit/repository.py
"""Storage for audit reports, tracked URLs, score history and trend analyses.

The audit and trend engines depend only on AbstractRepository. Two
implementations are provided: an in-memory store (tests, one-off runs) and
a SQLite store for durable history.
"""

import copy
import json
import sqlite3
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional
import logging

from seo_audit.config import settings
from seo_audit.constants import DEFAULT_RETENTION_DAYS
from seo_audit.models import (
    AuditReport,
    HistoricalTracking,
    PerformanceHistoryRecord,
    ScoreChange,
    TimePeriod,
    TrendAnalysis,
    from_dict,
    to_dict,
    utc_now,
)
from seo_audit.urls import canonicalize_url, domain_of

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS audit_reports (
    id TEXT PRIMARY KEY,
    url TEXT NOT NULL,
    overall_score INTEGER NOT NULL CHECK (overall_score BETWEEN 0 AND 100),
    analysis_date TEXT NOT NULL,
    data TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS historical_tracking (
    id TEXT PRIMARY KEY,
    canonical_url TEXT NOT NULL UNIQUE,
    domain TEXT NOT NULL,
    tracking_start_date TEXT NOT NULL,
    last_audit_date TEXT,
    total_audits INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    retention_days INTEGER NOT NULL DEFAULT 365
);

CREATE TABLE IF NOT EXISTS performance_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tracking_id TEXT NOT NULL REFERENCES historical_tracking(id),
    audit_report_id TEXT NOT NULL,
    recorded_at TEXT NOT NULL,
    overall_score INTEGER NOT NULL CHECK (overall_score BETWEEN 0 AND 100),
    seo_score INTEGER CHECK (seo_score IS NULL OR seo_score BETWEEN 0 AND 100),
    accessibility_score INTEGER CHECK (accessibility_score IS NULL OR accessibility_score BETWEEN 0 AND 100),
    mobile_score INTEGER CHECK (mobile_score IS NULL OR mobile_score BETWEEN 0 AND 100),
    performance_score INTEGER CHECK (performance_score IS NULL OR performance_score BETWEEN 0 AND 100),
    score_changes TEXT
);

CREATE INDEX IF NOT EXISTS idx_performance_history_tracking_date
    ON performance_history (tracking_id, recorded_at);

CREATE TABLE IF NOT EXISTS trend_analysis (
    tracking_id TEXT NOT NULL REFERENCES historical_tracking(id),
    time_period TEXT NOT NULL,
    overall_trend TEXT NOT NULL,
    trend_strength TEXT NOT NULL,
    confidence_score INTEGER NOT NULL,
    analysis_date TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (tracking_id, time_period)
);
"""


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    """Fixed-width UTC ISO string, so stored timestamps sort as text."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class AbstractRepository(ABC):
    """Interface the audit and trend engines use for persistence."""

    # Audit reports

    @abstractmethod
    def save_audit_report(self, report: AuditReport) -> None:
        """Store a completed report under its id."""
        pass

    @abstractmethod
    def get_audit_report(self, report_id: str) -> Optional[AuditReport]:
        pass

    @abstractmethod
    def list_audit_reports(self, limit: int = 50) -> list[AuditReport]:
        """Most recent reports first."""
        pass

    # Tracking

    @abstractmethod
    def get_or_create_tracking(self, url: str) -> HistoricalTracking:
        """Return the tracking record for a URL's canonical form, creating it on first use."""
        pass

    @abstractmethod
    def get_tracking(self, tracking_id: str) -> Optional[HistoricalTracking]:
        pass

    @abstractmethod
    def get_tracking_by_url(self, url: str) -> Optional[HistoricalTracking]:
        pass

    @abstractmethod
    def list_active_trackings(self) -> list[HistoricalTracking]:
        pass

    @abstractmethod
    def deactivate_tracking(self, tracking_id: str) -> bool:
        """Stop tracking a URL. Its history is kept.

        Returns:
            True if a tracking record was deactivated
        """
        pass

    # Performance history

    @abstractmethod
    def append_performance_record(
        self, tracking_id: str, record: PerformanceHistoryRecord
    ) -> PerformanceHistoryRecord:
        """Append a history record and update the tracking counters in one step.

        Args:
            tracking_id: Tracking record the point belongs to
            record: The new history point

        Returns:
            The stored record, with its id assigned

        Raises:
            KeyError: If the tracking record does not exist
        """
        pass

    @abstractmethod
    def get_performance_history(
        self,
        tracking_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[PerformanceHistoryRecord]:
        """History points within [start, end], oldest first."""
        pass

    @abstractmethod
    def get_latest_performance_record(self, tracking_id: str) -> Optional[PerformanceHistoryRecord]:
        pass

    @abstractmethod
    def delete_performance_history_before(self, cutoff: datetime) -> int:
        """Delete history points recorded before cutoff.

        Returns:
            Number of records deleted
        """
        pass

    # Trend analyses

    @abstractmethod
    def save_trend_analysis(self, analysis: TrendAnalysis) -> None:
        """Store an analysis, replacing any previous one for the same tracking and period."""
        pass

    @abstractmethod
    def get_trend_analysis(
        self, tracking_id: str, period: TimePeriod
    ) -> Optional[TrendAnalysis]:
        pass

    @abstractmethod
    def list_trend_analyses(self, tracking_id: str) -> list[TrendAnalysis]:
        pass

    def close(self) -> None:
        """Release any held resources."""
        pass


def _new_tracking(url: str) -> HistoricalTracking:
    canonical = canonicalize_url(url)
    return HistoricalTracking(
        id=str(uuid.uuid4()),
        canonical_url=canonical,
        domain=domain_of(canonical),
        tracking_start_date=utc_now(),
        retention_days=DEFAULT_RETENTION_DAYS,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryRepository(AbstractRepository):
    """Arena-backed store: records live in lists, looked up through index maps.

    Every read returns a copy, so callers cannot change stored state.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._reports: list[AuditReport] = []
        self._report_index: dict[str, int] = {}
        self._trackings: list[HistoricalTracking] = []
        self._tracking_index: dict[str, int] = {}
        self._tracking_by_url: dict[str, int] = {}
        self._history: list[PerformanceHistoryRecord] = []
        self._next_record_id = 1
        self._trends: dict[tuple[str, str], TrendAnalysis] = {}

    def save_audit_report(self, report: AuditReport) -> None:
        with self._lock:
            if report.id in self._report_index:
                self._reports[self._report_index[report.id]] = copy.deepcopy(report)
            else:
                self._report_index[report.id] = len(self._reports)
                self._reports.append(copy.deepcopy(report))

    def get_audit_report(self, report_id: str) -> Optional[AuditReport]:
        with self._lock:
            index = self._report_index.get(report_id)
            return copy.deepcopy(self._reports[index]) if index is not None else None

    def list_audit_reports(self, limit: int = 50) -> list[AuditReport]:
        with self._lock:
            reports = sorted(self._reports, key=lambda r: r.analysis_date, reverse=True)
            return [copy.deepcopy(r) for r in reports[:limit]]

    def get_or_create_tracking(self, url: str) -> HistoricalTracking:
        canonical = canonicalize_url(url)
        with self._lock:
            index = self._tracking_by_url.get(canonical)
            if index is None:
                tracking = _new_tracking(canonical)
                index = len(self._trackings)
                self._trackings.append(tracking)
                self._tracking_index[tracking.id] = index
                self._tracking_by_url[canonical] = index
                logger.info(f"Started tracking {canonical}")
            return replace(self._trackings[index])

    def get_tracking(self, tracking_id: str) -> Optional[HistoricalTracking]:
        with self._lock:
            index = self._tracking_index.get(tracking_id)
            return replace(self._trackings[index]) if index is not None else None

    def get_tracking_by_url(self, url: str) -> Optional[HistoricalTracking]:
        with self._lock:
            index = self._tracking_by_url.get(canonicalize_url(url))
            return replace(self._trackings[index]) if index is not None else None

    def list_active_trackings(self) -> list[HistoricalTracking]:
        with self._lock:
            return [replace(t) for t in self._trackings if t.is_active]

    def deactivate_tracking(self, tracking_id: str) -> bool:
        with self._lock:
            index = self._tracking_index.get(tracking_id)
            if index is None:
                return False
            self._trackings[index].is_active = False
            return True

    def append_performance_record(
        self, tracking_id: str, record: PerformanceHistoryRecord
    ) -> PerformanceHistoryRecord:
        with self._lock:
            index = self._tracking_index.get(tracking_id)
            if index is None:
                raise KeyError(f"Unknown tracking id: {tracking_id}")

            stored = replace(
                record,
                tracking_id=tracking_id,
                recorded_at=_as_utc(record.recorded_at),
                id=self._next_record_id,
            )
            self._next_record_id += 1
            self._history.append(stored)

            tracking = self._trackings[index]
            tracking.total_audits += 1
            tracking.last_audit_date = stored.recorded_at
            return replace(stored)

    def get_performance_history(
        self,
        tracking_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[PerformanceHistoryRecord]:
        with self._lock:
            records = [
                replace(r) for r in self._history
                if r.tracking_id == tracking_id
                and (start is None or r.recorded_at >= _as_utc(start))
                and (end is None or r.recorded_at <= _as_utc(end))
            ]
        return sorted(records, key=lambda r: (r.recorded_at, r.id))

    def get_latest_performance_record(self, tracking_id: str) -> Optional[PerformanceHistoryRecord]:
        history = self.get_performance_history(tracking_id)
        return history[-1] if history else None

    def delete_performance_history_before(self, cutoff: datetime) -> int:
        cutoff = _as_utc(cutoff)
        with self._lock:
            kept = [r for r in self._history if r.recorded_at >= cutoff]
            removed = len(self._history) - len(kept)
            self._history = kept
        return removed

    def save_trend_analysis(self, analysis: TrendAnalysis) -> None:
        with self._lock:
            self._trends[(analysis.tracking_id, TimePeriod(analysis.time_period).value)] = analysis

    def get_trend_analysis(
        self, tracking_id: str, period: TimePeriod
    ) -> Optional[TrendAnalysis]:
        with self._lock:
            return self._trends.get((tracking_id, TimePeriod(period).value))

    def list_trend_analyses(self, tracking_id: str) -> list[TrendAnalysis]:
        with self._lock:
            return [
                self._trends[(tracking_id, period.value)]
                for period in TimePeriod
                if (tracking_id, period.value) in self._trends
            ]


class SqliteRepository(AbstractRepository):
    """SQLite store. One connection, guarded by a lock, shared with worker threads."""

    def __init__(self, db_url: Optional[str] = None):
        """Initialize the SQLite store.

        Args:
            db_url: Database URL (sqlite:///path/to/db.db or sqlite:///:memory:).
                Defaults to settings.DATABASE_URL.
        """
        self.db_url = db_url or settings.DATABASE_URL
        self.db_path = self.db_url.replace("sqlite:///", "")
        self._lock = threading.RLock()
        self.conn: Optional[sqlite3.Connection] = None
        self.connect()
        self.create_schema()

    def connect(self) -> None:
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        logger.debug(f"Connected to SQLite database: {self.db_path}")

    def close(self) -> None:
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.debug("Closed SQLite connection")

    def create_schema(self) -> None:
        with self._lock, self.conn:
            self.conn.executescript(SCHEMA_SQL)
        logger.debug("Schema verified/created for SQLite")

    # Audit reports

    def save_audit_report(self, report: AuditReport) -> None:
        with self._lock, self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO audit_reports (id, url, overall_score, analysis_date, data) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    report.id,
                    report.url,
                    report.overall_score,
                    _timestamp(report.analysis_date),
                    json.dumps(to_dict(report)),
                ),
            )
        logger.debug(f"Saved audit report {report.id} for {report.url}")

    def get_audit_report(self, report_id: str) -> Optional[AuditReport]:
        with self._lock:
            row = self.conn.execute(
                "SELECT data FROM audit_reports WHERE id = ?", (report_id,)
            ).fetchone()
        return from_dict(AuditReport, json.loads(row["data"])) if row else None

    def list_audit_reports(self, limit: int = 50) -> list[AuditReport]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT data FROM audit_reports ORDER BY analysis_date DESC LIMIT ?", (limit,)
            ).fetchall()
        return [from_dict(AuditReport, json.loads(row["data"])) for row in rows]

    # Tracking

    @staticmethod
    def _row_to_tracking(row: sqlite3.Row) -> HistoricalTracking:
        return HistoricalTracking(
            id=row["id"],
            canonical_url=row["canonical_url"],
            domain=row["domain"],
            tracking_start_date=_parse_timestamp(row["tracking_start_date"]),
            last_audit_date=_parse_timestamp(row["last_audit_date"]),
            total_audits=row["total_audits"],
            is_active=bool(row["is_active"]),
            retention_days=row["retention_days"],
        )

    def get_or_create_tracking(self, url: str) -> HistoricalTracking:
        canonical = canonicalize_url(url)
        with self._lock:
            existing = self.get_tracking_by_url(canonical)
            if existing is not None:
                return existing

            tracking = _new_tracking(canonical)
            with self.conn:
                self.conn.execute(
                    "INSERT INTO historical_tracking (id, canonical_url, domain, tracking_start_date, "
                    "last_audit_date, total_audits, is_active, retention_days) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        tracking.id,
                        tracking.canonical_url,
                        tracking.domain,
                        _timestamp(tracking.tracking_start_date),
                        None,
                        0,
                        1,
                        tracking.retention_days,
                    ),
                )
            logger.info(f"Started tracking {canonical}")
            return tracking

    def get_tracking(self, tracking_id: str) -> Optional[HistoricalTracking]:
        with self._lock:
            row = self.conn.execute(
                "SELECT * FROM historical_tracking WHERE id = ?", (tracking_id,)
            ).fetchone()
        return self._row_to_tracking(row) if row else None

    def get_tracking_by_url(self, url: str) -> Optional[HistoricalTracking]:
        with self._lock:
            row = self.conn.execute(
                "SELECT * FROM historical_tracking WHERE canonical_url = ?",
                (canonicalize_url(url),),
            ).fetchone()
        return self._row_to_tracking(row) if row else None

    def list_active_trackings(self) -> list[HistoricalTracking]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT * FROM historical_tracking WHERE is_active = 1 ORDER BY tracking_start_date"
            ).fetchall()
        return [self._row_to_tracking(row) for row in rows]

    def deactivate_tracking(self, tracking_id: str) -> bool:
        with self._lock, self.conn:
            cursor = self.conn.execute(
                "UPDATE historical_tracking SET is_active = 0 WHERE id = ?", (tracking_id,)
            )
        return cursor.rowcount > 0

    # Performance history

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> PerformanceHistoryRecord:
        changes = json.loads(row["score_changes"]) if row["score_changes"] else {}
        return PerformanceHistoryRecord(
            id=row["id"],
            tracking_id=row["tracking_id"],
            audit_report_id=row["audit_report_id"],
            recorded_at=_parse_timestamp(row["recorded_at"]),
            overall_score=row["overall_score"],
            seo_score=row["seo_score"],
            accessibility_score=row["accessibility_score"],
            mobile_score=row["mobile_score"],
            performance_score=row["performance_score"],
            score_changes={
                metric: from_dict(ScoreChange, change) for metric, change in changes.items()
            },
        )

    def append_performance_record(
        self, tracking_id: str, record: PerformanceHistoryRecord
    ) -> PerformanceHistoryRecord:
        recorded_at = _timestamp(record.recorded_at)
        with self._lock, self.conn:
            # Single transaction: the counter never drifts from the row count
            cursor = self.conn.execute(
                "UPDATE historical_tracking SET total_audits = total_audits + 1, "
                "last_audit_date = ? WHERE id = ?",
                (recorded_at, tracking_id),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Unknown tracking id: {tracking_id}")

            cursor = self.conn.execute(
                "INSERT INTO performance_history (tracking_id, audit_report_id, recorded_at, "
                "overall_score, seo_score, accessibility_score, mobile_score, performance_score, "
                "score_changes) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    tracking_id,
                    record.audit_report_id,
                    recorded_at,
                    record.overall_score,
                    record.seo_score,
                    record.accessibility_score,
                    record.mobile_score,
                    record.performance_score,
                    json.dumps(to_dict(record.score_changes)),
                ),
            )
        return replace(
            record,
            tracking_id=tracking_id,
            recorded_at=_parse_timestamp(recorded_at),
            id=cursor.lastrowid,
        )

    def get_performance_history(
        self,
        tracking_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[PerformanceHistoryRecord]:
        query = "SELECT * FROM performance_history WHERE tracking_id = ?"
        params: list = [tracking_id]
        if start is not None:
            query += " AND recorded_at >= ?"
            params.append(_timestamp(start))
        if end is not None:
            query += " AND recorded_at <= ?"
            params.append(_timestamp(end))
        query += " ORDER BY recorded_at ASC, id ASC"

        with self._lock:
            rows = self.conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get_latest_performance_record(self, tracking_id: str) -> Optional[PerformanceHistoryRecord]:
        with self._lock:
            row = self.conn.execute(
                "SELECT * FROM performance_history WHERE tracking_id = ? "
                "ORDER BY recorded_at DESC, id DESC LIMIT 1",
                (tracking_id,),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def delete_performance_history_before(self, cutoff: datetime) -> int:
        with self._lock, self.conn:
            cursor = self.conn.execute(
                "DELETE FROM performance_history WHERE recorded_at < ?", (_timestamp(cutoff),)
            )
        return cursor.rowcount

    # Trend analyses

    def save_trend_analysis(self, analysis: TrendAnalysis) -> None:
        with self._lock, self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO trend_analysis (tracking_id, time_period, overall_trend, "
                "trend_strength, confidence_score, analysis_date, data) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    analysis.tracking_id,
                    TimePeriod(analysis.time_period).value,
                    analysis.overall_trend.value,
                    analysis.trend_strength.value,
                    analysis.confidence_score,
                    _timestamp(analysis.analysis_date),
                    json.dumps(to_dict(analysis)),
                ),
            )

    def get_trend_analysis(
        self, tracking_id: str, period: TimePeriod
    ) -> Optional[TrendAnalysis]:
        with self._lock:
            row = self.conn.execute(
                "SELECT data FROM trend_analysis WHERE tracking_id = ? AND time_period = ?",
                (tracking_id, TimePeriod(period).value),
            ).fetchone()
        return from_dict(TrendAnalysis, json.loads(row["data"])) if row else None

    def list_trend_analyses(self, tracking_id: str) -> list[TrendAnalysis]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT data FROM trend_analysis WHERE tracking_id = ?", (tracking_id,)
            ).fetchall()
        analyses = [from_dict(TrendAnalysis, json.loads(row["data"])) for row in rows]
        order = {period: position for position, period in enumerate(TimePeriod)}
        return sorted(analyses, key=lambda a: order[a.time_period])


def get_repository(
    backend: Optional[str] = None,
    **kwargs,
) -> AbstractRepository:
    """Factory function to create the configured repository.

    Args:
        backend: Storage backend ('memory' or 'sqlite'). Defaults to settings.DB_BACKEND.
        **kwargs: Additional arguments passed to the repository constructor.

    Returns:
        An AbstractRepository implementation

    Raises:
        ValueError: If an unknown backend is specified.
    """
    backend = backend or settings.DB_BACKEND

    if backend == "memory":
        logger.info("Using in-memory repository")
        return InMemoryRepository(**kwargs)
    elif backend == "sqlite":
        logger.info("Using SQLite repository")
        return SqliteRepository(**kwargs)
    else:
        raise ValueError(
            f"Unknown repository backend: '{backend}'. "
            "Supported backends: 'memory', 'sqlite'"
        )
