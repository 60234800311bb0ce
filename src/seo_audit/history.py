"""Recording audits into each tracked URL's score history."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from seo_audit.constants import DEFAULT_CLEANUP_DAYS, HISTORY_METRICS
from seo_audit.models import (
    AuditReport,
    HistoricalTracking,
    HistoryScores,
    PerformanceHistoryRecord,
    ScoreChange,
    category_scores,
    utc_now,
)
from seo_audit.repository import AbstractRepository
from seo_audit.utils import round_half_up, round_to

logger = logging.getLogger(__name__)


@dataclass
class TrackingStatistics:
    total_active_trackings: int = 0
    total_historical_audits: int = 0
    average_audits_per_tracking: float = 0.0
    top_domains: list[tuple[str, int]] = field(default_factory=list)
    oldest_tracking: Optional[HistoricalTracking] = None
    most_recent_audit: Optional[HistoricalTracking] = None


def compute_score_changes(
    previous: PerformanceHistoryRecord, current: HistoryScores
) -> dict[str, ScoreChange]:
    """Per-metric change between the previous history point and a new audit.

    Metrics missing on either side are left out.
    """
    changes = {}
    for metric in HISTORY_METRICS:
        before = previous.metric(metric)
        after = getattr(current, metric)
        if before is None or after is None:
            continue
        delta = after - before
        changes[metric] = ScoreChange(
            previous=before,
            current=after,
            change=delta,
            percentage=round_half_up(delta / before * 100) if before > 0 else 0,
        )
    return changes


class HistoryRecorder:
    """Appends audits to the history of their canonical URL.

    After each append, the tracking id is handed to the dispatcher (for
    example TrendWorker.submit) so trend analysis runs outside the caller.
    """

    def __init__(
        self,
        repository: AbstractRepository,
        dispatcher: Optional[Callable[[str], None]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.clock = clock

    def record_audit(
        self, report: AuditReport
    ) -> tuple[HistoricalTracking, PerformanceHistoryRecord]:
        """Add a completed audit to its URL's history.

        Args:
            report: The audit to record

        Returns:
            Tuple of (tracking record after the update, stored history record)
        """
        tracking = self.repository.get_or_create_tracking(report.url)
        previous = self.repository.get_latest_performance_record(tracking.id)
        scores = category_scores(report)

        record = PerformanceHistoryRecord(
            tracking_id=tracking.id,
            audit_report_id=report.id,
            recorded_at=report.analysis_date,
            overall_score=scores.overall,
            seo_score=scores.seo,
            accessibility_score=scores.accessibility,
            mobile_score=scores.mobile,
            performance_score=scores.performance,
            score_changes=compute_score_changes(previous, scores) if previous else {},
        )
        stored = self.repository.append_performance_record(tracking.id, record)
        logger.info(
            f"Recorded audit {report.id} for {tracking.canonical_url} "
            f"(overall {stored.overall_score})"
        )

        if self.dispatcher is not None:
            self.dispatcher(tracking.id)

        return self.repository.get_tracking(tracking.id), stored

    def cleanup_expired_data(self, retention_days: int = DEFAULT_CLEANUP_DAYS) -> int:
        """Delete history points older than the retention window.

        Args:
            retention_days: Age in days beyond which records are removed

        Returns:
            Number of history records deleted
        """
        cutoff = self.clock() - timedelta(days=retention_days)
        deleted = self.repository.delete_performance_history_before(cutoff)
        logger.info(f"Deleted {deleted} history records older than {retention_days} days")
        return deleted

    def tracking_statistics(self) -> TrackingStatistics:
        """Summary of all actively tracked URLs."""
        trackings = self.repository.list_active_trackings()
        if not trackings:
            return TrackingStatistics()

        total_audits = sum(t.total_audits for t in trackings)
        domains = Counter(t.domain for t in trackings)
        audited = [t for t in trackings if t.last_audit_date is not None]

        return TrackingStatistics(
            total_active_trackings=len(trackings),
            total_historical_audits=total_audits,
            average_audits_per_tracking=round_to(total_audits / len(trackings), 1),
            top_domains=domains.most_common(5),
            oldest_tracking=min(trackings, key=lambda t: t.tracking_start_date),
            most_recent_audit=max(audited, key=lambda t: t.last_audit_date) if audited else None,
        )
