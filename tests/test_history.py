from datetime import timedelta
from unittest.mock import Mock

import pytest

from conftest import BARE_PAGE_HTML, NOW, make_record, make_report
from seo_audit.history import HistoryRecorder, TrackingStatistics, compute_score_changes
from seo_audit.models import HistoryScores, ScoreChange
from seo_audit.repository import InMemoryRepository


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def dispatcher():
    return Mock()


@pytest.fixture
def recorder(repository, dispatcher):
    return HistoryRecorder(repository, dispatcher=dispatcher, clock=lambda: NOW)


class TestComputeScoreChanges:

    def test_changes_per_metric(self):
        previous = make_record("t", 1, 70, seo=80)
        current = HistoryScores(overall=77, seo=76, accessibility=90)

        changes = compute_score_changes(previous, current)

        assert changes == {
            "overall": ScoreChange(previous=70, current=77, change=7, percentage=10),
            "seo": ScoreChange(previous=80, current=76, change=-4, percentage=-5),
        }

    def test_zero_previous_score(self):
        changes = compute_score_changes(make_record("t", 1, 0), HistoryScores(overall=40))

        assert changes["overall"].change == 40
        assert changes["overall"].percentage == 0


class TestRecordAudit:
    """Tests for appending audits to a URL's history."""

    def test_first_audit_starts_tracking(self, recorder, repository, dispatcher):
        report = make_report(analysis_date=NOW)

        tracking, record = recorder.record_audit(report)

        assert tracking.canonical_url == "https://acme.example"
        assert tracking.total_audits == 1
        assert tracking.last_audit_date == NOW
        assert record.audit_report_id == report.id
        assert record.overall_score == report.overall_score
        assert record.performance_score == report.seo_scoring.performance.score
        assert record.score_changes == {}
        dispatcher.assert_called_once_with(tracking.id)

    def test_second_audit_records_changes(self, recorder):
        recorder.record_audit(make_report(analysis_date=NOW - timedelta(days=1)))
        bare = make_report(BARE_PAGE_HTML, analysis_date=NOW)

        tracking, record = recorder.record_audit(bare)

        overall = record.score_changes["overall"]
        assert tracking.total_audits == 2
        assert overall.previous == 100
        assert overall.current == bare.overall_score
        assert overall.change == bare.overall_score - 100
        assert set(record.score_changes) == {"overall", "seo", "accessibility", "mobile", "performance"}

    def test_equivalent_urls_share_history(self, recorder, repository):
        first, _ = recorder.record_audit(make_report(url="https://acme.example/"))
        second, _ = recorder.record_audit(make_report(url="https://ACME.example/#main"))

        assert first.id == second.id
        assert len(repository.get_performance_history(first.id)) == 2

    def test_works_without_dispatcher(self, repository):
        tracking, _ = HistoryRecorder(repository).record_audit(make_report())

        assert tracking.total_audits == 1


class TestCleanup:

    def test_deletes_records_past_retention(self, recorder, repository):
        tracking = repository.get_or_create_tracking("https://acme.example/")
        for days_ago in (120, 91, 30):
            repository.append_performance_record(tracking.id, make_record(tracking.id, days_ago, 70))

        assert recorder.cleanup_expired_data() == 2
        assert len(repository.get_performance_history(tracking.id)) == 1

    def test_custom_retention(self, recorder, repository):
        tracking = repository.get_or_create_tracking("https://acme.example/")
        for days_ago in (20, 5):
            repository.append_performance_record(tracking.id, make_record(tracking.id, days_ago, 70))

        assert recorder.cleanup_expired_data(retention_days=7) == 1


class TestTrackingStatistics:

    def test_empty(self, recorder):
        assert recorder.tracking_statistics() == TrackingStatistics()

    def test_summary(self, recorder, repository):
        shop = repository.get_or_create_tracking("https://acme.example/shop")
        blog = repository.get_or_create_tracking("https://acme.example/blog")
        other = repository.get_or_create_tracking("https://other.example/")
        for days_ago in (3, 2, 1):
            repository.append_performance_record(shop.id, make_record(shop.id, days_ago, 70))
        repository.append_performance_record(other.id, make_record(other.id, 0, 60))

        stats = recorder.tracking_statistics()

        assert stats.total_active_trackings == 3
        assert stats.total_historical_audits == 4
        assert stats.average_audits_per_tracking == 1.3
        assert stats.top_domains == [("acme.example", 2), ("other.example", 1)]
        assert stats.oldest_tracking.id == shop.id
        assert stats.most_recent_audit.id == other.id
        assert blog.total_audits == 0
