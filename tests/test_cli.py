import json
from unittest.mock import Mock, patch

import pytest

from conftest import make_report
from seo_audit import cli
from seo_audit.exceptions import UnsafeTargetError
from seo_audit.repository import InMemoryRepository


@pytest.fixture
def repository():
    repo = InMemoryRepository()
    # The commands close their repository; keep this one usable for assertions
    repo.close = Mock()
    return repo


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, repository):
    monkeypatch.setattr(cli, "setup_logging", Mock())
    monkeypatch.setattr(cli, "get_repository", Mock(return_value=repository))


@pytest.fixture
def auditor(monkeypatch):
    auditor = Mock()
    auditor.audit.return_value = make_report()
    monkeypatch.setattr(cli.SiteAuditor, "from_config", Mock(return_value=auditor))
    return auditor


def run(monkeypatch, *argv):
    monkeypatch.setattr("sys.argv", ["seo-audit", *argv])
    cli.main()


class TestAuditCommand:

    def test_prints_report(self, monkeypatch, capsys, auditor):
        run(monkeypatch, "audit", "acme.example")

        out = capsys.readouterr().out
        assert "Overall Score: 100/100" in out
        auditor.close.assert_called_once()

    def test_json_output(self, monkeypatch, capsys, auditor):
        run(monkeypatch, "audit", "acme.example", "--json")

        data = json.loads(capsys.readouterr().out)
        assert data["overall_score"] == 100
        assert data["url"] == "https://acme.example"

    def test_record_appends_history(self, monkeypatch, capsys, auditor, repository):
        run(monkeypatch, "audit", "acme.example", "--record")

        tracking = repository.get_tracking_by_url("https://acme.example")
        assert tracking.total_audits == 1
        assert repository.get_audit_report(auditor.audit.return_value.id) is not None
        assert len(repository.list_trend_analyses(tracking.id)) == 4
        assert "Recorded audit #1 for https://acme.example" in capsys.readouterr().out

    def test_audit_error_exits_nonzero(self, monkeypatch, capsys, auditor):
        auditor.audit.side_effect = UnsafeTargetError("Blocked private address 10.0.0.1")

        with pytest.raises(SystemExit) as exc:
            run(monkeypatch, "audit", "http://10.0.0.1/")

        assert exc.value.code == 1
        assert "Error: Blocked private address 10.0.0.1" in capsys.readouterr().out


class TestTrendsCommand:

    def test_untracked_url(self, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc:
            run(monkeypatch, "trends", "acme.example")

        assert exc.value.code == 0
        assert "No historical data found for: https://acme.example" in capsys.readouterr().out

    def test_single_period(self, monkeypatch, capsys, repository):
        repository.get_or_create_tracking("https://acme.example")

        run(monkeypatch, "trends", "acme.example", "--period", "7d", "--json")

        (analysis,) = json.loads(capsys.readouterr().out)
        assert analysis["time_period"] == "7d"
        assert analysis["confidence_score"] == 10


class TestCleanupCommand:

    def test_reports_deleted_count(self, monkeypatch, capsys):
        run(monkeypatch, "cleanup", "--days", "30")

        assert "Deleted 0 history records older than 30 days" in capsys.readouterr().out
