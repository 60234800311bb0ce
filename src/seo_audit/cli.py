"""Command-line interface for the audit engine."""

import json
import sys

from seo_audit.auditor import SiteAuditor
from seo_audit.config import AuditConfig, settings
from seo_audit.exceptions import AuditError
from seo_audit.history import HistoryRecorder
from seo_audit.logging_config import setup_logging
from seo_audit.models import TimePeriod, to_dict
from seo_audit.repository import get_repository
from seo_audit.trend_worker import TrendWorker
from seo_audit.trends import TrendAnalysisEngine
from seo_audit.urls import normalize_audit_url


def print_report(report):
    """Print an audit report in a formatted way.

    Args:
        report: AuditReport object
    """
    print(f"\n{'=' * 60}")
    print(f"Audit for: {report.url}")
    print(f"{'=' * 60}")
    print(f"\n📊 Overall Score: {report.overall_score}/100")
    print(f"\nDetailed Scores:")
    for name, score in report.seo_scoring.category_scores.items():
        print(f"  • {name.replace('_', ' ').title()}: {score}/100")
    print(f"  • Accessibility: {report.accessibility_scoring.overall_score}/100 "
          f"(WCAG {report.accessibility_scoring.wcag_compliance_level or 'not met'})")
    print(f"  • Mobile: {report.mobile_analysis.overall_score}/100")

    metrics = report.performance_metrics
    print(f"\n⏱  Load time: {metrics.load_time} ms ({metrics.status}), "
          f"{metrics.content_size} bytes, {metrics.http_requests} requests")

    if report.broken_links:
        print(f"\n🔗 Broken links:")
        for link in report.broken_links:
            status = link.status if link.status is not None else "unreachable"
            print(f"  • {link.url} [{status}] in {link.found_in}")

    if report.recommendations:
        print(f"\n💡 Recommendations:")
        for rec in report.recommendations:
            print(f"  • [{rec.priority}] {rec.title}: {rec.description}")

    print(f"\n{'=' * 60}\n")


def print_trend(analysis):
    """Print one trend analysis."""
    print(f"\n{analysis.time_period.value}: {analysis.overall_trend.value} "
          f"({analysis.trend_strength.value}), confidence {analysis.confidence_score}/100")

    for change in analysis.improvements + analysis.regressions:
        print(f"  • {change.description} [{change.magnitude.value}]")
    for insight in analysis.key_insights:
        print(f"  • {insight.title}: {insight.description}")
    for rec in analysis.recommendations:
        print(f"  💡 [{rec.priority}] {rec.title}")


def audit_command(args):
    """Audit a URL, optionally recording it into its score history."""
    config = AuditConfig.from_file(args.config) if args.config else AuditConfig.from_env()
    auditor = SiteAuditor.from_config(config)

    try:
        report = auditor.audit(args.url)
    except AuditError as e:
        print(f"Error: {e.message}")
        sys.exit(1)
    finally:
        auditor.close()

    if args.record:
        repository = get_repository()
        worker = TrendWorker(TrendAnalysisEngine(repository))
        worker.start()
        try:
            repository.save_audit_report(report)
            recorder = HistoryRecorder(repository, dispatcher=worker.submit)
            tracking, _ = recorder.record_audit(report)
            print(f"Recorded audit #{tracking.total_audits} for {tracking.canonical_url}")
        finally:
            worker.stop()
            repository.close()

    if args.json:
        print(json.dumps(to_dict(report), indent=2))
    else:
        print_report(report)


def trends_command(args):
    """Show trend analyses for a tracked URL."""
    try:
        url = normalize_audit_url(args.url)
    except AuditError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    repository = get_repository()
    try:
        tracking = repository.get_tracking_by_url(url)
        if tracking is None:
            print(f"No historical data found for: {url}")
            sys.exit(0)

        engine = TrendAnalysisEngine(repository)
        periods = [TimePeriod(args.period)] if args.period else list(TimePeriod)
        analyses = [engine.generate_trend_analysis(tracking.id, p) for p in periods]
    finally:
        repository.close()

    if args.json:
        print(json.dumps([to_dict(a) for a in analyses], indent=2))
        return

    print(f"\n{'=' * 60}")
    print(f"Trends for: {tracking.canonical_url} ({tracking.total_audits} audits)")
    print(f"{'=' * 60}")
    for analysis in analyses:
        print_trend(analysis)
    print()


def cleanup_command(args):
    """Delete history records older than the retention window."""
    repository = get_repository()
    try:
        deleted = HistoryRecorder(repository).cleanup_expired_data(args.days)
    finally:
        repository.close()
    print(f"Deleted {deleted} history records older than {args.days} days")


def main():
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="SEO Audit - Score a page's SEO, accessibility and mobile-friendliness and track trends"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL,
        help=f"Set logging verbosity (default: {settings.LOG_LEVEL})",
    )
    parser.add_argument(
        "--log-file",
        default=settings.LOG_FILE,
        help="Write logs to file in addition to console",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    audit_parser = subparsers.add_parser("audit", help="Audit a single URL.")
    audit_parser.add_argument("url", help="URL to audit (https:// is assumed if omitted)")
    audit_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full report as JSON",
    )
    audit_parser.add_argument(
        "--record",
        action="store_true",
        help="Store the report and append it to the URL's score history",
    )
    audit_parser.add_argument(
        "--config",
        help="JSON file with audit limits (default: SEO_AUDIT_* environment variables)",
    )
    audit_parser.set_defaults(func=audit_command)

    trends_parser = subparsers.add_parser("trends", help="Show score trends for a tracked URL.")
    trends_parser.add_argument("url", help="Tracked URL")
    trends_parser.add_argument(
        "--period",
        choices=[p.value for p in TimePeriod],
        help="Analyze a single period (default: all)",
    )
    trends_parser.add_argument(
        "--json",
        action="store_true",
        help="Print analyses as JSON",
    )
    trends_parser.set_defaults(func=trends_command)

    cleanup_parser = subparsers.add_parser("cleanup", help="Delete old history records.")
    cleanup_parser.add_argument(
        "--days",
        type=int,
        default=90,
        help="Retention window in days (default: 90)",
    )
    cleanup_parser.set_defaults(func=cleanup_command)

    args = parser.parse_args()

    # Configure logging based on flags
    setup_logging(level=args.log_level, log_file=args.log_file)

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
