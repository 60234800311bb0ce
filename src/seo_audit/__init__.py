"""SEO, accessibility and mobile auditing with historical trend analysis."""

__version__ = "0.1.0"

from seo_audit.auditor import SiteAuditor, audit_website
from seo_audit.config import AuditConfig, settings
from seo_audit.document import DocumentAnalyzer, DocumentModel
from seo_audit.exceptions import (
    AuditError,
    ValidationError,
    UnsafeTargetError,
    FetchError,
)
from seo_audit.fetcher import PageFetcher
from seo_audit.history import HistoryRecorder
from seo_audit.link_checker import LinkChecker
from seo_audit.models import (
    AuditReport,
    HistoricalTracking,
    PerformanceHistoryRecord,
    TimePeriod,
    TrendAnalysis,
)
from seo_audit.repository import (
    AbstractRepository,
    InMemoryRepository,
    SqliteRepository,
    get_repository,
)
from seo_audit.safety import SafetyGate
from seo_audit.trend_worker import TrendWorker
from seo_audit.trends import TrendAnalysisEngine

__all__ = [
    "SiteAuditor",
    "audit_website",
    "AuditConfig",
    "settings",
    "DocumentAnalyzer",
    "DocumentModel",
    "AuditError",
    "ValidationError",
    "UnsafeTargetError",
    "FetchError",
    "PageFetcher",
    "HistoryRecorder",
    "LinkChecker",
    "AuditReport",
    "HistoricalTracking",
    "PerformanceHistoryRecord",
    "TimePeriod",
    "TrendAnalysis",
    "AbstractRepository",
    "InMemoryRepository",
    "SqliteRepository",
    "get_repository",
    "SafetyGate",
    "TrendWorker",
    "TrendAnalysisEngine",
]
