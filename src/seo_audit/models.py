"""Data models for audits, performance history and trend analysis."""

import uuid
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union, get_args, get_origin, get_type_hints

from seo_audit.constants import SEO_CATEGORY_WEIGHTS


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CheckStatus(str, Enum):
    """Outcome of a single presence/quality check."""
    GOOD = "good"
    WARNING = "warning"
    ERROR = "error"


class Severity(str, Enum):
    """Severity of an accessibility or mobile finding."""
    CRITICAL = "critical"
    WARNING = "warning"
    GOOD = "good"


class LinkScope(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class TimePeriod(str, Enum):
    """Look-back windows the trend engine analyzes."""
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ONE_YEAR = "1y"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class TrendStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class ChangeType(str, Enum):
    IMPROVEMENT = "improvement"
    REGRESSION = "regression"


class ChangeMagnitude(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


# =============================================================================
# Retrieval
# =============================================================================

@dataclass(frozen=True)
class ResolvedTarget:
    """A hostname the safety gate resolved and approved."""

    hostname: str
    ip: Optional[str] = None  # None when resolution was skipped or failed open
    family: Optional[int] = None


@dataclass(frozen=True)
class FetchResult:
    """Body and timing of a retrieved page."""

    url: str
    final_url: str
    html: str
    elapsed_ms: int
    byte_size: int
    status_code: int = 200
    redirect_chain: list[str] = field(default_factory=list)


# =============================================================================
# Audit report
# =============================================================================

@dataclass(frozen=True)
class MetaTag:
    """Presence and quality of one meta tag."""

    present: bool
    content: str
    status: CheckStatus

    @property
    def length(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class MetaTagAnalysis:
    title: MetaTag
    description: MetaTag
    og_image: MetaTag
    og_title: MetaTag
    og_description: MetaTag
    twitter_card: MetaTag
    twitter_title: MetaTag
    twitter_description: MetaTag


@dataclass
class CategoryScore:
    """Score (0-100) of one category with its findings."""

    score: int
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class SEOScoring:
    """Weighted SEO score and its five sub-scores."""

    overall_score: int
    meta_tags: CategoryScore
    content_structure: CategoryScore
    technical_seo: CategoryScore
    performance: CategoryScore
    user_experience: CategoryScore
    category_weights: dict[str, float] = field(
        default_factory=lambda: dict(SEO_CATEGORY_WEIGHTS)
    )

    @property
    def category_scores(self) -> dict[str, int]:
        return {
            name: getattr(self, name).score
            for name in SEO_CATEGORY_WEIGHTS
        }


@dataclass
class AccessibilityIssue:
    """An accessibility finding, optionally mapped to a WCAG criterion."""

    type: str
    severity: Severity
    description: str
    recommendation: str
    elements: list[str] = field(default_factory=list)
    wcag_level: Optional[str] = None
    wcag_reference: Optional[str] = None


@dataclass
class WCAGCategoryScores:
    perceivable: int = 100
    operable: int = 100
    understandable: int = 100
    robust: int = 100


@dataclass
class AccessibilityScoring:
    overall_score: int
    wcag_compliance_level: Optional[str]  # "AA", "A" or None
    compliance_percentage: int
    category_scores: WCAGCategoryScores
    critical_issues: int
    warning_issues: int
    passed_checks: int
    total_checks: int


@dataclass
class BrokenLink:
    """A link that failed its reachability probe."""

    url: str
    status: Optional[int]  # None only for unreachable links when they are reported
    found_in: str
    scope: LinkScope


@dataclass
class PerformanceMetrics:
    load_time: int  # ms
    content_size: int  # bytes
    http_requests: int
    first_paint: float  # ms, estimated
    status: str  # good/average/poor


@dataclass
class Recommendation:
    priority: str  # high/medium/low
    category: str  # SEO/Accessibility/Performance/User Experience
    title: str
    description: str


@dataclass
class AuditStatistics:
    total_links: int = 0
    working_links: int = 0
    broken_links: int = 0
    internal_links: int = 0
    external_links: int = 0
    total_images: int = 0
    images_with_alt: int = 0
    images_without_alt: int = 0


@dataclass
class ViewportAnalysis:
    present: bool
    content: str
    status: CheckStatus
    width: Optional[str] = None
    initial_scale: Optional[str] = None


@dataclass
class TouchTargetAnalysis:
    score: int
    total_elements: int
    adequate_size: int
    too_small: int
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class TextReadabilityAnalysis:
    score: int
    font_sizes: list[int]
    average_font_size: int
    small_text_elements: int
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class MobilePerformanceAnalysis:
    score: int
    mobile_optimized: bool
    image_optimization: int  # percent of images with responsive/lazy attributes
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class MobileSEOAnalysis:
    score: int
    mobile_friendly_meta: bool
    responsive_design: bool
    amp_support: bool
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class MobileIssue:
    type: str
    severity: Severity
    description: str
    recommendation: str


@dataclass
class MobileAnalysis:
    overall_score: int
    viewport: ViewportAnalysis
    touch_targets: TouchTargetAnalysis
    text_readability: TextReadabilityAnalysis
    mobile_performance: MobilePerformanceAnalysis
    mobile_seo: MobileSEOAnalysis
    detailed_issues: list[MobileIssue] = field(default_factory=list)


@dataclass(frozen=True)
class AuditReport:
    """Complete result of one audit run. Never modified after creation."""

    url: str
    overall_score: int
    meta_tags: MetaTagAnalysis
    accessibility_issues: list[AccessibilityIssue]
    accessibility_scoring: AccessibilityScoring
    seo_scoring: SEOScoring
    mobile_analysis: MobileAnalysis
    broken_links: list[BrokenLink]
    performance_metrics: PerformanceMetrics
    recommendations: list[Recommendation]
    statistics: AuditStatistics
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    analysis_date: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class HistoryScores:
    """Per-category scores extracted from an audit for the history series."""

    overall: int
    seo: Optional[int] = None
    accessibility: Optional[int] = None
    mobile: Optional[int] = None
    performance: Optional[int] = None


def category_scores(report: AuditReport) -> HistoryScores:
    """Derive the history scores from the typed sections of a report.

    Args:
        report: A completed audit report

    Returns:
        HistoryScores with one value per tracked metric
    """
    return HistoryScores(
        overall=report.overall_score,
        seo=report.seo_scoring.overall_score,
        accessibility=report.accessibility_scoring.overall_score,
        mobile=report.mobile_analysis.overall_score,
        performance=report.seo_scoring.performance.score,
    )


# =============================================================================
# Historical tracking
# =============================================================================

@dataclass
class HistoricalTracking:
    """One tracked canonical URL."""

    id: str
    canonical_url: str
    domain: str
    tracking_start_date: datetime = field(default_factory=utc_now)
    last_audit_date: Optional[datetime] = None
    total_audits: int = 0
    is_active: bool = True
    retention_days: int = 365


@dataclass
class ScoreChange:
    previous: int
    current: int
    change: int
    percentage: int


@dataclass
class PerformanceHistoryRecord:
    """One point of a tracked URL's score time series."""

    tracking_id: str
    audit_report_id: str
    overall_score: int
    recorded_at: datetime = field(default_factory=utc_now)
    seo_score: Optional[int] = None
    accessibility_score: Optional[int] = None
    mobile_score: Optional[int] = None
    performance_score: Optional[int] = None
    score_changes: dict[str, ScoreChange] = field(default_factory=dict)
    id: Optional[int] = None

    def metric(self, name: str) -> Optional[int]:
        """Value of a tracked metric ('overall', 'seo', ...) for this record."""
        if name == "overall":
            return self.overall_score
        return getattr(self, f"{name}_score")


# =============================================================================
# Trend analysis
# =============================================================================

@dataclass
class SignificantChange:
    category: str
    type: ChangeType
    magnitude: ChangeMagnitude
    score_change: float
    percentage_change: float
    description: str
    impact: str
    possible_causes: list[str] = field(default_factory=list)


@dataclass
class TrendInsight:
    type: str  # improvement/regression/pattern/anomaly/recommendation
    category: str
    title: str
    description: str
    impact: str  # high/medium/low
    timeframe: str
    confidence: int
    data_support: list[str] = field(default_factory=list)


@dataclass
class HistoricalRecommendation:
    priority: str  # critical/high/medium/low
    category: str  # trend-reversal/optimization/monitoring/investigation
    title: str
    description: str
    expected_impact: str
    effort: str
    timeframe: str  # immediate/short-term/long-term
    based_on: list[str] = field(default_factory=list)


@dataclass
class TrendAnalysis:
    """Current trend conclusion for one (tracking, period) pair."""

    tracking_id: str
    time_period: TimePeriod
    overall_trend: TrendDirection
    trend_strength: TrendStrength
    confidence_score: int
    key_insights: list[TrendInsight] = field(default_factory=list)
    improvements: list[SignificantChange] = field(default_factory=list)
    regressions: list[SignificantChange] = field(default_factory=list)
    recommendations: list[HistoricalRecommendation] = field(default_factory=list)
    analysis_date: datetime = field(default_factory=utc_now)


# =============================================================================
# Serialization
# =============================================================================

def to_dict(obj: Any) -> Any:
    """Convert a model (or nested structure of models) to JSON-ready data."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [to_dict(value) for value in obj]
    if isinstance(obj, dict):
        return {key: to_dict(value) for key, value in obj.items()}
    return obj


def from_dict(cls, data: dict):
    """Rebuild a model from data produced by to_dict().

    Args:
        cls: Target dataclass
        data: Dictionary of field values

    Returns:
        Instance of cls with nested models, enums and datetimes restored
    """
    hints = get_type_hints(cls)
    kwargs = {}
    for f in fields(cls):
        if f.name in data:
            kwargs[f.name] = _convert(hints[f.name], data[f.name])
    return cls(**kwargs)


def _convert(tp, value):
    if value is None:
        return None

    origin = get_origin(tp)
    if origin is Union:
        inner = [arg for arg in get_args(tp) if arg is not type(None)]
        return _convert(inner[0], value)
    if origin is list:
        (item_type,) = get_args(tp)
        return [_convert(item_type, item) for item in value]
    if origin is dict:
        _, item_type = get_args(tp)
        return {key: _convert(item_type, item) for key, item in value.items()}

    if isinstance(tp, type):
        if is_dataclass(tp):
            return from_dict(tp, value)
        if issubclass(tp, Enum):
            return tp(value)
        if tp is datetime and isinstance(value, str):
            return datetime.fromisoformat(value)
    return value
