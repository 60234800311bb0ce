# src/seo_audit/constants.py
"""Centralized constants for the audit and trend engines.

Scores are compared across audits and across sites, so the weights,
penalties and thresholds below are fixed. For tunable network limits,
see config.py and AuditConfig.
"""

# =============================================================================
# Fetching
# =============================================================================

DEFAULT_USER_AGENT = "SEO-Audit-Tool/1.0"

# Total time budget for the root page fetch (seconds)
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0

# Redirect hops allowed before the fetch is abandoned
DEFAULT_MAX_REDIRECTS = 3

# Bodies larger than this are not analyzed (bytes)
DEFAULT_MAX_CONTENT_BYTES = 10 * 1024 * 1024

# Chunk size used while streaming the page body
FETCH_CHUNK_SIZE = 64 * 1024


# =============================================================================
# Link checking
# =============================================================================

DEFAULT_LINK_TIMEOUT_SECONDS = 5.0
DEFAULT_LINK_MAX_REDIRECTS = 2

# Upper bound on distinct links probed per audit
DEFAULT_MAX_LINKS_TO_CHECK = 50

# Statuses that mean "HEAD not supported, retry with GET"
HEAD_FALLBACK_STATUSES = (405, 501)

SKIPPED_LINK_PREFIXES = ("#", "mailto:", "tel:")

# Elements that give a link its reported context, nearest first
LINK_CONTEXT_LANDMARKS = ("nav", "header", "footer", "main", "article", "section")
DEFAULT_LINK_CONTEXT = "page content"


# =============================================================================
# Meta tags
# =============================================================================

TITLE_MIN_LENGTH = 30
TITLE_MAX_LENGTH = 60
DESCRIPTION_MIN_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 160


# =============================================================================
# SEO scoring
# =============================================================================

SEO_CATEGORY_WEIGHTS = {
    "meta_tags": 0.30,
    "content_structure": 0.25,
    "technical_seo": 0.20,
    "performance": 0.15,
    "user_experience": 0.10,
}

# Meta tags sub-score
PENALTY_MISSING_TITLE = 25
PENALTY_TITLE_LENGTH = 10
PENALTY_MISSING_DESCRIPTION = 20
PENALTY_DESCRIPTION_TOO_LONG = 8
PENALTY_DESCRIPTION_TOO_SHORT = 5
PENALTY_MISSING_OG_TITLE = 10
PENALTY_MISSING_OG_DESCRIPTION = 10
PENALTY_MISSING_OG_IMAGE = 15
PENALTY_MISSING_TWITTER_CARD = 10

# Content structure sub-score
PENALTY_NO_H1 = 20
PENALTY_MULTIPLE_H1 = 15
PENALTY_HEADING_SKIP = 5
PENALTY_MISSING_MAIN = 10
PENALTY_MISSING_HEADER = 8
PENALTY_MISSING_NAV = 5
PENALTY_MISSING_FOOTER = 5
PENALTY_THIN_CONTENT = 15
THIN_CONTENT_WORDS = 300
PENALTY_PER_IMAGE_WITHOUT_ALT = 5
MAX_IMAGE_ALT_PENALTY = 20

# Technical SEO sub-score
PENALTY_MISSING_CANONICAL = 10
PENALTY_MISSING_ROBOTS_META = 5
PENALTY_PER_BROKEN_LINK = 5
MAX_BROKEN_LINK_PENALTY = 30
PENALTY_NO_SITEMAP_REFERENCE = 8
PENALTY_MISSING_LANG = 10
PENALTY_NO_STRUCTURED_DATA = 15
PENALTY_LOW_INTERNAL_LINKING = 10
MIN_INTERNAL_LINK_RATIO = 0.3

# Performance sub-score
SLOW_LOAD_MS = 3000
MODERATE_LOAD_MS = 2000
PENALTY_SLOW_LOAD = 30
PENALTY_MODERATE_LOAD = 15
SLOW_FIRST_PAINT_MS = 2000
PENALTY_SLOW_FIRST_PAINT = 20
LARGE_PAGE_BYTES = 1_000_000
PENALTY_LARGE_PAGE = 15
MAX_HTTP_REQUESTS = 50
PENALTY_TOO_MANY_REQUESTS = 10

# First paint is estimated from the fetch time since no browser runs
FIRST_PAINT_RATIO = 0.6

# Performance status bands (ms)
PERFORMANCE_GOOD_MS = 2000
PERFORMANCE_AVERAGE_MS = 4000

# User experience sub-score
PENALTY_UX_MISSING_VIEWPORT = 25
PENALTY_UX_PER_CRITICAL_A11Y = 15
PENALTY_UX_PER_WARNING_A11Y = 5
PENALTY_UX_UNLABELED_FORM_INPUTS = 15


# =============================================================================
# Accessibility scoring
# =============================================================================

A11Y_PENALTY_PER_CRITICAL = 15
A11Y_PENALTY_PER_WARNING = 5
A11Y_CATEGORY_PENALTY_PER_CRITICAL = 20
A11Y_CATEGORY_PENALTY_PER_WARNING = 10

# Number of distinct checks performed, used for the compliance percentage
A11Y_CHECK_COUNT = 12

# Issue types grouped by WCAG principle
WCAG_PRINCIPLE_ISSUES = {
    "perceivable": (
        "Missing Alt Text",
        "Images with Empty Alt Text",
        "Potential Color Contrast Issues",
    ),
    "operable": (
        "Interactive Elements Not Keyboard Accessible",
        "Missing Skip Links",
    ),
    "understandable": (
        "Missing Language Declaration",
        "Missing Page Title",
    ),
    "robust": (
        "Duplicate IDs",
        "Buttons Without Accessible Names",
        "Form Accessibility",
    ),
}

SKIP_LINK_KEYWORDS = ("skip", "main", "content")


# =============================================================================
# Mobile scoring
# =============================================================================

VIEWPORT_POINTS = {"good": 20, "warning": 10, "error": 0}

MOBILE_WEIGHTS = {
    "touch_targets": 0.25,
    "text_readability": 0.20,
    "mobile_performance": 0.20,
    "mobile_seo": 0.15,
}

MIN_FONT_SIZE_PX = 16
MIN_AVERAGE_FONT_SIZE_PX = 14
DEFAULT_FONT_SIZE_PX = 16
PENALTY_SMALL_AVERAGE_FONT = 20
SMALL_TARGET_CLASS_MARKERS = ("btn-sm", "small", "xs")
NO_INTERACTIVE_ELEMENTS_SCORE = 50

MOBILE_SLOW_LOAD_MS = 5000
PENALTY_MOBILE_SLOW_LOAD = 30
MOBILE_LARGE_PAGE_BYTES = 2_000_000
PENALTY_MOBILE_LARGE_PAGE = 20
MIN_IMAGE_OPTIMIZATION_PERCENT = 50
PENALTY_UNOPTIMIZED_IMAGES = 25
PENALTY_NO_WEBP = 10

PENALTY_NO_MOBILE_META = 30
PENALTY_NOT_RESPONSIVE = 25
PENALTY_NO_APPLE_TOUCH_ICON = 10
PENALTY_NO_MOBILE_STRUCTURED_DATA = 15
MOBILE_STRUCTURED_DATA_MARKERS = ("MobileApplication", "mobileUrl")


# =============================================================================
# Trend analysis
# =============================================================================

TIME_PERIODS = ("7d", "30d", "90d", "1y")

# Per-period minimum data points and significance threshold (score points)
TREND_PARAMS = {
    "7d": {"minimum_data_points": 3, "significance_threshold": 5},
    "30d": {"minimum_data_points": 5, "significance_threshold": 8},
    "90d": {"minimum_data_points": 8, "significance_threshold": 10},
    "1y": {"minimum_data_points": 12, "significance_threshold": 15},
}

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

# Half-over-half change in overall score that counts as a trend
TREND_DIRECTION_THRESHOLD = 5

STRONG_TREND_SCORE = 75
MODERATE_TREND_SCORE = 50
MAGNITUDE_SCALE = 5

# Records compared at each end of the window for significant changes
SIGNIFICANCE_SAMPLE_SIZE = 5
MODERATE_CHANGE_MULTIPLIER = 1.5
MAJOR_CHANGE_MULTIPLIER = 2.5

# Confidence score weights
CONFIDENCE_WEIGHTS = {
    "quantity": 0.30,
    "consistency": 0.25,
    "time_span": 0.25,
    "freshness": 0.20,
}

# (max days since latest record, freshness score), checked in order
FRESHNESS_STEPS = ((1, 100), (3, 80), (7, 60), (14, 40), (30, 20))
STALE_FRESHNESS_SCORE = 10

INSUFFICIENT_DATA_CONFIDENCE = 10

CORRELATION_THRESHOLD = 0.6
STRONG_CORRELATION = 0.8

VOLATILITY_MULTIPLIER = 2
VOLATILE_THRESHOLD = 25
STABILITY_MIN_POINTS = 8
PLATEAU_MIN_POINTS = 10

MAX_TREND_RECOMMENDATIONS = 5
RECOMMENDATION_PRIORITY_ORDER = ("critical", "high", "medium", "low")

# Metrics tracked in performance history, in reporting order
HISTORY_METRICS = ("overall", "seo", "accessibility", "mobile", "performance")
CATEGORY_METRICS = ("seo", "accessibility", "mobile", "performance")

METRIC_LABELS = {
    "overall": "Overall",
    "seo": "SEO",
    "accessibility": "Accessibility",
    "mobile": "Mobile",
    "performance": "Performance",
}

EFFORT_BY_METRIC = {
    "overall": "medium",
    "seo": "medium",
    "accessibility": "high",
    "mobile": "medium",
    "performance": "high",
}

DEFAULT_RETENTION_DAYS = 365
DEFAULT_CLEANUP_DAYS = 90
