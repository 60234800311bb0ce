# src/seo_audit/seo_scoring.py
"""SEO scoring: five independently penalized sub-scores, combined by weight.

Every function here is pure. The same DocumentModel and metrics always
produce the same scores, so audits can be compared over time.
"""

from seo_audit.constants import (
    SEO_CATEGORY_WEIGHTS,
    TITLE_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    PENALTY_MISSING_TITLE,
    PENALTY_TITLE_LENGTH,
    PENALTY_MISSING_DESCRIPTION,
    PENALTY_DESCRIPTION_TOO_LONG,
    PENALTY_DESCRIPTION_TOO_SHORT,
    PENALTY_MISSING_OG_TITLE,
    PENALTY_MISSING_OG_DESCRIPTION,
    PENALTY_MISSING_OG_IMAGE,
    PENALTY_MISSING_TWITTER_CARD,
    PENALTY_NO_H1,
    PENALTY_MULTIPLE_H1,
    PENALTY_HEADING_SKIP,
    PENALTY_MISSING_MAIN,
    PENALTY_MISSING_HEADER,
    PENALTY_MISSING_NAV,
    PENALTY_MISSING_FOOTER,
    PENALTY_THIN_CONTENT,
    THIN_CONTENT_WORDS,
    PENALTY_PER_IMAGE_WITHOUT_ALT,
    MAX_IMAGE_ALT_PENALTY,
    PENALTY_MISSING_CANONICAL,
    PENALTY_MISSING_ROBOTS_META,
    PENALTY_PER_BROKEN_LINK,
    MAX_BROKEN_LINK_PENALTY,
    PENALTY_NO_SITEMAP_REFERENCE,
    PENALTY_MISSING_LANG,
    PENALTY_NO_STRUCTURED_DATA,
    PENALTY_LOW_INTERNAL_LINKING,
    MIN_INTERNAL_LINK_RATIO,
    SLOW_LOAD_MS,
    MODERATE_LOAD_MS,
    PENALTY_SLOW_LOAD,
    PENALTY_MODERATE_LOAD,
    SLOW_FIRST_PAINT_MS,
    PENALTY_SLOW_FIRST_PAINT,
    LARGE_PAGE_BYTES,
    PENALTY_LARGE_PAGE,
    MAX_HTTP_REQUESTS,
    PENALTY_TOO_MANY_REQUESTS,
    FIRST_PAINT_RATIO,
    PERFORMANCE_GOOD_MS,
    PERFORMANCE_AVERAGE_MS,
    PENALTY_UX_MISSING_VIEWPORT,
    PENALTY_UX_PER_CRITICAL_A11Y,
    PENALTY_UX_PER_WARNING_A11Y,
    PENALTY_UX_UNLABELED_FORM_INPUTS,
)
from seo_audit.document import DocumentModel
from seo_audit.models import (
    AccessibilityIssue,
    AuditStatistics,
    BrokenLink,
    CategoryScore,
    MetaTagAnalysis,
    PerformanceMetrics,
    SEOScoring,
    Severity,
)
from seo_audit.utils import round_half_up


def _finish(score: int, issues: list[str], recommendations: list[str]) -> CategoryScore:
    return CategoryScore(score=max(0, score), issues=issues, recommendations=recommendations)


def build_performance_metrics(
    model: DocumentModel, load_time_ms: int, content_size: int
) -> PerformanceMetrics:
    """Performance metrics for a statically fetched page.

    First paint is estimated as a fixed fraction of the fetch time, since
    no browser renders the page.

    Args:
        model: Analyzed page
        load_time_ms: Fetch time in milliseconds
        content_size: Body size in bytes

    Returns:
        PerformanceMetrics for the page
    """
    if load_time_ms < PERFORMANCE_GOOD_MS:
        status = "good"
    elif load_time_ms < PERFORMANCE_AVERAGE_MS:
        status = "average"
    else:
        status = "poor"

    return PerformanceMetrics(
        load_time=load_time_ms,
        content_size=content_size,
        http_requests=model.http_request_elements,
        first_paint=load_time_ms * FIRST_PAINT_RATIO,
        status=status,
    )


def score_meta_tags(meta_tags: MetaTagAnalysis) -> CategoryScore:
    score = 100
    issues = []
    recommendations = []

    title = meta_tags.title
    if not title.present:
        score -= PENALTY_MISSING_TITLE
        issues.append("Missing title tag")
        recommendations.append("Add a unique, descriptive title tag (50-60 characters)")
    elif title.length > TITLE_MAX_LENGTH:
        score -= PENALTY_TITLE_LENGTH
        issues.append("Title tag too long")
        recommendations.append(f"Keep title under {TITLE_MAX_LENGTH} characters for optimal display")
    elif title.length < TITLE_MIN_LENGTH:
        score -= PENALTY_TITLE_LENGTH
        issues.append("Title tag too short")
        recommendations.append(
            f"Expand title to {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters for better SEO"
        )

    description = meta_tags.description
    if not description.present:
        score -= PENALTY_MISSING_DESCRIPTION
        issues.append("Missing meta description")
        recommendations.append("Add compelling meta description (150-160 characters)")
    elif description.length > DESCRIPTION_MAX_LENGTH:
        score -= PENALTY_DESCRIPTION_TOO_LONG
        issues.append("Meta description too long")
        recommendations.append(f"Keep description under {DESCRIPTION_MAX_LENGTH} characters")
    elif description.length < DESCRIPTION_MIN_LENGTH:
        score -= PENALTY_DESCRIPTION_TOO_SHORT
        issues.append("Meta description could be longer")
        recommendations.append(
            f"Expand description to {DESCRIPTION_MIN_LENGTH}-{DESCRIPTION_MAX_LENGTH} characters"
        )

    if not meta_tags.og_title.present:
        score -= PENALTY_MISSING_OG_TITLE
        issues.append("Missing Open Graph title")
        recommendations.append("Add og:title for better social media sharing")

    if not meta_tags.og_description.present:
        score -= PENALTY_MISSING_OG_DESCRIPTION
        issues.append("Missing Open Graph description")
        recommendations.append("Add og:description for social media")

    if not meta_tags.og_image.present:
        score -= PENALTY_MISSING_OG_IMAGE
        issues.append("Missing Open Graph image")
        recommendations.append("Add og:image for rich social media previews")

    if not meta_tags.twitter_card.present:
        score -= PENALTY_MISSING_TWITTER_CARD
        issues.append("Missing Twitter Card")
        recommendations.append("Add Twitter Card meta tags for better Twitter sharing")

    return _finish(score, issues, recommendations)


def score_content_structure(model: DocumentModel) -> CategoryScore:
    score = 100
    issues = []
    recommendations = []

    h1_count = model.h1_count
    if h1_count == 0:
        score -= PENALTY_NO_H1
        issues.append("No H1 heading found")
        recommendations.append("Add a single, descriptive H1 heading")
    elif h1_count > 1:
        score -= PENALTY_MULTIPLE_H1
        issues.append("Multiple H1 headings found")
        recommendations.append("Use only one H1 per page")

    # A page whose first heading is below h1 counts as a skip as well
    previous_level = 0
    for heading in model.headings:
        if heading.level > previous_level + 1:
            score -= PENALTY_HEADING_SKIP
            issues.append("Skipped heading levels")
            recommendations.append("Maintain proper heading hierarchy (h1 → h2 → h3)")
            break
        previous_level = heading.level

    landmark_penalties = (
        ("main", PENALTY_MISSING_MAIN, "Use <main> element for primary content"),
        ("header", PENALTY_MISSING_HEADER, "Use <header> element for page header"),
        ("nav", PENALTY_MISSING_NAV, "Use <nav> element for navigation"),
        ("footer", PENALTY_MISSING_FOOTER, "Use <footer> element for page footer"),
    )
    for tag, penalty, recommendation in landmark_penalties:
        if not model.has_landmark(tag):
            score -= penalty
            issues.append(f"Missing {tag} element")
            recommendations.append(recommendation)

    if model.word_count < THIN_CONTENT_WORDS:
        score -= PENALTY_THIN_CONTENT
        issues.append("Insufficient content")
        recommendations.append(f"Add more quality content (aim for {THIN_CONTENT_WORDS}+ words)")

    missing_alt = sum(1 for image in model.images if not image.has_alt_attribute)
    if missing_alt > 0:
        score -= min(MAX_IMAGE_ALT_PENALTY, missing_alt * PENALTY_PER_IMAGE_WITHOUT_ALT)
        issues.append(f"{missing_alt} images missing alt text")
        recommendations.append("Add descriptive alt text to all images")

    return _finish(score, issues, recommendations)


def score_technical_seo(
    model: DocumentModel,
    broken_links: list[BrokenLink],
    statistics: AuditStatistics,
) -> CategoryScore:
    score = 100
    issues = []
    recommendations = []

    if not model.has_canonical:
        score -= PENALTY_MISSING_CANONICAL
        issues.append("Missing canonical URL")
        recommendations.append("Add canonical link to prevent duplicate content")

    if not model.has_robots_meta:
        score -= PENALTY_MISSING_ROBOTS_META
        issues.append("Missing robots meta tag")
        recommendations.append("Add robots meta tag for search engine guidance")

    if broken_links:
        score -= min(MAX_BROKEN_LINK_PENALTY, len(broken_links) * PENALTY_PER_BROKEN_LINK)
        issues.append(f"{len(broken_links)} broken links found")
        recommendations.append("Fix all broken links to improve user experience and SEO")

    if not model.has_sitemap_link:
        score -= PENALTY_NO_SITEMAP_REFERENCE
        issues.append("No sitemap reference found")
        recommendations.append("Create and reference an XML sitemap")

    if not model.lang:
        score -= PENALTY_MISSING_LANG
        issues.append("Missing language declaration")
        recommendations.append("Add lang attribute to html element")

    if model.structured_data_count == 0:
        score -= PENALTY_NO_STRUCTURED_DATA
        issues.append("No structured data found")
        recommendations.append("Add schema markup for better search results")

    if statistics.total_links > 0:
        internal_ratio = statistics.internal_links / statistics.total_links
    else:
        internal_ratio = 0.0
    if internal_ratio < MIN_INTERNAL_LINK_RATIO:
        score -= PENALTY_LOW_INTERNAL_LINKING
        issues.append("Low internal linking")
        recommendations.append("Improve internal linking structure")

    return _finish(score, issues, recommendations)


def score_performance(metrics: PerformanceMetrics) -> CategoryScore:
    score = 100
    issues = []
    recommendations = []

    if metrics.load_time > SLOW_LOAD_MS:
        score -= PENALTY_SLOW_LOAD
        issues.append("Slow page load time")
        recommendations.append("Optimize page load time to under 3 seconds")
    elif metrics.load_time > MODERATE_LOAD_MS:
        score -= PENALTY_MODERATE_LOAD
        issues.append("Moderate page load time")
        recommendations.append("Improve page load time to under 2 seconds")

    if metrics.first_paint > SLOW_FIRST_PAINT_MS:
        score -= PENALTY_SLOW_FIRST_PAINT
        issues.append("Slow first paint")
        recommendations.append("Optimize first paint time")

    if metrics.content_size > LARGE_PAGE_BYTES:
        score -= PENALTY_LARGE_PAGE
        issues.append("Large page size")
        recommendations.append("Optimize images and reduce page size")

    if metrics.http_requests > MAX_HTTP_REQUESTS:
        score -= PENALTY_TOO_MANY_REQUESTS
        issues.append("Too many HTTP requests")
        recommendations.append("Reduce number of HTTP requests")

    return _finish(score, issues, recommendations)


def score_user_experience(
    model: DocumentModel, accessibility_issues: list[AccessibilityIssue]
) -> CategoryScore:
    score = 100
    issues = []
    recommendations = []

    if not model.has_viewport:
        score -= PENALTY_UX_MISSING_VIEWPORT
        issues.append("Missing viewport meta tag")
        recommendations.append("Add viewport meta tag for mobile responsiveness")

    critical = sum(1 for issue in accessibility_issues if issue.severity == Severity.CRITICAL)
    warnings = sum(1 for issue in accessibility_issues if issue.severity == Severity.WARNING)
    score -= critical * PENALTY_UX_PER_CRITICAL_A11Y + warnings * PENALTY_UX_PER_WARNING_A11Y

    if critical > 0:
        issues.append(f"{critical} critical accessibility issues")
        recommendations.append("Fix critical accessibility issues")

    if warnings > 0:
        issues.append(f"{warnings} accessibility warnings")
        recommendations.append("Address accessibility warnings")

    if model.form_count > 0:
        unlabeled = [
            field_input
            for field_input in model.form_inputs
            if field_input.in_form
            and field_input.type not in ("submit", "button")
            and not field_input.has_label
            and not field_input.aria_label
        ]
        if unlabeled:
            score -= PENALTY_UX_UNLABELED_FORM_INPUTS
            issues.append("Form inputs without proper labels")
            recommendations.append("Add labels to all form inputs")

    return _finish(score, issues, recommendations)


def score_seo(
    model: DocumentModel,
    accessibility_issues: list[AccessibilityIssue],
    broken_links: list[BrokenLink],
    performance_metrics: PerformanceMetrics,
    statistics: AuditStatistics,
) -> SEOScoring:
    """Compute the weighted SEO score.

    Args:
        model: Analyzed page
        accessibility_issues: Findings from the accessibility checks
        broken_links: Results of the link checker
        performance_metrics: Fetch-derived performance metrics
        statistics: Link and image counts for the page

    Returns:
        SEOScoring with the overall score and each sub-score
    """
    meta_tags = score_meta_tags(model.meta_tags)
    content_structure = score_content_structure(model)
    technical_seo = score_technical_seo(model, broken_links, statistics)
    performance = score_performance(performance_metrics)
    user_experience = score_user_experience(model, accessibility_issues)

    weighted = (
        meta_tags.score * SEO_CATEGORY_WEIGHTS["meta_tags"]
        + content_structure.score * SEO_CATEGORY_WEIGHTS["content_structure"]
        + technical_seo.score * SEO_CATEGORY_WEIGHTS["technical_seo"]
        + performance.score * SEO_CATEGORY_WEIGHTS["performance"]
        + user_experience.score * SEO_CATEGORY_WEIGHTS["user_experience"]
    )

    return SEOScoring(
        overall_score=round_half_up(weighted),
        meta_tags=meta_tags,
        content_structure=content_structure,
        technical_seo=technical_seo,
        performance=performance,
        user_experience=user_experience,
    )
