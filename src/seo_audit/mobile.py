"""Mobile-friendliness analysis from static markup and fetch metrics."""

import re

from seo_audit.constants import (
    VIEWPORT_POINTS,
    MOBILE_WEIGHTS,
    MIN_FONT_SIZE_PX,
    MIN_AVERAGE_FONT_SIZE_PX,
    DEFAULT_FONT_SIZE_PX,
    PENALTY_SMALL_AVERAGE_FONT,
    SMALL_TARGET_CLASS_MARKERS,
    NO_INTERACTIVE_ELEMENTS_SCORE,
    MOBILE_SLOW_LOAD_MS,
    PENALTY_MOBILE_SLOW_LOAD,
    MOBILE_LARGE_PAGE_BYTES,
    PENALTY_MOBILE_LARGE_PAGE,
    MIN_IMAGE_OPTIMIZATION_PERCENT,
    PENALTY_UNOPTIMIZED_IMAGES,
    PENALTY_NO_WEBP,
    PENALTY_NO_MOBILE_META,
    PENALTY_NOT_RESPONSIVE,
    PENALTY_NO_APPLE_TOUCH_ICON,
    PENALTY_NO_MOBILE_STRUCTURED_DATA,
    MOBILE_STRUCTURED_DATA_MARKERS,
)
from seo_audit.document import DocumentModel
from seo_audit.models import (
    CheckStatus,
    MobileAnalysis,
    MobileIssue,
    MobilePerformanceAnalysis,
    MobileSEOAnalysis,
    PerformanceMetrics,
    Severity,
    TextReadabilityAnalysis,
    TouchTargetAnalysis,
    ViewportAnalysis,
)
from seo_audit.utils import round_half_up

_FONT_SIZE_RE = re.compile(r"font-size:\s*(\d+)px")


def analyze_viewport(model: DocumentModel) -> ViewportAnalysis:
    if not model.has_viewport:
        return ViewportAnalysis(present=False, content="", status=CheckStatus.ERROR)

    content = model.viewport
    has_width = "width=device-width" in content
    has_initial_scale = "initial-scale=1" in content

    return ViewportAnalysis(
        present=True,
        content=content,
        status=CheckStatus.GOOD if has_width and has_initial_scale else CheckStatus.WARNING,
        width="device-width" if has_width else None,
        initial_scale="1" if has_initial_scale else None,
    )


def analyze_touch_targets(model: DocumentModel) -> TouchTargetAnalysis:
    """Estimate touch target sizing from inline font sizes and size classes."""
    adequate = 0
    too_small = 0

    for element in model.interactive_elements:
        match = _FONT_SIZE_RE.search(element.style) if "font-size" in element.style else None
        if match:
            if int(match.group(1)) < MIN_FONT_SIZE_PX:
                too_small += 1
            else:
                adequate += 1
        elif any(marker in element.class_name for marker in SMALL_TARGET_CLASS_MARKERS):
            too_small += 1
        else:
            adequate += 1

    total = adequate + too_small
    score = 100.0
    issues = []
    recommendations = []

    if too_small > 0:
        score = max(0.0, 100 - too_small / total * 100)
        issues.append(f"{too_small} touch targets may be too small")
        recommendations.append("Ensure touch targets are at least 44px × 44px for optimal usability")

    if total == 0:
        score = NO_INTERACTIVE_ELEMENTS_SCORE
        issues.append("No interactive elements detected for touch target analysis")
        recommendations.append("Add interactive elements with proper touch target sizing")

    return TouchTargetAnalysis(
        score=round_half_up(score),
        total_elements=total,
        adequate_size=adequate,
        too_small=too_small,
        issues=issues,
        recommendations=recommendations,
    )


def analyze_text_readability(model: DocumentModel) -> TextReadabilityAnalysis:
    """Estimate readability from inline font sizes.

    Elements without an inline font-size are assumed to use the browser
    default; inline font sizes in units other than px are ignored.
    """
    font_sizes = []
    small_text = 0

    for element in model.text_elements:
        if "font-size" in element.style:
            match = _FONT_SIZE_RE.search(element.style)
            if match:
                size = int(match.group(1))
                font_sizes.append(size)
                if size < MIN_FONT_SIZE_PX:
                    small_text += 1
        else:
            font_sizes.append(DEFAULT_FONT_SIZE_PX)

    average = sum(font_sizes) / len(font_sizes) if font_sizes else DEFAULT_FONT_SIZE_PX
    score = 100.0
    issues = []
    recommendations = []

    if small_text > 0:
        score = max(0.0, 100 - small_text / len(model.text_elements) * 100)
        issues.append(f"{small_text} text elements have small font sizes")
        recommendations.append("Use minimum 16px font size for body text on mobile devices")

    if average < MIN_AVERAGE_FONT_SIZE_PX:
        score = max(score - PENALTY_SMALL_AVERAGE_FONT, 0.0)
        issues.append("Average font size is too small for mobile reading")
        recommendations.append("Increase overall font sizes for better mobile readability")

    return TextReadabilityAnalysis(
        score=round_half_up(score),
        font_sizes=font_sizes,
        average_font_size=round_half_up(average),
        small_text_elements=small_text,
        issues=issues,
        recommendations=recommendations,
    )


def analyze_mobile_performance(
    model: DocumentModel, metrics: PerformanceMetrics
) -> MobilePerformanceAnalysis:
    score = 100
    mobile_optimized = True
    issues = []
    recommendations = []

    images = model.images
    optimized = sum(1 for image in images if image.optimized)
    image_optimization = optimized / len(images) * 100 if images else 100.0

    if metrics.load_time > MOBILE_SLOW_LOAD_MS:
        score -= PENALTY_MOBILE_SLOW_LOAD
        mobile_optimized = False
        issues.append("Slow loading time affects mobile experience")
        recommendations.append("Optimize loading time for mobile networks")

    if metrics.content_size > MOBILE_LARGE_PAGE_BYTES:
        score -= PENALTY_MOBILE_LARGE_PAGE
        issues.append("Large page size may impact mobile users on limited data plans")
        recommendations.append("Optimize images and reduce page size for mobile")

    if image_optimization < MIN_IMAGE_OPTIMIZATION_PERCENT:
        score -= PENALTY_UNOPTIMIZED_IMAGES
        issues.append("Images not optimized for mobile devices")
        recommendations.append("Implement responsive images with srcset and lazy loading")

    if not model.has_webp and images:
        score -= PENALTY_NO_WEBP
        issues.append("Consider using modern image formats like WebP for better mobile performance")
        recommendations.append("Use WebP images for better compression and faster loading")

    return MobilePerformanceAnalysis(
        score=max(0, score),
        mobile_optimized=mobile_optimized,
        image_optimization=round_half_up(image_optimization),
        issues=issues,
        recommendations=recommendations,
    )


def analyze_mobile_seo(model: DocumentModel) -> MobileSEOAnalysis:
    score = 100
    issues = []
    recommendations = []

    mobile_friendly_meta = model.has_viewport
    responsive_design = any((
        model.has_screen_media_stylesheet,
        model.has_viewport,
        model.inline_styles_mention_media,
    ))

    if not mobile_friendly_meta:
        score -= PENALTY_NO_MOBILE_META
        issues.append("Missing mobile-friendly meta tags")
        recommendations.append("Add viewport meta tag and mobile optimization")

    if not responsive_design:
        score -= PENALTY_NOT_RESPONSIVE
        issues.append("No responsive design indicators found")
        recommendations.append("Implement responsive CSS design for mobile devices")

    if not model.has_apple_touch_icon:
        score -= PENALTY_NO_APPLE_TOUCH_ICON
        issues.append("Missing Apple touch icon for mobile bookmarks")
        recommendations.append("Add Apple touch icon for better mobile experience")

    has_mobile_markup = any(
        marker in block
        for block in model.json_ld_blocks
        for marker in MOBILE_STRUCTURED_DATA_MARKERS
    )
    if model.json_ld_blocks and not has_mobile_markup:
        score -= PENALTY_NO_MOBILE_STRUCTURED_DATA
        issues.append("Structured data not optimized for mobile")
        recommendations.append("Add mobile-specific structured data markup")

    return MobileSEOAnalysis(
        score=max(0, score),
        mobile_friendly_meta=mobile_friendly_meta,
        responsive_design=responsive_design,
        amp_support=model.amp_support,
        issues=issues,
        recommendations=recommendations,
    )


def _detailed_issues(issue_type: str, issues: list[str], recommendations: list[str],
                     fallback: str) -> list[MobileIssue]:
    recommendation = recommendations[0] if recommendations else fallback
    return [
        MobileIssue(
            type=issue_type,
            severity=Severity.WARNING,
            description=issue,
            recommendation=recommendation,
        )
        for issue in issues
    ]


def analyze_mobile(model: DocumentModel, metrics: PerformanceMetrics) -> MobileAnalysis:
    """Score how well a page serves mobile visitors.

    Args:
        model: Analyzed page
        metrics: Fetch-derived performance metrics

    Returns:
        MobileAnalysis with the overall score, each sub-analysis and a
        flat list of detailed issues
    """
    viewport = analyze_viewport(model)
    touch_targets = analyze_touch_targets(model)
    text_readability = analyze_text_readability(model)
    mobile_performance = analyze_mobile_performance(model, metrics)
    mobile_seo = analyze_mobile_seo(model)

    overall = round_half_up(
        VIEWPORT_POINTS[viewport.status.value]
        + touch_targets.score * MOBILE_WEIGHTS["touch_targets"]
        + text_readability.score * MOBILE_WEIGHTS["text_readability"]
        + mobile_performance.score * MOBILE_WEIGHTS["mobile_performance"]
        + mobile_seo.score * MOBILE_WEIGHTS["mobile_seo"]
    )

    detailed = []
    if viewport.status == CheckStatus.ERROR:
        detailed.append(MobileIssue(
            type="Viewport Configuration",
            severity=Severity.CRITICAL,
            description="Missing or invalid viewport meta tag",
            recommendation=(
                'Add proper viewport meta tag: '
                '<meta name="viewport" content="width=device-width, initial-scale=1">'
            ),
        ))
    detailed += _detailed_issues(
        "Touch Targets", touch_targets.issues, touch_targets.recommendations,
        "Ensure touch targets are at least 44px",
    )
    detailed += _detailed_issues(
        "Text Readability", text_readability.issues, text_readability.recommendations,
        "Use larger font sizes for better readability",
    )
    detailed += _detailed_issues(
        "Mobile Performance", mobile_performance.issues, mobile_performance.recommendations,
        "Optimize for mobile performance",
    )
    detailed += _detailed_issues(
        "Mobile SEO", mobile_seo.issues, mobile_seo.recommendations,
        "Implement mobile SEO best practices",
    )

    return MobileAnalysis(
        overall_score=overall,
        viewport=viewport,
        touch_targets=touch_targets,
        text_readability=text_readability,
        mobile_performance=mobile_performance,
        mobile_seo=mobile_seo,
        detailed_issues=detailed,
    )
