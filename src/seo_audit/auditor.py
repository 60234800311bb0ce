"""Audit pipeline: fetch, analyze, check links, score and compose the report."""

import logging
from typing import Optional

from seo_audit.accessibility import check_accessibility, score_accessibility
from seo_audit.config import AuditConfig
from seo_audit.constants import SKIPPED_LINK_PREFIXES
from seo_audit.document import DocumentAnalyzer, DocumentModel
from seo_audit.fetcher import PageFetcher
from seo_audit.link_checker import LinkChecker
from seo_audit.mobile import analyze_mobile
from seo_audit.models import (
    AccessibilityIssue,
    AuditReport,
    AuditStatistics,
    BrokenLink,
    CheckStatus,
    MetaTagAnalysis,
    Recommendation,
    Severity,
)
from seo_audit.safety import SafetyGate
from seo_audit.seo_scoring import build_performance_metrics, score_seo
from seo_audit.urls import normalize_audit_url

logger = logging.getLogger(__name__)


def compute_statistics(model: DocumentModel, broken_links: list[BrokenLink]) -> AuditStatistics:
    """Link and image counts for a page.

    Absolute http(s) hrefs count as external here regardless of host;
    everything else that is not a fragment, mailto or tel link is internal.
    """
    internal = 0
    external = 0
    for anchor in model.anchors:
        href = anchor.href
        if not href or href.startswith(SKIPPED_LINK_PREFIXES):
            continue
        if href.startswith("http"):
            external += 1
        else:
            internal += 1

    total_images = len(model.images)
    without_alt = sum(1 for image in model.images if not image.alt)

    return AuditStatistics(
        total_links=len(model.anchors),
        working_links=len(model.anchors) - len(broken_links),
        broken_links=len(broken_links),
        internal_links=internal,
        external_links=external,
        total_images=total_images,
        images_with_alt=total_images - without_alt,
        images_without_alt=without_alt,
    )


def build_recommendations(
    meta_tags: MetaTagAnalysis,
    accessibility_issues: list[AccessibilityIssue],
    broken_links: list[BrokenLink],
) -> list[Recommendation]:
    """Report-level action items, highest impact first within each source."""
    recommendations = []

    if meta_tags.title.status == CheckStatus.ERROR:
        recommendations.append(Recommendation(
            priority="high",
            category="SEO",
            title="Add missing title tag",
            description="Every page should have a unique, descriptive title tag for SEO and user experience.",
        ))

    if meta_tags.description.status == CheckStatus.ERROR:
        recommendations.append(Recommendation(
            priority="high",
            category="SEO",
            title="Add meta description",
            description="Write a compelling meta description to improve click-through rates from search results.",
        ))

    if meta_tags.og_image.status == CheckStatus.WARNING:
        recommendations.append(Recommendation(
            priority="medium",
            category="SEO",
            title="Add Open Graph image",
            description="Improve social media sharing by adding an og:image meta tag.",
        ))

    for issue in accessibility_issues:
        if issue.severity == Severity.CRITICAL:
            recommendations.append(Recommendation(
                priority="high",
                category="Accessibility",
                title=f"Fix {issue.type.lower()}",
                description=issue.recommendation,
            ))

    if broken_links:
        recommendations.append(Recommendation(
            priority="high",
            category="User Experience",
            title="Fix broken links",
            description=f"Update or remove the {len(broken_links)} broken links found on your website.",
        ))

    return recommendations


class SiteAuditor:
    """Runs one audit end to end.

    Collaborators are passed in explicitly so that tests can substitute
    fakes and concurrent audits never share state.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        analyzer: DocumentAnalyzer,
        link_checker: LinkChecker,
    ):
        self.fetcher = fetcher
        self.analyzer = analyzer
        self.link_checker = link_checker

    @classmethod
    def from_config(cls, config: Optional[AuditConfig] = None) -> "SiteAuditor":
        """Build an auditor with fresh collaborators for the given config."""
        config = config or AuditConfig()
        gate = SafetyGate(config)
        return cls(
            fetcher=PageFetcher(gate, config),
            analyzer=DocumentAnalyzer(),
            link_checker=LinkChecker(gate, config),
        )

    def audit(self, url: str) -> AuditReport:
        """Audit a single page.

        Args:
            url: URL as supplied by the caller; a missing scheme means https

        Returns:
            The completed AuditReport

        Raises:
            ValidationError: If the URL is malformed
            UnsafeTargetError: If the URL targets a blocked host or address
            FetchError: If the page cannot be retrieved
        """
        normalized = normalize_audit_url(url)
        logger.info(f"Starting audit of {normalized}")

        fetched = self.fetcher.fetch(normalized)
        model = self.analyzer.analyze(fetched.html)

        accessibility_issues = check_accessibility(model)
        accessibility_scoring = score_accessibility(accessibility_issues)
        broken_links = self.link_checker.check(model, fetched.final_url)

        performance_metrics = build_performance_metrics(
            model, fetched.elapsed_ms, fetched.byte_size
        )
        statistics = compute_statistics(model, broken_links)
        recommendations = build_recommendations(model.meta_tags, accessibility_issues, broken_links)
        seo_scoring = score_seo(
            model, accessibility_issues, broken_links, performance_metrics, statistics
        )
        mobile_analysis = analyze_mobile(model, performance_metrics)

        report = AuditReport(
            url=normalized,
            overall_score=seo_scoring.overall_score,
            meta_tags=model.meta_tags,
            accessibility_issues=accessibility_issues,
            accessibility_scoring=accessibility_scoring,
            seo_scoring=seo_scoring,
            mobile_analysis=mobile_analysis,
            broken_links=broken_links,
            performance_metrics=performance_metrics,
            recommendations=recommendations,
            statistics=statistics,
        )

        logger.info(
            f"Audit of {normalized} complete: overall {report.overall_score}, "
            f"accessibility {accessibility_scoring.overall_score}, "
            f"mobile {mobile_analysis.overall_score}, {len(broken_links)} broken links"
        )
        return report

    def close(self) -> None:
        self.fetcher.close()
        self.link_checker.close()


def audit_website(url: str, config: Optional[AuditConfig] = None) -> AuditReport:
    """Audit a page with a freshly built auditor.

    Args:
        url: Page to audit
        config: Optional audit configuration

    Returns:
        The completed AuditReport
    """
    auditor = SiteAuditor.from_config(config)
    try:
        return auditor.audit(url)
    finally:
        auditor.close()
