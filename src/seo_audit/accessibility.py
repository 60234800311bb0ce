# src/seo_audit/accessibility.py
"""Accessibility checks and WCAG-oriented scoring.

The checks are heuristics over static markup. They approximate a subset of
WCAG 2.x success criteria and are not a conformance audit.
"""

from seo_audit.constants import (
    A11Y_PENALTY_PER_CRITICAL,
    A11Y_PENALTY_PER_WARNING,
    A11Y_CATEGORY_PENALTY_PER_CRITICAL,
    A11Y_CATEGORY_PENALTY_PER_WARNING,
    A11Y_CHECK_COUNT,
    WCAG_PRINCIPLE_ISSUES,
    SKIP_LINK_KEYWORDS,
)
from seo_audit.document import DocumentModel
from seo_audit.models import (
    AccessibilityIssue,
    AccessibilityScoring,
    Severity,
    WCAGCategoryScores,
)
from seo_audit.utils import round_half_up


def check_accessibility(model: DocumentModel) -> list[AccessibilityIssue]:
    """Run every accessibility check against a page.

    Args:
        model: Analyzed page

    Returns:
        Findings in check order. The semantic-structure check always
        reports, with severity good when all landmarks are present.
    """
    issues = []

    images_without_alt = [image for image in model.images if not image.has_alt_attribute]
    if images_without_alt:
        issues.append(AccessibilityIssue(
            type="Missing Alt Text",
            severity=Severity.CRITICAL,
            description=f"{len(images_without_alt)} images are missing alt attributes",
            elements=[image.src for image in images_without_alt],
            recommendation="Add descriptive alt attributes to all images for screen readers",
            wcag_level="A",
            wcag_reference="1.1.1 Non-text Content",
        ))

    if _has_heading_skip(model):
        issues.append(AccessibilityIssue(
            type="Heading Hierarchy",
            severity=Severity.WARNING,
            description="Page skips heading levels (e.g., h1 to h3 without h2)",
            recommendation="Use proper heading hierarchy for screen readers and SEO",
            wcag_level="A",
            wcag_reference="1.3.1 Info and Relationships",
        ))

    if all(model.has_landmark(tag) for tag in ("header", "nav", "main", "footer")):
        issues.append(AccessibilityIssue(
            type="Semantic HTML Structure",
            severity=Severity.GOOD,
            description="Proper use of header, nav, main, and footer elements",
            recommendation="Continue using semantic HTML elements",
            wcag_level="A",
            wcag_reference="1.3.1 Info and Relationships",
        ))
    else:
        issues.append(AccessibilityIssue(
            type="Semantic HTML Structure",
            severity=Severity.WARNING,
            description="Missing some semantic HTML elements (header, nav, main, footer)",
            recommendation="Use semantic HTML elements to improve accessibility and SEO",
            wcag_level="A",
            wcag_reference="1.3.1 Info and Relationships",
        ))

    unlabeled = [
        field_input
        for field_input in model.form_inputs
        if field_input.type != "hidden"
        and field_input.aria_label is None
        and field_input.aria_labelledby is None
        and not field_input.has_label
    ]
    if unlabeled:
        issues.append(AccessibilityIssue(
            type="Form Accessibility",
            severity=Severity.CRITICAL,
            description=f"{len(unlabeled)} form inputs are missing proper labels",
            elements=[field_input.id for field_input in unlabeled if field_input.id],
            recommendation="Associate all form inputs with labels using the for attribute or aria-label",
            wcag_level="A",
            wcag_reference="3.3.2 Labels or Instructions",
        ))

    issues.extend(wcag_checks(model))
    return issues


def wcag_checks(model: DocumentModel) -> list[AccessibilityIssue]:
    """Checks mapped one-to-one onto WCAG success criteria."""
    issues = []

    empty_alt = [image for image in model.images if image.alt == ""]
    if empty_alt:
        issues.append(AccessibilityIssue(
            type="Images with Empty Alt Text",
            severity=Severity.CRITICAL,
            description=f"{len(empty_alt)} images have empty alt attributes",
            elements=[image.src for image in empty_alt],
            recommendation='Provide meaningful alt text or use alt="" only for decorative images',
            wcag_level="A",
            wcag_reference="1.1.1 Non-text Content",
        ))

    low_contrast = [
        element for element in model.text_elements
        if "color: #" in element.style and "background" in element.style
    ]
    if low_contrast:
        issues.append(AccessibilityIssue(
            type="Potential Color Contrast Issues",
            severity=Severity.WARNING,
            description=f"{len(low_contrast)} elements may have color contrast issues",
            recommendation="Ensure text has sufficient contrast ratio (4.5:1 for normal text, 3:1 for large text)",
            wcag_level="AA",
            wcag_reference="1.4.3 Contrast (Minimum)",
        ))

    if model.keyboard_inaccessible:
        issues.append(AccessibilityIssue(
            type="Interactive Elements Not Keyboard Accessible",
            severity=Severity.WARNING,
            description=(
                f"{model.keyboard_inaccessible} elements with click handlers "
                "cannot receive keyboard focus"
            ),
            recommendation="Use native buttons or links, or add tabindex and key handlers",
            wcag_level="A",
            wcag_reference="2.1.1 Keyboard",
        ))

    skip_links = [
        anchor for anchor in model.anchors
        if anchor.href.startswith("#")
        and any(keyword in anchor.text.lower() for keyword in SKIP_LINK_KEYWORDS)
    ]
    if not skip_links:
        issues.append(AccessibilityIssue(
            type="Missing Skip Links",
            severity=Severity.WARNING,
            description="No skip links found to bypass navigation",
            recommendation="Add skip links to allow users to bypass repetitive navigation",
            wcag_level="A",
            wcag_reference="2.4.1 Bypass Blocks",
        ))

    if not model.title:
        issues.append(AccessibilityIssue(
            type="Missing Page Title",
            severity=Severity.WARNING,
            description="Page has no title",
            recommendation="Add a descriptive <title> that identifies the page",
            wcag_level="A",
            wcag_reference="2.4.2 Page Titled",
        ))

    if not model.lang:
        issues.append(AccessibilityIssue(
            type="Missing Language Declaration",
            severity=Severity.WARNING,
            description="Page language is not declared",
            recommendation='Add lang attribute to html element (e.g., <html lang="en">)',
            wcag_level="A",
            wcag_reference="3.1.1 Language of Page",
        ))

    if model.duplicate_ids:
        issues.append(AccessibilityIssue(
            type="Duplicate IDs",
            severity=Severity.CRITICAL,
            description=(
                f"{len(model.duplicate_ids)} duplicate IDs found: "
                f"{', '.join(model.duplicate_ids)}"
            ),
            elements=list(model.duplicate_ids),
            recommendation="Ensure all IDs are unique on the page",
            wcag_level="A",
            wcag_reference="4.1.1 Parsing",
        ))

    if model.unnamed_buttons:
        issues.append(AccessibilityIssue(
            type="Buttons Without Accessible Names",
            severity=Severity.CRITICAL,
            description=f"{model.unnamed_buttons} buttons have no accessible name",
            recommendation="Give every button visible text, aria-label or aria-labelledby",
            wcag_level="A",
            wcag_reference="4.1.2 Name, Role, Value",
        ))

    return issues


def _has_heading_skip(model: DocumentModel) -> bool:
    previous_level = 0
    for heading in model.headings:
        if previous_level > 0 and heading.level > previous_level + 1:
            return True
        previous_level = heading.level
    return False


def _principle_score(issues: list[AccessibilityIssue], issue_types: tuple) -> int:
    relevant = [issue for issue in issues if issue.type in issue_types]
    critical = sum(1 for issue in relevant if issue.severity == Severity.CRITICAL)
    warnings = sum(1 for issue in relevant if issue.severity == Severity.WARNING)
    penalty = critical * A11Y_CATEGORY_PENALTY_PER_CRITICAL + warnings * A11Y_CATEGORY_PENALTY_PER_WARNING
    return max(0, 100 - penalty)


def score_accessibility(issues: list[AccessibilityIssue]) -> AccessibilityScoring:
    """Score a list of accessibility findings.

    Args:
        issues: Output of check_accessibility()

    Returns:
        AccessibilityScoring with overall, per-principle and compliance results
    """
    critical = sum(1 for issue in issues if issue.severity == Severity.CRITICAL)
    warnings = sum(1 for issue in issues if issue.severity == Severity.WARNING)
    passed = sum(1 for issue in issues if issue.severity == Severity.GOOD)

    overall = max(0, 100 - critical * A11Y_PENALTY_PER_CRITICAL - warnings * A11Y_PENALTY_PER_WARNING)

    critical_level_a = sum(
        1 for issue in issues
        if issue.wcag_level == "A" and issue.severity == Severity.CRITICAL
    )
    critical_level_aa = sum(
        1 for issue in issues
        if issue.wcag_level == "AA" and issue.severity == Severity.CRITICAL
    )
    if critical_level_a == 0 and critical_level_aa == 0:
        compliance_level = "AA"
    elif critical_level_a == 0:
        compliance_level = "A"
    else:
        compliance_level = None

    compliance_percentage = max(
        0, round_half_up((A11Y_CHECK_COUNT - critical - warnings) / A11Y_CHECK_COUNT * 100)
    )

    return AccessibilityScoring(
        overall_score=overall,
        wcag_compliance_level=compliance_level,
        compliance_percentage=compliance_percentage,
        category_scores=WCAGCategoryScores(
            **{
                principle: _principle_score(issues, issue_types)
                for principle, issue_types in WCAG_PRINCIPLE_ISSUES.items()
            }
        ),
        critical_issues=critical,
        warning_issues=warnings,
        passed_checks=passed,
        total_checks=len(issues),
    )
