import pytest

from seo_audit.auditor import compute_statistics
from seo_audit.models import (
    AccessibilityIssue,
    BrokenLink,
    CheckStatus,
    LinkScope,
    MetaTag,
    MetaTagAnalysis,
    PerformanceMetrics,
    Severity,
)
from seo_audit.seo_scoring import (
    build_performance_metrics,
    score_content_structure,
    score_meta_tags,
    score_performance,
    score_seo,
    score_technical_seo,
    score_user_experience,
)


def _tag(content, status=CheckStatus.GOOD):
    return MetaTag(present=bool(content), content=content, status=status)


def _meta(title="", description="", og=False, twitter=False):
    og_value = "x" if og else ""
    return MetaTagAnalysis(
        title=_tag(title),
        description=_tag(description),
        og_image=_tag(og_value),
        og_title=_tag(og_value),
        og_description=_tag(og_value),
        twitter_card=_tag("summary" if twitter else ""),
        twitter_title=_tag(""),
        twitter_description=_tag(""),
    )


def _metrics(load_time=500, content_size=50_000, http_requests=10):
    return PerformanceMetrics(
        load_time=load_time,
        content_size=content_size,
        http_requests=http_requests,
        first_paint=load_time * 0.6,
        status="good",
    )


class TestMetaTagScore:
    """Tests for the meta tag sub-score."""

    def test_ideal_tags_score_100(self):
        score = score_meta_tags(_meta("t" * 45, "d" * 140, og=True, twitter=True))

        assert score.score == 100
        assert score.issues == []

    def test_all_missing_tags(self):
        # 25 + 20 + 10 + 10 + 15 + 10 = 90 penalty
        score = score_meta_tags(_meta())

        assert score.score == 10
        assert "Missing title tag" in score.issues
        assert "Missing meta description" in score.issues

    @pytest.mark.parametrize("title,expected_issue", [
        ("t" * 61, "Title tag too long"),
        ("t" * 29, "Title tag too short"),
    ])
    def test_title_length_penalty(self, title, expected_issue):
        score = score_meta_tags(_meta(title, "d" * 140, og=True, twitter=True))

        assert score.score == 90
        assert score.issues == [expected_issue]

    def test_description_too_long_and_too_short(self):
        long_desc = score_meta_tags(_meta("t" * 45, "d" * 161, og=True, twitter=True))
        short_desc = score_meta_tags(_meta("t" * 45, "d" * 119, og=True, twitter=True))

        assert long_desc.score == 92
        assert short_desc.score == 95


class TestContentStructureScore:

    def test_full_page_scores_100(self, full_model):
        assert score_content_structure(full_model).score == 100

    def test_bare_page_penalties(self, bare_model):
        score = score_content_structure(bare_model)

        # no h1 20, skip 5, landmarks 28, thin 15, one image without alt 5
        assert score.score == 27
        assert "No H1 heading found" in score.issues
        assert "Skipped heading levels" in score.issues
        assert "1 images missing alt text" in score.issues

    def test_h1_to_h3_counts_as_skip(self, analyzer):
        model = analyzer.analyze("<body><h1>A</h1><h3>C</h3></body>")

        assert "Skipped heading levels" in score_content_structure(model).issues

    def test_never_negative(self, analyzer):
        html = "<body>" + "".join(f"<h1>{i}</h1><h4>x</h4>" for i in range(5)) + \
            "".join(f'<img src="/{i}.png">' for i in range(10)) + "</body>"

        assert score_content_structure(analyzer.analyze(html)).score >= 0


class TestTechnicalSeoScore:

    def test_full_page_scores_100(self, full_model):
        stats = compute_statistics(full_model, [])

        assert score_technical_seo(full_model, [], stats).score == 100

    def test_broken_link_penalty_capped(self, full_model):
        broken = [
            BrokenLink(url=f"https://site.example/{i}", status=404, found_in="page content",
                       scope=LinkScope.INTERNAL)
            for i in range(10)
        ]
        stats = compute_statistics(full_model, broken)

        score = score_technical_seo(full_model, broken, stats)

        assert score.score == 70
        assert "10 broken links found" in score.issues

    def test_bare_page(self, bare_model):
        stats = compute_statistics(bare_model, [])

        # canonical 10, robots 5, sitemap 8, lang 10, structured data 15, internal links 10
        assert score_technical_seo(bare_model, [], stats).score == 42


class TestPerformanceScore:

    def test_fast_small_page(self):
        assert score_performance(_metrics()).score == 100

    def test_moderate_load(self):
        score = score_performance(_metrics(load_time=2500))

        assert score.score == 85
        assert score.issues == ["Moderate page load time"]

    def test_everything_slow(self):
        score = score_performance(_metrics(load_time=4000, content_size=2_000_000, http_requests=80))

        # 30 + 20 (first paint 2400) + 15 + 10
        assert score.score == 25

    def test_build_performance_metrics(self, full_model):
        metrics = build_performance_metrics(full_model, 2500, 1234)

        assert metrics.first_paint == 1500
        assert metrics.status == "average"
        assert metrics.http_requests == full_model.http_request_elements

    @pytest.mark.parametrize("load_time,status", [(1999, "good"), (2000, "average"), (4000, "poor")])
    def test_status_bands(self, full_model, load_time, status):
        assert build_performance_metrics(full_model, load_time, 0).status == status


class TestUserExperienceScore:

    def test_accessibility_issues_penalized(self, full_model):
        issues = [
            AccessibilityIssue("A", Severity.CRITICAL, "d", "r"),
            AccessibilityIssue("B", Severity.WARNING, "d", "r"),
            AccessibilityIssue("C", Severity.GOOD, "d", "r"),
        ]

        assert score_user_experience(full_model, issues).score == 80

    def test_floor_at_zero(self, bare_model):
        issues = [AccessibilityIssue("A", Severity.CRITICAL, "d", "r")] * 10

        assert score_user_experience(bare_model, issues).score == 0

    def test_unlabeled_form_input(self, analyzer):
        model = analyzer.analyze(
            '<head><meta name="viewport" content="width=device-width"></head>'
            '<body><form><input type="text" id="name"><input type="submit"></form></body>'
        )

        score = score_user_experience(model, [])

        assert score.score == 85
        assert "Form inputs without proper labels" in score.issues


class TestSeoScoring:
    """Tests for the weighted SEO score."""

    def _score(self, model, issues=(), broken=(), metrics=None):
        metrics = metrics or _metrics()
        stats = compute_statistics(model, list(broken))
        return score_seo(model, list(issues), list(broken), metrics, stats)

    def test_full_page_reaches_100(self, full_model):
        scoring = self._score(full_model)

        assert scoring.overall_score == 100
        assert scoring.category_scores == {
            "meta_tags": 100,
            "content_structure": 100,
            "technical_seo": 100,
            "performance": 100,
            "user_experience": 100,
        }

    def test_weighted_combination(self, bare_model):
        scoring = self._score(bare_model)
        weights = scoring.category_weights
        expected = sum(
            getattr(scoring, name).score * weight for name, weight in weights.items()
        )

        assert scoring.overall_score == int(expected + 0.5)

    def test_scores_are_bounded(self, bare_model):
        scoring = self._score(
            bare_model,
            issues=[AccessibilityIssue("A", Severity.CRITICAL, "d", "r")] * 10,
            metrics=_metrics(load_time=9000, content_size=5_000_000, http_requests=200),
        )

        for score in list(scoring.category_scores.values()) + [scoring.overall_score]:
            assert 0 <= score <= 100

    def test_idempotent(self, bare_model):
        assert self._score(bare_model) == self._score(bare_model)
