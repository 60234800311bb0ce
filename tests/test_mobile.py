from seo_audit.mobile import (
    analyze_mobile,
    analyze_mobile_performance,
    analyze_text_readability,
    analyze_touch_targets,
    analyze_viewport,
)
from seo_audit.models import CheckStatus, PerformanceMetrics, Severity


def _metrics(load_time=500, content_size=50_000):
    return PerformanceMetrics(
        load_time=load_time,
        content_size=content_size,
        http_requests=5,
        first_paint=load_time * 0.6,
        status="good",
    )


class TestViewport:

    def test_complete_viewport(self, full_model):
        viewport = analyze_viewport(full_model)

        assert viewport.status == CheckStatus.GOOD
        assert viewport.width == "device-width"
        assert viewport.initial_scale == "1"

    def test_partial_viewport(self, analyzer):
        model = analyzer.analyze('<head><meta name="viewport" content="width=device-width"></head>')

        assert analyze_viewport(model).status == CheckStatus.WARNING

    def test_missing_viewport(self, bare_model):
        viewport = analyze_viewport(bare_model)

        assert viewport.status == CheckStatus.ERROR
        assert not viewport.present


class TestTouchTargets:

    def test_small_targets(self, analyzer):
        model = analyzer.analyze(
            '<body><a class="btn btn-sm" href="/a">a</a>'
            '<button style="font-size: 12px">b</button>'
            '<a href="/c">c</a></body>'
        )

        targets = analyze_touch_targets(model)

        assert targets.total_elements == 3
        assert targets.too_small == 2
        assert targets.score == 33

    def test_no_interactive_elements(self, analyzer):
        targets = analyze_touch_targets(analyzer.analyze("<body><p>text</p></body>"))

        assert targets.score == 50
        assert targets.total_elements == 0


class TestTextReadability:

    def test_default_font_sizes(self, full_model):
        readability = analyze_text_readability(full_model)

        assert readability.score == 100
        assert readability.average_font_size == 16

    def test_small_text(self, analyzer):
        model = analyzer.analyze('<body><p style="font-size: 10px">a</p><p>b</p></body>')

        readability = analyze_text_readability(model)

        # 50% small text, then average 13px < 14px
        assert readability.small_text_elements == 1
        assert readability.average_font_size == 13
        assert readability.score == 30


class TestMobilePerformance:

    def test_slow_and_large(self, full_model):
        performance = analyze_mobile_performance(full_model, _metrics(6000, 3_000_000))

        assert performance.score == 50
        assert not performance.mobile_optimized

    def test_unoptimized_images_without_webp(self, bare_model):
        performance = analyze_mobile_performance(bare_model, _metrics())

        assert performance.image_optimization == 0
        assert performance.score == 65


class TestAnalyzeMobile:
    """Tests for the combined mobile score."""

    def test_full_page(self, full_model):
        analysis = analyze_mobile(full_model, _metrics())

        # 20 + 100*.25 + 100*.20 + 100*.20 + 85*.15 (JSON-LD without mobile markup)
        assert analysis.mobile_seo.score == 85
        assert analysis.overall_score == 98

    def test_bare_page(self, bare_model):
        analysis = analyze_mobile(bare_model, _metrics())

        assert analysis.mobile_performance.score == 65
        assert analysis.mobile_seo.score == 35
        assert analysis.overall_score == 63

    def test_detailed_issues_start_with_viewport(self, bare_model):
        issues = analyze_mobile(bare_model, _metrics()).detailed_issues

        assert issues[0].type == "Viewport Configuration"
        assert issues[0].severity == Severity.CRITICAL
        assert len(issues) == 6
        assert all(issue.severity == Severity.WARNING for issue in issues[1:])
        assert {issue.type for issue in issues[1:]} == {"Mobile Performance", "Mobile SEO"}

    def test_score_bounds(self, bare_model):
        analysis = analyze_mobile(bare_model, _metrics(20_000, 50_000_000))

        assert 0 <= analysis.overall_score <= 100
        assert analysis.mobile_performance.score >= 0
