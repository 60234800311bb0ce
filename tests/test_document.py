from seo_audit.document import DocumentAnalyzer, classify_length
from seo_audit.models import CheckStatus


class TestMetaTagExtraction:
    """Tests for meta tag extraction and length classification."""

    def test_full_page_meta_tags(self, full_model):
        meta = full_model.meta_tags

        assert meta.title.content == "Acme Widgets - Quality Widgets Since 1999"
        assert meta.title.status == CheckStatus.GOOD
        assert meta.description.status == CheckStatus.GOOD
        assert meta.og_image.present
        assert meta.og_title.status == CheckStatus.GOOD
        assert meta.twitter_card.present
        assert not meta.twitter_title.present
        assert meta.twitter_title.status == CheckStatus.WARNING

    def test_missing_title_and_description_are_errors(self, bare_model):
        assert bare_model.meta_tags.title.status == CheckStatus.ERROR
        assert bare_model.meta_tags.description.status == CheckStatus.ERROR
        assert not bare_model.meta_tags.og_image.present

    def test_classify_length_bands(self):
        assert classify_length("", 30, 60) == CheckStatus.ERROR
        assert classify_length("x" * 29, 30, 60) == CheckStatus.WARNING
        assert classify_length("x" * 30, 30, 60) == CheckStatus.GOOD
        assert classify_length("x" * 60, 30, 60) == CheckStatus.GOOD
        assert classify_length("x" * 61, 30, 60) == CheckStatus.WARNING


class TestStructureExtraction:
    """Tests for headings, landmarks, images and forms."""

    def test_headings_in_document_order(self, full_model):
        assert [h.level for h in full_model.headings] == [1, 2]
        assert full_model.h1_count == 1

    def test_landmarks(self, full_model, bare_model):
        assert full_model.landmarks == frozenset({"header", "nav", "main", "footer"})
        assert bare_model.landmarks == frozenset()

    def test_page_properties(self, full_model):
        assert full_model.lang == "en"
        assert full_model.has_viewport
        assert full_model.has_canonical
        assert full_model.has_robots_meta
        assert full_model.has_sitemap_link
        assert full_model.has_apple_touch_icon
        assert full_model.structured_data_count == 1
        assert full_model.word_count > 300

    def test_images(self, full_model, bare_model):
        (image,) = full_model.images
        assert image.alt == "A widget"
        assert image.lazy
        assert image.optimized
        assert full_model.has_webp

        missing, empty = bare_model.images
        assert missing.alt is None
        assert not missing.has_alt_attribute
        assert empty.alt == ""
        assert empty.has_alt_attribute

    def test_form_inputs(self, full_model, bare_model):
        (email,) = full_model.form_inputs
        assert email.has_label
        assert email.in_form

        (search,) = bare_model.form_inputs
        assert search.id == "q"
        assert not search.has_label
        assert not search.in_form

    def test_accessibility_signals(self, bare_model):
        assert bare_model.lang is None
        assert bare_model.title == ""
        assert bare_model.duplicate_ids == ("dup",)
        assert bare_model.unnamed_buttons == 1
        assert bare_model.keyboard_inaccessible == 1
        assert not bare_model.has_viewport

    def test_button_named_by_aria_label_is_not_unnamed(self, analyzer):
        model = analyzer.analyze('<body><button aria-label="Close"></button><button title="Menu"></button></body>')

        assert model.unnamed_buttons == 0

    def test_click_handler_with_tabindex_is_keyboard_accessible(self, analyzer):
        model = analyzer.analyze('<body><div onclick="x()" tabindex="0">Go</div><a onclick="y()">Y</a></body>')

        assert model.keyboard_inaccessible == 0


class TestAnchorContext:
    """Tests for the landmark context recorded for links."""

    def test_context_uses_nearest_landmark(self, full_model):
        contexts = {anchor.href: anchor.context for anchor in full_model.anchors}

        assert contexts["/products"] == "nav#primary.menu"
        assert contexts["#main"] == "header#top.site-header"
        assert contexts["https://partner.example/"] == "footer"

    def test_context_defaults_to_page_content(self, analyzer):
        model = analyzer.analyze('<body><div><a href="/x">X</a></div></body>')

        assert model.anchors[0].context == "page content"


class TestMalformedInput:

    def test_empty_document(self):
        model = DocumentAnalyzer().analyze("")

        assert model.title == ""
        assert model.headings == ()
        assert model.word_count == 0

    def test_unclosed_tags_are_tolerated(self):
        model = DocumentAnalyzer().analyze("<html><body><h1>Title<p>text <a href='/a'>link")

        assert model.h1_count == 1
        assert len(model.anchors) == 1
