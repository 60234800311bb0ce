import pytest

from seo_audit.exceptions import ValidationError
from seo_audit.urls import canonicalize_url, domain_of, normalize_audit_url, same_origin


class TestNormalizeAuditUrl:
    """Tests for turning user input into an auditable URL."""

    def test_adds_https_when_scheme_missing(self):
        assert normalize_audit_url("example.com/page") == "https://example.com/page"

    def test_keeps_existing_scheme(self):
        assert normalize_audit_url("http://example.com") == "http://example.com"

    def test_strips_surrounding_whitespace(self):
        assert normalize_audit_url("  https://example.com/  ") == "https://example.com/"

    def test_non_http_scheme_passes_normalization(self):
        # Rejected later by the safety gate, not here
        assert normalize_audit_url("ftp://example.com") == "ftp://example.com"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input_rejected(self, raw):
        with pytest.raises(ValidationError):
            normalize_audit_url(raw)

    def test_missing_host_rejected(self):
        with pytest.raises(ValidationError):
            normalize_audit_url("https:///path-only")

    def test_whitespace_in_host_rejected(self):
        with pytest.raises(ValidationError):
            normalize_audit_url("https://exa mple.com")

    def test_invalid_port_rejected(self):
        with pytest.raises(ValidationError):
            normalize_audit_url("https://example.com:99999/")


class TestCanonicalizeUrl:
    """Tests for the historical tracking key."""

    def test_lowercases_and_drops_fragment(self):
        assert canonicalize_url("HTTPS://Example.COM/Page#top") == "https://example.com/page"

    def test_sorts_query_parameters(self):
        assert canonicalize_url("https://example.com/?b=2&a=1") == "https://example.com/?a=1&b=2"

    def test_strips_trailing_slash(self):
        assert canonicalize_url("https://example.com/") == "https://example.com"

    def test_equivalent_urls_share_key(self):
        assert canonicalize_url("https://example.com/?x=1&y=2#a") == canonicalize_url(
            "https://EXAMPLE.com/?y=2&x=1"
        )


class TestOriginHelpers:

    def test_domain_of(self):
        assert domain_of("https://Shop.Example.com:8443/a") == "shop.example.com"

    def test_same_origin_with_default_port(self):
        assert same_origin("https://example.com/a", "https://example.com:443/b")

    def test_different_scheme_is_different_origin(self):
        assert not same_origin("http://example.com/", "https://example.com/")

    def test_different_host_is_different_origin(self):
        assert not same_origin("https://a.example.com/", "https://b.example.com/")
