from unittest.mock import Mock

import pytest
import requests

from conftest import addrinfo, make_response
from seo_audit.config import AuditConfig
from seo_audit.document import Anchor, DocumentModel
from seo_audit.link_checker import LinkChecker
from seo_audit.models import CheckStatus, LinkScope, MetaTag, MetaTagAnalysis
from seo_audit.safety import SafetyGate

BASE_URL = "https://site.example/"


def _model(*anchors):
    empty = MetaTag(present=False, content="", status=CheckStatus.WARNING)
    meta = MetaTagAnalysis(*([empty] * 8))
    return DocumentModel(title="", meta_tags=meta, anchors=tuple(anchors))


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.headers = {}
    session.request.return_value = make_response(200)
    return session


@pytest.fixture
def checker(gate, session):
    return LinkChecker(gate, session=session)


class TestLinkSelection:
    """Tests for which links get probed."""

    def test_skips_fragments_mail_and_phone_links(self, checker, session):
        model = _model(
            Anchor("#top", "Top"),
            Anchor("mailto:a@b.example", "Mail"),
            Anchor("tel:+123", "Call"),
            Anchor("", "Empty"),
        )

        assert checker.check(model, BASE_URL) == []
        session.request.assert_not_called()

    def test_relative_links_resolved_against_base(self, checker, session):
        checker.check(_model(Anchor("/about", "About")), BASE_URL)

        method, url = session.request.call_args[0]
        assert method == "HEAD"
        assert url == "https://site.example/about"

    def test_duplicate_urls_probed_once(self, checker, session):
        model = _model(
            Anchor("/about", "About"),
            Anchor("https://site.example/about", "About again"),
        )

        checker.check(model, BASE_URL)

        assert session.request.call_count == 1

    def test_cap_on_distinct_links(self, checker, session):
        model = _model(*[Anchor(f"/page-{i}", str(i)) for i in range(60)])

        checker.check(model, BASE_URL)

        assert session.request.call_count == 50

    def test_configurable_cap(self, gate, session):
        checker = LinkChecker(gate, AuditConfig(max_links_to_check=5), session=session)

        checker.check(_model(*[Anchor(f"/p{i}", str(i)) for i in range(20)]), BASE_URL)

        assert session.request.call_count == 5

    def test_internal_links_skip_dns(self, public_resolver, checker):
        checker.check(_model(Anchor("/about", "About")), BASE_URL)

        public_resolver.assert_not_called()

    def test_external_links_resolved_by_gate(self, public_resolver, checker):
        checker.check(_model(Anchor("https://other.example/", "Other")), BASE_URL)

        public_resolver.assert_called_once()

    def test_links_to_private_hosts_skipped_silently(self, checker, session):
        model = _model(
            Anchor("http://127.0.0.1/admin", "Admin"),
            Anchor("http://192.168.1.1/", "Router"),
        )

        assert checker.check(model, BASE_URL) == []
        session.request.assert_not_called()


class TestLinkProbing:
    """Tests for probe outcomes."""

    def test_error_status_recorded_with_context(self, checker, session):
        session.request.return_value = make_response(404)
        model = _model(Anchor("/gone", "Gone", context="nav#primary.menu"))

        (broken,) = checker.check(model, BASE_URL)

        assert broken.url == "https://site.example/gone"
        assert broken.status == 404
        assert broken.found_in == "nav#primary.menu"
        assert broken.scope == LinkScope.INTERNAL

    def test_external_scope(self, checker, session):
        session.request.return_value = make_response(500)

        (broken,) = checker.check(_model(Anchor("https://other.example/x", "X")), BASE_URL)

        assert broken.scope == LinkScope.EXTERNAL

    def test_protocol_relative_link_is_external(self, checker, session):
        session.request.return_value = make_response(404)

        (broken,) = checker.check(_model(Anchor("//cdn.example/lib.js", "CDN")), BASE_URL)

        assert broken.url == "https://cdn.example/lib.js"
        assert broken.scope == LinkScope.EXTERNAL

    @pytest.mark.parametrize("status", [405, 501])
    def test_head_not_allowed_falls_back_to_get(self, checker, session, status):
        session.request.side_effect = [make_response(status), make_response(200)]

        assert checker.check(_model(Anchor("/form", "Form")), BASE_URL) == []
        methods = [c[0][0] for c in session.request.call_args_list]
        assert methods == ["HEAD", "GET"]

    def test_get_fallback_status_is_used(self, checker, session):
        session.request.side_effect = [make_response(405), make_response(410)]

        (broken,) = checker.check(_model(Anchor("/old", "Old")), BASE_URL)

        assert broken.status == 410

    def test_working_links_not_reported(self, checker, session):
        session.request.return_value = make_response(204)

        assert checker.check(_model(Anchor("/ok", "OK")), BASE_URL) == []

    def test_redirect_to_working_page(self, checker, session):
        session.request.side_effect = [
            make_response(301, headers={"Location": "/new"}),
            make_response(200),
        ]

        assert checker.check(_model(Anchor("/moved", "Moved")), BASE_URL) == []

    def test_redirect_off_origin_to_private_host_skipped(self, session):
        def resolver(host, port, family):
            return addrinfo("10.1.1.1" if host == "internal.example" else "93.184.216.34")

        checker = LinkChecker(SafetyGate(resolver=resolver), session=session)
        session.request.side_effect = [
            make_response(302, headers={"Location": "http://internal.example/"}),
        ]

        assert checker.check(_model(Anchor("/go", "Go")), BASE_URL) == []
        assert session.request.call_count == 1

    def test_unreachable_links_skipped_by_default(self, checker, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        assert checker.check(_model(Anchor("/down", "Down")), BASE_URL) == []

    def test_unreachable_links_reported_when_enabled(self, gate, session):
        session.request.side_effect = requests.exceptions.ConnectTimeout("slow")
        checker = LinkChecker(gate, AuditConfig(report_unreachable_links=True), session=session)

        (broken,) = checker.check(_model(Anchor("/down", "Down")), BASE_URL)

        assert broken.status is None

    def test_one_failure_does_not_stop_the_rest(self, checker, session):
        session.request.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            make_response(404),
        ]
        model = _model(Anchor("/a", "A"), Anchor("/b", "B"))

        (broken,) = checker.check(model, BASE_URL)

        assert broken.url == "https://site.example/b"
