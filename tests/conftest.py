"""Shared fixtures for the audit test suite. No test touches the network."""

import socket
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from seo_audit.auditor import SiteAuditor
from seo_audit.config import AuditConfig
from seo_audit.document import DocumentAnalyzer
from seo_audit.models import FetchResult, PerformanceHistoryRecord
from seo_audit.safety import SafetyGate


FULL_PAGE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Acme Widgets - Quality Widgets Since 1999</title>
    <meta name="description" content="Acme Widgets builds durable, affordable widgets for homes and businesses. Browse our catalogue, read guides and get support.">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <meta name="robots" content="index, follow">
    <meta property="og:title" content="Acme Widgets">
    <meta property="og:description" content="Quality widgets since 1999">
    <meta property="og:image" content="https://acme.example/og.png">
    <meta name="twitter:card" content="summary">
    <link rel="canonical" href="https://acme.example/">
    <link rel="apple-touch-icon" href="/touch.png">
    <script type="application/ld+json">{"@type": "Organization", "name": "Acme"}</script>
</head>
<body>
    <header id="top" class="site-header">
        <a href="#main">Skip to content</a>
        <nav id="primary" class="menu main-menu">
            <a href="/products">Products</a>
            <a href="/about">About</a>
            <a href="/sitemap.xml">Sitemap</a>
        </nav>
    </header>
    <main id="main">
        <h1>Widgets</h1>
        <h2>Catalogue</h2>
        <p>{body}</p>
        <img src="/a.webp" alt="A widget" loading="lazy">
        <form>
            <label for="email">Email</label>
            <input id="email" type="email">
            <button type="submit">Subscribe</button>
        </form>
    </main>
    <footer>
        <a href="https://partner.example/">Partner</a>
    </footer>
</body>
</html>
""".replace("{body}", " ".join(["widget"] * 320))


BARE_PAGE_HTML = """
<html>
<head></head>
<body>
    <h3>Deals</h3>
    <div onclick="go()">Click</div>
    <button></button>
    <img src="/x.png">
    <img src="/y.png" alt="">
    <span id="dup">one</span><span id="dup">two</span>
    <input type="text" id="q">
    <a href="mailto:hi@example.com">Mail</a>
</body>
</html>
"""


@pytest.fixture
def full_page_html():
    return FULL_PAGE_HTML


@pytest.fixture
def bare_page_html():
    return BARE_PAGE_HTML


@pytest.fixture
def analyzer():
    return DocumentAnalyzer()


@pytest.fixture
def full_model(analyzer):
    return analyzer.analyze(FULL_PAGE_HTML)


@pytest.fixture
def bare_model(analyzer):
    return analyzer.analyze(BARE_PAGE_HTML)


def addrinfo(*addresses):
    """getaddrinfo-style result for the given addresses."""
    infos = []
    for address in addresses:
        family = socket.AF_INET6 if ":" in address else socket.AF_INET
        sockaddr = (address, 0, 0, 0) if family == socket.AF_INET6 else (address, 0)
        infos.append((family, socket.SOCK_STREAM, 6, "", sockaddr))
    return infos


@pytest.fixture
def public_resolver():
    """Resolver that maps every hostname to a public address."""
    return Mock(return_value=addrinfo("93.184.216.34"))


@pytest.fixture
def config():
    return AuditConfig()


@pytest.fixture
def gate(config, public_resolver):
    return SafetyGate(config, resolver=public_resolver)


def make_response(status_code=200, body=b"", headers=None, encoding="utf-8", is_redirect=None):
    """Mock of a streamed requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.encoding = encoding
    response.is_redirect = (
        is_redirect if is_redirect is not None
        else status_code in (301, 302, 303, 307, 308) and "Location" in response.headers
    )
    response.iter_content = Mock(return_value=iter([body] if body else []))
    return response


NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


def make_record(tracking_id, days_ago, overall, seo=None, accessibility=None,
                mobile=None, performance=None, now=NOW):
    return PerformanceHistoryRecord(
        tracking_id=tracking_id,
        audit_report_id=f"report-{days_ago}-{overall}",
        recorded_at=now - timedelta(days=days_ago),
        overall_score=overall,
        seo_score=seo,
        accessibility_score=accessibility,
        mobile_score=mobile,
        performance_score=performance,
    )


def make_report(html=FULL_PAGE_HTML, url="https://acme.example/", analysis_date=None, elapsed_ms=420):
    """Audit report built from static HTML through the real analysis pipeline."""
    fetcher = Mock()
    fetcher.fetch.return_value = FetchResult(
        url=url,
        final_url=url,
        html=html,
        elapsed_ms=elapsed_ms,
        byte_size=len(html.encode("utf-8")),
    )
    link_checker = Mock()
    link_checker.check.return_value = []
    report = SiteAuditor(
        fetcher=fetcher, analyzer=DocumentAnalyzer(), link_checker=link_checker
    ).audit(url)
    if analysis_date is not None:
        report = replace(report, analysis_date=analysis_date)
    return report
