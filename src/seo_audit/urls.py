"""URL normalization helpers for audit targets and tracking keys."""

import re
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from seo_audit.exceptions import ValidationError

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_audit_url(raw: str) -> str:
    """Turn user input into an absolute URL suitable for auditing.

    A missing scheme defaults to https. Non-http(s) schemes are left alone
    here and rejected by the safety gate.

    Args:
        raw: URL as entered by the caller

    Returns:
        Normalized URL string

    Raises:
        ValidationError: If the value cannot be parsed as a URL with a host
    """
    if raw is None or not raw.strip():
        raise ValidationError("URL is required")

    url = raw.strip()
    if not _SCHEME_RE.match(url):
        url = f"https://{url}"

    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {raw!r}", url=raw) from e

    host = parsed.hostname
    if not host:
        raise ValidationError(f"Invalid URL: {raw!r} has no hostname", url=raw)
    if any(ch.isspace() for ch in parsed.netloc):
        raise ValidationError(f"Invalid URL: {raw!r} contains whitespace in the host", url=raw)

    try:
        parsed.port
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {raw!r} has an invalid port", url=raw) from e

    return url


def canonicalize_url(url: str) -> str:
    """Canonical form used as the key for historical tracking.

    Lower-cases the URL, drops the fragment, sorts query parameters and
    strips a trailing slash.
    """
    parsed = urlsplit(url.strip().lower())
    query = urlencode(sorted(parse_qsl(parsed.query, keep_blank_values=True)))
    path = parsed.path
    canonical = urlunsplit((parsed.scheme, parsed.netloc, path, query, ""))
    if canonical.endswith("/"):
        canonical = canonical[:-1]
    return canonical


def domain_of(url: str) -> str:
    """Hostname of a URL, lower-cased."""
    return (urlsplit(url).hostname or "").lower()


def _origin(url: str) -> tuple:
    parsed = urlsplit(url)
    scheme = parsed.scheme.lower()
    try:
        port = parsed.port
    except ValueError:
        port = None
    if port is None:
        port = _DEFAULT_PORTS.get(scheme)
    return scheme, (parsed.hostname or "").lower(), port


def same_origin(first: str, second: str) -> bool:
    """True if both URLs share scheme, host and effective port."""
    return _origin(first) == _origin(second)
