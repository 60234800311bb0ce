"""Bounded-time page retrieval behind the safety gate."""

import logging
import time
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import UnicodeDammit

from seo_audit.config import AuditConfig
from seo_audit.constants import FETCH_CHUNK_SIZE
from seo_audit.exceptions import FetchError
from seo_audit.models import FetchResult
from seo_audit.safety import SafetyGate

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetches a single page for analysis.

    Redirects are followed by hand so that every hop goes back through the
    safety gate. The whole exchange (connect, redirects and body) shares one
    time budget, and the body is streamed so oversized pages are cut off
    early. Failures are never retried.
    """

    def __init__(
        self,
        gate: SafetyGate,
        config: Optional[AuditConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the fetcher.

        Args:
            gate: Safety gate consulted before every request
            config: Audit configuration (timeouts, limits, user agent)
            session: Optional requests session to reuse
        """
        self.gate = gate
        self.config = config or AuditConfig()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def fetch(self, url: str) -> FetchResult:
        """Retrieve a page.

        Args:
            url: Absolute URL to fetch

        Returns:
            FetchResult with the decoded body, elapsed time and byte size

        Raises:
            UnsafeTargetError: If the URL or a redirect target is blocked
            FetchError: On timeout, redirect-limit breach, oversized body,
                HTTP error status or transport failure
        """
        timeout = self.config.fetch_timeout
        start = time.monotonic()
        deadline = start + timeout
        redirect_chain: list[str] = []
        current = url

        logger.info(f"Fetching {url}")

        try:
            for _ in range(self.config.max_redirects + 1):
                self.gate.validate(current)

                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise FetchError(f"Request timeout after {timeout}s", url=url)

                response = self.session.get(
                    current,
                    timeout=remaining,
                    allow_redirects=False,
                    stream=True,
                )

                if response.is_redirect:
                    location = response.headers.get("Location", "")
                    response.close()
                    redirect_chain.append(current)
                    current = urljoin(current, location)
                    logger.debug(f"Redirected to {current}")
                    continue

                try:
                    body = self._read_body(response, url, deadline)
                finally:
                    response.close()
                break
            else:
                raise FetchError(
                    f"Maximum number of redirects exceeded ({self.config.max_redirects})",
                    url=url,
                )

        except requests.exceptions.Timeout as e:
            raise FetchError(f"Request timeout after {timeout}s", url=url, cause=e) from e
        except requests.exceptions.ConnectionError as e:
            raise FetchError(f"Connection error: {e}", url=url, cause=e) from e
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to fetch URL: {e}", url=url, cause=e) from e

        if response.status_code >= 400:
            raise FetchError(
                f"Request failed with status code {response.status_code}", url=url
            )

        elapsed_ms = int(round((time.monotonic() - start) * 1000))
        html = self._decode(response, body)

        logger.info(f"Fetched {current} in {elapsed_ms}ms ({len(body)} bytes)")

        return FetchResult(
            url=url,
            final_url=current,
            html=html,
            elapsed_ms=elapsed_ms,
            byte_size=len(body),
            status_code=response.status_code,
            redirect_chain=redirect_chain,
        )

    @staticmethod
    def _decode(response: requests.Response, body: bytes) -> str:
        """Decode the body, honoring a header charset before the markup's own."""
        content_type = response.headers.get("Content-Type", "") or ""
        if "charset=" in content_type.lower():
            try:
                return body.decode(response.encoding or "utf-8", errors="replace")
            except LookupError:
                return body.decode("utf-8", errors="replace")

        # requests assumes ISO-8859-1 for text/* without a charset; let the
        # document's meta declaration decide instead, then try UTF-8
        dammit = UnicodeDammit(body, user_encodings=["utf-8"], is_html=True)
        if dammit.unicode_markup is None:
            return body.decode("utf-8", errors="replace")
        return dammit.unicode_markup

    def _read_body(self, response: requests.Response, url: str, deadline: float) -> bytes:
        limit = self.config.max_content_bytes
        body = bytearray()

        for chunk in response.iter_content(chunk_size=FETCH_CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > limit:
                raise FetchError(f"Response body exceeds {limit} bytes", url=url)
            if time.monotonic() > deadline:
                raise FetchError(
                    f"Request timeout after {self.config.fetch_timeout}s", url=url
                )

        return bytes(body)

    def close(self) -> None:
        self.session.close()
