"""Link integrity checking for the anchors of an audited page."""

import logging
from typing import Optional
from urllib.parse import urljoin

import requests

from seo_audit.config import AuditConfig
from seo_audit.constants import HEAD_FALLBACK_STATUSES, SKIPPED_LINK_PREFIXES
from seo_audit.document import Anchor, DocumentModel
from seo_audit.exceptions import UnsafeTargetError
from seo_audit.models import BrokenLink, LinkScope
from seo_audit.safety import SafetyGate
from seo_audit.urls import same_origin

logger = logging.getLogger(__name__)


class _Unreachable(Exception):
    """A probe ended without any HTTP status."""


class LinkChecker:
    """Probes the links of a page and reports the broken ones.

    Links are probed one at a time, deduplicated by absolute URL and capped
    at max_links_to_check distinct URLs. External targets, and every
    redirect hop that leaves the page's origin, go through the safety gate
    first; a rejected link is skipped without being reported.
    """

    def __init__(
        self,
        gate: SafetyGate,
        config: Optional[AuditConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.gate = gate
        self.config = config or AuditConfig()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def check(self, model: DocumentModel, base_url: str) -> list[BrokenLink]:
        """Probe the page's links.

        Args:
            model: Analyzed page
            base_url: URL the page was served from, for resolving relative hrefs

        Returns:
            BrokenLink entries in document order
        """
        broken: list[BrokenLink] = []
        seen: set[str] = set()
        checked = 0

        for anchor in model.anchors:
            if checked >= self.config.max_links_to_check:
                break

            href = anchor.href
            if not href or href.startswith(SKIPPED_LINK_PREFIXES):
                continue

            absolute_url = href if href.startswith("http") else urljoin(base_url, href)
            if absolute_url in seen:
                continue
            seen.add(absolute_url)
            checked += 1

            is_internal = same_origin(absolute_url, base_url)
            try:
                self.gate.validate(absolute_url, resolve=not is_internal)
            except UnsafeTargetError:
                logger.debug(f"Skipping link blocked by safety gate: {absolute_url}")
                continue

            result = self._check_one(anchor, absolute_url, base_url, is_internal)
            if result is not None:
                broken.append(result)

        logger.info(f"Checked {checked} links on {base_url}, {len(broken)} broken")
        return broken

    def _check_one(
        self, anchor: Anchor, url: str, base_url: str, is_internal: bool
    ) -> Optional[BrokenLink]:
        scope = LinkScope.INTERNAL if is_internal else LinkScope.EXTERNAL

        try:
            status = self.probe(url, base_url)
        except UnsafeTargetError:
            logger.debug(f"Skipping link redirected to a blocked target: {url}")
            return None
        except _Unreachable as e:
            logger.debug(f"Link unreachable {url}: {e}")
            if not self.config.report_unreachable_links:
                return None
            status = None
        else:
            if status < 400:
                return None

        return BrokenLink(url=url, status=status, found_in=anchor.context, scope=scope)

    def probe(self, url: str, base_url: str) -> int:
        """Return the HTTP status of a link.

        Tries HEAD first; when the server refuses the method, retries with a
        streamed GET whose body is never read.

        Raises:
            UnsafeTargetError: If a redirect leads to a blocked target
            _Unreachable: If no HTTP status was obtained
        """
        response = self._request("HEAD", url, base_url)
        if response.status_code in HEAD_FALLBACK_STATUSES:
            response = self._request("GET", url, base_url)
        return response.status_code

    def _request(self, method: str, url: str, base_url: str) -> requests.Response:
        current = url
        try:
            for _ in range(self.config.link_max_redirects + 1):
                response = self.session.request(
                    method,
                    current,
                    timeout=self.config.link_timeout,
                    allow_redirects=False,
                    stream=True,
                )
                response.close()

                if not response.is_redirect:
                    return response

                current = urljoin(current, response.headers.get("Location", ""))
                if not same_origin(current, base_url):
                    self.gate.validate(current)
        except requests.exceptions.RequestException as e:
            error_response = getattr(e, "response", None)
            if error_response is not None:
                return error_response
            raise _Unreachable(str(e)) from e

        raise _Unreachable(f"Maximum number of redirects exceeded ({self.config.link_max_redirects})")

    def close(self) -> None:
        self.session.close()
