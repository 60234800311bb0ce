"""URL safety gate.

Every URL the tool dereferences on behalf of a caller passes through
SafetyGate.validate() first, so that audits cannot be pointed at loopback,
private or link-local services. Checks run in three stages: scheme
allow-list, literal hostname denylist, then DNS resolution with every
resolved address classified against the blocked ranges.
"""

import ipaddress
import logging
import re
import socket
from typing import Callable, Optional
from urllib.parse import urlsplit

from seo_audit.config import AuditConfig
from seo_audit.exceptions import UnsafeTargetError
from seo_audit.models import ResolvedTarget

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

BLOCKED_HOSTNAMES = ("localhost", "127.0.0.1", "::1")

# Private and loopback IPv4 literals written directly in the hostname
_PRIVATE_HOST_PATTERN = re.compile(
    r"^(10\.|172\.(1[6-9]|2[0-9]|3[0-1])\.|192\.168\.|127\.|169\.254\.)"
)

BLOCKED_IPV4_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "0.0.0.0/8",       # this network
        "10.0.0.0/8",
        "127.0.0.0/8",     # loopback
        "169.254.0.0/16",  # link-local
        "172.16.0.0/12",
        "192.168.0.0/16",
        "224.0.0.0/4",     # multicast
    )
)

BLOCKED_IPV6_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "::/128",          # unspecified
        "::1/128",         # loopback
        "fe80::/10",       # link-local
        "fc00::/7",        # unique local
        "ff00::/8",        # multicast
    )
)


def is_blocked_address(address: str) -> bool:
    """Check whether an IP address falls in a blocked range.

    IPv4-mapped IPv6 addresses (::ffff:a.b.c.d) are classified by their
    embedded IPv4 address.

    Args:
        address: IPv4 or IPv6 address, optionally with a %scope suffix

    Returns:
        True if requests to this address must be refused
    """
    ip = ipaddress.ip_address(address.split("%", 1)[0])

    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped

    networks = BLOCKED_IPV4_NETWORKS if ip.version == 4 else BLOCKED_IPV6_NETWORKS
    return any(ip in network for network in networks)


class SafetyGate:
    """Decides whether a URL is safe for the server to request."""

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        resolver: Optional[Callable] = None,
    ):
        """Initialize the gate.

        Args:
            config: Audit configuration (uses dns_fail_open)
            resolver: getaddrinfo-compatible callable, defaults to socket.getaddrinfo
        """
        self.config = config or AuditConfig()
        self._resolver = resolver

    def validate(self, url: str, resolve: bool = True) -> ResolvedTarget:
        """Validate a URL before it is requested.

        Args:
            url: Absolute URL to check
            resolve: Resolve the hostname and classify its addresses. Links
                on an already-validated origin pass False.

        Returns:
            ResolvedTarget for the approved host

        Raises:
            UnsafeTargetError: If the scheme, hostname or any resolved
                address is not allowed
        """
        try:
            parsed = urlsplit(url)
        except ValueError as e:
            raise UnsafeTargetError(f"Cannot parse URL: {url}", url=url) from e

        scheme = parsed.scheme.lower()
        if scheme not in ALLOWED_SCHEMES:
            self._reject(url, f"Only HTTP and HTTPS URLs are allowed, got '{scheme or 'none'}'")

        hostname = (parsed.hostname or "").lower()
        if not hostname:
            self._reject(url, "URL has no hostname")

        if hostname in BLOCKED_HOSTNAMES:
            self._reject(url, "Cannot audit localhost or loopback addresses")

        if _PRIVATE_HOST_PATTERN.match(hostname):
            self._reject(url, "Cannot audit private or internal IP addresses")

        if self._is_ip_literal(hostname) and is_blocked_address(hostname):
            self._reject(url, "Cannot audit private or internal IP addresses")

        if not resolve:
            return ResolvedTarget(hostname=hostname)

        return self._resolve(url, hostname)

    def is_safe(self, url: str, resolve: bool = True) -> bool:
        """Boolean form of validate()."""
        try:
            self.validate(url, resolve=resolve)
        except UnsafeTargetError:
            return False
        return True

    def _resolve(self, url: str, hostname: str) -> ResolvedTarget:
        resolver = self._resolver or socket.getaddrinfo
        try:
            infos = resolver(hostname, None, socket.AF_UNSPEC)
        except (OSError, UnicodeError) as e:
            if not self.config.dns_fail_open:
                raise UnsafeTargetError(
                    f"DNS lookup failed for {hostname}: {e}", url=url
                ) from e
            logger.warning(f"DNS lookup failed for {hostname}, allowing request: {e}")
            return ResolvedTarget(hostname=hostname)

        first: Optional[ResolvedTarget] = None
        for family, _type, _proto, _canonname, sockaddr in infos:
            address = sockaddr[0]
            if is_blocked_address(address):
                self._reject(url, "Cannot audit private or internal IP addresses")
            if first is None:
                first = ResolvedTarget(hostname=hostname, ip=address, family=family)

        if first is None:
            if not self.config.dns_fail_open:
                raise UnsafeTargetError(f"DNS lookup returned no addresses for {hostname}", url=url)
            logger.warning(f"DNS lookup returned no addresses for {hostname}, allowing request")
            return ResolvedTarget(hostname=hostname)

        return first

    @staticmethod
    def _is_ip_literal(hostname: str) -> bool:
        try:
            ipaddress.ip_address(hostname.split("%", 1)[0])
        except ValueError:
            return False
        return True

    @staticmethod
    def _reject(url: str, reason: str) -> None:
        logger.info(f"Blocked unsafe target {url}: {reason}")
        raise UnsafeTargetError(reason, url=url)
