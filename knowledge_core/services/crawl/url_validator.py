"""URL normalization and SSRF guard.

Every URL the crawler touches passes through :func:`validate_url` before
any network access.  Validation never raises: a rejected URL comes back as
an invalid :class:`~knowledge_core.models.crawl.UrlValidationResult` with
a human-readable reason.

Rejected hosts:

* ``localhost`` (and ``*.localhost``), ``127.0.0.0/8``, ``::1``
* private ranges ``10.0.0.0/8``, ``172.16.0.0/12``, ``192.168.0.0/16``
* link-local ``169.254.0.0/16`` / ``fe80::/10`` and unspecified addresses
* numeric shorthand for any of the above (``127.1``, ``0x7f000001``)
"""

from __future__ import annotations

import ipaddress
import re
import socket
from collections.abc import Iterable
from urllib.parse import urlsplit, urlunsplit

from knowledge_core.models.crawl import UrlValidationResult

ERROR_INVALID_FORMAT = "Invalid URL format"
ERROR_UNSUPPORTED_SCHEME = "Only HTTP and HTTPS protocols are supported"
ERROR_PRIVATE_HOST = "Private or localhost URLs are not allowed"

_ALLOWED_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_SCHEME_PREFIX = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_HOST_LABEL = re.compile(r"^(?!-)[a-z0-9_-]{1,63}(?<!-)$")
_NUMERIC_HOST = re.compile(r"^[0-9a-fx.]+$")

_BLOCKED_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "0.0.0.0/8",
        "::1/128",
        "fe80::/10",
        "fc00::/7",
    )
)


def validate_url(raw_url: str) -> UrlValidationResult:
    """Trim, default the scheme to https, parse and safety-check *raw_url*.

    Returns
    -------
    UrlValidationResult
        ``valid=True`` with the canonical URL in ``normalized``, or
        ``valid=False`` with the reason in ``error``.
    """
    trimmed = raw_url.strip() if raw_url else ""
    if not trimmed:
        return UrlValidationResult(valid=False, error=ERROR_INVALID_FORMAT)

    candidate = trimmed if _SCHEME_PREFIX.match(trimmed) else f"https://{trimmed}"

    try:
        parts = urlsplit(candidate)
        scheme = parts.scheme.lower()
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return UrlValidationResult(valid=False, error=ERROR_INVALID_FORMAT)

    if scheme not in _ALLOWED_SCHEMES:
        return UrlValidationResult(valid=False, error=ERROR_UNSUPPORTED_SCHEME)
    if not hostname or not _is_well_formed_host(hostname):
        return UrlValidationResult(valid=False, error=ERROR_INVALID_FORMAT)
    if _is_blocked_host(hostname):
        return UrlValidationResult(valid=False, error=ERROR_PRIVATE_HOST)

    netloc = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    if parts.username:
        userinfo = parts.username if parts.password is None else f"{parts.username}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    normalized = urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))
    return UrlValidationResult(valid=True, normalized=normalized)


def normalize_url(url: str) -> str:
    """Return the canonical form of *url*, or *url* unchanged when it is invalid.

    Used as the key of the crawler's visited set, so ``https://a.com``,
    ``https://A.com/`` and ``https://a.com/#top`` count as one page.
    """
    result = validate_url(url)
    return result.normalized if result.valid and result.normalized else url


def filter_urls_by_same_domain(base_url: str, urls: Iterable[str]) -> list[str]:
    """Keep the URLs whose hostname equals *base_url*'s hostname exactly.

    Subdomains do not match: with a base of ``https://example.com`` the
    URL ``https://www.example.com/a`` is dropped.  Order is preserved;
    unparseable URLs are dropped.
    """
    base_host = _hostname(base_url)
    if base_host is None:
        return []
    return [url for url in urls if _hostname(url) == base_host]


def _hostname(url: str) -> str | None:
    try:
        return urlsplit(url.strip()).hostname
    except ValueError:
        return None


def _is_well_formed_host(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass
    try:
        ascii_host = hostname.encode("idna").decode("ascii")
    except UnicodeError:
        return False
    labels = ascii_host.rstrip(".").split(".")
    return all(_HOST_LABEL.match(label) for label in labels)


def _is_blocked_host(hostname: str) -> bool:
    host = hostname.rstrip(".").lower()
    if host == "localhost" or host.endswith(".localhost"):
        return True

    address = _parse_ip(host)
    if address is None:
        return False
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address.is_unspecified or any(address in network for network in _BLOCKED_NETWORKS)


def _parse_ip(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass
    # Browsers and resolvers accept shorthand like "127.1" or "0x7f.0.0.1";
    # inet_aton understands the same forms.
    if _NUMERIC_HOST.match(host):
        try:
            return ipaddress.IPv4Address(socket.inet_aton(host))
        except OSError:
            return None
    return None
