"""
URL Validator

Sanitizes free-form URL input for the audit pipeline:
- one candidate per line, capped batch size
- scheme defaulting, length and format checks
- deduplication on origin + path + query
- SSRF defense: every hostname must resolve to a public address
"""

import ipaddress
import logging
import re
import socket
from typing import Callable
from urllib.parse import urlsplit

from seoaudit.config import settings
from seoaudit.schemas.audit import UrlValidationResult

logger = logging.getLogger(__name__)

Resolver = Callable[[str], list[str]]

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "0.0.0.0",
    "::1",
    "metadata",
    "metadata.google.internal",
    "169.254.169.254",
}

PRIVATE_NETWORKS = [
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("100.64.0.0/10"),  # CGNAT
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

DEFAULT_PORTS = {"http": 80, "https": 443}

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_LINE_SPLIT_RE = re.compile(r"[\r\n]+")


def resolve_host(hostname: str) -> list[str]:
    """Resolve a hostname to every address the system resolver returns."""
    info = socket.getaddrinfo(hostname, None)
    return [sockaddr[0] for _, _, _, _, sockaddr in info]


def is_private_ip(address: str) -> bool:
    """True for loopback, private, link-local and CGNAT addresses."""
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return any(ip in network for network in PRIVATE_NETWORKS if network.version == ip.version)


def _origin(scheme: str, hostname: str, port: int | None) -> str:
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is None or DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


class UrlValidator:
    """Validates newline-delimited URL input before a job is created."""

    def __init__(
        self,
        max_urls: int | None = None,
        max_url_length: int | None = None,
        resolver: Resolver | None = None,
    ):
        self.max_urls = max_urls or settings.SEO_AUDIT_MAX_URLS
        self.max_url_length = max_url_length or settings.SEO_AUDIT_MAX_URL_LENGTH
        self.resolver = resolver or resolve_host

    def validate(self, raw_input: str) -> UrlValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        lines = [line.strip() for line in _LINE_SPLIT_RE.split(raw_input or "")]
        lines = [line for line in lines if line]

        if not lines:
            return UrlValidationResult(valid=False, errors=["No URLs provided"])

        if len(lines) > self.max_urls:
            return UrlValidationResult(
                valid=False,
                errors=[f"Too many URLs. Maximum is {self.max_urls}, got {len(lines)}"],
            )

        valid_urls: list[str] = []
        seen: set[str] = set()

        for line in lines:
            url_str = line if _SCHEME_RE.match(line) else f"https://{line}"

            if len(url_str) > self.max_url_length:
                errors.append(f"URL too long ({len(url_str)} chars): {url_str[:80]}...")
                continue

            try:
                parsed = urlsplit(url_str)
                port = parsed.port
            except ValueError:
                errors.append(f"Invalid URL: {line}")
                continue

            scheme = parsed.scheme.lower()
            hostname = (parsed.hostname or "").lower()

            if scheme not in DEFAULT_PORTS:
                errors.append(f'Invalid protocol "{scheme}:" for: {line}')
                continue

            if not hostname or any(ch.isspace() for ch in url_str):
                errors.append(f"Invalid URL: {line}")
                continue

            if hostname in BLOCKED_HOSTNAMES:
                errors.append(f"Blocked hostname: {hostname}")
                continue

            origin = _origin(scheme, hostname, port)
            path = parsed.path or "/"
            query = f"?{parsed.query}" if parsed.query else ""

            normalized = origin + path.rstrip("/") + query
            if normalized in seen:
                warnings.append(f"Duplicate URL removed: {line}")
                continue
            seen.add(normalized)

            try:
                addresses = self.resolver(hostname)
            except (OSError, UnicodeError) as e:
                logger.info(f"[URLValidator] Cannot resolve {hostname}: {e}")
                errors.append(f"Cannot resolve hostname: {hostname}")
                continue

            if not addresses:
                errors.append(f"Cannot resolve hostname: {hostname}")
                continue

            private = next((addr for addr in addresses if is_private_ip(addr)), None)
            if private is not None:
                logger.warning(f"[URLValidator] Rejected {hostname}: resolves to private IP {private}")
                errors.append(f"URL resolves to private IP ({private}): {hostname}")
                continue

            fragment = f"#{parsed.fragment}" if parsed.fragment else ""
            valid_urls.append(origin + path + query + fragment)

        return UrlValidationResult(
            valid=len(valid_urls) > 0 and not errors,
            urls=valid_urls,
            errors=errors,
            warnings=warnings,
        )
