"""
Target URL validation for the CORS proxy.

The checks here are a coarse SSRF guard: only http(s) targets are allowed,
and ``localhost`` or anything a browser would read as an IPv4 literal is
refused. That covers the shorthand forms (``127.1``, ``2130706433``,
``0x7f.0.0.1``, ``0177.0.0.1``) which browsers rewrite to a dotted quad and
which the socket layer would happily connect to. Hostnames are never
resolved, so a DNS name pointing at an internal address is not caught.
"""

import re
from dataclasses import dataclass
from typing import AbstractSet, Optional
from urllib.parse import urlsplit

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}

# Syntactic only, octet ranges are not checked
_DOTTED_QUAD = re.compile(r"[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}")
_NUMERIC_LABEL = re.compile(r"[0-9]+|0[xX][0-9a-fA-F]*")

# Characters a browser refuses in a domain name. ":" is left out so that
# bracketed IPv6 hosts, which urlsplit returns without brackets, still parse.
FORBIDDEN_HOST_CHARS = frozenset("#%/<>?@[\\]^|") | frozenset(
    chr(c) for c in list(range(0x21)) + [0x7F]
)


@dataclass(frozen=True)
class TargetURL:
    url: str
    scheme: str
    hostname: str
    port: Optional[int] = None

    @property
    def origin(self) -> str:
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        if self.port is None or self.port == DEFAULT_PORTS.get(self.scheme):
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"

    def __str__(self) -> str:
        return self.url


def looks_like_ip_or_localhost(hostname: str) -> bool:
    return hostname == "localhost" or _DOTTED_QUAD.fullmatch(hostname) is not None


def ends_in_number(hostname: str) -> bool:
    """
    True when a browser would parse ``hostname`` as an IPv4 address.

    The last label decides: if it is decimal digits or a ``0x`` hex number,
    the whole host is read as IPv4 (``127.1``, ``2130706433``, ``0x7f.1``).
    Hosts that fail that parse are invalid anyway, so both cases are refused.
    """
    labels = hostname.split(".")
    if labels[-1] == "" and len(labels) > 1:
        labels.pop()
    return _NUMERIC_LABEL.fullmatch(labels[-1]) is not None


def has_forbidden_host_chars(hostname: str) -> bool:
    return any(c in FORBIDDEN_HOST_CHARS or c.isspace() for c in hostname)


def validate_target_url(
    candidate: Optional[str], allowed_hosts: Optional[AbstractSet[str]] = None
) -> Optional[TargetURL]:
    """
    Validate a candidate target URL.

    Args:
        candidate: Raw value of the ``url`` query parameter
        allowed_hosts: Optional whitelist of exact hostnames; empty or None disables it

    Returns:
        A TargetURL when every check passes, otherwise None
    """
    if not candidate:
        return None

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError:
        return None

    if parts.scheme not in ALLOWED_SCHEMES:
        return None

    hostname = parts.hostname
    if not hostname or has_forbidden_host_chars(hostname):
        return None

    # "example.com." and "example.com" name the same host
    bare_host = hostname[:-1] if hostname.endswith(".") else hostname
    if not bare_host or looks_like_ip_or_localhost(bare_host):
        return None
    if ":" not in bare_host and ends_in_number(bare_host):
        return None

    if allowed_hosts and bare_host not in allowed_hosts:
        return None

    return TargetURL(
        url=parts.geturl(),
        scheme=parts.scheme,
        hostname=hostname,
        port=port,
    )
