"""Effective-domain resolution for token audience binding."""

from typing import Mapping, Optional

# Reverse-proxy headers take precedence over the raw Host header
FORWARDED_HOST_HEADERS = ("x-forwarded-host", "x-original-host", "x-forwarded-server")


def host_from_headers(headers: Mapping[str, str]) -> str:
    """Derive the request's public host name.

    The first non-empty header in priority order wins; only its first
    comma-separated token is used, with any port suffix removed.
    """
    host_header = ""
    for name in FORWARDED_HOST_HEADERS + ("host",):
        value = headers.get(name) or ""
        if value:
            host_header = value
            break

    host_value = host_header.split(",")[0].strip()
    return host_value.split(":")[0]


def resolve_domain(headers: Mapping[str, str], configured: Optional[str] = None) -> str:
    """Return the domain a token must be bound to.

    An operator-configured domain overrides header inspection entirely.
    """
    if configured:
        return configured
    return host_from_headers(headers)
