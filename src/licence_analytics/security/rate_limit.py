"""Rate limiting for expensive report and export endpoints."""

from ipaddress import IPv4Network, IPv6Network, ip_address, ip_network

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from licence_analytics.config import get_settings

DEVELOPMENT_PROXIES = ("127.0.0.1", "::1")


def trusted_proxy_networks() -> list[IPv4Network | IPv6Network]:
    """Networks whose requests may carry a forwarded client address.

    Configured ``trusted_proxies`` win. Without them only localhost is trusted,
    and only in development. Malformed entries are ignored.
    """
    settings = get_settings()
    entries: tuple[str, ...] | list[str] = settings.trusted_proxies_list
    if not entries and settings.environment == "development":
        entries = DEVELOPMENT_PROXIES

    networks = []
    for entry in entries:
        try:
            networks.append(ip_network(entry, strict=False))
        except ValueError:
            continue
    return networks


def _forwarded_client(request: Request) -> str | None:
    """First address of X-Forwarded-For, if it is a valid IP."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if not forwarded_for:
        return None
    candidate = forwarded_for.split(",")[0].strip()
    try:
        ip_address(candidate)
    except ValueError:
        return None
    return candidate


def get_real_client_ip(request: Request) -> str:
    """Rate-limit key: the peer address, or the forwarded client behind a trusted proxy."""
    peer = get_remote_address(request)
    try:
        peer_address = ip_address(peer)
    except ValueError:
        return peer

    if any(peer_address in network for network in trusted_proxy_networks()):
        return _forwarded_client(request) or peer
    return peer


def _per_minute(requests: int) -> str:
    return f"{requests}/minute"


_settings = get_settings()

EXPENSIVE_READ_LIMIT = _per_minute(_settings.rate_limit_expensive_read)
EXPORT_LIMIT = _per_minute(_settings.rate_limit_export)

limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=[_per_minute(_settings.rate_limit_default)],
    storage_uri=_settings.rate_limit_storage_uri or "memory://",
    enabled=_settings.rate_limit_enabled,
)
