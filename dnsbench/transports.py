"""
Resolver construction for each DNS transport.

Maps a resolved endpoint configuration onto dnspython nameservers:
- UDP   (Do53Nameserver)
- TLS   (DoTNameserver)
- HTTPS (DoHNameserver, dialing the resolved address via bootstrap)
- QUIC  (DoQNameserver, requires the aioquic extra)

The resulting resolver exposes only the two lookups a benchmark needs.
"""

import ipaddress
import socket
from abc import ABC, abstractmethod
from typing import Callable

import dns.asyncresolver
import dns.flags
import dns.nameserver

from .config import HTTPS_PORT
from .errors import ResolverBuildError
from .models import (
    EndpointConfig,
    HttpsEndpoint,
    QuicEndpoint,
    TlsEndpoint,
    UdpEndpoint,
)

# EDNS payload advertised when DNSSEC records are requested
EDNS_PAYLOAD = 1232


class BaseResolver(ABC):
    """Lookup capability bound to a single endpoint."""

    @abstractmethod
    async def lookup_addresses(self, name: str) -> list[str]:
        """
        Resolve A and AAAA records for a name.

        Returns:
            Address strings of both families
        """

    @abstractmethod
    async def reverse_lookup(self, ip: str) -> list[str]:
        """
        Resolve PTR records for an address.

        Returns:
            Host names pointing back at the address
        """

    async def close(self) -> None:
        """Release any connections held by the resolver."""


class DnsPythonResolver(BaseResolver):
    """BaseResolver backed by dnspython's async resolver."""

    def __init__(self, resolver: dns.asyncresolver.Resolver):
        self.resolver = resolver

    async def lookup_addresses(self, name: str) -> list[str]:
        answer = await self.resolver.resolve_name(name, family=socket.AF_UNSPEC)
        return list(answer.addresses())

    async def reverse_lookup(self, ip: str) -> list[str]:
        answer = await self.resolver.resolve_address(ip)
        return [str(rdata.target) for rdata in answer]


# (config, validate_dnssec, timeout) -> resolver
ResolverFactory = Callable[[EndpointConfig, bool, float], BaseResolver]


def _doh_url(config: HttpsEndpoint) -> str:
    """URL presenting the SNI name as host; the address is dialed via bootstrap."""
    host = config.sni
    try:
        if ipaddress.ip_address(host).version == 6:
            host = f"[{host}]"
    except ValueError:
        pass
    if config.port != HTTPS_PORT:
        host = f"{host}:{config.port}"
    return f"https://{host}{config.path}"


def create_nameservers(config: EndpointConfig) -> list[dns.nameserver.Nameserver]:
    """
    Create one dnspython nameserver per address of an endpoint.

    Args:
        config: Resolved endpoint configuration

    Returns:
        Nameservers for the endpoint's protocol
    """
    if isinstance(config, TlsEndpoint):
        return [
            dns.nameserver.DoTNameserver(address, config.port, hostname=config.sni)
            for address in config.addresses
        ]
    elif isinstance(config, QuicEndpoint):
        return [
            dns.nameserver.DoQNameserver(address, config.port, server_hostname=config.sni)
            for address in config.addresses
        ]
    elif isinstance(config, HttpsEndpoint):
        url = _doh_url(config)
        return [
            dns.nameserver.DoHNameserver(url, bootstrap_address=address)
            for address in config.addresses
        ]
    elif isinstance(config, UdpEndpoint):
        return [
            dns.nameserver.Do53Nameserver(address, config.port)
            for address in config.addresses
        ]
    else:
        raise ResolverBuildError(f"Unknown endpoint config: {type(config).__name__}")


def build_resolver(
    config: EndpointConfig,
    validate_dnssec: bool,
    timeout: float,
) -> BaseResolver:
    """
    Build a ready-to-use resolver for an endpoint.

    The resolver keeps no cache, so every lookup reaches the endpoint,
    and each operation is bounded by ``timeout`` seconds.

    Args:
        config: Resolved endpoint configuration
        validate_dnssec: Whether to request DNSSEC records (DO bit)
        timeout: Per-operation timeout in seconds

    Returns:
        DnsPythonResolver bound to the endpoint

    Raises:
        ResolverBuildError: If dnspython rejects the configuration
    """
    if not config.addresses:
        raise ResolverBuildError("Endpoint has no addresses")

    try:
        resolver = dns.asyncresolver.Resolver(configure=False)
        resolver.nameservers = create_nameservers(config)
    except ResolverBuildError:
        raise
    except Exception as e:
        raise ResolverBuildError(f"Could not build resolver: {e}") from e

    resolver.timeout = timeout
    resolver.lifetime = timeout
    resolver.cache = None
    resolver.retry_servfail = False

    if validate_dnssec:
        resolver.use_edns(0, dns.flags.DO, EDNS_PAYLOAD)
        resolver.set_flags(dns.flags.RD | dns.flags.AD)

    return DnsPythonResolver(resolver)
