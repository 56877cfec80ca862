"""
Endpoint address parsing and query validation.

Turns free-form endpoint strings into protocol-tagged configurations:
- ``<ip-or-host>``                       plain UDP, port 53
- ``tls://<host>[:<port>][@<sni>]``      DNS over TLS, port 853
- ``quic://<host>[:<port>][@<sni>]``     DNS over QUIC, port 853
- ``https://<host>[:<port>][/<path>]``   DNS over HTTPS, port 443
- ``h3://...``                           accepted, downgraded to HTTPS

Symbolic hosts are resolved with the system resolver, never with the
endpoint under test.
"""

import asyncio
import ipaddress
import logging
import re
import socket
from typing import Awaitable, Callable, Optional
from urllib.parse import urlsplit

import dns.asyncresolver
import idna

from .config import DEFAULT_DOH_PATH, HTTPS_PORT, QUIC_PORT, TLS_PORT, UDP_PORT
from .errors import EndpointConfigError, InvalidQueryFormat
from .models import (
    EndpointConfig,
    HttpsEndpoint,
    Protocol,
    QueryTarget,
    QuicEndpoint,
    TlsEndpoint,
    UdpEndpoint,
)
from .registry import SniDirectory

logger = logging.getLogger(__name__)

# Resolves a symbolic host to numeric addresses: (host, timeout) -> addresses
HostResolver = Callable[[str, float], Awaitable[list[str]]]

_SCHEMES: dict[str, Protocol] = {
    "https://": Protocol.HTTPS,
    "quic://": Protocol.QUIC,
    "tls://": Protocol.TLS,
    "h3://": Protocol.HTTPS,
}


# ASCII label: letters, digits, hyphen and underscore; no leading or trailing hyphen
_ASCII_LABEL = re.compile(r"^[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?$")
MAX_DOMAIN_LENGTH = 253


def _to_ascii_domain(text: str) -> str:
    """
    Map a domain to its ASCII form.

    Non-ASCII labels go through IDNA; ASCII labels only need to be
    well-formed, so service labels such as ``_dmarc`` are accepted.

    Raises:
        InvalidQueryFormat: If any label is malformed
    """
    try:
        mapped = idna.uts46_remap(text, std3_rules=False)
    except idna.IDNAError as e:
        raise InvalidQueryFormat("Invalid domain format") from e

    rooted = mapped.endswith(".")
    if rooted:
        mapped = mapped[:-1]

    labels = []
    for label in mapped.split("."):
        if label.isascii():
            if not _ASCII_LABEL.match(label):
                raise InvalidQueryFormat("Invalid domain format")
            labels.append(label)
            continue
        try:
            labels.append(idna.alabel(label).decode("ascii"))
        except idna.IDNAError as e:
            raise InvalidQueryFormat("Invalid domain format") from e

    name = ".".join(labels)
    if len(name) > MAX_DOMAIN_LENGTH:
        raise InvalidQueryFormat("Invalid domain format")
    return name + "." if rooted else name


def parse_query_target(value: str) -> QueryTarget:
    """
    Normalize the user's query.

    IP literals become reverse-lookup targets; anything else must be a
    domain whose labels are valid hostname or IDNA labels.

    Raises:
        InvalidQueryFormat: If the value is neither an IP nor a valid domain
    """
    text = value.strip()
    try:
        return QueryTarget(value=str(ipaddress.ip_address(text)), is_reverse=True)
    except ValueError:
        pass

    return QueryTarget(value=_to_ascii_domain(text), is_reverse=False)


def split_scheme(address: str) -> tuple[Optional[str], str]:
    """
    Split a known scheme prefix off an endpoint address.

    Prefixes are matched case-sensitively, longest first. Returns
    ``(None, address)`` for schemeless addresses.
    """
    for prefix in sorted(_SCHEMES, key=len, reverse=True):
        if address.startswith(prefix):
            return prefix, address[len(prefix):]
    return None, address


def protocol_of(address: str) -> Protocol:
    """Protocol an endpoint address will be benchmarked over."""
    prefix, _ = split_scheme(address)
    if prefix is None:
        return Protocol.UDP
    return _SCHEMES[prefix]


def is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


async def system_host_lookup(host: str, timeout: float) -> list[str]:
    """Resolve a hostname with the system-configured resolver."""
    resolver = dns.asyncresolver.Resolver()
    resolver.lifetime = timeout
    answer = await resolver.resolve_name(host, family=socket.AF_UNSPEC)
    return list(answer.addresses())


def _parse_port(text: str, address: str) -> int:
    if not text.isdigit():
        raise EndpointConfigError(f"Invalid port in {address!r}")
    port = int(text)
    if not 0 < port < 65536:
        raise EndpointConfigError(f"Port out of range in {address!r}")
    return port


def _split_host_port(hostport: str, default_port: int, address: str) -> tuple[str, int]:
    """Split ``host[:port]``, accepting bracketed or bare IPv6 literals."""
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            raise EndpointConfigError(f"Unterminated IPv6 literal in {address!r}")
        host, rest = hostport[1:end], hostport[end + 1:]
        if not rest:
            port = default_port
        elif rest.startswith(":"):
            port = _parse_port(rest[1:], address)
        else:
            raise EndpointConfigError(f"Unexpected text after host in {address!r}")
    elif hostport.count(":") == 1:
        host, port_text = hostport.split(":")
        port = _parse_port(port_text, address)
    else:
        # Bare host, or an unbracketed IPv6 literal
        host, port = hostport, default_port

    if not host:
        raise EndpointConfigError(f"No host in {address!r}")
    return host, port


class EndpointConfigBuilder:
    """
    Builds resolved endpoint configurations.

    Consults the SNI Directory for numeric TLS-family hosts and the
    host resolver for symbolic ones.
    """

    def __init__(
        self,
        sni_directory: SniDirectory,
        host_resolver: HostResolver = system_host_lookup,
    ):
        """
        Initialize the builder.

        Args:
            sni_directory: IP -> SNI hostname directory
            host_resolver: Coroutine resolving symbolic hosts to addresses
        """
        self.sni_directory = sni_directory
        self.host_resolver = host_resolver

    async def build(self, address: str, timeout: float) -> EndpointConfig:
        """
        Parse one endpoint address into a resolved configuration.

        Args:
            address: Endpoint address string
            timeout: Deadline for resolving a symbolic host, in seconds

        Returns:
            Protocol-specific EndpointConfig

        Raises:
            EndpointConfigError: Malformed address or unresolvable host
        """
        prefix, rest = split_scheme(address)

        if prefix is None:
            if "://" in address:
                raise EndpointConfigError(f"Unsupported scheme in {address!r}")
            return await self._build_udp(address, timeout)

        protocol = _SCHEMES[prefix]
        if protocol == Protocol.HTTPS:
            return await self._build_https(address, rest, prefix == "h3://", timeout)
        return await self._build_tls_family(address, rest, protocol, timeout)

    async def _build_udp(self, address: str, timeout: float) -> UdpEndpoint:
        host = address.strip()
        if not host:
            raise EndpointConfigError("Empty endpoint address")
        if is_ip_literal(host):
            addresses = (str(ipaddress.ip_address(host)),)
        else:
            addresses = await self._resolve_host(host, timeout)
        return UdpEndpoint(addresses=addresses, port=UDP_PORT)

    async def _build_tls_family(
        self,
        address: str,
        rest: str,
        protocol: Protocol,
        timeout: float,
    ) -> EndpointConfig:
        hostport, has_sni, explicit_sni = rest.partition("@")
        if has_sni and not explicit_sni:
            raise EndpointConfigError(f"Empty SNI name in {address!r}")

        default_port = TLS_PORT if protocol == Protocol.TLS else QUIC_PORT
        host, port = _split_host_port(hostport, default_port, address)
        addresses, sni = await self._resolve_with_sni(host, explicit_sni or None, timeout)

        if protocol == Protocol.TLS:
            return TlsEndpoint(addresses=addresses, port=port, sni=sni)
        return QuicEndpoint(addresses=addresses, port=port, sni=sni)

    async def _build_https(
        self,
        address: str,
        rest: str,
        is_h3: bool,
        timeout: float,
    ) -> HttpsEndpoint:
        if is_h3:
            logger.warning("H3 requested for %s; falling back to HTTPS", address)

        try:
            parts = urlsplit("https://" + rest)
            port = parts.port
        except ValueError as e:
            raise EndpointConfigError(f"Malformed URL {address!r}: {e}") from e

        host = parts.hostname
        if not host:
            raise EndpointConfigError(f"No host in URL {address!r}")
        if port is None:
            port = HTTPS_PORT
        elif port == 0:
            raise EndpointConfigError(f"Port out of range in {address!r}")

        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        if path == "/":
            path = DEFAULT_DOH_PATH

        addresses, sni = await self._resolve_with_sni(host, None, timeout)
        return HttpsEndpoint(
            addresses=addresses,
            port=port,
            sni=sni,
            path=path,
            requested_h3=is_h3,
        )

    async def _resolve_with_sni(
        self,
        host: str,
        explicit_sni: Optional[str],
        timeout: float,
    ) -> tuple[tuple[str, ...], str]:
        """Resolve a TLS-family host to addresses and pick its SNI name."""
        if not is_ip_literal(host):
            addresses = await self._resolve_host(host, timeout)
            return addresses, explicit_sni or host

        addresses = (str(ipaddress.ip_address(host)),)
        if explicit_sni:
            return addresses, explicit_sni

        sni = self.sni_directory.lookup(host)
        if sni is None:
            logger.warning("No SNI host mapped for %s; using the IP as SNI, TLS may fail", host)
            sni = host
        return addresses, sni

    async def _resolve_host(self, host: str, timeout: float) -> tuple[str, ...]:
        logger.debug("Resolving endpoint host %s", host)
        try:
            found = await asyncio.wait_for(self.host_resolver(host, timeout), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise EndpointConfigError(f"Timed out resolving {host}") from e
        except Exception as e:
            raise EndpointConfigError(f"Could not resolve {host}: {e}") from e

        addresses = tuple(dict.fromkeys(found))
        if not addresses:
            raise EndpointConfigError(f"No addresses found for {host}")
        return addresses
