"""
Process-wide endpoint and SNI directories.

Each directory owns an immutable snapshot that readers fetch with
get() and writers swap wholesale with replace(). A lock guards the
swap so readers on any thread or event loop see either the old or the
new snapshot, never a mix of both.
"""

import logging
import threading
from types import MappingProxyType
from typing import Generic, Iterable, Mapping, Optional, TypeVar

from .servers import DEFAULT_SERVERS, DEFAULT_SNI_HOSTS, normalize_servers

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Registry(Generic[T]):
    """Holder for a replace-only snapshot."""

    name = "registry"

    def __init__(self, snapshot: T):
        self._lock = threading.Lock()
        self._snapshot = snapshot

    def get(self) -> T:
        """Return the current snapshot."""
        with self._lock:
            return self._snapshot

    def replace(self, snapshot: T) -> None:
        """Swap in a new snapshot."""
        with self._lock:
            self._snapshot = snapshot


class EndpointDirectory(Registry[tuple[str, ...]]):
    """The list of endpoint address strings to benchmark."""

    name = "endpoints"

    def __init__(self, servers: Optional[Iterable[str]] = None):
        if servers is None:
            servers = DEFAULT_SERVERS
        super().__init__(tuple(normalize_servers(servers)))

    def replace(self, snapshot: Iterable[str]) -> None:
        servers = tuple(normalize_servers(snapshot))
        super().replace(servers)
        logger.info("Endpoint directory replaced (%d entries)", len(servers))

    def set_servers(self, servers: Iterable[str]) -> None:
        """Replace the directory with a caller-supplied list."""
        self.replace(servers)


class SniDirectory(Registry[Mapping[str, str]]):
    """Maps a numeric address to the hostname presented as TLS SNI."""

    name = "sni"

    def __init__(self, hosts: Optional[Mapping[str, str]] = None):
        if hosts is None:
            hosts = DEFAULT_SNI_HOSTS
        super().__init__(MappingProxyType(dict(hosts)))

    def replace(self, snapshot: Mapping[str, str]) -> None:
        hosts = MappingProxyType(dict(snapshot))
        super().replace(hosts)
        logger.info("SNI directory replaced (%d entries)", len(hosts))

    def lookup(self, address: str) -> Optional[str]:
        """Exact-match lookup of the SNI hostname for an address."""
        return self.get().get(address)
