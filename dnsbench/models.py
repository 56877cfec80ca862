"""
Data models for dnsbench.

Defines structured types for benchmark requests, endpoint resolver
configurations, raw samples, and per-endpoint results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import DEFAULT_SAMPLES, DEFAULT_TIMEOUT_SECS


class Protocol(Enum):
    """DNS transport protocols an endpoint can be reached over."""
    UDP = "udp"
    TLS = "tls"      # DNS over TLS
    HTTPS = "https"  # DNS over HTTPS
    QUIC = "quic"    # DNS over QUIC


@dataclass(frozen=True)
class EndpointConfig:
    """
    Fully resolved configuration for one endpoint.

    Built once per endpoint per run. Subclasses carry the
    protocol-specific fields; the Resolver Factory dispatches on type.
    """
    addresses: tuple[str, ...]
    port: int

    protocol = Protocol.UDP


@dataclass(frozen=True)
class UdpEndpoint(EndpointConfig):
    """Plain DNS over UDP."""

    protocol = Protocol.UDP


@dataclass(frozen=True)
class TlsEndpoint(EndpointConfig):
    """DNS over TLS."""
    sni: str = ""

    protocol = Protocol.TLS


@dataclass(frozen=True)
class QuicEndpoint(EndpointConfig):
    """DNS over QUIC."""
    sni: str = ""

    protocol = Protocol.QUIC


@dataclass(frozen=True)
class HttpsEndpoint(EndpointConfig):
    """DNS over HTTPS. H3 requests are downgraded to this config."""
    sni: str = ""
    path: str = "/dns-query"
    requested_h3: bool = False

    protocol = Protocol.HTTPS


@dataclass(frozen=True)
class QueryTarget:
    """Normalized benchmark query: an IP for reverse lookup or an ASCII domain."""
    value: str
    is_reverse: bool


@dataclass
class BenchmarkSample:
    """One timed lookup attempt."""
    elapsed_ms: float
    success: bool


@dataclass
class SampleRun:
    """Everything the Sampling Runner gathered for one endpoint."""
    samples: list[BenchmarkSample] = field(default_factory=list)
    ipv4_ips: list[str] = field(default_factory=list)
    ipv6_ips: list[str] = field(default_factory=list)
    error_msg: Optional[str] = None


@dataclass
class SampleStats:
    """Aggregated statistics for one endpoint's samples."""
    median_ms: Optional[float]
    jitter_ms: Optional[float]
    success_percent: float
    successes: int

    @property
    def query_successful(self) -> bool:
        """True when at least one sample succeeded."""
        return self.successes > 0


@dataclass
class BenchmarkRequest:
    """Parameters for one benchmark invocation."""
    domain_or_ip: str
    custom_servers: Optional[list[str]] = None
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    samples: int = DEFAULT_SAMPLES
    validate_dnssec: bool = False
    warm_up: bool = False

    def __post_init__(self):
        if self.samples is None:
            self.samples = DEFAULT_SAMPLES
        self.samples = max(1, int(self.samples))
        if self.timeout_secs is None or self.timeout_secs <= 0:
            self.timeout_secs = DEFAULT_TIMEOUT_SECS


@dataclass(frozen=True)
class EndpointResult:
    """Benchmark outcome for a single endpoint."""
    server_address: str
    latency_median_ms: Optional[float] = None
    jitter_ms: Optional[float] = None
    success_percent: float = 0.0
    query_successful: bool = False
    dnssec_validated: bool = False
    ipv4_ips: tuple[str, ...] = ()
    ipv6_ips: tuple[str, ...] = ()
    error_msg: Optional[str] = None

    @property
    def resolution_time_ms(self) -> Optional[int]:
        """Median latency truncated to whole milliseconds."""
        if self.latency_median_ms is None:
            return None
        return int(self.latency_median_ms)

    @classmethod
    def failure(cls, server_address: str, message: str) -> "EndpointResult":
        """Result for an endpoint that never produced a sample."""
        return cls(server_address=server_address, error_msg=message)

    def to_dict(self) -> dict:
        return {
            "server_address": self.server_address,
            "resolution_time_ms": self.resolution_time_ms,
            "latency_median_ms": self.latency_median_ms,
            "jitter_ms": self.jitter_ms,
            "success_percent": self.success_percent,
            "query_successful": self.query_successful,
            "dnssec_validated": self.dnssec_validated,
            "ipv4_ips": list(self.ipv4_ips),
            "ipv6_ips": list(self.ipv6_ips),
            "error_msg": self.error_msg,
        }
