"""
dnsbench - Multi-protocol DNS endpoint benchmarking.

Measures latency, jitter, success rate and DNSSEC status of plain UDP,
DNS-over-TLS, DNS-over-HTTPS and DNS-over-QUIC endpoints for a single
domain or reverse lookup.
"""

__version__ = "1.0.0"

from .models import BenchmarkRequest, EndpointResult, Protocol
from .registry import EndpointDirectory, SniDirectory
from .runner import BenchmarkRunner

__all__ = [
    "__version__",
    "BenchmarkRequest",
    "EndpointResult",
    "Protocol",
    "EndpointDirectory",
    "SniDirectory",
    "BenchmarkRunner",
]
