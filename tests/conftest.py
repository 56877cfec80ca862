import asyncio
import threading
from typing import Optional

import pytest

from dnsbench.models import EndpointConfig
from dnsbench.registry import SniDirectory
from dnsbench.transports import BaseResolver


class ConcurrencyTracker:
    """Thread-safe counter of in-flight operations and its peak."""

    def __init__(self):
        self._lock = threading.Lock()
        self.current = 0
        self.peak = 0
        self.total = 0

    def enter(self):
        with self._lock:
            self.current += 1
            self.total += 1
            self.peak = max(self.peak, self.current)

    def exit(self):
        with self._lock:
            self.current -= 1


class FakeResolver(BaseResolver):
    """
    Scripted resolver.

    Each call consumes the next outcome from ``script`` (the last one
    repeats). An outcome is either a list of answers or an exception.
    """

    def __init__(self, script=None, delay: float = 0.0, tracker: Optional[ConcurrencyTracker] = None):
        self.script = list(script) if script is not None else [["93.184.216.34"]]
        self.delay = delay
        self.tracker = tracker
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def _answer(self, kind: str, value: str):
        self.calls.append((kind, value))
        outcome = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if self.tracker:
            self.tracker.enter()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if isinstance(outcome, BaseException):
                raise outcome
            return list(outcome)
        finally:
            if self.tracker:
                self.tracker.exit()

    async def lookup_addresses(self, name: str) -> list[str]:
        return await self._answer("forward", name)

    async def reverse_lookup(self, ip: str) -> list[str]:
        return await self._answer("reverse", ip)

    async def close(self) -> None:
        self.closed = True


class FakeResolverFactory:
    """Records every build request and hands out resolvers from ``make``."""

    def __init__(self, make=None):
        self._lock = threading.Lock()
        self.make = make or (lambda config, validate, timeout: FakeResolver())
        self.built: list[tuple[EndpointConfig, bool, float]] = []

    def __call__(self, config, validate_dnssec, timeout):
        with self._lock:
            self.built.append((config, validate_dnssec, timeout))
        return self.make(config, validate_dnssec, timeout)


def make_host_resolver(table: dict[str, list[str]]):
    """Host resolver answering from a fixed table."""

    async def resolve(host: str, timeout: float) -> list[str]:
        if host not in table:
            raise LookupError(f"unknown host {host}")
        return list(table[host])

    return resolve


@pytest.fixture
def tracker() -> ConcurrencyTracker:
    return ConcurrencyTracker()


@pytest.fixture
def sni_hosts() -> SniDirectory:
    return SniDirectory({
        "1.1.1.1": "cloudflare-dns.com",
        "8.8.8.8": "dns.google",
    })


@pytest.fixture
def host_resolver():
    return make_host_resolver({
        "dns.google": ["8.8.8.8", "8.8.4.4", "2001:4860:4860::8888"],
        "cloudflare-dns.com": ["1.1.1.1", "1.0.0.1"],
        "dns.adguard.com": ["94.140.14.14"],
    })
