"""
Core DNS query engine.

Issues timed lookups against a single endpoint's resolver and runs the
cheap reachability probe used to prune endpoints before a full run.
"""

import asyncio
import ipaddress
import logging
import time

import dns.exception

from .config import SHORT_TIMEOUT_CAP_SECS, TIMEOUT_MESSAGE
from .endpoints import EndpointConfigBuilder
from .errors import LookupTimeout, QueryLookupError
from .models import BenchmarkSample, QueryTarget, SampleRun
from .transports import BaseResolver, ResolverFactory

logger = logging.getLogger(__name__)


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


async def lookup_once(
    resolver: BaseResolver,
    target: QueryTarget,
    timeout: float,
) -> list[str]:
    """
    Run one lookup for the query target under a hard deadline.

    Reverse targets issue a PTR lookup, domains a combined A/AAAA lookup.

    Raises:
        LookupTimeout: If the deadline expires first
        QueryLookupError: If the resolver reports any other failure
    """
    if target.is_reverse:
        operation = resolver.reverse_lookup(target.value)
    else:
        operation = resolver.lookup_addresses(target.value)

    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except (asyncio.TimeoutError, dns.exception.Timeout) as e:
        raise LookupTimeout(TIMEOUT_MESSAGE) from e
    except Exception as e:
        raise QueryLookupError(_describe(e)) from e


def _sorted_unique(addresses: list[str]) -> list[str]:
    return sorted(set(addresses), key=ipaddress.ip_address)


class DNSQueryEngine:
    """
    Sequential sampler for one endpoint.

    Samples are never pipelined: each lookup finishes (or times out)
    before the next one starts.
    """

    def __init__(
        self,
        timeout: float,
        sample_count: int = 5,
        warm_up: bool = False,
    ):
        """
        Initialize the query engine.

        Args:
            timeout: Per-sample timeout in seconds
            sample_count: Number of measured samples (at least 1)
            warm_up: Whether to send one unmeasured probe first
        """
        self.timeout = timeout
        self.sample_count = max(1, sample_count)
        self.warm_up = warm_up

    async def _warm_up(self, resolver: BaseResolver, target: QueryTarget) -> None:
        try:
            await lookup_once(resolver, target, min(self.timeout, SHORT_TIMEOUT_CAP_SECS))
        except QueryLookupError as e:
            logger.debug("Warm-up probe failed: %s", e)

    async def run_samples(
        self,
        target: QueryTarget,
        resolver: BaseResolver,
    ) -> SampleRun:
        """
        Take the configured number of timed samples.

        Args:
            target: Normalized query target
            resolver: Resolver bound to the endpoint under test

        Returns:
            SampleRun with samples, deduplicated answers and the first error
        """
        if self.warm_up:
            await self._warm_up(resolver, target)

        run = SampleRun()
        ipv4: list[str] = []
        ipv6: list[str] = []

        for _ in range(self.sample_count):
            answers: list[str] = []
            error = None

            start = time.perf_counter_ns()
            try:
                answers = await lookup_once(resolver, target, self.timeout)
            except QueryLookupError as e:
                error = e
            elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000

            if error is not None:
                logger.debug("Sample failed for %s: %s", target.value, error)
                if run.error_msg is None:
                    run.error_msg = str(error)

            run.samples.append(BenchmarkSample(elapsed_ms=elapsed_ms, success=bool(answers)))

            if not target.is_reverse:
                for answer in answers:
                    try:
                        version = ipaddress.ip_address(answer).version
                    except ValueError:
                        continue
                    (ipv4 if version == 4 else ipv6).append(answer)

        run.ipv4_ips = _sorted_unique(ipv4)
        run.ipv6_ips = _sorted_unique(ipv6)
        return run


async def precheck(
    target: QueryTarget,
    address: str,
    short_timeout: float,
    builder: EndpointConfigBuilder,
    resolver_factory: ResolverFactory,
) -> bool:
    """
    Probe an endpoint once to see whether it answers at all.

    Args:
        target: Normalized query target
        address: Endpoint address string
        short_timeout: Deadline for building and probing, in seconds
        builder: Endpoint config builder
        resolver_factory: Resolver factory

    Returns:
        True only if the probe returned at least one record in time
    """
    try:
        config = await builder.build(address, short_timeout)
        resolver = resolver_factory(config, False, short_timeout)
    except Exception as e:
        logger.debug("Precheck setup failed for %s: %s", address, e)
        return False

    try:
        answers = await lookup_once(resolver, target, short_timeout)
    except QueryLookupError as e:
        logger.debug("Precheck probe failed for %s: %s", address, e)
        return False
    finally:
        await resolver.close()

    return len(answers) > 0
