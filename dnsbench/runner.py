"""
Benchmark orchestration.

Runs one query against many endpoints:
- Validates and normalizes the query
- Prechecks every endpoint under a wide concurrency bound
- Samples surviving endpoints under a narrower bound, each inside an
  isolated worker
- Collects one result per endpoint, never raising for endpoint failures
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from .config import (
    BENCHMARK_CONCURRENCY,
    INVALID_DOMAIN_SENTINEL,
    MAX_ENDPOINTS,
    NO_SERVERS_SENTINEL,
    PRECHECK_CONCURRENCY,
    SHORT_TIMEOUT_CAP_SECS,
    WORKER_STACK_SIZE,
)
from .endpoints import (
    EndpointConfigBuilder,
    HostResolver,
    parse_query_target,
    system_host_lookup,
)
from .errors import BenchmarkError, InvalidQueryFormat
from .isolation import IsolatedWorkerPool
from .models import BenchmarkRequest, EndpointResult, QueryTarget
from .query_engine import DNSQueryEngine, precheck
from .registry import EndpointDirectory, SniDirectory
from .servers import normalize_servers
from .statistics import StatisticsEngine
from .transports import ResolverFactory, build_resolver

logger = logging.getLogger(__name__)


# Type for progress callback: (stage, completed, total)
ProgressCallback = Callable[[str, int, int], None]


class RunState(Enum):
    """Stages of a benchmark run."""
    IDLE = "idle"
    VALIDATING = "validating"
    PRECHECKING = "prechecking"
    BENCHMARKING = "benchmarking"
    DONE = "done"


class BenchmarkRunner:
    """
    Orchestrates DNS benchmark runs.

    Directories are injected so callers (and tests) control which
    endpoints and SNI names a run sees.
    """

    def __init__(
        self,
        endpoints: Optional[EndpointDirectory] = None,
        sni_hosts: Optional[SniDirectory] = None,
        resolver_factory: ResolverFactory = build_resolver,
        host_resolver: HostResolver = system_host_lookup,
        precheck_concurrency: int = PRECHECK_CONCURRENCY,
        benchmark_concurrency: int = BENCHMARK_CONCURRENCY,
        max_endpoints: int = MAX_ENDPOINTS,
        stack_size: int = WORKER_STACK_SIZE,
    ):
        """
        Initialize the runner.

        Args:
            endpoints: Endpoint Directory used when a request has no custom list
            sni_hosts: SNI Directory for numeric TLS-family endpoints
            resolver_factory: Builds a resolver from an endpoint config
            host_resolver: Resolves symbolic endpoint hosts
            precheck_concurrency: Maximum concurrent precheck probes
            benchmark_concurrency: Maximum concurrently sampled endpoints
            max_endpoints: Soft cap on endpoints per run
            stack_size: Stack allowance of each isolated worker, in bytes
        """
        self.endpoints = endpoints if endpoints is not None else EndpointDirectory()
        self.sni_hosts = sni_hosts if sni_hosts is not None else SniDirectory()
        self.resolver_factory = resolver_factory
        self.builder = EndpointConfigBuilder(self.sni_hosts, host_resolver)
        self.precheck_concurrency = precheck_concurrency
        self.benchmark_concurrency = benchmark_concurrency
        self.max_endpoints = max_endpoints
        self.stack_size = stack_size
        self.state = RunState.IDLE

    def _set_state(self, state: RunState) -> None:
        self.state = state
        logger.info("Benchmark state: %s", state.value)

    async def run(
        self,
        request: BenchmarkRequest,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> list[EndpointResult]:
        """
        Benchmark one query against every selected endpoint.

        Args:
            request: Benchmark parameters
            progress_callback: Optional callback for progress updates

        Returns:
            One EndpointResult per benchmarked endpoint (order not
            significant), or a single sentinel result when the run
            could not start
        """
        self._set_state(RunState.VALIDATING)
        try:
            target = parse_query_target(request.domain_or_ip)
        except InvalidQueryFormat as e:
            logger.warning("Rejected query %r: %s", request.domain_or_ip, e)
            self._set_state(RunState.DONE)
            return [EndpointResult.failure(INVALID_DOMAIN_SENTINEL, str(e))]

        servers = self._select_servers(request)
        if not servers:
            self._set_state(RunState.DONE)
            return [EndpointResult.failure(NO_SERVERS_SENTINEL, "No DNS servers configured")]

        self._set_state(RunState.PRECHECKING)
        survivors = await self._precheck_all(
            target, servers, request.timeout_secs, progress_callback,
        )

        self._set_state(RunState.BENCHMARKING)
        results = await self._benchmark_all(target, survivors, request, progress_callback)

        self._set_state(RunState.DONE)
        return results

    def _select_servers(self, request: BenchmarkRequest) -> list[str]:
        """Endpoint list for a run: the custom list or a directory snapshot, capped."""
        if request.custom_servers is not None:
            servers = normalize_servers(request.custom_servers)
        else:
            servers = list(self.endpoints.get())

        if len(servers) > self.max_endpoints:
            logger.info(
                "Truncating endpoint list from %d to %d",
                len(servers), self.max_endpoints,
            )
            servers = servers[:self.max_endpoints]
        return servers

    async def _precheck_all(
        self,
        target: QueryTarget,
        servers: list[str],
        timeout: float,
        progress_callback: Optional[ProgressCallback],
    ) -> list[str]:
        """Keep endpoints that answer a quick probe, or all if none do."""
        short_timeout = min(SHORT_TIMEOUT_CAP_SECS, timeout)
        semaphore = asyncio.Semaphore(self.precheck_concurrency)
        completed = 0

        async def limited_precheck(address: str) -> bool:
            nonlocal completed
            async with semaphore:
                try:
                    ok = await precheck(
                        target, address, short_timeout,
                        self.builder, self.resolver_factory,
                    )
                except Exception as e:
                    logger.debug("Precheck crashed for %s: %s", address, e)
                    ok = False
            completed += 1
            if progress_callback:
                progress_callback("precheck", completed, len(servers))
            return ok

        passed = await asyncio.gather(*(limited_precheck(s) for s in servers))
        survivors = [s for s, ok in zip(servers, passed) if ok]

        if not survivors:
            logger.warning(
                "No endpoint passed the precheck; benchmarking all %d", len(servers),
            )
            return list(servers)

        logger.info("%d of %d endpoints passed the precheck", len(survivors), len(servers))
        return survivors

    async def _benchmark_all(
        self,
        target: QueryTarget,
        servers: list[str],
        request: BenchmarkRequest,
        progress_callback: Optional[ProgressCallback],
    ) -> list[EndpointResult]:
        """Sample every endpoint, each inside an isolated worker."""
        semaphore = asyncio.Semaphore(self.benchmark_concurrency)
        completed = 0

        with IsolatedWorkerPool(self.benchmark_concurrency, self.stack_size) as pool:

            async def limited_benchmark(address: str) -> EndpointResult:
                nonlocal completed
                async with semaphore:
                    try:
                        result = await pool.run(
                            self._benchmark_endpoint, target, address, request,
                        )
                    except Exception as e:
                        logger.exception("Isolated task failed for %s", address)
                        result = EndpointResult.failure(address, f"Task error: {e}")
                completed += 1
                if progress_callback:
                    progress_callback("benchmark", completed, len(servers))
                return result

            results = await asyncio.gather(*(limited_benchmark(s) for s in servers))

        return list(results)

    async def _benchmark_endpoint(
        self,
        target: QueryTarget,
        address: str,
        request: BenchmarkRequest,
    ) -> EndpointResult:
        """Full sampling sequence for one endpoint; runs on a worker loop."""
        logger.info("Testing server: %s", address)
        try:
            config = await self.builder.build(address, request.timeout_secs)
            resolver = self.resolver_factory(
                config, request.validate_dnssec, request.timeout_secs,
            )
        except BenchmarkError as e:
            logger.error("Resolver build error for %s: %s", address, e)
            return EndpointResult.failure(address, str(e))
        except Exception as e:
            logger.error("Resolver build error for %s: %s", address, e)
            return EndpointResult.failure(address, f"Resolver error: {e}")

        engine = DNSQueryEngine(
            timeout=request.timeout_secs,
            sample_count=request.samples,
            warm_up=request.warm_up,
        )
        try:
            run = await engine.run_samples(target, resolver)
        finally:
            await resolver.close()

        stats = StatisticsEngine.aggregate(run.samples)

        return EndpointResult(
            server_address=address,
            latency_median_ms=stats.median_ms,
            jitter_ms=stats.jitter_ms,
            success_percent=stats.success_percent,
            query_successful=stats.query_successful,
            dnssec_validated=request.validate_dnssec and stats.query_successful,
            ipv4_ips=tuple(run.ipv4_ips),
            ipv6_ips=tuple(run.ipv6_ips),
            error_msg=run.error_msg,
        )
