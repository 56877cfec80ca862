import asyncio

import dns.resolver
import pytest

from conftest import FakeResolver, FakeResolverFactory
from dnsbench.endpoints import EndpointConfigBuilder
from dnsbench.errors import LookupTimeout, QueryLookupError
from dnsbench.models import QueryTarget
from dnsbench.query_engine import DNSQueryEngine, lookup_once, precheck

FORWARD = QueryTarget(value="example.com", is_reverse=False)
REVERSE = QueryTarget(value="8.8.8.8", is_reverse=True)


def run_samples(engine, target, resolver):
    return asyncio.run(engine.run_samples(target, resolver))


class TestLookupOnce:
    def test_forward_and_reverse_dispatch(self):
        resolver = FakeResolver([["93.184.216.34"], ["dns.google."]])
        asyncio.run(lookup_once(resolver, FORWARD, 1.0))
        asyncio.run(lookup_once(resolver, REVERSE, 1.0))
        assert resolver.calls == [("forward", "example.com"), ("reverse", "8.8.8.8")]

    def test_deadline(self):
        resolver = FakeResolver(delay=1.0)
        with pytest.raises(LookupTimeout, match="Timeout"):
            asyncio.run(lookup_once(resolver, FORWARD, 0.02))

    def test_library_timeout_is_a_timeout(self):
        resolver = FakeResolver([dns.resolver.LifetimeTimeout(timeout=1.0, errors=[])])
        with pytest.raises(LookupTimeout):
            asyncio.run(lookup_once(resolver, FORWARD, 1.0))

    def test_other_errors_are_wrapped(self):
        resolver = FakeResolver([dns.resolver.NXDOMAIN()])
        with pytest.raises(QueryLookupError) as info:
            asyncio.run(lookup_once(resolver, FORWARD, 1.0))
        assert not isinstance(info.value, LookupTimeout)


class TestRunSamples:
    def test_sample_count_and_success(self):
        resolver = FakeResolver([["1.2.3.4"]])
        run = run_samples(DNSQueryEngine(timeout=1.0, sample_count=4), FORWARD, resolver)

        assert len(run.samples) == 4
        assert all(s.success for s in run.samples)
        assert all(s.elapsed_ms >= 0 for s in run.samples)
        assert run.error_msg is None

    def test_sample_count_floor(self):
        run = run_samples(DNSQueryEngine(timeout=1.0, sample_count=0), FORWARD, FakeResolver())
        assert len(run.samples) == 1

    def test_answers_are_split_deduplicated_and_sorted(self):
        resolver = FakeResolver([
            ["10.0.0.2", "2001:db8::2", "10.0.0.10"],
            ["10.0.0.2", "2001:db8::1"],
            ["10.0.0.10", "2001:db8::2"],
        ])
        run = run_samples(DNSQueryEngine(timeout=1.0, sample_count=3), FORWARD, resolver)

        assert run.ipv4_ips == ["10.0.0.2", "10.0.0.10"]
        assert run.ipv6_ips == ["2001:db8::1", "2001:db8::2"]

    def test_reverse_lookup_collects_no_addresses(self):
        resolver = FakeResolver([["dns.google."]])
        run = run_samples(DNSQueryEngine(timeout=1.0, sample_count=2), REVERSE, resolver)

        assert all(s.success for s in run.samples)
        assert run.ipv4_ips == [] and run.ipv6_ips == []
        assert resolver.calls == [("reverse", "8.8.8.8")] * 2

    def test_first_error_is_kept(self):
        resolver = FakeResolver([
            RuntimeError("connection refused"),
            ["1.2.3.4"],
            RuntimeError("second failure"),
        ])
        run = run_samples(DNSQueryEngine(timeout=1.0, sample_count=3), FORWARD, resolver)

        assert [s.success for s in run.samples] == [False, True, False]
        assert run.error_msg == "connection refused"

    def test_all_samples_time_out(self):
        resolver = FakeResolver(delay=1.0)
        run = run_samples(DNSQueryEngine(timeout=0.02, sample_count=3), FORWARD, resolver)

        assert [s.success for s in run.samples] == [False] * 3
        assert run.error_msg == "Timeout"

    def test_empty_answer_is_a_failure_without_error(self):
        run = run_samples(DNSQueryEngine(timeout=1.0, sample_count=2), FORWARD, FakeResolver([[]]))
        assert [s.success for s in run.samples] == [False, False]
        assert run.error_msg is None

    def test_warm_up_is_not_measured(self):
        resolver = FakeResolver([RuntimeError("cold start"), ["1.2.3.4"]])
        engine = DNSQueryEngine(timeout=1.0, sample_count=2, warm_up=True)
        run = run_samples(engine, FORWARD, resolver)

        assert len(resolver.calls) == 3
        assert len(run.samples) == 2
        assert all(s.success for s in run.samples)
        assert run.error_msg is None


class TestPrecheck:
    def check(self, address, factory, sni_hosts, host_resolver, timeout=0.2):
        builder = EndpointConfigBuilder(sni_hosts, host_resolver)
        return asyncio.run(precheck(FORWARD, address, timeout, builder, factory))

    def test_answer_passes(self, sni_hosts, host_resolver):
        factory = FakeResolverFactory()
        assert self.check("8.8.8.8", factory, sni_hosts, host_resolver)

        config, validate, timeout = factory.built[0]
        assert config.addresses == ("8.8.8.8",)
        assert validate is False
        assert timeout == 0.2

    @pytest.mark.parametrize("make", [
        lambda c, v, t: FakeResolver([[]]),
        lambda c, v, t: FakeResolver([RuntimeError("refused")]),
        lambda c, v, t: FakeResolver(delay=1.0),
    ])
    def test_failures(self, make, sni_hosts, host_resolver):
        assert not self.check("8.8.8.8", FakeResolverFactory(make), sni_hosts, host_resolver)

    def test_config_error_fails(self, sni_hosts, host_resolver):
        factory = FakeResolverFactory()
        assert not self.check("tls://1.1.1.1:bad", factory, sni_hosts, host_resolver)
        assert factory.built == []

    def test_factory_error_fails(self, sni_hosts, host_resolver):
        def make(config, validate, timeout):
            raise RuntimeError("no backend")

        assert not self.check("8.8.8.8", FakeResolverFactory(make), sni_hosts, host_resolver)

    def test_resolver_is_closed(self, sni_hosts, host_resolver):
        resolver = FakeResolver()
        self.check("8.8.8.8", FakeResolverFactory(lambda c, v, t: resolver), sni_hosts, host_resolver)
        assert resolver.closed
