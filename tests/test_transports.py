import dns.flags
import dns.nameserver
import pytest

from dnsbench.errors import ResolverBuildError
from dnsbench.models import (
    EndpointConfig,
    HttpsEndpoint,
    QuicEndpoint,
    TlsEndpoint,
    UdpEndpoint,
)
from dnsbench.transports import DnsPythonResolver, build_resolver, create_nameservers


def test_udp_nameservers():
    (ns,) = create_nameservers(UdpEndpoint(("9.9.9.9",), 53))
    assert isinstance(ns, dns.nameserver.Do53Nameserver)
    assert ns.address == "9.9.9.9"
    assert ns.port == 53


def test_one_nameserver_per_address():
    config = TlsEndpoint(("8.8.8.8", "8.8.4.4"), 853, sni="dns.google")
    nameservers = create_nameservers(config)

    assert [ns.address for ns in nameservers] == ["8.8.8.8", "8.8.4.4"]
    assert all(isinstance(ns, dns.nameserver.DoTNameserver) for ns in nameservers)
    assert all(ns.hostname == "dns.google" for ns in nameservers)


def test_quic_nameserver():
    (ns,) = create_nameservers(QuicEndpoint(("94.140.14.14",), 853, sni="dns.adguard.com"))
    assert isinstance(ns, dns.nameserver.DoQNameserver)
    assert ns.server_hostname == "dns.adguard.com"


def test_https_nameserver_uses_bootstrap():
    config = HttpsEndpoint(("1.1.1.1",), 443, sni="cloudflare-dns.com", path="/dns-query")
    (ns,) = create_nameservers(config)

    assert isinstance(ns, dns.nameserver.DoHNameserver)
    assert ns.url == "https://cloudflare-dns.com/dns-query"
    assert ns.bootstrap_address == "1.1.1.1"


@pytest.mark.parametrize("sni,port,path,url", [
    ("dns.google", 8443, "/resolve", "https://dns.google:8443/resolve"),
    ("2606:4700:4700::1111", 443, "/dns-query", "https://[2606:4700:4700::1111]/dns-query"),
    ("dns.google", 443, "/dns-query?ct=x", "https://dns.google/dns-query?ct=x"),
])
def test_doh_urls(sni, port, path, url):
    (ns,) = create_nameservers(HttpsEndpoint(("8.8.8.8",), port, sni=sni, path=path))
    assert ns.url == url


def test_unknown_config_type():
    with pytest.raises(ResolverBuildError):
        create_nameservers(EndpointConfig(("8.8.8.8",), 53))


def test_resolver_settings():
    resolver = build_resolver(UdpEndpoint(("8.8.8.8",), 53), False, 2.5)
    assert isinstance(resolver, DnsPythonResolver)

    inner = resolver.resolver
    assert inner.timeout == 2.5
    assert inner.lifetime == 2.5
    assert inner.cache is None
    assert inner.retry_servfail is False
    assert not inner.ednsflags & dns.flags.DO


def test_dnssec_sets_do_bit():
    resolver = build_resolver(UdpEndpoint(("8.8.8.8",), 53), True, 2.0)
    inner = resolver.resolver

    assert inner.edns == 0
    assert inner.ednsflags & dns.flags.DO
    assert inner.flags & dns.flags.AD


def test_no_addresses():
    with pytest.raises(ResolverBuildError):
        build_resolver(UdpEndpoint((), 53), False, 1.0)

