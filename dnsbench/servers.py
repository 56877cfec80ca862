"""
Built-in endpoint and SNI defaults.

Provides the public resolver list the Endpoint Directory starts with,
covering plain UDP, DoT, DoH and DoQ endpoints, plus the IP -> TLS
hostname pairs the SNI Directory starts with.
"""

from typing import Iterable

# Plain DNS (UDP/53)
_UDP_SERVERS = [
    "8.8.8.8", "8.8.4.4",                    # Google Public DNS
    "1.1.1.1", "1.0.0.1",                    # Cloudflare
    "208.67.222.222", "208.67.220.220",      # OpenDNS Home
    "208.67.220.2", "208.67.222.2",          # OpenDNS Sandbox
    "9.9.9.9", "149.112.112.112",            # Quad9
    "9.9.9.11", "149.112.112.11",            # Quad9 ECS
    "9.9.9.10", "149.112.112.10",            # Quad9 Unsecured
    "94.140.14.14", "94.140.15.15",          # AdGuard
    "94.140.14.140", "94.140.14.141",        # AdGuard Non-filtering
    "77.88.8.8", "77.88.8.1",                # Yandex Basic
    "77.88.8.88", "77.88.8.2",               # Yandex Safe
    "185.228.168.9", "185.228.169.9",        # CleanBrowsing Security
    "76.76.2.0", "76.76.10.0",               # Control D
    "138.197.140.189", "168.235.111.72",     # OpenNIC
    "76.76.19.19", "76.223.122.150",         # Alternate DNS
    "216.146.35.35", "216.146.36.36",        # Dyn
    "74.82.42.42",                           # Hurricane Electric
    "149.112.121.10", "149.112.122.10",      # CIRA Canadian Shield
    "8.26.56.26", "8.20.247.20",             # Comodo Secure DNS
    "205.171.3.65", "205.171.2.65",          # CenturyLink
    "223.5.5.5", "223.6.6.6",                # AliDNS
    "185.222.222.222", "45.11.45.11",        # DNS.SB
    "119.29.29.29", "182.254.116.116",       # DNSPod
    "194.242.2.2", "194.242.2.4",            # Mullvad
    "45.90.28.0", "45.90.30.0",              # NextDNS
    "146.112.41.2", "146.112.41.102",        # OpenBLD
    "193.110.81.9", "185.253.5.9",           # DNS0.EU
    "101.226.4.6", "180.163.224.54",         # 360
    "185.95.218.42", "185.95.218.43",        # Digitale Gesellschaft
    "158.64.1.29",                           # Restena
    "203.180.164.45", "203.180.166.45",      # IIJ
    "116.202.176.26", "147.135.76.183",      # LibreDNS
    "130.59.31.248", "130.59.31.251",        # Switch
    "146.255.56.98",                         # Foundation for Applied Privacy
    "91.239.100.100", "89.233.43.71",        # UncensoredDNS
    "104.21.83.62", "172.67.214.246",        # RethinkDNS
]

# DNS over TLS
_TLS_SERVERS = [
    "tls://cloudflare-dns.com:853",
    "tls://dns.google:853",
    "tls://dns.quad9.net:853",
    "tls://dns.adguard.com:853",
    "tls://max.rethinkdns.com:853",
    "tls://dns.alidns.com:853",
]

# DNS over HTTPS
_HTTPS_SERVERS = [
    "https://cloudflare-dns.com/dns-query",
    "https://security.cloudflare-dns.com/dns-query",
    "https://dns.google/dns-query",
    "https://dns.quad9.net/dns-query",
    "https://doh.dns.sb/dns-query",
    "https://doh.cleanbrowsing.org/doh/family-filter/",
    "https://dns.adguard-dns.com/dns-query",
    "https://dns-family.adguard-dns.com/dns-query",
    "https://dns-unfiltered.adguard-dns.com/dns-query",
    "https://doh.opendns.com/dns-query",
    "https://freedns.controld.com/x-goodbyeads",
    "https://blitz.ahadns.com/1:17",
    "https://doh.blahdns.com/dns-query",
    "https://doh.uncensoreddns.org/dns-query",
    "https://dns.fdn.org/dns-query",
    "https://doh.dns.watch/dns-query",
    "https://sky.rethinkdns.com/dns-query",
    "https://dns.alidns.com/dns-query",
    "https://doh.libredns.gr/dns-query",
    "https://doh.tiar.app/dns-query",
    "https://dns.aa.net.uk/dns-query",
    "https://dnsforge.de/dns-query",
]

# DNS over QUIC
_QUIC_SERVERS = [
    "quic://dns.adguard.com",
    "quic://family.adguard-dns.com",
    "quic://unfiltered.adguard-dns.com",
    "quic://x-goodbyeads.freedns.controld.com",
]

DEFAULT_SERVERS: tuple[str, ...] = tuple(
    _UDP_SERVERS + _TLS_SERVERS + _HTTPS_SERVERS + _QUIC_SERVERS
)

# IP -> hostname to present as SNI
DEFAULT_SNI_HOSTS: dict[str, str] = {
    "1.1.1.1": "cloudflare-dns.com",
    "1.0.0.1": "cloudflare-dns.com",
    "8.8.8.8": "dns.google",
    "8.8.4.4": "dns.google",
    "9.9.9.9": "dns.quad9.net",
    "149.112.112.112": "dns.quad9.net",
    "8.26.56.26": "cdns.comodo.com",
    "137.66.7.89": "max.rethinkdns.com",
}


def normalize_servers(servers: Iterable[str]) -> list[str]:
    """Trim endpoint strings and drop blank entries, keeping order."""
    return [s.strip() for s in servers if s and s.strip()]
