"""Constants and defaults for dnsbench."""

# Request defaults
DEFAULT_TIMEOUT_SECS = 10
DEFAULT_SAMPLES = 5

# Soft cap on the number of endpoints tested in one run
MAX_ENDPOINTS = 120

# Concurrency bounds per stage
PRECHECK_CONCURRENCY = 20
BENCHMARK_CONCURRENCY = 10

# Precheck and warm-up probes never wait longer than this (seconds)
SHORT_TIMEOUT_CAP_SECS = 3.0

# Stack allowance for isolated endpoint workers (bytes)
WORKER_STACK_SIZE = 8 * 1024 * 1024

# Protocol default ports
UDP_PORT = 53
TLS_PORT = 853
QUIC_PORT = 853
HTTPS_PORT = 443

DEFAULT_DOH_PATH = "/dns-query"

# Message recorded for a sample that hit its deadline
TIMEOUT_MESSAGE = "Timeout"

# Sentinel server_address values for results not tied to an endpoint
INVALID_DOMAIN_SENTINEL = "invalid_domain"
NO_SERVERS_SENTINEL = "no_servers"

# Remote list sources
ENDPOINT_LIST_URL = (
    "https://raw.githubusercontent.com/bluebeard9998/DNS_SERVERS/main/servers.txt"
)
SNI_MAP_URL = (
    "https://raw.githubusercontent.com/bluebeard9998/DNS_SERVERS/main/tls-host-map.txt"
)
REFRESH_TIMEOUT_SECS = 15.0

# User agent for HTTP requests
USER_AGENT = "dnsbench/1.0.0"
