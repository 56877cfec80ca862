import csv
import json
from io import StringIO

from rich.console import Console

from dnsbench.models import EndpointResult
from dnsbench.output import CSVOutput, JSONOutput, RichConsoleOutput, rank_results

FAST = EndpointResult(
    server_address="1.1.1.1",
    latency_median_ms=8.25,
    jitter_ms=1.5,
    success_percent=100.0,
    query_successful=True,
    ipv4_ips=("93.184.216.34",),
    ipv6_ips=("2606:2800:220:1:248:1893:25c8:1946",),
)
SLOW = EndpointResult(
    server_address="tls://dns.google",
    latency_median_ms=40.0,
    jitter_ms=3.0,
    success_percent=100.0,
    query_successful=True,
    dnssec_validated=True,
    ipv4_ips=("93.184.216.34",),
)
FLAKY = EndpointResult(
    server_address="9.9.9.9",
    latency_median_ms=5.0,
    jitter_ms=0.0,
    success_percent=40.0,
    query_successful=True,
)
DEAD = EndpointResult.failure("quic://dns.adguard.com", "Timeout")


def test_rank_order():
    ranked = rank_results([DEAD, FLAKY, SLOW, FAST])
    assert [r.server_address for r in ranked] == [
        "1.1.1.1", "tls://dns.google", "9.9.9.9", "quic://dns.adguard.com",
    ]


def test_resolution_time_is_truncated():
    assert FAST.resolution_time_ms == 8
    assert DEAD.resolution_time_ms is None


def test_json_format():
    data = json.loads(JSONOutput.format([FAST, DEAD]))

    assert data[0]["server_address"] == "1.1.1.1"
    assert data[0]["latency_median_ms"] == 8.25
    assert data[0]["ipv6_ips"] == ["2606:2800:220:1:248:1893:25c8:1946"]
    assert data[1]["latency_median_ms"] is None
    assert data[1]["query_successful"] is False
    assert data[1]["error_msg"] == "Timeout"


def test_json_save(tmp_path):
    path = tmp_path / "results.json"
    JSONOutput.save([SLOW], path)
    assert json.loads(path.read_text())[0]["dnssec_validated"] is True


def test_csv_format():
    rows = list(csv.reader(StringIO(CSVOutput.format([FAST, DEAD]))))

    assert rows[0] == CSVOutput.HEADER
    fast = dict(zip(rows[0], rows[1]))
    assert fast["latency_median_ms"] == "8.25"
    assert fast["query_successful"] == "True"
    dead = dict(zip(rows[0], rows[2]))
    assert dead["latency_median_ms"] == ""
    assert dead["error_msg"] == "Timeout"


def test_csv_save(tmp_path):
    path = tmp_path / "results.csv"
    CSVOutput.save([FAST, SLOW], path)
    assert len(path.read_text().splitlines()) == 3


def render(results):
    console = Console(file=StringIO(), width=200, color_system=None)
    RichConsoleOutput.print(results, "example.com", console=console)
    return console.file.getvalue()


def test_console_shows_fastest():
    text = render([SLOW, FAST, DEAD])
    assert "FASTEST: 1.1.1.1" in text
    assert "tls://dns.google" in text
    assert "Timeout" in text


def test_console_without_successes():
    text = render([DEAD])
    assert "No successful queries" in text
