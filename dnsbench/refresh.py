"""
Remote refresh of the endpoint and SNI directories.

Both sources are plain text:
- Endpoint list: one endpoint address per line, blank lines ignored
- SNI map: ``<hostname> <ip>`` per line, other lines ignored

A successful fetch replaces the whole directory. An empty parse
result leaves the directory untouched.
"""

import asyncio
import logging
from typing import Optional

import httpx

from .config import ENDPOINT_LIST_URL, REFRESH_TIMEOUT_SECS, SNI_MAP_URL, USER_AGENT
from .errors import RefreshError
from .registry import EndpointDirectory, SniDirectory
from .servers import normalize_servers

logger = logging.getLogger(__name__)


def parse_endpoint_list(text: str) -> list[str]:
    """Parse a newline-separated endpoint list."""
    return normalize_servers(text.splitlines())


def parse_sni_map(text: str) -> dict[str, str]:
    """Parse ``<hostname> <ip>`` lines into an IP -> hostname mapping."""
    hosts: dict[str, str] = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) == 2:
            host, ip = parts
            hosts[ip] = host
    return hosts


async def fetch_text(url: str, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Download a text document.

    Args:
        url: Document URL
        client: Optional client to reuse (tests pass one with a mock transport)

    Raises:
        RefreshError: On transport errors or non-2xx responses
    """
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(REFRESH_TIMEOUT_SECS),
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
            ) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise RefreshError(f"Could not fetch {url}: {e}") from e
    return response.text


async def refresh_endpoints(
    directory: EndpointDirectory,
    url: str = ENDPOINT_LIST_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """
    Replace the Endpoint Directory with a remote list.

    Returns:
        Number of endpoints loaded (0 if the directory was left as is)
    """
    logger.info("Updating DNS servers from %s", url)
    servers = parse_endpoint_list(await fetch_text(url, client))
    if not servers:
        logger.warning("No servers found at %s; keeping current list", url)
        return 0
    directory.replace(servers)
    return len(servers)


async def refresh_sni_hosts(
    directory: SniDirectory,
    url: str = SNI_MAP_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """
    Replace the SNI Directory with a remote map.

    Returns:
        Number of mappings loaded (0 if the directory was left as is)
    """
    logger.info("Updating TLS host map from %s", url)
    hosts = parse_sni_map(await fetch_text(url, client))
    if not hosts:
        logger.warning("No host mappings found at %s; keeping current map", url)
        return 0
    directory.replace(hosts)
    return len(hosts)


async def refresh_all(
    endpoints: EndpointDirectory,
    sni_hosts: SniDirectory,
    endpoint_url: str = ENDPOINT_LIST_URL,
    sni_url: str = SNI_MAP_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Optional[str]]:
    """
    Refresh both directories concurrently.

    A failure of one source does not stop the other.

    Returns:
        Mapping of directory name to error message (None on success)
    """
    outcomes = await asyncio.gather(
        refresh_endpoints(endpoints, endpoint_url, client),
        refresh_sni_hosts(sni_hosts, sni_url, client),
        return_exceptions=True,
    )

    errors: dict[str, Optional[str]] = {}
    for name, outcome in zip((endpoints.name, sni_hosts.name), outcomes):
        if isinstance(outcome, RefreshError):
            logger.warning("Could not update %s: %s", name, outcome)
            errors[name] = str(outcome)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            errors[name] = None
    return errors
