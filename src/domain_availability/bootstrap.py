"""
Client for the IANA RDAP bootstrap registry (RFC 9224).

The bootstrap document lists ``[[tld patterns], [rdap base urls]]`` pairs
under ``services``. Only plain TLD labels are kept: ``*.label`` patterns are
reduced to ``label`` and anything still containing ``*`` is discarded.
"""

from typing import Any, Optional

import httpx
import idna

from .exceptions import NetworkError, ProtocolError


def _valid_tld_label(label: str) -> bool:
    if not label or "*" in label or "." in label:
        return False
    try:
        idna.encode(label)
    except (idna.IDNAError, UnicodeError):
        return False
    return True


def parse_bootstrap_services(document: Any) -> dict[str, list[str]]:
    """
    Extract the TLD -> RDAP server mapping from a bootstrap document.

    URLs keep their declared order. A TLD listed by more than one service
    takes the servers of the last one.

    Raises:
        ProtocolError: If the document has no ``services`` list
    """
    if not isinstance(document, dict) or not isinstance(document.get("services"), list):
        raise ProtocolError(
            code="invalid_bootstrap",
            message="Bootstrap document has no services list",
        )

    server_map: dict[str, list[str]] = {}
    for service in document["services"]:
        if not isinstance(service, list) or len(service) < 2:
            continue
        patterns, urls = service[0], service[1]
        if not isinstance(patterns, list) or not isinstance(urls, list):
            continue

        servers = [u for u in urls if isinstance(u, str) and u]
        if not servers:
            continue

        for pattern in patterns:
            if not isinstance(pattern, str):
                continue
            name = pattern.strip().lower()
            if name.startswith("*."):
                name = name[2:]
            if _valid_tld_label(name):
                server_map[name] = list(servers)

    return server_map


class BootstrapClient:
    """Fetches and parses the bootstrap document over HTTPS."""

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None) -> None:
        """
        Args:
            url: Bootstrap document URL
            client: Shared AsyncClient; a short-lived one is created per
                fetch when omitted
        """
        self._url = url
        self._client = client

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self, timeout: float) -> dict[str, list[str]]:
        """
        Download the bootstrap document and return the TLD -> servers map.

        Raises:
            NetworkError: On transport failure, timeout or non-200 status
            ProtocolError: If the body is not valid bootstrap JSON or lists
                no TLDs
        """
        if self._client is not None:
            response = await self._get(self._client, timeout)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await self._get(client, timeout)

        if response.status_code != 200:
            raise NetworkError(
                code="http_error",
                message=f"Bootstrap source responded with status {response.status_code}",
                details={"url": self._url, "status_code": response.status_code},
            )

        try:
            document = response.json()
        except ValueError as e:
            raise ProtocolError(
                code="invalid_json",
                message=f"Bootstrap document is not valid JSON: {e}",
                details={"url": self._url},
            )

        server_map = parse_bootstrap_services(document)
        if not server_map:
            raise ProtocolError(
                code="empty_bootstrap",
                message="Bootstrap document lists no usable TLDs",
                details={"url": self._url},
            )
        return server_map

    async def _get(self, client: httpx.AsyncClient, timeout: float) -> httpx.Response:
        try:
            return await client.get(
                self._url,
                headers={"Accept": "application/json"},
                timeout=httpx.Timeout(timeout),
            )
        except httpx.TimeoutException as e:
            raise NetworkError(
                code="timeout",
                message=f"Bootstrap fetch timed out after {timeout}s",
                details={"url": self._url},
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                code="network_error",
                message=f"Bootstrap fetch failed: {e}",
                details={"url": self._url},
            ) from e
