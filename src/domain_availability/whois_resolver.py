"""
WHOIS resolver, the fallback path when RDAP cannot answer.

The query is the plain port-43 protocol: send ``<domain>\\r\\n`` and read
until the server closes the connection or goes quiet. Availability is a
single substring test against the TLD's "not found" marker; WHOIS output is
not otherwise parsed.
"""

import asyncio
import contextlib
import socket
from typing import Optional

from .audit_logger import AuditLogger
from .config import WhoisConfig
from .enums import CheckMethod, LogLevel, WHOISErrorCode
from .exceptions import NetworkError
from .models import DomainCheckResult

COMPONENT = "whois_resolver"

READ_CHUNK_SIZE = 4096


class WhoisResolver:
    """
    Port-43 WHOIS client with bounded DNS, connect and receive phases.

    Receiving ends when the server closes the connection, when no data has
    arrived for ``idle_timeout`` after the first chunk, or when
    ``receive_timeout`` has elapsed since the query was sent. Hitting the
    hard limit before any data arrived is an error; hitting it afterwards
    keeps what was received.
    """

    def __init__(
        self,
        config: Optional[WhoisConfig] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._config = config or WhoisConfig()
        self._logger = logger

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger is not None:
            self._logger.log(level, COMPONENT, message, data)

    async def check_domain(
        self,
        domain: str,
        whois_server: str,
        available_pattern: str,
        tld: str,
    ) -> DomainCheckResult:
        """
        Query ``whois_server`` for ``domain``.

        Returns:
            Result with ``method=WHOIS``; ``available`` is True exactly when
            the response contains ``available_pattern``. Failures are
            reported in ``error`` with ``available=False``.
        """
        try:
            response = await self.query(domain, whois_server)
        except NetworkError as e:
            self._log(LogLevel.WARN, "WHOIS lookup failed", {
                "domain": domain,
                "server": whois_server,
                "code": e.code,
                "error": e.message,
            })
            return DomainCheckResult(
                domain=domain,
                tld=tld,
                available=False,
                method=CheckMethod.WHOIS,
                error=f"WHOIS error: {e.message}",
            )

        available = available_pattern in response
        self._log(LogLevel.DEBUG, "WHOIS lookup complete", {
            "domain": domain,
            "server": whois_server,
            "bytes": len(response),
            "available": available,
        })
        return DomainCheckResult(
            domain=domain,
            tld=tld,
            available=available,
            method=CheckMethod.WHOIS,
        )

    async def query(self, domain: str, whois_server: str) -> str:
        """
        Send one WHOIS query and return the decoded response text.

        Raises:
            NetworkError: On an empty server name, DNS failure, connect
                failure or receive timeout
        """
        if not whois_server or not whois_server.strip():
            raise NetworkError(
                code=WHOISErrorCode.INVALID_SERVER.value,
                message="no WHOIS server configured",
                details={"domain": domain},
            )

        address = await self._resolve(whois_server.strip())
        reader, writer = await self._connect(address, whois_server)
        try:
            writer.write(f"{domain}\r\n".encode("utf-8"))
            await writer.drain()
            raw = await self._receive(reader, whois_server)
        except OSError as e:
            raise NetworkError(
                code=WHOISErrorCode.NETWORK_ERROR.value,
                message=f"connection to {whois_server} failed: {e}",
                details={"server": whois_server},
            ) from e
        finally:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()

        return raw.decode("utf-8", errors="replace")

    async def _resolve(self, host: str) -> str:
        loop = asyncio.get_running_loop()
        try:
            infos = await asyncio.wait_for(
                loop.getaddrinfo(host, self._config.port, family=socket.AF_INET, type=socket.SOCK_STREAM),
                self._config.resolve_timeout,
            )
        except asyncio.TimeoutError as e:
            raise NetworkError(
                code=WHOISErrorCode.DNS_ERROR.value,
                message=f"DNS lookup for {host} timed out after {self._config.resolve_timeout}s",
                details={"server": host},
            ) from e
        except OSError as e:
            raise NetworkError(
                code=WHOISErrorCode.DNS_ERROR.value,
                message=f"DNS lookup for {host} failed: {e}",
                details={"server": host},
            ) from e

        if not infos:
            raise NetworkError(
                code=WHOISErrorCode.DNS_ERROR.value,
                message=f"DNS lookup for {host} returned no IPv4 address",
                details={"server": host},
            )
        return infos[0][4][0]

    async def _connect(
        self, address: str, whois_server: str
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            return await asyncio.wait_for(
                asyncio.open_connection(address, self._config.port),
                self._config.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise NetworkError(
                code=WHOISErrorCode.CONNECT_TIMEOUT.value,
                message=f"connection to {whois_server} timed out after {self._config.connect_timeout}s",
                details={"server": whois_server, "address": address},
            ) from e
        except OSError as e:
            raise NetworkError(
                code=WHOISErrorCode.NETWORK_ERROR.value,
                message=f"connection to {whois_server} failed: {e}",
                details={"server": whois_server, "address": address},
            ) from e

    async def _receive(self, reader: asyncio.StreamReader, whois_server: str) -> bytes:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.receive_timeout
        chunks: list[bytes] = []

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            wait = min(remaining, self._config.idle_timeout) if chunks else remaining
            try:
                chunk = await asyncio.wait_for(reader.read(READ_CHUNK_SIZE), wait)
            except asyncio.TimeoutError:
                if chunks and wait < remaining:
                    # idle
                    return b"".join(chunks)
                break
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)

        if not chunks:
            raise NetworkError(
                code=WHOISErrorCode.RECEIVE_TIMEOUT.value,
                message=f"no response from {whois_server} within {self._config.receive_timeout}s",
                details={"server": whois_server},
            )

        self._log(LogLevel.WARN, "WHOIS receive deadline reached, using partial response", {
            "server": whois_server,
            "bytes": sum(len(c) for c in chunks),
        })
        return b"".join(chunks)
