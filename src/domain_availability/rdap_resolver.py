"""
RDAP resolver for domain availability checking.

Queries the RDAP servers the registry lists for a TLD, in order, until one
gives a definitive answer:

- HTTP 404: the domain is available
- HTTP 200: the domain is registered; lifecycle events are extracted
- anything else, timeouts and transport errors: try the next server
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from .audit_logger import AuditLogger
from .config import RdapConfig
from .enums import CheckMethod, LogLevel, RDAPErrorCode, RDAPStatus
from .models import DomainCheckResult, RdapEvent, RdapPayload
from .tld_registry import TldRegistry

COMPONENT = "rdap_resolver"

RDAP_ACCEPT = "application/rdap+json"

_REGISTRATION_ACTIONS = ("registration",)
_EXPIRATION_ACTIONS = ("expiration",)
_LAST_CHANGED_ACTIONS = ("last changed", "last update")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_domain_url(base_url: str, domain: str) -> str:
    """Join a server base URL and ``domain/<name>`` with exactly one slash."""
    return f"{base_url.rstrip('/')}/domain/{domain}"


def parse_rdap_events(body: Any) -> tuple[RdapEvent, ...]:
    """Pull ``eventAction``/``eventDate`` pairs out of an RDAP domain object."""
    if not isinstance(body, dict):
        return ()
    raw_events = body.get("events")
    if not isinstance(raw_events, list):
        return ()

    events = []
    for event in raw_events:
        if not isinstance(event, dict):
            continue
        action = event.get("eventAction")
        date = event.get("eventDate")
        if isinstance(action, str) and isinstance(date, str) and action and date:
            events.append(RdapEvent(event_action=action, event_date=date))
    return tuple(events)


def _parse_instant(value: str) -> Optional[datetime]:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def domain_age_days(registration_date: str, now: datetime) -> Optional[int]:
    """Whole days between ``registration_date`` and ``now`` (floored, never negative)."""
    registered = _parse_instant(registration_date)
    if registered is None:
        return None
    return max(0, math.floor((now - registered).total_seconds() / 86400))


@dataclass(frozen=True)
class _ServerAttempt:
    status: RDAPStatus
    payload: Optional[RdapPayload] = None
    error_code: Optional[RDAPErrorCode] = None
    error: Optional[str] = None


class RdapResolver:
    """
    Async RDAP resolver backed by a shared httpx client.

    Use as an async context manager, or pass an externally owned
    ``httpx.AsyncClient``. Without either, a client is created on first use
    and released by ``aclose()``.
    """

    def __init__(
        self,
        registry: TldRegistry,
        config: Optional[RdapConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[AuditLogger] = None,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._registry = registry
        self._config = config or RdapConfig()
        self._client = client
        self._owns_client = client is None
        self._logger = logger
        self._now = now

    async def __aenter__(self) -> "RdapResolver":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self._config.timeout),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger is not None:
            self._logger.log(level, COMPONENT, message, data)

    async def check_domain(self, domain: str, tld: str) -> DomainCheckResult:
        """
        Check a domain against every RDAP server known for its TLD.

        Never raises for network or server problems; those end up in the
        result's ``error``.
        """
        servers = self._registry.get_rdap_servers(tld)
        if not servers:
            self._log(LogLevel.DEBUG, "No RDAP servers for TLD", {
                "tld": tld,
                "code": RDAPErrorCode.NO_SERVERS.value,
            })
            return DomainCheckResult(
                domain=domain,
                tld=tld,
                available=False,
                method=CheckMethod.RDAP,
                error=f"No RDAP servers available for TLD: {tld}",
            )

        client = self._ensure_client()
        errors: list[str] = []

        for base_url in servers:
            url = build_domain_url(base_url, domain)
            attempt = await self._query_server(client, url)

            if attempt.status == RDAPStatus.NOT_FOUND:
                self._registry.record_rdap_outcome(True)
                return DomainCheckResult(
                    domain=domain,
                    tld=tld,
                    available=True,
                    method=CheckMethod.RDAP,
                )

            if attempt.status == RDAPStatus.FOUND:
                self._registry.record_rdap_outcome(True)
                return self._registered_result(domain, tld, attempt.payload or RdapPayload(parsed=False))

            self._log(LogLevel.DEBUG, "RDAP server failed, trying next", {
                "url": url,
                "code": attempt.error_code.value if attempt.error_code else None,
                "error": attempt.error,
            })
            errors.append(attempt.error or "unknown error")

        self._registry.record_rdap_outcome(False)
        self._log(LogLevel.WARN, "All RDAP servers failed", {
            "domain": domain,
            "servers": len(servers),
        })
        return DomainCheckResult(
            domain=domain,
            tld=tld,
            available=False,
            method=CheckMethod.RDAP,
            error="All RDAP servers failed: " + "; ".join(errors),
        )

    async def _query_server(self, client: httpx.AsyncClient, url: str) -> _ServerAttempt:
        try:
            response = await client.get(
                url,
                headers={"Accept": RDAP_ACCEPT},
                timeout=httpx.Timeout(self._config.timeout),
            )
        except httpx.TimeoutException:
            return _ServerAttempt(
                status=RDAPStatus.ERROR,
                error_code=RDAPErrorCode.TIMEOUT,
                error=f"RDAP request timed out for {url}",
            )
        except httpx.HTTPError as e:
            return _ServerAttempt(
                status=RDAPStatus.ERROR,
                error_code=RDAPErrorCode.NETWORK_ERROR,
                error=f"RDAP fetch error for {url}: {e}",
            )

        if response.status_code == 404:
            return _ServerAttempt(status=RDAPStatus.NOT_FOUND)

        if response.status_code == 200:
            return _ServerAttempt(status=RDAPStatus.FOUND, payload=self._parse_body(response))

        return _ServerAttempt(
            status=RDAPStatus.ERROR,
            error_code=RDAPErrorCode.SERVER_ERROR,
            error=f"RDAP server responded with status {response.status_code}: {response.text[:100]}",
        )

    def _parse_body(self, response: httpx.Response) -> RdapPayload:
        # An unparseable 200 still means "registered".
        try:
            body = response.json()
        except ValueError:
            self._log(LogLevel.WARN, "RDAP response is not valid JSON", {"url": str(response.url)})
            return RdapPayload(parsed=False)
        return RdapPayload(events=parse_rdap_events(body), raw=body, parsed=True)

    def _registered_result(self, domain: str, tld: str, payload: RdapPayload) -> DomainCheckResult:
        registration_date = None
        expiration_date = None
        last_changed_date = None

        for event in payload.events:
            action = event.event_action.lower()
            if action in _REGISTRATION_ACTIONS:
                registration_date = event.event_date
            elif action in _EXPIRATION_ACTIONS:
                expiration_date = event.event_date
            elif action in _LAST_CHANGED_ACTIONS:
                last_changed_date = event.event_date

        domain_age = None
        if registration_date is not None:
            domain_age = domain_age_days(registration_date, self._now())

        return DomainCheckResult(
            domain=domain,
            tld=tld,
            available=False,
            method=CheckMethod.RDAP,
            rdap_data=payload,
            registration_date=registration_date,
            expiration_date=expiration_date,
            last_changed_date=last_changed_date,
            domain_age=domain_age,
        )
