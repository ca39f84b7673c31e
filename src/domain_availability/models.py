"""
Data models for the domain availability engine.

This module defines the per-TLD registry records, the persisted registry
cache snapshot, RDAP payloads, domain check results and batch statistics.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .enums import CheckMethod


def utc_now_iso() -> str:
    """Current UTC instant as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class WhoisTarget:
    """WHOIS server and the literal marker that means "available"."""

    server: str
    available_pattern: str


@dataclass(frozen=True)
class CriticalTld:
    """Hardcoded fallback configuration for a high-traffic TLD."""

    rdap_servers: tuple[str, ...]
    whois: Optional[WhoisTarget] = None


@dataclass(frozen=True)
class TldConfig:
    """Externally visible configuration of a queryable TLD."""

    name: str
    display_name: str
    rdap_servers: tuple[str, ...]
    whois_server: Optional[str]
    available_pattern: Optional[str]
    enabled: bool

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "rdapServers": list(self.rdap_servers),
            "whoisServer": self.whois_server,
            "availablePattern": self.available_pattern,
            "enabled": self.enabled,
        }


@dataclass
class TldServerEntry:
    """Registry record for a single TLD."""

    tld: str  # lowercase label, no leading dot
    rdap_servers: list[str] = field(default_factory=list)  # first-preference order
    whois_server: Optional[str] = None
    available_pattern: Optional[str] = None
    display_name: Optional[str] = None
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = f".{self.tld}"

    @property
    def queryable(self) -> bool:
        """True if at least one lookup path exists for this TLD."""
        return bool(self.rdap_servers) or bool(self.whois_server)

    @property
    def whois(self) -> Optional[WhoisTarget]:
        """WHOIS target, only when both server and pattern are known."""
        if self.whois_server and self.available_pattern:
            return WhoisTarget(server=self.whois_server, available_pattern=self.available_pattern)
        return None

    def to_config(self) -> TldConfig:
        return TldConfig(
            name=self.tld,
            display_name=self.display_name or f".{self.tld}",
            rdap_servers=tuple(self.rdap_servers),
            whois_server=self.whois_server,
            available_pattern=self.available_pattern,
            enabled=self.enabled and self.queryable,
        )


@dataclass
class RegistryCache:
    """Persisted snapshot of the TLD -> RDAP server mapping."""

    timestamp: int  # epoch millis of the last successful refresh
    server_map: dict[str, list[str]]

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "serverMap": {tld: list(servers) for tld, servers in self.server_map.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "RegistryCache":
        """
        Rebuild a snapshot from its JSON form.

        Entries whose server list is empty or not a list of strings are
        skipped.

        Raises:
            ValueError: If the document is not a valid cache snapshot
        """
        if not isinstance(data, dict):
            raise ValueError("cache document is not an object")

        timestamp = data.get("timestamp")
        server_map = data.get("serverMap")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not timestamp:
            raise ValueError("cache timestamp missing or invalid")
        if not isinstance(server_map, dict):
            raise ValueError("cache serverMap missing or invalid")

        cleaned: dict[str, list[str]] = {}
        for tld, servers in server_map.items():
            if not isinstance(servers, list):
                continue
            urls = [s for s in servers if isinstance(s, str) and s]
            if urls:
                cleaned[str(tld).lower()] = urls

        return cls(timestamp=int(timestamp), server_map=cleaned)


@dataclass(frozen=True)
class RdapEvent:
    """A single RDAP event (e.g., registration, expiration)."""

    event_action: str
    event_date: str


@dataclass(frozen=True)
class RdapPayload:
    """
    RDAP domain object as far as this engine reads it.

    Only the event list is interpreted. ``raw`` keeps the decoded JSON body
    for callers that need more; it is None when the body was not valid JSON
    (``parsed`` is then False).
    """

    events: tuple[RdapEvent, ...] = ()
    raw: Optional[Any] = None
    parsed: bool = True

    def to_dict(self) -> Any:
        if self.raw is not None:
            return self.raw
        return {
            "events": [
                {"eventAction": e.event_action, "eventDate": e.event_date}
                for e in self.events
            ]
        }


@dataclass(frozen=True)
class DomainCheckResult:
    """Result of checking one candidate domain."""

    domain: str
    tld: str
    available: bool
    method: CheckMethod
    timestamp: str = field(default_factory=utc_now_iso)
    error: Optional[str] = None
    rdap_data: Optional[RdapPayload] = None
    registration_date: Optional[str] = None
    expiration_date: Optional[str] = None
    last_changed_date: Optional[str] = None
    domain_age: Optional[int] = None  # whole days since registration

    def __post_init__(self) -> None:
        if self.available and self.error:
            raise ValueError(f"{self.domain}: an available result cannot carry an error")
        if self.available and self.has_lifecycle:
            raise ValueError(f"{self.domain}: an available result cannot carry registration data")

    @property
    def has_lifecycle(self) -> bool:
        return any(
            value is not None
            for value in (
                self.registration_date,
                self.expiration_date,
                self.last_changed_date,
                self.domain_age,
            )
        )

    def to_dict(self) -> dict:
        """Serialize to the camelCase shape used by the HTTP front end."""
        data: dict[str, Any] = {
            "domain": self.domain,
            "tld": self.tld,
            "available": self.available,
            "timestamp": self.timestamp,
            "method": self.method.value,
        }
        optional = {
            "error": self.error,
            "rdapData": self.rdap_data.to_dict() if self.rdap_data is not None else None,
            "registrationDate": self.registration_date,
            "expirationDate": self.expiration_date,
            "lastChangedDate": self.last_changed_date,
            "domainAge": self.domain_age,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass(frozen=True)
class CheckBatchStats:
    """Aggregate statistics over one orchestration call."""

    total: int
    available: int
    unavailable: int
    errors: int
    methods: dict[str, int]
    execution_time_ms: float

    @classmethod
    def from_results(
        cls, results: list[DomainCheckResult], execution_time_ms: float
    ) -> "CheckBatchStats":
        methods: dict[str, int] = {}
        for result in results:
            methods[result.method.value] = methods.get(result.method.value, 0) + 1
        return cls(
            total=len(results),
            available=sum(1 for r in results if r.available),
            unavailable=sum(1 for r in results if not r.available and not r.error),
            errors=sum(1 for r in results if r.error),
            methods=methods,
            execution_time_ms=execution_time_ms,
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "available": self.available,
            "unavailable": self.unavailable,
            "errors": self.errors,
            "methods": dict(self.methods),
            "executionTime": round(self.execution_time_ms),
        }


@dataclass(frozen=True)
class CheckReport:
    """Results of an orchestration call together with their statistics."""

    results: list[DomainCheckResult]
    stats: CheckBatchStats
