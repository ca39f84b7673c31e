"""
TLD registry: the authoritative TLD -> RDAP server mapping.

The registry loads its last snapshot from disk, overlays the critical-TLD
table, and refreshes from the IANA bootstrap source when the snapshot is
missing or stale, on a fixed schedule, and when the RDAP error rate reported
by the resolver climbs too high. Every failure on these paths degrades to
"keep the prior state"; callers never see an exception from a refresh.

All mutable state (server map, refresh flag, error counters) is touched only
from the event loop thread, so a plain boolean is enough to collapse
concurrent refreshes into one.
"""

import asyncio
import time
from collections.abc import Mapping
from typing import Callable, Optional

from .audit_logger import AuditLogger
from .bootstrap import BootstrapClient
from .cache_store import RegistryCacheStore
from .config import RegistryConfig
from .critical_tlds import CRITICAL_TLDS
from .enums import LogLevel
from .exceptions import DomainAvailabilityError, PersistenceError
from .keywords import normalize_tld
from .models import CriticalTld, RegistryCache, TldConfig, TldServerEntry, WhoisTarget
from .scheduler import PeriodicTask

COMPONENT = "tld_registry"


class TldRegistry:
    """
    Owns the queryable TLD configuration and keeps it fresh.

    Lifecycle: construct, ``await initialize()``, optionally
    ``schedule_periodic_refresh()``, and ``await close()`` on shutdown.
    """

    def __init__(
        self,
        config: Optional[RegistryConfig] = None,
        critical_tlds: Optional[Mapping[str, CriticalTld]] = None,
        cache_store: Optional[RegistryCacheStore] = None,
        bootstrap: Optional[BootstrapClient] = None,
        logger: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            config: Refresh policy and cache location
            critical_tlds: Overlay table; defaults to CRITICAL_TLDS
            cache_store: Snapshot persistence; defaults to the configured path
            bootstrap: Bootstrap source client; defaults to the configured URL
            logger: Optional audit logger
            clock: Returns the current time in epoch seconds
        """
        self._config = config or RegistryConfig()
        self._critical = dict(CRITICAL_TLDS if critical_tlds is None else critical_tlds)
        self._cache_store = cache_store or RegistryCacheStore(self._config.cache_file_path)
        self._bootstrap = bootstrap or BootstrapClient(self._config.bootstrap_url)
        self._logger = logger
        self._clock = clock
        self._disabled = {normalize_tld(t) for t in self._config.disabled_tlds}

        self._server_map: dict[str, list[str]] = {}
        self._entries: dict[str, TldServerEntry] = {}
        self._enabled_configs: list[TldConfig] = []
        self._last_updated_ms = 0

        self._refresh_in_progress = False
        self._rdap_errors = 0
        self._rdap_total = 0
        self._background: set[asyncio.Task] = set()
        self._periodic: Optional[PeriodicTask] = None

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger is not None:
            self._logger.log(level, COMPONENT, message, data)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @property
    def last_updated(self) -> int:
        """Epoch millis of the last successful refresh; 0 if never."""
        return self._last_updated_ms

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_in_progress

    @property
    def rdap_error_stats(self) -> tuple[int, int]:
        """(errors, total) RDAP outcomes since the last error-triggered refresh."""
        return self._rdap_errors, self._rdap_total

    async def initialize(self) -> None:
        """
        Load the cached snapshot and make the registry queryable.

        A missing, unreadable or stale snapshot triggers a startup refresh
        bounded by ``startup_refresh_timeout``. The critical-TLD overlay
        guarantees a usable baseline even when both the cache and the
        bootstrap source are unavailable.
        """
        cache: Optional[RegistryCache] = None
        try:
            cache = self._cache_store.load()
        except PersistenceError as e:
            if self._logger is not None:
                self._logger.log_error(COMPONENT, "Ignoring unusable registry cache", error=e)

        if cache is not None:
            self._server_map = {tld: list(servers) for tld, servers in cache.server_map.items()}
            self._last_updated_ms = cache.timestamp
            self._log(LogLevel.INFO, "Loaded registry cache", {
                "tlds": len(self._server_map),
                "timestamp": cache.timestamp,
            })

        self._apply_critical_overlay()
        self._rebuild_entries()

        if cache is None or self.is_stale():
            self._log(LogLevel.INFO, "Registry cache missing or stale, refreshing", {
                "cache_loaded": cache is not None,
            })
            await self.refresh(is_startup=True)

        self._log(LogLevel.INFO, "TLD registry initialized", {
            "tlds": len(self._entries),
            "enabled": len(self._enabled_configs),
        })

    def is_stale(self) -> bool:
        if not self._last_updated_ms:
            return True
        age_ms = self._now_ms() - self._last_updated_ms
        return age_ms > self._config.stale_after_seconds * 1000

    async def refresh(self, is_startup: bool = False) -> bool:
        """
        Re-fetch the bootstrap mapping and merge it into the registry.

        Only one refresh runs at a time; a call made while another is in
        flight returns False immediately. On failure the prior state is
        kept and False is returned.

        Args:
            is_startup: Use the short startup timeout instead of the
                background one

        Returns:
            True if the mapping was refreshed
        """
        if self._refresh_in_progress:
            self._log(LogLevel.DEBUG, "Refresh already in progress, skipping")
            return False

        self._refresh_in_progress = True
        timeout = (
            self._config.startup_refresh_timeout if is_startup else self._config.refresh_timeout
        )
        try:
            fetched = await asyncio.wait_for(self._bootstrap.fetch(timeout), timeout)
        except asyncio.TimeoutError:
            self._log(LogLevel.WARN, "Registry refresh timed out", {"timeout": timeout})
            return False
        except DomainAvailabilityError as e:
            if self._logger is not None:
                self._logger.log_error(
                    COMPONENT, "Registry refresh failed", error=e,
                    request_url=self._bootstrap.url,
                )
            return False
        else:
            self._server_map.update(fetched)
            self._apply_critical_overlay()
            self._last_updated_ms = self._now_ms()
            self._rebuild_entries()
            self._persist()
            self._log(LogLevel.INFO, "Registry refreshed", {
                "fetched": len(fetched),
                "tlds": len(self._entries),
                "startup": is_startup,
            })
            return True
        finally:
            self._refresh_in_progress = False

    def schedule_periodic_refresh(self) -> PeriodicTask:
        """Start (or return the already running) periodic background refresh."""
        if self._periodic is not None and self._periodic.is_running():
            return self._periodic

        self._periodic = PeriodicTask(
            name="tld-registry-refresh",
            interval_seconds=self._config.refresh_interval_seconds,
            callback=self.refresh,
            logger=self._logger,
        )
        self._periodic.start()
        self._log(LogLevel.INFO, "Scheduled periodic registry refresh", {
            "interval_seconds": self._config.refresh_interval_seconds,
        })
        return self._periodic

    def record_rdap_outcome(self, success: bool) -> None:
        """
        Feed one RDAP lookup outcome into the error-rate tracker.

        When more than ``error_rate_min_samples`` outcomes have been seen,
        the error ratio exceeds ``error_rate_threshold`` and the last
        refresh is older than the cooldown, a background refresh is started
        and the counters are reset.
        """
        self._rdap_total += 1
        if not success:
            self._rdap_errors += 1

        if self._rdap_total <= self._config.error_rate_min_samples:
            return
        ratio = self._rdap_errors / self._rdap_total
        if ratio <= self._config.error_rate_threshold:
            return
        since_update_ms = self._now_ms() - self._last_updated_ms
        if since_update_ms <= self._config.error_refresh_cooldown_seconds * 1000:
            return

        self._log(LogLevel.WARN, "High RDAP error rate, triggering registry refresh", {
            "errors": self._rdap_errors,
            "total": self._rdap_total,
            "ratio": round(ratio, 3),
        })
        self._rdap_errors = 0
        self._rdap_total = 0

        task = asyncio.get_running_loop().create_task(self.refresh(is_startup=False))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def get_enabled_configs(self) -> list[TldConfig]:
        """Enabled, queryable TLDs sorted by name."""
        return list(self._enabled_configs)

    def get_all_configs(self) -> list[TldConfig]:
        return [self._entries[tld].to_config() for tld in sorted(self._entries)]

    def get_entry(self, tld: str) -> Optional[TldServerEntry]:
        return self._entries.get(normalize_tld(tld))

    def get_rdap_servers(self, tld: str) -> list[str]:
        entry = self._entries.get(normalize_tld(tld))
        return list(entry.rdap_servers) if entry is not None else []

    def get_whois_config(self, tld: str) -> Optional[WhoisTarget]:
        entry = self._entries.get(normalize_tld(tld))
        return entry.whois if entry is not None else None

    async def close(self) -> None:
        """Stop the periodic refresh and cancel background refreshes."""
        if self._periodic is not None:
            await self._periodic.stop()
            self._periodic = None

        pending = list(self._background)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background.clear()

    def _apply_critical_overlay(self) -> None:
        for tld, critical in self._critical.items():
            if not self._server_map.get(tld) and critical.rdap_servers:
                self._server_map[tld] = list(critical.rdap_servers)

    def _rebuild_entries(self) -> None:
        entries: dict[str, TldServerEntry] = {}
        for tld in set(self._server_map) | set(self._critical):
            critical = self._critical.get(tld)
            whois = critical.whois if critical is not None else None
            entries[tld] = TldServerEntry(
                tld=tld,
                rdap_servers=list(self._server_map.get(tld, [])),
                whois_server=whois.server if whois is not None else None,
                available_pattern=whois.available_pattern if whois is not None else None,
                enabled=tld not in self._disabled,
            )

        self._entries = entries
        self._enabled_configs = [
            config
            for config in (entries[tld].to_config() for tld in sorted(entries))
            if config.enabled
        ]

    def _persist(self) -> None:
        snapshot = RegistryCache(timestamp=self._last_updated_ms, server_map=self._server_map)
        try:
            self._cache_store.save(snapshot)
        except PersistenceError as e:
            if self._logger is not None:
                self._logger.log_error(COMPONENT, "Failed to persist registry cache", error=e)
