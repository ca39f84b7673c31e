"""
Lifecycle owner that wires the engine together.

    async with DomainCheckService(config) as service:
        results = await service.check_domains(["my shop"], ["com", "io"])
"""

from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .bootstrap import BootstrapClient
from .cache_store import RegistryCacheStore
from .config import SystemConfig
from .models import CheckReport, DomainCheckResult, TldConfig
from .orchestrator import DomainCheckOrchestrator
from .rdap_resolver import RdapResolver
from .tld_registry import TldRegistry
from .whois_resolver import WhoisResolver


class DomainCheckService:
    """Builds the registry, resolvers and orchestrator and owns their lifecycle."""

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        logger: Optional[AuditLogger] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or SystemConfig()
        self._logger = logger or AuditLogger(
            output_format=self._config.logging.output_format,
            min_level=self._config.logging.level,
        )
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            verify=True,
            timeout=httpx.Timeout(self._config.rdap.timeout),
            follow_redirects=True,
        )

        self.registry = TldRegistry(
            config=self._config.registry,
            cache_store=RegistryCacheStore(self._config.registry.cache_file_path),
            bootstrap=BootstrapClient(self._config.registry.bootstrap_url, client=self._http),
            logger=self._logger,
        )
        self.rdap = RdapResolver(self.registry, self._config.rdap, client=self._http, logger=self._logger)
        self.whois = WhoisResolver(self._config.whois, logger=self._logger)
        self.orchestrator = DomainCheckOrchestrator(
            self.registry,
            self.rdap,
            self.whois,
            config=self._config.batch,
            logger=self._logger,
        )
        self._started = False

    @property
    def config(self) -> SystemConfig:
        return self._config

    @property
    def logger(self) -> AuditLogger:
        return self._logger

    async def __aenter__(self) -> "DomainCheckService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self, schedule_refresh: bool = True) -> None:
        """Initialize the registry and optionally start the periodic refresh."""
        if self._started:
            return
        await self.registry.initialize()
        if schedule_refresh:
            self.registry.schedule_periodic_refresh()
        self._started = True

    async def close(self) -> None:
        await self.registry.close()
        if self._owns_client:
            await self._http.aclose()
        self._started = False

    async def check_domains(self, keywords: list[str], tlds: list[str]) -> list[DomainCheckResult]:
        return await self.orchestrator.check_domains(keywords, tlds)

    async def check_domains_report(self, keywords: list[str], tlds: list[str]) -> CheckReport:
        return await self.orchestrator.check_domains_report(keywords, tlds)

    def get_enabled_configs(self) -> list[TldConfig]:
        return self.registry.get_enabled_configs()

    async def refresh(self) -> bool:
        return await self.registry.refresh(is_startup=False)
