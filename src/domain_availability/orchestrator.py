"""
Domain check orchestrator.

Turns keyword and TLD lists into candidate domains and checks them in
sequential batches. Each candidate runs through two stages:

1. RDAP. A result without an error is final.
2. WHOIS fallback, only when RDAP failed and the TLD has a WHOIS server.
   A clean WHOIS answer replaces the RDAP result (relabelled
   "WHOIS (RDAP fallback)"); a failed one is appended to the RDAP error.

Only input validation errors escape ``check_domains``; everything else is
reported per candidate.
"""

import asyncio
import re
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, Union

from .audit_logger import AuditLogger
from .config import BatchConfig
from .enums import CheckMethod, LogLevel
from .exceptions import ValidationError
from .keywords import normalize_keyword, normalize_tld, unique_in_order
from .models import CheckBatchStats, CheckReport, DomainCheckResult
from .rdap_resolver import RdapResolver
from .tld_registry import TldRegistry
from .whois_resolver import WhoisResolver

COMPONENT = "orchestrator"

_VALID_TLD = re.compile(r"^[a-z0-9]([a-z0-9.-]*[a-z0-9])?$")


@dataclass(frozen=True)
class Candidate:
    keyword: str
    tld: str

    @property
    def domain(self) -> str:
        return f"{self.keyword}.{self.tld}"


@dataclass(frozen=True)
class Resolved:
    """Stage output that needs no further work."""

    result: DomainCheckResult


@dataclass(frozen=True)
class Unresolved:
    """RDAP result that carries an error and may be rescued by WHOIS."""

    result: DomainCheckResult
    error: str


StageOutcome = Union[Resolved, Unresolved]


def build_candidates(keywords: list[str], tlds: list[str]) -> list[Candidate]:
    """
    Validate and normalize inputs into the keyword x TLD cross product.

    Keywords and TLDs are normalized, then deduplicated in order of first
    appearance; those that normalize to nothing are dropped.

    Raises:
        ValidationError: If either list is empty, before or after
            normalization
    """
    if not keywords:
        raise ValidationError(code="empty_keywords", message="Keywords list must not be empty")
    if not tlds:
        raise ValidationError(code="empty_tlds", message="TLD list must not be empty")

    labels = unique_in_order(label for label in (normalize_keyword(k) for k in keywords) if label)
    if not labels:
        raise ValidationError(
            code="no_valid_keywords",
            message="No valid keywords after filtering",
            details={"keywords": list(keywords)},
        )

    names = unique_in_order(name for name in (normalize_tld(t) for t in tlds) if _VALID_TLD.match(name))
    if not names:
        raise ValidationError(
            code="no_valid_tlds",
            message="No valid TLDs after filtering",
            details={"tlds": list(tlds)},
        )

    return [Candidate(keyword=label, tld=name) for label in labels for name in names]


class DomainCheckOrchestrator:
    """Public entry point for checking keyword x TLD combinations."""

    def __init__(
        self,
        registry: TldRegistry,
        rdap: RdapResolver,
        whois: WhoisResolver,
        config: Optional[BatchConfig] = None,
        logger: Optional[AuditLogger] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._rdap = rdap
        self._whois = whois
        self._config = config or BatchConfig()
        if self._config.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._logger = logger
        self._sleep = sleep
        self._last_stats: Optional[CheckBatchStats] = None

    @property
    def last_stats(self) -> Optional[CheckBatchStats]:
        """Statistics of the most recent check call."""
        return self._last_stats

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger is not None:
            self._logger.log(level, COMPONENT, message, data)

    async def check_domains(self, keywords: list[str], tlds: list[str]) -> list[DomainCheckResult]:
        """
        Check every normalized keyword against every TLD.

        Returns one result per candidate, in keyword-major order.

        Raises:
            ValidationError: For empty or entirely invalid inputs
        """
        report = await self.check_domains_report(keywords, tlds)
        return report.results

    async def check_domains_report(self, keywords: list[str], tlds: list[str]) -> CheckReport:
        """Like ``check_domains`` but also returns the batch statistics."""
        candidates = build_candidates(keywords, tlds)
        started = time.perf_counter()

        self._log(LogLevel.INFO, "Checking domains", {
            "candidates": len(candidates),
            "batch_size": self._config.batch_size,
        })

        results: list[DomainCheckResult] = []
        size = self._config.batch_size
        for start in range(0, len(candidates), size):
            batch = candidates[start:start + size]
            results.extend(await asyncio.gather(*(self._check_candidate(c) for c in batch)))
            if start + size < len(candidates) and self._config.batch_delay_seconds > 0:
                await self._sleep(self._config.batch_delay_seconds)

        elapsed_ms = (time.perf_counter() - started) * 1000
        stats = CheckBatchStats.from_results(results, elapsed_ms)
        self._last_stats = stats

        self._log(LogLevel.INFO, "Domain check complete", stats.to_dict())
        return CheckReport(results=results, stats=stats)

    async def _check_candidate(self, candidate: Candidate) -> DomainCheckResult:
        try:
            outcome = await self._rdap_stage(candidate)
            if isinstance(outcome, Unresolved):
                outcome = await self._whois_stage(candidate, outcome)
            return outcome.result
        except Exception as e:
            if self._logger is not None:
                self._logger.log_error(
                    COMPONENT, "Unexpected error while checking domain", error=e,
                    additional_data={"domain": candidate.domain},
                )
            return DomainCheckResult(
                domain=candidate.domain,
                tld=candidate.tld,
                available=False,
                method=CheckMethod.UNKNOWN,
                error=str(e) or type(e).__name__,
            )

    async def _rdap_stage(self, candidate: Candidate) -> StageOutcome:
        result = await self._rdap.check_domain(candidate.domain, candidate.tld)
        if result.error:
            return Unresolved(result=result, error=result.error)
        return Resolved(result=result)

    async def _whois_stage(self, candidate: Candidate, rdap: Unresolved) -> StageOutcome:
        target = self._registry.get_whois_config(candidate.tld)
        if target is None:
            return Resolved(result=rdap.result)

        self._log(LogLevel.DEBUG, "RDAP failed, falling back to WHOIS", {
            "domain": candidate.domain,
            "server": target.server,
        })
        whois = await self._whois.check_domain(
            candidate.domain, target.server, target.available_pattern, candidate.tld
        )
        if whois.error:
            combined = f"{rdap.error}. WHOIS fallback also failed: {whois.error}"
            return Resolved(result=replace(rdap.result, error=combined))
        return Resolved(result=replace(whois, method=CheckMethod.WHOIS_FALLBACK))
