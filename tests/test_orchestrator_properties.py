"""
Property-based tests for the domain check orchestrator.

Resolvers are in-memory test doubles that track how many checks are in
flight; one end-to-end test wires the real registry and resolvers to a
mocked RDAP transport and a local WHOIS listener.
"""

import asyncio
import string
import tempfile
from pathlib import Path
from typing import Optional

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_availability.cache_store import RegistryCacheStore
from domain_availability.config import BatchConfig, RegistryConfig, WhoisConfig
from domain_availability.enums import CheckMethod
from domain_availability.exceptions import NetworkError, ValidationError
from domain_availability.keywords import normalize_keyword, normalize_tld
from domain_availability.models import (
    CriticalTld,
    DomainCheckResult,
    RdapPayload,
    WhoisTarget,
)
from domain_availability.orchestrator import DomainCheckOrchestrator, build_candidates
from domain_availability.rdap_resolver import RdapResolver
from domain_availability.tld_registry import TldRegistry
from domain_availability.whois_resolver import WhoisResolver


class InFlight:
    """Counts concurrently running checks."""

    def __init__(self) -> None:
        self.current = 0
        self.peak = 0

    async def enter(self, delay: float) -> None:
        self.current += 1
        self.peak = max(self.peak, self.current)
        try:
            await asyncio.sleep(delay)
        finally:
            self.current -= 1


class FakeRdap:
    """Registered for every domain unless told otherwise."""

    def __init__(
        self,
        tracker: Optional[InFlight] = None,
        failing_tlds: tuple = (),
        available_keywords: tuple = (),
        raising_domains: tuple = (),
        delay: float = 0.0,
    ) -> None:
        self.tracker = tracker or InFlight()
        self.failing_tlds = failing_tlds
        self.available_keywords = available_keywords
        self.raising_domains = raising_domains
        self.delay = delay
        self.calls: list[str] = []

    async def check_domain(self, domain: str, tld: str) -> DomainCheckResult:
        self.calls.append(domain)
        await self.tracker.enter(self.delay)
        if domain in self.raising_domains:
            raise RuntimeError(f"resolver exploded on {domain}")
        if tld in self.failing_tlds:
            return DomainCheckResult(
                domain=domain, tld=tld, available=False, method=CheckMethod.RDAP,
                error="All RDAP servers failed: RDAP request timed out for https://rdap.test/",
            )
        if domain.split(".")[0] in self.available_keywords:
            return DomainCheckResult(domain=domain, tld=tld, available=True, method=CheckMethod.RDAP)
        return DomainCheckResult(
            domain=domain, tld=tld, available=False, method=CheckMethod.RDAP,
            rdap_data=RdapPayload(),
        )


class FakeWhois:
    def __init__(self, tracker: Optional[InFlight] = None, error: Optional[str] = None, available: bool = True) -> None:
        self.tracker = tracker or InFlight()
        self.error = error
        self.available = available
        self.calls: list[tuple] = []

    async def check_domain(self, domain: str, server: str, pattern: str, tld: str) -> DomainCheckResult:
        self.calls.append((domain, server, pattern, tld))
        await self.tracker.enter(0)
        if self.error:
            return DomainCheckResult(
                domain=domain, tld=tld, available=False, method=CheckMethod.WHOIS,
                error=f"WHOIS error: {self.error}",
            )
        return DomainCheckResult(domain=domain, tld=tld, available=self.available, method=CheckMethod.WHOIS)


class FakeRegistry:
    def __init__(self, whois: Optional[dict] = None) -> None:
        self.whois = whois or {}

    def get_whois_config(self, tld: str) -> Optional[WhoisTarget]:
        return self.whois.get(tld)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_orchestrator(
    rdap=None,
    whois=None,
    registry=None,
    config: Optional[BatchConfig] = None,
    sleep=None,
) -> DomainCheckOrchestrator:
    return DomainCheckOrchestrator(
        registry or FakeRegistry(),
        rdap or FakeRdap(),
        whois or FakeWhois(),
        config=config,
        sleep=sleep or RecordingSleep(),
    )


keyword_strategy = st.text(alphabet=string.ascii_letters + string.digits + " -!_.", max_size=12)
tld_strategy = st.sampled_from(["com", "NET", ".io", " org ", "dev", "com"])


class TestCandidateSet:

    @given(
        keywords=st.lists(keyword_strategy, min_size=1, max_size=8),
        tlds=st.lists(tld_strategy, min_size=1, max_size=5),
    )
    @settings(max_examples=50, deadline=None)
    def test_result_count_is_cross_product_of_normalized_inputs(self, keywords, tlds) -> None:
        labels = list(dict.fromkeys(k for k in (normalize_keyword(k) for k in keywords) if k))
        names = list(dict.fromkeys(normalize_tld(t) for t in tlds))
        orchestrator = make_orchestrator()

        if not labels:
            with pytest.raises(ValidationError):
                asyncio.run(orchestrator.check_domains(keywords, tlds))
            return

        results = asyncio.run(orchestrator.check_domains(keywords, tlds))

        assert len(results) == len(labels) * len(names)
        domains = [r.domain for r in results]
        assert len(set(domains)) == len(domains)
        assert domains == [f"{label}.{name}" for label in labels for name in names]

    @given(
        keywords=st.lists(keyword_strategy, min_size=1, max_size=6),
        failing=st.sets(st.sampled_from(["com", "net", "io"])),
        whois_error=st.booleans(),
    )
    @settings(max_examples=50, deadline=None)
    def test_result_invariants(self, keywords, failing, whois_error) -> None:
        orchestrator = make_orchestrator(
            rdap=FakeRdap(failing_tlds=tuple(failing), available_keywords=("free",)),
            whois=FakeWhois(error="refused" if whois_error else None, available=True),
            registry=FakeRegistry({"com": WhoisTarget("whois.test", "No match for")}),
        )
        try:
            results = asyncio.run(orchestrator.check_domains(keywords + ["free"], ["com", "net", "io"]))
        except ValidationError:
            pytest.fail("'free' always survives normalization")

        for result in results:
            if result.available:
                assert result.error is None
            if result.error:
                assert result.available is False
            if result.method == CheckMethod.RDAP and not result.available and not result.error:
                assert result.rdap_data is not None

    def test_keyword_normalization_in_candidates(self) -> None:
        candidates = build_candidates(["My Shop!!", ",,,", "   ", "my shop"], ["COM"])
        assert [c.domain for c in candidates] == ["my-shop.com"]

    @pytest.mark.parametrize("keywords, tlds", [
        ([], ["com"]),
        (["shop"], []),
        ([",,,", "   "], ["com"]),
        (["shop"], ["", "  ", "*"]),
    ])
    def test_invalid_input_raises_before_any_lookup(self, keywords, tlds) -> None:
        rdap = FakeRdap()
        orchestrator = make_orchestrator(rdap=rdap)
        with pytest.raises(ValidationError):
            asyncio.run(orchestrator.check_domains(keywords, tlds))
        assert rdap.calls == []


class TestFallback:

    def test_rdap_failure_with_whois_config_uses_whois(self) -> None:
        whois = FakeWhois(available=True)
        orchestrator = make_orchestrator(
            rdap=FakeRdap(failing_tlds=("com",)),
            whois=whois,
            registry=FakeRegistry({"com": WhoisTarget("whois.verisign-grs.com", "No match for")}),
        )

        [result] = asyncio.run(orchestrator.check_domains(["shop"], ["com"]))

        assert result.method == CheckMethod.WHOIS_FALLBACK
        assert result.available is True
        assert result.error is None
        assert whois.calls == [("shop.com", "whois.verisign-grs.com", "No match for", "com")]

    def test_whois_failure_is_appended_to_rdap_error(self) -> None:
        orchestrator = make_orchestrator(
            rdap=FakeRdap(failing_tlds=("com",)),
            whois=FakeWhois(error="connection refused"),
            registry=FakeRegistry({"com": WhoisTarget("whois.verisign-grs.com", "No match for")}),
        )

        [result] = asyncio.run(orchestrator.check_domains(["shop"], ["com"]))

        assert result.method == CheckMethod.RDAP
        assert result.available is False
        assert result.error == (
            "All RDAP servers failed: RDAP request timed out for https://rdap.test/"
            ". WHOIS fallback also failed: WHOIS error: connection refused"
        )

    def test_rdap_failure_without_whois_config_is_returned_unchanged(self) -> None:
        whois = FakeWhois()
        orchestrator = make_orchestrator(rdap=FakeRdap(failing_tlds=("shop",)), whois=whois)

        [result] = asyncio.run(orchestrator.check_domains(["my"], ["shop"]))

        assert result.method == CheckMethod.RDAP
        assert result.error.startswith("All RDAP servers failed")
        assert whois.calls == []

    def test_rdap_success_skips_whois(self) -> None:
        whois = FakeWhois()
        orchestrator = make_orchestrator(
            whois=whois,
            registry=FakeRegistry({"com": WhoisTarget("whois.test", "No match for")}),
        )
        asyncio.run(orchestrator.check_domains(["shop"], ["com"]))
        assert whois.calls == []

    def test_unexpected_exception_becomes_unknown_result(self) -> None:
        orchestrator = make_orchestrator(rdap=FakeRdap(raising_domains=("bad.com",)))

        results = asyncio.run(orchestrator.check_domains(["bad", "good"], ["com"]))

        by_domain = {r.domain: r for r in results}
        assert by_domain["bad.com"].method == CheckMethod.UNKNOWN
        assert by_domain["bad.com"].available is False
        assert by_domain["bad.com"].error == "resolver exploded on bad.com"
        assert by_domain["good.com"].method == CheckMethod.RDAP


class TestBatching:

    @given(keyword_count=st.integers(min_value=1, max_value=12), tld_count=st.integers(min_value=1, max_value=3))
    @settings(max_examples=20, deadline=None)
    def test_in_flight_checks_never_exceed_batch_size(self, keyword_count: int, tld_count: int) -> None:
        tracker = InFlight()
        sleep = RecordingSleep()
        orchestrator = make_orchestrator(
            rdap=FakeRdap(tracker=tracker, failing_tlds=("net",), delay=0.005),
            whois=FakeWhois(tracker=tracker),
            registry=FakeRegistry({"net": WhoisTarget("whois.test", "No match for")}),
            sleep=sleep,
        )
        keywords = [f"kw{i}" for i in range(keyword_count)]
        tlds = ["com", "net", "io"][:tld_count]

        results = asyncio.run(orchestrator.check_domains(keywords, tlds))

        total = keyword_count * tld_count
        assert len(results) == total
        assert tracker.peak <= 5
        assert tracker.peak == min(5, total)
        batches = -(-total // 5)
        assert sleep.delays == [0.5] * (batches - 1)

    def test_custom_batch_size(self) -> None:
        tracker = InFlight()
        sleep = RecordingSleep()
        orchestrator = make_orchestrator(
            rdap=FakeRdap(tracker=tracker, delay=0.005),
            config=BatchConfig(batch_size=2, batch_delay_seconds=0.1),
            sleep=sleep,
        )
        asyncio.run(orchestrator.check_domains(["a", "b", "c"], ["com", "net"]))
        assert tracker.peak == 2
        assert sleep.delays == [0.1, 0.1]

    def test_invalid_batch_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            make_orchestrator(config=BatchConfig(batch_size=0))


class TestStats:

    def test_report_statistics(self) -> None:
        orchestrator = make_orchestrator(
            rdap=FakeRdap(failing_tlds=("net", "io"), available_keywords=("free",)),
            whois=FakeWhois(available=False),
            registry=FakeRegistry({"net": WhoisTarget("whois.test", "No match for")}),
        )

        report = asyncio.run(orchestrator.check_domains_report(["free", "taken"], ["com", "net", "io"]))
        stats = report.stats

        assert stats.total == 6
        assert stats.available == 1
        assert stats.errors == 2
        assert stats.unavailable == 3
        assert stats.methods == {
            CheckMethod.RDAP.value: 4,
            CheckMethod.WHOIS_FALLBACK.value: 2,
        }
        assert stats.execution_time_ms >= 0
        assert orchestrator.last_stats == stats

        as_dict = stats.to_dict()
        assert set(as_dict) == {"total", "available", "unavailable", "errors", "methods", "executionTime"}


class TestEndToEnd:

    def test_connection_errors_fall_back_to_local_whois(self) -> None:
        async def whois_handler(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.readline()
            writer.write(b'No match for "FRESH-IDEA.COM".\r\n')
            await writer.drain()
            writer.close()

        def rdap_handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def run(directory: Path):
            server = await asyncio.start_server(whois_handler, "127.0.0.1", 0)
            port = server.sockets[0].getsockname()[1]
            config = RegistryConfig(cache_file_path=directory / "rdap-cache.json")

            class Unreachable:
                url = "https://bootstrap.test/dns.json"

                async def fetch(self, timeout: float) -> dict:
                    raise NetworkError(code="network_error", message="offline")

            registry = TldRegistry(
                config=config,
                critical_tlds={
                    "com": CriticalTld(
                        rdap_servers=("https://rdap-a.test/", "https://rdap-b.test/"),
                        whois=WhoisTarget("127.0.0.1", "No match for"),
                    ),
                },
                cache_store=RegistryCacheStore(config.cache_file_path),
                bootstrap=Unreachable(),
            )
            async with server, httpx.AsyncClient(transport=httpx.MockTransport(rdap_handler)) as client:
                await registry.initialize()
                orchestrator = DomainCheckOrchestrator(
                    registry,
                    RdapResolver(registry, client=client),
                    WhoisResolver(WhoisConfig(port=port, idle_timeout=0.2)),
                )
                results = await orchestrator.check_domains(["Fresh Idea"], ["com"])
                await registry.close()
                return results, registry.rdap_error_stats

        with tempfile.TemporaryDirectory() as tmp:
            results, error_stats = asyncio.run(run(Path(tmp)))

        [result] = results
        assert result.domain == "fresh-idea.com"
        assert result.method == CheckMethod.WHOIS_FALLBACK
        assert result.available is True
        assert result.error is None
        assert error_stats == (1, 1)
