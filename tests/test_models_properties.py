"""
Property-based tests for result models and their serialized form.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_availability.enums import CheckMethod
from domain_availability.models import (
    CheckBatchStats,
    DomainCheckResult,
    RdapEvent,
    RdapPayload,
)

method_strategy = st.sampled_from(list(CheckMethod))
optional_text = st.one_of(st.none(), st.text(min_size=1, max_size=20))


@st.composite
def results(draw) -> DomainCheckResult:
    available = draw(st.booleans())
    if available:
        return DomainCheckResult(
            domain="a.com", tld="com", available=True, method=draw(method_strategy),
        )
    return DomainCheckResult(
        domain="b.com",
        tld="com",
        available=False,
        method=draw(method_strategy),
        error=draw(optional_text),
        registration_date=draw(optional_text),
        domain_age=draw(st.one_of(st.none(), st.integers(min_value=0, max_value=20000))),
    )


class TestDomainCheckResult:

    def test_available_result_rejects_error(self) -> None:
        with pytest.raises(ValueError):
            DomainCheckResult(
                domain="a.com", tld="com", available=True, method=CheckMethod.RDAP, error="boom",
            )

    def test_available_result_rejects_lifecycle_fields(self) -> None:
        with pytest.raises(ValueError):
            DomainCheckResult(
                domain="a.com", tld="com", available=True, method=CheckMethod.RDAP,
                registration_date="2020-01-01T00:00:00Z",
            )

    @given(result=results())
    @settings(max_examples=100)
    def test_to_dict_omits_absent_fields(self, result: DomainCheckResult) -> None:
        data = result.to_dict()

        assert data["domain"] == result.domain
        assert data["available"] is result.available
        assert data["method"] == result.method.value
        assert "timestamp" in data
        assert ("error" in data) == (result.error is not None)
        assert ("registrationDate" in data) == (result.registration_date is not None)
        assert ("domainAge" in data) == (result.domain_age is not None)
        assert None not in data.values()

    def test_method_labels(self) -> None:
        assert CheckMethod.WHOIS_FALLBACK.value == "WHOIS (RDAP fallback)"
        assert CheckMethod.UNKNOWN.value == "Unknown"

    def test_rdap_data_serialization(self) -> None:
        raw = {"objectClassName": "domain", "events": []}
        with_raw = DomainCheckResult(
            domain="b.com", tld="com", available=False, method=CheckMethod.RDAP,
            rdap_data=RdapPayload(raw=raw),
        )
        assert with_raw.to_dict()["rdapData"] == raw

        events_only = DomainCheckResult(
            domain="b.com", tld="com", available=False, method=CheckMethod.RDAP,
            rdap_data=RdapPayload(events=(RdapEvent("registration", "2020-01-01T00:00:00Z"),), raw=None),
        )
        assert events_only.to_dict()["rdapData"] == {
            "events": [{"eventAction": "registration", "eventDate": "2020-01-01T00:00:00Z"}]
        }


class TestCheckBatchStats:

    @given(items=st.lists(results(), max_size=30), elapsed=st.floats(min_value=0, max_value=1e6))
    @settings(max_examples=100)
    def test_counts_partition_results(self, items, elapsed: float) -> None:
        stats = CheckBatchStats.from_results(items, elapsed)

        assert stats.total == len(items)
        assert stats.available + stats.unavailable + stats.errors == stats.total
        assert sum(stats.methods.values()) == stats.total
        assert stats.to_dict()["executionTime"] == round(elapsed)
