"""
Tests for bootstrap document parsing and fetching.

HTTP is stubbed with httpx.MockTransport.
"""

import asyncio
import json
import string

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_availability.bootstrap import BootstrapClient, parse_bootstrap_services
from domain_availability.exceptions import NetworkError, ProtocolError

BOOTSTRAP_URL = "https://data.iana.org/rdap/dns.json"


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def fetch(handler, timeout: float = 5.0) -> dict:
    async def run() -> dict:
        async with make_client(handler) as client:
            return await BootstrapClient(BOOTSTRAP_URL, client=client).fetch(timeout)
    return asyncio.run(run())


class TestParseBootstrapServices:

    def test_parses_services(self) -> None:
        document = {
            "version": "1.0",
            "services": [
                [["com", "net"], ["https://rdap.verisign.com/com/v1/", "https://backup.example/"]],
                [["*.ORG"], ["https://rdap.publicinterestregistry.org/rdap/"]],
                [["*.*.bad", "xn--p1ai"], ["https://rdap.nic.rf/"]],
            ],
        }
        assert parse_bootstrap_services(document) == {
            "com": ["https://rdap.verisign.com/com/v1/", "https://backup.example/"],
            "net": ["https://rdap.verisign.com/com/v1/", "https://backup.example/"],
            "org": ["https://rdap.publicinterestregistry.org/rdap/"],
            "xn--p1ai": ["https://rdap.nic.rf/"],
        }

    def test_later_duplicates_win(self) -> None:
        document = {"services": [
            [["io"], ["https://first.example/"]],
            [["io"], ["https://second.example/"]],
        ]}
        assert parse_bootstrap_services(document) == {"io": ["https://second.example/"]}

    def test_malformed_services_are_skipped(self) -> None:
        document = {"services": [
            "junk",
            [["app"]],
            [["dev"], []],
            [["ai"], ["https://rdap.nic.ai/"]],
            [[42, ""], ["https://ignored.example/"]],
        ]}
        assert parse_bootstrap_services(document) == {"ai": ["https://rdap.nic.ai/"]}

    @pytest.mark.parametrize("document", [None, [], {}, {"services": "nope"}])
    def test_missing_services_raise(self, document) -> None:
        with pytest.raises(ProtocolError):
            parse_bootstrap_services(document)

    @given(st.lists(
        st.tuples(
            st.lists(st.text(alphabet=string.ascii_letters + "*.-", min_size=1, max_size=10), max_size=4),
            st.lists(st.just("https://rdap.example/"), min_size=1, max_size=2),
        ),
        max_size=10,
    ))
    @settings(max_examples=100)
    def test_no_wildcards_or_uppercase_survive(self, services) -> None:
        document = {"services": [[list(patterns), list(urls)] for patterns, urls in services]}
        for tld in parse_bootstrap_services(document):
            assert "*" not in tld
            assert "." not in tld
            assert tld == tld.lower()
            assert tld


class TestBootstrapClient:

    def test_fetch_success(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["accept"] = request.headers.get("accept")
            return httpx.Response(200, json={"services": [[["com"], ["https://rdap.verisign.com/com/v1/"]]]})

        assert fetch(handler) == {"com": ["https://rdap.verisign.com/com/v1/"]}
        assert seen["accept"] == "application/json"

    def test_non_200_is_network_error(self) -> None:
        with pytest.raises(NetworkError):
            fetch(lambda request: httpx.Response(503, text="unavailable"))

    def test_transport_error_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError) as info:
            fetch(handler)
        assert info.value.code == "network_error"

    def test_timeout_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkError) as info:
            fetch(handler)
        assert info.value.code == "timeout"

    def test_invalid_json_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            fetch(lambda request: httpx.Response(200, text="<html>"))

    def test_empty_mapping_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            fetch(lambda request: httpx.Response(200, content=json.dumps({"services": []})))
