"""Tests for MAC normalization, the vendor cache and the vendor resolver."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from conftest import FakeVendorClient, RecordingLogger
from lansweep.core.config import settings
from lansweep.core.exceptions import VendorLookupFailure
from lansweep.scanner.mac import is_normalized_mac, normalize_mac
from lansweep.scanner.models import NetworkDevice
from lansweep.scanner.vendor import MacVendorsClient, VendorCache, VendorResolver


@pytest.mark.parametrize("raw", ["AA:BB:CC:DD:EE:FF", "AA-BB-CC-DD-EE-FF", "aa_bb_cc_dd_ee_ff", "AA BB CC DD EE FF"])
def test_normalize_mac(raw):
    assert normalize_mac(raw) == "aabbccddeeff"
    assert is_normalized_mac(normalize_mac(raw))


class TestVendorCache:

    def test_missing_vs_unknown(self):
        cache = VendorCache()
        assert cache.get("aabbccddeeff") is None
        cache.set("aabbccddeeff", "")
        assert cache.get("aabbccddeeff") == ""
        assert "aabbccddeeff" in cache

    def test_keys_are_normalized(self):
        cache = VendorCache()
        cache.set("AA:BB:CC:DD:EE:FF", "Acme")
        assert cache.get("aa-bb-cc-dd-ee-ff") == "Acme"
        assert len(cache) == 1

    def test_clear_reports_dropped(self):
        cache = VendorCache()
        cache.set("aabbccddeeff", "Acme")
        cache.set("112233445566", "")
        assert cache.clear() == 2
        assert len(cache) == 0


class TestVendorResolver:

    def test_miss_then_hit(self):
        client = FakeVendorClient({"aabbccddeeff": "Acme"})
        resolver = VendorResolver(client)

        assert asyncio.run(resolver.resolve("AA:BB:CC:DD:EE:FF")) == "Acme"
        assert asyncio.run(resolver.resolve("aabbccddeeff")) == "Acme"
        assert client.calls == ["aabbccddeeff"]

    def test_failure_cached_as_unknown(self):
        client = FakeVendorClient(failing={"aabbccddeeff"})
        resolver = VendorResolver(client)
        sink = RecordingLogger()

        assert asyncio.run(resolver.resolve("aabbccddeeff", sink)) == ""
        assert asyncio.run(resolver.resolve("aabbccddeeff", sink)) == ""
        assert client.calls == ["aabbccddeeff"]
        assert resolver.cache.get("aabbccddeeff") == ""
        assert len(sink.errors) == 1

    def test_enrich_skips_devices_without_mac(self):
        client = FakeVendorClient({"aa11bb22cc33": "Acme"})
        devices = [NetworkDevice("10.0.0.1", mac="aa11bb22cc33"), NetworkDevice("10.0.0.5")]

        asyncio.run(VendorResolver(client).enrich(devices, timeout_ms=1000))

        assert devices[0].vendor == "Acme"
        assert devices[1].vendor is None
        assert client.calls == ["aa11bb22cc33"]

    def test_enrich_clear_cache_first(self):
        client = FakeVendorClient({"aa11bb22cc33": "Acme"})
        cache = VendorCache()
        cache.set("aa11bb22cc33", "Stale")
        devices = [NetworkDevice("10.0.0.1", mac="aa11bb22cc33")]

        asyncio.run(VendorResolver(client, cache).enrich(devices, timeout_ms=1000, clear_cache=True))

        assert devices[0].vendor == "Acme"
        assert client.calls == ["aa11bb22cc33"]

    def test_enrich_timeout_leaves_vendor_unset(self):
        class SlowClient:
            async def lookup(self, mac):
                await asyncio.sleep(3600)

        sink = RecordingLogger()
        resolver = VendorResolver(SlowClient())
        devices = [NetworkDevice("10.0.0.1", mac="aa11bb22cc33")]

        asyncio.run(resolver.enrich(devices, timeout_ms=50, sink=sink))

        assert devices[0].vendor is None
        assert "aa11bb22cc33" not in resolver.cache
        assert any("timed out" in e for e in sink.errors)

    def test_concurrency_is_bounded(self):
        state = {"in_flight": 0, "max": 0}

        class CountingClient:
            async def lookup(self, mac):
                state["in_flight"] += 1
                state["max"] = max(state["max"], state["in_flight"])
                await asyncio.sleep(0.001)
                state["in_flight"] -= 1
                return "Acme"

        devices = [NetworkDevice(f"10.0.0.{i}", mac=f"{i:012x}") for i in range(20)]
        asyncio.run(VendorResolver(CountingClient(), concurrency=3).enrich(devices, timeout_ms=5000))

        assert state["max"] <= 3
        assert all(d.vendor == "Acme" for d in devices)


def _session_class(status=200, payload=None, json_error=None):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload, side_effect=json_error)
    session = MagicMock()
    session.get.return_value.__aenter__.return_value = response
    session_class = MagicMock()
    session_class.return_value.__aenter__.return_value = session
    return session_class


class TestMacVendorsClient:

    def test_company_from_payload(self):
        payload = {"result": {"company": "Acme Corp", "mac_prefix": "AA:11:BB"}}
        session_class = _session_class(payload=payload)
        with patch("lansweep.scanner.vendor.aiohttp.ClientSession", new=session_class):
            assert asyncio.run(MacVendorsClient().lookup("aa11bb22cc33")) == "Acme Corp"
        session = session_class.return_value.__aenter__.return_value
        session.get.assert_called_once_with("http://macvendors.co/api/aa11bb22cc33/json")

    def test_url_defaults_to_setting(self):
        assert MacVendorsClient().url_template == settings.VENDOR_API_URL
        assert MacVendorsClient("http://example.test/{mac}").url_template == "http://example.test/{mac}"

    def test_unknown_mac_is_empty(self):
        session_class = _session_class(payload={"result": {"error": "no result"}})
        with patch("lansweep.scanner.vendor.aiohttp.ClientSession", new=session_class):
            assert asyncio.run(MacVendorsClient().lookup("aa11bb22cc33")) == ""

    def test_bad_status(self):
        session_class = _session_class(status=429)
        with patch("lansweep.scanner.vendor.aiohttp.ClientSession", new=session_class):
            with pytest.raises(VendorLookupFailure, match="429"):
                asyncio.run(MacVendorsClient().lookup("aa11bb22cc33"))

    def test_malformed_json(self):
        session_class = _session_class(json_error=ValueError("Expecting value"))
        with patch("lansweep.scanner.vendor.aiohttp.ClientSession", new=session_class):
            with pytest.raises(VendorLookupFailure):
                asyncio.run(MacVendorsClient().lookup("aa11bb22cc33"))

    def test_payload_not_an_object(self):
        session_class = _session_class(payload=["nope"])
        with patch("lansweep.scanner.vendor.aiohttp.ClientSession", new=session_class):
            with pytest.raises(VendorLookupFailure):
                asyncio.run(MacVendorsClient().lookup("aa11bb22cc33"))

    def test_transport_error(self):
        session_class = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        with patch("lansweep.scanner.vendor.aiohttp.ClientSession", new=session_class):
            with pytest.raises(VendorLookupFailure):
                asyncio.run(MacVendorsClient().lookup("aa11bb22cc33"))
