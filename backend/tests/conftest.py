"""Shared fakes standing in for the network, the ARP cache and the vendor API."""

import asyncio

import pytest

from lansweep.core.exceptions import VendorLookupFailure
from lansweep.scanner.network_scanner import NetworkScanner
from lansweep.scanner.vendor import VendorCache


class FakeProbe:
    """Answers from a fixed set of alive addresses and tracks concurrency."""

    def __init__(self, alive=(), hang=(), fail=(), delay=0.0):
        self.alive = set(alive)
        self.hang = set(hang)
        self.fail = set(fail)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, ip, timeout_ms):
        self.calls.append(ip)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if ip in self.hang:
                await asyncio.sleep(3600)
            await asyncio.sleep(self.delay)
            if ip in self.fail:
                raise OSError("network unreachable")
            return ip in self.alive
        finally:
            self.in_flight -= 1


class FakeNeighborTable:
    def __init__(self, table=None, error=None):
        self.table = table or {}
        self.error = error
        self.reads = []

    async def read_table(self, prefix):
        self.reads.append(prefix)
        if self.error:
            raise self.error
        return {ip: mac for ip, mac in self.table.items() if ip.startswith(prefix + ".")}


class FakeVendorClient:
    def __init__(self, vendors=None, failing=()):
        self.vendors = vendors or {}
        self.failing = set(failing)
        self.calls = []

    async def lookup(self, mac):
        self.calls.append(mac)
        if mac in self.failing:
            raise VendorLookupFailure(mac, "HTTP 429")
        return self.vendors.get(mac, "")


class RecordingLogger:
    def __init__(self):
        self.infos = []
        self.errors = []

    def info(self, text):
        self.infos.append(text)

    def error(self, text):
        self.errors.append(text)


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def make_scanner():
    """Build a NetworkScanner wired to fakes."""

    def factory(alive=(), table=None, vendors=None, probe=None, neighbor_table=None,
                vendor_client=None, cache=None):
        return NetworkScanner(
            probe=probe or FakeProbe(alive=alive),
            neighbor_table=neighbor_table or FakeNeighborTable(table),
            vendor_client=vendor_client or FakeVendorClient(vendors),
            vendor_cache=cache if cache is not None else VendorCache(),
        )

    return factory
