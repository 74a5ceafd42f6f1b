"""
MAC vendor enrichment through the macvendors.co API.

Answers are memoized per normalized MAC in a VendorCache. A failed lookup is
cached as an empty string just like an explicit "unknown", so a flaky or
rate limited endpoint is hit at most once per MAC until the cache is cleared.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional, Protocol

import aiohttp

from .mac import normalize_mac
from .models import NetworkDevice
from ..core.config import settings
from ..core.exceptions import VendorLookupFailure
from ..core.log import NullLogger, ScanLogger

logger = logging.getLogger(__name__)


class VendorLookup(Protocol):
    async def lookup(self, mac: str) -> str: ...


class VendorCache:
    """
    Normalized MAC -> vendor name.

    A missing key means "never queried", an empty string means "queried,
    vendor unknown".
    """

    def __init__(self):
        self._entries: Dict[str, str] = {}

    def get(self, mac: str) -> Optional[str]:
        return self._entries.get(normalize_mac(mac))

    def set(self, mac: str, vendor: str) -> None:
        self._entries[normalize_mac(mac)] = vendor

    def clear(self) -> int:
        """Drop every entry, returns how many there were."""
        dropped = len(self._entries)
        self._entries.clear()
        return dropped

    def __contains__(self, mac: str) -> bool:
        return normalize_mac(mac) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class MacVendorsClient:
    """HTTP client for the vendor lookup service."""

    def __init__(self, url_template: Optional[str] = None, timeout: float = 10.0):
        self.url_template = url_template or settings.VENDOR_API_URL
        self.timeout = timeout

    async def lookup(self, mac: str) -> str:
        """
        Query the vendor of one MAC.

        Returns:
            The company name, or "" when the service doesn't know it.

        Raises:
            VendorLookupFailure: transport error, non-200 status or a
                payload that isn't the expected JSON object.
        """
        url = self.url_template.format(mac=mac)
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise VendorLookupFailure(mac, f"HTTP {response.status}")
                    body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise VendorLookupFailure(mac, str(e) or type(e).__name__) from e

        if not isinstance(body, dict):
            raise VendorLookupFailure(mac, "unexpected payload")

        # {"result": {"company": "...", ...}} or {"result": {"error": "no result"}}
        result = body.get("result")
        if not isinstance(result, dict):
            return ""
        return result.get("company") or ""


class VendorResolver:
    """Resolves and caches vendors for the devices of a scan."""

    def __init__(self, client: VendorLookup, cache: Optional[VendorCache] = None, concurrency: int = 8):
        self.client = client
        self.cache = cache if cache is not None else VendorCache()
        self.concurrency = max(1, concurrency)

    async def resolve(self, mac: str, sink: Optional[ScanLogger] = None) -> str:
        sink = sink or NullLogger()
        key = normalize_mac(mac)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        # Two tasks missing the same MAC both query, the writes are equivalent
        try:
            vendor = await self.client.lookup(key)
        except Exception as e:
            sink.error(f"Vendor lookup failed for {key}: {e}")
            vendor = ""

        self.cache.set(key, vendor)
        return vendor

    async def enrich(
        self,
        devices: Iterable[NetworkDevice],
        timeout_ms: int,
        sink: Optional[ScanLogger] = None,
        clear_cache: bool = False
    ) -> None:
        """
        Fill ``vendor`` in place for every device that has a MAC.

        Lookups still pending when ``timeout_ms`` runs out are abandoned;
        their devices keep ``vendor`` unset and nothing is cached for them.
        """
        sink = sink or NullLogger()
        if clear_cache:
            dropped = self.cache.clear()
            sink.info(f"Vendor cache cleared ({dropped} entries)")

        targets = [d for d in devices if d.mac]
        if not targets:
            return

        semaphore = asyncio.Semaphore(self.concurrency)

        async def enrich_device(device: NetworkDevice):
            async with semaphore:
                device.vendor = await self.resolve(device.mac, sink)

        try:
            await asyncio.wait_for(
                asyncio.gather(*(enrich_device(d) for d in targets)),
                timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            pending = sum(1 for d in targets if d.vendor is None)
            sink.error(f"Vendor lookup timed out after {timeout_ms}ms, {pending} devices left without vendor")
