import logging
import time
from typing import List, Optional

from .addresses import expand_addresses, get_network_address
from .batching import BatchScheduler
from .models import NetworkDevice, ScanOptions
from .neighbor_table import NeighborTableReader, neighbor_table_for_platform
from .probe import Probe, ProbeExecutor, probe_factory
from .vendor import MacVendorsClient, VendorCache, VendorLookup, VendorResolver
from ..core.config import settings
from ..core.log import ConsoleLogger, ScanLogger

logger = logging.getLogger(__name__)


class NetworkScanner:
    """One-shot sweep of a local /24 with MAC and vendor enrichment."""

    def __init__(
        self,
        probe: Optional[Probe] = None,
        neighbor_table: Optional[NeighborTableReader] = None,
        vendor_client: Optional[VendorLookup] = None,
        vendor_cache: Optional[VendorCache] = None,
        vendor_concurrency: Optional[int] = None
    ):
        self.probe = probe or probe_factory(settings.PROBE_METHOD)
        self.neighbor_table = neighbor_table or neighbor_table_for_platform()
        self.vendor_cache = vendor_cache if vendor_cache is not None else VendorCache()
        self.vendor_resolver = VendorResolver(
            vendor_client or MacVendorsClient(),
            self.vendor_cache,
            concurrency=vendor_concurrency or settings.VENDOR_CONCURRENCY
        )

    def clear_vendor_cache(self) -> int:
        """Forget every cached vendor, returns how many were dropped."""
        return self.vendor_cache.clear()

    def close(self) -> None:
        """Release resources held by the probe (the ARP probe's threads)."""
        close = getattr(self.probe, "close", None)
        if close:
            close()

    async def scan(self, options: Optional[ScanOptions] = None) -> List[NetworkDevice]:
        """
        Sweep the network and return the devices that answered.

        Args:
            options: Scan options, settings defaults when omitted.

        Returns:
            Alive devices in ascending address order, with ``mac`` and
            ``vendor`` filled in where they could be resolved.

        Raises:
            InvalidNetworkFormat: options.local_network is malformed.
            NoLocalAddress: no network given and none could be detected.
        """
        options = options or ScanOptions()
        sink: ScanLogger = options.logger or ConsoleLogger()
        started = time.monotonic()

        # Expanding: the only phase allowed to fail the scan
        network = get_network_address(options.local_network or settings.DEFAULT_NETWORK)
        addresses = expand_addresses(network)
        sink.info(f"Scanning {network}.0/24 ({len(addresses)} addresses, batches of {options.batch_size})")

        devices = await self._probe_all(addresses, options, sink)
        sink.info(f"{len(devices)} devices answered")

        await self._merge_neighbor_table(devices, network, sink)

        if options.query_vendor:
            await self.vendor_resolver.enrich(
                devices,
                timeout_ms=options.query_vendors_timeout_ms,
                sink=sink,
                clear_cache=options.clear_vendors_cache
            )
        elif options.clear_vendors_cache:
            self.vendor_cache.clear()

        elapsed_ms = int((time.monotonic() - started) * 1000)
        sink.info(f"Scan of {network}.0/24 done in {elapsed_ms}ms")
        return devices

    async def _probe_all(
        self,
        addresses: List[str],
        options: ScanOptions,
        sink: ScanLogger
    ) -> List[NetworkDevice]:
        executor = ProbeExecutor(self.probe, options.ping_timeout_ms)
        scheduler = BatchScheduler(options.batch_size)

        def on_batch_done(number: int, total: int):
            sink.info(f"Probe batch {number}/{total} done")

        results = await scheduler.run(addresses, executor.probe_device, on_batch_done)
        return [device for device in results if device is not None]

    async def _merge_neighbor_table(self, devices: List[NetworkDevice], network: str, sink: ScanLogger):
        """Assign MACs from the ARP cache, leaving them unset if it can't be read."""
        if not devices:
            return

        try:
            table = await self.neighbor_table.read_table(network)
        except Exception as e:
            sink.error(f"Neighbor table read failed, devices keep no MAC: {e}")
            return

        missing = 0
        for device in devices:
            mac = table.get(device.ip)
            if mac:
                device.mac = mac
            else:
                missing += 1

        if missing:
            logger.debug(f"{missing} alive devices not in the neighbor table yet")


# Process-wide scanner so the vendor cache outlives single calls
default_scanner: Optional[NetworkScanner] = None


def get_default_scanner() -> NetworkScanner:
    global default_scanner
    if default_scanner is None:
        default_scanner = NetworkScanner()
    return default_scanner


async def scan_local_network(options: Optional[ScanOptions] = None, **overrides) -> List[NetworkDevice]:
    """
    Scan the local network with the shared default scanner.

    Keyword overrides build a ScanOptions when ``options`` isn't given, e.g.
    ``await scan_local_network(local_network="192.168.1", query_vendor=True)``.
    """
    if options is None:
        options = ScanOptions(**overrides)
    elif overrides:
        raise TypeError("Pass either options or keyword overrides, not both")
    return await get_default_scanner().scan(options)
