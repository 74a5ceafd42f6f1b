"""
Reachability probes and the timeout wrapper the sweep drives them through.

A probe answers one question, "is something alive at this address?", as a
coroutine. ProbeExecutor races it against the configured timeout and folds
every failure into "absent".
"""

import asyncio
import logging
import math
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Protocol

from .addresses import HOSTS_PER_NETWORK
from .models import NetworkDevice
from ..core.exceptions import ProbeFailure

logger = logging.getLogger(__name__)


class Probe(Protocol):
    async def probe(self, ip: str, timeout_ms: int) -> bool: ...


class IcmpPingProbe:
    """Single echo request through the system ping command."""

    def __init__(self, platform: Optional[str] = None):
        self.platform = platform or sys.platform

    def build_command(self, ip: str, timeout_ms: int) -> list[str]:
        """Ping arguments for one echo request on this platform."""
        if self.platform.startswith("win"):
            return ["ping", "-n", "1", "-w", str(timeout_ms), ip]
        if self.platform == "darwin":
            # macOS takes -W in milliseconds
            return ["ping", "-c", "1", "-W", str(timeout_ms), ip]
        # iputils takes whole seconds
        return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout_ms / 1000))), ip]

    async def probe(self, ip: str, timeout_ms: int) -> bool:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.build_command(ip, timeout_ms),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            raise ProbeFailure(ip, str(e)) from e

        try:
            await process.wait()
        except asyncio.CancelledError:
            # Abandoned by the timeout, don't leave the ping behind
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            raise
        return process.returncode == 0


class ScapyArpProbe:
    """
    ARP who-has for one address (needs CAP_NET_RAW or root).

    ``srp`` blocks, so each request runs in a thread of the probe's own pool.
    The pool holds a thread per candidate address, so no request of a batch
    waits in a queue while its timeout is already running.
    """

    def __init__(self, retry: int = 0, max_workers: int = HOSTS_PER_NETWORK):
        self.retry = retry
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    def _send_who_has(self, ip: str, timeout: float) -> bool:
        """Send the ARP request and wait for a reply (blocking)."""
        from scapy.all import ARP, Ether, srp

        packet = Ether(dst="ff:ff:ff:ff:ff:ff") / ARP(pdst=ip)
        answered = srp(packet, timeout=timeout, verbose=False, retry=self.retry)[0]
        return len(answered) > 0

    async def probe(self, ip: str, timeout_ms: int) -> bool:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="arp-probe")
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, self._send_who_has, ip, timeout_ms / 1000)
        except OSError as e:
            raise ProbeFailure(ip, str(e)) from e

    def close(self) -> None:
        """Release the probe threads, requests in flight run to their own timeout."""
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None


def probe_factory(method: str = "icmp") -> Probe:
    """Build the probe named by the PROBE_METHOD setting."""
    if method == "icmp":
        return IcmpPingProbe()
    if method == "arp":
        return ScapyArpProbe()
    raise ValueError(f"Unknown probe method: {method!r} (expected 'icmp' or 'arp')")


class ProbeExecutor:
    """Runs one probe under a hard timeout."""

    def __init__(self, probe: Probe, timeout_ms: int):
        self.probe = probe
        self.timeout_ms = timeout_ms

    async def probe_device(self, ip: str) -> Optional[NetworkDevice]:
        """
        Probe a single address.

        Returns:
            A fresh NetworkDevice when the address answered in time, None
            when it didn't answer, timed out or the probe raised.
        """
        try:
            alive = await asyncio.wait_for(
                self.probe.probe(ip, self.timeout_ms),
                timeout=self.timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.debug(f"Probe of {ip} timed out after {self.timeout_ms}ms")
            return None
        except Exception as e:
            logger.debug(f"Probe of {ip} failed: {e}")
            return None

        if not alive:
            return None
        return NetworkDevice(ip=ip)
