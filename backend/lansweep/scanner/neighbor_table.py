"""
OS neighbor (ARP) table readers.

Each platform prints its ARP cache differently; every reader turns its own
format into the same ``{ip: normalized_mac}`` mapping, restricted to one
network prefix. The sweep reads the table once after all pings settled, so
every host that answered should have had a chance to land in the cache.
"""

import asyncio
import logging
import re
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from .mac import BROADCAST_MAC, is_normalized_mac, normalize_mac
from ..core.exceptions import NeighborTableReadFailure

logger = logging.getLogger(__name__)

PROC_NET_ARP = Path("/proc/net/arp")


def _in_network(ip: str, prefix: str) -> bool:
    return ip.startswith(prefix + ".")


class NeighborTableReader(ABC):
    """Reads the ARP cache through a system command."""

    command: List[str] = ["arp", "-a"]

    async def _run_command(self) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise NeighborTableReadFailure(f"Cannot run {' '.join(self.command)}: {e}") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise NeighborTableReadFailure(
                f"{' '.join(self.command)} exited with {process.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )
        return stdout.decode(errors="replace")

    async def read_table(self, prefix: str) -> Dict[str, str]:
        """Map every resolved IP under ``prefix`` to its normalized MAC."""
        output = await self._run_command()
        table = self.parse(output, prefix)
        logger.debug(f"Neighbor table holds {len(table)} entries for {prefix}")
        return table

    @abstractmethod
    def parse(self, output: str, prefix: str) -> Dict[str, str]:
        ...

    @staticmethod
    def _add_entry(table: Dict[str, str], ip: str, raw_mac: str, prefix: str) -> None:
        if not _in_network(ip, prefix):
            return
        mac = normalize_mac(raw_mac)
        if not is_normalized_mac(mac) or mac == BROADCAST_MAC:
            return
        table[ip] = mac


class LinuxNeighborTable(NeighborTableReader):
    """
    ``arp -n`` output::

        Address                  HWtype  HWaddress           Flags Mask            Iface
        192.168.2.19             ether   e8:40:f2:3e:ae:53   C                     eth0
        192.168.2.50                     (incomplete)                              eth0

    Falls back to /proc/net/arp when net-tools isn't installed.
    """

    command = ["arp", "-n"]

    def __init__(self, proc_path: Path = PROC_NET_ARP):
        self.proc_path = proc_path

    async def read_table(self, prefix: str) -> Dict[str, str]:
        try:
            return await super().read_table(prefix)
        except NeighborTableReadFailure as e:
            if not self.proc_path.exists():
                raise
            logger.debug(f"arp command unusable ({e}), reading {self.proc_path}")

        try:
            content = self.proc_path.read_text()
        except OSError as e:
            raise NeighborTableReadFailure(f"Cannot read {self.proc_path}: {e}") from e
        return self.parse_proc(content, prefix)

    def parse(self, output: str, prefix: str) -> Dict[str, str]:
        table: Dict[str, str] = {}
        for line in output.splitlines()[1:]:
            fields = line.split()
            if len(fields) < 3:
                continue
            self._add_entry(table, fields[0], fields[2], prefix)
        return table

    def parse_proc(self, content: str, prefix: str) -> Dict[str, str]:
        """
        /proc/net/arp::

            IP address       HW type     Flags       HW address            Mask     Device
            192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:ff     *        eth0
        """
        table: Dict[str, str] = {}
        for line in content.splitlines()[1:]:
            fields = line.split()
            if len(fields) < 4:
                continue
            # 0x0 means the entry is incomplete
            if fields[2] == "0x0":
                continue
            self._add_entry(table, fields[0], fields[3], prefix)
        return table


class WindowsNeighborTable(NeighborTableReader):
    """
    ``arp -a`` output::

        Interface: 192.168.2.10 --- 0x7
          Internet Address      Physical Address      Type
          192.168.2.1           74-da-38-eb-16-98     dynamic
          192.168.2.255         ff-ff-ff-ff-ff-ff     static
    """

    command = ["arp", "-a"]

    def parse(self, output: str, prefix: str) -> Dict[str, str]:
        table: Dict[str, str] = {}
        for line in output.splitlines():
            fields = line.split()
            if len(fields) < 2 or fields[0] == "Interface:":
                continue
            self._add_entry(table, fields[0], fields[1], prefix)
        return table


class DarwinNeighborTable(NeighborTableReader):
    """
    BSD style ``arp -an`` output::

        ? (192.168.1.1) at 0:1a:2b:3c:4d:5e on en0 ifscope [ethernet]
        ? (192.168.1.7) at (incomplete) on en0 ifscope [ethernet]

    Octets aren't zero padded, so they're padded before normalizing.
    """

    command = ["arp", "-an"]
    pattern = re.compile(r"\((\d+\.\d+\.\d+\.\d+)\)\s+at\s+([0-9a-fA-F:]+)")

    def parse(self, output: str, prefix: str) -> Dict[str, str]:
        table: Dict[str, str] = {}
        for line in output.splitlines():
            match = self.pattern.search(line)
            if not match:
                continue
            ip, raw_mac = match.groups()
            octets = raw_mac.split(":")
            if len(octets) != 6:
                continue
            self._add_entry(table, ip, "".join(o.zfill(2) for o in octets), prefix)
        return table


def neighbor_table_for_platform(platform: Optional[str] = None) -> NeighborTableReader:
    """Pick the reader matching the running OS."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WindowsNeighborTable()
    if platform == "darwin" or "bsd" in platform:
        return DarwinNeighborTable()
    return LinuxNeighborTable()
