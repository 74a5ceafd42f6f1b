"""Local network device discovery: batched ping sweep, ARP correlation and MAC vendor lookup."""

from .core.exceptions import (
    InvalidNetworkFormat,
    NeighborTableReadFailure,
    NoLocalAddress,
    ProbeFailure,
    ScanError,
    VendorLookupFailure,
)
from .scanner import NetworkDevice, NetworkScanner, ScanOptions, VendorCache, scan_local_network

__all__ = [
    "InvalidNetworkFormat",
    "NeighborTableReadFailure",
    "NoLocalAddress",
    "ProbeFailure",
    "ScanError",
    "VendorLookupFailure",
    "NetworkDevice",
    "NetworkScanner",
    "ScanOptions",
    "VendorCache",
    "scan_local_network",
]
__version__ = "1.0.0"
