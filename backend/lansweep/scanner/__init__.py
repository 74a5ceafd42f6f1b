# Scanner module
from .models import NetworkDevice, ScanOptions
from .network_scanner import NetworkScanner, get_default_scanner, scan_local_network
from .vendor import VendorCache

__all__ = [
    "NetworkDevice",
    "ScanOptions",
    "NetworkScanner",
    "VendorCache",
    "get_default_scanner",
    "scan_local_network",
]
