"""Scan error hierarchy.

Only ``InvalidNetworkFormat`` and ``NoLocalAddress`` ever reach the caller of
a scan. The others are raised by collaborators and absorbed by the scanner.
"""


class ScanError(Exception):
    """Base class for every scan error."""


class InvalidNetworkFormat(ScanError, ValueError):
    """The given network prefix is not ``xxx.xxx.xxx``."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"local_network should be xxx.xxx.xxx, got {network!r}")


class NoLocalAddress(ScanError):
    """The machine has no usable IPv4 address to derive a network from."""

    def __init__(self, message: str = "Machine doesn't own an IPv4 address, pass local_network explicitly"):
        super().__init__(message)


class ProbeFailure(ScanError):
    """A reachability probe could not be carried out."""

    def __init__(self, ip: str, reason: str):
        self.ip = ip
        super().__init__(f"Probe of {ip} failed: {reason}")


class NeighborTableReadFailure(ScanError):
    """The OS neighbor table could not be read or parsed."""


class VendorLookupFailure(ScanError):
    """The remote vendor service did not give a usable answer."""

    def __init__(self, mac: str, reason: str):
        self.mac = mac
        super().__init__(f"Vendor lookup for {mac} failed: {reason}")
