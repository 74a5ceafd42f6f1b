import logging
import re
import socket
from typing import List, Optional

from ..core.exceptions import InvalidNetworkFormat, NoLocalAddress

logger = logging.getLogger(__name__)

HOSTS_PER_NETWORK = 255

_OCTET = re.compile(r"[0-9]{1,3}")

# Connecting a UDP socket only picks a route, nothing is sent
_ROUTE_PROBE_TARGET = ("8.8.8.8", 80)


def get_local_ip() -> Optional[str]:
    """Best guess at the machine's primary IPv4 address, or None."""
    candidates = []

    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(_ROUTE_PROBE_TARGET)
        candidates.append(s.getsockname()[0])
    except OSError as e:
        logger.debug(f"No default route for local address detection: {e}")
    finally:
        s.close()

    # Hostname resolution can block on DNS, only try it without a route
    if not any(_is_usable(ip) for ip in candidates):
        try:
            candidates.append(socket.gethostbyname(socket.gethostname()))
        except OSError as e:
            logger.debug(f"Hostname resolution failed: {e}")

    for ip in candidates:
        if _is_usable(ip):
            return ip
    return None


def _is_usable(ip: str) -> bool:
    return len(ip.split('.')) == 4 and not ip.startswith("127.") and ip != "0.0.0.0"


def get_network_address(local_network: Optional[str] = None) -> str:
    """
    Resolve the 3-octet network prefix to sweep.

    Args:
        local_network: Prefix such as "192.168.1". Detected from the
            machine's own address when omitted.

    Returns:
        The validated prefix.

    Raises:
        InvalidNetworkFormat: local_network is not three numeric octets.
        NoLocalAddress: nothing given and no usable local address found.
    """
    if local_network:
        parts = local_network.split('.')
        if len(parts) != 3:
            raise InvalidNetworkFormat(local_network)
        for part in parts:
            # ASCII digits only
            if not _OCTET.fullmatch(part) or int(part) > 255:
                raise InvalidNetworkFormat(local_network)
        return local_network

    machine_ip = get_local_ip()
    if machine_ip is None:
        raise NoLocalAddress()

    return '.'.join(machine_ip.split('.')[:-1])


def expand_addresses(network: str) -> List[str]:
    """All candidate addresses of a prefix, .0 through .254, in order."""
    return [f"{network}.{index}" for index in range(HOSTS_PER_NETWORK)]
