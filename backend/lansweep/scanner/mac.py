import re

_SEPARATORS = re.compile(r"[:\-_ ]")
_NORMALIZED = re.compile(r"^[0-9a-f]{12}$")

BROADCAST_MAC = "ffffffffffff"


def normalize_mac(mac: str) -> str:
    """Convert a MAC from any convention (such as '11:AA:22:bb:33:cc') to '11aa22bb33cc'."""
    return _SEPARATORS.sub("", mac).lower()


def is_normalized_mac(mac: str) -> bool:
    return bool(_NORMALIZED.match(mac))
