from dataclasses import dataclass, field
from typing import Optional

from ..core.config import settings
from ..core.log import ScanLogger


@dataclass
class NetworkDevice:
    """A device that answered the sweep."""
    ip: str
    mac: Optional[str] = None  # 12 lowercase hex chars, no separators
    vendor: Optional[str] = None


@dataclass
class ScanOptions:
    """Options for one scan, defaults taken from settings."""
    local_network: Optional[str] = None
    query_vendor: bool = field(default_factory=lambda: settings.QUERY_VENDOR)
    ping_timeout_ms: int = field(default_factory=lambda: settings.PING_TIMEOUT_MS)
    query_vendors_timeout_ms: int = field(default_factory=lambda: settings.QUERY_VENDORS_TIMEOUT_MS)
    batch_size: int = field(default_factory=lambda: settings.BATCH_SIZE)
    clear_vendors_cache: bool = False
    logger: Optional[ScanLogger] = None

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.ping_timeout_ms <= 0:
            raise ValueError(f"ping_timeout_ms must be positive, got {self.ping_timeout_ms}")
        if self.query_vendors_timeout_ms <= 0:
            raise ValueError(
                f"query_vendors_timeout_ms must be positive, got {self.query_vendors_timeout_ms}"
            )
