from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ScanRequest(BaseModel):
    """Scan request schema, unset fields fall back to settings."""
    local_network: Optional[str] = Field(None, description="Network to scan, xxx.xxx.xxx")
    query_vendor: Optional[bool] = None
    ping_timeout_ms: Optional[int] = Field(None, gt=0)
    query_vendors_timeout_ms: Optional[int] = Field(None, gt=0)
    batch_size: Optional[int] = Field(None, ge=1)
    clear_vendors_cache: bool = False


class DeviceResponse(BaseModel):
    """Device response schema."""
    model_config = ConfigDict(from_attributes=True)

    ip: str
    mac: Optional[str] = None
    vendor: Optional[str] = None


class ScanResponse(BaseModel):
    """Scan response schema."""
    network: str
    devices: list[DeviceResponse]
    devices_found: int
    duration_ms: int


class VendorCacheResponse(BaseModel):
    """Vendor cache state schema."""
    entries: int
    cleared: Optional[int] = None
