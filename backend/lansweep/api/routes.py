from fastapi import APIRouter, Depends, HTTPException
import logging
import time

from ..core.config import settings
from ..core.exceptions import InvalidNetworkFormat, NoLocalAddress
from ..core.log import LoggingSink
from ..scanner.addresses import get_network_address
from ..scanner.models import ScanOptions
from ..scanner.network_scanner import NetworkScanner, get_default_scanner
from .schemas import (
    DeviceResponse,
    ScanRequest,
    ScanResponse,
    VendorCacheResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_scanner() -> NetworkScanner:
    """Dependency for the shared scanner."""
    return get_default_scanner()


@router.post("/scan", response_model=ScanResponse)
async def trigger_scan(request: ScanRequest, scanner: NetworkScanner = Depends(get_scanner)):
    """Run a sweep now and return the devices that answered."""
    overrides = request.model_dump(exclude_none=True, exclude={"local_network"})

    try:
        network = get_network_address(request.local_network or settings.DEFAULT_NETWORK)
        options = ScanOptions(local_network=network, logger=LoggingSink(logger), **overrides)

        started = time.monotonic()
        devices = await scanner.scan(options)
    except InvalidNetworkFormat as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NoLocalAddress as e:
        raise HTTPException(status_code=503, detail=str(e))

    return ScanResponse(
        network=network,
        devices=[DeviceResponse.model_validate(d) for d in devices],
        devices_found=len(devices),
        duration_ms=int((time.monotonic() - started) * 1000)
    )


@router.get("/vendors/cache", response_model=VendorCacheResponse)
async def get_vendor_cache(scanner: NetworkScanner = Depends(get_scanner)):
    """Number of MACs with a cached vendor answer."""
    return VendorCacheResponse(entries=len(scanner.vendor_cache))


@router.delete("/vendors/cache", response_model=VendorCacheResponse)
async def clear_vendor_cache(scanner: NetworkScanner = Depends(get_scanner)):
    """Forget every cached vendor answer."""
    cleared = scanner.clear_vendor_cache()
    return VendorCacheResponse(entries=len(scanner.vendor_cache), cleared=cleared)
