"""
Device Upload Router
====================

Where the ESP nodes send their readings.

Endpoints:
  POST /upload/outdoor  - Full-sensor node (ESP32): temperature, humidity,
                          pressure, light, co2
  POST /upload/indoor   - CO2-only node (ESP8266): co2

The body is read RAW - we don't let FastAPI parse it, because the devices
sometimes send bytes a strict JSON parser chokes on (null bytes, trailing
junk). See utils/payload.py.

No auth header is required or checked.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ingest_api.models import DeviceClass, UploadResponse
from ingest_api.services import IngestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================

def get_ingestion_service(request: Request) -> IngestionService:
    """
    Get the ingestion service the app built at startup.

    Every upload endpoint uses this.
    """
    service = getattr(request.app.state, "ingestion", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Server not fully started yet")
    return service


async def _handle_upload(request: Request, device_class: DeviceClass, service: IngestionService) -> UploadResponse:
    raw = await request.body()
    reading = await service.ingest(device_class, raw)
    return UploadResponse(message="Data saved successfully", partition=reading.partition)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/outdoor", response_model=UploadResponse)
async def upload_outdoor(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    """
    Full-sensor node reports a reading.

    **Body (JSON)**
    - co2: CO2 in ppm
    - temperature, humidity, pressure, light (optional): missing ones are
      stored as -99999
    - deviceId, timestamp (optional): stored for display only

    **Errors**
    - 400 (plain text): body isn't valid JSON
    - 400 (JSON): co2 isn't a number
    """
    return await _handle_upload(request, DeviceClass.FULL_SENSOR, service)


@router.post("/indoor", response_model=UploadResponse)
async def upload_indoor(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    """
    CO2-only node reports a reading.

    **Body (JSON)**
    - co2: CO2 in ppm

    Anything else in the body is ignored.
    """
    return await _handle_upload(request, DeviceClass.CO2_ONLY, service)
