"""
Telemetry API Routes
Endpoints for parsing modem AT responses and polling the modem
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from modem_console.services.telemetry_service import get_telemetry_service
from modem_console.telemetry import decode, parse_sms_listing, parse_telemetry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telemetry", tags=["telemetry"])

# =============================
# Request Models
# =============================


class RawResponseRequest(BaseModel):
    """Raw batched AT response"""

    raw: str


class DecodeRequest(BaseModel):
    """Text field of unknown encoding"""

    candidate: str


# =============================
# Offline parsing
# =============================


@router.post("/parse")
async def parse_response(request: RawResponseRequest):
    """
    Parse a batched status response into a telemetry snapshot

    Returns:
        Snapshot dict; failures are reported through its status and error fields
    """
    try:
        return parse_telemetry(request.raw).to_dict()
    except Exception as e:
        logger.error(f"Error parsing telemetry: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/sms/parse")
async def parse_sms(request: RawResponseRequest):
    """Parse a message listing response"""
    try:
        return parse_sms_listing(request.raw).to_dict()
    except Exception as e:
        logger.error(f"Error parsing SMS listing: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/decode")
async def decode_text(request: DecodeRequest):
    """Detect the encoding of a text field and decode it"""
    try:
        return decode(request.candidate).to_dict()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


# =============================
# Live modem
# =============================


@router.get("/status")
async def get_status():
    """Last snapshot captured by the telemetry service"""
    try:
        return get_telemetry_service().get_status()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/refresh")
async def refresh():
    """Run one polling cycle against the modem and return the new snapshot"""
    try:
        snapshot = await get_telemetry_service().async_refresh()
        return {"success": snapshot.ok, "snapshot": snapshot.to_dict()}
    except Exception as e:
        logger.error(f"Error refreshing telemetry: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/sms")
async def get_sms():
    """Storage usage and decoded messages from the modem"""
    try:
        return get_telemetry_service().fetch_sms()
    except Exception as e:
        logger.error(f"Error fetching SMS: {e}")
        raise HTTPException(status_code=500, detail=str(e))
