"""
Telemetry Service - Polling collaborator for the telemetry engine

Issues the status command batches through the AT transport, hands the
responses to the stateless parser and keeps the last snapshot for readers.
"""

import asyncio
import logging
import threading
from typing import Dict, Optional

from ..telemetry import (
    ParseStatus,
    TelemetrySnapshot,
    fallback_snapshot,
    parse_basic_status,
    parse_sim_status,
    parse_sms_listing,
    parse_storage_status,
    parse_telemetry,
)
from ..telemetry.constants import (
    BASIC_STATUS_COMMAND,
    ERROR_TOKEN,
    SENTINEL_NO_SIM,
    SIM_CHECK_COMMAND,
    SMS_LIST_COMMAND,
    SMS_STORAGE_COMMAND,
    STATUS_COMMAND,
)
from .at_command_service import ATCommandService
from .preferences import PollingConfig, get_preferences

logger = logging.getLogger(__name__)


class TelemetryService:
    """Fetches and caches telemetry snapshots"""

    DEFAULT_ASYNC_TIMEOUT = 30.0

    def __init__(self, at_service: ATCommandService = None, polling: PollingConfig = None):
        self._at = at_service or ATCommandService()
        self._polling = polling
        self._lock = threading.Lock()
        self._last_snapshot: Optional[TelemetrySnapshot] = None

    # =====================
    # Telemetry
    # =====================

    def _check_sim(self):
        """(ready, status text) from the SIM check command"""
        result = self._at.execute(SIM_CHECK_COMMAND)
        if not result.ok or not result.data:
            return False, SENTINEL_NO_SIM
        status = parse_sim_status(result.data)
        return "READY" in result.data, status or SENTINEL_NO_SIM

    def refresh(self) -> TelemetrySnapshot:
        """Run one polling cycle and store the resulting snapshot"""
        sim_ready, sim_text = self._check_sim()

        if not sim_ready:
            logger.warning(f"SIM not ready: {sim_text}")
            basic = self._at.execute(BASIC_STATUS_COMMAND)
            snapshot = parse_basic_status(basic.data if basic.ok else "", sim_status=sim_text)
        else:
            result = self._at.execute(STATUS_COMMAND)
            if result.ok or ERROR_TOKEN in (result.data or ""):
                snapshot = parse_telemetry(result.data)
            else:
                message = result.error or "Invalid AT Response."
                logger.error(f"Telemetry request failed: {message}")
                snapshot = fallback_snapshot(ParseStatus.UNAVAILABLE, message)

        with self._lock:
            self._last_snapshot = snapshot
        return snapshot

    async def async_refresh(self, timeout: float = None) -> TelemetrySnapshot:
        """Run refresh() in the default executor with a timeout"""
        timeout = timeout or self.DEFAULT_ASYNC_TIMEOUT
        try:
            loop = asyncio.get_event_loop()
            return await asyncio.wait_for(loop.run_in_executor(None, self.refresh), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Telemetry refresh timeout after {timeout}s")
            return fallback_snapshot(ParseStatus.UNAVAILABLE, f"Operation timeout after {timeout}s")

    def get_last_snapshot(self) -> Optional[TelemetrySnapshot]:
        with self._lock:
            return self._last_snapshot

    @property
    def polling_config(self) -> PollingConfig:
        return self._polling or get_preferences().get_polling_config()

    def get_status(self) -> Dict:
        """Last snapshot plus the refresh interval clients should poll at"""
        snapshot = self.get_last_snapshot()
        refresh_rate = self.polling_config.refresh_rate
        if snapshot is None:
            return {"available": False, "snapshot": None, "refresh_rate": refresh_rate}
        return {"available": snapshot.ok, "snapshot": snapshot.to_dict(), "refresh_rate": refresh_rate}

    # =====================
    # SMS
    # =====================

    def fetch_sms(self) -> Dict:
        """Query storage usage, then list and decode all stored messages"""
        storage = None
        storage_result = self._at.execute(SMS_STORAGE_COMMAND)
        if storage_result.ok and storage_result.data:
            storage = parse_storage_status(storage_result.data)

        result = self._at.execute(SMS_LIST_COMMAND)
        if not result.ok or not result.data:
            message = result.error or "Unable to retrieve SMS from the modem."
            logger.error(f"SMS request failed: {message}")
            return {"success": False, "error": message, "storage": storage.to_dict() if storage else None}

        listing = parse_sms_listing(result.data)
        return {
            "success": True,
            "error": None,
            "storage": storage.to_dict() if storage else None,
            "listing": listing.to_dict(),
        }


# Singleton instance
_telemetry_service: Optional[TelemetryService] = None


def get_telemetry_service() -> TelemetryService:
    global _telemetry_service
    if _telemetry_service is None:
        _telemetry_service = TelemetryService()
    return _telemetry_service
