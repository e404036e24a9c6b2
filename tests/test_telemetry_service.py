"""
Tests for TelemetryService

Covers: SIM-ready and SIM-not-ready polling paths, transport failures,
the async wrapper with timeout, SMS retrieval and the singleton.
"""

import time

import pytest

import modem_console.services.preferences as preferences_module
import modem_console.services.telemetry_service as service_module
from modem_console.services.at_command_service import ATCommandResult
from modem_console.services.preferences import PollingConfig, PreferencesService
from modem_console.services.telemetry_service import TelemetryService, get_telemetry_service
from modem_console.telemetry.constants import (
    BASIC_STATUS_COMMAND,
    SIM_CHECK_COMMAND,
    SMS_LIST_COMMAND,
    SMS_STORAGE_COMMAND,
    STATUS_COMMAND,
)
from modem_console.telemetry.models import ParseStatus, SignalAssessment

SIM_READY = ATCommandResult(ok=True, data="AT+CPIN?\r\n+CPIN: READY\r\nOK", attempts=1)


class TestRefresh:
    def test_sim_ready_runs_status_batch(self, mock_at_service, full_status_blob):
        mock_at_service.responses[SIM_CHECK_COMMAND] = SIM_READY
        mock_at_service.responses[STATUS_COMMAND] = ATCommandResult(ok=True, data=full_status_blob)
        service = TelemetryService(at_service=mock_at_service)

        snapshot = service.refresh()

        assert snapshot.ok
        assert snapshot.signal_percentage == 52
        assert len(snapshot.entries) == 3
        assert service.get_last_snapshot() is snapshot

    def test_sim_pin_uses_basic_status(self, mock_at_service):
        mock_at_service.responses[SIM_CHECK_COMMAND] = ATCommandResult(ok=True, data="+CPIN: SIM PIN\r\nOK")
        mock_at_service.responses[BASIC_STATUS_COMMAND] = ATCommandResult(
            ok=True, data="TSENS: 41C\r\nSIM1 ENABLE\r\nOK"
        )
        service = TelemetryService(at_service=mock_at_service)

        snapshot = service.refresh()

        assert snapshot.status == ParseStatus.SIM_NOT_READY
        assert snapshot.sim_status == "SIM PIN"
        assert snapshot.active_sim == "SIM 1 (No SIM Detected)"
        assert snapshot.temperature == "41C"
        called = [call.args[0] for call in mock_at_service.execute.call_args_list]
        assert STATUS_COMMAND not in called

    def test_sim_check_error(self, mock_at_service):
        mock_at_service.responses[SIM_CHECK_COMMAND] = ATCommandResult(
            ok=False, data="+CME ERROR: 10", error="The modem returned ERROR."
        )
        service = TelemetryService(at_service=mock_at_service)

        snapshot = service.refresh()

        assert snapshot.status == ParseStatus.SIM_NOT_READY
        assert snapshot.sim_status == "No SIM"
        assert snapshot.temperature == "0"

    def test_transport_failure(self, mock_at_service):
        mock_at_service.responses[SIM_CHECK_COMMAND] = SIM_READY
        mock_at_service.responses[STATUS_COMMAND] = ATCommandResult(ok=False, error="AT request timed out.")
        service = TelemetryService(at_service=mock_at_service)

        snapshot = service.refresh()

        assert snapshot.status == ParseStatus.UNAVAILABLE
        assert snapshot.active_sim == "Unavailable (AT request timed out.)"
        assert snapshot.signal_assessment == SignalAssessment.UNKNOWN

    def test_modem_error_response(self, mock_at_service):
        mock_at_service.responses[SIM_CHECK_COMMAND] = SIM_READY
        mock_at_service.responses[STATUS_COMMAND] = ATCommandResult(
            ok=False, data="AT^DEBUG?\r\nERROR", error="The modem returned ERROR."
        )
        service = TelemetryService(at_service=mock_at_service)

        snapshot = service.refresh()

        assert snapshot.status == ParseStatus.MODEM_ERROR
        assert snapshot.error == "Modem is in error state."

    def test_status_before_first_refresh(self, mock_at_service):
        service = TelemetryService(at_service=mock_at_service, polling=PollingConfig(refresh_rate=15))

        assert service.get_last_snapshot() is None
        assert service.get_status() == {"available": False, "snapshot": None, "refresh_rate": 15}

    def test_status_after_refresh(self, mock_at_service, lte_only_blob):
        mock_at_service.responses[SIM_CHECK_COMMAND] = SIM_READY
        mock_at_service.responses[STATUS_COMMAND] = ATCommandResult(ok=True, data=lte_only_blob)
        service = TelemetryService(at_service=mock_at_service, polling=PollingConfig())
        service.refresh()

        status = service.get_status()
        assert status["available"] is True
        assert status["snapshot"]["signal_percentage"] == 53
        assert status["refresh_rate"] == 10

    def test_refresh_rate_from_preferences(self, mock_at_service, temp_preferences, monkeypatch):
        preferences = PreferencesService(config_path=str(temp_preferences))
        monkeypatch.setattr(preferences_module, "_preferences_service", preferences)
        service = TelemetryService(at_service=mock_at_service)

        assert service.get_status()["refresh_rate"] == 20

        preferences.set_refresh_rate(5)
        assert service.get_status()["refresh_rate"] == 5


class TestAsyncRefresh:
    @pytest.mark.asyncio
    async def test_async_refresh(self, mock_at_service, lte_only_blob):
        mock_at_service.responses[SIM_CHECK_COMMAND] = SIM_READY
        mock_at_service.responses[STATUS_COMMAND] = ATCommandResult(ok=True, data=lte_only_blob)
        service = TelemetryService(at_service=mock_at_service)

        snapshot = await service.async_refresh()

        assert snapshot.ok
        assert snapshot.signal_assessment == SignalAssessment.FAIR

    @pytest.mark.asyncio
    async def test_async_refresh_timeout(self, mock_at_service):
        def slow_execute(atcmd, timeout=None):
            time.sleep(0.5)
            return SIM_READY

        mock_at_service.execute.side_effect = slow_execute
        service = TelemetryService(at_service=mock_at_service)

        snapshot = await service.async_refresh(timeout=0.05)

        assert snapshot.status == ParseStatus.UNAVAILABLE
        assert "timeout" in snapshot.error


class TestFetchSms:
    def test_fetch_sms(self, mock_at_service, sms_blob):
        mock_at_service.responses[SMS_STORAGE_COMMAND] = ATCommandResult(
            ok=True, data='+CPMS: "SM",3,50,"SM",3,50,"SM",3,50\r\nOK'
        )
        mock_at_service.responses[SMS_LIST_COMMAND] = ATCommandResult(ok=True, data=sms_blob)
        service = TelemetryService(at_service=mock_at_service)

        result = service.fetch_sms()

        assert result["success"] is True
        assert result["storage"]["used"] == 3
        assert result["listing"]["count"] == 2

    def test_fetch_sms_failure(self, mock_at_service):
        service = TelemetryService(at_service=mock_at_service)

        result = service.fetch_sms()

        assert result["success"] is False
        assert result["error"] == "Connection refused"
        assert result["storage"] is None


class TestSingleton:
    def test_returns_same_instance(self, monkeypatch):
        monkeypatch.setattr(service_module, "_telemetry_service", None)
        assert get_telemetry_service() is get_telemetry_service()
