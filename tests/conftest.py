"""
Pytest configuration and shared fixtures for Modem Console tests

Sample modem responses captured from debug-status and engineering-mode output,
plus mocks for the AT transport so no modem is needed.
"""

import json
from unittest.mock import MagicMock

import pytest

from modem_console.services.at_command_service import ATCommandResult


@pytest.fixture
def lte_only_blob():
    """Single LTE carrier from the debug status command, CRLF terminated"""
    return "\r\n".join(
        [
            "AT^DEBUG?",
            "RAT:LTE",
            "mcc:310,mnc:260",
            "lte_ant_rsrp:(-85.5,-88.2,NA,NA) rx_diversity:3",
            "pcell: lte_band:3 lte_band_width:20MHz",
            "channel:1300 pci:123",
            "lte_rsrp:-95.0,rsrq:-11.0",
            "lte_rssi:-65.0,lte_snr:12.0",
            "lte_cell_id:0x1A2B3C",
            "lte_tac:0x00AB",
            "",
            "OK",
        ]
    )


@pytest.fixture
def full_status_blob():
    """Full status batch: LTE primary + one secondary carrier + NR (n77)"""
    return "\n".join(
        [
            "AT^TEMP?;^SWITCH_SLOT?;+CGPIAF=1,1,1,1;^DEBUG?;+CPIN?;+CGCONTRDP=1;"
            "$QCSIMSTAT?;+CSQ;+COPS?;+CIMI;+ICCID;+CNUM;",
            "TSENS: 42C",
            "PA: 38C",
            "Skin Sensor: 35C",
            "SIM1 ENABLE",
            "RAT:LTE+NR",
            "mcc:310,mnc:260",
            "lte_ant_rsrp:(-80.0,-82.0,-84.0,-86.0) rx_diversity:15",
            "pcell: lte_band:3 lte_band_width:20MHz",
            "channel:1300 pci:123",
            "lte_rsrp:-95.0,rsrq:-11.0",
            "lte_rssi:-65.0,lte_snr:12.0",
            "scell: lte_band:7 lte_band_width:10MHz",
            "channel:3100 pci:321",
            "lte_rsrp:-105.0,rsrq:-14.0",
            "lte_rssi:-75.0,lte_snr:5.0",
            "nr_band:n77",
            "nr_band_width:100MHz",
            "nr_channel:650000",
            "nr_pci:500",
            "nr_rsrp:-90.0 (-89.0,NA,-91.0,NA) rx_diversity: 5",
            "nr_rsrq:-10.0",
            "nr_rssi:-60.0",
            "nr_snr:20.0",
            "lte_cell_id:0x1A2B3C",
            "lte_tac:0x00AB",
            "nr_cell_id:0x0123456789",
            "nr_tac:0x000C",
            "+CPIN: READY",
            '+CGCONTRDP: 1,5,"fast.t-mobile.com","10.0.0.2","2607:fb90::1"',
            "+CSQ: 20,99",
            '+COPS: 0,0,"T-Mobile T-Mobile",13',
            "310260123456789",
            "+ICCID: 8901260123456789012",
            '+CNUM: ,"+15551234567",145',
            "OK",
        ]
    )


@pytest.fixture
def qeng_blob():
    """Engineering-mode serving cell report (LTE anchor + NR5G-NSA)"""
    return "\n".join(
        [
            'AT+QENG="servingcell"',
            '+QENG: "servingcell","NOCONN"',
            '+QENG: "LTE","FDD",310,260,1A2B3C,123,1300,3,5,5,AB,-95,-11,-65,12,0,-',
            '+QENG: "NR5G-NSA",310,260,500,-90,20,-10,650000,77',
            "OK",
        ]
    )


@pytest.fixture
def sms_blob():
    """Message listing with a UCS-2 message, an invalid date and a plain message"""
    sender_hex = "002B" "0031" "0035" "0035" "0035" "0031" "0032" "0033" "0034" "0035" "0036" "0037"
    service_center_hex = "002B" "0031" + "0035" * 3 + "0030" * 6
    return "\n".join(
        [
            'AT+CSMS=1;+CSDH=0;+CNMI=2,1,0,0,0;+CMGF=1;+CSCA?;+CSMP=17,167,0,8;+CMGL="ALL"',
            f'+CMGL: 1,"REC READ","{sender_hex}",,"24/03/15,10:30:00+08"',
            "00480065006C006C006F",
            '+CMGL: 2,"REC UNREAD","12345","","24/13/40,99:00:00+08"',
            "Bad date",
            '+CMGL: 3,"REC READ","+15551234567",,"24/03/16,08:05:09-04"',
            "Plain body",
            f'+CSCA: "{service_center_hex}",145',
            "OK",
        ]
    )


@pytest.fixture
def mock_at_service():
    """
    Mock ATCommandService

    Tests register responses per command batch in `responses`; unknown
    commands fail like an unreachable endpoint.
    """
    service = MagicMock()
    service.responses = {}

    def execute(atcmd, timeout=None):
        return service.responses.get(
            atcmd, ATCommandResult(ok=False, error="Connection refused", attempts=1, command=atcmd)
        )

    service.execute.side_effect = execute
    return service


@pytest.fixture
def temp_preferences(tmp_path):
    """
    Create temporary preferences.json file for testing

    Args:
        tmp_path: pytest's temporary directory fixture

    Returns:
        Path to temporary preferences file
    """
    prefs_file = tmp_path / "preferences.json"
    prefs_data = {
        "transport": {"endpoint": "http://10.0.0.1/cgi-bin/get_atcommand", "timeout": 5},
        "polling": {"refresh_rate": 20},
    }
    prefs_file.write_text(json.dumps(prefs_data, indent=2))
    return prefs_file
