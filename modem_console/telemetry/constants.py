"""
Modem Telemetry Constants
Centralized engineering tables for the telemetry parser
"""

# AT protocol tokens
ACK_TOKEN = "OK"
ERROR_TOKEN = "ERROR"
COMMAND_PREFIX = "AT"

# Field sentinels
SENTINEL_DASH = "-"
SENTINEL_UNKNOWN = "Unknown"
SENTINEL_NOT_AVAILABLE = "Not Available"
SENTINEL_NA = "N/A"
SENTINEL_NO_SIM = "No SIM"
NOT_USED = "Not Used"

# Aggregate failure messages
EMPTY_RESPONSE_MESSAGE = "Empty AT response from modem."
MODEM_ERROR_MESSAGE = "Modem is in error state."

# Metric curves: floor (0%), ceiling (100%), hard-zero cutoff.
# "inclusive" cutoffs zero values at the cutoff itself (<=), others only below (<).
METRIC_CURVES = {
    "rssi": {"floor": -110.0, "ceiling": -30.0, "cutoff": -110.0, "inclusive": True, "unit": "dBm"},
    "rsrp": {"floor": -135.0, "ceiling": -65.0, "cutoff": -140.0, "inclusive": False, "unit": "dBm"},
    "rsrq": {"floor": -20.0, "ceiling": -8.0, "cutoff": -20.0, "inclusive": False, "unit": "dB"},
    "sinr": {"floor": -10.0, "ceiling": 35.0, "cutoff": -10.0, "inclusive": False, "unit": "dB"},
}

# Any detectable in-range value displays at least this percentage
METRIC_MIN_PERCENT = 15

# Overall assessment thresholds, highest first
SIGNAL_ASSESSMENT_THRESHOLDS = [
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (0, "Poor"),
]

# Display order and labels of per-entry metrics
METRIC_LABELS = {
    "LTE": {"rssi": "RSSI", "rsrp": "RSRP", "sinr": "SINR", "rsrq": "RSRQ"},
    "NR": {"rssi": "RSSI", "rsrp": "SS_RSRP", "sinr": "SS_SINR", "rsrq": "SS_RSRQ"},
}

# Logical -> physical antenna permutations
LTE_LOGICAL_TO_PHYSICAL = (0, 3, 2, 1)
NR_FDD_2X2_LOGICAL_TO_PHYSICAL = (0, 3)
NR_FDD_4X4_LOGICAL_TO_PHYSICAL = (2, 3, 0, 1)
NR_TDD_LOGICAL_TO_PHYSICAL = (2, 1, 0, 3)

NR_FDD_2X2_BANDS = frozenset({5, 8, 12, 20, 28, 71})
NR_FDD_4X4_BANDS = frozenset({1, 2, 3, 7, 25, 66})
NR_TDD_BANDS = frozenset({38, 40, 41, 77, 78, 79})

NR_ANTENNA_TABLES = (
    (NR_FDD_2X2_BANDS, NR_FDD_2X2_LOGICAL_TO_PHYSICAL),
    (NR_FDD_4X4_BANDS, NR_FDD_4X4_LOGICAL_TO_PHYSICAL),
    (NR_TDD_BANDS, NR_TDD_LOGICAL_TO_PHYSICAL),
)
NR_DEFAULT_LOGICAL_TO_PHYSICAL = NR_FDD_4X4_LOGICAL_TO_PHYSICAL

PHYSICAL_ANTENNA_SLOTS = (0, 1, 2, 3)

# Bandwidth code mappings (MHz)
LTE_BANDWIDTH_CODES = {
    0: 1.4,
    1: 3,
    2: 5,
    3: 10,
    4: 15,
    5: 20,
    6: 40,
    7: 80,
    8: 100,
    9: 200,
}

NR_BANDWIDTH_CODES = {
    0: 5,
    1: 10,
    2: 15,
    3: 20,
    4: 25,
    5: 30,
    6: 40,
    7: 50,
    8: 60,
    9: 70,
    10: 80,
    11: 90,
    12: 100,
    13: 200,
    14: 400,
}

# Network mode (RAT:) -> display badges
NETWORK_MODE_BADGES = {
    "LTE+NR": ["LTE", "5G-NSA"],
    "LTE": ["LTE"],
    "NR5G_SA": ["5G-SA"],
}

# Engineering-mode (+QENG) positional field layouts
QENG_LTE_FIELDS = {
    "cell_id": 4,
    "pci": 5,
    "channel": 6,
    "band": 7,
    "bandwidth": 9,
    "tac": 10,
    "rsrp": 11,
    "rsrq": 12,
    "rssi": 13,
    "sinr": 14,
}

QENG_NR_NSA_FIELDS = {
    "pci": 3,
    "rsrp": 4,
    "sinr": 5,
    "rsrq": 6,
    "channel": 7,
    "band": 8,
}

# Encoding detector thresholds
HEX_RATIO_MIN = 0.7
UCS2_ZERO_EVEN_THRESHOLD = 0.3
UTF8_PREFERENCE_MARGIN = 0.1
ENCODED_NUMBER_MIN_LENGTH = 11
ENCODED_NUMBER_PREFIXES = ("002B", "003")

# Default AT command batches
SIM_CHECK_COMMAND = "AT+CPIN?"
BASIC_STATUS_COMMAND = "AT^TEMP?;^SWITCH_SLOT?"
STATUS_COMMAND = (
    "AT^TEMP?;^SWITCH_SLOT?;+CGPIAF=1,1,1,1;^DEBUG?;+CPIN?;+CGCONTRDP=1;"
    "$QCSIMSTAT?;+CSQ;+COPS?;+CIMI;+ICCID;+CNUM;"
)
SMS_STORAGE_COMMAND = "AT+CPMS?"
SMS_LIST_COMMAND = 'AT+CSMS=1;+CSDH=0;+CNMI=2,1,0,0,0;+CMGF=1;+CSCA?;+CSMP=17,167,0,8;+CMGL="ALL"'
