"""
Telemetry data models
Value objects produced by a single parse call
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .constants import (
    METRIC_LABELS,
    METRIC_CURVES,
    NOT_USED,
    SENTINEL_DASH,
    SENTINEL_NA,
    SENTINEL_NO_SIM,
    SENTINEL_UNKNOWN,
)


class Technology(Enum):
    """Radio access technology of a carrier"""
    LTE = "LTE"
    NR = "NR"


class CarrierRole(Enum):
    """Carrier role within carrier aggregation"""
    PRIMARY = "primary"
    SECONDARY = "secondary"


class TextEncoding(Enum):
    """Encoding inferred for a text field"""
    UTF16BE = "UTF-16BE"
    UTF8 = "UTF-8"
    PLAIN_TEXT = "plain"


class SignalAssessment(Enum):
    """Overall signal quality verdict"""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    NO_SIGNAL = "No Signal"
    UNKNOWN = "Unknown"


class ParseStatus(Enum):
    """Outcome of a telemetry parse"""
    OK = "ok"
    EMPTY_RESPONSE = "empty_response"
    MODEM_ERROR = "modem_error"
    SIM_NOT_READY = "sim_not_ready"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class RawLine:
    """A trimmed response line tagged with the command echo that preceded it"""
    text: str
    originating_command: Optional[str] = None


@dataclass(frozen=True)
class DecodedText:
    """Result of encoding detection on a candidate field"""
    raw: str
    decoded: str
    encoding: TextEncoding

    def to_dict(self) -> Dict:
        return {"raw": self.raw, "decoded": self.decoded, "encoding": self.encoding.value}


@dataclass(frozen=True)
class Identifier:
    """Cell identifier in canonical hex form with derived sub-fields"""
    hex_value: str
    decimal_value: Optional[int]
    short_id: str
    short_decimal: Optional[int]
    parent_id: Optional[int]

    @property
    def display(self) -> str:
        short_dec = SENTINEL_DASH if self.short_decimal is None else self.short_decimal
        long_dec = SENTINEL_DASH if self.decimal_value is None else self.decimal_value
        return f"Short {self.short_id}({short_dec}), Long {self.hex_value}({long_dec})"

    def to_dict(self) -> Dict:
        return {
            "hex": self.hex_value,
            "decimal": self.decimal_value,
            "short_id": self.short_id,
            "short_decimal": self.short_decimal,
            "parent_id": self.parent_id,
            "display": self.display,
        }


@dataclass(frozen=True)
class TrackingArea:
    """Tracking area code as reported and as an integer"""
    raw: str
    value: int

    @property
    def display(self) -> str:
        return f"{self.value} ({self.raw})"


@dataclass(frozen=True)
class AntennaReading:
    """
    One antenna port reading.
    logical_index is None for synthesized "Not Used" slots.
    """
    logical_index: Optional[int]
    physical_index: Optional[int] = None
    value_dbm: Optional[float] = None
    percentage: int = 0

    @property
    def label(self) -> str:
        if self.logical_index is None:
            return f"Antenna {self.physical_index}"
        return f"Antenna {self.logical_index + 1}"

    @property
    def display(self) -> str:
        if self.value_dbm is None:
            return NOT_USED
        return f"{self.value_dbm} dBm"

    def to_dict(self) -> Dict:
        return {
            "label": self.label,
            "display": self.display,
            "percentage": self.percentage,
            "logical_index": self.logical_index,
            "physical_index": self.physical_index,
            "value_dbm": self.value_dbm,
        }


@dataclass(frozen=True)
class CellSignalEntry:
    """A finalized carrier (LTE primary/secondary or NR primary)"""
    id: str
    technology: Technology
    role: CarrierRole
    band: Optional[str] = None
    bandwidth_label: Optional[str] = None
    channel: Optional[str] = None
    pci: Optional[str] = None
    rx_diversity: Optional[str] = None
    ca_index: Optional[int] = None
    metrics: Dict[str, Optional[float]] = field(default_factory=dict)
    percentages: Dict[str, int] = field(default_factory=dict)
    antennas: Tuple[AntennaReading, ...] = ()
    composite: Optional[int] = None

    @property
    def band_display(self) -> str:
        if not self.band:
            return SENTINEL_NA
        if self.technology == Technology.LTE:
            return f"Band {self.band}"
        return self.band

    @property
    def title(self) -> str:
        if self.technology == Technology.LTE:
            if self.role == CarrierRole.PRIMARY:
                title = "Primary 4G"
            else:
                title = f"CA 4G #{self.ca_index}" if self.ca_index else "CA 4G"
        else:
            title = "Primary 5G"

        if self.band:
            title += f" ({self.band_display})"
        return title

    def metric_display(self, key: str) -> str:
        value = self.metrics.get(key)
        if value is None:
            return SENTINEL_NA
        return f"{value} {METRIC_CURVES[key]['unit']}"

    def to_dict(self) -> Dict:
        labels = METRIC_LABELS[self.technology.value]
        return {
            "id": self.id,
            "title": self.title,
            "technology": self.technology.value,
            "role": self.role.value,
            "band": self.band,
            "band_display": self.band_display,
            "bandwidth_display": self.bandwidth_label or SENTINEL_NA,
            "channel_display": self.channel or SENTINEL_NA,
            "pci_display": self.pci or SENTINEL_NA,
            "rx_diversity_display": self.rx_diversity or "",
            "metrics": [
                {
                    "key": key,
                    "label": label,
                    "value": self.metrics.get(key),
                    "display": self.metric_display(key),
                    "percentage": self.percentages.get(key, 0),
                }
                for key, label in labels.items()
            ],
            "antennas": [antenna.to_dict() for antenna in self.antennas],
            "composite": self.composite,
        }


@dataclass
class TelemetrySnapshot:
    """Top-level aggregate returned by one telemetry parse"""
    status: ParseStatus = ParseStatus.OK
    error: Optional[str] = None
    raw: str = ""

    # SIM / subscriber
    sim_status: str = SENTINEL_NO_SIM
    active_sim: str = SENTINEL_NO_SIM
    imsi: str = SENTINEL_UNKNOWN
    iccid: str = SENTINEL_UNKNOWN
    phone_number: str = SENTINEL_UNKNOWN

    # Network
    network_provider: str = SENTINEL_NA
    mccmnc: str = "00000"
    apn: str = SENTINEL_UNKNOWN
    ipv4: str = "000.000.000.000"
    ipv6: str = "0000:0000:0000:0000:0000:0000:0000:0000"
    network_mode: str = "Disconnected"
    network_mode_badges: List[str] = field(default_factory=list)

    # Radio summary
    bands: str = "Unknown Bands"
    bandwidth: str = "Unknown Bandwidth"
    earfcns: str = "000"
    pcc_pci: str = "0"
    scc_pci: str = SENTINEL_DASH
    cell_id: str = SENTINEL_UNKNOWN
    decimal_cell_id: Optional[int] = None
    enb_id_lte: str = SENTINEL_DASH
    enb_id_nr: str = SENTINEL_DASH
    tac: str = SENTINEL_UNKNOWN
    tac_lte: str = SENTINEL_DASH
    tac_nr: str = SENTINEL_DASH
    csq: str = SENTINEL_DASH

    # Thermal
    temperature: str = "0"
    pa_temperature: str = SENTINEL_UNKNOWN
    skin_temperature: str = SENTINEL_UNKNOWN

    # Signal
    entries: List[CellSignalEntry] = field(default_factory=list)
    signal_percentage: int = 0
    signal_assessment: SignalAssessment = SignalAssessment.UNKNOWN

    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def ok(self) -> bool:
        return self.status == ParseStatus.OK

    def primary_entry(self, technology: Technology) -> Optional[CellSignalEntry]:
        """First entry of the given technology, used for headline metrics"""
        for entry in self.entries:
            if entry.technology == technology:
                return entry
        return None

    def _headline(self, technology: Technology) -> Dict:
        entry = self.primary_entry(technology)
        headline = {}
        for key in METRIC_CURVES:
            value = entry.metrics.get(key) if entry else None
            headline[key] = SENTINEL_DASH if value is None else value
            headline[f"{key}_percentage"] = entry.percentages.get(key, 0) if entry else 0
        return headline

    def to_dict(self) -> Dict:
        return {
            "status": self.status.value,
            "error": self.error,
            "raw": self.raw,
            "sim_status": self.sim_status,
            "active_sim": self.active_sim,
            "imsi": self.imsi,
            "iccid": self.iccid,
            "phone_number": self.phone_number,
            "network_provider": self.network_provider,
            "mccmnc": self.mccmnc,
            "apn": self.apn,
            "ipv4": self.ipv4,
            "ipv6": self.ipv6,
            "network_mode": self.network_mode,
            "network_mode_badges": list(self.network_mode_badges),
            "bands": self.bands,
            "bandwidth": self.bandwidth,
            "earfcns": self.earfcns,
            "pcc_pci": self.pcc_pci,
            "scc_pci": self.scc_pci,
            "cell_id": self.cell_id,
            "decimal_cell_id": self.decimal_cell_id,
            "enb_id_lte": self.enb_id_lte,
            "enb_id_nr": self.enb_id_nr,
            "tac": self.tac,
            "tac_lte": self.tac_lte,
            "tac_nr": self.tac_nr,
            "csq": self.csq,
            "temperature": self.temperature,
            "pa_temperature": self.pa_temperature,
            "skin_temperature": self.skin_temperature,
            "lte": self._headline(Technology.LTE),
            "nr": self._headline(Technology.NR),
            "detailed_signals": [entry.to_dict() for entry in self.entries],
            "signal_percentage": self.signal_percentage,
            "signal_assessment": self.signal_assessment.value,
            "captured_at": self.captured_at.isoformat(),
        }


@dataclass(frozen=True)
class SmsMessage:
    """A decoded message from the modem's storage listing"""
    index: int
    sender: str
    date: datetime
    text: str

    @property
    def date_display(self) -> str:
        return self.date.strftime("%d/%m/%Y - %H:%M:%S")

    def to_dict(self) -> Dict:
        return {
            "index": self.index,
            "sender": self.sender,
            "date": self.date.isoformat(),
            "date_display": self.date_display,
            "text": self.text,
        }


@dataclass(frozen=True)
class SmsStorage:
    """Message storage usage reported by +CPMS"""
    memory_type: Optional[str]
    used: int
    total: int

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.used / self.total * 100)

    def to_dict(self) -> Dict:
        return {
            "memory_type": self.memory_type,
            "used": self.used,
            "total": self.total,
            "percentage": self.percentage,
        }


@dataclass
class SmsListing:
    """Messages and service-center numbers parsed from one listing response"""
    messages: List[SmsMessage] = field(default_factory=list)
    service_centers: List[str] = field(default_factory=list)
    raw: str = ""

    def to_dict(self) -> Dict:
        return {
            "messages": [message.to_dict() for message in self.messages],
            "service_centers": list(self.service_centers),
            "raw": self.raw,
            "count": len(self.messages),
        }
