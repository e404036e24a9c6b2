"""
Technology Entry Builder
Walks classified lines and assembles one CellSignalEntry per carrier.

Carrier-start markers (pcell:, scell:, nr_band:, +QENG lines) finalize the
open entry and open a new one; every other recognised line populates the
open entry when its technology matches and is ignored otherwise.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .constants import (
    LTE_LOGICAL_TO_PHYSICAL,
    NR_ANTENNA_TABLES,
    NR_DEFAULT_LOGICAL_TO_PHYSICAL,
    PHYSICAL_ANTENNA_SLOTS,
    QENG_LTE_FIELDS,
    QENG_NR_NSA_FIELDS,
)
from .identifiers import lte_bandwidth_label
from .metrics import composite_score, metric_percentages, round_metric, rsrp_percentage
from .models import AntennaReading, CarrierRole, CellSignalEntry, RawLine, Technology

logger = logging.getLogger(__name__)

ANTENNA_LIST_RE = re.compile(r"\(([^)]+)\)")
RX_DIVERSITY_RE = re.compile(r"rx_diversity:\s*(\d+)", re.IGNORECASE)
LTE_BAND_RE = re.compile(r"lte_band:(\d+)", re.IGNORECASE)
LTE_BANDWIDTH_RE = re.compile(r"lte_band_width:(\S+)", re.IGNORECASE)
NR_BAND_RE = re.compile(r"nr_band:(\S+)", re.IGNORECASE)
CHANNEL_RE = re.compile(r"channel:(\d+)", re.IGNORECASE)
PCI_RE = re.compile(r"pci:(\d+)", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")


def _number_re(key: str) -> "re.Pattern":
    return re.compile(rf"{key}:\s*([-\d.]+)", re.IGNORECASE)


LTE_RSRP_RE = _number_re("lte_rsrp")
LTE_RSRQ_RE = _number_re("rsrq")
LTE_RSSI_RE = _number_re("lte_rssi")
LTE_SNR_RE = _number_re("lte_snr")
NR_RSRP_RE = _number_re("nr_rsrp")
NR_RSRQ_RE = _number_re("nr_rsrq")
NR_RSSI_RE = _number_re("nr_rssi")
NR_SNR_RE = _number_re("nr_snr")

QENG_LTE_MARKER = '+QENG: "LTE"'
QENG_NR_NSA_MARKER = '+QENG: "NR5G-NSA"'


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value.strip().replace('"', ""))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _search_float(pattern: "re.Pattern", line: str) -> Optional[float]:
    match = pattern.search(line)
    return _parse_float(match.group(1)) if match else None


def _after_colon(line: str) -> Optional[str]:
    parts = line.split(":", 1)
    if len(parts) < 2:
        return None
    return parts[1].strip() or None


def parse_antenna_line(line: str) -> List[AntennaReading]:
    """
    Parse the parenthesized comma list of per-antenna readings.
    Non-numeric entries (NA) become readings with no value.
    """
    match = ANTENNA_LIST_RE.search(line)
    if not match:
        return []
    return [
        AntennaReading(logical_index=index, value_dbm=_parse_float(item))
        for index, item in enumerate(match.group(1).split(","))
    ]


def band_number(band: Optional[str]) -> Optional[int]:
    if not band:
        return None
    digits = _NON_DIGIT_RE.sub("", band)
    return int(digits) if digits else None


def antenna_table(technology: Technology, band: Optional[str]) -> Tuple[int, ...]:
    """Logical -> physical permutation for a carrier; unknown NR bands use 4x4 FDD"""
    if technology == Technology.LTE:
        return LTE_LOGICAL_TO_PHYSICAL

    number = band_number(band)
    for bands, table in NR_ANTENNA_TABLES:
        if number in bands:
            return table
    return NR_DEFAULT_LOGICAL_TO_PHYSICAL


def map_antennas(
    readings: Sequence[AntennaReading], technology: Technology, band: Optional[str]
) -> Tuple[AntennaReading, ...]:
    """
    Assign physical antenna ports and sort by them.

    Readings without a value are dropped. NR carriers always expose the four
    physical ports, padding unused ones with "Not Used" slots.
    """
    table = antenna_table(technology, band)
    mapped: List[AntennaReading] = []

    for reading in readings:
        if reading.value_dbm is None:
            continue
        physical = None
        if reading.logical_index is not None and 0 <= reading.logical_index < len(table):
            physical = table[reading.logical_index]
        value = round_metric(reading.value_dbm)
        mapped.append(
            AntennaReading(
                logical_index=reading.logical_index,
                physical_index=physical,
                value_dbm=value,
                percentage=rsrp_percentage(value),
            )
        )

    if technology == Technology.NR:
        used = {reading.physical_index for reading in mapped if reading.physical_index is not None}
        for physical in PHYSICAL_ANTENNA_SLOTS:
            if physical not in used:
                mapped.append(AntennaReading(logical_index=None, physical_index=physical))

    mapped.sort(key=lambda reading: 999 if reading.physical_index is None else reading.physical_index)
    return tuple(mapped)


@dataclass
class _EntryDraft:
    """Open carrier being populated by the scan"""
    id: str
    technology: Technology
    role: CarrierRole
    band: Optional[str] = None
    bandwidth: Optional[str] = None
    channel: Optional[str] = None
    pci: Optional[str] = None
    rx_diversity: Optional[str] = None
    ca_index: Optional[int] = None
    antennas: List[AntennaReading] = field(default_factory=list)
    metrics: Dict[str, Optional[float]] = field(default_factory=dict)

    def finalize(self) -> CellSignalEntry:
        metrics = {key: round_metric(value) for key, value in self.metrics.items()}
        percentages = metric_percentages(metrics)

        composite = None
        if metrics.get("rsrp") is not None or metrics.get("sinr") is not None:
            composite = composite_score(percentages["rsrp"], percentages["sinr"])

        return CellSignalEntry(
            id=self.id,
            technology=self.technology,
            role=self.role,
            band=self.band,
            bandwidth_label=self.bandwidth,
            channel=self.channel,
            pci=self.pci,
            rx_diversity=self.rx_diversity,
            ca_index=self.ca_index,
            metrics=metrics,
            percentages=percentages,
            antennas=map_antennas(self.antennas, self.technology, self.band),
            composite=composite,
        )


class EntryBuilder:
    """
    Linear scan state machine with one open-entry slot.

    Usage:
        builder = EntryBuilder()
        for line in lines:
            builder.feed(line)
        entries = builder.finish()
    """

    def __init__(self):
        self._entries: List[CellSignalEntry] = []
        self._current: Optional[_EntryDraft] = None
        self._entry_counter = 0
        self._scell_counter = 0
        self._pending_lte_antennas: List[AntennaReading] = []
        self._pending_lte_diversity: Optional[str] = None

        # Order matters: the first matching prefix handles the line
        self._handlers: List[Tuple[str, Callable[[str], None]]] = [
            ("lte_ant_rsrp", self._on_lte_antennas),
            ("pcell:", self._on_lte_primary),
            ("scell:", self._on_lte_secondary),
            ("channel:", self._on_lte_channel),
            ("lte_rsrp:", self._on_lte_rsrp),
            ("lte_rssi:", self._on_lte_rssi),
            ("nr_band:", self._on_nr_primary),
            ("nr_band_width:", self._on_nr_bandwidth),
            ("nr_channel:", self._on_nr_channel),
            ("nr_pci:", self._on_nr_pci),
            ("nr_rsrp:", self._on_nr_rsrp),
            ("nr_rsrq:", self._on_nr_rsrq),
            ("nr_rssi:", self._on_nr_rssi),
            ("nr_snr:", self._on_nr_snr),
            (QENG_LTE_MARKER, self._on_qeng_lte),
            (QENG_NR_NSA_MARKER, self._on_qeng_nr_nsa),
        ]

    # =====================
    # Lifecycle
    # =====================

    def feed(self, line: Union[RawLine, str]):
        text = line.text if isinstance(line, RawLine) else line.strip()
        if not text:
            return
        for prefix, handler in self._handlers:
            if text.startswith(prefix):
                handler(text)
                return

    def finish(self) -> List[CellSignalEntry]:
        self._finalize()
        return list(self._entries)

    def _finalize(self):
        if self._current is None:
            return
        self._entries.append(self._current.finalize())
        self._current = None

    def _open(self, technology: Technology, role: CarrierRole, kind: str, **fields) -> _EntryDraft:
        self._finalize()
        self._current = _EntryDraft(
            id=f"{kind}-{self._entry_counter}",
            technology=technology,
            role=role,
            **fields,
        )
        self._entry_counter += 1
        return self._current

    def _open_entry(self, technology: Technology, line: str) -> Optional[_EntryDraft]:
        """The open entry when it matches the line's technology"""
        if self._current is not None and self._current.technology == technology:
            return self._current
        logger.debug(f"Ignoring {technology.value} line with no open {technology.value} carrier: {line}")
        return None

    # =====================
    # LTE lines
    # =====================

    def _on_lte_antennas(self, line: str):
        self._pending_lte_antennas = parse_antenna_line(line)
        match = RX_DIVERSITY_RE.search(line)
        if match:
            self._pending_lte_diversity = match.group(1)

    def _lte_band_fields(self, line: str) -> Dict[str, Optional[str]]:
        band = LTE_BAND_RE.search(line)
        bandwidth = LTE_BANDWIDTH_RE.search(line)
        return {
            "band": band.group(1) if band else None,
            "bandwidth": bandwidth.group(1) if bandwidth else None,
        }

    def _on_lte_primary(self, line: str):
        self._open(
            Technology.LTE,
            CarrierRole.PRIMARY,
            "lte-primary",
            rx_diversity=self._pending_lte_diversity,
            antennas=self._pending_lte_antennas,
            **self._lte_band_fields(line),
        )
        self._pending_lte_antennas = []
        self._pending_lte_diversity = None

    def _on_lte_secondary(self, line: str):
        self._scell_counter += 1
        self._open(
            Technology.LTE,
            CarrierRole.SECONDARY,
            "lte-scell",
            ca_index=self._scell_counter,
            **self._lte_band_fields(line),
        )

    def _on_lte_channel(self, line: str):
        entry = self._open_entry(Technology.LTE, line)
        if entry is None:
            return
        channel = CHANNEL_RE.search(line)
        if channel:
            entry.channel = channel.group(1)
        pci = PCI_RE.search(line)
        if pci:
            entry.pci = pci.group(1)

    def _on_lte_rsrp(self, line: str):
        entry = self._open_entry(Technology.LTE, line)
        if entry is None:
            return
        self._set_metric(entry, "rsrp", _search_float(LTE_RSRP_RE, line))
        self._set_metric(entry, "rsrq", _search_float(LTE_RSRQ_RE, line))

    def _on_lte_rssi(self, line: str):
        entry = self._open_entry(Technology.LTE, line)
        if entry is None:
            return
        self._set_metric(entry, "rssi", _search_float(LTE_RSSI_RE, line))
        self._set_metric(entry, "sinr", _search_float(LTE_SNR_RE, line))

    # =====================
    # NR lines
    # =====================

    def _on_nr_primary(self, line: str):
        band = NR_BAND_RE.search(line)
        self._open(
            Technology.NR,
            CarrierRole.PRIMARY,
            "nr-primary",
            band=band.group(1).replace('"', "") if band else None,
        )

    def _on_nr_bandwidth(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is not None:
            entry.bandwidth = _after_colon(line)

    def _on_nr_channel(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is not None:
            entry.channel = _after_colon(line)

    def _on_nr_pci(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is not None:
            entry.pci = _after_colon(line)

    def _on_nr_rsrp(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is None:
            return
        self._set_metric(entry, "rsrp", _search_float(NR_RSRP_RE, line))
        diversity = RX_DIVERSITY_RE.search(line)
        if diversity:
            entry.rx_diversity = diversity.group(1)
        entry.antennas = parse_antenna_line(line)

    def _on_nr_rsrq(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is not None:
            self._set_metric(entry, "rsrq", _search_float(NR_RSRQ_RE, line))

    def _on_nr_rssi(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is not None:
            self._set_metric(entry, "rssi", _search_float(NR_RSSI_RE, line))

    def _on_nr_snr(self, line: str):
        entry = self._open_entry(Technology.NR, line)
        if entry is not None:
            self._set_metric(entry, "sinr", _search_float(NR_SNR_RE, line))

    # =====================
    # Engineering-mode lines
    # =====================

    def _on_qeng_lte(self, line: str):
        fields = qeng_fields(line, QENG_LTE_FIELDS)
        entry = self._open(
            Technology.LTE,
            CarrierRole.PRIMARY,
            "lte-primary",
            band=fields["band"],
            bandwidth=lte_bandwidth_label(fields["bandwidth"]),
            channel=fields["channel"],
            pci=fields["pci"],
        )
        for key in ("rsrp", "rsrq", "rssi", "sinr"):
            self._set_metric(entry, key, _parse_float(fields[key]))

    def _on_qeng_nr_nsa(self, line: str):
        fields = qeng_fields(line, QENG_NR_NSA_FIELDS)
        band = fields["band"]
        entry = self._open(
            Technology.NR,
            CarrierRole.PRIMARY,
            "nr-primary",
            band=f"n{band}" if band and band.isdigit() else band,
            channel=fields["channel"],
            pci=fields["pci"],
        )
        for key in ("rsrp", "rsrq", "sinr"):
            self._set_metric(entry, key, _parse_float(fields[key]))

    @staticmethod
    def _set_metric(entry: _EntryDraft, key: str, value: Optional[float]):
        if value is not None:
            entry.metrics[key] = value


def qeng_fields(line: str, layout: Dict[str, int]) -> Dict[str, Optional[str]]:
    """Positional fields of an engineering-mode line; missing positions are None"""
    parts = [part.strip().replace('"', "") for part in line.split(",")]
    fields = {}
    for key, position in layout.items():
        try:
            fields[key] = parts[position] or None
        except IndexError:
            fields[key] = None
    return fields


def build_entries(lines: Iterable[Union[RawLine, str]]) -> List[CellSignalEntry]:
    """Run the builder over a full line sequence"""
    builder = EntryBuilder()
    for line in lines:
        builder.feed(line)
    return builder.finish()
