from __future__ import annotations

import re
from dataclasses import dataclass

# One line of "wpa_cli scan_results": bssid, frequency, signal level, flags, ssid.
SCAN_RE = re.compile(r"^([0-9a-fA-F:]+)\t(\d+)\t(-?\d+)\t[^\t\n]*\t(.*)$", re.MULTILINE)
# One line of "wpa_cli list_networks": network id, ssid, bssid, flags.
# Networks without a fixed bssid show "any" and are skipped.
LIST_RE = re.compile(r"^(\d+)\t[^\t\n]*\t([0-9a-fA-F:]+)(?:\t|$)", re.MULTILINE)


@dataclass
class ScanRecord:
    """An access point seen by the last scan, plus whatever the library knows about it."""

    mac: str
    freq: int
    level: int
    essid: str
    # Name the network was saved under, when it differs from what it broadcasts now.
    old_essid: str | None = None
    pwd: str | None = None
    psk: str | None = None

    @property
    def saved(self) -> bool:
        return self.psk is not None

    def key_len(self) -> int:
        return len(self.essid)

    def line(self, key_len: int) -> str:
        marker = "*" if self.saved else " "
        text = f"{marker} {self.essid.ljust(key_len)} {str(self.level).rjust(4)} dBm  {str(self.freq).rjust(4)}  {self.mac}"
        if self.old_essid is not None:
            text += f" {self.old_essid}"
        return text


@dataclass
class ConfiguredNetwork:
    network_id: int
    mac: str


def parse_scan_results(text: str) -> list[ScanRecord]:
    """Parse ``scan_results`` output; the header and any other line is skipped."""
    return [
        ScanRecord(
            mac=match.group(1).lower(),
            freq=int(match.group(2)),
            level=int(match.group(3)),
            essid=match.group(4).rstrip("\r"),
        )
        for match in SCAN_RE.finditer(text)
    ]


def parse_network_list(text: str) -> list[ConfiguredNetwork]:
    return [
        ConfiguredNetwork(network_id=int(match.group(1)), mac=match.group(2).lower())
        for match in LIST_RE.finditer(text)
    ]


def find_network_id(networks: list[ConfiguredNetwork], mac: str) -> int | None:
    mac = mac.lower()
    for network in networks:
        if network.mac == mac:
            return network.network_id
    return None
