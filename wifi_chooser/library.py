from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib
from typing import Any, Dict, Iterator

import tomli_w

from wifi_chooser.errors import PersistenceError
from wifi_chooser.system import write_text_atomic

logger = logging.getLogger(__name__)


@dataclass
class Credential:
    """A saved network: the password and the PSK wpa_passphrase derived from it."""

    mac: str
    essid: str
    pwd: str
    psk: str

    def to_dict(self) -> Dict[str, Any]:
        return {"mac": self.mac, "essid": self.essid, "pwd": self.pwd, "psk": self.psk}

    @classmethod
    def from_dict(cls, mac: str, data: Dict[str, Any]) -> "Credential":
        if not isinstance(data, dict):
            raise PersistenceError(f"Library entry {mac!r} is not a table.")
        missing = [key for key in ("essid", "pwd", "psk") if not isinstance(data.get(key), str)]
        if missing:
            raise PersistenceError(f"Library entry {mac!r} is missing {', '.join(missing)}.")
        return cls(mac=mac.lower(), essid=data["essid"], pwd=data["pwd"], psk=data["psk"])

    def key_len(self) -> int:
        return len(self.essid)

    def line(self, key_len: int) -> str:
        return f"{self.essid.ljust(key_len)}  {self.mac}"


@dataclass
class Library:
    """Saved networks keyed by access point MAC address.

    The MAC is the identity; the ESSID is only what the network was called
    when it was saved.
    """

    entries: Dict[str, Credential] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Credential]:
        return iter(self.entries.values())

    def __contains__(self, mac: object) -> bool:
        return isinstance(mac, str) and mac.lower() in self.entries

    def get(self, mac: str) -> Credential | None:
        return self.entries.get(mac.lower())

    def insert(self, credential: Credential) -> Credential | None:
        """Add ``credential``, returning the entry it replaced, if any."""
        mac = credential.mac.lower()
        previous = self.entries.get(mac)
        self.entries[mac] = credential
        return previous

    def remove(self, mac: str) -> Credential | None:
        return self.entries.pop(mac.lower(), None)

    def sorted_by_essid(self) -> list[Credential]:
        return sorted(self.entries.values(), key=lambda entry: entry.essid)

    def to_dict(self) -> Dict[str, Any]:
        return {mac: entry.to_dict() for mac, entry in self.entries.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Library":
        entries: Dict[str, Credential] = {}
        for mac, value in data.items():
            entry = Credential.from_dict(mac, value)
            entries[entry.mac] = entry
        return cls(entries=entries)


def load_library(path: Path) -> Library:
    path = Path(path)
    try:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
    except OSError as exc:
        raise PersistenceError(f'Error reading known access points from "{path}": {exc}') from exc
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise PersistenceError(f'Error deserializing known access points from "{path}": {exc}') from exc
    try:
        return Library.from_dict(payload)
    except PersistenceError as exc:
        raise PersistenceError(f'Error deserializing known access points from "{path}": {exc}') from exc


def library_to_toml(library: Library) -> str:
    return tomli_w.dumps(library.to_dict())


def save_library(library: Library, path: Path) -> bool:
    """Rewrite the whole library file; returns False if it was already current."""
    path = Path(path)
    content = library_to_toml(library)
    try:
        changed = write_text_atomic(path, content)
    except OSError as exc:
        raise PersistenceError(f'Unable to write library file "{path}": {exc}') from exc
    if changed:
        logger.info("Saved %d network(s) to %s.", len(library), path)
    return changed
