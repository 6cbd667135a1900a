from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib
from typing import Any, Dict, Mapping

import tomli_w

from wifi_chooser.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WIFI_CHOOSER_CONFIG"
CONFIG_FILENAME = "wifi-chooser.toml"
LIBRARY_FILENAME = "wifi-chooser_lib.toml"
WPA_CONF_FILENAME = "wifi-chooser_wpa.conf"


def config_directory(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    home = env.get("HOME")
    if home:
        return Path(home) / ".config"
    raise ConfigError("Unable to determine configuration directory.")


def _default_library() -> Path:
    return config_directory() / LIBRARY_FILENAME


def _default_wpa_conf() -> Path:
    return config_directory() / WPA_CONF_FILENAME


@dataclass
class Config:
    """Options shared by every component for a single invocation.

    Built once by the command line entry point and handed to each
    component; nothing reads configuration from module state.
    """

    # Wireless interface wpa_cli and dhclient operate on.
    interface: str = "wlan0"
    # TOML file of saved networks, keyed by access point MAC address.
    library: Path = field(default_factory=_default_library)
    # Directory holding wpa_supplicant's control sockets.
    wpa_socket: Path = Path("/var/run/wpa_supplicant")
    wpa_cli: Path = Path("/usr/sbin/wpa_cli")
    wpa_passphrase: Path = Path("wpa_passphrase")
    dhclient: Path = Path("/usr/sbin/dhclient")
    # Generated wpa_supplicant configuration; start the daemon with -c pointing here.
    wpa_conf: Path = field(default_factory=_default_wpa_conf)
    # Exported as SUDO_ASKPASS when running dhclient through sudo -A.
    askpass: Path | None = None
    # Group allowed to talk to the control socket.
    group: str = "netdev"
    # Seconds to wait for wpa_cli to report the end of a scan.
    scan_timeout: float = 30.0
    # dmenu-style program used for selection instead of the terminal menu.
    # The menu title is not passed on, so put any prompt flag here, e.g. "dmenu -p wifi".
    menu_command: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "interface": self.interface,
            "library": str(self.library),
            "wpa_socket": str(self.wpa_socket),
            "wpa_cli": str(self.wpa_cli),
            "wpa_passphrase": str(self.wpa_passphrase),
            "dhclient": str(self.dhclient),
            "wpa_conf": str(self.wpa_conf),
            "group": self.group,
            "scan_timeout": self.scan_timeout,
        }
        if self.askpass:
            payload["askpass"] = str(self.askpass)
        if self.menu_command:
            payload["menu_command"] = self.menu_command
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        known = {item.name for item in fields(cls)}
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown configuration option %r.", key)
        kwargs: Dict[str, Any] = {}
        for key in ("interface", "group", "menu_command"):
            if data.get(key):
                kwargs[key] = str(data[key])
        for key in ("library", "wpa_socket", "wpa_cli", "wpa_passphrase", "dhclient", "wpa_conf", "askpass"):
            if data.get(key):
                kwargs[key] = Path(str(data[key])).expanduser()
        if data.get("scan_timeout") is not None:
            try:
                scan_timeout = float(data["scan_timeout"])
            except (TypeError, ValueError):
                scan_timeout = None
            if scan_timeout is not None and scan_timeout > 0 and math.isfinite(scan_timeout):
                kwargs["scan_timeout"] = scan_timeout
            else:
                logger.warning("Ignoring invalid scan_timeout %r.", data["scan_timeout"])
        return cls(**kwargs)


def _read_config_file(path: Path) -> Config | None:
    try:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
    except FileNotFoundError:
        logger.debug("No configuration file at %s.", path)
        return None
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Unable to read configuration file %s: %s", path, exc)
        return None
    return Config.from_dict(payload)


def _candidate_paths(explicit: Path | None) -> list[Path]:
    candidates: list[Path] = []
    if explicit is not None:
        candidates.append(Path(explicit))
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path))
    try:
        candidates.append(config_directory() / CONFIG_FILENAME)
    except ConfigError:
        pass
    return candidates


def load_config(path: Path | None = None) -> Config:
    """Return the first readable configuration, falling back to defaults."""
    for candidate in _candidate_paths(path):
        config = _read_config_file(candidate)
        if config is not None:
            logger.debug("Loaded configuration from %s.", candidate)
            return config
    return Config()


def config_to_toml(config: Config) -> str:
    return tomli_w.dumps(config.to_dict())
