from __future__ import annotations

import logging

from wifi_chooser.core import Config
from wifi_chooser.errors import PersistenceError
from wifi_chooser.library import Credential, Library
from wifi_chooser.system import write_text_atomic

logger = logging.getLogger(__name__)


def _ssid_value(essid: str) -> str:
    # wpa_supplicant takes an unquoted hex string for names a quoted string cannot hold.
    if essid.isprintable() and '"' not in essid:
        return f'"{essid}"'
    return essid.encode("utf-8").hex()


def render_header(config: Config) -> str:
    return f"update_config=1\nctrl_interface=DIR={config.wpa_socket} GROUP={config.group}\n"


def render_network(entry: Credential) -> str:
    """Render one ``network={...}`` block; the password appears only as a comment."""
    password = entry.pwd.replace("\r", " ").replace("\n", " ")
    return (
        "network={\n"
        f"\tbssid={entry.mac}\n"
        f"\tssid={_ssid_value(entry.essid)}\n"
        f'\t#psk="{password}"\n'
        f"\tpsk={entry.psk}\n"
        "}\n"
    )


def render_wpa_config(config: Config, library: Library) -> str:
    return render_header(config) + "".join(render_network(entry) for entry in library)


def save_wpa_config(config: Config, library: Library) -> bool:
    """Regenerate the wpa_supplicant configuration from ``library``.

    The file is always rebuilt in full, so it matches the library even if
    an earlier write failed.
    """
    path = config.wpa_conf
    try:
        changed = write_text_atomic(path, render_wpa_config(config, library))
    except OSError as exc:
        raise PersistenceError(f'Error writing wpa_supplicant config file "{path}": {exc}') from exc
    if changed:
        logger.info("Wrote wpa_supplicant configuration with %d network(s) to %s.", len(library), path)
    return changed
