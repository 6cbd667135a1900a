"""The three operator workflows: connect, set a password, forget a network.

wpa_supplicant must be running against the generated configuration file:

    wpa_supplicant -B -i <interface> -c <wpa_conf>

Connecting runs dhclient through ``sudo -A``. Either allow that without a
password in sudoers (``%netdev ALL = NOPASSWD: /usr/sbin/dhclient``), set an
askpass program in /etc/sudo.conf, or set ``askpass`` in the configuration.
"""

from __future__ import annotations

import logging

from wifi_chooser.core import Config
from wifi_chooser.errors import NotConfiguredError, PersistenceError
from wifi_chooser.library import Credential, Library, load_library, save_library
from wifi_chooser.menu import Selector, make_selector
from wifi_chooser.passphrase import derive_credential
from wifi_chooser.reconcile import reconcile
from wifi_chooser.scan import ScanRecord, find_network_id, parse_network_list, parse_scan_results
from wifi_chooser.system import run_live
from wifi_chooser.wpa_cli import WpaCli
from wifi_chooser.wpa_conf import save_wpa_config

logger = logging.getLogger(__name__)


class WifiChooser:
    def __init__(
        self,
        config: Config,
        select: Selector | None = None,
        wpa_cli: WpaCli | None = None,
    ) -> None:
        self.config = config
        self.select = select or make_selector(config)
        self.wpa_cli = wpa_cli or WpaCli(config)

    def _load_library_or_empty(self) -> Library:
        try:
            return load_library(self.config.library)
        except PersistenceError as exc:
            logger.warning("%s", exc)
            return Library()

    def _save(self, library: Library) -> None:
        save_library(library, self.config.library)
        save_wpa_config(self.config, library)

    def scan(self, library: Library) -> list[ScanRecord]:
        """Scan, then return what is in range merged with ``library``, strongest first."""
        self.wpa_cli.run_interactive_scan()
        records = parse_scan_results(self.wpa_cli.query_text("scan_results"))
        logger.info("Scan found %d access point(s).", len(records))
        return reconcile(records, library)

    def connect(self) -> ScanRecord | None:
        """Let the operator pick a network in range, select it and request a lease.

        Returns the chosen network, or None when nothing was picked.
        """
        library = self._load_library_or_empty()
        records = self.scan(library)
        index = self.select("Connect to:", records)
        if index is None:
            return None
        chosen = records[index]

        networks = parse_network_list(self.wpa_cli.query_text("list_networks"))
        network_id = find_network_id(networks, chosen.mac)
        if network_id is None:
            raise NotConfiguredError(
                f'Selected network "{chosen.essid}" ({chosen.mac}) not configured; set a password for it first.'
            )
        self.wpa_cli.run_command("select_network", str(network_id))
        self._acquire_lease()
        return chosen

    def _acquire_lease(self) -> None:
        command = ["sudo", "-A", str(self.config.dhclient), self.config.interface]
        env = {"SUDO_ASKPASS": str(self.config.askpass)} if self.config.askpass else None
        result = run_live(command, env=env)
        if result.returncode != 0:
            logger.warning("%s exited with status %d.", self.config.dhclient, result.returncode)

    def set_password(self, password: str) -> Credential | None:
        """Save ``password`` for a network the operator picks, then reload wpa_supplicant.

        If a later step fails the library may already be saved; running this
        again rewrites everything from the library.
        """
        library = self._load_library_or_empty()
        records = self.scan(library)
        index = self.select("Set password for:", records)
        if index is None:
            return None
        chosen = records[index]

        entry = derive_credential(self.config, chosen.mac, chosen.essid, password)
        library.insert(entry)
        self._save(library)
        self.wpa_cli.run_command("reconfigure")
        return entry

    def forget_network(self) -> Credential | None:
        """Drop a saved network the operator picks and rewrite both files.

        An unreadable library is an error here rather than an empty list.
        """
        library = load_library(self.config.library)
        entries = library.sorted_by_essid()
        if not entries:
            logger.warning("No saved networks in %s.", self.config.library)
            return None
        index = self.select("Forget:", entries)
        if index is None:
            return None
        removed = library.remove(entries[index].mac)
        self._save(library)
        return removed
