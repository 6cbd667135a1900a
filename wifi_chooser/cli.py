from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from wifi_chooser.chooser import WifiChooser
from wifi_chooser.core import Config, config_to_toml, load_config
from wifi_chooser.errors import ChooserError


DESCRIPTION = "Scan for wireless networks and connect to one through wpa_supplicant."
EPILOG = (
    "With no option, scan and connect to the selected network. "
    "A menu_command set in the configuration receives no title; include its prompt flag there, "
    "e.g. menu_command = \"dmenu -p wifi\"."
)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="wifi-chooser", description=DESCRIPTION, epilog=EPILOG)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the configuration file (default: $WIFI_CHOOSER_CONFIG or ~/.config/wifi-chooser.toml).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more; repeat for debug output.",
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "-p",
        "--password",
        metavar="PASSWORD",
        help="Set the selected network's password.",
    )
    action.add_argument("-f", "--forget", action="store_true", help="Forget the selected network.")
    action.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective configuration and exit.",
    )
    return parser.parse_args(argv)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def _cmd_connect(chooser: WifiChooser) -> int:
    chosen = chooser.connect()
    if chosen is not None:
        print(f"Selected {chosen.essid} ({chosen.mac}).")
    return 0


def _cmd_set_password(chooser: WifiChooser, password: str) -> int:
    entry = chooser.set_password(password)
    if entry is not None:
        print(f"Password saved for {entry.essid} ({entry.mac}).")
    return 0


def _cmd_forget(chooser: WifiChooser) -> int:
    removed = chooser.forget_network()
    if removed is not None:
        print(f"Forgot {removed.essid} ({removed.mac}).")
    return 0


def _cmd_show_config(config: Config) -> int:
    print(config_to_toml(config).rstrip())
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)
    try:
        config = load_config(args.config)
        if args.show_config:
            return _cmd_show_config(config)
        chooser = WifiChooser(config)
        if args.password is not None:
            return _cmd_set_password(chooser, args.password)
        if args.forget:
            return _cmd_forget(chooser)
        return _cmd_connect(chooser)
    except ChooserError as exc:
        print(exc, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
