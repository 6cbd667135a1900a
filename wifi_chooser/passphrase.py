from __future__ import annotations

import re

from wifi_chooser.core import Config
from wifi_chooser.errors import CommandIOError, DerivationError
from wifi_chooser.library import Credential
from wifi_chooser.system import run

# wpa_passphrase also prints the plaintext as "#psk=", which the leading \s skips.
PSK_RE = re.compile(r"\spsk=([0-9a-f]+)")


def extract_psk(output: str) -> str:
    match = PSK_RE.search(output)
    if match is None:
        detail = output.strip().splitlines()[0] if output.strip() else "no output"
        raise DerivationError(f"Unable to match output of wpa_passphrase: {detail}")
    return match.group(1)


def derive_credential(config: Config, mac: str, essid: str, password: str) -> Credential:
    """Run wpa_passphrase for ``essid``/``password`` and build a library entry.

    The library itself is left alone; storing the result is up to the caller.
    """
    command = [str(config.wpa_passphrase), essid, password]
    try:
        result = run(command, redact=True)
    except CommandIOError as exc:
        raise DerivationError(f"Error invoking wpa_passphrase: {exc}") from exc
    psk = extract_psk(result.stdout)
    return Credential(mac=mac.lower(), essid=essid, pwd=password, psk=psk)
