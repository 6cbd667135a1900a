from __future__ import annotations


class ChooserError(Exception):
    """Base class for errors reported to the operator."""


class ConfigError(ChooserError):
    pass


class CommandIOError(ChooserError):
    """A helper program could not be spawned, read from or written to."""


class DecodeError(CommandIOError):
    """A helper program produced output that is not valid text."""


class ProtocolError(ChooserError):
    """wpa_cli replied with something other than the expected events."""


class DerivationError(ChooserError):
    pass


class NotConfiguredError(ChooserError):
    """The selected network is not among wpa_supplicant's configured networks."""


class PersistenceError(ChooserError):
    pass
