from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from wifi_chooser.library import Library
from wifi_chooser.scan import ScanRecord


def enrich(record: ScanRecord, library: Library) -> ScanRecord:
    """Return ``record`` with the saved password, PSK and former name filled in."""
    saved = library.get(record.mac)
    if saved is None:
        return record
    old_essid = saved.essid if saved.essid != record.essid else None
    return replace(record, pwd=saved.pwd, psk=saved.psk, old_essid=old_essid)


def reconcile(records: Iterable[ScanRecord], library: Library) -> list[ScanRecord]:
    """Enrich every scan record from the library, strongest signal first.

    The sort is stable, so access points with equal levels keep scan order.
    """
    enriched = [enrich(record, library) for record in records]
    enriched.sort(key=lambda record: record.level, reverse=True)
    return enriched
