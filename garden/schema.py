"""
Versioned schema for stored garden records.

Stored collections carry a single version number in the `schemaVersion` slot.
Each upgrade step moves every collection from version N-1 to N; `ensure_current`
runs the pending steps once per garden at load time, then sanitizes the result.

Versions:
  1  seeds: `stock` renamed to `packetCount`
  2  seeds: `notes` -> `userNotes`, placeholder `imageId` dropped, seeds matching a
     seed database entry by name get `seedDetailsId`
  3  custom task types: `icon` holds a known icon key
"""
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import catalog
from . import storage

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3

COLLECTION_SLOTS = (
    storage.SEEDS,
    storage.LOGS,
    storage.SCHEDULED_TASKS,
    storage.CUSTOM_TASKS,
    storage.PLANTINGS,
    storage.JOURNAL_ENTRIES,
)

NON_NEGATIVE_FIELDS = (
    "packetCount",
    "seedsPerPacket",
    "lowStockThreshold",
    "daysToGermination",
    "daysToHarvest",
    "quantity",
    "weight",
    "quantityGerminated",
)

Collections = Dict[str, List[Any]]

NUMERIC_FIELDS = NON_NEGATIVE_FIELDS + ("purchaseYear",)


def _as_number(value):
    """Return value as an int or float, or None when it cannot be read as one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        for kind in (int, float):
            try:
                number = kind(text)
            except ValueError:
                continue
            return number if math.isfinite(number) else None
    return None


def _dicts(data: Collections, slot: str):
    return [r for r in data.get(slot) or [] if isinstance(r, dict)]


def _upgrade_to_1(data: Collections) -> None:
    for seed in _dicts(data, storage.SEEDS):
        if "stock" in seed:
            stock = seed.pop("stock")
            seed.setdefault("packetCount", stock)


def _upgrade_to_2(data: Collections) -> None:
    for seed in _dicts(data, storage.SEEDS):
        if "notes" in seed:
            notes = seed.pop("notes")
            seed.setdefault("userNotes", notes)
        seed.pop("imageId", None)
        if not seed.get("seedDetailsId"):
            entry = catalog.find_seed_details_by_name(seed.get("name"))
            if entry:
                seed["seedDetailsId"] = entry["id"]


def _upgrade_to_3(data: Collections) -> None:
    for task in _dicts(data, storage.CUSTOM_TASKS):
        icon = task.get("icon")
        if not isinstance(icon, str) or icon not in catalog.ICONS:
            task["icon"] = catalog.DEFAULT_ICON


UPGRADES: List[Tuple[int, Callable[[Collections], None]]] = [
    (1, _upgrade_to_1),
    (2, _upgrade_to_2),
    (3, _upgrade_to_3),
]


def upgrade(data: Collections, from_version: int) -> int:
    """Apply every upgrade step newer than from_version, in order. Mutates data."""
    version = from_version
    for target, step in UPGRADES:
        if target > version:
            step(data)
            logger.info("Upgraded garden data from schema %d to %d", version, target)
            version = target
    return version


def sanitize(data: Collections) -> int:
    """
    Drop entries that are not objects with a string id, turn numeric strings into
    numbers, drop numeric fields that cannot be read and reset negative counts to
    zero. Returns the number of entries removed or corrected.
    """
    corrected = 0
    for slot in COLLECTION_SLOTS:
        if slot not in data:
            continue
        records = data[slot]
        if not isinstance(records, list):
            logger.warning("Slot %s held %s instead of a list; resetting", slot, type(records).__name__)
            data[slot] = []
            corrected += 1
            continue

        kept = []
        for record in records:
            if not isinstance(record, dict) or not isinstance(record.get("id"), str) or not record["id"]:
                logger.warning("Dropping malformed %s entry: %r", slot, record)
                corrected += 1
                continue
            changed = False
            for field in NUMERIC_FIELDS:
                value = record.get(field)
                if value is None:
                    continue
                number = _as_number(value)
                if number is None:
                    del record[field]
                    changed = True
                    continue
                if field in NON_NEGATIVE_FIELDS and number < 0:
                    number = 0
                if number is not value:
                    record[field] = number
                    changed = True
            if slot == storage.SEEDS and not isinstance(record.get("packetCount"), (int, float)):
                record["packetCount"] = 0
                changed = True
            if changed:
                logger.warning("Reset invalid counts on %s entry %s", slot, record["id"])
                corrected += 1
            kept.append(record)
        data[slot] = kept
    return corrected


def stored_version(store) -> int:
    version = store.get(storage.SCHEMA_VERSION, 0)
    return version if isinstance(version, int) and not isinstance(version, bool) else 0


def ensure_current(store, notify: Optional[Callable[[str], None]] = None) -> bool:
    """
    Bring a garden's stored collections up to SCHEMA_VERSION.
    Only slots that already hold data are rewritten, so a new garden keeps its
    defaults. Returns True when anything was upgraded.
    """
    version = stored_version(store)
    if version >= SCHEMA_VERSION:
        return False

    data: Collections = {}
    for slot in COLLECTION_SLOTS:
        value = store.get(slot, None)
        if value is not None:
            data[slot] = value

    new_version = upgrade(data, version)
    corrected = sanitize(data)

    for slot, records in data.items():
        store.set(slot, records)
    store.set(storage.SCHEMA_VERSION, new_version)
    logger.info("Garden %s upgraded from schema %d to %d (%d corrections)",
                getattr(store, "garden_id", "?"), version, new_version, corrected)

    if corrected and notify is not None:
        notify(f"{corrected} saved record(s) were invalid and have been corrected.")
    return True
