"""
Domain operations on a garden's collections.

Every operation reads what it needs from a GardenStore, writes the changed
collections back and returns (record, notices). Notices are (level, message)
pairs the views turn into Django messages.

Cross-entity effects are explicit here rather than hidden in a save handler:
- a planting log consumes seed packets (log_planting)
- a new planting also records a planting log
- completing a scheduled task records a log for its task type
- deleting a log or journal entry deletes its photos first

Writes to different collections are independent; nothing spans them atomically.
"""
import logging
import uuid
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from django.conf import settings

from . import catalog
from . import derived
from . import storage
from .exceptions import GardenError, RecordNotFound
from .signals import seed_stock_low

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Notice = Tuple[str, str]

THEMES = ("light", "dark", "system")
DEFAULT_THEME = "system"

COLLECTION_DEFAULTS: Dict[str, Callable[[], Any]] = {
    storage.SEEDS: catalog.initial_seeds,
    storage.LOGS: list,
    storage.SCHEDULED_TASKS: list,
    storage.CUSTOM_TASKS: list,
    storage.PLANTINGS: list,
    storage.JOURNAL_ENTRIES: list,
}


def load(store, slot: str) -> List[Record]:
    return store.get(slot, COLLECTION_DEFAULTS[slot]())


def _new_id() -> str:
    return str(uuid.uuid4())


def _find(records: List[Record], record_id: Optional[str]) -> Optional[Record]:
    return next((r for r in records if r.get("id") == record_id), None)


def get_record(store, slot: str, record_id: Optional[str]) -> Optional[Record]:
    return _find(load(store, slot), record_id)


def _upsert(records: List[Record], record: Record, prepend: bool = False) -> Optional[Record]:
    """Replace the record with the same id in place, or add it. Returns the replaced record."""
    for i, existing in enumerate(records):
        if existing.get("id") == record["id"]:
            records[i] = record
            return existing
    if prepend:
        records.insert(0, record)
    else:
        records.append(record)
    return None


def _remove(store, slot: str, record_id: str) -> Record:
    records = load(store, slot)
    target = _find(records, record_id)
    if target is None:
        raise RecordNotFound(slot, record_id)
    store.set(slot, [r for r in records if r.get("id") != record_id])
    logger.info("Deleted %s entry %s", slot, record_id)
    return target


def _low_stock_notice(store, seed: Record) -> Notice:
    joined = catalog.join_seed(seed)
    seed_stock_low.send(sender=store.__class__, seed=joined, garden_id=getattr(store, "garden_id", None))
    return ("warning", f"Low Stock Alert: {joined.get('name')} is running low.")


# ----- Seeds -----
def save_seed(store, seed: Record) -> Tuple[Record, List[Notice]]:
    """Add or replace a seed. Wishlist seeds carry no stock."""
    seed = dict(seed)
    seed["id"] = seed.get("id") or _new_id()
    if seed.get("isWishlist"):
        seed["packetCount"] = 0
    if seed.get("packetCount") is None:
        seed["packetCount"] = 0
    if seed["packetCount"] < 0:
        raise GardenError("Packet count cannot be negative.")

    seeds = load(store, storage.SEEDS)
    previous = _upsert(seeds, seed)
    store.set(storage.SEEDS, seeds)

    name = catalog.seed_display_name(seed)
    notices: List[Notice] = [("success", f"{name} has been saved.")]
    if previous is not None and derived.crossed_low_stock(previous, seed):
        notices.append(_low_stock_notice(store, seed))
    logger.info("Saved seed %s (%s)", seed["id"], "updated" if previous else "added")
    return seed, notices


def delete_seed(store, seed_id: str) -> Record:
    return _remove(store, storage.SEEDS, seed_id)


def log_planting(store, seed_id: str, quantity: float) -> Tuple[Record, List[Notice]]:
    """
    Consume `quantity` packets of a seed. The count never drops below
    settings.GARDEN_MIN_PACKET_COUNT; a negative quantity gives packets back.
    A low-stock notice is produced only when this change crosses the threshold.
    """
    seeds = load(store, storage.SEEDS)
    seed = _find(seeds, seed_id)
    if seed is None:
        raise RecordNotFound(storage.SEEDS, seed_id)
    if seed.get("isWishlist"):
        logger.info("Seed %s is on the wishlist; stock unchanged", seed_id)
        return seed, []

    floor = getattr(settings, "GARDEN_MIN_PACKET_COUNT", 0)
    before = dict(seed)
    current = seed.get("packetCount") or 0
    seed["packetCount"] = max(floor, current - quantity)
    store.set(storage.SEEDS, seeds)
    logger.info("Seed %s stock %s -> %s", seed_id, current, seed["packetCount"])

    notices: List[Notice] = []
    if derived.crossed_low_stock(before, seed):
        notices.append(_low_stock_notice(store, seed))
    return seed, notices


# ----- Logs -----
def _consumption(log: Optional[Record]) -> Tuple[Optional[str], float]:
    if not log or log.get("taskId") != catalog.PLANTING_TASK_ID:
        return None, 0
    if not log.get("seedId") or not log.get("quantity"):
        return None, 0
    return log["seedId"], log["quantity"]


def save_log(store, log: Record, photos=None) -> Tuple[Record, List[Notice]]:
    """
    Add a log (newest first) or replace an existing one. Planting logs consume seed
    stock; on edit only the difference against the previous version is applied.
    """
    log = dict(log)
    log["id"] = log.get("id") or _new_id()
    logs = load(store, storage.LOGS)
    previous = _upsert(logs, log, prepend=True)
    store.set(storage.LOGS, logs)
    logger.info("Saved log %s (%s)", log["id"], "updated" if previous else "added")

    if previous and previous.get("photoId") and previous.get("photoId") != log.get("photoId") and photos is not None:
        photos.delete(previous["photoId"])

    notices: List[Notice] = [("success", "Log saved.")]
    old_seed, old_qty = _consumption(previous)
    new_seed, new_qty = _consumption(log)
    changes: Dict[str, float] = {}
    if old_seed:
        changes[old_seed] = changes.get(old_seed, 0) - old_qty
    if new_seed:
        changes[new_seed] = changes.get(new_seed, 0) + new_qty
    for seed_id, delta in changes.items():
        if not delta:
            continue
        try:
            _, stock_notices = log_planting(store, seed_id, delta)
            notices.extend(stock_notices)
        except RecordNotFound:
            logger.warning("Log %s references missing seed %s; stock unchanged", log["id"], seed_id)
    return log, notices


def delete_log(store, photos, log_id: str) -> Record:
    logs = load(store, storage.LOGS)
    target = _find(logs, log_id)
    if target is None:
        raise RecordNotFound(storage.LOGS, log_id)
    if target.get("photoId"):
        photos.delete(target["photoId"])
    return _remove(store, storage.LOGS, log_id)


# ----- Plantings -----
def save_planting(store, planting: Record) -> Tuple[Record, List[Notice]]:
    """Add or replace a planting. A new planting also records a planting log."""
    planting = dict(planting)
    planting["id"] = planting.get("id") or _new_id()
    plantings = load(store, storage.PLANTINGS)
    previous = _upsert(plantings, planting)
    store.set(storage.PLANTINGS, plantings)

    if previous is None:
        seed = catalog.find_seed(load(store, storage.SEEDS), planting.get("seedId"))
        name = catalog.seed_display_name(seed) if seed else "seed"
        sowing_log = {
            "id": _new_id(),
            "taskId": catalog.PLANTING_TASK_ID,
            "date": planting.get("sowingDate"),
            "seedId": planting.get("seedId"),
            "notes": f"Sowed {name}. {planting.get('notes') or ''}".strip(),
        }
        logs = load(store, storage.LOGS)
        logs.insert(0, sowing_log)
        store.set(storage.LOGS, logs)
        logger.info("Planting %s added with sowing log %s", planting["id"], sowing_log["id"])
        return planting, [("success", "Planting added.")]

    logger.info("Planting %s updated", planting["id"])
    return planting, [("success", "Planting updated.")]


def delete_planting(store, planting_id: str) -> Record:
    return _remove(store, storage.PLANTINGS, planting_id)


# ----- Journal -----
def save_journal_entry(store, entry: Record, photos=None) -> Tuple[Record, List[Notice]]:
    entry = dict(entry)
    entry["id"] = entry.get("id") or _new_id()
    entry["photoIds"] = list(entry.get("photoIds") or [])
    entries = load(store, storage.JOURNAL_ENTRIES)
    previous = _upsert(entries, entry, prepend=True)
    if previous is None:
        entries = sorted(entries, key=lambda e: derived.parse_date(e.get("date")) or date.min, reverse=True)
    elif photos is not None:
        for photo_id in set(previous.get("photoIds") or []) - set(entry["photoIds"]):
            photos.delete(photo_id)
    store.set(storage.JOURNAL_ENTRIES, entries)
    logger.info("Saved journal entry %s", entry["id"])
    return entry, [("success", "Journal entry saved.")]


def delete_journal_entry(store, photos, entry_id: str) -> Record:
    entries = load(store, storage.JOURNAL_ENTRIES)
    target = _find(entries, entry_id)
    if target is None:
        raise RecordNotFound(storage.JOURNAL_ENTRIES, entry_id)
    for photo_id in target.get("photoIds") or []:
        photos.delete(photo_id)
    return _remove(store, storage.JOURNAL_ENTRIES, entry_id)


def remove_journal_photo(store, photos, entry_id: str, photo_id: str) -> Record:
    entries = load(store, storage.JOURNAL_ENTRIES)
    entry = _find(entries, entry_id)
    if entry is None:
        raise RecordNotFound(storage.JOURNAL_ENTRIES, entry_id)
    if photo_id not in (entry.get("photoIds") or []):
        raise RecordNotFound("photos", photo_id)
    photos.delete(photo_id)
    entry["photoIds"] = [p for p in entry["photoIds"] if p != photo_id]
    store.set(storage.JOURNAL_ENTRIES, entries)
    return entry


# ----- Schedule -----
def save_scheduled_task(store, task: Record) -> Tuple[Record, List[Notice]]:
    task = dict(task)
    task["id"] = task.get("id") or _new_id()
    if task.get("recurrence") not in derived.RECURRENCE_DAYS:
        raise GardenError(f"Unknown recurrence: {task.get('recurrence')!r}")
    tasks = load(store, storage.SCHEDULED_TASKS)
    previous = _upsert(tasks, task)
    store.set(storage.SCHEDULED_TASKS, tasks)
    return task, [("success", "Scheduled task updated." if previous else "Scheduled task added.")]


def delete_scheduled_task(store, task_id: str) -> Record:
    return _remove(store, storage.SCHEDULED_TASKS, task_id)


def complete_scheduled_task(store, task_id: str, today: Optional[date] = None) -> Tuple[Record, List[Notice]]:
    """Record a log for the scheduled task's type, dated today."""
    task = _find(load(store, storage.SCHEDULED_TASKS), task_id)
    if task is None:
        raise RecordNotFound(storage.SCHEDULED_TASKS, task_id)
    today = today or date.today()
    notes = f"Completed {task.get('recurrence')} task. {task.get('notes') or ''}".strip()
    log, _ = save_log(store, {"taskId": task.get("taskId"), "date": today.isoformat(), "notes": notes})
    logger.info("Completed scheduled task %s as log %s", task_id, log["id"])
    return log, [("success", "Task marked as done.")]


# ----- Settings -----
def add_custom_task(store, name: str) -> Record:
    if not name or len(name.strip()) < 2:
        raise GardenError("Task name must be at least 2 characters.")
    custom = load(store, storage.CUSTOM_TASKS)
    task = catalog.new_custom_task(name)
    custom.append(task)
    store.set(storage.CUSTOM_TASKS, custom)
    logger.info("Added custom task %s (%s)", task["id"], task["name"])
    return task


def delete_custom_task(store, task_id: str) -> Record:
    return _remove(store, storage.CUSTOM_TASKS, task_id)


def get_theme(store) -> str:
    theme = store.get(storage.THEME, DEFAULT_THEME)
    return theme if theme in THEMES else DEFAULT_THEME


def set_theme(store, theme: str) -> str:
    if theme not in THEMES:
        raise GardenError(f"Unknown theme: {theme!r}")
    store.set(storage.THEME, theme)
    return theme
