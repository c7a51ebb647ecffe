"""
Export a garden to a single JSON document and restore it from one.

Document format:
    {"seeds": [...], "logs": [...], "scheduledTasks": [...], "customTasks": [...],
     "exportDate": "<ISO timestamp>", "schemaVersion": <int>}

Import checks every required collection before touching storage; a document that
fails validation leaves the garden unchanged.
"""
import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from . import schema
from . import storage
from .exceptions import GardenImportError
from .operations import load

logger = logging.getLogger(__name__)

EXPORT_SLOTS = (storage.SEEDS, storage.LOGS, storage.SCHEDULED_TASKS, storage.CUSTOM_TASKS)


def export_data(store, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    data: Dict[str, Any] = {slot: load(store, slot) for slot in EXPORT_SLOTS}
    data["exportDate"] = now.isoformat()
    data["schemaVersion"] = schema.SCHEMA_VERSION
    return data


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"seed-studio-backup-{now.date().isoformat()}.json"


def parse_import(text) -> Dict[str, Any]:
    """
    Parse and validate an export document, upgrading its records to the current
    schema. Raises GardenImportError without side effects.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise GardenImportError("Invalid file format.") from e
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as e:
        raise GardenImportError("Could not parse the file.") from e

    if not isinstance(document, dict):
        raise GardenImportError("Invalid file format.")
    missing = [slot for slot in EXPORT_SLOTS if slot not in document]
    if missing:
        raise GardenImportError(f"File is missing required data: {', '.join(missing)}.")
    wrong = [slot for slot in EXPORT_SLOTS if not isinstance(document[slot], list)]
    if wrong:
        raise GardenImportError(f"File has invalid data for: {', '.join(wrong)}.")

    version = document.get("schemaVersion", 0)
    if not isinstance(version, int) or isinstance(version, bool) or version > schema.SCHEMA_VERSION:
        raise GardenImportError(f"Unsupported schema version: {version!r}.")

    data = {slot: copy.deepcopy(document[slot]) for slot in EXPORT_SLOTS}
    schema.upgrade(data, version)
    corrected = schema.sanitize(data)
    if corrected:
        logger.warning("Import corrected %d invalid entries", corrected)
    return data


def import_data(store, text) -> Dict[str, Any]:
    """Validate text, then overwrite the exported collections. Returns the imported data."""
    data = parse_import(text)
    for slot in EXPORT_SLOTS:
        store.set(slot, data[slot])
    store.set(storage.SCHEMA_VERSION, schema.SCHEMA_VERSION)
    logger.info("Imported garden data for %s: %s", getattr(store, "garden_id", "?"),
                ", ".join(f"{slot}={len(data[slot])}" for slot in EXPORT_SLOTS))
    return data
