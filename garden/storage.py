"""
garden/storage.py

Slot store for a garden's structured records.

Provides:
- GardenStore(backend, garden_id, on_warning): get(key, default) / set(key, value)
- FileSlotBackend(directory): one JSON file per slot under <directory>/<garden_id>/
- DynamoSlotBackend(table_name, region): one item per (garden_id, slot)
- get_backend(): backend selected by settings.GARDEN_STORAGE_BACKEND

Notes:
- Every slot holds JSON text. Values are serialized on write and parsed on read,
  so what comes back is always a fresh copy of what was stored.
- Read failures never raise: they are logged, reported through on_warning, and the
  caller-supplied default is returned instead.
"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

SEEDS = "seeds"
LOGS = "logs"
SCHEDULED_TASKS = "scheduledTasks"
CUSTOM_TASKS = "customTasks"
PLANTINGS = "plantings"
JOURNAL_ENTRIES = "journalEntries"
THEME = "theme"
SCHEMA_VERSION = "schemaVersion"

SLOT_KEYS = (SEEDS, LOGS, SCHEDULED_TASKS, CUSTOM_TASKS, PLANTINGS, JOURNAL_ENTRIES, THEME, SCHEMA_VERSION)

_GARDEN_ID_RE = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")

STORAGE_ERRORS = (ClientError, BotoCoreError, OSError)


def _check_slot(garden_id: str, slot: str) -> None:
    if not _GARDEN_ID_RE.match(garden_id or ""):
        raise ValueError(f"Invalid garden id: {garden_id!r}")
    if slot not in SLOT_KEYS:
        raise ValueError(f"Unknown storage slot: {slot!r}")


class FileSlotBackend:
    """Stores each slot as <directory>/<garden_id>/<slot>.json."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, garden_id: str, slot: str) -> Path:
        _check_slot(garden_id, slot)
        return self.directory / garden_id / f"{slot}.json"

    def read(self, garden_id: str, slot: str) -> Optional[str]:
        path = self._path(garden_id, slot)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, garden_id: str, slot: str, payload: str) -> None:
        path = self._path(garden_id, slot)
        path.parent.mkdir(parents=True, exist_ok=True)
        # write to a sibling temp file, then swap it in
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{slot}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


# ----- Dynamo resource / helpers -----
_dynamo_resource = None


def dynamo_resource(region: Optional[str] = None):
    global _dynamo_resource
    if _dynamo_resource is None:
        _dynamo_resource = boto3.resource("dynamodb", region_name=region or settings.AWS_REGION)
    return _dynamo_resource


class DynamoSlotBackend:
    """
    Stores each slot as one item in a DynamoDB table.
    Key schema: garden_id (HASH) + slot (RANGE); the JSON text lives in `payload`.
    """

    def __init__(self, table_name: str, region: Optional[str] = None, table=None):
        self.table_name = table_name
        self._table = table if table is not None else dynamo_resource(region).Table(table_name)

    def read(self, garden_id: str, slot: str) -> Optional[str]:
        _check_slot(garden_id, slot)
        resp = self._table.get_item(Key={"garden_id": garden_id, "slot": slot})
        item = resp.get("Item")
        if not item:
            return None
        return item.get("payload")

    def write(self, garden_id: str, slot: str, payload: str) -> None:
        _check_slot(garden_id, slot)
        self._table.put_item(
            Item={
                "garden_id": garden_id,
                "slot": slot,
                "payload": payload,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
        )


def get_backend():
    """Build the slot backend configured in settings."""
    name = getattr(settings, "GARDEN_STORAGE_BACKEND", "file")
    if name == "dynamodb":
        return DynamoSlotBackend(settings.GARDEN_DYNAMO_TABLE, region=settings.AWS_REGION)
    if name == "file":
        return FileSlotBackend(settings.GARDEN_DATA_DIR)
    raise ValueError(f"Unknown GARDEN_STORAGE_BACKEND: {name!r}")


class GardenStore:
    """Synchronous key/value store for one garden's JSON-serializable records."""

    def __init__(self, backend, garden_id: str, on_warning: Optional[Callable[[str], None]] = None):
        self.backend = backend
        self.garden_id = garden_id
        self.on_warning = on_warning

    def _warn(self, message: str) -> None:
        if self.on_warning is not None:
            self.on_warning(message)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or a copy of default when empty or unreadable."""
        try:
            raw = self.backend.read(self.garden_id, key)
        except STORAGE_ERRORS + (UnicodeDecodeError,) as e:
            logger.exception("Error reading slot %s for garden %s: %s", key, self.garden_id, e)
            self._warn(f'Could not load your saved "{key}" data; showing defaults instead.')
            return copy.deepcopy(default)

        if raw is None:
            return copy.deepcopy(default)

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Slot %s for garden %s holds invalid JSON: %s", key, self.garden_id, e)
            self._warn(f'Your saved "{key}" data could not be read; showing defaults instead.')
            return copy.deepcopy(default)

    def set(self, key: str, value: Any) -> bool:
        """Serialize value and write it immediately. Returns False if the write failed."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.exception("Value for slot %s is not JSON-serializable: %s", key, e)
            self._warn(f'Could not save "{key}": the data is not serializable.')
            return False

        try:
            self.backend.write(self.garden_id, key, payload)
        except STORAGE_ERRORS as e:
            logger.exception("Error writing slot %s for garden %s: %s", key, self.garden_id, e)
            self._warn(f'Could not save your "{key}" data.')
            return False

        logger.debug("Saved slot %s for garden %s (%d bytes)", key, self.garden_id, len(payload))
        return True
