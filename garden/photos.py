"""
Photo blob store for log and journal attachments.

- PhotoStore.add(data_url, photo_id=None) -> photo id
- PhotoStore.get(photo_id) -> data URL or None
- PhotoStore.delete(photo_id) -> bool (best-effort)

Each photo is kept as a small JSON record {"id": ..., "dataUrl": ...} at
photos/<id>.json in a Django Storage. In production that is S3 through
django-storages (see config/settings.py); locally it is MEDIA_ROOT.
"""
import base64
import binascii
import json
import logging
import re
import uuid
from typing import Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

PHOTO_FOLDER = "photos"
_PHOTO_ID_RE = re.compile(r"^[A-Za-z0-9-]{1,64}$")
_DATA_URL_RE = re.compile(r"^data:(?P<type>[\w/+.-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

STORAGE_ERRORS = (ClientError, BotoCoreError, OSError)


def to_data_url(file_obj) -> str:
    """Read an uploaded file (request.FILES[...]) into a base64 data URL."""
    content_type = getattr(file_obj, "content_type", None) or "application/octet-stream"
    if hasattr(file_obj, "seek"):
        file_obj.seek(0)
    encoded = base64.b64encode(file_obj.read()).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a data URL into (content_type, raw bytes). Raises ValueError if malformed."""
    match = _DATA_URL_RE.match(data_url or "")
    if not match:
        raise ValueError("Not a data URL")
    content_type = match.group("type") or "text/plain"
    data = match.group("data")
    if match.group("b64"):
        try:
            return content_type, base64.b64decode(data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    return content_type, data.encode("utf-8")


class PhotoStore:
    def __init__(self, storage=None):
        self.storage = storage if storage is not None else default_storage

    def _name(self, photo_id: str) -> str:
        if not _PHOTO_ID_RE.match(photo_id or ""):
            raise ValueError(f"Invalid photo id: {photo_id!r}")
        return f"{PHOTO_FOLDER}/{photo_id}.json"

    def add(self, data_url: str, photo_id: Optional[str] = None) -> str:
        """Store a data URL and return its photo id. Storage errors propagate to the caller."""
        photo_id = photo_id or str(uuid.uuid4())
        name = self._name(photo_id)
        record = json.dumps({"id": photo_id, "dataUrl": data_url})
        if self.storage.exists(name):
            self.storage.delete(name)
        saved = self.storage.save(name, ContentFile(record.encode("utf-8")))
        logger.info("Stored photo %s (%d bytes) at %s", photo_id, len(record), saved)
        return photo_id

    def get(self, photo_id: str) -> Optional[str]:
        try:
            name = self._name(photo_id)
        except ValueError:
            return None
        try:
            if not self.storage.exists(name):
                return None
            with self.storage.open(name, "rb") as f:
                record = json.loads(f.read().decode("utf-8"))
        except STORAGE_ERRORS as e:
            logger.exception("Failed reading photo %s: %s", photo_id, e)
            return None
        except ValueError as e:
            logger.warning("Photo record %s is not valid JSON: %s", photo_id, e)
            return None
        return record.get("dataUrl")

    def delete(self, photo_id: str) -> bool:
        """Remove a photo. Missing photos and storage errors are logged, not raised."""
        try:
            name = self._name(photo_id)
        except ValueError:
            logger.warning("Refusing to delete photo with invalid id %r", photo_id)
            return False
        try:
            if not self.storage.exists(name):
                logger.info("Photo %s already gone", photo_id)
                return False
            self.storage.delete(name)
            logger.info("Deleted photo %s", photo_id)
            return True
        except STORAGE_ERRORS as e:
            logger.exception("Failed deleting photo %s: %s", photo_id, e)
            return False
