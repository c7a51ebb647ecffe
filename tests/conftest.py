"""Pytest fixtures for Seed Studio tests."""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
django.setup()

from django.core.files.storage import FileSystemStorage  # noqa: E402
from django.test import override_settings  # noqa: E402
from django.test.utils import setup_test_environment  # noqa: E402

setup_test_environment()

from garden.photos import PhotoStore  # noqa: E402
from garden.storage import FileSlotBackend, GardenStore  # noqa: E402


@pytest.fixture(autouse=True)
def garden_settings(tmp_path):
    """Point slot files and media at a per-test directory and switch off external alerts."""
    with override_settings(
        GARDEN_STORAGE_BACKEND="file",
        GARDEN_DATA_DIR=str(tmp_path / "slots"),
        GARDEN_OWNER_ID="",
        GARDEN_MIN_PACKET_COUNT=0,
        MEDIA_ROOT=str(tmp_path / "media"),
        SNS_TOPIC_ARN="",
    ):
        yield tmp_path


@pytest.fixture
def warnings_seen():
    """Messages passed to GardenStore.on_warning."""
    return []


@pytest.fixture
def store(garden_settings, warnings_seen):
    backend = FileSlotBackend(garden_settings / "slots")
    return GardenStore(backend, "test-garden", on_warning=warnings_seen.append)


@pytest.fixture
def photos(garden_settings):
    return PhotoStore(FileSystemStorage(location=str(garden_settings / "photos")))
