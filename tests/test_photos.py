"""Tests for the photo blob store."""

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from garden.photos import decode_data_url, to_data_url

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def upload(name="leaf.png", content=PNG_BYTES, content_type="image/png"):
    return SimpleUploadedFile(name, content, content_type=content_type)


class TestDataUrls:
    def test_round_trip_bytes(self):
        """An uploaded image survives encoding to a data URL and back."""
        data_url = to_data_url(upload())

        assert data_url.startswith("data:image/png;base64,")
        assert decode_data_url(data_url) == ("image/png", PNG_BYTES)

    def test_plain_data_url(self):
        assert decode_data_url("data:text/plain,hello") == ("text/plain", b"hello")

    @pytest.mark.parametrize("bad", ["", "http://example.com/a.png", "data:image/png;base64,@@@"])
    def test_malformed_data_url(self, bad):
        with pytest.raises(ValueError):
            decode_data_url(bad)


class TestPhotoStore:
    def test_add_get_delete(self, photos):
        photo_id = photos.add("data:image/png;base64,AAAA")

        assert photos.get(photo_id) == "data:image/png;base64,AAAA"
        assert photos.delete(photo_id) is True
        assert photos.get(photo_id) is None

    def test_add_with_id_replaces(self, photos):
        """Re-adding under the same id overwrites rather than creating a sibling file."""
        photos.add("data:text/plain,one", photo_id="p-1")
        photos.add("data:text/plain,two", photo_id="p-1")

        assert photos.get("p-1") == "data:text/plain,two"

    def test_missing_photo(self, photos):
        assert photos.get("does-not-exist") is None
        assert photos.delete("does-not-exist") is False

    def test_invalid_ids_are_refused(self, photos):
        assert photos.get("../secrets") is None
        assert photos.delete("../secrets") is False
        with pytest.raises(ValueError):
            photos.add("data:text/plain,x", photo_id="a/b")
