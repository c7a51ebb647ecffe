"""End-to-end tests of the pages through Django's test client."""

import json

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import Client
from django.urls import reverse

from garden import storage
from garden.operations import load
from garden.storage import FileSlotBackend, GardenStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def client():
    return Client()


def garden_of(client, garden_settings):
    """The GardenStore behind the client's session."""
    garden_id = client.session["garden_id"]
    return GardenStore(FileSlotBackend(garden_settings / "slots"), garden_id)


def page_messages(response):
    return [str(m) for m in response.context["messages"]]


class TestPages:
    @pytest.mark.parametrize("name", ["dashboard", "inventory", "plantings", "journal", "logs", "schedule", "settings"])
    def test_every_page_renders(self, client, name):
        response = client.get(reverse(name))

        assert response.status_code == 200
        assert b"Seed Studio" in response.content

    def test_new_garden_starts_with_initial_seeds(self, client):
        response = client.get(reverse("inventory"))

        assert b"Cherry Tomato" in response.content
        assert b"Genovese Basil" in response.content

    def test_inventory_search_and_sort(self, client):
        response = client.get(reverse("inventory"), {"q": "carrot"})
        assert [r["seed"]["id"] for r in response.context["rows"]] == ["user-carrot-1"]

        response = client.get(reverse("inventory"), {"sort": "packetCount", "dir": "descending"})
        counts = [r["seed"]["packetCount"] for r in response.context["rows"]]
        assert counts == sorted(counts, reverse=True)
        assert "dir=ascending" in response.context["sort_links"]["packetCount"]


class TestSeedViews:
    def test_add_seed(self, client, garden_settings):
        response = client.post(reverse("seed_add"), {"name": "Sugar Snap", "source": "Shop", "packet_count": "3", "tags": "pea, climber"}, follow=True)

        assert response.status_code == 200
        seeds = load(garden_of(client, garden_settings), storage.SEEDS)
        added = [s for s in seeds if s.get("name") == "Sugar Snap"][0]
        assert added["tags"] == ["pea", "climber"]
        assert "Sugar Snap has been saved." in page_messages(response)

    def test_invalid_seed_writes_nothing(self, client, garden_settings):
        client.get(reverse("inventory"))

        response = client.post(reverse("seed_add"), {"name": "X", "source": "Shop", "packet_count": "-2"})

        assert response.status_code == 200
        assert "name" in response.context["form"].errors
        assert "packet_count" in response.context["form"].errors
        assert garden_of(client, garden_settings).get(storage.SEEDS) is None

    def test_edit_crossing_threshold_warns(self, client):
        response = client.post(
            reverse("seed_edit", args=["user-carrot-1"]),
            {"name": "Nantes Carrot", "source": "Online Retailer", "packet_count": "4"},
            follow=True,
        )

        assert "Low Stock Alert: Nantes Carrot is running low." in page_messages(response)

    def test_delete_requires_post(self, client, garden_settings):
        client.get(reverse("inventory"))
        client.get(reverse("seed_delete", args=["user-basil-1"]))
        assert "user-basil-1" in [s["id"] for s in load(garden_of(client, garden_settings), storage.SEEDS)]

        client.post(reverse("seed_delete", args=["user-basil-1"]))
        assert "user-basil-1" not in [s["id"] for s in load(garden_of(client, garden_settings), storage.SEEDS)]

    def test_seed_detail_shows_joined_fields(self, client):
        client.post(reverse("seed_edit", args=["user-tomato-1"]), {"name": "Cherry Tomato", "source": "Garden Center", "packet_count": "12", "purchase_year": "2001", "seed_details_id": "db-cherry-tomato"})

        response = client.get(reverse("seed_detail", args=["user-tomato-1"]))

        assert response.status_code == 200
        assert response.context["old_seed"] is True
        assert response.context["seed"]["spacing"] == "24 inches"
        assert b"Old Seed" in response.content
        assert reverse("schedule_add").encode() + b"?notes=Task%20for%20Cherry%20Tomato" in response.content

    def test_schedule_link_prefills_notes(self, client):
        response = client.get(reverse("schedule_add"), {"notes": "Task for Cherry Tomato"})

        assert response.context["form"].initial["notes"] == "Task for Cherry Tomato"

    def test_unknown_seed_redirects_with_error(self, client):
        response = client.get(reverse("seed_edit", args=["missing"]), follow=True)

        assert response.redirect_chain[-1][0] == reverse("inventory")
        assert "That seed no longer exists." in page_messages(response)


class TestLogViews:
    def test_log_with_photo(self, client, garden_settings):
        photo = SimpleUploadedFile("leaf.png", PNG_BYTES, content_type="image/png")
        client.post(reverse("log_add"), {"task_id": "watering", "date": "2024-06-01", "notes": "deep soak", "photo": photo})

        logs = load(garden_of(client, garden_settings), storage.LOGS)
        assert logs[0]["notes"] == "deep soak"

        response = client.get(reverse("photo", args=[logs[0]["photoId"]]))
        assert response.status_code == 200
        assert response["Content-Type"] == "image/png"
        assert response.content == PNG_BYTES

    def test_log_requires_task_and_date(self, client):
        response = client.post(reverse("log_add"), {"notes": "?"})

        assert set(response.context["form"].errors) >= {"task_id", "date"}

    def test_non_image_upload_rejected(self, client):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        response = client.post(reverse("log_add"), {"task_id": "watering", "date": "2024-06-01", "photo": upload})

        assert "photo" in response.context["form"].errors

    def test_search_logs(self, client):
        client.post(reverse("log_add"), {"task_id": "watering", "date": "2024-06-01"})
        client.post(reverse("log_add"), {"task_id": "pruning", "date": "2024-06-02"})

        response = client.get(reverse("logs"), {"q": "prun"})

        assert [r["task_name"] for r in response.context["rows"]] == ["Pruning"]

    def test_missing_photo_is_404(self, client):
        assert client.get(reverse("photo", args=["nope"])).status_code == 404


class TestPlantingViews:
    def test_wishlist_seeds_are_not_offered(self, client):
        response = client.get(reverse("planting_add"))

        choices = [value for value, _ in response.context["form"].fields["seed_id"].choices]
        assert "user-tomato-1" in choices
        assert "user-lettuce-1" not in choices

    def test_wishlist_seed_is_rejected(self, client, garden_settings):
        response = client.post(reverse("planting_add"), {"seed_id": "user-lettuce-1", "sowing_date": "2024-03-01"})

        assert "seed_id" in response.context["form"].errors
        assert garden_of(client, garden_settings).get(storage.PLANTINGS) is None


class TestScheduleViews:
    def test_complete_scheduled_task(self, client, garden_settings):
        client.post(reverse("schedule_add"), {"task_id": "watering", "recurrence": "daily", "start_date": "2024-01-01"})
        response = client.get(reverse("schedule"))
        row = response.context["rows"][0]
        assert row["overdue"] is True

        response = client.post(reverse("schedule_complete", args=[row["scheduled"]["id"]]), follow=True)
        assert page_messages(response) == ["Task marked as done."]

        response = client.get(reverse("schedule"))
        assert response.context["rows"][0]["overdue"] is False
        assert load(garden_of(client, garden_settings), storage.LOGS)[0]["taskId"] == "watering"


class TestSettingsViews:
    def test_custom_task_validation(self, client):
        response = client.post(reverse("custom_task_add"), {"name": "x"})

        assert response.status_code == 200
        assert "name" in response.context["task_form"].errors

    def test_custom_task_appears_in_log_form(self, client):
        client.post(reverse("custom_task_add"), {"name": "Mulching"})

        response = client.get(reverse("log_add"))

        assert "Mulching" in [label for _, label in response.context["form"].fields["task_id"].choices]

    def test_theme(self, client):
        client.post(reverse("theme_update"), {"theme": "dark"})

        response = client.get(reverse("dashboard"))

        assert b'data-theme="dark"' in response.content

    def test_export_download(self, client):
        response = client.get(reverse("export"))

        assert response["Content-Disposition"].startswith('attachment; filename="seed-studio-backup-')
        data = json.loads(response.content)
        assert {"seeds", "logs", "scheduledTasks", "customTasks", "exportDate"} <= set(data)

    def test_import_replaces_data(self, client, garden_settings):
        payload = json.dumps({"seeds": [{"id": "only", "name": "Imported Bean", "packetCount": 2}], "logs": [], "scheduledTasks": [], "customTasks": []})
        upload = SimpleUploadedFile("backup.json", payload.encode("utf-8"), content_type="application/json")

        response = client.post(reverse("import"), {"file": upload}, follow=True)

        assert "Data imported successfully." in page_messages(response)
        assert [s["id"] for s in load(garden_of(client, garden_settings), storage.SEEDS)] == ["only"]

    def test_bad_import_reports_error(self, client, garden_settings):
        upload = SimpleUploadedFile("backup.json", b'{"seeds": []}', content_type="application/json")

        response = client.post(reverse("import"), {"file": upload}, follow=True)

        assert any(m.startswith("Import failed:") for m in page_messages(response))
        assert garden_of(client, garden_settings).get(storage.SEEDS) is None
