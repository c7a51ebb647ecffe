"""Tests for schema upgrades and sanitizing of stored records."""

from garden import schema, storage
from garden.operations import load


class TestUpgrade:
    def test_legacy_seed_fields(self):
        """Version 0 seeds get renamed fields and a seed database link."""
        data = {
            storage.SEEDS: [
                {"id": "s1", "name": "Cherry Tomato", "stock": 4, "notes": "sunny spot", "imageId": "img-1"},
            ],
        }

        assert schema.upgrade(data, 0) == schema.SCHEMA_VERSION
        seed = data[storage.SEEDS][0]
        assert seed["packetCount"] == 4
        assert seed["userNotes"] == "sunny spot"
        assert seed["seedDetailsId"] == "db-cherry-tomato"
        assert "stock" not in seed and "notes" not in seed and "imageId" not in seed

    def test_custom_task_icons_become_keys(self):
        data = {storage.CUSTOM_TASKS: [{"id": "custom-1", "name": "Mulch", "icon": {"$$typeof": "component"}}]}

        schema.upgrade(data, 2)

        assert data[storage.CUSTOM_TASKS][0]["icon"] == "tag"

    def test_current_version_is_untouched(self):
        data = {storage.SEEDS: [{"id": "s1", "stock": 4}]}

        assert schema.upgrade(data, schema.SCHEMA_VERSION) == schema.SCHEMA_VERSION
        assert data[storage.SEEDS][0] == {"id": "s1", "stock": 4}


class TestSanitize:
    def test_drops_malformed_entries(self):
        data = {storage.LOGS: [{"id": "ok"}, "junk", {"notes": "no id"}, {"id": 7}]}

        assert schema.sanitize(data) == 3
        assert data[storage.LOGS] == [{"id": "ok"}]

    def test_resets_negative_counts(self):
        data = {storage.SEEDS: [{"id": "s1", "packetCount": -3, "daysToHarvest": -1}]}

        assert schema.sanitize(data) == 1
        assert data[storage.SEEDS][0]["packetCount"] == 0
        assert data[storage.SEEDS][0]["daysToHarvest"] == 0

    def test_numeric_strings_become_numbers(self):
        """Counts stored as text from hand-edited backups are read as numbers."""
        data = {storage.SEEDS: [{"id": "s1", "packetCount": "3", "lowStockThreshold": "5", "purchaseYear": " 2021 "}],
                storage.LOGS: [{"id": "l1", "weight": "1.5", "quantity": "-2"}]}

        assert schema.sanitize(data) == 2
        seed = data[storage.SEEDS][0]
        assert (seed["packetCount"], seed["lowStockThreshold"], seed["purchaseYear"]) == (3, 5, 2021)
        assert data[storage.LOGS][0] == {"id": "l1", "weight": 1.5, "quantity": 0}

    def test_unreadable_numbers_are_dropped(self):
        data = {storage.SEEDS: [{"id": "s1", "packetCount": "lots", "lowStockThreshold": [5], "daysToHarvest": True}]}

        assert schema.sanitize(data) == 1
        assert data[storage.SEEDS][0] == {"id": "s1", "packetCount": 0}

    def test_non_list_slot_is_reset(self):
        data = {storage.PLANTINGS: {"id": "p1"}}

        assert schema.sanitize(data) == 1
        assert data[storage.PLANTINGS] == []

    def test_clean_data_needs_no_corrections(self):
        data = {storage.SEEDS: [{"id": "s1", "packetCount": 2}], storage.LOGS: []}

        assert schema.sanitize(data) == 0


class TestEnsureCurrent:
    def test_new_garden_keeps_defaults(self, store):
        """A garden with nothing stored is stamped current and still shows the starter seeds."""
        assert schema.ensure_current(store) is True

        assert store.get(storage.SCHEMA_VERSION) == schema.SCHEMA_VERSION
        assert store.get(storage.SEEDS) is None
        assert [s["id"] for s in load(store, storage.SEEDS)][0] == "user-tomato-1"

    def test_upgrades_stored_data_once(self, store):
        notes = []
        store.set(storage.SEEDS, [{"id": "s1", "name": "Nantes Carrot", "stock": -2}, "junk"])

        assert schema.ensure_current(store, notify=notes.append) is True
        assert schema.ensure_current(store, notify=notes.append) is False

        seeds = store.get(storage.SEEDS)
        assert seeds == [{"id": "s1", "name": "Nantes Carrot", "packetCount": 0, "seedDetailsId": "db-nantes-carrot"}]
        assert notes == ["2 saved record(s) were invalid and have been corrected."]
