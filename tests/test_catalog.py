"""Tests for task types and the shared seed database."""

from garden import catalog


class TestTasks:
    def test_builtins_come_first(self):
        custom = [{"id": "custom-1", "name": "Mulching", "icon": "tag"}]

        tasks = catalog.all_tasks(custom)

        assert [t["id"] for t in tasks[:6]] == [t["id"] for t in catalog.DEFAULT_TASK_TYPES]
        assert tasks[-1] == custom[0]

    def test_unknown_task(self):
        tasks = catalog.all_tasks()

        assert catalog.get_task_by_id(tasks, "nope") is None
        assert catalog.task_name(tasks, "nope") == "Unknown Task"
        assert catalog.task_name(tasks, "pruning") == "Pruning"

    def test_new_custom_task(self):
        task = catalog.new_custom_task("  Fertilizing ")

        assert task["id"].startswith("custom-")
        assert task["name"] == "Fertilizing"
        assert task["icon"] == catalog.DEFAULT_ICON

    def test_every_icon_key_resolves(self):
        for task in catalog.DEFAULT_TASK_TYPES:
            assert task["icon"] in catalog.ICONS
        assert catalog.icon_for("missing") == catalog.ICONS["tag"]


class TestSeedDatabase:
    def test_lookup_by_id_and_name(self):
        assert catalog.get_seed_details("db-lacinato-kale")["name"] == "Lacinato Kale"
        assert catalog.find_seed_details_by_name("french breakfast RADISH")["id"] == "db-french-breakfast-radish"
        assert catalog.get_seed_details("db-unknown") is None

    def test_join_prefers_seed_fields(self):
        """Entry fields fill gaps; the user's own values and id win."""
        seed = {"id": "user-1", "seedDetailsId": "db-cherry-tomato", "daysToHarvest": 80, "spacing": ""}

        joined = catalog.join_seed(seed)

        assert joined["id"] == "user-1"
        assert joined["name"] == "Cherry Tomato"
        assert joined["daysToHarvest"] == 80
        assert joined["daysToGermination"] == 7
        assert joined["spacing"] == "24 inches"

    def test_display_name_fallbacks(self):
        assert catalog.seed_display_name(None) == "Unknown Seed"
        assert catalog.seed_display_name({"id": "x"}) == "Unnamed seed"
        assert catalog.seed_display_name({"id": "x", "name": "Own name", "seedDetailsId": "db-nantes-carrot"}) == "Own name"

    def test_initial_seeds_are_copies(self):
        seeds = catalog.initial_seeds()
        seeds[0]["packetCount"] = 99

        assert catalog.INITIAL_SEEDS[0]["packetCount"] == 5
