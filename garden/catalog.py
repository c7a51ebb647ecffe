"""
Built-in reference data: task types, icon keys and the shared seed database.

The seed database is shipped as garden/data/seed_database.json. User seeds point
at an entry through `seedDetailsId` and are joined with it at render time.
"""
import copy
import json
import logging
import os
import uuid
from functools import lru_cache
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

SEED_DATABASE_PATH = os.path.join(os.path.dirname(__file__), "data", "seed_database.json")

# icon key -> (glyph, label); templates resolve the key, records only store it
ICONS = {
    "sprout": ("\U0001F331", "Sprout"),
    "droplets": ("\U0001F4A7", "Droplets"),
    "grape": ("\U0001F347", "Grape"),
    "scissors": ("✂️", "Scissors"),
    "bug": ("\U0001F41B", "Bug"),
    "shovel": ("⛏️", "Shovel"),
    "tag": ("\U0001F3F7️", "Tag"),
}
DEFAULT_ICON = "tag"

PLANTING_TASK_ID = "planting"
HARVESTING_TASK_ID = "harvesting"

DEFAULT_TASK_TYPES: List[Dict[str, str]] = [
    {"id": "planting", "name": "Planting", "icon": "sprout"},
    {"id": "watering", "name": "Watering", "icon": "droplets"},
    {"id": "harvesting", "name": "Harvesting", "icon": "grape"},
    {"id": "pruning", "name": "Pruning", "icon": "scissors"},
    {"id": "pest-control", "name": "Pest Control", "icon": "bug"},
    {"id": "soil-prep", "name": "Soil Preparation", "icon": "shovel"},
]

# Fields a SeedDatabaseEntry contributes to a joined seed.
BOTANICAL_FIELDS = ("plantingDepth", "spacing", "daysToGermination", "daysToHarvest")

INITIAL_SEEDS: List[Dict[str, Any]] = [
    {
        "id": "user-tomato-1",
        "seedDetailsId": "db-cherry-tomato",
        "source": "Garden Center",
        "packetCount": 5,
        "purchaseYear": 2023,
        "userNotes": "These did great in the green pot last year.",
        "lowStockThreshold": 2,
        "tags": [],
        "isWishlist": False,
    },
    {
        "id": "user-carrot-1",
        "seedDetailsId": "db-nantes-carrot",
        "source": "Online Retailer",
        "packetCount": 10,
        "purchaseYear": 2024,
        "userNotes": "",
        "tags": [],
        "isWishlist": False,
    },
    {
        "id": "user-lettuce-1",
        "seedDetailsId": "db-romaine-lettuce",
        "source": "Seed Swap",
        "packetCount": 0,
        "purchaseYear": 2023,
        "userNotes": "",
        "tags": [],
        "isWishlist": True,
    },
    {
        "id": "user-basil-1",
        "seedDetailsId": "db-genovese-basil",
        "source": "Local Farm",
        "packetCount": 20,
        "purchaseYear": 2024,
        "userNotes": "",
        "tags": ["herb"],
        "isWishlist": False,
    },
]


def icon_for(key: Optional[str]):
    """Return (glyph, label) for an icon key, falling back to the tag icon."""
    return ICONS.get(key or DEFAULT_ICON, ICONS[DEFAULT_ICON])


# ----- Task types -----
def all_tasks(custom_tasks: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    """Built-in task types followed by the user's custom ones."""
    return [dict(t) for t in DEFAULT_TASK_TYPES] + list(custom_tasks or [])


def get_task_by_id(tasks: List[Dict[str, Any]], task_id: Optional[str]) -> Optional[Dict[str, Any]]:
    for task in tasks:
        if task.get("id") == task_id:
            return task
    return None


def task_name(tasks: List[Dict[str, Any]], task_id: Optional[str]) -> str:
    task = get_task_by_id(tasks, task_id)
    return task.get("name", "") if task else "Unknown Task"


def new_custom_task(name: str) -> Dict[str, str]:
    return {"id": f"custom-{uuid.uuid4()}", "name": name.strip(), "icon": DEFAULT_ICON}


# ----- Seed database -----
@lru_cache(maxsize=1)
def _load_seed_database(path: str) -> Dict[str, Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    entries = data.get("seeds", []) if isinstance(data, dict) else data
    logger.info("Loaded %d seed database entries from %s", len(entries), path)
    return {entry["id"]: entry for entry in entries}


def load_seed_database() -> List[Dict[str, Any]]:
    return [dict(e) for e in _load_seed_database(SEED_DATABASE_PATH).values()]


def get_seed_details(details_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not details_id:
        return None
    entry = _load_seed_database(SEED_DATABASE_PATH).get(details_id)
    return dict(entry) if entry else None


def find_seed_details_by_name(name: Optional[str]) -> Optional[Dict[str, Any]]:
    """Case-insensitive lookup of a seed database entry by its name."""
    if not name:
        return None
    wanted = name.strip().lower()
    for entry in _load_seed_database(SEED_DATABASE_PATH).values():
        if entry.get("name", "").lower() == wanted:
            return dict(entry)
    return None


def join_seed(seed: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a user seed with its seed database entry.
    Entry fields come first and the user's own fields win; the entry id never
    replaces the seed id.
    """
    details = get_seed_details(seed.get("seedDetailsId")) or {}
    details.pop("id", None)
    joined = {**details, **{k: v for k, v in seed.items() if v is not None and v != ""}}
    joined.setdefault("name", details.get("name") or "Unnamed seed")
    joined["id"] = seed.get("id")
    return joined


def seed_display_name(seed: Optional[Dict[str, Any]]) -> str:
    if not seed:
        return "Unknown Seed"
    return join_seed(seed).get("name") or "Unknown Seed"


def find_seed(seeds: List[Dict[str, Any]], seed_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not seed_id:
        return None
    return next((s for s in seeds if s.get("id") == seed_id), None)


def initial_seeds() -> List[Dict[str, Any]]:
    return copy.deepcopy(INITIAL_SEEDS)
