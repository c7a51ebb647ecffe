"""
Derived view state: filtering, sorting, low-stock and overdue detection, dashboard
summaries. Everything here is a pure function of the stored collections and is
recomputed on each request.
"""
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from . import catalog

logger = logging.getLogger(__name__)

ASCENDING = "ascending"
DESCENDING = "descending"

DEFAULT_LOW_STOCK_THRESHOLD = 10
OLD_SEED_YEARS = 3

RECURRENCE_DAYS = {
    "daily": 1,
    "weekly": 7,
    "bi-weekly": 14,
    "monthly": 30,
}
RECURRENCES = tuple(RECURRENCE_DAYS)

MILESTONES = (
    ("sowingDate", "Sown"),
    ("germinationDate", "Germinated"),
    ("pottingUpDate", "Potted up"),
    ("hardeningOffDate", "Hardening off"),
    ("plantingOutDate", "Planted out"),
)

Record = Dict[str, Any]


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime string (a trailing Z is accepted). None if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.debug("Unparseable date %r", value)
        return None


# ----- Filtering -----
def matches_search(record: Record, term: Optional[str], fields: Iterable[str]) -> bool:
    """Case-insensitive substring match of term against any of the given fields."""
    if not term:
        return True
    needle = term.strip().lower()
    for field in fields:
        value = record.get(field)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def filter_seeds(seeds: List[Record], term: str = "", tag: Optional[str] = None, show: str = "all") -> List[Record]:
    """Filter joined seeds by search term, tag and owned/wishlist view."""
    result = []
    for seed in seeds:
        if show == "owned" and seed.get("isWishlist"):
            continue
        if show == "wishlist" and not seed.get("isWishlist"):
            continue
        if tag and tag not in (seed.get("tags") or []):
            continue
        if not matches_search(seed, term, ("name", "source", "userNotes")):
            continue
        result.append(seed)
    return result


def all_tags(seeds: List[Record]) -> List[str]:
    tags = set()
    for seed in seeds:
        tags.update(t for t in seed.get("tags") or [] if isinstance(t, str))
    return sorted(tags, key=str.lower)


def filter_logs(logs: List[Record], term: str, tasks: List[Record], seeds: List[Record]) -> List[Record]:
    """Search logs by activity name, notes or seed name."""
    if not term:
        return list(logs)
    needle = term.strip().lower()
    result = []
    for log in logs:
        haystack = [
            catalog.task_name(tasks, log.get("taskId")),
            log.get("notes") or "",
        ]
        seed = catalog.find_seed(seeds, log.get("seedId"))
        if seed:
            haystack.append(catalog.seed_display_name(seed))
        if any(needle in h.lower() for h in haystack):
            result.append(log)
    return result


def filter_journal(entries: List[Record], term: str) -> List[Record]:
    return [e for e in entries if matches_search(e, term, ("title", "content"))]


# ----- Sorting -----
def request_sort(current: Optional[Tuple[str, str]], key: str) -> Tuple[str, str]:
    """Clicking the same ascending column flips it to descending; anything else sorts ascending."""
    if current and current[0] == key and current[1] == ASCENDING:
        return key, DESCENDING
    return key, ASCENDING


def sort_records(records: List[Record], key_func: Callable[[Record], Any], direction: str = ASCENDING) -> List[Record]:
    """Stable sort; records with equal keys keep their relative order in either direction."""
    return sorted(records, key=key_func, reverse=(direction == DESCENDING))


def log_sort_key(key: str, tasks: List[Record]) -> Callable[[Record], Any]:
    if key == "task":
        return lambda log: catalog.task_name(tasks, log.get("taskId")).lower()
    return lambda log: parse_date(log.get("date")) or date.min


SEED_SORT_KEYS: Dict[str, Callable[[Record], Any]] = {
    "name": lambda s: (s.get("name") or "").lower(),
    "source": lambda s: (s.get("source") or "").lower(),
    "packetCount": lambda s: s.get("packetCount") or 0,
    "purchaseYear": lambda s: s.get("purchaseYear") or 0,
}


# ----- Stock -----
def low_stock_threshold(seed: Record) -> int:
    threshold = seed.get("lowStockThreshold")
    if threshold is None:
        return DEFAULT_LOW_STOCK_THRESHOLD
    return threshold


def is_low_stock(seed: Optional[Record]) -> bool:
    if not seed or seed.get("isWishlist"):
        return False
    return (seed.get("packetCount") or 0) < low_stock_threshold(seed)


def low_stock_seeds(seeds: List[Record]) -> List[Record]:
    return [s for s in seeds if is_low_stock(s)]


def crossed_low_stock(before: Optional[Record], after: Record) -> bool:
    """True only when a seed that was not low on stock now is."""
    return is_low_stock(after) and not is_low_stock(before)


def is_old_seed(seed: Optional[Record], today: Optional[date] = None) -> bool:
    """True when the seed was bought more than OLD_SEED_YEARS years ago."""
    year = (seed or {}).get("purchaseYear")
    if not isinstance(year, int) or isinstance(year, bool):
        return False
    return (today or date.today()).year - year > OLD_SEED_YEARS


def owned_seeds(seeds: List[Record]) -> List[Record]:
    return [s for s in seeds if not s.get("isWishlist")]


def owned_seed_count(seeds: List[Record]) -> int:
    return len(owned_seeds(seeds))


# ----- Schedule -----
def latest_log_for_task(logs: List[Record], task_id: str) -> Optional[Record]:
    latest, latest_date = None, None
    for log in logs:
        if log.get("taskId") != task_id:
            continue
        logged = parse_date(log.get("date"))
        if logged is None:
            continue
        if latest_date is None or logged > latest_date:
            latest, latest_date = log, logged
    return latest


def is_overdue(task: Record, logs: List[Record], today: Optional[date] = None) -> bool:
    """
    A task with no matching log is overdue only if its start date exists and has passed.
    Otherwise it is overdue once more days have elapsed since the latest matching log
    than its recurrence allows.
    """
    today = today or date.today()
    last = latest_log_for_task(logs, task.get("taskId"))
    if last is None:
        start = parse_date(task.get("startDate"))
        return start is not None and start < today
    threshold = RECURRENCE_DAYS.get(task.get("recurrence"))
    if threshold is None:
        return False
    elapsed = (today - parse_date(last["date"])).days
    return elapsed > threshold


def next_due_date(task: Record, logs: List[Record]) -> Optional[date]:
    last = latest_log_for_task(logs, task.get("taskId"))
    threshold = RECURRENCE_DAYS.get(task.get("recurrence"))
    if last is not None and threshold is not None:
        return parse_date(last["date"]) + timedelta(days=threshold)
    return parse_date(task.get("startDate"))


def next_task(scheduled_tasks: List[Record]) -> Optional[Record]:
    """Earliest start date first; tasks without a start date sort before dated ones."""
    if not scheduled_tasks:
        return None
    return sorted(scheduled_tasks, key=lambda t: t.get("startDate") or "")[0]


# ----- Dashboard -----
def _recent(logs: List[Record], today: date, days: int) -> List[Record]:
    cutoff = today - timedelta(days=days)
    recent = []
    for log in logs:
        logged = parse_date(log.get("date"))
        if logged is not None and logged > cutoff:
            recent.append(log)
    return recent


def activity_summary(logs: List[Record], tasks: List[Record], today: Optional[date] = None, days: int = 30) -> List[Record]:
    """Number of logged activities per task type within the window; empty types are dropped."""
    recent = _recent(logs, today or date.today(), days)
    summary = []
    for task in tasks:
        count = sum(1 for log in recent if log.get("taskId") == task.get("id"))
        if count > 0:
            summary.append({"id": task.get("id"), "name": task.get("name"), "icon": task.get("icon"), "count": count})
    return summary


def harvest_summary(logs: List[Record], seeds: List[Record], today: Optional[date] = None, days: int = 30) -> List[Record]:
    """Harvested weight per seed within the window, heaviest first."""
    recent = _recent(logs, today or date.today(), days)
    by_seed: Dict[str, Record] = {}
    for log in recent:
        if log.get("taskId") != catalog.HARVESTING_TASK_ID:
            continue
        seed_id, weight = log.get("seedId"), log.get("weight")
        if not seed_id or not weight:
            continue
        if seed_id not in by_seed:
            seed = catalog.find_seed(seeds, seed_id)
            by_seed[seed_id] = {"seedId": seed_id, "name": catalog.seed_display_name(seed), "weight": 0}
        by_seed[seed_id]["weight"] += weight
    rows = [row for row in by_seed.values() if row["weight"] > 0]
    return sorted(rows, key=lambda row: row["weight"], reverse=True)


# ----- Plantings -----
def sorted_plantings(plantings: List[Record]) -> List[Record]:
    return sorted(plantings, key=lambda p: parse_date(p.get("sowingDate")) or date.min, reverse=True)


def planting_stage(planting: Record) -> str:
    stage = "Planned"
    for field, label in MILESTONES:
        if planting.get(field):
            stage = label
    return stage


def expected_milestones(planting: Record, seed: Optional[Record]) -> List[Record]:
    """
    Expected germination and harvest dates for a planting, counted from its sowing
    date using the joined seed's day counts.
    """
    plan: List[Record] = []
    sown = parse_date(planting.get("sowingDate"))
    if sown is None or not seed:
        return plan
    for field, label in (("daysToGermination", "Germination"), ("daysToHarvest", "Harvest")):
        days = seed.get(field)
        if days is None or days == "":
            continue
        try:
            plan.append({"task": label, "due_date": sown + timedelta(days=int(days))})
        except (ValueError, TypeError):
            logger.warning("Invalid %s for seed %s: %r", field, seed.get("id"), days)
    plan.sort(key=lambda x: x["due_date"])
    return plan


# ----- Schedule listing -----
SCHEDULE_SORT_FIELDS = ("task", "recurrence", "due")


def filter_scheduled(scheduled_tasks: List[Record], term: str, tasks: List[Record]) -> List[Record]:
    """Search scheduled tasks by activity name or notes."""
    if not term:
        return list(scheduled_tasks)
    needle = term.strip().lower()
    return [
        t for t in scheduled_tasks
        if needle in catalog.task_name(tasks, t.get("taskId")).lower() or needle in (t.get("notes") or "").lower()
    ]


def schedule_sort_key(key: str, tasks: List[Record], logs: List[Record]) -> Callable[[Record], Any]:
    if key == "task":
        return lambda t: catalog.task_name(tasks, t.get("taskId")).lower()
    if key == "recurrence":
        return lambda t: RECURRENCE_DAYS.get(t.get("recurrence"), 0)
    return lambda t: next_due_date(t, logs) or date.min
