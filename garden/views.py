"""
garden/views.py

Function-based views for the Seed Studio pages.

Every view works on the GardenStore of the current garden (see get_store):
the configured owner for single-user deployments, otherwise an id kept in the
visitor's session. Domain changes go through garden.operations; the notices
they return become Django messages.
"""
import json
import logging
import uuid
from datetime import date

from django.conf import settings
from django.contrib import messages
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render

from . import catalog
from . import derived
from . import operations
from . import schema
from . import storage
from . import transfer
from .exceptions import GardenError, GardenImportError, RecordNotFound
from .forms import (
    CustomTaskForm,
    ImportForm,
    JournalEntryForm,
    LogForm,
    PlantingForm,
    ScheduledTaskForm,
    SeedForm,
    ThemeForm,
)
from .photos import STORAGE_ERRORS as PHOTO_ERRORS
from .photos import PhotoStore, decode_data_url, to_data_url

logger = logging.getLogger(__name__)

SESSION_GARDEN_KEY = "garden_id"
SHOW_OPTIONS = ("all", "owned", "wishlist")
LOG_SORT_FIELDS = ("date", "task")


# ----- Request helpers -----
def garden_id_for(request):
    owner = getattr(settings, "GARDEN_OWNER_ID", "")
    if owner:
        return owner
    garden_id = request.session.get(SESSION_GARDEN_KEY)
    if not garden_id:
        garden_id = uuid.uuid4().hex
        request.session[SESSION_GARDEN_KEY] = garden_id
        logger.info("Started new garden %s", garden_id)
    return garden_id


def get_store(request):
    """
    Return the GardenStore for this request, creating it on first use.
    Storage warnings become Django messages and pending schema upgrades run once here.
    """
    store = getattr(request, "garden_store", None)
    if store is None:
        def warn(message):
            messages.warning(request, message)

        store = storage.GardenStore(storage.get_backend(), garden_id_for(request), on_warning=warn)
        schema.ensure_current(store, notify=warn)
        request.garden_store = store
    return store


def get_photos():
    return PhotoStore()


def _notify(request, notices):
    for level, text in notices:
        getattr(messages, level, messages.info)(request, text)


def _sort_params(request, fields, default):
    key = request.GET.get("sort")
    if key not in fields:
        return default
    direction = request.GET.get("dir")
    if direction not in (derived.ASCENDING, derived.DESCENDING):
        direction = derived.ASCENDING
    return key, direction


def _sort_links(request, fields, current):
    """Querystrings for each sortable column, keeping the other query parameters."""
    links = {}
    for field in fields:
        key, direction = derived.request_sort(current, field)
        params = request.GET.copy()
        params["sort"] = key
        params["dir"] = direction
        links[field] = "?" + params.urlencode()
    return links


def _missing(request, what, target):
    messages.error(request, f"That {what} no longer exists.")
    return redirect(target)


def _log_row(log, tasks, seeds):
    seed = catalog.find_seed(seeds, log.get("seedId"))
    return {
        "log": log,
        "task": catalog.get_task_by_id(tasks, log.get("taskId")),
        "task_name": catalog.task_name(tasks, log.get("taskId")),
        "seed_name": catalog.seed_display_name(seed) if seed else "",
        "date": derived.parse_date(log.get("date")),
    }


def _store_photo(request, upload):
    """Save an uploaded image and return its photo id, or None if storing failed."""
    try:
        return get_photos().add(to_data_url(upload))
    except PHOTO_ERRORS as e:
        logger.exception("Failed storing photo %s: %s", getattr(upload, "name", "?"), e)
        messages.error(request, "Could not save the photo.")
        return None


# ----- Dashboard -----
def dashboard(request):
    store = get_store(request)
    seeds = operations.load(store, storage.SEEDS)
    logs = operations.load(store, storage.LOGS)
    scheduled = operations.load(store, storage.SCHEDULED_TASKS)
    plantings = operations.load(store, storage.PLANTINGS)
    tasks = catalog.all_tasks(operations.load(store, storage.CUSTOM_TASKS))
    joined = [catalog.join_seed(s) for s in seeds]
    today = date.today()

    upcoming = derived.next_task(scheduled)
    owned = derived.owned_seed_count(seeds)
    context = {
        "owned_count": owned,
        "wishlist_count": len(seeds) - owned,
        "low_stock": derived.low_stock_seeds(joined),
        "log_count": len(logs),
        "planting_count": len(plantings),
        "next_task": upcoming,
        "next_task_name": catalog.task_name(tasks, upcoming.get("taskId")) if upcoming else "",
        "overdue_count": sum(1 for t in scheduled if derived.is_overdue(t, logs, today)),
        "activity": derived.activity_summary(logs, tasks, today),
        "harvests": derived.harvest_summary(logs, seeds, today),
        "recent_logs": [_log_row(log, tasks, seeds) for log in logs[:5]],
    }
    logger.info("Dashboard for %s: seeds=%d logs=%d scheduled=%d", store.garden_id, len(seeds), len(logs), len(scheduled))
    return render(request, "garden/dashboard.html", context)


# ----- Inventory -----
def inventory(request):
    store = get_store(request)
    seeds = [catalog.join_seed(s) for s in operations.load(store, storage.SEEDS)]
    term = request.GET.get("q", "").strip()
    tag = request.GET.get("tag") or None
    show = request.GET.get("show", "all")
    if show not in SHOW_OPTIONS:
        show = "all"
    current = _sort_params(request, derived.SEED_SORT_KEYS, ("name", derived.ASCENDING))

    visible = derived.filter_seeds(seeds, term, tag, show)
    visible = derived.sort_records(visible, derived.SEED_SORT_KEYS[current[0]], current[1])
    context = {
        "rows": [{"seed": s, "low_stock": derived.is_low_stock(s)} for s in visible],
        "total": len(seeds),
        "q": term,
        "tag": tag,
        "show": show,
        "show_options": SHOW_OPTIONS,
        "tags": derived.all_tags(seeds),
        "sort": current,
        "sort_links": _sort_links(request, derived.SEED_SORT_KEYS, current),
    }
    return render(request, "garden/inventory.html", context)


def seed_detail(request, seed_id):
    store = get_store(request)
    seed = operations.get_record(store, storage.SEEDS, seed_id)
    if seed is None:
        return _missing(request, "seed", "inventory")
    joined = catalog.join_seed(seed)
    context = {
        "seed": joined,
        "low_stock": derived.is_low_stock(joined),
        "old_seed": derived.is_old_seed(joined),
        "threshold": derived.low_stock_threshold(joined),
        "schedule_notes": f"Task for {joined['name']}",
    }
    return render(request, "garden/seed_detail.html", context)


def seed_form(request, seed_id=None):
    store = get_store(request)
    existing = None
    if seed_id:
        existing = operations.get_record(store, storage.SEEDS, seed_id)
        if existing is None:
            return _missing(request, "seed", "inventory")

    if request.method == "POST":
        form = SeedForm(request.POST)
        if form.is_valid():
            try:
                _, notices = operations.save_seed(store, form.to_record(existing))
            except GardenError as e:
                form.add_error(None, str(e))
            else:
                _notify(request, notices)
                return redirect("inventory")
        logger.info("Seed form invalid: %s", form.errors.as_json())
    elif existing:
        form = SeedForm(initial=SeedForm.initial_from(existing))
    else:
        form = SeedForm()
    return render(request, "garden/seed_form.html", {"form": form, "seed": existing, "is_editing": existing is not None})


def seed_delete(request, seed_id):
    if request.method != "POST":
        return redirect("inventory")
    store = get_store(request)
    try:
        seed = operations.delete_seed(store, seed_id)
    except RecordNotFound:
        return _missing(request, "seed", "inventory")
    messages.success(request, f"{catalog.seed_display_name(seed)} has been deleted.")
    return redirect("inventory")


# ----- Plantings -----
def plantings(request):
    store = get_store(request)
    seeds = operations.load(store, storage.SEEDS)
    rows = []
    for planting in derived.sorted_plantings(operations.load(store, storage.PLANTINGS)):
        seed = catalog.find_seed(seeds, planting.get("seedId"))
        joined = catalog.join_seed(seed) if seed else None
        rows.append({
            "planting": planting,
            "seed_name": catalog.seed_display_name(seed),
            "stage": derived.planting_stage(planting),
            "sown": derived.parse_date(planting.get("sowingDate")),
            "milestones": derived.expected_milestones(planting, joined),
        })
    return render(request, "garden/plantings.html", {"rows": rows})


def planting_form(request, planting_id=None):
    store = get_store(request)
    existing = None
    if planting_id:
        existing = operations.get_record(store, storage.PLANTINGS, planting_id)
        if existing is None:
            return _missing(request, "planting", "plantings")
    seeds = derived.owned_seeds(operations.load(store, storage.SEEDS))

    if request.method == "POST":
        form = PlantingForm(request.POST, seeds=seeds)
        if form.is_valid():
            _, notices = operations.save_planting(store, form.to_record(existing))
            _notify(request, notices)
            return redirect("plantings")
    elif existing:
        form = PlantingForm(initial=PlantingForm.initial_from(existing), seeds=seeds)
    else:
        form = PlantingForm(initial={"sowing_date": date.today()}, seeds=seeds)
    return render(request, "garden/planting_form.html", {"form": form, "is_editing": existing is not None})


def planting_delete(request, planting_id):
    if request.method != "POST":
        return redirect("plantings")
    try:
        operations.delete_planting(get_store(request), planting_id)
    except RecordNotFound:
        return _missing(request, "planting", "plantings")
    messages.success(request, "Planting deleted.")
    return redirect("plantings")


# ----- Logs -----
def logs(request):
    store = get_store(request)
    seeds = operations.load(store, storage.SEEDS)
    tasks = catalog.all_tasks(operations.load(store, storage.CUSTOM_TASKS))
    term = request.GET.get("q", "").strip()
    current = _sort_params(request, LOG_SORT_FIELDS, ("date", derived.DESCENDING))

    visible = derived.filter_logs(operations.load(store, storage.LOGS), term, tasks, seeds)
    visible = derived.sort_records(visible, derived.log_sort_key(current[0], tasks), current[1])
    context = {
        "rows": [_log_row(log, tasks, seeds) for log in visible],
        "q": term,
        "sort": current,
        "sort_links": _sort_links(request, LOG_SORT_FIELDS, current),
    }
    return render(request, "garden/logs.html", context)


def log_form(request, log_id=None):
    store = get_store(request)
    existing = None
    if log_id:
        existing = operations.get_record(store, storage.LOGS, log_id)
        if existing is None:
            return _missing(request, "log", "logs")
    seeds = operations.load(store, storage.SEEDS)
    tasks = catalog.all_tasks(operations.load(store, storage.CUSTOM_TASKS))

    if request.method == "POST":
        form = LogForm(request.POST, request.FILES, tasks=tasks, seeds=seeds)
        if form.is_valid():
            record = form.to_record(existing)
            upload = form.cleaned_data.get("photo")
            if upload:
                photo_id = _store_photo(request, upload)
                if photo_id:
                    record["photoId"] = photo_id
            _, notices = operations.save_log(store, record, photos=get_photos())
            _notify(request, notices)
            return redirect("logs")
    elif existing:
        form = LogForm(initial=LogForm.initial_from(existing), tasks=tasks, seeds=seeds)
    else:
        form = LogForm(initial={"date": date.today(), "task_id": request.GET.get("task", "")}, tasks=tasks, seeds=seeds)
    context = {"form": form, "log": existing, "is_editing": existing is not None}
    return render(request, "garden/log_form.html", context)


def log_delete(request, log_id):
    if request.method != "POST":
        return redirect("logs")
    try:
        operations.delete_log(get_store(request), get_photos(), log_id)
    except RecordNotFound:
        return _missing(request, "log", "logs")
    messages.success(request, "Log deleted.")
    return redirect("logs")


# ----- Journal -----
def journal(request):
    store = get_store(request)
    term = request.GET.get("q", "").strip()
    entries = derived.filter_journal(operations.load(store, storage.JOURNAL_ENTRIES), term)
    rows = [{"entry": e, "date": derived.parse_date(e.get("date"))} for e in entries]
    return render(request, "garden/journal.html", {"rows": rows, "q": term})


def journal_form(request, entry_id=None):
    store = get_store(request)
    existing = None
    if entry_id:
        existing = operations.get_record(store, storage.JOURNAL_ENTRIES, entry_id)
        if existing is None:
            return _missing(request, "journal entry", "journal")

    if request.method == "POST":
        form = JournalEntryForm(request.POST, request.FILES)
        if form.is_valid():
            record = form.to_record(existing)
            for upload in form.cleaned_data.get("photos") or []:
                photo_id = _store_photo(request, upload)
                if photo_id:
                    record["photoIds"].append(photo_id)
            _, notices = operations.save_journal_entry(store, record, photos=get_photos())
            _notify(request, notices)
            return redirect("journal")
    elif existing:
        form = JournalEntryForm(initial=JournalEntryForm.initial_from(existing))
    else:
        form = JournalEntryForm(initial={"date": date.today()})
    context = {"form": form, "entry": existing, "is_editing": existing is not None}
    return render(request, "garden/journal_form.html", context)


def journal_delete(request, entry_id):
    if request.method != "POST":
        return redirect("journal")
    try:
        operations.delete_journal_entry(get_store(request), get_photos(), entry_id)
    except RecordNotFound:
        return _missing(request, "journal entry", "journal")
    messages.success(request, "Journal entry deleted.")
    return redirect("journal")


def journal_photo_delete(request, entry_id, photo_id):
    if request.method != "POST":
        return redirect("journal_edit", entry_id=entry_id)
    try:
        operations.remove_journal_photo(get_store(request), get_photos(), entry_id, photo_id)
    except RecordNotFound:
        return _missing(request, "photo", "journal")
    messages.success(request, "Photo removed.")
    return redirect("journal_edit", entry_id=entry_id)


# ----- Schedule -----
def schedule(request):
    store = get_store(request)
    all_logs = operations.load(store, storage.LOGS)
    tasks = catalog.all_tasks(operations.load(store, storage.CUSTOM_TASKS))
    term = request.GET.get("q", "").strip()
    current = _sort_params(request, derived.SCHEDULE_SORT_FIELDS, ("due", derived.ASCENDING))
    today = date.today()

    visible = derived.filter_scheduled(operations.load(store, storage.SCHEDULED_TASKS), term, tasks)
    visible = derived.sort_records(visible, derived.schedule_sort_key(current[0], tasks, all_logs), current[1])
    rows = []
    for task in visible:
        last = derived.latest_log_for_task(all_logs, task.get("taskId"))
        rows.append({
            "scheduled": task,
            "task": catalog.get_task_by_id(tasks, task.get("taskId")),
            "task_name": catalog.task_name(tasks, task.get("taskId")),
            "overdue": derived.is_overdue(task, all_logs, today),
            "next_due": derived.next_due_date(task, all_logs),
            "last_done": derived.parse_date(last.get("date")) if last else None,
        })
    context = {
        "rows": rows,
        "q": term,
        "sort": current,
        "sort_links": _sort_links(request, derived.SCHEDULE_SORT_FIELDS, current),
    }
    return render(request, "garden/schedule.html", context)


def schedule_form(request, task_id=None):
    store = get_store(request)
    existing = None
    if task_id:
        existing = operations.get_record(store, storage.SCHEDULED_TASKS, task_id)
        if existing is None:
            return _missing(request, "scheduled task", "schedule")
    tasks = catalog.all_tasks(operations.load(store, storage.CUSTOM_TASKS))

    if request.method == "POST":
        form = ScheduledTaskForm(request.POST, tasks=tasks)
        if form.is_valid():
            try:
                _, notices = operations.save_scheduled_task(store, form.to_record(existing))
            except GardenError as e:
                form.add_error(None, str(e))
            else:
                _notify(request, notices)
                return redirect("schedule")
    elif existing:
        form = ScheduledTaskForm(initial=ScheduledTaskForm.initial_from(existing), tasks=tasks)
    else:
        form = ScheduledTaskForm(initial={"recurrence": "weekly", "notes": request.GET.get("notes", "")}, tasks=tasks)
    return render(request, "garden/schedule_form.html", {"form": form, "is_editing": existing is not None})


def schedule_delete(request, task_id):
    if request.method != "POST":
        return redirect("schedule")
    try:
        operations.delete_scheduled_task(get_store(request), task_id)
    except RecordNotFound:
        return _missing(request, "scheduled task", "schedule")
    messages.success(request, "Scheduled task deleted.")
    return redirect("schedule")


def schedule_complete(request, task_id):
    if request.method != "POST":
        return redirect("schedule")
    try:
        _, notices = operations.complete_scheduled_task(get_store(request), task_id)
    except RecordNotFound:
        return _missing(request, "scheduled task", "schedule")
    _notify(request, notices)
    return redirect("schedule")


# ----- Settings -----
def _render_settings(request, store, task_form=None):
    context = {
        "custom_tasks": operations.load(store, storage.CUSTOM_TASKS),
        "task_form": task_form or CustomTaskForm(),
        "theme_form": ThemeForm(initial={"theme": operations.get_theme(store)}),
        "import_form": ImportForm(),
    }
    return render(request, "garden/settings.html", context)


def settings_view(request):
    return _render_settings(request, get_store(request))


def custom_task_add(request):
    if request.method != "POST":
        return redirect("settings")
    store = get_store(request)
    form = CustomTaskForm(request.POST)
    if not form.is_valid():
        return _render_settings(request, store, task_form=form)
    try:
        task = operations.add_custom_task(store, form.cleaned_data["name"])
    except GardenError as e:
        form.add_error("name", str(e))
        return _render_settings(request, store, task_form=form)
    messages.success(request, f'Task type "{task["name"]}" added.')
    return redirect("settings")


def custom_task_delete(request, task_id):
    if request.method != "POST":
        return redirect("settings")
    try:
        task = operations.delete_custom_task(get_store(request), task_id)
    except RecordNotFound:
        return _missing(request, "task type", "settings")
    messages.success(request, f'Task type "{task.get("name")}" deleted.')
    return redirect("settings")


def theme_update(request):
    if request.method != "POST":
        return redirect("settings")
    form = ThemeForm(request.POST)
    if form.is_valid():
        operations.set_theme(get_store(request), form.cleaned_data["theme"])
        messages.success(request, "Theme updated.")
    else:
        messages.error(request, "Unknown theme.")
    return redirect("settings")


def export_view(request):
    store = get_store(request)
    data = transfer.export_data(store)
    response = HttpResponse(json.dumps(data, indent=2), content_type="application/json")
    response["Content-Disposition"] = f'attachment; filename="{transfer.export_filename()}"'
    logger.info("Exported garden %s", store.garden_id)
    return response


def import_view(request):
    if request.method != "POST":
        return redirect("settings")
    form = ImportForm(request.POST, request.FILES)
    if not form.is_valid():
        messages.error(request, "Please choose a backup file to import.")
        return redirect("settings")
    try:
        transfer.import_data(get_store(request), form.cleaned_data["file"].read())
    except GardenImportError as e:
        logger.warning("Import rejected: %s", e)
        messages.error(request, f"Import failed: {e}")
        return redirect("settings")
    messages.success(request, "Data imported successfully.")
    return redirect("dashboard")


# ----- Photos -----
def photo(request, photo_id):
    data_url = get_photos().get(photo_id)
    if data_url is None:
        raise Http404("Photo not found")
    try:
        content_type, body = decode_data_url(data_url)
    except ValueError as e:
        logger.warning("Photo %s holds an invalid data URL: %s", photo_id, e)
        raise Http404("Photo not found") from e
    return HttpResponse(body, content_type=content_type)
