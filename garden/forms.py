from django import forms

from . import catalog
from .derived import RECURRENCES
from .operations import THEMES

DATE_WIDGET = forms.DateInput(attrs={"type": "date"})


def _iso(value):
    return value.isoformat() if value else None


def _compact(record):
    """Drop optional fields left empty."""
    return {k: v for k, v in record.items() if v is not None and v != ""}


def seed_choices(seeds, blank_label="Select a seed"):
    choices = [("", blank_label)]
    choices += [(s["id"], catalog.seed_display_name(s)) for s in seeds]
    return choices


def task_choices(tasks):
    return [("", "Select an activity")] + [(t["id"], t["name"]) for t in tasks]


class MultipleFileInput(forms.ClearableFileInput):
    allow_multiple_selected = True


class MultipleFileField(forms.FileField):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault("widget", MultipleFileInput())
        super().__init__(*args, **kwargs)

    def clean(self, data, initial=None):
        single_file_clean = super().clean
        if isinstance(data, (list, tuple)):
            return [single_file_clean(d, initial) for d in data]
        return [single_file_clean(data, initial)] if data else []


def _check_image(upload):
    content_type = getattr(upload, "content_type", "") or ""
    if not content_type.startswith("image/"):
        raise forms.ValidationError("Please upload an image file.")
    return upload


class SeedForm(forms.Form):
    is_wishlist = forms.BooleanField(required=False, label="Add to Wishlist")
    name = forms.CharField(max_length=100, min_length=2,
                           error_messages={"min_length": "Name must be at least 2 characters."})
    source = forms.CharField(max_length=100, min_length=2,
                             error_messages={"min_length": "Source must be at least 2 characters."})
    packet_count = forms.IntegerField(required=False, min_value=0, initial=0, label="Packets in Stock",
                                      error_messages={"min_value": "Packet count cannot be negative."})
    seeds_per_packet = forms.IntegerField(required=False, min_value=0)
    low_stock_threshold = forms.IntegerField(required=False, min_value=0,
                                             help_text="Defaults to 10 when left empty.")
    seed_details_id = forms.ChoiceField(required=False, label="Seed database entry")
    planting_depth = forms.CharField(required=False, max_length=50)
    spacing = forms.CharField(required=False, max_length=50)
    days_to_germination = forms.IntegerField(required=False, min_value=0)
    days_to_harvest = forms.IntegerField(required=False, min_value=0)
    tags = forms.CharField(required=False, help_text="Comma separated")
    purchase_year = forms.IntegerField(required=False, min_value=1900, max_value=2100)
    user_notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}), label="Notes")

    FIELD_MAP = {
        "name": "name",
        "source": "source",
        "packet_count": "packetCount",
        "seeds_per_packet": "seedsPerPacket",
        "low_stock_threshold": "lowStockThreshold",
        "seed_details_id": "seedDetailsId",
        "planting_depth": "plantingDepth",
        "spacing": "spacing",
        "days_to_germination": "daysToGermination",
        "days_to_harvest": "daysToHarvest",
        "purchase_year": "purchaseYear",
        "user_notes": "userNotes",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["seed_details_id"].choices = [("", "None")] + [
            (e["id"], e["name"]) for e in sorted(catalog.load_seed_database(), key=lambda e: e["name"])
        ]

    @classmethod
    def initial_from(cls, seed):
        initial = {field: seed.get(key) for field, key in cls.FIELD_MAP.items()}
        initial["is_wishlist"] = bool(seed.get("isWishlist"))
        initial["tags"] = ", ".join(seed.get("tags") or [])
        if not initial.get("name"):
            initial["name"] = catalog.seed_display_name(seed)
        return initial

    def to_record(self, existing=None):
        data = self.cleaned_data
        record = {key: data.get(field) for field, key in self.FIELD_MAP.items()}
        record["isWishlist"] = bool(data.get("is_wishlist"))
        record["tags"] = [t.strip() for t in (data.get("tags") or "").split(",") if t.strip()]
        record["userNotes"] = data.get("user_notes") or ""
        if record["isWishlist"] or record["packetCount"] is None:
            record["packetCount"] = 0
        record = _compact(record)
        record.setdefault("userNotes", "")
        if existing:
            record["id"] = existing["id"]
        return record


class LogForm(forms.Form):
    task_id = forms.ChoiceField(label="Activity", error_messages={"required": "Please select an activity."})
    date = forms.DateField(widget=DATE_WIDGET, error_messages={"required": "A date is required."})
    seed_id = forms.ChoiceField(required=False, label="Seed")
    quantity = forms.IntegerField(required=False, min_value=0,
                                  help_text="Packets planted or items harvested")
    weight = forms.FloatField(required=False, min_value=0, help_text="Harvest weight (lbs)")
    location = forms.CharField(required=False, max_length=100)
    substrate = forms.CharField(required=False, max_length=100)
    quantity_germinated = forms.IntegerField(required=False, min_value=0)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))
    photo = forms.FileField(required=False)
    remove_photo = forms.BooleanField(required=False)

    FIELD_MAP = {
        "task_id": "taskId",
        "seed_id": "seedId",
        "quantity": "quantity",
        "weight": "weight",
        "location": "location",
        "substrate": "substrate",
        "quantity_germinated": "quantityGerminated",
        "notes": "notes",
    }

    def __init__(self, *args, tasks=(), seeds=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["task_id"].choices = task_choices(tasks)
        self.fields["seed_id"].choices = seed_choices(seeds, blank_label="No seed")

    def clean_photo(self):
        photo = self.cleaned_data.get("photo")
        return _check_image(photo) if photo else None

    @classmethod
    def initial_from(cls, log):
        initial = {field: log.get(key) for field, key in cls.FIELD_MAP.items()}
        initial["date"] = (log.get("date") or "")[:10]
        return initial

    def to_record(self, existing=None):
        data = self.cleaned_data
        record = {key: data.get(field) for field, key in self.FIELD_MAP.items()}
        record["date"] = _iso(data["date"])
        record = _compact(record)
        record.setdefault("notes", "")
        if existing:
            record["id"] = existing["id"]
            if existing.get("photoId") and not data.get("remove_photo"):
                record["photoId"] = existing["photoId"]
        return record


class PlantingForm(forms.Form):
    seed_id = forms.ChoiceField(label="Seed", error_messages={"required": "Please select a seed."})
    sowing_date = forms.DateField(widget=DATE_WIDGET, error_messages={"required": "Sowing date is required."})
    germination_date = forms.DateField(required=False, widget=DATE_WIDGET)
    potting_up_date = forms.DateField(required=False, widget=DATE_WIDGET)
    hardening_off_date = forms.DateField(required=False, widget=DATE_WIDGET)
    planting_out_date = forms.DateField(required=False, widget=DATE_WIDGET)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))

    DATE_FIELDS = {
        "sowing_date": "sowingDate",
        "germination_date": "germinationDate",
        "potting_up_date": "pottingUpDate",
        "hardening_off_date": "hardeningOffDate",
        "planting_out_date": "plantingOutDate",
    }

    def __init__(self, *args, seeds=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["seed_id"].choices = seed_choices(seeds)

    def clean(self):
        cleaned = super().clean()
        sown = cleaned.get("sowing_date")
        if sown:
            for field in list(self.DATE_FIELDS)[1:]:
                value = cleaned.get(field)
                if value and value < sown:
                    self.add_error(field, "This date cannot be before the sowing date.")
        return cleaned

    @classmethod
    def initial_from(cls, planting):
        initial = {field: (planting.get(key) or "")[:10] for field, key in cls.DATE_FIELDS.items()}
        initial["seed_id"] = planting.get("seedId")
        initial["notes"] = planting.get("notes", "")
        return initial

    def to_record(self, existing=None):
        data = self.cleaned_data
        record = {key: _iso(data.get(field)) for field, key in self.DATE_FIELDS.items()}
        record["seedId"] = data["seed_id"]
        record["notes"] = data.get("notes") or ""
        record = _compact(record)
        if existing:
            record["id"] = existing["id"]
        return record


class JournalEntryForm(forms.Form):
    title = forms.CharField(max_length=200, min_length=2,
                            error_messages={"min_length": "Title must be at least 2 characters."})
    date = forms.DateField(widget=DATE_WIDGET, error_messages={"required": "A date is required."})
    content = forms.CharField(widget=forms.Textarea(attrs={"rows": 8}),
                              error_messages={"required": "Content is required."})
    photos = MultipleFileField(required=False)

    def clean_photos(self):
        return [_check_image(p) for p in self.cleaned_data.get("photos") or []]

    @classmethod
    def initial_from(cls, entry):
        return {"title": entry.get("title"), "date": (entry.get("date") or "")[:10], "content": entry.get("content")}

    def to_record(self, existing=None):
        data = self.cleaned_data
        record = {
            "title": data["title"],
            "date": _iso(data["date"]),
            "content": data["content"],
            "photoIds": list((existing or {}).get("photoIds") or []),
        }
        if existing:
            record["id"] = existing["id"]
        return record


class ScheduledTaskForm(forms.Form):
    task_id = forms.ChoiceField(label="Activity", error_messages={"required": "Please select an activity."})
    recurrence = forms.ChoiceField(choices=[(r, r.capitalize()) for r in RECURRENCES],
                                   error_messages={"required": "Please select a recurrence."})
    start_date = forms.DateField(required=False, widget=DATE_WIDGET)
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))

    def __init__(self, *args, tasks=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["task_id"].choices = task_choices(tasks)

    @classmethod
    def initial_from(cls, task):
        return {
            "task_id": task.get("taskId"),
            "recurrence": task.get("recurrence"),
            "start_date": (task.get("startDate") or "")[:10],
            "notes": task.get("notes", ""),
        }

    def to_record(self, existing=None):
        data = self.cleaned_data
        record = {
            "taskId": data["task_id"],
            "recurrence": data["recurrence"],
            "notes": data.get("notes") or "",
        }
        if data.get("start_date"):
            record["startDate"] = _iso(data["start_date"])
        if existing:
            record["id"] = existing["id"]
        return record


class CustomTaskForm(forms.Form):
    name = forms.CharField(max_length=60, min_length=2,
                           widget=forms.TextInput(attrs={"placeholder": "e.g., Fertilizing"}),
                           error_messages={"min_length": "Task name must be at least 2 characters.",
                                           "required": "Task name must be at least 2 characters."})


class ThemeForm(forms.Form):
    theme = forms.ChoiceField(choices=[(t, t.capitalize()) for t in THEMES])


class ImportForm(forms.Form):
    file = forms.FileField(label="Backup file (.json)")
