from . import operations
from .views import get_store

NAV_PAGES = [
    ("dashboard", "Dashboard"),
    ("inventory", "Inventory"),
    ("plantings", "Plantings"),
    ("journal", "Journal"),
    ("logs", "Logs"),
    ("schedule", "Schedule"),
    ("settings", "Settings"),
]


def garden(request):
    """Theme and side navigation for every page."""
    match = getattr(request, "resolver_match", None)
    return {
        "theme": operations.get_theme(get_store(request)),
        "nav_pages": NAV_PAGES,
        "active_page": match.url_name if match else "",
    }
