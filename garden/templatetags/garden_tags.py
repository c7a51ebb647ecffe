from django import template

from .. import catalog

register = template.Library()


@register.filter
def icon(key):
    """Glyph for a stored icon key."""
    return catalog.icon_for(key)[0]


@register.filter
def icon_label(key):
    return catalog.icon_for(key)[1]
