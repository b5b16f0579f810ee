from typing import Iterable

from .models import PROMOTION_FIELDS, FieldSelectorMap


def combine_selectors(selector_maps: Iterable[FieldSelectorMap]) -> FieldSelectorMap:
    """
    Merge per-chunk selector maps into one.

    Each field becomes the comma-joined union of every non-empty selector
    for it, in chunk order and without deduplication. A field no chunk
    produced stays empty.
    """
    maps = list(selector_maps)
    combined = {}
    for field in PROMOTION_FIELDS:
        selectors = [m.get(field) for m in maps if m.get(field)]
        combined[field] = ", ".join(selectors)
    return FieldSelectorMap(**combined)
