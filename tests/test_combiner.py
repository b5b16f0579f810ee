from promo_scraper.combiner import combine_selectors
from promo_scraper.models import FieldSelectorMap


def test_union_in_chunk_order_without_dedup():
    maps = [
        FieldSelectorMap(title=".a", description=".d1"),
        FieldSelectorMap(title=".b"),
        FieldSelectorMap(title=".a", description=".d2"),
    ]
    combined = combine_selectors(maps)
    assert combined.title == ".a, .b, .a"
    assert combined.description == ".d1, .d2"


def test_field_absent_everywhere_is_empty():
    combined = combine_selectors([FieldSelectorMap(title=".t"), FieldSelectorMap()])
    assert combined.payment_method == ""
    assert combined.date == ""
    assert combined.conditions == ""


def test_no_maps():
    assert combine_selectors([]).is_empty


def test_single_map_unchanged():
    only = FieldSelectorMap(payment_method=".card", title="h3", description="p", date="time", conditions=".tyc")
    assert combine_selectors([only]) == only
