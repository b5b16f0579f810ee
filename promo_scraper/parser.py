import logging
from typing import Dict, List, Protocol

from selectolax.parser import HTMLParser

from .models import PROMOTION_FIELDS, FieldSelectorMap, PromotionRecord

logger = logging.getLogger(__name__)


class Document(Protocol):
    """Something CSS selectors can be run against."""

    url: str

    async def select_texts(self, selector: str) -> List[str]:
        """Trimmed text of every element matching `selector`, in document order."""
        ...


class StaticDocument:
    """Captured HTML parsed with selectolax, for offline extraction."""

    def __init__(self, html: str, url: str = ""):
        self.tree = HTMLParser(html)
        self.url = url

    async def select_texts(self, selector: str) -> List[str]:
        try:
            nodes = self.tree.css(selector)
        except Exception as e:
            logger.debug("Selector %r rejected by parser: %s", selector, e)
            return []
        return [(node.text(deep=True) or "").strip() for node in nodes]


class RecordExtractor:
    """Applies a combined selector map to a document and builds promotion records."""

    def __init__(self, selector_map: FieldSelectorMap):
        self.selector_map = selector_map

    async def collect_fields(self, document: Document) -> Dict[str, List[str]]:
        """Matched texts per field; empty or invalid selectors give an empty list."""
        fields: Dict[str, List[str]] = {}
        for field in PROMOTION_FIELDS:
            selector = self.selector_map.get(field)
            if not selector:
                fields[field] = []
                continue
            try:
                fields[field] = await document.select_texts(selector)
            except Exception as e:
                logger.debug("Selector %r for %s failed: %s", selector, field, e)
                fields[field] = []
        return fields

    async def extract(self, document: Document) -> List[PromotionRecord]:
        fields = await self.collect_fields(document)
        return assemble_records(fields, document.url)


def assemble_records(fields: Dict[str, List[str]], url: str) -> List[PromotionRecord]:
    """
    Pair field values by position against the title list.

    Index i of every other field is assumed to belong to title i; missing
    entries become empty strings. Records with neither title nor
    description are dropped.
    """
    titles = fields.get("title", [])
    records = []
    for i, title in enumerate(titles):
        values = {
            field: (fields.get(field, [])[i] if i < len(fields.get(field, [])) else "")
            for field in PROMOTION_FIELDS
        }
        values["title"] = title
        record = PromotionRecord(url=url, **values)
        if record.is_valid:
            records.append(record)
    return records
