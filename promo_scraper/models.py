from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator


# Field name -> key used by the inference service and the HTTP payload
FIELD_ALIASES: Dict[str, str] = {
    "payment_method": "medioPago",
    "title": "titulo",
    "description": "descripcion",
    "date": "fecha",
    "conditions": "condiciones",
}

# camelCase names the inference service sometimes answers with instead
FIELD_CAMEL_NAMES: Dict[str, str] = {
    "payment_method": "paymentMethod",
    "title": "title",
    "description": "description",
    "date": "date",
    "conditions": "conditions",
}

PROMOTION_FIELDS: List[str] = list(FIELD_ALIASES)


class FieldSelectorMap(BaseModel):
    """Mapping of promotion field -> CSS selector (empty string matches nothing)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    payment_method: str = Field("", alias="medioPago")
    title: str = Field("", alias="titulo")
    description: str = Field("", alias="descripcion")
    date: str = Field("", alias="fecha")
    conditions: str = Field("", alias="condiciones")

    @model_validator(mode="before")
    @classmethod
    def accept_camel_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field, camel in FIELD_CAMEL_NAMES.items():
            alias = FIELD_ALIASES[field]
            if alias not in data and field not in data and camel in data:
                data[alias] = data.pop(camel)
        return data

    @field_validator("*", mode="before")
    @classmethod
    def coerce_selector(cls, v):
        if v is None:
            return ""
        if isinstance(v, (list, tuple)):
            return ", ".join(str(s).strip() for s in v if s and str(s).strip())
        if not isinstance(v, str):
            return str(v)
        return v.strip()

    def get(self, field: str) -> str:
        return getattr(self, field)

    @property
    def is_empty(self) -> bool:
        return not any(self.get(f) for f in PROMOTION_FIELDS)


class PromotionRecord(BaseModel):
    """A single promotion extracted from a page."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    payment_method: str = Field("", alias="medioPago")
    title: str = Field("", alias="titulo")
    description: str = Field("", alias="descripcion")
    date: str = Field("", alias="fecha")
    conditions: str = Field("", alias="condiciones")
    url: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @property
    def is_valid(self) -> bool:
        return bool(self.title or self.description)

    def as_wire(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class ChunkResult(BaseModel):
    """Outcome of selector inference for one chunk."""
    index: int
    selectors: Optional[FieldSelectorMap] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.selectors is not None


class ScrapeOutcome(BaseModel):
    """Result of one session. Exactly one of records/error is set."""
    model_config = ConfigDict(frozen=True)

    url: str
    success: bool
    records: Optional[List[PromotionRecord]] = None
    error: Optional[str] = None
    chunks_total: int = 0
    chunks_skipped: int = 0

    @model_validator(mode="after")
    def check_exclusive(self):
        if self.success and (self.records is None or self.error is not None):
            raise ValueError("successful outcome must carry records and no error")
        if not self.success and (self.error is None or self.records is not None):
            raise ValueError("failed outcome must carry an error and no records")
        return self

    @classmethod
    def succeeded(cls, url: str, records: List[PromotionRecord], chunks_total: int = 0, chunks_skipped: int = 0) -> "ScrapeOutcome":
        return cls(url=url, success=True, records=records, chunks_total=chunks_total, chunks_skipped=chunks_skipped)

    @classmethod
    def failed(cls, url: str, error: str, chunks_total: int = 0, chunks_skipped: int = 0) -> "ScrapeOutcome":
        return cls(url=url, success=False, error=error, chunks_total=chunks_total, chunks_skipped=chunks_skipped)


class BatchResult(BaseModel):
    """Aggregated result of a batch of sessions."""
    model_config = ConfigDict(frozen=True)

    promotions: List[PromotionRecord]
    errors: List[str]
    execution_time_ms: int

    def as_response(self) -> Dict[str, Any]:
        """Body of the HTTP 200 response; `errors` is omitted when empty."""
        body: Dict[str, Any] = {
            "promotions": [p.as_wire() for p in self.promotions],
            "executionTimeMs": self.execution_time_ms,
        }
        if self.errors:
            body["errors"] = list(self.errors)
        return body


class ScrapeRequest(BaseModel):
    """Body of a scrape request: 1 to 10 http(s) URLs."""
    urls: List[HttpUrl] = Field(..., min_length=1, max_length=10)

    @property
    def url_strings(self) -> List[str]:
        return [str(u) for u in self.urls]
