"""Domain models used by paperboy."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)


class ArticleFields(BaseModel):
    """Optional per-article fields requested through ``show-fields``."""

    model_config = _WIRE_CONFIG

    headline: str | None = None
    trail_text: str | None = None
    body_text: str | None = None
    thumbnail: str | None = None
    main: str | None = None
    body: str | None = None

    @property
    def image_url(self) -> str | None:
        return self.thumbnail if self.thumbnail is not None else self.main

    @property
    def full_body(self) -> str | None:
        return self.body if self.body is not None else self.body_text


class Article(BaseModel):
    """A single search result."""

    model_config = _WIRE_CONFIG

    id: str
    type: str
    section_id: str
    section_name: str
    web_publication_date: str
    web_title: str
    web_url: str
    api_url: str
    fields: ArticleFields | None = None
    is_hosted: bool
    # Hosted and some live content come back without a pillar.
    pillar_id: str | None = None
    pillar_name: str | None = None

    @property
    def image_url(self) -> str | None:
        return self.fields.image_url if self.fields else None

    @property
    def full_body(self) -> str | None:
        return self.fields.full_body if self.fields else None

    @property
    def title(self) -> str:
        if self.fields and self.fields.headline is not None:
            return self.fields.headline
        return self.web_title

    @property
    def trail_text(self) -> str | None:
        return self.fields.trail_text if self.fields else None


class ResponsePage(BaseModel):
    """One decoded page of search results."""

    model_config = _WIRE_CONFIG

    status: str
    total: int = Field(ge=0)
    start_index: int
    page_size: int
    current_page: int
    pages: int
    order_by: str
    results: tuple[Article, ...]

    @property
    def has_more(self) -> bool:
        return self.current_page < self.pages


class SearchEnvelope(BaseModel):
    """Top-level ``{"response": {...}}`` wrapper returned by ``/search``."""

    model_config = _WIRE_CONFIG

    response: ResponsePage
