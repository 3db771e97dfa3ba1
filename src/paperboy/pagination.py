"""Pagination and loading-state machine for an article list session."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from paperboy.config import DEFAULT_PAGE_SIZE
from paperboy.dates import format_publication_date
from paperboy.errors import NetworkError
from paperboy.models import Article, ResponsePage

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    async def fetch_page(self, page: int, page_size: int) -> ResponsePage: ...


class LoadingStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOADING_MORE = "loading_more"
    ERROR = "error"


@dataclass(frozen=True)
class LoadingState:
    """Current loading status; ``message`` is only set for errors."""

    status: LoadingStatus
    message: str | None = None

    @classmethod
    def error(cls, message: str) -> "LoadingState":
        return cls(LoadingStatus.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.status == LoadingStatus.ERROR


IDLE = LoadingState(LoadingStatus.IDLE)
LOADING = LoadingState(LoadingStatus.LOADING)
LOADED = LoadingState(LoadingStatus.LOADED)
LOADING_MORE = LoadingState(LoadingStatus.LOADING_MORE)


@dataclass(frozen=True)
class ListSnapshot:
    """Immutable view of the session after a transition."""

    state: LoadingState
    articles: tuple[Article, ...]
    current_page: int
    has_more_pages: bool

    @property
    def can_load_more(self) -> bool:
        return self.has_more_pages and self.state != LOADING_MORE

    @property
    def is_loading_more(self) -> bool:
        return self.state == LOADING_MORE


Subscriber = Callable[[ListSnapshot], None]


class ArticleListSession:
    """Owns the accumulated article list for one list view.

    All methods must run on the same event loop. ``load_more`` checks and sets
    the ``loading_more`` state before its first ``await``, which is what keeps
    at most one load-more request in flight.

    Every ``fetch_first_page``/``refresh`` starts a new generation. Completions
    belonging to an older generation are dropped, so a slow response from a
    superseded request can no longer overwrite newer state.
    """

    def __init__(
        self,
        source: PageSource,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        date_formatter: Callable[[str], str] = format_publication_date,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._source = source
        self._page_size = page_size
        self._date_formatter = date_formatter

        self._articles: list[Article] = []
        self._current_page = 1
        self._has_more_pages = True
        self._state = IDLE
        self._generation = 0
        self._subscribers: list[Subscriber] = []

    @property
    def articles(self) -> tuple[Article, ...]:
        return tuple(self._articles)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def has_more_pages(self) -> bool:
        return self._has_more_pages

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def state(self) -> LoadingState:
        return self._state

    @property
    def can_load_more(self) -> bool:
        return self._has_more_pages and self._state != LOADING_MORE

    @property
    def is_loading_more(self) -> bool:
        return self._state == LOADING_MORE

    @property
    def snapshot(self) -> ListSnapshot:
        return ListSnapshot(
            state=self._state,
            articles=tuple(self._articles),
            current_page=self._current_page,
            has_more_pages=self._has_more_pages,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for every transition; returns an unsubscribe function."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def formatted_date(self, article: Article) -> str:
        return self._date_formatter(article.web_publication_date)

    async def fetch_first_page(self) -> ListSnapshot:
        """Reset pagination and load page 1, replacing the article list on success."""

        self._generation += 1
        generation = self._generation
        self._current_page = 1
        self._has_more_pages = True
        self._transition(LOADING)

        try:
            page = await self._source.fetch_page(1, self._page_size)
        except NetworkError as exc:
            if self._is_stale(generation, "first page"):
                return self.snapshot
            # The previous list is kept; presentation decides whether to show it.
            self._transition(LoadingState.error(str(exc)))
            return self.snapshot

        if self._is_stale(generation, "first page"):
            return self.snapshot

        self._articles = list(page.results)
        self._has_more_pages = page.has_more
        self._transition(LOADED)
        return self.snapshot

    async def refresh(self) -> ListSnapshot:
        return await self.fetch_first_page()

    async def load_more(self) -> ListSnapshot:
        """Append the next page. Ignored while another load-more is running or at the end."""

        if not self.can_load_more:
            return self.snapshot

        generation = self._generation
        self._current_page += 1
        requested_page = self._current_page
        self._transition(LOADING_MORE)

        try:
            page = await self._source.fetch_page(requested_page, self._page_size)
        except NetworkError as exc:
            if self._is_stale(generation, f"page {requested_page}"):
                return self.snapshot
            self._current_page -= 1
            self._transition(LoadingState.error(str(exc)))
            return self.snapshot

        if self._is_stale(generation, f"page {requested_page}"):
            return self.snapshot

        self._articles.extend(page.results)
        self._has_more_pages = page.has_more
        self._transition(LOADED)
        return self.snapshot

    def _is_stale(self, generation: int, label: str) -> bool:
        if generation == self._generation:
            return False
        logger.debug("Discarding stale completion for %s (generation %d < %d)", label, generation, self._generation)
        return True

    def _transition(self, state: LoadingState) -> None:
        self._state = state
        if state.is_error:
            logger.warning("Article list entered error state: %s", state.message)
        snapshot = self.snapshot
        for callback in list(self._subscribers):
            callback(snapshot)
