"""State for a single article detail view, including its image download."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from paperboy.dates import format_publication_date
from paperboy.errors import NetworkError
from paperboy.htmltext import html_to_paragraphs, html_to_text
from paperboy.models import Article

logger = logging.getLogger(__name__)

NO_CONTENT = "No content available"


class ImageSource(Protocol):
    async def fetch_image(self, url: str) -> bytes: ...


class ArticleDetailSession:
    """Detail state for one article.

    Construct inside a running event loop: when the article has an image URL,
    the download is scheduled immediately and ``is_loading_image`` is True
    until it finishes. Image failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        article: Article,
        image_source: ImageSource,
        *,
        date_formatter: Callable[[str], str] = format_publication_date,
    ) -> None:
        self._article = article
        self._image_source = image_source
        self._date_formatter = date_formatter
        self._image_data: bytes | None = None
        self._is_loading_image = False
        self._image_task: asyncio.Task[None] | None = None
        self._closed = False

        image_url = article.image_url
        if image_url:
            self._is_loading_image = True
            self._image_task = asyncio.get_running_loop().create_task(self._load_image(image_url))

    @property
    def article(self) -> Article:
        return self._article

    @property
    def image_data(self) -> bytes | None:
        return self._image_data

    @property
    def is_loading_image(self) -> bool:
        return self._is_loading_image

    @property
    def title(self) -> str:
        return self._article.title

    @property
    def formatted_date(self) -> str:
        return self._date_formatter(self._article.web_publication_date)

    @property
    def body_html(self) -> str | None:
        return self._article.full_body

    @property
    def body(self) -> str:
        html = self._article.full_body
        if html is None:
            return NO_CONTENT
        return html_to_text(html)

    @property
    def body_paragraphs(self) -> list[str]:
        html = self._article.full_body
        if html is None:
            return []
        return html_to_paragraphs(html)

    async def wait_for_image(self) -> bytes | None:
        """Wait for the image download, if one was started, and return the bytes."""

        if self._image_task is not None and not self._closed:
            await self._image_task
        return self._image_data

    def close(self) -> None:
        """Discard the session, cancelling an unfinished image download."""

        self._closed = True
        if self._image_task is not None and not self._image_task.done():
            self._image_task.cancel()
            self._is_loading_image = False

    async def _load_image(self, url: str) -> None:
        try:
            self._image_data = await self._image_source.fetch_image(url)
        except NetworkError as exc:
            logger.info("Image for article %s unavailable: %s", self._article.id, exc)
        finally:
            self._is_loading_image = False
