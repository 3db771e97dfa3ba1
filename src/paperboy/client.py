"""Async client for the content API search endpoint and article images."""

from __future__ import annotations

import logging
from types import TracebackType

import httpx
from pydantic import ValidationError

from paperboy.config import DEFAULT_PAGE_SIZE, ClientConfig
from paperboy.errors import DecodingError, InvalidRequestError, ServerError
from paperboy.models import ResponsePage, SearchEnvelope

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "/search"
SHOW_FIELDS = "headline,trailText,bodyText,thumbnail,main,body"
ORDER_BY = "newest"


def _error_detail(response: httpx.Response, exc: httpx.HTTPStatusError) -> str:
    """Prefer the API's own error message over the generic httpx one."""

    try:
        payload = response.json()
    except ValueError:
        return str(exc)
    if isinstance(payload, dict):
        inner = payload.get("response")
        if isinstance(inner, dict) and isinstance(inner.get("message"), str):
            return inner["message"]
        if isinstance(payload.get("message"), str):
            return payload["message"]
    return str(exc)


class ContentClient:
    """Issues paginated search requests and image downloads."""

    def __init__(self, config: ClientConfig, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=config.timeout_seconds,
            follow_redirects=True,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def search_params(self, page: int, page_size: int) -> dict[str, str]:
        return {
            "api-key": self._config.api_key,
            "show-fields": SHOW_FIELDS,
            "page-size": str(page_size),
            "page": str(page),
            "order-by": ORDER_BY,
        }

    async def fetch_page(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> ResponsePage:
        """Fetch and decode one page of newest-first search results."""

        if page < 1 or page_size < 1:
            raise InvalidRequestError(f"Invalid page request: page={page}, page_size={page_size}")

        url = f"{self._config.base_url}{SEARCH_ENDPOINT}"
        logger.debug("Requesting %s page=%d page_size=%d", url, page, page_size)

        try:
            response = await self._http.get(url, params=self.search_params(page, page_size))
            response.raise_for_status()
        except httpx.InvalidURL as exc:
            raise InvalidRequestError(f"Invalid URL: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            detail = _error_detail(exc.response, exc)
            logger.warning("Search request for page %d failed: %s", page, detail)
            raise ServerError(detail) from exc
        except httpx.HTTPError as exc:
            logger.warning("Search request for page %d failed: %s", page, exc)
            raise ServerError(str(exc)) from exc

        try:
            envelope = SearchEnvelope.model_validate_json(response.content)
        except ValidationError as exc:
            logger.warning("Could not decode search response for page %d: %s", page, exc)
            raise DecodingError() from exc

        result = envelope.response
        logger.info(
            "Fetched page %d/%d with %d article(s)",
            result.current_page,
            result.pages,
            len(result.results),
        )
        return result

    async def fetch_image(self, url: str) -> bytes:
        """Download raw image bytes from an absolute URL."""

        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except (httpx.InvalidURL, httpx.HTTPError) as exc:
            raise ServerError(f"Failed to download image '{url}': {exc}") from exc
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ContentClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
