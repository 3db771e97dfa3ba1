"""Plain-text rendering of list and detail state for the terminal."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from dataclasses import dataclass
from importlib.resources import files

from jinja2 import Environment, Template

from paperboy.dates import format_publication_date
from paperboy.detail import ArticleDetailSession
from paperboy.pagination import ListSnapshot, LoadingStatus

_WRAP_WIDTH = 88
_environment = Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True)


@dataclass(frozen=True)
class ListRow:
    """One formatted line of the article list."""

    index: int
    date: str
    section: str
    title: str


def _template(name: str) -> Template:
    source = files("paperboy.templates").joinpath(name).read_text(encoding="utf-8")
    return _environment.from_string(source)


def _status_line(snapshot: ListSnapshot) -> str | None:
    status = snapshot.state.status
    if status == LoadingStatus.LOADING:
        return "Loading articles..."
    if status == LoadingStatus.LOADING_MORE:
        return "Loading more articles..."
    if status == LoadingStatus.ERROR:
        return f"Error: {snapshot.state.message}"
    if status == LoadingStatus.LOADED and not snapshot.articles:
        return "No articles found."
    return None


def render_article_list(
    snapshot: ListSnapshot,
    date_formatter: Callable[[str], str] = format_publication_date,
) -> str:
    """Render a list snapshot, one row per article plus a status footer."""

    # Errors hide the list, matching what the list screen shows.
    visible = () if snapshot.state.is_error else snapshot.articles
    rows = [
        ListRow(
            index=index,
            date=date_formatter(article.web_publication_date),
            section=article.section_name,
            title=article.title,
        )
        for index, article in enumerate(visible, start=1)
    ]

    rendered = _template("article_list.txt.j2").render(
        rows=rows,
        status=_status_line(snapshot),
        has_more=snapshot.has_more_pages and not snapshot.state.is_error,
        current_page=snapshot.current_page,
    )
    return rendered.rstrip("\n") + "\n"


def render_article_detail(session: ArticleDetailSession) -> str:
    """Render title, metadata and wrapped body text for one article."""

    paragraphs = session.body_paragraphs
    if paragraphs:
        body = [textwrap.fill(paragraph, width=_WRAP_WIDTH) for paragraph in paragraphs]
    else:
        body = [session.body]

    article = session.article
    rendered = _template("article_detail.txt.j2").render(
        title=session.title,
        date=session.formatted_date,
        section=article.section_name,
        pillar=article.pillar_name,
        url=article.web_url,
        trail_text=article.trail_text,
        body=body,
        image_size=len(session.image_data) if session.image_data is not None else None,
        is_loading_image=session.is_loading_image,
    )
    return rendered.rstrip("\n") + "\n"
