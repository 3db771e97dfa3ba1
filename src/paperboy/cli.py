"""Typer CLI entrypoint for paperboy."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from paperboy.client import ContentClient
from paperboy.config import ClientConfig, load_config
from paperboy.detail import ArticleDetailSession
from paperboy.errors import InvalidRequestError, NetworkError
from paperboy.pagination import LOADED, ArticleListSession, ListSnapshot
from paperboy.renderer import render_article_detail, render_article_list

app = typer.Typer(help="Browse the newest articles from the Guardian content API.", no_args_is_help=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests to stderr.")) -> None:
    """paperboy command group."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _config(page_size: int | None) -> ClientConfig:
    try:
        config = load_config()
    except InvalidRequestError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    if page_size is not None:
        config = config.model_copy(update={"page_size": page_size})
    return config


async def _collect_pages(config: ClientConfig, pages: int) -> ListSnapshot:
    async with ContentClient(config) as client:
        session = ArticleListSession(client, page_size=config.page_size)
        snapshot = await session.fetch_first_page()
        while snapshot.state == LOADED and snapshot.current_page < pages and snapshot.can_load_more:
            snapshot = await session.load_more()
        return snapshot


async def _open_detail(config: ClientConfig, index: int, save_image: Path | None) -> str:
    page_number = (index - 1) // config.page_size + 1
    offset = (index - 1) % config.page_size

    async with ContentClient(config) as client:
        page = await client.fetch_page(page_number, config.page_size)
        if offset >= len(page.results):
            raise IndexError(f"No article at position {index} ({page.total} result(s) available)")

        session = ArticleDetailSession(page.results[offset], client)
        try:
            image = await session.wait_for_image()
        finally:
            session.close()

    if save_image is not None:
        if image is None:
            typer.echo("Article has no downloadable image.", err=True)
        else:
            save_image.parent.mkdir(parents=True, exist_ok=True)
            save_image.write_bytes(image)
    return render_article_detail(session)


@app.command("list")
def list_articles(
    pages: int = typer.Option(1, min=1, max=50, help="Number of pages to load."),
    page_size: int | None = typer.Option(None, min=1, max=200),
) -> None:
    """Print the newest articles, loading more pages on request."""

    config = _config(page_size)
    snapshot = asyncio.run(_collect_pages(config, pages))

    typer.echo(render_article_list(snapshot), nl=False)
    if snapshot.state.is_error:
        raise typer.Exit(code=1)


@app.command()
def show(
    index: int = typer.Argument(..., min=1, help="1-based position in the newest-first list."),
    page_size: int | None = typer.Option(None, min=1, max=200),
    save_image: Path | None = typer.Option(None, dir_okay=False, help="Write the article image here."),
) -> None:
    """Print one article's detail view."""

    config = _config(page_size)
    try:
        output = asyncio.run(_open_detail(config, index, save_image))
    except (NetworkError, IndexError) as exc:
        typer.echo(f"Could not open article {index}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(output, nl=False)
