import asyncio

import pytest

from paperboy.errors import ServerError
from paperboy.models import ResponsePage
from paperboy.pagination import (
    IDLE,
    LOADED,
    LOADING,
    LOADING_MORE,
    ArticleListSession,
    ListSnapshot,
    LoadingState,
)

from factories import make_article, make_page


class FakeSource:
    """Page source returning canned outcomes keyed by page number."""

    def __init__(self, outcomes: dict[int, ResponsePage | Exception]) -> None:
        self.outcomes = outcomes
        self.requests: list[tuple[int, int]] = []

    async def fetch_page(self, page: int, page_size: int) -> ResponsePage:
        self.requests.append((page, page_size))
        await asyncio.sleep(0)
        outcome = self.outcomes[page]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class GatedSource:
    """Page source whose calls block until the test resolves them, in call order."""

    def __init__(self) -> None:
        self.gates: list[asyncio.Future] = []
        self.requests: list[int] = []

    async def fetch_page(self, page: int, page_size: int) -> ResponsePage:
        self.requests.append(page)
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        return await gate


def _three_pages() -> dict[int, ResponsePage | Exception]:
    return {
        1: make_page([make_article("1"), make_article("2")], current_page=1, pages=3),
        2: make_page([make_article("3"), make_article("4")], current_page=2, pages=3),
        3: make_page([make_article("5")], current_page=3, pages=3),
    }


def test_initial_state() -> None:
    session = ArticleListSession(FakeSource({}))

    assert session.articles == ()
    assert session.state == IDLE
    assert session.current_page == 1
    assert session.page_size == 20


def test_fetch_first_page_success_single_page() -> None:
    source = FakeSource({1: make_page([make_article("1"), make_article("2")], current_page=1, pages=1)})
    session = ArticleListSession(source)

    snapshot = asyncio.run(session.fetch_first_page())

    assert session.state == LOADED
    assert len(session.articles) == 2
    assert [article.web_title for article in session.articles] == ["Test Article 1", "Test Article 2"]
    assert session.has_more_pages is False
    assert snapshot == session.snapshot
    assert source.requests == [(1, 20)]


def test_fetch_first_page_failure_sets_error_message() -> None:
    session = ArticleListSession(FakeSource({1: ServerError("x")}))

    asyncio.run(session.fetch_first_page())

    assert session.state == LoadingState.error("x")
    assert session.state.message == "x"


def test_failed_refresh_keeps_previous_articles() -> None:
    outcomes = _three_pages()
    source = FakeSource(outcomes)
    session = ArticleListSession(source)

    async def scenario() -> None:
        await session.fetch_first_page()
        outcomes[1] = ServerError("offline")
        await session.refresh()

    asyncio.run(scenario())

    assert session.state == LoadingState.error("offline")
    assert [article.id for article in session.articles] == ["1", "2"]
    assert session.current_page == 1
    assert session.has_more_pages is True


def test_load_more_appends_next_page() -> None:
    source = FakeSource(_three_pages())
    session = ArticleListSession(source)

    async def scenario() -> None:
        await session.fetch_first_page()
        await session.load_more()

    asyncio.run(scenario())

    assert session.current_page == 2
    assert [article.id for article in session.articles] == ["1", "2", "3", "4"]
    assert session.has_more_pages is True
    assert session.state == LOADED
    assert source.requests == [(1, 20), (2, 20)]


def test_load_more_keeps_duplicates_across_pages() -> None:
    outcomes = _three_pages()
    outcomes[2] = make_page([make_article("2"), make_article("3")], current_page=2, pages=3)
    session = ArticleListSession(FakeSource(outcomes))

    async def scenario() -> None:
        await session.fetch_first_page()
        await session.load_more()

    asyncio.run(scenario())

    assert [article.id for article in session.articles] == ["1", "2", "2", "3"]


def test_load_more_stops_after_last_page() -> None:
    source = FakeSource(_three_pages())
    session = ArticleListSession(source)

    async def scenario() -> None:
        await session.fetch_first_page()
        await session.load_more()
        await session.load_more()

    asyncio.run(scenario())

    assert session.current_page == 3
    assert session.has_more_pages is False
    assert len(session.articles) == 5


def test_load_more_is_noop_without_more_pages() -> None:
    source = FakeSource({1: make_page([make_article("1")], current_page=1, pages=1)})
    session = ArticleListSession(source)
    asyncio.run(session.fetch_first_page())
    received: list[ListSnapshot] = []
    session.subscribe(received.append)
    before = session.snapshot

    after = asyncio.run(session.load_more())

    assert after == before
    assert received == []
    assert source.requests == [(1, 20)]


def test_load_more_failure_rolls_back_page() -> None:
    outcomes = _three_pages()
    outcomes[2] = ServerError("timed out")
    source = FakeSource(outcomes)
    session = ArticleListSession(source)

    async def scenario() -> None:
        await session.fetch_first_page()
        await session.load_more()

    asyncio.run(scenario())

    assert session.current_page == 1
    assert session.state == LoadingState.error("timed out")
    assert [article.id for article in session.articles] == ["1", "2"]


def test_load_more_retries_same_page_after_failure() -> None:
    outcomes = _three_pages()
    recovered = outcomes[2]
    outcomes[2] = ServerError("timed out")
    source = FakeSource(outcomes)
    session = ArticleListSession(source)

    async def scenario() -> None:
        await session.fetch_first_page()
        await session.load_more()
        outcomes[2] = recovered
        await session.load_more()

    asyncio.run(scenario())

    assert [page for page, _ in source.requests] == [1, 2, 2]
    assert session.current_page == 2
    assert session.state == LOADED
    assert len(session.articles) == 4


def test_can_load_more_is_false_while_loading_more() -> None:
    source = GatedSource()
    session = ArticleListSession(source)

    async def scenario() -> None:
        first = asyncio.create_task(session.fetch_first_page())
        await asyncio.sleep(0)
        source.gates[0].set_result(make_page([make_article("1")], current_page=1, pages=3))
        await first

        more = asyncio.create_task(session.load_more())
        await asyncio.sleep(0)
        assert session.is_loading_more
        assert session.has_more_pages
        assert session.can_load_more is False
        assert session.snapshot.can_load_more is False

        source.gates[1].set_result(make_page([make_article("2")], current_page=2, pages=3))
        await more

    asyncio.run(scenario())

    assert session.can_load_more
    assert not session.is_loading_more


def test_concurrent_load_more_issues_single_request() -> None:
    source = FakeSource(_three_pages())
    session = ArticleListSession(source)

    async def scenario() -> None:
        await session.fetch_first_page()
        await asyncio.gather(session.load_more(), session.load_more())

    asyncio.run(scenario())

    assert [page for page, _ in source.requests] == [1, 2]
    assert session.current_page == 2
    assert len(session.articles) == 4


def test_stale_first_page_completion_is_discarded() -> None:
    source = GatedSource()
    session = ArticleListSession(source)

    async def scenario() -> None:
        slow = asyncio.create_task(session.fetch_first_page())
        await asyncio.sleep(0)
        fast = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)

        source.gates[1].set_result(make_page([make_article("new")], current_page=1, pages=1))
        await fast
        source.gates[0].set_result(make_page([make_article("old")], current_page=1, pages=5))
        await slow

    asyncio.run(scenario())

    assert [article.id for article in session.articles] == ["new"]
    assert session.has_more_pages is False
    assert session.state == LOADED


def test_refresh_discards_in_flight_load_more() -> None:
    source = GatedSource()
    session = ArticleListSession(source)

    async def scenario() -> None:
        first = asyncio.create_task(session.fetch_first_page())
        await asyncio.sleep(0)
        source.gates[0].set_result(make_page([make_article("1")], current_page=1, pages=3))
        await first

        more = asyncio.create_task(session.load_more())
        await asyncio.sleep(0)
        refresh = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)

        source.gates[1].set_exception(ServerError("late failure"))
        await more
        source.gates[2].set_result(make_page([make_article("fresh")], current_page=1, pages=3))
        await refresh

    asyncio.run(scenario())

    assert source.requests == [1, 2, 1]
    assert session.current_page == 1
    assert session.state == LOADED
    assert [article.id for article in session.articles] == ["fresh"]


def test_subscribers_receive_loading_then_loaded() -> None:
    source = FakeSource({1: make_page([], current_page=1, pages=1)})
    session = ArticleListSession(source)
    states: list[LoadingState] = []
    unsubscribe = session.subscribe(lambda snapshot: states.append(snapshot.state))

    asyncio.run(session.fetch_first_page())
    unsubscribe()
    asyncio.run(session.refresh())

    assert states == [LOADING, LOADED]


def test_subscribers_see_loading_more_state() -> None:
    session = ArticleListSession(FakeSource(_three_pages()))
    snapshots: list[ListSnapshot] = []
    session.subscribe(snapshots.append)

    async def scenario() -> None:
        await session.fetch_first_page()
        await session.load_more()

    asyncio.run(scenario())

    assert [snapshot.state for snapshot in snapshots] == [LOADING, LOADED, LOADING_MORE, LOADED]
    assert snapshots[2].current_page == 2
    assert len(snapshots[2].articles) == 2
    assert len(snapshots[3].articles) == 4


def test_formatted_date_delegates_to_formatter() -> None:
    session = ArticleListSession(FakeSource({}), date_formatter=lambda value: f"formatted {value}")
    assert session.formatted_date(make_article()) == "formatted 2023-01-01T12:00:00Z"


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ArticleListSession(FakeSource({}), page_size=0)
