import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from x_agent.agents.base_agent import BaseAgent, to_jsonable
from x_agent.agents.scrape_agent import ScrapeAgent
from x_agent.cli import build_parser
from x_agent.core.config import Settings
from x_agent.core.errors import AuthenticationFailed
from x_agent.core.models import Post, ScrapeOutcome, ScrapeResult
from x_agent.scrapers.search import SearchOptions


def settings(tmp_path):
    return Settings(auth_state_path=str(tmp_path / "auth.json"), config_path=str(tmp_path / "none.json"))


def with_fake_session(agent, acquire=None):
    session = MagicMock()
    session.page = MagicMock()
    session.page.screenshot = AsyncMock()
    agent.session_manager.acquire = acquire or AsyncMock(return_value=session)
    agent.session_manager.release = AsyncMock()
    return session


async def test_execute_writes_result_and_releases_session(tmp_path, logs):
    output = tmp_path / "out" / "posts.json"
    result = ScrapeResult((Post(post_id="1", url="https://x.com/a/status/1"),),
                          ScrapeOutcome.TARGET_REACHED)

    async def operation(ctx):
        assert ctx.page is session.page
        return result

    agent = ScrapeAgent("PostsAgent", operation, settings=settings(tmp_path),
                        output_path=str(output), log_func=logs.append)
    session = with_fake_session(agent)

    assert await agent.execute() is result
    assert json.loads(output.read_text())["records"][0]["post_id"] == "1"
    agent.session_manager.release.assert_awaited_once_with(session)


async def test_execute_failure_captures_screenshot_and_reraises(tmp_path, logs, monkeypatch):
    monkeypatch.setattr("x_agent.agents.base_agent.DEBUG_DIR", str(tmp_path / "debug"))

    async def operation(ctx):
        raise RuntimeError("layout changed")

    agent = ScrapeAgent("PostsAgent", operation, settings=settings(tmp_path), log_func=logs.append)
    session = with_fake_session(agent)

    with pytest.raises(RuntimeError):
        await agent.execute()

    session.page.screenshot.assert_awaited_once()
    agent.session_manager.release.assert_awaited_once_with(session)
    assert any("ERROR: layout changed" in line for line in logs)


async def test_acquire_failure_propagates_without_release(tmp_path, logs):
    agent = ScrapeAgent("PostsAgent", AsyncMock(), settings=settings(tmp_path), log_func=logs.append)
    with_fake_session(agent, acquire=AsyncMock(side_effect=AuthenticationFailed("wrong credentials")))

    with pytest.raises(AuthenticationFailed):
        await agent.execute()
    agent.session_manager.release.assert_not_awaited()


def test_base_agent_requires_run_and_name():
    with pytest.raises(TypeError):
        BaseAgent()


def test_to_jsonable_handles_nested_results():
    result = ScrapeResult((Post(post_id="1", url="u"),), ScrapeOutcome.BUDGET_EXHAUSTED)
    data = to_jsonable({"for-you": result, "trends": ("a", "b")})
    assert data["for-you"]["outcome"] == "budget_exhausted"
    assert data["trends"] == ["a", "b"]


def test_parser_global_flags_and_budget():
    args = build_parser().parse_args(
        ["--headed", "-o", "out.json", "timeline", "--tab", "following", "-n", "25"])
    assert args.headless is False
    assert args.output == "out.json"
    assert args.command == "timeline"
    assert args.tab == "following"
    assert args.count == 25


def test_parser_headless_defaults_to_environment():
    args = build_parser().parse_args(["trending"])
    assert args.headless is None


def test_parser_search_options():
    args = build_parser().parse_args(
        ["search", "llm", "--min-likes", "500", "--no-replies", "--since", "2024-01-31"])
    assert args.query == "llm"
    assert args.min_likes == 500
    assert args.no_replies
    assert args.date_from.isoformat() == "2024-01-31"


@pytest.mark.parametrize("argv", [
    ["timeline", "--count", "0"],
    ["search", "x", "--since", "last week"],
    ["bogus"],
])
def test_parser_rejects_invalid_input(argv):
    with pytest.raises(SystemExit):
        build_parser().parse_args(argv)


def test_search_options_are_frozen():
    with pytest.raises(AttributeError):
        SearchOptions().query = "x"
