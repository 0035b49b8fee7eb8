"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from src.domain.exceptions import DeliveryError
from src.domain.models import EvaluationContext, HistoryPage, SlackMessage


class FakeHistorySource:
    """Serves queued history pages and records each request."""

    def __init__(self, pages: list[HistoryPage]) -> None:
        self._pages = list(pages)
        self.calls: list[tuple[str, str | None]] = []

    def fetch_history_page(
        self, channel_id: str, latest: str | None = None
    ) -> HistoryPage:
        self.calls.append((channel_id, latest))
        if not self._pages:
            raise AssertionError("No page available for fetch_history_page call")
        return self._pages.pop(0)


class FakeChannelResolver:
    def __init__(
        self, channel_id: str = "D123", error: Exception | None = None
    ) -> None:
        self._channel_id = channel_id
        self._error = error
        self.calls: list[str] = []

    def open_private_channel(self, recipient: str) -> str:
        self.calls.append(recipient)
        if self._error is not None:
            raise self._error
        return self._channel_id


class FakeSender:
    def __init__(self, fail: bool = False) -> None:
        self._fail = fail
        self.sent: list[tuple[str, str]] = []

    def send_message(self, channel_id: str, text: str) -> str:
        if self._fail:
            raise DeliveryError("Failed to post message: channel_not_found")
        self.sent.append((channel_id, text))
        return "1720000000.000100"


class RecordingRunner:
    """Task runner that queues tasks until the test runs them."""

    def __init__(self) -> None:
        self.tasks: list[tuple[str, Callable[[], object]]] = []

    def run(self, name: str, task: Callable[[], object]) -> None:
        self.tasks.append((name, task))

    def run_all(self) -> None:
        for _, task in self.tasks:
            task()


def page(
    *messages: tuple[str, str], has_more: bool | None = False
) -> HistoryPage:
    """Build a history page from (text, ts) pairs."""

    return HistoryPage(
        messages=[SlackMessage(text=text, ts=ts) for text, ts in messages],
        has_more=has_more,
    )


@pytest.fixture
def context() -> EvaluationContext:
    return EvaluationContext(event="completed", principal="alice", state="FAILED")


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run with an empty working directory and a test bot token."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
    for name in ("SLACK_PROXY_USER", "SLACK_PROXY_PASSWORD", "SLACK_HTTP_PROXY"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def slack_ok(**payload: Any) -> dict[str, Any]:
    return {"ok": True, **payload}
