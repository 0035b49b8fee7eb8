"""Tests for the paginated mute decision engine."""

import pytest

from src.domain.exceptions import HistoryFetchError, MalformedTimestampError
from src.domain.models import Decision, EvaluationContext, HistoryPage
from src.services.mute_decision import MuteDecisionEngine
from tests.conftest import FakeHistorySource, page


def _decide(
    pages: list[HistoryPage], context: EvaluationContext
) -> tuple[Decision, FakeHistorySource]:
    source = FakeHistorySource(pages)
    decision = MuteDecisionEngine(source).decide("D123", context)
    return decision, source


def test_absent_history_allows(context: EvaluationContext) -> None:
    decision, source = _decide([HistoryPage(messages=None, has_more=True)], context)

    assert decision is Decision.ALLOW
    assert source.calls == [("D123", None)]


def test_empty_last_page_allows(context: EvaluationContext) -> None:
    decision, source = _decide([HistoryPage(messages=[], has_more=None)], context)

    assert decision is Decision.ALLOW
    assert len(source.calls) == 1


def test_no_matching_command_allows_after_exhausting_pages(
    context: EvaluationContext,
) -> None:
    pages = [
        page(("hello", "300.0"), ("thanks", "290.0"), has_more=True),
        page(("stop event=created", "200.0"), has_more=True),
        page(("what is this?", "100.0"), has_more=False),
    ]

    decision, source = _decide(pages, context)

    assert decision is Decision.ALLOW
    assert len(source.calls) == 3


def test_cursor_tracks_oldest_timestamp_seen(context: EvaluationContext) -> None:
    pages = [
        page(("a", "300.0"), ("b", "250.5"), ("c", "280.0"), has_more=True),
        page(("d", "90.0"), ("e", "100.0"), has_more=True),
        page(has_more=False),
    ]

    _, source = _decide(pages, context)

    assert source.calls == [("D123", None), ("D123", "250.5"), ("D123", "90.0")]


def test_cursor_uses_numeric_minimum(context: EvaluationContext) -> None:
    pages = [
        page(("a", "10.0"), ("b", "9.5"), has_more=True),
        page(has_more=False),
    ]

    _, source = _decide(pages, context)

    assert source.calls[1] == ("D123", "9.5")


def test_later_resume_wins_within_page(context: EvaluationContext) -> None:
    decision, _ = _decide(
        [page(("stop", "100.0"), ("resume", "150.0"), has_more=False)], context
    )

    assert decision is Decision.ALLOW


def test_later_stop_wins_within_page(context: EvaluationContext) -> None:
    decision, _ = _decide(
        [page(("resume", "150.0"), ("stop", "100.0"), ("stop", "200.0"))], context
    )

    assert decision is Decision.SUPPRESS


def test_recency_does_not_depend_on_scan_order(context: EvaluationContext) -> None:
    decision, _ = _decide(
        [page(("stop event=completed", "100.0"), ("resume", "99.0"))], context
    )

    assert decision is Decision.SUPPRESS


def test_recency_compares_timestamps_numerically(
    context: EvaluationContext,
) -> None:
    decision, _ = _decide([page(("resume", "9.9"), ("stop", "10.0"))], context)

    assert decision is Decision.SUPPRESS


def test_equal_timestamps_keep_first_match(context: EvaluationContext) -> None:
    decision, _ = _decide([page(("stop", "100.0"), ("resume", "100.000"))], context)

    assert decision is Decision.SUPPRESS


def test_match_on_first_page_stops_paging(context: EvaluationContext) -> None:
    pages = [
        page(("hi", "500.0"), ("stop", "400.0"), has_more=True),
        page(("resume", "300.0"), has_more=False),
    ]

    decision, source = _decide(pages, context)

    assert decision is Decision.SUPPRESS
    assert len(source.calls) == 1


def test_match_on_later_page_is_used(context: EvaluationContext) -> None:
    pages = [
        page(("hi", "500.0"), has_more=True),
        page(("noise", "400.0"), ("resume state=FAILED", "350.0"), has_more=True),
        page(("stop", "100.0"), has_more=False),
    ]

    decision, source = _decide(pages, context)

    assert decision is Decision.ALLOW
    assert len(source.calls) == 2


@pytest.mark.parametrize("page_count", [1, 2, 5])
def test_fetches_exactly_n_pages_without_match(
    context: EvaluationContext, page_count: int
) -> None:
    pages = [
        page((f"message {i}", f"{1000 - i}.0"), has_more=i < page_count - 1)
        for i in range(page_count)
    ]

    decision, source = _decide(pages, context)

    assert decision is Decision.ALLOW
    assert len(source.calls) == page_count


@pytest.mark.parametrize(
    ("command", "context_kwargs"),
    [
        ("stop event=completed", {"event": "created"}),
        ("stop event=created", {"event": "completed"}),
        ("stop principal=alice", {"principal": "bob"}),
        ("stop principal=alice", {"principal": None}),
        ("stop state=FAILED", {"state": "FINISHED"}),
    ],
)
def test_scoped_commands_are_isolated(
    command: str, context_kwargs: dict[str, str | None]
) -> None:
    values: dict[str, str | None] = {
        "event": "completed",
        "principal": "alice",
        "state": "FAILED",
    }
    values.update(context_kwargs)
    scoped_context = EvaluationContext(**values)

    decision, _ = _decide([page((command, "100.0"))], scoped_context)

    assert decision is Decision.ALLOW


def test_scoped_stop_applies_to_matching_context(
    context: EvaluationContext,
) -> None:
    for command in ("stop principal=alice", "stop event=completed", "stop state=FAILED"):
        decision, _ = _decide([page((command, "100.0"))], context)
        assert decision is Decision.SUPPRESS


def test_stop_event_scenario(context: EvaluationContext) -> None:
    decision, _ = _decide([page(("stop event=completed", "100.0"))], context)

    assert decision is Decision.SUPPRESS


def test_stop_then_resume_scenario(context: EvaluationContext) -> None:
    decision, _ = _decide(
        [page(("stop event=completed", "100.0"), ("resume", "150.0"))], context
    )

    assert decision is Decision.ALLOW


def test_decide_is_idempotent(context: EvaluationContext) -> None:
    history = [
        page(("noise", "300.0"), has_more=True),
        page(("stop state=FAILED", "200.0"), ("resume", "150.0"), has_more=False),
    ]
    source = FakeHistorySource(history + history)
    engine = MuteDecisionEngine(source)

    first = engine.decide("D123", context)
    second = engine.decide("D123", context)

    assert first is second is Decision.SUPPRESS
    assert source.calls[:2] == source.calls[2:]


def test_malformed_timestamp_fails_decision(context: EvaluationContext) -> None:
    source = FakeHistorySource([page(("resume", "150.0"), ("hello", "not-a-ts"))])

    with pytest.raises(MalformedTimestampError):
        MuteDecisionEngine(source).decide("D123", context)


def test_fetch_error_propagates(context: EvaluationContext) -> None:
    class FailingSource:
        def fetch_history_page(
            self, channel_id: str, latest: str | None = None
        ) -> HistoryPage:
            raise HistoryFetchError("Slack API error: channel_not_found")

    with pytest.raises(HistoryFetchError):
        MuteDecisionEngine(FailingSource()).decide("D123", context)
