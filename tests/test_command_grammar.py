"""Tests for the stop/resume command grammar."""

import pytest

from src.domain.models import CommandScope, EvaluationContext
from src.services.command_grammar import parse_command, should_send


@pytest.mark.parametrize(
    ("text", "allow", "scope"),
    [
        ("resume", True, CommandScope.GLOBAL),
        ("resume principal=alice", True, CommandScope.PRINCIPAL),
        ("resume event=completed", True, CommandScope.EVENT),
        ("resume state=FAILED", True, CommandScope.STATE),
        ("stop", False, CommandScope.GLOBAL),
        ("stop principal=alice", False, CommandScope.PRINCIPAL),
        ("stop event=completed", False, CommandScope.EVENT),
        ("stop state=FAILED", False, CommandScope.STATE),
    ],
)
def test_recognized_commands(
    context: EvaluationContext, text: str, allow: bool, scope: CommandScope
) -> None:
    intent = parse_command(text, context)

    assert intent is not None
    assert intent.allow is allow
    assert intent.scope is scope
    assert should_send(intent) is allow


def test_matching_is_case_insensitive_and_trimmed(
    context: EvaluationContext,
) -> None:
    intent = parse_command("  STOP State=failed \n", context)

    assert intent is not None
    assert intent.scope is CommandScope.STATE
    assert intent.value == "FAILED"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "please stop",
        "stop it",
        "stopped",
        "resume now",
        "stop event=",
        "stop event=complete",
        "stop  event=completed",
        "stop event=completed state=FAILED",
    ],
)
def test_non_commands_are_ignored(context: EvaluationContext, text: str) -> None:
    assert parse_command(text, context) is None


def test_scoped_commands_for_other_contexts_do_not_match(
    context: EvaluationContext,
) -> None:
    assert parse_command("stop event=created", context) is None
    assert parse_command("stop principal=bob", context) is None
    assert parse_command("stop state=FINISHED", context) is None
    assert parse_command("resume event=created", context) is None


def test_principal_commands_require_a_principal() -> None:
    anonymous = EvaluationContext(event="created", principal=None, state="QUEUED")

    assert parse_command("stop principal=alice", anonymous) is None
    assert parse_command("stop principal=None", anonymous) is None
    assert parse_command("stop", anonymous) is not None
