"""Stop/resume command grammar for IM replies.

Recipients mute notifications by typing commands to the bot:

    stop                      resume
    stop principal=<name>     resume principal=<name>
    stop event=<event>        resume event=<event>
    stop state=<state>        resume state=<state>

Matching is case-insensitive and applies to the whole trimmed message text.
Scoped commands only match when their value equals the current context.
"""

from typing import Final

from src.domain.models import CommandIntent, CommandScope, EvaluationContext

RESUME: Final[str] = "resume"
STOP: Final[str] = "stop"
PRINCIPAL_TEMPLATE: Final[str] = "{verb} principal={value}"
EVENT_TEMPLATE: Final[str] = "{verb} event={value}"
STATE_TEMPLATE: Final[str] = "{verb} state={value}"


def _probes(context: EvaluationContext) -> list[tuple[str, CommandIntent]]:
    """Build candidate command texts in probe order (resume before stop)."""

    probes: list[tuple[str, CommandIntent]] = []
    for verb, allow in ((RESUME, True), (STOP, False)):
        probes.append((verb, CommandIntent(allow=allow, scope=CommandScope.GLOBAL)))
        if context.principal is not None:
            probes.append(
                (
                    PRINCIPAL_TEMPLATE.format(verb=verb, value=context.principal),
                    CommandIntent(
                        allow=allow,
                        scope=CommandScope.PRINCIPAL,
                        value=context.principal,
                    ),
                )
            )
        probes.append(
            (
                EVENT_TEMPLATE.format(verb=verb, value=context.event),
                CommandIntent(
                    allow=allow, scope=CommandScope.EVENT, value=context.event
                ),
            )
        )
        probes.append(
            (
                STATE_TEMPLATE.format(verb=verb, value=context.state),
                CommandIntent(
                    allow=allow, scope=CommandScope.STATE, value=context.state
                ),
            )
        )
    return probes


def parse_command(text: str, context: EvaluationContext) -> CommandIntent | None:
    """Match one message text against the command grammar.

    Args:
        text: Raw message text
        context: Notification being evaluated

    Returns:
        Matching intent, or None if the text is not a command for this context

    Example:
        >>> ctx = EvaluationContext(event="completed", principal=None, state="FAILED")
        >>> parse_command("  STOP event=completed ", ctx).allow
        False
        >>> parse_command("stop event=created", ctx) is None
        True
    """
    normalized = text.strip().casefold()
    if not normalized:
        return None

    for command, intent in _probes(context):
        if normalized == command.casefold():
            return intent
    return None


def should_send(intent: CommandIntent) -> bool:
    """Return True when the intent re-enables delivery."""

    return intent.allow
