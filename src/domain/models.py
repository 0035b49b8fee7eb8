"""Domain models for the Slack notification bot.

All models use Pydantic v2 for validation and serialization.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import total_ordering
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.exceptions import MalformedTimestampError


class QueryLifecycleEvent(str, Enum):
    """Query lifecycle stage that triggers a notification."""

    CREATED = "created"
    COMPLETED = "completed"


class CommandScope(str, Enum):
    """Granularity a stop/resume command applies to."""

    GLOBAL = "global"
    PRINCIPAL = "principal"
    EVENT = "event"
    STATE = "state"


class Decision(str, Enum):
    """Outcome of one mute evaluation."""

    ALLOW = "allow"
    SUPPRESS = "suppress"


class DispatchOutcome(str, Enum):
    """Terminal state of one notification attempt."""

    SENT = "sent"
    SUPPRESSED = "suppressed"
    FAILED = "failed"


@total_ordering
class SlackTimestamp:
    """Slack message timestamp ordered numerically.

    Slack encodes ``ts`` as a decimal string (``"1720000000.000200"``).
    Lexicographic comparison of those strings is wrong as soon as the integer
    parts differ in length, so comparisons go through ``Decimal``. The raw
    string is preserved for round-tripping as a ``latest`` cursor.
    """

    __slots__ = ("_raw", "_value")

    def __init__(self, raw: str) -> None:
        self._raw = raw
        self._value = self._parse(raw)

    @staticmethod
    def _parse(raw: Any) -> Decimal:
        if not isinstance(raw, str) or not raw.strip():
            raise MalformedTimestampError(raw)
        try:
            value = Decimal(raw.strip())
        except InvalidOperation as exc:
            raise MalformedTimestampError(raw) from exc
        if not value.is_finite():
            raise MalformedTimestampError(raw)
        return value

    @property
    def value(self) -> Decimal:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SlackTimestamp):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other: "SlackTimestamp") -> bool:
        if not isinstance(other, SlackTimestamp):
            return NotImplemented
        return self._value < other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"SlackTimestamp({self._raw!r})"


class SlackMessage(BaseModel):
    """One historical message from an IM channel."""

    text: str = Field(default="", description="Message text")
    ts: str | None = Field(default=None, description="Slack message timestamp")

    @field_validator("text", mode="before")
    @classmethod
    def _none_text_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def timestamp(self) -> SlackTimestamp:
        """Parse ``ts`` into an ordered timestamp.

        Raises:
            MalformedTimestampError: If ``ts`` is missing or not numeric
        """
        if self.ts is None:
            raise MalformedTimestampError(None)
        return SlackTimestamp(self.ts)


class HistoryPage(BaseModel):
    """One page of IM history, newest first.

    ``messages`` is None when Slack reports no history at all for the
    channel, which is distinct from an empty page.
    """

    messages: list[SlackMessage] | None = Field(default=None)
    has_more: bool | None = Field(default=None)


class EvaluationContext(BaseModel):
    """Immutable (event, principal, state) triple for one notification."""

    model_config = ConfigDict(frozen=True)

    event: str = Field(..., description="Lifecycle event label")
    principal: str | None = Field(default=None, description="Query principal")
    state: str = Field(..., description="Query state label")


class CommandIntent(BaseModel):
    """Parsed stop/resume command."""

    model_config = ConfigDict(frozen=True)

    allow: bool
    scope: CommandScope
    value: str | None = None


class QueryEvent(BaseModel):
    """Query lifecycle event as received from the event source."""

    event: QueryLifecycleEvent
    user: str
    query_id: str
    state: str
    principal: str | None = None
    failure_message: str | None = None
    error_type: str | None = None
    wall_time_seconds: float | None = Field(default=None, ge=0.0)
