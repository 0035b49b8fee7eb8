"""Query lifecycle notification use case.

Turns query created/completed events into rendered IM notifications and hands
them to the dispatcher. Event sources call these handlers inline, so nothing
here may raise or block on the network.
"""

import re
from typing import Any, Final

from pydantic import ValidationError

from src.config.logging_config import get_logger
from src.domain.exceptions import ConfigurationError
from src.domain.models import EvaluationContext, QueryEvent, QueryLifecycleEvent
from src.services.knowledge_base import KnowledgeBase
from src.services.notification_templates import (
    MISSING_VALUE,
    NotificationTemplates,
    render_text,
)
from src.use_cases.dispatch_notification import NotificationDispatcher

logger = get_logger(__name__)

_DURATION_UNITS: Final[tuple[tuple[str, float], ...]] = (
    ("d", 86400.0),
    ("h", 3600.0),
    ("m", 60.0),
    ("s", 1.0),
)


def format_wall_time(seconds: float) -> str:
    """Format a duration with the largest unit that keeps the value >= 1.

    Example:
        >>> format_wall_time(0.85)
        '850.00ms'
        >>> format_wall_time(192)
        '3.20m'
    """
    for unit, size in _DURATION_UNITS:
        if seconds >= size:
            return f"{seconds / size:.2f}{unit}"
    return f"{seconds * 1000:.2f}ms"


class QueryNotificationHandler:
    """Notifies query owners about lifecycle events through Slack IM."""

    def __init__(
        self,
        *,
        dispatcher: NotificationDispatcher,
        templates: NotificationTemplates,
        knowledge_base: KnowledgeBase | None = None,
        users_pattern: str = ".*",
        email_template: str = "${USER}@example.com",
    ) -> None:
        try:
            self._users = re.compile(users_pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid users pattern: {e}") from e
        self._dispatcher = dispatcher
        self._templates = templates
        self._knowledge_base = knowledge_base
        self._email_template = email_template

    def handle_query_created(
        self,
        *,
        user: str,
        query_id: str,
        state: str,
        principal: str | None = None,
    ) -> None:
        self._handle(
            event=QueryLifecycleEvent.CREATED,
            user=user,
            query_id=query_id,
            state=state,
            principal=principal,
        )

    def handle_query_completed(
        self,
        *,
        user: str,
        query_id: str,
        state: str,
        principal: str | None = None,
        failure_message: str | None = None,
        error_type: str | None = None,
        wall_time_seconds: float | None = None,
    ) -> None:
        self._handle(
            event=QueryLifecycleEvent.COMPLETED,
            user=user,
            query_id=query_id,
            state=state,
            principal=principal,
            failure_message=failure_message,
            error_type=error_type,
            wall_time_seconds=wall_time_seconds,
        )

    def _handle(self, **fields: Any) -> None:
        try:
            event = QueryEvent(**fields)
        except ValidationError as e:
            logger.warning(
                "notification_event_invalid",
                user=fields.get("user"),
                query_id=fields.get("query_id"),
                event=fields["event"].value,
                error=str(e),
            )
            return
        self.notify(event)

    def notify(self, event: QueryEvent) -> None:
        """Render and dispatch the notification for one event, if any.

        Args:
            event: Query lifecycle event
        """
        if not self._users.fullmatch(event.user):
            return

        try:
            message = self._render(event)
            if message is None:
                logger.debug(
                    "notification_template_missing",
                    user=event.user,
                    event=event.event.value,
                    state=event.state,
                )
                return

            recipient = render_text(self._email_template, {"USER": event.user})
            context = EvaluationContext(
                event=event.event.value,
                principal=event.principal,
                state=event.state,
            )
            self._dispatcher.dispatch(recipient, context, message)
        except Exception:  # noqa: BLE001
            logger.exception(
                "notification_prepare_failed",
                user=event.user,
                query_id=event.query_id,
                event=event.event.value,
            )

    def _render(self, event: QueryEvent) -> str | None:
        treatment: str | None = None
        if event.failure_message is not None:
            treatment = MISSING_VALUE
            if self._knowledge_base is not None:
                treatment = (
                    self._knowledge_base.get_treatment(event.failure_message)
                    or MISSING_VALUE
                )

        wall_time = (
            format_wall_time(event.wall_time_seconds)
            if event.wall_time_seconds is not None
            else None
        )
        fields: dict[str, str | None] = {
            "principal": event.principal,
            "failure_message": event.failure_message,
            "failure_treatment": treatment,
            "wall_time": wall_time,
            "error_type": event.error_type,
        }
        template = self._templates.get_text(
            event.user, event.event.value, event.state, fields
        )
        if template is None:
            return None

        return render_text(
            template,
            {
                "USER": event.user,
                "QUERY_ID": event.query_id,
                "STATE": event.state,
                "PRINCIPAL": event.principal,
                "FAILURE_MESSAGE": event.failure_message,
                "FAILURE_TREATMENT": treatment,
                "WALL_TIME": wall_time,
                "ERROR_TYPE": event.error_type,
            },
        )
