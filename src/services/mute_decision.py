"""Mute decision engine.

Walks a recipient's IM history from newest to oldest and applies the most
recent stop/resume command relevant to the notification. Pages are fetched
sequentially because each request's ``latest`` bound is the oldest ``ts`` of
the previous page. Scanning stops at the first page that contains any
matching command; within the pages fetched so far the command with the
greatest timestamp wins.
"""

from src.config.logging_config import get_logger
from src.domain.models import (
    CommandIntent,
    Decision,
    EvaluationContext,
    SlackTimestamp,
)
from src.domain.protocols import HistoryPageSourceProtocol
from src.observability.metrics import DECISIONS_TOTAL, HISTORY_PAGES_PER_DECISION
from src.services.command_grammar import parse_command, should_send

logger = get_logger(__name__)


class MuteDecisionEngine:
    """Decides whether a notification should be delivered."""

    def __init__(self, page_source: HistoryPageSourceProtocol) -> None:
        self._page_source = page_source

    def decide(self, channel_id: str, context: EvaluationContext) -> Decision:
        """Resolve the mute state for one notification.

        Args:
            channel_id: Recipient's IM channel
            context: Event, principal and state of the notification

        Returns:
            Decision.ALLOW unless the most recent relevant command is a stop

        Raises:
            HistoryFetchError: If a page cannot be fetched
            MalformedTimestampError: If a message carries a non-numeric ts
        """
        best_intent: CommandIntent | None = None
        best_ts: SlackTimestamp | None = None
        cursor: SlackTimestamp | None = None
        pages = 0

        while True:
            page = self._page_source.fetch_history_page(
                channel_id, str(cursor) if cursor is not None else None
            )
            pages += 1

            if page.messages is None:
                logger.debug(
                    "mute_history_empty", channel_id=channel_id, pages=pages
                )
                return self._resolve(Decision.ALLOW, channel_id, context, pages)

            for message in page.messages:
                ts = message.timestamp()
                intent = parse_command(message.text, context)
                if intent is not None and (best_ts is None or ts > best_ts):
                    best_intent = intent
                    best_ts = ts
                if cursor is None or ts < cursor:
                    cursor = ts

            logger.debug(
                "mute_history_page_scanned",
                channel_id=channel_id,
                page=pages,
                message_count=len(page.messages),
                has_more=page.has_more,
                cursor=str(cursor) if cursor is not None else None,
            )

            if best_intent is not None:
                decision = (
                    Decision.ALLOW if should_send(best_intent) else Decision.SUPPRESS
                )
                logger.debug(
                    "mute_command_matched",
                    channel_id=channel_id,
                    scope=best_intent.scope.value,
                    allow=best_intent.allow,
                    command_ts=str(best_ts),
                )
                return self._resolve(decision, channel_id, context, pages)

            if not page.has_more:
                return self._resolve(Decision.ALLOW, channel_id, context, pages)

    def _resolve(
        self,
        decision: Decision,
        channel_id: str,
        context: EvaluationContext,
        pages: int,
    ) -> Decision:
        DECISIONS_TOTAL.labels(decision=decision.value).inc()
        HISTORY_PAGES_PER_DECISION.observe(pages)
        logger.info(
            "mute_decision_resolved",
            channel_id=channel_id,
            decision=decision.value,
            event=context.event,
            principal=context.principal,
            state=context.state,
            pages=pages,
        )
        return decision
