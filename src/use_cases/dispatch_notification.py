"""Dispatch notification use case.

Resolves the recipient's IM channel, checks the conversational mute state and
posts the rendered message when delivery is allowed. Failures never reach the
component that triggered the notification.
"""

from src.adapters.notification_runner import DetachedTaskRunner
from src.config.logging_config import get_logger, log_context
from src.domain.exceptions import SlackBotError
from src.domain.models import Decision, DispatchOutcome, EvaluationContext
from src.domain.protocols import (
    ChannelResolverProtocol,
    HistoryPageSourceProtocol,
    MessageSenderProtocol,
    TaskRunnerProtocol,
)
from src.observability.metrics import DISPATCH_TOTAL
from src.services.mute_decision import MuteDecisionEngine

logger = get_logger(__name__)


class NotificationDispatcher:
    """Fire-and-forget delivery of one rendered notification."""

    def __init__(
        self,
        channel_resolver: ChannelResolverProtocol,
        page_source: HistoryPageSourceProtocol,
        sender: MessageSenderProtocol,
        runner: TaskRunnerProtocol | None = None,
    ) -> None:
        self._channel_resolver = channel_resolver
        self._engine = MuteDecisionEngine(page_source)
        self._sender = sender
        self._runner = runner or DetachedTaskRunner()

    def dispatch(
        self, recipient: str, context: EvaluationContext, rendered_message: str
    ) -> None:
        """Schedule delivery and return without waiting for the network.

        Args:
            recipient: Email address or Slack user ID
            context: Event, principal and state of the notification
            rendered_message: Final message text
        """
        self._runner.run(
            f"notify:{context.event}",
            lambda: self.deliver(recipient, context, rendered_message),
        )

    def deliver(
        self, recipient: str, context: EvaluationContext, rendered_message: str
    ) -> DispatchOutcome:
        """Run the full notification chain on the current thread.

        Args:
            recipient: Email address or Slack user ID
            context: Event, principal and state of the notification
            rendered_message: Final message text

        Returns:
            Outcome of the attempt (never raises)
        """
        with log_context(
            recipient=recipient,
            event=context.event,
            principal=context.principal,
            state=context.state,
        ):
            return self._deliver(recipient, context, rendered_message)

    def _deliver(
        self, recipient: str, context: EvaluationContext, rendered_message: str
    ) -> DispatchOutcome:
        stage = "resolve_channel"
        try:
            channel_id = self._channel_resolver.open_private_channel(recipient)

            stage = "decide"
            decision = self._engine.decide(channel_id, context)
            if decision is Decision.SUPPRESS:
                logger.info("notification_suppressed", channel_id=channel_id)
                return self._record(DispatchOutcome.SUPPRESSED)

            stage = "send"
            message_ts = self._sender.send_message(channel_id, rendered_message)
            logger.debug(
                "notification_sent",
                channel_id=channel_id,
                message_ts=message_ts,
                text=rendered_message,
            )
            return self._record(DispatchOutcome.SENT)
        except SlackBotError as e:
            logger.warning(
                "notification_dispatch_failed",
                stage=stage,
                error_type=type(e).__name__,
                error=str(e),
            )
        except Exception:  # noqa: BLE001
            logger.exception("notification_dispatch_crashed", stage=stage)
        return self._record(DispatchOutcome.FAILED)

    def _record(self, outcome: DispatchOutcome) -> DispatchOutcome:
        DISPATCH_TOTAL.labels(outcome=outcome.value).inc()
        return outcome
