"""Send (or dry-run) a single IM notification.

Resolves the recipient's IM channel, evaluates their stop/resume commands and
posts the text when delivery is allowed.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.adapters.notification_runner import InlineTaskRunner
from src.config.logging_config import setup_logging
from src.config.settings import get_settings
from src.domain.exceptions import SlackBotError
from src.domain.models import DispatchOutcome, EvaluationContext, QueryLifecycleEvent
from src.services.mute_decision import MuteDecisionEngine
from src.use_cases.notification_factories import (
    create_dispatcher,
    create_slack_bot_client,
)


def main() -> None:
    """Send notification."""
    parser = argparse.ArgumentParser(description="Send a Slack IM notification")
    parser.add_argument(
        "--recipient",
        required=True,
        help="Recipient email address or Slack user ID",
    )
    parser.add_argument(
        "--event",
        default=QueryLifecycleEvent.COMPLETED.value,
        choices=[event.value for event in QueryLifecycleEvent],
        help="Lifecycle event the notification is about",
    )
    parser.add_argument("--principal", default=None, help="Query principal")
    parser.add_argument("--state", required=True, help="Query state (e.g. FAILED)")
    parser.add_argument("--text", default="", help="Message text to send")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only evaluate the mute decision, don't post to Slack",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_logs=settings.log_json)

    context = EvaluationContext(
        event=args.event, principal=args.principal, state=args.state
    )

    if args.dry_run:
        client = create_slack_bot_client(settings)
        try:
            channel_id = client.open_private_channel(args.recipient)
            decision = MuteDecisionEngine(client).decide(channel_id, context)
        except SlackBotError as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(f"Decision for {args.recipient} ({channel_id}): {decision.value}")
        return

    if not args.text:
        parser.error("--text is required unless --dry-run is set")

    dispatcher = create_dispatcher(settings, runner=InlineTaskRunner())
    outcome = dispatcher.deliver(args.recipient, context, args.text)
    print(f"Notification {outcome.value}")
    if outcome is DispatchOutcome.FAILED:
        sys.exit(1)


if __name__ == "__main__":
    main()
