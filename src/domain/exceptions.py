"""Custom exception hierarchy for the Slack notification bot.

Every failure raised below the dispatcher boundary derives from SlackBotError,
so a single handler can contain the whole notification chain.
"""


class SlackBotError(Exception):
    """Base exception for all application errors."""

    pass


class ConfigurationError(SlackBotError):
    """Invalid settings, templates or knowledge base files."""

    pass


class MalformedTimestampError(SlackBotError):
    """A message timestamp could not be parsed as a number."""

    def __init__(self, value: object) -> None:
        """Initialize with the offending raw value."""
        self.value = value
        super().__init__(f"Malformed Slack timestamp: {value!r}")


class ChannelResolutionError(SlackBotError):
    """Recipient could not be mapped to a private channel."""

    def __init__(self, recipient: str, reason: str) -> None:
        """Initialize with recipient and failure reason."""
        self.recipient = recipient
        super().__init__(f"Failed to open channel for {recipient}: {reason}")


class HistoryFetchError(SlackBotError):
    """Slack API failure while paging channel history."""

    pass


class DeliveryError(SlackBotError):
    """Slack rejected the message or the transport failed."""

    pass
