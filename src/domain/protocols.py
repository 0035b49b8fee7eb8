"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from collections.abc import Callable
from typing import Protocol

from src.domain.models import HistoryPage


class HistoryPageSourceProtocol(Protocol):
    """Paged access to a channel's message history."""

    def fetch_history_page(
        self, channel_id: str, latest: str | None = None
    ) -> HistoryPage:
        """Fetch one page of history older than ``latest``.

        Args:
            channel_id: IM channel ID
            latest: Raw Slack ``ts`` upper bound (None = newest)

        Returns:
            History page (newest first)

        Raises:
            HistoryFetchError: On API communication errors
        """
        ...


class ChannelResolverProtocol(Protocol):
    """Maps a recipient to its private channel."""

    def open_private_channel(self, recipient: str) -> str:
        """Open (or reuse) the IM channel with a recipient.

        Args:
            recipient: Email address or Slack user ID

        Returns:
            IM channel ID

        Raises:
            ChannelResolutionError: If the recipient has no channel
        """
        ...


class MessageSenderProtocol(Protocol):
    """Posts plain-text messages to a channel."""

    def send_message(self, channel_id: str, text: str) -> str:
        """Post a message.

        Args:
            channel_id: Target channel ID
            text: Message text

        Returns:
            Message timestamp

        Raises:
            DeliveryError: On transport or remote rejection
        """
        ...


class TaskRunnerProtocol(Protocol):
    """Runs notification tasks off the caller's path."""

    def run(self, name: str, task: Callable[[], object]) -> None:
        """Schedule ``task`` for execution."""
        ...
