"""Factories to compose the notification handler from settings."""

from __future__ import annotations

from src.adapters.notification_runner import DetachedTaskRunner
from src.adapters.slack_client import SlackBotClient, build_proxy_url
from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.protocols import TaskRunnerProtocol
from src.observability.metrics import ensure_metrics_exporter
from src.services.knowledge_base import KnowledgeBase
from src.services.notification_templates import NotificationTemplates
from src.use_cases.dispatch_notification import NotificationDispatcher
from src.use_cases.handle_query_events import QueryNotificationHandler

logger = get_logger(__name__)


def create_slack_bot_client(settings: Settings) -> SlackBotClient:
    """Build the Slack client, routed through the configured proxy if any."""

    proxy = build_proxy_url(
        settings.slack_http_proxy,
        settings.slack_proxy_user,
        settings.proxy_password,
    )
    return SlackBotClient(
        settings.slack_bot_token.get_secret_value(),
        base_url=settings.slack_base_url,
        proxy=proxy,
        page_size=settings.slack_history_page_size,
    )


def create_dispatcher(
    settings: Settings, runner: TaskRunnerProtocol | None = None
) -> NotificationDispatcher:
    """Build a dispatcher backed by one Slack client."""

    client = create_slack_bot_client(settings)
    return NotificationDispatcher(
        channel_resolver=client,
        page_source=client,
        sender=client,
        runner=runner or DetachedTaskRunner(),
    )


def create_query_notification_handler(
    settings: Settings, runner: TaskRunnerProtocol | None = None
) -> QueryNotificationHandler:
    """Build the query lifecycle handler.

    Raises:
        ConfigurationError: If templates or knowledge base files are invalid
    """
    templates = NotificationTemplates.from_yaml(settings.notification_templates_file)
    knowledge_base = (
        KnowledgeBase.from_yaml(settings.knowledge_base_file)
        if settings.knowledge_base_file
        else None
    )
    if settings.metrics_exporter_enabled:
        ensure_metrics_exporter()

    logger.info(
        "query_notification_handler_ready",
        templates=len(templates.templates),
        knowledge_entries=len(knowledge_base.entries) if knowledge_base else 0,
        proxy_enabled=settings.slack_http_proxy is not None,
    )
    return QueryNotificationHandler(
        dispatcher=create_dispatcher(settings, runner),
        templates=templates,
        knowledge_base=knowledge_base,
        users_pattern=settings.slack_users_pattern,
        email_template=settings.slack_email_template,
    )
