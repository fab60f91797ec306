"""
Relay configuration
Resolves Slack delivery settings and log verbosity from environment variables
"""

import os
import logging
from typing import Mapping, Optional
from relay_errors import MissingRequiredError

logger = logging.getLogger()

DEFAULT_USERNAME = "SnsToSlackLambda"
DEFAULT_LOG_LEVEL = "info"
ICON_EMOJI = ":bomb:"

# LOG_LEVEL values -> logging levels (Python has no TRACE, so it maps to DEBUG)
LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class DeliveryConfig:
    """Slack delivery target resolved once per invocation"""

    def __init__(self, webhook_url: str, channel: str, username: str = DEFAULT_USERNAME, icon_emoji: str = ICON_EMOJI):
        self.webhook_url = webhook_url
        self.channel = channel
        self.username = username
        self.icon_emoji = icon_emoji

    def __repr__(self):
        # Webhook URLs embed a secret token
        return f"DeliveryConfig(channel={self.channel!r}, username={self.username!r}, icon_emoji={self.icon_emoji!r})"

    def __eq__(self, other):
        if not isinstance(other, DeliveryConfig):
            return NotImplemented
        return vars(self) == vars(other)


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        logger.error(f"{name} not configured")
        raise MissingRequiredError(name)
    return value


def resolve_config(environ: Optional[Mapping[str, str]] = None) -> DeliveryConfig:
    """
    Build the delivery config from environment variables

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        DeliveryConfig for this invocation

    Raises:
        MissingRequiredError: SLACK_WEBHOOK or CHANNEL_NAME is unset or empty
    """
    if environ is None:
        environ = os.environ

    webhook_url = _require(environ, "SLACK_WEBHOOK")
    channel = _require(environ, "CHANNEL_NAME")
    username = environ.get("USERNAME") or DEFAULT_USERNAME

    config = DeliveryConfig(webhook_url=webhook_url, channel=channel, username=username)
    logger.debug(f"Resolved {config}")
    return config


def get_log_level(environ: Optional[Mapping[str, str]] = None) -> int:
    """Map LOG_LEVEL (trace/debug/info/warn/error) to a logging level, INFO if unknown"""
    if environ is None:
        environ = os.environ

    name = environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().lower()
    return LOG_LEVELS.get(name, logging.INFO)
