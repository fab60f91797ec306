"""
Slack notifier
Posts messages to a Slack incoming webhook
"""

import logging
import requests
from typing import Dict
from relay_config import DeliveryConfig
from relay_errors import SendFailedError

logger = logging.getLogger()


def build_payload(message: str, config: DeliveryConfig) -> Dict[str, str]:
    """Slack incoming-webhook body for a single message"""
    return {
        "text": message,
        "channel": config.channel,
        "username": config.username,
        "icon_emoji": config.icon_emoji,
    }


def send_slack_message(message: str, config: DeliveryConfig) -> None:
    """
    Send one message to Slack

    Exactly one POST per call, no retry. Calling twice sends twice.

    Args:
        message: Message text to send
        config: Delivery target for this invocation

    Raises:
        SendFailedError: empty message, unserializable payload, transport error or non-2xx response
    """
    if not message:
        raise SendFailedError("refusing to send an empty message")

    payload = build_payload(message, config)

    try:
        response = requests.post(config.webhook_url, json=payload)
        response.raise_for_status()
    except requests.RequestException as e:
        raise SendFailedError(str(e)) from e
    except (TypeError, ValueError) as e:
        raise SendFailedError(f"could not build payload: {e}") from e

    logger.info(f"Notification sent to {config.channel} ({len(message)} chars)")
