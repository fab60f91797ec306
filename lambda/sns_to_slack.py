"""
Main Lambda handler for the SNS / CloudWatch Logs to Slack relay
Runs the relay workflow for one invocation:
1. Resolve Slack delivery config from the environment
2. Decode the inbound event into messages
3. Post each message to Slack in order, stopping at the first failure
"""

import os
import sys
import json
import logging
from typing import Dict, Any, List, Optional
from relay_config import DeliveryConfig, resolve_config, get_log_level
from relay_errors import RelayError, ConfigError, DecodeError, DeliveryError
from log_decoder import decode_event
from slack_notifier import send_slack_message

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)


def relay_messages(messages: List[str], config: DeliveryConfig) -> int:
    """
    Deliver messages one at a time, in order

    Messages after the first failed delivery are not attempted.

    Returns:
        Number of messages delivered

    Raises:
        DeliveryError: first failed delivery
    """
    for index, message in enumerate(messages, start=1):
        try:
            send_slack_message(message, config)
        except DeliveryError as e:
            logger.error(f"Delivery of message {index}/{len(messages)} failed, skipping the remaining {len(messages) - index}: {e}")
            raise
    return len(messages)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda entry point for SNS and CloudWatch Logs subscription events

    Returns a status dict when every message was delivered, otherwise
    re-raises the first error so the Lambda host records the failure.
    """
    logger.setLevel(get_log_level())

    try:
        # Step 1: Resolve configuration
        try:
            config = resolve_config()
        except ConfigError as e:
            logger.error(f"Configuration error, nothing delivered: {e}")
            raise

        # Step 2: Decode event
        try:
            messages = decode_event(event)
        except DecodeError as e:
            logger.error(f"Failed to decode event at {e.stage} stage: {e.detail}")
            raise
        logger.info(f"Decoded {len(messages)} message(s) for {config.channel}")

        # Step 3: Deliver
        delivered = relay_messages(messages, config)

        return {
            "statusCode": 200,
            "body": f"Delivered {delivered} message(s)"
        }

    except RelayError:
        # Already logged at the failing step
        raise
    except Exception as e:
        logger.error(f"Relay error: {type(e).__name__}: {str(e)}", exc_info=True)
        raise


def main(argv: Optional[List[str]] = None) -> int:
    """Run the handler locally against an event JSON file"""
    if argv is None:
        argv = sys.argv[1:]

    if len(argv) != 1:
        print(f"usage: {os.path.basename(sys.argv[0])} EVENT_JSON_FILE", file=sys.stderr)
        return 2

    with open(argv[0]) as f:
        local_event = json.load(f)

    print(json.dumps(lambda_handler(local_event, None)))
    return 0


if __name__ == "__main__":
    logging.basicConfig(format="%(asctime)s %(levelname)s %(message)s")
    sys.exit(main())
