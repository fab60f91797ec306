"""
Event decoder
Extracts plain-text messages from CloudWatch Logs subscription batches
(base64 -> gzip -> JSON) and SNS notification batches
"""

import base64
import binascii
import gzip
import json
import logging
import zlib
from typing import Any, Dict, List, Optional
from relay_errors import InvalidEncodingError, DecompressionFailedError, MalformedPayloadError

logger = logging.getLogger()


class LogBatch:
    """Decoded CloudWatch Logs subscription payload"""

    def __init__(self, log_events: List[Dict[str, Any]], owner: Optional[str] = None, log_group: Optional[str] = None,
                 log_stream: Optional[str] = None, message_type: Optional[str] = None, subscription_filters: Optional[List[str]] = None):
        self.log_events = log_events
        self.owner = owner
        self.log_group = log_group
        self.log_stream = log_stream
        self.message_type = message_type
        self.subscription_filters = subscription_filters or []

    @classmethod
    def from_dict(cls, data: Any) -> "LogBatch":
        """
        Validate a parsed JSON document and build a LogBatch

        Raises:
            MalformedPayloadError: document does not have the logEvents shape
        """
        if not isinstance(data, dict):
            raise MalformedPayloadError(f"expected a JSON object, got {type(data).__name__}")

        log_events = data.get("logEvents")
        if not isinstance(log_events, list):
            raise MalformedPayloadError("logEvents is missing or not a list")

        for index, log_event in enumerate(log_events):
            if not isinstance(log_event, dict):
                raise MalformedPayloadError(f"logEvents[{index}] is not an object")
            message = log_event.get("message")
            if message is not None and not isinstance(message, str):
                raise MalformedPayloadError(f"logEvents[{index}].message is not a string")

        return cls(
            log_events=log_events,
            owner=data.get("owner"),
            log_group=data.get("logGroup"),
            log_stream=data.get("logStream"),
            message_type=data.get("messageType"),
            subscription_filters=data.get("subscriptionFilters"),
        )


def base64_decode(data: str) -> bytes:
    """Decode standard-alphabet base64, rejecting bad characters and padding"""
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        logger.error(f"Couldn't base64 decode aws log data: {e}")
        raise InvalidEncodingError(str(e)) from e


def gunzip_to_string(gzipped: bytes) -> str:
    """Fully decompress gzip bytes and decode the result as UTF-8"""
    try:
        return gzip.decompress(gzipped).decode("utf-8")
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        logger.error(f"Couldn't gunzip decoded aws log data: {e}")
        raise DecompressionFailedError(str(e)) from e


def parse_log_batch(text: str) -> LogBatch:
    """Parse decompressed JSON into a LogBatch"""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.error(f"Couldn't parse gunzipped aws log data as JSON: {e}")
        raise MalformedPayloadError(str(e)) from e

    try:
        return LogBatch.from_dict(data)
    except MalformedPayloadError as e:
        logger.error(f"Couldn't create log batch from gunzipped json: {e.detail}")
        raise


def extract_messages(batch: LogBatch) -> List[str]:
    """Present, non-empty messages in original order"""
    return [event["message"] for event in batch.log_events if event.get("message")]


def decode_log_batch(data: str) -> List[str]:
    """
    Run the full log-batch pipeline: base64 -> gzip -> JSON -> messages

    Args:
        data: awslogs.data field of a CloudWatch Logs subscription event

    Returns:
        Messages in original order (possibly empty)

    Raises:
        InvalidEncodingError, DecompressionFailedError, MalformedPayloadError
    """
    gzipped = base64_decode(data)
    text = gunzip_to_string(gzipped)
    batch = parse_log_batch(text)

    logger.debug(
        f"Decoded {len(batch.log_events)} log events from "
        f"{batch.log_group or 'unknown group'}/{batch.log_stream or 'unknown stream'} "
        f"({len(gzipped)} bytes compressed, {len(text)} chars)"
    )
    return extract_messages(batch)


def _first(mapping: Dict, *keys: str) -> Any:
    for key in keys:
        if key in mapping:
            return mapping[key]
    return None


def decode_notifications(event: Dict[str, Any]) -> List[str]:
    """Project the SNS message of each record, skipping records without one"""
    records = _first(event, "Records", "records")
    if not isinstance(records, list):
        return []

    messages = []
    for record in records:
        if not isinstance(record, dict):
            continue
        sns = _first(record, "Sns", "sns")
        if not isinstance(sns, dict):
            continue
        message = _first(sns, "Message", "message")
        if isinstance(message, str) and message:
            messages.append(message)

    return messages


def decode_event(event: Dict[str, Any]) -> List[str]:
    """
    Decode whichever event shape Lambda delivered

    A log-batch event without data and an unrecognised event both yield no messages
    """
    aws_logs = _first(event, "awslogs", "awsLogs") if isinstance(event, dict) else None
    if aws_logs is not None:
        data = aws_logs.get("data") if isinstance(aws_logs, dict) else None
        if data is None:
            logger.info("Log batch event carried no data")
            return []
        return decode_log_batch(data)

    if isinstance(event, dict) and _first(event, "Records", "records") is not None:
        return decode_notifications(event)

    logger.warning("Unrecognised event shape, nothing to relay")
    return []
