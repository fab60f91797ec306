"""
Integration test for complete relay workflow
"""

import pytest
import sys
import os
import json
import gzip
import base64
import logging
import requests
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../lambda')))

# Import using importlib to avoid 'lambda' reserved keyword
import importlib
sns_to_slack = importlib.import_module("sns_to_slack")
relay_errors = importlib.import_module("relay_errors")

lambda_handler = sns_to_slack.lambda_handler


def log_batch_event(messages):
    document = {
        "messageType": "DATA_MESSAGE",
        "logGroup": "/aws/lambda/orders",
        "logStream": "stream-1",
        "logEvents": [{"id": str(i), "message": m} for i, m in enumerate(messages)],
    }
    data = base64.b64encode(gzip.compress(json.dumps(document).encode())).decode()
    return {"awslogs": {"data": data}}


def ok_response():
    response = MagicMock()
    response.status_code = 200
    return response


def error_response(status):
    response = MagicMock()
    response.status_code = status
    response.raise_for_status.side_effect = requests.HTTPError(f"{status} Server Error")
    return response


@pytest.fixture
def mock_env(monkeypatch):
    """Set environment variables"""
    monkeypatch.setenv("SLACK_WEBHOOK", "https://hooks.slack.com/services/T000/B000/XXXX")
    monkeypatch.setenv("CHANNEL_NAME", "#alerts")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("USERNAME", raising=False)


@pytest.fixture
def mock_post():
    with patch('requests.post') as mock:
        mock.return_value = ok_response()
        yield mock


def sent_texts(mock_post):
    return [c[1]["json"]["text"] for c in mock_post.call_args_list]


def test_lambda_handler_sns_single_message(mock_post, mock_env):
    """Test SNS event produces exactly one POST"""
    result = lambda_handler({"records": [{"sns": {"message": "hello"}}]}, None)

    assert result["statusCode"] == 200
    assert "Delivered 1 message" in result["body"]
    mock_post.assert_called_once()
    assert mock_post.call_args[1]["json"] == {
        "text": "hello",
        "channel": "#alerts",
        "username": "SnsToSlackLambda",
        "icon_emoji": ":bomb:",
    }


def test_lambda_handler_log_batch(mock_post, mock_env):
    event = log_batch_event(["a", None, "b"])

    result = lambda_handler(event, None)

    assert result["statusCode"] == 200
    assert sent_texts(mock_post) == ["a", "b"]


def test_lambda_handler_empty_batch_sends_nothing(mock_post, mock_env):
    result = lambda_handler(log_batch_event([]), None)

    assert result["statusCode"] == 200
    assert "Delivered 0 message" in result["body"]
    mock_post.assert_not_called()


@pytest.mark.parametrize("missing", ["SLACK_WEBHOOK", "CHANNEL_NAME"])
def test_lambda_handler_missing_config(mock_post, mock_env, monkeypatch, missing):
    """Test config failure happens before any network call"""
    monkeypatch.delenv(missing)

    with pytest.raises(relay_errors.MissingRequiredError, match=missing):
        lambda_handler({"Records": [{"Sns": {"Message": "hello"}}]}, None)

    mock_post.assert_not_called()


def test_lambda_handler_decode_failure(mock_post, mock_env, caplog):
    """Test decode failure is logged and surfaced, nothing delivered"""
    with caplog.at_level(logging.ERROR):
        with pytest.raises(relay_errors.DecompressionFailedError):
            lambda_handler({"awslogs": {"data": base64.b64encode(b"plain").decode()}}, None)

    mock_post.assert_not_called()
    assert "gunzip" in caplog.text


def test_lambda_handler_stops_at_first_delivery_failure(mock_post, mock_env, caplog):
    """Test message 3 is never sent when message 2 fails"""
    mock_post.side_effect = [ok_response(), error_response(500), ok_response()]

    with caplog.at_level(logging.ERROR):
        with pytest.raises(relay_errors.SendFailedError, match="500"):
            lambda_handler(log_batch_event(["one", "two", "three"]), None)

    assert mock_post.call_count == 2
    assert sent_texts(mock_post) == ["one", "two"]
    assert "message 2/3" in caplog.text


def test_relay_messages_counts_deliveries(mock_post):
    config = sns_to_slack.DeliveryConfig("https://example.com/hook", "#ops")

    assert sns_to_slack.relay_messages(["x", "y"], config) == 2
    assert sent_texts(mock_post) == ["x", "y"]


def test_lambda_handler_unknown_event(mock_post, mock_env):
    result = lambda_handler({"source": "aws.events"}, None)

    assert result["statusCode"] == 200
    mock_post.assert_not_called()


def test_lambda_handler_deeply_nested_batch(mock_post, mock_env, caplog):
    data = base64.b64encode(gzip.compress(b"[" * 200000)).decode()

    with caplog.at_level(logging.ERROR):
        with pytest.raises(relay_errors.MalformedPayloadError):
            lambda_handler({"awslogs": {"data": data}}, None)

    mock_post.assert_not_called()
    assert "json stage" in caplog.text


def test_lambda_handler_logs_unexpected_errors(mock_post, mock_env, caplog):
    """Test errors outside the relay taxonomy are logged before reaching the host"""
    with patch.object(sns_to_slack, "decode_event", side_effect=TypeError("unhashable type: 'list'")):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(TypeError):
                lambda_handler({"Records": [{"Sns": {"Message": "hello"}}]}, None)

    mock_post.assert_not_called()
    assert "TypeError" in caplog.text
    assert "unhashable type" in caplog.text


def test_main_runs_event_file(mock_post, mock_env, tmp_path, capsys):
    """Test local run against an event JSON file"""
    event_file = tmp_path / "event.json"
    event_file.write_text(json.dumps({"Records": [{"Sns": {"Message": "from file"}}]}))

    assert sns_to_slack.main([str(event_file)]) == 0

    assert sent_texts(mock_post) == ["from file"]
    output = json.loads(capsys.readouterr().out)
    assert output["statusCode"] == 200


def test_main_usage(mock_post, capsys):
    assert sns_to_slack.main([]) == 2

    assert "usage" in capsys.readouterr().err
    mock_post.assert_not_called()
