"""
Error types for the SNS/CloudWatch Logs to Slack relay
Each failure variant of the pipeline is its own exception class
"""


class RelayError(Exception):
    """Base class for every relay failure"""


class ConfigError(RelayError):
    """Configuration could not be resolved from the environment"""


class MissingRequiredError(ConfigError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required environment variable {name} is not set")


class DecodeError(RelayError):
    """Inbound event payload could not be decoded"""

    stage = "decode"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.stage}: {detail}")


class InvalidEncodingError(DecodeError):
    stage = "base64"


class DecompressionFailedError(DecodeError):
    stage = "gunzip"


class MalformedPayloadError(DecodeError):
    stage = "json"


class DeliveryError(RelayError):
    """Outbound webhook delivery failed"""


class SendFailedError(DeliveryError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Slack delivery failed: {detail}")
