"""Transport configuration for remote data sources."""


class TransportConfig:
    """HTTP transport and retry settings."""

    # Request settings
    REQUEST_TIMEOUT = 60
    USER_AGENT = "tablequery/0.1"

    # Content types the parser understands
    JSON_CONTENT_TYPE = "application/json"
    CSV_CONTENT_TYPE = "text/csv"
    DEFAULT_CHARSET = "utf-8"

    # Retry settings (used only by RetryingTransport)
    MAX_RETRIES = 3
    RETRY_BASE_DELAY = 2
    RETRY_MAX_DELAY = 60
