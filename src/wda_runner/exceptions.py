"""Custom exceptions for the WebDriverAgent runner."""


class WebDriverAgentError(Exception):
    """Base exception for runner errors."""

    pass


class ConfigurationError(WebDriverAgentError):
    """Raised when configuration yields an unusable value (e.g. a malformed URL)."""

    pass


class UnreachableError(WebDriverAgentError):
    """Raised when the agent does not answer with HTTP 200 within the launch timeout."""

    def __init__(self, url: str, timeout: int):
        super().__init__(f"WDA at {url} is not reachable in {timeout} seconds.")
        self.url = url
        self.timeout = timeout


class AgentUnhealthyError(WebDriverAgentError):
    """Raised when the agent is reachable but reports a non-success state."""

    def __init__(self, state: object, reason: str | None = None):
        message = f"WDA returned error state: {state}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.state = state
        self.reason = reason


class ResponseDecodeError(WebDriverAgentError):
    """Raised when a command response cannot be decoded."""

    pass
