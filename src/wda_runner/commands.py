"""Sending commands to WebDriverAgent over its HTTP/JSON interface."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import httpx
import structlog

from .exceptions import ResponseDecodeError

logger = structlog.get_logger()

DEFAULT_COMMAND_TIMEOUT = httpx.Timeout(30.0, connect=5.0)


class WDACommand(Enum):
    """WebDriverAgent endpoints as (HTTP method, path template)."""

    STATUS = ("GET", "/status")
    HEALTHCHECK = ("GET", "/wda/healthcheck")
    CREATE_SESSION = ("POST", "/session")
    DELETE_SESSION = ("DELETE", "/session/{session_id}")

    @property
    def method(self) -> str:
        return self.value[0]

    @property
    def path(self) -> str:
        return self.value[1]


@dataclass
class RemoteResponse:
    """Decoded WebDriverAgent response."""

    status_code: int
    value: Any = None
    session_id: str | None = None
    raw: Any = None


class WDACommandExecutor:
    """Executes WDACommands against a base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: httpx.Timeout | float = DEFAULT_COMMAND_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def execute(
        self,
        command: WDACommand,
        params: Mapping[str, Any] | None = None,
    ) -> RemoteResponse:
        """Send a command and decode the JSON reply.

        Args:
            command: Command to send.
            params: Values for path placeholders; the remainder is sent as the
                JSON body of POST commands.

        Returns:
            The decoded RemoteResponse.

        Raises:
            ResponseDecodeError: If the body is not a JSON object or a path
                parameter is missing.
            httpx.HTTPError: If the request could not be sent.
        """
        params = dict(params or {})
        try:
            path = command.path.format(**params)
        except KeyError as e:
            raise ResponseDecodeError(
                f"Missing parameter {e} for command {command.name}"
            ) from e
        body = {k: v for k, v in params.items() if f"{{{k}}}" not in command.path}

        logger.debug("wda_command", command=command.name, path=path)

        with httpx.Client(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            response = client.request(
                command.method,
                path,
                json=body if command.method == "POST" else None,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"{command.name} returned a non-JSON body "
                f"(HTTP {response.status_code})"
            ) from e

        if not isinstance(payload, dict):
            raise ResponseDecodeError(
                f"{command.name} returned {type(payload).__name__}, expected an object"
            )

        return RemoteResponse(
            status_code=response.status_code,
            value=payload.get("value"),
            session_id=payload.get("sessionId"),
            raw=payload,
        )


class ResponseValueConverter:
    """Interprets the ``value`` member of a RemoteResponse."""

    def __init__(self, response: RemoteResponse):
        self.response = response

    def to_map(self) -> dict[str, Any]:
        """Return the response value as a dict.

        Raises:
            ResponseDecodeError: If the value is not a mapping.
        """
        value = self.response.value
        if not isinstance(value, Mapping):
            raise ResponseDecodeError(
                f"Expected an object value, got {type(value).__name__}"
            )
        return dict(value)
