"""WebDriverAgent runner - launches the agent and waits until it is ready."""

from .config import Config, WdaConfig, load_config, find_config
from .exceptions import (
    WebDriverAgentError,
    ConfigurationError,
    UnreachableError,
    AgentUnhealthyError,
    ResponseDecodeError,
)
from .builder import ProcessBuilder, XcodeBuilder
from .commands import (
    RemoteResponse,
    ResponseValueConverter,
    WDACommand,
    WDACommandExecutor,
)
from .runner import LauncherState, ProcessHandle, WebDriverAgentRunner

__all__ = [
    "Config",
    "WdaConfig",
    "load_config",
    "find_config",
    "WebDriverAgentError",
    "ConfigurationError",
    "UnreachableError",
    "AgentUnhealthyError",
    "ResponseDecodeError",
    "ProcessBuilder",
    "XcodeBuilder",
    "RemoteResponse",
    "ResponseValueConverter",
    "WDACommand",
    "WDACommandExecutor",
    "LauncherState",
    "ProcessHandle",
    "WebDriverAgentRunner",
]
