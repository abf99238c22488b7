"""WebDriverAgent lifecycle: launch, readiness gating and teardown."""

import subprocess
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeoutError
from enum import Enum, auto
from pathlib import Path

import httpx
import structlog

from .builder import XcodeBuilder
from .commands import ResponseValueConverter, WDACommand, WDACommandExecutor
from .config import WdaConfig
from .exceptions import (
    AgentUnhealthyError,
    ConfigurationError,
    ResponseDecodeError,
    UnreachableError,
)
from .reachability import is_url_reachable, poll_until_reachable
from .tasks import spawn_best_effort, spawn_daemon
from .xcode_logger import XcodeLogger

logger = structlog.get_logger()

WDA_BASE_URL = "http://localhost"
WDA_AGENT_PORT = 8100
WDA_STATE_FIELD = "state"
WDA_SUCCESS_STATE = "success"
KILL_WAIT_SECONDS = 5.0


class LauncherState(Enum):
    """Runner lifecycle states."""

    NOT_STARTED = auto()
    STARTING = auto()  # Process launched (or reused), waiting for reachability
    REACHABLE = auto()  # Endpoint answered 200, status not yet verified
    VERIFIED = auto()  # Status reported success; ready for commands
    STOPPED = auto()
    FAILED = auto()  # start() raised; any owned process was killed


class ProcessHandle:
    """Exclusive, optional ownership of the agent process.

    Empty unless this runner spawned the process itself, so releasing a
    reused agent is a no-op.
    """

    def __init__(self) -> None:
        self._process: subprocess.Popen | None = None

    @property
    def owned(self) -> bool:
        return self._process is not None

    @property
    def process(self) -> subprocess.Popen | None:
        return self._process

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    def adopt(self, process: subprocess.Popen) -> None:
        """Take ownership of a freshly spawned process.

        Raises:
            RuntimeError: If a process is already owned.
        """
        if self._process is not None:
            raise RuntimeError(f"Already owns process {self._process.pid}")
        self._process = process

    def release(self) -> bool:
        """Force-kill the owned process and drop ownership.

        Returns:
            True if a process was owned, False if there was nothing to do.
        """
        process, self._process = self._process, None
        if process is None:
            return False

        if process.poll() is None:
            logger.info("killing_wda_process", pid=process.pid)
            process.kill()
            try:
                process.wait(timeout=KILL_WAIT_SECONDS)
            except subprocess.TimeoutExpired:
                logger.warning("wda_process_did_not_exit", pid=process.pid)
        return True


def _validated_url(url_str: str) -> str:
    """Check that url_str is a plain http://host:port URL.

    Raises:
        ConfigurationError: If the URL is malformed.
    """
    try:
        url = httpx.URL(url_str)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Url syntax is malformed: {url_str}") from e

    if (
        url.scheme != "http"
        or not url.host
        or url.port != WDA_AGENT_PORT
        or url.raw_path not in (b"", b"/")
        or url.query
        or url.fragment
        or url.userinfo
        or any(c.isspace() for c in url_str)
    ):
        raise ConfigurationError(f"Url syntax is malformed: {url_str}")
    return url_str


class WebDriverAgentRunner:
    """Starts WebDriverAgent (or attaches to a running one) and waits until it is usable.

    Usage:
        runner = WebDriverAgentRunner(WdaConfig(platform="iOS Simulator", ...))
        runner.start()
        runner.command_executor.execute(WDACommand.STATUS)
        runner.stop()
    """

    def __init__(
        self,
        config: WdaConfig,
        command_executor: WDACommandExecutor | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the runner.

        Args:
            config: Launch configuration, fixed for the runner's lifetime.
            command_executor: Command channel; defaults to one bound to
                get_wda_url().
            transport: Optional httpx transport for the reachability probe
                and the default command channel (used in tests).

        Raises:
            ConfigurationError: If device_ip yields a malformed URL.
        """
        self.config = config
        self.transport = transport
        self.command_executor = command_executor or WDACommandExecutor(
            self.get_wda_url(), transport=transport
        )
        self._handle = ProcessHandle()
        self._state = LauncherState.NOT_STARTED
        self._logger_task: Future | None = None

    @property
    def state(self) -> LauncherState:
        return self._state

    @property
    def pid(self) -> int | None:
        """PID of the agent process this runner spawned, if any."""
        return self._handle.pid

    def start(self) -> None:
        """Launch the agent if needed and wait until it reports success.

        Raises:
            ConfigurationError: If the endpoint URL or build settings are invalid.
            UnreachableError: If the endpoint never answered 200 in time.
            AgentUnhealthyError: If the status check did not report success.
            RuntimeError: If the runner is already started.
        """
        if self._state in (
            LauncherState.STARTING,
            LauncherState.REACHABLE,
            LauncherState.VERIFIED,
        ):
            raise RuntimeError("WebDriverAgent runner is already started")

        url = self.get_wda_url()
        timeout = self.config.launch_timeout
        self._state = LauncherState.STARTING

        try:
            if not self.config.prebuilt_wda:
                logger.info("starting_wda", url=url)
                self._handle.adopt(XcodeBuilder.from_config(self.config).build())
                self._start_wda_logger()
            else:
                logger.info("using_existing_wda", url=url)

            self._wait_for_reachability(url, timeout)
            self._state = LauncherState.REACHABLE
            self._check_status()
        except BaseException:
            self.stop()
            self._state = LauncherState.FAILED
            raise

        self._state = LauncherState.VERIFIED
        logger.info("wda_ready", url=url, pid=self._handle.pid)

    def stop(self) -> None:
        """Kill the agent process if this runner started it. Safe to repeat."""
        if self._handle.release():
            logger.info("wda_stopped")
        if self._state is not LauncherState.NOT_STARTED:
            self._state = LauncherState.STOPPED

    def get_wda_url(self) -> str:
        """Derive the agent URL from device_ip, falling back to localhost.

        Raises:
            ConfigurationError: If the resulting URL is malformed.
        """
        if self.config.device_ip is not None:
            url_str = f"http://{self.config.device_ip}:{WDA_AGENT_PORT}"
        else:
            url_str = f"{WDA_BASE_URL}:{WDA_AGENT_PORT}"
        return _validated_url(url_str)

    def __enter__(self) -> "WebDriverAgentRunner":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _wait_for_reachability(self, url: str, timeout: int) -> None:
        """Block until the endpoint answers 200 or the timeout elapses.

        Raises:
            UnreachableError: On timeout.
        """
        logger.info("waiting_for_wda", url=url, timeout_seconds=timeout)

        cancelled = threading.Event()
        future = spawn_daemon(
            poll_until_reachable,
            lambda: is_url_reachable(url, transport=self.transport),
            timeout,
            cancelled=cancelled,
            name="wda-reachability",
        )
        try:
            reachable = future.result(timeout=timeout)
        except FuturesTimeoutError:
            reachable = False
        finally:
            cancelled.set()

        if not reachable:
            logger.error("wda_unreachable", url=url, timeout_seconds=timeout)
            raise UnreachableError(url, timeout)

        logger.info("wda_reachable", url=url)

    def _check_status(self) -> None:
        """Send one STATUS command and require state == "success".

        Raises:
            AgentUnhealthyError: On any other state, a missing state or an
                undecodable response.
        """
        logger.info("checking_wda_status")
        try:
            response = self.command_executor.execute(WDACommand.STATUS)
            state = ResponseValueConverter(response).to_map().get(WDA_STATE_FIELD)
        except (ResponseDecodeError, httpx.HTTPError) as e:
            logger.error("wda_status_failed", error=str(e))
            raise AgentUnhealthyError(None, reason=str(e)) from e

        if state != WDA_SUCCESS_STATE:
            logger.error("wda_unhealthy", state=state)
            raise AgentUnhealthyError(state)

    def _start_wda_logger(self) -> None:
        """Capture xcodebuild output in the background."""
        process = self._handle.process
        log_file = None
        if self.config.log_dir:
            log_file = Path(self.config.log_dir) / f"xcodebuild-{process.pid}.log"
        self._logger_task = spawn_best_effort(
            XcodeLogger(process, log_file), name="wda-xcode-logger"
        )
