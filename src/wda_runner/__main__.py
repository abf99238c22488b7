"""CLI entry point for the runner."""

import argparse
import logging
import signal
import threading
import tomllib

import structlog
from pydantic import ValidationError

from .config import Config, WdaConfig, find_config, load_config
from .exceptions import WebDriverAgentError
from .runner import WebDriverAgentRunner

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _raise_interrupt(signum: int, frame) -> None:
    raise KeyboardInterrupt(signal.Signals(signum).name)


def interrupt_on_signals() -> None:
    """Turn SIGINT and SIGTERM into KeyboardInterrupt.

    Installed while start() blocks, so a signal aborts the wait and start()
    kills the half-launched agent on its way out.
    """
    for signum in SHUTDOWN_SIGNALS:
        signal.signal(signum, _raise_interrupt)


def stop_on_signals(stop_event: threading.Event) -> None:
    """Set stop_event on SIGINT or SIGTERM once the agent is up."""
    logger = structlog.get_logger()

    def request_stop(signum: int, frame) -> None:
        logger.info("signal_received", signal=signal.Signals(signum).name)
        stop_event.set()

    for signum in SHUTDOWN_SIGNALS:
        signal.signal(signum, request_stop)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="WebDriverAgent runner - launches WDA and waits until it is ready"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path or name of runner TOML config file",
    )
    parser.add_argument(
        "--device-ip",
        type=str,
        default=None,
        help="Device IP serving WDA (overrides config; default localhost)",
    )
    parser.add_argument(
        "--prebuilt",
        action="store_true",
        help="Attach to an already running WDA instead of building it",
    )
    parser.add_argument(
        "--launch-timeout",
        type=int,
        default=None,
        help="Seconds to wait for WDA to become reachable (overrides config)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for xcodebuild output (overrides config)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at debug level",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Load the config named by --config and apply CLI overrides.

    Raises:
        SystemExit: If the config file is missing or invalid.
    """
    logger = structlog.get_logger()

    overrides = {}
    if args.device_ip:
        overrides["device_ip"] = args.device_ip
    if args.prebuilt:
        overrides["prebuilt_wda"] = True
    if args.launch_timeout is not None:
        overrides["launch_timeout"] = args.launch_timeout
    if args.log_dir:
        overrides["log_dir"] = args.log_dir

    try:
        if args.config:
            config_path = find_config(args.config)
            config = load_config(config_path)
            logger.info("config_loaded", path=str(config_path))
        else:
            config = Config()
            logger.info("using_default_config")

        if overrides:
            wda = WdaConfig.model_validate({**config.wda.model_dump(), **overrides})
            config = config.model_copy(update={"wda": wda})
    except FileNotFoundError as e:
        logger.error("config_not_found", path=args.config, error=str(e))
        raise SystemExit(1)
    except (ValidationError, tomllib.TOMLDecodeError) as e:
        logger.error("config_invalid", path=args.config, error=str(e))
        raise SystemExit(1)

    return config


def main(argv: list[str] | None = None) -> None:
    """Run the WebDriverAgent runner until interrupted."""
    args = build_parser().parse_args(argv)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if args.verbose else logging.INFO
        ),
    )

    logger = structlog.get_logger()
    config = resolve_config(args)

    try:
        runner = WebDriverAgentRunner(config.wda)
        logger.info(
            "runner_starting",
            url=runner.get_wda_url(),
            prebuilt=config.wda.prebuilt_wda,
            launch_timeout=config.wda.launch_timeout,
        )
        interrupt_on_signals()
        runner.start()
    except WebDriverAgentError as e:
        logger.error("runner_error", error=str(e))
        raise SystemExit(1)
    except KeyboardInterrupt as e:
        logger.warning("startup_interrupted", signal=str(e) or "SIGINT")
        raise SystemExit(130)

    stop_event = threading.Event()
    try:
        stop_on_signals(stop_event)
        stop_event.wait()
    finally:
        runner.stop()


if __name__ == "__main__":
    main()
