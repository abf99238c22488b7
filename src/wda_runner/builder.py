"""Building and launching WebDriverAgent through xcodebuild."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from .config import WdaConfig
from .exceptions import ConfigurationError

logger = structlog.get_logger()

WDA_PROJECT = "WebDriverAgent.xcodeproj"
WDA_SCHEME = "WebDriverAgentRunner"


class ProcessBuilder(Protocol):
    """Anything that can start the agent process."""

    def build(self) -> subprocess.Popen: ...


@dataclass
class XcodeBuilder:
    """Starts `xcodebuild test` for the WebDriverAgentRunner scheme."""

    wda_path: str | None = None
    platform: str | None = None
    device_name: str | None = None
    device_id: str | None = None
    os_version: str | None = None

    @classmethod
    def from_config(cls, config: WdaConfig) -> "XcodeBuilder":
        return cls(
            wda_path=config.wda_path,
            platform=config.platform,
            device_name=config.device_name,
            device_id=config.device_id,
            os_version=config.os_version,
        )

    def destination(self) -> str:
        """Build the xcodebuild -destination specifier.

        Raises:
            ConfigurationError: If no platform is configured.
        """
        if not self.platform:
            raise ConfigurationError("platform is required to build WebDriverAgent")

        parts = [f"platform={self.platform}"]
        if self.device_name:
            parts.append(f"name={self.device_name}")
        if self.device_id:
            parts.append(f"id={self.device_id}")
        if self.os_version:
            parts.append(f"OS={self.os_version}")
        return ",".join(parts)

    def build_command(self) -> list[str]:
        """Build the xcodebuild command line.

        Raises:
            ConfigurationError: If wda_path or platform is missing.
        """
        if not self.wda_path:
            raise ConfigurationError("wda_path is required to build WebDriverAgent")

        return [
            "xcodebuild",
            "-project",
            str(Path(self.wda_path) / WDA_PROJECT),
            "-scheme",
            WDA_SCHEME,
            "-destination",
            self.destination(),
            "test",
        ]

    def build(self) -> subprocess.Popen:
        """Start xcodebuild with stdout piped and stderr merged into it."""
        cmd = self.build_command()

        logger.info(
            "starting_xcodebuild",
            wda_path=self.wda_path,
            destination=cmd[-2],
        )

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=self.wda_path,
        )

        logger.info("xcodebuild_started", pid=process.pid)
        return process
