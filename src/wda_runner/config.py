"""Runner configuration from TOML files or capability mappings."""

import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WdaConfig(BaseModel):
    """Settings for building, launching and reaching WebDriverAgent."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    prebuilt_wda: bool = False  # True: attach to an already running agent
    wda_path: str | None = None  # Directory holding WebDriverAgent.xcodeproj
    platform: str | None = None  # e.g. "iOS Simulator" or "iOS"
    device_name: str | None = None
    device_id: str | None = None
    os_version: str | None = None
    device_ip: str | None = None  # None means localhost
    launch_timeout: int = Field(default=60, gt=0)  # Seconds
    log_dir: str | None = None  # Where xcodebuild output is written

    @field_validator("prebuilt_wda", mode="before")
    @classmethod
    def _only_true_means_prebuilt(cls, value: Any) -> Any:
        # Capability strings: only "true" (any case) attaches to a running agent.
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return value

    @field_validator("device_ip", mode="before")
    @classmethod
    def _blank_ip_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_capabilities(cls, capabilities: Mapping[str, Any]) -> "WdaConfig":
        """Build a config from a flat capability mapping.

        Capability values are frequently strings ("true", "60"); they are
        coerced to the declared field types. For prebuilt_wda any string other
        than "true" means a new agent is built. Unknown keys are ignored.

        Raises:
            pydantic.ValidationError: If a value cannot be coerced.
        """
        return cls.model_validate(dict(capabilities))


class Config(BaseModel):
    """Complete runner configuration."""

    wda: WdaConfig = Field(default_factory=WdaConfig)


def load_config(config_path: Path) -> Config:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values have the wrong type.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return Config.model_validate(data)


CONFIGS_DIR = Path(__file__).parent / "configs"


def find_config(name: str) -> Path:
    """Resolve a config name or path.

    A name containing "/" or ending in ".toml" is taken as a path. Anything
    else is looked up among the bundled configs, with or without the .toml
    suffix.

    Raises:
        FileNotFoundError: If nothing matches.
    """
    if "/" in name or name.endswith(".toml"):
        candidates = [Path(name)]
    else:
        candidates = [CONFIGS_DIR / f"{name}.toml", CONFIGS_DIR / name]

    for candidate in candidates:
        if candidate.is_file():
            return candidate

    bundled = ", ".join(list_configs()) or "none"
    raise FileNotFoundError(f"No config named {name!r} (bundled: {bundled})")


def list_configs() -> list[str]:
    """Names of the configs bundled with the package."""
    return sorted(p.stem for p in CONFIGS_DIR.glob("*.toml"))
