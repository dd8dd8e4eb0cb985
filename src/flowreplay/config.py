"""
Settings for flowreplay.

Settings come from three layers, later layers winning:
    1. Field defaults below
    2. An optional YAML file (``flowreplay.yaml`` or ``--config``)
    3. Environment variables (see ENV_VARS)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowreplay.errors import ConfigError
from flowreplay.schema import DEFAULT_STEP_TIMEOUT_MS

DEFAULT_CONFIG_FILE = "flowreplay.yaml"

# Environment variable -> settings field
ENV_VARS = {
    "FLOWREPLAY_FLOW_DIR": "flow_dir",
    "FLOWREPLAY_DEFAULT_TIMEOUT_MS": "default_timeout_ms",
    "FLOWREPLAY_HEADLESS": "headless",
    "LOG_LEVEL": "log_level",
    "LOG_FILEPATH": "log_file",
    "REMOTE_BROWSER_HOST": "remote_browser_host",
    "REMOTE_BROWSER_PORT": "remote_browser_port",
}


class Settings(BaseModel):
    """
    Runtime configuration.

    Attributes:
        flow_dir: Directory that relative flow references are resolved against
        default_timeout_ms: Timeout for steps that declare none (or zero)
        log_level: Root log level for the flowreplay logger
        log_file: Optional file that receives a copy of all log records
        remote_browser_host: Host of the browser's remote debugging endpoint
        remote_browser_port: Port of the browser's remote debugging endpoint
        headless: Whether a locally launched browser runs headless
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    flow_dir: Path = Field(default=Path("flows"))
    default_timeout_ms: int = Field(default=DEFAULT_STEP_TIMEOUT_MS, gt=0)
    log_level: str = Field(default="INFO")
    log_file: Path | None = None
    remote_browser_host: str = Field(default="localhost")
    remote_browser_port: int = Field(default=9222, gt=0, le=65535)
    headless: bool = True

    @property
    def cdp_endpoint(self) -> str:
        """HTTP endpoint of the remote browser's DevTools protocol server."""
        host = self.remote_browser_host
        if "://" not in host:
            host = f"http://{host}"
        return f"{host}:{self.remote_browser_port}"

    def resolve_flow(self, flow_ref: str | Path) -> Path:
        """Resolve a flow reference to a file path (relative refs use flow_dir)."""
        path = Path(flow_ref).expanduser()
        if path.is_absolute():
            return path
        return self.flow_dir / path


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, field_name in ENV_VARS.items():
        value = environ.get(var)
        if value:
            overrides[field_name] = value
    return overrides


def load_settings(
    path: Path | str | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """
    Load settings from an optional YAML file plus environment overrides.

    Args:
        path: YAML file to read. When None, ``flowreplay.yaml`` in the
              current directory is used if it exists.
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        Validated Settings

    Raises:
        ConfigError: If the file is unreadable or a value is invalid
    """
    environ = dict(os.environ) if environ is None else environ

    data: dict[str, Any] = {}
    source = "defaults"
    if path is None and Path(DEFAULT_CONFIG_FILE).is_file():
        path = DEFAULT_CONFIG_FILE
    if path is not None:
        source = str(path)
        try:
            with Path(path).open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(source=source, underlying_error=str(e)) from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(source=source, underlying_error="expected a mapping")
        data.update(loaded or {})

    overrides = _env_overrides(environ)
    if overrides:
        source = f"{source} + environment"
    data.update(overrides)

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(source=source, underlying_error=str(e)) from e
