"""Server configuration read from environment variables."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger("forge-mcp")

DEFAULT_CONTENT_WINDOW_SIZE = 5000
DEFAULT_TIMEOUT = 30

_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off", "")


class ConfigError(Exception):
    """Raised when an environment variable holds an invalid value."""


def _get_env_file_path() -> Path:
    """Path of the optional .env file holding forge credentials."""
    override = os.environ.get("FORGE_ENV_FILE")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config/forge-mcp/.env"


def load_env_file() -> None:
    """Fill missing variables in os.environ from the .env file, if there is one.

    Variables already set in the environment win.
    """
    config_path = _get_env_file_path()
    if config_path.exists():
        load_dotenv(config_path, override=False)
        logger.info(f"Loaded forge config from: {config_path}")
    else:
        logger.debug(f"No forge config file at: {config_path}")


def _split_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_int(environ: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def api_url_for_host(host: str) -> str:
    """REST API base URL for a forge host (github.com or an Enterprise Server)."""
    host = host.strip().rstrip("/")
    if host.startswith("http://") or host.startswith("https://"):
        scheme, _, bare = host.partition("://")
    else:
        scheme, bare = "https", host
    if bare in ("github.com", "api.github.com"):
        return "https://api.github.com"
    return f"{scheme}://{bare}/api/v3"


@dataclass
class ServerConfig:
    token: Optional[str] = None
    host: str = "github.com"
    toolsets: list[str] = field(default_factory=lambda: ["default"])
    tools: list[str] = field(default_factory=list)
    read_only: bool = False
    dynamic_toolsets: bool = False
    content_window_size: int = DEFAULT_CONTENT_WINDOW_SIZE
    disable_instructions: bool = False
    timeout: int = DEFAULT_TIMEOUT

    @property
    def api_url(self) -> str:
        return api_url_for_host(self.host)


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Build a ServerConfig from the environment.

    Raises:
        ConfigError: If a boolean or integer variable cannot be parsed.
    """
    if environ is None:
        load_env_file()
        environ = os.environ

    toolsets = _split_list(environ.get("FORGE_TOOLSETS")) or ["default"]
    dynamic = _parse_bool(environ, "FORGE_DYNAMIC_TOOLSETS")
    if dynamic and "all" in toolsets:
        # Dynamic discovery makes "all" meaningless; toolsets are enabled on demand.
        logger.info("FORGE_TOOLSETS=all ignored in dynamic toolset mode")
        toolsets = [t for t in toolsets if t != "all"]

    token = environ.get("GITHUB_PERSONAL_ACCESS_TOKEN")
    config = ServerConfig(
        token=token.strip() if token else None,
        host=environ.get("GITHUB_HOST") or "github.com",
        toolsets=toolsets,
        tools=_split_list(environ.get("FORGE_TOOLS")),
        read_only=_parse_bool(environ, "FORGE_READ_ONLY"),
        dynamic_toolsets=dynamic,
        content_window_size=_parse_int(environ, "FORGE_CONTENT_WINDOW_SIZE", DEFAULT_CONTENT_WINDOW_SIZE),
        disable_instructions=_parse_bool(environ, "DISABLE_INSTRUCTIONS"),
        timeout=_parse_int(environ, "FORGE_TIMEOUT", DEFAULT_TIMEOUT),
    )
    if not config.token:
        logger.warning("GITHUB_PERSONAL_ACCESS_TOKEN not set; forge API calls will fail")
    return config
