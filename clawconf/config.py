"""Settings for clawconf itself (not the host's configuration)."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from clawconf.store.agents import AGENTS_DIRNAME
from clawconf.store.global_config import GLOBAL_CONFIG_FILENAME
from clawconf.system.hardware_fit import DEFAULT_ADVISOR, DEFAULT_ADVISOR_TIMEOUT, DEFAULT_RECOMMENDATION_LIMIT
from clawconf.system.models import DEFAULT_HTTP_TIMEOUT
from clawconf.system.probe import DEFAULT_COMMAND_TIMEOUT, DEFAULT_PORT_TIMEOUT
from clawconf.system.runtimes import DEFAULT_DETECT_DEADLINE

logger = logging.getLogger(__name__)

# Default config locations
CONFIG_PATHS = [
    Path.home() / ".config" / "clawconf" / "config.json",
    Path.home() / ".clawconf.json",
]

HOST_ROOT_ENV = "OPENCLAW_HOME"


def default_host_root() -> Path:
    """The host's state directory, ~/.openclaw unless OPENCLAW_HOME is set."""
    override = os.environ.get(HOST_ROOT_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".openclaw"


@dataclass
class Settings:
    """Main configuration for clawconf."""

    host_root: Path = field(default_factory=default_host_root)
    port_timeout: float = DEFAULT_PORT_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT
    detect_deadline: float = DEFAULT_DETECT_DEADLINE
    advisor_command: str = DEFAULT_ADVISOR
    advisor_timeout: float = DEFAULT_ADVISOR_TIMEOUT
    recommendation_limit: int = DEFAULT_RECOMMENDATION_LIMIT

    @property
    def global_config_path(self) -> Path:
        return self.host_root / GLOBAL_CONFIG_FILENAME

    @property
    def agents_root(self) -> Path:
        return self.host_root / AGENTS_DIRNAME

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Create settings from a dictionary."""
        host_root = Path(data["host_root"]).expanduser() if data.get("host_root") else None
        if os.environ.get(HOST_ROOT_ENV):
            host_root = default_host_root()

        return cls(
            host_root=host_root or default_host_root(),
            port_timeout=data.get("port_timeout", DEFAULT_PORT_TIMEOUT),
            http_timeout=data.get("http_timeout", DEFAULT_HTTP_TIMEOUT),
            command_timeout=data.get("command_timeout", DEFAULT_COMMAND_TIMEOUT),
            detect_deadline=data.get("detect_deadline", DEFAULT_DETECT_DEADLINE),
            advisor_command=data.get("advisor_command", DEFAULT_ADVISOR),
            advisor_timeout=data.get("advisor_timeout", DEFAULT_ADVISOR_TIMEOUT),
            recommendation_limit=data.get("recommendation_limit", DEFAULT_RECOMMENDATION_LIMIT),
        )

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from file or return defaults."""
        if path:
            paths_to_try = [path]
        else:
            paths_to_try = CONFIG_PATHS

        for config_path in paths_to_try:
            if config_path.exists():
                try:
                    with open(config_path) as f:
                        data = json.load(f)
                    logger.info(f"Loaded settings from {config_path}")
                    return cls.from_dict(data)
                except (json.JSONDecodeError, OSError, AttributeError) as e:
                    logger.warning(f"Failed to load settings from {config_path}: {e}")

        logger.info("Using default settings")
        return cls()

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary."""
        return {
            "host_root": str(self.host_root),
            "port_timeout": self.port_timeout,
            "http_timeout": self.http_timeout,
            "command_timeout": self.command_timeout,
            "detect_deadline": self.detect_deadline,
            "advisor_command": self.advisor_command,
            "advisor_timeout": self.advisor_timeout,
            "recommendation_limit": self.recommendation_limit,
        }

    def save(self, path: Path | None = None) -> None:
        """Save settings to file."""
        save_path = path or CONFIG_PATHS[0]
        save_path.parent.mkdir(parents=True, exist_ok=True)
        with open(save_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved settings to {save_path}")

    def validate(self) -> list[str]:
        """Validate the settings and return any issues."""
        issues: list[str] = []

        for name in ("port_timeout", "http_timeout", "command_timeout", "detect_deadline", "advisor_timeout"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                issues.append(f"{name} should be a positive number of seconds, got {value!r}")

        if self.port_timeout > 1:
            issues.append(f"port_timeout {self.port_timeout}s is above 1s and will slow detection")

        if not 1 <= self.recommendation_limit <= 20:
            issues.append(f"recommendation_limit {self.recommendation_limit} should be between 1 and 20")

        if not self.advisor_command:
            issues.append("advisor_command must not be empty")

        return issues
