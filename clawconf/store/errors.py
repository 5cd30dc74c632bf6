"""Errors raised by the configuration stores."""

from pathlib import Path


class ConfigError(Exception):
    """Base class for configuration load/save failures."""


class ConfigNotFoundError(ConfigError):
    """A configuration file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Configuration file not found: {path}")
        self.path = path


class AgentNotFoundError(ConfigError):
    """No agent directory with the given name."""

    def __init__(self, name: str, reason: str = "no such agent") -> None:
        super().__init__(f"Agent '{name}': {reason}")
        self.name = name


class ConfigValidationError(ConfigError):
    """
    A configuration file is present but malformed.

    ``section`` is the short name of the offending section (e.g. "subagents"),
    ``path`` the dotted key path inside the document.
    """

    def __init__(self, section: str, path: str, message: str, file: Path | None = None) -> None:
        where = f" in {file}" if file else ""
        super().__init__(f"Invalid section '{section}' ({path}){where}: {message}")
        self.section = section
        self.path = path
        self.message = message
        self.file = file


class PersistenceError(ConfigError):
    """A write could not be completed; the previous file is left intact."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause
