"""Per-agent provider files under <host>/agents/<name>/agent/models.json."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from clawconf.store.errors import AgentNotFoundError, ConfigNotFoundError, ConfigValidationError
from clawconf.store.files import read_json_document, write_json_atomic
from clawconf.store.providers import ProviderEntry, parse_providers, providers_to_dict

logger = logging.getLogger(__name__)

AGENTS_DIRNAME = "agents"
AGENT_SUBDIR = "agent"
AGENT_MODELS_FILENAME = "models.json"


@dataclass
class AgentConfigView:
    """Providers configured for one agent."""

    agent_name: str
    providers: dict[str, ProviderEntry] = field(default_factory=dict)

    @property
    def provider_names(self) -> list[str]:
        return sorted(self.providers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_name": self.agent_name,
            "provider_names": self.provider_names,
            "providers": {name: self.providers[name].summary() for name in self.provider_names},
        }


class AgentStore:
    """Enumerates agents and reads/writes their provider files."""

    def __init__(self, agents_root: Path) -> None:
        self.agents_root = agents_root

    def agent_dir(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise AgentNotFoundError(name, "invalid agent name")
        return self.agents_root / name

    def models_path(self, name: str) -> Path:
        return self.agent_dir(name) / AGENT_SUBDIR / AGENT_MODELS_FILENAME

    def agent_exists(self, name: str) -> bool:
        return self.agent_dir(name).is_dir()

    def list_agents(self) -> list[str]:
        """Names of all agent directories, including agents with no provider file yet."""
        if not self.agents_root.is_dir():
            logger.debug(f"Agents directory {self.agents_root} does not exist")
            return []
        return sorted(
            entry.name
            for entry in self.agents_root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def load_agent(self, name: str) -> AgentConfigView | None:
        """
        Load an agent's providers.

        Returns None when the agent has no provider file. A file that exists
        but cannot be parsed raises ConfigValidationError.
        """
        path = self.models_path(name)
        try:
            data = read_json_document(path)
        except ConfigNotFoundError:
            logger.debug(f"No provider file for agent '{name}' at {path}")
            return None

        if "providers" not in data:
            raise ConfigValidationError("providers", "providers", "missing required section", path)
        providers = parse_providers(data["providers"], "providers", file=path)
        return AgentConfigView(agent_name=name, providers=providers)

    def save_agent(self, name: str, view: AgentConfigView) -> None:
        """
        Persist an agent's providers atomically.

        The current file is re-read right before writing so keys other
        than ``providers`` are carried over.
        """
        path = self.models_path(name)
        try:
            data = read_json_document(path)
        except ConfigNotFoundError:
            data = {}

        data["providers"] = providers_to_dict(view.providers)
        write_json_atomic(path, data)
        logger.info(f"Saved {len(view.providers)} providers for agent '{name}'")
