"""The host's global configuration file (openclaw.json)."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from clawconf.store.errors import ConfigNotFoundError, ConfigValidationError
from clawconf.store.files import read_json_document, write_json_atomic
from clawconf.store.providers import ProviderEntry, parse_providers

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_FILENAME = "openclaw.json"

PROVIDERS_PATH = "models.providers"
MODEL_PATH = "agents.defaults.model"
MAX_CONCURRENT_PATH = "agents.defaults.maxConcurrent"
SUBAGENTS_PATH = "agents.defaults.subagents"
ALLOWED_MODELS_PATH = "agents.defaults.models"

# On-disk keys of agents.defaults.subagents, with the host's defaults
SUBAGENT_KEYS = {
    "max_concurrent": "maxConcurrent",
    "max_spawn_depth": "maxSpawnDepth",
    "max_children_per_agent": "maxChildrenPerAgent",
}
DEFAULT_SUBAGENT_LIMITS = {
    "max_concurrent": 8,
    "max_spawn_depth": 1,
    "max_children_per_agent": 5,
}


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


# Marks an update field as "leave untouched"; None means "clear"
UNSET = _Unset.UNSET


@dataclass
class SubagentLimits:
    """Limits applied to sub-agents spawned by the default agent."""

    max_concurrent: int = DEFAULT_SUBAGENT_LIMITS["max_concurrent"]
    max_spawn_depth: int = DEFAULT_SUBAGENT_LIMITS["max_spawn_depth"]
    max_children_per_agent: int = DEFAULT_SUBAGENT_LIMITS["max_children_per_agent"]

    def to_dict(self) -> dict[str, int]:
        return {
            "max_concurrent": self.max_concurrent,
            "max_spawn_depth": self.max_spawn_depth,
            "max_children_per_agent": self.max_children_per_agent,
        }


@dataclass
class GlobalConfigView:
    """Normalized view of the fields the tool reads and edits."""

    providers: dict[str, ProviderEntry] = field(default_factory=dict)
    primary_model: str | None = None
    fallback_models: list[str] = field(default_factory=list)
    allowed_models: list[str] = field(default_factory=list)
    max_concurrent: int | None = None
    subagents: SubagentLimits = field(default_factory=SubagentLimits)

    @property
    def provider_names(self) -> set[str]:
        return set(self.providers)

    @property
    def primary_in_allowed(self) -> bool:
        """False when a primary model is set but missing from the allowlist."""
        return self.primary_model is None or self.primary_model in self.allowed_models

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_names": sorted(self.providers),
            "providers": {name: entry.summary() for name, entry in sorted(self.providers.items())},
            "primary_model": self.primary_model,
            "primary_in_allowed": self.primary_in_allowed,
            "fallback_models": list(self.fallback_models),
            "allowed_models": list(self.allowed_models),
            "max_concurrent": self.max_concurrent,
            "subagents": self.subagents.to_dict(),
        }


@dataclass
class GlobalConfigUpdate:
    """
    Sparse update of the global configuration.

    Every field defaults to UNSET (leave untouched). ``None`` clears the
    setting; for sub-agent limits clearing restores the host default.
    """

    primary_model: str | None | _Unset = UNSET
    fallback_models: list[str] | None | _Unset = UNSET
    allowed_models: list[str] | None | _Unset = UNSET
    max_concurrent: int | None | _Unset = UNSET
    subagent_max_concurrent: int | None | _Unset = UNSET
    subagent_max_spawn_depth: int | None | _Unset = UNSET
    subagent_max_children_per_agent: int | None | _Unset = UNSET

    @property
    def is_empty(self) -> bool:
        return all(value is UNSET for value in self.__dict__.values())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GlobalConfigUpdate":
        """Build an update from a mapping; absent keys stay UNSET."""
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown update fields: {', '.join(sorted(unknown))}")
        return cls(**data)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _string_list(value: Any, section: str, path: str, file: Path | None) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigValidationError(section, path, "must be a list of model ids", file)
    return [item for item in value if isinstance(item, str) and item]


def parse_global_config(data: dict[str, Any], file: Path | None = None) -> GlobalConfigView:
    """
    Build a GlobalConfigView, validating the required sections.

    Required: models.providers, agents.defaults.model,
    agents.defaults.maxConcurrent and agents.defaults.subagents.
    """
    models_section = data.get("models")
    if not isinstance(models_section, dict) or models_section.get("providers") is None:
        raise ConfigValidationError("providers", PROVIDERS_PATH, "missing required section", file)
    providers = parse_providers(models_section["providers"], PROVIDERS_PATH, file=file)

    agents = data.get("agents")
    defaults = agents.get("defaults") if isinstance(agents, dict) else None
    if not isinstance(defaults, dict):
        raise ConfigValidationError("model", MODEL_PATH, "missing required section 'agents.defaults'", file)

    model = defaults.get("model")
    if not isinstance(model, dict):
        message = "missing required section" if model is None else "must be an object"
        raise ConfigValidationError("model", MODEL_PATH, message, file)
    primary = model.get("primary")
    if primary is not None and not isinstance(primary, str):
        raise ConfigValidationError("model", f"{MODEL_PATH}.primary", "must be a string", file)
    fallbacks = _string_list(model.get("fallbacks"), "model", f"{MODEL_PATH}.fallbacks", file)

    if "maxConcurrent" not in defaults:
        raise ConfigValidationError("maxConcurrent", MAX_CONCURRENT_PATH, "missing required setting", file)
    max_concurrent = defaults["maxConcurrent"]
    if max_concurrent is not None and not _is_count(max_concurrent):
        raise ConfigValidationError(
            "maxConcurrent", MAX_CONCURRENT_PATH, "must be a non-negative integer", file
        )

    subagents_raw = defaults.get("subagents")
    if not isinstance(subagents_raw, dict):
        message = "missing required section" if subagents_raw is None else "must be an object"
        raise ConfigValidationError("subagents", SUBAGENTS_PATH, message, file)
    limits: dict[str, int] = {}
    for attr, key in SUBAGENT_KEYS.items():
        value = subagents_raw.get(key)
        if value is None:
            limits[attr] = DEFAULT_SUBAGENT_LIMITS[attr]
        elif _is_count(value):
            limits[attr] = value
        else:
            raise ConfigValidationError(
                "subagents", f"{SUBAGENTS_PATH}.{key}", "must be a non-negative integer", file
            )

    allowed_raw = defaults.get("models")
    if isinstance(allowed_raw, dict):
        allowed = list(allowed_raw)
    else:
        allowed = _string_list(allowed_raw, "models", ALLOWED_MODELS_PATH, file)

    return GlobalConfigView(
        providers=providers,
        primary_model=primary or None,
        fallback_models=fallbacks,
        allowed_models=allowed,
        max_concurrent=max_concurrent,
        subagents=SubagentLimits(**limits),
    )


def skeleton_document() -> dict[str, Any]:
    """Minimal valid document used when no global file exists yet."""
    return {
        "models": {"providers": {}},
        "agents": {
            "defaults": {
                "model": {},
                "maxConcurrent": None,
                "subagents": {SUBAGENT_KEYS[k]: v for k, v in DEFAULT_SUBAGENT_LIMITS.items()},
            }
        },
    }


def _ensure_object(
    parent: dict[str, Any], key: str, path: str, section: str, file: Path | None
) -> dict[str, Any]:
    value = parent.setdefault(key, {})
    if not isinstance(value, dict):
        raise ConfigValidationError(section, path, "must be an object", file)
    return value


def apply_update(data: dict[str, Any], update: GlobalConfigUpdate, file: Path | None = None) -> None:
    """Apply a sparse update to a raw document in place."""
    models_section = _ensure_object(data, "models", "models", "providers", file)
    _ensure_object(models_section, "providers", PROVIDERS_PATH, "providers", file)
    agents = _ensure_object(data, "agents", "agents", "model", file)
    defaults = _ensure_object(agents, "defaults", "agents.defaults", "model", file)
    model = _ensure_object(defaults, "model", MODEL_PATH, "model", file)
    subagents = _ensure_object(defaults, "subagents", SUBAGENTS_PATH, "subagents", file)
    defaults.setdefault("maxConcurrent", None)

    if update.primary_model is not UNSET:
        if update.primary_model:
            model["primary"] = update.primary_model
        else:
            model.pop("primary", None)

    if update.fallback_models is not UNSET:
        if update.fallback_models:
            model["fallbacks"] = list(update.fallback_models)
        else:
            model.pop("fallbacks", None)

    if update.allowed_models is not UNSET:
        if update.allowed_models:
            existing = defaults.get("models")
            existing = existing if isinstance(existing, dict) else {}
            defaults["models"] = {mid: existing.get(mid, {}) for mid in update.allowed_models}
        else:
            defaults.pop("models", None)

    if update.max_concurrent is not UNSET:
        if update.max_concurrent is not None and not _is_count(update.max_concurrent):
            raise ConfigValidationError(
                "maxConcurrent", MAX_CONCURRENT_PATH, "must be a non-negative integer", file
            )
        defaults["maxConcurrent"] = update.max_concurrent

    for attr, key in SUBAGENT_KEYS.items():
        value = getattr(update, f"subagent_{attr}")
        if value is UNSET:
            continue
        if value is None:
            subagents.pop(key, None)
        elif _is_count(value):
            subagents[key] = value
        else:
            raise ConfigValidationError(
                "subagents", f"{SUBAGENTS_PATH}.{key}", "must be a non-negative integer", file
            )


class ConfigStore:
    """Loads and saves the global configuration. Every call re-reads the file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def load_raw(self) -> dict[str, Any]:
        return read_json_document(self.path)

    def load_global(self) -> GlobalConfigView:
        """
        Load and validate the global file.

        Raises:
            ConfigNotFoundError: the file does not exist
            ConfigValidationError: a required section is missing or malformed
        """
        data = self.load_raw()
        view = parse_global_config(data, file=self.path)
        logger.debug(f"Loaded {len(view.providers)} providers from {self.path}")
        return view

    def init_global(self) -> GlobalConfigView:
        """Write a minimal valid document, replacing any existing file."""
        data = skeleton_document()
        write_json_atomic(self.path, data)
        return parse_global_config(data, file=self.path)

    def provider_definitions(self) -> dict[str, ProviderEntry]:
        return self.load_global().providers

    def update_global(self, update: GlobalConfigUpdate) -> GlobalConfigView:
        """
        Apply a sparse update and persist it atomically.

        A missing file starts from a minimal document; a malformed file is
        left alone and reported.
        """
        try:
            data = self.load_raw()
        except ConfigNotFoundError:
            logger.info(f"{self.path} does not exist, creating it")
            data = skeleton_document()

        apply_update(data, update, file=self.path)
        view = parse_global_config(data, file=self.path)
        write_json_atomic(self.path, data)
        return view
