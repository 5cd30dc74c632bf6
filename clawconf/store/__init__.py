"""Global and per-agent configuration stores."""

from clawconf.store.agents import AgentConfigView, AgentStore
from clawconf.store.errors import (
    AgentNotFoundError,
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    PersistenceError,
)
from clawconf.store.global_config import (
    UNSET,
    ConfigStore,
    GlobalConfigUpdate,
    GlobalConfigView,
    SubagentLimits,
)
from clawconf.store.providers import ProviderEntry, mask_api_key

__all__ = [
    "AgentConfigView",
    "AgentStore",
    "AgentNotFoundError",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "PersistenceError",
    "UNSET",
    "ConfigStore",
    "GlobalConfigUpdate",
    "GlobalConfigView",
    "SubagentLimits",
    "ProviderEntry",
    "mask_api_key",
]
