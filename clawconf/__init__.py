"""Clawconf: local LLM runtime detection and OpenClaw provider reconciliation."""

__version__ = "0.1.0"

from clawconf.config import Settings
from clawconf.service import HostInspector
from clawconf.store.errors import ConfigError, ConfigValidationError
from clawconf.sync import ProviderSyncStatus, apply_sync, compute_sync_status

__all__ = [
    "__version__",
    "Settings",
    "HostInspector",
    "ConfigError",
    "ConfigValidationError",
    "ProviderSyncStatus",
    "apply_sync",
    "compute_sync_status",
]
