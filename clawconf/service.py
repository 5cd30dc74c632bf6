"""Operations offered to front ends (CLI, UI).

Probe operations never raise: failures become "not installed", empty lists
or None. Config operations surface ConfigError subclasses to the caller.
Nothing is cached between calls; every config operation re-reads from disk.
"""

import logging

from clawconf.config import Settings
from clawconf.store.agents import AgentConfigView, AgentStore
from clawconf.store.errors import AgentNotFoundError
from clawconf.store.global_config import ConfigStore, GlobalConfigUpdate, GlobalConfigView
from clawconf.sync import ProviderSyncStatus, apply_sync, compute_sync_status
from clawconf.system.hardware_fit import HardwareFit, HardwareFitAdapter
from clawconf.system.memory import MemoryDetector, MemorySnapshot
from clawconf.system.models import ModelLister
from clawconf.system.runtimes import DetectionResult, Runtime, RuntimeDetector

logger = logging.getLogger(__name__)


class HostInspector:
    """Inspects local runtimes and reconciles the host's provider configuration."""

    def __init__(
        self,
        settings: Settings | None = None,
        detector: RuntimeDetector | None = None,
        lister: ModelLister | None = None,
        memory: MemoryDetector | None = None,
        advisor: HardwareFitAdapter | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.detector = detector or RuntimeDetector(
            port_timeout=self.settings.port_timeout,
            command_timeout=self.settings.command_timeout,
            deadline=self.settings.detect_deadline,
        )
        self.lister = lister or ModelLister(
            http_timeout=self.settings.http_timeout,
            command_timeout=self.settings.command_timeout,
        )
        self.memory = memory or MemoryDetector()
        self.advisor = advisor or HardwareFitAdapter(
            command=self.settings.advisor_command,
            timeout=self.settings.advisor_timeout,
        )
        self.config_store = ConfigStore(self.settings.global_config_path)
        self.agent_store = AgentStore(self.settings.agents_root)

    # Probes

    def detect_runtimes(self) -> DetectionResult:
        return self.detector.detect()

    def get_system_info(self) -> MemorySnapshot:
        return self.memory.snapshot()

    def list_models(self, runtime: Runtime) -> list[str] | None:
        try:
            return self.lister.list_models(runtime)
        except Exception as e:
            logger.warning(f"Listing models for {runtime.value} failed: {e}")
            return [] if runtime in (Runtime.OLLAMA, Runtime.LM_STUDIO) else None

    def get_hardware_fit(self, limit: int | None = None) -> HardwareFit | None:
        if limit is None:
            limit = self.settings.recommendation_limit
        try:
            return self.advisor.get_hardware_fit(limit)
        except Exception as e:
            logger.warning(f"Hardware advisor failed: {e}")
            return None

    # Configuration

    def get_global_config(self) -> GlobalConfigView:
        return self.config_store.load_global()

    def update_global_config(self, update: GlobalConfigUpdate) -> GlobalConfigView:
        return self.config_store.update_global(update)

    def list_agents(self) -> list[str]:
        return self.agent_store.list_agents()

    def get_agent_view(self, name: str) -> AgentConfigView | None:
        return self.agent_store.load_agent(name)

    def get_sync_status(self, name: str) -> ProviderSyncStatus:
        global_view = self.config_store.load_global()
        return compute_sync_status(global_view, self.agent_store.load_agent(name))

    def sync_agent(self, name: str) -> AgentConfigView:
        """
        Merge global providers into an agent's file and save it.

        Both files are read immediately before the write to keep the
        window for lost updates small.
        """
        if not self.agent_store.agent_exists(name):
            raise AgentNotFoundError(name)

        global_view = self.config_store.load_global()
        agent_view = self.agent_store.load_agent(name) or AgentConfigView(agent_name=name)
        merged = apply_sync(global_view, agent_view)
        self.agent_store.save_agent(name, merged)

        status = compute_sync_status(global_view, merged)
        logger.info(
            f"Synced agent '{name}': {len(merged.providers)} providers, "
            f"{len(status.extra_in_agent)} agent-only"
        )
        return merged
