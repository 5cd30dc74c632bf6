"""Provider reconciliation between the global config and an agent's config.

The global file owns connection topology (``baseUrl``, ``api``); each agent
owns its secrets and discovered models (``apiKey``, ``models``). A sync adds
missing providers and refreshes topology without touching agent-owned fields.
Providers that only exist in the agent are never removed.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

from clawconf.store.agents import AgentConfigView
from clawconf.store.global_config import GlobalConfigView
from clawconf.store.providers import ProviderEntry

logger = logging.getLogger(__name__)


class HasProviderNames(Protocol):
    @property
    def provider_names(self) -> Iterable[str]: ...


@dataclass
class ProviderSyncStatus:
    """Comparison of provider names between the global config and one agent."""

    global_provider_names: set[str] = field(default_factory=set)
    agent_provider_names: set[str] = field(default_factory=set)
    missing_in_agent: set[str] = field(default_factory=set)
    extra_in_agent: set[str] = field(default_factory=set)

    @property
    def in_sync(self) -> bool:
        return not self.missing_in_agent and not self.extra_in_agent

    def to_dict(self) -> dict[str, Any]:
        return {
            "in_sync": self.in_sync,
            "global_provider_names": sorted(self.global_provider_names),
            "agent_provider_names": sorted(self.agent_provider_names),
            "missing_in_agent": sorted(self.missing_in_agent),
            "extra_in_agent": sorted(self.extra_in_agent),
        }


def compute_sync_status(
    global_view: HasProviderNames,
    agent_view: HasProviderNames | None,
) -> ProviderSyncStatus:
    """Set comparison of provider names. An absent agent view has no providers."""
    global_names = set(global_view.provider_names)
    agent_names = set(agent_view.provider_names) if agent_view is not None else set()
    return ProviderSyncStatus(
        global_provider_names=global_names,
        agent_provider_names=agent_names,
        missing_in_agent=global_names - agent_names,
        extra_in_agent=agent_names - global_names,
    )


def _merge_entry(definition: ProviderEntry, existing: ProviderEntry | None) -> ProviderEntry:
    if existing is None:
        return ProviderEntry(
            name=definition.name,
            base_url=definition.base_url,
            api_kind=definition.api_kind,
        )

    merged = copy.deepcopy(existing)
    merged.base_url = definition.base_url
    merged.api_kind = definition.api_kind
    return merged


def apply_sync(global_view: GlobalConfigView, agent_view: AgentConfigView) -> AgentConfigView:
    """
    Merge global provider definitions into an agent view.

    Returns a new view; the input is not modified. For providers in both,
    ``api_key``, ``models`` and unknown keys come from the agent while
    ``base_url`` and ``api_kind`` come from the global definition. New
    providers get topology only: no key and no models.
    """
    providers = {name: copy.deepcopy(entry) for name, entry in agent_view.providers.items()}

    for name in sorted(global_view.providers):
        definition = global_view.providers[name]
        existing = agent_view.providers.get(name)
        if existing is None:
            logger.debug(f"Adding provider '{name}' to agent '{agent_view.agent_name}'")
        providers[name] = _merge_entry(definition, existing)

    return AgentConfigView(agent_name=agent_view.agent_name, providers=providers)
