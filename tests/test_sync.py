"""Tests for provider reconciliation between global and agent configs."""

import copy

from clawconf.store.agents import AgentConfigView
from clawconf.store.global_config import GlobalConfigView
from clawconf.store.providers import ProviderEntry
from clawconf.sync import apply_sync, compute_sync_status


def global_view(**providers):
    return GlobalConfigView(providers={name: ProviderEntry(name=name, **attrs) for name, attrs in providers.items()})


def agent_view(name="main", **providers):
    return AgentConfigView(
        agent_name=name,
        providers={pname: ProviderEntry(name=pname, **attrs) for pname, attrs in providers.items()},
    )


GLOBAL = global_view(
    ollama={"base_url": "http://127.0.0.1:11434/v1", "api_kind": "openai-completions", "api_key": "global-key"},
    lmstudio={"base_url": "http://127.0.0.1:1234/v1", "api_kind": "openai-completions", "models": ["g-model"]},
)


class TestComputeSyncStatus:
    """Tests for compute_sync_status."""

    def test_missing_and_extra(self):
        agent = agent_view(ollama={}, custom={})
        status = compute_sync_status(GLOBAL, agent)
        assert status.missing_in_agent == {"lmstudio"}
        assert status.extra_in_agent == {"custom"}
        assert status.global_provider_names == {"ollama", "lmstudio"}
        assert status.agent_provider_names == {"ollama", "custom"}
        assert not status.in_sync

    def test_absent_agent_view(self):
        status = compute_sync_status(GLOBAL, None)
        assert status.missing_in_agent == {"ollama", "lmstudio"}
        assert status.extra_in_agent == set()
        assert status.agent_provider_names == set()

    def test_in_sync(self):
        status = compute_sync_status(GLOBAL, agent_view(ollama={}, lmstudio={}))
        assert status.in_sync

    def test_symmetry(self):
        agent = agent_view(ollama={}, custom={})
        forward = compute_sync_status(GLOBAL, agent)
        backward = compute_sync_status(agent, GLOBAL)
        assert forward.missing_in_agent == backward.extra_in_agent
        assert forward.extra_in_agent == backward.missing_in_agent

    def test_to_dict_sorted(self):
        data = compute_sync_status(GLOBAL, agent_view(zeta={}, alpha={})).to_dict()
        assert data["missing_in_agent"] == ["lmstudio", "ollama"]
        assert data["extra_in_agent"] == ["alpha", "zeta"]
        assert data["in_sync"] is False


class TestApplySync:
    """Tests for apply_sync."""

    def test_adds_missing_preserves_secrets_and_extras(self):
        agent = agent_view(
            ollama={
                "base_url": "http://old-host:11434/v1",
                "api_kind": "ollama",
                "api_key": "agent-secret",
                "models": ["llama3.2"],
                "extra": {"headers": {"X-A": "1"}},
            },
            custom={"base_url": "http://custom/v1", "api_key": "custom-key"},
        )

        merged = apply_sync(GLOBAL, agent)

        assert set(merged.providers) == {"ollama", "lmstudio", "custom"}

        ollama = merged.providers["ollama"]
        assert ollama.api_key == "agent-secret"
        assert ollama.models == ["llama3.2"]
        assert ollama.extra == {"headers": {"X-A": "1"}}
        assert ollama.base_url == "http://127.0.0.1:11434/v1"
        assert ollama.api_kind == "openai-completions"

        lmstudio = merged.providers["lmstudio"]
        assert lmstudio.api_key is None
        assert lmstudio.models == []
        assert lmstudio.base_url == "http://127.0.0.1:1234/v1"

        assert merged.providers["custom"] == agent.providers["custom"]

    def test_result_is_in_sync_for_global_names(self):
        merged = apply_sync(GLOBAL, agent_view(custom={}))
        status = compute_sync_status(GLOBAL, merged)
        assert status.missing_in_agent == set()
        assert status.extra_in_agent == {"custom"}

    def test_idempotent(self):
        agent = agent_view(ollama={"api_key": "k", "models": ["a"]}, custom={})
        once = apply_sync(GLOBAL, agent)
        twice = apply_sync(GLOBAL, once)
        assert once == twice

    def test_input_not_mutated(self):
        agent = agent_view(ollama={"base_url": "http://old/v1", "models": ["a"]})
        snapshot = copy.deepcopy(agent)
        apply_sync(GLOBAL, agent)
        assert agent == snapshot

    def test_empty_global(self):
        agent = agent_view(custom={"api_key": "k"})
        assert apply_sync(GlobalConfigView(), agent) == agent

    def test_global_secrets_never_copied(self):
        merged = apply_sync(GLOBAL, agent_view())
        assert merged.providers["ollama"].api_key is None
        assert merged.providers["lmstudio"].models == []


class TestScenario:
    """An agent that is missing a remote provider."""

    def test_missing_remote_provider(self):
        global_config = global_view(
            ollama={"base_url": "http://127.0.0.1:11434/v1", "api_kind": "openai-completions"},
            anthropic={"base_url": "https://api.anthropic.com", "api_kind": "anthropic-messages"},
        )
        agent = agent_view(ollama={"base_url": "http://stale:11434", "api_key": "sk-1"})

        before = compute_sync_status(global_config, agent)
        assert before.missing_in_agent == {"anthropic"}
        assert not before.in_sync

        merged = apply_sync(global_config, agent)
        assert merged.providers["ollama"].api_key == "sk-1"
        assert merged.providers["ollama"].base_url == "http://127.0.0.1:11434/v1"
        assert merged.providers["anthropic"].api_key is None
        assert merged.providers["anthropic"].base_url == "https://api.anthropic.com"
        assert compute_sync_status(global_config, merged).in_sync
