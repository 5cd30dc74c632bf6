"""Shared fixtures: a fake OpenClaw host directory."""

import json

import pytest

from clawconf.config import Settings
from clawconf.service import HostInspector
from clawconf.system.hardware_fit import HardwareFit, SystemDescription
from clawconf.system.memory import MemorySnapshot
from clawconf.system.runtimes import DetectionResult, Runtime, RuntimeStatus

GLOBAL_DOCUMENT = {
    "models": {
        "providers": {
            "ollama": {
                "baseUrl": "http://127.0.0.1:11434/v1",
                "apiKey": "ollama-local",
                "api": "openai-completions",
                "models": [{"id": "llama3.2", "name": "Llama 3.2"}],
            },
            "lmstudio": {
                "baseUrl": "http://127.0.0.1:1234/v1",
                "api": "openai-completions",
                "models": [],
            },
        }
    },
    "agents": {
        "defaults": {
            "model": {"primary": "ollama/llama3.2"},
            "models": {"ollama/llama3.2": {}},
            "maxConcurrent": 4,
            "subagents": {"maxConcurrent": 8, "maxSpawnDepth": 1, "maxChildrenPerAgent": 5},
        }
    },
}

AGENT_DOCUMENT = {
    "providers": {
        "ollama": {
            "baseUrl": "http://old-host:11434/v1",
            "apiKey": "agent-secret",
            "api": "openai-completions",
            "models": [{"id": "llama3.2", "name": "Llama 3.2"}, {"id": "phi3", "name": "Phi 3"}],
        },
        "custom": {"baseUrl": "http://10.0.0.5:9000/v1", "apiKey": "custom-secret", "models": []},
    }
}


class StubDetector:
    def detect(self):
        return DetectionResult(
            {
                Runtime.OLLAMA: RuntimeStatus(installed=True, running=True, version="0.5.7", path="/usr/bin/ollama"),
                Runtime.LM_STUDIO: RuntimeStatus(installed=True),
            }
        )


class StubLister:
    def __init__(self):
        self.fail = False

    def list_models(self, runtime):
        if self.fail:
            raise RuntimeError("boom")
        if runtime is Runtime.VLLM:
            return None
        return {"ollama": ["llama3.2", "phi3"], "lm_studio": []}[runtime.value]


class StubMemory:
    def snapshot(self):
        return MemorySnapshot(total_bytes=16 * 1024**3, available_bytes=6 * 1024**3)


class StubAdvisor:
    def __init__(self):
        self.result = HardwareFit(system=SystemDescription(total_ram_gb=16.0, backend="cuda"))
        self.limits = []

    def get_hardware_fit(self, limit):
        self.limits.append(limit)
        return self.result


@pytest.fixture
def host_root(tmp_path):
    root = tmp_path / ".openclaw"
    root.mkdir()
    (root / "openclaw.json").write_text(json.dumps(GLOBAL_DOCUMENT, indent=2))

    agent_file = root / "agents" / "main" / "agent" / "models.json"
    agent_file.parent.mkdir(parents=True)
    agent_file.write_text(json.dumps(AGENT_DOCUMENT, indent=2))

    (root / "agents" / "fresh").mkdir()
    return root


@pytest.fixture
def inspector(host_root):
    return HostInspector(
        Settings(host_root=host_root),
        detector=StubDetector(),
        lister=StubLister(),
        memory=StubMemory(),
        advisor=StubAdvisor(),
    )
