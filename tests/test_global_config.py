"""Tests for the global configuration store."""

import json

import pytest

from clawconf.store import files
from clawconf.store.errors import ConfigNotFoundError, ConfigValidationError, PersistenceError
from clawconf.store.global_config import (
    UNSET,
    ConfigStore,
    GlobalConfigUpdate,
    parse_global_config,
    skeleton_document,
)


def make_document(**defaults_overrides):
    defaults = {
        "model": {"primary": "ollama/llama3.2", "fallbacks": ["lmstudio/qwen2.5-7b"]},
        "models": {"ollama/llama3.2": {"alias": "llama"}, "lmstudio/qwen2.5-7b": {}},
        "maxConcurrent": 4,
        "subagents": {"maxConcurrent": 8, "maxSpawnDepth": 1, "maxChildrenPerAgent": 5},
    }
    defaults.update(defaults_overrides)
    return {
        "meta": {"lastTouchedVersion": "2026.2.1"},
        "models": {
            "providers": {
                "ollama": {
                    "baseUrl": "http://127.0.0.1:11434/v1",
                    "apiKey": "ollama-local",
                    "api": "openai-completions",
                    "models": [{"id": "llama3.2", "name": "Llama 3.2", "contextWindow": 131072}],
                },
                "lmstudio": {"baseUrl": "http://127.0.0.1:1234/v1", "api": "openai-completions"},
            }
        },
        "agents": {"defaults": defaults, "list": [{"id": "main"}]},
    }


@pytest.fixture
def store(tmp_path):
    path = tmp_path / "openclaw.json"
    path.write_text(json.dumps(make_document(), indent=2))
    return ConfigStore(path)


class TestParseGlobalConfig:
    """Tests for parse_global_config."""

    def test_valid_document(self):
        view = parse_global_config(make_document())
        assert view.provider_names == {"ollama", "lmstudio"}
        assert view.primary_model == "ollama/llama3.2"
        assert view.fallback_models == ["lmstudio/qwen2.5-7b"]
        assert view.allowed_models == ["ollama/llama3.2", "lmstudio/qwen2.5-7b"]
        assert view.max_concurrent == 4
        assert view.subagents.max_children_per_agent == 5
        assert view.primary_in_allowed

    def test_missing_providers(self):
        data = make_document()
        del data["models"]
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_global_config(data)
        assert exc_info.value.section == "providers"

    def test_missing_subagents(self):
        data = make_document()
        del data["agents"]["defaults"]["subagents"]
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_global_config(data)
        assert exc_info.value.section == "subagents"
        assert "subagents" in str(exc_info.value)

    def test_missing_model(self):
        data = make_document()
        del data["agents"]["defaults"]["model"]
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_global_config(data)
        assert exc_info.value.section == "model"

    def test_missing_max_concurrent(self):
        data = make_document()
        del data["agents"]["defaults"]["maxConcurrent"]
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_global_config(data)
        assert exc_info.value.section == "maxConcurrent"

    def test_null_max_concurrent_allowed(self):
        view = parse_global_config(make_document(maxConcurrent=None))
        assert view.max_concurrent is None

    @pytest.mark.parametrize("value", [-1, "4", True, 2.5])
    def test_invalid_max_concurrent(self, value):
        with pytest.raises(ConfigValidationError):
            parse_global_config(make_document(maxConcurrent=value))

    def test_subagent_defaults_fill_gaps(self):
        view = parse_global_config(make_document(subagents={"maxConcurrent": 2}))
        assert view.subagents.max_concurrent == 2
        assert view.subagents.max_spawn_depth == 1
        assert view.subagents.max_children_per_agent == 5

    def test_invalid_subagent_limit(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_global_config(make_document(subagents={"maxSpawnDepth": "deep"}))
        assert exc_info.value.path == "agents.defaults.subagents.maxSpawnDepth"

    def test_allowed_models_as_list(self):
        view = parse_global_config(make_document(models=["a/b", "c/d"]))
        assert view.allowed_models == ["a/b", "c/d"]
        assert not view.primary_in_allowed

    def test_provider_not_an_object(self):
        data = make_document()
        data["models"]["providers"]["broken"] = "http://x"
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_global_config(data)
        assert exc_info.value.path == "models.providers.broken"

    def test_skeleton_is_valid(self):
        view = parse_global_config(skeleton_document())
        assert view.providers == {}
        assert view.primary_model is None


class TestConfigStoreLoad:
    """Tests for ConfigStore.load_global."""

    def test_load(self, store):
        view = store.load_global()
        assert view.providers["ollama"].api_key == "ollama-local"
        assert view.providers["ollama"].models == ["llama3.2"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError):
            ConfigStore(tmp_path / "openclaw.json").load_global()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "openclaw.json"
        path.write_text("{not json")
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigStore(path).load_global()
        assert exc_info.value.section == "document"
        assert exc_info.value.file == path

    def test_reads_fresh_each_time(self, store):
        assert store.load_global().max_concurrent == 4
        data = json.loads(store.path.read_text())
        data["agents"]["defaults"]["maxConcurrent"] = 9
        store.path.write_text(json.dumps(data))
        assert store.load_global().max_concurrent == 9


class TestConfigStoreUpdate:
    """Tests for ConfigStore.update_global."""

    def test_sparse_update_only_touches_named_fields(self, store):
        before = json.loads(store.path.read_text())
        view = store.update_global(GlobalConfigUpdate(max_concurrent=2))
        after = json.loads(store.path.read_text())

        assert view.max_concurrent == 2
        assert after["agents"]["defaults"]["maxConcurrent"] == 2
        after["agents"]["defaults"]["maxConcurrent"] = 4
        assert after == before

    def test_empty_update_is_noop(self, store):
        before = json.loads(store.path.read_text())
        update = GlobalConfigUpdate()
        assert update.is_empty
        store.update_global(update)
        assert json.loads(store.path.read_text()) == before

    def test_set_and_clear_primary(self, store):
        assert store.update_global(GlobalConfigUpdate(primary_model="lmstudio/qwen2.5-7b")).primary_model == (
            "lmstudio/qwen2.5-7b"
        )
        view = store.update_global(GlobalConfigUpdate(primary_model=None, fallback_models=None))
        assert view.primary_model is None
        assert view.fallback_models == []
        model = json.loads(store.path.read_text())["agents"]["defaults"]["model"]
        assert model == {}

    def test_allowed_models_keep_metadata(self, store):
        store.update_global(GlobalConfigUpdate(allowed_models=["ollama/llama3.2", "vllm/mistral"]))
        allowed = json.loads(store.path.read_text())["agents"]["defaults"]["models"]
        assert allowed == {"ollama/llama3.2": {"alias": "llama"}, "vllm/mistral": {}}

    def test_clear_subagent_limit_restores_default(self, store):
        store.update_global(GlobalConfigUpdate(subagent_max_spawn_depth=3))
        assert store.load_global().subagents.max_spawn_depth == 3
        view = store.update_global(GlobalConfigUpdate(subagent_max_spawn_depth=None))
        assert view.subagents.max_spawn_depth == 1

    def test_invalid_value_leaves_file_untouched(self, store):
        before = store.path.read_text()
        with pytest.raises(ConfigValidationError):
            store.update_global(GlobalConfigUpdate(max_concurrent=-5))
        assert store.path.read_text() == before

    def test_missing_file_is_created(self, tmp_path):
        store = ConfigStore(tmp_path / "nested" / "openclaw.json")
        view = store.update_global(GlobalConfigUpdate(primary_model="ollama/llama3.2"))
        assert store.exists()
        assert view.primary_model == "ollama/llama3.2"
        assert store.load_global().subagents.max_concurrent == 8

    def test_malformed_file_is_not_overwritten(self, tmp_path):
        path = tmp_path / "openclaw.json"
        path.write_text("[]")
        with pytest.raises(ConfigValidationError):
            ConfigStore(path).update_global(GlobalConfigUpdate(max_concurrent=1))
        assert path.read_text() == "[]"

    def test_failed_write_keeps_previous_file(self, store, monkeypatch):
        before = store.path.read_text()

        def broken_replace(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(files.os, "replace", broken_replace)
        with pytest.raises(PersistenceError):
            store.update_global(GlobalConfigUpdate(max_concurrent=1))

        assert store.path.read_text() == before
        assert sorted(p.name for p in store.path.parent.iterdir()) == ["openclaw.json"]


class TestGlobalConfigUpdate:
    """Tests for GlobalConfigUpdate."""

    def test_from_dict(self):
        update = GlobalConfigUpdate.from_dict({"primary_model": None, "max_concurrent": 3})
        assert update.primary_model is None
        assert update.max_concurrent == 3
        assert update.fallback_models is UNSET
        assert not update.is_empty

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValueError):
            GlobalConfigUpdate.from_dict({"temperature": 0.2})
