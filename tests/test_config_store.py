"""Tests for ConfigStore and the config.json schema."""

import json

import pytest

from config.schema import DEFAULT_BASE_URL, MCPServerConfig, OpenworkConfig, UserModel
from config.store import ConfigStore


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "config.json")


def _model(model_id: str, *, is_default=None) -> UserModel:
    return UserModel(id=model_id, name=model_id.upper(), model_id=f"provider-{model_id}", is_default=is_default)


def _flags(store: ConfigStore) -> dict:
    return {m.id: bool(m.is_default) for m in store.get_user_models()}


class TestApiKey:
    def test_absent_by_default(self, store):
        assert store.get_api_key() is None
        assert not store.has_api_key()

    def test_empty_string_is_kept_distinct_from_absent(self, store):
        store.set_api_key("")
        assert store.get_api_key() == ""
        assert not store.has_api_key()
        assert json.loads(store.config_path.read_text())["apiKey"] == ""

    def test_set_and_delete(self, store):
        store.set_api_key("sk-test")
        assert store.get_api_key() == "sk-test"
        assert store.has_api_key()

        store.delete_api_key()
        assert store.get_api_key() is None
        assert "apiKey" not in json.loads(store.config_path.read_text())


class TestBaseUrl:
    def test_default(self, store):
        assert store.get_base_url() == DEFAULT_BASE_URL

    def test_set_and_delete(self, store):
        store.set_base_url("http://localhost:11434/v1")
        assert store.get_base_url() == "http://localhost:11434/v1"
        store.delete_base_url()
        assert store.get_base_url() == DEFAULT_BASE_URL


class TestUserModels:
    def test_add_and_replace_by_id(self, store):
        store.add_user_model(_model("a"))
        store.add_user_model(_model("b"))
        store.add_user_model(UserModel(id="a", name="Renamed", model_id="provider-a2"))

        models = store.get_user_models()
        assert [m.id for m in models] == ["a", "b"]
        assert models[0].name == "Renamed"
        assert store.get_user_model("a").model_id == "provider-a2"
        assert store.get_user_model("missing") is None

    def test_adding_default_clears_other_flags(self, store):
        store.add_user_model(_model("a", is_default=True))
        store.add_user_model(_model("b", is_default=True))
        assert _flags(store) == {"a": False, "b": True}
        assert store.get_default_model() == "b"

    def test_delete(self, store):
        store.set_user_models([_model("a"), _model("b")])
        store.set_default_model("a")
        store.delete_user_model("a")
        assert [m.id for m in store.get_user_models()] == ["b"]
        assert store.get_default_model() is None

    def test_camel_case_on_disk(self, store):
        store.add_user_model(_model("a", is_default=True))
        data = json.loads(store.config_path.read_text())
        assert data["models"][0]["modelId"] == "provider-a"
        assert data["models"][0]["isDefault"] is True
        assert data["defaultModel"] == "a"


class TestDefaultModel:
    def test_none_configured(self, store):
        assert store.get_default_model() is None

    def test_flagged_model_wins_over_stored_id(self, store):
        store.write(
            OpenworkConfig(
                models=[_model("a"), _model("b", is_default=True)],
                default_model="a",
            )
        )
        assert store.get_default_model() == "b"

    def test_stored_id_without_flags(self, store):
        store.write(OpenworkConfig(models=[_model("a")], default_model="external-model"))
        assert store.get_default_model() == "external-model"

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 6])
    def test_set_default_is_exclusive(self, store, count):
        # Start from a deliberately inconsistent state: several flags set
        store.set_user_models([_model(f"m{i}", is_default=(i % 2 == 0)) for i in range(count)])
        target = f"m{count - 1}" if count else "unregistered"

        store.set_default_model(target)

        flags = _flags(store)
        assert [mid for mid, flagged in flags.items() if flagged] == ([target] if count else [])
        assert store.get_default_model() == target

    def test_set_default_twice(self, store):
        store.set_user_models([_model("a"), _model("b")])
        store.set_default_model("a")
        store.set_default_model("b")
        assert _flags(store) == {"a": False, "b": True}


class TestFileHandling:
    def test_missing_file_is_empty_config(self, store):
        config = store.read()
        assert config.api_key is None
        assert config.models == []

    def test_corrupt_file_is_empty_config(self, store):
        store.config_path.write_text("{not json")
        assert store.read().api_key is None
        store.set_api_key("sk-new")
        assert store.get_api_key() == "sk-new"

    def test_invalid_models_do_not_drop_other_keys(self, store):
        store.config_path.write_text(json.dumps({"apiKey": "sk-kept", "models": [{"name": "no id"}]}))
        config = store.read()
        assert config.api_key == "sk-kept"
        assert config.models == []

    def test_write_leaves_no_temp_files(self, store):
        store.set_api_key("sk-test")
        store.set_base_url("http://x")
        assert sorted(p.name for p in store.config_path.parent.iterdir()) == ["config.json"]

    def test_default_path_under_openwork_home(self, openwork_home):
        assert ConfigStore().config_path == openwork_home / "config.json"


class TestSections:
    def test_default_mcp_servers(self, store):
        mcp = store.get_mcp_config()
        assert mcp.enabled
        assert mcp.servers["exa"].url == "https://mcp.exa.ai/mcp"

    def test_runtime_settings_from_file(self, store):
        store.config_path.write_text(json.dumps({"runtime": {"commandTimeout": 5, "maxOutputBytes": 1024}}))
        settings = store.get_runtime_settings()
        assert settings.command_timeout == 5
        assert settings.max_output_bytes == 1024
        assert settings.mcp_disconnect_timeout == 5.0

    def test_mcp_server_needs_endpoint(self):
        with pytest.raises(ValueError):
            MCPServerConfig()

    def test_mcp_connections(self):
        remote = MCPServerConfig(url="https://example.com/mcp", headers={"Authorization": "Bearer x"})
        assert remote.to_connection() == {
            "transport": "streamable_http",
            "url": "https://example.com/mcp",
            "headers": {"Authorization": "Bearer x"},
        }
        local = MCPServerConfig(command="npx", args=["-y", "server"], env={"K": "V"})
        assert local.to_connection() == {
            "transport": "stdio",
            "command": "npx",
            "args": ["-y", "server"],
            "env": {"K": "V"},
        }
