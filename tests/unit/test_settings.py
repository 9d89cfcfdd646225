"""
Unit tests for settings configuration.
"""
import pytest
import os
from unittest.mock import patch


class TestClientSettings:
    """Tests for ClientSettings."""

    def test_defaults(self):
        """Test in-memory defaults when the store is empty."""
        from seraph_llm.config import ClientSettings
        from seraph_llm.models import DEFAULT_MODEL_ID

        settings = ClientSettings()
        assert settings.base_url is None
        assert settings.api_key is None
        assert settings.default_model_id == DEFAULT_MODEL_ID
        assert settings.max_tokens == 2048
        assert settings.temperature == 0.7
        assert settings.top_p == 0.9
        assert settings.frequency_penalty == 0.0
        assert settings.presence_penalty == 0.0

    def test_read_through(self):
        """Test values are read from the store at access time."""
        from seraph_llm.config import ClientSettings, MemoryConfigStore

        store = MemoryConfigStore()
        settings = ClientSettings(store)

        store.set("temperature", 0.25)
        store.set("maxTokens", "1024")
        assert settings.temperature == 0.25
        assert settings.max_tokens == 1024

    def test_write_through(self):
        """Test setters write to the store under the persisted keys."""
        from seraph_llm.config import ClientSettings, MemoryConfigStore

        store = MemoryConfigStore()
        settings = ClientSettings(store)
        settings.base_url = "http://localhost:11434/"
        settings.api_key = "sk-1"
        settings.top_p = 0.5

        assert store.to_dict() == {"llmBaseURL": "http://localhost:11434", "llmAPIKey": "sk-1", "topP": 0.5}

    @pytest.mark.parametrize("name,value", [
        ("temperature", 1.5),
        ("temperature", -0.1),
        ("top_p", 2),
        ("frequency_penalty", 2.5),
        ("presence_penalty", -3),
        ("max_tokens", 0),
    ])
    def test_range_validation(self, name, value):
        """Test out-of-range values are rejected and not stored."""
        from seraph_llm.config import ClientSettings

        settings = ClientSettings()
        with pytest.raises(ValueError):
            setattr(settings, name, value)
        assert settings.store.to_dict() == {}

    def test_malformed_stored_value(self):
        """Test unparseable stored numbers fall back to defaults."""
        from seraph_llm.config import ClientSettings, MemoryConfigStore

        settings = ClientSettings(MemoryConfigStore({"topP": "lots"}))
        assert settings.top_p == 0.9

    def test_clearing(self):
        """Test setting None removes the stored value."""
        from seraph_llm.config import ClientSettings

        settings = ClientSettings()
        settings.temperature = 0.1
        settings.temperature = None
        assert settings.temperature == 0.7

    def test_blank_base_url(self):
        """Test a whitespace base URL counts as missing."""
        from seraph_llm.config import ClientSettings, MemoryConfigStore

        assert ClientSettings(MemoryConfigStore({"llmBaseURL": "  "})).base_url is None

    def test_update_unknown_field(self):
        """Test update rejects names that are not settings."""
        from seraph_llm.config import ClientSettings

        with pytest.raises(AttributeError):
            ClientSettings().update(colour="blue")

    def test_to_dict(self):
        """Test to_dict hides the API key."""
        from seraph_llm.config import ClientSettings

        settings = ClientSettings()
        settings.api_key = "sk-secret"
        d = settings.to_dict()

        assert "api_key" not in d
        assert d["has_api_key"] is True
        assert "sk-secret" not in repr(d)


class TestYamlConfigStore:
    """Tests for the YAML-backed store."""

    def test_persists_across_instances(self, tmp_path):
        """Test values survive re-opening the file."""
        from seraph_llm.config import ClientSettings, YamlConfigStore

        path = tmp_path / "nested" / "settings.yaml"
        ClientSettings(YamlConfigStore(path)).update(base_url="http://llm.test", temperature=0.3)

        reopened = ClientSettings(YamlConfigStore(path))
        assert reopened.base_url == "http://llm.test"
        assert reopened.temperature == 0.3

    def test_missing_file_is_empty(self, tmp_path):
        """Test a store over a missing file reads nothing and creates nothing."""
        from seraph_llm.config import YamlConfigStore

        store = YamlConfigStore(tmp_path / "none.yaml")
        assert store.get("llmBaseURL") is None
        assert not (tmp_path / "none.yaml").exists()

    def test_delete_key(self, tmp_path):
        """Test None removes the key from the file."""
        import yaml
        from seraph_llm.config import YamlConfigStore

        path = tmp_path / "s.yaml"
        store = YamlConfigStore(path)
        store.set("llmAPIKey", "sk-1")
        store.set("llmAPIKey", None)

        assert yaml.safe_load(path.read_text()) == {}

    def test_rejects_non_mapping(self, tmp_path):
        """Test a file holding a list is an error."""
        from seraph_llm.config import YamlConfigStore

        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            YamlConfigStore(path)

    def test_is_config_store(self, tmp_path):
        """Test both stores satisfy the protocol."""
        from seraph_llm.config import ConfigStore, MemoryConfigStore, YamlConfigStore

        assert isinstance(MemoryConfigStore(), ConfigStore)
        assert isinstance(YamlConfigStore(tmp_path / "x.yaml"), ConfigStore)


class TestSettings:
    """Tests for process-level Settings."""

    def test_defaults(self, tmp_path, monkeypatch):
        """Test default section values."""
        from seraph_llm.config import Settings

        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        settings = Settings()

        assert settings.http.timeout == 60.0
        assert settings.log.level == "INFO"
        assert settings.store.path == "~/.seraph/settings.yaml"
        assert settings.client == {}

    def test_yaml_file(self, tmp_path, monkeypatch):
        """Test seraph.yaml in the working directory is applied."""
        from seraph_llm.config import Settings

        (tmp_path / "seraph.yaml").write_text(
            "http:\n  timeout: 5\nlog:\n  level: DEBUG\nclient:\n  base_url: http://yaml.test\n  bogus: 1\n"
        )
        monkeypatch.chdir(tmp_path)
        settings = Settings()

        assert settings.http.timeout == 5
        assert settings.log.level == "DEBUG"
        assert settings.client == {"base_url": "http://yaml.test"}

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        """Test environment variables win over the YAML file."""
        from seraph_llm.config import Settings

        (tmp_path / "seraph.yaml").write_text("http:\n  timeout: 5\n")
        monkeypatch.chdir(tmp_path)
        with patch.dict(os.environ, {"SERAPH_TIMEOUT": "90", "SERAPH_API_KEY": "sk-env"}):
            settings = Settings()

        assert settings.http.timeout == 90.0
        assert settings.client["api_key"] == "sk-env"
        assert "api_key" not in settings.to_dict()["client"]

    def test_seed_only_fills_gaps(self, tmp_path, monkeypatch):
        """Test seed values don't overwrite stored ones."""
        from seraph_llm.config import ClientSettings, MemoryConfigStore, Settings

        monkeypatch.chdir(tmp_path)
        settings = Settings()
        settings.client = {"base_url": "http://seed.test", "default_model_id": "llama3"}
        client_settings = ClientSettings(MemoryConfigStore({"llmBaseURL": "http://stored.test"}))

        settings.seed(client_settings)

        assert client_settings.base_url == "http://stored.test"
        assert client_settings.default_model_id == "llama3"

    def test_open_store(self, tmp_path, monkeypatch):
        """Test open_store uses the configured path and applies seeds."""
        from seraph_llm.config import ClientSettings, Settings, open_store

        monkeypatch.chdir(tmp_path)
        settings = Settings()
        settings.store.path = str(tmp_path / "store.yaml")
        settings.client = {"base_url": "http://seed.test"}

        store = open_store(settings)

        assert ClientSettings(store).base_url == "http://seed.test"
        assert (tmp_path / "store.yaml").exists()


class TestConfigure:
    """Tests for configure function."""

    def test_configure_sections(self, tmp_path, monkeypatch):
        """Test configuring process settings by section_key."""
        from seraph_llm.config import settings as settings_module

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(settings_module, "_settings", None)

        settings_module.configure(http_timeout=120, log_level="DEBUG")

        current = settings_module.get_settings()
        assert current.http.timeout == 120
        assert current.log.level == "DEBUG"
        assert current is settings_module.get_settings()

    def test_configure_unknown(self, tmp_path, monkeypatch):
        """Test unknown settings raise."""
        from seraph_llm.config import settings as settings_module

        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(settings_module, "_settings", None)

        with pytest.raises(AttributeError):
            settings_module.configure(web_port=9000)
