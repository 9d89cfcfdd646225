"""
Unit tests for the command-line front end.
"""
import functools
import json
import pytest
import httpx


@pytest.fixture
def cli_settings(tmp_path, monkeypatch):
    """Process settings pointing at a temporary store."""
    from seraph_llm.config import Settings

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("SERAPH_BASE_URL", "SERAPH_API_KEY", "SERAPH_MODEL", "SERAPH_STORE_PATH", "SERAPH_TIMEOUT", "SERAPH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    settings.store.path = str(tmp_path / "settings.yaml")
    return settings


@pytest.fixture
def mock_http(monkeypatch):
    """Route the CLI's client through a mock transport; returns the recorded requests."""
    from seraph_llm import cli
    from seraph_llm.client import LLMClient

    requests = []

    def install(respond):
        def handler(request):
            requests.append(request)
            return respond(request)

        monkeypatch.setattr(cli, "LLMClient", functools.partial(LLMClient, transport=httpx.MockTransport(handler)))
        return requests

    return install


class TestConfigCommand:
    """Tests for `config`."""

    def test_set_and_get(self, cli_settings, capsys):
        """Test values persist between invocations."""
        from seraph_llm.cli import main

        assert main(["config", "set", "base_url", "http://localhost:11434/"], cli_settings) == 0
        assert main(["config", "set", "temperature", "0.2"], cli_settings) == 0
        capsys.readouterr()

        assert main(["config", "get", "base_url"], cli_settings) == 0
        assert capsys.readouterr().out.strip() == "http://localhost:11434"

        assert main(["config", "get", "temperature"], cli_settings) == 0
        assert capsys.readouterr().out.strip() == "0.2"

    def test_show_hides_key(self, cli_settings, capsys):
        """Test `config show` never prints the API key."""
        from seraph_llm.cli import main

        main(["config", "set", "api_key", "sk-very-secret"], cli_settings)
        capsys.readouterr()

        assert main(["config", "show"], cli_settings) == 0
        out = capsys.readouterr().out
        assert "sk-very-secret" not in out
        assert json.loads(out)["has_api_key"] is True

    def test_out_of_range(self, cli_settings, capsys):
        """Test invalid values are reported with exit code 2."""
        from seraph_llm.cli import main

        assert main(["config", "set", "top_p", "3"], cli_settings) == 2
        assert "topP" in capsys.readouterr().err

    def test_blank_api_key(self, cli_settings, capsys):
        """Test a blank key is a credential error."""
        from seraph_llm.cli import main

        assert main(["config", "set", "api_key", "   "], cli_settings) == 1
        assert "API key" in capsys.readouterr().err


class TestModelsCommand:
    """Tests for `models`."""

    def test_lists_available(self, cli_settings, capsys):
        """Test remote models are listed and missing local ones hidden."""
        from seraph_llm.cli import main

        assert main(["models"], cli_settings) == 0
        out = capsys.readouterr().out
        assert "gpt-4o-mini" in out
        assert "not installed" not in out

    def test_scan(self, cli_settings, tmp_path, capsys):
        """Test --scan registers model files."""
        from seraph_llm.cli import main

        models_dir = tmp_path / "models"
        models_dir.mkdir()
        (models_dir / "tinyllama.gguf").write_bytes(b"GGUF")

        assert main(["models", "--scan", str(models_dir)], cli_settings) == 0
        assert "tinyllama" in capsys.readouterr().out


class TestAskCommand:
    """Tests for `ask`."""

    def test_remote_reply(self, cli_settings, mock_http, capsys):
        """Test a prompt prints the reply."""
        from seraph_llm.cli import main

        cli_settings.client = {"base_url": "http://llm.test", "api_key": "sk-test"}
        requests = mock_http(lambda r: httpx.Response(200, json={"choices": [{"message": {"content": "42"}}]}))

        assert main(["ask", "meaning of life?", "--system", "Be brief."], cli_settings) == 0

        assert capsys.readouterr().out.strip() == "42"
        assert len(requests) == 1
        assert json.loads(requests[0].content)["messages"][0]["content"] == "Be brief."

    def test_stream(self, cli_settings, mock_http, capsys):
        """Test --stream prints chunks as they arrive."""
        from seraph_llm.cli import main

        cli_settings.client = {"base_url": "http://llm.test", "api_key": "sk-test"}
        body = (
            b'data: {"choices": [{"delta": {"content": "4"}}]}\n\n'
            b'data: {"choices": [{"delta": {"content": "2"}}]}\n\n'
            b"data: [DONE]\n\n"
        )
        mock_http(lambda r: httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body))

        assert main(["ask", "hi", "--stream"], cli_settings) == 0
        assert capsys.readouterr().out == "42\n"

    def test_error_exit_code(self, cli_settings, mock_http, capsys):
        """Test failures print the description and recovery hint."""
        from seraph_llm.cli import main

        requests = mock_http(lambda r: httpx.Response(200, json={}))

        assert main(["ask", "hi"], cli_settings) == 1
        err = capsys.readouterr().err
        assert "API key" in err
        assert "Settings" in err
        assert requests == []

    def test_retries(self, cli_settings, mock_http, capsys):
        """Test --retries re-issues retryable failures."""
        from seraph_llm.cli import main

        cli_settings.client = {"base_url": "http://llm.test", "api_key": "sk-test"}
        responses = iter([
            httpx.Response(503, json={}),
            httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]}),
        ])
        requests = mock_http(lambda r: next(responses))

        assert main(["ask", "hi", "--retries", "2"], cli_settings) == 0
        assert len(requests) == 2
        assert capsys.readouterr().out.strip() == "ok"


class TestInvalidConfiguration:
    """Tests for configuration problems found at start-up."""

    def test_bad_timeout_env(self, tmp_path, monkeypatch, capsys):
        """Test a non-numeric SERAPH_TIMEOUT is reported, not raised."""
        from seraph_llm.cli import main
        from seraph_llm.config import settings as settings_module

        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("SERAPH_TIMEOUT", "soon")
        monkeypatch.setattr(settings_module, "_settings", None)

        assert main(["models"]) == 2
        assert "SERAPH_TIMEOUT" in capsys.readouterr().err

    def test_out_of_range_seed(self, cli_settings, capsys):
        """Test a seed value the store would reject is reported."""
        from seraph_llm.cli import main

        cli_settings.client = {"temperature": 5}

        assert main(["config", "show"], cli_settings) == 2
        assert "temperature" in capsys.readouterr().err

    def test_unknown_log_level(self, cli_settings, capsys):
        """Test an unknown log level is reported."""
        from seraph_llm.cli import main

        cli_settings.log.level = "CHATTY"

        assert main(["models"], cli_settings) == 2
        assert "CHATTY" in capsys.readouterr().err
