"""
Pytest configuration and shared fixtures.
"""
import json
import pytest
import sys
from pathlib import Path

import httpx

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


# =============================================================================
# Transport fixtures
# =============================================================================

class RecordingHandler:
    """MockTransport handler that records every request it serves."""

    def __init__(self, respond):
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.respond(request)

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def json(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def default_response(request: httpx.Request) -> httpx.Response:
    """Answer like the provider for whichever endpoint was hit."""
    if request.url.path.endswith("/api/generate"):
        return httpx.Response(200, json={"response": "local reply"})
    return httpx.Response(200, json={"choices": [{"message": {"content": "remote reply"}}]})


@pytest.fixture
def make_client(client_settings):
    """Build an LLMClient whose HTTP goes to a recording mock handler."""
    from seraph_llm.client import LLMClient
    from seraph_llm.models import DEFAULT_REGISTRY

    def factory(respond=default_response, settings=None, registry=None):
        handler = RecordingHandler(respond)
        client = LLMClient(
            settings=settings or client_settings,
            registry=registry if registry is not None else DEFAULT_REGISTRY.copy(),
            transport=httpx.MockTransport(handler),
        )
        return client, handler

    return factory


# =============================================================================
# Config fixtures
# =============================================================================

@pytest.fixture
def store():
    """Provide an in-memory store with connection details."""
    from seraph_llm.config import MemoryConfigStore
    return MemoryConfigStore({
        "llmBaseURL": "http://llm.test",
        "llmAPIKey": "sk-test-12345",
    })


@pytest.fixture
def client_settings(store):
    """Provide client settings over the test store."""
    from seraph_llm.config import ClientSettings
    return ClientSettings(store)


# =============================================================================
# Model fixtures
# =============================================================================

@pytest.fixture
def remote_model():
    """Provide a credential-gated model."""
    from seraph_llm.models import ModelDescriptor
    return ModelDescriptor.remote("gpt-4o-mini", "GPT-4o mini")


@pytest.fixture
def local_model(tmp_path):
    """Provide a local model whose file exists."""
    from seraph_llm.models import ModelDescriptor
    path = tmp_path / "llama3.gguf"
    path.write_bytes(b"GGUF")
    return ModelDescriptor.local("llama3", path, "Llama 3")


@pytest.fixture
def missing_local_model(tmp_path):
    """Provide a local model whose file does not exist."""
    from seraph_llm.models import ModelDescriptor
    return ModelDescriptor.local("phi3", tmp_path / "phi3.gguf", "Phi-3")


# =============================================================================
# Message fixtures
# =============================================================================

@pytest.fixture
def history():
    """Provide a short user/assistant exchange."""
    from seraph_llm.models import ChatMessage
    return [
        ChatMessage(content="hi", is_from_user=True),
        ChatMessage(content="hello", is_from_user=False),
    ]
