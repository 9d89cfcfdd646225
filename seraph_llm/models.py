"""Model descriptors, chat messages and request context."""

import os
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence


@dataclass(frozen=True)
class ModelDescriptor:
    """
    Identifies a generation target.

    Args:
        id: Model identifier sent to the provider.
        name: Display name.
        requires_credential: True for hosted models behind an API key.
        local_path: File-system path of a local model, used only to check
            that it is installed.
    """

    id: str
    name: str
    requires_credential: bool = True
    local_path: Optional[str] = None

    @classmethod
    def remote(cls, id: str, name: str | None = None) -> "ModelDescriptor":
        return cls(id=id, name=name or id, requires_credential=True)

    @classmethod
    def local(cls, id: str, path: str | os.PathLike, name: str | None = None) -> "ModelDescriptor":
        return cls(id=id, name=name or id, requires_credential=False, local_path=os.fspath(path))

    def is_installed(self) -> bool:
        """True when a credential-free model's backing path exists right now."""
        return bool(self.local_path) and os.path.exists(os.path.expanduser(self.local_path))


class ModelRegistry:
    """Ordered collection of known model descriptors."""

    def __init__(self, models: Iterable[ModelDescriptor] = ()):
        self._models: list[ModelDescriptor] = []
        for model in models:
            self.register(model)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(list(self._models))

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, model_id: object) -> bool:
        return self.find(model_id) is not None  # type: ignore[arg-type]

    def find(self, model_id: str) -> Optional[ModelDescriptor]:
        """Return the descriptor with the given id, or None."""
        for model in self._models:
            if model.id == model_id:
                return model
        return None

    def get(self, model_id: str, default: Optional[ModelDescriptor] = None) -> Optional[ModelDescriptor]:
        return self.find(model_id) or default

    def register(self, model: ModelDescriptor) -> None:
        """Add a descriptor, replacing any existing one with the same id in place."""
        for index, existing in enumerate(self._models):
            if existing.id == model.id:
                self._models[index] = model
                return
        self._models.append(model)

    def scan_local(
        self,
        directory: str | os.PathLike,
        suffixes: Sequence[str] = (".gguf", ".bin", ".safetensors"),
    ) -> list[ModelDescriptor]:
        """
        Register every model file in a directory as a local descriptor.

        The file stem becomes the model id. Missing directories yield no models.

        Returns:
            The descriptors that were registered.
        """
        root = Path(directory).expanduser()
        if not root.is_dir():
            return []

        found = []
        for path in sorted(root.iterdir()):
            if path.is_file() and path.suffix.lower() in suffixes:
                model = ModelDescriptor.local(path.stem, path)
                self.register(model)
                found.append(model)
        return found

    def copy(self) -> "ModelRegistry":
        return ModelRegistry(self._models)


DEFAULT_MODEL_ID = "gpt-4o-mini"

DEFAULT_REGISTRY = ModelRegistry([
    ModelDescriptor.remote("gpt-4o-mini", "GPT-4o mini"),
    ModelDescriptor.remote("gpt-4o", "GPT-4o"),
    ModelDescriptor.remote("gpt-3.5-turbo", "GPT-3.5 Turbo"),
    ModelDescriptor.local("llama3", "~/.ollama/models/manifests/registry.ollama.ai/library/llama3", "Llama 3"),
    ModelDescriptor.local("mistral", "~/.ollama/models/manifests/registry.ollama.ai/library/mistral", "Mistral"),
])


# =============================================================================
# Messages
# =============================================================================

class MessageStatus(str, Enum):
    """Delivery status of a chat message."""
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    content: str
    is_from_user: bool
    status: MessageStatus = MessageStatus.DELIVERED
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def role(self) -> str:
        return "user" if self.is_from_user else "assistant"

    def copy(self) -> "ChatMessage":
        """Return an independent snapshot of this message."""
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "is_from_user": self.is_from_user,
            "status": self.status.value,
        }


class Conversation:
    """Ordered list of chat messages plus the system prompt in effect."""

    def __init__(self, messages: Iterable[ChatMessage] = (), system_prompt: str = ""):
        self.messages: list[ChatMessage] = list(messages)
        self.system_prompt = system_prompt

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def add_message(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    def find(self, message_id: str) -> Optional[ChatMessage]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def snapshot(self) -> tuple[ChatMessage, ...]:
        """Point-in-time copy of the message list."""
        return tuple(message.copy() for message in self.messages)


# =============================================================================
# Request Context
# =============================================================================

@dataclass(frozen=True)
class RequestContext:
    """Everything one generation call needs, fixed at submission time."""

    message: str
    model: ModelDescriptor
    system_prompt: str = ""
    history: tuple[ChatMessage, ...] = ()

    @classmethod
    def build(
        cls,
        message: str,
        model: ModelDescriptor,
        system_prompt: str = "",
        history: Iterable[ChatMessage] = (),
    ) -> "RequestContext":
        """Create a context, copying history so later edits to the source don't leak in."""
        return cls(
            message=message,
            model=model,
            system_prompt=system_prompt or "",
            history=tuple(item.copy() for item in history),
        )
