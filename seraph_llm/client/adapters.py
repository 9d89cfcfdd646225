"""
Calling conventions layered over ``LLMClient.generate``.

``generate`` is the only place a request is built and sent. The adapters here
change how the outcome is delivered:

- ``generate_via_callback``: schedules the call and hands a
  ``GenerationResult`` to a callback exactly once
- ``send_and_await``: snapshots a conversation and returns a task that
  resolves or raises exactly once
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from seraph_llm.exceptions import LLMError, RequestCancelledError
from seraph_llm.models import ChatMessage, Conversation, ModelDescriptor

if TYPE_CHECKING:
    from seraph_llm.client.core import LLMClient


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a generation: exactly one of value or error is set."""

    value: Optional[str] = None
    error: Optional[LLMError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the value or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value or ""


GenerationCallback = Callable[[GenerationResult], None]


class CallingConventionsMixin:
    """Callback and future adapters. Mixed into LLMClient."""

    def resolve_model(self: "LLMClient", model_id: Optional[str]) -> Optional[ModelDescriptor]:
        """Look up a model id, falling back to the configured default model."""
        if model_id:
            model = self.registry.find(model_id)
            if model is not None:
                return model
        return self.default_model

    def generate_via_callback(
        self: "LLMClient",
        prompt: str,
        model_id: Optional[str],
        history: Iterable[ChatMessage],
        callback: GenerationCallback,
    ) -> asyncio.Task:
        """
        Generate with an empty system prompt and report through a callback.

        Must be called from a running event loop.

        Args:
            prompt: The user's message.
            model_id: Registry id; unknown ids use the default model.
            history: Prior messages, oldest first. Copied immediately.
            callback: Called once with the result, also when the task is cancelled.

        Returns:
            The scheduled task (awaiting it is optional).
        """
        model = self.resolve_model(model_id)
        snapshot = tuple(item.copy() for item in history)

        delivered = False

        def deliver(result: GenerationResult) -> None:
            nonlocal delivered
            if not delivered:
                delivered = True
                callback(result)

        def cancelled() -> GenerationResult:
            return GenerationResult(error=RequestCancelledError("Request cancelled"))

        async def run() -> None:
            try:
                value = await self.generate(prompt, model, "", snapshot)
            except LLMError as e:
                deliver(GenerationResult(error=e))
            except asyncio.CancelledError:
                deliver(cancelled())
                raise
            else:
                deliver(GenerationResult(value=value))

        task = asyncio.get_running_loop().create_task(run())
        # Covers tasks cancelled before they start running
        task.add_done_callback(lambda t: deliver(cancelled()) if t.cancelled() else None)
        return task

    def send_and_await(
        self: "LLMClient",
        message: str,
        conversation: Conversation | Iterable[ChatMessage],
        system_prompt: str,
        model: ModelDescriptor,
    ) -> "asyncio.Task[str]":
        """
        Send a message with a point-in-time copy of the conversation.

        Must be called from a running event loop. The returned task resolves
        to the reply or raises an LLMError.
        """
        if isinstance(conversation, Conversation):
            history = conversation.snapshot()
        else:
            history = tuple(item.copy() for item in conversation)
        return asyncio.get_running_loop().create_task(
            self.generate(message, model, system_prompt, history)
        )
