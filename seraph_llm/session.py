"""Chat session: sends user messages and keeps the conversation's statuses current."""

from typing import Callable, Optional

from seraph_llm.client import LLMClient
from seraph_llm.exceptions import LLMError, get_user_message
from seraph_llm.logging import get_logger
from seraph_llm.models import ChatMessage, Conversation, MessageStatus, ModelDescriptor

# Module logger
logger = get_logger("session")

FAILED_REPLY_TEXT = "Failed to generate response. Please try again."


class ChatSession:
    """
    Drives one conversation against an LLMClient.

    Each ``send`` appends the user's message and a pending assistant
    placeholder. When the request resolves, the placeholder receives the
    reply and is marked delivered, or receives a generic failure text and is
    marked failed. Error details go to ``on_error``, never into the transcript.

    Args:
        client: Client used for generation.
        conversation: Conversation to append to.
        model: Model used for replies.
        on_error: Called with the error whenever a reply fails.
    """

    def __init__(
        self,
        client: LLMClient,
        conversation: Conversation | None = None,
        model: ModelDescriptor | None = None,
        on_error: Callable[[LLMError], None] | None = None,
    ):
        self.client = client
        self.conversation = conversation if conversation is not None else Conversation()
        self.model = model or client.default_model
        self.on_error = on_error
        self.last_error: Optional[LLMError] = None

    async def send(self, text: str) -> Optional[ChatMessage]:
        """
        Send a user message and wait for the reply.

        Blank text is ignored.

        Returns:
            The assistant message (delivered or failed), or None for blank text.
        """
        text = text.strip()
        if not text:
            return None

        history = _delivered(self.conversation.messages)
        self.conversation.add_message(ChatMessage(content=text, is_from_user=True))
        return await self._respond(text, history)

    async def retry(self) -> Optional[ChatMessage]:
        """
        Re-send the last user message if the reply to it failed.

        The failed reply stays in the transcript; a new placeholder is added.
        """
        messages = self.conversation.messages
        if not messages or messages[-1].is_from_user or messages[-1].status is not MessageStatus.FAILED:
            return None

        user_index = max((i for i, m in enumerate(messages) if m.is_from_user), default=None)
        if user_index is None:
            return None
        text = messages[user_index].content
        history = _delivered(messages[:user_index])
        return await self._respond(text, history)

    async def _respond(self, text: str, history: tuple[ChatMessage, ...]) -> ChatMessage:
        placeholder = self.conversation.add_message(
            ChatMessage(content="", is_from_user=False, status=MessageStatus.PENDING)
        )

        try:
            reply = await self.client.generate(
                text, self.model, self.conversation.system_prompt, history
            )
        except LLMError as e:
            placeholder.content = FAILED_REPLY_TEXT
            placeholder.status = MessageStatus.FAILED
            self.last_error = e
            logger.warn("Reply failed", message_id=placeholder.id, error=get_user_message(e))
            if self.on_error is not None:
                self.on_error(e)
            return placeholder

        placeholder.content = reply
        placeholder.status = MessageStatus.DELIVERED
        self.last_error = None
        return placeholder


def _delivered(messages: list[ChatMessage]) -> tuple[ChatMessage, ...]:
    """Copies of the messages the model should see; failed and pending replies are left out."""
    return tuple(m.copy() for m in messages if m.status is MessageStatus.DELIVERED)
