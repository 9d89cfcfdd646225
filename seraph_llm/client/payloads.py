"""Request bodies and response decoding for the remote and local APIs."""

from typing import AsyncIterator, Optional

from pydantic import BaseModel, Field, ValidationError

from seraph_llm.config import ClientSettings
from seraph_llm.exceptions import DecodingError
from seraph_llm.models import RequestContext

REMOTE_PATH = "v1/chat/completions"
LOCAL_PATH = "api/generate"

LOCAL_REPEAT_PENALTY = 1.1
LOCAL_STOP_SEQUENCES = ["\n###", "\n\nUser:", "\n\n###"]


# =============================================================================
# Request Models
# =============================================================================

class ChatMessagePayload(BaseModel):
    role: str
    content: str


class ChatCompletionRequest(BaseModel):
    """Body of POST /v1/chat/completions."""
    model: str
    messages: list[ChatMessagePayload]
    temperature: float
    max_tokens: int
    top_p: float
    frequency_penalty: float
    presence_penalty: float
    stream: bool = False


class LocalOptions(BaseModel):
    temperature: float
    top_p: float
    num_predict: int
    repeat_penalty: float = LOCAL_REPEAT_PENALTY
    stop: list[str] = Field(default_factory=lambda: list(LOCAL_STOP_SEQUENCES))


class LocalGenerateRequest(BaseModel):
    """Body of POST /api/generate."""
    model: str
    prompt: str
    system: str
    stream: bool = False
    options: LocalOptions


# =============================================================================
# Response Models
# =============================================================================

class _ChoiceMessage(BaseModel):
    content: str


class _Choice(BaseModel):
    message: _ChoiceMessage


class ChatCompletionResponse(BaseModel):
    choices: list[_Choice] = Field(min_length=1)


class LocalGenerateResponse(BaseModel):
    response: str


class _ProviderErrorDetail(BaseModel):
    message: str


class ProviderErrorBody(BaseModel):
    error: _ProviderErrorDetail


class _Delta(BaseModel):
    content: Optional[str] = None


class _StreamChoice(BaseModel):
    delta: _Delta = Field(default_factory=_Delta)


class ChatCompletionChunk(BaseModel):
    choices: list[_StreamChoice] = Field(default_factory=list)


# =============================================================================
# Builders
# =============================================================================

def build_messages(context: RequestContext) -> list[ChatMessagePayload]:
    """
    Build the chat message array: optional system entry, history, then the
    current user message.
    """
    messages = []
    if context.system_prompt:
        messages.append(ChatMessagePayload(role="system", content=context.system_prompt))
    for item in context.history:
        messages.append(ChatMessagePayload(role=item.role, content=item.content))
    messages.append(ChatMessagePayload(role="user", content=context.message))
    return messages


def build_remote_payload(
    context: RequestContext,
    settings: ClientSettings,
    stream: bool = False,
    temperature: Optional[float] = None,
) -> dict:
    """Chat-completions body with generation parameters read from settings."""
    request = ChatCompletionRequest(
        model=context.model.id,
        messages=build_messages(context),
        temperature=settings.temperature if temperature is None else temperature,
        max_tokens=settings.max_tokens,
        top_p=settings.top_p,
        frequency_penalty=settings.frequency_penalty,
        presence_penalty=settings.presence_penalty,
        stream=stream,
    )
    return request.model_dump()


def build_local_payload(context: RequestContext, settings: ClientSettings) -> dict:
    """Flat generate body. History is not sent on this path."""
    request = LocalGenerateRequest(
        model=context.model.id,
        prompt=context.message,
        system=context.system_prompt,
        options=LocalOptions(
            temperature=settings.temperature,
            top_p=settings.top_p,
            num_predict=settings.max_tokens,
        ),
    )
    return request.model_dump()


# =============================================================================
# Decoders
# =============================================================================

def decode_remote(body: bytes) -> str:
    """Return choices[0].message.content or raise DecodingError."""
    try:
        return ChatCompletionResponse.model_validate_json(body).choices[0].message.content
    except ValidationError as e:
        raise DecodingError("Failed to decode response", errors=e.error_count()) from e


def decode_local(body: bytes) -> str:
    """Return the top-level ``response`` string or raise DecodingError."""
    try:
        return LocalGenerateResponse.model_validate_json(body).response
    except ValidationError as e:
        raise DecodingError("Failed to decode response", errors=e.error_count()) from e


def extract_error_message(body: bytes) -> Optional[str]:
    """Pull ``error.message`` out of a provider error body, if there is one."""
    if not body:
        return None
    try:
        return ProviderErrorBody.model_validate_json(body).error.message
    except ValidationError:
        return None


async def iter_stream_content(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Yield content fragments from a server-sent events body.

    Stops at ``data: [DONE]`` or when the body ends. Blank lines, comments
    and non-data fields are skipped; fragments without content are dropped.
    """
    async for line in lines:
        line = line.strip()
        if not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if data == "[DONE]":
            return
        try:
            chunk = ChatCompletionChunk.model_validate_json(data)
        except ValidationError as e:
            raise DecodingError("Malformed stream event", errors=e.error_count()) from e
        for choice in chunk.choices:
            if choice.delta.content:
                yield choice.delta.content
