"""
Seraph LLM - A client for remote and local language model APIs.

This package routes chat requests to a hosted chat-completions API or a
locally running generate API, normalizes failures into a fixed error
taxonomy, and offers awaitable, callback and streaming calling styles.
"""

from seraph_llm.client import LLMClient, GenerationResult
from seraph_llm.config import (
    ClientSettings,
    ConfigStore,
    MemoryConfigStore,
    YamlConfigStore,
    get_settings,
    open_store,
)
from seraph_llm.logging import get_logger, set_global_queue, StructuredLogger, LogLevel
from seraph_llm.exceptions import (
    ErrorKind,
    LLMError,
    InvalidURLError,
    InvalidResponseError,
    RateLimitExceededError,
    InvalidCredentialError,
    InvalidCredentialFormatError,
    RequestFailedError,
    RequestCancelledError,
    DecodingError,
    NoDataReceivedError,
    InvalidModelError,
    InvalidRequestError,
    ModelNotAvailableError,
    ContextTooLargeError,
    GenerationFailedError,
    UnsupportedModelError,
    NetworkUnavailableError,
    LLMTimeoutError,
    is_retryable,
    get_user_message,
    get_recovery_suggestion,
)
from seraph_llm.models import (
    DEFAULT_MODEL_ID,
    DEFAULT_REGISTRY,
    ChatMessage,
    Conversation,
    MessageStatus,
    ModelDescriptor,
    ModelRegistry,
    RequestContext,
)
from seraph_llm.retry import retry_async, with_retry, RetryConfig
from seraph_llm.session import ChatSession

__version__ = "0.1.0"
__all__ = [
    # Core
    "LLMClient",
    "GenerationResult",
    "ChatSession",
    # Models
    "DEFAULT_MODEL_ID",
    "DEFAULT_REGISTRY",
    "ChatMessage",
    "Conversation",
    "MessageStatus",
    "ModelDescriptor",
    "ModelRegistry",
    "RequestContext",
    # Config
    "ClientSettings",
    "ConfigStore",
    "MemoryConfigStore",
    "YamlConfigStore",
    "get_settings",
    "open_store",
    # Retry
    "retry_async",
    "with_retry",
    "RetryConfig",
    # Logging
    "get_logger",
    "set_global_queue",
    "StructuredLogger",
    "LogLevel",
    # Exceptions
    "ErrorKind",
    "LLMError",
    "InvalidURLError",
    "InvalidResponseError",
    "RateLimitExceededError",
    "InvalidCredentialError",
    "InvalidCredentialFormatError",
    "RequestFailedError",
    "RequestCancelledError",
    "DecodingError",
    "NoDataReceivedError",
    "InvalidModelError",
    "InvalidRequestError",
    "ModelNotAvailableError",
    "ContextTooLargeError",
    "GenerationFailedError",
    "UnsupportedModelError",
    "NetworkUnavailableError",
    "LLMTimeoutError",
    "is_retryable",
    "get_user_message",
    "get_recovery_suggestion",
]
