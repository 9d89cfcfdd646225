"""
Exception hierarchy for Seraph.

Every failure the client can surface belongs to one ``ErrorKind``. Each kind
has its own exception class carrying:
- a human-readable description (``user_message``)
- a recovery hint (``recovery_suggestion``)
- retry guidance for callers (``retryable``)
- free-form context for debugging

Usage:
    from seraph_llm.exceptions import RequestFailedError

    raise RequestFailedError(
        "Invalid model requested",
        status_code=400,
        path="remote",
    )
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Closed set of failure categories."""
    INVALID_URL = "invalidURL"
    INVALID_RESPONSE = "invalidResponse"
    RATE_LIMIT_EXCEEDED = "rateLimitExceeded"
    INVALID_CREDENTIAL = "invalidCredential"
    REQUEST_FAILED = "requestFailed"
    DECODING_ERROR = "decodingError"
    NO_DATA_RECEIVED = "noDataReceived"
    INVALID_MODEL = "invalidModel"
    INVALID_REQUEST = "invalidRequest"
    MODEL_NOT_AVAILABLE = "modelNotAvailable"
    CONTEXT_TOO_LARGE = "contextTooLarge"
    GENERATION_FAILED = "generationFailed"
    UNSUPPORTED_MODEL = "unsupportedModel"
    NETWORK_UNAVAILABLE = "networkUnavailable"
    TIMEOUT = "timeout"


DEFAULT_RECOVERY = "Please try again later or contact support if the issue persists."


class LLMError(Exception):
    """
    Base exception for all Seraph client errors.

    All custom exceptions inherit from this class, enabling
    catch-all handling when needed.

    Attributes:
        kind: Taxonomy category of the error
        retryable: Whether the caller may re-issue the request
        user_message: User-friendly error description
        recovery_suggestion: What the user can do about it
        context: Additional context for debugging
    """

    kind: ErrorKind = ErrorKind.GENERATION_FAILED
    retryable: bool = False
    user_message: str = "An error occurred"
    recovery_suggestion: str = DEFAULT_RECOVERY

    def __init__(self, message: Optional[str] = None, **context: Any):
        super().__init__(message or self.user_message)
        self.context = context

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} ({ctx_str})"
        return base


# ============================================================================
# Configuration Errors
# ============================================================================

class InvalidURLError(LLMError):
    """Base URL is missing or cannot be used to build a request."""
    kind = ErrorKind.INVALID_URL
    user_message = "The provided URL is invalid."
    recovery_suggestion = "Please check the server URL in Settings and try again."


class InvalidCredentialError(LLMError):
    """
    API key is missing, empty, or rejected.

    Not retryable - user needs to fix credentials.
    """
    kind = ErrorKind.INVALID_CREDENTIAL
    user_message = "The provided API key is invalid or missing."
    recovery_suggestion = "Please check your API key in Settings and try again."


class InvalidCredentialFormatError(InvalidCredentialError):
    """API key is present but syntactically unusable."""


# ============================================================================
# Request Errors
# ============================================================================

class RequestFailedError(LLMError):
    """
    The HTTP exchange failed.

    Carries the HTTP status code when the server answered, or None when the
    request never got a response. Server errors (5xx) and 429 are retryable.
    """
    kind = ErrorKind.REQUEST_FAILED
    user_message = "The request failed."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, **context: Any):
        super().__init__(message, **context)
        self.message = message or self.user_message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500

    def __str__(self) -> str:
        base = self.message
        if not base.startswith("Request failed"):
            base = f"Request failed with error: {base}"
        if self.status_code is not None and str(self.status_code) not in self.message:
            base = f"{base} (status {self.status_code})"
        return base


class RequestCancelledError(RequestFailedError):
    """
    The request was cancelled before it completed.

    This is a clean cancellation, not a server failure.
    """
    user_message = "The request was cancelled."

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return False


class InvalidRequestError(LLMError):
    """The request was invalid or malformed."""
    kind = ErrorKind.INVALID_REQUEST
    user_message = "The request was invalid or malformed."


class RateLimitExceededError(LLMError):
    """
    API rate limit exceeded.

    Retryable after a pause. Use the retry_after context value if available.
    """
    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    retryable = True
    user_message = "Rate limit exceeded. Please try again later."
    recovery_suggestion = "Please wait a few moments before trying again."

    @property
    def retry_after(self) -> float:
        """Suggested wait time in seconds."""
        return float(self.context.get("retry_after", 1.0))


class NetworkUnavailableError(LLMError):
    """
    Cannot reach the server.

    Retryable once connectivity returns.
    """
    kind = ErrorKind.NETWORK_UNAVAILABLE
    retryable = True
    user_message = "Network is unavailable. Please check your connection and try again."
    recovery_suggestion = "Please check your internet connection and try again."


class LLMTimeoutError(LLMError):
    """
    Request timed out at the transport.

    Retryable.
    """
    kind = ErrorKind.TIMEOUT
    retryable = True
    user_message = "The request timed out. Please try again."


# ============================================================================
# Response Errors
# ============================================================================

class InvalidResponseError(LLMError):
    """The server answered with something that is not an HTTP response body we can use."""
    kind = ErrorKind.INVALID_RESPONSE
    user_message = "Received an invalid response from the server."


class DecodingError(LLMError):
    """
    Response body could not be decoded into the expected shape.

    Retryable - the model might return a valid response on retry.
    """
    kind = ErrorKind.DECODING_ERROR
    retryable = True
    user_message = "Failed to decode response."

    def __init__(self, message: Optional[str] = None, **context: Any):
        super().__init__(message, **context)
        self.message = message or self.user_message

    def __str__(self) -> str:
        base = super().__str__()
        if base.startswith("Failed to decode response"):
            return base
        return f"Failed to decode response: {base}"


class NoDataReceivedError(LLMError):
    """The server answered with an empty body."""
    kind = ErrorKind.NO_DATA_RECEIVED
    retryable = True
    user_message = "No data was received from the server."


# ============================================================================
# Model Errors
# ============================================================================

class InvalidModelError(LLMError):
    """No usable model descriptor was supplied."""
    kind = ErrorKind.INVALID_MODEL
    user_message = "The specified model is not available."


class ModelNotAvailableError(LLMError):
    """The model exists in the registry but is not installed or reachable."""
    kind = ErrorKind.MODEL_NOT_AVAILABLE
    user_message = "The requested model is not available."


class UnsupportedModelError(LLMError):
    """The model is not supported by this client."""
    kind = ErrorKind.UNSUPPORTED_MODEL
    user_message = "The selected model is not supported in this version of the app."


class ContextTooLargeError(LLMError):
    """Conversation history exceeds what the model accepts."""
    kind = ErrorKind.CONTEXT_TOO_LARGE
    user_message = "The conversation history is too long. Please start a new conversation."
    recovery_suggestion = "Try starting a new conversation or summarizing the previous context."


class GenerationFailedError(LLMError):
    """The model did not produce a response."""
    kind = ErrorKind.GENERATION_FAILED
    retryable = True
    user_message = "Failed to generate a response. Please try again."


# ============================================================================
# Utility Functions
# ============================================================================

ERROR_CLASSES: dict[ErrorKind, type[LLMError]] = {
    ErrorKind.INVALID_URL: InvalidURLError,
    ErrorKind.INVALID_RESPONSE: InvalidResponseError,
    ErrorKind.RATE_LIMIT_EXCEEDED: RateLimitExceededError,
    ErrorKind.INVALID_CREDENTIAL: InvalidCredentialError,
    ErrorKind.REQUEST_FAILED: RequestFailedError,
    ErrorKind.DECODING_ERROR: DecodingError,
    ErrorKind.NO_DATA_RECEIVED: NoDataReceivedError,
    ErrorKind.INVALID_MODEL: InvalidModelError,
    ErrorKind.INVALID_REQUEST: InvalidRequestError,
    ErrorKind.MODEL_NOT_AVAILABLE: ModelNotAvailableError,
    ErrorKind.CONTEXT_TOO_LARGE: ContextTooLargeError,
    ErrorKind.GENERATION_FAILED: GenerationFailedError,
    ErrorKind.UNSUPPORTED_MODEL: UnsupportedModelError,
    ErrorKind.NETWORK_UNAVAILABLE: NetworkUnavailableError,
    ErrorKind.TIMEOUT: LLMTimeoutError,
}


def is_retryable(error: BaseException) -> bool:
    """
    Check if an exception is retryable.

    Args:
        error: The exception to check

    Returns:
        True if the error is an LLMError with retryable=True
    """
    if isinstance(error, LLMError):
        return error.retryable
    return False


def get_user_message(error: BaseException) -> str:
    """
    Get a user-friendly error message.

    Request and decoding failures include their specific message; other
    kinds use the fixed description of their category.

    Args:
        error: The exception

    Returns:
        User-friendly message string
    """
    if isinstance(error, (RequestFailedError, DecodingError)):
        return str(error)
    if isinstance(error, LLMError):
        return error.user_message
    return str(error)


def get_recovery_suggestion(error: BaseException) -> str:
    """Get the recovery hint for an error."""
    if isinstance(error, LLMError):
        return error.recovery_suggestion
    return DEFAULT_RECOVERY
