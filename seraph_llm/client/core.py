"""LLM client for remote chat-completions and local generate APIs."""

import asyncio
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Iterable, Iterator, Optional

import httpx

from seraph_llm.client.adapters import CallingConventionsMixin
from seraph_llm.client.payloads import (
    LOCAL_PATH,
    REMOTE_PATH,
    build_local_payload,
    build_remote_payload,
    decode_local,
    decode_remote,
    extract_error_message,
    iter_stream_content,
)
from seraph_llm.config import ClientSettings, HttpSettings
from seraph_llm.exceptions import (
    DecodingError,
    InvalidCredentialError,
    InvalidModelError,
    InvalidResponseError,
    InvalidURLError,
    LLMError,
    LLMTimeoutError,
    NetworkUnavailableError,
    NoDataReceivedError,
    RequestCancelledError,
    RequestFailedError,
    UnsupportedModelError,
)
from seraph_llm.logging import get_logger
from seraph_llm.models import (
    DEFAULT_MODEL_ID,
    DEFAULT_REGISTRY,
    ChatMessage,
    ModelDescriptor,
    ModelRegistry,
    RequestContext,
)

# Module logger
logger = get_logger("client")

_END = object()


@dataclass
class PreparedRequest:
    """A fully built HTTP call, ready to send."""

    path: str  # "remote" | "local"
    url: str
    payload: dict[str, Any]
    decode: Callable[[bytes], str]
    model_id: str
    headers: dict[str, str] = field(default_factory=lambda: {"Content-Type": "application/json"})
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def is_remote(self) -> bool:
        return self.path == "remote"


class LLMClient(CallingConventionsMixin):
    """
    Client for remote (API-key) and local (no key) language models.

    Args:
        settings: Persisted client settings, read at call time.
        registry: Known model descriptors.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
        timeout: Transport timeout in seconds.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        registry: ModelRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = HttpSettings.timeout,
    ):
        self.settings = settings or ClientSettings()
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self.timeout = timeout
        self._transport = transport
        self._in_flight: dict[str, asyncio.Future] = {}

    # ========== Models ==========

    @property
    def default_model(self) -> Optional[ModelDescriptor]:
        """Configured default model, then the built-in default, then the first registered."""
        model = self.registry.find(self.settings.default_model_id) or self.registry.find(DEFAULT_MODEL_ID)
        if model is None:
            model = next(iter(self.registry), None)
        return model

    def is_available(self, model: ModelDescriptor) -> bool:
        """Remote models are assumed reachable; local ones must exist on disk now."""
        if model.requires_credential:
            return True
        return model.is_installed()

    def list_available_models(self) -> list[ModelDescriptor]:
        """Registry descriptors that can be used right now, in registry order."""
        return [model for model in self.registry if self.is_available(model)]

    @staticmethod
    def validate_credential(value: Optional[str]) -> bool:
        """Syntactic check only: the trimmed key is non-empty."""
        return bool(value and value.strip())

    # ========== Generation ==========

    async def generate(
        self,
        message: str,
        model: Optional[ModelDescriptor],
        system_prompt: str = "",
        history: Iterable[ChatMessage] = (),
    ) -> str:
        """
        Generate a reply.

        Models that require a credential go to the remote chat-completions
        API; all others go to the local generate API. One HTTP call, no
        retries.

        Args:
            message: The user's message.
            model: Target model.
            system_prompt: System instruction; omitted from the remote
                payload when empty.
            history: Prior messages, oldest first.

        Returns:
            The model's reply text.

        Raises:
            LLMError: Any failure, classified by kind.
        """
        if model is None:
            raise InvalidModelError("No model selected")

        context = RequestContext.build(message, model, system_prompt, history)
        if model.requires_credential:
            request = self._prepare_remote(context)
        else:
            request = self._prepare_local(context)

        return await self._track(request, self._send(request))

    async def stream_chunks(
        self,
        message: str,
        model: Optional[ModelDescriptor],
        system_prompt: str = "",
        temperature: Optional[float] = None,
    ) -> AsyncIterator[str]:
        """
        Stream a reply from the chat-completions API.

        Server-sent events are yielded fragment by fragment. A server that
        ignores ``stream=true`` and returns a plain body yields one chunk. Models
        without a credential requirement raise UnsupportedModelError before any
        request is made.
        Errors end the iteration with an LLMError. Each call issues a fresh
        request; the iterator cannot be restarted.
        """
        if model is None:
            raise InvalidModelError("No model selected")
        if not model.requires_credential:
            raise UnsupportedModelError("Streaming is only available for remote models", model=model.id)

        context = RequestContext.build(message, model, system_prompt)
        request = self._prepare_remote(context, stream=True, temperature=temperature)

        queue: asyncio.Queue = asyncio.Queue()
        producer = asyncio.ensure_future(self._pump_stream(request, queue))
        producer.add_done_callback(lambda _: queue.put_nowait(_END))
        self._in_flight[request.request_id] = producer

        try:
            while True:
                item = await queue.get()
                if item is _END:
                    break
                yield item

            if producer.cancelled():
                logger.cancelled(request_id=request.request_id)
                raise RequestCancelledError("Request cancelled", request_id=request.request_id)
            error = producer.exception()
            if error is not None:
                raise error
        finally:
            self._in_flight.pop(request.request_id, None)
            if not producer.done():
                producer.cancel()
            elif not producer.cancelled():
                # Mark the outcome retrieved when the consumer stopped early
                producer.exception()

    # ========== Cancellation ==========

    @property
    def in_flight(self) -> int:
        """Number of requests currently tracked."""
        return len(self._in_flight)

    def cancel_all(self) -> int:
        """
        Cancel every in-flight request and clear the tracking set.

        Awaiters of a cancelled request get RequestCancelledError.

        Returns:
            Number of requests that were cancelled.
        """
        tasks = list(self._in_flight.values())
        self._in_flight.clear()
        cancelled = sum(1 for task in tasks if task.cancel())
        if cancelled:
            logger.cancelled(f"Cancelled {cancelled} request(s)")
        return cancelled

    # ========== Request Building ==========

    def _prepare_remote(
        self,
        context: RequestContext,
        stream: bool = False,
        temperature: Optional[float] = None,
    ) -> PreparedRequest:
        base_url = self.settings.base_url
        api_key = self.settings.api_key
        if not base_url or not self.validate_credential(api_key):
            raise InvalidCredentialError(
                "Remote models need a base URL and an API key",
                model=context.model.id,
            )

        request = PreparedRequest(
            path="remote",
            url=f"{base_url}/{REMOTE_PATH}",
            payload=build_remote_payload(context, self.settings, stream=stream, temperature=temperature),
            decode=decode_remote,
            model_id=context.model.id,
        )
        request.headers["Authorization"] = f"Bearer {api_key}"
        return request

    def _prepare_local(self, context: RequestContext) -> PreparedRequest:
        base_url = self.settings.base_url
        if not base_url:
            raise InvalidURLError("Local models need a base URL", model=context.model.id)

        return PreparedRequest(
            path="local",
            url=f"{base_url}/{LOCAL_PATH}",
            payload=build_local_payload(context, self.settings),
            decode=decode_local,
            model_id=context.model.id,
        )

    # ========== Transport ==========

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    async def _track(self, request: PreparedRequest, coro) -> str:
        """Run a request as its own task so cancel_all can reach it."""
        task = asyncio.ensure_future(coro)
        self._in_flight[request.request_id] = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                # The caller itself is being cancelled
                raise
            logger.cancelled(request_id=request.request_id)
            raise RequestCancelledError("Request cancelled", request_id=request.request_id) from None
        except LLMError as e:
            logger.failed(str(e), request_id=request.request_id, kind=e.kind.value)
            raise
        finally:
            self._in_flight.pop(request.request_id, None)

    async def _send(self, request: PreparedRequest) -> str:
        logger.request(request.path, request_id=request.request_id, model=request.model_id, url=request.url)

        with self._translate_errors(request):
            async with self._http_client() as http:
                response = await http.post(request.url, json=request.payload, headers=request.headers)

        if not response.is_success:
            raise self._status_error(request, response.status_code, response.content)

        text = request.decode(response.content)
        logger.response(request.path, request_id=request.request_id, status=response.status_code, chars=len(text))
        return text

    async def _pump_stream(self, request: PreparedRequest, queue: asyncio.Queue) -> None:
        logger.request(request.path, request_id=request.request_id, model=request.model_id, stream=True)

        chunks = 0
        with self._translate_errors(request):
            async with self._http_client() as http:
                async with http.stream("POST", request.url, json=request.payload, headers=request.headers) as response:
                    if not response.is_success:
                        body = await response.aread()
                        raise self._status_error(request, response.status_code, body)

                    if "text/event-stream" in response.headers.get("content-type", ""):
                        async for piece in iter_stream_content(response.aiter_lines()):
                            queue.put_nowait(piece)
                            chunks += 1
                    else:
                        body = await response.aread()
                        queue.put_nowait(self._decode_single_chunk(body))
                        chunks = 1

        logger.response(request.path, request_id=request.request_id, chunks=chunks)

    @staticmethod
    def _decode_single_chunk(body: bytes) -> str:
        """Whole-body fallback for servers that don't stream."""
        if not body:
            raise NoDataReceivedError()
        try:
            return decode_remote(body)
        except DecodingError:
            pass
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidResponseError("Response body is not UTF-8 text") from e

    @staticmethod
    def _status_error(request: PreparedRequest, status_code: int, body: bytes) -> RequestFailedError:
        message = extract_error_message(body) if request.is_remote else None
        if not message:
            message = f"Request failed with status code: {status_code}"
        return RequestFailedError(message, status_code=status_code)

    @staticmethod
    @contextmanager
    def _translate_errors(request: PreparedRequest) -> Iterator[None]:
        """Map httpx failures onto the error taxonomy."""
        try:
            yield
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(str(e) or None, url=request.url) from e
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidURLError(str(e) or None, url=request.url) from e
        except httpx.ConnectError as e:
            raise NetworkUnavailableError(str(e) or None, url=request.url) from e
        except httpx.HTTPError as e:
            raise RequestFailedError(str(e) or type(e).__name__) from e
