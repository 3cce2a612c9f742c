"""Provider adapter contract.

This module defines:
- RateLimitInfo: Last known vendor rate-limit state
- ProviderAdapter: Abstract base class every backend implements
- EmbeddingCapable, VisionCapable, StreamingCapable: Optional capability
  interfaces an adapter may additionally implement

ProviderAdapter owns the parts that are identical across vendors: option
defaults, response caching, wall-clock timing, retry of transient
transport failures, rate-limit header tracking, metrics, and conversion
of every expected failure into a Failure record. Subclasses only shape
the vendor payload and decode the vendor response.
"""

import asyncio
import inspect
import json
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
)

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from jobcraft.models.config import Capability, ProviderConfig
from jobcraft.models.generation import GenerationOptions
from jobcraft.observability.metrics import (
    PROVIDER_REQUEST_DURATION,
    PROVIDER_REQUESTS_TOTAL,
)
from jobcraft.services.ai.cache import ResponseCache
from jobcraft.services.ai.exceptions import (
    AuthenticationError,
    CapabilityNotSupportedError,
    MalformedResponseError,
    ProviderError,
    RateLimitError,
    ServiceUnavailableError,
    TransportError,
    VendorError,
)
from jobcraft.services.ai.results import (
    AnalysisOutcome,
    AnalysisResult,
    EmbeddingOutcome,
    EmbeddingResult,
    Failure,
    TextOutcome,
    TextResult,
)
from jobcraft.utils.hash import calculate_request_hash

logger = structlog.get_logger()

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]

R = TypeVar("R", TextResult, EmbeddingResult, AnalysisResult)

RETRYABLE_ERRORS = (TransportError, RateLimitError, ServiceUnavailableError)

# Shapes the vendor decoders may trip over when a body is not what we expect
RESPONSE_SHAPE_ERRORS = (AttributeError, KeyError, IndexError, TypeError, ValueError)

RETRY_WAIT_MIN = 1
RETRY_WAIT_MAX = 10


@dataclass
class RateLimitInfo:
    """Rate-limit state, refreshed from the latest response headers."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[Union[int, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProviderAdapter(ABC):
    """Abstract base class for LLM backends.

    Every public operation returns a success record or a Failure and never
    raises for network errors, vendor error responses, unsupported
    capabilities or malformed responses.

    Implementations:
        - ClaudeProvider: Anthropic Messages API
        - GroqProvider, TogetherProvider: OpenAI-compatible chat completions
        - CohereProvider: Cohere generate/embed
        - GeminiProvider: Google Generative Language API
        - HuggingFaceProvider: Hugging Face inference API
    """

    key: str = ""
    display_name: str = ""

    DEFAULT_MAX_TOKENS = 1000
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_TOP_P = 0.95
    DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant for job applications."
    DEFAULT_RATE_LIMIT: Dict[str, Any] = {"limit": 60, "remaining": 60, "reset": None}

    # Maps RateLimitInfo field -> response header name
    RATE_LIMIT_HEADERS: Dict[str, str] = {}

    TEXT_MODELS: List[str] = []

    def __init__(
        self,
        config: ProviderConfig,
        cache: Optional[ResponseCache] = None,
        max_retries: int = 3,
    ):
        """Initialize adapter.

        Args:
            config: Provider configuration
            cache: Shared response cache (optional)
            max_retries: Attempts per remote call for transient failures

        Raises:
            ValueError: If the configuration lacks a text model
        """
        if not config.models.text:
            raise ValueError(f"{self.key} provider requires a text model")

        self.config = config
        self.max_retries = max_retries
        self._cache = cache
        self._rate_limit = RateLimitInfo(**self.DEFAULT_RATE_LIMIT)

    # ==================== Metadata ====================

    @property
    def name(self) -> str:
        """Stable registry key (e.g. 'claude', 'groq')."""
        return self.key

    def get_name(self) -> str:
        """Human-readable vendor name."""
        return self.display_name

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        caps = {Capability.TEXT}
        if isinstance(self, EmbeddingCapable):
            caps.add(Capability.EMBEDDING)
        if isinstance(self, VisionCapable):
            caps.add(Capability.VISION)
        if isinstance(self, StreamingCapable):
            caps.add(Capability.STREAMING)
        return frozenset(caps)

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def is_available(self) -> bool:
        """Configuration-derived readiness: a real credential is present.

        No network round trip is made.
        """
        return self.config.has_credentials

    def get_model_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "text_models": list(self.TEXT_MODELS),
            "current_text_model": self.config.models.text,
        }
        if isinstance(self, EmbeddingCapable):
            info["embedding_models"] = list(self.EMBEDDING_MODELS)
            info["current_embedding_model"] = self.config.models.embedding
        if isinstance(self, VisionCapable):
            info["vision_models"] = list(self.VISION_MODELS)
            info["current_vision_model"] = self.config.models.vision
        info["supports_streaming"] = isinstance(self, StreamingCapable)
        return info

    def get_rate_limit_info(self) -> Dict[str, Any]:
        return self._rate_limit.to_dict()

    # ==================== Public operations ====================

    async def generate_text(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> TextOutcome:
        """Generate text from a prompt.

        Replays a cached result for an identical (prompt, options) pair
        within the cache TTL before attempting a fresh call.
        """
        options = options or GenerationOptions()
        cache_key = calculate_request_hash(
            f"{self.key}:text", prompt, self._text_cache_fields(options)
        )
        return await self._execute(
            "text",
            cache_key,
            lambda: self._generate_text(prompt, options),
            TextResult,
        )

    async def generate_embedding(self, text: str) -> EmbeddingOutcome:
        if not isinstance(self, EmbeddingCapable):
            return self._unsupported(Capability.EMBEDDING)

        cache_key = calculate_request_hash(
            f"{self.key}:embedding", text, {"model": self.config.models.embedding}
        )
        capable: EmbeddingCapable = self
        return await self._execute(
            "embedding",
            cache_key,
            lambda: capable._generate_embedding(text),
            EmbeddingResult,
        )

    async def analyze_image(self, image_base64: str, prompt: str) -> AnalysisOutcome:
        if not isinstance(self, VisionCapable):
            return self._unsupported(Capability.VISION)

        cache_key = calculate_request_hash(
            f"{self.key}:vision",
            prompt,
            {"image": image_base64, "model": self.config.models.vision},
        )
        capable: VisionCapable = self
        return await self._execute(
            "vision",
            cache_key,
            lambda: capable._analyze_image(image_base64, prompt),
            AnalysisResult,
        )

    async def stream_text(
        self,
        prompt: str,
        on_chunk: ChunkCallback,
        options: Optional[GenerationOptions] = None,
    ) -> None:
        """Stream decoded text fragments to ``on_chunk``.

        On failure ``on_chunk`` receives a single JSON payload
        ``{"error": message}`` instead of an exception.
        """
        options = options or GenerationOptions()

        if not isinstance(self, StreamingCapable):
            failure = self._unsupported(Capability.STREAMING)
            await emit_chunk(on_chunk, json.dumps({"error": failure.message}))
            return

        start_time = time.time()
        fragments = 0
        try:
            async for fragment in self._stream_text(prompt, options):
                fragments += 1
                await emit_chunk(on_chunk, fragment)
        except (ProviderError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            failure = self._failure("stream", e, start_time)
            await emit_chunk(on_chunk, json.dumps({"error": failure.message}))
            return
        except RESPONSE_SHAPE_ERRORS as e:
            failure = self._failure("stream", self._malformed(e), start_time)
            await emit_chunk(on_chunk, json.dumps({"error": failure.message}))
            return

        self._record_success("stream", (time.time() - start_time) * 1000)
        logger.debug("provider_stream_complete", provider=self.key, fragments=fragments)

    # ==================== Vendor hooks ====================

    @abstractmethod
    async def _generate_text(
        self, prompt: str, options: GenerationOptions
    ) -> TextResult:
        """Issue the vendor call and decode the response.

        Raises:
            ProviderError: Any expected failure
        """
        pass  # pragma: no cover - abstract method, always overridden

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    # ==================== Option defaults ====================

    def _text_model(self, options: GenerationOptions) -> str:
        return options.model or self.config.models.text or ""

    def _max_tokens(self, options: GenerationOptions) -> int:
        return options.max_tokens or self.config.max_tokens or self.DEFAULT_MAX_TOKENS

    def _temperature(self, options: GenerationOptions) -> float:
        if options.temperature is None:
            return self.DEFAULT_TEMPERATURE
        return options.temperature

    def _top_p(self, options: GenerationOptions) -> float:
        return self.DEFAULT_TOP_P if options.top_p is None else options.top_p

    def _system(self, options: GenerationOptions) -> str:
        return options.system or self.DEFAULT_SYSTEM_PROMPT

    def _text_cache_fields(self, options: GenerationOptions) -> Dict[str, Any]:
        """Cache key fields with adapter defaults resolved.

        The configured model is part of the key, so changing it never
        replays answers from the previous model.
        """
        return {
            **options.cache_fields(),
            "model": self._text_model(options),
            "max_tokens": self._max_tokens(options),
            "temperature": self._temperature(options),
            "top_p": self._top_p(options),
            "system": self._system(options),
        }

    @property
    def call_budget(self) -> float:
        """Seconds every retry attempt plus the backoff between them may take."""
        backoff = sum(
            min(max(2 ** (attempt - 1), RETRY_WAIT_MIN), RETRY_WAIT_MAX)
            for attempt in range(1, self.max_retries)
        )
        return self.config.timeout * self.max_retries + backoff

    # ==================== Execution ====================

    async def _execute(
        self,
        operation: str,
        cache_key: str,
        call: Callable[[], Awaitable[R]],
        result_type: Type[R],
    ) -> Union[R, Failure]:
        cached = self._cache.get(cache_key) if self._cache else None
        if cached is not None:
            try:
                return result_type(**{**cached, "cached": True})
            except TypeError:
                logger.warning("response_cache_entry_invalid", provider=self.key)

        start_time = time.time()
        try:
            result = await call()
        except (ProviderError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            return self._failure(operation, e, start_time)
        except RESPONSE_SHAPE_ERRORS as e:
            return self._failure(operation, self._malformed(e), start_time)

        result.latency_ms = (time.time() - start_time) * 1000
        self._record_success(operation, result.latency_ms)

        if self._cache:
            data = result.to_dict()
            data.pop("dimensions", None)
            self._cache.set(cache_key, data)

        return result

    def _unsupported(self, capability: Capability) -> Failure:
        error = CapabilityNotSupportedError(
            _CAPABILITY_LABELS[capability], provider=self.display_name
        )
        logger.debug(
            "provider_capability_not_supported",
            provider=self.key,
            capability=capability.value,
        )
        return Failure(message=str(error), provider=self.key, kind=error.kind)

    def _failure(self, operation: str, error: Exception, start_time: float) -> Failure:
        if not isinstance(error, ProviderError):
            error = self._wrap_transport_error(error)

        latency_ms = (time.time() - start_time) * 1000
        PROVIDER_REQUESTS_TOTAL.labels(
            provider=self.key, operation=operation, status="failure"
        ).inc()
        logger.warning(
            "provider_call_failed",
            provider=self.key,
            operation=operation,
            kind=error.kind.value,
            error=str(error),
            body=getattr(error, "body", None),
            latency_ms=round(latency_ms, 1),
        )
        return Failure(message=str(error), provider=self.key, kind=error.kind)

    def _record_success(self, operation: str, latency_ms: float) -> None:
        PROVIDER_REQUESTS_TOTAL.labels(
            provider=self.key, operation=operation, status="success"
        ).inc()
        PROVIDER_REQUEST_DURATION.labels(
            provider=self.key, operation=operation
        ).observe(latency_ms / 1000)
        logger.debug(
            "provider_call_success",
            provider=self.key,
            operation=operation,
            latency_ms=round(latency_ms, 1),
        )

    def _malformed(self, error: Exception) -> MalformedResponseError:
        return MalformedResponseError(
            f"Unexpected {self.key} response shape: {error!r}", provider=self.key
        )

    def _wrap_transport_error(self, error: Exception) -> TransportError:
        if isinstance(error, asyncio.TimeoutError):
            return TransportError(
                f"Request timed out after {self.config.timeout}s", provider=self.key
            )
        return TransportError(str(error) or type(error).__name__, provider=self.key)

    # ==================== HTTP ====================

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """POST ``payload`` and return the decoded JSON body.

        Transport errors, 429 and 5xx responses are retried with
        exponential backoff up to ``max_retries`` attempts.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        ):
            with attempt:
                return await self._post_once(url, payload, params)
        raise TransportError("No attempt was made", provider=self.key)  # pragma: no cover

    async def _post_once(
        self,
        url: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            async with aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as session:
                async with session.post(url, json=payload, params=params) as response:
                    body = await response.text()
                    self._raise_for_status(response.status, body, response.headers)
                    self._update_rate_limit(response.headers)
        except aiohttp.ClientError as e:
            raise self._wrap_transport_error(e)
        except asyncio.TimeoutError as e:
            raise self._wrap_transport_error(e)

        try:
            return json.loads(body)
        except ValueError:
            raise MalformedResponseError(
                f"Invalid JSON in {self.key} response: {body[:200]}",
                provider=self.key,
            )

    async def _stream_lines(
        self,
        url: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
    ) -> AsyncIterator[str]:
        """POST ``payload`` and yield non-empty response lines as they arrive."""
        async for chunk in self._stream_body(url, payload, params, by_line=True):
            line = chunk.strip()
            if line:
                yield line

    async def _stream_body(
        self,
        url: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
        by_line: bool = False,
    ) -> AsyncIterator[str]:
        # Whole-stream total timeout would cut long generations short
        timeout = aiohttp.ClientTimeout(total=None, sock_read=self.config.timeout)
        try:
            async with aiohttp.ClientSession(
                headers=self._headers(), timeout=timeout
            ) as session:
                async with session.post(url, json=payload, params=params) as response:
                    if response.status >= 400:
                        body = await response.text()
                        self._raise_for_status(response.status, body, response.headers)
                    self._update_rate_limit(response.headers)

                    if by_line:
                        async for raw_line in response.content:
                            yield raw_line.decode("utf-8", errors="replace")
                    else:
                        async for raw_chunk in response.content.iter_chunked(1024):
                            yield raw_chunk.decode("utf-8", errors="replace")
        except aiohttp.ClientError as e:
            raise self._wrap_transport_error(e)
        except asyncio.TimeoutError as e:
            raise self._wrap_transport_error(e)

    async def _sse_events(self, lines: AsyncIterator[str]) -> AsyncIterator[Dict[str, Any]]:
        """Decode ``data: {...}`` server-sent-event lines into JSON objects."""
        async for line in lines:
            if not line.startswith("data:"):
                continue
            data = line[len("data:"):].strip()
            if data == "[DONE]":
                break
            try:
                event = json.loads(data)
            except ValueError:
                logger.debug("provider_stream_bad_event", provider=self.key, data=data[:100])
                continue
            if isinstance(event, dict):
                yield event

    def _raise_for_status(
        self, status: int, body: str, headers: Mapping[str, str]
    ) -> None:
        if status < 400:
            return

        message = f"{self.display_name} API error: {_vendor_message(body)}"

        if status == 429:
            raise RateLimitError(
                message,
                retry_after=_parse_retry_after(headers),
                provider=self.key,
            )
        if status in (401, 403):
            raise AuthenticationError(message, status=status, body=body, provider=self.key)
        if status >= 500:
            raise ServiceUnavailableError(
                message, status=status, body=body, provider=self.key
            )
        raise VendorError(message, status=status, body=body, provider=self.key)

    def _update_rate_limit(self, headers: Mapping[str, str]) -> None:
        if not self.RATE_LIMIT_HEADERS:
            return

        lowered = {k.lower(): v for k, v in headers.items()}
        for field_name, header in self.RATE_LIMIT_HEADERS.items():
            value = lowered.get(header.lower())
            if value is None:
                continue
            try:
                setattr(self._rate_limit, field_name, int(value))
            except ValueError:
                # Some vendors send reset as a timestamp or duration string
                setattr(self._rate_limit, field_name, value)


class EmbeddingCapable(ABC):
    """Adapter that can produce text embeddings."""

    EMBEDDING_MODELS: List[str] = []

    @abstractmethod
    async def _generate_embedding(self, text: str) -> EmbeddingResult:
        pass  # pragma: no cover - abstract method, always overridden


class VisionCapable(ABC):
    """Adapter that can analyze base64-encoded images."""

    VISION_MODELS: List[str] = []

    @abstractmethod
    async def _analyze_image(self, image_base64: str, prompt: str) -> AnalysisResult:
        pass  # pragma: no cover - abstract method, always overridden


class StreamingCapable(ABC):
    """Adapter that can stream text fragments."""

    @abstractmethod
    def _stream_text(
        self, prompt: str, options: GenerationOptions
    ) -> AsyncIterator[str]:
        pass  # pragma: no cover - abstract method, always overridden


_CAPABILITY_LABELS = {
    Capability.TEXT: "Text generation",
    Capability.EMBEDDING: "Embedding generation",
    Capability.VISION: "Image analysis",
    Capability.STREAMING: "Streaming",
}


async def emit_chunk(on_chunk: ChunkCallback, fragment: str) -> None:
    outcome = on_chunk(fragment)
    if inspect.isawaitable(outcome):
        await outcome


def _vendor_message(body: str) -> str:
    """Pull the human-readable message out of a vendor error body."""
    try:
        data = json.loads(body)
    except ValueError:
        return body[:200] or "empty response"

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if data.get("message"):
            return str(data["message"])
    return body[:200]


def _parse_retry_after(headers: Mapping[str, str]) -> Optional[float]:
    for key, value in headers.items():
        if key.lower() == "retry-after":
            try:
                return float(value)
            except ValueError:
                return None
    return None
