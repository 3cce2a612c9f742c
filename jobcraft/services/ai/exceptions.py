"""Provider exception hierarchy.

These exceptions are raised inside adapters and never cross the adapter
boundary for expected failure modes; the adapter converts them into a
Failure record. The hierarchy:
- ProviderError: Base class for all provider errors
- TransportError: Network failure or timeout (retryable)
- VendorError: Vendor returned a 4xx/5xx response
- ServiceUnavailableError: Vendor 5xx (retryable)
- RateLimitError: HTTP 429 (retryable with backoff)
- AuthenticationError: Invalid API credentials
- CapabilityNotSupportedError: Adapter does not implement the operation
- MalformedResponseError: Response body had an unexpected shape
"""

from typing import Optional

from jobcraft.services.ai.results import FailureKind


class ProviderError(Exception):
    """Base exception for all provider errors.

    Attributes:
        provider: Provider key that raised the error
        kind: Failure category recorded on the Failure record
    """

    kind: FailureKind = FailureKind.VENDOR

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class TransportError(ProviderError):
    """Raised on connection errors and timeouts.

    This is a retryable error.
    """

    kind = FailureKind.TRANSPORT


class VendorError(ProviderError):
    """Raised when the vendor answers with an error status.

    Attributes:
        status: HTTP status code
        body: Response body (truncated) for logging
    """

    kind = FailureKind.VENDOR

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        self.status = status
        self.body = body[:500] if body else body
        super().__init__(
            f"{message} (HTTP {status})" if status else message, provider=provider
        )


class ServiceUnavailableError(VendorError):
    """Raised on 5xx responses. This is a retryable error."""


class RateLimitError(VendorError):
    """Raised when the vendor rate limit is exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        provider: Optional[str] = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"{message}. Retry after: {retry_after}s" if retry_after else message,
            status=429,
            provider=provider,
        )


class AuthenticationError(VendorError):
    """Raised on 401/403. Not retryable: the API key is invalid or revoked."""


class CapabilityNotSupportedError(ProviderError):
    """Raised when an adapter is asked for an operation it does not support."""

    kind = FailureKind.UNSUPPORTED_CAPABILITY

    def __init__(self, capability: str, provider: Optional[str] = None):
        self.capability = capability
        super().__init__(
            f"{capability.capitalize()} not supported by {provider} provider",
            provider=provider,
        )


class MalformedResponseError(ProviderError):
    """Raised when a response body cannot be decoded into the expected shape."""

    kind = FailureKind.MALFORMED_RESPONSE


class ResponseParseError(Exception):
    """Raised when no parsing strategy recovers structured data from model text."""
