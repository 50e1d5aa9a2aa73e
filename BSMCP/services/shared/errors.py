"""Shared error handling infrastructure.

Provides the error taxonomy used across the search pipeline, HTTP status
mapping for the upstream API, user-facing error messages, MCP error-code
mapping, and Sentry integration.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import sentry_sdk
from mcp import types as mcp_types

from BSMCP.services.shared.settings import SentryConfig

logger = logging.getLogger(__name__)

_sentry_initialized = False


def init_sentry(config: SentryConfig) -> bool:
    """Initialize Sentry SDK from configuration.

    Returns True when error tracking is active.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    if config.dsn is None:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return False

    try:
        sentry_sdk.init(
            dsn=config.dsn.get_secret_value(),
            traces_sample_rate=config.traces_sample_rate,
            environment=config.environment,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")
        return False

    _sentry_initialized = True
    logger.info("Sentry error tracking initialized")
    return True


class BSMCPError(Exception):
    """Base exception for all errors raised by this package.

    All errors include:
    - service: Which component raised the error
    - metadata: Additional context for debugging
    - user_message: Text that is safe to show to the calling agent
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.service = service
        self.metadata = metadata or {}
        self.user_message = user_message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "service": self.service,
            "metadata": self.metadata
        }


class ValidationError(BSMCPError):
    """Tool arguments failed schema validation.

    The only error kind that crosses the tool boundary as a failure.
    """

    def __init__(self, issues: Sequence[Tuple[str, str]], service: Optional[str] = None):
        self.issues: List[Tuple[str, str]] = list(issues)
        joined = ", ".join(f"{path}: {msg}" if path else msg for path, msg in self.issues)
        message = f"Validation failed: {joined}"
        super().__init__(
            message,
            service=service,
            metadata={"issues": [{"field": p, "message": m} for p, m in self.issues]},
            user_message=message,
        )


class ToolNotFoundError(BSMCPError):
    """The requested tool name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Tool '{name}' not found", service="registry", user_message=f"Tool '{name}' not found")
        self.name = name


class CacheError(BSMCPError):
    """Cache tier failure. Always absorbed; the computation proceeds directly."""

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, service="cache", metadata=metadata)


class SearchProviderError(BSMCPError):
    """Error from the upstream search provider.

    Used directly for responses that fit none of the specific subclasses.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, service="upstream", metadata=metadata)
        self.status_code = status_code


class AuthError(SearchProviderError):
    """Missing or rejected credential."""
    pass


class UnauthorizedError(AuthError):
    def __init__(self, message: str = "Invalid API key. Please check your Brave Search API key configuration."):
        super().__init__(message, status_code=401)


class ForbiddenError(AuthError):
    def __init__(self, message: str = "API access forbidden. Please verify your subscription and permissions."):
        super().__init__(message, status_code=403)


class MissingCredentialError(AuthError):
    def __init__(self, message: str = "No Brave Search API key configured."):
        super().__init__(message)


class RateLimitError(SearchProviderError):
    """Upstream 429 or the local per-minute window is exhausted."""

    def __init__(self, message: str, local: bool = False):
        super().__init__(message, status_code=None if local else 429)
        self.local = local


class UpstreamServerError(SearchProviderError):
    """Upstream responded with a 5xx status."""
    pass


class NetworkError(SearchProviderError):
    """No response was received (connection failure or timeout)."""
    pass


def map_status_to_error(status: int, message: str = "") -> SearchProviderError:
    """Translate an upstream HTTP status into the error taxonomy."""
    if status == 401:
        return UnauthorizedError()
    if status == 403:
        return ForbiddenError()
    if status == 429:
        return RateLimitError("Rate limit exceeded. Please wait before making more requests.")
    if 500 <= status < 600:
        return UpstreamServerError(
            f"Brave Search API server error ({status}). Please try again later.",
            status_code=status,
        )
    return SearchProviderError(f"Brave Search API error ({status}): {message}", status_code=status)


def report_error(
    error: Exception,
    service: Optional[str] = None,
    extra_context: Optional[Dict[str, Any]] = None
) -> None:
    """Report error to Sentry with structured context.

    A no-op beyond local logging until init_sentry() succeeded.
    """
    if not _sentry_initialized:
        return

    try:
        with sentry_sdk.new_scope() as scope:
            if service:
                scope.set_tag("service", service)
            elif isinstance(error, BSMCPError) and error.service:
                scope.set_tag("service", error.service)

            if extra_context:
                for key, value in extra_context.items():
                    scope.set_context(key, value if isinstance(value, dict) else {"value": value})

            if isinstance(error, BSMCPError):
                scope.set_context("bsmcp_error", error.to_dict())

            sentry_sdk.capture_exception(error)

    except Exception as e:
        logger.error(f"Failed to report error to Sentry: {e}")


def format_user_error(error: Exception, include_details: bool = False) -> str:
    """Convert exception to user-facing error message (no stack traces)."""
    if isinstance(error, ValidationError):
        return error.message
    if isinstance(error, AuthError):
        return "Search credentials are missing or were rejected. Results come from sample data."
    if isinstance(error, RateLimitError):
        return "Search rate limit reached. Results come from sample data; retry later."
    if isinstance(error, (UpstreamServerError, NetworkError)):
        return "The search service is unavailable. Results come from sample data."
    if isinstance(error, SearchProviderError):
        return "The search service returned an error. Results come from sample data."

    if isinstance(error, BSMCPError):
        if error.user_message:
            return error.user_message

        service_name = error.service or "service"
        base_message = f"{service_name.title()} encountered an error"
        if include_details:
            return f"{base_message}: {error.message}"
        return f"{base_message}."

    if isinstance(error, ValueError):
        return f"Invalid input: {str(error)}"
    if isinstance(error, TimeoutError):
        return "Request took too long to process. Please try again."

    if include_details:
        return f"Error ({type(error).__name__}): {str(error)}"
    return "An unexpected error occurred."


def fallback_suggestion(error: Exception) -> str:
    """Hint for the calling agent after a degraded (mock) response."""
    if isinstance(error, RateLimitError):
        return "Wait a minute before retrying this search, or try a different search tool."
    if isinstance(error, AuthError):
        return "Configure a valid BRAVE_API_KEY to receive live results."
    return "Retry the search later or use a different search tool."


def map_to_mcp_error_code(exc: Exception) -> int:
    """Map exception to a JSON-RPC error code for the MCP transport."""
    if isinstance(exc, (ValidationError, ValueError)):
        return mcp_types.INVALID_PARAMS
    if isinstance(exc, ToolNotFoundError):
        return mcp_types.METHOD_NOT_FOUND
    return mcp_types.INTERNAL_ERROR
