"""API Key Validation Utilities

Local checks on the Brave Search credential with actionable messages.
No network calls are made here.
"""

from typing import Optional, Tuple

PLACEHOLDER_KEYS = {
    "your_api_key_here",
    "your-api-key",
    "your-brave-api-key",
    "your-key",
    "your-key-here",
    "test-key",
}


class APIKeyError(Exception):
    """Raised when API key validation fails."""
    pass


def validate_brave_api_key(
    api_key: Optional[str],
    raise_on_invalid: bool = True,
) -> Tuple[bool, Optional[str]]:
    """Validate a Brave Search API key.

    Args:
        api_key: The API key to validate.
        raise_on_invalid: If True, raises APIKeyError on validation failure.
                         If False, returns (False, error_message) instead.

    Returns:
        Tuple of (is_valid, error_message). error_message is None if valid.
    """
    error_msg = None

    if not api_key or not api_key.strip():
        error_msg = _get_missing_key_error()
    elif is_placeholder_key(api_key):
        error_msg = _get_placeholder_key_error(api_key)
    elif len(api_key.strip()) < 10:
        error_msg = _get_invalid_format_error(api_key)

    if error_msg is None:
        return True, None
    if raise_on_invalid:
        raise APIKeyError(error_msg)
    return False, error_msg


def is_placeholder_key(api_key: Optional[str]) -> bool:
    return bool(api_key) and api_key.strip().lower() in PLACEHOLDER_KEYS


def _get_missing_key_error() -> str:
    return """Brave Search API key not configured.

Searches will return example data instead of real results.

To use live search:

  1. Get an API key at https://brave.com/search/api/

  2. Set the environment variable:

     export BRAVE_API_KEY="your-actual-key"
"""


def _get_placeholder_key_error(api_key: str) -> str:
    return f"""Brave Search API key looks like a placeholder ("{api_key}").

Update BRAVE_API_KEY (or the .env file) with your real key from
https://brave.com/search/api/
"""


def _get_invalid_format_error(api_key: str) -> str:
    masked = f"{api_key[:3]}..." if len(api_key) > 3 else "***"
    return f"""Brave Search API key appears to be invalid ({masked}, {len(api_key)} characters).

Keys issued by Brave are considerably longer. Double-check BRAVE_API_KEY.
"""
