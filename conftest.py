import os

import pytest

from BSMCP.services.shared.settings import get_settings

_ENV_PREFIXES = ("BRAVE_", "CACHE_", "LOG_", "SENTRY_", "BSMCP_")
_ENV_NAMES = ("MAX_QUERY_LENGTH", "MAX_RESULTS", "RATE_LIMIT_PER_MINUTE")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep host configuration (env vars, .env files) out of every test."""
    for name in list(os.environ):
        upper = name.upper()
        if upper.startswith(_ENV_PREFIXES) or upper in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
