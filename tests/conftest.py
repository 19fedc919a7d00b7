"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Configuration:
    Tests run from the project root so that config/settings/*.yaml is found
    through the .project_root marker. Secrets are never read from config/.env:
    every test builds its BotOptions explicitly.
"""

from typing import Any

import pytest

from botplay.core.config import get_app_config, get_settings
from botplay.telegram.options import BotOptions, ConnectionMethod

TEST_TOKEN = "123456:TEST-token"
TEST_SECRET = "s3cr3t"
TEST_HOST = "https://bot.example.com"


# =============================================================================
# Configuration Cache
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Reset cached settings so environment patches take effect per test."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


# =============================================================================
# Bot Options
# =============================================================================


def make_options(**overrides: Any) -> BotOptions:
    """Build BotOptions with test defaults, overriding the given fields."""
    values: dict[str, Any] = {
        "token": TEST_TOKEN,
        "secret": None,
        "host": TEST_HOST,
        "connection_method": ConnectionMethod.POLLING,
        "polling_interval": 0.01,
        "polling_timeout": 0,
        "error_cooldown": 0,
    }
    values.update(overrides)
    return BotOptions(**values)


@pytest.fixture
def polling_options() -> BotOptions:
    """Options for polling mode with near-zero cooldowns."""
    return make_options()


@pytest.fixture
def webhook_options() -> BotOptions:
    """Options for webhook mode with a secret."""
    return make_options(connection_method=ConnectionMethod.WEBHOOK, secret=TEST_SECRET)


@pytest.fixture
def options_factory():
    """Provide make_options for tests that need custom BotOptions."""
    return make_options
