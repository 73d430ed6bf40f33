# tests/conftest.py
import pytest

from recurrence_engine.core.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """
    Settings are cached process-wide; clear them around every test so
    monkeypatched environment variables take effect and do not leak.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
