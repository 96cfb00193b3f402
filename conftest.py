"""
Pytest configuration and shared fixtures.

Test settings are placed in the environment before any app module is
imported, since app.config builds its settings at import time.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_messages.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Clear settings cache before any app imports to ensure test env vars are used
from app.config import get_settings  # noqa: E402
get_settings.cache_clear()
