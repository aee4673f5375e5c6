"""
Application configuration.

Values are plain class attributes loaded with ``app.config.from_object``.
:func:`chronopick.create_app` then applies ``CHRONOPICK_``-prefixed
environment variables on top (``CHRONOPICK_MAX_SESSIONS=200``), decoded as
JSON where possible by Flask.
"""

from __future__ import annotations

ENV_PREFIX = "CHRONOPICK"


class Config:
    JSON_SORT_KEYS = False
    TESTING = False

    DEFAULT_LOCALE: str = "en"
    LOG_LEVEL: str = "INFO"
    MAX_SESSIONS: int = 1000


class TestingConfig(Config):
    TESTING = True
    LOG_LEVEL = "DEBUG"
    MAX_SESSIONS = 16
