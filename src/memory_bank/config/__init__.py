"""Process-wide configuration.

`get_settings()` reads the environment once and caches the result. Tests
swap in their own instance with `set_settings()` and drop it again with
`reset_settings()`.
"""

from memory_bank.config.settings import Settings

__all__ = ["Settings", "get_settings", "reset_settings", "set_settings"]

_current: Settings | None = None


def get_settings() -> Settings:
    global _current
    if _current is None:
        _current = Settings()
    return _current


def set_settings(settings: Settings) -> None:
    global _current
    _current = settings


def reset_settings() -> None:
    global _current
    _current = None
