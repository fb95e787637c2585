# ABOUTME: Main configuration composition for cascade applications
# ABOUTME: Assembles configuration classes into a single cached settings object

from functools import lru_cache

from ._base import BaseCoreSettings


class CoreSettings(BaseCoreSettings):
    """Represents the complete, composed configuration for an application.

    Extend it through inheritance when middleware packages need their own
    settings, e.g.:

        class SessionSettings(BaseSettings):
            SESSION_TTL: int = 3600

        class Settings(CoreSettings, SessionSettings):
            pass
    """

    pass


@lru_cache
def get_settings() -> CoreSettings:
    """Provides a cached instance of the application settings.

    Returns:
        A single, cached instance of CoreSettings.
    """
    return CoreSettings()
