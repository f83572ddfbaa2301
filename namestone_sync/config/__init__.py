from namestone_sync.config.config import LoadedSettings, Settings, load_settings, requireApiSettings

__all__ = ["LoadedSettings", "Settings", "load_settings", "requireApiSettings"]
