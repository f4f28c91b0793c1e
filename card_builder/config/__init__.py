"""Static tables and runtime settings"""

from card_builder.config.settings import Settings, load_settings, settings

__all__ = ["Settings", "load_settings", "settings"]
