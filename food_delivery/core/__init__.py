"""
Core module initialization.
Exports configuration utilities.
"""

from food_delivery.core.config import get_settings, Settings, EnvironmentMode

__all__ = ["get_settings", "Settings", "EnvironmentMode"]
