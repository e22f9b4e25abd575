"""
Sales Engine
Configuration Module
"""
from .settings import ENTITY_NAMES, Settings, get_settings

__all__ = ["ENTITY_NAMES", "Settings", "get_settings"]
