"""
Configuration for the level generator.
"""

from .config import Settings, settings
from .generation_settings import validate_shape_bounds

__all__ = ['Settings', 'settings', 'validate_shape_bounds']
