"""Configuration management for tablequery."""

from .api import TransportConfig
from .settings import Settings

__all__ = ["Settings", "TransportConfig"]
