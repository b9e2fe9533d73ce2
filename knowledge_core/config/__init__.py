"""Configuration module: exports Settings and load_config."""

from knowledge_core.config.loader import load_config
from knowledge_core.config.settings import Settings

__all__ = ["Settings", "load_config"]
