"""Configuration module."""

from askjohn.config.constants import KB, KnowledgeBaseConstants
from askjohn.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "KB", "KnowledgeBaseConstants"]
