"""
配置模块
"""

from .registry import DEFAULT_REGISTRY, NotationRegistry, build_registry
from .settings import (
    DOCUMENT_SUFFIX,
    AppConfig,
    document_to_dict,
    load_config,
    load_document,
    load_preferences,
    parse_document,
    save_document,
    save_preferences,
)
from .templates import DEFAULT_TEMPLATES, PLACEHOLDER_TITLE, get_template

__all__ = [
    "DEFAULT_REGISTRY",
    "NotationRegistry",
    "build_registry",
    "DOCUMENT_SUFFIX",
    "AppConfig",
    "document_to_dict",
    "load_config",
    "load_document",
    "load_preferences",
    "parse_document",
    "save_document",
    "save_preferences",
    "DEFAULT_TEMPLATES",
    "PLACEHOLDER_TITLE",
    "get_template",
]
