"""
数据模型模块
"""

from .document import (
    BlockType,
    CompletionCandidate,
    ContentBlock,
    Diagnostic,
    Document,
    RenderResult,
    Template,
    heading_level,
    heading_title,
)
from .preferences import FileEntry, UserPreferences, ViewMode

__all__ = [
    "BlockType",
    "CompletionCandidate",
    "ContentBlock",
    "Diagnostic",
    "Document",
    "RenderResult",
    "Template",
    "heading_level",
    "heading_title",
    "FileEntry",
    "UserPreferences",
    "ViewMode",
]
