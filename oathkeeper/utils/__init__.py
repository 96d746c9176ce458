"""
工具函数模块
"""

from .files import list_directory, list_documents

__all__ = [
    "list_directory",
    "list_documents",
]
