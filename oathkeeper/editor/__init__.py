"""
编辑模块

块存储、补全引擎与编辑状态机
"""

from .completion import CompletionEngine, trigger_token
from .controller import EditController, EditorMode
from .store import BlockStore

__all__ = [
    "CompletionEngine",
    "trigger_token",
    "EditController",
    "EditorMode",
    "BlockStore",
]
