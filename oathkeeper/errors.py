"""
异常定义
"""

from __future__ import annotations

from pathlib import Path


class DocumentFormatError(ValueError):
    """文档文件无法读取或格式不正确"""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"无法加载文档 {self.path}: {reason}")


class ToolchainError(RuntimeError):
    """
    排版工具链失败（可恢复）

    intermediate 指向已经写出的中间 .tex 文件，方便用户手动处理
    """

    def __init__(self, message: str, intermediate: Path | None = None):
        self.intermediate = intermediate
        super().__init__(message)
