"""
目录浏览工具
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from ..models import FileEntry


def list_directory(path: str | Path, show_hidden: bool = False) -> list[FileEntry]:
    """
    列出目录内容

    非根目录时第一项为 ".."；目录排在文件前，同类按名称排序

    Raises:
        OSError: 目录不可读
    """
    path = Path(path)
    entries: list[FileEntry] = []
    for child in path.iterdir():
        if not show_hidden and child.name.startswith("."):
            continue
        try:
            stat = child.stat()
        except OSError:
            continue
        entries.append(FileEntry(
            name=child.name,
            path=str(child),
            is_dir=child.is_dir(),
            size=stat.st_size,
            mod_time=datetime.fromtimestamp(stat.st_mtime),
        ))

    entries.sort(key=lambda e: (not e.is_dir, e.name))

    resolved = path.resolve()
    if resolved.parent != resolved:
        entries.insert(0, FileEntry(name="..", path=str(resolved.parent), is_dir=True))
    return entries


def list_documents(path: str | Path, suffix: str, show_hidden: bool = False) -> list[FileEntry]:
    """只保留目录和指定扩展名的文档"""
    return [e for e in list_directory(path, show_hidden) if e.is_dir or e.name.endswith(suffix)]
