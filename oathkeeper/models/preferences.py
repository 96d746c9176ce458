"""
用户偏好与文件浏览相关的数据模型
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ViewMode(str, Enum):
    """编辑界面视图模式"""
    EDITOR = "editor"      # 仅编辑区
    SPLIT = "split"        # 编辑 + 预览
    PREVIEW = "preview"    # 仅预览


class UserPreferences(BaseModel):
    """持久化的用户偏好"""
    theme: str = Field(default="default", description="主题 ID")
    last_directory: str = Field(default=".", description="上次浏览的目录")
    split_ratio: float = Field(default=0.5, ge=0.2, le=0.8, description="编辑区宽度占比")
    view_mode: ViewMode = Field(default=ViewMode.SPLIT, description="视图模式")
    show_hidden: bool = Field(default=False, description="是否显示隐藏文件")


class FileEntry(BaseModel):
    """目录列表中的一项"""
    name: str
    path: str
    is_dir: bool = False
    size: int = 0
    mod_time: datetime | None = None
