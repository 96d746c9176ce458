"""
配置管理模块

应用配置来自环境变量（支持 .env），文档与用户偏好以 YAML 持久化
"""

from __future__ import annotations

import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from ..errors import DocumentFormatError
from ..models import BlockType, ContentBlock, Document, UserPreferences


DOCUMENT_SUFFIX = ".oath"
DEFAULT_PREFERENCES_PATH = Path.home() / ".oathkeeper" / "preferences.yaml"


class AppConfig(BaseModel):
    """应用配置"""
    cache_capacity: int = Field(default=50, ge=1, description="预览缓存容量")
    cache_window_seconds: int = Field(
        default=60, ge=0, description="缓存时间窗口（秒），0 表示仅按内容缓存"
    )
    typeset_program: str = Field(default="pdflatex", description="排版工具程序名")
    typeset_timeout: float = Field(default=120.0, gt=0, description="排版超时时间（秒）")
    documents_dir: str = Field(default=".", description="默认文档与导出目录")
    preferences_path: str = Field(
        default=str(DEFAULT_PREFERENCES_PATH), description="用户偏好文件路径"
    )


def load_config(env_file: str | Path | None = None) -> AppConfig:
    """
    从环境变量加载配置

    Args:
        env_file: .env 文件路径，默认为当前目录的 .env

    Returns:
        AppConfig 实例
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    defaults = AppConfig()
    return AppConfig(
        cache_capacity=int(os.getenv("OATHKEEPER_CACHE_CAPACITY", str(defaults.cache_capacity))),
        cache_window_seconds=int(
            os.getenv("OATHKEEPER_CACHE_WINDOW_SECONDS", str(defaults.cache_window_seconds))
        ),
        typeset_program=os.getenv("OATHKEEPER_TYPESET_PROGRAM", defaults.typeset_program),
        typeset_timeout=float(
            os.getenv("OATHKEEPER_TYPESET_TIMEOUT", str(defaults.typeset_timeout))
        ),
        documents_dir=os.getenv("OATHKEEPER_DOCUMENTS_DIR", defaults.documents_dir),
        preferences_path=os.getenv("OATHKEEPER_PREFERENCES", defaults.preferences_path),
    )


def _write_atomic(file_path: Path, text: str) -> None:
    """先写临时文件再替换，避免写到一半时损坏原文件"""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, file_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _normalize_timestamp(value: Any) -> Any:
    """截断超过微秒精度的小数秒，兼容其他程序写出的纳秒时间戳"""
    if isinstance(value, str):
        return re.sub(r"(\.\d{6})\d+", r"\1", value)
    return value or datetime.now()


def document_to_dict(document: Document) -> dict[str, Any]:
    """将 Document 转换为持久化字典"""
    def block_to_dict(b: ContentBlock) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": b.id,
            "type": b.type.value,
            "content": b.content,
        }
        if b.rendered:
            d["rendered"] = b.rendered
        if b.numbered:
            d["numbered"] = True
        if b.language:
            d["language"] = b.language
        return d

    return {
        "version": document.version,
        "template": document.template,
        "content": [block_to_dict(b) for b in document.blocks],
        "variables": dict(document.variables),
        "created": document.created.isoformat(),
        "modified": document.modified.isoformat(),
    }


def parse_document(data: Any, source: str | Path = "<memory>") -> Document:
    """
    从持久化字典构建 Document

    Raises:
        DocumentFormatError: 结构不符合文档格式
    """
    if not isinstance(data, dict):
        raise DocumentFormatError(source, "顶层必须是映射（mapping）")

    blocks_data = data.get("content", [])
    if not isinstance(blocks_data, list):
        raise DocumentFormatError(source, "content 字段必须是列表")

    def parse_block(index: int, b: Any) -> ContentBlock:
        if not isinstance(b, dict):
            raise DocumentFormatError(source, f"第 {index + 1} 个块不是映射")
        try:
            block_type = BlockType(b.get("type", BlockType.TEXT.value))
        except ValueError:
            raise DocumentFormatError(source, f"第 {index + 1} 个块类型未知: {b.get('type')!r}")
        if "id" not in b:
            raise DocumentFormatError(source, f"第 {index + 1} 个块缺少 id")
        try:
            return ContentBlock(
                id=str(b["id"]),
                type=block_type,
                content=str(b.get("content") or ""),
                language=b.get("language") or None,
                numbered=bool(b.get("numbered", False)),
                rendered=b.get("rendered") or None,
            )
        except ValidationError as e:
            raise DocumentFormatError(source, f"第 {index + 1} 个块: {e}") from e

    blocks = [parse_block(i, b) for i, b in enumerate(blocks_data)]

    ids = [b.id for b in blocks]
    if len(set(ids)) != len(ids):
        raise DocumentFormatError(source, "块 id 重复")

    try:
        return Document(
            version=str(data.get("version", "1.0")),
            template=str(data.get("template", "custom")),
            blocks=blocks,
            variables=data.get("variables") or {},
            created=_normalize_timestamp(data.get("created")),
            modified=_normalize_timestamp(data.get("modified")),
        )
    except ValidationError as e:
        raise DocumentFormatError(source, str(e)) from e


def load_document(file_path: str | Path) -> Document:
    """
    从文件加载文档

    YAML 是 JSON 的超集，所以旧版 JSON 格式的 .oath 文件也能直接读取

    Args:
        file_path: 文档路径

    Returns:
        Document 实例

    Raises:
        DocumentFormatError: 文件无法读取或格式错误
    """
    file_path = Path(file_path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentFormatError(file_path, str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentFormatError(file_path, f"解析失败: {e}") from e

    return parse_document(data, file_path)


def save_document(document: Document, file_path: str | Path) -> Path:
    """
    将文档保存到文件

    Args:
        document: Document 实例
        file_path: 输出文件路径

    Returns:
        输出文件路径
    """
    file_path = Path(file_path)
    text = yaml.dump(
        document_to_dict(document),
        allow_unicode=True,
        default_flow_style=False,
        sort_keys=False,
    )
    _write_atomic(file_path, text)
    return file_path


def load_preferences(file_path: str | Path = DEFAULT_PREFERENCES_PATH) -> UserPreferences:
    """加载用户偏好，文件缺失或损坏时返回默认值"""
    file_path = Path(file_path)
    if not file_path.exists():
        return UserPreferences(last_directory=os.getcwd())
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
        return UserPreferences(**data)
    except (OSError, yaml.YAMLError, TypeError, ValidationError):
        return UserPreferences(last_directory=os.getcwd())


def save_preferences(
    preferences: UserPreferences,
    file_path: str | Path = DEFAULT_PREFERENCES_PATH,
) -> Path:
    """保存用户偏好"""
    file_path = Path(file_path)
    text = yaml.dump(
        preferences.model_dump(mode="json"),
        allow_unicode=True,
        default_flow_style=False,
        sort_keys=False,
    )
    _write_atomic(file_path, text)
    return file_path
