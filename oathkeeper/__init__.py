"""
Oathkeeper: 结构化技术文档编辑器
由「内容块」组成文档，实时 Unicode 预览，导出 PDF / HTML / 文本 / Markdown
"""

__version__ = "0.1.0"

from .models import (
    BlockType,
    CompletionCandidate,
    ContentBlock,
    Diagnostic,
    Document,
    RenderResult,
    Template,
)
from .config import AppConfig, load_config, load_document, save_document, DEFAULT_TEMPLATES
from .editor import BlockStore, CompletionEngine, EditController, EditorMode
from .render import ExportFormat, Exporter, NotationRenderer, smart_filename
from .errors import DocumentFormatError, ToolchainError

__all__ = [
    # 版本
    "__version__",
    # 模型
    "BlockType",
    "CompletionCandidate",
    "ContentBlock",
    "Diagnostic",
    "Document",
    "RenderResult",
    "Template",
    # 配置
    "AppConfig",
    "load_config",
    "load_document",
    "save_document",
    "DEFAULT_TEMPLATES",
    # 编辑
    "BlockStore",
    "CompletionEngine",
    "EditController",
    "EditorMode",
    # 渲染
    "ExportFormat",
    "Exporter",
    "NotationRenderer",
    "smart_filename",
    # 异常
    "DocumentFormatError",
    "ToolchainError",
]
