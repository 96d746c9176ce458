"""
渲染模块

负责 Unicode 预览、LaTeX / HTML / 文本渲染与多格式导出
"""

from .exporter import ExportFormat, Exporter, smart_filename
from .html import HtmlRenderer
from .latex import LatexRenderer
from .notation import NotationRenderer, RenderCache
from .text import MarkdownRenderer, UnicodeRenderer

__all__ = [
    "ExportFormat",
    "Exporter",
    "smart_filename",
    "HtmlRenderer",
    "LatexRenderer",
    "NotationRenderer",
    "RenderCache",
    "MarkdownRenderer",
    "UnicodeRenderer",
]
