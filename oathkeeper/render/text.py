"""
纯文本导出：Unicode 文本与 Markdown
"""

from __future__ import annotations

import re

from ..models import BlockType, ContentBlock, Document
from .notation import NotationRenderer


_MATH_DELIMITER = re.compile(r"(?<!\\)\$")


def strip_math_delimiters(text: str) -> str:
    r"""去掉 $ 分隔符，\$ 还原为字面量 $"""
    return _MATH_DELIMITER.sub("", text).replace("\\$", "$")


def _fenced(block: ContentBlock, language: str | None = None) -> str:
    return f"```{language or block.language or ''}\n{block.content}\n```"


def _quoted(block: ContentBlock) -> str:
    return "\n".join(f"> {line}" for line in block.content.split("\n"))


class UnicodeRenderer:
    """
    Unicode 文本导出

    数学和普通文本都经过 NotationRenderer，输出中不保留 $ 分隔符
    """

    def __init__(self, notation: NotationRenderer):
        self.notation = notation

    def render(self, document: Document) -> str:
        return "".join(self.render_block(b) + "\n\n" for b in document.blocks)

    def render_block(self, block: ContentBlock) -> str:
        if block.type == BlockType.CODE:
            return _fenced(block)
        if block.type == BlockType.QUOTE:
            return _quoted(block)
        source = block.title if block.type == BlockType.HEADING else block.content
        return strip_math_delimiters(self.notation.render(source).unicode)


class MarkdownRenderer:
    """Markdown 导出，尽量保留原生语法"""

    def render(self, document: Document) -> str:
        return "".join(self.render_block(b) + "\n\n" for b in document.blocks)

    def render_block(self, block: ContentBlock) -> str:
        if block.type == BlockType.CODE:
            return _fenced(block)
        if block.type == BlockType.QUOTE:
            return _quoted(block)
        if block.type == BlockType.RAW_LATEX:
            return _fenced(block, "latex")
        if block.type == BlockType.MATH:
            content = block.content.strip()
            if "$" in content:
                return content
            return f"$${content}$$"
        return block.content
