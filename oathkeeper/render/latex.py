"""
LaTeX 渲染器

将文档内容块组装成完整的 LaTeX 文档
"""

from __future__ import annotations

import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, Template

from ..models import BlockType, ContentBlock, Document


# 默认 LaTeX 模板
DEFAULT_LATEX_TEMPLATE = r"""\documentclass{article}
\usepackage{amsmath}
\usepackage{amsfonts}
\usepackage{amssymb}
\usepackage[utf8]{inputenc}
\usepackage{url}
\usepackage{hyperref}
\usepackage{listings}
\usepackage{xcolor}
\lstset{basicstyle=\ttfamily,breaklines=true}
\begin{document}

{{ body }}
\end{document}
"""

BLOCK_SEPARATOR = "\\vspace{0.8em}\n\n"

SECTION_COMMANDS = {
    1: "section",
    2: "subsection",
    3: "subsubsection",
}
GENERIC_SECTION_COMMAND = "paragraph"

LIST_PREFIXES = ("- ", "* ", "+ ")

_INLINE_MATH = re.compile(r"(?<!\\)\$(.+?)(?<!\\)\$")
_MATH_SPAN = re.compile(r"(\\\(.*?\\\))", re.DOTALL)
_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"(?<!\*)\*(?!\*)(.+?)(?<!\*)\*(?!\*)")
_URL = re.compile(r"(?<![\w{])(https?://[^\s}]+)")


def convert_inline_math(text: str) -> str:
    r"""$...$ → \(...\)；\$ 保持为字面量，落单的 $ 原样保留"""
    return _INLINE_MATH.sub(lambda m: "\\(" + m.group(1) + "\\)", text)


def format_emphasis(text: str) -> str:
    r"""
    **粗体** → \textbf{}，*斜体* → \textit{}

    先处理双星号，斜体只匹配剩下的单星号；\(...\) 内的内容不处理
    """
    parts = _MATH_SPAN.split(text)
    for i, part in enumerate(parts):
        if i % 2:
            continue
        part = _BOLD.sub(lambda m: "\\textbf{" + m.group(1) + "}", part)
        part = _ITALIC.sub(lambda m: "\\textit{" + m.group(1) + "}", part)
        parts[i] = part
    return "".join(parts)


def autolink(text: str) -> str:
    r"""裸 URL → \url{...}"""
    return _URL.sub(lambda m: "\\url{" + m.group(1) + "}", text)


def convert_math_block(raw: str) -> str:
    r"""
    数学块：$$...$$ → equation*，$...$ → \(...\)

    未闭合的分隔符原样输出；完全没有分隔符的内容整体作为行间公式
    """
    content = raw.strip()
    if "$" not in content:
        return (
            "\\vspace{0.5em}\n\\begin{equation*}\n"
            + content
            + "\n\\end{equation*}\n\\vspace{0.5em}\n"
        )

    out = ["\\vspace{0.5em}\n"]
    i = 0
    while i < len(content):
        if content.startswith("$$", i):
            end = content.find("$$", i + 2)
            if end != -1:
                out.append(
                    "\\vspace{0.3em}\n\\begin{equation*}\n"
                    + content[i + 2:end]
                    + "\n\\end{equation*}\n\\vspace{0.3em}\n"
                )
                i = end + 2
                continue
            out.append("$$")
            i += 2
            continue
        if content[i] == "$":
            end = content.find("$", i + 1)
            if end != -1:
                out.append("\\(" + content[i + 1:end] + "\\)")
                i = end + 1
                continue
        out.append(content[i])
        i += 1
    out.append("\n\\vspace{0.5em}\n")
    return "".join(out)


class LatexRenderer:
    """
    LaTeX 渲染器

    将 Document 渲染为完整的 LaTeX 文档
    """

    def __init__(
        self,
        template_path: str | Path | None = None,
        template_string: str | None = None,
    ):
        """
        初始化渲染器

        Args:
            template_path: 自定义模板文件路径
            template_string: 自定义模板字符串
        """
        if template_path:
            template_dir = Path(template_path).parent
            template_name = Path(template_path).name
            self.env = Environment(
                loader=FileSystemLoader(str(template_dir)), keep_trailing_newline=True
            )
            self.template = self.env.get_template(template_name)
        elif template_string:
            self.template = Template(template_string, keep_trailing_newline=True)
        else:
            self.template = Template(DEFAULT_LATEX_TEMPLATE, keep_trailing_newline=True)

    def render(self, document: Document) -> str:
        """
        渲染文档为 LaTeX

        Args:
            document: 文档对象

        Returns:
            完整的 LaTeX 文档字符串
        """
        body = BLOCK_SEPARATOR.join(self.render_block(b) for b in document.blocks)
        return self.template.render(body=body, variables=document.variables)

    def render_block(self, block: ContentBlock) -> str:
        """渲染单个内容块（末尾带换行）"""
        if block.type == BlockType.HEADING:
            command = SECTION_COMMANDS.get(block.level, GENERIC_SECTION_COMMAND)
            star = "" if block.numbered else "*"
            return f"\\{command}{star}{{{block.title}}}\n"

        if block.type == BlockType.MATH:
            return convert_math_block(block.content)

        if block.type == BlockType.CODE:
            language = block.language or "text"
            return (
                f"\\begin{{lstlisting}}[language={language}]\n"
                f"{block.content}\n\\end{{lstlisting}}\n"
            )

        if block.type == BlockType.QUOTE:
            return f"\\begin{{quote}}\n{block.content}\n\\end{{quote}}\n"

        if block.type == BlockType.LIST:
            items = [
                f"\\item {line.strip()[2:].strip()}\n"
                for line in block.content.split("\n")
                if line.strip().startswith(LIST_PREFIXES)
            ]
            if not items:
                return "% empty list\n"
            return "\\begin{itemize}\n" + "".join(items) + "\\end{itemize}\n"

        if block.type == BlockType.RAW_LATEX:
            return block.content + "\n"

        text = convert_inline_math(block.content)
        text = format_emphasis(text)
        text = autolink(text)
        return text + "\n"

    def render_to_file(self, document: Document, output_path: str | Path) -> Path:
        """
        渲染文档并保存到文件

        Args:
            document: 文档对象
            output_path: 输出文件路径

        Returns:
            输出文件路径
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        latex_content = self.render(document)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(latex_content)

        return output_path
