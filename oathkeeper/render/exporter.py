"""
导出器

把文档导出为 LaTeX / PDF / HTML / Unicode 文本 / Markdown 文件
"""

from __future__ import annotations

import re
import shutil
import subprocess
from enum import Enum
from pathlib import Path

from rich.console import Console

from ..config.settings import AppConfig
from ..config.templates import PLACEHOLDER_TITLE
from ..errors import ToolchainError
from ..models import BlockType, Document, heading_title
from .html import HtmlRenderer
from .latex import LatexRenderer
from .notation import NotationRenderer
from .text import MarkdownRenderer, UnicodeRenderer

console = Console()


DEFAULT_FILENAME = "document"
FILENAME_JOINER = "-"

# pdflatex 运行后留下的辅助文件
AUXILIARY_SUFFIXES = (".aux", ".log", ".fls", ".fdb_latexmk", ".synctex.gz", ".out", ".toc")


class ExportFormat(str, Enum):
    """导出格式"""
    PDF = "pdf"
    LATEX = "latex"
    HTML = "html"
    UNICODE = "unicode"
    MARKDOWN = "markdown"

    @property
    def suffix(self) -> str:
        return {
            ExportFormat.PDF: ".pdf",
            ExportFormat.LATEX: ".tex",
            ExportFormat.HTML: ".html",
            ExportFormat.UNICODE: ".txt",
            ExportFormat.MARKDOWN: ".md",
        }[self]


def normalize_filename(title: str) -> str:
    """标题 → 文件名：小写、空格变连字符、只保留 [a-z0-9-]、去掉首尾连字符"""
    name = heading_title(title).lower().replace(" ", FILENAME_JOINER)
    name = re.sub(r"[^a-z0-9-]", "", name)
    return name.strip(FILENAME_JOINER)


def smart_filename(document: Document, source_path: str | Path | None = None) -> str:
    """
    根据第一个有效标题推导导出文件名

    跳过空标题和模板占位标题；都没有时退回到已保存文件的文件名，再退回默认名
    """
    for block in document.blocks:
        if block.type != BlockType.HEADING:
            continue
        if heading_title(block.content) == PLACEHOLDER_TITLE:
            continue
        name = normalize_filename(block.content)
        if name:
            return name

    if source_path:
        return Path(source_path).stem
    return DEFAULT_FILENAME


class Exporter:
    """
    多格式导出器

    只读取文档内容，不修改文档
    """

    def __init__(self, notation: NotationRenderer, config: AppConfig | None = None):
        self.config = config or AppConfig()
        self.notation = notation
        self.latex_renderer = LatexRenderer()
        self.html_renderer = HtmlRenderer()
        self.unicode_renderer = UnicodeRenderer(notation)
        self.markdown_renderer = MarkdownRenderer()

    def render(self, document: Document, fmt: ExportFormat) -> str:
        """生成导出内容（PDF 返回其中间 LaTeX 源码）"""
        fmt = ExportFormat(fmt)
        if fmt in (ExportFormat.PDF, ExportFormat.LATEX):
            return self.latex_renderer.render(document)
        if fmt == ExportFormat.HTML:
            return self.html_renderer.render(document)
        if fmt == ExportFormat.UNICODE:
            return self.unicode_renderer.render(document)
        return self.markdown_renderer.render(document)

    def export(
        self,
        document: Document,
        fmt: ExportFormat,
        output_dir: str | Path | None = None,
        name: str | None = None,
        source_path: str | Path | None = None,
    ) -> Path:
        """
        导出文档到文件

        Args:
            document: 文档对象
            fmt: 导出格式
            output_dir: 输出目录，默认为配置中的文档目录
            name: 文件名（不含扩展名），为空时自动推导
            source_path: 文档当前保存的路径，用于推导文件名

        Returns:
            输出文件路径

        Raises:
            ToolchainError: PDF 生成失败（中间 .tex 文件仍会保留）
        """
        fmt = ExportFormat(fmt)
        output_dir = Path(output_dir or self.config.documents_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        base_name = (name or "").strip() or smart_filename(document, source_path)

        if fmt == ExportFormat.PDF:
            return self.build_pdf(document, output_dir, base_name)

        output_path = output_dir / f"{base_name}{fmt.suffix}"
        output_path.write_text(self.render(document, fmt), encoding="utf-8")
        console.print(f"[green]✓ 已导出: {output_path}[/green]")
        return output_path

    def find_toolchain(self) -> str | None:
        """查找排版工具可执行文件"""
        return shutil.which(self.config.typeset_program)

    def build_pdf(self, document: Document, output_dir: Path, base_name: str) -> Path:
        """先写出 .tex，再调用排版工具生成 PDF"""
        tex_path = self.latex_renderer.render_to_file(document, output_dir / f"{base_name}.tex")

        program = self.find_toolchain()
        if not program:
            raise ToolchainError(
                f"{self.config.typeset_program} 未安装或不在 PATH 中，LaTeX 文件已保存为 {tex_path}",
                intermediate=tex_path,
            )

        console.print(f"[cyan]🔄 正在运行 {self.config.typeset_program}...[/cyan]")
        cmd = [program, "-interaction=nonstopmode", tex_path.name]

        succeeded = False
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=output_dir,
                timeout=self.config.typeset_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolchainError(
                f"{self.config.typeset_program} 超时（{self.config.typeset_timeout:g} 秒），"
                f"LaTeX 文件已保存为 {tex_path}",
                intermediate=tex_path,
            ) from e
        except OSError as e:
            raise ToolchainError(
                f"无法运行 {program}: {e}。LaTeX 文件已保存为 {tex_path}",
                intermediate=tex_path,
            ) from e
        else:
            if result.returncode != 0:
                tail = "\n".join((result.stdout or result.stderr or "").splitlines()[-15:])
                raise ToolchainError(
                    f"{self.config.typeset_program} 转换失败（退出码 {result.returncode}），"
                    f"LaTeX 文件已保存为 {tex_path}\n{tail}",
                    intermediate=tex_path,
                )
            succeeded = True
        finally:
            self.cleanup_auxiliary(output_dir, base_name, keep_log=not succeeded)

        pdf_path = output_dir / f"{base_name}.pdf"
        console.print(f"[green]✓ PDF 已生成: {pdf_path}[/green]")
        return pdf_path

    @staticmethod
    def cleanup_auxiliary(output_dir: Path, base_name: str, keep_log: bool = False) -> list[Path]:
        """删除排版辅助文件，失败时保留 .log 便于排查"""
        removed = []
        for suffix in AUXILIARY_SUFFIXES:
            if keep_log and suffix == ".log":
                continue
            path = output_dir / f"{base_name}{suffix}"
            if path.exists():
                path.unlink()
                removed.append(path)
        return removed
