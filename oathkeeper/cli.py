"""
Oathkeeper CLI 命令行入口

提供以下命令：
- edit: 打开交互式编辑界面
- new: 从模板创建文档
- preview: 在终端输出 Unicode 预览与诊断
- export: 导出为 PDF / LaTeX / HTML / 文本 / Markdown
- templates: 列出内置模板
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import DEFAULT_TEMPLATES, DOCUMENT_SUFFIX, get_template, load_config, load_document
from .editor import EditController
from .errors import DocumentFormatError, ToolchainError
from .models import BlockType, Document
from .render import ExportFormat


app = typer.Typer(
    name="oathkeeper",
    help="Oathkeeper - 结构化技术文档编辑器",
    add_completion=False,
)

console = Console()


def _open(input_file: Path, env_file: Optional[Path]) -> EditController:
    controller = EditController(config=load_config(env_file))
    try:
        controller.load(input_file)
    except DocumentFormatError as e:
        console.print(f"[red]错误: {e}[/red]")
        raise typer.Exit(code=1)
    return controller


@app.command("edit")
def edit(
    input_file: Optional[Path] = typer.Argument(
        None,
        help="要打开的 .oath 文档（留空进入主菜单）",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env", "-e",
        help=".env 配置文件路径",
    ),
) -> None:
    """打开交互式编辑界面"""
    from .tui import run_tui

    raise typer.Exit(code=run_tui(input_file, env_file))


@app.command("new")
def new(
    output_file: Path = typer.Argument(
        ...,
        help="输出的 .oath 文档路径",
    ),
    template: str = typer.Option(
        DEFAULT_TEMPLATES[0].name,
        "--template", "-t",
        help="模板名称（见 templates 命令）",
    ),
    force: bool = typer.Option(
        False,
        "--force", "-f",
        help="覆盖已存在的文件",
    ),
) -> None:
    """
    从模板创建新文档

    示例:
        oathkeeper new notes.oath -t "Academic Notes"
    """
    try:
        chosen = get_template(template)
    except ValueError as e:
        console.print(f"[red]错误: {e}[/red]")
        raise typer.Exit(code=1)

    if output_file.suffix != DOCUMENT_SUFFIX:
        output_file = output_file.with_suffix(DOCUMENT_SUFFIX)

    if output_file.exists() and not force:
        console.print(f"[red]文件已存在: {output_file}（使用 --force 覆盖）[/red]")
        raise typer.Exit(code=1)

    controller = EditController(document=Document.from_template(chosen))
    path = controller.save(output_file)
    console.print(f"[green]✓ 已创建: {path}[/green]")
    console.print("\n[dim]下一步：[/dim]")
    console.print(f"[bold]oathkeeper edit {path}[/bold]")


@app.command("preview")
def preview(
    input_file: Path = typer.Argument(
        ...,
        help="要预览的 .oath 文档",
        exists=True,
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env", "-e",
        help=".env 配置文件路径",
    ),
) -> None:
    """在终端输出 Unicode 预览，并列出括号 / 分隔符诊断"""
    controller = _open(input_file, env_file)

    total = 0
    for block, result in zip(controller.store, controller.preview()):
        console.print(Panel(
            result.unicode or " ",
            title=f"{block.id} · {block.type.value}",
            border_style="cyan" if block.type != BlockType.CODE else "blue",
        ))
        if block.type in (BlockType.CODE, BlockType.RAW_LATEX):
            continue
        for d in controller.renderer.validate(block.content):
            total += 1
            console.print(f"[red]  块 {block.id} {d.line}:{d.column} {d.message}[/red]")

    if total:
        console.print(f"\n[yellow]⚠ 共 {total} 条诊断[/yellow]")
    else:
        console.print("\n[green]✓ 未发现配对问题[/green]")


@app.command("export")
def export(
    input_file: Path = typer.Argument(
        ...,
        help="要导出的 .oath 文档",
        exists=True,
    ),
    fmt: ExportFormat = typer.Option(
        ExportFormat.PDF,
        "--format", "-f",
        help="导出格式",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="输出目录（默认与文档相同）",
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name", "-n",
        help="输出文件名（不含扩展名，默认取第一个标题）",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env", "-e",
        help=".env 配置文件路径",
    ),
) -> None:
    """导出文档"""
    controller = _open(input_file, env_file)
    target_dir = output_dir or input_file.parent

    try:
        if fmt == ExportFormat.PDF:
            with console.status("[cyan]正在排版...[/cyan]"):
                output_path = controller.export(fmt, target_dir, name)
        else:
            output_path = controller.export(fmt, target_dir, name)
    except ToolchainError as e:
        console.print(f"[red]导出失败: {e}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        console.print(f"[red]错误: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ 导出完成: {output_path}[/green]")


@app.command("templates")
def templates() -> None:
    """列出内置模板"""
    table = Table(title="内置模板", show_header=True)
    table.add_column("名称", style="cyan")
    table.add_column("说明")
    table.add_column("块数", justify="right")
    for t in DEFAULT_TEMPLATES:
        table.add_row(t.name, t.description, str(len(t.blocks)))
    console.print(table)


@app.command("info")
def info(
    input_file: Path = typer.Argument(
        ...,
        help=".oath 文档路径",
        exists=True,
    ),
) -> None:
    """显示文档信息"""
    try:
        document = load_document(input_file)
    except DocumentFormatError as e:
        console.print(f"[red]错误: {e}[/red]")
        raise typer.Exit(code=1)

    counts: dict[str, int] = {}
    for block in document.blocks:
        counts[block.type.value] = counts.get(block.type.value, 0) + 1

    console.print(Panel(
        f"[bold]{input_file.name}[/bold]\n"
        f"格式版本: {document.version}\n"
        f"模板: {document.template}\n"
        f"块数: {len(document.blocks)} ({', '.join(f'{k} {v}' for k, v in counts.items())})\n"
        f"创建: {document.created:%Y-%m-%d %H:%M}\n"
        f"修改: {document.modified:%Y-%m-%d %H:%M}",
        border_style="blue",
    ))


def main():
    """CLI 入口"""
    app()


if __name__ == "__main__":
    main()
