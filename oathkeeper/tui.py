"""
Oathkeeper 交互式终端界面 (TUI)

浏览文档块、编辑、预览与导出，无需记忆命令行参数
"""

from __future__ import annotations

from pathlib import Path

import questionary
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import (
    DEFAULT_TEMPLATES,
    DOCUMENT_SUFFIX,
    AppConfig,
    load_config,
    load_preferences,
    save_preferences,
)
from .editor import EditController
from .errors import DocumentFormatError, ToolchainError
from .models import BlockType, UserPreferences, ViewMode
from .render import ExportFormat
from .utils import list_documents

console = Console()


# 自定义样式
STYLE = questionary.Style([
    ("qmark", "fg:cyan bold"),
    ("question", "bold"),
    ("answer", "fg:green"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("selected", "fg:green"),
])

BLOCK_ICONS = {
    BlockType.HEADING: "🔖",
    BlockType.TEXT: "📝",
    BlockType.MATH: "∑ ",
    BlockType.CODE: "💻",
    BlockType.QUOTE: "💬",
    BlockType.LIST: "📋",
    BlockType.RAW_LATEX: "🧾",
}

FORMAT_LABELS = {
    ExportFormat.PDF: "PDF（需要 pdflatex）",
    ExportFormat.LATEX: "LaTeX 源码 (.tex)",
    ExportFormat.HTML: "HTML 网页",
    ExportFormat.UNICODE: "Unicode 文本 (.txt)",
    ExportFormat.MARKDOWN: "Markdown (.md)",
}


def clear_screen():
    """清屏"""
    console.clear()


def show_banner():
    """显示欢迎横幅"""
    banner = """
    ╭─────────────────────────────────────────╮
    │     🛡️  Oathkeeper - 结构化文档编辑器     │
    │                                         │
    │   标题 · 公式 · 代码 · 实时预览 · 导出   │
    ╰─────────────────────────────────────────╯
    """
    console.print(banner, style="cyan")


def show_main_menu() -> str:
    """显示主菜单"""
    choices = [
        questionary.Choice("📝 新建文档", value="new"),
        questionary.Choice("📂 打开文档", value="open"),
        questionary.Choice("❓ 帮助", value="help"),
        questionary.Choice("🚪 退出", value="quit"),
    ]

    return questionary.select(
        "请选择操作：",
        choices=choices,
        style=STYLE,
    ).ask()


def render_screen(controller: EditController, prefs: UserPreferences):
    """绘制块列表、预览与诊断"""
    clear_screen()
    name = controller.file_path.name if controller.file_path else "（未保存）"
    flag = " [yellow]●[/yellow]" if controller.modified else ""
    console.print(f"[bold cyan]📄 {name}[/bold cyan]{flag}  [dim]模板: {controller.document.template}[/dim]")

    previews = controller.preview()

    table = Table(show_header=True, expand=True)
    table.add_column("", width=2)
    table.add_column("类型", width=10)
    table.add_column("内容", style="cyan")
    for index, block in enumerate(controller.store):
        pointer = "▶" if index == controller.current_index else ""
        first_line = block.content.split("\n")[0][:60] or "[dim]（空）[/dim]"
        table.add_row(pointer, f"{BLOCK_ICONS[block.type]} {block.type.value}", first_line)

    preview_text = "\n\n".join(r.unicode for r in previews)
    preview = Panel(preview_text or " ", title="预览", border_style="green")

    if prefs.view_mode == ViewMode.EDITOR:
        console.print(table)
    elif prefs.view_mode == ViewMode.PREVIEW:
        console.print(preview)
    else:
        left = round(prefs.split_ratio * 10)
        layout = Table.grid(expand=True)
        layout.add_column(ratio=left)
        layout.add_column(ratio=10 - left)
        layout.add_row(table, preview)
        console.print(layout)

    if controller.diagnostics:
        for d in controller.diagnostics:
            color = "red" if d.severity == "error" else "yellow"
            console.print(f"[{color}]  {d.line}:{d.column} {d.message}[/{color}]")


def edit_block_flow(controller: EditController):
    """编辑当前块：输入 → 补全 → 确认"""
    if not controller.editing:
        controller.begin_edit()
    block = controller.store.current
    console.print(f"\n[bold cyan]━━━ ✏️ 编辑块 {block.id} ({block.type.value}) ━━━[/bold cyan]")
    console.print("[dim]以 \\ 开头的词会触发补全；Esc+Enter 结束多行输入[/dim]\n")

    while controller.editing:
        if not controller.completion_open:
            text = questionary.text(
                "内容：",
                default=controller.buffer,
                multiline=True,
                style=STYLE,
            ).ask()
            if text is not None:
                controller.set_buffer(text)

        if controller.completion_open:
            choices = [
                questionary.Choice(
                    f"{c.name:<14} {c.description}  [{c.category}]  例: {c.example}",
                    value=i,
                )
                for i, c in enumerate(controller.candidates)
            ]
            choices.append(questionary.Choice("✖ 忽略补全", value="dismiss"))
            choices.append(questionary.Choice("✔ 完成编辑", value="done"))
            picked = questionary.select(
                f"补全 {controller.trigger}：",
                choices=choices,
                style=STYLE,
            ).ask()
            if isinstance(picked, int):
                for _ in range(picked):
                    controller.next_candidate()
                controller.accept_completion()
            elif picked == "done":
                if not controller.confirm_exit():
                    console.print("[dim]补全已关闭，再次确认即可完成编辑[/dim]")
            else:
                controller.dismiss_completion()
            continue

        action = questionary.select(
            "下一步：",
            choices=[
                questionary.Choice("✔ 完成编辑", value="done"),
                questionary.Choice("✏️  继续编辑", value="again"),
            ],
            style=STYLE,
        ).ask()
        if action != "again":
            controller.confirm_exit()

    if controller.diagnostics:
        console.print(f"[yellow]⚠ {len(controller.diagnostics)} 条诊断（不影响保存）[/yellow]")


def convert_flow(controller: EditController):
    """转换当前块类型"""
    new_type = questionary.select(
        "转换为：",
        choices=[
            questionary.Choice(f"{BLOCK_ICONS[t]} {t.value}", value=t)
            for t in BlockType
        ],
        style=STYLE,
    ).ask()
    if new_type is None:
        return
    controller.convert_block(new_type)
    if new_type == BlockType.CODE and not controller.store.current.language:
        language = questionary.text("代码语言（可留空）：", style=STYLE).ask()
        controller.set_language(language)


def export_flow(controller: EditController, prefs: UserPreferences):
    """导出流程"""
    console.print("\n[bold cyan]━━━ 📄 导出文档 ━━━[/bold cyan]\n")

    fmt = questionary.select(
        "导出格式：",
        choices=[questionary.Choice(label, value=f) for f, label in FORMAT_LABELS.items()],
        style=STYLE,
    ).ask()
    if fmt is None:
        return

    name = questionary.text(
        "文件名（不含扩展名）：",
        default=controller.suggested_filename(),
        style=STYLE,
    ).ask()
    output_dir = questionary.text(
        "输出目录：",
        default=prefs.last_directory,
        style=STYLE,
    ).ask()

    try:
        if fmt == ExportFormat.PDF:
            # 排版是同步执行的，期间界面明确处于等待状态
            with console.status("[cyan]正在排版，请稍候...[/cyan]"):
                output_path = controller.export(fmt, output_dir, name)
        else:
            output_path = controller.export(fmt, output_dir, name)
    except ToolchainError as e:
        console.print(f"\n[red]导出失败: {e}[/red]")
        if e.intermediate:
            console.print(f"[dim]中间文件: {e.intermediate}[/dim]")
        return
    except OSError as e:
        console.print(f"\n[red]错误: {e}[/red]")
        return

    console.print(f"\n[green]✓ 导出完成: {output_path}[/green]")


def save_flow(controller: EditController):
    """保存文档"""
    default = controller.file_path or Path(
        controller.config.documents_dir,
        controller.suggested_filename() + DOCUMENT_SUFFIX,
    )
    target = questionary.text("保存到：", default=str(default), style=STYLE).ask()
    if not target:
        console.print("[yellow]已取消[/yellow]")
        return
    try:
        path = controller.save(target)
    except OSError as e:
        console.print(f"[red]保存失败: {e}[/red]")
        return
    console.print(f"[green]✓ 已保存到: {path}[/green]")


def editor_flow(controller: EditController, config: AppConfig, prefs: UserPreferences):
    """文档编辑主循环（浏览状态）"""
    while True:
        render_screen(controller, prefs)

        action = questionary.select(
            "操作：",
            choices=[
                questionary.Choice("⬇️  下一块", value="down"),
                questionary.Choice("⬆️  上一块", value="up"),
                questionary.Choice("✏️  编辑当前块", value="edit"),
                questionary.Choice("➕ 新建文本块", value="new"),
                questionary.Choice("🔁 转换块类型", value="convert"),
                questionary.Choice("#️⃣  切换标题编号", value="number"),
                questionary.Choice("🗑️  删除当前块", value="delete"),
                questionary.Choice("🪟 切换视图", value="view"),
                questionary.Choice("💾 保存", value="save"),
                questionary.Choice("📄 导出", value="export"),
                questionary.Choice("↩️  返回主菜单", value="back"),
            ],
            style=STYLE,
        ).ask()

        if action == "down":
            controller.move(1)
        elif action == "up":
            controller.move(-1)
        elif action == "edit":
            edit_block_flow(controller)
        elif action == "new":
            controller.create_block()
            edit_block_flow(controller)
        elif action == "convert":
            convert_flow(controller)
        elif action == "number":
            try:
                numbered = controller.toggle_numbering()
                console.print(f"[green]✓ 编号已{'开启' if numbered else '关闭'}[/green]")
            except ValueError as e:
                console.print(f"[yellow]{e}[/yellow]")
        elif action == "delete":
            if not controller.delete_block():
                console.print("[yellow]文档至少要保留一个块，未删除[/yellow]")
                questionary.press_any_key_to_continue("按任意键继续...").ask()
        elif action == "view":
            modes = list(ViewMode)
            prefs.view_mode = modes[(modes.index(prefs.view_mode) + 1) % len(modes)]
            save_preferences(prefs, config.preferences_path)
        elif action == "save":
            save_flow(controller)
            questionary.press_any_key_to_continue("按任意键继续...").ask()
        elif action == "export":
            export_flow(controller, prefs)
            questionary.press_any_key_to_continue("按任意键继续...").ask()
        else:
            if controller.modified and questionary.confirm(
                "文档有未保存的修改，是否保存？", default=True, style=STYLE
            ).ask():
                save_flow(controller)
            return


def new_document_flow(config: AppConfig) -> EditController | None:
    """从模板新建文档"""
    console.print("\n[bold cyan]━━━ 📝 新建文档 ━━━[/bold cyan]\n")

    template = questionary.select(
        "选择模板：",
        choices=[
            questionary.Choice(f"{t.name} - {t.description}", value=t)
            for t in DEFAULT_TEMPLATES
        ],
        style=STYLE,
    ).ask()
    if template is None:
        console.print("[yellow]已取消[/yellow]")
        return None

    controller = EditController(config=config)
    controller.new_document(template)
    return controller


def open_document_flow(config: AppConfig, prefs: UserPreferences) -> EditController | None:
    """浏览目录并打开 .oath 文档"""
    current = Path(prefs.last_directory)

    while True:
        try:
            entries = list_documents(current, DOCUMENT_SUFFIX, prefs.show_hidden)
        except OSError as e:
            console.print(f"[red]无法读取目录 {current}: {e}[/red]")
            current = Path.cwd()
            continue

        choices = [
            questionary.Choice(
                f"{'📁' if e.is_dir else '📄'} {e.name}",
                value=e,
            )
            for e in entries
        ]
        choices.append(questionary.Choice(
            "👁️  隐藏文件: " + ("显示" if prefs.show_hidden else "隐藏"), value="hidden"
        ))
        choices.append(questionary.Choice("↩️  返回", value="back"))

        picked = questionary.select(f"📂 {current}", choices=choices, style=STYLE).ask()

        if picked is None or picked == "back":
            return None
        if picked == "hidden":
            prefs.show_hidden = not prefs.show_hidden
            continue
        if picked.is_dir:
            current = Path(picked.path)
            prefs.last_directory = str(current)
            continue

        controller = EditController(config=config)
        try:
            controller.load(picked.path)
        except DocumentFormatError as e:
            console.print(f"[red]{e}[/red]")
            continue
        return controller


def help_flow():
    """帮助信息"""
    console.print("\n[bold cyan]━━━ ❓ 帮助 ━━━[/bold cyan]\n")

    help_text = """
[bold]基本概念：[/bold]

文档由一串内容块组成：标题、文本、公式、代码、引用、列表、原始 LaTeX。
块没有嵌套，顺序即结构。

[bold]编辑：[/bold]

• 选中块后「编辑当前块」，输入以 [cyan]\\[/cyan] 开头的词会弹出宏补全
• 完成编辑时刷新预览，并检查括号与 $ 是否配对（仅提示）
• 「转换块类型」只改类型，不改内容

[bold]导出：[/bold]

• PDF 需要系统安装 pdflatex；未安装时会保留 .tex 文件
• 文件名默认取自第一个标题

[bold]配置说明（.env）：[/bold]

• OATHKEEPER_TYPESET_PROGRAM - 排版程序（默认 pdflatex）
• OATHKEEPER_CACHE_CAPACITY - 预览缓存容量
• OATHKEEPER_DOCUMENTS_DIR - 默认文档目录
"""
    console.print(help_text)

    questionary.press_any_key_to_continue("按任意键返回...").ask()


def run_tui(file_path: Path | None = None, env_file: Path | None = None) -> int:
    """
    运行交互式界面

    Returns:
        进程退出码
    """
    config = load_config(env_file)
    prefs = load_preferences(config.preferences_path)

    try:
        if file_path:
            controller = EditController(config=config)
            controller.load(file_path)
            editor_flow(controller, config, prefs)

        while True:
            clear_screen()
            show_banner()

            choice = show_main_menu()

            if choice == "quit" or choice is None:
                console.print("\n[cyan]再见！👋[/cyan]\n")
                break
            elif choice == "new":
                controller = new_document_flow(config)
                if controller:
                    editor_flow(controller, config, prefs)
            elif choice == "open":
                controller = open_document_flow(config, prefs)
                if controller:
                    editor_flow(controller, config, prefs)
            elif choice == "help":
                help_flow()

    except KeyboardInterrupt:
        console.print("\n\n[cyan]再见！👋[/cyan]\n")
    except DocumentFormatError as e:
        console.print(f"\n[red]{e}[/red]")
        return 1
    except Exception as e:
        console.print(f"\n[bold red]✗ 程序异常退出: {e}[/bold red]")
        return 1
    finally:
        try:
            save_preferences(prefs, config.preferences_path)
        except OSError as e:
            console.print(f"[yellow]偏好设置未保存: {e}[/yellow]")

    return 0


if __name__ == "__main__":
    raise SystemExit(run_tui())
