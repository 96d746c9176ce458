"""
编辑控制器

交互状态机：浏览 → 编辑 → 补全弹窗。它是唯一会修改 BlockStore 的组件。
保存和导出都必须显式调用，状态切换不会自动写盘。
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from ..config.registry import DEFAULT_REGISTRY, NotationRegistry
from ..config.settings import DOCUMENT_SUFFIX, AppConfig, load_document, save_document
from ..config.templates import DEFAULT_TEMPLATES
from ..models import (
    BlockType,
    CompletionCandidate,
    Diagnostic,
    Document,
    RenderResult,
    Template,
    heading_title,
)
from ..render import ExportFormat, Exporter, NotationRenderer, smart_filename
from .completion import CompletionEngine, trigger_token
from .store import BlockStore


class EditorMode(str, Enum):
    """控制器状态"""
    BROWSING = "browsing"
    EDITING = "editing"
    COMPLETION_OPEN = "completion_open"  # 编辑状态的子状态


class EditController:
    """
    块编辑状态机

    浏览状态：导航、新建 / 删除 / 转换块、进入编辑
    编辑状态：所有输入写入缓冲区，确认退出时才提交到块
    """

    def __init__(
        self,
        document: Document | None = None,
        config: AppConfig | None = None,
        registry: NotationRegistry = DEFAULT_REGISTRY,
        file_path: str | Path | None = None,
    ):
        self.config = config or AppConfig()
        self.registry = registry
        self.renderer = NotationRenderer(
            registry,
            capacity=self.config.cache_capacity,
            window_seconds=self.config.cache_window_seconds,
        )
        self.completion = CompletionEngine(registry)
        self.exporter = Exporter(self.renderer, self.config)

        self.store = BlockStore(document or Document.from_template(DEFAULT_TEMPLATES[0]))
        if not len(self.store):
            self.store.append(self.store.new_block(BlockType.TEXT))
            self.store.select(0)
        self.file_path: Path | None = Path(file_path) if file_path else None
        self.modified = False

        self.mode = EditorMode.BROWSING
        self.buffer = ""
        self.candidates: list[CompletionCandidate] = []
        self.selected_candidate = 0
        self.trigger: str | None = None
        self.diagnostics: list[Diagnostic] = []

    # ── 状态查询 ──────────────────────────────────────────────

    @property
    def document(self) -> Document:
        return self.store.document

    @property
    def current_index(self) -> int:
        return self.store.current_index

    @property
    def editing(self) -> bool:
        return self.mode in (EditorMode.EDITING, EditorMode.COMPLETION_OPEN)

    @property
    def completion_open(self) -> bool:
        return self.mode == EditorMode.COMPLETION_OPEN

    def _require(self, *modes: EditorMode) -> None:
        if self.mode not in modes:
            raise RuntimeError(f"当前状态 {self.mode.value} 不支持该操作")

    def _touch(self) -> None:
        self.modified = True
        self.document.modified = datetime.now()

    # ── 浏览状态 ──────────────────────────────────────────────

    def move(self, delta: int) -> int:
        """移动到相邻块（夹取到有效范围）"""
        self._require(EditorMode.BROWSING)
        return self.store.move(delta)

    def create_block(self) -> int:
        """在末尾新建文本块，设为当前块并进入编辑"""
        self._require(EditorMode.BROWSING)
        index = self.store.append(self.store.new_block(BlockType.TEXT))
        self._touch()
        self.begin_edit()
        return index

    def delete_block(self) -> bool:
        """删除当前块；唯一的块不能删除，返回 False"""
        self._require(EditorMode.BROWSING)
        deleted = self.store.delete_at(self.store.current_index)
        if deleted:
            self._touch()
        return deleted

    def convert_block(self, new_type: BlockType) -> None:
        """转换当前块类型，保持浏览状态"""
        self._require(EditorMode.BROWSING)
        self.store.convert_type(self.store.current_index, new_type)
        self._touch()

    def toggle_numbering(self) -> bool:
        """切换当前标题块的编号"""
        self._require(EditorMode.BROWSING)
        block = self.store.current
        if block.type != BlockType.HEADING:
            raise ValueError("只有标题块可以设置编号")
        block.numbered = not block.numbered
        self._touch()
        return block.numbered

    def set_language(self, language: str | None) -> None:
        """设置当前代码块的语言"""
        self._require(EditorMode.BROWSING)
        block = self.store.current
        if block.type != BlockType.CODE:
            raise ValueError("只有代码块可以设置语言")
        block.language = (language or "").strip() or None
        self._touch()

    def begin_edit(self) -> None:
        """进入编辑状态，缓冲区载入当前块内容"""
        self._require(EditorMode.BROWSING)
        self.buffer = self.store.current.content
        self.mode = EditorMode.EDITING
        self._close_completion()

    # ── 编辑状态 ──────────────────────────────────────────────

    def set_buffer(self, text: str) -> None:
        """整体替换缓冲区内容"""
        self._require(EditorMode.EDITING, EditorMode.COMPLETION_OPEN)
        self.buffer = text
        self._refresh_completion()

    def type_text(self, text: str) -> None:
        self.set_buffer(self.buffer + text)

    def backspace(self, count: int = 1) -> None:
        self.set_buffer(self.buffer[:-count] if count > 0 else self.buffer)

    def confirm_exit(self) -> bool:
        """
        确认退出编辑

        补全弹窗打开时只关闭弹窗、不退出（返回 False）；
        否则提交缓冲区、刷新诊断并回到浏览状态（返回 True）
        """
        self._require(EditorMode.EDITING, EditorMode.COMPLETION_OPEN)
        if self.completion_open:
            self._close_completion()
            return False

        index = self.store.current_index
        self.store.set_content(index, self.buffer)
        result = self.renderer.render(self.buffer)
        block = self.store.get(index)
        block.rendered = result.unicode
        block.rendered_at = result.rendered_at
        self.diagnostics = list(result.diagnostics)
        self._touch()
        self.mode = EditorMode.BROWSING
        return True

    # ── 补全 ──────────────────────────────────────────────────

    def _close_completion(self) -> None:
        self.candidates = []
        self.selected_candidate = 0
        self.trigger = None
        if self.mode == EditorMode.COMPLETION_OPEN:
            self.mode = EditorMode.EDITING

    def _refresh_completion(self) -> None:
        candidates = self.completion.complete(self.buffer)
        if not candidates:
            self._close_completion()
            return
        self.candidates = candidates
        self.selected_candidate = 0
        self.trigger = trigger_token(self.buffer)
        self.mode = EditorMode.COMPLETION_OPEN

    def next_candidate(self) -> int:
        self._require(EditorMode.COMPLETION_OPEN)
        self.selected_candidate = min(self.selected_candidate + 1, len(self.candidates) - 1)
        return self.selected_candidate

    def previous_candidate(self) -> int:
        self._require(EditorMode.COMPLETION_OPEN)
        self.selected_candidate = max(self.selected_candidate - 1, 0)
        return self.selected_candidate

    def accept_completion(self) -> str:
        """用选中候选的插入文本替换末尾的触发词"""
        self._require(EditorMode.COMPLETION_OPEN)
        candidate = self.candidates[self.selected_candidate]
        if self.trigger and self.buffer.endswith(self.trigger):
            self.buffer = self.buffer[: -len(self.trigger)] + candidate.insert_text
        self._close_completion()
        return self.buffer

    def dismiss_completion(self) -> None:
        """关闭弹窗，缓冲区不变"""
        self._require(EditorMode.COMPLETION_OPEN)
        self._close_completion()

    # ── 预览 / 持久化 / 导出 ──────────────────────────────────

    def preview(self) -> list[RenderResult]:
        """逐块渲染预览；编辑中的块使用缓冲区内容"""
        results = []
        for index, block in enumerate(self.store):
            content = self.buffer if self.editing and index == self.current_index else block.content
            if block.type == BlockType.HEADING:
                content = heading_title(content)
            results.append(self.renderer.render(content))
        return results

    def suggested_filename(self) -> str:
        return smart_filename(self.document, self.file_path)

    def new_document(self, template: Template) -> None:
        self._require(EditorMode.BROWSING)
        self.store = BlockStore(Document.from_template(template))
        self.file_path = None
        self.modified = False
        self.diagnostics = []

    def load(self, file_path: str | Path) -> None:
        """
        加载文档；解析失败时抛出 DocumentFormatError，当前状态保持不变
        """
        self._require(EditorMode.BROWSING)
        document = load_document(file_path)
        store = BlockStore(document)
        if not len(store):
            store.append(store.new_block(BlockType.TEXT))
            store.select(0)
        self.store = store
        self.file_path = Path(file_path)
        self.modified = False
        self.diagnostics = []

    def save(self, file_path: str | Path | None = None) -> Path:
        """保存文档；未指定路径时使用当前文件或按标题推导文件名"""
        target = Path(file_path) if file_path else self.file_path
        if target is None:
            target = Path(self.config.documents_dir) / f"{self.suggested_filename()}{DOCUMENT_SUFFIX}"
        save_document(self.document, target)
        self.file_path = target
        self.modified = False
        return target

    def export(
        self,
        fmt: ExportFormat,
        output_dir: str | Path | None = None,
        name: str | None = None,
    ) -> Path:
        return self.exporter.export(
            self.document,
            fmt,
            output_dir=output_dir,
            name=name,
            source_path=self.file_path,
        )
