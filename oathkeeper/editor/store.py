"""
内容块存储

持有有序的块列表和“当前块”指针。修改类操作遇到越界索引直接抛 IndexError，
只有导航才做夹取。
"""

from __future__ import annotations

from typing import Iterator

from ..models import BlockType, ContentBlock, Document


class BlockStore:
    """
    文档块存储

    块 id 来自单调递增计数器，删除后再新增也不会重复
    """

    def __init__(self, document: Document | None = None):
        self.document = document or Document()
        self.current_index = 0
        self._next_id = self._seed_counter(self.document.blocks)

    @staticmethod
    def _seed_counter(blocks: list[ContentBlock]) -> int:
        numeric = [int(b.id) for b in blocks if b.id.isdigit()]
        return max(numeric, default=0) + 1

    @property
    def blocks(self) -> list[ContentBlock]:
        return self.document.blocks

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[ContentBlock]:
        return iter(self.blocks)

    def _check_index(self, index: int, upper: int | None = None) -> None:
        upper = len(self.blocks) - 1 if upper is None else upper
        if not 0 <= index <= upper:
            raise IndexError(f"块索引越界: {index}（共 {len(self.blocks)} 个块）")

    def _clamp(self, index: int) -> int:
        if not self.blocks:
            return 0
        return max(0, min(index, len(self.blocks) - 1))

    def next_id(self) -> str:
        existing = {b.id for b in self.blocks}
        while str(self._next_id) in existing:
            self._next_id += 1
        block_id = str(self._next_id)
        self._next_id += 1
        return block_id

    def new_block(
        self,
        block_type: BlockType = BlockType.TEXT,
        content: str = "",
        **extra,
    ) -> ContentBlock:
        """创建一个带新 id 的块（不插入）"""
        return ContentBlock(id=self.next_id(), type=block_type, content=content, **extra)

    @property
    def current(self) -> ContentBlock | None:
        if not self.blocks:
            return None
        return self.blocks[self.current_index]

    def get(self, index: int) -> ContentBlock:
        self._check_index(index)
        return self.blocks[index]

    def append(self, block: ContentBlock) -> int:
        """追加到末尾并设为当前块"""
        self.blocks.append(block)
        self.current_index = len(self.blocks) - 1
        return self.current_index

    def insert_at(self, index: int, block: ContentBlock) -> int:
        """在 index 处插入并设为当前块（index 可以等于长度，即追加）"""
        self._check_index(index, upper=len(self.blocks))
        self.blocks.insert(index, block)
        self.current_index = index
        return index

    def delete_at(self, index: int) -> bool:
        """
        删除块

        Returns:
            False 表示这是唯一的块，拒绝删除（文档至少保留一个块）
        """
        self._check_index(index)
        if len(self.blocks) == 1:
            return False
        del self.blocks[index]
        if index < self.current_index:
            self.current_index -= 1
        self.current_index = self._clamp(self.current_index)
        return True

    def set_content(self, index: int, text: str) -> None:
        self._check_index(index)
        block = self.blocks[index]
        block.content = text

    def convert_type(self, index: int, new_type: BlockType) -> None:
        """只修改类型标记，内容不变"""
        self._check_index(index)
        self.blocks[index].type = BlockType(new_type)

    def select(self, index: int) -> int:
        """导航到指定块（夹取到有效范围）"""
        self.current_index = self._clamp(index)
        return self.current_index

    def move(self, delta: int) -> int:
        return self.select(self.current_index + delta)
