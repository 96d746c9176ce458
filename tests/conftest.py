"""测试公共夹具"""

import pytest

from oathkeeper.config import AppConfig
from oathkeeper.models import BlockType, ContentBlock, Document
from oathkeeper.render import NotationRenderer


class FakeClock:
    """手动推进的时钟，用于缓存时间窗口测试"""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_document(*entries) -> Document:
    """由 (类型, 内容) 或 (类型, 内容, 额外字段) 元组构建文档"""
    blocks = []
    for i, entry in enumerate(entries, 1):
        block_type, content, *rest = entry
        extra = rest[0] if rest else {}
        blocks.append(ContentBlock(id=str(i), type=block_type, content=content, **extra))
    return Document(blocks=blocks)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def renderer():
    """仅按内容缓存的渲染器（无时间窗口）"""
    return NotationRenderer(window_seconds=0)


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        documents_dir=str(tmp_path),
        cache_window_seconds=0,
        preferences_path=str(tmp_path / "prefs.yaml"),
    )


@pytest.fixture
def sample_document():
    return make_document(
        (BlockType.HEADING, "# Quarterly Report"),
        (BlockType.TEXT, "Revenue grew by $x^2$ percent"),
        (BlockType.MATH, r"$\alpha + \beta \le \gamma$"),
        (BlockType.CODE, "print('hi')", {"language": "python"}),
        (BlockType.LIST, "- first\n- second"),
    )
