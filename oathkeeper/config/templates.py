"""
内置文档模板

启动时构建一次，作为只读配置传入需要的组件
"""

from __future__ import annotations

from ..models import BlockType, ContentBlock, Template


PLACEHOLDER_TITLE = "Document Title"


def _block(block_id: int, block_type: BlockType, content: str, **extra) -> ContentBlock:
    return ContentBlock(id=str(block_id), type=block_type, content=content, **extra)


DEFAULT_TEMPLATES: tuple[Template, ...] = (
    Template(
        name="Blank Document",
        description="Start with an empty document",
        blocks=(
            _block(1, BlockType.HEADING, f"# {PLACEHOLDER_TITLE}"),
            _block(2, BlockType.TEXT, "Start writing here"),
        ),
    ),
    Template(
        name="Academic Notes",
        description="Template for mathematical notes and proofs",
        blocks=(
            _block(1, BlockType.HEADING, "# Course Notes"),
            _block(2, BlockType.HEADING, "## Topic"),
            _block(3, BlockType.TEXT, "Key concepts:"),
            _block(4, BlockType.MATH, r"$\int_{a}^{b} f(x) dx = F(b) - F(a)$"),
            _block(5, BlockType.TEXT, "Proof:"),
        ),
    ),
    Template(
        name="Resume",
        description="Professional resume template",
        blocks=(
            _block(1, BlockType.HEADING, "# Your Name"),
            _block(2, BlockType.TEXT, "email@example.com | (555) 123-4567"),
            _block(3, BlockType.HEADING, "## Professional Summary"),
            _block(4, BlockType.TEXT, "Brief professional summary"),
            _block(5, BlockType.HEADING, "## Experience"),
            _block(6, BlockType.TEXT, "**Job Title** - Company Name (Year - Year)"),
        ),
    ),
    Template(
        name="Code Documentation",
        description="Template for documenting code projects",
        blocks=(
            _block(1, BlockType.HEADING, "# Project Name"),
            _block(2, BlockType.TEXT, "Brief project description"),
            _block(3, BlockType.HEADING, "## Installation"),
            _block(4, BlockType.CODE, "git clone repo\ncd project\nnpm install", language="bash"),
            _block(5, BlockType.HEADING, "## Usage"),
            _block(
                6,
                BlockType.CODE,
                "const example = require('./example');\nexample.run();",
                language="javascript",
            ),
        ),
    ),
)


def get_template(name: str, templates: tuple[Template, ...] = DEFAULT_TEMPLATES) -> Template:
    """按名称查找模板（不区分大小写）"""
    for template in templates:
        if template.name.lower() == name.lower():
            return template
    raise ValueError(f"未找到模板: {name}")
