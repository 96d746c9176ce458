"""
数据模型定义：ContentBlock, Document, Template 等核心结构
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


FORMAT_VERSION = "1.0"
HEADING_MARKER = "#"


class BlockType(str, Enum):
    """内容块类型"""
    HEADING = "heading"
    TEXT = "text"
    MATH = "math"
    CODE = "code"
    QUOTE = "quote"
    LIST = "list"
    RAW_LATEX = "rawlatex"


def heading_level(content: str) -> int:
    """
    标题层级：去掉首尾空白后前导 # 的个数（至少为 1）

    预览和导出共用这一规则，保证两边层级一致
    """
    stripped = content.strip()
    level = len(stripped) - len(stripped.lstrip(HEADING_MARKER))
    return max(level, 1)


def heading_title(content: str) -> str:
    """去掉前导 # 后的标题文本"""
    return content.strip().lstrip(HEADING_MARKER).strip()


class ContentBlock(BaseModel):
    """内容块数据模型"""
    id: str = Field(..., description="块唯一标识，在文档生命周期内不变")
    type: BlockType = Field(default=BlockType.TEXT, description="块类型")
    content: str = Field(default="", description="原始标记内容")
    language: str | None = Field(default=None, description="代码语言（仅 code 块）")
    numbered: bool = Field(default=False, description="是否编号（仅 heading 块）")
    rendered: str | None = Field(default=None, description="缓存的 Unicode 预览")
    rendered_at: datetime | None = Field(default=None, description="预览生成时间")

    @property
    def level(self) -> int:
        return heading_level(self.content)

    @property
    def title(self) -> str:
        return heading_title(self.content)


class Template(BaseModel):
    """文档模板"""
    name: str = Field(..., description="模板名称")
    description: str = Field(default="", description="模板说明")
    blocks: tuple[ContentBlock, ...] = Field(default_factory=tuple, description="初始内容块")
    variables: dict[str, str] = Field(default_factory=dict, description="模板变量")

    model_config = {"frozen": True}


class Document(BaseModel):
    """文档数据模型"""
    version: str = Field(default=FORMAT_VERSION, description="文件格式版本")
    template: str = Field(default="custom", description="来源模板名称")
    blocks: list[ContentBlock] = Field(default_factory=list, description="有序内容块列表")
    variables: dict[str, str] = Field(default_factory=dict, description="自由变量绑定（暂未使用）")
    created: datetime = Field(default_factory=datetime.now, description="创建时间")
    modified: datetime = Field(default_factory=datetime.now, description="最后修改时间")

    @classmethod
    def from_template(cls, template: Template) -> Document:
        """根据模板实例化新文档"""
        now = datetime.now()
        return cls(
            template=template.name,
            blocks=[block.model_copy(deep=True) for block in template.blocks],
            variables=dict(template.variables),
            created=now,
            modified=now,
        )

    def headings(self) -> list[ContentBlock]:
        """获取所有标题块"""
        return [b for b in self.blocks if b.type == BlockType.HEADING]


class Diagnostic(BaseModel):
    """语法诊断信息（仅提示，不阻断渲染）"""
    line: int = Field(..., description="行号（从 1 开始）")
    column: int = Field(..., description="列号（从 1 开始）")
    message: str = Field(..., description="诊断信息")
    severity: Literal["error", "warning"] = Field(default="error", description="严重程度")


class RenderResult(BaseModel):
    """一次渲染的结果"""
    unicode: str = Field(..., description="Unicode 预览文本")
    diagnostics: list[Diagnostic] = Field(default_factory=list, description="诊断列表")
    rendered_at: datetime = Field(default_factory=datetime.now, description="渲染时间")

    model_config = {"frozen": True}


class CompletionCandidate(BaseModel):
    """补全候选项"""
    name: str = Field(..., description="宏名称，如 \\alpha")
    description: str = Field(..., description="说明")
    insert_text: str = Field(..., description="插入文本")
    category: str = Field(default="symbol", description="类别：symbol, function, format, link, environment")
    example: str = Field(default="", description="用法示例")

    model_config = {"frozen": True}
