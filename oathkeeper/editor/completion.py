"""
宏名补全
"""

from __future__ import annotations

from ..config.registry import DEFAULT_REGISTRY, MACRO_ESCAPE, NotationRegistry
from ..models import CompletionCandidate


def trigger_token(content: str) -> str | None:
    r"""
    取末尾正在输入的词作为触发词

    只有以 \ 开头且长度大于 1 的词才会触发；内容以空白结尾说明词已输入完毕
    """
    if not content or content[-1].isspace():
        return None
    token = content.split()[-1]
    if token.startswith(MACRO_ESCAPE) and len(token) > 1:
        return token
    return None


class CompletionEngine:
    """根据注册表给出补全候选"""

    def __init__(self, registry: NotationRegistry = DEFAULT_REGISTRY):
        self.registry = registry

    def complete(self, content: str) -> list[CompletionCandidate]:
        """
        返回名称以触发词为前缀的候选，按名称排序

        返回空列表表示调用方应关闭补全弹窗
        """
        token = trigger_token(content)
        if token is None:
            return []
        return sorted(
            (c for c in self.registry.completions if c.name.startswith(token)),
            key=lambda c: c.name,
        )
