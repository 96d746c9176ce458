"""
记号渲染器

把块的原始标记（宏、上下标、\textbf 等）转换成可读的 Unicode 预览，
同时给出括号 / 数学分隔符配对的诊断信息。结果带 LRU 缓存。
"""

from __future__ import annotations

import hashlib
import re
import time
from collections import OrderedDict
from datetime import datetime
from typing import Callable

from ..config.registry import DEFAULT_REGISTRY, NotationRegistry
from ..models import Diagnostic, RenderResult


FORMAT_COMMANDS = {
    r"\textbf": "**",
    r"\textit": "*",
    r"\emph": "*",
}

_FORMAT_PATTERN = re.compile(r"\\(?:textbf|textit|emph)\{")


class RenderCache:
    """
    容量有限的严格 LRU 缓存

    命中时把条目移到最新位置；未命中写入时，若已满先淘汰最久未用的条目
    """

    def __init__(self, capacity: int = 50):
        if capacity < 1:
            raise ValueError("缓存容量必须大于 0")
        self.capacity = capacity
        self._entries: OrderedDict[str, RenderResult] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> RenderResult | None:
        if key not in self._entries:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return self._entries[key]

    def put(self, key: str, value: RenderResult) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
            self._entries[key] = value
            return
        if len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
        self._entries[key] = value

    def keys(self) -> list[str]:
        """从最久未用到最近使用排列"""
        return list(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class NotationRenderer:
    """
    记号渲染器

    缓存键 = 内容哈希 + 时间窗口序号。同一窗口内相同内容直接复用上次结果，
    跨过窗口边界会重新渲染。window_seconds=0 时只按内容缓存。
    """

    def __init__(
        self,
        registry: NotationRegistry = DEFAULT_REGISTRY,
        capacity: int = 50,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.cache = RenderCache(capacity)
        self.window_seconds = window_seconds
        self._clock = clock

        macros = registry.ordered_macros()
        # 长名称在前；(?![A-Za-z]) 保证 \in 不会吃掉 \infty 的前缀
        self._macro_pattern = (
            re.compile("(?:" + "|".join(re.escape(m) for m in macros) + r")(?![A-Za-z])")
            if macros else None
        )
        self._scripts = registry.scripts()
        self._script_pattern = re.compile(
            "|".join(re.escape(seq) for seq in sorted(self._scripts))
        )

    def fingerprint(self, content: str) -> str:
        digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
        if self.window_seconds <= 0:
            return digest
        window = int(self._clock() // self.window_seconds)
        return f"{digest}:{window}"

    def render(self, content: str) -> RenderResult:
        """
        渲染内容为 Unicode 预览（带缓存）

        Args:
            content: 块的原始标记

        Returns:
            RenderResult（Unicode 文本 + 诊断）
        """
        key = self.fingerprint(content)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        text = self.substitute_macros(content)
        text = self.translate_scripts(text)
        text = self.apply_formatting(text)

        result = RenderResult(
            unicode=text,
            diagnostics=self.validate(content),
            rendered_at=datetime.fromtimestamp(self._clock()),
        )
        self.cache.put(key, result)
        return result

    def substitute_macros(self, content: str) -> str:
        """宏替换：一次扫描，长名称优先"""
        if self._macro_pattern is None:
            return content
        return self._macro_pattern.sub(lambda m: self.registry.symbols[m.group(0)], content)

    def translate_scripts(self, content: str) -> str:
        """上下标转换，未登记的组合原样保留"""
        return self._script_pattern.sub(
            lambda m: self._scripts.get(m.group(0), m.group(0)), content
        )

    def apply_formatting(self, content: str) -> str:
        r"""
        \textbf{...} → **...**，\textit{...} / \emph{...} → *...*

        按括号深度扫描：每个左括号入栈，格式命令的左括号记下对应的结束标记，
        匹配的右括号出栈时输出该标记；普通括号原样保留。
        """
        out: list[str] = []
        stack: list[str | None] = []
        i = 0
        while i < len(content):
            match = _FORMAT_PATTERN.match(content, i)
            if match:
                marker = FORMAT_COMMANDS[match.group(0)[:-1]]
                out.append(marker)
                stack.append(marker)
                i = match.end()
                continue

            char = content[i]
            if char == "{":
                stack.append(None)
                out.append(char)
            elif char == "}" and stack:
                marker = stack.pop()
                out.append(marker if marker is not None else char)
            else:
                out.append(char)
            i += 1
        return "".join(out)

    @staticmethod
    def validate(content: str) -> list[Diagnostic]:
        """逐行检查括号与 $ 的配对（只提示，不影响渲染）"""
        diagnostics: list[Diagnostic] = []
        for line_num, line in enumerate(content.split("\n"), 1):
            depth = 0
            for col, char in enumerate(line, 1):
                if char == "{":
                    depth += 1
                elif char == "}":
                    if depth == 0:
                        diagnostics.append(Diagnostic(
                            line=line_num,
                            column=col,
                            message="Unmatched closing brace",
                        ))
                    else:
                        depth -= 1
            if depth > 0:
                diagnostics.append(Diagnostic(
                    line=line_num,
                    column=len(line),
                    message="Unmatched opening brace",
                ))

            if line.count("$") % 2:
                diagnostics.append(Diagnostic(
                    line=line_num,
                    column=line.rfind("$") + 1,
                    message="Unmatched math delimiter",
                ))
        return diagnostics

    def cache_info(self) -> dict[str, int]:
        return {
            "size": len(self.cache),
            "capacity": self.cache.capacity,
            "hits": self.cache.hits,
            "misses": self.cache.misses,
        }
