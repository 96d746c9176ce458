"""
宏与补全注册表

符号表在启动时构建一次，之后只读。替换顺序由 ordered_macros() 明确给出
（名称长的优先），不依赖字典的迭代顺序。
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..models import CompletionCandidate


MACRO_ESCAPE = "\\"

# 宏名 -> (Unicode 字形, 说明)
_SYMBOLS: dict[str, tuple[str, str]] = {
    # 希腊字母
    r"\alpha": ("α", "Greek letter alpha"),
    r"\beta": ("β", "Greek letter beta"),
    r"\gamma": ("γ", "Greek letter gamma"),
    r"\delta": ("δ", "Greek letter delta"),
    r"\epsilon": ("ε", "Greek letter epsilon"),
    r"\zeta": ("ζ", "Greek letter zeta"),
    r"\eta": ("η", "Greek letter eta"),
    r"\theta": ("θ", "Greek letter theta"),
    r"\kappa": ("κ", "Greek letter kappa"),
    r"\lambda": ("λ", "Greek letter lambda"),
    r"\mu": ("μ", "Greek letter mu"),
    r"\xi": ("ξ", "Greek letter xi"),
    r"\pi": ("π", "Greek letter pi"),
    r"\rho": ("ρ", "Greek letter rho"),
    r"\sigma": ("σ", "Greek letter sigma"),
    r"\tau": ("τ", "Greek letter tau"),
    r"\phi": ("φ", "Greek letter phi"),
    r"\chi": ("χ", "Greek letter chi"),
    r"\psi": ("ψ", "Greek letter psi"),
    r"\omega": ("ω", "Greek letter omega"),
    r"\Gamma": ("Γ", "Greek capital gamma"),
    r"\Delta": ("Δ", "Greek capital delta"),
    r"\Theta": ("Θ", "Greek capital theta"),
    r"\Lambda": ("Λ", "Greek capital lambda"),
    r"\Pi": ("Π", "Greek capital pi"),
    r"\Sigma": ("Σ", "Greek capital sigma"),
    r"\Phi": ("Φ", "Greek capital phi"),
    r"\Omega": ("Ω", "Greek capital omega"),
    # 运算符
    r"\int": ("∫", "Integral"),
    r"\oint": ("∮", "Contour integral"),
    r"\sum": ("∑", "Summation"),
    r"\prod": ("∏", "Product"),
    r"\sqrt": ("√", "Square root"),
    r"\infty": ("∞", "Infinity"),
    r"\partial": ("∂", "Partial derivative"),
    r"\nabla": ("∇", "Nabla"),
    r"\pm": ("±", "Plus-minus"),
    r"\mp": ("∓", "Minus-plus"),
    r"\times": ("×", "Multiplication"),
    r"\div": ("÷", "Division"),
    r"\cdot": ("·", "Centered dot"),
    r"\ldots": ("…", "Ellipsis"),
    # 关系
    r"\le": ("≤", "Less than or equal"),
    r"\leq": ("≤", "Less than or equal"),
    r"\ge": ("≥", "Greater than or equal"),
    r"\geq": ("≥", "Greater than or equal"),
    r"\ne": ("≠", "Not equal"),
    r"\neq": ("≠", "Not equal"),
    r"\approx": ("≈", "Approximately equal"),
    r"\equiv": ("≡", "Equivalent"),
    r"\propto": ("∝", "Proportional to"),
    # 集合与逻辑
    r"\subset": ("⊂", "Subset"),
    r"\subseteq": ("⊆", "Subset or equal"),
    r"\supset": ("⊃", "Superset"),
    r"\supseteq": ("⊇", "Superset or equal"),
    r"\in": ("∈", "Element of"),
    r"\notin": ("∉", "Not an element of"),
    r"\cup": ("∪", "Union"),
    r"\cap": ("∩", "Intersection"),
    r"\emptyset": ("∅", "Empty set"),
    r"\forall": ("∀", "For all"),
    r"\exists": ("∃", "There exists"),
    r"\neg": ("¬", "Logical not"),
    r"\land": ("∧", "Logical and"),
    r"\lor": ("∨", "Logical or"),
    # 箭头
    r"\to": ("→", "Right arrow"),
    r"\rightarrow": ("→", "Right arrow"),
    r"\leftarrow": ("←", "Left arrow"),
    r"\Rightarrow": ("⇒", "Implies"),
    r"\Leftrightarrow": ("⇔", "If and only if"),
}

SUBSCRIPTS: Mapping[str, str] = MappingProxyType({
    "_0": "₀", "_1": "₁", "_2": "₂", "_3": "₃", "_4": "₄",
    "_5": "₅", "_6": "₆", "_7": "₇", "_8": "₈", "_9": "₉",
    "_a": "ₐ", "_e": "ₑ", "_i": "ᵢ", "_o": "ₒ", "_u": "ᵤ",
    "_x": "ₓ", "_y": "ᵧ",
})

SUPERSCRIPTS: Mapping[str, str] = MappingProxyType({
    "^0": "⁰", "^1": "¹", "^2": "²", "^3": "³", "^4": "⁴",
    "^5": "⁵", "^6": "⁶", "^7": "⁷", "^8": "⁸", "^9": "⁹",
    "^n": "ⁿ", "^i": "ⁱ", "^+": "⁺", "^-": "⁻",
})

# 非符号类命令（只用于补全）
_COMMANDS: tuple[CompletionCandidate, ...] = (
    CompletionCandidate(
        name=r"\frac",
        description="Fraction",
        insert_text=r"\frac{numerator}{denominator}",
        category="function",
        example=r"\frac{1}{2} + \frac{3}{4}",
    ),
    CompletionCandidate(
        name=r"\textbf",
        description="Bold text",
        insert_text=r"\textbf{text}",
        category="format",
        example=r"\textbf{Important note}",
    ),
    CompletionCandidate(
        name=r"\textit",
        description="Italic text",
        insert_text=r"\textit{text}",
        category="format",
        example=r"\textit{emphasis}",
    ),
    CompletionCandidate(
        name=r"\emph",
        description="Emphasized text",
        insert_text=r"\emph{text}",
        category="format",
        example=r"\emph{key idea}",
    ),
    CompletionCandidate(
        name=r"\href",
        description="Hyperlink",
        insert_text=r"\href{url}{text}",
        category="link",
        example=r"\href{https://example.com}{Example}",
    ),
    CompletionCandidate(
        name=r"\url",
        description="URL link",
        insert_text=r"\url{url}",
        category="link",
        example=r"\url{https://example.com}",
    ),
    CompletionCandidate(
        name=r"\begin",
        description="Begin environment",
        insert_text=r"\begin{env}",
        category="environment",
        example=r"\begin{align}",
    ),
    CompletionCandidate(
        name=r"\end",
        description="End environment",
        insert_text=r"\end{env}",
        category="environment",
        example=r"\end{align}",
    ),
    CompletionCandidate(
        name=r"\section",
        description="Section heading",
        insert_text=r"\section{title}",
        category="format",
        example=r"\section{Introduction}",
    ),
)


class NotationRegistry:
    """
    只读的宏/补全注册表

    由 build_registry() 构建一次，按引用传给渲染器和补全引擎
    """

    def __init__(
        self,
        symbols: Mapping[str, str],
        subscripts: Mapping[str, str],
        superscripts: Mapping[str, str],
        completions: tuple[CompletionCandidate, ...],
    ):
        self.symbols: Mapping[str, str] = MappingProxyType(dict(symbols))
        self.subscripts = MappingProxyType(dict(subscripts))
        self.superscripts = MappingProxyType(dict(superscripts))
        self.completions: tuple[CompletionCandidate, ...] = tuple(
            sorted(completions, key=lambda c: c.name)
        )

    def ordered_macros(self) -> list[str]:
        """名称长的优先，等长按字母序，保证结果可复现"""
        return sorted(self.symbols, key=lambda name: (-len(name), name))

    def scripts(self) -> Mapping[str, str]:
        return MappingProxyType({**self.subscripts, **self.superscripts})


def build_registry() -> NotationRegistry:
    """构建默认注册表"""
    symbol_completions = tuple(
        CompletionCandidate(
            name=name,
            description=description,
            insert_text=name,
            category="symbol",
            example=f"{name} → {glyph}",
        )
        for name, (glyph, description) in _SYMBOLS.items()
        if name != r"\sqrt"
    )
    sqrt = CompletionCandidate(
        name=r"\sqrt",
        description="Square root",
        insert_text=r"\sqrt{x}",
        category="function",
        example=r"\sqrt{2}",
    )
    return NotationRegistry(
        symbols={name: glyph for name, (glyph, _) in _SYMBOLS.items()},
        subscripts=SUBSCRIPTS,
        superscripts=SUPERSCRIPTS,
        completions=symbol_completions + (sqrt,) + _COMMANDS,
    )


DEFAULT_REGISTRY = build_registry()
