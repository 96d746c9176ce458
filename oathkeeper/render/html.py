"""
HTML 渲染器

生成可独立打开的 HTML 页面，数学公式交给 MathJax，代码高亮交给 highlight.js
"""

from __future__ import annotations

import re

from jinja2 import Template
from markupsafe import escape

from ..models import BlockType, ContentBlock, Document
from .latex import LIST_PREFIXES


DEFAULT_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>{{ title }}</title>
<script id="MathJax-script" async src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"></script>
<link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.8.0/styles/default.min.css">
<script src="https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.8.0/highlight.min.js"></script>
<style>
body { font-family: serif; max-width: 800px; margin: 0 auto; padding: 2rem; line-height: 1.6; }
h1, h2, h3 { color: #333; }
code { background-color: #f4f4f4; padding: 2px 4px; border-radius: 3px; }
pre { background-color: #f4f4f4; padding: 1rem; border-radius: 5px; overflow-x: auto; }
blockquote { border-left: 4px solid #ddd; margin: 0; padding-left: 1rem; font-style: italic; }
</style>
</head>
<body>
{% for fragment in fragments %}{{ fragment }}
{% endfor %}<script>hljs.highlightAll();</script>
</body>
</html>
"""

_MARKER = re.compile(r"(\*\*|\*)")
_URL = re.compile(r"(https?://[^\s<>\"]+)")
_TAGS = {"**": "strong", "*": "em"}


def _linkify(text: str) -> str:
    """转义普通文本并把裸 URL 包成链接"""
    out = []
    for i, part in enumerate(_URL.split(text)):
        if i % 2:
            url = escape(part)
            out.append(f'<a href="{url}">{url}</a>')
        else:
            out.append(str(escape(part)))
    return "".join(out)


def emphasis_to_html(text: str) -> str:
    """
    **粗体** / *斜体* → <strong> / <em>

    先切分出星号标记，再用栈配对开闭标记；配不上的标记按字面输出，
    奇数个星号不会产生未闭合的标签
    """
    tokens = _MARKER.split(text)
    stack: list[int] = []
    closes: dict[int, int] = {}
    for i, token in enumerate(tokens):
        if i % 2 == 0:
            continue
        for depth in range(len(stack) - 1, -1, -1):
            if tokens[stack[depth]] == token:
                closes[stack[depth]] = i
                del stack[depth:]
                break
        else:
            stack.append(i)

    closing = set(closes.values())
    out = []
    for i, token in enumerate(tokens):
        if i % 2 == 0:
            out.append(_linkify(token))
        elif i in closes:
            out.append(f"<{_TAGS[token]}>")
        elif i in closing:
            out.append(f"</{_TAGS[token]}>")
        else:
            out.append(token)
    return "".join(out)


class HtmlRenderer:
    """将 Document 渲染为 HTML 页面"""

    def __init__(self, template_string: str | None = None):
        self.template = Template(
            template_string or DEFAULT_HTML_TEMPLATE, keep_trailing_newline=True
        )

    def render(self, document: Document) -> str:
        headings = document.headings()
        title = headings[0].title if headings else "Document"
        return self.template.render(
            title=escape(title),
            fragments=[self.render_block(b) for b in document.blocks],
        )

    def render_block(self, block: ContentBlock) -> str:
        if block.type == BlockType.HEADING:
            level = min(block.level, 6)
            return f"<h{level}>{escape(block.title)}</h{level}>"

        if block.type == BlockType.MATH:
            return f"<p>\\[{escape(block.content.strip().strip('$'))}\\]</p>"

        if block.type == BlockType.CODE:
            language = block.language or "text"
            return (
                f'<pre><code class="language-{escape(language)}">'
                f"{escape(block.content)}</code></pre>"
            )

        if block.type == BlockType.QUOTE:
            return f"<blockquote>{emphasis_to_html(block.content)}</blockquote>"

        if block.type == BlockType.LIST:
            items = [
                f"<li>{emphasis_to_html(line.strip()[2:].strip())}</li>\n"
                for line in block.content.split("\n")
                if line.strip().startswith(LIST_PREFIXES)
            ]
            return "<ul>\n" + "".join(items) + "</ul>"

        if block.type == BlockType.RAW_LATEX:
            return f'<div class="raw-latex">\\[{escape(block.content)}\\]</div>'

        return f"<p>{emphasis_to_html(block.content)}</p>"
