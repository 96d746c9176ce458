"""测试导出格式、智能文件名与 PDF 工具链"""

import subprocess

import pytest

from oathkeeper.config import AppConfig
from oathkeeper.errors import ToolchainError
from oathkeeper.models import BlockType, ContentBlock, Document
from oathkeeper.render import ExportFormat, Exporter, LatexRenderer, NotationRenderer, smart_filename
from oathkeeper.render.html import emphasis_to_html
from oathkeeper.render.latex import convert_math_block

from conftest import make_document


@pytest.fixture
def exporter(config):
    return Exporter(NotationRenderer(window_seconds=0), config)


def _block(block_type, content, **extra):
    return ContentBlock(id="1", type=block_type, content=content, **extra)


# ── 智能文件名 ──────────────────────────────────────────────


def test_smart_filename_from_first_heading():
    document = make_document(
        (BlockType.TEXT, "intro"),
        (BlockType.HEADING, "# Quarterly Report"),
        (BlockType.HEADING, "## Later"),
    )
    assert smart_filename(document) == "quarterly-report"


def test_smart_filename_defaults():
    assert smart_filename(Document()) == "document"


def test_smart_filename_skips_placeholder_and_empty_titles():
    document = make_document(
        (BlockType.HEADING, "# Document Title"),
        (BlockType.HEADING, "# ???"),
    )
    assert smart_filename(document) == "document"
    assert smart_filename(document, "notes/lab-notes.oath") == "lab-notes"


def test_smart_filename_strips_punctuation():
    document = make_document((BlockType.HEADING, "## C++ & Rust: A Comparison!"))
    assert smart_filename(document) == "c--rust-a-comparison"


# ── LaTeX 源码 ──────────────────────────────────────────────


@pytest.mark.parametrize(
    "content, numbered, expected",
    [
        ("# Intro", True, "\\section{Intro}\n"),
        ("## Methods", False, "\\subsection*{Methods}\n"),
        ("### Detail", False, "\\subsubsection*{Detail}\n"),
        ("#### Deep", False, "\\paragraph*{Deep}\n"),
        ("Plain", False, "\\section*{Plain}\n"),
    ],
)
def test_latex_headings(content, numbered, expected):
    block = _block(BlockType.HEADING, content, numbered=numbered)
    assert LatexRenderer().render_block(block) == expected


def test_latex_list_keeps_only_marked_lines():
    block = _block(BlockType.LIST, "- a\n* b\n+ c\nplain line")
    assert LatexRenderer().render_block(block) == (
        "\\begin{itemize}\n\\item a\n\\item b\n\\item c\n\\end{itemize}\n"
    )


def test_latex_empty_list_is_a_comment():
    assert LatexRenderer().render_block(_block(BlockType.LIST, "nothing")) == "% empty list\n"


def test_latex_code_defaults_to_text_language():
    output = LatexRenderer().render_block(_block(BlockType.CODE, "x = 1"))
    assert output.startswith("\\begin{lstlisting}[language=text]\nx = 1\n")


def test_latex_display_and_inline_math():
    output = convert_math_block("$$E = mc^2$$ where $m$ is mass")
    assert "\\begin{equation*}\nE = mc^2\n\\end{equation*}" in output
    assert "\\(m\\)" in output


def test_latex_unterminated_math_passes_through():
    assert "$x + 1" in convert_math_block("$x + 1")


def test_latex_unterminated_display_math_passes_through():
    output = convert_math_block("$$x + 1")
    assert "$$x + 1" in output
    assert "\\(\\)" not in output
    assert "$$a$ tail" in convert_math_block("$$a$ tail")


def test_latex_bare_math_becomes_display():
    assert "\\begin{equation*}\nx^2\n\\end{equation*}" in convert_math_block("x^2")


def test_latex_text_inline_math_emphasis_and_links():
    block = _block(BlockType.TEXT, "**bold** and *it* with $a*b*c$ see https://example.org and \\$5")
    output = LatexRenderer().render_block(block)
    assert "\\textbf{bold}" in output
    assert "\\textit{it}" in output
    assert "\\(a*b*c\\)" in output
    assert "\\url{https://example.org}" in output
    assert "\\$5" in output


def test_latex_separator_between_blocks_only():
    document = make_document((BlockType.HEADING, "# A"), (BlockType.TEXT, "b"))
    output = LatexRenderer().render(document)
    assert output.count("\\vspace{0.8em}") == 1
    assert output.startswith("\\documentclass{article}")
    assert output.rstrip().endswith("\\end{document}")


# ── HTML / Unicode / Markdown ──────────────────────────────────────────────


@pytest.mark.parametrize(
    "text, expected",
    [
        ("a **b** *c*", "a <strong>b</strong> <em>c</em>"),
        ("odd *marker", "odd *marker"),
        ("**x *y* z**", "<strong>x <em>y</em> z</strong>"),
        ("<b> & co", "&lt;b&gt; &amp; co"),
    ],
)
def test_html_emphasis(text, expected):
    assert emphasis_to_html(text) == expected


def test_html_page(exporter, sample_document):
    html = exporter.render(sample_document, ExportFormat.HTML)
    assert "<title>Quarterly Report</title>" in html
    assert "<h1>Quarterly Report</h1>" in html
    assert '<pre><code class="language-python">print(&#39;hi&#39;)</code></pre>' in html
    assert "<li>first</li>" in html
    assert "MathJax" in html


def test_unicode_export_strips_delimiters(exporter, tmp_path):
    document = make_document(
        (BlockType.HEADING, "# Results"),
        (BlockType.TEXT, "The area is $x^2$"),
        (BlockType.MATH, r"$\alpha + \beta$"),
    )
    path = exporter.export(document, ExportFormat.UNICODE)
    assert path == tmp_path / "results.txt"
    text = path.read_text(encoding="utf-8")
    assert "²" in text
    assert "$" not in text
    assert "α + β" in text
    assert text.startswith("Results\n\n")


def test_markdown_export(exporter, tmp_path):
    document = make_document(
        (BlockType.MATH, "x^2"),
        (BlockType.RAW_LATEX, "\\newpage"),
        (BlockType.QUOTE, "line one\nline two"),
        (BlockType.CODE, "ls", {"language": "bash"}),
    )
    path = exporter.export(document, ExportFormat.MARKDOWN, name="notes")
    assert path == tmp_path / "notes.md"
    text = path.read_text(encoding="utf-8")
    assert "$$x^2$$" in text
    assert "```latex\n\\newpage\n```" in text
    assert "> line one\n> line two" in text
    assert "```bash\nls\n```" in text


def test_export_does_not_mutate_document(exporter, sample_document):
    before = sample_document.model_dump()
    for fmt in (ExportFormat.LATEX, ExportFormat.HTML, ExportFormat.UNICODE, ExportFormat.MARKDOWN):
        exporter.export(sample_document, fmt)
    assert sample_document.model_dump() == before


# ── PDF 工具链 ──────────────────────────────────────────────


def test_pdf_without_toolchain_keeps_tex(exporter, sample_document, tmp_path, monkeypatch):
    monkeypatch.setattr("oathkeeper.render.exporter.shutil.which", lambda name: None)
    with pytest.raises(ToolchainError) as excinfo:
        exporter.export(sample_document, ExportFormat.PDF)
    tex = tmp_path / "quarterly-report.tex"
    assert excinfo.value.intermediate == tex
    assert tex.exists()
    assert str(tex) in str(excinfo.value)


def _fake_run(returncode=0, stdout=""):
    calls = []

    def run(cmd, capture_output, text, cwd, timeout):
        calls.append((cmd, cwd, timeout))
        base = cwd / cmd[-1].removesuffix(".tex")
        for suffix in (".aux", ".log", ".out"):
            base.with_suffix(suffix).write_text("aux", encoding="utf-8")
        if returncode == 0:
            base.with_suffix(".pdf").write_bytes(b"%PDF-1.5")
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

    return run, calls


def test_pdf_success_cleans_auxiliary_files(config, sample_document, tmp_path, monkeypatch):
    config = config.model_copy(update={"typeset_timeout": 9.0})
    exporter = Exporter(NotationRenderer(window_seconds=0), config)
    run, calls = _fake_run()
    monkeypatch.setattr("oathkeeper.render.exporter.shutil.which", lambda name: "/usr/bin/pdflatex")
    monkeypatch.setattr("oathkeeper.render.exporter.subprocess.run", run)

    path = exporter.export(sample_document, ExportFormat.PDF, name="report")

    assert path == tmp_path / "report.pdf"
    assert path.exists()
    assert (tmp_path / "report.tex").exists()
    for suffix in (".aux", ".log", ".out"):
        assert not (tmp_path / f"report{suffix}").exists()
    cmd, cwd, timeout = calls[0]
    assert cmd == ["/usr/bin/pdflatex", "-interaction=nonstopmode", "report.tex"]
    assert cwd == tmp_path
    assert timeout == 9.0


def test_pdf_failure_keeps_log(exporter, sample_document, tmp_path, monkeypatch):
    run, _ = _fake_run(returncode=1, stdout="! Undefined control sequence.")
    monkeypatch.setattr("oathkeeper.render.exporter.shutil.which", lambda name: "/usr/bin/pdflatex")
    monkeypatch.setattr("oathkeeper.render.exporter.subprocess.run", run)

    with pytest.raises(ToolchainError) as excinfo:
        exporter.export(sample_document, ExportFormat.PDF, name="report")

    assert "Undefined control sequence" in str(excinfo.value)
    assert (tmp_path / "report.log").exists()
    assert not (tmp_path / "report.aux").exists()
    assert (tmp_path / "report.tex").exists()


def test_pdf_timeout_is_recoverable(exporter, sample_document, monkeypatch):
    def run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr("oathkeeper.render.exporter.shutil.which", lambda name: "/usr/bin/pdflatex")
    monkeypatch.setattr("oathkeeper.render.exporter.subprocess.run", run)

    with pytest.raises(ToolchainError) as excinfo:
        exporter.export(sample_document, ExportFormat.PDF)
    assert excinfo.value.intermediate.suffix == ".tex"


def test_custom_program_name_used(tmp_path, sample_document, monkeypatch):
    seen = []
    monkeypatch.setattr(
        "oathkeeper.render.exporter.shutil.which", lambda name: seen.append(name) or None
    )
    exporter = Exporter(
        NotationRenderer(window_seconds=0),
        AppConfig(documents_dir=str(tmp_path), typeset_program="xelatex"),
    )
    with pytest.raises(ToolchainError):
        exporter.export(sample_document, ExportFormat.PDF)
    assert seen == ["xelatex"]
