"""测试补全触发词与候选查找"""

import pytest

from oathkeeper.config import DEFAULT_REGISTRY
from oathkeeper.editor import CompletionEngine, trigger_token


@pytest.mark.parametrize(
    "content, token",
    [
        (r"x = \al", r"\al"),
        (r"\alpha", r"\alpha"),
        ("\\al ", None),
        ("", None),
        ("\\", None),
        ("plain", None),
    ],
)
def test_trigger_token(content, token):
    assert trigger_token(content) == token


def test_prefix_candidates_sorted_by_name():
    engine = CompletionEngine()
    names = [c.name for c in engine.complete(r"sum \in")]
    assert names == [r"\in", r"\infty", r"\int"]


def test_function_candidate_inserts_template():
    engine = CompletionEngine()
    (frac,) = engine.complete(r"\fr")
    assert frac.insert_text == r"\frac{numerator}{denominator}"
    assert frac.category == "function"


def test_sqrt_listed_once_as_function():
    engine = CompletionEngine()
    sqrt = [c for c in engine.complete(r"\sq") if c.name == r"\sqrt"]
    assert len(sqrt) == 1
    assert sqrt[0].insert_text == r"\sqrt{x}"


def test_no_match_returns_empty():
    assert CompletionEngine().complete(r"\zzz") == []


def test_every_macro_is_completable():
    names = {c.name for c in DEFAULT_REGISTRY.completions}
    assert set(DEFAULT_REGISTRY.symbols) <= names


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_REGISTRY.symbols[r"\new"] = "?"
