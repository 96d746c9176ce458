"""测试块存储：顺序、id 与索引"""

import pytest

from oathkeeper.editor import BlockStore
from oathkeeper.models import BlockType

from conftest import make_document


@pytest.fixture
def store():
    return BlockStore(make_document(
        (BlockType.HEADING, "# Title"),
        (BlockType.TEXT, "one"),
        (BlockType.TEXT, "two"),
    ))


def _ids(store):
    return [b.id for b in store]


def test_append_becomes_current(store):
    index = store.append(store.new_block(BlockType.MATH, "$x$"))
    assert index == 3
    assert store.current_index == 3
    assert store.current.type == BlockType.MATH


def test_ids_stay_unique_after_delete_then_append(store):
    store.delete_at(1)
    store.append(store.new_block())
    store.append(store.new_block())
    ids = _ids(store)
    assert len(ids) == len(set(ids))
    assert "2" not in ids  # 删除过的 id 不会复用


def test_counter_seeded_past_existing_ids():
    store = BlockStore(make_document((BlockType.TEXT, "a")))
    store.document.blocks[0].id = "41"
    store = BlockStore(store.document)
    assert store.new_block().id == "42"


def test_deleting_sole_block_is_rejected():
    store = BlockStore(make_document((BlockType.TEXT, "only")))
    assert store.delete_at(0) is False
    assert len(store) == 1
    assert store.get(0).content == "only"


def test_delete_before_current_shifts_pointer(store):
    store.select(2)
    assert store.delete_at(0) is True
    assert store.current_index == 1
    assert store.current.content == "two"


def test_delete_last_clamps_pointer(store):
    store.select(2)
    store.delete_at(2)
    assert store.current_index == 1


def test_insert_at_end_and_middle(store):
    store.insert_at(3, store.new_block(BlockType.QUOTE, "end"))
    store.insert_at(1, store.new_block(BlockType.QUOTE, "middle"))
    assert [b.content for b in store] == ["# Title", "middle", "one", "two", "end"]
    assert store.current_index == 1


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_out_of_range_mutations_raise(store, index):
    with pytest.raises(IndexError):
        store.set_content(index, "x")
    with pytest.raises(IndexError):
        store.delete_at(index)
    with pytest.raises(IndexError):
        store.convert_type(index, BlockType.CODE)


def test_insert_past_end_raises(store):
    with pytest.raises(IndexError):
        store.insert_at(5, store.new_block())


def test_convert_preserves_content(store):
    store.convert_type(1, BlockType.CODE)
    block = store.get(1)
    assert block.type == BlockType.CODE
    assert block.content == "one"


def test_navigation_clamps(store):
    assert store.move(-5) == 0
    assert store.move(10) == 2
    assert store.select(-3) == 0
