"""测试编辑控制器状态机"""

import pytest

from oathkeeper.editor import EditController, EditorMode
from oathkeeper.errors import DocumentFormatError
from oathkeeper.models import BlockType

from conftest import make_document


@pytest.fixture
def controller(config):
    return EditController(config=config)


def test_starts_browsing_blank_template(controller):
    assert controller.mode == EditorMode.BROWSING
    assert controller.document.template == "Blank Document"
    assert len(controller.store) == 2


def test_begin_edit_loads_buffer(controller):
    controller.begin_edit()
    assert controller.editing
    assert controller.buffer == "# Document Title"


def test_create_block_enters_editing(controller):
    index = controller.create_block()
    assert index == 2
    assert controller.current_index == 2
    assert controller.mode == EditorMode.EDITING
    assert controller.store.current.type == BlockType.TEXT
    assert controller.buffer == ""


def test_confirm_exit_commits_and_renders(controller):
    controller.create_block()
    controller.set_buffer("x^2 + \\alpha ")
    assert controller.confirm_exit() is True
    block = controller.store.current
    assert block.content == "x^2 + \\alpha "
    assert block.rendered == "x² + α "
    assert block.rendered_at is not None
    assert controller.modified
    assert controller.mode == EditorMode.BROWSING


def test_confirm_exit_with_completion_open_is_swallowed(controller):
    controller.create_block()
    controller.type_text("\\al")
    assert controller.completion_open
    assert controller.confirm_exit() is False
    assert controller.mode == EditorMode.EDITING
    assert controller.buffer == "\\al"
    assert controller.store.current.content == ""
    assert controller.confirm_exit() is True
    assert controller.store.current.content == "\\al"


def test_accept_completion_replaces_trigger(controller):
    controller.create_block()
    controller.type_text("x = \\alp")
    assert [c.name for c in controller.candidates] == ["\\alpha"]
    assert controller.accept_completion() == "x = \\alpha"
    assert controller.mode == EditorMode.EDITING


def test_accept_function_completion(controller):
    controller.create_block()
    controller.type_text("half is \\fra")
    controller.accept_completion()
    assert controller.buffer == "half is \\frac{numerator}{denominator}"


def test_dismiss_keeps_buffer(controller):
    controller.create_block()
    controller.type_text("\\be")
    controller.dismiss_completion()
    assert controller.buffer == "\\be"
    assert not controller.completion_open


def test_candidate_selection_clamps(controller):
    controller.create_block()
    controller.type_text("\\in")
    assert len(controller.candidates) == 3
    for _ in range(5):
        controller.next_candidate()
    assert controller.selected_candidate == 2
    for _ in range(5):
        controller.previous_candidate()
    assert controller.selected_candidate == 0
    assert controller.buffer == "\\in"


def test_typing_whitespace_closes_completion(controller):
    controller.create_block()
    controller.type_text("\\al")
    controller.type_text(" ")
    assert controller.mode == EditorMode.EDITING


def test_backspace_reopens_completion(controller):
    controller.create_block()
    controller.type_text("\\al ")
    controller.backspace()
    assert controller.completion_open


def test_browsing_operations_rejected_while_editing(controller):
    controller.begin_edit()
    with pytest.raises(RuntimeError):
        controller.move(1)
    with pytest.raises(RuntimeError):
        controller.delete_block()


def test_editing_operations_rejected_while_browsing(controller):
    with pytest.raises(RuntimeError):
        controller.set_buffer("x")
    with pytest.raises(RuntimeError):
        controller.accept_completion()


def test_diagnostics_kept_after_exit(controller):
    controller.create_block()
    controller.set_buffer("\\textbf{bold")
    controller.confirm_exit()
    assert len(controller.diagnostics) == 1
    assert controller.diagnostics[0].column == 12


def test_delete_sole_block_is_reported_noop(config):
    controller = EditController(make_document((BlockType.TEXT, "only")), config=config)
    assert controller.delete_block() is False
    assert len(controller.store) == 1


def test_toggle_numbering_only_for_headings(controller):
    assert controller.toggle_numbering() is True
    controller.move(1)
    with pytest.raises(ValueError):
        controller.toggle_numbering()


def test_set_language_only_for_code(controller):
    with pytest.raises(ValueError):
        controller.set_language("python")
    controller.convert_block(BlockType.CODE)
    controller.set_language(" python ")
    assert controller.store.current.language == "python"
    assert controller.store.current.content == "# Document Title"


def test_preview_uses_buffer_for_block_being_edited(controller):
    controller.move(1)
    controller.begin_edit()
    controller.set_buffer("x^2")
    results = controller.preview()
    assert results[0].unicode == "Document Title"
    assert results[1].unicode == "x²"


def test_save_defaults_to_smart_name(controller, tmp_path):
    path = controller.save()
    assert path == tmp_path / "document.oath"
    assert path.exists()
    assert not controller.modified


def test_save_load_round_trip(controller, config, tmp_path):
    controller.create_block()
    controller.set_buffer("$E = mc^2$")
    controller.confirm_exit()
    path = controller.save(tmp_path / "physics.oath")

    reloaded = EditController(config=config)
    reloaded.load(path)
    assert [(b.id, b.type, b.content) for b in reloaded.store] == [
        (b.id, b.type, b.content) for b in controller.store
    ]
    assert reloaded.file_path == path


def test_failed_load_leaves_state_untouched(controller, tmp_path):
    bad = tmp_path / "broken.oath"
    bad.write_text("content: [", encoding="utf-8")
    document = controller.document
    with pytest.raises(DocumentFormatError):
        controller.load(bad)
    assert controller.document is document
    assert controller.file_path is None


def test_new_document_from_template(controller):
    from oathkeeper.config import get_template

    controller.new_document(get_template("resume"))
    assert controller.document.template == "Resume"
    assert controller.suggested_filename() == "your-name"
