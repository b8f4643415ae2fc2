import io

import pytest

from ostest.reporting import (
    INDENT_STACK_MAX,
    INDENT_STEP,
    Color,
    Reporter,
)


class _TtyStream(io.StringIO):
    def isatty(self):
        return True


def _reporter(use_color=True, tty=False):
    stream = _TtyStream() if tty else io.StringIO()
    return Reporter(stream, use_color), stream


def test_msg_without_indent_is_verbatim():
    reporter, stream = _reporter()
    reporter.msg("running suite: all\n")
    assert stream.getvalue() == "running suite: all\n"


def test_indent_prefixes_every_line():
    reporter, stream = _reporter()
    reporter.indent()
    reporter.msg("first\nsecond\n")
    pad = " " * INDENT_STEP
    assert stream.getvalue() == f"{pad}first\n{pad}second\n"


def test_indent_is_emitted_lazily():
    reporter, stream = _reporter()
    reporter.msg("a\n")
    reporter.indent()
    reporter.msg("b\n")
    reporter.unindent()
    reporter.msg("c\n")
    assert stream.getvalue() == "a\n" + " " * INDENT_STEP + "b\nc\n"


def test_pieces_of_one_line_are_indented_once():
    reporter, stream = _reporter()
    reporter.indent()
    reporter.msg("name:")
    reporter.msg(" ok\n")
    assert stream.getvalue() == " " * INDENT_STEP + "name: ok\n"


def test_tab_aligns_to_current_column():
    reporter, stream = _reporter()
    reporter.indent()
    reporter.msg("description: ")
    reporter.tab()
    reporter.msg("line one\nline two\n")
    reporter.unindent()
    reporter.unindent()
    lines = stream.getvalue().splitlines()
    assert lines[0] == " " * INDENT_STEP + "description: line one"
    assert lines[1] == " " * (INDENT_STEP + len("description: ")) + "line two"
    assert reporter.indentation == 0
    assert reporter.depth == 0


def test_unindent_restores_previous_indentation():
    reporter, _ = _reporter()
    reporter.indent()
    reporter.indent()
    assert reporter.indentation == 2 * INDENT_STEP
    reporter.unindent()
    assert reporter.indentation == INDENT_STEP
    reporter.unindent()
    assert reporter.indentation == 0


def test_unindent_without_indent_raises():
    reporter, _ = _reporter()
    with pytest.raises(RuntimeError):
        reporter.unindent()


def test_indent_stack_overflow_raises():
    reporter, _ = _reporter()
    for _ in range(INDENT_STACK_MAX):
        reporter.indent()
    assert reporter.depth == INDENT_STACK_MAX
    with pytest.raises(RuntimeError):
        reporter.indent()
    with pytest.raises(RuntimeError):
        reporter.tab()


def test_indented_context_manager_restores_on_error():
    reporter, stream = _reporter()
    with pytest.raises(ValueError):
        with reporter.indented() as inner:
            assert inner is reporter
            reporter.msg("x\n")
            raise ValueError("boom")
    assert reporter.indentation == 0
    assert stream.getvalue() == " " * INDENT_STEP + "x\n"


def test_color_on_tty():
    reporter, _ = _reporter(use_color=True, tty=True)
    assert reporter.color("ok", Color.GREEN) == "\033[32;1mok\033[0m"
    assert reporter.color("*** FAILED ***", Color.RED) == (
        "\033[31;1m*** FAILED ***\033[0m"
    )


def test_color_off_when_not_tty():
    reporter, _ = _reporter(use_color=True, tty=False)
    assert reporter.color("ok", Color.GREEN) == "ok"


def test_color_off_when_disabled():
    reporter, _ = _reporter(use_color=False, tty=True)
    assert reporter.color("skipped", Color.CYAN) == "skipped"


def test_color_codes_do_not_shift_tab_column_when_plain():
    reporter, stream = _reporter()
    reporter.msg(reporter.color("abc", Color.WHITE))
    reporter.tab()
    reporter.msg("\nz\n")
    assert stream.getvalue() == "abc\n" + " " * len("abc") + "z\n"