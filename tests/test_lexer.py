"""Tests for the Dockerfile lexer."""

from dockopt.dockerfile.lexer import tokenize
from dockopt.dockerfile.models import RawLineKind


class TestContinuations:
    def test_merged_into_first_line(self):
        tokens = tokenize("RUN apt-get update && \\\n    apt-get install -y curl\nCMD sh\n")
        assert len(tokens) == 2
        assert tokens[0].text == "RUN apt-get update && apt-get install -y curl"
        assert tokens[0].line_no == 1
        assert tokens[0].end_line == 2
        assert tokens[1].line_no == 3

    def test_comment_inside_continuation_dropped(self):
        tokens = tokenize("RUN echo a \\\n# explain\n\n    b\n")
        assert len(tokens) == 1
        assert tokens[0].text == "RUN echo a b"
        assert tokens[0].end_line == 4

    def test_dangling_continuation_at_eof(self):
        tokens = tokenize("RUN echo \\")
        assert len(tokens) == 1
        assert tokens[0].text == "RUN echo"

    def test_escape_directive_changes_continuation(self):
        tokens = tokenize("# escape=`\nFROM alpine:3.19\nRUN echo a `\n    b\n")
        assert tokens[0].kind == RawLineKind.PRAGMA
        assert tokens[-1].text == "RUN echo a b"


class TestComments:
    def test_comments_and_blanks_stripped(self):
        tokens = tokenize("# a comment\n\nFROM alpine:3.19\n   # indented comment\nRUN true\n")
        assert [t.text for t in tokens] == ["FROM alpine:3.19", "RUN true"]
        assert tokens[0].line_no == 3

    def test_syntax_pragma_preserved(self):
        tokens = tokenize("# syntax=docker/dockerfile:1\nFROM alpine:3.19\n")
        assert tokens[0].kind == RawLineKind.PRAGMA
        assert tokens[0].text == "syntax=docker/dockerfile:1"
        assert tokens[1].kind == RawLineKind.INSTRUCTION

    def test_directive_after_instruction_is_a_comment(self):
        tokens = tokenize("FROM alpine:3.19\n# syntax=docker/dockerfile:1\nRUN true\n")
        assert all(t.kind == RawLineKind.INSTRUCTION for t in tokens)
        assert len(tokens) == 2


class TestHeredocs:
    def test_body_attributed_to_first_line(self):
        tokens = tokenize(
            "# syntax=docker/dockerfile:1.6\n"
            "FROM debian:12\n"
            "RUN <<EOF\n"
            "set -e\n"
            "apt-get update\n"
            "EOF\n"
            "CMD sh\n"
        )
        run = tokens[2]
        assert run.kind == RawLineKind.INSTRUCTION
        assert (run.line_no, run.end_line) == (3, 6)
        assert run.text == "RUN <<EOF\nset -e\napt-get update\nEOF"
        assert tokens[3].text == "CMD sh"
        assert tokens[3].line_no == 7

    def test_dash_form_strips_tabs(self):
        tokens = tokenize("FROM debian:12\nRUN <<-EOT\n\techo hi\n\tEOT\nCMD sh\n")
        assert [t.line_no for t in tokens] == [1, 2, 5]

    def test_comment_lines_are_body(self):
        tokens = tokenize("FROM debian:12\nRUN <<'EOF' bash\n# not a comment\nEOF\n")
        assert len(tokens) == 2
        assert "# not a comment" in tokens[1].text

    def test_two_heredocs_on_one_line(self):
        tokens = tokenize("FROM debian:12\nCOPY <<A <<B /etc/\na\nA\nb\nB\nCMD sh\n")
        assert [t.line_no for t in tokens] == [1, 2, 8]

    def test_here_string_is_not_a_heredoc(self):
        tokens = tokenize("FROM debian:12\nRUN cat <<< hello\nCMD sh\n")
        assert len(tokens) == 3

    def test_unterminated_runs_to_end(self):
        tokens = tokenize("FROM debian:12\nRUN <<EOF\necho hi\n")
        assert tokens[-1].end_line == 3


class TestMalformedInput:
    def test_unparsed_line_tagged(self):
        tokens = tokenize("FROM alpine:3.19\n= not an instruction\n")
        assert tokens[1].kind == RawLineKind.UNPARSED
        assert tokens[1].line_no == 2

    def test_never_raises(self):
        for garbage in ["", "\\", "\\\n\\\n", "[[[", "\x00\x01", "#"]:
            tokenize(garbage)

    def test_bom_and_crlf(self):
        tokens = tokenize("\ufeffFROM alpine:3.19\r\nRUN echo hi\r\n")
        assert [t.text for t in tokens] == ["FROM alpine:3.19", "RUN echo hi"]
