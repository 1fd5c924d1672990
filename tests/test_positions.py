import pytest

from html_script_ls.positions import OffsetIndex, OutOfRange, SourceDocument


def test_line_column_for_lf_text():
    index = OffsetIndex("ab\ncd\n")

    assert index.line_count == 3
    assert index.line_column(0) == (1, 1)
    assert index.line_column(2) == (1, 3)
    assert index.line_column(3) == (2, 1)
    assert index.line_column(6) == (3, 1)


def test_crlf_positions_match_lf_for_visible_characters():
    lf = "one\n  two\n\nthree"
    crlf = lf.replace("\n", "\r\n")
    lf_index, crlf_index = OffsetIndex(lf), OffsetIndex(crlf)

    lf_positions = [lf_index.line_column(i) for i, ch in enumerate(lf) if ch != "\n"]
    crlf_positions = [crlf_index.line_column(i) for i, ch in enumerate(crlf) if ch not in "\r\n"]

    assert lf_positions == crlf_positions
    assert crlf_index.line_length(1) == 3
    assert crlf_index.line_length(3) == 0


@pytest.mark.parametrize("text", ["ab\r\ncd", "x\ny\n\nz", "", "\r\n\r\n"])
def test_offset_of_inverts_line_column(text: str):
    index = OffsetIndex(text)
    for offset in range(len(text) + 1):
        if offset < len(text) and text[offset] == "\n":
            continue
        assert index.offset_of(*index.line_column(offset)) == offset


def test_offset_of_allows_column_just_past_line_end():
    index = OffsetIndex("ab\ncd")
    assert index.offset_of(1, 3) == 2
    assert index.offset_of(2, 3) == 5


@pytest.mark.parametrize(
    "line, column",
    [
        pytest.param(0, 1, id="line_zero"),
        pytest.param(3, 1, id="line_past_end"),
        pytest.param(1, 4, id="column_past_line"),
        pytest.param(2, 0, id="column_zero"),
    ],
)
def test_offset_of_out_of_range(line: int, column: int):
    index = OffsetIndex("ab\ncd")
    with pytest.raises(OutOfRange):
        index.offset_of(line, column)


@pytest.mark.parametrize("offset", [-1, 6])
def test_line_column_out_of_range(offset: int):
    with pytest.raises(OutOfRange):
        OffsetIndex("ab\ncd").line_column(offset)


def test_source_document_exposes_index():
    document = SourceDocument("<p>\n<script>x</script>")

    assert document.line_column(12) == (2, 9)
    assert document.offset_of(2, 9) == 12
    assert document.index.line_count == 2
