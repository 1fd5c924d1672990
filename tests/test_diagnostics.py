import pytest

from html_script_ls.config import DiagnosticSettings
from html_script_ls.diagnostics import DiagnosticProvider
from html_script_ls.indent import AbsoluteIndent
from html_script_ls.messages import BAD_INDENT_CODE, BAD_INDENT_MESSAGE, PARSE_ERROR_CODE

SINGLE = "<!DOCTYPE html>\n<html><head></head><body>\n<script>console.log(1)</script>\n</body></html>\n"


def _provider(analyzer, **settings):
    return DiagnosticProvider(analyzer, DiagnosticSettings(**settings))


def test_block_diagnostic_maps_to_document_position(console_analyzer):
    diags = _provider(console_analyzer).analyze(SINGLE, "index.html")

    assert console_analyzer.calls == ["console.log(1)"]
    [diag] = diags
    assert (diag.line, diag.column) == (3, 9)
    assert (diag.end_line, diag.end_column) == (3, 16)
    assert diag.message == "Unexpected console statement."
    assert diag.source == "fake-lint"
    assert diag.code == "no-console"
    assert not diag.fatal


def test_diagnostics_from_all_blocks_are_sorted(console_analyzer):
    source = (
        "<html>\n"
        "<script>\n"
        "    let a = 1;\n"
        "    console.log(a);\n"
        "</script>\n"
        "<p>console.log in text is ignored</p>\n"
        "<script type=\"text/template\">console.log(2)</script>\n"
        "<script>\n"
        "  console.warn(1); console.error(2);\n"
        "</script>\n"
        "</html>\n"
    )
    diags = _provider(console_analyzer).analyze(source, "page.html")

    assert len(console_analyzer.calls) == 2
    assert [(d.line, d.column) for d in diags] == [(4, 5), (9, 3), (9, 20)]


def test_crlf_and_lf_documents_report_identical_positions(console_analyzer):
    lf = "<html>\n<body>\n  <script>\n    const x = 1;\n      console.log(x);\n  </script>\n</body>\n"
    crlf = lf.replace("\n", "\r\n")
    provider = _provider(console_analyzer)

    lf_diags = provider.analyze(lf, "a.html")
    crlf_diags = provider.analyze(crlf, "a.html")

    assert [(d.line, d.column, d.end_line, d.end_column) for d in lf_diags] == [(5, 7, 5, 14)]
    assert [(d.line, d.column, d.end_line, d.end_column) for d in crlf_diags] == [(5, 7, 5, 14)]


def test_report_bad_indent_flags_lines_left_of_baseline(console_analyzer):
    source = "<script>\n  a();\n b();\n</script>\n"
    diags = _provider(console_analyzer, indent=AbsoluteIndent(0), report_bad_indent=True).analyze(source)

    assert console_analyzer.calls == ["\na();\nb();\n"]
    [diag] = diags
    assert diag.message == BAD_INDENT_MESSAGE
    assert diag.code == BAD_INDENT_CODE
    assert (diag.line, diag.column) == (3, 1)


def test_bad_indent_is_silent_unless_enabled(console_analyzer):
    source = "<script>\n  a();\n b();\n</script>\n"
    assert _provider(console_analyzer, indent=AbsoluteIndent(0)).analyze(source) == []


def test_data_indent_attribute_overrides_policy(console_analyzer):
    source = '<script data-indent="4">\nconsole.log(1);\n</script>\n'
    diags = _provider(console_analyzer).analyze(source, "page.html")

    assert console_analyzer.calls == ["\n    console.log(1);\n"]
    [diag] = diags
    assert (diag.line, diag.column) == (2, 1)


def test_xml_parse_error_is_single_fatal_diagnostic(console_analyzer):
    source = "<root><script>a < b</script></root>"
    diags = _provider(console_analyzer).analyze(source, "page.xhtml")

    assert console_analyzer.calls == []
    [diag] = diags
    assert diag.fatal
    assert diag.severity == "error"
    assert diag.code == PARSE_ERROR_CODE
    assert diag.message.startswith("Parsing error: ")
    assert (diag.line, diag.column) == (1, 17)


def test_xml_mode_setting_overrides_extension(console_analyzer):
    source = "<root><script>a < b; console.log(1)</script></root>"

    diags = _provider(console_analyzer, xml_mode=False).analyze(source, "page.xhtml")
    assert [(d.line, d.column) for d in diags] == [(1, 22)]

    fatal = _provider(console_analyzer, xml_mode=True).analyze(source, "page.html")
    assert [d.fatal for d in fatal] == [True]


def test_cdata_markers_do_not_reach_the_analyzer(console_analyzer):
    source = (
        '<html xmlns="http://www.w3.org/1999/xhtml"><body><script><![CDATA[\n'
        "console.log(1 < 2);\n"
        "]]></script></body></html>\n"
    )
    diags = _provider(console_analyzer).analyze(source, "page.xhtml")

    [code] = console_analyzer.calls
    assert "CDATA" not in code
    assert "]]>" not in code
    assert [(d.line, d.column) for d in diags] == [(2, 1)]


def test_document_without_scripts(console_analyzer):
    assert _provider(console_analyzer).analyze("<html><body><p>hi</p></body></html>", "a.html") == []
    assert console_analyzer.calls == []


def test_parse_error_does_not_leak_into_next_document(console_analyzer):
    provider = _provider(console_analyzer)

    broken = provider.analyze("<root><script>", "broken.xml")
    assert [d.fatal for d in broken] == [True]

    diags = provider.analyze(SINGLE, "index.html")
    assert [(d.line, d.column) for d in diags] == [(3, 9)]


@pytest.mark.parametrize(
    "source, expected",
    [
        pytest.param("<script>\n\tconsole.log(1);\n</script>", [(2, 2)], id="tab_indented"),
        pytest.param("<script>console.log(1)\n    console.log(2)</script>", [(1, 9), (2, 5)], id="first_line_on_tag_line"),
        pytest.param("<script></script>", [], id="empty_block"),
        pytest.param("<script src=\"app.js\"></script>\n<script>console.log(1)</script>", [(2, 9)], id="external_script_skipped"),
        pytest.param("<SCRIPT>console.log(1)</SCRIPT>", [(1, 9)], id="uppercase_tag"),
        pytest.param("<script>\n  'é'; console.log(1);\n</script>", [(2, 8)], id="non_ascii_prefix"),
    ],
)
def test_position_mapping_cases(console_analyzer, source, expected):
    diags = _provider(console_analyzer).analyze(source, "page.html")
    assert [(d.line, d.column) for d in diags] == expected


def test_unusable_data_indent_falls_back_to_settings(console_analyzer):
    source = '<script data-indent="²">\n  console.log(1)\n</script>'
    diags = _provider(console_analyzer).analyze(source, "a.html")

    assert console_analyzer.calls == ["\nconsole.log(1)\n"]
    assert [(d.line, d.column) for d in diags] == [(2, 3)]
