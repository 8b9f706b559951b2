from __future__ import annotations

from bs4 import BeautifulSoup

from devforge.core.models import FileRecord
from devforge.core.preview import PLACEHOLDER_DOCUMENT, PREVIEW_SANDBOX, compose, sandbox_host_document


def test_index_html_is_used_verbatim() -> None:
    files = [
        FileRecord(path="a/index.html", content="<h1>X</h1>"),
        FileRecord(path="b.css", content="body{color:red}"),
    ]
    assert compose(files) == "<h1>X</h1>"


def test_first_index_html_wins_case_insensitively() -> None:
    files = [
        FileRecord(path="main.js", content="go()"),
        FileRecord(path="site/INDEX.HTML", content="first"),
        FileRecord(path="index.html", content="second"),
    ]
    assert compose(files) == "first"


def test_synthesized_document_inlines_styles_and_scripts() -> None:
    files = [
        FileRecord(path="s.css", content="body{color:red}"),
        FileRecord(path="m.js", content="console.log(1)"),
        FileRecord(path="t.css", content="p{margin:0}"),
        FileRecord(path="notes.md", content="# ignored"),
    ]
    document = compose(files)
    assert '<meta charset="utf-8"/>' in document
    assert 'name="viewport"' in document
    assert '<div id="app"></div>' in document
    assert "<style>body{color:red}\n\np{margin:0}</style>" in document
    assert "<script>console.log(1)</script>" in document
    assert document.index('<div id="app">') < document.index("<script>")
    assert "# ignored" not in document


def test_content_is_not_html_escaped() -> None:
    document = compose([FileRecord(path="m.js", content="if (a < b && c > d) { x = '1'; }")])
    assert "if (a < b && c > d) { x = '1'; }" in document


def test_empty_project_renders_placeholder() -> None:
    assert compose([]) == PLACEHOLDER_DOCUMENT
    assert "No preview yet" in compose([])


def test_sandbox_host_document_escapes_source_into_srcdoc() -> None:
    source = '<p class="x">Hi & bye</p>'
    host = sandbox_host_document(source)
    assert f'sandbox="{" ".join(PREVIEW_SANDBOX)}"' in host
    assert "allow-top-navigation" not in host
    assert "allow-popups" not in host
    iframe = BeautifulSoup(host, "html.parser").find("iframe")
    assert iframe is not None
    assert iframe["srcdoc"] == source
    assert "<p class=" not in host
