"""Live preview composition for generated projects."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from jinja2 import DictLoader, Environment, select_autoescape

from .models import FileRecord

PREVIEW_SANDBOX = ("allow-scripts", "allow-forms", "allow-same-origin")

PLACEHOLDER_DOCUMENT = (
    "<html><body><p style='font-family: ui-sans-serif, system-ui'>No preview yet</p></body></html>"
)

DOCUMENT_TEMPLATE = """<!doctype html>
<html>
<head>
<meta charset="utf-8"/>
<meta name="viewport" content="width=device-width, initial-scale=1"/>
<style>{{ css | safe }}</style>
</head>
<body>
<div id="app"></div>
<script>{{ js | safe }}</script>
</body>
</html>
"""

HOST_TEMPLATE = """<!doctype html>
<html>
<head>
<meta charset="utf-8"/>
<title>{{ title }}</title>
<style>html, body, iframe { margin: 0; border: 0; width: 100%; height: 100%; }</style>
</head>
<body>
<iframe title="{{ title }}" sandbox="{{ sandbox }}" srcdoc="{{ source }}"></iframe>
</body>
</html>
"""


def _env() -> Environment:
    return Environment(
        loader=DictLoader({"document.html.j2": DOCUMENT_TEMPLATE, "host.html": HOST_TEMPLATE}),
        autoescape=select_autoescape(["html", "xml"]),
    )


def find_entry_document(files: Iterable[FileRecord]) -> Optional[FileRecord]:
    for record in files:
        if record.path.lower().endswith("index.html"):
            return record
    return None


def _joined(files: Sequence[FileRecord], suffix: str) -> str:
    return "\n\n".join(record.content for record in files if record.path.endswith(suffix))


def compose(files: Sequence[FileRecord]) -> str:
    """Build a single renderable document from ``files``.

    An ``index.html`` is used verbatim. Without one, every stylesheet and
    script is inlined into a minimal page with an ``#app`` mount point. An
    empty project renders :data:`PLACEHOLDER_DOCUMENT`.
    """

    if not files:
        return PLACEHOLDER_DOCUMENT
    entry = find_entry_document(files)
    if entry is not None:
        return entry.content
    tpl = _env().get_template("document.html.j2")
    return tpl.render(css=_joined(files, ".css"), js=_joined(files, ".js"))


def sandbox_host_document(source: str, title: str = "App Preview") -> str:
    """Wrap a composed document in a sandboxed iframe for viewing in a browser."""

    tpl = _env().get_template("host.html")
    # autoescape handles the srcdoc attribute quoting
    return tpl.render(title=title, sandbox=" ".join(PREVIEW_SANDBOX), source=source)

