from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import Settings, session_path
from .core.models import group_by_directory
from .core.storage import SessionStore
from .core.store import ProjectStore
from .errors import ValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="devforge")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Generate a project from a prompt.")
    gen.add_argument("prompt")

    exp = sub.add_parser("explain", help="Explain a piece of code.")
    exp.add_argument("source", help="File to explain, or '-' for stdin.")

    edit = sub.add_parser("edit", help="Edit or debug a piece of code.")
    edit.add_argument("source", help="File to edit, or '-' for stdin.")
    edit.add_argument("-i", "--instruction", required=True, help="What should change.")

    clone = sub.add_parser("clone", help="Clone a website into index.html/styles.css/main.js.")
    clone.add_argument("url")

    sub.add_parser("files", help="List the files of the current session.")
    show = sub.add_parser("show", help="Print one file of the current session.")
    show.add_argument("path")

    preview = sub.add_parser("preview", help="Write the composed preview document.")
    preview.add_argument("--out", default=None, help="Output file (default: stdout)")
    preview.add_argument("--sandboxed", action="store_true", help="Wrap the document in a sandboxed iframe host page.")

    export = sub.add_parser("export", help="Export the session as a ZIP archive.")
    export.add_argument("--name", default=None, help="Archive name without extension.")
    export.add_argument("--out", default=".", help="Target folder (default: current folder)")

    sub.add_parser("clear", help="Forget the current session.")

    sub.add_parser("gui", help="Launch the desktop app.")
    return parser


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _run_action(store: ProjectStore, settings: Settings, action: str, **payload: str) -> int:
    from .backend import transport_from_settings
    from .gateway import ActionGateway

    try:
        transport = transport_from_settings(settings)
    except ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    gateway = ActionGateway(transport, timeout=settings.request_timeout)
    result = gateway.dispatch(action, **payload)
    if not result.ok or result.delta is None:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    store.apply(result.delta)
    for record in result.delta.files:
        print(record.path)
    if result.delta.summary:
        print(f"\n{result.delta.summary}")
    for warning in result.delta.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    from .log import configure_logging

    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.cmd == "gui":
        from .main import main as gui_main

        return int(gui_main())

    settings = Settings()
    store = ProjectStore(SessionStore(session_path()))

    if args.cmd == "generate":
        return _run_action(store, settings, "generate", prompt=args.prompt)
    if args.cmd == "explain":
        return _run_action(store, settings, "explain", code=_read_source(args.source))
    if args.cmd == "edit":
        return _run_action(store, settings, "edit", code=_read_source(args.source), instruction=args.instruction)
    if args.cmd == "clone":
        return _run_action(store, settings, "clone", url=args.url)

    if args.cmd == "files":
        for directory, paths in group_by_directory(store.files).items():
            print(directory)
            for path in paths:
                print(f"  {path}")
        return 0

    if args.cmd == "show":
        record = store.get(args.path)
        if record is None:
            print(f"error: no such file: {args.path}", file=sys.stderr)
            return 1
        sys.stdout.write(record.content)
        return 0

    if args.cmd == "preview":
        from .core.preview import compose, sandbox_host_document

        document = compose(store.files)
        if args.sandboxed:
            document = sandbox_host_document(document)
        if args.out:
            Path(args.out).write_text(document, encoding="utf-8")
            print(args.out)
        else:
            sys.stdout.write(document)
        return 0

    if args.cmd == "export":
        from .core.export import export_archive

        archive = export_archive(store.files, args.name or settings.get("project_name"))
        print(archive.write_to(args.out))
        return 0

    if args.cmd == "clear":
        store.clear()
        return 0

    raise SystemExit(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
