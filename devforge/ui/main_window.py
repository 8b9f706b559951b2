"""Main application window for DevForge."""

from __future__ import annotations

import os
import shutil
import tempfile
import webbrowser
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PyQt6 import QtCore, QtGui, QtWidgets
from PyQt6.QtCore import QThread
from PyQt6.QtWebEngineCore import QWebEnginePage, QWebEngineSettings
from PyQt6.QtWebEngineWidgets import QWebEngineView

from ..backend import transport_from_settings
from ..config import Settings, session_path
from ..core.export import export_archive
from ..core.models import FileRecord, group_by_directory
from ..core.preview import compose, sandbox_host_document
from ..core.storage import SessionStore
from ..core.store import ProjectStore, resolve_active_path
from ..errors import ValidationError
from ..gateway import Action, ActionGateway, DispatchResult, InflightGuard
from .workers import ActionWorker

APP_TITLE = "DevForge AI"

BUSY_LABELS: Dict[Action, Tuple[str, str]] = {
    Action.GENERATE: ("Generate Code", "Generating..."),
    Action.EXPLAIN: ("Explain Code", "Explaining..."),
    Action.EDIT: ("Apply Edits", "Applying edits..."),
    Action.CLONE: ("Clone Website", "Cloning..."),
}


class SandboxedPage(QWebEnginePage):
    """Preview page: scripts and forms run, but the document cannot navigate away."""

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._allow_next_load = False
        self.loadFinished.connect(self._on_load_finished)
        settings = self.settings()
        if settings is not None:
            settings.setAttribute(QWebEngineSettings.WebAttribute.JavascriptEnabled, True)
            settings.setAttribute(QWebEngineSettings.WebAttribute.JavascriptCanOpenWindows, False)
            settings.setAttribute(QWebEngineSettings.WebAttribute.LocalContentCanAccessFileUrls, False)

    def show_document(self, source: str) -> None:
        self._allow_next_load = True
        self.setHtml(source, QtCore.QUrl("about:blank"))

    def _on_load_finished(self, _ok: bool) -> None:
        self._allow_next_load = False

    def acceptNavigationRequest(self, url, nav_type, is_main_frame):  # noqa: N802 (Qt override)
        if not is_main_frame:
            return True
        if self._allow_next_load:
            self._allow_next_load = False
            return True
        return nav_type == QWebEnginePage.NavigationType.NavigationTypeFormSubmitted

    def createWindow(self, _type):  # noqa: N802 (Qt override)
        return None


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, store: Optional[ProjectStore] = None, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.resize(1320, 840)

        self.settings = settings if settings is not None else Settings()
        self.store = store if store is not None else ProjectStore(SessionStore(session_path()))
        self.active_path: Optional[str] = None
        self.guard = InflightGuard()
        self._threads: List[QThread] = []
        self._workers: List[ActionWorker] = []
        self._action_buttons: Dict[Action, QtWidgets.QPushButton] = {}
        self._preview_tmp: Optional[str] = None

        self._debounce = QtCore.QTimer(self)
        self._debounce.setInterval(400)
        self._debounce.setSingleShot(True)
        self._debounce.timeout.connect(self._flush_editor_to_store)

        self._build_ui()
        self._build_menu()
        self._bind_events()

        self.store.subscribe(self._on_files_changed)
        self._on_files_changed(self.store.files)

    # ------------------------------------------------------------------ UI --
    def _build_ui(self) -> None:
        splitter = QtWidgets.QSplitter(self)
        splitter.setOrientation(QtCore.Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        # AI panel
        left_panel = QtWidgets.QWidget(self)
        left_layout = QtWidgets.QVBoxLayout(left_panel)
        left_layout.setContentsMargins(6, 6, 6, 6)

        self.action_tabs = QtWidgets.QTabWidget(left_panel)
        self.action_tabs.setDocumentMode(True)

        self.prompt_edit = QtWidgets.QPlainTextEdit()
        self.prompt_edit.setPlaceholderText("Build a to-do list app with filters and local storage...")
        self.action_tabs.addTab(
            self._action_page(Action.GENERATE, [("What should I build?", self.prompt_edit)]), "Generate Code"
        )

        self.explain_edit = QtWidgets.QPlainTextEdit()
        self.explain_edit.setPlaceholderText("// Paste code here")
        self.action_tabs.addTab(
            self._action_page(Action.EXPLAIN, [("Paste code to explain", self.explain_edit)]), "Explain Code"
        )

        self.edit_code_edit = QtWidgets.QPlainTextEdit()
        self.edit_code_edit.setPlaceholderText("// Paste code here")
        self.instruction_edit = QtWidgets.QPlainTextEdit()
        self.instruction_edit.setPlaceholderText("Fix the bug where... Optimize by...")
        self.action_tabs.addTab(
            self._action_page(
                Action.EDIT,
                [("Paste code to edit/debug", self.edit_code_edit), ("What should change?", self.instruction_edit)],
            ),
            "Edit / Debug",
        )

        self.url_edit = QtWidgets.QLineEdit()
        self.url_edit.setPlaceholderText("https://example.com")
        self.action_tabs.addTab(self._action_page(Action.CLONE, [("Website URL", self.url_edit)]), "Clone Website")

        self.output = QtWidgets.QPlainTextEdit(left_panel)
        self.output.setReadOnly(True)
        self.output.setPlaceholderText("Summaries and warnings from the assistant appear here.")

        left_layout.addWidget(self.action_tabs, 3)
        left_layout.addWidget(QtWidgets.QLabel("Output", left_panel))
        left_layout.addWidget(self.output, 1)

        # Files / editor / preview
        self.view_tabs = QtWidgets.QTabWidget(self)
        self.view_tabs.setDocumentMode(True)

        files_panel = QtWidgets.QWidget(self.view_tabs)
        files_layout = QtWidgets.QVBoxLayout(files_panel)
        self.file_tree = QtWidgets.QTreeWidget(files_panel)
        self.file_tree.setHeaderHidden(True)
        self.empty_label = QtWidgets.QLabel("No files yet. Generate code to see files here.", files_panel)
        self.btn_download = QtWidgets.QPushButton("Download ZIP", files_panel)
        files_layout.addWidget(self.empty_label)
        files_layout.addWidget(self.file_tree, 1)
        files_layout.addWidget(self.btn_download)

        self.editor = QtWidgets.QPlainTextEdit(self.view_tabs)
        font = QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.SystemFont.FixedFont)
        self.editor.setFont(font)
        self.editor.setLineWrapMode(QtWidgets.QPlainTextEdit.LineWrapMode.WidgetWidth)

        self.preview = QWebEngineView(self.view_tabs)
        self.preview_page = SandboxedPage(self.preview)
        self.preview.setPage(self.preview_page)

        self.view_tabs.addTab(files_panel, "Files")
        self.view_tabs.addTab(self.editor, "Editor")
        self.view_tabs.addTab(self.preview, "Preview")

        splitter.addWidget(left_panel)
        splitter.addWidget(self.view_tabs)
        splitter.setSizes([520, 800])

        self.status = self.statusBar()

    def _action_page(self, action: Action, fields: List[Tuple[str, QtWidgets.QWidget]]) -> QtWidgets.QWidget:
        page = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(page)
        for label, widget in fields:
            layout.addWidget(QtWidgets.QLabel(label, page))
            layout.addWidget(widget, 1)
        button = QtWidgets.QPushButton(BUSY_LABELS[action][0], page)
        button.clicked.connect(lambda checked=False, a=action: self.run_action(a))
        layout.addWidget(button)
        self._action_buttons[action] = button
        return page

    def _build_menu(self) -> None:
        bar = self.menuBar()
        if bar is None:
            bar = QtWidgets.QMenuBar(self)
            self.setMenuBar(bar)

        file_menu = bar.addMenu("&File")
        self.act_download = QtGui.QAction("Download ZIP…", self)
        self.act_open_browser = QtGui.QAction("Open Preview in Browser", self)
        self.act_clear = QtGui.QAction("Clear Session", self)
        self.act_quit = QtGui.QAction("Quit", self)
        if file_menu is not None:
            file_menu.addActions([self.act_download, self.act_open_browser])
            file_menu.addSeparator()
            file_menu.addAction(self.act_clear)
            file_menu.addSeparator()
            file_menu.addAction(self.act_quit)

        help_menu = bar.addMenu("&Help")
        self.act_about = QtGui.QAction("About", self)
        if help_menu is not None:
            help_menu.addAction(self.act_about)

    def _bind_events(self) -> None:
        self.file_tree.itemClicked.connect(self._on_tree_item_clicked)
        self.editor.textChanged.connect(self._on_editor_changed)
        self.btn_download.clicked.connect(self.download_zip)

        self.act_download.triggered.connect(self.download_zip)
        self.act_open_browser.triggered.connect(self.open_preview_in_browser)
        self.act_clear.triggered.connect(self.clear_session)
        self.act_quit.triggered.connect(self.close)
        self.act_about.triggered.connect(self.show_about)

    # ------------------------------------------------------------ Actions --
    def _payload_for(self, action: Action) -> dict:
        if action is Action.GENERATE:
            return {"prompt": self.prompt_edit.toPlainText()}
        if action is Action.EXPLAIN:
            return {"code": self.explain_edit.toPlainText()}
        if action is Action.EDIT:
            return {"code": self.edit_code_edit.toPlainText(), "instruction": self.instruction_edit.toPlainText()}
        return {"url": self.url_edit.text()}

    def _gateway(self) -> ActionGateway:
        transport = transport_from_settings(self.settings)
        return ActionGateway(transport, timeout=self.settings.request_timeout)

    def run_action(self, action: Action) -> None:
        if not self.guard.acquire(action):
            return
        try:
            gateway = self._gateway()
        except ValidationError as exc:
            self.guard.release(action)
            self._report_failure(str(exc))
            return
        self._set_busy(action, True)

        thread = QThread(self)
        worker = ActionWorker(gateway, action.value, self._payload_for(action))
        worker.moveToThread(thread)

        def handle_finish(result: DispatchResult) -> None:
            self._on_action_finished(action, result)
            thread.quit()

        def cleanup() -> None:
            if thread in self._threads:
                self._threads.remove(thread)
            if worker in self._workers:
                self._workers.remove(worker)
            worker.deleteLater()
            thread.deleteLater()

        worker.finished.connect(handle_finish)
        thread.finished.connect(cleanup)
        thread.started.connect(worker.run)
        self._threads.append(thread)
        self._workers.append(worker)
        thread.start()

    def _on_action_finished(self, action: Action, result: DispatchResult) -> None:
        self.guard.release(action)
        self._set_busy(action, False)
        if not result.ok or result.delta is None:
            self._report_failure(str(result.error))
            return
        delta = result.delta
        self.store.apply(delta)
        if delta.files and self.active_path is None:
            self._select_path(delta.files[0].path)
        lines: List[str] = []
        if delta.summary:
            lines.append(delta.summary)
        lines.extend(f"Warning: {w}" for w in delta.warnings)
        lines.append(f"{len(delta.files)} file(s) updated.")
        self.output.setPlainText("\n\n".join(lines))
        if self.status is not None:
            self.status.showMessage(f"{BUSY_LABELS[action][0]}: done", 4000)

    def _set_busy(self, action: Action, busy: bool) -> None:
        button = self._action_buttons[action]
        idle_text, busy_text = BUSY_LABELS[action]
        button.setEnabled(not busy)
        button.setText(busy_text if busy else idle_text)

    def _report_failure(self, message: str) -> None:
        self.output.setPlainText(f"Action failed: {message}")
        if self.status is not None:
            self.status.showMessage("Action failed", 5000)
        QtWidgets.QMessageBox.warning(self, "Action failed", message)

    # -------------------------------------------------------------- Files --
    def _on_files_changed(self, files: Tuple[FileRecord, ...]) -> None:
        self.active_path = resolve_active_path(files, self.active_path)
        self._refresh_file_tree(files)
        self._load_active_into_editor()
        self.update_preview()
        has_files = bool(files)
        self.btn_download.setEnabled(has_files)
        self.act_download.setEnabled(has_files)
        self.empty_label.setVisible(not has_files)

    def _refresh_file_tree(self, files: Tuple[FileRecord, ...]) -> None:
        self.file_tree.blockSignals(True)
        self.file_tree.clear()
        for directory, paths in group_by_directory(files).items():
            parent = QtWidgets.QTreeWidgetItem(self.file_tree, [directory])
            for path in paths:
                item = QtWidgets.QTreeWidgetItem(parent, [path])
                item.setData(0, QtCore.Qt.ItemDataRole.UserRole, path)
                if path == self.active_path:
                    self.file_tree.setCurrentItem(item)
            parent.setExpanded(True)
        self.file_tree.blockSignals(False)

    def _on_tree_item_clicked(self, item: QtWidgets.QTreeWidgetItem, _column: int) -> None:
        path = item.data(0, QtCore.Qt.ItemDataRole.UserRole)
        if path:
            self._select_path(path)
            self.view_tabs.setCurrentWidget(self.editor)

    def _select_path(self, path: str) -> None:
        self._flush_editor_to_store()
        self.active_path = resolve_active_path(self.store.files, path)
        self._load_active_into_editor()

    def _load_active_into_editor(self) -> None:
        record = self.store.get(self.active_path) if self.active_path else None
        text = record.content if record else ""
        self.editor.setReadOnly(record is None)
        if self.editor.toPlainText() == text:
            return
        self.editor.blockSignals(True)
        self.editor.setPlainText(text)
        self.editor.blockSignals(False)

    # ---------------------------------------------------- Editing & Preview --
    def _on_editor_changed(self) -> None:
        self._debounce.start()

    def _flush_editor_to_store(self) -> None:
        self._debounce.stop()
        if self.active_path is None:
            return
        record = self.store.get(self.active_path)
        text = self.editor.toPlainText()
        if record is not None and record.content != text:
            self.store.update_file(self.active_path, text)

    def update_preview(self) -> None:
        self.preview_page.show_document(compose(self.store.files))

    def open_preview_in_browser(self) -> None:
        self._flush_editor_to_store()
        if self._preview_tmp is None:
            self._preview_tmp = tempfile.mkdtemp(prefix="devforge_preview_")
        path = Path(self._preview_tmp) / "preview.html"
        path.write_text(sandbox_host_document(compose(self.store.files)), encoding="utf-8")
        webbrowser.open(path.as_uri())

    # ------------------------------------------------------------- Export --
    def download_zip(self) -> None:
        self._flush_editor_to_store()
        files = self.store.files
        if not files:
            return
        name = self.settings.get("project_name")
        out_zip, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Save ZIP as…", f"{name}.zip", "ZIP archive (*.zip)"
        )
        if not out_zip:
            return
        target = Path(out_zip)
        archive = export_archive(files, target.stem)
        try:
            written = archive.write_to(target.parent)
        except OSError as exc:
            QtWidgets.QMessageBox.critical(self, "Error", f"ZIP export failed:\n{exc}")
            return
        if self.status is not None:
            self.status.showMessage(f"Archive saved to {written}", 4000)

    def clear_session(self) -> None:
        if (
            QtWidgets.QMessageBox.question(self, "Clear session", "Remove every file from this session?")
            != QtWidgets.QMessageBox.StandardButton.Yes
        ):
            return
        self._debounce.stop()
        self.active_path = None
        self.store.clear()

    # ---------------------------------------------------------------- Misc --
    def show_about(self) -> None:
        QtWidgets.QMessageBox.information(
            self,
            "About",
            f"{APP_TITLE}\n\nPrompt-to-code, debugging, explanations and site cloning.",
        )

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # noqa: N802 (Qt override)
        self._flush_editor_to_store()
        for thread in list(self._threads):
            thread.quit()
            thread.wait(2000)
        if self._preview_tmp and os.path.isdir(self._preview_tmp):
            shutil.rmtree(self._preview_tmp, ignore_errors=True)
        super().closeEvent(event)
