import os

from PySide6.QtCore import QSettings
from PySide6.QtGui import QActionGroup
from PySide6.QtWidgets import QFileDialog, QLabel, QMainWindow, QMessageBox, QStatusBar

from config import (
    GRAMMARS_DIR, LANGUAGES_FILE, MAX_STEPS_PER_CHAR, PROPAGATION_CHUNK_LINES,
    PROPAGATION_INTERVAL_MS, SETTINGS_APP_NAME, SETTINGS_ORG_NAME, THEME_PATH, THEME_TIE_BREAK,
)
from syntax.assets import AssetLoader, AssetNotFoundError
from syntax.default_theme import dark_plus
from syntax.registry import LanguageRegistry
from syntax.theme import Theme
from utils.logger import bridge_logger
from widgets.code_editor import CodeEditor

PLAIN_TEXT = "plaintext"

SAMPLE_BBCODE = """\
[b]Welcome to the BBCode editor![/b] Everything typed here is highlighted line by line
by a TextMate grammar. Tags may span several lines:

[quote][float=left][img=53,92]avatar.png[/img][/float][size=2][color=Silver]Quoted
text keeps its styling[/color][/size]
until the quote is closed.
[/quote]

[list]
[*][color=Silver]first item[/color]
[*][i]second[/i] item with [u]underline[/u] and [s]strike[/s]
[/list]

Inline code: [code].start[/code], stray close tags are flagged: [/b]
Visit [url=https://example.org][color=#388d40]the project page[/color][/url].
"""


class BridgeEditorWindow(QMainWindow):
    # -------------------------- init -----------------------------
    def __init__(self):
        super().__init__()
        self.resize(1100, 760)
        self.settings = QSettings(SETTINGS_ORG_NAME, SETTINGS_APP_NAME)

        self.loader = AssetLoader(GRAMMARS_DIR, LANGUAGES_FILE)
        self.registry = LanguageRegistry.from_loader(self.loader)
        self.theme = self._load_theme()
        self.language_id: str = PLAIN_TEXT

        self._build_ui()
        self._load_window_settings()

        last_file = self.settings.value("lastOpenedFile")
        if last_file and os.path.isfile(last_file):
            self.open_file(last_file)
        else:
            if last_file:
                bridge_logger.warning(f"Saved file path '{last_file}' no longer exists.")
            self.editor.setPlainText(SAMPLE_BBCODE)
            self.set_language("bbcode")
        self._update_title()

    def _load_theme(self) -> Theme:
        if THEME_PATH:
            try:
                theme = self.loader.fetch_theme(THEME_PATH, THEME_TIE_BREAK)
                bridge_logger.info(f"Theme loaded from {THEME_PATH}")
                return theme
            except (AssetNotFoundError, ValueError) as e:
                bridge_logger.error(f"Cannot load theme {THEME_PATH}: {e}; using Dark+")
        return dark_plus(THEME_TIE_BREAK)

    # --------------------- UI construction ----------------------
    def _build_ui(self):
        self.editor = CodeEditor(self)
        self.setCentralWidget(self.editor)

        sb = QStatusBar()
        self.setStatusBar(sb)
        self.scope_lbl = QLabel("")
        self.pos_lbl = QLabel("Ln 1, Col 1")
        self.lang_lbl = QLabel("")
        sb.addWidget(self.scope_lbl, 1)
        sb.addPermanentWidget(self.pos_lbl)
        sb.addPermanentWidget(self.lang_lbl)

        self.editor.scopes_at_cursor.connect(self._show_scopes)
        self.editor.cursorPositionChanged.connect(self._show_position)
        self.editor.document().modificationChanged.connect(lambda _: self._update_title())

        self._build_menu()

    def _build_menu(self):
        mb = self.menuBar()

        fm = mb.addMenu("&File")
        fm.addAction("Open…", self._open_dialog).setShortcut("Ctrl+O")
        fm.addAction("Save", self.save_current).setShortcut("Ctrl+S")
        fm.addAction("Save as…", self.save_current_as).setShortcut("Ctrl+Shift+S")
        fm.addSeparator()
        fm.addAction("Quit", self.close).setShortcut("Ctrl+Q")

        lm = mb.addMenu("&Language")
        self._lang_group = QActionGroup(self)
        self._lang_actions = {}
        choices = [(PLAIN_TEXT, "Plain Text")] + [
            (lang.id, lang.aliases[0] if lang.aliases else lang.id)
            for lang in self.registry.languages.values()
        ]
        for lang_id, title in choices:
            act = lm.addAction(title, lambda checked=False, l=lang_id: self.set_language(l))
            act.setCheckable(True)
            self._lang_group.addAction(act)
            self._lang_actions[lang_id] = act

    # --------------------- language / highlighting ---------------------
    def set_language(self, language_id: str):
        grammar = None
        if language_id != PLAIN_TEXT:
            grammar = self.registry.grammar_for_language(language_id)
            if grammar is None:
                QMessageBox.warning(self, "Grammar",
                                    f"No usable grammar for '{language_id}', highlighting is off.")
                language_id = PLAIN_TEXT
        self.language_id = language_id
        self.editor.attach_highlighter(
            grammar, self.theme,
            chunk_lines=PROPAGATION_CHUNK_LINES,
            max_steps_per_char=MAX_STEPS_PER_CHAR,
            interval_ms=PROPAGATION_INTERVAL_MS,
        )
        self.editor.set_language_configuration(
            self.registry.configuration_for_language(language_id) if grammar else None
        )
        if language_id in self._lang_actions:
            self._lang_actions[language_id].setChecked(True)
        self.lang_lbl.setText(grammar.scope_name if grammar else "Plain Text")
        bridge_logger.info(f"Language set to {language_id}")

    # --------------------- files ---------------------
    def _open_dialog(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open file", "",
                                              "BBCode (*.bbcode *.bbc);;All files (*)")
        if path:
            self.open_file(path)

    def open_file(self, path: str):
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            bridge_logger.error(f"Cannot open {path}: {e}")
            QMessageBox.critical(self, "Open", f"Cannot open {path}:\n{e}")
            return
        self.editor.setPlainText(text)
        self.editor.set_file_path(path)
        self.editor.document().setModified(False)

        first_line = text.split("\n", 1)[0]
        lang = self.registry.language_for_file(path, first_line)
        self.set_language(lang.id if lang else PLAIN_TEXT)
        self._update_title()

    def save_current(self):
        path = self.editor.file_path()
        if not path:
            self.save_current_as()
            return
        self._write(path)

    def save_current_as(self):
        path, _ = QFileDialog.getSaveFileName(self, "Save as", "", "BBCode (*.bbcode);;All files (*)")
        if path:
            self._write(path)
            self.editor.set_file_path(path)
            self._update_title()

    def _write(self, path: str):
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.editor.toPlainText())
        except OSError as e:
            bridge_logger.error(f"Cannot save {path}: {e}")
            QMessageBox.critical(self, "Save", f"Cannot save {path}:\n{e}")
            return
        self.editor.document().setModified(False)
        bridge_logger.info(f"Saved {path}")

    # --------------------- title & status ---------------------
    def _show_scopes(self, scopes: tuple):
        self.scope_lbl.setText(" ".join(scopes))

    def _show_position(self):
        line, col = self.editor.cursor_line_col()
        self.pos_lbl.setText(f"Ln {line}, Col {col}")

    def _update_title(self):
        path = self.editor.file_path() or "Untitled"
        star = "*" if self.editor.document().isModified() else ""
        self.setWindowTitle(f"{os.path.basename(path)}{star} — {SETTINGS_APP_NAME}")

    # ---------------- settings ----------------------
    def closeEvent(self, ev):  # noqa: N802
        self._save_settings()
        self.editor.detach_highlighter()
        super().closeEvent(ev)

    def _save_settings(self):
        self.settings.setValue("geometry", self.saveGeometry())
        self.settings.setValue("windowState", self.saveState())
        if self.editor.file_path():
            self.settings.setValue("lastOpenedFile", self.editor.file_path())
        else:
            self.settings.remove("lastOpenedFile")

    def _load_window_settings(self):
        if (geo := self.settings.value("geometry")):
            self.restoreGeometry(geo)
        if (st := self.settings.value("windowState")):
            self.restoreState(st)
