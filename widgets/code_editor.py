# widgets/code_editor.py
from __future__ import annotations

from typing import Optional, Tuple

from PySide6.QtCore import QRect, QSize, Qt, Signal
from PySide6.QtGui import QColor, QFont, QPainter, QTextBlock, QTextCursor, QTextFormat
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit, QWidget

from syntax.grammar import Grammar
from syntax.highlighter import TextMateHighlighter
from syntax.language_config import LanguageConfiguration
from syntax.styles import editor_palette
from syntax.theme import Theme
from syntax.tokenizer import Token


def _in_scope_kinds(scopes: Tuple[str, ...], kinds: Tuple[str, ...]) -> bool:
    return any(scope == kind or scope.startswith(kind + ".") for scope in scopes for kind in kinds)


# ─────────────────────────  Line-number area  ──────────────────────────
class LineNumberArea(QWidget):
    def __init__(self, editor: "CodeEditor"):
        super().__init__(editor)
        self._editor = editor

    def sizeHint(self) -> QSize:
        return QSize(self._editor.line_number_area_width(), 0)

    def paintEvent(self, event):  # noqa: N802
        self._editor.paint_line_numbers(event)


# ─────────────────────────────   Editor   ──────────────────────────────
class CodeEditor(QPlainTextEdit):
    """Plain-text editor highlighted by a TextMate grammar."""

    # scopes of the token under the cursor, innermost last
    scopes_at_cursor = Signal(tuple)

    TAB_SPACES = 4

    _CLR_LINENUM_BG = QColor(40, 40, 40)
    _CLR_LINENUM_FG = QColor(133, 133, 133)
    _CLR_LINENUM_FG_ACTIVE = QColor(198, 198, 198)
    _CLR_CURRENT_LINE = QColor(255, 255, 255, 12)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFont(QFont("Consolas", 11))
        self.setLineWrapMode(QPlainTextEdit.NoWrap)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(" ") * self.TAB_SPACES)

        self._line_number_area = LineNumberArea(self)
        self.blockCountChanged.connect(self.update_line_number_area_width)
        self.updateRequest.connect(self.update_line_number_area)
        self.cursorPositionChanged.connect(self._on_cursor_moved)
        self.update_line_number_area_width()

        self.highlighter: Optional[TextMateHighlighter] = None
        self.language_config: Optional[LanguageConfiguration] = None
        self._file_path: Optional[str] = None

    # ───────────  highlighting  ───────────
    def attach_highlighter(self, grammar: Optional[Grammar], theme: Theme,
                           chunk_lines: int, max_steps_per_char: int, interval_ms: int = 0):
        self.detach_highlighter()
        self.setPalette(editor_palette(self.palette(), theme))
        if grammar is None:
            return
        self.highlighter = TextMateHighlighter(
            self.document(), grammar, theme,
            chunk_lines=chunk_lines, max_steps_per_char=max_steps_per_char,
            interval_ms=interval_ms,
        )

    def detach_highlighter(self):
        if self.highlighter is not None:
            self.highlighter.close()
            self.highlighter.deleteLater()
            self.highlighter = None

    def token_at_cursor(self) -> Optional[Token]:
        if self.highlighter is None:
            return None
        cur = self.textCursor()
        col = cur.positionInBlock()
        tokens = self.highlighter.provider.provide_tokens(cur.blockNumber())
        for token in tokens:
            if token.start <= col < token.end:
                return token
        # cursor at line end: report the last token
        return tokens[-1] if tokens and col == tokens[-1].end else None

    def set_language_configuration(self, config: Optional[LanguageConfiguration]):
        self.language_config = config

    # ───────────  keys  ───────────
    def keyPressEvent(self, event):  # noqa: N802
        key = event.key()
        mod = event.modifiers()

        # Ctrl+/
        if key == Qt.Key_Slash and mod == Qt.ControlModifier and self.toggle_line_comment():
            event.accept()
            return

        if mod in (Qt.NoModifier, Qt.ShiftModifier) and self._handle_auto_pairs(event.text()):
            event.accept()
            return

        if key in (Qt.Key_Return, Qt.Key_Enter) and mod == Qt.NoModifier:
            self._insert_newline_with_indent()
            event.accept()
            return

        super().keyPressEvent(event)

    def _handle_auto_pairs(self, ch: str) -> bool:
        config = self.language_config
        if config is None or len(ch) != 1:
            return False
        cur = self.textCursor()

        if cur.hasSelection():
            close = config.surround_for(ch)
            if close is None:
                return False
            cur.insertText(f"{ch}{cur.selectedText()}{close}")
            return True

        text = cur.block().text()
        col = cur.positionInBlock()
        next_char = text[col] if col < len(text) else ""

        # typing a closing character in front of the same one steps over it
        if next_char == ch and config.is_closing(ch):
            cur.movePosition(QTextCursor.Right)
            self.setTextCursor(cur)
            return True

        pair = config.auto_close_for(ch)
        if pair is None:
            return False
        if next_char and not next_char.isspace() and not config.is_closing(next_char):
            return False
        if pair.not_in:
            token = self.token_at_cursor()
            if token is not None and _in_scope_kinds(token.scopes, pair.not_in):
                return False
        cur.insertText(pair.open + pair.close)
        cur.movePosition(QTextCursor.Left, QTextCursor.MoveAnchor, len(pair.close))
        self.setTextCursor(cur)
        return True

    def _insert_newline_with_indent(self):
        cur = self.textCursor()
        before = cur.block().text()[:cur.positionInBlock()]
        indent = before[:len(before) - len(before.lstrip())]
        if self.language_config is not None and self.language_config.indents_after(before):
            indent += "\t"
        cur.insertText("\n" + indent)
        self.setTextCursor(cur)

    # ───────────  comments  ───────────
    def toggle_line_comment(self) -> bool:
        prefix = self.language_config.line_comment if self.language_config else None
        if not prefix:
            return False
        first, last = self._selected_block_numbers(self.textCursor())
        doc = self.document()
        blocks = [doc.findBlockByNumber(i) for i in range(first, last + 1)]
        uncomment = all(b.text().lstrip().startswith(prefix) for b in blocks if b.text().strip())

        edit = QTextCursor(doc)
        edit.beginEditBlock()
        for block in blocks:
            self._toggle_comment_for_block(block, prefix, uncomment, edit)
        edit.endEditBlock()
        return True

    def _selected_block_numbers(self, cursor: QTextCursor) -> Tuple[int, int]:
        if not cursor.hasSelection():
            return cursor.blockNumber(), cursor.blockNumber()
        s, e = cursor.selectionStart(), cursor.selectionEnd()
        tmp = QTextCursor(self.document())
        tmp.setPosition(s)
        sb = tmp.blockNumber()
        tmp.setPosition(e)
        eb = tmp.blockNumber()
        # a selection ending at column 0 does not include that line
        if tmp.positionInBlock() == 0 and eb > sb:
            eb -= 1
        return sb, eb

    @staticmethod
    def _toggle_comment_for_block(block: QTextBlock, prefix: str, uncomment: bool, edit: QTextCursor):
        text = block.text()
        indent = len(text) - len(text.lstrip())
        after = text[indent:]
        edit.setPosition(block.position() + indent)
        if uncomment:
            if after.startswith(prefix + " "):
                width = len(prefix) + 1
            elif after.startswith(prefix):
                width = len(prefix)
            else:
                return
            edit.movePosition(QTextCursor.Right, QTextCursor.KeepAnchor, width)
            edit.removeSelectedText()
        elif after:
            edit.insertText(prefix + " ")

    def _on_cursor_moved(self):
        self._highlight_current_line()
        token = self.token_at_cursor()
        self.scopes_at_cursor.emit(token.scopes if token else ())

    def _highlight_current_line(self):
        sel = QTextEdit.ExtraSelection()
        sel.format.setBackground(self._CLR_CURRENT_LINE)
        sel.format.setProperty(QTextFormat.FullWidthSelection, True)
        sel.cursor = self.textCursor()
        sel.cursor.clearSelection()
        self.setExtraSelections([sel])

    # ───────────  file path  ───────────
    def set_file_path(self, path: Optional[str]):
        self._file_path = path

    def file_path(self) -> Optional[str]:
        return self._file_path

    def cursor_line_col(self) -> Tuple[int, int]:
        cur = self.textCursor()
        return cur.blockNumber() + 1, cur.positionInBlock() + 1

    # ───────────  line-numbers helpers  ───────────
    def line_number_area_width(self) -> int:
        digits = len(str(max(1, self.blockCount())))
        return self.fontMetrics().horizontalAdvance("9") * digits + 14

    def update_line_number_area_width(self, _=0):
        self.setViewportMargins(self.line_number_area_width(), 0, 0, 0)

    def update_line_number_area(self, rect: QRect, dy: int):
        if dy:
            self._line_number_area.scroll(0, dy)
        else:
            self._line_number_area.update(0, rect.y(), self._line_number_area.width(), rect.height())
        if rect.contains(self.viewport().rect()):
            self.update_line_number_area_width()

    def resizeEvent(self, event):  # noqa: N802
        super().resizeEvent(event)
        cr = self.contentsRect()
        self._line_number_area.setGeometry(
            QRect(cr.left(), cr.top(), self.line_number_area_width(), cr.height())
        )

    def paint_line_numbers(self, event):
        painter = QPainter(self._line_number_area)
        painter.fillRect(event.rect(), self._CLR_LINENUM_BG)

        current = self.textCursor().blockNumber()
        block = self.firstVisibleBlock()
        number = block.blockNumber()
        top = round(self.blockBoundingGeometry(block).translated(self.contentOffset()).top())
        bottom = top + round(self.blockBoundingRect(block).height())
        line_h = self.fontMetrics().height()
        width = self._line_number_area.width() - 6

        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and bottom >= event.rect().top():
                painter.setPen(self._CLR_LINENUM_FG_ACTIVE if number == current else self._CLR_LINENUM_FG)
                painter.drawText(0, top, width, line_h, Qt.AlignRight, str(number + 1))
            block = block.next()
            top = bottom
            bottom = top + round(self.blockBoundingRect(block).height())
            number += 1
