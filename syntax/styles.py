# syntax/styles.py
from typing import Dict

from PySide6.QtGui import QColor, QFont, QPalette, QTextCharFormat

from syntax.theme import Style, Theme


class QtStyleCache:
    """Style -> QTextCharFormat, one format object per distinct style."""

    def __init__(self, theme: Theme):
        self.theme = theme
        self._formats: Dict[Style, QTextCharFormat] = {}

    def set_theme(self, theme: Theme):
        self.theme = theme
        self._formats.clear()

    def get_format(self, style: Style) -> QTextCharFormat:
        fmt = self._formats.get(style)
        if fmt is None:
            fmt = to_char_format(style, self.theme.default)
            self._formats[style] = fmt
        return fmt

    def __len__(self):
        return len(self._formats)


def to_char_format(style: Style, default: Style) -> QTextCharFormat:
    fmt = QTextCharFormat()
    fmt.setForeground(QColor(style.foreground))
    # the editor background is painted by the widget; only set differing ones
    if style.background != default.background:
        fmt.setBackground(QColor(style.background))
    if style.bold:
        fmt.setFontWeight(QFont.Bold)
    if style.italic:
        fmt.setFontItalic(True)
    if style.underline:
        fmt.setFontUnderline(True)
    if style.strikethrough:
        fmt.setFontStrikeOut(True)
    return fmt


def editor_palette(base: QPalette, theme: Theme) -> QPalette:
    palette = QPalette(base)
    palette.setColor(QPalette.Base, QColor(theme.default.background))
    palette.setColor(QPalette.Text, QColor(theme.default.foreground))
    return palette
