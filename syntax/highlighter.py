# syntax/highlighter.py
"""
Qt host adapter: a QSyntaxHighlighter that pulls tokens from a TokenProvider
and paints them with theme styles.

Edits reach the provider through QTextDocument.contentsChange. The slot is
connected before the highlighter attaches itself to the document, so the
provider is already up to date when Qt calls highlightBlock() for the
changed blocks. Each block stores a key of its end state; Qt keeps
re-highlighting following blocks while that key changes.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import QTimer
from PySide6.QtGui import QSyntaxHighlighter, QTextDocument

from syntax.document import EditEvent
from syntax.grammar import Grammar
from syntax.provider import DEFAULT_CHUNK_LINES, TokenProvider
from syntax.styles import QtStyleCache
from syntax.theme import Theme
from syntax.tokenizer import DEFAULT_MAX_STEPS_PER_CHAR

logger = logging.getLogger(__name__)


def _document_lines(document: QTextDocument) -> List[str]:
    lines = []
    block = document.firstBlock()
    while block.isValid():
        lines.append(block.text())
        block = block.next()
    return lines


def _utf16_offsets(text: str) -> Optional[List[int]]:
    """Map code-point offsets to UTF-16 offsets (Qt positions); None when
    the two coincide."""
    if all(ord(ch) <= 0xFFFF for ch in text):
        return None
    offsets = [0]
    for ch in text:
        offsets.append(offsets[-1] + (2 if ord(ch) > 0xFFFF else 1))
    return offsets


class TextMateHighlighter(QSyntaxHighlighter):
    def __init__(
        self,
        document: QTextDocument,
        grammar: Grammar,
        theme: Theme,
        chunk_lines: int = DEFAULT_CHUNK_LINES,
        max_steps_per_char: int = DEFAULT_MAX_STEPS_PER_CHAR,
        interval_ms: int = 0,
    ):
        super().__init__(None)
        self.provider = TokenProvider(
            grammar, theme, _document_lines(document),
            chunk_lines=chunk_lines, max_steps_per_char=max_steps_per_char,
        )
        self.styles = QtStyleCache(theme)

        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._background_step)

        # must run before QSyntaxHighlighter's own contentsChange slot
        document.contentsChange.connect(self._on_contents_change)
        self.setDocument(document)
        self._timer.start()

    # ───────────────────────────────────────────────────────
    #                     host → provider
    # ───────────────────────────────────────────────────────
    def _on_contents_change(self, position: int, removed: int, added: int):
        document = self.document()
        if document is None:
            return
        driver = self.provider.driver
        first = document.findBlock(position)
        last = document.findBlock(position + added)
        if not last.isValid():
            last = document.lastBlock()
        if not first.isValid():
            self._resync(document)
            return

        first_no, last_no = first.blockNumber(), last.blockNumber()
        new_count = last_no - first_no + 1
        delta = document.blockCount() - driver.line_count
        end_excl = first_no + new_count - delta
        if not first_no <= end_excl <= driver.line_count:
            self._resync(document)
            return

        new_lines = []
        block = first
        for _ in range(new_count):
            new_lines.append(block.text())
            block = block.next()
        self.provider.on_edit(EditEvent(first_no, end_excl, new_count), new_lines)
        self._timer.start()

    def _resync(self, document: QTextDocument):
        logger.debug("Highlighter resync with %d blocks", document.blockCount())
        self.provider.driver.set_text(_document_lines(document))
        self._timer.start()

    def set_grammar(self, grammar: Grammar):
        self.provider.set_grammar(grammar)
        self.rehighlight()
        self._timer.start()

    def set_theme(self, theme: Theme):
        self.provider.set_theme(theme)
        self.styles.set_theme(theme)
        self.rehighlight()

    def close(self):
        self._timer.stop()
        document = self.document()
        if document is not None:
            document.contentsChange.disconnect(self._on_contents_change)
        self.setDocument(None)
        self.provider.close()

    # ───────────────────────────────────────────────────────
    #                     provider → host
    # ───────────────────────────────────────────────────────
    def highlightBlock(self, text: str):  # noqa: N802
        index = self.currentBlock().blockNumber()
        driver = self.provider.driver
        if index >= driver.line_count or driver.line(index) != text:
            self._resync(self.document())

        offsets = _utf16_offsets(text)
        for token in self.provider.provide_styled_tokens(index):
            start, end = token.start, token.end
            if offsets is not None:
                start, end = offsets[start], offsets[end]
            self.setFormat(start, end - start, self.styles.get_format(token.style))
        self.setCurrentBlockState(self.provider.state_key(index))

    def _background_step(self):
        if not self.provider.background_step():
            self._timer.stop()
