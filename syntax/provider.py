# syntax/provider.py
"""
Host-neutral editor adapter. The host pulls tokens per line and styles per
scope stack; edits are pushed in as EditEvents. Nothing here touches a GUI
toolkit, so the Qt highlighter and the HTTP service both sit on top of it.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from syntax.document import EditEvent, TokenizationDriver
from syntax.grammar import Grammar
from syntax.theme import Style, Theme
from syntax.tokenizer import DEFAULT_MAX_STEPS_PER_CHAR, Token

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_LINES = 200


class StyledToken(NamedTuple):
    start: int
    end: int
    scopes: Tuple[str, ...]
    style: Style


class TokenProvider:
    def __init__(
        self,
        grammar: Grammar,
        theme: Theme,
        lines: Sequence[str] = (),
        chunk_lines: int = DEFAULT_CHUNK_LINES,
        max_steps_per_char: int = DEFAULT_MAX_STEPS_PER_CHAR,
    ):
        self.driver = TokenizationDriver(grammar, lines, max_steps_per_char)
        self.theme = theme
        self.chunk_lines = chunk_lines

    # ---------- host → bridge ----------
    def on_edit(self, event: EditEvent, new_lines: Sequence[str]):
        self.driver.apply_edit(event, new_lines)

    def set_grammar(self, grammar: Grammar):
        logger.info("Switching grammar to %s", grammar.scope_name)
        self.driver.set_grammar(grammar)

    def set_theme(self, theme: Theme):
        self.theme = theme

    def close(self):
        self.driver.close()

    # ---------- bridge → host ----------
    def provide_tokens(self, line_index: int) -> Tuple[Token, ...]:
        return self.driver.line_tokens(line_index)

    def resolve_style(self, scopes: Iterable[str]) -> Style:
        return self.theme.resolve(tuple(scopes))

    def provide_styled_tokens(self, line_index: int) -> List[StyledToken]:
        return [
            StyledToken(t.start, t.end, t.scopes, self.resolve_style(t.scopes))
            for t in self.provide_tokens(line_index)
        ]

    def state_key(self, line_index: int) -> int:
        """Small integer identifying the end state of a line (for hosts that
        store an int per block, e.g. QSyntaxHighlighter)."""
        return hash(self.driver.end_state(line_index)) & 0x3FFFFFFF

    def background_step(self) -> bool:
        """One cooperative chunk of propagation; True while work remains."""
        return self.driver.process(self.chunk_lines)


def tokenize_document(
    grammar: Grammar,
    theme: Theme,
    lines: Sequence[str],
    max_steps_per_char: int = DEFAULT_MAX_STEPS_PER_CHAR,
) -> List[List[StyledToken]]:
    provider = TokenProvider(grammar, theme, lines, max_steps_per_char=max_steps_per_char)
    return [provider.provide_styled_tokens(i) for i in range(len(lines))]
