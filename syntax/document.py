# syntax/document.py
"""
Incremental driver: owns the per-line (tokens, end state) cache of one
document and keeps it consistent with edits by re-tokenizing forward from
the first changed line until the recomputed end state of a line equals the
one cached before the edit.

Pending work is a sorted set of *frontiers*: line indices from which
propagation has to resume. Every edit adds one; a lazily stopped pass leaves
one behind. Lines between frontiers hold consistent entries.
"""
from __future__ import annotations

import bisect
import logging
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from syntax.grammar import Grammar
from syntax.regex import MatchEngineError
from syntax.state import StateStack
from syntax.tokenizer import DEFAULT_MAX_STEPS_PER_CHAR, Token, tokenize_line

logger = logging.getLogger(__name__)


class EditEvent(NamedTuple):
    """Lines [start_line, end_line_exclusive) were replaced by
    `new_line_count` lines."""
    start_line: int
    end_line_exclusive: int
    new_line_count: int


class LineEntry(NamedTuple):
    # lines at or after the first pending frontier may hold a placeholder
    # whose tokens are never served
    tokens: Tuple[Token, ...]
    end_state: StateStack


class DocumentClosedError(RuntimeError):
    pass


class TokenizationDriver:
    def __init__(
        self,
        grammar: Grammar,
        lines: Sequence[str] = (),
        max_steps_per_char: int = DEFAULT_MAX_STEPS_PER_CHAR,
    ):
        self._grammar = grammar
        self._max_steps = max_steps_per_char
        self._lines: List[str] = list(lines)
        self._entries: List[Optional[LineEntry]] = [None] * len(self._lines)
        self._frontiers: List[int] = [0] if self._lines else []
        self._generation = 0
        self._closed = False
        self.lines_tokenized = 0

    # ------------------------------------------------ properties
    @property
    def grammar(self) -> Grammar:
        return self._grammar

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return bool(self._frontiers)

    @property
    def invalid_from(self) -> int:
        """First line whose entry is not trusted (line_count when none)."""
        return self._frontiers[0] if self._frontiers else len(self._lines)

    def line(self, index: int) -> str:
        return self._lines[index]

    # ------------------------------------------------ edits / lifecycle
    def apply_edit(self, event: EditEvent, new_lines: Sequence[str]):
        self._ensure_open()
        start, end, count = event
        if not 0 <= start <= end <= len(self._lines):
            raise IndexError(f"edit range [{start}, {end}) outside document of {len(self._lines)} lines")
        if len(new_lines) != count:
            raise ValueError(f"edit announces {count} lines, got {len(new_lines)}")

        new_entries: List[Optional[LineEntry]] = [None] * count
        if count:
            # the last new line inherits the end state the line after the
            # edit was tokenized from, so an edit that does not change the
            # carried state stops right after itself
            if end > start:
                tail = self._entries[end - 1]
            elif start > 0:
                tail = self._entries[start - 1]
            else:
                tail = LineEntry((), self._grammar.initial_state)
            if tail is not None:
                new_entries[-1] = LineEntry((), tail.end_state)

        self._lines[start:end] = list(new_lines)
        # entries after the edit move with their lines and stay as the
        # "previous" end states the fixed-point test compares against
        self._entries[start:end] = new_entries

        delta = count - (end - start)
        frontiers = {f + delta if f >= end else min(f, start) for f in self._frontiers}
        frontiers.add(start)
        self._frontiers = sorted(f for f in frontiers if f < len(self._lines))
        logger.debug("Edit %s -> frontiers %s", tuple(event), self._frontiers)

    def set_text(self, lines: Sequence[str]):
        """Replace the whole document."""
        self.apply_edit(EditEvent(0, len(self._lines), len(lines)), lines)

    def set_grammar(self, grammar: Grammar):
        """Swap the grammar; any in-flight pass is abandoned and the cache
        is discarded."""
        self._ensure_open()
        self._grammar = grammar
        self._reset_cache()

    def close(self):
        self._closed = True
        self._reset_cache()

    def _reset_cache(self):
        self._generation += 1
        self._entries = [None] * len(self._lines)
        self._frontiers = [0] if self._lines else []

    def _ensure_open(self):
        if self._closed:
            raise DocumentClosedError("document is closed")

    # ------------------------------------------------ pull API
    def line_tokens(self, index: int) -> Tuple[Token, ...]:
        return self.line_entry(index).tokens

    def line_entry(self, index: int) -> LineEntry:
        self._ensure_open()
        if not 0 <= index < len(self._lines):
            raise IndexError(f"line {index} outside document of {len(self._lines)} lines")
        while self._frontiers and self._frontiers[0] <= index:
            self._step()
        return self._entries[index]

    def end_state(self, index: int) -> StateStack:
        return self.line_entry(index).end_state

    def start_state(self, index: int) -> StateStack:
        if index == 0:
            return self._grammar.initial_state
        return self.end_state(index - 1)

    # ------------------------------------------------ background work
    def process(self, max_lines: int) -> bool:
        """Tokenize at most `max_lines` lines. Returns True while work
        remains."""
        self._ensure_open()
        for _ in range(max_lines):
            if not self._frontiers:
                break
            self._step()
        return self.pending

    def iter_chunks(self, chunk_lines: int) -> Iterator[int]:
        """Propagate in chunks, yielding the first untrusted line after each
        chunk. Stops early when the grammar is swapped or the document is
        closed between chunks."""
        generation = self._generation
        while not self._closed and generation == self._generation and self._frontiers:
            self.process(chunk_lines)
            yield self.invalid_from

    def tokenize_all(self) -> List[Tuple[Token, ...]]:
        self._ensure_open()
        while self._frontiers:
            self._step()
        return [entry.tokens for entry in self._entries]

    # ------------------------------------------------ core step
    def _step(self):
        i = self._frontiers.pop(0)
        previous = self._entries[i]
        state = self._grammar.initial_state if i == 0 else self._entries[i - 1].end_state

        entry = self._tokenize(i, state)
        self._entries[i] = entry
        self.lines_tokenized += 1

        if previous is not None and previous.end_state == entry.end_state:
            # fixed point: the following lines keep their entries
            return
        nxt = i + 1
        if nxt < len(self._lines) and (not self._frontiers or self._frontiers[0] != nxt):
            bisect.insort(self._frontiers, nxt)

    def _tokenize(self, index: int, state: StateStack) -> LineEntry:
        line = self._lines[index]
        try:
            tokens, end_state = tokenize_line(self._grammar, line, state, self._max_steps)
        except MatchEngineError as e:
            logger.warning("Line %d of %s degraded to plain text: %s",
                           index + 1, self._grammar.scope_name, e)
            end_state = self._grammar.initial_state
            tokens = (Token(0, len(line), end_state.scopes),) if line else ()
        return LineEntry(tokens, end_state)
