# syntax/tokenizer.py
"""
Line tokenizer.

tokenize_line(grammar, line, state) -> (tokens, next_state)

Patterns are matched against `line + "\\n"` (TextMate grammars are written
for newline-terminated lines) and the produced tokens are clamped to the
line itself.
"""
from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional, Tuple

from syntax.grammar import (
    BeginEndRule,
    BeginWhileRule,
    Captures,
    Grammar,
    MatchRule,
    PatternsRule,
    scope_names,
)
from syntax.regex import MatchEngineError, OnigError, compile_expanded, compile_regex, expand_backreferences
from syntax.state import StateStack

logger = logging.getLogger(__name__)

Scopes = Tuple[str, ...]

DEFAULT_MAX_STEPS_PER_CHAR = 64

_END = -1


class Token(NamedTuple):
    start: int
    end: int
    scopes: Scopes


class _TokenSink:
    """Accumulates contiguous tokens; `produce(scopes, end)` closes the
    current token at `end`. Adjacent tokens with equal scopes are merged."""

    def __init__(self, limit: int):
        self.limit = limit
        self.tokens: List[Token] = []
        self.last_end = 0

    def produce(self, scopes: Scopes, end: int):
        end = min(end, self.limit)
        if end <= self.last_end:
            return
        if self.tokens and self.tokens[-1].scopes == scopes and self.tokens[-1].end == self.last_end:
            self.tokens[-1] = self.tokens[-1]._replace(end=end)
        else:
            self.tokens.append(Token(self.last_end, end, scopes))
        self.last_end = end


class _Budget:
    def __init__(self, steps: int):
        self.left = steps

    def spend(self):
        self.left -= 1
        if self.left < 0:
            raise MatchEngineError("rule evaluation budget exhausted")


# ───────────────────────────────────────────────────────
#                       captures
# ───────────────────────────────────────────────────────
def _emit_captures(
    grammar: Grammar,
    text: str,
    match,
    captures: Captures,
    base: Scopes,
    sink: _TokenSink,
    budget: _Budget,
):
    local: List[Tuple[Scopes, int]] = []
    for group, rule_id in captures:
        try:
            group_text = match[group]
        except IndexError:  # more captures declared than groups in the pattern
            continue
        if not group_text:
            continue
        start, end = match.span(group)

        while local and local[-1][1] <= start:
            sink.produce(*local.pop())
        parent = local[-1][0] if local else base
        sink.produce(parent, start)

        rule = grammar.rule(rule_id)
        scopes = parent + scope_names(rule.name, match)
        if isinstance(rule, PatternsRule) and rule.patterns:
            content = scopes + scope_names(rule.content_name, match)
            sub_state = StateStack(None, rule_id, None, scopes, content)
            _run(grammar, text[:end], start, sub_state, sink, budget)
            sink.produce(content, end)
        else:
            local.append((scopes, end))

    while local:
        sink.produce(*local.pop())
    sink.produce(base, match.end())


# ───────────────────────────────────────────────────────
#                       scanning
# ───────────────────────────────────────────────────────
def _scan(grammar: Grammar, state: StateStack, text: str, pos: int):
    """Return (rule_id or _END, match) for the leftmost match at or after
    `pos` for the rule on top of `state`, or None."""
    rule = grammar.rule(state.rule_id)

    end_match = None
    if isinstance(rule, BeginEndRule):
        compile_end = compile_expanded if rule.end_has_backrefs else compile_regex
        end_match = compile_end(state.end_pattern).search(text, pos)

    best = None
    regset = getattr(rule, "regset", None)
    if regset is not None:
        idx, match = regset.search(text, pos)
        if match is not None:
            best = (rule.patterns[idx], match)

    if end_match is None:
        return best
    if best is None:
        return _END, end_match
    if end_match.start() < best[1].start():
        return _END, end_match
    if end_match.start() == best[1].start() and not rule.apply_end_pattern_last:
        return _END, end_match
    return best


def _check_while(grammar: Grammar, state: StateStack, text: str, sink: _TokenSink,
                 budget: _Budget) -> Tuple[StateStack, int]:
    pos = 0
    for frame in state.frames():
        rule = grammar.rule(frame.rule_id)
        if not isinstance(rule, BeginWhileRule):
            continue
        budget.spend()
        compile_while = compile_expanded if rule.while_has_backrefs else compile_regex
        match = compile_while(frame.end_pattern).match(text, pos)
        if match is None:
            return frame.pop(), pos
        _emit_captures(grammar, text, match, rule.while_captures, frame.name_scopes, sink, budget)
        pos = match.end()
    return state, pos


def _run(grammar: Grammar, text: str, pos: int, state: StateStack,
         sink: _TokenSink, budget: _Budget) -> StateStack:
    seen_here = {state}
    while True:
        budget.spend()
        found = _scan(grammar, state, text, pos)
        if found is None:
            break
        rule_id, match = found
        start, end = match.span()
        sink.produce(state.content_scopes, start)

        if rule_id == _END:
            rule = grammar.rule(state.rule_id)
            _emit_captures(grammar, text, match, rule.end_captures, state.name_scopes, sink, budget)
            new_state = state.pop()
        else:
            rule = grammar.rule(rule_id)
            new_state = _apply(grammar, rule, match, state, text, sink, budget)
            if end == start and new_state is not state and state.rule_id == rule_id:
                # zero-width begin re-entering itself: drop the push, stop here
                break

        if end == start:
            if new_state in seen_here:
                state = new_state
                break
            seen_here.add(new_state)
        else:
            seen_here = {new_state}
        state, pos = new_state, end

    sink.produce(state.content_scopes, len(text))
    return state


def _apply(grammar: Grammar, rule, match, state: StateStack, text: str,
           sink: _TokenSink, budget: _Budget) -> StateStack:
    if isinstance(rule, MatchRule):
        scopes = state.content_scopes + scope_names(rule.name, match)
        _emit_captures(grammar, text, match, rule.captures, scopes, sink, budget)
        return state

    name_scopes = state.content_scopes + scope_names(rule.name, match)
    _emit_captures(grammar, text, match, rule.begin_captures, name_scopes, sink, budget)
    content_scopes = name_scopes + scope_names(rule.content_name, match)

    if isinstance(rule, BeginEndRule):
        pattern = expand_backreferences(match, rule.end) if rule.end_has_backrefs else rule.end
    else:
        pattern = expand_backreferences(match, rule.while_) if rule.while_has_backrefs else rule.while_
    return state.push(rule.id, pattern, name_scopes, content_scopes)


# ───────────────────────────────────────────────────────
#                       public API
# ───────────────────────────────────────────────────────
def tokenize_line(
    grammar: Grammar,
    line: str,
    state: Optional[StateStack] = None,
    max_steps_per_char: int = DEFAULT_MAX_STEPS_PER_CHAR,
) -> Tuple[Tuple[Token, ...], StateStack]:
    """
    Tokenize one line starting from `state` (the grammar's initial state
    when None). Returns the line's tokens and the state for the next line.

    Raises MatchEngineError when pattern evaluation fails at runtime or the
    step budget (`max_steps_per_char` per character) runs out.
    """
    if state is None:
        state = grammar.initial_state
    text = line + "\n"
    sink = _TokenSink(len(line))
    budget = _Budget(max_steps_per_char * len(text))

    try:
        state, pos = _check_while(grammar, state, text, sink, budget)
        state = _run(grammar, text, pos, state, sink, budget)
    except OnigError as e:
        raise MatchEngineError(f"pattern evaluation failed: {e}") from e

    return tuple(sink.tokens), state


def tokenize_lines(grammar: Grammar, lines, state: Optional[StateStack] = None):
    """Tokenize consecutive lines from scratch; yields (tokens, end_state)."""
    for line in lines:
        tokens, state = tokenize_line(grammar, line, state)
        yield tokens, state
