# syntax/grammar.py
"""
Rule compiler: turns a deserialized tmLanguage structure into an immutable
Grammar whose rules live in one arena and refer to each other by integer id.

Compilation happens in two passes:
    1. walk the source, allocating an id for every raw rule *before* its
       children are visited (so `#self-reference` and `$self` cycles resolve
       to an id instead of recursing), resolving includes eagerly;
    2. flatten include chains into per-rule candidate lists and compile the
       regular expressions (a malformed pattern is a GrammarError here, not a
       surprise at typing time).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple, Union

from syntax.regex import OnigError, compile_regex, compile_regset, has_backreferences, substitute_captures
from syntax.state import StateStack

logger = logging.getLogger(__name__)

GrammarSource = Dict[str, Any]
GrammarLookup = Callable[[str], GrammarSource]
Captures = Tuple[Tuple[int, int], ...]   # (group number, capture rule id)

# end pattern for a begin rule that has neither `end` nor `while`
_NEVER_MATCHES = "(?!)"


class GrammarError(Exception):
    def __init__(self, message: str, scope_name: str | None = None, reference: str | None = None):
        super().__init__(message)
        self.message = message
        self.scope_name = scope_name
        self.reference = reference

    def __str__(self):
        loc = ""
        if self.scope_name:
            loc += f" in grammar '{self.scope_name}'"
        if self.reference:
            loc += f" (at '{self.reference}')"
        return f"GrammarError: {self.message}{loc}"


# ───────────────────────────────────────────────────────
#                    Compiled rules
# ───────────────────────────────────────────────────────
class MatchRule(NamedTuple):
    id: int
    name: Optional[str]
    match: str
    captures: Captures


class BeginEndRule(NamedTuple):
    id: int
    name: Optional[str]
    content_name: Optional[str]
    begin: str
    end: str
    end_has_backrefs: bool
    begin_captures: Captures
    end_captures: Captures
    apply_end_pattern_last: bool
    patterns: Tuple[int, ...]
    regset: Any


class BeginWhileRule(NamedTuple):
    id: int
    name: Optional[str]
    content_name: Optional[str]
    begin: str
    while_: str
    while_has_backrefs: bool
    begin_captures: Captures
    while_captures: Captures
    patterns: Tuple[int, ...]
    regset: Any


class PatternsRule(NamedTuple):
    """Grammar root, pattern-only repository entries and capture rules."""
    id: int
    name: Optional[str]
    content_name: Optional[str]
    patterns: Tuple[int, ...]
    regset: Any


class IncludeRule(NamedTuple):
    id: int
    reference: str
    target: int


Rule = Union[MatchRule, BeginEndRule, BeginWhileRule, PatternsRule, IncludeRule]


def scope_names(name: Optional[str], match=None) -> Tuple[str, ...]:
    """Split a rule name into scopes, substituting `$N` from the match."""
    if not name:
        return ()
    return tuple(substitute_captures(name, match).split())


@dataclass(frozen=True, eq=False)
class Grammar:
    scope_name: str
    root_id: int
    rules: Tuple[Rule, ...]
    initial_state: StateStack = field(init=False)

    def __post_init__(self):
        object.__setattr__(
            self, "initial_state",
            StateStack.root(self.root_id, (self.scope_name,)),
        )

    def rule(self, rule_id: int) -> Rule:
        return self.rules[rule_id]

    def __repr__(self):
        return f"Grammar({self.scope_name!r}, rules={len(self.rules)})"


# ───────────────────────────────────────────────────────
#                      Compiler
# ───────────────────────────────────────────────────────
class _GrammarCtx(NamedTuple):
    scope_name: str
    source: GrammarSource
    repository: Dict[str, Any]


class _Ctx(NamedTuple):
    grammar: _GrammarCtx
    # innermost repository last
    repositories: Tuple[Dict[str, Any], ...]


class _Pending:
    __slots__ = ("kind", "raw", "name", "content_name", "match", "begin", "end",
                 "while_", "captures", "begin_captures", "end_captures",
                 "while_captures", "children", "reference", "target",
                 "apply_end_last")

    def __init__(self, kind: str, raw: Dict[str, Any]):
        self.kind = kind
        self.raw = raw
        self.name = raw.get("name")
        self.content_name = raw.get("contentName")
        self.match = self.begin = self.end = self.while_ = None
        self.captures: Captures = ()
        self.begin_captures: Captures = ()
        self.end_captures: Captures = ()
        self.while_captures: Captures = ()
        self.children: List[int] = []
        self.reference: Optional[str] = None
        self.target: Optional[int] = None
        self.apply_end_last = bool(raw.get("applyEndPatternLast"))


class _Compiler:
    def __init__(self, lookup: Optional[GrammarLookup]):
        self._lookup = lookup
        self._pending: List[_Pending] = []
        self._ids: Dict[int, int] = {}
        # raw dicts must stay alive while their id() is a memo key
        self._alive: List[Any] = []
        self._roots: Dict[str, int] = {}
        self._grammars: Dict[str, _GrammarCtx] = {}
        self._base: Optional[_GrammarCtx] = None

    # ---------- pass 1 ----------
    def compile_root(self, source: GrammarSource) -> int:
        scope_name = source.get("scopeName")
        if not scope_name:
            raise GrammarError("grammar source has no 'scopeName'")
        if not isinstance(scope_name, str):
            raise GrammarError(f"'scopeName' must be a string, got {type(scope_name).__name__}")
        repository = source.get("repository") or {}
        if not isinstance(repository, dict):
            raise GrammarError("'repository' must be a mapping", scope_name)
        if scope_name in self._roots:
            return self._roots[scope_name]

        gctx = _GrammarCtx(scope_name, source, repository)
        self._grammars[scope_name] = gctx
        if self._base is None:
            self._base = gctx

        root_raw = {"name": scope_name, "patterns": source.get("patterns") or []}
        rule_id = self._allocate("patterns", root_raw)
        self._roots[scope_name] = rule_id
        ctx = _Ctx(gctx, (gctx.repository,))
        self._pending[rule_id].children = self._compile_list(root_raw["patterns"], ctx)
        return rule_id

    def _allocate(self, kind: str, raw: Dict[str, Any]) -> int:
        rule_id = len(self._pending)
        self._pending.append(_Pending(kind, raw))
        self._ids[id(raw)] = rule_id
        self._alive.append(raw)
        return rule_id

    def _compile_list(self, raws, ctx: _Ctx) -> List[int]:
        if not isinstance(raws, list):
            raise GrammarError("'patterns' must be a list", ctx.grammar.scope_name)
        return [self._compile(raw, ctx) for raw in raws]

    def _compile(self, raw: Dict[str, Any], ctx: _Ctx) -> int:
        if not isinstance(raw, dict):
            raise GrammarError(f"rule must be a mapping, got {type(raw).__name__}",
                               ctx.grammar.scope_name)
        known = self._ids.get(id(raw))
        if known is not None:
            return known
        _check_names(raw, ctx)

        if "repository" in raw:
            if not isinstance(raw["repository"], dict):
                raise GrammarError("'repository' must be a mapping", ctx.grammar.scope_name)
            ctx = ctx._replace(repositories=ctx.repositories + (raw["repository"],))

        if "include" in raw:
            rule_id = self._allocate("include", raw)
            pend = self._pending[rule_id]
            pend.reference = _string(raw, "include", ctx)
            pend.target = self._resolve_include(raw["include"], ctx)
            return rule_id

        if "match" in raw:
            rule_id = self._allocate("match", raw)
            pend = self._pending[rule_id]
            pend.match = _string(raw, "match", ctx)
            pend.captures = self._compile_captures(raw.get("captures"), ctx)
            return rule_id

        if "begin" in raw:
            kind = "begin_while" if "while" in raw else "begin_end"
            rule_id = self._allocate(kind, raw)
            pend = self._pending[rule_id]
            pend.begin = _string(raw, "begin", ctx)
            captures = raw.get("captures")
            pend.begin_captures = self._compile_captures(raw.get("beginCaptures", captures), ctx)
            if kind == "begin_while":
                pend.while_ = _string(raw, "while", ctx)
                pend.while_captures = self._compile_captures(raw.get("whileCaptures", captures), ctx)
            else:
                pend.end = _string(raw, "end", ctx) if "end" in raw else _NEVER_MATCHES
                pend.end_captures = self._compile_captures(raw.get("endCaptures", captures), ctx)
            pend.children = self._compile_list(raw.get("patterns") or [], ctx)
            return rule_id

        rule_id = self._allocate("patterns", raw)
        self._pending[rule_id].children = self._compile_list(raw.get("patterns") or [], ctx)
        return rule_id

    def _compile_captures(self, raw_captures, ctx: _Ctx) -> Captures:
        if not raw_captures:
            return ()
        if not isinstance(raw_captures, dict):
            raise GrammarError(f"captures must be a mapping, got {type(raw_captures).__name__}",
                               ctx.grammar.scope_name)
        out = []
        for key, raw in raw_captures.items():
            if not str(key).isdigit():
                continue
            if not isinstance(raw, dict):
                raise GrammarError(f"capture {key} must be a mapping, got {type(raw).__name__}",
                                   ctx.grammar.scope_name)
            out.append((int(key), self._compile_capture(raw, ctx)))
        return tuple(sorted(out))

    def _compile_capture(self, raw: Dict[str, Any], ctx: _Ctx) -> int:
        known = self._ids.get(id(raw))
        if known is not None:
            return known
        _check_names(raw, ctx)
        rule_id = self._allocate("patterns", raw)
        self._pending[rule_id].children = self._compile_list(raw.get("patterns") or [], ctx)
        return rule_id

    def _resolve_include(self, reference: str, ctx: _Ctx) -> int:
        scope_name = ctx.grammar.scope_name
        if reference == "$self":
            return self._roots[scope_name]
        if reference == "$base":
            return self._roots[self._base.scope_name]
        if reference.startswith("#"):
            return self._resolve_repository(reference[1:], ctx, reference)

        target_scope, _, entry = reference.partition("#")
        gctx = self._external(target_scope, ctx, reference)
        if not entry:
            return self._roots[target_scope]
        return self._resolve_repository(entry, _Ctx(gctx, (gctx.repository,)), reference)

    def _resolve_repository(self, name: str, ctx: _Ctx, reference: str) -> int:
        repos = ctx.repositories
        for depth in range(len(repos) - 1, -1, -1):
            if name in repos[depth]:
                return self._compile(repos[depth][name], ctx._replace(repositories=repos[:depth + 1]))
        raise GrammarError(f"unresolved rule reference '{reference}'",
                           ctx.grammar.scope_name, reference)

    def _external(self, target_scope: str, ctx: _Ctx, reference: str) -> _GrammarCtx:
        if target_scope not in self._grammars:
            if self._lookup is None:
                raise GrammarError(f"no grammar available for '{target_scope}'",
                                   ctx.grammar.scope_name, reference)
            try:
                source = self._lookup(target_scope)
            except GrammarError:
                raise
            except Exception as e:
                raise GrammarError(f"cannot load grammar '{target_scope}': {e}",
                                   ctx.grammar.scope_name, reference) from e
            if not isinstance(source, dict):
                raise GrammarError(f"no grammar available for '{target_scope}'",
                                   ctx.grammar.scope_name, reference)
            logger.debug("Embedding grammar %s into %s", target_scope, self._base.scope_name)
            self.compile_root(source)
        return self._grammars[target_scope]

    # ---------- pass 2 ----------
    def _candidates(self, rule_id: int) -> Tuple[int, ...]:
        out: List[int] = []
        visited = {rule_id}
        for child in self._pending[rule_id].children:
            self._collect(child, out, visited)
        # keep declaration order, drop duplicates
        return tuple(dict.fromkeys(out))

    def _collect(self, rule_id: int, out: List[int], visited: set):
        pend = self._pending[rule_id]
        if pend.kind == "include":
            self._collect(pend.target, out, visited)
        elif pend.kind == "patterns":
            if rule_id in visited:
                return
            visited.add(rule_id)
            for child in pend.children:
                self._collect(child, out, visited)
        else:
            out.append(rule_id)

    def _check(self, pattern: str, rule_id: int, scope_name: str):
        try:
            compile_regex(pattern)
        except OnigError as e:
            raise GrammarError(f"invalid pattern {pattern!r} (rule {rule_id}): {e}",
                               scope_name, pattern) from e

    def _regset(self, candidates: Tuple[int, ...], scope_name: str):
        if not candidates:
            return None
        patterns = []
        for cid in candidates:
            pend = self._pending[cid]
            patterns.append(pend.match if pend.kind == "match" else pend.begin)
        try:
            return compile_regset(*patterns)
        except OnigError as e:
            raise GrammarError(f"cannot build scanner: {e}", scope_name) from e

    def _check_patterns(self, scope_name: str):
        for rule_id, pend in enumerate(self._pending):
            for pattern in (pend.match, pend.begin):
                if pattern is not None:
                    self._check(pattern, rule_id, scope_name)
            for pattern in (pend.end, pend.while_):
                # back-referencing patterns are only complete once expanded
                if pattern is not None and not has_backreferences(pattern):
                    self._check(pattern, rule_id, scope_name)

    def finish(self, root_id: int, scope_name: str) -> Tuple[Rule, ...]:
        self._check_patterns(scope_name)
        rules: List[Rule] = []
        for rule_id, pend in enumerate(self._pending):
            if pend.kind == "include":
                rules.append(IncludeRule(rule_id, pend.reference, pend.target))
            elif pend.kind == "match":
                rules.append(MatchRule(rule_id, pend.name, pend.match, pend.captures))
            elif pend.kind == "begin_end":
                backrefs = has_backreferences(pend.end)
                candidates = self._candidates(rule_id)
                rules.append(BeginEndRule(
                    rule_id, pend.name, pend.content_name, pend.begin, pend.end,
                    backrefs, pend.begin_captures, pend.end_captures,
                    pend.apply_end_last, candidates, self._regset(candidates, scope_name),
                ))
            elif pend.kind == "begin_while":
                backrefs = has_backreferences(pend.while_)
                candidates = self._candidates(rule_id)
                rules.append(BeginWhileRule(
                    rule_id, pend.name, pend.content_name, pend.begin, pend.while_,
                    backrefs, pend.begin_captures, pend.while_captures,
                    candidates, self._regset(candidates, scope_name),
                ))
            else:
                candidates = self._candidates(rule_id)
                rules.append(PatternsRule(
                    rule_id, pend.name, pend.content_name,
                    candidates, self._regset(candidates, scope_name),
                ))
        return tuple(rules)


def _string(raw: Dict[str, Any], key: str, ctx: _Ctx) -> str:
    value = raw[key]
    if not isinstance(value, str):
        raise GrammarError(f"'{key}' must be a string, got {type(value).__name__}",
                           ctx.grammar.scope_name, repr(value))
    return value


def _check_names(raw: Dict[str, Any], ctx: _Ctx):
    for key in ("name", "contentName"):
        if raw.get(key) is not None:
            _string(raw, key, ctx)


def compile_grammar(source: GrammarSource, lookup: Optional[GrammarLookup] = None) -> Grammar:
    """
    Compile `source` (a tmLanguage mapping) into a Grammar.

    `lookup(scope_name)` supplies sources of grammars embedded through
    `include: "source.other"`; their rules are compiled into the same arena.
    Raises GrammarError on unresolved references or malformed patterns.
    """
    if not isinstance(source, dict):
        raise GrammarError(f"grammar source must be a mapping, got {type(source).__name__}")
    compiler = _Compiler(lookup)
    root_id = compiler.compile_root(source)
    scope_name = source["scopeName"]
    rules = compiler.finish(root_id, scope_name)
    grammar = Grammar(scope_name=scope_name, root_id=root_id, rules=rules)
    logger.info("Compiled grammar %s: %d rules", scope_name, len(rules))
    return grammar
