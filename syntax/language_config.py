# syntax/language_config.py
"""
Per-language editor behaviour, read from VS Code `language-configuration.json`
files: comment markers, bracket pairs, auto-closing and surrounding pairs and
the indentation rule applied on Enter.

Regular expressions may be given as a string or as `{"pattern", "flags"}`;
they are checked with the same engine as grammars when the file is loaded.
"""
from __future__ import annotations

import json
from typing import Any, Dict, NamedTuple, Optional, Tuple

from syntax.regex import OnigError, compile_regex
from syntax.theme import UN_COMMENT

Pair = Tuple[str, str]


class AutoClosingPair(NamedTuple):
    open: str
    close: str
    # scope kinds ("string", "comment") in which the pair is not closed
    not_in: Tuple[str, ...] = ()


class LanguageConfiguration(NamedTuple):
    line_comment: Optional[str] = None
    block_comment: Optional[Pair] = None
    brackets: Tuple[Pair, ...] = ()
    auto_closing_pairs: Tuple[AutoClosingPair, ...] = ()
    surrounding_pairs: Tuple[Pair, ...] = ()
    increase_indent_pattern: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LanguageConfiguration":
        """Raises ValueError when an entry has the wrong shape or a pattern
        does not compile."""
        if not isinstance(data, dict):
            raise ValueError(f"language configuration must be a mapping, got {type(data).__name__}")
        comments = _mapping(data, "comments")
        block = comments.get("blockComment")
        indentation = _mapping(data, "indentationRules")
        line_comment = comments.get("lineComment") or None
        if line_comment is not None and not isinstance(line_comment, str):
            raise ValueError(f"lineComment: expected a string, got {line_comment!r}")
        return cls(
            line_comment=line_comment,
            block_comment=_pair(block, "blockComment") if block else None,
            brackets=tuple(_pair(p, "brackets") for p in data.get("brackets") or ()),
            auto_closing_pairs=tuple(_auto_closing(p) for p in data.get("autoClosingPairs") or ()),
            surrounding_pairs=tuple(_pair(p, "surroundingPairs")
                                    for p in data.get("surroundingPairs") or ()),
            increase_indent_pattern=_pattern(indentation.get("increaseIndentPattern"),
                                             "increaseIndentPattern"),
        )

    @classmethod
    def parse(cls, filename: str) -> "LanguageConfiguration":
        with open(filename, "r", encoding="utf-8") as f:
            contents = UN_COMMENT.sub("", f.read())
        return cls.from_dict(json.loads(contents))

    # ---------- queries ----------
    def auto_close_for(self, ch: str) -> Optional[AutoClosingPair]:
        for pair in self.auto_closing_pairs:
            if pair.open == ch:
                return pair
        return None

    def is_closing(self, ch: str) -> bool:
        return any(pair.close == ch for pair in self.auto_closing_pairs)

    def surround_for(self, ch: str) -> Optional[str]:
        for open_, close in self.surrounding_pairs:
            if open_ == ch:
                return close
        return None

    def indents_after(self, line: str) -> bool:
        if self.increase_indent_pattern is None:
            return False
        return compile_regex(self.increase_indent_pattern).search(line) is not None


def _mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"{key}: expected a mapping, got {type(value).__name__}")
    return value


def _pair(value, what: str) -> Pair:
    if (not isinstance(value, (list, tuple)) or len(value) != 2
            or not all(isinstance(v, str) and v for v in value)):
        raise ValueError(f"{what}: expected a pair of strings, got {value!r}")
    return value[0], value[1]


def _auto_closing(value) -> AutoClosingPair:
    if isinstance(value, dict):
        open_, close = _pair([value.get("open"), value.get("close")], "autoClosingPairs")
        not_in = value.get("notIn") or ()
        if isinstance(not_in, str):
            not_in = (not_in,)
        return AutoClosingPair(open_, close, tuple(not_in))
    return AutoClosingPair(*_pair(value, "autoClosingPairs"))


def _pattern(value, what: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        pattern = value.get("pattern")
        if "i" in (value.get("flags") or "") and isinstance(pattern, str):
            pattern = "(?i)" + pattern
    else:
        pattern = value
    if not isinstance(pattern, str):
        raise ValueError(f"{what}: expected a regular expression, got {value!r}")
    try:
        compile_regex(pattern)
    except OnigError as e:
        raise ValueError(f"{what}: invalid pattern {pattern!r}: {e}") from e
    return pattern
