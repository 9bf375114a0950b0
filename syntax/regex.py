# syntax/regex.py
"""
Oniguruma seam. TextMate grammars are written for the Oniguruma dialect
(look-behind, possessive quantifiers, \\h, \\G ...), so matching goes through
onigurumacffi rather than the stdlib `re`.
"""
from __future__ import annotations

import functools
import re
from typing import Optional

import onigurumacffi

OnigError = onigurumacffi.OnigError

REGEX_CACHE_SIZE = 4096
# end/while patterns with back-references filled in; one per distinct
# captured delimiter, so they get their own small cache
EXPANDED_CACHE_SIZE = 256

compile_regex = functools.lru_cache(maxsize=REGEX_CACHE_SIZE)(onigurumacffi.compile)
compile_regset = functools.lru_cache(maxsize=REGEX_CACHE_SIZE)(onigurumacffi.compile_regset)
compile_expanded = functools.lru_cache(maxsize=EXPANDED_CACHE_SIZE)(onigurumacffi.compile)

# \1 .. \99 not preceded by an odd number of backslashes
_BACKREF_RE = re.compile(r"((?<!\\)(?:\\\\)*)\\([0-9]+)")
# $1, ${1:/downcase}, ${1:/upcase}
_CAPTURE_NAME_RE = re.compile(r"\$(\d+)|\$\{(\d+):/(downcase|upcase)\}")


class MatchEngineError(RuntimeError):
    """Runtime failure while evaluating patterns for one line."""


def has_backreferences(pattern: Optional[str]) -> bool:
    return bool(pattern) and _BACKREF_RE.search(pattern) is not None


def _group(match, n: int) -> str:
    try:
        return match[n] or ""
    except IndexError:
        return ""


def expand_backreferences(match, pattern: str) -> str:
    """Substitute \\N in an end/while pattern with the escaped text of group N."""
    return _BACKREF_RE.sub(
        lambda m: f"{m[1]}{re.escape(_group(match, int(m[2])))}", pattern
    )


def substitute_captures(name: str, match) -> str:
    if "$" not in name or match is None:
        return name

    def _repl(m) -> str:
        if m[1] is not None:
            return _group(match, int(m[1]))
        text = _group(match, int(m[2]))
        return text.lower() if m[3] == "downcase" else text.upper()

    return _CAPTURE_NAME_RE.sub(_repl, name)
