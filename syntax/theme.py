# syntax/theme.py
"""
Scope theme resolver.

A theme is an ordered list of rules `selector -> partial style`. For a scope
stack (outermost first) every attribute is taken from the best-ranked rule
that sets it. Ranking, highest first:
    1. depth of the matched scope, innermost wins
    2. number of selector segments ("string.quoted" beats "string")
    3. number of ancestor selectors ("source string" beats "string")
    4. declaration order (later wins unless tie_break == "earlier")
"""
from __future__ import annotations

import functools
import json
import logging
import re
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

TIE_BREAK_LATER = "later"
TIE_BREAK_EARLIER = "earlier"

# line comments in VS Code theme files (not inside strings, good enough)
UN_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)


class Style(NamedTuple):
    foreground: str = "#d4d4d4"
    background: str = "#1e1e1e"
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False


class PartialStyle(NamedTuple):
    foreground: Optional[str] = None
    background: Optional[str] = None
    # None means "not set"; an empty fontStyle explicitly clears all bits
    font_style: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "PartialStyle":
        font_style = settings.get("fontStyle")
        return cls(
            foreground=_color(settings.get("foreground")),
            background=_color(settings.get("background")),
            font_style=tuple(font_style.split()) if isinstance(font_style, str) else None,
        )


def _color(value) -> Optional[str]:
    if not isinstance(value, str) or not value.startswith("#"):
        return None
    value = value.lower()
    if len(value) == 4:  # #abc
        value = "#" + "".join(ch * 2 for ch in value[1:])
    return value[:7] if len(value) in (7, 9) else None


class ThemeRule(NamedTuple):
    selector: str
    style: PartialStyle
    order: int = 0

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.selector.split()[-1].split(".")) if self.selector else ()

    @property
    def ancestors(self) -> Tuple[str, ...]:
        return tuple(self.selector.split()[:-1])


def _scope_matches(selector: str, scope: str) -> bool:
    return scope == selector or scope.startswith(selector + ".")


def _ancestors_match(ancestors: Tuple[str, ...], outer: Tuple[str, ...]) -> bool:
    # ancestors must appear, in order, among the outer scopes
    idx = len(outer) - 1
    for selector in reversed(ancestors):
        while idx >= 0 and not _scope_matches(selector, outer[idx]):
            idx -= 1
        if idx < 0:
            return False
        idx -= 1
    return True


class Theme(NamedTuple):
    default: Style
    rules: Tuple[ThemeRule, ...]
    tie_break: str = TIE_BREAK_LATER

    def resolve(self, scopes: Tuple[str, ...]) -> Style:
        return _resolve_cached(self, tuple(scopes))

    @classmethod
    def from_rules(
        cls,
        rules: Iterable[Tuple[str, Dict[str, Any]]],
        default: Optional[Style] = None,
        tie_break: str = TIE_BREAK_LATER,
    ) -> "Theme":
        """Build from `(selector, settings)` pairs; a selector may list several
        scopes separated by commas."""
        out: List[ThemeRule] = []
        for order, (selector, settings) in enumerate(rules):
            style = PartialStyle.from_settings(settings)
            for part in _split_selectors(selector):
                out.append(ThemeRule(part, style, order))
        return cls(default or Style(), tuple(out), _check_tie_break(tie_break))

    @classmethod
    def from_vscode(cls, data: Dict[str, Any], tie_break: str = TIE_BREAK_LATER) -> "Theme":
        default = Style()._asdict()
        colors = data.get("colors") or {}
        for key in ("editor.foreground", "foreground"):
            if _color(colors.get(key)):
                default["foreground"] = _color(colors[key])
                break
        for key in ("editor.background", "background"):
            if _color(colors.get(key)):
                default["background"] = _color(colors[key])
                break

        pairs: List[Tuple[str, Dict[str, Any]]] = []
        for entry in data.get("tokenColors") or []:
            settings = entry.get("settings") or {}
            scope = entry.get("scope")
            if not scope:
                # scope-less entries restyle the default
                partial = PartialStyle.from_settings(settings)
                default.update(_overlay(Style(**default), partial)._asdict())
                continue
            if isinstance(scope, list):
                scope = ",".join(scope)
            pairs.append((scope, settings))

        theme = cls.from_rules(pairs, Style(**default), tie_break)
        logger.debug("Theme parsed: %d rules", len(theme.rules))
        return theme

    @classmethod
    def parse(cls, filename: str, tie_break: str = TIE_BREAK_LATER) -> "Theme":
        with open(filename, "r", encoding="utf-8") as f:
            contents = UN_COMMENT.sub("", f.read())
        return cls.from_vscode(json.loads(contents), tie_break)

    @classmethod
    def merge(cls, *themes: "Theme", tie_break: Optional[str] = None) -> "Theme":
        """Concatenate rule lists; rules of later themes are declared later."""
        if not themes:
            return cls(Style(), ())
        rules: List[ThemeRule] = []
        offset = 0
        for theme in themes:
            rules.extend(r._replace(order=r.order + offset) for r in theme.rules)
            offset += max((r.order for r in theme.rules), default=-1) + 1
        return cls(themes[-1].default, tuple(rules),
                   _check_tie_break(tie_break or themes[-1].tie_break))


def _check_tie_break(value: str) -> str:
    if value not in (TIE_BREAK_LATER, TIE_BREAK_EARLIER):
        raise ValueError(f"tie_break must be '{TIE_BREAK_LATER}' or '{TIE_BREAK_EARLIER}', got {value!r}")
    return value


def _split_selectors(selector: str) -> List[str]:
    # some themes have a buggy trailing comma
    return [s.strip() for s in selector.split(",") if s.strip()]


def _overlay(style: Style, partial: PartialStyle) -> Style:
    values = style._asdict()
    if partial.foreground is not None:
        values["foreground"] = partial.foreground
    if partial.background is not None:
        values["background"] = partial.background
    if partial.font_style is not None:
        values["bold"] = "bold" in partial.font_style
        values["italic"] = "italic" in partial.font_style
        values["underline"] = "underline" in partial.font_style
        values["strikethrough"] = "strikethrough" in partial.font_style
    return Style(**values)


def _rank(rule: ThemeRule, scopes: Tuple[str, ...], tie_break: str) -> Optional[tuple]:
    segments = rule.segments
    if not segments:
        return None
    selector = ".".join(segments)
    ancestors = rule.ancestors
    for depth in range(len(scopes) - 1, -1, -1):
        if _scope_matches(selector, scopes[depth]):
            if ancestors and not _ancestors_match(ancestors, scopes[:depth]):
                continue
            order = rule.order if tie_break == TIE_BREAK_LATER else -rule.order
            return depth, len(segments), len(ancestors), order
    return None


def resolve(theme: Theme, scopes: Tuple[str, ...]) -> Style:
    """Style for a scope stack (outermost first). Never fails: with no
    matching rule the theme's default style is returned."""
    ranked = []
    for rule in theme.rules:
        rank = _rank(rule, scopes, theme.tie_break)
        if rank is not None:
            ranked.append((rank, rule))
    if not ranked:
        return theme.default

    ranked.sort(key=lambda item: item[0])
    style = theme.default
    # lowest rank first so the best rule is applied last
    for _, rule in ranked:
        style = _overlay(style, rule.style)
    return style


_resolve_cached = functools.lru_cache(maxsize=8192)(resolve)
