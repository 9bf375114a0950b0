# syntax/registry.py
"""
Language registry: which language a file belongs to and which compiled
grammar highlights it. Grammars are compiled on first use and cached; a
grammar that fails to load is cached as None (no highlighting) so the error
is logged once.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from syntax.assets import AssetLoader, AssetNotFoundError
from syntax.grammar import Grammar, GrammarError, compile_grammar
from syntax.language_config import LanguageConfiguration
from syntax.regex import OnigError, compile_regex

logger = logging.getLogger(__name__)


class LanguageInfo(NamedTuple):
    id: str
    extensions: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    filenames: Tuple[str, ...] = ()
    first_line: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LanguageInfo":
        return cls(
            id=data["id"],
            extensions=tuple(e.lower() for e in data.get("extensions") or ()),
            aliases=tuple(data.get("aliases") or ()),
            filenames=tuple(data.get("filenames") or ()),
            first_line=data.get("firstLine") or None,
        )


class GrammarInfo(NamedTuple):
    scope_name: str
    language: Optional[str]
    path: str


class LanguageRegistry:
    def __init__(
        self,
        languages: List[LanguageInfo],
        grammars: Dict[str, GrammarInfo],
        fetch_grammar: Callable[[str], Dict[str, Any]],
        fetch_configuration: Optional[Callable[[str], LanguageConfiguration]] = None,
    ):
        self.languages = {lang.id: lang for lang in languages}
        self.grammars = grammars
        self._fetch_grammar = fetch_grammar
        self._fetch_configuration = fetch_configuration
        self._configurations: Dict[str, Optional[LanguageConfiguration]] = {}
        self._compiled: Dict[str, Optional[Grammar]] = {}
        self._errors: Dict[str, str] = {}

    @classmethod
    def from_loader(cls, loader: AssetLoader) -> "LanguageRegistry":
        manifest = loader.manifest()
        languages = [LanguageInfo.from_dict(d) for d in manifest.get("languages") or []]
        grammars = {
            scope: GrammarInfo(scope, info.get("language"), info["path"])
            for scope, info in (manifest.get("grammars") or {}).items()
        }
        return cls(languages, grammars, loader.fetch_grammar_source, loader.fetch_configuration)

    # ---------- lookup ----------
    def language_for_file(self, filename: str, first_line: str = "") -> Optional[LanguageInfo]:
        base = os.path.basename(filename)
        _, ext = os.path.splitext(base)
        for lang in self.languages.values():
            if base in lang.filenames or (ext and ext.lower() in lang.extensions):
                return lang
        if first_line:
            for lang in self.languages.values():
                if lang.first_line and _first_line_matches(lang.first_line, first_line):
                    return lang
        return None

    def language_by_name(self, name: str) -> Optional[LanguageInfo]:
        lowered = name.lower()
        for lang in self.languages.values():
            if lang.id == lowered or lowered in (a.lower() for a in lang.aliases):
                return lang
        return None

    def scope_for_language(self, language_id: str) -> Optional[str]:
        for info in self.grammars.values():
            if info.language == language_id:
                return info.scope_name
        return None

    # ---------- grammars ----------
    def load_grammar(self, scope_name: str) -> Optional[Grammar]:
        if scope_name in self._compiled:
            return self._compiled[scope_name]
        grammar: Optional[Grammar] = None
        try:
            source = self._fetch_grammar(scope_name)
            grammar = compile_grammar(source, lookup=self._fetch_embedded)
        except AssetNotFoundError as e:
            logger.error("Grammar %s not available: %s", scope_name, e)
            self._errors[scope_name] = str(e)
        except GrammarError as e:
            logger.error("Grammar %s failed to compile, highlighting disabled: %s", scope_name, e)
            self._errors[scope_name] = str(e)
        except ValueError as e:
            # malformed JSON or property list
            logger.error("Grammar %s is not a readable grammar file: %s", scope_name, e)
            self._errors[scope_name] = str(e)
        self._compiled[scope_name] = grammar
        return grammar

    def load_error(self, scope_name: str) -> Optional[str]:
        """Why the last load of `scope_name` produced no grammar, if it failed."""
        return self._errors.get(scope_name)

    def _fetch_embedded(self, scope_name: str) -> Dict[str, Any]:
        try:
            return self._fetch_grammar(scope_name)
        except (AssetNotFoundError, ValueError) as e:
            raise GrammarError(str(e), reference=scope_name) from e

    # ---------- editor configuration ----------
    def configuration_for_language(self, language_id: str) -> Optional[LanguageConfiguration]:
        """Editor configuration of a language, None when it has none or it is
        unreadable."""
        if language_id in self._configurations:
            return self._configurations[language_id]
        config: Optional[LanguageConfiguration] = None
        if self._fetch_configuration is not None:
            try:
                config = self._fetch_configuration(language_id)
            except AssetNotFoundError as e:
                logger.info("No editor configuration for %s: %s", language_id, e)
            except ValueError as e:
                logger.error("Editor configuration for %s is unreadable: %s", language_id, e)
        self._configurations[language_id] = config
        return config

    def grammar_for_language(self, language_id: str) -> Optional[Grammar]:
        scope = self.scope_for_language(language_id)
        return self.load_grammar(scope) if scope else None

    def grammar_for_file(self, filename: str, first_line: str = "") -> Optional[Grammar]:
        lang = self.language_for_file(filename, first_line)
        if lang is not None:
            return self.grammar_for_language(lang.id)
        return None


def _first_line_matches(pattern: str, first_line: str) -> bool:
    try:
        return compile_regex(pattern).search(first_line) is not None
    except OnigError as e:
        logger.warning("Bad firstLine pattern %r: %s", pattern, e)
        return False
