# syntax/assets.py
"""
File-based asset loader: grammar sources (JSON or property list, picked by
file suffix), per-language editor configurations, VS Code theme files and
the language manifest.
"""
from __future__ import annotations

import json
import logging
import os
import plistlib
from pathlib import Path
from typing import Any, Dict, Optional

from syntax.language_config import LanguageConfiguration
from syntax.theme import TIE_BREAK_LATER, Theme

logger = logging.getLogger(__name__)

BUNDLED_GRAMMARS_DIR = Path(__file__).resolve().parent / "grammars"
LANGUAGES_MANIFEST = "languages.json"
CONFIGURATIONS_DIR = "configurations"


class AssetNotFoundError(LookupError):
    pass


def read_grammar_file(path: str | os.PathLike) -> Dict[str, Any]:
    path = Path(path)
    if not path.is_file():
        raise AssetNotFoundError(f"grammar file not found: {path}")
    if path.suffix.lower() == ".json":
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    # .tmLanguage / .plist
    with open(path, "rb") as f:
        return plistlib.load(f)


class AssetLoader:
    def __init__(self, grammars_dir: str | os.PathLike | None = None,
                 manifest: str | os.PathLike | None = None):
        self.grammars_dir = Path(grammars_dir) if grammars_dir else BUNDLED_GRAMMARS_DIR
        self.manifest_path = Path(manifest) if manifest else self.grammars_dir / LANGUAGES_MANIFEST
        self._manifest: Optional[Dict[str, Any]] = None

    def manifest(self) -> Dict[str, Any]:
        if self._manifest is None:
            if not self.manifest_path.is_file():
                raise AssetNotFoundError(f"language manifest not found: {self.manifest_path}")
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                self._manifest = json.load(f)
            logger.debug("Loaded language manifest %s", self.manifest_path)
        return self._manifest

    def grammar_path(self, scope_name: str) -> Path:
        info = (self.manifest().get("grammars") or {}).get(scope_name)
        if not info:
            raise AssetNotFoundError(f"no grammar registered for scope '{scope_name}'")
        return self.grammars_dir / info["path"]

    def fetch_grammar_source(self, scope_name: str) -> Dict[str, Any]:
        return read_grammar_file(self.grammar_path(scope_name))

    def configuration_path(self, language_id: str) -> Path:
        if language_id not in (self.manifest().get("configurations") or ()):
            raise AssetNotFoundError(f"no configuration registered for language '{language_id}'")
        return self.grammars_dir / CONFIGURATIONS_DIR / f"{language_id}.json"

    def fetch_configuration(self, language_id: str) -> LanguageConfiguration:
        path = self.configuration_path(language_id)
        if not path.is_file():
            raise AssetNotFoundError(f"configuration file not found: {path}")
        return LanguageConfiguration.parse(str(path))

    def fetch_theme(self, path: str | os.PathLike, tie_break: str = TIE_BREAK_LATER) -> Theme:
        if not Path(path).is_file():
            raise AssetNotFoundError(f"theme file not found: {path}")
        return Theme.parse(str(path), tie_break)
