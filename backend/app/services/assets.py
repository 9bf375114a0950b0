# backend/app/services/assets.py
"""Process-wide registry and theme, built on first request."""
from functools import lru_cache

from app.core.config import GRAMMARS_DIR, LANGUAGES_FILE, THEME_PATH, THEME_TIE_BREAK
from app.utils.logger_api import api_logger
from syntax.assets import AssetLoader
from syntax.default_theme import dark_plus
from syntax.registry import LanguageRegistry
from syntax.theme import Theme


@lru_cache(maxsize=1)
def get_loader() -> AssetLoader:
    return AssetLoader(GRAMMARS_DIR, LANGUAGES_FILE)


@lru_cache(maxsize=1)
def get_registry() -> LanguageRegistry:
    registry = LanguageRegistry.from_loader(get_loader())
    api_logger.info(f"Language registry ready: {len(registry.grammars)} grammar(s) from {GRAMMARS_DIR}")
    return registry


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    if THEME_PATH:
        api_logger.info(f"Loading theme from {THEME_PATH}")
        return get_loader().fetch_theme(THEME_PATH, THEME_TIE_BREAK)
    return dark_plus(THEME_TIE_BREAK)
