# File: backend/app/api/grammars.py
from typing import List

from fastapi import APIRouter, Depends

from app.models.tokens import GrammarInfoOut
from app.services.assets import get_registry
from app.utils.logger_api import api_logger
from syntax.registry import LanguageRegistry

router = APIRouter()


@router.get("", response_model=List[GrammarInfoOut])
async def list_grammars(registry: LanguageRegistry = Depends(get_registry)):
    """Grammars known to the registry, with the language each one highlights."""
    api_logger.info("Grammar list requested.")
    out = []
    for info in registry.grammars.values():
        lang = registry.languages.get(info.language) if info.language else None
        out.append(GrammarInfoOut(
            scope_name=info.scope_name,
            language=info.language,
            aliases=list(lang.aliases) if lang else [],
            extensions=list(lang.extensions) if lang else [],
        ))
    return out
