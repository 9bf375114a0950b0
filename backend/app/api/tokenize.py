# File: backend/app/api/tokenize.py
import re

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import MAX_LINES_PER_REQUEST, MAX_STEPS_PER_CHAR
from app.models.tokens import StyleOut, TokenizeRequest, TokenizeResponse, TokenOut
from app.services.assets import get_registry, get_theme
from app.utils.logger_api import api_logger
from syntax.grammar import Grammar
from syntax.provider import TokenProvider
from syntax.registry import LanguageRegistry
from syntax.theme import Theme

router = APIRouter()

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def resolve_scope(payload: TokenizeRequest, registry: LanguageRegistry) -> str:
    if payload.scope_name:
        if payload.scope_name not in registry.grammars:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail=f"Unknown grammar scope: {payload.scope_name}")
        return payload.scope_name

    if payload.language:
        lang = registry.language_by_name(payload.language)
        if lang is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail=f"Unknown language: {payload.language}")
    else:
        first_line = payload.lines[0] if payload.lines else (payload.text or "").split("\n", 1)[0]
        lang = registry.language_for_file(payload.filename, first_line)
        if lang is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail=f"No language registered for file: {payload.filename}")

    scope = registry.scope_for_language(lang.id)
    if scope is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"No grammar registered for language: {lang.id}")
    return scope


def load_grammar(scope: str, registry: LanguageRegistry) -> Grammar:
    grammar = registry.load_grammar(scope)
    if grammar is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail=f"Grammar '{scope}' is unusable: {registry.load_error(scope)}")
    return grammar


@router.post("", response_model=TokenizeResponse)
async def tokenize(
    payload: TokenizeRequest,
    registry: LanguageRegistry = Depends(get_registry),
    theme: Theme = Depends(get_theme),
):
    scope = resolve_scope(payload, registry)
    grammar = load_grammar(scope, registry)

    lines = payload.lines if payload.lines is not None else _LINE_BREAK_RE.split(payload.text)
    if len(lines) > MAX_LINES_PER_REQUEST:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                            detail=f"At most {MAX_LINES_PER_REQUEST} lines per request, got {len(lines)}")

    api_logger.info(f"Tokenizing {len(lines)} line(s) with {scope}")
    provider = TokenProvider(grammar, theme, lines, max_steps_per_char=MAX_STEPS_PER_CHAR)
    try:
        out = []
        for i in range(len(lines)):
            if payload.include_styles:
                line_tokens = [
                    TokenOut(start=t.start, end=t.end, scopes=list(t.scopes),
                             style=StyleOut(**t.style._asdict()))
                    for t in provider.provide_styled_tokens(i)
                ]
            else:
                line_tokens = [
                    TokenOut(start=t.start, end=t.end, scopes=list(t.scopes))
                    for t in provider.provide_tokens(i)
                ]
            out.append(line_tokens)
    finally:
        provider.close()
    return TokenizeResponse(scope_name=scope, lines=out)
