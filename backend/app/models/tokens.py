from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class GrammarInfoOut(BaseModel):
    scope_name: str
    language: Optional[str] = None
    aliases: List[str] = []
    extensions: List[str] = []


class TokenizeRequest(BaseModel):
    scope_name: Optional[str] = Field(None, description="Root scope, e.g. 'text.bbcode'")
    language: Optional[str] = Field(None, description="Language id or alias, used when scope_name is absent")
    filename: Optional[str] = Field(None, description="Used to pick a language when neither of the above is given")
    text: Optional[str] = None
    lines: Optional[List[str]] = None
    include_styles: bool = True

    @model_validator(mode="after")
    def _check_input(self):
        if (self.text is None) == (self.lines is None):
            raise ValueError("exactly one of 'text' or 'lines' is required")
        if not (self.scope_name or self.language or self.filename):
            raise ValueError("one of 'scope_name', 'language' or 'filename' is required")
        return self


class StyleOut(BaseModel):
    foreground: str
    background: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False


class TokenOut(BaseModel):
    start: int
    end: int
    scopes: List[str]
    style: Optional[StyleOut] = None


class TokenizeResponse(BaseModel):
    scope_name: str
    lines: List[List[TokenOut]]
