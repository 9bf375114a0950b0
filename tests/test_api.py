import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.assets import get_registry
from syntax.registry import GrammarInfo, LanguageInfo, LanguageRegistry


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def broken_registry():
    registry = LanguageRegistry(
        [LanguageInfo("bad", extensions=(".bad",))],
        {"source.bad": GrammarInfo("source.bad", "bad", "bad.json")},
        lambda scope: {"scopeName": "source.bad", "patterns": [{"match": "(unclosed"}]},
    )
    app.dependency_overrides[get_registry] = lambda: registry
    yield registry
    app.dependency_overrides.pop(get_registry, None)


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "/api/tokenize" in r.json()["message"]


def test_list_grammars(client):
    r = client.get("/api/grammars")
    assert r.status_code == 200
    entries = {g["scope_name"]: g for g in r.json()}
    assert entries["text.bbcode"]["language"] == "bbcode"
    assert ".bbcode" in entries["text.bbcode"]["extensions"]


def test_tokenize_text_by_scope(client):
    r = client.post("/api/tokenize", json={"scope_name": "text.bbcode", "text": "[b]hi[/b]\nplain"})
    assert r.status_code == 200
    body = r.json()
    assert body["scope_name"] == "text.bbcode"
    assert len(body["lines"]) == 2

    bold = body["lines"][0][3]
    assert (bold["start"], bold["end"]) == (3, 5)
    assert bold["scopes"][-1] == "markup.bold.bbcode"
    assert bold["style"]["bold"] is True

    assert body["lines"][1] == [{
        "start": 0, "end": 5, "scopes": ["text.bbcode"],
        "style": {"foreground": "#d4d4d4", "background": "#1e1e1e", "bold": False,
                  "italic": False, "underline": False, "strikethrough": False},
    }]


def test_tokenize_lines_by_language_without_styles(client):
    r = client.post("/api/tokenize", json={"language": "BBC", "lines": ["[i]x", "y[/i]", ""],
                                           "include_styles": False})
    assert r.status_code == 200
    lines = r.json()["lines"]
    assert lines[0][-1]["scopes"][-1] == "markup.italic.bbcode"
    assert lines[1][0]["scopes"][-1] == "markup.italic.bbcode"
    assert lines[2] == []
    assert all(t["style"] is None for line in lines for t in line)


def test_tokenize_by_filename(client):
    r = client.post("/api/tokenize", json={"filename": "post.bbcode", "text": "[s]x[/s]"})
    assert r.status_code == 200
    assert r.json()["scope_name"] == "text.bbcode"


def test_windows_line_breaks_are_split(client):
    r = client.post("/api/tokenize", json={"scope_name": "text.bbcode", "text": "a\r\nb\rc"})
    assert r.status_code == 200
    assert [line[0]["end"] for line in r.json()["lines"]] == [1, 1, 1]


def test_unknown_scope_is_404(client):
    r = client.post("/api/tokenize", json={"scope_name": "source.nope", "text": "x"})
    assert r.status_code == 404


def test_unknown_language_is_404(client):
    r = client.post("/api/tokenize", json={"language": "cobol", "text": "x"})
    assert r.status_code == 404
    r = client.post("/api/tokenize", json={"filename": "x.unknown", "text": "x"})
    assert r.status_code == 404


def test_invalid_body_is_422(client):
    assert client.post("/api/tokenize", json={"scope_name": "text.bbcode"}).status_code == 422
    assert client.post("/api/tokenize", json={"text": "x"}).status_code == 422
    r = client.post("/api/tokenize", json={"scope_name": "text.bbcode", "text": "x", "lines": ["x"]})
    assert r.status_code == 422


def test_grammar_error_is_422(client, broken_registry):
    r = client.post("/api/tokenize", json={"scope_name": "source.bad", "text": "x"})
    assert r.status_code == 422
    assert "(unclosed" in r.json()["detail"]
