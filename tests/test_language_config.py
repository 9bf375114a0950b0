import pytest

from syntax.language_config import AutoClosingPair, LanguageConfiguration


def test_vscode_configuration_forms():
    config = LanguageConfiguration.from_dict({
        "comments": {"lineComment": "//", "blockComment": ["/*", "*/"]},
        "brackets": [["{", "}"], ["(", ")"]],
        "autoClosingPairs": [
            ["(", ")"],
            {"open": "\"", "close": "\"", "notIn": ["string", "comment"]},
            {"open": "'", "close": "'", "notIn": "string"},
        ],
        "surroundingPairs": [["(", ")"]],
        "indentationRules": {"increaseIndentPattern": {"pattern": "then\\s*$", "flags": "i"}},
    })
    assert config.line_comment == "//"
    assert config.block_comment == ("/*", "*/")
    assert config.brackets == (("{", "}"), ("(", ")"))
    assert config.auto_closing_pairs[0] == AutoClosingPair("(", ")")
    assert config.auto_close_for('"').not_in == ("string", "comment")
    assert config.auto_close_for("'").not_in == ("string",)
    assert config.auto_close_for("[") is None
    assert config.is_closing(")") and not config.is_closing("(")
    assert config.surround_for("(") == ")"
    assert config.surround_for('"') is None
    assert config.indents_after("IF x THEN")
    assert not config.indents_after("x = 1")


def test_empty_configuration_does_nothing():
    config = LanguageConfiguration.from_dict({})
    assert config == LanguageConfiguration()
    assert not config.indents_after("[list]")


@pytest.mark.parametrize("data", [
    ["not", "a", "mapping"],
    {"brackets": [["["]]},
    {"autoClosingPairs": [{"open": "["}]},
    {"comments": ["//"]},
    {"comments": {"lineComment": 5}},
    {"comments": {"blockComment": "/*"}},
    {"indentationRules": {"increaseIndentPattern": "(unclosed"}},
    {"indentationRules": {"increaseIndentPattern": 3}},
])
def test_malformed_configuration_raises_value_error(data):
    with pytest.raises(ValueError):
        LanguageConfiguration.from_dict(data)


def test_parse_accepts_line_comments(tmp_path):
    path = tmp_path / "conf.json"
    path.write_text('{\n  // brackets only\n  "brackets": [["[", "]"]]\n}\n', encoding="utf-8")
    assert LanguageConfiguration.parse(str(path)).brackets == (("[", "]"),)
