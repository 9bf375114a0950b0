import json
import plistlib

import pytest

from syntax.assets import AssetLoader, AssetNotFoundError, read_grammar_file
from syntax.default_theme import dark_plus
from syntax.document import EditEvent
from syntax.grammar import Grammar
from syntax.provider import TokenProvider, tokenize_document
from syntax.registry import GrammarInfo, LanguageInfo, LanguageRegistry
from syntax.tokenizer import Token

TAG = ("text.bbcode", "meta.tag.b.bbcode")
BOLD = TAG + ("markup.bold.bbcode",)


@pytest.fixture
def registry():
    return LanguageRegistry.from_loader(AssetLoader())


@pytest.fixture
def bbcode(registry):
    grammar = registry.load_grammar("text.bbcode")
    assert grammar is not None
    return grammar


def test_bundled_manifest_lists_bbcode(registry):
    assert "bbcode" in registry.languages
    assert registry.grammars["text.bbcode"].language == "bbcode"
    assert registry.scope_for_language("bbcode") == "text.bbcode"


def test_language_lookup(registry):
    assert registry.language_for_file("/tmp/post.bbcode").id == "bbcode"
    assert registry.language_for_file("POST.BBC").id == "bbcode"
    assert registry.language_for_file("notes.txt") is None
    assert registry.language_for_file("notes", first_line="[quote]hello").id == "bbcode"
    assert registry.language_by_name("BBC").id == "bbcode"
    assert registry.language_by_name("cobol") is None


def test_grammar_for_file(registry):
    assert isinstance(registry.grammar_for_file("a.bbcode"), Grammar)
    assert registry.grammar_for_file("a.py") is None


def test_grammars_are_compiled_once(registry):
    assert registry.load_grammar("text.bbcode") is registry.load_grammar("text.bbcode")


def test_bbcode_tags(bbcode):
    from syntax.tokenizer import tokenize_line

    tokens, state = tokenize_line(bbcode, "[b]hi[/b]")
    assert tokens == (
        Token(0, 1, TAG + ("punctuation.definition.tag.bbcode",)),
        Token(1, 2, TAG + ("entity.name.tag.bbcode",)),
        Token(2, 3, TAG + ("punctuation.definition.tag.bbcode",)),
        Token(3, 5, BOLD),
        Token(5, 7, TAG + ("punctuation.definition.tag.bbcode",)),
        Token(7, 8, TAG + ("entity.name.tag.bbcode",)),
        Token(8, 9, TAG + ("punctuation.definition.tag.bbcode",)),
    )
    assert state == bbcode.initial_state


def test_bbcode_paired_tag_uses_captured_name(bbcode):
    from syntax.tokenizer import tokenize_line

    tokens, state = tokenize_line(bbcode, "[COLOR=red]x")
    assert ("text.bbcode", "meta.tag.color.bbcode") == tokens[-1].scopes
    assert Token(7, 10, ("text.bbcode", "meta.tag.color.bbcode",
                         "string.unquoted.attribute-value.bbcode")) in tokens

    tokens, state = tokenize_line(bbcode, "y[/color] z", state)
    assert tokens[-1] == Token(9, 11, ("text.bbcode",))
    assert state == bbcode.initial_state


def test_bbcode_bold_spans_lines(bbcode):
    driver_tokens = tokenize_document(bbcode, dark_plus(), ["[b]one", "two[/b] three"])
    assert driver_tokens[1][0].scopes == BOLD
    assert driver_tokens[1][0].style.bold
    assert driver_tokens[1][-1].scopes == ("text.bbcode",)


def test_stray_close_is_flagged(bbcode):
    from syntax.tokenizer import tokenize_line

    tokens, _ = tokenize_line(bbcode, "a [/b]")
    assert tokens[-1] == Token(2, 6, ("text.bbcode", "invalid.illegal.stray-close.bbcode"))


def test_missing_grammar_file_disables_highlighting(tmp_path, caplog):
    (tmp_path / "languages.json").write_text(json.dumps({
        "languages": [{"id": "ghost", "extensions": [".ghost"]}],
        "grammars": {"source.ghost": {"language": "ghost", "path": "ghost.json"}},
    }), encoding="utf-8")
    registry = LanguageRegistry.from_loader(AssetLoader(tmp_path))

    assert registry.grammar_for_file("x.ghost") is None
    assert "ghost.json" in registry.load_error("source.ghost")
    assert "not available" in caplog.text


def test_broken_grammar_is_reported_not_raised():
    registry = LanguageRegistry(
        [LanguageInfo("bad")],
        {"source.bad": GrammarInfo("source.bad", "bad", "bad.json")},
        lambda scope: {"scopeName": "source.bad", "patterns": [{"include": "#missing"}]},
    )
    assert registry.load_grammar("source.bad") is None
    assert "#missing" in registry.load_error("source.bad")


@pytest.mark.parametrize("patterns", [
    [{"match": "a", "captures": ["oops"]}],
    [{"match": 5}],
])
def test_wrongly_shaped_grammar_disables_highlighting(patterns, caplog):
    registry = LanguageRegistry(
        [LanguageInfo("shape", extensions=(".shape",))],
        {"source.shape": GrammarInfo("source.shape", "shape", "shape.json")},
        lambda scope: {"scopeName": "source.shape", "patterns": patterns},
    )
    assert registry.grammar_for_file("x.shape") is None
    assert "must be" in registry.load_error("source.shape")
    assert "failed to compile" in caplog.text


def test_embedded_grammar_through_registry(demo_source):
    sources = {
        "text.host": {"scopeName": "text.host",
                      "patterns": [{"begin": "<%", "end": "%>", "patterns": [{"include": "source.demo"}]}]},
        "source.demo": demo_source,
    }

    def fetch(scope):
        if scope not in sources:
            raise AssetNotFoundError(scope)
        return sources[scope]

    registry = LanguageRegistry([], {}, fetch)
    assert registry.load_grammar("text.host") is not None
    sources["text.host"]["patterns"][0]["patterns"] = [{"include": "source.nowhere"}]
    assert LanguageRegistry([], {}, fetch).load_grammar("text.host") is None


def test_read_grammar_file_by_suffix(tmp_path, demo_source):
    json_path = tmp_path / "demo.tmLanguage.json"
    json_path.write_text(json.dumps(demo_source), encoding="utf-8")
    plist_path = tmp_path / "demo.tmLanguage"
    with open(plist_path, "wb") as f:
        plistlib.dump(demo_source, f)

    assert read_grammar_file(json_path) == demo_source
    assert read_grammar_file(plist_path) == demo_source
    with pytest.raises(AssetNotFoundError):
        read_grammar_file(tmp_path / "absent.json")


def test_loader_errors(tmp_path):
    loader = AssetLoader(tmp_path)
    with pytest.raises(AssetNotFoundError):
        loader.manifest()
    with pytest.raises(AssetNotFoundError):
        loader.fetch_theme(tmp_path / "nope.json")


def test_bundled_bbcode_configuration():
    config = AssetLoader().fetch_configuration("bbcode")
    assert config.brackets == (("[", "]"),)
    assert config.line_comment is None
    assert config.auto_close_for("[").close == "]"
    assert config.surround_for('"') == '"'
    assert config.indents_after("  [list]")
    assert config.indents_after("[quote=someone]")
    assert not config.indents_after("[b]bold")


def test_configuration_lookup_errors(tmp_path):
    (tmp_path / "languages.json").write_text(json.dumps({"configurations": ["ghost"]}), encoding="utf-8")
    loader = AssetLoader(tmp_path)
    with pytest.raises(AssetNotFoundError):
        loader.fetch_configuration("cobol")
    # listed in the manifest but missing on disk
    with pytest.raises(AssetNotFoundError):
        loader.fetch_configuration("ghost")


def test_registry_configuration_is_cached_and_fails_soft(tmp_path, caplog):
    config_dir = tmp_path / "configurations"
    config_dir.mkdir()
    (config_dir / "broken.json").write_text('{"brackets": [["["]]}', encoding="utf-8")
    (tmp_path / "languages.json").write_text(
        json.dumps({"configurations": ["broken"]}), encoding="utf-8")
    registry = LanguageRegistry.from_loader(AssetLoader(tmp_path))

    assert registry.configuration_for_language("broken") is None
    assert "unreadable" in caplog.text
    assert registry.configuration_for_language("missing") is None

    calls = []
    registry = LanguageRegistry([], {}, lambda scope: {}, lambda lang: calls.append(lang))
    registry.configuration_for_language("x")
    registry.configuration_for_language("x")
    assert calls == ["x"]


def test_registry_from_loader_reads_bbcode_configuration(registry):
    config = registry.configuration_for_language("bbcode")
    assert config is not None
    assert config.is_closing("]")


def test_provider_styles_tokens(demo_grammar):
    theme = dark_plus()
    provider = TokenProvider(demo_grammar, theme, ["foo # bar"])
    styled = provider.provide_styled_tokens(0)
    assert [(t.start, t.end) for t in styled] == [(0, 3), (3, 4), (4, 9)]
    assert styled[2].style == theme.resolve(("source.demo", "comment"))
    assert styled[2].style.foreground == "#6a9955"
    assert provider.resolve_style(["source.demo"]) == theme.default


def test_provider_edits_and_background_steps(demo_grammar):
    provider = TokenProvider(demo_grammar, dark_plus(), ["a"] * 5, chunk_lines=2)
    assert provider.background_step() is True
    provider.on_edit(EditEvent(0, 1, 1), ['"a'])
    while provider.background_step():
        pass
    assert provider.provide_tokens(4) == (Token(0, 1, ("source.demo", "string")),)
    assert provider.state_key(4) == provider.state_key(3)
    assert provider.state_key(4) != TokenProvider(demo_grammar, dark_plus(), ["a"]).state_key(0)
