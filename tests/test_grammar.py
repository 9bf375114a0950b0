import pytest

from syntax.grammar import (
    BeginEndRule,
    GrammarError,
    IncludeRule,
    MatchRule,
    compile_grammar,
    scope_names,
)
from syntax.tokenizer import Token, tokenize_line

OUTER_SOURCE = {
    "scopeName": "text.outer",
    "patterns": [
        {
            "name": "meta.embedded",
            "begin": "<<",
            "end": ">>",
            "patterns": [{"include": "source.demo"}],
        }
    ],
}


def test_self_reference_compiles_to_ids(demo_grammar):
    block = next(r for r in demo_grammar.rules
                 if isinstance(r, BeginEndRule) and r.name == "meta.block")
    # `$self` flattens to the root candidates, including the block rule itself
    assert block.id in block.patterns
    for rule_id in block.patterns:
        assert not isinstance(demo_grammar.rule(rule_id), IncludeRule)


def test_nested_recursive_rule_tokenizes(demo_grammar):
    tokens, state = tokenize_line(demo_grammar, "{ a }")
    B = ("source.demo", "meta.block")
    assert tokens == (
        Token(0, 2, B),
        Token(2, 3, B + ("identifier",)),
        Token(3, 5, B),
    )
    assert state == demo_grammar.initial_state


def test_repository_entry_including_itself():
    source = {
        "scopeName": "source.loop",
        "patterns": [{"include": "#a"}],
        "repository": {
            "a": {"patterns": [{"include": "#a"}, {"include": "#word"}]},
            "word": {"name": "word", "match": "\\w+"},
        },
    }
    grammar = compile_grammar(source)
    tokens, _ = tokenize_line(grammar, "hi")
    assert tokens == (Token(0, 2, ("source.loop", "word")),)


def test_missing_repository_entry_raises():
    source = {"scopeName": "source.bad", "patterns": [{"include": "#nope"}]}
    with pytest.raises(GrammarError) as exc:
        compile_grammar(source)
    assert exc.value.reference == "#nope"
    assert exc.value.scope_name == "source.bad"
    assert "#nope" in str(exc.value)


def test_malformed_regex_raises_at_compile_time():
    source = {"scopeName": "source.bad", "patterns": [{"name": "x", "match": "(unclosed"}]}
    with pytest.raises(GrammarError) as exc:
        compile_grammar(source)
    assert exc.value.reference == "(unclosed"
    assert "(unclosed" in str(exc.value)


def test_malformed_nested_patterns_are_named():
    source = {
        "scopeName": "source.bad",
        "patterns": [
            {"match": "ok"},
            {"begin": "<", "end": "[unclosed", "patterns": [{"match": "a{,"}, {"match": "b("}]},
        ],
    }
    with pytest.raises(GrammarError) as exc:
        compile_grammar(source)
    assert exc.value.reference == "[unclosed"


@pytest.mark.parametrize("rule", [
    {"match": "a", "captures": ["oops"]},
    {"match": "a", "captures": {"1": "oops"}},
    {"match": 5},
    {"begin": "<", "end": None},
    {"begin": "<", "while": ["x"]},
    {"include": 7},
    {"name": ["not", "a", "scope"], "match": "a"},
    {"match": "a", "repository": []},
])
def test_wrongly_shaped_rule_raises_grammar_error(rule):
    with pytest.raises(GrammarError) as exc:
        compile_grammar({"scopeName": "source.shape", "patterns": [rule]})
    assert exc.value.scope_name == "source.shape"


def test_wrongly_shaped_root_raises_grammar_error():
    with pytest.raises(GrammarError):
        compile_grammar({"scopeName": 3, "patterns": []})
    with pytest.raises(GrammarError):
        compile_grammar({"scopeName": "source.x", "patterns": {"a": {"match": "a"}}})
    with pytest.raises(GrammarError):
        compile_grammar({"scopeName": "source.x", "patterns": [], "repository": ["a"]})


def test_missing_scope_name_raises():
    with pytest.raises(GrammarError):
        compile_grammar({"patterns": []})


def test_non_mapping_source_raises():
    with pytest.raises(GrammarError):
        compile_grammar(["not", "a", "grammar"])


def test_nested_repository_shadows_outer():
    source = {
        "scopeName": "source.shadow",
        "patterns": [{"include": "#outer"}],
        "repository": {
            "word": {"name": "outer.word", "match": "\\w+"},
            "outer": {
                "begin": "\\(",
                "end": "\\)",
                "patterns": [{"include": "#word"}],
                "repository": {"word": {"name": "inner.word", "match": "\\w+"}},
            },
        },
    }
    grammar = compile_grammar(source)
    tokens, _ = tokenize_line(grammar, "(a)")
    assert Token(1, 2, ("source.shadow", "inner.word")) in tokens


def test_external_grammar_is_embedded_through_lookup(demo_source):
    requested = []

    def lookup(scope_name):
        requested.append(scope_name)
        return demo_source

    grammar = compile_grammar(OUTER_SOURCE, lookup=lookup)
    assert requested == ["source.demo"]

    E = ("text.outer", "meta.embedded")
    tokens, _ = tokenize_line(grammar, "<<foo>>")
    assert tokens == (
        Token(0, 2, E),
        Token(2, 5, E + ("identifier",)),
        Token(5, 7, E),
    )


def test_external_entry_include(demo_source):
    source = {"scopeName": "text.pick", "patterns": [{"include": "source.demo#identifier"}]}
    grammar = compile_grammar(source, lookup=lambda scope: demo_source)
    tokens, _ = tokenize_line(grammar, "ab # not a comment here")
    assert tokens[0] == Token(0, 2, ("text.pick", "identifier"))
    # only the identifier rule was pulled in
    assert all("comment" not in t.scopes for t in tokens)


def test_unknown_external_grammar_raises():
    with pytest.raises(GrammarError) as exc:
        compile_grammar(OUTER_SOURCE)
    assert exc.value.reference == "source.demo"


def test_failing_lookup_becomes_grammar_error():
    def lookup(scope_name):
        raise KeyError(scope_name)

    with pytest.raises(GrammarError):
        compile_grammar(OUTER_SOURCE, lookup=lookup)


def test_captures_shorthand_applies_to_begin_and_end():
    source = {
        "scopeName": "source.q",
        "patterns": [{
            "name": "string",
            "begin": "(')",
            "end": "(')",
            "captures": {"1": {"name": "punctuation"}},
        }],
    }
    grammar = compile_grammar(source)
    tokens, _ = tokenize_line(grammar, "'a'")
    assert tokens == (
        Token(0, 1, ("source.q", "string", "punctuation")),
        Token(1, 2, ("source.q", "string")),
        Token(2, 3, ("source.q", "string", "punctuation")),
    )


def test_rule_kinds(demo_grammar):
    kinds = {type(r) for r in demo_grammar.rules}
    assert MatchRule in kinds and BeginEndRule in kinds


def test_scope_name_substitution():
    class FakeMatch:
        groups = ("[COLOR]", "COLOR")

        def __getitem__(self, n):
            return self.groups[n]

    assert scope_names("meta.tag.${1:/downcase}.x", FakeMatch()) == ("meta.tag.color.x",)
    assert scope_names("a.$1 b", FakeMatch()) == ("a.COLOR", "b")
    # groups that do not exist substitute as empty text
    assert scope_names("a.$7", FakeMatch()) == ("a.",)
    assert scope_names(None) == ()
