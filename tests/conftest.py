import copy

import pytest

from syntax.grammar import compile_grammar

DEMO_SOURCE = {
    "scopeName": "source.demo",
    "fileTypes": ["demo"],
    "patterns": [
        {"include": "#comment"},
        {"include": "#string"},
        {"include": "#block"},
        {"include": "#identifier"},
    ],
    "repository": {
        "comment": {"name": "comment", "match": "#.*$"},
        "string": {"name": "string", "begin": "\"", "end": "\""},
        "block": {
            "name": "meta.block",
            "begin": "\\{",
            "end": "\\}",
            "patterns": [{"include": "$self"}],
        },
        "identifier": {"name": "identifier", "match": "[A-Za-z_]+"},
    },
}


@pytest.fixture
def demo_source():
    return copy.deepcopy(DEMO_SOURCE)


@pytest.fixture
def demo_grammar(demo_source):
    return compile_grammar(demo_source)
