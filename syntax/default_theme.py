# syntax/default_theme.py
# VS Code "Dark+" token colors (the subset that matters for markup and
# common programming grammars), in VS Code theme JSON form.
from syntax.theme import TIE_BREAK_LATER, Theme

DARK_PLUS = {
    "name": "Dark+",
    "colors": {
        "editor.background": "#1E1E1E",
        "editor.foreground": "#D4D4D4",
    },
    "tokenColors": [
        {"scope": ["meta.embedded", "source.groovy.embedded"],
         "settings": {"foreground": "#D4D4D4"}},
        {"scope": "emphasis", "settings": {"fontStyle": "italic"}},
        {"scope": "strong", "settings": {"fontStyle": "bold"}},
        {"scope": "header", "settings": {"foreground": "#000080"}},
        {"scope": "comment", "settings": {"foreground": "#6A9955"}},
        {"scope": "constant.language", "settings": {"foreground": "#569CD6"}},
        {"scope": ["constant.numeric", "variable.other.enummember",
                   "keyword.operator.plus.exponent", "keyword.operator.minus.exponent"],
         "settings": {"foreground": "#B5CEA8"}},
        {"scope": "constant.regexp", "settings": {"foreground": "#646695"}},
        {"scope": "entity.name.tag", "settings": {"foreground": "#569CD6"}},
        {"scope": "entity.name.tag.css", "settings": {"foreground": "#D7BA7D"}},
        {"scope": "entity.other.attribute-name", "settings": {"foreground": "#9CDCFE"}},
        {"scope": ["entity.other.attribute-name.class.css",
                   "entity.other.attribute-name.id.css"],
         "settings": {"foreground": "#D7BA7D"}},
        {"scope": "invalid", "settings": {"foreground": "#F44747"}},
        {"scope": "markup.underline", "settings": {"fontStyle": "underline"}},
        {"scope": "markup.bold", "settings": {"fontStyle": "bold", "foreground": "#569CD6"}},
        {"scope": "markup.heading", "settings": {"fontStyle": "bold", "foreground": "#569CD6"}},
        {"scope": "markup.italic", "settings": {"fontStyle": "italic"}},
        {"scope": "markup.strikethrough", "settings": {"fontStyle": "strikethrough"}},
        {"scope": "markup.inserted", "settings": {"foreground": "#B5CEA8"}},
        {"scope": "markup.deleted", "settings": {"foreground": "#CE9178"}},
        {"scope": "markup.changed", "settings": {"foreground": "#569CD6"}},
        {"scope": "punctuation.definition.quote.begin.markdown",
         "settings": {"foreground": "#6A9955"}},
        {"scope": "markup.inline.raw", "settings": {"foreground": "#CE9178"}},
        {"scope": "punctuation.definition.tag", "settings": {"foreground": "#808080"}},
        {"scope": ["meta.preprocessor", "entity.name.function.preprocessor"],
         "settings": {"foreground": "#569CD6"}},
        {"scope": "meta.preprocessor.string", "settings": {"foreground": "#CE9178"}},
        {"scope": "meta.preprocessor.numeric", "settings": {"foreground": "#B5CEA8"}},
        {"scope": "meta.structure.dictionary.key.python", "settings": {"foreground": "#9CDCFE"}},
        {"scope": "storage", "settings": {"foreground": "#569CD6"}},
        {"scope": "storage.type", "settings": {"foreground": "#569CD6"}},
        {"scope": ["storage.modifier", "keyword.operator.noexcept"],
         "settings": {"foreground": "#569CD6"}},
        {"scope": ["string", "meta.embedded.assembly"], "settings": {"foreground": "#CE9178"}},
        {"scope": "string.tag", "settings": {"foreground": "#CE9178"}},
        {"scope": "string.value", "settings": {"foreground": "#CE9178"}},
        {"scope": "string.regexp", "settings": {"foreground": "#D16969"}},
        {"scope": ["punctuation.definition.template-expression.begin",
                   "punctuation.definition.template-expression.end",
                   "punctuation.section.embedded"],
         "settings": {"foreground": "#569CD6"}},
        {"scope": "meta.template.expression", "settings": {"foreground": "#D4D4D4"}},
        {"scope": ["support.type.vendored.property-name", "support.type.property-name",
                   "variable.css", "variable.scss", "variable.other.less",
                   "source.coffee.embedded"],
         "settings": {"foreground": "#9CDCFE"}},
        {"scope": "keyword", "settings": {"foreground": "#569CD6"}},
        {"scope": "keyword.control", "settings": {"foreground": "#C586C0"}},
        {"scope": "keyword.operator", "settings": {"foreground": "#D4D4D4"}},
        {"scope": ["keyword.operator.new", "keyword.operator.expression",
                   "keyword.operator.cast", "keyword.operator.sizeof",
                   "keyword.operator.alignof", "keyword.operator.typeid",
                   "keyword.operator.alignas", "keyword.operator.instanceof",
                   "keyword.operator.logical.python", "keyword.operator.wordlike"],
         "settings": {"foreground": "#569CD6"}},
        {"scope": "keyword.other.unit", "settings": {"foreground": "#B5CEA8"}},
        {"scope": "support.function.git-rebase", "settings": {"foreground": "#9CDCFE"}},
        {"scope": "constant.sha.git-rebase", "settings": {"foreground": "#B5CEA8"}},
        {"scope": ["storage.modifier.import.java", "variable.language.wildcard.java",
                   "storage.modifier.package.java"],
         "settings": {"foreground": "#D4D4D4"}},
        {"scope": "variable.language", "settings": {"foreground": "#569CD6"}},
        {"scope": ["entity.name.function", "support.function",
                   "support.constant.handlebars", "source.powershell variable.other.member",
                   "entity.name.operator.custom-literal"],
         "settings": {"foreground": "#DCDCAA"}},
        {"scope": ["support.class", "support.type", "entity.name.type",
                   "entity.name.namespace", "entity.other.attribute",
                   "entity.name.scope-resolution", "entity.name.class",
                   "storage.type.numeric.go", "storage.type.byte.go",
                   "storage.type.boolean.go", "storage.type.string.go",
                   "storage.type.uintptr.go", "storage.type.error.go",
                   "storage.type.rune.go", "storage.type.cs",
                   "storage.type.generic.cs", "storage.type.modifier.cs",
                   "storage.type.variable.cs", "storage.type.annotation.java",
                   "storage.type.generic.java", "storage.type.java",
                   "storage.type.object.array.java", "storage.type.primitive.array.java",
                   "storage.type.primitive.java", "storage.type.token.java",
                   "storage.type.groovy", "storage.type.annotation.groovy",
                   "storage.type.parameters.groovy", "storage.type.generic.groovy",
                   "storage.type.object.array.groovy", "storage.type.primitive.array.groovy",
                   "storage.type.primitive.groovy"],
         "settings": {"foreground": "#4EC9B0"}},
        {"scope": ["variable", "meta.definition.variable.name", "support.variable",
                   "entity.name.variable", "constant.other.placeholder"],
         "settings": {"foreground": "#9CDCFE"}},
        {"scope": ["variable.other.constant", "variable.other.enummember"],
         "settings": {"foreground": "#4FC1FF"}},
        {"scope": ["meta.object-literal.key"], "settings": {"foreground": "#9CDCFE"}},
        {"scope": ["support.constant.property-value", "support.constant.font-name",
                   "support.constant.media-type", "support.constant.media",
                   "constant.other.color.rgb-value", "constant.other.rgb-value",
                   "support.constant.color"],
         "settings": {"foreground": "#CE9178"}},
        {"scope": ["constant.character", "constant.other.option"],
         "settings": {"foreground": "#569CD6"}},
        {"scope": "constant.character.escape", "settings": {"foreground": "#D7BA7D"}},
        {"scope": "entity.name.label", "settings": {"foreground": "#C8C8C8"}},
    ],
}


def dark_plus(tie_break: str = TIE_BREAK_LATER) -> Theme:
    return Theme.from_vscode(DARK_PLUS, tie_break)
