"""Tests for ctxgen.parsing.parser."""

from __future__ import annotations

import pytest

from ctxgen.errors import ParseError
from ctxgen.parsing.languages import language_for_path
from ctxgen.parsing.parser import TRUNCATED_TEXT, GrammarCache, TreeSitterParser, load_grammar


def _walk(node):
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        yield current, depth
        stack.extend((child, depth + 1) for child in current.children)


def test_language_for_path_maps_known_extensions() -> None:
    assert language_for_path("src/a.ts") == "typescript"
    assert language_for_path("src/App.tsx") == "tsx"
    assert language_for_path("lib/index.mjs") == "javascript"
    assert language_for_path("pkg/mod.py") == "python"
    assert language_for_path("Main.java") == "java"
    assert language_for_path("README.md") is None


def test_parse_builds_generic_tree_with_fields_and_positions() -> None:
    parser = TreeSitterParser()

    root = parser.parse("def add(a, b):\n    return a + b\n", "python")

    assert root.type == "module"
    function = root.children[0]
    assert function.type == "function_definition"
    assert function.child_by_field("name").text == "add"
    assert function.child_by_field("parameters").text == "(a, b)"
    assert function.start_position.to_dict() == {"row": 0, "column": 0}
    assert function.end_position.row == 1
    assert any(not child.is_named for child in function.children)


def test_parse_file_dispatches_on_extension() -> None:
    root = TreeSitterParser().parse_file("src/a.ts", "import {x} from './y'\nfunction add(a,b){}\n")

    assert root.type == "program"
    assert [child.type for child in root.named_children] == ["import_statement", "function_declaration"]


def test_parse_file_rejects_unsupported_extensions() -> None:
    with pytest.raises(ParseError) as excinfo:
        TreeSitterParser().parse_file("notes/todo.md", "# hello")

    assert excinfo.value.file_path == "notes/todo.md"


def test_max_depth_truncates_deep_nodes() -> None:
    parser = TreeSitterParser(max_depth=1)

    root = parser.parse("x = 1\n", "python")

    statement = root.children[0]
    assert statement.type == "expression_statement"
    assignment = statement.children[0]
    assert assignment.text == TRUNCATED_TEXT
    assert assignment.children == []
    assert max(depth for _, depth in _walk(root)) == 2


def test_deeply_nested_source_does_not_recurse() -> None:
    source = "x = " + "[" * 400 + "]" * 400 + "\n"

    root = TreeSitterParser().parse(source, "python")

    assert max(depth for _, depth in _walk(root)) > 400
    assert root.to_dict()["type"] == "module"


def test_grammar_cache_reuses_parsers() -> None:
    cache = GrammarCache()

    first = cache.parser("javascript")

    assert cache.parser("javascript") is first
    assert "javascript" in cache


def test_grammar_cache_rejects_unknown_languages() -> None:
    with pytest.raises(ParseError):
        GrammarCache().language("cobol")


def test_failed_grammar_load_is_not_cached() -> None:
    calls = []

    def flaky_loader(language: str):
        calls.append(language)
        if len(calls) == 1:
            raise OSError("grammar missing")
        return load_grammar(language)

    cache = GrammarCache(loader=flaky_loader)

    with pytest.raises(ParseError):
        cache.language("python")
    assert "python" not in cache

    assert cache.language("python") is not None
    assert "python" in cache
    assert calls == ["python", "python"]
