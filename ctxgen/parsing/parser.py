"""Tree-sitter adapter producing language-independent syntax trees."""

from __future__ import annotations

import importlib
from typing import Callable, Dict, List, Optional

from tree_sitter import Language, Parser, Tree

from ..errors import ParseError
from ..logging import get_logger
from ..models import GenericAstNode, Position
from .languages import GRAMMAR_MODULES, SUPPORTED_LANGUAGES, language_for_path

logger = get_logger("parser")

TRUNCATED_TEXT = "... [Max Depth Reached]"


def load_grammar(language: str) -> Language:
    """Import the grammar package for ``language`` and wrap it in a ``Language``."""
    module_name, factory = GRAMMAR_MODULES[language]
    module = importlib.import_module(module_name)
    return Language(getattr(module, factory)())


class GrammarCache:
    """Get-or-create cache of grammars and parsers, one per language.

    Entries are only ever added. A load that raises leaves no entry behind so
    the next call retries it.
    """

    def __init__(self, loader: Callable[[str], Language] = load_grammar) -> None:
        self._loader = loader
        self._languages: Dict[str, Language] = {}
        self._parsers: Dict[str, Parser] = {}

    def __contains__(self, language: str) -> bool:
        return language in self._languages

    def language(self, language: str) -> Language:
        cached = self._languages.get(language)
        if cached is not None:
            return cached
        if language not in SUPPORTED_LANGUAGES:
            raise ParseError(f"Unsupported language: {language}", language=language)
        try:
            loaded = self._loader(language)
        except Exception as exc:
            raise ParseError(f"Failed to load grammar for {language}: {exc}", language=language) from exc
        logger.debug("Loaded grammar for %s", language)
        self._languages[language] = loaded
        return loaded

    def parser(self, language: str) -> Parser:
        cached = self._parsers.get(language)
        if cached is not None:
            return cached
        parser = Parser(self.language(language))
        self._parsers[language] = parser
        return parser


class TreeSitterParser:
    """Parses source text into ``GenericAstNode`` trees."""

    def __init__(self, cache: Optional[GrammarCache] = None, *, max_depth: Optional[int] = None) -> None:
        self.cache = cache or GrammarCache()
        self.max_depth = max_depth

    def parse(self, content: str, language: str) -> GenericAstNode:
        parser = self.cache.parser(language)
        try:
            tree = parser.parse(content.encode("utf-8"))
        except Exception as exc:
            raise ParseError(f"Tree-sitter failed to parse {language} source: {exc}", language=language) from exc
        if tree is None or tree.root_node is None:
            raise ParseError(f"Parsing produced no tree for {language}", language=language)
        root = convert_tree(tree, self.max_depth)
        logger.debug("Parsed %s source; root node %s", language, root.type)
        return root

    def parse_file(self, path: str, content: str) -> GenericAstNode:
        language = language_for_path(path)
        if language is None:
            raise ParseError(f"No parser available for {path}", file_path=path)
        try:
            return self.parse(content, language)
        except ParseError as exc:
            exc.file_path = path
            raise


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


def _make_node(ts_node, field_name: Optional[str], truncated: bool = False) -> GenericAstNode:  # type: ignore[no-untyped-def]
    return GenericAstNode(
        type=ts_node.type,
        text=TRUNCATED_TEXT if truncated else _decode(ts_node.text),
        start_position=Position(*ts_node.start_point),
        end_position=Position(*ts_node.end_point),
        is_named=ts_node.is_named,
        field_name=field_name,
    )


def convert_tree(tree: Tree, max_depth: Optional[int] = None) -> GenericAstNode:
    """Walk ``tree`` with a cursor and build the generic tree without recursion.

    Nodes deeper than ``max_depth`` (root is depth 0) are kept as childless
    stubs whose text marks the truncation.
    """
    cursor = tree.walk()
    root = _make_node(cursor.node, None)
    parents: List[GenericAstNode] = [root]
    if not cursor.goto_first_child():
        return root

    while True:
        depth = len(parents)
        truncated = max_depth is not None and depth > max_depth
        node = _make_node(cursor.node, cursor.field_name, truncated)
        parents[-1].children.append(node)

        if not truncated and cursor.goto_first_child():
            parents.append(node)
            continue

        while not cursor.goto_next_sibling():
            cursor.goto_parent()
            parents.pop()
            if not parents:
                return root


__all__ = ["GrammarCache", "TRUNCATED_TEXT", "TreeSitterParser", "convert_tree", "load_grammar"]
