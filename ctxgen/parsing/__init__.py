"""Tree-sitter parsing and tree condensation."""

from .condenser import condense
from .languages import language_for_path
from .parser import GrammarCache, TreeSitterParser

__all__ = ["GrammarCache", "TreeSitterParser", "condense", "language_for_path"]
