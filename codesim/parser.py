"""Tree-Sitter Parsing Layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterator

logger = logging.getLogger(__name__)


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


def walk_tree(node) -> Iterator:
    """Pre-order traversal in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def syntax_error_lines(root) -> list[int]:
    """1-based lines holding ERROR or MISSING nodes under *root*."""
    if not root.has_error:
        return []
    return sorted(
        {
            node.start_point[0] + 1
            for node in walk_tree(root)
            if node.is_error or node.is_missing
        }
    )


class Parser:
    """Parses submissions through a factory, reporting where the grammar gave up.

    A submission with syntax errors still yields a tree; the harness matcher
    works on whatever nodes tree-sitter recovered.
    """

    def __init__(self, parser_factory: ParserFactory):
        self._factory = parser_factory

    def parse(self, source: str, language: str):
        parser = self._factory.get_parser(language)
        tree = parser.parse(source.encode("utf-8"))
        error_lines = syntax_error_lines(tree.root_node)
        if error_lines:
            logger.warning(
                "%s submission has syntax errors on lines %s", language, error_lines
            )
        return tree
