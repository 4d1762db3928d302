from functools import lru_cache
from pathlib import Path
from typing import cast

from tree_sitter import Node, Parser, Query, QueryCursor, Tree
from tree_sitter_language_pack import SupportedLanguage, get_language, get_parser

from restcontract.core.syntax import node_text
from restcontract.models import Range


@lru_cache(maxsize=None)
def _parser(language: str) -> Parser:
    return get_parser(cast(SupportedLanguage, language))


@lru_cache(maxsize=None)
def load_query(language: str, query_type: str) -> Query:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{language}_{query_type}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(cast(SupportedLanguage, language)), query_text)


def parse_source(source: str | bytes, language: str) -> Tree:
    source_bytes = source.encode("utf-8") if isinstance(source, str) else source
    return _parser(language).parse(source_bytes)


def capture_texts(query: Query, node: Node) -> dict[str, list[str]]:
    """Run ``query`` over ``node`` and return capture names mapped to matched text."""
    cursor = QueryCursor(query)
    result: dict[str, list[str]] = {}
    for _, matched_captures in cursor.matches(node):
        for cap_name, nodes in matched_captures.items():
            result.setdefault(cap_name, []).extend(node_text(n) for n in nodes)
    return result


def node_range(node: Node) -> Range:
    return Range.of(node.start_point[0], node.start_point[1], node.end_point[0], node.end_point[1])
