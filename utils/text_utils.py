"""
Text utilities for building search.
Query tokenizing and PostgREST filter construction.
"""
from typing import List, Optional, Sequence

FULLWIDTH_SPACE = "　"

# Characters with meaning inside a PostgREST or=(...) expression
_RESERVED_CHARS = set(',.:()"\\')

def split_keywords(query: Optional[str]) -> List[str]:
    """
    Split a search query into keywords.

    Full-width spaces are treated as ordinary spaces, so Japanese input
    like "安藤　美術館" splits the same way as "安藤 美術館".

    Args:
        query: Raw query text, may be None

    Returns:
        Non-empty keywords in query order (duplicates kept)
    """
    if not query:
        return []
    normalized = query.replace(FULLWIDTH_SPACE, " ")
    return [keyword for keyword in normalized.split(" ") if keyword.strip()]

def _quote_pattern(pattern: str) -> str:
    if not any(c in _RESERVED_CHARS for c in pattern):
        return pattern
    escaped = pattern.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'

def build_ilike_filter(columns: Sequence[str], keyword: str) -> str:
    """
    Build a PostgREST or-filter matching keyword as a substring of any column.

    Args:
        columns: Column names to match against
        keyword: Search keyword

    Returns:
        Filter string like "title.ilike.%foo%,titleEn.ilike.%foo%"
    """
    if not columns:
        raise ValueError("At least one column is required")
    pattern = _quote_pattern(f"%{keyword}%")
    return ",".join(f"{column}.ilike.{pattern}" for column in columns)
