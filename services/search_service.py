"""
Search service for building search.

Keywords are ANDed together; each keyword matches a building if it appears
in any of the building text columns or in a credited architect's name.
"""
import logging
import math
from typing import Any, Dict, List, Optional, Set

from config.settings import ARCHITECT_CHAIN_ENABLED, BUILDINGS_TABLE, DEFAULT_PAGE_SIZE
from database.connection import QUERY_ERRORS, get_supabase_client
from database.pagination import fetch_all
from services.architect_service import (
    format_architect_names,
    get_architect_data_for_buildings,
    search_building_ids_by_architect,
)
from utils.text_utils import build_ilike_filter, split_keywords

logger = logging.getLogger(__name__)

LANGUAGES = ('ja', 'en')

# Building columns a keyword is matched against
SEARCH_COLUMNS = (
    'title',
    'titleEn',
    'buildingTypes',
    'buildingTypesEn',
    'location',
    'locationEn_from_datasheetChunkEn',
    'prefectures',
    'prefecturesEn',
    'areas',
    'areasEn',
)

# Building columns copied into each search result
SUMMARY_COLUMNS = (
    'building_id',
    'uid',
    'title',
    'titleEn',
    'buildingTypes',
    'buildingTypesEn',
    'location',
    'locationEn_from_datasheetChunkEn',
    'prefectures',
    'prefecturesEn',
    'areas',
    'areasEn',
    'completionYears',
    'lat',
    'lng',
    'thumbnailUrl',
    'youtubeUrl',
)


class BuildingSearchError(RuntimeError):
    """Raised when building details cannot be loaded."""


def _search_building_columns(client, keyword: str) -> Set[int]:
    filter_expr = build_ilike_filter(SEARCH_COLUMNS, keyword)
    try:
        rows = fetch_all(
            lambda: client.table(BUILDINGS_TABLE)
            .select('building_id')
            .or_(filter_expr)
            .order('building_id')
        )
    except QUERY_ERRORS as e:
        logger.error("Building column search failed for %r: %s", keyword, e)
        return set()
    return {row['building_id'] for row in rows}

def resolve_keyword(client, keyword: str) -> Set[int]:
    """
    Find every building matching a single keyword.

    Args:
        client: Supabase client
        keyword: One search keyword

    Returns:
        Building IDs matching by text column or by architect name
    """
    building_ids = _search_building_columns(client, keyword)
    if ARCHITECT_CHAIN_ENABLED:
        building_ids.update(search_building_ids_by_architect(client, keyword))
    logger.info("Keyword %r matched %d buildings", keyword, len(building_ids))
    return building_ids

def search_building_ids(client, keywords: List[str]) -> List[int]:
    """
    Find buildings matching all keywords.

    Args:
        client: Supabase client
        keywords: Keywords from split_keywords

    Returns:
        Matching building IDs, newest (highest ID) first
    """
    if not keywords:
        return []

    matched: Optional[Set[int]] = None
    for keyword in keywords:
        ids = resolve_keyword(client, keyword)
        matched = ids if matched is None else matched & ids
        if not matched:
            logger.info("No buildings left after keyword %r", keyword)
            return []

    return sorted(matched, reverse=True)

def _summarize(building: Dict[str, Any], credits: List[Dict[str, Any]], language: str) -> Dict[str, Any]:
    summary = {column: building.get(column) for column in SUMMARY_COLUMNS}
    summary['architectJa'] = format_architect_names(credits, 'ja')
    summary['architectEn'] = format_architect_names(credits, 'en')
    summary['architect'] = summary['architectEn'] if language == 'en' else summary['architectJa']
    return summary

def search_buildings(
    filters: Optional[Dict[str, Any]] = None,
    language: str = 'ja',
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE
) -> Dict[str, Any]:
    """
    Keyword search over buildings with pagination.

    Args:
        filters: Search filters; 'query' holds the free-text query
        language: Display language for the 'architect' field ('ja' or 'en')
        page: 1-indexed page number
        limit: Results per page

    Returns:
        Dict with data (building summaries), count (total matches),
        page, and totalPages
    """
    if language not in LANGUAGES:
        raise ValueError(f"language must be one of {LANGUAGES}, got {language!r}")
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    filters = filters or {}
    keywords = split_keywords(filters.get('query'))
    logger.info("Searching buildings: keywords=%s language=%s page=%d limit=%d",
                keywords, language, page, limit)

    if not keywords:
        return {'data': [], 'count': 0, 'page': page, 'totalPages': 0}

    client = get_supabase_client()

    building_ids = search_building_ids(client, keywords)
    count = len(building_ids)
    total_pages = math.ceil(count / limit)

    if not building_ids:
        logger.info("No buildings found")
        return {'data': [], 'count': 0, 'page': page, 'totalPages': 0}

    offset = (page - 1) * limit
    page_ids = building_ids[offset:offset + limit]
    if not page_ids:
        logger.info("Page %d is past the last page (%d)", page, total_pages)
        return {'data': [], 'count': count, 'page': page, 'totalPages': total_pages}

    logger.info("Loading results %d-%d of %d", offset + 1, offset + len(page_ids), count)

    try:
        rows = fetch_all(
            lambda: client.table(BUILDINGS_TABLE)
            .select('*')
            .in_('building_id', page_ids)
            .order('building_id', desc=True)
        )
    except QUERY_ERRORS as e:
        logger.error("Failed to load building details: %s", e)
        raise BuildingSearchError(f"Failed to load building details: {e}") from e

    architect_data = get_architect_data_for_buildings(client, page_ids)

    buildings = {row['building_id']: row for row in rows}
    data = [
        _summarize(buildings[building_id], architect_data.get(building_id, []), language)
        for building_id in page_ids
        if building_id in buildings
    ]

    logger.info("Search complete: %d results, %d total, page %d/%d",
                len(data), count, page, total_pages)

    return {'data': data, 'count': count, 'page': page, 'totalPages': total_pages}
