"""
Architect lookups for building search.

Architects are normalized across three tables:
individual_architects -> architect_compositions -> building_architects.
A composition groups one or more individuals under one architect_id (so a
firm or collective is credited as one architect), and a building can
credit several architect_ids in order.
"""
import logging
from typing import Any, Dict, List, Sequence

from config.settings import (
    ARCHITECT_COMPOSITIONS_TABLE,
    ARCHITECT_LOOKUP_CAP,
    BUILDING_ARCHITECTS_TABLE,
    INDIVIDUAL_ARCHITECTS_TABLE,
)
from database.connection import QUERY_ERRORS
from database.pagination import fetch_all
from utils.text_utils import build_ilike_filter

logger = logging.getLogger(__name__)

NAME_COLUMNS = ('name_ja', 'name_en')
NAME_SEPARATOR = ' / '

def _unique(values) -> List[Any]:
    return list(dict.fromkeys(values))

def search_building_ids_by_architect(client, keyword: str) -> List[int]:
    """
    Find buildings credited to an architect whose name contains keyword.

    Args:
        client: Supabase client
        keyword: Search keyword

    Returns:
        Building IDs (may contain duplicates); empty on any lookup failure
    """
    try:
        individuals = (
            client.table(INDIVIDUAL_ARCHITECTS_TABLE)
            .select('individual_architect_id')
            .or_(build_ilike_filter(NAME_COLUMNS, keyword))
            .limit(ARCHITECT_LOOKUP_CAP)
            .execute()
        ).data or []
        if not individuals:
            logger.debug("No architects matching %r", keyword)
            return []
        individual_ids = _unique(row['individual_architect_id'] for row in individuals)
        logger.debug("Architects matching %r: %d", keyword, len(individual_ids))

        compositions = (
            client.table(ARCHITECT_COMPOSITIONS_TABLE)
            .select('architect_id')
            .in_('individual_architect_id', individual_ids)
            .limit(ARCHITECT_LOOKUP_CAP)
            .execute()
        ).data or []
        if not compositions:
            logger.debug("No architect compositions for %r", keyword)
            return []
        architect_ids = _unique(row['architect_id'] for row in compositions)
        logger.debug("Architect groups for %r: %d", keyword, len(architect_ids))

        credits = (
            client.table(BUILDING_ARCHITECTS_TABLE)
            .select('building_id')
            .in_('architect_id', architect_ids)
            .limit(ARCHITECT_LOOKUP_CAP)
            .execute()
        ).data or []
        building_ids = [row['building_id'] for row in credits]
        logger.debug("Buildings credited for %r: %d", keyword, len(building_ids))
        return building_ids

    except QUERY_ERRORS as e:
        logger.error("Architect lookup failed for %r: %s", keyword, e)
        return []

def get_architect_data_for_buildings(
    client,
    building_ids: Sequence[int]
) -> Dict[int, List[Dict[str, Any]]]:
    """
    Load architect credits for a batch of buildings.

    Args:
        client: Supabase client
        building_ids: Building IDs to load credits for

    Returns:
        Dict of building_id -> list of credits, each
        {'architect_id', 'architect_order', 'members': [{'order_index', 'name_ja', 'name_en'}]}.
        Empty dict if nothing is credited or any lookup fails.
    """
    if not building_ids:
        return {}

    try:
        building_architects = fetch_all(
            lambda: client.table(BUILDING_ARCHITECTS_TABLE)
            .select('building_id, architect_id, architect_order')
            .in_('building_id', list(building_ids))
            .order('building_id')
            .order('architect_order')
            .order('architect_id')
        )
        if not building_architects:
            return {}

        architect_ids = _unique(row['architect_id'] for row in building_architects)
        compositions = fetch_all(
            lambda: client.table(ARCHITECT_COMPOSITIONS_TABLE)
            .select('architect_id, individual_architect_id, order_index')
            .in_('architect_id', architect_ids)
            .order('architect_id')
            .order('order_index')
            .order('individual_architect_id')
        )
        if not compositions:
            return {}

        individual_ids = _unique(row['individual_architect_id'] for row in compositions)
        individuals = fetch_all(
            lambda: client.table(INDIVIDUAL_ARCHITECTS_TABLE)
            .select('individual_architect_id, name_ja, name_en')
            .in_('individual_architect_id', individual_ids)
            .order('individual_architect_id')
        )

    except QUERY_ERRORS as e:
        logger.error("Failed to load architect data for %d buildings: %s", len(building_ids), e)
        return {}

    names = {row['individual_architect_id']: row for row in individuals}

    members_by_architect: Dict[int, List[Dict[str, Any]]] = {}
    for comp in compositions:
        person = names.get(comp['individual_architect_id'], {})
        members_by_architect.setdefault(comp['architect_id'], []).append({
            'order_index': comp.get('order_index'),
            'name_ja': person.get('name_ja'),
            'name_en': person.get('name_en'),
        })

    result: Dict[int, List[Dict[str, Any]]] = {}
    for ba in building_architects:
        result.setdefault(ba['building_id'], []).append({
            'architect_id': ba['architect_id'],
            'architect_order': ba.get('architect_order'),
            'members': members_by_architect.get(ba['architect_id'], []),
        })

    return result

def _order_key(value) -> float:
    return value if value is not None else float('inf')

def format_architect_names(credits: Sequence[Dict[str, Any]], language: str = 'ja') -> str:
    """Join credited architect names for display, e.g. "A / B / C"."""
    field = 'name_en' if language == 'en' else 'name_ja'

    groups = []
    for credit in sorted(credits, key=lambda c: _order_key(c.get('architect_order'))):
        members = sorted(credit.get('members', []), key=lambda m: _order_key(m.get('order_index')))
        group = NAME_SEPARATOR.join(m[field] for m in members if m.get(field))
        if group:
            groups.append(group)

    return NAME_SEPARATOR.join(groups)
