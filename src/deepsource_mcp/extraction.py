"""
Response extraction for DeepSource GraphQL payloads.

Walks ``repository.<field>`` in a response that may be null at any level
and produces a flat page of raw node dictionaries. Both the Relay edges
shape and the legacy ``nodes`` shape are understood.
"""

from typing import Any, Callable, Dict, Iterable, List, Sequence

from loguru import logger

from .mappers import Malformed, ParsedNode, Valid
from .models import PageInfo, PaginatedResponse


def dig(data: Any, *path: str) -> Any:
    """Follow ``path`` through nested dicts, returning None at the first gap."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def parse_page_info(raw: Any) -> PageInfo:
    """Build PageInfo, defaulting flags to False and cursors to None."""
    if not isinstance(raw, dict):
        return PageInfo()
    start_cursor = raw.get("startCursor")
    end_cursor = raw.get("endCursor")
    return PageInfo(
        has_next_page=bool(raw.get("hasNextPage") or False),
        has_previous_page=bool(raw.get("hasPreviousPage") or False),
        start_cursor=start_cursor if isinstance(start_cursor, str) else None,
        end_cursor=end_cursor if isinstance(end_cursor, str) else None,
    )


def _total_count(raw: Any) -> int:
    value = raw.get("totalCount")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def extract_connection(
    data: Any,
    field: str,
    root: Sequence[str] = ("repository",),
) -> PaginatedResponse[Dict[str, Any]]:
    """
    Extract one page of raw nodes from a GraphQL connection.

    Args:
        data: The ``data`` object of a GraphQL response
        field: Connection field under ``root`` (e.g. ``"issues"``)
        root: Path to the object holding the connection

    Returns:
        PaginatedResponse of node dicts; the canonical empty page when any
        level of the path is missing
    """
    connection = dig(data, *root, field)
    if not isinstance(connection, dict):
        logger.debug(f"Connection {'.'.join([*root, field])} missing from response")
        return PaginatedResponse.empty()

    edges = connection.get("edges")
    if isinstance(edges, list):
        items = [
            edge["node"] for edge in edges
            if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
        ]
        dropped = len(edges) - len(items)
        if dropped:
            logger.debug(f"Dropped {dropped} empty edge(s) from {field}")
        return PaginatedResponse(
            items=items,
            page_info=parse_page_info(connection.get("pageInfo")),
            total_count=_total_count(connection),
        )

    nodes = connection.get("nodes")
    if isinstance(nodes, list):
        return PaginatedResponse(
            items=[node for node in nodes if isinstance(node, dict)],
            page_info=PageInfo(),
            total_count=_total_count(connection),
        )

    return PaginatedResponse(items=[], page_info=parse_page_info(connection.get("pageInfo")),
                             total_count=_total_count(connection))


def collect_valid(
    nodes: Iterable[Any],
    mapper: Callable[[Any], ParsedNode],
    label: str = "node",
) -> List[Any]:
    """Map nodes, keeping valid records and logging malformed ones."""
    records = []
    for node in nodes:
        parsed = mapper(node)
        if isinstance(parsed, Valid):
            records.append(parsed.record)
        elif isinstance(parsed, Malformed):
            logger.warning(f"Skipping malformed {label}: {parsed.reason}")
    return records


def extract_items(
    data: Any,
    field: str,
    mapper: Callable[[Any], ParsedNode],
    root: Sequence[str] = ("repository",),
) -> PaginatedResponse:
    """Extract a connection and map its nodes into typed records."""
    page = extract_connection(data, field, root=root)
    return PaginatedResponse(
        items=collect_valid(page.items, mapper, label=field),
        page_info=page.page_info,
        total_count=page.total_count,
    )
