# catalog_service/utils/pagination.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Tuple, Type, TypedDict

from dateutil.parser import isoparse
from sqlalchemy.orm import Query
from sqlalchemy.sql import and_, or_

from catalog_service.domain.exceptions import ValidationError
from catalog_service.models.types import as_utc

MAX_PAGE_SIZE = 100


class CursorMeta(TypedDict):
    """
    Cursor pagination metadata shared by every list_* operation.
    """
    has_more: bool
    next_cursor: Optional[str]


def encode_cursor(created_at: datetime, row_id: Any) -> str:
    """
    Format: ISO8601|<id>, ordered by (created_at DESC, id DESC).
    """
    if not isinstance(created_at, datetime) or row_id is None:
        raise ValueError("created_at and row_id are required to encode cursor")

    return f"{as_utc(created_at).isoformat()}|{row_id}"


def decode_cursor(cursor: str) -> Tuple[datetime, str]:
    if not cursor or "|" not in cursor:
        raise ValidationError("Invalid cursor format", field="cursor")

    ts_str, row_id = cursor.split("|", 1)
    try:
        return as_utc(isoparse(ts_str)), row_id
    except ValueError as exc:
        raise ValidationError("Invalid cursor format", field="cursor") from exc


def paginate_cursor(
    query: Query,
    *,
    model: Type[Any],
    cursor: Optional[str] = None,
    limit: int = 20,
) -> tuple[list[Any], CursorMeta]:
    """
    Execute a cursor-paginated query, newest first.

    Fetches limit + 1 rows to detect continuation; the cursor is built from
    the last returned row.
    """
    if limit <= 0:
        raise ValidationError("Limit must be greater than zero", field="limit")
    limit = min(limit, MAX_PAGE_SIZE)

    if cursor:
        cursor_ts, cursor_id = decode_cursor(cursor)
        query = query.filter(
            or_(
                model.created_at < cursor_ts,
                and_(model.created_at == cursor_ts, model.id < cursor_id),
            )
        )

    rows = (
        query.order_by(model.created_at.desc(), model.id.desc())
        .limit(limit + 1)
        .all()
    )

    has_more = len(rows) > limit
    items = rows[:limit]

    next_cursor: Optional[str] = None
    if has_more and items:
        last = items[-1]
        next_cursor = encode_cursor(last.created_at, last.id)

    return items, {"has_more": has_more, "next_cursor": next_cursor}
