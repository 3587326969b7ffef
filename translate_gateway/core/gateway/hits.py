"""
Gateway usage hits: record_hit, count_hits, get_client_ip.

Every authenticated request appends one ApiKeyHit before quota evaluation,
whatever its outcome. Quota counting reads this ledger back.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select
from starlette.requests import Request

from translate_gateway.core.errors import RecordingError
from translate_gateway.models import ApiKeyHit

logger = logging.getLogger(__name__)

UNKNOWN_IP = "0.0.0.0"


def get_client_ip(request: Request) -> str:
    """
    Client IP: rightmost non-empty X-Forwarded-For entry, else
    request.client.host, else "0.0.0.0". Never empty, so the address stored
    with a hit is the one quota rules count by.
    """
    xff = request.headers.get("x-forwarded-for") or ""
    for entry in reversed(xff.split(",")):
        if entry.strip():
            return entry.strip()
    return getattr(getattr(request, "client", None), "host", None) or UNKNOWN_IP


def record_hit(session: Session, api_key_id: int, ip: str) -> int:
    """Append a hit and return its id. Any persistence failure aborts the request."""
    hit = ApiKeyHit(api_key_id=api_key_id, ip_address=ip)
    try:
        session.add(hit)
        session.commit()
        session.refresh(hit)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Failed to record hit for api_key_id=%s", api_key_id)
        raise RecordingError("Failed to record api key hit") from e
    if not hit.id:
        raise RecordingError("Failed to record api key hit")
    return hit.id


def count_hits(
    session: Session,
    api_key_id: int,
    since: datetime,
    ip: str | None = None,
) -> int:
    """Number of hits for the key at or after ``since``; optionally for one IP only."""
    stmt = select(func.count(ApiKeyHit.id)).where(
        ApiKeyHit.api_key_id == api_key_id,
        ApiKeyHit.created_at >= since,
    )
    if ip is not None:
        stmt = stmt.where(ApiKeyHit.ip_address == ip)
    return int(session.exec(stmt).one() or 0)
