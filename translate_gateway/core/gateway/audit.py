"""
Gateway audit log: log_start, log_finish.

Each request that passes auth and quota writes one ``start`` ApiLog row, then
exactly one ``finish`` (success) or ``error`` (failure) row sharing the same
request_id. Writes are synchronous: if a row cannot be written the request
fails with RecordingError and no response is returned.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from translate_gateway.core.config import settings
from translate_gateway.core.errors import RecordingError
from translate_gateway.models import ApiLog, ApiLogTypeEnum

logger = logging.getLogger(__name__)

_MESSAGE_MAX_LEN = 2000


@dataclass(frozen=True)
class AuditOutcome:
    is_success: bool
    cost: Decimal = Decimal("0")
    currency_code: str | None = None
    cache_key: str | None = None
    duration_ms: int | None = None
    message: str | None = None


def _write(session: Session, log: ApiLog) -> uuid.UUID:
    try:
        session.add(log)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(
            "Failed to write %s audit entry for api_key_id=%s",
            log.log_type.value,
            log.api_key_id,
        )
        raise RecordingError("Failed to write audit log") from e
    if not log.id:
        raise RecordingError("Failed to write audit log")
    return log.id


def log_start(
    session: Session, api_key_id: int, ip: str, request_id: uuid.UUID
) -> uuid.UUID:
    log_id = _write(
        session,
        ApiLog(
            request_id=request_id,
            api_key_id=api_key_id,
            log_type=ApiLogTypeEnum.START,
            ip_address=ip,
            currency_code=settings.DEFAULT_CURRENCY,
            is_success=False,
        ),
    )
    logger.info(
        "REQUEST_START request_id=%s api_key_id=%s client_ip=%s",
        request_id,
        api_key_id,
        ip,
    )
    return log_id


def log_finish(
    session: Session,
    api_key_id: int,
    ip: str,
    request_id: uuid.UUID,
    outcome: AuditOutcome,
) -> uuid.UUID:
    message = outcome.message
    if message and len(message) > _MESSAGE_MAX_LEN:
        message = message[:_MESSAGE_MAX_LEN] + "..."
    log_type = ApiLogTypeEnum.FINISH if outcome.is_success else ApiLogTypeEnum.ERROR
    log_id = _write(
        session,
        ApiLog(
            request_id=request_id,
            api_key_id=api_key_id,
            log_type=log_type,
            ip_address=ip,
            cost=outcome.cost,
            currency_code=outcome.currency_code or settings.DEFAULT_CURRENCY,
            is_success=outcome.is_success,
            cache_key=outcome.cache_key,
            duration_ms=outcome.duration_ms,
            message=message,
        ),
    )
    if outcome.is_success:
        logger.info(
            "REQUEST_END request_id=%s api_key_id=%s client_ip=%s cost=%s %s duration_ms=%s",
            request_id,
            api_key_id,
            ip,
            outcome.cost,
            outcome.currency_code or settings.DEFAULT_CURRENCY,
            outcome.duration_ms,
        )
    else:
        logger.error(
            "REQUEST_END request_id=%s api_key_id=%s client_ip=%s duration_ms=%s error=%s",
            request_id,
            api_key_id,
            ip,
            outcome.duration_ms,
            message,
        )
    return log_id
