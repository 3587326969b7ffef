"""
Health-check helpers for liveness and readiness probes.

Liveness: is the process alive? (cheap, no I/O)
Readiness: can it serve traffic? (database, plus Redis when enabled)
"""

import logging

from sqlalchemy import Engine
from sqlmodel import Session, select

from translate_gateway.core.config import settings
from translate_gateway.core.db import engine
from translate_gateway.core.redis_client import ping as redis_ping

logger = logging.getLogger(__name__)


def check_database(bind: Engine | None = None) -> bool:
    """SELECT 1 against the app database."""
    try:
        with Session(bind or engine) as session:
            session.exec(select(1)).first()
        return True
    except Exception:
        logger.warning("Database check failed", exc_info=True)
        return False


def check_redis() -> bool:
    return redis_ping()


def redis_required() -> bool:
    return bool(settings.CACHE_ENABLED)


def liveness_check() -> tuple[bool, list[str]]:
    return (True, [])


def readiness_check(bind: Engine | None = None) -> tuple[bool, list[str]]:
    """(ok, failure names). ok is False if any required dependency is down."""
    failures: list[str] = []

    if not check_database(bind):
        failures.append("database")

    if redis_required() and not check_redis():
        failures.append("redis")

    return (len(failures) == 0, failures)
