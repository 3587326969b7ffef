"""
Gateway pipeline: run.

Flow: authenticate -> record hit -> check quota -> resolve project -> parse
params / derive cache key -> log start -> cache lookup -> (hit: log finish)
| (miss: translate -> cache store -> log finish).

Each stage takes the RequestContext built so far and returns a new one via
dataclasses.replace; failures raise GatewayError subclasses. Once the start
audit row exists, every exit path writes exactly one finish or error row.

run() is sync/blocking (DB + backend I/O); the route runs it in a thread so
the event loop keeps serving other requests.
"""

import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from sqlmodel import Session

from translate_gateway.core.config import settings
from translate_gateway.core.errors import GatewayError
from translate_gateway.core.gateway.audit import AuditOutcome, log_finish, log_start
from translate_gateway.core.gateway.auth import Credential, Identity, authenticate
from translate_gateway.core.gateway.cache import (
    CacheBackend,
    derive_cache_key,
    dump_cached_response,
    get_cache,
    load_cached_response,
)
from translate_gateway.core.gateway.costs import calculate_cost
from translate_gateway.core.gateway.hits import UNKNOWN_IP, record_hit
from translate_gateway.core.gateway.projects import (
    SETTING_CACHE_BACKEND,
    SETTING_TRANSLATOR,
    get_project_setting,
    resolve_project,
)
from translate_gateway.core.gateway.quota import QuotaDecision, check_quota
from translate_gateway.core.gateway.request_response import (
    TranslateParams,
    format_response,
    parse_translate_params,
)
from translate_gateway.core.translators import TranslateRequest, get_translator
from translate_gateway.models import Project

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Per-request state; each stage returns a new copy."""

    request_id: uuid.UUID
    started_at: float
    ip: str
    identity: Identity | None = None
    hit_id: int | None = None
    quotas: tuple[QuotaDecision, ...] = ()
    project: Project | None = None
    params: TranslateParams | None = None
    cache_key: str | None = None
    cache_backend: str | None = None
    translator: str | None = None
    start_log_id: uuid.UUID | None = None

    @property
    def duration_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000

    @property
    def project_name(self) -> str | None:
        return self.project.name if self.project else None


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def _authenticate(
    session: Session, ctx: RequestContext, credential: Credential
) -> RequestContext:
    return replace(ctx, identity=authenticate(session, credential))


def _record_hit(session: Session, ctx: RequestContext) -> RequestContext:
    return replace(ctx, hit_id=record_hit(session, ctx.identity.api_key_id, ctx.ip))


def _check_quota(session: Session, ctx: RequestContext) -> RequestContext:
    decisions = check_quota(session, ctx.identity.api_key_id, ctx.ip)
    return replace(ctx, quotas=tuple(decisions))


def _resolve_project(
    session: Session, ctx: RequestContext, project_name: str | None
) -> RequestContext:
    project = resolve_project(session, ctx.identity, project_name)
    cache_backend = settings.CACHE_BACKEND
    translator = settings.TRANSLATOR_PROVIDER
    if project is not None:
        cache_backend = (
            get_project_setting(session, project.id, SETTING_CACHE_BACKEND)
            or cache_backend
        )
        translator = (
            get_project_setting(session, project.id, SETTING_TRANSLATOR) or translator
        )
    return replace(
        ctx, project=project, cache_backend=cache_backend, translator=translator
    )


def _prepare(ctx: RequestContext, params: TranslateParams) -> RequestContext:
    cache_key = derive_cache_key(
        params.text, params.to, cache_key=params.cache_key, use_cache=params.use_cache
    )
    return replace(ctx, params=params, cache_key=cache_key)


def _log_start(session: Session, ctx: RequestContext) -> RequestContext:
    log_id = log_start(session, ctx.identity.api_key_id, ctx.ip, ctx.request_id)
    return replace(ctx, start_log_id=log_id)


def _select_cache(session: Session, ctx: RequestContext) -> CacheBackend | None:
    """Backend for this request, or None when caching is bypassed.

    No cache key -> caching not requested. No project -> no tenant scope, so
    nothing is shared across tenants.
    """
    if ctx.cache_key is None or ctx.project is None:
        return None
    try:
        return get_cache(ctx.cache_backend, session)
    except ValueError as e:
        logger.error("Project %s: %s", ctx.project.id, e)
        raise GatewayError("Cache backend is misconfigured") from e


def _lookup_cache(
    cache: CacheBackend | None, ctx: RequestContext
) -> dict[str, Any] | None:
    if cache is None:
        return None
    raw = cache.get(ctx.project.id, ctx.cache_key)
    if raw is None:
        return None
    return load_cached_response(raw)


def _invoke_backend(ctx: RequestContext) -> dict[str, Any]:
    translator = get_translator(ctx.translator)
    response = translator.translate(
        TranslateRequest(text=ctx.params.text, to=ctx.params.to)
    )
    return response.to_dict()


def _store_cache(
    cache: CacheBackend | None, ctx: RequestContext, payload: dict[str, Any]
) -> None:
    if cache is None:
        return
    cache.set(ctx.project.id, ctx.cache_key, dump_cached_response(payload))


def _finish(
    session: Session,
    ctx: RequestContext,
    payload: dict[str, Any],
    *,
    cached: bool,
    cost: Decimal,
    currency_code: str,
) -> dict[str, Any]:
    duration_ms = ctx.duration_ms
    log_finish(
        session,
        ctx.identity.api_key_id,
        ctx.ip,
        ctx.request_id,
        AuditOutcome(
            is_success=True,
            cost=cost,
            currency_code=currency_code,
            cache_key=ctx.cache_key,
            duration_ms=int(duration_ms),
        ),
    )
    return format_response(
        payload,
        duration_ms=duration_ms,
        cache_key=ctx.cache_key,
        cached=cached,
        project=ctx.project_name,
        quotas=ctx.quotas,
    )


def _fail(session: Session, ctx: RequestContext, exc: Exception) -> None:
    """Write the error audit row for a request whose start row exists."""
    session.rollback()
    message = exc.message if isinstance(exc, GatewayError) else type(exc).__name__
    log_finish(
        session,
        ctx.identity.api_key_id,
        ctx.ip,
        ctx.request_id,
        AuditOutcome(
            is_success=False,
            cache_key=ctx.cache_key,
            duration_ms=int(ctx.duration_ms),
            message=message,
        ),
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def run(
    session: Session,
    credential: Credential,
    query: Mapping[str, str],
    *,
    ip: str,
    started_at: float | None = None,
) -> dict[str, Any]:
    """
    Run one translate request through every stage. Returns the response body.

    Raises GatewayError (or the underlying exception) on the first failing
    stage; later stages do not run.
    """
    ctx = RequestContext(
        request_id=uuid.uuid4(),
        started_at=started_at if started_at is not None else time.perf_counter(),
        ip=ip or UNKNOWN_IP,
    )
    ctx = _authenticate(session, ctx, credential)
    ctx = _record_hit(session, ctx)
    ctx = _check_quota(session, ctx)
    ctx = _resolve_project(session, ctx, query.get("project"))
    ctx = _prepare(ctx, parse_translate_params(query))
    ctx = _log_start(session, ctx)

    try:
        cache = _select_cache(session, ctx)
        cached = _lookup_cache(cache, ctx)
        if cached is not None:
            logger.debug("Cache hit request_id=%s key=%s", ctx.request_id, ctx.cache_key)
            return _finish(
                session,
                ctx,
                cached,
                cached=True,
                cost=Decimal("0"),
                currency_code=settings.DEFAULT_CURRENCY,
            )

        payload = _invoke_backend(ctx)
        _store_cache(cache, ctx, payload)
        cost, currency_code = calculate_cost(session, payload.get("service"))
        return _finish(
            session,
            ctx,
            payload,
            cached=False,
            cost=cost,
            currency_code=currency_code,
        )
    except Exception as e:
        _fail(session, ctx, e)
        raise
