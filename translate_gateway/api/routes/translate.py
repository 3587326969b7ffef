"""
Translate endpoint: GET /translate.

Flow: IP -> credential -> pipeline.run (auth -> hit -> quota -> project ->
cache -> backend -> audit) -> JSON.
pipeline.run is sync/blocking; it runs in a thread pool so the event loop can
accept concurrent requests.
"""

import asyncio
import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from sqlmodel import Session

from translate_gateway.api.deps import SessionDep
from translate_gateway.core.errors import GatewayError
from translate_gateway.core.gateway import (
    Credential,
    error_body,
    extract_credential,
    get_client_ip,
)
from translate_gateway.core.gateway.pipeline import run as pipeline_run

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["translate"])


def _run_pipeline_in_thread(
    bind: Engine,
    credential: Credential,
    query: dict[str, str],
    ip: str,
    started_at: float,
) -> dict:
    """Run pipeline_run in a thread with a fresh session (session is not thread-safe)."""
    with Session(bind) as session:
        return pipeline_run(
            session, credential, query, ip=ip, started_at=started_at
        )


def _gateway_error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(detail))


@router.get("/translate")
async def translate(request: Request, session: SessionDep) -> JSONResponse:
    """
    Translate ``q`` (or ``query``) into ``to`` (or ``target``).

    Requires an api key (``x-api-key`` header or query param). Optional:
    ``project``, ``cachekey``, ``usecache=true``.
    """
    started_at = time.perf_counter()
    ip = get_client_ip(request)
    query = dict(request.query_params)
    try:
        credential = extract_credential(request.headers, request.query_params)
        result = await asyncio.to_thread(
            _run_pipeline_in_thread,
            session.get_bind(),
            credential,
            query,
            ip,
            started_at,
        )
    except GatewayError as e:
        return _gateway_error(e.status_code, e.message)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _gateway_error(500, "Internal server error")
    return JSONResponse(content=result)
