from fastapi import APIRouter
from fastapi.responses import JSONResponse

from translate_gateway.api.deps import SessionDep
from translate_gateway.core.health import liveness_check, readiness_check

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/liveness/", response_model=None)
async def liveness() -> bool | JSONResponse:
    """
    Liveness probe: no DB/Redis I/O. A failure means the process should be
    restarted.
    """
    ok, failures = liveness_check()
    if not ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "Process unhealthy", "data": failures},
        )
    return True


@router.get("/health-check/", response_model=None)
def health_check(session: SessionDep) -> bool | JSONResponse:
    """
    Readiness probe: database, plus Redis when CACHE_ENABLED.
    Returns true if all required dependencies are up; 503 otherwise.
    """
    ok, failures = readiness_check(session.get_bind())
    if not ok:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Service Unavailable",
                "data": failures,
            },
        )
    return True
