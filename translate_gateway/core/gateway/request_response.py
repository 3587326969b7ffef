"""
Gateway request/response: parse_translate_params, format_response, error_body.

- parse_translate_params: text from ``q`` or ``query``, target from ``target``
  or ``to``, optional ``cachekey``, ``usecache`` (case-insensitive "true") and
  ``project``.
- format_response: backend payload plus a ``details`` envelope.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from translate_gateway.core.errors import InvalidRequestError
from translate_gateway.core.gateway.quota import QuotaDecision

# Matches the width of cache.name / api_log.cache_key.
CACHE_KEY_MAX_LEN = 255


@dataclass(frozen=True)
class TranslateParams:
    text: str
    to: str
    cache_key: str | None = None
    use_cache: bool = False
    project: str | None = None


def _first(query: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = query.get(name)
        if value is not None and str(value).strip() != "":
            return str(value)
    return None


def parse_translate_params(query: Mapping[str, str]) -> TranslateParams:
    text = _first(query, "q", "query")
    if text is None:
        raise InvalidRequestError("Query param 'q' or 'query' is required")
    to = _first(query, "target", "to")
    if to is None:
        raise InvalidRequestError("Query param 'to' or 'target' is required")
    cache_key = _first(query, "cachekey")
    if cache_key is not None and len(cache_key) > CACHE_KEY_MAX_LEN:
        raise InvalidRequestError(
            f"Query param 'cachekey' must be at most {CACHE_KEY_MAX_LEN} characters"
        )
    use_cache = (query.get("usecache") or "").strip().lower() == "true"
    return TranslateParams(
        text=text,
        to=to.strip(),
        cache_key=cache_key,
        use_cache=use_cache,
        project=_first(query, "project"),
    )


def quota_summary(decisions: Sequence[QuotaDecision]) -> list[dict[str, Any]]:
    return [
        {
            "id": d.quota_id,
            "used": d.count,
            "limit": d.limit,
            "unit": d.interval_unit.value,
            "interval": d.interval_value,
            "remaining": d.remaining,
            "restrictByIp": d.restrict_by_ip,
        }
        for d in decisions
        if d.is_enabled
    ]


def format_response(
    payload: Mapping[str, Any],
    *,
    duration_ms: float,
    cache_key: str | None,
    cached: bool,
    project: str | None,
    quotas: Sequence[QuotaDecision] = (),
) -> dict[str, Any]:
    out = {k: v for k, v in payload.items() if k != "details"}
    out["details"] = {
        "durationMs": round(duration_ms, 3),
        "cacheKey": cache_key,
        "cached": cached,
        "project": project,
        "quotas": quota_summary(quotas),
    }
    return out


def error_body(message: str) -> dict[str, Any]:
    """Standard envelope { success: false, message, data: [] } for gateway errors."""
    return {"success": False, "message": str(message), "data": []}
