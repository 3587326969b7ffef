"""
Translate gateway core: auth, hits, quota, project resolution, response cache,
audit log and the pipeline that runs them in order.
"""

from translate_gateway.core.gateway.auth import (
    Credential,
    Identity,
    authenticate,
    extract_credential,
)
from translate_gateway.core.gateway.hits import count_hits, get_client_ip, record_hit
from translate_gateway.core.gateway.pipeline import run
from translate_gateway.core.gateway.projects import resolve_project
from translate_gateway.core.gateway.quota import QuotaDecision, check_quota
from translate_gateway.core.gateway.request_response import (
    TranslateParams,
    error_body,
    format_response,
    parse_translate_params,
)

__all__ = [
    "Credential",
    "Identity",
    "QuotaDecision",
    "TranslateParams",
    "authenticate",
    "check_quota",
    "count_hits",
    "error_body",
    "extract_credential",
    "format_response",
    "get_client_ip",
    "parse_translate_params",
    "record_hit",
    "resolve_project",
    "run",
]
