"""
Gateway auth: authenticate.

Supports only the api-key credential: base64("<name>:<secret>") sent in the
``x-api-key`` header or the ``x-api-key`` query parameter. The decoded value is
split on its first ``:``; the key is looked up by name and must be enabled
with an exactly matching secret.
"""

import base64
import binascii
import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from sqlmodel import Session, select

from translate_gateway.core.errors import AuthenticationError
from translate_gateway.models import ApiKey

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
CREDENTIAL_TYPE_API_KEY = "api-key"


@dataclass(frozen=True)
class Credential:
    type: str
    token: str


@dataclass(frozen=True)
class Identity:
    """Resolved caller: subject (user) and the authenticated key."""

    user_id: int
    api_key_id: int
    is_enabled: bool = True


def extract_credential(
    headers: Mapping[str, str], query: Mapping[str, str]
) -> Credential:
    """Header first, then query parameter. Raises AuthenticationError when absent."""
    token = (headers.get(API_KEY_HEADER) or query.get(API_KEY_HEADER) or "").strip()
    if not token:
        raise AuthenticationError("Authentication failed: missing api key")
    return Credential(type=CREDENTIAL_TYPE_API_KEY, token=token)


def decode_api_key(token: str) -> tuple[str, str]:
    """base64 token -> (name, secret). Splits on the first ':' only."""
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise AuthenticationError("Authentication failed: malformed api key") from e
    name, sep, secret = decoded.partition(":")
    if not sep or not name:
        raise AuthenticationError("Authentication failed: malformed api key")
    return name, secret


def _get_api_key_by_name(session: Session, name: str) -> ApiKey | None:
    return session.exec(select(ApiKey).where(ApiKey.name == name)).first()


def authenticate(session: Session, credential: Credential) -> Identity:
    """
    Resolve credential to an Identity or raise AuthenticationError.

    Unknown name, disabled key and secret mismatch share one message so the
    response does not reveal which check failed.
    """
    if credential.type != CREDENTIAL_TYPE_API_KEY:
        raise AuthenticationError(
            f"Authentication failed: unsupported credential type {credential.type!r}"
        )
    name, secret = decode_api_key(credential.token)

    api_key = _get_api_key_by_name(session, name)
    if api_key is None:
        logger.warning("Unknown api key name=%s", name)
        raise AuthenticationError("Authentication failed: cannot find api key")
    if not api_key.is_enabled:
        logger.warning("Disabled api key id=%s", api_key.id)
        raise AuthenticationError("Authentication failed: cannot find api key")
    if not hmac.compare_digest(api_key.secret.encode(), secret.encode()):
        logger.warning("Secret mismatch for api key id=%s", api_key.id)
        raise AuthenticationError("Authentication failed: cannot find api key")

    return Identity(
        user_id=api_key.user_id,
        api_key_id=api_key.id,
        is_enabled=api_key.is_enabled,
    )
