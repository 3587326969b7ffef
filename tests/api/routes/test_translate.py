"""Tests for GET /api/translate."""

from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from translate_gateway.core.config import settings
from translate_gateway.models import ApiKeyHit
from tests.utils.api_key import create_quota, create_random_api_key


def _url() -> str:
    return f"{settings.API_V1_STR}/translate"


def test_translate_with_header_key(client: TestClient, db: Session) -> None:
    _, token = create_random_api_key(db)
    r = client.get(_url(), params={"q": "Hello", "to": "es"}, headers={"x-api-key": token})
    assert r.status_code == 200
    data = r.json()
    assert data["translation"] == "[Mock translation to es]: Hello"
    assert data["to"] == "es"
    assert data["service"] == "mock"
    assert data["details"]["cached"] is False
    assert data["details"]["project"] == settings.DEFAULT_PROJECT_NAME


def test_translate_with_query_key_and_aliases(client: TestClient, db: Session) -> None:
    _, token = create_random_api_key(db)
    r = client.get(
        _url(), params={"query": "Hello", "target": "fr", "x-api-key": token}
    )
    assert r.status_code == 200
    assert r.json()["to"] == "fr"


def test_translate_cache_hit_end_to_end(client: TestClient, db: Session) -> None:
    _, token = create_random_api_key(db)
    params = {"q": "Hello, world!", "to": "es", "usecache": "true"}
    first = client.get(_url(), params=params, headers={"x-api-key": token}).json()
    second = client.get(_url(), params=params, headers={"x-api-key": token}).json()
    assert first["details"]["cached"] is False
    assert second["details"]["cached"] is True
    assert first["details"]["cacheKey"] == second["details"]["cacheKey"]
    assert first["translation"] == second["translation"]


def test_translate_missing_key_401(client: TestClient) -> None:
    r = client.get(_url(), params={"q": "Hello", "to": "es"})
    assert r.status_code == 401
    assert r.json() == {
        "success": False,
        "message": "Authentication failed: missing api key",
        "data": [],
    }


def test_translate_bad_key_401(client: TestClient, db: Session) -> None:
    key, _ = create_random_api_key(db, secret="right")
    r = client.get(
        _url(),
        params={"q": "Hello", "to": "es"},
        headers={"x-api-key": "bm90LWEta2V5"},
    )
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_translate_missing_text_400(client: TestClient, db: Session) -> None:
    _, token = create_random_api_key(db)
    r = client.get(_url(), params={"to": "es"}, headers={"x-api-key": token})
    assert r.status_code == 400
    assert "'q'" in r.json()["message"]


def test_translate_quota_exceeded_429(client: TestClient, db: Session) -> None:
    key, token = create_random_api_key(db)
    create_quota(db, key, val=2)
    codes = [
        client.get(
            _url(), params={"q": "Hi", "to": "es"}, headers={"x-api-key": token}
        ).status_code
        for _ in range(3)
    ]
    assert codes == [200, 200, 429]


def test_translate_records_forwarded_ip(client: TestClient, db: Session) -> None:
    key, token = create_random_api_key(db)
    r = client.get(
        _url(),
        params={"q": "Hi", "to": "es"},
        headers={"x-api-key": token, "x-forwarded-for": "203.0.113.9, 198.51.100.7"},
    )
    assert r.status_code == 200
    hit = db.exec(select(ApiKeyHit).where(ApiKeyHit.api_key_id == key.id)).one()
    assert hit.ip_address == "198.51.100.7"


def test_translate_trailing_comma_forwarded_for_cannot_dodge_ip_quota(
    client: TestClient, db: Session
) -> None:
    key, token = create_random_api_key(db)
    create_quota(db, key, val=1, restrict_by_ip=True)
    headers = {"x-api-key": token, "x-forwarded-for": "203.0.113.9,"}
    codes = [
        client.get(_url(), params={"q": "Hi", "to": "es"}, headers=headers).status_code
        for _ in range(3)
    ]
    assert codes == [200, 429, 429]
    ips = set(db.exec(select(ApiKeyHit.ip_address).where(ApiKeyHit.api_key_id == key.id)).all())
    assert ips == {"203.0.113.9"}


def test_translate_hit_write_failure_500(client: TestClient, db: Session) -> None:
    key, token = create_random_api_key(db)
    with patch.object(Session, "commit", side_effect=SQLAlchemyError("down")):
        r = client.get(_url(), params={"q": "Hi", "to": "es"}, headers={"x-api-key": token})
    assert r.status_code == 500
    assert r.json() == {
        "success": False,
        "message": "Failed to record api key hit",
        "data": [],
    }
    hits = db.exec(select(ApiKeyHit).where(ApiKeyHit.api_key_id == key.id)).all()
    assert hits == []
