"""Tests for app-level exception handling."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from translate_gateway.core.config import settings
from translate_gateway.main import app


def test_unhandled_exception_returns_safe_envelope() -> None:
    """Exception text (e.g. SQL) never reaches the response body."""
    with patch(
        "translate_gateway.api.routes.utils.liveness_check",
        side_effect=RuntimeError("SELECT secret FROM api_key"),
    ):
        with TestClient(app, raise_server_exceptions=False) as c:
            r = c.get(f"{settings.API_V1_STR}/utils/liveness/")
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Internal server error", "data": []}
    assert "SELECT" not in r.text
