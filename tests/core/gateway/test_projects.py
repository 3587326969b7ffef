"""Unit tests for gateway project resolution."""

from sqlmodel import Session

from translate_gateway.core.gateway.auth import Identity
from translate_gateway.core.gateway.projects import (
    SETTING_CACHE_BACKEND,
    get_project_setting,
    resolve_project,
)
from tests.utils.api_key import create_random_api_key, create_random_user
from tests.utils.project import create_random_project, get_default_project


def _identity(db: Session, user=None) -> Identity:
    key, _ = create_random_api_key(db, user=user)
    return Identity(user_id=key.user_id, api_key_id=key.id)


def test_default_project_resolves_without_name(db: Session) -> None:
    project = resolve_project(db, _identity(db))
    assert project is not None
    assert project.id == get_default_project(db).id


def test_public_project_resolves_for_anyone(db: Session) -> None:
    public = create_random_project(db, is_public=True)
    project = resolve_project(db, _identity(db), public.name)
    assert project is not None
    assert project.id == public.id


def test_private_project_requires_membership(db: Session) -> None:
    member = create_random_user(db)
    private = create_random_project(db, members=[member])

    assert resolve_project(db, _identity(db), private.name) is None
    project = resolve_project(db, _identity(db, user=member), private.name)
    assert project is not None
    assert project.id == private.id


def test_unknown_project_resolves_to_none(db: Session) -> None:
    assert resolve_project(db, _identity(db), "does-not-exist") is None


def test_project_setting_lookup(db: Session) -> None:
    project = create_random_project(
        db, is_public=True, project_settings={SETTING_CACHE_BACKEND: "memory"}
    )
    assert get_project_setting(db, project.id, SETTING_CACHE_BACKEND) == "memory"
    assert get_project_setting(db, project.id, "translator") is None
