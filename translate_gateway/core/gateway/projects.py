"""
Gateway project resolution: resolve_project, get_project_setting.

A public project resolves for any authenticated caller; a private one only for
members (ProjectUser). Unknown or unauthorised projects resolve to None, which
callers treat as "no project scope" rather than as an error.
"""

import logging

from sqlmodel import Session, select

from translate_gateway.core.config import settings
from translate_gateway.core.gateway.auth import Identity
from translate_gateway.models import Project, ProjectSetting, ProjectUser

logger = logging.getLogger(__name__)

SETTING_CACHE_BACKEND = "cache_backend"
SETTING_TRANSLATOR = "translator"


def get_project_by_name(session: Session, name: str) -> Project | None:
    return session.exec(select(Project).where(Project.name == name)).first()


def get_project_member_ids(session: Session, project_id: int) -> set[int]:
    stmt = select(ProjectUser.user_id).where(ProjectUser.project_id == project_id)
    return set(session.exec(stmt).all())


def resolve_project(
    session: Session, identity: Identity, name: str | None = None
) -> Project | None:
    """Project the caller may use, or None. ``name`` defaults to DEFAULT_PROJECT_NAME."""
    project_name = (name or "").strip() or settings.DEFAULT_PROJECT_NAME
    project = get_project_by_name(session, project_name)
    if project is None:
        logger.debug("Project not found: %s", project_name)
        return None
    if project.is_public:
        return project
    if identity.user_id in get_project_member_ids(session, project.id):
        return project
    logger.info(
        "User %s is not a member of private project %s", identity.user_id, project.id
    )
    return None


def get_project_setting(session: Session, project_id: int, name: str) -> str | None:
    stmt = select(ProjectSetting.value).where(
        ProjectSetting.project_id == project_id,
        ProjectSetting.name == name,
    )
    value = session.exec(stmt).first()
    return value or None
