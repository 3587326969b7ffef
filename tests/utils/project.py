"""Test helpers for Project, ProjectUser and ProjectSetting."""

from sqlmodel import Session, select

from translate_gateway.core.config import settings
from translate_gateway.models import Project, ProjectSetting, ProjectUser, User
from tests.utils.utils import random_lower_string


def get_default_project(db: Session) -> Project:
    return db.exec(
        select(Project).where(Project.name == settings.DEFAULT_PROJECT_NAME)
    ).one()


def create_random_project(
    db: Session,
    *,
    name: str | None = None,
    is_public: bool = False,
    members: list[User] | None = None,
    project_settings: dict[str, str] | None = None,
) -> Project:
    project = Project(name=name or f"project-{random_lower_string()}", is_public=is_public)
    db.add(project)
    db.commit()
    db.refresh(project)
    for user in members or []:
        db.add(ProjectUser(project_id=project.id, user_id=user.id))
    for key, value in (project_settings or {}).items():
        db.add(ProjectSetting(project_id=project.id, name=key, value=value))
    db.commit()
    return project
