import logging
from decimal import Decimal

from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from translate_gateway.core.config import settings
from translate_gateway.models import Project, Service

logger = logging.getLogger(__name__)

engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI), pool_pre_ping=True)

# Translation services known to the gateway; cost is per translated request.
DEFAULT_SERVICES: tuple[tuple[str, Decimal], ...] = (
    ("mock", Decimal("0")),
    ("ollama", Decimal("0")),
)


def create_tables(bind: Engine | None = None) -> None:
    SQLModel.metadata.create_all(bind or engine)


def init_db(session: Session) -> None:
    """Create tables and seed the public default project and service rows."""
    create_tables(session.get_bind())

    project = session.exec(
        select(Project).where(Project.name == settings.DEFAULT_PROJECT_NAME)
    ).first()
    if not project:
        project = Project(name=settings.DEFAULT_PROJECT_NAME, is_public=True)
        session.add(project)
        logger.info("Created default project: %s", settings.DEFAULT_PROJECT_NAME)

    for name, cost in DEFAULT_SERVICES:
        service = session.exec(select(Service).where(Service.name == name)).first()
        if service:
            continue
        session.add(
            Service(
                name=name,
                cost_per_request=cost,
                currency_code=settings.DEFAULT_CURRENCY,
            )
        )
        logger.info("Created service: %s", name)
    session.flush()
