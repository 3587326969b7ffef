"""Per-request billing for translation services (Service.cost_per_request)."""

import logging
from decimal import Decimal

from sqlmodel import Session, select

from translate_gateway.core.config import settings
from translate_gateway.models import Service

logger = logging.getLogger(__name__)


def calculate_cost(session: Session, service_name: str | None) -> tuple[Decimal, str]:
    """(cost, currency) for one call to ``service_name``; unknown services are free."""
    if not service_name:
        return Decimal("0"), settings.DEFAULT_CURRENCY
    service = session.exec(
        select(Service).where(Service.name == service_name, Service.is_enabled.is_(True))
    ).first()
    if service is None:
        logger.debug("No billing entry for service %s", service_name)
        return Decimal("0"), settings.DEFAULT_CURRENCY
    return Decimal(service.cost_per_request), service.currency_code
