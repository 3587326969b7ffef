"""
Gateway quotas: check_quota.

Each ApiQuota rule counts ApiKeyHit rows for the key (and the caller IP when
restrict_by_ip) inside a trailing window ending now. A rule is exceeded when
it is enabled and count > val; the limit itself is allowed.

The hit for the current request is recorded before the check runs, so a
request counts toward its own limit: with val=2 the first two requests in the
window pass and the third fails.

Counting reads committed rows without reserving a slot. Concurrent requests
from one key can all read the same count and pass together; this is a
best-effort limiter, not a hard one.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlmodel import Session, select

from translate_gateway.core.errors import QuotaExceededError
from translate_gateway.core.gateway.hits import count_hits
from translate_gateway.models import ApiQuota, IntervalUnitEnum

logger = logging.getLogger(__name__)

_FIXED_UNITS: dict[IntervalUnitEnum, timedelta] = {
    IntervalUnitEnum.SECOND: timedelta(seconds=1),
    IntervalUnitEnum.MINUTE: timedelta(minutes=1),
    IntervalUnitEnum.HOUR: timedelta(hours=1),
    IntervalUnitEnum.DAY: timedelta(days=1),
    IntervalUnitEnum.WEEK: timedelta(weeks=1),
}


@dataclass(frozen=True)
class QuotaDecision:
    quota_id: int
    interval_unit: IntervalUnitEnum
    interval_value: int
    limit: int
    count: int
    restrict_by_ip: bool
    is_enabled: bool

    @property
    def exceeded(self) -> bool:
        return self.is_enabled and self.count > self.limit

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    def describe(self) -> str:
        return (
            f"Quota Id: {self.quota_id} exceeded. "
            f"Used: {self.count}, Limit: {self.limit} {self.interval_unit.value}"
        )


def _subtract_months(dt: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` earlier; day clamped to the target month's length."""
    total = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def window_start(now: datetime, unit: IntervalUnitEnum | str, magnitude: int) -> datetime:
    """
    Start of the trailing window [start, now].

    second..week are fixed durations. month and year step back on the
    calendar relative to ``now`` (not to a month/year boundary).
    """
    unit = IntervalUnitEnum(unit)
    magnitude = max(0, int(magnitude))
    if unit in _FIXED_UNITS:
        return now - _FIXED_UNITS[unit] * magnitude
    if unit == IntervalUnitEnum.MONTH:
        return _subtract_months(now, magnitude)
    return _subtract_months(now, magnitude * 12)


def get_quotas(session: Session, api_key_id: int) -> list[ApiQuota]:
    stmt = (
        select(ApiQuota)
        .where(ApiQuota.api_key_id == api_key_id)
        .order_by(ApiQuota.id.asc())
    )
    return list(session.exec(stmt).all())


def evaluate_quota(
    session: Session, quota: ApiQuota, ip: str, now: datetime
) -> QuotaDecision:
    since = window_start(now, quota.interval_unit, quota.interval_value)
    count = count_hits(
        session,
        quota.api_key_id,
        since,
        ip=ip if quota.restrict_by_ip else None,
    )
    return QuotaDecision(
        quota_id=quota.id,
        interval_unit=IntervalUnitEnum(quota.interval_unit),
        interval_value=quota.interval_value,
        limit=quota.val,
        count=count,
        restrict_by_ip=quota.restrict_by_ip,
        is_enabled=quota.is_enabled,
    )


def check_quota(
    session: Session,
    api_key_id: int,
    ip: str,
    now: datetime | None = None,
) -> list[QuotaDecision]:
    """
    Evaluate every rule for the key. Returns all decisions when none is exceeded.

    Raises QuotaExceededError naming every exceeded rule, not just the first.
    """
    now = now or datetime.now(timezone.utc)
    decisions = [
        evaluate_quota(session, quota, ip, now) for quota in get_quotas(session, api_key_id)
    ]
    exceeded = [d for d in decisions if d.exceeded]
    if exceeded:
        details = "\n".join(d.describe() for d in exceeded)
        logger.warning(
            "Quota exceeded api_key_id=%s quota_ids=%s",
            api_key_id,
            [d.quota_id for d in exceeded],
        )
        raise QuotaExceededError(
            f"API Quota exceeded for api_key_id {api_key_id}:\n{details}"
        )
    return decisions
