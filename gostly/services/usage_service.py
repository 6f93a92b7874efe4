"""Monthly usage metering gated on the owner's billing profile."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gostly.logging_config import get_logger
from gostly.models import BillingProfile, UsageMonthly

logger = get_logger("usage_service")

REASON_NO_PLAN = "no_plan"
REASON_LIMIT_REACHED = "limit_reached"
REASON_UNAVAILABLE = "unavailable"


@dataclass
class UsageCheck:
    allowed: bool
    used: int
    limit: int
    plan: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class UsageSummary:
    month: str
    plan: Optional[str]
    limit: int
    used: int
    active: bool
    current_period_end: Optional[datetime] = None


def month_key(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def has_active_plan(profile: BillingProfile, now: Optional[datetime] = None) -> bool:
    """Subscription reference present, or trial/period end still in the future."""
    now = now or datetime.now(timezone.utc)
    if profile.stripe_subscription_id:
        return True
    if profile.current_period_end is None:
        return False
    return _as_utc(profile.current_period_end) > now


def ensure_billing_profile(db: Session, owner_id: UUID) -> BillingProfile:
    """Load the owner's profile, creating an empty one (no plan, limit 0) if missing."""
    profile = db.query(BillingProfile).filter(BillingProfile.user_id == owner_id).first()
    if profile:
        return profile

    now = datetime.now(timezone.utc)
    profile = BillingProfile(
        user_id=owner_id,
        plan=None,
        monthly_limit=0,
        stripe_customer_id=None,
        stripe_subscription_id=None,
        stripe_status=None,
        current_period_end=None,
        created_at=now,
        updated_at=now,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Created concurrently by another request.
        db.rollback()
        profile = db.query(BillingProfile).filter(BillingProfile.user_id == owner_id).one()
    else:
        logger.info("Created empty billing profile", extra={"context": {"owner_id": str(owner_id)}})
    return profile


def _ensure_usage_row(db: Session, owner_id: UUID, month: str) -> None:
    exists = db.scalar(
        select(UsageMonthly.used).where(UsageMonthly.user_id == owner_id, UsageMonthly.month == month)
    )
    if exists is not None:
        return
    db.add(UsageMonthly(user_id=owner_id, month=month, used=0, updated_at=datetime.now(timezone.utc)))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()


def _current_used(db: Session, owner_id: UUID, month: str) -> int:
    used = db.scalar(
        select(UsageMonthly.used).where(UsageMonthly.user_id == owner_id, UsageMonthly.month == month)
    )
    return int(used or 0)


def check_and_increment_usage(
    db: Session,
    owner_id: UUID,
    increment: int = 1,
    now: Optional[datetime] = None,
) -> UsageCheck:
    """
    Admit one message against the owner's monthly quota.

    The increment is a single conditional UPDATE, so two concurrent requests cannot
    both pass the last free slot. Storage errors fail closed with reason "unavailable".
    """
    now = now or datetime.now(timezone.utc)
    month = month_key(now)

    try:
        profile = ensure_billing_profile(db, owner_id)
        plan = profile.plan

        if not has_active_plan(profile, now):
            return UsageCheck(allowed=False, used=0, limit=0, plan=plan, reason=REASON_NO_PLAN)

        limit = int(profile.monthly_limit or 0)
        _ensure_usage_row(db, owner_id, month)

        stmt = (
            update(UsageMonthly)
            .where(
                UsageMonthly.user_id == owner_id,
                UsageMonthly.month == month,
                UsageMonthly.used + increment <= limit,
            )
            .values(used=UsageMonthly.used + increment, updated_at=now)
            .returning(UsageMonthly.used)
            .execution_options(synchronize_session=False)
        )
        # The new count of this request's own increment; None when the limit refused it.
        admitted_used = db.execute(stmt).scalar_one_or_none()
        used = admitted_used if admitted_used is not None else _current_used(db, owner_id, month)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Usage check failed, refusing message: {e}",
            extra={"context": {"owner_id": str(owner_id), "month": month}},
        )
        return UsageCheck(allowed=False, used=0, limit=0, reason=REASON_UNAVAILABLE)

    if admitted_used is None:
        return UsageCheck(allowed=False, used=used, limit=limit, plan=plan, reason=REASON_LIMIT_REACHED)

    return UsageCheck(allowed=True, used=used, limit=limit, plan=plan)


def get_usage_summary(db: Session, owner_id: UUID, now: Optional[datetime] = None) -> UsageSummary:
    """Read-only usage view; never creates a profile or usage row."""
    now = now or datetime.now(timezone.utc)
    month = month_key(now)
    profile = db.query(BillingProfile).filter(BillingProfile.user_id == owner_id).first()
    used = _current_used(db, owner_id, month)

    if not profile:
        return UsageSummary(month=month, plan=None, limit=0, used=used, active=False)

    return UsageSummary(
        month=month,
        plan=profile.plan,
        limit=int(profile.monthly_limit or 0),
        used=used,
        active=has_active_plan(profile, now),
        current_period_end=profile.current_period_end,
    )
