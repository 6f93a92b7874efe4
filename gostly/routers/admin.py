"""Admin API for managing properties and reading usage."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gostly.config import settings
from gostly.database import get_db
from gostly.logging_config import get_logger
from gostly.models import Property
from gostly.schemas.property import (
    MessageLogResponse,
    MessagePage,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
    UsageSummaryResponse,
)
from gostly.services.message_log_service import list_property_messages
from gostly.services.property_service import (
    create_property,
    delete_property,
    get_property_by_code,
    update_property,
)
from gostly.services.usage_service import get_usage_summary

logger = get_logger("admin")

router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin_token(x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token")) -> None:
    expected = settings.admin_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ADMIN_TOKEN not configured",
        )
    if not x_admin_token or x_admin_token != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")


def _get_property_or_404(db: Session, code: str) -> Property:
    prop = get_property_by_code(db, code)
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Property {code.upper()} not found")
    return prop


@router.post(
    "/properties",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_token)],
)
def create_property_endpoint(payload: PropertyCreate, db: Session = Depends(get_db)):
    if get_property_by_code(db, payload.code):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Code {payload.code} already in use")

    try:
        prop = create_property(
            db,
            owner_id=payload.owner_id,
            code=payload.code,
            name=payload.name,
            knowledge_text=payload.knowledge_text,
            languages=payload.languages,
            handoff_email=payload.handoff_email,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Code {payload.code} already in use")

    logger.info("Property created", extra={"context": {"code": prop.code, "owner_id": str(prop.owner_id)}})
    return prop


@router.get("/properties/{code}", response_model=PropertyResponse, dependencies=[Depends(require_admin_token)])
def get_property_endpoint(code: str, db: Session = Depends(get_db)):
    return _get_property_or_404(db, code)


@router.patch("/properties/{code}", response_model=PropertyResponse, dependencies=[Depends(require_admin_token)])
def update_property_endpoint(code: str, payload: PropertyUpdate, db: Session = Depends(get_db)):
    prop = _get_property_or_404(db, code)
    update_property(db, prop, payload.model_dump(exclude_unset=True))
    db.commit()
    return prop


@router.delete(
    "/properties/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin_token)],
)
def delete_property_endpoint(code: str, db: Session = Depends(get_db)):
    prop = _get_property_or_404(db, code)
    delete_property(db, prop)
    db.commit()
    logger.info("Property deleted", extra={"context": {"code": code.upper()}})


@router.get(
    "/properties/{code}/messages",
    response_model=MessagePage,
    dependencies=[Depends(require_admin_token)],
)
def list_messages_endpoint(
    code: str,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    prop = _get_property_or_404(db, code)
    rows, total = list_property_messages(db, prop.id, limit=limit, offset=offset)
    return MessagePage(
        total=total,
        limit=limit,
        offset=offset,
        items=[MessageLogResponse.model_validate(row) for row in rows],
    )


@router.get("/usage/{owner_id}", response_model=UsageSummaryResponse, dependencies=[Depends(require_admin_token)])
def usage_summary_endpoint(owner_id: UUID, db: Session = Depends(get_db)):
    summary = get_usage_summary(db, owner_id)
    return UsageSummaryResponse(
        owner_id=owner_id,
        month=summary.month,
        plan=summary.plan,
        limit=summary.limit,
        used=summary.used,
        active=summary.active,
        current_period_end=summary.current_period_end,
    )
