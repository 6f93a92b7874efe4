import uuid
from datetime import datetime, timezone
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gostly.database import Base
from gostly.models import BillingProfile, Property, UsageMonthly
from gostly.services.llm import LLMProvider, LLMResponse
from gostly.services.usage_service import month_key


class FakeLLMProvider(LLMProvider):
    """Returns a canned completion (or raises) and records every call."""

    def __init__(self, content: str = "Check-in is after 15:00.", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[dict] = []

    def generate(self, messages, model=None, temperature=0.3, max_tokens=400, timeout_seconds=None):
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "timeout_seconds": timeout_seconds,
            }
        )
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model=model or "fake")


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def fake_llm():
    return FakeLLMProvider()


@pytest.fixture
def make_property(db_session):
    def _make(code="ANA123", name="Villa Ana", handoff_email="host@example.com", languages="auto", owner_id=None):
        now = datetime.now(timezone.utc)
        prop = Property(
            owner_id=owner_id or uuid.uuid4(),
            code=code,
            name=name,
            knowledge_text="- Check-in: after 15:00\n- Check-out: until 10:00\n- Parking: free\n- Wi-Fi: VillaAna123",
            languages=languages,
            handoff_email=handoff_email,
            created_at=now,
            updated_at=now,
        )
        db_session.add(prop)
        db_session.commit()
        return prop

    return _make


@pytest.fixture
def make_billing_profile(db_session):
    def _make(owner_id, monthly_limit=100, subscription_id="sub_123", current_period_end=None, plan="pro"):
        profile = BillingProfile(
            user_id=owner_id,
            plan=plan,
            monthly_limit=monthly_limit,
            stripe_subscription_id=subscription_id,
            current_period_end=current_period_end,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture
def set_usage(db_session):
    def _set(owner_id, used, month=None):
        db_session.add(UsageMonthly(user_id=owner_id, month=month or month_key(), used=used))
        db_session.commit()

    return _set


@pytest.fixture
def make_llm():
    def _make(content: str = "Check-in is after 15:00.", error: Optional[Exception] = None):
        return FakeLLMProvider(content=content, error=error)

    return _make
