from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadflow.core.config import get_config
from leadflow.models import Base, Lead, LeadStatus, MarketingLink, Profile
from leadflow.models.base import utcnow
from leadflow.services.email_sender import EmailMessage, EmailResult


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def config():
    return replace(get_config(), EMAIL_SANDBOX_MODE=True, WORKFLOW_DELAYED_ACTIONS_ENABLED=True)


class FakeEmailSender:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> EmailResult:
        if self.fail:
            return EmailResult(success=False, error="smtp unavailable")
        self.sent.append(message)
        return EmailResult(success=True, id=f"fake-{len(self.sent)}")


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def make_profile(session):
    def _make(first_name: str = "Pat", last_name: str = "Preparer", **fields) -> Profile:
        profile = Profile(first_name=first_name, last_name=last_name, **fields)
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_lead(session):
    def _make(age: timedelta = timedelta(hours=3), **fields) -> Lead:
        values = {
            "first_name": "Jordan",
            "last_name": "Lee",
            "email": "jordan.lee@example.com",
            "status": LeadStatus.NEW,
        }
        values.update(fields)
        lead = Lead(**values)
        lead.created_at = utcnow() - age
        session.add(lead)
        session.commit()
        session.refresh(lead)
        return lead

    return _make


@pytest.fixture
def make_link(session):
    def _make(code: str = "spring-flyer", **fields) -> MarketingLink:
        values = {"code": code, "link_type": "flyer", "title": "Spring flyer"}
        values.update(fields)
        link = MarketingLink(**values)
        session.add(link)
        session.commit()
        session.refresh(link)
        return link

    return _make


@pytest.fixture
def failing_email_sender():
    return FakeEmailSender(fail=True)
