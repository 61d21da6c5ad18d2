"""Pytest configuration and shared fixtures."""

import copy

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from weekplanner.domain.models import Base


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# Week 12 of 2025 runs from Monday 2025-03-17 to Sunday 2025-03-23.
BASE_PAYLOAD = {
    "teamId": "team-1",
    "weekNumber": 12,
    "year": 2025,
    "employees": [
        {"id": "e1", "name": "Alice Martin", "email": "alice@example.com", "weeklyHours": 32},
    ],
    "companyConstraints": {
        "openingDays": ["monday", "tuesday", "wednesday", "thursday", "friday"],
        "openingHours": ["09:00-17:00"],
        "minStaffSimultaneously": 1,
    },
    "preferences": {},
}


def make_payload(employees=None, company=None, preferences=None, **top):
    """Copy of BASE_PAYLOAD with the given parts replaced or merged."""
    payload = copy.deepcopy(BASE_PAYLOAD)
    if employees is not None:
        payload["employees"] = employees
    if company is not None:
        payload["companyConstraints"].update(company)
    if preferences is not None:
        payload["preferences"] = preferences
    payload.update(top)
    return payload


@pytest.fixture
def payload():
    return make_payload()


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
