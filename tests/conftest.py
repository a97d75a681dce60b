"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fee_engine.api.main import create_app
from fee_engine.infrastructure.database.models import Base
from fee_engine.infrastructure.database.session import get_db
from fee_engine.domain.models import FeeStructure


# Single shared in-memory connection so the app and the tests see the same data
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

PROGRAM_START = date(2026, 1, 1)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def fee_structure() -> FeeStructure:
    """₹1,20,000 program over 2 semesters of 3 installments, GST added on top"""
    return FeeStructure(
        cohort_id="cohort_2026",
        total_program_fee_paise=12_000_000,
        admission_fee_paise=0,
        number_of_semesters=2,
        installments_per_semester=3,
        program_start_date=PROGRAM_START,
    )
