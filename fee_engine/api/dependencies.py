"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fee_engine.infrastructure.clients.reminders import ReminderClient
from fee_engine.infrastructure.database.repositories import (
    FeeStructureRepository,
    PaymentRepository,
    ScholarshipRepository,
)
from fee_engine.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_reminder_client() -> ReminderClient:
    """Provide reminder webhook client instance"""
    return ReminderClient()


def get_fee_structure_repository(db: Session = Depends(get_db)) -> FeeStructureRepository:
    return FeeStructureRepository(db)


def get_scholarship_repository(db: Session = Depends(get_db)) -> ScholarshipRepository:
    return ScholarshipRepository(db)


def get_payment_repository(db: Session = Depends(get_db)) -> PaymentRepository:
    return PaymentRepository(db)
