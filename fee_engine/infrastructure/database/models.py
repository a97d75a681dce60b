"""SQLAlchemy ORM models for fee structures, scholarships and payments"""

import uuid

from sqlalchemy import JSON, BigInteger, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class FeeStructureRecord(Base):
    """Cohort fee structure, or a per-student custom override"""

    __tablename__ = "fee_structure"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(Text, nullable=False, index=True)
    student_id = Column(Text, nullable=True, index=True)
    structure_type = Column(Text, nullable=False, default="cohort")
    total_program_fee_paise = Column(BigInteger, nullable=False)
    admission_fee_paise = Column(BigInteger, nullable=False)
    number_of_semesters = Column(Integer, nullable=False)
    instalments_per_semester = Column(Integer, nullable=False)
    one_shot_discount_percentage = Column(Float, nullable=False, default=0.0)
    program_fee_includes_gst = Column(Boolean, nullable=False, default=False)
    equal_scholarship_distribution = Column(Boolean, nullable=False, default=False)
    custom_dates_enabled = Column(Boolean, nullable=False, default=False)
    custom_due_dates = Column(JSON, nullable=True)
    program_start_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ScholarshipRecord(Base):
    """Cohort scholarship with its qualifying percentile band"""

    __tablename__ = "cohort_scholarship"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    amount_percentage = Column(Float, nullable=False)
    start_percentage = Column(Float, nullable=False, default=0.0)
    end_percentage = Column(Float, nullable=False, default=100.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    awards = relationship("StudentScholarshipRecord", back_populates="scholarship", cascade="all, delete-orphan")


class StudentScholarshipRecord(Base):
    """Join record awarding a scholarship to a student"""

    __tablename__ = "student_scholarship"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Text, nullable=False, index=True)
    scholarship_id = Column(UUID(as_uuid=True), ForeignKey("cohort_scholarship.id", ondelete="CASCADE"), nullable=False)
    additional_discount_percentage = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    scholarship = relationship("ScholarshipRecord", back_populates="awards")


class StudentPaymentRecord(Base):
    """A student's payment plan selection within a cohort"""

    __tablename__ = "student_payment"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Text, nullable=False, index=True)
    cohort_id = Column(Text, nullable=False, index=True)
    payment_plan = Column(Text, nullable=False, default="not_selected")
    waived_slots = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    transactions = relationship("PaymentTransactionRecord", back_populates="payment", cascade="all, delete-orphan")


class PaymentTransactionRecord(Base):
    """Recorded payment, verified by an administrator"""

    __tablename__ = "payment_transaction"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    payment_id = Column(UUID(as_uuid=True), ForeignKey("student_payment.id", ondelete="CASCADE"), nullable=False)
    amount_paise = Column(BigInteger, nullable=False)
    payment_method = Column(Text, nullable=False)
    verification_status = Column(Text, nullable=False, default="pending")
    target = Column(Text, nullable=False, default="installment")
    semester_number = Column(Integer, nullable=True)
    installment_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    payment = relationship("StudentPaymentRecord", back_populates="transactions")
