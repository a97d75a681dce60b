"""Data access layer for fee structures, scholarships and payments"""

import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from fee_engine.domain.exceptions import InvalidFeeStructure
from fee_engine.domain.fee_structures import find_scholarship_for_score, select_fee_structure
from fee_engine.domain.models import (
    FeeStructure,
    PaymentPlan,
    PaymentTarget,
    Scholarship,
    StructureType,
    Transaction,
    VerificationStatus,
)
from fee_engine.infrastructure.database.models import (
    FeeStructureRecord,
    PaymentTransactionRecord,
    ScholarshipRecord,
    StudentPaymentRecord,
    StudentScholarshipRecord,
)
from fee_engine.utils.date_utils import normalize_custom_due_dates


def _to_decimal(value: float | None) -> Decimal:
    return Decimal(str(value or 0))


class FeeStructureRepository:
    """Repository for cohort and custom fee structures"""

    def __init__(self, db: Session):
        self.db = db

    def create_structure(self, fee_structure: FeeStructure) -> FeeStructureRecord:
        """Persist fee structure to database"""
        record = FeeStructureRecord(
            cohort_id=fee_structure.cohort_id,
            student_id=fee_structure.student_id,
            structure_type=fee_structure.structure_type.value,
            total_program_fee_paise=fee_structure.total_program_fee_paise,
            admission_fee_paise=fee_structure.admission_fee_paise,
            number_of_semesters=fee_structure.number_of_semesters,
            instalments_per_semester=fee_structure.installments_per_semester,
            one_shot_discount_percentage=float(fee_structure.one_shot_discount_percentage),
            program_fee_includes_gst=fee_structure.program_fee_includes_gst,
            equal_scholarship_distribution=fee_structure.equal_scholarship_distribution,
            custom_dates_enabled=fee_structure.custom_dates_enabled,
            custom_due_dates={key: due.isoformat() for key, due in fee_structure.custom_due_dates.items()},
            program_start_date=fee_structure.program_start_date,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def get_structures_for_cohort(self, cohort_id: str) -> List[FeeStructure]:
        records = (
            self.db.query(FeeStructureRecord)
            .filter(FeeStructureRecord.cohort_id == cohort_id)
            .order_by(FeeStructureRecord.created_at.asc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def get_for_student(self, cohort_id: str, student_id: str) -> FeeStructure:
        """Custom structure for the student if one exists, else the cohort structure"""
        return select_fee_structure(self.get_structures_for_cohort(cohort_id), student_id)

    @staticmethod
    def _to_domain(record: FeeStructureRecord) -> FeeStructure:
        try:
            custom_due_dates = normalize_custom_due_dates(record.custom_due_dates)
        except ValueError as e:
            raise InvalidFeeStructure(f"Stored custom due dates for cohort {record.cohort_id} are invalid: {e}") from e

        return FeeStructure(
            cohort_id=record.cohort_id,
            student_id=record.student_id,
            structure_type=StructureType(record.structure_type),
            total_program_fee_paise=record.total_program_fee_paise,
            admission_fee_paise=record.admission_fee_paise,
            number_of_semesters=record.number_of_semesters,
            installments_per_semester=record.instalments_per_semester,
            one_shot_discount_percentage=_to_decimal(record.one_shot_discount_percentage),
            program_fee_includes_gst=record.program_fee_includes_gst,
            equal_scholarship_distribution=record.equal_scholarship_distribution,
            custom_dates_enabled=record.custom_dates_enabled,
            custom_due_dates=custom_due_dates,
            program_start_date=record.program_start_date,
        )


class ScholarshipRepository:
    """Repository for scholarships and their student awards"""

    def __init__(self, db: Session):
        self.db = db

    def create_scholarship(self, cohort_id: str, name: str, amount_percentage: float,
                           start_percentage: float = 0.0, end_percentage: float = 100.0) -> ScholarshipRecord:
        record = ScholarshipRecord(
            cohort_id=cohort_id,
            name=name,
            amount_percentage=amount_percentage,
            start_percentage=start_percentage,
            end_percentage=end_percentage,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def award(self, student_id: str, scholarship_id: uuid.UUID,
              additional_discount_percentage: float = 0.0) -> StudentScholarshipRecord:
        record = StudentScholarshipRecord(
            student_id=student_id,
            scholarship_id=scholarship_id,
            additional_discount_percentage=additional_discount_percentage,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_cohort_scholarships(self, cohort_id: str) -> List[Scholarship]:
        records = (
            self.db.query(ScholarshipRecord)
            .filter(ScholarshipRecord.cohort_id == cohort_id)
            .order_by(ScholarshipRecord.start_percentage.asc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def assign_for_score(self, cohort_id: str, student_id: str, score: float,
                         additional_discount_percentage: float = 0.0) -> Optional[Scholarship]:
        """Award the cohort scholarship whose band contains the score, if any"""
        scholarship = find_scholarship_for_score(self.get_cohort_scholarships(cohort_id), score)
        if scholarship is None:
            return None

        self.award(student_id, uuid.UUID(scholarship.scholarship_id), additional_discount_percentage)
        scholarship.additional_discount_percentage = _to_decimal(additional_discount_percentage)
        return scholarship

    def get_for_student(self, cohort_id: str, student_id: str) -> Optional[Scholarship]:
        """Scholarship awarded to the student in this cohort, if any"""
        award = (
            self.db.query(StudentScholarshipRecord)
            .join(ScholarshipRecord)
            .filter(
                StudentScholarshipRecord.student_id == student_id,
                ScholarshipRecord.cohort_id == cohort_id,
            )
            .order_by(StudentScholarshipRecord.created_at.desc())
            .first()
        )
        if not award:
            return None

        return self._to_domain(award.scholarship, award.additional_discount_percentage)

    @staticmethod
    def _to_domain(record: ScholarshipRecord, additional_discount_percentage: float | None = None) -> Scholarship:
        return Scholarship(
            scholarship_id=str(record.id),
            name=record.name,
            amount_percentage=_to_decimal(record.amount_percentage),
            start_percentage=_to_decimal(record.start_percentage),
            end_percentage=_to_decimal(record.end_percentage),
            additional_discount_percentage=_to_decimal(additional_discount_percentage),
        )


class PaymentRepository:
    """Repository for plan selections and payment transactions"""

    def __init__(self, db: Session):
        self.db = db

    def get_payment(self, student_id: str, cohort_id: str) -> Optional[StudentPaymentRecord]:
        return (
            self.db.query(StudentPaymentRecord)
            .filter(
                StudentPaymentRecord.student_id == student_id,
                StudentPaymentRecord.cohort_id == cohort_id,
            )
            .first()
        )

    def get_or_create_payment(self, student_id: str, cohort_id: str) -> StudentPaymentRecord:
        payment = self.get_payment(student_id, cohort_id)
        if payment:
            return payment

        payment = StudentPaymentRecord(student_id=student_id, cohort_id=cohort_id, waived_slots=[])
        self.db.add(payment)
        self.db.flush()
        return payment

    def set_plan(self, payment: StudentPaymentRecord, plan: PaymentPlan) -> StudentPaymentRecord:
        payment.payment_plan = plan.value
        self.db.flush()
        return payment

    def waive_slots(self, payment: StudentPaymentRecord, slot_keys: List[str]) -> StudentPaymentRecord:
        # Reassign so the JSON column is flagged dirty
        payment.waived_slots = sorted(set(payment.waived_slots or []) | set(slot_keys))
        self.db.flush()
        return payment

    def record_transaction(self, payment: StudentPaymentRecord, transaction: Transaction) -> PaymentTransactionRecord:
        """Persist a transaction against the student's payment record"""
        record = PaymentTransactionRecord(
            payment_id=payment.id,
            amount_paise=transaction.amount_paise,
            payment_method=transaction.payment_method,
            verification_status=transaction.verification_status.value,
            target=transaction.target.value,
            semester_number=transaction.semester_number,
            installment_number=transaction.installment_number,
        )
        if transaction.created_at is not None:
            record.created_at = transaction.created_at
        self.db.add(record)
        self.db.flush()
        return record

    def get_transactions(self, payment: StudentPaymentRecord) -> List[Transaction]:
        records = (
            self.db.query(PaymentTransactionRecord)
            .filter(PaymentTransactionRecord.payment_id == payment.id)
            .order_by(PaymentTransactionRecord.created_at.asc())
            .all()
        )
        return [
            Transaction(
                transaction_id=str(r.id),
                amount_paise=r.amount_paise,
                payment_method=r.payment_method,
                verification_status=VerificationStatus(r.verification_status),
                target=PaymentTarget(r.target),
                semester_number=r.semester_number,
                installment_number=r.installment_number,
                created_at=r.created_at,
            )
            for r in records
        ]
