"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fee_engine.domain.models import (
    FeeSchedule,
    FeeStructure,
    LineKind,
    PartialPaymentSummary,
    PaymentPlan,
    PaymentTarget,
    ResolvedStatus,
    ScheduleLine,
    Scholarship,
    StatusReport,
    Transaction,
    VerificationStatus,
)
from fee_engine.utils.date_utils import normalize_custom_due_dates
from fee_engine.utils.money import format_inr


class FeeStructureSchema(BaseModel):
    """Fee structure supplied for a preview"""

    cohort_id: str = "preview"
    total_program_fee_paise: int = Field(..., description="Total program fee in paise")
    admission_fee_paise: int = Field(0, description="Admission fee in paise")
    number_of_semesters: int
    installments_per_semester: int = 1
    one_shot_discount_percentage: Decimal = Decimal("0")
    program_fee_includes_gst: bool = False
    equal_scholarship_distribution: bool = False
    custom_dates_enabled: bool = False
    custom_due_dates: Dict[str, Any] = Field(default_factory=dict)
    program_start_date: Optional[date] = None

    def to_domain(self) -> FeeStructure:
        return FeeStructure(
            cohort_id=self.cohort_id,
            total_program_fee_paise=self.total_program_fee_paise,
            admission_fee_paise=self.admission_fee_paise,
            number_of_semesters=self.number_of_semesters,
            installments_per_semester=self.installments_per_semester,
            one_shot_discount_percentage=self.one_shot_discount_percentage,
            program_fee_includes_gst=self.program_fee_includes_gst,
            equal_scholarship_distribution=self.equal_scholarship_distribution,
            custom_dates_enabled=self.custom_dates_enabled,
            custom_due_dates=normalize_custom_due_dates(self.custom_due_dates),
            program_start_date=self.program_start_date,
        )


class ScholarshipSchema(BaseModel):
    name: str = "Scholarship"
    amount_percentage: Decimal
    start_percentage: Decimal = Decimal("0")
    end_percentage: Decimal = Decimal("100")
    additional_discount_percentage: Decimal = Decimal("0")

    def to_domain(self) -> Scholarship:
        return Scholarship(
            scholarship_id="preview",
            name=self.name,
            amount_percentage=self.amount_percentage,
            start_percentage=self.start_percentage,
            end_percentage=self.end_percentage,
            additional_discount_percentage=self.additional_discount_percentage,
        )


class SchedulePreviewRequest(BaseModel):
    """Request body for POST /v1/schedule/preview"""

    fee_structure: FeeStructureSchema
    payment_plan: PaymentPlan
    scholarship: Optional[ScholarshipSchema] = None
    start_date: Optional[date] = None


class ScheduleLineSchema(BaseModel):
    """Single payment obligation"""

    kind: LineKind
    semester_number: int
    installment_number: int
    due_date: date
    base_amount_paise: int
    gst_amount_paise: int
    discount_amount_paise: int
    scholarship_amount_paise: int
    amount_payable_paise: int
    waived: bool = False

    @classmethod
    def from_domain(cls, line: ScheduleLine) -> "ScheduleLineSchema":
        return cls(
            kind=line.kind,
            semester_number=line.semester_number,
            installment_number=line.installment_number,
            due_date=line.due_date,
            base_amount_paise=line.base_amount_paise,
            gst_amount_paise=line.gst_amount_paise,
            discount_amount_paise=line.discount_amount_paise,
            scholarship_amount_paise=line.scholarship_amount_paise,
            amount_payable_paise=line.amount_payable_paise,
            waived=line.waived,
        )

    def to_domain(self) -> ScheduleLine:
        return ScheduleLine(**self.model_dump())


class ScheduleSummarySchema(BaseModel):
    total_program_fee_paise: int
    admission_fee_paise: int
    total_base_paise: int
    total_gst_paise: int
    total_discount_paise: int
    total_scholarship_paise: int
    total_amount_payable_paise: int
    total_amount_payable_display: str


class ScheduleResponse(BaseModel):
    """Response for POST /v1/schedule/preview"""

    payment_plan: PaymentPlan
    admission_fee: ScheduleLineSchema
    semesters: List[ScheduleLineSchema]
    overall_summary: ScheduleSummarySchema

    @classmethod
    def from_domain(cls, schedule: FeeSchedule) -> "ScheduleResponse":
        summary = schedule.overall_summary
        return cls(
            payment_plan=schedule.payment_plan,
            admission_fee=ScheduleLineSchema.from_domain(schedule.admission_fee),
            semesters=[ScheduleLineSchema.from_domain(line) for line in schedule.semesters],
            overall_summary=ScheduleSummarySchema(
                total_program_fee_paise=summary.total_program_fee_paise,
                admission_fee_paise=summary.admission_fee_paise,
                total_base_paise=summary.total_base_paise,
                total_gst_paise=summary.total_gst_paise,
                total_discount_paise=summary.total_discount_paise,
                total_scholarship_paise=summary.total_scholarship_paise,
                total_amount_payable_paise=summary.total_amount_payable_paise,
                total_amount_payable_display=format_inr(summary.total_amount_payable_paise),
            ),
        )


class TransactionSchema(BaseModel):
    """Recorded payment"""

    transaction_id: str
    amount_paise: int = Field(..., ge=0)
    payment_method: str = "bank_transfer"
    verification_status: VerificationStatus
    target: PaymentTarget = PaymentTarget.INSTALLMENT
    semester_number: Optional[int] = None
    installment_number: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_domain(self) -> Transaction:
        return Transaction(**self.model_dump())


class StatusResolveRequest(BaseModel):
    """Request body for POST /v1/status/resolve"""

    lines: List[ScheduleLineSchema]
    transactions: List[TransactionSchema] = Field(default_factory=list)
    as_of: Optional[date] = None


class ResolvedLineSchema(BaseModel):
    line: ScheduleLineSchema
    status: ResolvedStatus
    amount_paid_paise: int
    amount_pending_paise: int


class StatusSummarySchema(BaseModel):
    total_payable_paise: int
    total_paid_paise: int
    total_pending_paise: int
    total_overdue_paise: int
    next_due_date: Optional[date] = None
    payment_status: ResolvedStatus


class StatusResponse(BaseModel):
    """Response for POST /v1/status/resolve"""

    lines: List[ResolvedLineSchema]
    summary: StatusSummarySchema

    @classmethod
    def from_domain(cls, report: StatusReport) -> "StatusResponse":
        summary = report.summary
        return cls(
            lines=[
                ResolvedLineSchema(
                    line=ScheduleLineSchema.from_domain(r.line),
                    status=r.status,
                    amount_paid_paise=r.amount_paid_paise,
                    amount_pending_paise=r.amount_pending_paise,
                )
                for r in report.lines
            ],
            summary=StatusSummarySchema(
                total_payable_paise=summary.total_payable_paise,
                total_paid_paise=summary.total_paid_paise,
                total_pending_paise=summary.total_pending_paise,
                total_overdue_paise=summary.total_overdue_paise,
                next_due_date=summary.next_due_date,
                payment_status=summary.payment_status,
            ),
        )


class StudentPaymentsResponse(BaseModel):
    """Response for GET /v1/students/{student_id}/payments"""

    student_id: str
    cohort_id: str
    payment_plan: PaymentPlan
    schedule: ScheduleResponse
    status: StatusResponse


class PlanSelectionRequest(BaseModel):
    """Request body for PUT /v1/students/{student_id}/payment-plan"""

    cohort_id: str = Field(..., min_length=1)
    payment_plan: PaymentPlan


class PlanSelectionResponse(BaseModel):
    student_id: str
    cohort_id: str
    payment_plan: PaymentPlan


class ScholarshipAssignmentRequest(BaseModel):
    """Request body for POST /v1/students/{student_id}/scholarship"""

    cohort_id: str = Field(..., min_length=1)
    score: float = Field(..., ge=0, le=100, description="Test score percentile")
    additional_discount_percentage: float = Field(0.0, ge=0, le=100)


class ScholarshipAwardResponse(BaseModel):
    student_id: str
    cohort_id: str
    scholarship_id: str
    name: str
    amount_percentage: Decimal
    additional_discount_percentage: Decimal
    total_percentage: Decimal

    @classmethod
    def from_domain(cls, student_id: str, cohort_id: str, scholarship: Scholarship) -> "ScholarshipAwardResponse":
        return cls(
            student_id=student_id,
            cohort_id=cohort_id,
            scholarship_id=scholarship.scholarship_id,
            name=scholarship.name,
            amount_percentage=scholarship.amount_percentage,
            additional_discount_percentage=scholarship.additional_discount_percentage,
            total_percentage=scholarship.total_percentage,
        )


class PartialPaymentResponse(BaseModel):
    """Response for GET .../installments/{semester}/{installment}/partial-payments"""

    line_key: str
    original_amount_paise: int
    total_paid_paise: int
    pending_amount_paise: int
    attempts_used: int
    remaining_attempts: int
    can_make_another_payment: bool
    history: List[TransactionSchema]

    @classmethod
    def from_domain(cls, summary: PartialPaymentSummary) -> "PartialPaymentResponse":
        return cls(
            line_key=summary.line_key,
            original_amount_paise=summary.original_amount_paise,
            total_paid_paise=summary.total_paid_paise,
            pending_amount_paise=summary.pending_amount_paise,
            attempts_used=summary.attempts_used,
            remaining_attempts=summary.remaining_attempts,
            can_make_another_payment=summary.can_make_another_payment,
            history=[
                TransactionSchema(
                    transaction_id=t.transaction_id,
                    amount_paise=t.amount_paise,
                    payment_method=t.payment_method,
                    verification_status=t.verification_status,
                    target=t.target,
                    semester_number=t.semester_number,
                    installment_number=t.installment_number,
                    created_at=t.created_at,
                )
                for t in summary.history
            ],
        )
