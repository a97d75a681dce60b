"""Domain models - pure Python dataclasses representing fee and payment entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from fee_engine.utils.date_utils import ADMISSION_SLOT, slot_key


class PaymentPlan(str, Enum):
    """Cadence a student chose for paying the program fee"""

    ONE_SHOT = "one_shot"
    SEMESTER_WISE = "sem_wise"
    INSTALLMENT_WISE = "instalment_wise"
    NOT_SELECTED = "not_selected"


class StructureType(str, Enum):
    COHORT = "cohort"
    CUSTOM = "custom"


class LineKind(str, Enum):
    ADMISSION_FEE = "admission_fee"
    ONE_SHOT = "one_shot"
    SEMESTER = "semester"
    INSTALLMENT = "installment"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentTarget(str, Enum):
    """What a transaction pays for"""

    INSTALLMENT = "installment"
    ONE_SHOT = "one_shot"
    ADMISSION_FEE = "admission_fee"


class ResolvedStatus(str, Enum):
    PENDING = "pending"
    PENDING_10_PLUS_DAYS = "pending_10_plus_days"
    VERIFICATION_PENDING = "verification_pending"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIALLY_PAID_DAYS_LEFT = "partially_paid_days_left"
    PARTIALLY_PAID_OVERDUE = "partially_paid_overdue"
    PARTIALLY_PAID_VERIFICATION_PENDING = "partially_paid_verification_pending"
    WAIVED = "waived"
    PARTIALLY_WAIVED = "partially_waived"


OVERDUE_STATUSES = frozenset(
    {
        ResolvedStatus.OVERDUE,
        ResolvedStatus.PENDING_10_PLUS_DAYS,
        ResolvedStatus.PARTIALLY_PAID_OVERDUE,
    }
)

SETTLED_STATUSES = frozenset(
    {
        ResolvedStatus.PAID,
        ResolvedStatus.WAIVED,
        ResolvedStatus.PARTIALLY_WAIVED,
    }
)


@dataclass
class FeeStructure:
    """Program fee configuration for a cohort, or a per-student override"""

    cohort_id: str
    total_program_fee_paise: int
    admission_fee_paise: int
    number_of_semesters: int
    installments_per_semester: int
    one_shot_discount_percentage: Decimal = Decimal("0")
    program_fee_includes_gst: bool = False
    equal_scholarship_distribution: bool = False
    custom_dates_enabled: bool = False
    custom_due_dates: Dict[str, date] = field(default_factory=dict)
    program_start_date: Optional[date] = None
    structure_type: StructureType = StructureType.COHORT
    student_id: Optional[str] = None


@dataclass
class Scholarship:
    """Percentage award for students scoring within a percentile band"""

    scholarship_id: str
    name: str
    amount_percentage: Decimal
    start_percentage: Decimal = Decimal("0")
    end_percentage: Decimal = Decimal("100")
    additional_discount_percentage: Decimal = Decimal("0")

    @property
    def total_percentage(self) -> Decimal:
        """Scholarship plus any per-student additional discount"""
        return Decimal(str(self.amount_percentage)) + Decimal(str(self.additional_discount_percentage))


@dataclass
class ScheduleLine:
    """One payment obligation with its amount breakdown"""

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

    @property
    def key(self) -> str:
        if self.kind == LineKind.ADMISSION_FEE:
            return ADMISSION_SLOT
        return slot_key(self.semester_number, self.installment_number)


@dataclass
class ScheduleSummary:
    """Totals across the admission fee and every program line"""

    total_program_fee_paise: int
    admission_fee_paise: int
    total_base_paise: int
    total_gst_paise: int
    total_discount_paise: int
    total_scholarship_paise: int
    total_amount_payable_paise: int


@dataclass
class SemesterView:
    """Lines of a single semester with their totals"""

    semester_number: int
    lines: List[ScheduleLine]
    base_amount_paise: int
    gst_amount_paise: int
    discount_amount_paise: int
    scholarship_amount_paise: int
    amount_payable_paise: int


@dataclass
class FeeSchedule:
    """Output of the schedule builder"""

    payment_plan: PaymentPlan
    admission_fee: ScheduleLine
    semesters: List[ScheduleLine]
    overall_summary: ScheduleSummary

    @property
    def lines(self) -> List[ScheduleLine]:
        """Admission line followed by every program line"""
        return [self.admission_fee] + self.semesters

    def by_semester(self) -> List[SemesterView]:
        grouped: Dict[int, List[ScheduleLine]] = {}
        for line in self.semesters:
            grouped.setdefault(line.semester_number, []).append(line)

        return [
            SemesterView(
                semester_number=number,
                lines=lines,
                base_amount_paise=sum(l.base_amount_paise for l in lines),
                gst_amount_paise=sum(l.gst_amount_paise for l in lines),
                discount_amount_paise=sum(l.discount_amount_paise for l in lines),
                scholarship_amount_paise=sum(l.scholarship_amount_paise for l in lines),
                amount_payable_paise=sum(l.amount_payable_paise for l in lines),
            )
            for number, lines in sorted(grouped.items())
        ]


@dataclass
class Transaction:
    """Recorded payment against a schedule line"""

    transaction_id: str
    amount_paise: int
    payment_method: str
    verification_status: VerificationStatus
    target: PaymentTarget = PaymentTarget.INSTALLMENT
    semester_number: Optional[int] = None
    installment_number: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class ResolvedLine:
    """Schedule line annotated with its derived status"""

    line: ScheduleLine
    status: ResolvedStatus
    amount_paid_paise: int
    amount_pending_paise: int


@dataclass
class StatusSummary:
    total_payable_paise: int
    total_paid_paise: int
    total_pending_paise: int
    total_overdue_paise: int
    next_due_date: Optional[date]
    payment_status: ResolvedStatus


@dataclass
class StatusReport:
    """Output of the status resolver"""

    lines: List[ResolvedLine]
    summary: StatusSummary


@dataclass
class PartialPaymentSummary:
    """Progress of (possibly split) payments against one line"""

    line_key: str
    original_amount_paise: int
    total_paid_paise: int
    pending_amount_paise: int
    attempts_used: int
    remaining_attempts: int
    can_make_another_payment: bool
    history: List[Transaction]
