"""Fee schedule generation for program fee payment plans"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple, Optional

from fee_engine.domain.exceptions import PlanNotSelected
from fee_engine.domain.fee_structures import validate_fee_structure, validate_scholarship
from fee_engine.domain.models import (
    FeeSchedule,
    FeeStructure,
    LineKind,
    PaymentPlan,
    ScheduleLine,
    ScheduleSummary,
    Scholarship,
)
from fee_engine.utils.date_utils import ADMISSION_SLOT, add_months, slot_key, spread_dates
from fee_engine.utils.money import extract_base_from_gross, percent_of, split_evenly, to_decimal

GST_RATE_PERCENT = Decimal("18")
SEMESTER_LENGTH_MONTHS = 6


class _Slot(NamedTuple):
    kind: LineKind
    semester_number: int
    installment_number: int
    base_amount_paise: int
    default_due_date: date


def build_schedule(
    fee_structure: FeeStructure,
    payment_plan: PaymentPlan,
    scholarship: Optional[Scholarship] = None,
    start_date: date | None = None,
    gst_rate: Decimal = GST_RATE_PERCENT,
    semester_length_months: int = SEMESTER_LENGTH_MONTHS,
) -> FeeSchedule:
    """
    Build the payment schedule for a fee structure and payment plan.

    Requirements:
    - Admission fee is always its own line, due on the start date
    - Program fee split equally per semester / installment
    - Last line of a split absorbs the rounding remainder (exact totals)
    - Per line: base → discount → GST → scholarship → payable
      (GST is charged on the post-discount, pre-scholarship base)

    Args:
        fee_structure: Cohort or student fee configuration
        payment_plan: Student's chosen cadence
        scholarship: Optional scholarship awarded to the student
        start_date: Program start (default: the structure's start date, else today)
        gst_rate: GST percentage
        semester_length_months: Months between semester starts

    Returns:
        FeeSchedule with the admission line, program lines and totals

    Raises:
        InvalidFeeStructure: Configuration out of range
        PlanNotSelected: No payment plan chosen yet

    Example:
        ₹1,20,000 over 2 semesters, semester-wise, GST 18% added
        → 2 lines of base ₹60,000 + GST ₹10,800 = ₹70,800
    """
    validate_fee_structure(fee_structure)
    if scholarship is not None:
        validate_scholarship(scholarship)

    if payment_plan == PaymentPlan.NOT_SELECTED:
        raise PlanNotSelected("Payment plan must be selected before building a schedule")

    if start_date is None:
        start_date = fee_structure.program_start_date or date.today()

    custom_dates = fee_structure.custom_due_dates if fee_structure.custom_dates_enabled else {}

    admission_fee = _build_admission_line(
        fee_structure,
        gst_rate,
        custom_dates.get(ADMISSION_SLOT, start_date),
    )

    program_base = fee_structure.total_program_fee_paise
    if fee_structure.program_fee_includes_gst:
        program_base = extract_base_from_gross(program_base, gst_rate)

    slots = _program_slots(fee_structure, payment_plan, program_base, start_date, semester_length_months)
    scholarships = _distribute_scholarship(
        slots,
        program_base,
        scholarship,
        fee_structure.equal_scholarship_distribution,
    )

    discount_pct = fee_structure.one_shot_discount_percentage if payment_plan == PaymentPlan.ONE_SHOT else 0

    semesters = []
    for slot, scholarship_amount in zip(slots, scholarships):
        discount = percent_of(slot.base_amount_paise, discount_pct)
        discounted_base = slot.base_amount_paise - discount
        gst = percent_of(discounted_base, gst_rate)

        # Scholarship never pushes the line below its GST
        scholarship_amount = min(scholarship_amount, discounted_base)

        semesters.append(
            ScheduleLine(
                kind=slot.kind,
                semester_number=slot.semester_number,
                installment_number=slot.installment_number,
                due_date=custom_dates.get(
                    slot_key(slot.semester_number, slot.installment_number),
                    slot.default_due_date,
                ),
                base_amount_paise=slot.base_amount_paise,
                gst_amount_paise=gst,
                discount_amount_paise=discount,
                scholarship_amount_paise=scholarship_amount,
                amount_payable_paise=discounted_base + gst - scholarship_amount,
            )
        )

    return FeeSchedule(
        payment_plan=payment_plan,
        admission_fee=admission_fee,
        semesters=semesters,
        overall_summary=_summarize(program_base, admission_fee, semesters),
    )


def _build_admission_line(fee_structure: FeeStructure, gst_rate: Decimal, due_date: date) -> ScheduleLine:
    admission = fee_structure.admission_fee_paise

    if fee_structure.program_fee_includes_gst:
        base = extract_base_from_gross(admission, gst_rate)
        gst = admission - base
    else:
        base = admission
        gst = percent_of(admission, gst_rate)

    return ScheduleLine(
        kind=LineKind.ADMISSION_FEE,
        semester_number=0,
        installment_number=0,
        due_date=due_date,
        base_amount_paise=base,
        gst_amount_paise=gst,
        discount_amount_paise=0,
        scholarship_amount_paise=0,
        amount_payable_paise=base + gst,
    )


def _program_slots(
    fee_structure: FeeStructure,
    payment_plan: PaymentPlan,
    program_base: int,
    start_date: date,
    semester_length_months: int,
) -> List[_Slot]:
    if payment_plan == PaymentPlan.ONE_SHOT:
        return [_Slot(LineKind.ONE_SHOT, 1, 1, program_base, start_date)]

    semester_shares = split_evenly(program_base, fee_structure.number_of_semesters)
    slots = []

    for index, semester_share in enumerate(semester_shares):
        semester = index + 1
        semester_start = add_months(start_date, index * semester_length_months)

        if payment_plan == PaymentPlan.SEMESTER_WISE:
            slots.append(_Slot(LineKind.SEMESTER, semester, 1, semester_share, semester_start))
            continue

        count = fee_structure.installments_per_semester
        semester_end = add_months(start_date, semester * semester_length_months)
        due_dates = spread_dates(semester_start, semester_end, count)
        for number, (amount, due) in enumerate(zip(split_evenly(semester_share, count), due_dates), start=1):
            slots.append(_Slot(LineKind.INSTALLMENT, semester, number, amount, due))

    return slots


def _distribute_scholarship(
    slots: List[_Slot],
    program_base: int,
    scholarship: Optional[Scholarship],
    equal_distribution: bool,
) -> List[int]:
    """Scholarship amount per slot, before capping"""
    if scholarship is None or to_decimal(scholarship.total_percentage) == 0:
        return [0] * len(slots)

    percentage = scholarship.total_percentage

    if equal_distribution:
        # Same semester-then-installment split as the bases, so shares line up
        slots_per_semester: Dict[int, int] = {}
        for slot in slots:
            slots_per_semester[slot.semester_number] = slots_per_semester.get(slot.semester_number, 0) + 1

        total = percent_of(program_base, percentage)
        shares: List[int] = []
        for semester_share, count in zip(split_evenly(total, len(slots_per_semester)), slots_per_semester.values()):
            shares.extend(split_evenly(semester_share, count))
        return shares

    return [percent_of(slot.base_amount_paise, percentage) for slot in slots]


def _summarize(program_base: int, admission_fee: ScheduleLine, semesters: List[ScheduleLine]) -> ScheduleSummary:
    lines = [admission_fee] + semesters
    return ScheduleSummary(
        total_program_fee_paise=program_base,
        admission_fee_paise=admission_fee.amount_payable_paise,
        total_base_paise=sum(l.base_amount_paise for l in lines),
        total_gst_paise=sum(l.gst_amount_paise for l in lines),
        total_discount_paise=sum(l.discount_amount_paise for l in lines),
        total_scholarship_paise=sum(l.scholarship_amount_paise for l in lines),
        total_amount_payable_paise=sum(l.amount_payable_paise for l in lines),
    )


def waive_lines(lines: Iterable[ScheduleLine], slot_keys: Iterable[str]) -> List[ScheduleLine]:
    """Return copies of the lines with the administrative waive flag set on the given slots"""
    keys = set(slot_keys)
    return [replace(line, waived=True) if line.key in keys else line for line in lines]
