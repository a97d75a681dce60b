"""Student payment endpoints backed by stored fee structures and transactions"""

import logging
import time
from datetime import date
from typing import List, Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from fee_engine.api.dependencies import (
    get_fee_structure_repository,
    get_payment_repository,
    get_reminder_client,
    get_request_id,
    get_scholarship_repository,
)
from fee_engine.api.v1.schemas import (
    PartialPaymentResponse,
    PlanSelectionRequest,
    PlanSelectionResponse,
    ScheduleResponse,
    ScholarshipAssignmentRequest,
    ScholarshipAwardResponse,
    StatusResponse,
    StudentPaymentsResponse,
)
from fee_engine.config import settings
from fee_engine.domain.exceptions import (
    FeeStructureNotFound,
    InconsistentTransactionTarget,
    InvalidFeeStructure,
    PaymentPlanLocked,
    PlanNotSelected,
)
from fee_engine.domain.models import FeeSchedule, PaymentPlan, Transaction
from fee_engine.domain.partial_payments import ensure_plan_change_allowed, summarize_partial_payments
from fee_engine.domain.schedule import build_schedule, waive_lines
from fee_engine.domain.status import resolve_statuses
from fee_engine.infrastructure.clients.reminders import ReminderClient
from fee_engine.infrastructure.database.repositories import (
    FeeStructureRepository,
    PaymentRepository,
    ScholarshipRepository,
)
from fee_engine.infrastructure.database.session import get_db
from fee_engine.infrastructure.observability.logging import log_schedule_built, log_status_resolved
from fee_engine.infrastructure.observability.metrics import (
    integrity_warning_counter,
    record_line_statuses,
    record_schedule,
)
from fee_engine.utils.date_utils import slot_key
from fee_engine.utils.money import format_inr

router = APIRouter()


def _load_schedule(
    student_id: str,
    cohort_id: str,
    fee_structures: FeeStructureRepository,
    scholarships: ScholarshipRepository,
    payments: PaymentRepository,
) -> Tuple[FeeSchedule, List[str], List[Transaction]]:
    """
    Build a student's schedule from stored data.

    Raises:
        FeeStructureNotFound, PlanNotSelected, InvalidFeeStructure
    """
    fee_structure = fee_structures.get_for_student(cohort_id, student_id)
    payment = payments.get_payment(student_id, cohort_id)
    plan = PaymentPlan(payment.payment_plan) if payment else PaymentPlan.NOT_SELECTED

    schedule = build_schedule(
        fee_structure,
        plan,
        scholarship=scholarships.get_for_student(cohort_id, student_id),
        gst_rate=settings.gst_rate_percent,
        semester_length_months=settings.semester_length_months,
    )

    waived_slots = list(payment.waived_slots or []) if payment else []
    transactions = payments.get_transactions(payment) if payment else []
    return schedule, waived_slots, transactions


@router.get("/students/{student_id}/payments", response_model=StudentPaymentsResponse)
def get_student_payments(
    student_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    cohort_id: str = Query(..., description="Cohort identifier"),
    as_of: Optional[date] = Query(None, description="Date used for overdue checks (default: today)"),
    fee_structures: FeeStructureRepository = Depends(get_fee_structure_repository),
    scholarships: ScholarshipRepository = Depends(get_scholarship_repository),
    payments: PaymentRepository = Depends(get_payment_repository),
    reminder_client: ReminderClient = Depends(get_reminder_client),
):
    """
    Student's full payment picture.

    Flow:
    1. Load fee structure (custom before cohort), scholarship and plan
    2. Build the schedule, applying administrative waivers
    3. Resolve line statuses from recorded transactions
    4. Queue an overdue reminder if anything is past due
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        schedule, waived_slots, transactions = _load_schedule(
            student_id, cohort_id, fee_structures, scholarships, payments
        )
        report = resolve_statuses(
            waive_lines(schedule.lines, waived_slots),
            transactions,
            today=as_of or date.today(),
            overdue_bucket_days=settings.overdue_bucket_days,
        )

    except FeeStructureNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    except (PlanNotSelected, InvalidFeeStructure) as e:
        logging.warning(f"Cannot build schedule: {e}", extra={"request_id": request_id, "student_id": student_id})
        raise HTTPException(status_code=422, detail=str(e))

    except InconsistentTransactionTarget as e:
        integrity_warning_counter.inc()
        logging.warning(
            f"Transaction target mismatch: {e}",
            extra={"request_id": request_id, "student_id": student_id, "transaction_id": e.transaction_id},
        )
        raise HTTPException(status_code=409, detail=str(e))

    if report.summary.total_overdue_paise > 0 and reminder_client.enabled:
        background_tasks.add_task(
            reminder_client.send_overdue_event,
            {
                "event": "FEE_OVERDUE",
                "student_id": student_id,
                "cohort_id": cohort_id,
                "total_overdue_paise": report.summary.total_overdue_paise,
                "next_due_date": report.summary.next_due_date.isoformat() if report.summary.next_due_date else None,
            },
        )

    duration_ms = (time.time() - start_time) * 1000
    record_schedule(schedule.payment_plan.value)
    record_line_statuses(r.status.value for r in report.lines)
    log_schedule_built(
        request_id,
        student_id,
        schedule.payment_plan.value,
        len(schedule.semesters),
        format_inr(schedule.overall_summary.total_amount_payable_paise),
        duration_ms,
    )
    log_status_resolved(
        request_id,
        student_id,
        report.summary.payment_status.value,
        format_inr(report.summary.total_pending_paise),
        format_inr(report.summary.total_overdue_paise),
        duration_ms,
    )

    return StudentPaymentsResponse(
        student_id=student_id,
        cohort_id=cohort_id,
        payment_plan=schedule.payment_plan,
        schedule=ScheduleResponse.from_domain(schedule),
        status=StatusResponse.from_domain(report),
    )


@router.put("/students/{student_id}/payment-plan", response_model=PlanSelectionResponse)
def select_payment_plan(
    student_id: str,
    request_body: PlanSelectionRequest,
    request: Request,
    db: Session = Depends(get_db),
    payments: PaymentRepository = Depends(get_payment_repository),
):
    """Select or change the student's payment plan; locked once payments begin"""
    request_id = get_request_id(request)

    try:
        payment = payments.get_or_create_payment(student_id, request_body.cohort_id)
        ensure_plan_change_allowed(
            PaymentPlan(payment.payment_plan),
            request_body.payment_plan,
            payments.get_transactions(payment),
        )
        payments.set_plan(payment, request_body.payment_plan)
        db.commit()

    except PaymentPlanLocked as e:
        db.rollback()
        logging.warning(f"Plan change refused: {e}", extra={"request_id": request_id, "student_id": student_id})
        raise HTTPException(status_code=409, detail=str(e))

    logging.info(
        "Payment plan selected",
        extra={"request_id": request_id, "student_id": student_id, "payment_plan": request_body.payment_plan.value},
    )

    return PlanSelectionResponse(
        student_id=student_id,
        cohort_id=request_body.cohort_id,
        payment_plan=request_body.payment_plan,
    )


@router.post("/students/{student_id}/scholarship", response_model=ScholarshipAwardResponse)
def assign_scholarship(
    student_id: str,
    request_body: ScholarshipAssignmentRequest,
    request: Request,
    db: Session = Depends(get_db),
    scholarships: ScholarshipRepository = Depends(get_scholarship_repository),
):
    """Award the cohort scholarship matching the student's test score"""
    request_id = get_request_id(request)

    scholarship = scholarships.assign_for_score(
        request_body.cohort_id,
        student_id,
        request_body.score,
        additional_discount_percentage=request_body.additional_discount_percentage,
    )
    if scholarship is None:
        raise HTTPException(status_code=404, detail=f"No scholarship band contains score {request_body.score}")

    db.commit()

    logging.info(
        "Scholarship awarded",
        extra={"request_id": request_id, "student_id": student_id, "scholarship": scholarship.name},
    )

    return ScholarshipAwardResponse.from_domain(student_id, request_body.cohort_id, scholarship)


@router.get(
    "/students/{student_id}/installments/{semester_number}/{installment_number}/partial-payments",
    response_model=PartialPaymentResponse,
)
def get_partial_payments(
    student_id: str,
    semester_number: int,
    installment_number: int,
    request: Request,
    cohort_id: str = Query(..., description="Cohort identifier"),
    fee_structures: FeeStructureRepository = Depends(get_fee_structure_repository),
    scholarships: ScholarshipRepository = Depends(get_scholarship_repository),
    payments: PaymentRepository = Depends(get_payment_repository),
):
    """Payments made so far against one installment and whether another is allowed"""
    request_id = get_request_id(request)

    try:
        schedule, _, transactions = _load_schedule(student_id, cohort_id, fee_structures, scholarships, payments)

        key = slot_key(semester_number, installment_number)
        line = next((candidate for candidate in schedule.semesters if candidate.key == key), None)
        if line is None:
            raise HTTPException(status_code=404, detail=f"Installment {key} not found")

        summary = summarize_partial_payments(
            line,
            schedule.lines,
            transactions,
            max_partial_payments=settings.max_partial_payments,
        )

    except FeeStructureNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    except (PlanNotSelected, InvalidFeeStructure) as e:
        logging.warning(f"Cannot build schedule: {e}", extra={"request_id": request_id, "student_id": student_id})
        raise HTTPException(status_code=422, detail=str(e))

    except InconsistentTransactionTarget as e:
        integrity_warning_counter.inc()
        logging.warning(
            f"Transaction target mismatch: {e}",
            extra={"request_id": request_id, "student_id": student_id, "transaction_id": e.transaction_id},
        )
        raise HTTPException(status_code=409, detail=str(e))

    return PartialPaymentResponse.from_domain(summary)
