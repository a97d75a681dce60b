"""Partial payment tracking and payment plan locking"""

from datetime import datetime
from typing import Sequence

from fee_engine.domain.exceptions import PaymentPlanLocked
from fee_engine.domain.models import (
    PartialPaymentSummary,
    PaymentPlan,
    PaymentTarget,
    ScheduleLine,
    Transaction,
    VerificationStatus,
)
from fee_engine.domain.status import match_line

MAX_PARTIAL_PAYMENTS = 2


def summarize_partial_payments(
    line: ScheduleLine,
    schedule_lines: Sequence[ScheduleLine],
    transactions: Sequence[Transaction],
    max_partial_payments: int = MAX_PARTIAL_PAYMENTS,
) -> PartialPaymentSummary:
    """
    Summarise payments made against one line.

    A line may be settled in at most `max_partial_payments` payments.
    Rejected payments stay in the history but do not use up an attempt.
    """
    history = sorted(
        (t for t in transactions if match_line(t, schedule_lines).key == line.key),
        key=lambda t: t.created_at or datetime.min,
    )

    total_paid = sum(t.amount_paise for t in history if t.verification_status == VerificationStatus.APPROVED)
    pending_amount = max(0, line.amount_payable_paise - total_paid)
    attempts_used = sum(1 for t in history if t.verification_status != VerificationStatus.REJECTED)
    remaining = max(0, max_partial_payments - attempts_used)

    return PartialPaymentSummary(
        line_key=line.key,
        original_amount_paise=line.amount_payable_paise,
        total_paid_paise=total_paid,
        pending_amount_paise=pending_amount,
        attempts_used=attempts_used,
        remaining_attempts=remaining,
        can_make_another_payment=remaining > 0 and pending_amount > 0,
        history=history,
    )


def ensure_plan_change_allowed(
    current_plan: PaymentPlan,
    requested_plan: PaymentPlan,
    transactions: Sequence[Transaction],
) -> None:
    """
    Raise PaymentPlanLocked if the plan would change after payments began.

    Any program fee transaction that was not rejected counts as payments
    having begun. Admission fee payments do not lock the plan.
    """
    if current_plan == requested_plan:
        return

    if any(
        t.verification_status != VerificationStatus.REJECTED and t.target != PaymentTarget.ADMISSION_FEE
        for t in transactions
    ):
        raise PaymentPlanLocked(
            f"Payment plan {current_plan.value} is locked once payments have been recorded"
        )
