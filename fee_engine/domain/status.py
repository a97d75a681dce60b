"""Payment status resolution - derives each schedule line's status from recorded transactions"""

from datetime import date
from typing import Dict, List, Sequence

from fee_engine.domain.exceptions import InconsistentTransactionTarget
from fee_engine.domain.models import (
    OVERDUE_STATUSES,
    SETTLED_STATUSES,
    LineKind,
    PaymentTarget,
    ResolvedLine,
    ResolvedStatus,
    ScheduleLine,
    StatusReport,
    StatusSummary,
    Transaction,
    VerificationStatus,
)
from fee_engine.utils.date_utils import days_past

OVERDUE_BUCKET_DAYS = 10

VERIFICATION_STATUSES = frozenset(
    {
        ResolvedStatus.VERIFICATION_PENDING,
        ResolvedStatus.PARTIALLY_PAID_VERIFICATION_PENDING,
    }
)


def match_line(transaction: Transaction, lines: Sequence[ScheduleLine]) -> ScheduleLine:
    """
    Find the schedule line a transaction pays for.

    Matching order:
    - admission / one-shot markers match the line of that kind
    - semester + installment number match the line's key exactly
    - semester number alone matches the only line of that semester (legacy records)

    Raises:
        InconsistentTransactionTarget: No line (or more than one) matches
    """
    if transaction.target == PaymentTarget.ADMISSION_FEE:
        candidates = [l for l in lines if l.kind == LineKind.ADMISSION_FEE]
    elif transaction.target == PaymentTarget.ONE_SHOT:
        candidates = [l for l in lines if l.kind == LineKind.ONE_SHOT]
    elif transaction.semester_number is not None and transaction.installment_number is not None:
        candidates = [
            l
            for l in lines
            if l.kind != LineKind.ADMISSION_FEE
            and l.semester_number == transaction.semester_number
            and l.installment_number == transaction.installment_number
        ]
    elif transaction.semester_number is not None:
        candidates = [
            l
            for l in lines
            if l.kind != LineKind.ADMISSION_FEE and l.semester_number == transaction.semester_number
        ]
    else:
        raise InconsistentTransactionTarget(
            transaction.transaction_id,
            f"Transaction {transaction.transaction_id} does not identify an installment or semester",
        )

    if len(candidates) != 1:
        raise InconsistentTransactionTarget(
            transaction.transaction_id,
            f"Transaction {transaction.transaction_id} matches {len(candidates)} schedule lines "
            f"(target={transaction.target.value}, semester={transaction.semester_number}, "
            f"installment={transaction.installment_number})",
        )
    return candidates[0]


def classify_line(
    line: ScheduleLine,
    paid_paise: int,
    has_pending_verification: bool,
    today: date,
    overdue_bucket_days: int = OVERDUE_BUCKET_DAYS,
) -> ResolvedStatus:
    """
    Derive the status of a single line.

    Rules (first match wins):
    1. Approved payments cover the line      → paid
    2. Waived by an administrator            → waived / partially_waived
    3. A payment awaits verification         → verification_pending variants
    4. Past due                              → partially_paid_overdue, or overdue /
                                               pending_10_plus_days by days late
    5. Partially paid, not yet due           → partially_paid_days_left
    6. Otherwise                             → pending
    """
    if paid_paise >= line.amount_payable_paise:
        return ResolvedStatus.PAID

    if line.waived:
        return ResolvedStatus.PARTIALLY_WAIVED if paid_paise > 0 else ResolvedStatus.WAIVED

    if has_pending_verification:
        if paid_paise > 0:
            return ResolvedStatus.PARTIALLY_PAID_VERIFICATION_PENDING
        return ResolvedStatus.VERIFICATION_PENDING

    if line.due_date < today:
        if paid_paise > 0:
            return ResolvedStatus.PARTIALLY_PAID_OVERDUE
        if days_past(line.due_date, today) >= overdue_bucket_days:
            return ResolvedStatus.PENDING_10_PLUS_DAYS
        return ResolvedStatus.OVERDUE

    if paid_paise > 0:
        return ResolvedStatus.PARTIALLY_PAID_DAYS_LEFT

    return ResolvedStatus.PENDING


def resolve_statuses(
    schedule_lines: Sequence[ScheduleLine],
    transactions: Sequence[Transaction],
    today: date,
    overdue_bucket_days: int = OVERDUE_BUCKET_DAYS,
) -> StatusReport:
    """
    Main entry point: annotate every schedule line with its status and total the schedule.

    Only APPROVED transactions count toward the paid amount; PENDING ones only
    flag the line as awaiting verification; REJECTED ones are ignored.
    Every transaction must still target an existing line.
    """
    paid_by_key: Dict[str, int] = {}
    pending_keys = set()

    for txn in transactions:
        line = match_line(txn, schedule_lines)

        if txn.verification_status == VerificationStatus.APPROVED:
            paid_by_key[line.key] = paid_by_key.get(line.key, 0) + txn.amount_paise
        elif txn.verification_status == VerificationStatus.PENDING:
            pending_keys.add(line.key)

    resolved: List[ResolvedLine] = []
    for line in schedule_lines:
        paid = paid_by_key.get(line.key, 0)
        status = classify_line(line, paid, line.key in pending_keys, today, overdue_bucket_days)

        pending = 0 if status in SETTLED_STATUSES else line.amount_payable_paise - paid
        resolved.append(
            ResolvedLine(
                line=line,
                status=status,
                amount_paid_paise=paid,
                amount_pending_paise=pending,
            )
        )

    return StatusReport(lines=resolved, summary=summarize_statuses(resolved))


def summarize_statuses(resolved: Sequence[ResolvedLine]) -> StatusSummary:
    """
    Aggregate line statuses into schedule totals and an overall status.

    Overall status priority:
    verification pending > overdue > partially paid > paid > pending
    """
    total_pending = sum(r.amount_pending_paise for r in resolved)
    total_overdue = sum(r.amount_pending_paise for r in resolved if r.status in OVERDUE_STATUSES)

    open_due_dates = [r.line.due_date for r in resolved if r.amount_pending_paise > 0]
    statuses = {r.status for r in resolved}

    if statuses & VERIFICATION_STATUSES:
        payment_status = ResolvedStatus.VERIFICATION_PENDING
    elif statuses & OVERDUE_STATUSES:
        payment_status = ResolvedStatus.OVERDUE
    elif ResolvedStatus.PARTIALLY_PAID_DAYS_LEFT in statuses:
        payment_status = ResolvedStatus.PARTIALLY_PAID_DAYS_LEFT
    elif total_pending == 0:
        payment_status = ResolvedStatus.PAID
    else:
        payment_status = ResolvedStatus.PENDING

    return StatusSummary(
        total_payable_paise=sum(r.line.amount_payable_paise for r in resolved),
        total_paid_paise=sum(r.amount_paid_paise for r in resolved),
        total_pending_paise=total_pending,
        total_overdue_paise=total_overdue,
        next_due_date=min(open_due_dates) if open_due_dates else None,
        payment_status=payment_status,
    )
