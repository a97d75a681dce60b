"""POST /v1/status/resolve - derive line statuses for a supplied schedule and transactions"""

import logging
import time
from datetime import date

from fastapi import APIRouter, HTTPException, Request

from fee_engine.api.dependencies import get_request_id
from fee_engine.api.v1.schemas import StatusResolveRequest, StatusResponse
from fee_engine.config import settings
from fee_engine.domain.exceptions import InconsistentTransactionTarget
from fee_engine.domain.status import resolve_statuses
from fee_engine.infrastructure.observability.logging import log_status_resolved
from fee_engine.infrastructure.observability.metrics import integrity_warning_counter, record_line_statuses
from fee_engine.utils.money import format_inr

router = APIRouter()


@router.post("/status/resolve", response_model=StatusResponse)
def resolve_status(request_body: StatusResolveRequest, request: Request):
    """
    Resolve the status of every line from the transactions recorded against it.

    Returns:
        Annotated lines with paid/pending amounts and schedule totals
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        report = resolve_statuses(
            [line.to_domain() for line in request_body.lines],
            [txn.to_domain() for txn in request_body.transactions],
            today=request_body.as_of or date.today(),
            overdue_bucket_days=settings.overdue_bucket_days,
        )

    except InconsistentTransactionTarget as e:
        integrity_warning_counter.inc()
        logging.warning(
            f"Transaction target mismatch: {e}",
            extra={"request_id": request_id, "transaction_id": e.transaction_id},
        )
        raise HTTPException(status_code=409, detail=str(e))

    record_line_statuses(r.status.value for r in report.lines)
    log_status_resolved(
        request_id,
        None,
        report.summary.payment_status.value,
        format_inr(report.summary.total_pending_paise),
        format_inr(report.summary.total_overdue_paise),
        (time.time() - start_time) * 1000,
    )

    return StatusResponse.from_domain(report)
