"""POST /v1/schedule/preview - build a fee schedule without persisting anything"""

import logging
import time

from fastapi import APIRouter, HTTPException, Request

from fee_engine.api.dependencies import get_request_id
from fee_engine.api.v1.schemas import ScheduleResponse, SchedulePreviewRequest
from fee_engine.config import settings
from fee_engine.domain.exceptions import InvalidFeeStructure, PlanNotSelected
from fee_engine.domain.schedule import build_schedule
from fee_engine.infrastructure.observability.logging import log_schedule_built
from fee_engine.infrastructure.observability.metrics import record_schedule
from fee_engine.utils.money import format_inr

router = APIRouter()


@router.post("/schedule/preview", response_model=ScheduleResponse)
def preview_schedule(request_body: SchedulePreviewRequest, request: Request):
    """
    Build the payment schedule for a fee structure and plan.

    Used by the fee setup wizard to show the breakdown before saving.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        schedule = build_schedule(
            request_body.fee_structure.to_domain(),
            request_body.payment_plan,
            scholarship=request_body.scholarship.to_domain() if request_body.scholarship else None,
            start_date=request_body.start_date,
            gst_rate=settings.gst_rate_percent,
            semester_length_months=settings.semester_length_months,
        )

    except (InvalidFeeStructure, PlanNotSelected) as e:
        logging.warning(f"Schedule rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except ValueError as e:
        logging.warning(f"Invalid custom due date: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=f"Invalid custom due date: {e}")

    record_schedule(schedule.payment_plan.value)
    log_schedule_built(
        request_id,
        None,
        schedule.payment_plan.value,
        len(schedule.semesters),
        format_inr(schedule.overall_summary.total_amount_payable_paise),
        (time.time() - start_time) * 1000,
    )

    return ScheduleResponse.from_domain(schedule)
