"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "fee-engine"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_schedule_built(
    request_id: str,
    student_id: str | None,
    payment_plan: str,
    line_count: int,
    total_amount_payable: str,
    duration_ms: float,
) -> None:
    """Log structured schedule outcome"""
    logging.info(
        "Schedule built",
        extra={
            "request_id": request_id,
            "student_id": student_id,
            "step": "schedule_built",
            "payment_plan": payment_plan,
            "line_count": line_count,
            "total_amount_payable": total_amount_payable,
            "duration_ms": duration_ms,
        },
    )


def log_status_resolved(
    request_id: str,
    student_id: str | None,
    payment_status: str,
    total_pending: str,
    total_overdue: str,
    duration_ms: float,
) -> None:
    """Log structured status outcome for collections analysis"""
    logging.info(
        "Statuses resolved",
        extra={
            "request_id": request_id,
            "student_id": student_id,
            "step": "status_resolved",
            "payment_status": payment_status,
            "total_pending": total_pending,
            "total_overdue": total_overdue,
            "duration_ms": duration_ms,
        },
    )
