"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from rentdesk.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_payment(
    request_id: str,
    actor: str,
    house_id: str,
    period: str,
    kind: str,
    amount: float,
    source: str,
) -> None:
    """Log a recorded payment for reconciliation"""
    logging.info(
        "Payment recorded",
        extra={
            "request_id": request_id,
            "actor": actor,
            "house_id": house_id,
            "period": period,
            "kind": kind,
            "amount": amount,
            "source": source,
        },
    )


def log_void(
    request_id: str,
    actor: str,
    source: str,
    payment_id: Optional[str] = None,
    house_id: Optional[str] = None,
    period: Optional[str] = None,
    kind: Optional[str] = None,
) -> None:
    """Log a payment void (explicit or undo of the latest payment)"""
    logging.info(
        "Payment voided",
        extra={
            "request_id": request_id,
            "actor": actor,
            "source": source,
            "payment_id": payment_id,
            "house_id": house_id,
            "period": period,
            "kind": kind,
        },
    )
