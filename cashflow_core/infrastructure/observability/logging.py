"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from cashflow_core.config import settings


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
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ledger_mutation(
    transaction_id: str,
    user_id: str,
    operation: str,
    balance_delta: float,
    duration_ms: float,
    request_id: str | None = None,
) -> None:
    """Log one structured record per ledger mutation"""
    logging.getLogger("cashflow_core.ledger").info(
        "Ledger mutation completed",
        extra={
            "request_id": request_id,
            "transaction_id": transaction_id,
            "user_id": user_id,
            "operation": operation,
            "balance_delta": round(balance_delta, 2),
            "duration_ms": duration_ms,
        },
    )


def log_balance_drift(user_id: str, cached_balance: float, computed_balance: float) -> None:
    logging.getLogger("cashflow_core.ledger").warning(
        "Balance drift corrected",
        extra={
            "user_id": user_id,
            "cached_balance": cached_balance,
            "computed_balance": computed_balance,
            "difference": round(cached_balance - computed_balance, 2),
        },
    )
