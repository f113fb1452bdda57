"""Structured JSON logging for reward calculations"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from rewards_engine.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: Optional[str] = None) -> None:
    """Configure structured JSON logging; level defaults to settings.log_level"""
    logger = logging.getLogger()
    logger.setLevel(level or settings.log_level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_calculation(
    card_id: str,
    period: str,
    total_spend: float,
    reward_earned_dollars: float,
    minimum_met: bool,
    maximum_exceeded: bool,
    duration_ms: float,
) -> None:
    """Log structured calculation outcome for one card and period"""
    logging.info(
        "Reward calculation completed",
        extra={
            "card_id": card_id,
            "period": period,
            "step": "calculation_complete",
            "total_spend": total_spend,
            "reward_earned_dollars": reward_earned_dollars,
            "minimum_met": minimum_met,
            "maximum_exceeded": maximum_exceeded,
            "duration_ms": duration_ms,
        },
    )


def log_unresolved_spend(card_id: str, period: str, transaction_count: int, amount: float) -> None:
    """Warn about spend that matched no subcategory and no fallback band"""
    logging.warning(
        "Transactions matched no subcategory",
        extra={
            "card_id": card_id,
            "period": period,
            "step": "subcategory_resolution",
            "transaction_count": transaction_count,
            "unresolved_spend": amount,
        },
    )


def log_recommendations(group_count: int, insight_count: int, duration_ms: float) -> None:
    """Log structured recommendation run summary"""
    logging.info(
        "Category recommendations generated",
        extra={
            "step": "recommendations_complete",
            "group_count": group_count,
            "insight_count": insight_count,
            "duration_ms": duration_ms,
        },
    )
