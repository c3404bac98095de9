"""
Execution records and reconciliation results.

Plain dataclasses: these never cross the HTTP boundary.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

Timestamp = Union[datetime, int, float, None]


@dataclass(frozen=True)
class FlowExecution:
    """One execution as reported by the engine's execution history."""

    execution_id: str
    execution_status: str
    started_at: Timestamp = None
    last_updated_at: Timestamp = None
    data_pull_end_time: Optional[datetime] = None
    records_processed: int = 0

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "FlowExecution":
        """Build from a describe_flow_execution_records entry."""
        result = record.get("executionResult") or {}
        return cls(
            execution_id=record["executionId"],
            execution_status=record.get("executionStatus", ""),
            started_at=record.get("startedAt"),
            last_updated_at=record.get("lastUpdatedAt"),
            data_pull_end_time=record.get("dataPullEndTime"),
            records_processed=int(result.get("recordsProcessed") or 0),
        )


class ReconcileOutcome(str, Enum):
    APPLIED = "APPLIED"
    DUPLICATE = "DUPLICATE"


class PromotionOutcome(str, Enum):
    PROMOTED = "PROMOTED"
    SKIPPED_ALREADY_INCREMENTAL = "SKIPPED_ALREADY_INCREMENTAL"
    SKIPPED_NOT_PROMOTABLE = "SKIPPED_NOT_PROMOTABLE"
    SKIPPED_NO_WATERMARK = "SKIPPED_NO_WATERMARK"
    FAILED = "FAILED"


@dataclass
class ReconciliationResult:
    """What one reconciliation did."""

    flow_name: str
    execution_id: str
    outcome: ReconcileOutcome
    duration_seconds: float = 0.0
    records_processed: int = 0
    flow_status: Optional[str] = None
    promotion: Optional[PromotionOutcome] = None
